"""State shared by the introspection phases of one run."""

from __future__ import annotations

from dataclasses import dataclass, field

from .config import Config
from .databases.base import CatalogSource
from .models import Result, Table
from .naming import IdentifierNormalizer
from .types import TypeResolver


@dataclass
class ResolutionContext:
    """Everything one run reads and writes, passed through the phases in order.

    Phases mutate it in place: the type tables and seen-enum set, the name
    memo, the growing Result, and the name -> SQL query registry.
    """

    catalog: CatalogSource
    config: Config
    normalizer: IdentifierNormalizer = field(default_factory=IdentifierNormalizer)
    types: TypeResolver = field(init=False)
    result: Result = field(default_factory=Result)
    # query name -> SQL, authored queries first, then synthesized ones
    queries: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.types = TypeResolver(self.normalizer)

    def table_by_oid(self, oid: int) -> Table | None:
        return self.result.table_by_oid(oid)
