"""
Catalog source base class.

Each database implements this interface to expose the parts of its system
catalog the introspection pipeline reads: enums, tables, columns, unique
indexes, foreign keys, and the result/parameter description of a query.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class TableRow:
    id: int
    kind: str
    name: str
    schema: str


@dataclass(frozen=True)
class ColumnRow:
    position: int
    name: str
    type: str
    not_null: bool
    array: bool
    visible: bool
    type_id: int
    has_default: bool


@dataclass(frozen=True)
class IndexRow:
    """A unique index; position 0 marks an expression member."""

    name: str
    primary_key: bool
    positions: Tuple[int, ...] = ()


@dataclass(frozen=True)
class ForeignKeyRow:
    name: str
    foreign_table_id: int
    columns: Tuple[int, ...] = ()
    foreign_columns: Tuple[int, ...] = ()


@dataclass(frozen=True)
class StatementColumn:
    """Origin of one result column; table_id 0 means it isn't a plain column."""

    table_id: int
    position: int


@dataclass(frozen=True)
class StatementDescription:
    columns: Tuple[StatementColumn, ...] = field(default_factory=tuple)
    parameter_types: Tuple[int, ...] = field(default_factory=tuple)


class CatalogSource(ABC):
    """Abstract base for catalog sources."""

    @abstractmethod
    def server_version(self) -> int:
        """Return the numeric server version (e.g. 150004)."""
        pass

    @abstractmethod
    def list_enums(self) -> Dict[int, str]:
        """Return every enum type in the database, {type_id: name}."""
        pass

    @abstractmethod
    def canonical_type_id(self, type_name: str) -> Optional[int]:
        """Return the type id a type spelling refers to, None if it isn't a type."""
        pass

    @abstractmethod
    def enum_labels(self, type_id: int) -> List[str]:
        """Return an enum's labels in their native sort order."""
        pass

    @abstractmethod
    def list_tables(self, include_regex: str, exclude_regex: str) -> List[TableRow]:
        """Return tables, views and materialized views whose schema.name matches include but not exclude."""
        pass

    @abstractmethod
    def list_columns(self, table_id: int, include_regex: str, exclude_regex: str) -> List[ColumnRow]:
        """Return a table's user columns in position order.

        visible is false for columns outside the include/exclude filters and for dropped columns.
        """
        pass

    @abstractmethod
    def list_unique_indexes(self, table_id: int) -> List[IndexRow]:
        """Return a table's unique indexes, including the primary key."""
        pass

    @abstractmethod
    def list_foreign_keys(self, table_id: int) -> List[ForeignKeyRow]:
        """Return a table's foreign key constraints."""
        pass

    @abstractmethod
    def describe(self, name: str, query: str) -> StatementDescription:
        """Prepare a query without running it and describe its results and parameters."""
        pass
