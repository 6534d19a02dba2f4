"""
Native type id -> output type name resolution.

Configured mappings are registered per canonical type id, separately for
not-null and nullable use. Resolution falls back to known enums, then to the
wildcard mappings, and finally to UNKNOWN_TYPE so a run can finish and show
which columns still need a mapping.
"""

from __future__ import annotations

import logging
from typing import Callable, Mapping

from .errors import ConfigurationError
from .naming import IdentifierNormalizer

logger = logging.getLogger(__name__)

UNKNOWN_TYPE = "?unknown?"

# Configuration key for the fallback mapping, and the type id it's stored under
WILDCARD = "*"
WILDCARD_TYPE_ID = 0


class TypeResolver:
    """Holds the type tables and the set of enums seen so far in this run."""

    def __init__(self, normalizer: IdentifierNormalizer, all_enums: Mapping[int, str] | None = None):
        self.normalizer = normalizer
        self.not_null_types: dict[int, str] = {}
        self.null_types: dict[int, str] = {}
        # every enum in the catalog, type id -> name
        self.all_enums: dict[int, str] = dict(all_enums or {})
        # enums referenced by a column or parameter, in order of first use
        self.seen_enums: dict[int, str] = {}

    def register(
        self,
        not_null_types: Mapping[str, str],
        types: Mapping[str, str],
        canonicalize: Callable[[str], int | None],
    ) -> None:
        """Register configured mappings, keyed by native type spelling.

        Spellings are canonicalized to type ids, so two aliases of one type
        must agree on the output type. A nullable mapping also serves not-null
        use of the same type unless a not-null mapping was given for it.
        """
        for native, output in not_null_types.items():
            self._register_one(self.not_null_types, native, output, canonicalize)

        for native, output in types.items():
            type_id = self._register_one(self.null_types, native, output, canonicalize)
            if type_id is not None:
                self.not_null_types.setdefault(type_id, output)

    def _register_one(
        self,
        table: dict[int, str],
        native: str,
        output: str,
        canonicalize: Callable[[str], int | None],
    ) -> int | None:
        if native == WILDCARD:
            table[WILDCARD_TYPE_ID] = output
            return None

        type_id = canonicalize(native)
        if type_id is None:
            logger.warning(f"Failed to canonicalize type '{native}', ignoring its mapping")
            return None

        existing = table.get(type_id)
        if existing is not None and existing != output:
            raise ConfigurationError(
                f"Type '{native}' is mapped two different ways, to '{output}' and '{existing}'"
            )
        table[type_id] = output
        return type_id

    def resolve(self, type_id: int, not_null: bool, type_label: str, owner: str) -> str:
        """Return the output type for a native type id.

        type_label and owner (table or query name) are only used in diagnostics.
        """
        if not_null and type_id in self.not_null_types:
            return self.not_null_types[type_id]
        if type_id in self.null_types:
            return self.null_types[type_id]

        if type_id in self.seen_enums:
            return self.normalizer(self.seen_enums[type_id])
        if type_id in self.all_enums:
            name = self.all_enums[type_id]
            self.seen_enums[type_id] = name
            return self.normalizer(name)

        if not_null and WILDCARD_TYPE_ID in self.not_null_types:
            logger.info(f"Using fallback type for type {type_label} in {owner}")
            return self.not_null_types[WILDCARD_TYPE_ID]
        if WILDCARD_TYPE_ID in self.null_types:
            logger.info(f"Using fallback type for type {type_label} in {owner}")
            return self.null_types[WILDCARD_TYPE_ID]

        logger.warning(f"Couldn't translate type {type_label} in {owner}")
        return UNKNOWN_TYPE
