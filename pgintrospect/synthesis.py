"""Generated lookup queries, and parameter renaming after analysis."""

from __future__ import annotations

import logging
from typing import Iterable

from .config import Config
from .models import Result, Table
from .naming import maybe_quote

logger = logging.getLogger(__name__)

QUERY_NAME_SEPARATOR = "_"


def lookup_query(table: Table, columns: list[str]) -> tuple[str, str]:
    """Name and SQL of ``select *`` from table filtered on each column in order."""
    name = QUERY_NAME_SEPARATOR.join([table.name, "by", *columns])
    where = " and ".join(f"{maybe_quote(col)} = ${i}" for i, col in enumerate(columns, start=1))
    return name, f"select * from {qualified_name(table)} where {where}"


def qualified_name(table: Table) -> str:
    if table.schema and table.schema != "public":
        return f"{maybe_quote(table.schema)}.{maybe_quote(table.name)}"
    return maybe_quote(table.name)


def add_query(queries: dict[str, str], name: str, query: str) -> str:
    """Register a generated query, appending separators to its name until it's free."""
    while name in queries:
        name += QUERY_NAME_SEPARATOR
    queries[name] = query
    return name


def wants_index_queries(config: Config, primary_key: bool) -> bool:
    return config.generate_unique_queries or (config.generate_pk_queries and primary_key)


def synthesize_index_queries(queries: dict[str, str], table: Table, config: Config) -> list[str]:
    names = []
    for idx in table.indexes:
        if wants_index_queries(config, idx.primary_key):
            names.append(add_query(queries, *lookup_query(table, idx.columns)))
    return names


def synthesize_foreign_key_queries(queries: dict[str, str], table: Table, config: Config) -> list[str]:
    names = []
    if not config.generate_fk_queries:
        return names
    for fk in table.foreign_keys:
        names.append(add_query(queries, *lookup_query(table, fk.columns)))
    return names


def fix_query_parameters(result: Result, reserved_names: Iterable[str]) -> int:
    """Rename parameters that clash with variables used in generated code.

    One underscore is appended, once. Returns how many parameters were renamed.
    """
    reserved = set(reserved_names)
    renamed = 0
    for table in result.tables:
        for query in table.queries:
            for param in query.parameters:
                if param.name in reserved:
                    logger.debug(f"Renaming parameter {param.name} of query {query.name}")
                    param.name += "_"
                    renamed += 1
    return renamed

