"""
Typed query descriptors from SQL text.

SQL is not parsed. The query is prepared by the database to learn its result
columns and parameter types, and the text is scanned for a few conventions:

  * ``$1 /* name */`` or ``$1 /* name type */`` names a parameter, and
    optionally fixes its output type
  * ``column = $1`` names a parameter after the column and marks the column
    as equality-bound, used to detect single-row lookups on unique indexes
  * ``limit 1`` at the end, or ``/* singlerow */``, means single row
  * ``/* multirow */`` means multiple rows, whatever else applies
  * ``select * ...`` is expanded into the table's visible columns
"""

from __future__ import annotations

import logging
import re
from typing import Iterable

from .context import ResolutionContext
from .errors import QueryError
from .models import Field, Query, Table, Unique
from .naming import maybe_quote, unquote

logger = logging.getLogger(__name__)

SELECT_STAR_RE = re.compile(r"^\s*select\s+\*\s+(.*)", re.IGNORECASE | re.DOTALL)
LIMIT_ONE_RE = re.compile(r"\blimit\s+1\s*;?\s*$", re.IGNORECASE)
SINGLEROW_RE = re.compile(r"/\*\s*singlerow\s*\*/", re.IGNORECASE)
MULTIROW_RE = re.compile(r"/\*\s*multirow\s*\*/", re.IGNORECASE)
_DIRECTIVES = ("singlerow", "multirow")

# An optionally qualified, optionally quoted identifier: id, t.id, "Id", t."Id"
_IDENTIFIER = r'(?:"(?:[^"]|"")+"|[^\s=<>!(),;"])+'
_IDENTIFIER_PART_RE = re.compile(r'"(?:[^"]|"")+"|[^."]+')


def _placeholder(index: int) -> str:
    return rf"\${index}(?!\d)"


def find_annotation(query: str, index: int) -> list[str] | None:
    """Return the words of the comment right after placeholder $index, if any."""
    m = re.search(_placeholder(index) + r"\s*/\*\s*([^*]*[^\s*])\s*\*/", query)
    if m is None:
        return None
    words = m.group(1).split()
    if len(words) == 1 and words[0].lower() in _DIRECTIVES:
        return None
    return words


def find_equality(query: str, index: int) -> str | None:
    """Return the column compared with ``column = $index``, unquoted and unqualified."""
    m = re.search(rf"({_IDENTIFIER})\s*=\s*" + _placeholder(index), query)
    if m is None:
        return None
    parts = _IDENTIFIER_PART_RE.findall(m.group(1))
    if not parts:
        return None
    return unquote(parts[-1])


def is_limit_one(query: str) -> bool:
    return LIMIT_ONE_RE.search(query) is not None


def expand_select_star(query: str, table: Table) -> str | None:
    """Rewrite ``select * rest`` to list the table's visible columns, None if it isn't one."""
    m = SELECT_STAR_RE.match(query)
    if m is None:
        return None
    cols = [maybe_quote(f.name) for f in table.visible_fields]
    return "select " + ", ".join(cols) + " " + m.group(1)


def covers_unique_index(columns: Iterable[str], indexes: Iterable[Unique]) -> bool:
    """True if the columns include every column of at least one unique index."""
    bound = set(columns)
    return any(idx.columns and bound.issuperset(idx.columns) for idx in indexes)


def infer_single_row(query: str, default: bool, eq_columns: list[str], indexes: Iterable[Unique]) -> bool:
    single = default
    if is_limit_one(query) or SINGLEROW_RE.search(query):
        single = True
    elif eq_columns and covers_unique_index(eq_columns, indexes):
        single = True

    # escape hatch for when we want multiple rows
    if MULTIROW_RE.search(query):
        single = False
    return single


def _parameter(ctx: ResolutionContext, name: str, query: str, index: int, type_id: int,
               eq_columns: list[str]) -> Field:
    param = Field(name="")

    words = find_annotation(query, index)
    if words is not None:
        if len(words) > 2:
            raise QueryError(name, f"- couldn't understand type annotation '{' '.join(words)}'")
        param.name = words[0]
        if len(words) == 2:
            param.output_type = words[1]

    column = find_equality(query, index)
    if column is not None:
        eq_columns.append(column)
        if not param.name:
            param.name = ctx.normalizer(column) if "_" in column else column
    if not param.name:
        param.name = f"p{index}"

    param.type_id = type_id
    if not param.output_type:
        # parameters carry no nullability of their own
        param.output_type = ctx.types.resolve(type_id, True, f"${index}", name)
    return param


def analyze_query(ctx: ResolutionContext, name: str, query: str, single: bool = False) -> Query:
    """Build a typed Query and attach it to the table its results come from."""
    desc = ctx.catalog.describe(name, query)
    if not desc.columns:
        raise QueryError(name, "doesn't return anything")

    table_oid = desc.columns[0].table_id
    table = ctx.table_by_oid(table_oid)
    if table is None:
        # TODO: support queries over tables outside the introspected set
        raise QueryError(name, "uses a table that's not included - not supported")

    real_query = expand_select_star(query, table)
    if real_query is not None:
        desc = ctx.catalog.describe(name, real_query)
    else:
        real_query = query

    fields = []
    for col in desc.columns:
        if col.table_id != table_oid:
            raise QueryError(name, "returns from multiple tables - not supported")
        f = table.field_at(col.position)
        if f is None or f.position != col.position:
            raise QueryError(name, "- internal error finding columns")
        if not f.visible:
            raise QueryError(name, f"returns column {f.name} of {table.name}, which is excluded")
        fields.append(f)

    params: list[Field] = []
    eq_columns: list[str] = []
    for i, type_id in enumerate(desc.parameter_types, start=1):
        params.append(_parameter(ctx, name, query, i, type_id, eq_columns))

    q = Query(
        name=name,
        query=real_query,
        original_query=query,
        fields=fields,
        parameters=params,
        single_row=infer_single_row(query, single, eq_columns, table.indexes),
    )
    table.queries.append(q)
    logger.debug(f"Query {name} on {table.name}: {len(fields)} fields, {len(params)} parameters, single_row={q.single_row}")
    return q
