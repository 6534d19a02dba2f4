"""
Unique indexes, primary keys and foreign keys from catalog rows.

Index and foreign key rows refer to columns by 1-based position, so these run
while tables still hold every column, hidden ones included.
"""

from __future__ import annotations

import logging
from typing import Iterable

from .databases.base import ForeignKeyRow, IndexRow
from .errors import RelationshipError
from .models import ForeignKey, Result, Table, Unique

logger = logging.getLogger(__name__)

# Index member position of an expression rather than a column
EXPRESSION_POSITION = 0


def index_is_usable(table: Table, row: IndexRow) -> bool:
    """Keep an index only if every member is a plain, visible column."""
    if not row.positions:
        return False
    for pos in row.positions:
        if pos == EXPRESSION_POSITION:
            logger.debug(f"Skipping functional index {row.name} on {table.name}")
            return False
        f = table.field_at(pos)
        if f is None:
            raise RelationshipError(f"Column {pos} of index {row.name} outside columns for {table.name}")
        if not f.visible:
            logger.debug(f"Skipping index {row.name} on {table.name}, it uses ignored column {f.name}")
            return False
    return True


def derive_uniques(table: Table, rows: Iterable[IndexRow]) -> list[Unique]:
    uniques = []
    for row in rows:
        if not index_is_usable(table, row):
            continue
        uniques.append(Unique(
            name=row.name,
            primary_key=row.primary_key,
            columns=[table.field_at(pos).name for pos in row.positions],
        ))
    return uniques


def assign_indexes(table: Table, uniques: list[Unique]) -> None:
    """Attach indexes to a table and pick its primary key and ID field.

    A single-column primary key whose column has a default (serial, identity)
    becomes the ID field used for insert/upsert return values.
    """
    table.indexes = uniques
    for idx in uniques:
        if not idx.primary_key:
            continue
        table.primary = idx
        if len(idx.columns) == 1:
            f = table.field_named(idx.columns[0])
            if f is not None and f.has_default:
                table.id_field = f


def _column_names(table: Table, positions: Iterable[int], fk_name: str, what: str) -> list[str]:
    names = []
    for pos in positions:
        f = table.field_at(pos)
        if f is None:
            raise RelationshipError(f"Column {pos} of foreign key {fk_name} outside columns {what} {table.name}")
        names.append(f.name)
    return names


def derive_foreign_keys(table: Table, rows: Iterable[ForeignKeyRow], result: Result) -> list[ForeignKey]:
    """Build foreign keys, resolving referenced columns among the loaded tables.

    A key referencing a table outside the introspected set keeps only its
    local side.
    """
    keys = []
    for row in rows:
        if not row.columns:
            continue
        fk = ForeignKey(name=row.name, columns=_column_names(table, row.columns, row.name, "for"))
        foreign = result.table_by_oid(row.foreign_table_id)
        if foreign is not None:
            fk.foreign_table = foreign.name
            fk.foreign_columns = _column_names(foreign, row.foreign_columns, row.name, "of target table")
        else:
            logger.debug(f"Foreign key {row.name} on {table.name} references a table that isn't included")
        keys.append(fk)
    return keys
