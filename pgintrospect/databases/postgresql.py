"""PostgreSQL catalog source."""

import itertools
import logging
from typing import Any, Dict, List, Optional

import psycopg
from psycopg import pq
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError, SQLAlchemyError

from ..errors import CatalogError, ConfigurationError, QueryError
from .base import (
    CatalogSource,
    ColumnRow,
    ForeignKeyRow,
    IndexRow,
    StatementColumn,
    StatementDescription,
    TableRow,
)

logger = logging.getLogger(__name__)

# Identity columns were added in 11.0, they count as having a default
IDENTITY_COLUMNS_VERSION = 110000

_TABLES_SQL = text("""
    SELECT c.oid, c.relkind::text, c.relname, n.nspname
    FROM pg_class c
    JOIN pg_namespace n ON n.oid = c.relnamespace
    WHERE c.relkind IN ('r', 'v', 'm')
      AND n.nspname || '.' || c.relname ~ :include
      AND n.nspname || '.' || c.relname !~ :exclude
    ORDER BY n.nspname, c.relname
""")

# format_type gets NULL instead of atttypmod, we don't care about lengths
_COLUMNS_SQL = """
    SELECT a.attnum, a.attname, format_type(a.atttypid, NULL),
           a.attnotnull, a.attndims <> 0,
           a.attname ~* :include AND a.attname !~* :exclude AND NOT a.attisdropped,
           a.atttypid, {has_default}
    FROM pg_attribute a
    WHERE a.attrelid = :oid
    ORDER BY a.attnum ASC
"""

_INDEXES_SQL = text("""
    SELECT c.relname, i.indisprimary, i.indkey::int2[]
    FROM pg_index i
    JOIN pg_class c ON c.oid = i.indexrelid
    WHERE i.indrelid = :oid AND i.indisunique
    ORDER BY c.relname
""")

_FOREIGN_KEYS_SQL = text("""
    SELECT conname, confrelid, conkey, confkey
    FROM pg_constraint
    WHERE conrelid = :oid AND contype = 'f'
    ORDER BY conname
""")

_ENUMS_SQL = text("SELECT oid, typname FROM pg_type WHERE typtype = 'e' ORDER BY oid")

_ENUM_LABELS_SQL = text("""
    SELECT enumlabel FROM pg_enum
    WHERE enumtypid = :oid
    ORDER BY enumsortorder
""")

_CANONICAL_TYPE_SQL = text("SELECT CAST(CAST(:name AS regtype) AS oid)")

_statement_ids = itertools.count(1)


class PostgresqlCatalog(CatalogSource):
    """Reads pg_catalog through a SQLAlchemy engine using the psycopg driver."""

    def __init__(self, engine: Engine):
        self.engine = engine
        self._version: Optional[int] = None

    def _fetch(self, what: str, stmt: Any, params: Optional[Dict[str, Any]] = None) -> List[Any]:
        try:
            with self.engine.connect() as conn:
                return conn.execute(stmt, params or {}).fetchall()
        except SQLAlchemyError as e:
            raise CatalogError(f"Failed to read {what}: {e}") from e

    def server_version(self) -> int:
        if self._version is None:
            rows = self._fetch("server version", text("SELECT current_setting('server_version_num')"))
            raw = rows[0][0]
            try:
                self._version = int(raw)
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f"Bad server version '{raw}'") from e
            logger.debug(f"Server version {self._version}")
        return self._version

    def list_enums(self) -> Dict[int, str]:
        return {int(row[0]): row[1] for row in self._fetch("enum types", _ENUMS_SQL)}

    def canonical_type_id(self, type_name: str) -> Optional[int]:
        try:
            with self.engine.connect() as conn:
                return int(conn.execute(_CANONICAL_TYPE_SQL, {"name": type_name}).scalar_one())
        except DBAPIError as e:
            logger.debug(f"Type '{type_name}' not recognized: {e.orig}")
            return None

    def enum_labels(self, type_id: int) -> List[str]:
        rows = self._fetch(f"labels of enum {type_id}", _ENUM_LABELS_SQL, {"oid": type_id})
        return [row[0] for row in rows]

    def list_tables(self, include_regex: str, exclude_regex: str) -> List[TableRow]:
        rows = self._fetch("tables", _TABLES_SQL, {"include": include_regex, "exclude": exclude_regex})
        return [TableRow(id=int(r[0]), kind=r[1], name=r[2], schema=r[3]) for r in rows]

    def list_columns(self, table_id: int, include_regex: str, exclude_regex: str) -> List[ColumnRow]:
        if self.server_version() >= IDENTITY_COLUMNS_VERSION:
            has_default = "a.atthasdef OR a.attidentity <> ''"
        else:
            has_default = "a.atthasdef"
        stmt = text(_COLUMNS_SQL.format(has_default=has_default))
        rows = self._fetch(
            f"columns of table {table_id}",
            stmt,
            {"oid": table_id, "include": include_regex, "exclude": exclude_regex},
        )
        return [
            ColumnRow(
                position=r[0],
                name=r[1],
                type=r[2],
                not_null=r[3],
                array=r[4],
                visible=r[5],
                type_id=int(r[6]),
                has_default=r[7],
            )
            for r in rows
        ]

    def list_unique_indexes(self, table_id: int) -> List[IndexRow]:
        rows = self._fetch(f"indexes of table {table_id}", _INDEXES_SQL, {"oid": table_id})
        return [IndexRow(name=r[0], primary_key=r[1], positions=tuple(r[2] or ())) for r in rows]

    def list_foreign_keys(self, table_id: int) -> List[ForeignKeyRow]:
        rows = self._fetch(f"foreign keys of table {table_id}", _FOREIGN_KEYS_SQL, {"oid": table_id})
        return [
            ForeignKeyRow(
                name=r[0],
                foreign_table_id=int(r[1]),
                columns=tuple(r[2] or ()),
                foreign_columns=tuple(r[3] or ()),
            )
            for r in rows
        ]

    def describe(self, name: str, query: str) -> StatementDescription:
        stmt_name = f"pgintrospect_{next(_statement_ids)}".encode()
        try:
            with self.engine.connect() as conn:
                driver_conn = conn.connection.driver_connection
                pgconn = getattr(driver_conn, "pgconn", None)
                if pgconn is None:
                    raise ConfigurationError("Describing queries needs the psycopg driver (postgresql+psycopg://)")
                encoding = driver_conn.info.encoding

                res = pgconn.prepare(stmt_name, query.encode(encoding))
                if res.status != pq.ExecStatus.COMMAND_OK:
                    raise QueryError(name, f"failed to prepare: {res.error_message.decode(encoding).strip()}")
                try:
                    desc = pgconn.describe_prepared(stmt_name)
                    if desc.status != pq.ExecStatus.COMMAND_OK:
                        raise QueryError(name, f"failed to describe: {desc.error_message.decode(encoding).strip()}")
                    columns = tuple(
                        StatementColumn(table_id=desc.ftable(i), position=desc.ftablecol(i))
                        for i in range(desc.nfields)
                    )
                    parameter_types = tuple(desc.param_type(i) for i in range(desc.nparams))
                finally:
                    _deallocate(pgconn, stmt_name)
        except (SQLAlchemyError, psycopg.Error) as e:
            raise CatalogError(f"Failed to describe query {name}: {e}") from e
        return StatementDescription(columns=columns, parameter_types=parameter_types)


def _deallocate(pgconn: Any, stmt_name: bytes) -> None:
    # runs in a finally block, must not replace the error being raised
    try:
        pgconn.exec_(b"DEALLOCATE " + stmt_name)
    except psycopg.Error as e:
        logger.warning(f"Failed to deallocate statement {stmt_name.decode()}: {e}")
