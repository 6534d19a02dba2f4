"""Shared fixtures: a small shop schema served by FakeCatalog."""

import pytest

from fakes import (
    BOOL,
    INT4,
    INT8,
    MOOD,
    ORDER_STATUS,
    TEXT,
    TIMESTAMPTZ,
    FakeCatalog,
    FakeColumn,
    FakeTable,
)
from pgintrospect.config import Config, TableConfig
from pgintrospect.context import ResolutionContext
from pgintrospect.databases.base import ForeignKeyRow, IndexRow
from pgintrospect.introspect import list_enums, read_tables, register_types


def shop_tables():
    users = FakeTable(
        oid=1001,
        name="users",
        columns=[
            FakeColumn("id", "bigint", INT8, not_null=True, has_default=True),
            FakeColumn("email", "text", TEXT, not_null=True),
            FakeColumn("display_name", "text", TEXT),
            FakeColumn("password_hash", "text", TEXT, not_null=True),
            FakeColumn("is_admin", "boolean", BOOL, not_null=True, has_default=True),
        ],
        indexes=[
            IndexRow("users_pkey", True, (1,)),
            IndexRow("users_email_key", False, (2,)),
            IndexRow("users_password_hash_key", False, (4,)),
            IndexRow("users_lower_email_idx", False, (0,)),
        ],
    )
    orders = FakeTable(
        oid=1002,
        name="orders",
        columns=[
            FakeColumn("id", "bigint", INT8, not_null=True, has_default=True),
            FakeColumn("user_id", "bigint", INT8, not_null=True),
            FakeColumn("status", "order_status", ORDER_STATUS, not_null=True),
            FakeColumn("placed_at", "timestamp with time zone", TIMESTAMPTZ),
            FakeColumn("........pg.dropped.5........", "-", 0, dropped=True),
            FakeColumn("line_no", "integer", INT4, not_null=True),
        ],
        indexes=[
            IndexRow("orders_pkey", True, (1,)),
            IndexRow("orders_user_id_line_no_key", False, (2, 6)),
        ],
        foreign_keys=[
            ForeignKeyRow("orders_user_id_fkey", 1001, (2,), (1,)),
        ],
    )
    events = FakeTable(
        oid=1003,
        name="events",
        schema="audit",
        columns=[
            FakeColumn("id", "bigint", INT8, not_null=True, has_default=True),
            FakeColumn("order_id", "bigint", INT8),
        ],
        indexes=[IndexRow("events_pkey", True, (1,))],
        foreign_keys=[ForeignKeyRow("events_order_id_fkey", 1002, (2,), (1,))],
    )
    return [users, orders, events]


@pytest.fixture
def catalog():
    return FakeCatalog(
        tables=shop_tables(),
        enums={ORDER_STATUS: "order_status", MOOD: "mood"},
        enum_labels={
            ORDER_STATUS: ["pending", "paid", "shipped"],
            MOOD: ["sad", "ok", "happy"],
        },
    )


@pytest.fixture
def config():
    return Config(
        not_null_types={"int8": "int64", "text": "string", "integer": "int32", "bool": "bool"},
        types={
            "bigint": "sql.NullInt64",
            "text": "sql.NullString",
            "timestamptz": "*time.Time",
            "*": "interface{}",
        },
        tables={"users": TableConfig(exclude_columns=["password_*"])},
    )


@pytest.fixture
def ctx(catalog, config):
    """A context with enums listed, types registered and public tables loaded."""
    context = ResolutionContext(catalog=catalog, config=config)
    list_enums(context)
    register_types(context)
    read_tables(context)
    return context
