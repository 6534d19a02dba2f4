"""Typed schema models from live PostgreSQL catalog metadata, for driving code generation."""

from .config import Config, TableConfig, load_config
from .errors import (
    CatalogError,
    ConfigurationError,
    IntrospectionError,
    QueryError,
    RelationshipError,
)
from .introspect import introspect
from .models import Enum, Field, ForeignKey, Query, Result, Table, Unique

__all__ = [
    "CatalogError",
    "Config",
    "ConfigurationError",
    "Enum",
    "Field",
    "ForeignKey",
    "IntrospectionError",
    "Query",
    "QueryError",
    "RelationshipError",
    "Result",
    "Table",
    "TableConfig",
    "Unique",
    "introspect",
    "load_config",
]
