"""
Run configuration, read from a YAML file.

Example::

    connection_string: postgresql://localhost/app
    include_tables: ["public.*"]
    exclude_tables: ["schema_migrations"]
    types:
      integer: int
      text: sql.NullString
      "*": interface{}
    not_null_types:
      text: string
    tables:
      users:
        exclude_columns: ["password_hash"]
        column_types:
          settings: UserSettings
    generate_pk_queries: true
    queries:
      recent_orders: select * from orders where created_at > $1 /* since */
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "pgintrospect.yaml"

# Names the generated code uses for its own variables
DEFAULT_RESERVED_NAMES = ["q", "row", "result", "db", "err"]


@dataclass
class TableConfig:
    include_columns: list[str] = field(default_factory=list)
    exclude_columns: list[str] = field(default_factory=list)
    column_types: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None, where: str) -> "TableConfig":
        data = _mapping(data, where)
        _warn_unknown(cls, data, where)
        return cls(
            include_columns=_string_list(data.get("include_columns"), f"{where}.include_columns"),
            exclude_columns=_string_list(data.get("exclude_columns"), f"{where}.exclude_columns"),
            column_types=_string_map(data.get("column_types"), f"{where}.column_types"),
        )


@dataclass
class Config:
    connection_string: str = ""
    include_tables: list[str] = field(default_factory=list)
    exclude_tables: list[str] = field(default_factory=list)
    default: TableConfig = field(default_factory=TableConfig)
    tables: dict[str, TableConfig] = field(default_factory=dict)
    types: dict[str, str] = field(default_factory=dict)
    not_null_types: dict[str, str] = field(default_factory=dict)
    json_output: str = ""
    generate_pk_queries: bool = False
    generate_unique_queries: bool = False
    generate_fk_queries: bool = False
    queries: dict[str, str] = field(default_factory=dict)
    reserved_names: list[str] = field(default_factory=lambda: list(DEFAULT_RESERVED_NAMES))

    def table_config(self, schema: str, name: str) -> TableConfig:
        """Settings for one table: schema.name first, then the bare name, then the default."""
        conf = self.tables.get(f"{schema}.{name}")
        if conf is None:
            conf = self.tables.get(name)
        if conf is None:
            conf = self.default
        return conf

    def database_url(self) -> str:
        url = self.connection_string or os.environ.get("DATABASE_URL", "")
        if not url:
            raise ConfigurationError("No connection_string in configuration and DATABASE_URL is not set")
        return url

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Config":
        _warn_unknown(cls, data, "configuration")
        reserved = data.get("reserved_names")
        return cls(
            connection_string=str(data.get("connection_string") or ""),
            include_tables=_string_list(data.get("include_tables"), "include_tables"),
            exclude_tables=_string_list(data.get("exclude_tables"), "exclude_tables"),
            default=TableConfig.from_dict(data.get("default"), "default"),
            tables={
                str(name): TableConfig.from_dict(conf, f"tables.{name}")
                for name, conf in _mapping(data.get("tables"), "tables").items()
            },
            types=_string_map(data.get("types"), "types"),
            not_null_types=_string_map(data.get("not_null_types"), "not_null_types"),
            json_output=str(data.get("json_output") or ""),
            generate_pk_queries=bool(data.get("generate_pk_queries", False)),
            generate_unique_queries=bool(data.get("generate_unique_queries", False)),
            generate_fk_queries=bool(data.get("generate_fk_queries", False)),
            queries=_string_map(data.get("queries"), "queries"),
            reserved_names=(
                _string_list(reserved, "reserved_names") if reserved else list(DEFAULT_RESERVED_NAMES)
            ),
        )


def _warn_unknown(cls: type, data: dict[str, Any], where: str) -> None:
    known = {f.name for f in fields(cls)}
    for key in data:
        if key not in known:
            logger.warning(f"Ignoring unknown setting '{key}' in {where}")


def _mapping(value: Any, where: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigurationError(f"'{where}' must be a mapping")
    return dict(value)


def _string_list(value: Any, where: str) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        raise ConfigurationError(f"'{where}' must be a list of strings")
    return [str(v) for v in value]


def _string_map(value: Any, where: str) -> dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigurationError(f"'{where}' must be a mapping")
    return {str(k): str(v) for k, v in value.items()}


def load_config(path: str | Path) -> Config:
    """Read and validate a YAML configuration file."""
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigurationError(f"Cannot read configuration file '{path}': {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Failed to read configuration '{path}': {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"Failed to read configuration '{path}': top level must be a mapping")
    return Config.from_dict(data)
