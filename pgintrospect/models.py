"""
Schema model produced by introspection.

Tables, their fields, unique indexes, foreign keys and typed queries, plus the
enums they use. A Result is built once per run and handed to rendering or
written out as JSON.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class Field:
    """One table column, also used for query parameters."""

    name: str
    position: int = 0
    type: str = ""
    not_null: bool = False
    array: bool = False
    output_type: str = ""
    visible: bool = True
    type_id: int = 0
    has_default: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "position": self.position,
            "type": self.type,
            "not_null": self.not_null,
            "array": self.array,
            "output_type": self.output_type,
            "has_default": self.has_default,
        }


@dataclass
class Unique:
    name: str
    primary_key: bool = False
    columns: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "primary_key": self.primary_key,
            "columns": list(self.columns),
        }


@dataclass
class ForeignKey:
    """columns[i] references foreign_columns[i] of foreign_table."""

    name: str
    columns: list[str] = field(default_factory=list)
    foreign_table: str = ""
    foreign_columns: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "columns": list(self.columns),
            "foreign_table": self.foreign_table,
            "foreign_columns": list(self.foreign_columns),
        }


@dataclass
class Query:
    name: str
    query: str
    original_query: str
    fields: list[Field] = field(default_factory=list)
    parameters: list[Field] = field(default_factory=list)
    single_row: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "query": self.query,
            "original_query": self.original_query,
            "fields": [f.to_dict() for f in self.fields],
            "parameters": [p.to_dict() for p in self.parameters],
            "single_row": self.single_row,
        }


@dataclass
class Table:
    oid: int
    name: str
    schema: str
    kind: str
    fields: list[Field] = field(default_factory=list)
    indexes: list[Unique] = field(default_factory=list)
    primary: Unique | None = None
    id_field: Field | None = None
    foreign_keys: list[ForeignKey] = field(default_factory=list)
    queries: list[Query] = field(default_factory=list)

    def field_at(self, position: int) -> Field | None:
        """Return the field at a 1-based catalog position, or None."""
        for f in self.fields:
            if f.position == position:
                return f
        return None

    def field_named(self, name: str) -> Field | None:
        for f in self.fields:
            if f.name == name:
                return f
        return None

    @property
    def visible_fields(self) -> list[Field]:
        return [f for f in self.fields if f.visible]

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "schema": self.schema,
            "kind": self.kind,
            "fields": [f.to_dict() for f in self.fields],
            "indexes": [u.to_dict() for u in self.indexes],
            "primary": self.primary.to_dict() if self.primary else None,
            "id_field": self.id_field.to_dict() if self.id_field else None,
            "foreign_keys": [fk.to_dict() for fk in self.foreign_keys],
            "queries": [q.to_dict() for q in self.queries],
        }


@dataclass
class Enum:
    oid: int
    name: str
    labels: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "labels": list(self.labels)}


@dataclass
class Result:
    tables: list[Table] = field(default_factory=list)
    enums: list[Enum] = field(default_factory=list)

    def table_by_oid(self, oid: int) -> Table | None:
        for t in self.tables:
            if t.oid == oid:
                return t
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "tables": [t.to_dict() for t in self.tables],
            "enums": [e.to_dict() for e in self.enums],
        }
