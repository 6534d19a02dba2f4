"""
Catalog introspection pipeline.

The phases run in a fixed order over one ResolutionContext, each relying on
state the earlier ones produced:

  1. list every enum type
  2. register configured type mappings
  3. load tables and their columns, resolving column types
  4. load labels of the enums those columns use
  5. derive unique indexes and foreign keys, synthesizing lookup queries
  6. analyze every query, authored then synthesized
  7. drop hidden columns and rename clashing query parameters
"""

from __future__ import annotations

import logging

from .config import Config
from .context import ResolutionContext
from .databases.base import CatalogSource
from .models import Enum, Field, Result, Table
from .naming import glob_regexp, table_patterns
from .query_analyzer import analyze_query
from .relations import assign_indexes, derive_foreign_keys, derive_uniques
from .synthesis import fix_query_parameters, synthesize_foreign_key_queries, synthesize_index_queries

logger = logging.getLogger(__name__)


def introspect(catalog: CatalogSource, config: Config) -> Result:
    """Build the schema model for one run."""
    ctx = ResolutionContext(catalog=catalog, config=config)

    list_enums(ctx)
    register_types(ctx)
    read_tables(ctx)
    load_enums(ctx)
    read_queries(ctx)
    read_indexes(ctx)
    read_foreign_keys(ctx)
    generate_queries(ctx)
    # enums first used by a query parameter
    load_enums(ctx)
    remove_columns(ctx.result)
    fix_query_parameters(ctx.result, config.reserved_names)

    logger.info(
        f"Introspected {len(ctx.result.tables)} tables, {len(ctx.result.enums)} enums, "
        f"{sum(len(t.queries) for t in ctx.result.tables)} queries"
    )
    return ctx.result


def list_enums(ctx: ResolutionContext) -> None:
    ctx.types.all_enums.update(ctx.catalog.list_enums())
    logger.debug(f"Found {len(ctx.types.all_enums)} enum types")


def register_types(ctx: ResolutionContext) -> None:
    ctx.types.register(ctx.config.not_null_types, ctx.config.types, ctx.catalog.canonical_type_id)


def read_tables(ctx: ResolutionContext) -> None:
    include, exclude = table_patterns(ctx.config.include_tables, ctx.config.exclude_tables)
    for row in ctx.catalog.list_tables(glob_regexp(include), glob_regexp(exclude)):
        ctx.result.tables.append(Table(oid=row.id, name=row.name, schema=row.schema, kind=row.kind))

    for table in ctx.result.tables:
        table.fields = read_columns(ctx, table)
    logger.info(f"Loaded {len(ctx.result.tables)} tables")


def read_columns(ctx: ResolutionContext, table: Table) -> list[Field]:
    conf = ctx.config.table_config(table.schema, table.name)
    include = conf.include_columns or ["*"]

    fields = []
    for col in ctx.catalog.list_columns(table.oid, glob_regexp(include), glob_regexp(conf.exclude_columns)):
        if col.position < 0:
            # system column
            continue
        f = Field(
            name=col.name,
            position=col.position,
            type=col.type,
            not_null=col.not_null,
            array=col.array,
            visible=col.visible,
            type_id=col.type_id,
            has_default=col.has_default,
        )
        # only look at the type of a field we're not ignoring
        if f.visible:
            override = conf.column_types.get(f.name)
            if override is not None:
                f.output_type = override
            else:
                label = f"{f.type}[]" if f.array else f.type
                f.output_type = ctx.types.resolve(f.type_id, f.not_null, label, table.name)
        fields.append(f)
    return fields


def load_enums(ctx: ResolutionContext) -> None:
    """Load labels of every seen enum that isn't in the result yet."""
    loaded = {e.oid for e in ctx.result.enums}
    for oid, name in list(ctx.types.seen_enums.items()):
        if oid in loaded:
            continue
        ctx.result.enums.append(Enum(oid=oid, name=name, labels=ctx.catalog.enum_labels(oid)))


def read_queries(ctx: ResolutionContext) -> None:
    ctx.queries = dict(ctx.config.queries)


def read_indexes(ctx: ResolutionContext) -> None:
    for table in ctx.result.tables:
        assign_indexes(table, derive_uniques(table, ctx.catalog.list_unique_indexes(table.oid)))
        synthesize_index_queries(ctx.queries, table, ctx.config)


def read_foreign_keys(ctx: ResolutionContext) -> None:
    for table in ctx.result.tables:
        table.foreign_keys = derive_foreign_keys(table, ctx.catalog.list_foreign_keys(table.oid), ctx.result)
        synthesize_foreign_key_queries(ctx.queries, table, ctx.config)


def generate_queries(ctx: ResolutionContext) -> None:
    for name, query in ctx.queries.items():
        analyze_query(ctx, name, query, single=False)


def remove_columns(result: Result) -> None:
    """Drop ignored and dropped columns from every table."""
    for table in result.tables:
        table.fields = sorted((f for f in table.fields if f.visible), key=lambda f: f.position)
