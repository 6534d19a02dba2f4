"""Catalog sources and engine creation."""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from ..errors import ConfigurationError
from .base import CatalogSource
from .postgresql import PostgresqlCatalog

_CATALOGS = {
    "postgresql": PostgresqlCatalog,
}

_DRIVER_PREFIXES = ("postgresql://", "postgres://")


def get_engine(database_url: str) -> Engine:
    """Create a SQLAlchemy engine, defaulting PostgreSQL URLs to the psycopg driver."""
    for prefix in _DRIVER_PREFIXES:
        if database_url.startswith(prefix):
            database_url = "postgresql+psycopg://" + database_url[len(prefix):]
            break
    return create_engine(
        database_url,
        pool_size=1,
        max_overflow=0,
        pool_pre_ping=True,
        connect_args={"connect_timeout": 10},
    )


def get_catalog(engine: Engine) -> CatalogSource:
    """Get the catalog source for the engine's dialect.

    Raises:
        ConfigurationError: the dialect isn't supported.
    """
    catalog_cls = _CATALOGS.get(engine.dialect.name)
    if catalog_cls is None:
        raise ConfigurationError(
            f"Unsupported database '{engine.dialect.name}', use one of: {', '.join(supported_dialects())}"
        )
    return catalog_cls(engine)


def supported_dialects() -> tuple:
    """Return tuple of supported dialect names."""
    return tuple(_CATALOGS.keys())
