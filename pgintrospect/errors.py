"""Exceptions raised while turning catalog metadata into a schema model."""


class IntrospectionError(RuntimeError):
    """Base class for every fatal introspection failure."""


class ConfigurationError(IntrospectionError):
    """Startup problem: bad configuration, ambiguous type alias, bad server version."""


class CatalogError(IntrospectionError):
    """A catalog query failed."""


class RelationshipError(IntrospectionError):
    """An index or foreign key refers to a column position the table doesn't have."""


class QueryError(IntrospectionError):
    """A query couldn't be turned into a typed Query record."""

    def __init__(self, query_name: str, reason: str):
        super().__init__(f"query {query_name} {reason}")
        self.query_name = query_name
        self.reason = reason
