"""Exception hierarchy for neo4jogm.

Driver and connection failures are never wrapped by these classes, so callers
can tell invalid data apart from an unreachable store.
"""


class OGMError(Exception):
    """Base exception for object-graph mapping operations."""


class MappingError(OGMError):
    """Raised when an object cannot be mapped to or from the graph."""


class UnknownFieldError(MappingError):
    """Raised when a lookup names a field the entity does not declare."""


class UnindexedFieldError(MappingError):
    """Raised when a lookup names a declared field that is not indexed."""


class EntityNotFoundError(OGMError):
    """Raised when a required entity cannot be found."""


class QueryError(OGMError):
    """Raised when an ad-hoc query cannot be executed."""
