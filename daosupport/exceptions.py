"""Data-access exception classes.

Errors raised by the DB driver or SQLAlchemy itself are not wrapped;
these cover misuse of the DAO helpers.
"""


class DaoError(Exception):
    """Base data-access error."""

    def __init__(self, message: str, error_code: str = "DAO_ERROR"):
        self.message = message
        self.error_code = error_code
        super().__init__(self.message)


class DaoArgumentError(DaoError):
    """Raised when a DAO helper receives an unusable argument."""

    def __init__(self, message: str):
        super().__init__(message=message, error_code="INVALID_ARGUMENT")


class QueryRewriteError(DaoError):
    """Raised when a COUNT query cannot be derived from a select."""

    def __init__(self, sql: str):
        self.sql = sql
        super().__init__(
            message=f"sql has no from: {sql!r}",
            error_code="QUERY_REWRITE_ERROR",
        )


class EntityResolutionError(DaoError):
    """Raised when a DAO cannot determine which entity class it serves."""

    def __init__(self, dao_class: type):
        super().__init__(
            message=(
                f"{dao_class.__name__} must parameterize its base "
                "with an entity class or set entity_class"
            ),
            error_code="ENTITY_RESOLUTION_ERROR",
        )
