"""Specific error types raised by fluent-graph."""

from .base import (
    ApplicationError,
    ErrorCode,
    ErrorLevel,
    ModelErrorDetails,
    QueryErrorDetails,
)


class ConfigurationError(ApplicationError):
    """Misuse of the API that no retry can fix."""

    def __init__(self, message: str, details: ModelErrorDetails | dict | None = None):
        super().__init__(
            message=message,
            code=ErrorCode.CONFIG_INVALID,
            level=ErrorLevel.ERROR,
            details=details,
        )


class RelationNotFoundError(ConfigurationError):
    """A relation name that the model does not declare."""

    def __init__(self, relation: str, model: str | None = None):
        super().__init__(
            message=f"can't find any relation with name {relation}",
            details=ModelErrorDetails(
                source="query_builder",
                operation="with_relation",
                model=model,
                relation=relation,
            ),
        )


class RelationTypeMismatchError(ApplicationError):
    """An entity passed to a relation is not of the relation's target type."""

    def __init__(self, message: str, details: ModelErrorDetails | None = None):
        super().__init__(
            message=message,
            code=ErrorCode.INVALID_INPUT,
            level=ErrorLevel.WARNING,
            details=details,
        )


class QueryExecutionError(ApplicationError):
    """The execution channel failed to run a statement."""

    def __init__(self, message: str, details: QueryErrorDetails | None = None):
        super().__init__(
            message=message,
            code=ErrorCode.DB_QUERY,
            level=ErrorLevel.ERROR,
            details=details
            or QueryErrorDetails(
                source="neo4j",
                operation="execute",
            ),
        )


class ModelNotFoundError(ApplicationError):
    """Raised by ``find_or_fail`` when no entity matches."""

    def __init__(self, message: str, details: ModelErrorDetails | None = None):
        super().__init__(
            message=message,
            code=ErrorCode.DB_RECORD_NOT_FOUND,
            level=ErrorLevel.INFO,
            details=details,
        )


class DeletedInstanceError(ApplicationError):
    """Attribute write on an entity that has been deleted."""

    def __init__(self, message: str = "You can't set any properties to a deleted instance"):
        super().__init__(
            message=message,
            code=ErrorCode.INVALID_REQUEST,
            level=ErrorLevel.WARNING,
        )
