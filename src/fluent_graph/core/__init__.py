from .base import ApplicationError, ErrorCode, ErrorDetails, ErrorLevel, ModelErrorDetails, QueryErrorDetails
from .errors import (
    ConfigurationError,
    DeletedInstanceError,
    ModelNotFoundError,
    QueryExecutionError,
    RelationNotFoundError,
    RelationTypeMismatchError,
)

__all__ = [
    "ApplicationError",
    "ConfigurationError",
    "DeletedInstanceError",
    "ErrorCode",
    "ErrorDetails",
    "ErrorLevel",
    "ModelErrorDetails",
    "ModelNotFoundError",
    "QueryErrorDetails",
    "QueryExecutionError",
    "RelationNotFoundError",
    "RelationTypeMismatchError",
]
