"""Base error classes and enums"""

import logging
from datetime import datetime
from enum import Enum
from typing import Any

from logfire.integrations.pydantic import PluginSettings
from pydantic import BaseModel, Field, field_serializer


class ErrorLevel(str, Enum):
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

    def to_logging_level(self) -> int:
        """Convert ErrorLevel to logging level"""
        return {
            ErrorLevel.DEBUG: logging.DEBUG,
            ErrorLevel.INFO: logging.INFO,
            ErrorLevel.WARNING: logging.WARNING,
            ErrorLevel.ERROR: logging.ERROR,
            ErrorLevel.CRITICAL: logging.CRITICAL,
        }[self]


class ErrorCode(str, Enum):
    """Error codes for the library."""

    # General Errors (1xxx)
    INVALID_REQUEST = "1001"
    INVALID_INPUT = "1002"
    CONFIG_INVALID = "1005"

    # Database Errors (3xxx)
    DB_QUERY = "3002"
    DB_RECORD_NOT_FOUND = "3004"


class ErrorDetails(BaseModel, plugin_settings=PluginSettings(logfire={"record": "all"})):
    """Base model for structured error details"""

    source: str = Field(description="Component or module where the error occurred")
    operation: str = Field(description="Operation being performed when the error occurred")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(), description="When the error occurred")

    # Ensure timestamp is serialized consistently
    @field_serializer("timestamp")
    def serialize_timestamp(self, timestamp: datetime) -> str:
        return timestamp.isoformat()


class ModelErrorDetails(ErrorDetails):
    """Details for errors tied to a model or relation definition"""

    model: str | None = Field(None, description="Model class involved")
    relation: str | None = Field(None, description="Relation name, if any")
    expected: str | None = Field(None, description="Expected model or type")
    actual_value: Any = Field(None, description="Value that was rejected")


class QueryErrorDetails(ErrorDetails):
    """Details for query execution errors"""

    query: str | None = Field(None, description="Cypher statement that failed")
    mode: str | None = Field(None, description="Access mode used (read or write)")
    database: str | None = Field(None, description="Target database name")


class ApplicationError(Exception):
    """Base class for all library errors"""

    def __init__(
        self,
        message: str,
        code: ErrorCode,
        level: ErrorLevel = ErrorLevel.ERROR,
        details: ErrorDetails | dict[str, Any] | None = None,
    ):
        self.message = message
        self.code = code
        self.level = level

        # Convert dict to ErrorDetails if needed
        if details is None:
            self.details = ErrorDetails(source="unknown", operation="unknown")
        elif isinstance(details, dict):
            source = details.pop("source", "unknown")
            operation = details.pop("operation", "unknown")
            self.details = ErrorDetails(source=source, operation=operation, **details)
        else:
            self.details = details

        super().__init__(message)
