"""Centralized logging setup with Logfire integration.

Applications embedding fluent-graph call ``setup_logging()`` once at startup.
Logfire itself is configured through its own environment variables
(LOGFIRE_TOKEN, LOGFIRE_SERVICE_NAME, ...).
"""

import logging
import sys

import logfire
import structlog
from structlog.processors import CallsiteParameter, CallsiteParameterAdder
from structlog.types import EventDict, Processor, WrappedLogger

from fluent_graph.core.config import settings


def add_query_context(
    _logger: WrappedLogger,
    _method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Surface the error type and a shortened statement as flat attributes.

    Args:
        _logger: The wrapped logger instance
        _method_name: The name of the logging method
        event_dict: The event dictionary

    Returns:
        The event dictionary with added context
    """
    if "error" in event_dict:
        event_dict["error_type"] = type(event_dict["error"]).__name__

    extra = event_dict.get("extra")
    if isinstance(extra, dict) and isinstance(extra.get("query"), str):
        event_dict["cypher"] = extra["query"][:200]

    return event_dict


def setup_logging(level: str | None = None) -> None:
    """Set up structlog with the Logfire processor.

    Args:
        level: Log level name, defaults to ``settings.log_level``
    """
    log_level = logging.getLevelName((level or settings.log_level).upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        CallsiteParameterAdder(
            parameters=[
                CallsiteParameter.FILENAME,
                CallsiteParameter.LINENO,
                CallsiteParameter.FUNC_NAME,
            ]
        ),
        add_query_context,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        # Must come before the final renderer
        logfire.StructlogProcessor(),
        structlog.dev.ConsoleRenderer(colors=settings.debug),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Route the neo4j driver's stdlib logging through the same processors
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=structlog.dev.ConsoleRenderer(colors=settings.debug),
        foreign_pre_chain=processors[:-2],  # Exclude the Logfire processor and final renderer
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(log_level)
