"""Logging context utilities for structured logging.

The context is task-local: each asyncio task sees its own copy, so the
statement a builder is executing can be attached to error reports raised
further down the stack.
"""

from contextvars import ContextVar
from typing import Any

# Use None as default to avoid mutable default value issues
_log_context: ContextVar[dict[str, Any] | None] = ContextVar("log_context", default=None)


def get_log_context() -> dict[str, Any]:
    """Get a copy of the current logging context.

    Returns:
        Dict containing the current logging context
    """
    context: dict[str, Any] | None = _log_context.get()
    if context is None:
        context = {}
        _log_context.set(context)
    return context.copy()


def set_log_context(context: dict[str, Any]) -> None:
    """Replace the logging context."""
    _log_context.set(context)


def update_log_context(key: str, value: Any) -> None:
    """Update a single key in the logging context.

    Args:
        key: Context key to update
        value: Value to set
    """
    context = get_log_context()
    context[key] = value
    _log_context.set(context)


def clear_log_context() -> None:
    """Clear the current logging context."""
    _log_context.set({})
