"""Error handling decorators"""

import inspect
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import Any, ParamSpec, TypeVar, cast

from .base import ApplicationError, ErrorLevel
from .error_context import ErrorContextManager
from .logging import get_logger

logger = get_logger(__name__)
P = ParamSpec("P")
T = TypeVar("T")


def _log_failure(func: Callable[..., Any], error: Exception, level: ErrorLevel, context: dict[str, Any]) -> None:
    logger.log(
        level.to_logging_level(),
        f"Error in {func.__name__}: {error!s}",
        extra={"function": func.__name__, "error_context": context},
        exc_info=True,
    )


def with_error_handling(
    error_level: ErrorLevel = ErrorLevel.ERROR,
    reraise: bool = True,
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """Decorator for logging errors raised by a function.

    ApplicationError subclasses are logged at their own level, anything else
    at ``error_level``.

    Args:
        error_level: Severity level for unexpected errors
        reraise: Whether to re-raise the error after logging

    Returns:
        Decorated function with error handling
    """

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        original_signature = inspect.signature(func)

        if inspect.iscoroutinefunction(func):

            @wraps(func)
            async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
                try:
                    return await cast("Callable[P, Awaitable[T]]", func)(*args, **kwargs)
                except Exception as e:
                    level = e.level if isinstance(e, ApplicationError) else error_level
                    async with ErrorContextManager(e) as ctx:
                        _log_failure(func, e, level, ctx.to_dict())
                    if reraise:
                        raise
                    return cast("T", None)

            async_wrapper.__signature__ = original_signature  # type: ignore[attr-defined]
            return cast("Callable[P, T]", async_wrapper)

        @wraps(func)
        def sync_wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            try:
                return func(*args, **kwargs)
            except Exception as e:
                level = e.level if isinstance(e, ApplicationError) else error_level
                with ErrorContextManager(e) as ctx:
                    _log_failure(func, e, level, ctx.to_dict())
                if reraise:
                    raise
                return cast("T", None)

        sync_wrapper.__signature__ = original_signature  # type: ignore[attr-defined]
        return sync_wrapper

    return decorator
