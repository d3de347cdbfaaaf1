"""Error handling decorators"""

import inspect
import logging
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import Any, ParamSpec, TypeVar, cast

from .base import ApplicationError, ErrorLevel
from .error_context import ErrorContext
from .logging import get_logger

logger = get_logger(__name__)
P = ParamSpec("P")
T = TypeVar("T")


def _log_failure(func_name: str, error: Exception, default_level: ErrorLevel) -> None:
    level = error.level if isinstance(error, ApplicationError) else default_level
    ctx = ErrorContext(error, function=func_name)
    logger.log(
        level.to_logging_level(),
        f"Error in {func_name}: {error!s}",
        # Expected domain failures are logged without a traceback
        exc_info=not isinstance(error, ApplicationError) or level.to_logging_level() >= logging.ERROR,
        **ctx.to_dict(),
    )


def with_error_handling(
    error_level: ErrorLevel = ErrorLevel.ERROR,
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """Decorator that logs errors raised by a function and re-raises them.

    ``ApplicationError`` subclasses are logged at their own level, anything
    else at ``error_level``.

    Args:
        error_level: Severity level for unexpected exceptions

    Returns:
        Decorated function with error handling
    """

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        name = func.__qualname__

        if inspect.iscoroutinefunction(func):

            @wraps(func)
            async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> Any:
                try:
                    return await cast("Callable[P, Awaitable[Any]]", func)(*args, **kwargs)
                except Exception as e:
                    _log_failure(name, e, error_level)
                    raise

            return cast("Callable[P, T]", async_wrapper)

        @wraps(func)
        def sync_wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            try:
                return func(*args, **kwargs)
            except Exception as e:
                _log_failure(name, e, error_level)
                raise

        return sync_wrapper

    return decorator


def with_session(driver_attr: str = "driver") -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """Decorator to automatically manage Neo4j session lifecycle.

    The wrapped coroutine receives a fresh ``AsyncSession`` as its first
    argument after ``self``; the session is closed when the call returns.

    Usage:
        @with_session()
        async def get(self, session, memory_id):
            result = await session.run(query, id=memory_id)
    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @wraps(func)
        async def wrapper(self: Any, *args: Any, **kwargs: Any) -> T:
            driver = getattr(self, driver_attr, None)
            if driver is None:
                raise AttributeError(
                    f"Object {self.__class__.__name__} has no attribute '{driver_attr}'. "
                    f"Either provide the correct driver_attr or ensure the object has a driver."
                )

            async with driver.session() as session:
                return await func(self, session, *args, **kwargs)

        return wrapper

    return decorator
