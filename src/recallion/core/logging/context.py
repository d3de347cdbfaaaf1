"""Request-scoped logging context.

Values bound here are merged into every log event by
``structlog.contextvars.merge_contextvars`` (see ``setup_logging``), so a
handler only needs to bind ``owner_id`` or ``request_id`` once.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog


def get_log_context() -> dict[str, Any]:
    """Get a copy of the current logging context."""
    return dict(structlog.contextvars.get_contextvars())


def bind_log_context(**values: Any) -> None:
    """Bind values to the logging context of the current task."""
    structlog.contextvars.bind_contextvars(**values)


def clear_log_context() -> None:
    """Clear the current logging context."""
    structlog.contextvars.clear_contextvars()


@contextmanager
def log_context(**values: Any) -> Iterator[None]:
    """Bind values for the duration of a block, restoring the previous ones after."""
    with structlog.contextvars.bound_contextvars(**values):
        yield
