"""Error context management"""

from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from pydantic import BaseModel

from .base import ApplicationError


class ErrorContext:
    """Captures and stores context around an error"""

    def __init__(self, error: BaseException, trace_id: str | None = None, **context: Any):
        self.error = error
        self.trace_id = trace_id or str(uuid4())
        self.timestamp = datetime.now(UTC)
        self.context = context

    def to_dict(self) -> dict[str, Any]:
        """Flatten the error, its structured details and extra context for logging."""
        result: dict[str, Any] = {
            "error_type": self.error.__class__.__name__,
            "error_message": str(self.error),
            "trace_id": self.trace_id,
            "timestamp": self.timestamp.isoformat(),
        }

        if isinstance(self.error, ApplicationError):
            result["error_code"] = self.error.code.value
            result["error_level"] = self.error.level.value
            result.update(flatten_model(self.error.details, prefix="details"))

        for key, value in self.context.items():
            result[f"context.{key}"] = value

        return result


def flatten_model(model: BaseModel, prefix: str = "") -> dict[str, Any]:
    """Extract primitive fields from a Pydantic model for structured logging.

    Nested objects and collections are skipped.
    """
    result: dict[str, Any] = {}
    for key, value in model.model_dump(mode="json").items():
        if isinstance(value, dict | list | set | tuple) or value is None:
            continue
        result[f"{prefix}.{key}" if prefix else key] = value
    return result
