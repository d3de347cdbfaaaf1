"""Decode structured extraction payloads into domain models."""

import json
import re
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from recallion.core.errors import MalformedResponseError
from recallion.domain.models import CompletionPayload, ToolCallPayload

M = TypeVar("M", bound=BaseModel)

_FENCE = re.compile(r"^\s*```(?:json)?\s*(.*?)\s*```\s*$", re.DOTALL)


def _raw_json(payload: CompletionPayload) -> str:
    if isinstance(payload, ToolCallPayload):
        return payload.arguments
    text = payload.text
    match = _FENCE.match(text)
    return match.group(1) if match else text


def parse_structured(payload: CompletionPayload, model: type[M], list_field: str | None = None) -> M:
    """Parse either payload shape into ``model``.

    Args:
        payload: Tool-call arguments or free-form content
        model: Target pydantic model
        list_field: When the JSON is a bare array, wrap it under this field

    Raises:
        MalformedResponseError: If the text is not JSON or does not fit ``model``
    """
    raw = _raw_json(payload)
    details = {"source": "parse_structured", "operation": model.__name__, "shape": payload.kind}
    try:
        data: Any = json.loads(raw)
    except json.JSONDecodeError as e:
        raise MalformedResponseError(f"Model returned invalid JSON: {e.msg}", details=details) from e

    if list_field is not None and isinstance(data, list):
        data = {list_field: data}

    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise MalformedResponseError(
            f"Model response does not match {model.__name__}: {e.error_count()} error(s)", details=details
        ) from e
