"""Memory records and partial updates."""

import math
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

IMPORTANCE_MIN = 1
IMPORTANCE_MAX = 10

# Fields produced by enrichment; cleared together when content changes
DERIVED_FIELDS = ("summary", "keywords", "tags", "importance", "ai_insight", "embedding")


def clamp_importance(value: int | float) -> int:
    """Round and clamp a model-supplied importance into [1, 10].

    Raises:
        ValueError: If the value is NaN or infinite
    """
    if not math.isfinite(value):
        raise ValueError(f"importance must be finite, got {value!r}")
    return max(IMPORTANCE_MIN, min(IMPORTANCE_MAX, int(round(value))))


def utcnow() -> datetime:
    return datetime.now(UTC)


class Memory(BaseModel):
    """A user's stored memory plus everything derived from it."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    owner_id: str
    content: str

    summary: str | None = None
    keywords: list[str] | None = None
    tags: list[str] | None = None
    importance: int | None = Field(default=None, ge=IMPORTANCE_MIN, le=IMPORTANCE_MAX)
    ai_insight: str | None = None
    embedding: list[float] | None = None

    image_url: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def is_enriched(self) -> bool:
        return self.summary is not None

    @property
    def display_text(self) -> str:
        """Summary when available, raw content otherwise."""
        return self.summary or self.content

    def to_store_properties(self) -> dict[str, Any]:
        """Flat property dict suitable for a graph node."""
        return self.model_dump()

    @classmethod
    def from_store_record(cls, record: dict[str, Any]) -> "Memory":
        """Build a memory from a store record, converting driver temporal types."""
        data = dict(record)
        for key in ("created_at", "updated_at"):
            value = data.get(key)
            if hasattr(value, "to_native"):
                data[key] = value.to_native()
        return cls.model_validate(data)

    def __str__(self) -> str:
        return f"Memory(id={self.id[:8]}, importance={self.importance}, content='{self.content[:40]}...')"


class MemoryPatch(BaseModel):
    """Partial update; only explicitly set fields are written."""

    content: str | None = None
    summary: str | None = None
    keywords: list[str] | None = None
    tags: list[str] | None = None
    importance: int | None = Field(default=None, ge=IMPORTANCE_MIN, le=IMPORTANCE_MAX)
    ai_insight: str | None = None
    embedding: list[float] | None = None
    image_url: str | None = None

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            raise ValueError("content must not be blank")
        return v

    @classmethod
    def content_edit(cls, content: str) -> "MemoryPatch":
        """Replace content and invalidate every derived field."""
        return cls(content=content, **dict.fromkeys(DERIVED_FIELDS))

    def to_properties(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)
