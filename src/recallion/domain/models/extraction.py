"""Structured extraction payloads returned by the model gateway.

A non-streaming completion comes back in one of two shapes: a forced tool
call whose ``arguments`` hold the JSON object, or free-form message content
that is itself JSON. The gateway resolves the shape once into a
``CompletionPayload`` variant; everything downstream works on the parsed
models below.
"""

from typing import Annotated, Any, Literal

from pydantic import AliasChoices, BaseModel, Field, field_validator

from .memory import clamp_importance

KEYWORDS_MAX = 7
TAGS_MAX = 5


class ToolCallPayload(BaseModel):
    kind: Literal["tool_call"] = "tool_call"
    name: str
    arguments: str


class ContentPayload(BaseModel):
    kind: Literal["content"] = "content"
    text: str


CompletionPayload = Annotated[ToolCallPayload | ContentPayload, Field(discriminator="kind")]


def _coerce_importance(v: Any) -> Any:
    if isinstance(v, str):
        v = float(v)
    if isinstance(v, int | float) and not isinstance(v, bool):
        return clamp_importance(v)
    return v


class MemoryExtraction(BaseModel):
    """Enrichment fields extracted from one memory's content."""

    summary: str
    keywords: list[str]
    tags: list[str]
    importance: int
    ai_insight: str = Field(validation_alias=AliasChoices("aiInsight", "ai_insight"))

    @field_validator("importance", mode="before")
    @classmethod
    def clamp(cls, v: Any) -> Any:
        return _coerce_importance(v)

    @field_validator("keywords")
    @classmethod
    def cap_keywords(cls, v: list[str]) -> list[str]:
        return [k for k in v if k.strip()][:KEYWORDS_MAX]

    @field_validator("tags")
    @classmethod
    def cap_tags(cls, v: list[str]) -> list[str]:
        # Set-like: drop duplicates, keep first-seen order
        return list(dict.fromkeys(t for t in v if t.strip()))[:TAGS_MAX]


class ReviewItem(BaseModel):
    id: str
    new_importance: int = Field(validation_alias=AliasChoices("newImportance", "new_importance"))
    review_insight: str = Field(validation_alias=AliasChoices("reviewInsight", "review_insight"))

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v

    @field_validator("new_importance", mode="before")
    @classmethod
    def clamp(cls, v: Any) -> Any:
        return _coerce_importance(v)


class ReviewExtraction(BaseModel):
    reviews: list[ReviewItem] = Field(default_factory=list)

    def latest_by_id(self) -> dict[str, ReviewItem]:
        """Collapse duplicate ids; the last occurrence wins."""
        return {item.id: item for item in self.reviews}
