"""Outcomes of enrichment and review runs, and memory insights."""

from pydantic import BaseModel, Field

from .memory import Memory


class EnrichmentResult(BaseModel):
    memory: Memory
    embedded: bool


class ReviewFailure(BaseModel):
    id: str
    reason: str


class ReviewOutcome(BaseModel):
    reviewed: int = 0
    updated_ids: list[str] = Field(default_factory=list)
    failures: list[ReviewFailure] = Field(default_factory=list)
    message: str | None = None

    @property
    def success(self) -> bool:
        return not self.failures


class MemoryInsights(BaseModel):
    total: int
    average_importance: float
    health_score: int
    top_memories: list[Memory]
    recent_memories: list[Memory]
    tags: list[str]
