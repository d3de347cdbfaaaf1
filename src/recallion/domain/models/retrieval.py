from enum import Enum

from pydantic import BaseModel, Field

from .memory import Memory


class RetrievalSource(str, Enum):
    VECTOR = "vector"
    IMPORTANCE = "importance"


class RetrievalHit(BaseModel):
    memory: Memory
    score: float


class RetrievalResult(BaseModel):
    """Ordered hits, best first, bounded by the requested top_k."""

    hits: list[RetrievalHit] = Field(default_factory=list)
    source: RetrievalSource = RetrievalSource.IMPORTANCE

    @property
    def memories(self) -> list[Memory]:
        return [hit.memory for hit in self.hits]

    def __len__(self) -> int:
        return len(self.hits)
