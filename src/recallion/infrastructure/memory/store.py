"""Process-local memory store for development and tests."""

from collections.abc import Sequence

import numpy as np

from recallion.domain.models import Memory, MemoryPatch, RetrievalHit
from recallion.domain.models.memory import utcnow
from recallion.services import OrderBy


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape:
        return 0.0
    denom = np.linalg.norm(va) * np.linalg.norm(vb)
    if denom == 0:
        return 0.0
    return float(np.dot(va, vb) / denom)


class InMemoryMemoryStore:
    """Dict-backed store with the same ordering and owner scoping as the Neo4j adapter."""

    def __init__(self, memories: Sequence[Memory] = ()):
        self._records: dict[str, Memory] = {m.id: m.model_copy(deep=True) for m in memories}

    def __len__(self) -> int:
        return len(self._records)

    def _owned(self, memory_id: str, owner_id: str) -> Memory | None:
        memory = self._records.get(memory_id)
        if memory is None or memory.owner_id != owner_id:
            return None
        return memory

    async def get(self, memory_id: str) -> Memory | None:
        memory = self._records.get(memory_id)
        return memory.model_copy(deep=True) if memory else None

    async def list_by_owner(
        self, owner_id: str, order_by: OrderBy = "created_at", limit: int | None = None
    ) -> list[Memory]:
        owned = [m for m in self._records.values() if m.owner_id == owner_id]
        # Stable sorts: tie-break on created_at first, then the primary key
        owned.sort(key=lambda m: m.created_at, reverse=True)
        rated = [m for m in owned if getattr(m, order_by) is not None]
        unrated = [m for m in owned if getattr(m, order_by) is None]
        rated.sort(key=lambda m: getattr(m, order_by), reverse=True)
        ordered = rated + unrated
        if limit is not None:
            ordered = ordered[:limit]
        return [m.model_copy(deep=True) for m in ordered]

    async def insert(self, memory: Memory) -> Memory:
        self._records[memory.id] = memory.model_copy(deep=True)
        return memory.model_copy(deep=True)

    async def update(self, memory_id: str, patch: MemoryPatch, owner_id: str) -> Memory | None:
        current = self._owned(memory_id, owner_id)
        if current is None:
            return None
        updated = current.model_copy(update={**patch.to_properties(), "updated_at": utcnow()}, deep=True)
        self._records[memory_id] = updated
        return updated.model_copy(deep=True)

    async def delete(self, memory_id: str, owner_id: str) -> Memory | None:
        if self._owned(memory_id, owner_id) is None:
            return None
        return self._records.pop(memory_id)

    async def similarity_search(
        self, owner_id: str, vector: Sequence[float], threshold: float, top_k: int
    ) -> list[RetrievalHit]:
        hits = []
        for memory in self._records.values():
            if memory.owner_id != owner_id or not memory.embedding:
                continue
            score = cosine_similarity(vector, memory.embedding)
            if score >= threshold:
                hits.append(RetrievalHit(memory=memory.model_copy(deep=True), score=score))
        hits.sort(key=lambda h: h.score, reverse=True)
        return hits[:top_k]
