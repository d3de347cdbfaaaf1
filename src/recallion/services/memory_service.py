"""Owner-scoped memory operations.

Writes go straight to the store; enrichment is scheduled on the task queue
so callers get the raw record back immediately.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from recallion.core.base import ApplicationError, ErrorLevel, ResourceErrorDetails
from recallion.core.decorators import with_error_handling
from recallion.core.errors import NotFoundError, ValidationError
from recallion.core.logging import get_logger
from recallion.domain.models import EnrichmentResult, Memory, MemoryInsights, MemoryPatch

if TYPE_CHECKING:
    from recallion.services import BlobStore, MemoryStore
    from recallion.services.tasks import EnrichmentTaskQueue

logger = get_logger(__name__)

UNRATED_IMPORTANCE = 5
TOP_IMPORTANCE = 7
INSIGHT_LIST_SIZE = 5


def _not_found(memory_id: str, action: str) -> NotFoundError:
    return NotFoundError(
        details=ResourceErrorDetails(
            source="MemoryService",
            operation=action,
            resource_id=memory_id,
            resource_type="memory",
            action=action,
        )
    )


def _require_content(content: str) -> str:
    if not content or not content.strip():
        raise ValidationError("Memory content must not be blank", details={"source": "MemoryService"})
    return content


def health_score(total: int, average_importance: float, enriched: int) -> int:
    """0-100 score rewarding volume, importance and enrichment coverage."""
    score = 20 if total > 0 else 0
    score += 20 if total > 5 else total * 4
    score += 30 if average_importance > 5 else average_importance * 6
    score += 30 * enriched / max(total, 1)
    return min(100, round(score))


def compute_insights(memories: list[Memory]) -> MemoryInsights:
    total = len(memories)
    importances = [m.importance if m.importance is not None else UNRATED_IMPORTANCE for m in memories]
    average = sum(importances) / total if total else 0.0
    enriched = sum(1 for m in memories if m.is_enriched)

    top = sorted(
        (m for m in memories if (m.importance or 0) >= TOP_IMPORTANCE),
        key=lambda m: m.importance or 0,
        reverse=True,
    )
    recent = sorted(memories, key=lambda m: m.updated_at, reverse=True)
    tags = sorted({tag for m in memories for tag in m.tags or []})

    return MemoryInsights(
        total=total,
        average_importance=round(average, 1),
        health_score=health_score(total, average, enriched),
        top_memories=top[:INSIGHT_LIST_SIZE],
        recent_memories=recent[:INSIGHT_LIST_SIZE],
        tags=tags,
    )


class MemoryService:
    """Create, edit, delete and browse one owner's memories."""

    def __init__(
        self,
        store: MemoryStore,
        queue: EnrichmentTaskQueue,
        blobs: BlobStore | None = None,
    ):
        self.store = store
        self.queue = queue
        self.blobs = blobs

    @with_error_handling(error_level=ErrorLevel.ERROR)
    async def create(self, owner_id: str, content: str, image_url: str | None = None) -> Memory:
        memory = Memory(owner_id=owner_id, content=_require_content(content), image_url=image_url)
        stored = await self.store.insert(memory)
        logger.info("Memory created", memory_id=stored.id, owner_id=owner_id)
        self.queue.submit(stored.id, owner_id)
        return stored

    @with_error_handling(error_level=ErrorLevel.ERROR)
    async def edit(self, owner_id: str, memory_id: str, content: str) -> Memory:
        """Replace content, clearing every derived field, then re-enrich."""
        patch = MemoryPatch.content_edit(_require_content(content))
        updated = await self.store.update(memory_id, patch, owner_id)
        if updated is None:
            raise _not_found(memory_id, "edit")
        logger.info("Memory edited", memory_id=memory_id, owner_id=owner_id)
        self.queue.submit(memory_id, owner_id)
        return updated

    @with_error_handling(error_level=ErrorLevel.ERROR)
    async def delete(self, owner_id: str, memory_id: str) -> Memory:
        deleted = await self.store.delete(memory_id, owner_id)
        if deleted is None:
            raise _not_found(memory_id, "delete")
        if deleted.image_url and self.blobs is not None:
            try:
                await self.blobs.release(deleted.image_url)
            except ApplicationError as e:
                # The record is already gone; an orphaned blob is recoverable
                logger.warning("Blob release failed", memory_id=memory_id, url=deleted.image_url, error=str(e))
        logger.info("Memory deleted", memory_id=memory_id, owner_id=owner_id)
        return deleted

    async def get(self, owner_id: str, memory_id: str) -> Memory:
        memory = await self.store.get(memory_id)
        if memory is None or memory.owner_id != owner_id:
            raise _not_found(memory_id, "get")
        return memory

    async def list(self, owner_id: str, search: str | None = None, tag: str | None = None) -> list[Memory]:
        """Newest first, optionally filtered by a case-insensitive search term and a tag."""
        memories = await self.store.list_by_owner(owner_id, order_by="created_at")
        if search and search.strip():
            needle = search.strip().lower()
            memories = [
                m for m in memories if needle in m.content.lower() or (m.summary and needle in m.summary.lower())
            ]
        if tag:
            memories = [m for m in memories if m.tags and tag in m.tags]
        return memories

    async def tags(self, owner_id: str) -> list[str]:
        memories = await self.store.list_by_owner(owner_id)
        return sorted({tag for m in memories for tag in m.tags or []})

    async def insights(self, owner_id: str) -> MemoryInsights:
        return compute_insights(await self.store.list_by_owner(owner_id))

    async def enrich_now(self, owner_id: str, memory_id: str) -> EnrichmentResult:
        """Run enrichment inline and surface its errors to the caller.

        Goes through the queue so it never overlaps a background run for the
        same memory.
        """
        return await self.queue.run_now(memory_id, owner_id)
