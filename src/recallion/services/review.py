"""Batch re-scoring of a user's existing memories."""

from collections.abc import Sequence

from recallion.core.base import ErrorLevel
from recallion.core.config import settings
from recallion.core.decorators import with_error_handling
from recallion.core.logging import get_logger
from recallion.domain.models import (
    IMPORTANCE_MAX,
    Memory,
    MemoryPatch,
    ReviewExtraction,
    ReviewFailure,
    ReviewOutcome,
)
from recallion.infrastructure.gateway import REVIEW_MEMORIES_TOOL, parse_structured
from recallion.infrastructure.gateway.schemas import REVIEW_MEMORIES_PROMPT
from recallion.services import MemoryStore, ModelGateway

logger = get_logger(__name__)

NOTHING_TO_REVIEW = "No memories to review"


def review_line(position: int, memory: Memory, excerpt_chars: int) -> str:
    importance = "?" if memory.importance is None else memory.importance
    return (
        f"[{position}] ID: {memory.id} | Content: {memory.content[:excerpt_chars]} | "
        f"Importance: {importance}/{IMPORTANCE_MAX} | Created: {memory.created_at.isoformat()}"
    )


class ReviewPipeline:
    """One structured call over the newest memories, then per-id writes.

    Only ``importance`` and ``ai_insight`` are ever overwritten. Ids the
    model invents, or that belong to someone else, are reported as
    failures rather than written.
    """

    def __init__(
        self,
        store: MemoryStore,
        gateway: ModelGateway,
        batch_size: int | None = None,
        excerpt_chars: int | None = None,
    ):
        self.store = store
        self.gateway = gateway
        self.batch_size = settings.review_batch_size if batch_size is None else batch_size
        self.excerpt_chars = settings.review_excerpt_chars if excerpt_chars is None else excerpt_chars

    def build_prompt(self, memories: Sequence[Memory]) -> str:
        return "\n".join(review_line(i, m, self.excerpt_chars) for i, m in enumerate(memories, start=1))

    @with_error_handling(error_level=ErrorLevel.ERROR)
    async def run(self, owner_id: str) -> ReviewOutcome:
        memories = await self.store.list_by_owner(owner_id, order_by="created_at", limit=self.batch_size)
        if not memories:
            return ReviewOutcome(message=NOTHING_TO_REVIEW)

        messages = [
            {"role": "system", "content": REVIEW_MEMORIES_PROMPT},
            {"role": "user", "content": f"Review these memories:\n{self.build_prompt(memories)}"},
        ]
        payload = (await self.gateway.complete(messages, tool=REVIEW_MEMORIES_TOOL)).unwrap()
        extraction = parse_structured(payload, ReviewExtraction, list_field="reviews")

        outcome = ReviewOutcome(reviewed=len(memories))
        for memory_id, item in extraction.latest_by_id().items():
            patch = MemoryPatch(importance=item.new_importance, ai_insight=item.review_insight)
            try:
                updated = await self.store.update(memory_id, patch, owner_id)
            except Exception as e:
                outcome.failures.append(ReviewFailure(id=memory_id, reason=str(e)))
                continue
            if updated is None:
                outcome.failures.append(ReviewFailure(id=memory_id, reason="not found"))
            else:
                outcome.updated_ids.append(memory_id)

        if outcome.failures:
            logger.warning(
                "Review finished with failures",
                owner_id=owner_id,
                updated=len(outcome.updated_ids),
                failed=[f.id for f in outcome.failures],
            )
        else:
            logger.info("Review finished", owner_id=owner_id, updated=len(outcome.updated_ids))
        return outcome
