"""Turn a raw memory into structured, searchable fields."""

from typing import Any

from recallion.core.base import ErrorLevel, ResourceErrorDetails
from recallion.core.decorators import with_error_handling
from recallion.core.errors import NotFoundError
from recallion.core.logging import get_logger
from recallion.core.result import Ok
from recallion.domain.models import EnrichmentResult, Memory, MemoryExtraction, MemoryPatch, clamp_importance
from recallion.infrastructure.gateway import PROCESS_MEMORY_TOOL, parse_structured
from recallion.infrastructure.gateway.schemas import PROCESS_MEMORY_PROMPT
from recallion.services import MemoryStore, ModelGateway

logger = get_logger(__name__)


def embedding_text(summary: str | None, content: str) -> str:
    return f"{summary or ''} {content}"


def _not_found(memory_id: str, action: str) -> NotFoundError:
    return NotFoundError(
        details=ResourceErrorDetails(
            source="EnrichmentPipeline",
            operation="enrich",
            resource_id=memory_id,
            resource_type="memory",
            action=action,
        )
    )


class EnrichmentPipeline:
    """Extraction call, then a best-effort embedding, then one owner-scoped write.

    Extraction failures are fatal and leave the record untouched. A failed
    embedding is logged and the derived fields are still written.
    """

    def __init__(self, store: MemoryStore, gateway: ModelGateway):
        self.store = store
        self.gateway = gateway

    async def _extract(self, memory: Memory) -> MemoryExtraction:
        messages = [
            {"role": "system", "content": PROCESS_MEMORY_PROMPT},
            {"role": "user", "content": memory.content},
        ]
        payload = (await self.gateway.complete(messages, tool=PROCESS_MEMORY_TOOL)).unwrap()
        return parse_structured(payload, MemoryExtraction)

    @with_error_handling(error_level=ErrorLevel.ERROR)
    async def run(self, memory_id: str, owner_id: str) -> EnrichmentResult:
        memory = await self.store.get(memory_id)
        if memory is None or memory.owner_id != owner_id:
            raise _not_found(memory_id, "read")

        extraction = await self._extract(memory)

        fields: dict[str, Any] = {
            "summary": extraction.summary,
            "keywords": extraction.keywords,
            "tags": extraction.tags,
            "importance": clamp_importance(extraction.importance),
            "ai_insight": extraction.ai_insight,
        }

        embedded = await self.gateway.embed(embedding_text(extraction.summary, memory.content))
        vector = None
        if isinstance(embedded, Ok):
            vector = fields["embedding"] = embedded.value
        else:
            logger.warning(
                "Embedding failed; storing enrichment without a vector",
                memory_id=memory_id,
                error=str(embedded.error),
            )

        patch = MemoryPatch(**fields)

        updated = await self.store.update(memory_id, patch, owner_id)
        if updated is None:
            # Deleted while the model calls were in flight
            raise _not_found(memory_id, "update")

        logger.info(
            "Memory enriched",
            memory_id=memory_id,
            importance=updated.importance,
            tags=updated.tags,
            embedded=vector is not None,
        )
        return EnrichmentResult(memory=updated, embedded=vector is not None)
