"""Find the memories most relevant to a question."""

from recallion.core.config import settings
from recallion.core.logging import get_logger
from recallion.core.result import Failure
from recallion.domain.models import IMPORTANCE_MAX, RetrievalHit, RetrievalResult, RetrievalSource
from recallion.services import MemoryStore, ModelGateway

logger = get_logger(__name__)


class RetrievalEngine:
    """Vector search with a deterministic importance-ranked fallback.

    ``retrieve`` never raises. When the query cannot be embedded, the search
    finds nothing or fails, the owner's highest-importance memories are used
    instead; if that listing fails too the result is empty.
    """

    def __init__(
        self,
        store: MemoryStore,
        gateway: ModelGateway,
        top_k: int | None = None,
        threshold: float | None = None,
    ):
        self.store = store
        self.gateway = gateway
        self.top_k = settings.retrieval_top_k if top_k is None else top_k
        self.threshold = settings.retrieval_threshold if threshold is None else threshold

    async def retrieve(
        self,
        query: str,
        owner_id: str,
        top_k: int | None = None,
        threshold: float | None = None,
    ) -> RetrievalResult:
        top_k = self.top_k if top_k is None else top_k
        threshold = self.threshold if threshold is None else threshold

        if query.strip():
            hits = await self._vector_hits(query, owner_id, top_k, threshold)
            if hits:
                return RetrievalResult(hits=hits[:top_k], source=RetrievalSource.VECTOR)

        return await self._by_importance(owner_id, top_k)

    async def _vector_hits(self, query: str, owner_id: str, top_k: int, threshold: float) -> list[RetrievalHit]:
        try:
            embedded = await self.gateway.embed(query)
            if isinstance(embedded, Failure):
                logger.info("Query embedding failed; using importance ranking", error=str(embedded.error))
                return []
            return await self.store.similarity_search(owner_id, embedded.value, threshold, top_k)
        except Exception as e:
            logger.warning("Vector retrieval failed; using importance ranking", error=str(e))
            return []

    async def _by_importance(self, owner_id: str, top_k: int) -> RetrievalResult:
        try:
            memories = await self.store.list_by_owner(owner_id, order_by="importance", limit=top_k)
        except Exception as e:
            logger.error("Fallback listing failed; answering without memories", error=str(e))
            return RetrievalResult(source=RetrievalSource.IMPORTANCE)

        hits = [RetrievalHit(memory=m, score=(m.importance or 0) / IMPORTANCE_MAX) for m in memories[:top_k]]
        return RetrievalResult(hits=hits, source=RetrievalSource.IMPORTANCE)
