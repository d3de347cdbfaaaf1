from collections.abc import Sequence
from typing import Any

from neo4j import AsyncDriver, AsyncSession
from neo4j.exceptions import Neo4jError

from recallion.core.base import ErrorCode, ErrorLevel, ServiceErrorDetails
from recallion.core.decorators import with_error_handling, with_session
from recallion.core.errors import ServiceUnavailableError
from recallion.core.logging import get_logger
from recallion.domain.models import Memory, MemoryPatch, RetrievalHit
from recallion.domain.models.memory import utcnow
from recallion.infrastructure.neo4j.queries import MemoryQueries
from recallion.services import OrderBy

logger = get_logger(__name__)


def _db_error(operation: str, error: Neo4jError) -> ServiceUnavailableError:
    err = ServiceUnavailableError(
        message=f"Neo4j {operation} failed: {error!s}",
        details=ServiceErrorDetails(source="Neo4jMemoryStore", operation=operation, service_name="neo4j"),
    )
    err.code = ErrorCode.DB_QUERY
    return err


class Neo4jMemoryStore:
    """Memory store backed by Neo4j nodes and the ``memory_embeddings`` vector index."""

    def __init__(self, driver: AsyncDriver):
        self.driver = driver

    @staticmethod
    def _to_memory(node: Any) -> Memory:
        return Memory.from_store_record(dict(node))

    @with_error_handling(error_level=ErrorLevel.ERROR)
    @with_session()
    async def get(self, session: AsyncSession, memory_id: str) -> Memory | None:
        try:
            result = await session.run(MemoryQueries.get_by_id(), id=memory_id)
            record = await result.single(strict=False)
        except Neo4jError as e:
            raise _db_error("get", e) from e
        return self._to_memory(record["m"]) if record else None

    @with_error_handling(error_level=ErrorLevel.ERROR)
    @with_session()
    async def list_by_owner(
        self, session: AsyncSession, owner_id: str, order_by: OrderBy = "created_at", limit: int | None = None
    ) -> list[Memory]:
        query = MemoryQueries.list_by_owner(order_by, limited=limit is not None)
        try:
            result = await session.run(query, owner_id=owner_id, limit=limit)
            return [self._to_memory(record["m"]) async for record in result]
        except Neo4jError as e:
            raise _db_error("list_by_owner", e) from e

    @with_error_handling(error_level=ErrorLevel.ERROR)
    @with_session()
    async def insert(self, session: AsyncSession, memory: Memory) -> Memory:
        try:
            result = await session.run(MemoryQueries.insert(), properties=memory.to_store_properties())
            record = await result.single()
        except Neo4jError as e:
            raise _db_error("insert", e) from e
        logger.debug("Stored memory", memory_id=memory.id)
        return self._to_memory(record["m"])

    @with_error_handling(error_level=ErrorLevel.ERROR)
    @with_session()
    async def update(self, session: AsyncSession, memory_id: str, patch: MemoryPatch, owner_id: str) -> Memory | None:
        try:
            result = await session.run(
                MemoryQueries.update_owned(),
                id=memory_id,
                owner_id=owner_id,
                properties=patch.to_properties(),
                updated_at=utcnow(),
            )
            record = await result.single(strict=False)
        except Neo4jError as e:
            raise _db_error("update", e) from e
        return self._to_memory(record["m"]) if record else None

    @with_error_handling(error_level=ErrorLevel.ERROR)
    @with_session()
    async def delete(self, session: AsyncSession, memory_id: str, owner_id: str) -> Memory | None:
        try:
            result = await session.run(MemoryQueries.delete_owned(), id=memory_id, owner_id=owner_id)
            record = await result.single(strict=False)
        except Neo4jError as e:
            raise _db_error("delete", e) from e
        return self._to_memory(record["m"]) if record else None

    @with_error_handling(error_level=ErrorLevel.ERROR)
    @with_session()
    async def similarity_search(
        self, session: AsyncSession, owner_id: str, vector: Sequence[float], threshold: float, top_k: int
    ) -> list[RetrievalHit]:
        try:
            result = await session.run(
                MemoryQueries.similarity_search(),
                index=MemoryQueries.VECTOR_INDEX,
                candidates=top_k * MemoryQueries.SIMILARITY_OVERSAMPLE,
                embedding=list(vector),
                owner_id=owner_id,
                threshold=threshold,
                limit=top_k,
            )
            return [
                RetrievalHit(memory=self._to_memory(record["m"]), score=float(record["similarity"]))
                async for record in result
            ]
        except Neo4jError as e:
            raise _db_error("similarity_search", e) from e
