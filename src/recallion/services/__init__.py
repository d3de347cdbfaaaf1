"""Service layer interfaces.

Pipelines receive their collaborators explicitly so production adapters and
test doubles are interchangeable.
"""

from collections.abc import AsyncIterator, Sequence
from typing import Any, Literal, Protocol, runtime_checkable

from recallion.core.result import Result
from recallion.domain.models import CompletionPayload, Memory, MemoryPatch, RetrievalHit

OrderBy = Literal["created_at", "updated_at", "importance"]


@runtime_checkable
class MemoryStore(Protocol):
    """Owner-scoped persistence of memory records."""

    async def get(self, memory_id: str) -> Memory | None:
        """Fetch a record by id regardless of owner."""
        ...

    async def list_by_owner(
        self, owner_id: str, order_by: OrderBy = "created_at", limit: int | None = None
    ) -> list[Memory]:
        """List an owner's records, descending by ``order_by``."""
        ...

    async def insert(self, memory: Memory) -> Memory: ...

    async def update(self, memory_id: str, patch: MemoryPatch, owner_id: str) -> Memory | None:
        """Apply ``patch`` if the record exists and belongs to ``owner_id``."""
        ...

    async def delete(self, memory_id: str, owner_id: str) -> Memory | None:
        """Delete an owned record, returning what was deleted."""
        ...

    async def similarity_search(
        self, owner_id: str, vector: Sequence[float], threshold: float, top_k: int
    ) -> list[RetrievalHit]:
        """At most ``top_k`` owned records scoring >= ``threshold``, best first."""
        ...


@runtime_checkable
class ChatStream(Protocol):
    """An open streamed completion; must be closed on every exit path."""

    def aiter_bytes(self) -> AsyncIterator[bytes]: ...

    async def aclose(self) -> None: ...


@runtime_checkable
class ModelGateway(Protocol):
    """Chat completion and embedding calls, returning typed results."""

    async def complete(
        self, messages: list[dict[str, str]], tool: dict[str, Any] | None = None
    ) -> Result[CompletionPayload]: ...

    async def stream(self, messages: list[dict[str, str]]) -> Result[ChatStream]: ...

    async def embed(self, text: str) -> Result[list[float]]: ...


@runtime_checkable
class BlobStore(Protocol):
    """Attachment storage; the core only ever releases blobs."""

    async def release(self, url: str) -> None: ...


__all__ = ["BlobStore", "ChatStream", "MemoryStore", "ModelGateway", "OrderBy"]
