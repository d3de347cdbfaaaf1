"""Memory API endpoints."""

from datetime import datetime

from fastapi import APIRouter, Query, status
from pydantic import BaseModel, Field

from recallion.api.dependencies import MemoryServiceDep, OwnerId, ReviewPipelineDep
from recallion.core.logging import get_logger
from recallion.domain.models import Memory, ReviewFailure

logger = get_logger(__name__)
router = APIRouter()


class CreateMemoryRequest(BaseModel):
    """Request model for storing a memory."""

    content: str = Field(..., min_length=1)
    image_url: str | None = None


class EditMemoryRequest(BaseModel):
    content: str = Field(..., min_length=1)


class MemoryResponse(BaseModel):
    """A memory as returned to clients; the raw embedding is never exposed."""

    id: str
    content: str
    summary: str | None
    keywords: list[str] | None
    tags: list[str] | None
    importance: int | None
    ai_insight: str | None
    image_url: str | None
    has_embedding: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_memory(cls, memory: Memory) -> "MemoryResponse":
        return cls(
            **memory.model_dump(exclude={"embedding", "owner_id"}),
            has_embedding=memory.embedding is not None,
        )


class MemoryListResponse(BaseModel):
    memories: list[MemoryResponse]
    count: int


class TagsResponse(BaseModel):
    tags: list[str]


class InsightsResponse(BaseModel):
    total: int
    average_importance: float
    health_score: int
    top_memories: list[MemoryResponse]
    recent_memories: list[MemoryResponse]
    tags: list[str]


class EnrichResponse(BaseModel):
    memory: MemoryResponse
    embedded: bool


class ReviewResponse(BaseModel):
    success: bool
    reviewed: int
    updated_ids: list[str]
    failures: list[ReviewFailure]
    message: str | None = None


@router.post("", response_model=MemoryResponse, status_code=status.HTTP_201_CREATED, operation_id="create_memory")
async def create_memory(
    request: CreateMemoryRequest, owner_id: OwnerId, memory_service: MemoryServiceDep
) -> MemoryResponse:
    """Store a memory; enrichment runs in the background."""
    memory = await memory_service.create(owner_id, request.content, image_url=request.image_url)
    return MemoryResponse.from_memory(memory)


@router.get("", response_model=MemoryListResponse, operation_id="list_memories")
async def list_memories(
    owner_id: OwnerId,
    memory_service: MemoryServiceDep,
    search: str | None = Query(None, description="Case-insensitive match on content or summary"),
    tag: str | None = Query(None),
) -> MemoryListResponse:
    memories = await memory_service.list(owner_id, search=search, tag=tag)
    return MemoryListResponse(memories=[MemoryResponse.from_memory(m) for m in memories], count=len(memories))


@router.get("/tags", response_model=TagsResponse, operation_id="memory_tags")
async def list_tags(owner_id: OwnerId, memory_service: MemoryServiceDep) -> TagsResponse:
    return TagsResponse(tags=await memory_service.tags(owner_id))


@router.get("/insights", response_model=InsightsResponse, operation_id="memory_insights")
async def get_insights(owner_id: OwnerId, memory_service: MemoryServiceDep) -> InsightsResponse:
    insights = await memory_service.insights(owner_id)
    return InsightsResponse(
        total=insights.total,
        average_importance=insights.average_importance,
        health_score=insights.health_score,
        top_memories=[MemoryResponse.from_memory(m) for m in insights.top_memories],
        recent_memories=[MemoryResponse.from_memory(m) for m in insights.recent_memories],
        tags=insights.tags,
    )


@router.post("/review", response_model=ReviewResponse, operation_id="review_memories")
async def review_memories(owner_id: OwnerId, review_pipeline: ReviewPipelineDep) -> ReviewResponse:
    """Re-score the caller's most recent memories in one model call."""
    outcome = await review_pipeline.run(owner_id)
    return ReviewResponse(
        success=outcome.success,
        reviewed=outcome.reviewed,
        updated_ids=outcome.updated_ids,
        failures=outcome.failures,
        message=outcome.message,
    )


@router.get("/{memory_id}", response_model=MemoryResponse, operation_id="get_memory")
async def get_memory(memory_id: str, owner_id: OwnerId, memory_service: MemoryServiceDep) -> MemoryResponse:
    return MemoryResponse.from_memory(await memory_service.get(owner_id, memory_id))


@router.patch("/{memory_id}", response_model=MemoryResponse, operation_id="edit_memory")
async def edit_memory(
    memory_id: str, request: EditMemoryRequest, owner_id: OwnerId, memory_service: MemoryServiceDep
) -> MemoryResponse:
    """Replace the content; derived fields are cleared and recomputed."""
    memory = await memory_service.edit(owner_id, memory_id, request.content)
    return MemoryResponse.from_memory(memory)


@router.delete("/{memory_id}", status_code=status.HTTP_204_NO_CONTENT, operation_id="delete_memory")
async def delete_memory(memory_id: str, owner_id: OwnerId, memory_service: MemoryServiceDep) -> None:
    await memory_service.delete(owner_id, memory_id)


@router.post("/{memory_id}/process", response_model=EnrichResponse, operation_id="process_memory")
async def process_memory(memory_id: str, owner_id: OwnerId, memory_service: MemoryServiceDep) -> EnrichResponse:
    """Run enrichment now and return the result, surfacing model errors."""
    result = await memory_service.enrich_now(owner_id, memory_id)
    return EnrichResponse(memory=MemoryResponse.from_memory(result.memory), embedded=result.embedded)
