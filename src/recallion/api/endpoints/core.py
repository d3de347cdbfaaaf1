"""Core API endpoints for Recallion."""

from datetime import UTC, datetime

from fastapi import APIRouter

from recallion.api import dependencies
from recallion.core.config import settings
from recallion.core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()

VERSION = "0.1.0"


@router.get("/")
async def root():
    """Root endpoint with application status."""
    return {
        "message": f"{settings.assistant_name} API",
        "version": VERSION,
        "status": "running",
        "features": [
            "enrichment",
            "semantic_retrieval",
            "streaming_chat",
            "memory_review",
        ],
    }


@router.get("/health", operation_id="health")
async def health_check():
    """Health check endpoint."""
    ready = dependencies.memory_service is not None and dependencies.chat_service is not None
    return {
        "status": "healthy" if ready else "starting",
        "store_backend": settings.store_backend,
        "timestamp": datetime.now(UTC).isoformat(),
    }
