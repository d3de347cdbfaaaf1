"""API module."""

from fastapi import APIRouter

from .endpoints import chat, core, memory

router = APIRouter()

# Include endpoint routers
router.include_router(memory.router, prefix="/memories", tags=["memories"])
router.include_router(chat.router, prefix="/chat", tags=["chat"])

__all__ = ["core", "router"]
