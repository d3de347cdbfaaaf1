"""Chat API endpoints."""

import json
from collections.abc import AsyncIterator
from typing import Any

from fastapi import APIRouter
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from recallion.api.dependencies import ChatServiceDep, OwnerId
from recallion.core.base import ApplicationError
from recallion.core.handlers import user_message_for
from recallion.core.logging import get_logger
from recallion.domain.models import ChatMessage, ChatTranscript
from recallion.services.chat_service import ReplyStream
from recallion.services.streaming import DONE_SENTINEL

logger = get_logger(__name__)
router = APIRouter()


class ChatRequest(BaseModel):
    """The full transcript so far; the last user message is the question."""

    messages: list[ChatMessage] = Field(..., min_length=1)


def sse_data(payload: dict[str, Any] | str) -> str:
    body = payload if isinstance(payload, str) else json.dumps(payload, ensure_ascii=False)
    return f"data: {body}\n\n"


async def sse_frames(reply: ReplyStream) -> AsyncIterator[str]:
    """Re-frame the reply's deltas in the upstream ``data:`` format."""
    try:
        async for delta in reply.deltas():
            yield sse_data({"choices": [{"delta": {"content": delta}}]})
    except ApplicationError as e:
        logger.warning("Chat stream failed", error=str(e), error_code=e.code.value)
        yield sse_data({"error": {"message": user_message_for(e), "code": e.code.value}})
        return
    yield sse_data(DONE_SENTINEL)


@router.post("", operation_id="chat")
async def chat(request: ChatRequest, owner_id: OwnerId, chat_service: ChatServiceDep) -> StreamingResponse:
    """Stream an answer grounded in the caller's memories.

    Failures before the first byte (rate limit, billing, other upstream
    errors) are returned as regular error responses.
    """
    reply = await chat_service.open_reply(owner_id, request.messages)
    return StreamingResponse(
        sse_frames(reply),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@router.post("/complete", response_model=ChatTranscript, operation_id="chat_complete")
async def chat_complete(request: ChatRequest, owner_id: OwnerId, chat_service: ChatServiceDep) -> ChatTranscript:
    """Non-streaming variant returning the transcript with the answer appended."""
    return await chat_service.answer(owner_id, request.messages)
