"""One stateless chat turn: retrieve, assemble, stream."""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable, Sequence
from typing import TYPE_CHECKING

from recallion.core.base import ErrorLevel
from recallion.core.decorators import with_error_handling
from recallion.core.errors import ValidationError
from recallion.core.logging import get_logger
from recallion.domain.models import ChatMessage, ChatTranscript, RetrievalResult
from recallion.services.context import ContextAssembler, build_system_prompt
from recallion.services.streaming import StreamConsumer

if TYPE_CHECKING:
    from recallion.services import ModelGateway
    from recallion.services.retrieval import RetrievalEngine

logger = get_logger(__name__)


class ReplyStream:
    """An answer being streamed back, plus the memories it was grounded on."""

    def __init__(self, consumer: StreamConsumer, retrieval: RetrievalResult):
        self.consumer = consumer
        self.retrieval = retrieval

    def deltas(self) -> AsyncIterator[str]:
        return self.consumer.deltas()

    async def consume_into(
        self, transcript: ChatTranscript, on_update: Callable[[ChatTranscript], None] | None = None
    ) -> ChatTranscript:
        return await self.consumer.consume_into(transcript, on_update)

    @property
    def malformed_frames(self) -> int:
        return self.consumer.malformed_frames


class ChatService:
    def __init__(
        self,
        retrieval: RetrievalEngine,
        gateway: ModelGateway,
        assembler: ContextAssembler | None = None,
    ):
        self.retrieval = retrieval
        self.gateway = gateway
        self.assembler = assembler or ContextAssembler()

    async def system_prompt(self, owner_id: str, query: str) -> tuple[str, RetrievalResult]:
        result = await self.retrieval.retrieve(query, owner_id)
        logger.debug("Retrieved context", owner_id=owner_id, hits=len(result), source=result.source.value)
        return build_system_prompt(self.assembler.context_block(result.memories)), result

    @with_error_handling(error_level=ErrorLevel.ERROR)
    async def open_reply(self, owner_id: str, messages: Sequence[ChatMessage]) -> ReplyStream:
        """Open the upstream stream; failures before the first byte are raised here."""
        if not messages:
            raise ValidationError("A chat turn needs at least one message", details={"source": "ChatService"})

        transcript = ChatTranscript(messages=list(messages))
        system, result = await self.system_prompt(owner_id, transcript.last_user_message)
        wire = [{"role": "system", "content": system}, *transcript.to_wire()]

        stream = (await self.gateway.stream(wire)).unwrap()
        return ReplyStream(StreamConsumer(stream), result)

    async def answer(self, owner_id: str, messages: Sequence[ChatMessage]) -> ChatTranscript:
        """Run a whole turn and return the transcript with the reply appended."""
        transcript = ChatTranscript(messages=[m.model_copy() for m in messages])
        reply = await self.open_reply(owner_id, transcript.messages)
        return await reply.consume_into(transcript)
