"""Test doubles and builders shared across the suite."""

import json
from collections.abc import AsyncIterator, Callable, Iterable
from datetime import UTC, datetime, timedelta
from typing import Any

from recallion.core.errors import TransportError, UpstreamError
from recallion.core.result import Failure, Ok, Result
from recallion.domain.models import CompletionPayload, ContentPayload, Memory, ToolCallPayload

ENRICHMENT_ARGS = {
    "summary": "Dentist appointment on Friday",
    "keywords": ["dentist", "appointment", "friday"],
    "tags": ["health", "personal"],
    "importance": 6,
    "aiInsight": "Regular checkups keep small problems small.",
}


def sse_line(content: str) -> bytes:
    return f"data: {json.dumps({'choices': [{'delta': {'content': content}}]}, ensure_ascii=False)}\n".encode()


def sse_done() -> bytes:
    return b"data: [DONE]\n"


def tool_call(arguments: dict[str, Any] | list[Any], name: str = "process_memory") -> Ok[CompletionPayload]:
    return Ok(ToolCallPayload(name=name, arguments=json.dumps(arguments)))


def content(text: str) -> Ok[CompletionPayload]:
    return Ok(ContentPayload(text=text))


class FakeStream:
    """Open streamed response yielding pre-split byte chunks."""

    def __init__(self, chunks: Iterable[bytes], error: Exception | None = None):
        self.chunks = list(chunks)
        self.error = error
        self.closed = False

    async def aiter_bytes(self) -> AsyncIterator[bytes]:
        for chunk in self.chunks:
            yield chunk
        if self.error is not None:
            raise self.error

    async def aclose(self) -> None:
        self.closed = True


class FakeGateway:
    """Scripted model gateway recording every call.

    ``completions`` and ``embeddings`` are consumed in order; once exhausted
    the last entry keeps being returned. Either may also be a callable taking
    the call's input.
    """

    def __init__(
        self,
        completions: list[Result[CompletionPayload]] | None = None,
        embeddings: list[Result[list[float]]] | Callable[[str], Result[list[float]]] | None = None,
        stream_chunks: list[bytes] | None = None,
        stream_result: Failure | None = None,
    ):
        self.completions = completions or [tool_call(ENRICHMENT_ARGS)]
        self.embeddings = embeddings if embeddings is not None else [Ok([1.0, 0.0, 0.0])]
        self.stream_chunks = stream_chunks or [sse_line("Hel"), sse_line("lo"), sse_done()]
        self.stream_result = stream_result
        self.complete_calls: list[tuple[list[dict[str, str]], dict[str, Any] | None]] = []
        self.embed_calls: list[str] = []
        self.stream_calls: list[list[dict[str, str]]] = []
        self.streams: list[FakeStream] = []

    @staticmethod
    def _next(script: list[Any]) -> Any:
        return script.pop(0) if len(script) > 1 else script[0]

    async def complete(
        self, messages: list[dict[str, str]], tool: dict[str, Any] | None = None
    ) -> Result[CompletionPayload]:
        self.complete_calls.append((messages, tool))
        return self._next(self.completions)

    async def embed(self, text: str) -> Result[list[float]]:
        self.embed_calls.append(text)
        if callable(self.embeddings):
            return self.embeddings(text)
        return self._next(self.embeddings)

    async def stream(self, messages: list[dict[str, str]]) -> Result[FakeStream]:
        self.stream_calls.append(messages)
        if self.stream_result is not None:
            return self.stream_result
        stream = FakeStream(self.stream_chunks)
        self.streams.append(stream)
        return Ok(stream)


def upstream_failure(message: str = "Gateway returned status 500") -> Failure:
    return Failure(UpstreamError(message))


def transport_failure() -> Failure:
    return Failure(TransportError("connection reset"))


def make_memory(owner_id: str, content: str = "Remember the milk", minutes_ago: int = 0, **fields: Any) -> Memory:
    created = datetime.now(UTC) - timedelta(minutes=minutes_ago)
    return Memory(owner_id=owner_id, content=content, created_at=created, updated_at=created, **fields)
