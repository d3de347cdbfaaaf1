"""Line-framed streaming completion decoding.

The upstream protocol is a byte stream of LF or CRLF terminated lines:
blank lines and ``:`` comments are ignored, ``data: <payload>`` lines carry
either the ``[DONE]`` sentinel or a JSON chunk whose text lives at
``choices[0].delta.content``. Network chunk boundaries fall anywhere,
including inside a multi-byte UTF-8 character, so bytes are buffered until
a terminator arrives and each line is decoded only once complete.
"""

import json
from collections.abc import AsyncIterable, AsyncIterator, Callable
from contextlib import aclosing
from dataclasses import dataclass
from enum import Enum
from typing import Any

import httpx

from recallion.core.errors import TransportError
from recallion.core.logging import get_logger
from recallion.domain.models import ChatTranscript
from recallion.services import ChatStream

logger = get_logger(__name__)

DONE_SENTINEL = "[DONE]"


class FrameState(str, Enum):
    AWAITING_TERMINATOR = "awaiting_terminator"
    LINE_READY = "line_ready"
    FRAME_ERROR = "frame_error"
    DONE = "done"


@dataclass(frozen=True, slots=True)
class DeltaFrame:
    text: str


@dataclass(frozen=True, slots=True)
class DoneFrame:
    pass


@dataclass(frozen=True, slots=True)
class FrameError:
    """A terminated line that could not be interpreted; the stream goes on."""

    line: str
    reason: str


@dataclass(frozen=True, slots=True)
class UpstreamErrorFrame:
    """An in-band ``{"error": ...}`` object sent by the upstream mid-stream."""

    error: Any


Frame = DeltaFrame | DoneFrame | FrameError | UpstreamErrorFrame


def _delta_text(chunk: Any) -> str | None:
    try:
        content = chunk["choices"][0]["delta"].get("content")
    except (KeyError, IndexError, TypeError, AttributeError):
        return None
    return content if isinstance(content, str) else None


class FrameParser:
    """Incremental parser: feed bytes in, get complete frames out.

    ``feed`` may be called with chunks split at any byte offset. After the
    ``[DONE]`` sentinel the parser is in ``DONE`` and ignores further input.
    """

    def __init__(self) -> None:
        self._buffer = bytearray()
        self.state = FrameState.AWAITING_TERMINATOR
        self.malformed_frames = 0

    @property
    def done(self) -> bool:
        return self.state is FrameState.DONE

    def feed(self, chunk: bytes) -> list[Frame]:
        if self.done:
            return []
        self._buffer.extend(chunk)
        frames: list[Frame] = []
        while not self.done:
            end = self._buffer.find(b"\n")
            if end < 0:
                self.state = FrameState.AWAITING_TERMINATOR
                break
            line = bytes(self._buffer[:end])
            del self._buffer[: end + 1]
            self.state = FrameState.LINE_READY
            frame = self._interpret(line)
            if frame is not None:
                frames.append(frame)
        return frames

    def flush(self) -> list[Frame]:
        """Interpret whatever is left once the source is exhausted."""
        if self.done or not self._buffer:
            return []
        line = bytes(self._buffer)
        self._buffer.clear()
        self.state = FrameState.LINE_READY
        frame = self._interpret(line)
        return [frame] if frame is not None else []

    def _malformed(self, line: str, reason: str) -> FrameError:
        self.state = FrameState.FRAME_ERROR
        self.malformed_frames += 1
        logger.warning("Malformed stream frame", reason=reason, line=line[:120])
        return FrameError(line=line, reason=reason)

    def _interpret(self, raw: bytes) -> Frame | None:
        if raw.endswith(b"\r"):
            raw = raw[:-1]
        try:
            line = raw.decode("utf-8")
        except UnicodeDecodeError:
            return self._malformed(raw.decode("utf-8", errors="replace"), "invalid utf-8")

        if not line or line.startswith(":"):
            return None

        field, sep, value = line.partition(":")
        if not sep or field != "data":
            # event:, id:, retry: and bare field names carry nothing we use
            return None
        if value.startswith(" "):
            value = value[1:]

        if value.strip() == DONE_SENTINEL:
            self.state = FrameState.DONE
            return DoneFrame()

        try:
            chunk = json.loads(value)
        except json.JSONDecodeError as e:
            return self._malformed(line, f"invalid json: {e.msg}")
        if not isinstance(chunk, dict):
            return self._malformed(line, "payload is not an object")

        if chunk.get("error") is not None:
            return UpstreamErrorFrame(error=chunk["error"])

        text = _delta_text(chunk)
        if not text:
            return None
        return DeltaFrame(text=text)


def _error_message(error: Any) -> str:
    if isinstance(error, dict):
        return str(error.get("message") or error.get("code") or error)
    return str(error)


class StreamConsumer:
    """Drives a ``FrameParser`` over a byte source exactly once.

    The source is either a ``ChatStream`` (an open streamed response) or any
    async iterable of bytes. It is closed on every exit path, including
    cancellation.
    """

    def __init__(self, source: ChatStream | AsyncIterable[bytes], parser: FrameParser | None = None):
        self._source = source
        self.parser = parser or FrameParser()
        self._consumed = False

    @property
    def malformed_frames(self) -> int:
        return self.parser.malformed_frames

    def _chunks(self) -> AsyncIterable[bytes]:
        if isinstance(self._source, ChatStream):
            return self._source.aiter_bytes()
        return self._source

    async def _close_source(self) -> None:
        aclose = getattr(self._source, "aclose", None)
        if aclose is not None:
            await aclose()

    async def frames(self) -> AsyncIterator[Frame]:
        if self._consumed:
            raise RuntimeError("Stream has already been consumed")
        self._consumed = True

        try:
            try:
                async for chunk in self._chunks():
                    for frame in self.parser.feed(chunk):
                        yield frame
                    if self.parser.done:
                        return
            except (httpx.HTTPError, OSError) as e:
                raise TransportError(f"Stream interrupted: {e!s}", details={"source": "StreamConsumer"}) from e
            for frame in self.parser.flush():
                yield frame
        finally:
            await self._close_source()

    async def deltas(self) -> AsyncIterator[str]:
        """Text deltas in arrival order; raises ``TransportError`` on in-band errors."""
        async with aclosing(self.frames()) as frames:
            async for frame in frames:
                if isinstance(frame, DeltaFrame):
                    yield frame.text
                elif isinstance(frame, UpstreamErrorFrame):
                    raise TransportError(
                        f"Upstream error during stream: {_error_message(frame.error)}",
                        details={"source": "StreamConsumer", "operation": "deltas"},
                    )

    async def consume_into(
        self,
        transcript: ChatTranscript,
        on_update: Callable[[ChatTranscript], None] | None = None,
    ) -> ChatTranscript:
        """Append every delta to ``transcript``, notifying ``on_update`` after each."""
        try:
            async with aclosing(self.deltas()) as deltas:
                async for text in deltas:
                    transcript.append_delta(text)
                    if on_update is not None:
                        on_update(transcript)
        finally:
            transcript.close()
        return transcript
