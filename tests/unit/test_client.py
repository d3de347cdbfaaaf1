"""Tests for the chat client."""

import json
from collections.abc import AsyncIterator

import httpx
import pytest

from recallion.client import RecallionClient
from recallion.core.errors import BillingRequiredError, RateLimitError, TransportError
from recallion.domain.models import APOLOGY_MESSAGE, ChatRole, ChatTranscript
from tests.fakes import sse_done, sse_line


class BrokenByteStream(httpx.AsyncByteStream):
    """Body that delivers one frame and then drops the connection."""

    def __init__(self, first: bytes):
        self.first = first

    async def __aiter__(self) -> AsyncIterator[bytes]:
        yield self.first
        raise httpx.ReadError("connection reset")

    async def aclose(self) -> None:
        pass


def make_client(handler) -> RecallionClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="https://recallion.test")
    return RecallionClient(client=http, token="token-123")


class TestRecallionClient:
    """Tests for RecallionClient.chat."""

    async def test_streams_answer_into_transcript(self) -> None:
        """Should append the question and build the answer delta by delta."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers["authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, content=sse_line("Hel") + sse_line("lo") + sse_done())

        transcript = ChatTranscript()
        updates = []
        await make_client(handler).chat(transcript, "hi", on_update=lambda t: updates.append(t.messages[-1].content))

        assert [(m.role, m.content) for m in transcript.messages] == [
            (ChatRole.USER, "hi"),
            (ChatRole.ASSISTANT, "Hello"),
        ]
        assert updates == ["Hel", "Hello"]
        assert seen["auth"] == "Bearer token-123"
        assert seen["body"] == {"messages": [{"role": "user", "content": "hi"}]}

    async def test_sends_full_prior_transcript(self) -> None:
        """Should send every earlier turn with the new question."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, content=sse_line("2") + sse_done())

        client = make_client(handler)
        transcript = ChatTranscript()
        transcript.add_user("one")
        transcript.append_delta("1")
        transcript.close()

        await client.chat(transcript, "two")

        assert [m["content"] for m in seen["body"]["messages"]] == ["one", "1", "two"]
        assert [m.content for m in transcript.messages] == ["one", "1", "two", "2"]

    @pytest.mark.parametrize(("status", "error_type"), [(429, RateLimitError), (402, BillingRequiredError)])
    async def test_rejections_keep_only_the_question(self, status, error_type) -> None:
        """Should raise the classified error and add no assistant message."""
        client = make_client(lambda request: httpx.Response(status, json={"error": "nope"}))
        transcript = ChatTranscript()

        with pytest.raises(error_type):
            await client.chat(transcript, "hi")

        assert [m.role for m in transcript.messages] == [ChatRole.USER]

    async def test_transport_failure_appends_apology(self) -> None:
        """Should close the partial answer and append an apology."""
        client = make_client(lambda request: httpx.Response(200, stream=BrokenByteStream(sse_line("Par"))))
        transcript = ChatTranscript()

        with pytest.raises(TransportError):
            await client.chat(transcript, "hi")

        assert [m.content for m in transcript.messages] == ["hi", "Par", APOLOGY_MESSAGE]
        assert not transcript.has_open_message

    async def test_in_band_error_frame_appends_apology(self) -> None:
        """Should treat an error frame from the service as a transport failure."""
        body = sse_line("Par") + b'data: {"error": {"message": "AI processing failed"}}\n'
        client = make_client(lambda request: httpx.Response(200, content=body))
        transcript = ChatTranscript()

        with pytest.raises(TransportError):
            await client.chat(transcript, "hi")

        assert transcript.messages[-1].content == APOLOGY_MESSAGE
