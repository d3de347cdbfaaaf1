"""Async client for the Recallion chat endpoint.

Holds no conversation state of its own: the caller's ``ChatTranscript`` is
sent in full with each question and the streamed answer is written back
into it delta by delta.
"""

from collections.abc import Callable

import httpx

from recallion.core.errors import TransportError
from recallion.core.logging import get_logger
from recallion.domain.models import ChatTranscript
from recallion.infrastructure.gateway.client import error_for_status
from recallion.services.streaming import StreamConsumer

logger = get_logger(__name__)

CHAT_PATH = "/api/v1/chat"


class RecallionClient:
    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        token: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = 60.0,
    ):
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(base_url=base_url, headers=headers, timeout=timeout)
        if client is not None and token:
            self.client.headers["Authorization"] = f"Bearer {token}"

    async def __aenter__(self) -> "RecallionClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def chat(
        self,
        transcript: ChatTranscript,
        question: str,
        on_update: Callable[[ChatTranscript], None] | None = None,
    ) -> ChatTranscript:
        """Ask ``question`` and stream the answer into ``transcript``.

        Raises:
            RateLimitError: The service answered 429; only the question was added.
            BillingRequiredError: The service answered 402; only the question was added.
            UpstreamError: Any other non-success status.
            TransportError: The stream broke; the transcript ends with an apology.
        """
        transcript.add_user(question)
        request = self.client.build_request("POST", CHAT_PATH, json={"messages": transcript.to_wire()})

        try:
            response = await self.client.send(request, stream=True)
        except httpx.HTTPError as e:
            transcript.fail()
            raise TransportError(f"Chat request failed: {e!s}", details={"source": "RecallionClient"}) from e

        if not response.is_success:
            try:
                body = (await response.aread()).decode("utf-8", errors="replace")
            finally:
                await response.aclose()
            raise error_for_status(response.status_code, body, endpoint=CHAT_PATH, operation="chat")

        try:
            await StreamConsumer(response).consume_into(transcript, on_update)
        except TransportError:
            logger.warning("Chat stream interrupted", messages=len(transcript.messages))
            transcript.fail()
            raise
        return transcript
