"""HTTP client for an OpenAI-compatible model gateway."""

import json
import time
from typing import Any

import httpx

from recallion.core.base import AIServiceErrorDetails
from recallion.core.config import settings
from recallion.core.errors import (
    BillingRequiredError,
    MalformedResponseError,
    RateLimitError,
    TransportError,
    UpstreamError,
    ValidationError,
)
from recallion.core.logging import get_logger
from recallion.core.result import Failure, Ok, Result
from recallion.domain.models import CompletionPayload, ContentPayload, ToolCallPayload
from recallion.infrastructure.gateway.schemas import tool_name

logger = get_logger(__name__)

SERVICE_NAME = "model_gateway"


def error_for_status(
    status_code: int,
    body: str = "",
    *,
    endpoint: str | None = None,
    operation: str = "request",
    model_name: str | None = None,
    latency_ms: float | None = None,
) -> UpstreamError:
    """Classify a non-success upstream status.

    429 and 402 get their own error types so callers can show distinct
    notices; every other status is a generic ``UpstreamError``.
    """
    details = AIServiceErrorDetails(
        source="HttpModelGateway",
        operation=operation,
        service_name=SERVICE_NAME,
        endpoint=endpoint,
        status_code=status_code,
        latency_ms=latency_ms,
        model_name=model_name,
        body_excerpt=body[:200] or None,
    )
    if status_code == httpx.codes.TOO_MANY_REQUESTS:
        return RateLimitError(details=details)
    if status_code == httpx.codes.PAYMENT_REQUIRED:
        return BillingRequiredError(details=details)
    return UpstreamError(f"Gateway returned status {status_code}", details=details)


class HttpModelGateway:
    """Model gateway over httpx.

    Every call returns ``Ok`` or ``Failure``; nothing is raised for
    upstream conditions (bad statuses, network errors, broken bodies).
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        chat_model: str | None = None,
        embedding_model: str | None = None,
    ) -> None:
        self.chat_model = chat_model or settings.chat_model
        self.embedding_model = embedding_model or settings.embedding_model
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            base_url=settings.gateway_base_url,
            headers={"Authorization": f"Bearer {settings.gateway_api_key.get_secret_value()}"},
            timeout=settings.gateway_timeout_seconds,
        )

    def _details(self, operation: str, endpoint: str, model_name: str, **extra: Any) -> AIServiceErrorDetails:
        return AIServiceErrorDetails(
            source="HttpModelGateway",
            operation=operation,
            service_name=SERVICE_NAME,
            endpoint=endpoint,
            model_name=model_name,
            **extra,
        )

    async def _post_json(self, endpoint: str, body: dict[str, Any], operation: str) -> Result[dict[str, Any]]:
        model_name = body.get("model")
        started = time.perf_counter()
        try:
            response = await self.client.post(endpoint, json=body)
        except httpx.HTTPError as e:
            logger.warning("Gateway request failed", operation=operation, error=str(e))
            return Failure(
                TransportError(f"Gateway request failed: {e!s}", details=self._details(operation, endpoint, model_name))
            )
        latency_ms = (time.perf_counter() - started) * 1000

        if not response.is_success:
            logger.warning("Gateway returned error status", operation=operation, status_code=response.status_code)
            return Failure(
                error_for_status(
                    response.status_code,
                    response.text,
                    endpoint=endpoint,
                    operation=operation,
                    model_name=model_name,
                    latency_ms=latency_ms,
                )
            )

        try:
            data = response.json()
        except ValueError:
            return Failure(
                MalformedResponseError(
                    "Gateway returned a non-JSON body",
                    details=self._details(
                        operation,
                        endpoint,
                        model_name,
                        status_code=response.status_code,
                        body_excerpt=response.text[:200],
                    ),
                )
            )

        logger.debug("Gateway call completed", operation=operation, latency_ms=round(latency_ms, 1))
        return Ok(data)

    def _resolve_payload(self, data: dict[str, Any]) -> Result[CompletionPayload]:
        """Turn a completion body into a tool-call or content payload."""
        try:
            message = data["choices"][0]["message"]
        except (KeyError, IndexError, TypeError):
            return self._malformed_completion("Completion body has no message")

        if not isinstance(message, dict):
            return self._malformed_completion("Completion message is not an object")

        tool_calls = message.get("tool_calls") or []
        if tool_calls:
            call = tool_calls[0] if isinstance(tool_calls, list) else None
            function = call.get("function") if isinstance(call, dict) else None
            if not isinstance(function, dict):
                return self._malformed_completion("Completion tool call has no function")
            arguments = function.get("arguments", "")
            if not isinstance(arguments, str):
                arguments = json.dumps(arguments)
            return Ok(ToolCallPayload(name=str(function.get("name") or ""), arguments=arguments))

        text = message.get("content") or ""
        if not isinstance(text, str):
            return self._malformed_completion("Completion content is not text")
        return Ok(ContentPayload(text=text))

    def _malformed_completion(self, message: str) -> Failure:
        return Failure(
            MalformedResponseError(
                message, details=self._details("chat_completion", "/chat/completions", self.chat_model)
            )
        )

    async def complete(
        self, messages: list[dict[str, str]], tool: dict[str, Any] | None = None
    ) -> Result[CompletionPayload]:
        """Non-streaming completion, forcing ``tool`` when given."""
        body: dict[str, Any] = {"model": self.chat_model, "messages": messages}
        if tool is not None:
            body["tools"] = [tool]
            body["tool_choice"] = {"type": "function", "function": {"name": tool_name(tool)}}

        result = await self._post_json("/chat/completions", body, operation="chat_completion")
        if isinstance(result, Failure):
            return result
        return self._resolve_payload(result.value)

    async def stream(self, messages: list[dict[str, str]]) -> Result[httpx.Response]:
        """Open a streamed completion.

        On success the caller owns the response and must ``aclose()`` it.
        """
        endpoint = "/chat/completions"
        request = self.client.build_request(
            "POST",
            endpoint,
            json={"model": self.chat_model, "messages": messages, "stream": True},
        )
        try:
            response = await self.client.send(request, stream=True)
        except httpx.HTTPError as e:
            logger.warning("Gateway stream could not be opened", error=str(e))
            return Failure(
                TransportError(
                    f"Gateway stream failed: {e!s}",
                    details=self._details("chat_stream", endpoint, self.chat_model),
                )
            )

        if response.is_success:
            return Ok(response)

        try:
            body = (await response.aread()).decode("utf-8", errors="replace")
        finally:
            await response.aclose()
        logger.warning("Gateway stream rejected", status_code=response.status_code)
        return Failure(
            error_for_status(
                response.status_code, body, endpoint=endpoint, operation="chat_stream", model_name=self.chat_model
            )
        )

    async def embed(self, text: str) -> Result[list[float]]:
        if not text.strip():
            return Failure(ValidationError("Cannot embed empty text", details={"source": "HttpModelGateway"}))

        result = await self._post_json(
            "/embeddings", {"model": self.embedding_model, "input": text}, operation="embeddings"
        )
        if isinstance(result, Failure):
            return result

        try:
            vector = result.value["data"][0]["embedding"]
        except (KeyError, IndexError, TypeError):
            vector = None
        if not vector:
            return Failure(
                MalformedResponseError(
                    "Embedding body has no vector",
                    details=self._details("embeddings", "/embeddings", self.embedding_model),
                )
            )
        try:
            return Ok([float(x) for x in vector])
        except (TypeError, ValueError) as e:
            return Failure(
                MalformedResponseError(
                    f"Embedding vector is not numeric: {e!s}",
                    details=self._details("embeddings", "/embeddings", self.embedding_model),
                )
            )

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()
