"""Specific error types for the Recallion application."""

from typing import Any

from .base import ApplicationError, ErrorCode, ErrorDetails, ErrorLevel, ServiceErrorDetails


class AuthenticationError(ApplicationError):
    """Missing or invalid caller identity."""

    status_code = 401

    def __init__(self, message: str = "Unauthorized", details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            code=ErrorCode.AUTHENTICATION_FAILED,
            level=ErrorLevel.WARNING,
            details=details,
        )


class NotFoundError(ApplicationError):
    """Record absent or not owned by the caller."""

    status_code = 404

    def __init__(self, message: str = "Memory not found", details: ErrorDetails | dict[str, Any] | None = None):
        super().__init__(
            message=message,
            code=ErrorCode.NOT_FOUND,
            level=ErrorLevel.WARNING,
            details=details,
        )


class ValidationError(ApplicationError):
    """Caller-supplied input was rejected."""

    status_code = 422

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            code=ErrorCode.INVALID_INPUT,
            level=ErrorLevel.WARNING,
            details=details,
        )


class UpstreamError(ApplicationError):
    """Non-success response from the model gateway."""

    status_code = 502
    user_message = "AI processing failed"

    def __init__(
        self,
        message: str,
        details: ServiceErrorDetails | dict[str, Any] | None = None,
        code: ErrorCode = ErrorCode.MODEL_ERROR,
        level: ErrorLevel = ErrorLevel.ERROR,
    ):
        super().__init__(
            message=message,
            code=code,
            level=level,
            details=details
            or ServiceErrorDetails(source="gateway", operation="external_call", service_name="model_gateway"),
        )


class RateLimitError(UpstreamError):
    """Gateway answered 429."""

    status_code = 429
    user_message = "Rate limit exceeded. Please try again later."

    def __init__(self, message: str = "Rate limits exceeded", details: ServiceErrorDetails | None = None):
        super().__init__(message=message, details=details, code=ErrorCode.RATE_LIMITED, level=ErrorLevel.WARNING)


class BillingRequiredError(UpstreamError):
    """Gateway answered 402."""

    status_code = 402
    user_message = "AI credits depleted. Please add more credits."

    def __init__(self, message: str = "Payment required", details: ServiceErrorDetails | None = None):
        super().__init__(message=message, details=details, code=ErrorCode.BILLING_REQUIRED, level=ErrorLevel.WARNING)


class MalformedResponseError(UpstreamError):
    """A structurally complete payload could not be parsed."""

    def __init__(self, message: str, details: ServiceErrorDetails | dict[str, Any] | None = None):
        super().__init__(message=message, details=details, code=ErrorCode.MALFORMED_RESPONSE)


class TransportError(UpstreamError):
    """I/O failure while talking to the gateway, including mid-stream."""

    def __init__(self, message: str, details: ServiceErrorDetails | dict[str, Any] | None = None):
        super().__init__(message=message, details=details, code=ErrorCode.STREAM_TRANSPORT)


class ServiceUnavailableError(ApplicationError):
    """A collaborator (store, blob storage) is not initialized or unreachable."""

    status_code = 503

    def __init__(self, message: str, details: ServiceErrorDetails | None = None):
        super().__init__(
            message=message,
            code=ErrorCode.SERVICE_UNAVAILABLE,
            level=ErrorLevel.ERROR,
            details=details
            or ServiceErrorDetails(source="service", operation="external_call", service_name="unknown"),
        )
