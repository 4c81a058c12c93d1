"""Base error classes for anthropic-messages.

Provides a layered error hierarchy:
- AnthropicError: Base class for all library errors
- InvalidRequestError: Request rejected locally before any network I/O
- ConfigurationError: Client configuration could not be resolved
- TransportError: HTTP/network errors
- ApiError: Error returned by the API, over HTTP or inside a stream
- StreamDecodeError: A stream frame could not be decoded
- SequencingError: Stream events arrived out of protocol order
- IncompleteStreamError: Stream cancelled or closed before completion
"""

from __future__ import annotations

import contextlib
from dataclasses import dataclass, field
from typing import Any

from anthropic_messages.errors.classification import (
    ErrorKind,
    classify_http_error,
    extract_error_message,
    extract_error_type,
    is_retryable,
)


@dataclass
class ErrorContext:
    """Structured error context for diagnostics."""

    field_path: str | None = None
    """Path to the problematic field (e.g., 'messages[0].content')"""

    details: dict[str, Any] = field(default_factory=dict)
    """Additional details about the error"""

    source: str | None = None
    """Error source (e.g., 'validation', 'transport', 'stream')"""

    hint: str | None = None
    """Actionable hint for resolving the error"""

    def __str__(self) -> str:
        parts = []
        if self.source:
            parts.append(f"[{self.source}]")
        if self.field_path:
            parts.append(f"at '{self.field_path}'")
        if self.hint:
            parts.append(f"(hint: {self.hint})")
        return " ".join(parts)


class AnthropicError(Exception):
    """Base class for all anthropic-messages errors.

    Attributes:
        message: Human-readable error message
        kind: ErrorKind of the failure
        context: Structured error context
    """

    kind: ErrorKind = ErrorKind.SERVER_ERROR

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
    ) -> None:
        self.message = message
        self.context = context or ErrorContext()
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        ctx_str = str(self.context)
        if ctx_str:
            return f"{self.message} {ctx_str}"
        return self.message


class InvalidRequestError(AnthropicError):
    """Request failed local validation.

    Raised by ``MessagesRequestBuilder.build()`` before anything is sent.
    ``problems`` lists every violated constraint, not just the first.
    """

    kind = ErrorKind.INVALID_REQUEST

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        *,
        field: str | None = None,
        problems: list[str] | None = None,
    ) -> None:
        ctx = context or ErrorContext(source="validation")
        if field:
            ctx.field_path = field
        super().__init__(message, ctx)
        self.field = field
        self.problems = list(problems or [message])


class ConfigurationError(AnthropicError):
    """Client configuration is missing or invalid (e.g., no API key)."""

    kind = ErrorKind.AUTHENTICATION_FAILED

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        *,
        variable: str | None = None,
    ) -> None:
        ctx = context or ErrorContext(source="config")
        if variable:
            ctx.details["variable"] = variable
        super().__init__(message, ctx)
        self.variable = variable


class TransportError(AnthropicError):
    """Error during HTTP transport.

    Raised on connection failures, timeouts and other httpx errors.
    The original exception is kept as ``__cause__``.
    """

    kind = ErrorKind.TRANSPORT_ERROR

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        *,
        url: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        ctx = context or ErrorContext(source="transport")
        if url:
            ctx.details["url"] = url
        super().__init__(message, ctx)
        self.url = url
        self.__cause__ = cause


class ApiError(AnthropicError):
    """Error reported by the API.

    Comes either from a non-2xx HTTP response or from an ``error`` event
    inside a stream, in which case ``status_code`` is None.

    Attributes:
        kind: ErrorKind of this error (instance attribute)
        status_code: HTTP status code, if any
        error_type: Raw ``error.type`` from the body (e.g. "overloaded_error")
        retryable: Whether the caller may retry later
        retry_after: Suggested retry delay in seconds (from header)
        request_id: Request identifier from the ``request-id`` header
        raw_error: Raw error body
    """

    def __init__(
        self,
        message: str,
        *,
        kind: ErrorKind,
        status_code: int | None = None,
        error_type: str | None = None,
        raw_error: dict[str, Any] | None = None,
        retry_after: float | None = None,
        request_id: str | None = None,
    ) -> None:
        ctx = ErrorContext(source="api")
        ctx.details["kind"] = kind.value
        if status_code is not None:
            ctx.details["status_code"] = status_code
        if error_type:
            ctx.details["error_type"] = error_type
        if request_id:
            ctx.details["request_id"] = request_id

        super().__init__(message, ctx)

        self.kind = kind
        self.status_code = status_code
        self.error_type = error_type
        self.raw_error = raw_error or {}
        self.retry_after = retry_after
        self.request_id = request_id

    @property
    def retryable(self) -> bool:
        """Whether this kind of failure is typically transient."""
        return is_retryable(self.kind)

    @classmethod
    def from_response(
        cls,
        status_code: int,
        body: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> ApiError:
        """Create an ApiError from an HTTP error response.

        Args:
            status_code: HTTP status code
            body: Response body (parsed JSON), if it was JSON
            headers: Response headers

        Returns:
            ApiError with the appropriate kind
        """
        kind = classify_http_error(status_code, body)
        message = extract_error_message(body) or f"HTTP {status_code}"

        retry_after = None
        request_id = None
        if headers:
            lowered = {k.lower(): v for k, v in headers.items()}
            retry_after_str = lowered.get("retry-after")
            if retry_after_str:
                with contextlib.suppress(ValueError):
                    retry_after = float(retry_after_str)
            request_id = lowered.get("request-id") or lowered.get("x-request-id")

        return cls(
            message=message,
            kind=kind,
            status_code=status_code,
            error_type=extract_error_type(body),
            raw_error=body,
            retry_after=retry_after,
            request_id=request_id,
        )

    @classmethod
    def from_stream_error(cls, error_type: str, message: str) -> ApiError:
        """Create an ApiError from an ``error`` event embedded in a stream."""
        body = {"type": "error", "error": {"type": error_type, "message": message}}
        return cls(
            message=message,
            kind=classify_http_error(None, body),
            error_type=error_type,
            raw_error=body,
        )


class StreamDecodeError(AnthropicError):
    """A stream frame could not be decoded into an event.

    Terminal for the stream. ``raw_payload`` holds the offending data so the
    failure can be diagnosed without log correlation.
    """

    kind = ErrorKind.STREAM_DECODE_ERROR

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        *,
        event: str | None = None,
        raw_payload: str | bytes | None = None,
        cause: Exception | None = None,
    ) -> None:
        ctx = context or ErrorContext(source="stream")
        if event:
            ctx.details["event"] = event
        super().__init__(message, ctx)
        self.event = event
        self.raw_payload = raw_payload
        self.__cause__ = cause


class ToolInputDecodeError(StreamDecodeError):
    """Concatenated ``input_json_delta`` fragments are not a JSON object."""

    def __init__(
        self,
        message: str,
        *,
        index: int,
        raw_payload: str,
        cause: Exception | None = None,
    ) -> None:
        ctx = ErrorContext(source="accumulator", field_path=f"content[{index}].input")
        super().__init__(
            message,
            ctx,
            event="content_block_stop",
            raw_payload=raw_payload,
            cause=cause,
        )
        self.index = index


class SequencingError(AnthropicError):
    """Stream events arrived in an order the protocol does not allow.

    Distinct from StreamDecodeError: every frame decoded fine, but the
    sequence as a whole is invalid.
    """

    kind = ErrorKind.SEQUENCING_VIOLATION

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        *,
        state: str | None = None,
        event_type: str | None = None,
    ) -> None:
        ctx = context or ErrorContext(source="accumulator")
        if state:
            ctx.details["state"] = state
        if event_type:
            ctx.details["event_type"] = event_type
        super().__init__(message, ctx)
        self.state = state
        self.event_type = event_type


class IncompleteStreamError(AnthropicError):
    """Stream ended without ``message_stop``.

    Raised when the connection closes early, or when a final message is
    requested from a stream that was cancelled.
    """

    kind = ErrorKind.INCOMPLETE_STREAM

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        *,
        cancelled: bool = False,
    ) -> None:
        ctx = context or ErrorContext(source="stream")
        ctx.details["cancelled"] = cancelled
        super().__init__(message, ctx)
        self.cancelled = cancelled
