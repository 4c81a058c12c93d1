"""Error classification for the Messages API.

Maps HTTP status codes and the ``error.type`` field of API error bodies
onto the :class:`ErrorKind` taxonomy shared by both call styles.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Kind of failure surfaced by the client.

    Every exception raised by this library carries one of these values.
    """

    INVALID_REQUEST = "invalid_request"
    """Malformed request, caught locally or rejected by the API (400/413/422)."""

    AUTHENTICATION_FAILED = "authentication_failed"
    """Missing or invalid API key (401)."""

    PERMISSION_DENIED = "permission_denied"
    """Key is valid but not allowed to use the resource (403)."""

    NOT_FOUND = "not_found"
    """Unknown model or endpoint (404)."""

    RATE_LIMITED = "rate_limited"
    """Request or token rate limit hit (429)."""

    OVERLOADED = "overloaded"
    """API temporarily overloaded (529, 503)."""

    SERVER_ERROR = "server_error"
    """Unexpected server-side failure (other 5xx)."""

    STREAM_DECODE_ERROR = "stream_decode_error"
    """A stream frame or tool-input document could not be decoded."""

    SEQUENCING_VIOLATION = "sequencing_violation"
    """Stream events arrived in an order the protocol does not allow."""

    INCOMPLETE_STREAM = "incomplete_stream"
    """The stream was cancelled or closed before ``message_stop``."""

    TRANSPORT_ERROR = "transport_error"
    """Connection, timeout or other network failure."""


_RETRYABLE_KINDS: frozenset[ErrorKind] = frozenset(
    {
        ErrorKind.RATE_LIMITED,
        ErrorKind.OVERLOADED,
        ErrorKind.SERVER_ERROR,
    }
)

_DEFAULT_STATUS_MAPPING: dict[int, ErrorKind] = {
    400: ErrorKind.INVALID_REQUEST,
    401: ErrorKind.AUTHENTICATION_FAILED,
    403: ErrorKind.PERMISSION_DENIED,
    404: ErrorKind.NOT_FOUND,
    413: ErrorKind.INVALID_REQUEST,
    422: ErrorKind.INVALID_REQUEST,
    429: ErrorKind.RATE_LIMITED,
    500: ErrorKind.SERVER_ERROR,
    502: ErrorKind.SERVER_ERROR,
    503: ErrorKind.OVERLOADED,
    529: ErrorKind.OVERLOADED,
}

# Values of ``error.type`` in API error bodies and stream ``error`` events
_ERROR_TYPE_MAPPING: dict[str, ErrorKind] = {
    "invalid_request_error": ErrorKind.INVALID_REQUEST,
    "request_too_large": ErrorKind.INVALID_REQUEST,
    "authentication_error": ErrorKind.AUTHENTICATION_FAILED,
    "permission_error": ErrorKind.PERMISSION_DENIED,
    "not_found_error": ErrorKind.NOT_FOUND,
    "rate_limit_error": ErrorKind.RATE_LIMITED,
    "overloaded_error": ErrorKind.OVERLOADED,
    "api_error": ErrorKind.SERVER_ERROR,
}


def classify_error_type(error_type: str | None) -> ErrorKind | None:
    """Map an API ``error.type`` string to an ErrorKind.

    Args:
        error_type: Value of the ``type`` field inside the error object

    Returns:
        The matching ErrorKind, or None if the type is unknown
    """
    if not error_type:
        return None
    return _ERROR_TYPE_MAPPING.get(error_type)


def classify_http_error(
    status_code: int | None,
    body: dict[str, Any] | None = None,
) -> ErrorKind:
    """Classify an API failure into an ErrorKind.

    The error type in the body is more specific than the status code and
    takes precedence over it.

    Args:
        status_code: HTTP status code, or None for errors embedded in a stream
        body: Parsed error body, if any

    Returns:
        ErrorKind describing the failure
    """
    by_type = classify_error_type(extract_error_type(body))
    if by_type is not None:
        return by_type

    if status_code is None:
        return ErrorKind.SERVER_ERROR

    if status_code in _DEFAULT_STATUS_MAPPING:
        return _DEFAULT_STATUS_MAPPING[status_code]

    if 400 <= status_code < 500:
        return ErrorKind.INVALID_REQUEST
    return ErrorKind.SERVER_ERROR


def is_retryable(kind: ErrorKind) -> bool:
    """Check whether a failure of this kind is worth retrying later.

    The library never retries on its own; this only informs caller policy.
    """
    return kind in _RETRYABLE_KINDS


def extract_error_type(body: dict[str, Any] | None) -> str | None:
    """Extract ``error.type`` from an API error body."""
    if not body:
        return None
    error = body.get("error")
    if isinstance(error, dict):
        error_type = error.get("type")
        if isinstance(error_type, str):
            return error_type
    return None


def extract_error_message(body: dict[str, Any] | None) -> str | None:
    """Extract the human-readable message from an API error body.

    Supports ``{"type": "error", "error": {"type": ..., "message": ...}}``
    and the simpler ``{"message": ...}`` shape.

    Args:
        body: Response body (parsed JSON)

    Returns:
        Error message if found, None otherwise
    """
    if not body:
        return None

    error = body.get("error")
    if isinstance(error, dict):
        msg = error.get("message")
        if isinstance(msg, str):
            return msg
    elif isinstance(error, str):
        return error

    msg = body.get("message")
    if isinstance(msg, str):
        return msg

    return None
