"""Error hierarchy for anthropic-messages.

Every error carries an :class:`ErrorKind` so both call styles report
failures the same way.
"""

from anthropic_messages.errors.base import (
    AnthropicError,
    ApiError,
    ConfigurationError,
    ErrorContext,
    IncompleteStreamError,
    InvalidRequestError,
    SequencingError,
    StreamDecodeError,
    ToolInputDecodeError,
    TransportError,
)
from anthropic_messages.errors.classification import (
    ErrorKind,
    classify_error_type,
    classify_http_error,
    is_retryable,
)

__all__ = [
    "AnthropicError",
    "ApiError",
    "ConfigurationError",
    "ErrorContext",
    "ErrorKind",
    "IncompleteStreamError",
    "InvalidRequestError",
    "SequencingError",
    "StreamDecodeError",
    "ToolInputDecodeError",
    "TransportError",
    "classify_error_type",
    "classify_http_error",
    "is_retryable",
]
