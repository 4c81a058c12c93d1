"""
anthropic-messages: Async Python client for the Messages API.

Build a validated request, then either await the complete response or
consume a cancellable stream of typed events.
"""

from __future__ import annotations

from anthropic_messages._features import HAS_KEYRING
from anthropic_messages._version import __version__
from anthropic_messages.client import (
    AnthropicClient,
    ClientBuilder,
    MessagesRequestBuilder,
    MessageStream,
)
from anthropic_messages.config import ClientConfig
from anthropic_messages.transport.retry import RetryConfig
from anthropic_messages.errors import (
    AnthropicError,
    ApiError,
    ConfigurationError,
    ErrorKind,
    IncompleteStreamError,
    InvalidRequestError,
    SequencingError,
    StreamDecodeError,
    ToolInputDecodeError,
    TransportError,
)
from anthropic_messages.pipeline import FinalizePolicy, MessageAccumulator
from anthropic_messages.types import (
    ContentBlock,
    Message,
    MessagesRequest,
    MessagesResponse,
    Role,
    StopReason,
    StreamEvent,
    ThinkingConfig,
    ToolChoice,
    ToolDefinition,
    UnhandledEvent,
    Usage,
)

__all__ = [
    # Client
    "AnthropicClient",
    "ClientBuilder",
    "ClientConfig",
    "RetryConfig",
    "MessageStream",
    "MessagesRequestBuilder",
    # Feature flags
    "HAS_KEYRING",
    # Errors
    "AnthropicError",
    "ApiError",
    "ConfigurationError",
    "ErrorKind",
    "IncompleteStreamError",
    "InvalidRequestError",
    "SequencingError",
    "StreamDecodeError",
    "ToolInputDecodeError",
    "TransportError",
    # Streaming
    "FinalizePolicy",
    "MessageAccumulator",
    # Types
    "ContentBlock",
    "Message",
    "MessagesRequest",
    "MessagesResponse",
    "Role",
    "StopReason",
    "StreamEvent",
    "ThinkingConfig",
    "ToolChoice",
    "ToolDefinition",
    "UnhandledEvent",
    "Usage",
    # Version
    "__version__",
]
