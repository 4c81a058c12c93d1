"""
Client layer - User-facing API for the Messages endpoint.

Provides:
- AnthropicClient: Main entry point
- MessagesRequestBuilder: Validating request builder
- MessageStream: Cancellable event stream
"""

from anthropic_messages.client.builder import ClientBuilder, MessagesRequestBuilder
from anthropic_messages.client.core import AnthropicClient
from anthropic_messages.client.stream import MessageStream

__all__ = [
    "AnthropicClient",
    "ClientBuilder",
    "MessageStream",
    "MessagesRequestBuilder",
]
