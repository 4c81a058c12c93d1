"""
Transport layer - HTTP client for API communication.

Provides httpx-based transport with:
- Async streaming support
- Timeout management
- Opt-in backoff for rate-limited requests
- API key resolution
"""

from anthropic_messages.transport.auth import auth_headers, resolve_api_key
from anthropic_messages.transport.http import USER_AGENT, HttpTransport
from anthropic_messages.transport.retry import JitterStrategy, RetryConfig, RetryPolicy

__all__ = [
    "USER_AGENT",
    "HttpTransport",
    "JitterStrategy",
    "RetryConfig",
    "RetryPolicy",
    "auth_headers",
    "resolve_api_key",
]
