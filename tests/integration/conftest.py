"""
Integration test helper utilities.

Shared fixtures and utilities for integration tests.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import pytest
from pytest_httpx import IteratorStream

from anthropic_messages import AnthropicClient

if TYPE_CHECKING:
    from collections.abc import Callable

    import pytest_httpx

    from anthropic_messages.config import ClientConfig

MESSAGES_URL = "https://api.anthropic.com/v1/messages"


def mock_tool_use_response(
    tool_name: str = "get_weather",
    tool_input: dict | None = None,
    text: str = "Let me check the weather.",
) -> dict:
    """Create a mock tool use response."""
    if tool_input is None:
        tool_input = {"location": "San Francisco, CA"}

    return {
        "id": "msg_01Aq9w938a90dw8q",
        "type": "message",
        "role": "assistant",
        "model": "claude-sonnet-4-5",
        "content": [
            {"type": "text", "text": text},
            {"type": "tool_use", "id": "toolu_01A09q90qw90lq917835lq9", "name": tool_name, "input": tool_input},
        ],
        "stop_reason": "tool_use",
        "stop_sequence": None,
        "usage": {"input_tokens": 384, "output_tokens": 57},
    }


def mock_error_body(error_type: str, message: str) -> dict:
    """Create a mock API error body."""
    return {"type": "error", "error": {"type": error_type, "message": message}}


def chunked(body: bytes, size: int) -> list[bytes]:
    """Split a body into network-sized chunks."""
    return [body[i : i + size] for i in range(0, len(body), size)]


def setup_mock_stream(
    httpx_mock: pytest_httpx.HTTPXMock,
    events: list[dict[str, Any]],
    chunk_size: int = 17,
) -> None:
    """Register a streamed response delivering ``events`` in odd-sized chunks."""
    body = "".join(
        f"event: {event['type']}\ndata: {json.dumps(event)}\n\n" for event in events
    ).encode("utf-8")
    httpx_mock.add_response(
        url=MESSAGES_URL,
        method="POST",
        headers={"content-type": "text/event-stream", "request-id": "req_018EeWyXxfu5pfWkrYcMdjWG"},
        stream=IteratorStream(chunked(body, chunk_size)),
    )


@pytest.fixture
def client(config: ClientConfig) -> AnthropicClient:
    """Client pointed at the default base URL, served by httpx_mock."""
    return AnthropicClient(config)


@pytest.fixture
def mock_stream(httpx_mock: pytest_httpx.HTTPXMock) -> Callable[..., None]:
    def _setup(events: list[dict[str, Any]], chunk_size: int = 17) -> None:
        setup_mock_stream(httpx_mock, events, chunk_size)

    return _setup


@pytest.fixture
def tool_use_response() -> Callable[..., dict]:
    return mock_tool_use_response


@pytest.fixture
def error_body() -> Callable[[str, str], dict]:
    return mock_error_body
