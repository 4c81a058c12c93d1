"""Root pytest fixtures for anthropic-messages tests."""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

import pytest

from anthropic_messages.config import ClientConfig
from anthropic_messages.pipeline import StreamEventParser
from anthropic_messages.telemetry import MessagesLogger

TEST_API_KEY = "sk-ant-REDACTED"


def encode_sse(events: list[dict[str, Any]]) -> bytes:
    """Encode event payloads as an SSE body, one frame per event."""
    frames = [
        f"event: {event['type']}\ndata: {json.dumps(event)}\n\n" for event in events
    ]
    return "".join(frames).encode("utf-8")


def _pieces(text: str, size: int) -> list[str]:
    return [text[i : i + size] for i in range(0, len(text), size)] or [""]


def canonical_events(response: dict[str, Any], piece_size: int = 3) -> list[dict[str, Any]]:
    """Event payloads the API would stream for a complete response."""
    usage = response.get("usage", {})
    events: list[dict[str, Any]] = [
        {
            "type": "message_start",
            "message": {
                **{k: v for k, v in response.items() if k not in ("content", "usage")},
                "content": [],
                "stop_reason": None,
                "stop_sequence": None,
                "usage": {"input_tokens": usage.get("input_tokens", 0), "output_tokens": 1},
            },
        }
    ]

    for index, block in enumerate(response["content"]):
        if block["type"] == "text":
            events.append(
                {"type": "content_block_start", "index": index, "content_block": {"type": "text", "text": ""}}
            )
            for piece in _pieces(block["text"], piece_size):
                events.append(
                    {
                        "type": "content_block_delta",
                        "index": index,
                        "delta": {"type": "text_delta", "text": piece},
                    }
                )
        elif block["type"] == "tool_use":
            events.append(
                {
                    "type": "content_block_start",
                    "index": index,
                    "content_block": {**block, "input": {}},
                }
            )
            raw = json.dumps(block["input"]) if block["input"] else ""
            for piece in _pieces(raw, piece_size):
                events.append(
                    {
                        "type": "content_block_delta",
                        "index": index,
                        "delta": {"type": "input_json_delta", "partial_json": piece},
                    }
                )
        elif block["type"] == "thinking":
            events.append(
                {
                    "type": "content_block_start",
                    "index": index,
                    "content_block": {"type": "thinking", "thinking": ""},
                }
            )
            for piece in _pieces(block["thinking"], piece_size):
                events.append(
                    {
                        "type": "content_block_delta",
                        "index": index,
                        "delta": {"type": "thinking_delta", "thinking": piece},
                    }
                )
            if block.get("signature"):
                events.append(
                    {
                        "type": "content_block_delta",
                        "index": index,
                        "delta": {"type": "signature_delta", "signature": block["signature"]},
                    }
                )
        else:
            events.append({"type": "content_block_start", "index": index, "content_block": block})
        events.append({"type": "content_block_stop", "index": index})

    events.append(
        {
            "type": "message_delta",
            "delta": {
                "stop_reason": response.get("stop_reason"),
                "stop_sequence": response.get("stop_sequence"),
            },
            "usage": {"output_tokens": usage.get("output_tokens", 0)},
        }
    )
    events.append({"type": "message_stop"})
    return events


def text_response(text: str = "Hello!", **overrides: Any) -> dict[str, Any]:
    """A complete text-only response body."""
    body: dict[str, Any] = {
        "id": "msg_01XFDUDYJgAACzvnptvVoYEL",
        "type": "message",
        "role": "assistant",
        "content": [{"type": "text", "text": text}],
        "model": "claude-sonnet-4-5",
        "stop_reason": "end_turn",
        "stop_sequence": None,
        "usage": {"input_tokens": 12, "output_tokens": 6},
    }
    body.update(overrides)
    return body


@pytest.fixture
def config() -> ClientConfig:
    """Client configuration with a fake key."""
    return ClientConfig(api_key=TEST_API_KEY)


@pytest.fixture
def parser() -> StreamEventParser:
    return StreamEventParser()


@pytest.fixture
def parse_events(parser: StreamEventParser) -> Callable[[list[dict[str, Any]]], list[Any]]:
    """Parse raw event payloads into typed events."""

    def _parse(payloads: list[dict[str, Any]]) -> list[Any]:
        return [parser.parse(p["type"], json.dumps(p)) for p in payloads]

    return _parse


@pytest.fixture
def sse_body() -> Callable[[list[dict[str, Any]]], bytes]:
    return encode_sse


@pytest.fixture
def stream_events() -> Callable[..., list[dict[str, Any]]]:
    return canonical_events


@pytest.fixture
def make_text_response() -> Callable[..., dict[str, Any]]:
    return text_response


@pytest.fixture(autouse=True)
def _reset_logging() -> Any:
    """Undo MessagesLogger.configure between tests."""
    yield
    MessagesLogger.reset()
