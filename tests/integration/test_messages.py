"""
Integration tests for the Messages API client.

Tests end-to-end requests with mocked API responses.
"""

import json

import httpx
import pytest

from anthropic_messages import (
    AnthropicClient,
    ApiError,
    ErrorKind,
    FinalizePolicy,
    IncompleteStreamError,
    Message,
    Role,
    StopReason,
    ToolDefinition,
    TransportError,
)
from anthropic_messages.types import (
    ContentBlockDeltaEvent,
    MessageStopEvent,
    UnhandledEvent,
    text_block,
    tool_result_block,
)

pytestmark = pytest.mark.integration

MODEL = "claude-sonnet-4-5"

WEATHER_TOOL = ToolDefinition.define(
    "get_weather",
    "Get the current weather in a given location",
    {
        "type": "object",
        "properties": {"location": {"type": "string", "description": "City and state"}},
        "required": ["location"],
    },
)


class TestNonStreaming:
    """Tests for complete responses."""

    @pytest.mark.asyncio
    async def test_simple_message(self, client, httpx_mock, make_text_response) -> None:
        """A request is sent with the expected body and headers."""
        httpx_mock.add_response(method="POST", json=make_text_response("Hello from Claude!"))

        request = (
            AnthropicClient.request(MODEL, [Message.user("Hello")], 1024)
            .system("You are terse.")
            .temperature(0.2)
            .build()
        )
        async with client:
            response = await client.messages(request)

        assert response.text == "Hello from Claude!"
        assert response.stop_reason == StopReason.END_TURN

        sent = httpx_mock.get_request()
        assert sent.url == "https://api.anthropic.com/v1/messages"
        assert sent.headers["x-api-key"] == client.config.api_key
        assert sent.headers["anthropic-version"] == "2023-06-01"
        assert "anthropic-beta" not in sent.headers
        assert json.loads(sent.content) == {
            "model": MODEL,
            "messages": [{"role": "user", "content": [{"type": "text", "text": "Hello"}]}],
            "max_tokens": 1024,
            "system": "You are terse.",
            "temperature": 0.2,
        }

    @pytest.mark.asyncio
    async def test_beta_header(self, httpx_mock, make_text_response) -> None:
        """Beta tags are sent comma-separated."""
        httpx_mock.add_response(json=make_text_response())
        client = (
            AnthropicClient.builder()
            .api_key("sk-ant-REDACTED")
            .beta("prompt-caching-2024-07-31", "token-efficient-tools-2025-02-19")
            .build(environ={})
        )
        async with client:
            await client.messages(AnthropicClient.request(MODEL, [Message.user("Hi")], 16).build())
        assert (
            httpx_mock.get_request().headers["anthropic-beta"]
            == "prompt-caching-2024-07-31,token-efficient-tools-2025-02-19"
        )

    @pytest.mark.asyncio
    async def test_tool_use_round_trip(
        self, client, httpx_mock, tool_use_response, make_text_response
    ) -> None:
        """A tool call is answered with a tool result in the next request."""
        httpx_mock.add_response(json=tool_use_response())
        httpx_mock.add_response(json=make_text_response("It is 18°C and foggy."))

        history = [Message.user("What's the weather in San Francisco?")]
        async with client:
            first = await client.messages(
                AnthropicClient.request(MODEL, history, 1024).tools([WEATHER_TOOL]).build()
            )
            assert first.stop_reason == StopReason.TOOL_USE
            call = first.tool_uses[0]
            assert call.input == {"location": "San Francisco, CA"}

            history.append(first.to_message())
            history.append(
                Message.with_content(Role.USER, [tool_result_block(call.id, "18°C, fog")])
            )
            second = await client.messages(
                AnthropicClient.request(MODEL, history, 1024).tools([WEATHER_TOOL]).build()
            )

        assert second.text == "It is 18°C and foggy."
        sent = json.loads(httpx_mock.get_requests()[1].content)
        assert [m["role"] for m in sent["messages"]] == ["user", "assistant", "user"]
        assert sent["messages"][2]["content"][0] == {
            "type": "tool_result",
            "tool_use_id": "toolu_01A09q90qw90lq917835lq9",
            "content": "18°C, fog",
        }

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("status", "error_type", "kind", "retryable"),
        [
            (400, "invalid_request_error", ErrorKind.INVALID_REQUEST, False),
            (401, "authentication_error", ErrorKind.AUTHENTICATION_FAILED, False),
            (403, "permission_error", ErrorKind.PERMISSION_DENIED, False),
            (404, "not_found_error", ErrorKind.NOT_FOUND, False),
            (429, "rate_limit_error", ErrorKind.RATE_LIMITED, True),
            (500, "api_error", ErrorKind.SERVER_ERROR, True),
            (529, "overloaded_error", ErrorKind.OVERLOADED, True),
        ],
    )
    async def test_error_responses(
        self, client, httpx_mock, error_body, status, error_type, kind, retryable
    ) -> None:
        """Error responses map to ApiError kinds."""
        httpx_mock.add_response(
            status_code=status,
            json=error_body(error_type, "something went wrong"),
            headers={"request-id": "req_err_1", "retry-after": "7"},
        )
        async with client:
            with pytest.raises(ApiError) as exc_info:
                await client.messages(AnthropicClient.request(MODEL, [Message.user("Hi")], 16).build())

        error = exc_info.value
        assert error.kind == kind
        assert error.status_code == status
        assert error.error_type == error_type
        assert error.message == "something went wrong"
        assert error.request_id == "req_err_1"
        assert error.retry_after == 7.0
        assert error.retryable is retryable

    @pytest.mark.asyncio
    async def test_connection_refused(self, client, httpx_mock) -> None:
        """Network failures surface as TransportError."""
        httpx_mock.add_exception(httpx.ConnectError("Connection refused"))
        async with client:
            with pytest.raises(TransportError):
                await client.messages(AnthropicClient.request(MODEL, [Message.user("Hi")], 16).build())


class TestStreaming:
    """Tests for streamed responses."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("chunk_size", [1, 7, 4096])
    async def test_stream_matches_complete_response(
        self, client, mock_stream, stream_events, make_text_response, chunk_size
    ) -> None:
        """The streamed message equals the non-streamed one for any chunking."""
        body = make_text_response("Ünïcödé ✓ text split across chunks")
        mock_stream(stream_events(body), chunk_size=chunk_size)

        request = AnthropicClient.request(MODEL, [Message.user("Hi")], 256).build()
        async with client, client.messages_stream(request) as stream:
            message = await stream.final_message()
            assert stream.request_id == "req_018EeWyXxfu5pfWkrYcMdjWG"

        assert message.text == "Ünïcödé ✓ text split across chunks"
        assert message.usage.output_tokens == 6

    @pytest.mark.asyncio
    async def test_stream_tool_use(self, client, mock_stream, stream_events, tool_use_response) -> None:
        """Tool input streamed as JSON fragments is parsed at block stop."""
        mock_stream(stream_events(tool_use_response(tool_input={"location": "Paris", "unit": "celsius"})))

        request = AnthropicClient.request(MODEL, [Message.user("Weather?")], 256).tools([WEATHER_TOOL]).build()
        async with client, client.messages_stream(request) as stream:
            types = [event.type async for event in stream if not isinstance(event, UnhandledEvent)]
            message = await stream.final_message()

        assert types[0] == "message_start"
        assert types[-1] == "message_stop"
        assert message.stop_reason == StopReason.TOOL_USE
        assert message.tool_uses[0].input == {"location": "Paris", "unit": "celsius"}

    @pytest.mark.asyncio
    async def test_stream_with_pings_and_unknown_events(
        self, client, mock_stream, stream_events, make_text_response
    ) -> None:
        """Keep-alives and unknown events pass through without effect."""
        events = stream_events(make_text_response("ok"))
        events.insert(1, {"type": "ping"})
        events.insert(3, {"type": "content_block_citation", "index": 0})
        mock_stream(events)

        request = AnthropicClient.request(MODEL, [Message.user("Hi")], 16).build()
        async with client, client.messages_stream(request) as stream:
            seen = [event async for event in stream]

        assert any(isinstance(e, UnhandledEvent) and e.event == "content_block_citation" for e in seen)
        assert isinstance(seen[-1], MessageStopEvent)
        assert (await stream.final_message()).text == "ok"

    @pytest.mark.asyncio
    async def test_stream_error_event(self, client, mock_stream, stream_events, make_text_response) -> None:
        """An overloaded error mid-stream ends the stream with ApiError."""
        events = stream_events(make_text_response("never finished"))[:4]
        events.append({"type": "error", "error": {"type": "overloaded_error", "message": "Overloaded"}})
        mock_stream(events)

        request = AnthropicClient.request(MODEL, [Message.user("Hi")], 16).build()
        received = []
        async with client, client.messages_stream(request) as stream:
            with pytest.raises(ApiError) as exc_info:
                async for event in stream:
                    if isinstance(event, ContentBlockDeltaEvent):
                        received.append(event.delta.text)

        assert exc_info.value.kind == ErrorKind.OVERLOADED
        assert exc_info.value.status_code is None
        assert received == ["nev", "er "]
        assert stream.snapshot().text == "never "

    @pytest.mark.asyncio
    async def test_truncated_stream(self, client, mock_stream, stream_events, make_text_response) -> None:
        """A connection closing before message_stop is an incomplete stream."""
        mock_stream(stream_events(make_text_response("cut short"))[:-1])

        request = AnthropicClient.request(MODEL, [Message.user("Hi")], 16).build()
        async with client, client.messages_stream(request) as stream:
            with pytest.raises(IncompleteStreamError):
                await stream.final_message()

    @pytest.mark.asyncio
    async def test_recover_policy_keeps_stream_alive(
        self, client, mock_stream, stream_events, tool_use_response
    ) -> None:
        """Under RECOVER a broken tool input does not end the stream."""
        events = stream_events(tool_use_response())
        for event in events:
            if event.get("delta", {}).get("type") == "input_json_delta":
                event["delta"]["partial_json"] = event["delta"]["partial_json"].replace("}", "")
        mock_stream(events)

        request = AnthropicClient.request(MODEL, [Message.user("Hi")], 16).tools([WEATHER_TOOL]).build()
        async with client, client.messages_stream(request, policy=FinalizePolicy.RECOVER) as stream:
            message = await stream.final_message()

        assert message.tool_uses[0].input == {}
        assert len(stream.accumulator.finalize_errors) == 1
        assert message.content[0] == text_block("Let me check the weather.")
