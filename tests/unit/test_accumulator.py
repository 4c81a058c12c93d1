"""Tests for MessageAccumulator."""

import logging

import pytest

from anthropic_messages.errors import (
    ApiError,
    ErrorKind,
    IncompleteStreamError,
    SequencingError,
    ToolInputDecodeError,
)
from anthropic_messages.pipeline import AccumulatorState, FinalizePolicy, MessageAccumulator
from anthropic_messages.types import (
    MessagesResponse,
    StopReason,
    TextBlock,
    ToolUseBlock,
    UnhandledEvent,
)

START = {
    "type": "message_start",
    "message": {
        "id": "msg_1",
        "type": "message",
        "role": "assistant",
        "content": [],
        "model": "claude-sonnet-4-5",
        "stop_reason": None,
        "stop_sequence": None,
        "usage": {"input_tokens": 10, "output_tokens": 1},
    },
}


def text_start(index: int = 0) -> dict:
    return {"type": "content_block_start", "index": index, "content_block": {"type": "text", "text": ""}}


def text_delta(text: str, index: int = 0) -> dict:
    return {"type": "content_block_delta", "index": index, "delta": {"type": "text_delta", "text": text}}


def tool_start(index: int = 0, name: str = "get_weather") -> dict:
    return {
        "type": "content_block_start",
        "index": index,
        "content_block": {"type": "tool_use", "id": f"toolu_{index}", "name": name, "input": {}},
    }


def json_delta(partial: str, index: int = 0) -> dict:
    return {
        "type": "content_block_delta",
        "index": index,
        "delta": {"type": "input_json_delta", "partial_json": partial},
    }


def block_stop(index: int = 0) -> dict:
    return {"type": "content_block_stop", "index": index}


MESSAGE_DELTA = {
    "type": "message_delta",
    "delta": {"stop_reason": "end_turn", "stop_sequence": None},
    "usage": {"output_tokens": 2},
}
STOP = {"type": "message_stop"}


def feed_all(acc: MessageAccumulator, events: list) -> None:
    for event in events:
        acc.feed(event)


class TestFolding:
    """Folding complete sequences."""

    def test_hello_example(self, parse_events) -> None:
        """Two text deltas concatenate into one block."""
        acc = MessageAccumulator()
        feed_all(
            acc,
            parse_events(
                [START, text_start(), text_delta("Hel"), text_delta("lo"), block_stop(), MESSAGE_DELTA, STOP]
            ),
        )
        message = acc.message
        assert acc.state is AccumulatorState.STOPPED
        assert message is not None
        assert message.content == (TextBlock(text="Hello"),)
        assert message.stop_reason == StopReason.END_TURN
        assert message.usage.input_tokens == 10
        assert message.usage.output_tokens == 2

    @pytest.mark.parametrize("piece_size", [1, 3, 1000])
    def test_text_response_equivalence(
        self, parse_events, stream_events, make_text_response, piece_size: int
    ) -> None:
        """The folded stream equals the non-streamed response."""
        body = make_text_response("The quick brown fox jumps over the lazy dog.")
        folded = MessageAccumulator.fold(parse_events(stream_events(body, piece_size)))
        assert folded == MessagesResponse.model_validate(body)

    def test_tool_and_thinking_equivalence(self, parse_events, stream_events, make_text_response) -> None:
        """Interleaved thinking, text and tool blocks fold back in order."""
        body = make_text_response(
            content=[
                {"type": "thinking", "thinking": "User wants weather.", "signature": "EqQBCgIYAh"},
                {"type": "text", "text": "Let me check."},
                {
                    "type": "tool_use",
                    "id": "toolu_01A09q90qw90lq917835lq9",
                    "name": "get_weather",
                    "input": {"location": "San Francisco, CA", "unit": "celsius"},
                },
                {"type": "tool_use", "id": "toolu_02", "name": "get_time", "input": {}},
            ],
            stop_reason="tool_use",
        )
        folded = MessageAccumulator.fold(parse_events(stream_events(body)))
        assert folded == MessagesResponse.model_validate(body)
        assert [t.name for t in folded.tool_uses] == ["get_weather", "get_time"]
        assert folded.tool_uses[0].input["unit"] == "celsius"

    def test_stop_sequence(self, parse_events, stream_events, make_text_response) -> None:
        """stop_sequence from message_delta is kept."""
        body = make_text_response("Count: 1 2", stop_reason="stop_sequence", stop_sequence="3")
        folded = MessageAccumulator.fold(parse_events(stream_events(body)))
        assert folded.stop_reason == StopReason.STOP_SEQUENCE
        assert folded.stop_sequence == "3"

    def test_ping_and_unknown_events_are_ignored(self, parse_events) -> None:
        """Keep-alives and future events never change the message."""
        events = parse_events([START, {"type": "ping"}, text_start(), text_delta("Hi")])
        events.append(UnhandledEvent(event="citation_added", data="{}"))
        events += parse_events([block_stop(), MESSAGE_DELTA, STOP])
        assert MessageAccumulator.fold(events).text == "Hi"

    def test_block_with_no_deltas(self, parse_events) -> None:
        """A block without deltas keeps its start value."""
        message = MessageAccumulator.fold(
            parse_events([START, tool_start(), block_stop(), MESSAGE_DELTA, STOP])
        )
        assert message.content == (ToolUseBlock(id="toolu_0", name="get_weather", input={}),)

    def test_fold_incomplete(self, parse_events) -> None:
        """A sequence without message_stop is incomplete."""
        with pytest.raises(IncompleteStreamError):
            MessageAccumulator.fold(parse_events([START, text_start(), text_delta("Hi")]))


class TestSequencing:
    """Protocol violations."""

    @pytest.mark.parametrize(
        ("events", "fragment"),
        [
            ([START, text_delta("x")], "unknown block"),
            ([START, text_start(), text_start()], "Duplicate content_block_start"),
            ([START, text_start(1)], "skips expected index"),
            ([START, text_start(), MESSAGE_DELTA, STOP], "open block"),
            ([START, text_start(), block_stop(), text_delta("late")], "closed block"),
            ([START, text_start(), json_delta("{}")], "does not apply"),
            ([text_start()], "before message_start"),
            ([START, START], "Duplicate message_start"),
            ([START, STOP, {"type": "ping"}], "after message_stop"),
        ],
    )
    def test_violation(self, parse_events, events: list, fragment: str) -> None:
        """Each violation raises and fails the accumulator."""
        acc = MessageAccumulator()
        parsed = parse_events(events)
        with pytest.raises(SequencingError) as exc_info:
            feed_all(acc, parsed)
        assert fragment in exc_info.value.message
        assert exc_info.value.kind == ErrorKind.SEQUENCING_VIOLATION
        assert acc.state is AccumulatorState.FAILED
        assert acc.error is exc_info.value

    def test_failed_is_absorbing(self, parse_events) -> None:
        """Nothing is accepted after a failure, and the first error is kept."""
        acc = MessageAccumulator()
        feed_all(acc, parse_events([START]))
        (bad,) = parse_events([text_delta("x")])
        with pytest.raises(SequencingError):
            acc.feed(bad)
        first = acc.error

        (good,) = parse_events([text_start()])
        with pytest.raises(SequencingError):
            acc.feed(good)
        assert acc.state is AccumulatorState.FAILED
        assert acc.error is first

    def test_event_after_stop_keeps_message(self, parse_events) -> None:
        """A late event fails the accumulator but not the finished message."""
        acc = MessageAccumulator()
        feed_all(acc, parse_events([START, text_start(), text_delta("done"), block_stop(), STOP]))
        finished = acc.message
        (late,) = parse_events([text_delta("extra")])
        with pytest.raises(SequencingError):
            acc.feed(late)
        assert acc.message is finished
        assert acc.message is not None and acc.message.text == "done"

    def test_several_blocks_open(self, parse_events) -> None:
        """Blocks may be open concurrently and closed in any order."""
        acc = MessageAccumulator()
        feed_all(
            acc,
            parse_events(
                [
                    START,
                    text_start(0),
                    tool_start(1),
                    json_delta('{"city": "Paris"}', 1),
                    text_delta("a", 0),
                    block_stop(1),
                    text_delta("b", 0),
                ]
            ),
        )
        assert acc.state is AccumulatorState.BLOCK_OPEN
        feed_all(acc, parse_events([block_stop(0)]))
        assert acc.state is AccumulatorState.STARTED
        feed_all(acc, parse_events([MESSAGE_DELTA, STOP]))
        assert acc.message is not None
        assert acc.message.text == "ab"
        assert acc.message.tool_uses[0].input == {"city": "Paris"}

    def test_error_event_fails_stream(self, parse_events) -> None:
        """An in-band error event surfaces as ApiError."""
        acc = MessageAccumulator()
        events = parse_events(
            [
                START,
                text_start(),
                {"type": "error", "error": {"type": "overloaded_error", "message": "Overloaded"}},
            ]
        )
        with pytest.raises(ApiError) as exc_info:
            feed_all(acc, events)
        assert exc_info.value.kind == ErrorKind.OVERLOADED
        assert acc.state is AccumulatorState.FAILED


class TestToolInput:
    """Finalizing tool_use input."""

    def test_input_assembled_from_fragments(self, parse_events) -> None:
        """Fragments split anywhere are joined before parsing."""
        message = MessageAccumulator.fold(
            parse_events(
                [
                    START,
                    tool_start(),
                    json_delta('{"loc'),
                    json_delta('ation": "Par'),
                    json_delta('is", "days": 3}'),
                    block_stop(),
                    MESSAGE_DELTA,
                    STOP,
                ]
            )
        )
        assert message.tool_uses[0].input == {"location": "Paris", "days": 3}

    @pytest.mark.parametrize("raw", ['{"location": "Par', "[1, 2]"])
    def test_abort_policy(self, parse_events, raw: str) -> None:
        """Invalid input fails the stream by default."""
        acc = MessageAccumulator()
        with pytest.raises(ToolInputDecodeError) as exc_info:
            feed_all(acc, parse_events([START, tool_start(), json_delta(raw), block_stop()]))
        assert exc_info.value.index == 0
        assert exc_info.value.raw_payload == raw
        assert acc.state is AccumulatorState.FAILED

    def test_recover_policy(self, parse_events, caplog: pytest.LogCaptureFixture) -> None:
        """Invalid input keeps the start input and logs a warning."""
        acc = MessageAccumulator(FinalizePolicy.RECOVER)
        with caplog.at_level(logging.WARNING, logger="anthropic_messages"):
            feed_all(
                acc,
                parse_events(
                    [START, tool_start(), json_delta('{"broken'), block_stop(), MESSAGE_DELTA, STOP]
                ),
            )
        assert acc.message is not None
        assert acc.message.tool_uses[0].input == {}
        assert len(acc.finalize_errors) == 1
        assert acc.finalize_errors[0].raw_payload == '{"broken'
        assert "Recovered from invalid tool input" in caplog.text


class TestSnapshot:
    """Partial views during streaming."""

    def test_snapshot_shows_progress(self, parse_events) -> None:
        """Open text shows received text; open tool input stays at its start value."""
        acc = MessageAccumulator()
        feed_all(
            acc,
            parse_events(
                [START, text_start(0), text_delta("Hel", 0), tool_start(1), json_delta('{"a"', 1)]
            ),
        )
        snapshot = acc.snapshot()
        assert snapshot.content == (
            TextBlock(text="Hel"),
            ToolUseBlock(id="toolu_1", name="get_weather", input={}),
        )
        assert acc.state is AccumulatorState.BLOCK_OPEN
        assert acc.message is None

    def test_snapshot_after_decode_failure(self, parse_events) -> None:
        """Finished blocks are unaffected by a later failure."""
        acc = MessageAccumulator()
        feed_all(acc, parse_events([START, text_start(0), text_delta("kept", 0), block_stop(0)]))
        (bad,) = parse_events([text_delta("orphan", 5)])
        with pytest.raises(SequencingError):
            acc.feed(bad)
        assert acc.snapshot().content == (TextBlock(text="kept"),)
