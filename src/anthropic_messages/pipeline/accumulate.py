"""
Message accumulator for streamed responses.

Folds the ordered events of one stream into the complete MessagesResponse.
The accumulator is a state machine:

    empty --message_start--> started <--block start/stop--> block_open
    started --message_stop--> stopped

Any protocol violation, decode failure or ``error`` event moves it to the
absorbing ``failed`` state.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from anthropic_messages.errors import (
    AnthropicError,
    IncompleteStreamError,
    SequencingError,
    ToolInputDecodeError,
)
from anthropic_messages.telemetry import get_logger
from anthropic_messages.types.events import (
    ContentBlockDeltaEvent,
    ContentBlockStartEvent,
    ContentBlockStopEvent,
    ErrorEvent,
    InputJsonDelta,
    MessageDeltaEvent,
    MessageStartEvent,
    MessageStopEvent,
    PingEvent,
    SignatureDelta,
    StreamEvent,
    TextDelta,
    ThinkingDelta,
    UnhandledEvent,
)
from anthropic_messages.types.message import TextBlock, ThinkingBlock, ToolUseBlock
from anthropic_messages.types.response import MessagesResponse, Usage

if TYPE_CHECKING:
    from collections.abc import Iterable

    from anthropic_messages.types.message import ContentBlock

logger = get_logger("anthropic_messages.pipeline.accumulate")


class AccumulatorState(str, Enum):
    """Lifecycle state of a MessageAccumulator."""

    EMPTY = "empty"
    STARTED = "started"
    BLOCK_OPEN = "block_open"
    STOPPED = "stopped"
    FAILED = "failed"


class FinalizePolicy(str, Enum):
    """What to do when a tool_use block's input fails to parse.

    ABORT fails the whole stream. RECOVER keeps the input given at block
    start, records the error in ``finalize_errors`` and continues.
    """

    ABORT = "abort"
    RECOVER = "recover"


@dataclass
class _BlockBuffer:
    """A content block between its start and stop events."""

    index: int
    start: ContentBlock
    fragments: list[str] = field(default_factory=list)
    signature: str | None = None
    final: ContentBlock | None = None

    @property
    def is_open(self) -> bool:
        return self.final is None

    def partial(self) -> ContentBlock:
        """Current view of the block without parsing tool input."""
        if self.final is not None:
            return self.final
        if isinstance(self.start, TextBlock):
            return self.start.model_copy(update={"text": self.start.text + "".join(self.fragments)})
        if isinstance(self.start, ThinkingBlock):
            return self.start.model_copy(
                update={
                    "thinking": self.start.thinking + "".join(self.fragments),
                    "signature": self.signature or self.start.signature,
                }
            )
        return self.start


class MessageAccumulator:
    """Assembles a MessagesResponse from stream events.

    Example:
        >>> acc = MessageAccumulator()
        >>> async for event in pipeline.process(byte_stream):
        ...     acc.feed(event)
        >>> response = acc.message

    Folding the event sequence the API sends for a response yields a
    MessagesResponse equal to the non-streamed response.
    """

    def __init__(self, policy: FinalizePolicy = FinalizePolicy.ABORT) -> None:
        """Initialize the accumulator.

        Args:
            policy: Handling of tool input that fails to parse
        """
        self._policy = policy
        self._state = AccumulatorState.EMPTY
        self._base: MessagesResponse | None = None
        self._blocks: list[_BlockBuffer] = []
        self._usage = Usage()
        self._stop_reason: Any = None
        self._stop_sequence: str | None = None
        self._message: MessagesResponse | None = None
        self._error: Exception | None = None
        self._finalize_errors: list[ToolInputDecodeError] = []

    @property
    def state(self) -> AccumulatorState:
        return self._state

    @property
    def policy(self) -> FinalizePolicy:
        return self._policy

    @property
    def error(self) -> Exception | None:
        """The failure that moved the accumulator to FAILED, if any."""
        return self._error

    @property
    def finalize_errors(self) -> list[ToolInputDecodeError]:
        """Tool input failures recovered under FinalizePolicy.RECOVER."""
        return list(self._finalize_errors)

    @property
    def message(self) -> MessagesResponse | None:
        """The assembled response; None until ``message_stop``."""
        return self._message

    @property
    def is_complete(self) -> bool:
        return self._message is not None

    def feed(self, event: StreamEvent | UnhandledEvent) -> AccumulatorState:
        """Apply one event.

        Args:
            event: Next event of the stream

        Returns:
            State after the event

        Raises:
            SequencingError: If the event is not allowed in the current state
            ToolInputDecodeError: If tool input fails to parse under ABORT
            ApiError: If the event is an ``error`` event
        """
        if self._state is AccumulatorState.FAILED:
            raise SequencingError(
                f"Event {_event_name(event)} received after the stream failed",
                state=self._state.value,
                event_type=_event_name(event),
            )

        previous = self._state
        try:
            self._apply(event)
        except AnthropicError as e:
            self._fail(e)
            raise

        if self._state is not previous:
            logger.debug(
                "Accumulator transition",
                event=_event_name(event),
                from_state=previous.value,
                to_state=self._state.value,
            )
        return self._state

    def snapshot(self) -> MessagesResponse:
        """Partially assembled response; does not change state.

        Finished blocks appear in final form. Open blocks show the text
        received so far; open tool_use blocks show their start input.
        """
        if self._message is not None:
            return self._message
        return self._assemble([block.partial() for block in self._blocks])

    @classmethod
    def fold(
        cls,
        events: Iterable[StreamEvent | UnhandledEvent],
        policy: FinalizePolicy = FinalizePolicy.ABORT,
    ) -> MessagesResponse:
        """Fold a complete event sequence into its response.

        Raises:
            IncompleteStreamError: If the events end before ``message_stop``
        """
        acc = cls(policy)
        for event in events:
            acc.feed(event)
        if acc.message is None:
            raise IncompleteStreamError("Event sequence ended before message_stop")
        return acc.message

    def _fail(self, error: Exception) -> None:
        self._state = AccumulatorState.FAILED
        self._error = error
        logger.debug("Accumulator failed", error=str(error))

    def _violation(self, message: str, event: StreamEvent | UnhandledEvent) -> SequencingError:
        return SequencingError(
            message, state=self._state.value, event_type=_event_name(event)
        )

    def _apply(self, event: StreamEvent | UnhandledEvent) -> None:
        if self._state is AccumulatorState.STOPPED:
            raise self._violation(
                f"Event {_event_name(event)} received after message_stop", event
            )

        if isinstance(event, (PingEvent, UnhandledEvent)):
            return
        if isinstance(event, ErrorEvent):
            raise event.to_exception()

        if isinstance(event, MessageStartEvent):
            if self._state is not AccumulatorState.EMPTY:
                raise self._violation("Duplicate message_start", event)
            self._base = event.message
            self._usage = event.message.usage
            self._stop_reason = event.message.stop_reason
            self._stop_sequence = event.message.stop_sequence
            self._state = AccumulatorState.STARTED
            return

        if self._state is AccumulatorState.EMPTY:
            raise self._violation(f"{event.type} received before message_start", event)

        if isinstance(event, ContentBlockStartEvent):
            self._start_block(event)
        elif isinstance(event, ContentBlockDeltaEvent):
            self._apply_delta(event)
        elif isinstance(event, ContentBlockStopEvent):
            self._stop_block(event)
        elif isinstance(event, MessageDeltaEvent):
            self._apply_message_delta(event)
        elif isinstance(event, MessageStopEvent):
            self._stop_message(event)

    def _start_block(self, event: ContentBlockStartEvent) -> None:
        expected = len(self._blocks)
        if event.index < expected:
            raise self._violation(f"Duplicate content_block_start for index {event.index}", event)
        if event.index > expected:
            raise self._violation(
                f"content_block_start index {event.index} skips expected index {expected}",
                event,
            )
        self._blocks.append(_BlockBuffer(index=event.index, start=event.content_block))
        self._state = AccumulatorState.BLOCK_OPEN

    def _open_block(
        self, event: ContentBlockDeltaEvent | ContentBlockStopEvent
    ) -> _BlockBuffer:
        if event.index >= len(self._blocks):
            raise self._violation(f"{event.type} for unknown block {event.index}", event)
        block = self._blocks[event.index]
        if not block.is_open:
            raise self._violation(f"{event.type} for closed block {event.index}", event)
        return block

    def _apply_delta(self, event: ContentBlockDeltaEvent) -> None:
        block = self._open_block(event)
        delta = event.delta
        start = block.start

        if isinstance(delta, TextDelta) and isinstance(start, TextBlock):
            block.fragments.append(delta.text)
        elif isinstance(delta, InputJsonDelta) and isinstance(start, ToolUseBlock):
            block.fragments.append(delta.partial_json)
        elif isinstance(delta, ThinkingDelta) and isinstance(start, ThinkingBlock):
            block.fragments.append(delta.thinking)
        elif isinstance(delta, SignatureDelta) and isinstance(start, ThinkingBlock):
            block.signature = delta.signature
        else:
            raise self._violation(
                f"{delta.type} does not apply to {start.type} block {event.index}", event
            )

    def _stop_block(self, event: ContentBlockStopEvent) -> None:
        block = self._open_block(event)
        start = block.start

        if isinstance(start, ToolUseBlock):
            block.final = start.model_copy(update={"input": self._tool_input(block, start)})
        else:
            block.final = block.partial()

        if not any(b.is_open for b in self._blocks):
            self._state = AccumulatorState.STARTED

    def _tool_input(self, block: _BlockBuffer, start: ToolUseBlock) -> dict[str, Any]:
        raw = "".join(block.fragments)
        if not raw.strip():
            return start.input

        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as e:
            error = ToolInputDecodeError(
                f"Tool input for block {block.index} is not valid JSON: {e.msg}",
                index=block.index,
                raw_payload=raw,
                cause=e,
            )
        else:
            if isinstance(parsed, dict):
                return parsed
            error = ToolInputDecodeError(
                f"Tool input for block {block.index} is not a JSON object",
                index=block.index,
                raw_payload=raw,
            )

        if self._policy is FinalizePolicy.ABORT:
            raise error
        self._finalize_errors.append(error)
        logger.warning(
            "Recovered from invalid tool input",
            index=block.index,
            tool=start.name,
            error=error.message,
        )
        return start.input

    def _apply_message_delta(self, event: MessageDeltaEvent) -> None:
        fields = event.delta.model_fields_set
        if "stop_reason" in fields:
            self._stop_reason = event.delta.stop_reason
        if "stop_sequence" in fields:
            self._stop_sequence = event.delta.stop_sequence
        if event.usage is not None:
            self._usage = self._usage.merged(event.usage)

    def _stop_message(self, event: MessageStopEvent) -> None:
        if self._state is AccumulatorState.BLOCK_OPEN:
            open_indices = [b.index for b in self._blocks if b.is_open]
            raise self._violation(f"message_stop with open block(s) {open_indices}", event)
        self._message = self._assemble([b.final for b in self._blocks if b.final is not None])
        self._state = AccumulatorState.STOPPED

    def _assemble(self, content: list[ContentBlock]) -> MessagesResponse:
        base = self._base or MessagesResponse()
        return base.model_copy(
            update={
                "content": tuple(content),
                "stop_reason": self._stop_reason,
                "stop_sequence": self._stop_sequence,
                "usage": self._usage,
            }
        )


def _event_name(event: StreamEvent | UnhandledEvent) -> str:
    if isinstance(event, UnhandledEvent):
        return event.event
    return event.type
