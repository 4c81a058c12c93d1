"""
Stream event parser.

Turns one SSE frame into one typed event. The parser is stateless: it
judges each frame on its own and leaves ordering to the accumulator.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ValidationError

from anthropic_messages.errors import StreamDecodeError
from anthropic_messages.telemetry import get_logger
from anthropic_messages.types.events import (
    ContentBlockDeltaEvent,
    ContentBlockStartEvent,
    ContentBlockStopEvent,
    ErrorEvent,
    MessageDeltaEvent,
    MessageStartEvent,
    MessageStopEvent,
    PingEvent,
    StreamEvent,
    UnhandledEvent,
)

if TYPE_CHECKING:
    from anthropic_messages.pipeline.decode import SseFrame

logger = get_logger("anthropic_messages.pipeline.parse")

EVENT_MODELS: dict[str, type[BaseModel]] = {
    "message_start": MessageStartEvent,
    "content_block_start": ContentBlockStartEvent,
    "content_block_delta": ContentBlockDeltaEvent,
    "content_block_stop": ContentBlockStopEvent,
    "message_delta": MessageDeltaEvent,
    "message_stop": MessageStopEvent,
    "ping": PingEvent,
    "error": ErrorEvent,
}

# Event names that carry no routing information of their own
_GENERIC_EVENT_NAMES = frozenset({"", "message"})


class StreamEventParser:
    """Parses SSE frames into stream events.

    Example:
        >>> parser = StreamEventParser()
        >>> event = parser.parse("ping", '{"type": "ping"}')
        >>> isinstance(event, PingEvent)
        True
    """

    def parse_frame(self, frame: SseFrame) -> StreamEvent | UnhandledEvent:
        """Parse a decoded SSE frame."""
        return self.parse(frame.event, frame.data)

    def parse(self, event_name: str | None, payload: str | bytes) -> StreamEvent | UnhandledEvent:
        """Parse one frame.

        Args:
            event_name: SSE event name; empty or "message" falls back to
                the payload's ``type`` field
            payload: Frame data

        Returns:
            The typed event, or UnhandledEvent for unknown event names

        Raises:
            StreamDecodeError: If the payload is not UTF-8 or not a JSON
                object, misses a required field, or its ``type`` contradicts
                the event name
        """
        name = event_name or ""
        if isinstance(payload, bytes):
            try:
                text = payload.decode("utf-8")
            except UnicodeDecodeError as e:
                raise StreamDecodeError(
                    "Frame payload is not valid UTF-8",
                    event=name or None,
                    raw_payload=payload,
                    cause=e,
                ) from e
        else:
            text = payload

        if name not in _GENERIC_EVENT_NAMES and name not in EVENT_MODELS:
            logger.debug("Unhandled stream event", event=name)
            return UnhandledEvent(event=name, data=text)

        obj = self._load(name, text)
        declared = obj.get("type")

        if name in _GENERIC_EVENT_NAMES:
            if not isinstance(declared, str) or not declared:
                raise StreamDecodeError(
                    "Frame has neither an event name nor a payload type",
                    event=name or None,
                    raw_payload=text,
                )
            name = declared
            if name not in EVENT_MODELS:
                logger.debug("Unhandled stream event", event=name)
                return UnhandledEvent(event=name, data=text)
        elif declared is not None and declared != name:
            raise StreamDecodeError(
                f"Payload type {declared!r} contradicts event name {name!r}",
                event=name,
                raw_payload=text,
            )

        try:
            return EVENT_MODELS[name].model_validate(obj)  # type: ignore[return-value]
        except ValidationError as e:
            raise StreamDecodeError(
                f"Invalid {name} payload: {e.error_count()} validation error(s)",
                event=name,
                raw_payload=text,
                cause=e,
            ) from e

    @staticmethod
    def _load(name: str, text: str) -> dict[str, Any]:
        try:
            obj = json.loads(text)
        except json.JSONDecodeError as e:
            raise StreamDecodeError(
                f"Frame payload is not valid JSON: {e.msg}",
                event=name or None,
                raw_payload=text,
                cause=e,
            ) from e
        if not isinstance(obj, dict):
            raise StreamDecodeError(
                "Frame payload is not a JSON object",
                event=name or None,
                raw_payload=text,
            )
        return obj
