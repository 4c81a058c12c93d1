"""
Streaming events of the Messages API.

One model per SSE event name. Field names match the wire protocol exactly;
unknown additional fields are accepted and kept, so newer API versions do
not break decoding.

Example:
    >>> async for event in stream:
    ...     match event:
    ...         case ContentBlockDeltaEvent(delta=TextDelta(text=text)):
    ...             print(text, end="")
    ...         case MessageStopEvent():
    ...             print()
"""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from anthropic_messages.errors import ApiError, ErrorKind, classify_error_type
from anthropic_messages.types.message import ContentBlock
from anthropic_messages.types.response import CacheCreation, MessagesResponse, StopReason

_EVENT_CONFIG = ConfigDict(frozen=True, extra="allow")


class TextDelta(BaseModel):
    """Text fragment for a text block."""

    model_config = _EVENT_CONFIG

    type: Literal["text_delta"] = "text_delta"
    text: str


class InputJsonDelta(BaseModel):
    """Raw JSON fragment of a tool_use block's input."""

    model_config = _EVENT_CONFIG

    type: Literal["input_json_delta"] = "input_json_delta"
    partial_json: str


class ThinkingDelta(BaseModel):
    """Fragment of a thinking block."""

    model_config = _EVENT_CONFIG

    type: Literal["thinking_delta"] = "thinking_delta"
    thinking: str


class SignatureDelta(BaseModel):
    """Signature for a thinking block, sent just before it stops."""

    model_config = _EVENT_CONFIG

    type: Literal["signature_delta"] = "signature_delta"
    signature: str


ContentBlockDelta = Annotated[
    Union[TextDelta, InputJsonDelta, ThinkingDelta, SignatureDelta],
    Field(discriminator="type"),
]


class MessageStartEvent(BaseModel):
    """First event of a stream; carries the message metadata and empty content."""

    model_config = _EVENT_CONFIG

    type: Literal["message_start"] = "message_start"
    message: MessagesResponse


class ContentBlockStartEvent(BaseModel):
    """Opens the content block at ``index``."""

    model_config = _EVENT_CONFIG

    type: Literal["content_block_start"] = "content_block_start"
    index: int = Field(ge=0)
    content_block: ContentBlock


class ContentBlockDeltaEvent(BaseModel):
    """Partial content for the open block at ``index``."""

    model_config = _EVENT_CONFIG

    type: Literal["content_block_delta"] = "content_block_delta"
    index: int = Field(ge=0)
    delta: ContentBlockDelta


class ContentBlockStopEvent(BaseModel):
    """Closes the content block at ``index``."""

    model_config = _EVENT_CONFIG

    type: Literal["content_block_stop"] = "content_block_stop"
    index: int = Field(ge=0)


class MessageDelta(BaseModel):
    """Top-level message fields changed by a message_delta event."""

    model_config = _EVENT_CONFIG

    stop_reason: StopReason | str | None = Field(default=None, union_mode="left_to_right")
    stop_sequence: str | None = None


class DeltaUsage(BaseModel):
    """Usage counters carried by message_delta; only present fields apply."""

    model_config = _EVENT_CONFIG

    input_tokens: int | None = None
    output_tokens: int | None = None
    cache_creation_input_tokens: int | None = None
    cache_read_input_tokens: int | None = None
    cache_creation: CacheCreation | None = None


class MessageDeltaEvent(BaseModel):
    """Updates stop reason and usage near the end of the stream."""

    model_config = _EVENT_CONFIG

    type: Literal["message_delta"] = "message_delta"
    delta: MessageDelta
    usage: DeltaUsage | None = None


class MessageStopEvent(BaseModel):
    """Last event of a successful stream."""

    model_config = _EVENT_CONFIG

    type: Literal["message_stop"] = "message_stop"


class PingEvent(BaseModel):
    """Keepalive."""

    model_config = _EVENT_CONFIG

    type: Literal["ping"] = "ping"


class ErrorDetail(BaseModel):
    """Error object carried by an error event."""

    model_config = _EVENT_CONFIG

    type: str
    message: str


class ErrorEvent(BaseModel):
    """Error reported by the API in the middle of a stream."""

    model_config = _EVENT_CONFIG

    type: Literal["error"] = "error"
    error: ErrorDetail

    @property
    def kind(self) -> ErrorKind:
        """ErrorKind for the carried error type."""
        return classify_error_type(self.error.type) or ErrorKind.SERVER_ERROR

    def to_exception(self) -> ApiError:
        """Build the ApiError this event represents."""
        return ApiError.from_stream_error(self.error.type, self.error.message)


StreamEvent = Union[
    MessageStartEvent,
    ContentBlockStartEvent,
    ContentBlockDeltaEvent,
    ContentBlockStopEvent,
    MessageDeltaEvent,
    MessageStopEvent,
    PingEvent,
    ErrorEvent,
]


class UnhandledEvent(BaseModel):
    """A frame whose event name this library does not know.

    Returned instead of being dropped so callers can inspect or log it.
    """

    model_config = ConfigDict(frozen=True)

    event: str = Field(description="SSE event name")
    data: str = Field(description="Raw frame payload")
