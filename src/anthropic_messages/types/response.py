"""
Response types for the Messages API.

A MessagesResponse is what a non-streaming call returns and what the
MessageAccumulator assembles from a stream.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from anthropic_messages.types.message import ContentBlock, Message, Role, TextBlock, ToolUseBlock


class StopReason(str, Enum):
    """Why the model stopped generating."""

    END_TURN = "end_turn"
    MAX_TOKENS = "max_tokens"
    STOP_SEQUENCE = "stop_sequence"
    TOOL_USE = "tool_use"
    PAUSE_TURN = "pause_turn"
    REFUSAL = "refusal"


class CacheCreation(BaseModel):
    """Cache write tokens split by cache lifetime."""

    model_config = ConfigDict(frozen=True, extra="allow")

    ephemeral_5m_input_tokens: int = 0
    ephemeral_1h_input_tokens: int = 0


class Usage(BaseModel):
    """Token usage counters.

    Counters added by newer API versions are kept as extra fields.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    input_tokens: int = 0
    output_tokens: int = 0
    cache_creation_input_tokens: int | None = None
    cache_read_input_tokens: int | None = None
    cache_creation: CacheCreation | None = None
    service_tier: str | None = None

    def merged(self, update: BaseModel) -> Usage:
        """Return a copy with the fields explicitly set on ``update`` applied.

        Used for ``message_delta`` usage, which only carries the counters that
        changed.
        """
        changes: dict[str, Any] = {
            name: getattr(update, name)
            for name in update.model_fields_set
            if name in Usage.model_fields and getattr(update, name) is not None
        }
        return self.model_copy(update=changes) if changes else self

    @property
    def total_tokens(self) -> int:
        """Input plus output tokens."""
        return self.input_tokens + self.output_tokens


class MessagesResponse(BaseModel):
    """A complete assistant message.

    Attributes:
        id: Message identifier
        role: Always assistant for API responses
        content: Ordered content blocks
        model: Model that generated the response
        stop_reason: Why generation stopped; unknown values are kept as strings
        stop_sequence: The stop sequence that was hit, if any
        usage: Token usage
    """

    model_config = ConfigDict(frozen=True)

    id: str = ""
    type: Literal["message"] = "message"
    role: Role = Role.ASSISTANT
    content: tuple[ContentBlock, ...] = ()
    model: str = ""
    stop_reason: StopReason | str | None = Field(default=None, union_mode="left_to_right")
    stop_sequence: str | None = None
    usage: Usage = Field(default_factory=Usage)

    def to_message(self) -> Message:
        """Convert to a Message, e.g. to append to the conversation."""
        return Message(role=self.role, content=self.content)

    @property
    def text(self) -> str:
        """Concatenated text of all text blocks."""
        return "".join(block.text for block in self.content if isinstance(block, TextBlock))

    @property
    def tool_uses(self) -> list[ToolUseBlock]:
        """Tool use blocks requested by the model."""
        return [block for block in self.content if isinstance(block, ToolUseBlock)]

    @property
    def has_tool_uses(self) -> bool:
        return any(isinstance(block, ToolUseBlock) for block in self.content)
