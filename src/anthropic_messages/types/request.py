"""
Request model for the Messages API.

A MessagesRequest is immutable. Construct it through
``MessagesRequestBuilder``, which validates every field before the request
can exist; the model itself only enforces types.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from anthropic_messages.types.message import Message, TextBlock
from anthropic_messages.types.tool import ToolChoice, ToolDefinition


class RequestMetadata(BaseModel):
    """Request metadata."""

    model_config = ConfigDict(frozen=True)

    user_id: str | None = Field(default=None, description="Opaque end-user identifier")


class ThinkingConfig(BaseModel):
    """Extended thinking configuration."""

    model_config = ConfigDict(frozen=True)

    type: Literal["enabled", "disabled"] = "enabled"
    budget_tokens: int | None = Field(default=None, description="Tokens reserved for thinking")

    @classmethod
    def enabled(cls, budget_tokens: int) -> ThinkingConfig:
        return cls(type="enabled", budget_tokens=budget_tokens)

    @classmethod
    def disabled(cls) -> ThinkingConfig:
        return cls(type="disabled")


class MessagesRequest(BaseModel):
    """A complete, validated Messages API request.

    Example:
        >>> request = (
        ...     MessagesRequestBuilder("claude-sonnet-4-5", [Message.user("Hi")], 256)
        ...     .temperature(0.7)
        ...     .build()
        ... )
        >>> payload = request.to_payload()
    """

    model_config = ConfigDict(frozen=True)

    model: str = Field(description="Model identifier")
    messages: tuple[Message, ...] = Field(description="Conversation turns, oldest first")
    max_tokens: int = Field(description="Maximum tokens to generate")
    system: str | tuple[TextBlock, ...] | None = Field(default=None, description="System prompt")
    metadata: RequestMetadata | None = None
    stop_sequences: tuple[str, ...] | None = None
    temperature: float | None = None
    top_p: float | None = None
    top_k: int | None = None
    stream: bool | None = None
    tools: tuple[ToolDefinition, ...] | None = None
    tool_choice: ToolChoice | None = None
    thinking: ThinkingConfig | None = None

    @property
    def is_streaming(self) -> bool:
        """Whether the request asks for a streamed response."""
        return bool(self.stream)

    def to_payload(self) -> dict[str, Any]:
        """Encode to the JSON request body; unset optional fields are omitted."""
        return self.model_dump(mode="json", exclude_none=True)
