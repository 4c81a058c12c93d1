"""
Message and content-block types for the Messages API.

Content blocks form a closed tagged union keyed on the wire ``type`` field:
- text: Plain text content
- image: Base64 encoded image
- tool_use: Tool invocation requested by the model
- tool_result: Result of a tool execution, sent back by the caller
- thinking / redacted_thinking: Extended thinking output
"""

from __future__ import annotations

import base64
import mimetypes
from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Role(str, Enum):
    """Speaker of a message."""

    USER = "user"
    ASSISTANT = "assistant"


class ImageSource(BaseModel):
    """Base64 image payload."""

    model_config = ConfigDict(frozen=True)

    type: Literal["base64"] = "base64"
    media_type: str = Field(description="MIME type of the image")
    data: str = Field(description="Base64 encoded image data")


class TextBlock(BaseModel):
    """Plain text content."""

    model_config = ConfigDict(frozen=True)

    type: Literal["text"] = "text"
    text: str


class ImageBlock(BaseModel):
    """Image content."""

    model_config = ConfigDict(frozen=True)

    type: Literal["image"] = "image"
    source: ImageSource


class ToolUseBlock(BaseModel):
    """Tool invocation requested by the model."""

    model_config = ConfigDict(frozen=True)

    type: Literal["tool_use"] = "tool_use"
    id: str = Field(description="Tool use identifier, echoed by the tool result")
    name: str = Field(description="Name of the tool to invoke")
    input: dict[str, Any] = Field(default_factory=dict, description="Tool arguments")


class ToolResultBlock(BaseModel):
    """Result of a tool execution."""

    model_config = ConfigDict(frozen=True)

    type: Literal["tool_result"] = "tool_result"
    tool_use_id: str = Field(description="ID of the tool_use block being answered")
    content: str | list[TextBlock | ImageBlock] = Field(
        default="", description="Result content"
    )
    is_error: bool | None = Field(default=None, description="Whether the tool failed")


class ThinkingBlock(BaseModel):
    """Extended thinking output."""

    model_config = ConfigDict(frozen=True)

    type: Literal["thinking"] = "thinking"
    thinking: str
    signature: str | None = None


class RedactedThinkingBlock(BaseModel):
    """Thinking output withheld by the API, kept opaque."""

    model_config = ConfigDict(frozen=True)

    type: Literal["redacted_thinking"] = "redacted_thinking"
    data: str


ContentBlock = Annotated[
    Union[
        TextBlock,
        ImageBlock,
        ToolUseBlock,
        ToolResultBlock,
        ThinkingBlock,
        RedactedThinkingBlock,
    ],
    Field(discriminator="type"),
]


def text_block(text: str) -> TextBlock:
    """Create a text content block."""
    return TextBlock(text=text)


def tool_use_block(id: str, name: str, input: dict[str, Any] | None = None) -> ToolUseBlock:
    """Create a tool use content block.

    Args:
        id: Unique identifier for this tool invocation
        name: Tool name to invoke
        input: Tool input parameters

    Returns:
        ToolUseBlock
    """
    return ToolUseBlock(id=id, name=name, input=input or {})


def tool_result_block(
    tool_use_id: str,
    content: str | list[TextBlock | ImageBlock],
    is_error: bool = False,
) -> ToolResultBlock:
    """Create a tool result content block.

    Args:
        tool_use_id: The ID of the corresponding tool_use
        content: Result content
        is_error: Whether the tool execution failed

    Returns:
        ToolResultBlock
    """
    return ToolResultBlock(
        tool_use_id=tool_use_id,
        content=content,
        is_error=is_error if is_error else None,
    )


def image_block(data: str, media_type: str) -> ImageBlock:
    """Create an image block from base64 data."""
    return ImageBlock(source=ImageSource(media_type=media_type, data=data))


def image_block_from_file(path: str | Path) -> ImageBlock:
    """Create an image block from a local file.

    Args:
        path: Path to the image file

    Returns:
        ImageBlock with base64 encoded image data
    """
    file_path = Path(path)
    encoded = base64.standard_b64encode(file_path.read_bytes()).decode("ascii")
    return image_block(encoded, _guess_media_type(file_path))


class Message(BaseModel):
    """One conversational turn.

    Examples:
        >>> msg = Message.user("Hello!")
        >>> msg = Message.with_content(
        ...     Role.USER,
        ...     [text_block("Describe this:"), image_block_from_file("photo.png")],
        ... )
    """

    model_config = ConfigDict(frozen=True)

    role: Role = Field(description="Message role")
    content: tuple[ContentBlock, ...] = Field(description="Ordered content blocks")

    @field_validator("content", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        # The API accepts a bare string as shorthand for one text block
        if isinstance(value, str):
            return [{"type": "text", "text": value}]
        return value

    @classmethod
    def user(cls, content: str | list[ContentBlock]) -> Message:
        """Create a user message from text or content blocks."""
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(cls, content: str | list[ContentBlock]) -> Message:
        """Create an assistant message from text or content blocks."""
        return cls(role=Role.ASSISTANT, content=content)

    @classmethod
    def with_content(cls, role: Role, content: list[ContentBlock]) -> Message:
        """Create a message with multiple content blocks."""
        return cls(role=role, content=content)

    def get_text_content(self) -> str:
        """Concatenate the text of all text blocks, in order."""
        return "".join(block.text for block in self.content if isinstance(block, TextBlock))

    def tool_uses(self) -> list[ToolUseBlock]:
        """Return the tool_use blocks of this message."""
        return [block for block in self.content if isinstance(block, ToolUseBlock)]

    def to_wire(self) -> dict[str, Any]:
        """Encode to the JSON shape sent on the wire."""
        return self.model_dump(mode="json", exclude_none=True)


def _guess_media_type(path: Path) -> str:
    """Guess the image MIME type from file extension."""
    extension_map = {
        ".png": "image/png",
        ".jpg": "image/jpeg",
        ".jpeg": "image/jpeg",
        ".gif": "image/gif",
        ".webp": "image/webp",
    }

    suffix = path.suffix.lower()
    if suffix in extension_map:
        return extension_map[suffix]

    mime_type, _ = mimetypes.guess_type(str(path))
    return mime_type or "application/octet-stream"
