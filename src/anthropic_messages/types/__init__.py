"""
Types layer - Data model of the Messages API.

This module provides the core data structures:
- Message and ContentBlock for conversation handling
- ToolDefinition and ToolChoice for tool use
- MessagesRequest and MessagesResponse for calls
- Stream events for incremental responses
"""

from anthropic_messages.types.events import (
    ContentBlockDelta,
    ContentBlockDeltaEvent,
    ContentBlockStartEvent,
    ContentBlockStopEvent,
    DeltaUsage,
    ErrorDetail,
    ErrorEvent,
    InputJsonDelta,
    MessageDelta,
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
from anthropic_messages.types.message import (
    ContentBlock,
    ImageBlock,
    ImageSource,
    Message,
    RedactedThinkingBlock,
    Role,
    TextBlock,
    ThinkingBlock,
    ToolResultBlock,
    ToolUseBlock,
    image_block,
    image_block_from_file,
    text_block,
    tool_result_block,
    tool_use_block,
)
from anthropic_messages.types.request import MessagesRequest, RequestMetadata, ThinkingConfig
from anthropic_messages.types.response import CacheCreation, MessagesResponse, StopReason, Usage
from anthropic_messages.types.tool import ToolChoice, ToolDefinition

__all__ = [
    # Message types
    "ContentBlock",
    "ImageBlock",
    "ImageSource",
    "Message",
    "RedactedThinkingBlock",
    "Role",
    "TextBlock",
    "ThinkingBlock",
    "ToolResultBlock",
    "ToolUseBlock",
    "image_block",
    "image_block_from_file",
    "text_block",
    "tool_result_block",
    "tool_use_block",
    # Tool types
    "ToolChoice",
    "ToolDefinition",
    # Request / response
    "MessagesRequest",
    "MessagesResponse",
    "RequestMetadata",
    "StopReason",
    "ThinkingConfig",
    "Usage",
    "CacheCreation",
    # Event types
    "ContentBlockDelta",
    "ContentBlockDeltaEvent",
    "ContentBlockStartEvent",
    "ContentBlockStopEvent",
    "DeltaUsage",
    "ErrorDetail",
    "ErrorEvent",
    "InputJsonDelta",
    "MessageDelta",
    "MessageDeltaEvent",
    "MessageStartEvent",
    "MessageStopEvent",
    "PingEvent",
    "SignatureDelta",
    "StreamEvent",
    "TextDelta",
    "ThinkingDelta",
    "UnhandledEvent",
]
