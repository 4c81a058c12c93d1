"""
Pipeline layer - Streaming response processing.

The pipeline turns raw bytes into typed events:
- SSEDecoder: bytes -> SseFrame
- StreamEventParser: SseFrame -> StreamEvent
- MessageAccumulator: events -> MessagesResponse
"""

from anthropic_messages.pipeline.accumulate import (
    AccumulatorState,
    FinalizePolicy,
    MessageAccumulator,
)
from anthropic_messages.pipeline.base import Decoder, Pipeline
from anthropic_messages.pipeline.decode import SSEDecoder, SseFrame
from anthropic_messages.pipeline.parse import EVENT_MODELS, StreamEventParser

__all__ = [
    "EVENT_MODELS",
    "AccumulatorState",
    "Decoder",
    "FinalizePolicy",
    "MessageAccumulator",
    "Pipeline",
    "SSEDecoder",
    "SseFrame",
    "StreamEventParser",
]
