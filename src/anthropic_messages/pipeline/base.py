"""
Base abstractions for the pipeline layer.

A streamed response flows through two stages:
1. A decoder (bytes -> SSE frames)
2. A parser (frame -> typed event)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from anthropic_messages.pipeline.decode import SseFrame
    from anthropic_messages.pipeline.parse import StreamEventParser
    from anthropic_messages.types.events import StreamEvent, UnhandledEvent


class Decoder(ABC):
    """Abstract decoder that converts a byte stream to frames.

    Decoders handle the transport-level framing of streaming responses.
    They know nothing about event payloads.
    """

    @abstractmethod
    def decode(self, byte_stream: AsyncIterator[bytes]) -> AsyncIterator[SseFrame]:
        """Decode a byte stream into frames.

        Args:
            byte_stream: Async iterator of raw bytes, split arbitrarily

        Yields:
            Complete frames in arrival order
        """
        ...


class Pipeline:
    """Complete pipeline for processing a streamed response.

    Example:
        >>> pipeline = Pipeline()
        >>> async for event in pipeline.process(response.aiter_bytes()):
        ...     print(event.type)
    """

    def __init__(
        self,
        decoder: Decoder | None = None,
        parser: StreamEventParser | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            decoder: Byte decoder; defaults to SSEDecoder
            parser: Frame parser; defaults to StreamEventParser
        """
        from anthropic_messages.pipeline.decode import SSEDecoder
        from anthropic_messages.pipeline.parse import StreamEventParser

        self._decoder = decoder or SSEDecoder()
        self._parser = parser or StreamEventParser()

    @property
    def parser(self) -> StreamEventParser:
        return self._parser

    async def process(
        self, byte_stream: AsyncIterator[bytes]
    ) -> AsyncIterator[StreamEvent | UnhandledEvent]:
        """Process a byte stream through both stages.

        The first StreamDecodeError propagates and ends the pipeline; frames
        after a malformed one are never parsed.

        Args:
            byte_stream: Async iterator of raw bytes

        Yields:
            Typed stream events
        """
        async for frame in self._decoder.decode(byte_stream):
            yield self._parser.parse_frame(frame)

    async def decode_only(self, byte_stream: AsyncIterator[bytes]) -> AsyncIterator[SseFrame]:
        """Run only the decoder stage; useful for debugging."""
        async for frame in self._decoder.decode(byte_stream):
            yield frame
