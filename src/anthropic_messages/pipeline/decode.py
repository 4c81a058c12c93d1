"""
Server-Sent Events decoder.

Parses the event stream format used by the Messages API:
```
event: message_start
data: {"type": "message_start", ...}

event: content_block_delta
data: {"type": "content_block_delta", ...}
```

Network chunks may split lines, frames and even multi-byte UTF-8
characters anywhere; the decoder buffers until a frame is complete.
"""

from __future__ import annotations

import codecs
from dataclasses import dataclass
from typing import TYPE_CHECKING

from anthropic_messages.errors import StreamDecodeError
from anthropic_messages.pipeline.base import Decoder

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


@dataclass(frozen=True)
class SseFrame:
    """One dispatched SSE frame.

    Attributes:
        event: Value of the ``event:`` field, "" when absent
        data: ``data:`` lines joined by "\\n"
        id: Last seen ``id:`` value, if any
    """

    event: str
    data: str
    id: str | None = None


class SSEDecoder(Decoder):
    """Incremental Server-Sent Events decoder.

    Usable directly through ``feed``/``finish`` or as a pipeline stage
    through ``decode``. Handles LF, CRLF and CR line endings, comment lines
    and multi-line data fields.
    """

    def __init__(self) -> None:
        """Initialize SSE decoder."""
        self.reset()

    def reset(self) -> None:
        """Drop all buffered state."""
        self._utf8 = codecs.getincrementaldecoder("utf-8")()
        self._buffer = ""
        self._event = ""
        self._data: list[str] = []
        self._last_id: str | None = None
        self._started = False

    def feed(self, chunk: bytes) -> list[SseFrame]:
        """Consume one network chunk.

        Args:
            chunk: Raw bytes, split at any position

        Returns:
            Frames completed by this chunk, possibly none

        Raises:
            StreamDecodeError: If the bytes are not valid UTF-8
        """
        try:
            text = self._utf8.decode(chunk)
        except UnicodeDecodeError as e:
            raise StreamDecodeError(
                "Event stream is not valid UTF-8", raw_payload=bytes(chunk), cause=e
            ) from e

        if not self._started and text:
            self._started = True
            if text.startswith("\ufeff"):
                text = text[1:]

        self._buffer += text
        return self._drain(final=False)

    def finish(self) -> list[SseFrame]:
        """Flush at end of stream; an unterminated last frame is dispatched."""
        try:
            self._buffer += self._utf8.decode(b"", final=True)
        except UnicodeDecodeError as e:
            raise StreamDecodeError(
                "Event stream ended inside a UTF-8 sequence", cause=e
            ) from e

        frames = self._drain(final=True)
        if self._buffer:
            self._process_line(self._buffer, frames)
            self._buffer = ""
        self._dispatch(frames)
        return frames

    async def decode(self, byte_stream: AsyncIterator[bytes]) -> AsyncIterator[SseFrame]:
        """Decode an SSE byte stream into frames.

        Args:
            byte_stream: Async iterator of raw bytes

        Yields:
            Complete frames
        """
        self.reset()
        async for chunk in byte_stream:
            for frame in self.feed(chunk):
                yield frame
        for frame in self.finish():
            yield frame

    def _drain(self, final: bool) -> list[SseFrame]:
        frames: list[SseFrame] = []
        buffer = self._buffer
        start = 0
        while True:
            cr = buffer.find("\r", start)
            lf = buffer.find("\n", start)
            if cr == -1 and lf == -1:
                break
            if cr != -1 and (lf == -1 or cr < lf):
                # A trailing CR may be the first half of CRLF
                if cr == len(buffer) - 1 and not final:
                    break
                end = cr
                next_start = cr + 2 if buffer.startswith("\r\n", cr) else cr + 1
            else:
                end = lf
                next_start = lf + 1
            self._process_line(buffer[start:end], frames)
            start = next_start
        self._buffer = buffer[start:]
        return frames

    def _process_line(self, line: str, frames: list[SseFrame]) -> None:
        if not line:
            self._dispatch(frames)
            return
        if line.startswith(":"):
            return

        name, sep, value = line.partition(":")
        if sep and value.startswith(" "):
            value = value[1:]

        if name == "event":
            self._event = value
        elif name == "data":
            self._data.append(value)
        elif name == "id":
            if "\0" not in value:
                self._last_id = value
        # "retry" and unknown fields are ignored

    def _dispatch(self, frames: list[SseFrame]) -> None:
        # An empty data buffer is not dispatched, even after a bare "data:" line
        data = "\n".join(self._data)
        if data:
            frames.append(SseFrame(event=self._event, data=data, id=self._last_id))
        self._event = ""
        self._data = []
