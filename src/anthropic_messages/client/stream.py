"""
Cancellable message stream.

MessageStream is the object returned by ``AnthropicClient.messages_stream``.
It opens the HTTP stream lazily, pulls one frame per iteration step, feeds
the MessageAccumulator and yields the typed event.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from anthropic_messages.config import MESSAGES_PATH
from anthropic_messages.errors import IncompleteStreamError
from anthropic_messages.pipeline import FinalizePolicy, MessageAccumulator, Pipeline
from anthropic_messages.telemetry import get_logger
from anthropic_messages.types.events import ContentBlockDeltaEvent, TextDelta

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from contextlib import AbstractAsyncContextManager

    import httpx

    from anthropic_messages.transport import HttpTransport
    from anthropic_messages.types.events import StreamEvent, UnhandledEvent
    from anthropic_messages.types.request import MessagesRequest
    from anthropic_messages.types.response import MessagesResponse

logger = get_logger("anthropic_messages.client.stream")


class MessageStream:
    """Lazy, single-pass stream of events for one request.

    Leaving the ``async with`` block, ``aclose()`` or ``cancel()`` releases
    the HTTP response immediately, even mid-stream.

    Example:
        >>> async with client.messages_stream(request) as stream:
        ...     async for text in stream.text_stream():
        ...         print(text, end="", flush=True)
        ...     message = await stream.final_message()
    """

    def __init__(
        self,
        transport: HttpTransport,
        request: MessagesRequest,
        *,
        policy: FinalizePolicy = FinalizePolicy.ABORT,
        pipeline: Pipeline | None = None,
    ) -> None:
        """Initialize the stream (internal use).

        Use ``AnthropicClient.messages_stream()`` for public construction.
        """
        self._transport = transport
        self._request = request
        self._pipeline = pipeline or Pipeline()
        self._accumulator = MessageAccumulator(policy)

        self._context: AbstractAsyncContextManager[httpx.Response] | None = None
        self._response: httpx.Response | None = None
        self._events: AsyncIterator[StreamEvent | UnhandledEvent] | None = None

        self._finished = False
        self._cancelled = False
        self._error: BaseException | None = None

    @property
    def request(self) -> MessagesRequest:
        return self._request

    @property
    def accumulator(self) -> MessageAccumulator:
        return self._accumulator

    @property
    def request_id(self) -> str | None:
        """Value of the ``request-id`` response header, once opened."""
        if self._response is None:
            return None
        return self._response.headers.get("request-id")

    @property
    def completed(self) -> bool:
        """Whether ``message_stop`` was received."""
        return self._accumulator.is_complete

    @property
    def cancelled(self) -> bool:
        """Whether the stream was closed before completion."""
        return self._cancelled

    async def _open(self) -> None:
        context = self._transport.stream_post(MESSAGES_PATH, self._request.to_payload())
        response = await context.__aenter__()
        self._context = context
        self._response = response
        self._events = self._pipeline.process(response.aiter_bytes())
        logger.debug("Message stream opened", model=self._request.model, request_id=self.request_id)

    async def _release(self, error: BaseException | None = None) -> None:
        """Close the event pipeline and the HTTP response.

        When ``error`` is given it is passed to the transport context, which
        may replace it with a TransportError.
        """
        events, context = self._events, self._context
        self._events = None
        self._context = None

        if events is not None:
            aclose = getattr(events, "aclose", None)
            if aclose is not None:
                await aclose()
        if context is not None:
            if error is None:
                await context.__aexit__(None, None, None)
            else:
                await context.__aexit__(type(error), error, error.__traceback__)

    def __aiter__(self) -> MessageStream:
        return self

    async def __anext__(self) -> StreamEvent | UnhandledEvent:
        if self._finished:
            raise StopAsyncIteration

        try:
            if self._events is None:
                await self._open()
            events: AsyncIterator[StreamEvent | UnhandledEvent] = self._events  # type: ignore[assignment]
            try:
                event = await events.__anext__()
            except StopAsyncIteration:
                event = None
            if event is None:
                await self._finish_at_eof()
                raise StopAsyncIteration
            self._accumulator.feed(event)
        except StopAsyncIteration:
            raise
        except Exception as e:
            self._finished = True
            self._error = e
            await self._release(e)
            raise
        except BaseException:
            # Task cancellation while waiting for a frame
            await self.aclose()
            raise

        return event

    async def _finish_at_eof(self) -> None:
        self._finished = True
        await self._release()
        if not self._accumulator.is_complete:
            raise IncompleteStreamError(
                f"Stream closed before message_stop (state: {self._accumulator.state.value})"
            )
        logger.debug("Message stream completed", request_id=self.request_id)

    async def text_stream(self) -> AsyncIterator[str]:
        """Iterate over text deltas only.

        Yields:
            Text fragments in arrival order
        """
        async for event in self:
            if isinstance(event, ContentBlockDeltaEvent) and isinstance(event.delta, TextDelta):
                yield event.delta.text

    async def final_message(self) -> MessagesResponse:
        """Consume the rest of the stream and return the assembled message.

        Returns:
            The complete MessagesResponse

        Raises:
            IncompleteStreamError: If the stream was cancelled, failed or
                ended before ``message_stop``
        """
        if self._accumulator.message is not None:
            return self._accumulator.message

        if self._cancelled:
            raise IncompleteStreamError("Stream was cancelled before completion", cancelled=True)
        if self._error is not None:
            raise IncompleteStreamError(f"Stream failed: {self._error}") from self._error

        async for _ in self:
            pass

        message = self._accumulator.message
        if message is None:
            raise IncompleteStreamError("Stream ended before message_stop")
        return message

    def snapshot(self) -> MessagesResponse:
        """Partially assembled message at this point of the stream."""
        return self._accumulator.snapshot()

    async def aclose(self) -> None:
        """Stop the stream and release the HTTP response.

        Closing a stream that has not completed marks it cancelled; no
        final message will be available.
        """
        if not self._finished:
            self._finished = True
            if not self._accumulator.is_complete:
                self._cancelled = True
                logger.debug(
                    "Message stream cancelled",
                    request_id=self.request_id,
                    state=self._accumulator.state.value,
                )
        await self._release()

    async def cancel(self) -> None:
        """Cancel the stream; same as ``aclose()``."""
        await self.aclose()

    async def __aenter__(self) -> MessageStream:
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.aclose()
