"""Core AnthropicClient implementation."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from anthropic_messages.client.builder import ClientBuilder, MessagesRequestBuilder
from anthropic_messages.client.stream import MessageStream
from anthropic_messages.config import MESSAGES_PATH, ClientConfig
from anthropic_messages.errors import InvalidRequestError, StreamDecodeError
from anthropic_messages.pipeline import FinalizePolicy
from anthropic_messages.telemetry import LogContext, get_logger, scoped_log_context
from anthropic_messages.transport import HttpTransport
from anthropic_messages.types.response import MessagesResponse

if TYPE_CHECKING:
    from collections.abc import Mapping

    import httpx

    from anthropic_messages.types.message import Message
    from anthropic_messages.types.request import MessagesRequest

logger = get_logger("anthropic_messages.client")


class AnthropicClient:
    """Async client for the Messages API.

    Example:
        >>> async with AnthropicClient.from_env() as client:
        ...     request = (
        ...         AnthropicClient.request("claude-sonnet-4-5", [Message.user("Hello!")], 1024)
        ...         .build()
        ...     )
        ...     response = await client.messages(request)
        ...     print(response.text)

        >>> # Streaming
        >>> async with client.messages_stream(request) as stream:
        ...     async for text in stream.text_stream():
        ...         print(text, end="")
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
        transport: HttpTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Connection settings
            http_client: Caller-owned httpx client to send requests with
            transport: Pre-built transport; overrides ``http_client``
        """
        self._config = config
        self._transport = transport or HttpTransport(config, client=http_client)

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        api_key: str | None = None,
    ) -> AnthropicClient:
        """Create a client configured from environment variables.

        Args:
            environ: Environment to read; defaults to ``os.environ``
            api_key: Explicit API key, takes precedence over the environment

        Returns:
            Configured AnthropicClient

        Raises:
            ConfigurationError: If no API key can be resolved
        """
        return cls(ClientConfig.from_env(environ, api_key=api_key))

    @classmethod
    def builder(cls) -> ClientBuilder:
        """Get a builder for advanced configuration.

        Returns:
            ClientBuilder instance
        """
        return ClientBuilder()

    @staticmethod
    def request(model: str, messages: list[Message], max_tokens: int) -> MessagesRequestBuilder:
        """Start building a request.

        Returns:
            MessagesRequestBuilder seeded with the required fields
        """
        return MessagesRequestBuilder(model, messages, max_tokens)

    @property
    def config(self) -> ClientConfig:
        return self._config

    async def messages(self, request: MessagesRequest) -> MessagesResponse:
        """Send a request and wait for the complete response.

        Args:
            request: Built request; must not ask for streaming

        Returns:
            The assistant's MessagesResponse

        Raises:
            InvalidRequestError: If the request has ``stream=True``
            ApiError: If the API returns an error
            TransportError: On network failures
        """
        if request.is_streaming:
            raise InvalidRequestError(
                "messages() does not accept stream=True requests; use messages_stream()",
                field="stream",
            )

        with scoped_log_context(LogContext(model=request.model, streaming=False)):
            response = await self._transport.post(MESSAGES_PATH, request.to_payload())
            try:
                result = MessagesResponse.model_validate_json(response.content)
            except ValidationError as e:
                raise StreamDecodeError(
                    "Response body is not a valid message",
                    raw_payload=response.text,
                    cause=e,
                ) from e

            logger.debug(
                "Message received",
                stop_reason=result.stop_reason,
                input_tokens=result.usage.input_tokens,
                output_tokens=result.usage.output_tokens,
            )
            return result

    def messages_stream(
        self,
        request: MessagesRequest,
        *,
        policy: FinalizePolicy = FinalizePolicy.ABORT,
    ) -> MessageStream:
        """Start a streamed request.

        Nothing is sent until the returned stream is first iterated.

        Args:
            request: Built request; ``stream`` is forced to True on a copy
            policy: Handling of tool input that fails to parse

        Returns:
            MessageStream yielding typed events
        """
        streaming = request if request.stream else request.model_copy(update={"stream": True})
        return MessageStream(self._transport, streaming, policy=policy)

    async def close(self) -> None:
        """Close the client and release resources."""
        await self._transport.close()

    async def __aenter__(self) -> AnthropicClient:
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()
