"""
HTTP transport using httpx for async requests.

Provides:
- JSON POST for complete responses, with optional backoff
- Streaming POST for event streams
- Authentication and version headers
- Mapping of httpx failures to TransportError and of error responses
  to ApiError
"""

from __future__ import annotations

import asyncio
import json
from contextlib import asynccontextmanager, suppress
from typing import TYPE_CHECKING, Any

import httpx

from anthropic_messages._version import __version__
from anthropic_messages.errors import ApiError, TransportError
from anthropic_messages.telemetry import get_logger
from anthropic_messages.transport.auth import auth_headers
from anthropic_messages.transport.retry import RetryPolicy

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from anthropic_messages.config import ClientConfig

logger = get_logger("anthropic_messages.transport")

USER_AGENT = f"anthropic-messages-python/{__version__}"


class HttpTransport:
    """HTTP transport for the Messages API.

    Example:
        >>> transport = HttpTransport(config)
        >>> async with transport.stream_post("/v1/messages", payload) as response:
        ...     async for chunk in response.aiter_bytes():
        ...         process(chunk)
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize HTTP transport.

        Args:
            config: Client configuration
            client: Caller-owned httpx client; it is not closed by ``close()``
        """
        self._config = config
        self._client = client
        self._owns_client = client is None
        self._retry = RetryPolicy(config.retry)

    @property
    def config(self) -> ClientConfig:
        return self._config

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(
                    self._config.timeout,
                    connect=self._config.connect_timeout,
                ),
            )
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if this transport created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def build_headers(self, *, streaming: bool = False) -> dict[str, str]:
        """Build request headers.

        Args:
            streaming: Whether the response is an event stream

        Returns:
            Complete headers dictionary
        """
        headers = {
            "content-type": "application/json",
            "accept": "text/event-stream" if streaming else "application/json",
            "user-agent": USER_AGENT,
        }
        headers.update(auth_headers(self._config))
        return headers

    def _url(self, path: str) -> str:
        return f"{self._config.base_url}{path}"

    async def post(self, path: str, payload: dict[str, Any]) -> httpx.Response:
        """Make a POST request and return the successful response.

        Rate-limited and overloaded responses are retried with backoff when
        ``config.retry`` enables it; the server's ``retry-after`` wins over
        the computed delay.

        Args:
            path: Request path (relative to base URL)
            payload: JSON body

        Returns:
            HTTP response with a 2xx status

        Raises:
            TransportError: On network/connection errors
            ApiError: On 4xx/5xx responses, after retries are exhausted
        """
        attempt = 0
        while True:
            try:
                return await self._post_once(path, payload)
            except ApiError as e:
                if not self._retry.should_retry(e, attempt):
                    raise
                delay = self._retry.calculate_delay(attempt, e.retry_after)
                logger.info(
                    "Retrying request",
                    attempt=attempt + 1,
                    max_retries=self._retry.config.max_retries,
                    delay_secs=round(delay, 3),
                    kind=e.kind.value,
                )
                await asyncio.sleep(delay)
                attempt += 1

    async def _post_once(self, path: str, payload: dict[str, Any]) -> httpx.Response:
        url = self._url(path)
        logger.debug("Sending request", method="POST", url=url, streaming=False)

        try:
            response = await self._get_client().post(
                url, json=payload, headers=self.build_headers(streaming=False)
            )
        except httpx.HTTPError as e:
            raise self._transport_error(e, url) from e

        if response.status_code >= 400:
            raise self._api_error(response, response.content)

        logger.debug(
            "Response received",
            status_code=response.status_code,
            request_id=response.headers.get("request-id"),
        )
        return response

    @asynccontextmanager
    async def stream_post(
        self, path: str, payload: dict[str, Any]
    ) -> AsyncIterator[httpx.Response]:
        """Make a streaming POST request.

        The response is released when the context exits, including when the
        consumer stops early.

        Args:
            path: Request path
            payload: JSON body

        Yields:
            HTTP response whose body is the event stream

        Raises:
            TransportError: On network/connection errors, also while the
                body is being read inside the context
            ApiError: On 4xx/5xx responses
        """
        url = self._url(path)
        logger.debug("Sending request", method="POST", url=url, streaming=True)

        try:
            async with self._get_client().stream(
                "POST", url, json=payload, headers=self.build_headers(streaming=True)
            ) as response:
                if response.status_code >= 400:
                    body = await response.aread()
                    raise self._api_error(response, body)

                logger.debug(
                    "Stream opened",
                    status_code=response.status_code,
                    request_id=response.headers.get("request-id"),
                )
                yield response
        except httpx.HTTPError as e:
            raise self._transport_error(e, url) from e

    def _api_error(self, response: httpx.Response, content: bytes) -> ApiError:
        body = None
        with suppress(ValueError):
            parsed = json.loads(content)
            if isinstance(parsed, dict):
                body = parsed

        error = ApiError.from_response(
            status_code=response.status_code,
            body=body,
            headers=dict(response.headers),
        )
        logger.warning(
            "Request failed",
            status_code=response.status_code,
            kind=error.kind.value,
            error_type=error.error_type,
            request_id=error.request_id,
        )
        return error

    def _transport_error(self, error: httpx.HTTPError, url: str) -> TransportError:
        if isinstance(error, httpx.ConnectError):
            message = f"Connection failed: {error}"
        elif isinstance(error, httpx.TimeoutException):
            message = f"Request timed out: {error}"
        else:
            message = f"HTTP error: {error}"
        logger.warning("Transport error", url=url, error=type(error).__name__)
        return TransportError(message, url=url, cause=error)

    async def __aenter__(self) -> HttpTransport:
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()
