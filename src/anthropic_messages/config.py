"""
Client configuration.

ClientConfig is built once, explicitly or from the environment, and handed
to the transport. Nothing else in the library reads environment variables.

Environment variables read by ``ClientConfig.from_env``:
- ANTHROPIC_API_KEY: API key (falls back to the system keyring)
- ANTHROPIC_API_BASE: Base URL
- ANTHROPIC_API_VERSION: Value of the anthropic-version header
- ANTHROPIC_BETA: Comma-separated beta feature tags
- ANTHROPIC_TIMEOUT_SECS: Request timeout in seconds
"""

from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from anthropic_messages.errors import ConfigurationError
from anthropic_messages.transport.auth import API_KEY_ENV, resolve_api_key
from anthropic_messages.transport.retry import RetryConfig

if TYPE_CHECKING:
    from collections.abc import Mapping

DEFAULT_BASE_URL = "https://api.anthropic.com"
DEFAULT_API_VERSION = "2023-06-01"
DEFAULT_TIMEOUT = 60.0
DEFAULT_CONNECT_TIMEOUT = 10.0

MESSAGES_PATH = "/v1/messages"


def parse_beta(value: str | None) -> tuple[str, ...]:
    """Split a comma-separated beta tag list, dropping blanks."""
    if not value:
        return ()
    return tuple(tag.strip() for tag in value.split(",") if tag.strip())


@dataclass(frozen=True)
class ClientConfig:
    """Connection settings for AnthropicClient.

    Attributes:
        api_key: API key sent as ``x-api-key``
        base_url: API base URL, without trailing slash
        api_version: ``anthropic-version`` header value
        beta: Beta feature tags sent as ``anthropic-beta``
        timeout: Request timeout in seconds
        connect_timeout: Connection timeout in seconds
        retry: Backoff for non-streaming requests; disabled by default
    """

    api_key: str = field(repr=False)
    base_url: str = DEFAULT_BASE_URL
    api_version: str = DEFAULT_API_VERSION
    beta: tuple[str, ...] = ()
    timeout: float = DEFAULT_TIMEOUT
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    retry: RetryConfig = field(default_factory=RetryConfig.no_retry)

    def __post_init__(self) -> None:
        if not self.api_key or not self.api_key.strip():
            raise ConfigurationError("API key must not be empty", variable=API_KEY_ENV)
        if not self.base_url:
            raise ConfigurationError("Base URL must not be empty")
        if self.timeout <= 0 or self.connect_timeout <= 0:
            raise ConfigurationError("Timeouts must be positive")
        if self.retry.max_retries < 0 or self.retry.min_delay_ms < 0:
            raise ConfigurationError("Retry settings must not be negative")
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))
        object.__setattr__(self, "beta", tuple(self.beta))

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        api_key: str | None = None,
    ) -> ClientConfig:
        """Build a configuration from environment variables.

        Args:
            environ: Environment to read; defaults to ``os.environ``
            api_key: Explicit key, takes precedence over the environment

        Returns:
            ClientConfig

        Raises:
            ConfigurationError: If no API key can be resolved
        """
        env = os.environ if environ is None else environ

        key = resolve_api_key(api_key, env)
        if not key:
            raise ConfigurationError(
                f"No API key found; set {API_KEY_ENV} or pass api_key",
                variable=API_KEY_ENV,
            )

        kwargs: dict[str, Any] = {"api_key": key}
        if base_url := env.get("ANTHROPIC_API_BASE"):
            kwargs["base_url"] = base_url
        if api_version := env.get("ANTHROPIC_API_VERSION"):
            kwargs["api_version"] = api_version
        if beta := parse_beta(env.get("ANTHROPIC_BETA")):
            kwargs["beta"] = beta
        if timeout := _parse_timeout(env.get("ANTHROPIC_TIMEOUT_SECS")):
            kwargs["timeout"] = timeout

        return cls(**kwargs)

    def with_overrides(self, **changes: Any) -> ClientConfig:
        """Return a copy with the given fields replaced."""
        return dataclasses.replace(self, **changes)


def _parse_timeout(value: str | None) -> float | None:
    # Unparsable or non-positive values are ignored
    if not value:
        return None
    try:
        timeout = float(value)
    except ValueError:
        return None
    return timeout if timeout > 0 else None
