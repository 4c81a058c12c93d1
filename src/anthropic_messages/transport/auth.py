"""
API key resolution and authentication headers.

Resolves the API key from, in order:
1. Explicit value
2. The ANTHROPIC_API_KEY environment variable
3. System keyring (optional, ``pip install anthropic-messages[keyring]``)
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from anthropic_messages._features import HAS_KEYRING

if TYPE_CHECKING:
    from collections.abc import Mapping

    from anthropic_messages.config import ClientConfig

API_KEY_ENV = "ANTHROPIC_API_KEY"
KEYRING_SERVICE = "anthropic-messages"
KEYRING_USERNAME = "api_key"


def resolve_api_key(
    explicit_key: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> str | None:
    """Resolve the API key.

    Args:
        explicit_key: Explicitly provided API key
        environ: Environment to read; defaults to ``os.environ``

    Returns:
        Resolved API key or None if not found
    """
    if explicit_key:
        return explicit_key

    env = os.environ if environ is None else environ
    key = env.get(API_KEY_ENV)
    if key:
        return key

    return _try_keyring()


def _try_keyring() -> str | None:
    """Try to get the API key from the system keyring.

    Returns:
        API key from keyring or None
    """
    if not HAS_KEYRING:
        return None

    import keyring

    try:
        return keyring.get_password(KEYRING_SERVICE, KEYRING_USERNAME) or None
    except Exception:
        # Keyring backend errors are common in containers and CI
        return None


def auth_headers(config: ClientConfig) -> dict[str, str]:
    """Headers that authenticate and version every request.

    Args:
        config: Client configuration

    Returns:
        Header dictionary with ``x-api-key``, ``anthropic-version`` and,
        when beta features are enabled, ``anthropic-beta``
    """
    headers = {
        "x-api-key": config.api_key,
        "anthropic-version": config.api_version,
    }
    if config.beta:
        headers["anthropic-beta"] = ",".join(config.beta)
    return headers
