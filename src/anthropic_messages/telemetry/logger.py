"""
Structured logging for anthropic-messages.

Provides context-aware logging with masking of API keys.
"""

from __future__ import annotations

import json
import logging
import re
import sys
import time
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar

if TYPE_CHECKING:
    from collections.abc import Iterator

# Context variable for request-scoped logging context
_log_context: ContextVar[dict[str, Any] | None] = ContextVar("log_context", default=None)

_REDACTED = "***REDACTED***"


class LogLevel(str, Enum):
    """Log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"

    def to_logging_level(self) -> int:
        """Convert to standard logging level."""
        return getattr(logging, self.value)


@dataclass
class LogContext:
    """Request-scoped logging context.

    Attributes:
        request_id: Request identifier returned by the API
        model: Model name of the current request
        streaming: Whether the current request is streamed
        extra: Additional context fields
    """

    request_id: str | None = None
    model: str | None = None
    streaming: bool | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result: dict[str, Any] = {}
        if self.request_id:
            result["request_id"] = self.request_id
        if self.model:
            result["model"] = self.model
        if self.streaming is not None:
            result["streaming"] = self.streaming
        result.update(self.extra)
        return result

    def with_extra(self, **kwargs: Any) -> LogContext:
        """Create new context with additional fields."""
        return LogContext(
            request_id=self.request_id,
            model=self.model,
            streaming=self.streaming,
            extra={**self.extra, **kwargs},
        )


def get_log_context() -> LogContext:
    """Get current logging context."""
    data = _log_context.get()
    if not data:
        return LogContext()
    known = {k: data[k] for k in ("request_id", "model", "streaming") if k in data}
    extra = {k: v for k, v in data.items() if k not in known}
    return LogContext(**known, extra=extra)


def set_log_context(context: LogContext) -> None:
    """Set logging context for current async context."""
    _log_context.set(context.to_dict())


def clear_log_context() -> None:
    """Clear logging context."""
    _log_context.set(None)


@contextmanager
def scoped_log_context(context: LogContext) -> Iterator[LogContext]:
    """Set logging context for the duration of a block, then restore it."""
    token = _log_context.set(context.to_dict())
    try:
        yield context
    finally:
        _log_context.reset(token)


class SensitiveDataMasker:
    """Masks API keys and credential headers in log output."""

    DEFAULT_PATTERNS: ClassVar[list[tuple[str, str]]] = [
        (r"sk-ant-[A-Za-z0-9_\-]{8,}", "sk-ant-" + _REDACTED),
        (r"(x-api-key[\"']?\s*[:=]\s*[\"']?)([^\"'\s,}]+)", r"\1" + _REDACTED),
        (r"(api[_-]?key[\"']?\s*[:=]\s*[\"']?)([^\"'\s,}]+)", r"\1" + _REDACTED),
        (r"(ANTHROPIC_API_KEY=)([^\s]+)", r"\1" + _REDACTED),
    ]

    # Substrings of dict keys whose values are always redacted
    SENSITIVE_KEYS: ClassVar[tuple[str, ...]] = (
        "api_key",
        "api-key",
        "authorization",
        "secret",
        "password",
    )

    def __init__(self, patterns: list[tuple[str, str]] | None = None) -> None:
        """Initialize masker with patterns.

        Args:
            patterns: List of (pattern, replacement) tuples
        """
        self._patterns = [
            (re.compile(p, re.IGNORECASE), r) for p, r in (patterns or self.DEFAULT_PATTERNS)
        ]

    def mask(self, text: str) -> str:
        """Mask sensitive data in text.

        Args:
            text: Text to mask

        Returns:
            Masked text
        """
        result = text
        for pattern, replacement in self._patterns:
            result = pattern.sub(replacement, result)
        return result

    def mask_dict(self, data: dict[str, Any]) -> dict[str, Any]:
        """Mask sensitive data in a dictionary, recursively.

        Args:
            data: Dictionary to mask

        Returns:
            Masked copy
        """
        result: dict[str, Any] = {}
        for key, value in data.items():
            key_lower = str(key).lower()
            if any(sensitive in key_lower for sensitive in self.SENSITIVE_KEYS):
                result[key] = _REDACTED
            elif isinstance(value, str):
                result[key] = self.mask(value)
            elif isinstance(value, dict):
                result[key] = self.mask_dict(value)
            elif isinstance(value, list):
                result[key] = [self.mask_dict(v) if isinstance(v, dict) else v for v in value]
            else:
                result[key] = value
        return result


class JsonFormatter(logging.Formatter):
    """JSON log formatter."""

    def __init__(
        self,
        masker: SensitiveDataMasker | None = None,
        include_timestamp: bool = True,
    ) -> None:
        """Initialize formatter.

        Args:
            masker: Sensitive data masker
            include_timestamp: Whether to include timestamp
        """
        super().__init__()
        self._masker = masker or SensitiveDataMasker()
        self._include_timestamp = include_timestamp

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data: dict[str, Any] = {
            "level": record.levelname,
            "logger": record.name,
            "message": self._masker.mask(record.getMessage()),
        }

        if self._include_timestamp:
            log_data["timestamp"] = (
                time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime(record.created))
                + f".{int(record.msecs):03d}Z"
            )

        if context_dict := get_log_context().to_dict():
            log_data["context"] = context_dict

        if hasattr(record, "extra_fields"):
            log_data.update(self._masker.mask_dict(record.extra_fields))

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable text formatter."""

    def __init__(
        self,
        masker: SensitiveDataMasker | None = None,
        include_context: bool = True,
    ) -> None:
        """Initialize formatter.

        Args:
            masker: Sensitive data masker
            include_context: Whether to include context
        """
        super().__init__(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        self._masker = masker or SensitiveDataMasker()
        self._include_context = include_context

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as text."""
        original_msg = record.msg
        record.msg = self._masker.mask(str(record.msg))
        try:
            result = super().format(record)
        finally:
            record.msg = original_msg

        fields = self._masker.mask_dict(getattr(record, "extra_fields", {}))
        if fields:
            result = f"{result} | " + " ".join(f"{k}={v}" for k, v in fields.items())

        if self._include_context and (context_dict := get_log_context().to_dict()):
            result = f"{result} | " + " ".join(f"{k}={v}" for k, v in context_dict.items())

        return result


class MessagesLogger:
    """Logger with structured keyword fields.

    Until ``configure`` is called, records propagate to the standard
    logging hierarchy like any library logger.

    Example:
        >>> MessagesLogger.configure(level=LogLevel.DEBUG, format="text")
        >>> logger = get_logger("anthropic_messages.client")
        >>> logger.info("Request started", model="claude-sonnet-4-5", streaming=True)
    """

    _loggers: ClassVar[dict[str, logging.Logger]] = {}
    _level: ClassVar[LogLevel | None] = None
    _handler: ClassVar[logging.Handler | None] = None

    @classmethod
    def configure(
        cls,
        level: LogLevel = LogLevel.INFO,
        format: str = "json",
        stream: Any = None,
        masker: SensitiveDataMasker | None = None,
    ) -> None:
        """Install a handler on every logger of this package.

        Args:
            level: Log level
            format: Output format ('json' or 'text')
            stream: Output stream (default: stderr)
            masker: Sensitive data masker
        """
        cls._level = level

        formatter: logging.Formatter
        if format == "json":
            formatter = JsonFormatter(masker=masker)
        else:
            formatter = TextFormatter(masker=masker)

        cls._handler = logging.StreamHandler(stream or sys.stderr)
        cls._handler.setFormatter(formatter)
        cls._handler.setLevel(level.to_logging_level())

        for logger in cls._loggers.values():
            cls._attach(logger)

    @classmethod
    def reset(cls) -> None:
        """Remove the configured handler and restore propagation."""
        for logger in cls._loggers.values():
            if cls._handler is not None:
                logger.removeHandler(cls._handler)
            logger.propagate = True
            logger.setLevel(logging.NOTSET)
        cls._handler = None
        cls._level = None

    @classmethod
    def _attach(cls, logger: logging.Logger) -> None:
        if cls._handler is None or cls._level is None:
            return
        logger.handlers.clear()
        logger.addHandler(cls._handler)
        logger.setLevel(cls._level.to_logging_level())
        logger.propagate = False

    @classmethod
    def get_logger(cls, name: str) -> MessagesLogger:
        """Get or create a logger.

        Args:
            name: Logger name

        Returns:
            Logger instance
        """
        if name not in cls._loggers:
            logger = logging.getLogger(name)
            cls._attach(logger)
            cls._loggers[name] = logger

        return cls(cls._loggers[name])

    def __init__(self, logger: logging.Logger) -> None:
        """Initialize with underlying logger."""
        self._logger = logger

    @property
    def name(self) -> str:
        return self._logger.name

    def is_enabled_for(self, level: LogLevel) -> bool:
        """Whether a record at ``level`` would be emitted."""
        return self._logger.isEnabledFor(level.to_logging_level())

    def _log(self, level: int, msg: str, exc_info: bool = False, **kwargs: Any) -> None:
        extra = {"extra_fields": kwargs} if kwargs else {}
        self._logger.log(level, msg, exc_info=exc_info, extra=extra)

    def debug(self, msg: str, **kwargs: Any) -> None:
        """Log debug message."""
        self._log(logging.DEBUG, msg, **kwargs)

    def info(self, msg: str, **kwargs: Any) -> None:
        """Log info message."""
        self._log(logging.INFO, msg, **kwargs)

    def warning(self, msg: str, **kwargs: Any) -> None:
        """Log warning message."""
        self._log(logging.WARNING, msg, **kwargs)

    def error(self, msg: str, exc_info: bool = False, **kwargs: Any) -> None:
        """Log error message."""
        self._log(logging.ERROR, msg, exc_info=exc_info, **kwargs)


def get_logger(name: str) -> MessagesLogger:
    """Get a logger instance.

    Args:
        name: Logger name

    Returns:
        Logger instance
    """
    return MessagesLogger.get_logger(name)
