"""
Telemetry module for anthropic-messages.

Provides structured logging with request context and secret masking.
"""

from anthropic_messages.telemetry.logger import (
    JsonFormatter,
    LogContext,
    LogLevel,
    MessagesLogger,
    SensitiveDataMasker,
    TextFormatter,
    clear_log_context,
    get_log_context,
    get_logger,
    scoped_log_context,
    set_log_context,
)

__all__ = [
    "JsonFormatter",
    "LogContext",
    "LogLevel",
    "MessagesLogger",
    "SensitiveDataMasker",
    "TextFormatter",
    "clear_log_context",
    "get_log_context",
    "get_logger",
    "scoped_log_context",
    "set_log_context",
]
