#!/usr/bin/env python3
"""
Structured Logging Module using structlog

Provides structured logging for the cache with:
- Correlation ID propagation via context variables
- Stage tagging (CACHE.L1, CACHE.L2, CB, ...) for execution flow
- JSON formatting for log aggregation, console rendering for development
- Redaction of credentials and e-mail addresses that leak into cache keys
"""

import logging
import re
import sys
from contextvars import ContextVar
from datetime import datetime, timezone

import structlog
from structlog.types import EventDict, WrappedLogger

from layercache.core.config.constants import LOG_KEY_MAX_LENGTH
from layercache.core.config.settings import get_settings

correlation_id_ctx: ContextVar[str | None] = ContextVar("correlation_id", default=None)

_EMAIL_RE = re.compile(r"\b[\w.-]+@[\w.-]+\.\w+\b")
_REDIS_URL_PASSWORD_RE = re.compile(r"(redis(?:s)?://[^:/@]*:)[^@]+@")


def add_correlation_id(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Add correlation ID to log event from context variable.

    STAGE-L.1: Correlation ID injection
    """
    correlation_id = correlation_id_ctx.get()
    if correlation_id:
        event_dict["correlation_id"] = correlation_id
    return event_dict


def add_timestamp(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Add ISO timestamp to log event.

    STAGE-L.2: Timestamp injection
    """
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
    return event_dict


def redact_sensitive(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Redact e-mail addresses and Redis URL passwords from messages and key fields.

    STAGE-L.3: Redaction

    Cache keys are frequently built from user identifiers (``user:a@b.com``),
    so the ``key``/``cache_key`` fields are scrubbed as well as the message.
    """
    for field_name in ("event", "key", "cache_key", "pattern"):
        value = event_dict.get(field_name)
        if isinstance(value, str):
            value = _EMAIL_RE.sub("[EMAIL]", value)
            value = _REDIS_URL_PASSWORD_RE.sub(r"\1[REDACTED]@", value)
            event_dict[field_name] = value
    return event_dict


def add_log_level_name(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Uppercase the log level name.

    STAGE-L.4: Log level injection
    """
    if "level" in event_dict:
        event_dict["level"] = event_dict["level"].upper()
    return event_dict


def setup_logging(log_level: str | None = None, log_format: str | None = None) -> None:
    """
    Setup structured logging with structlog.

    STAGE-L: Logging initialization

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Log format ('json' or 'console')
    """
    settings = get_settings()

    log_level = log_level or settings.logging.LOG_LEVEL
    log_format = log_format or settings.logging.LOG_FORMAT

    logging.basicConfig(
        format="%(message)s", stream=sys.stdout, level=getattr(logging, log_level.upper())
    )

    if log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            add_correlation_id,
            add_timestamp,
            structlog.stdlib.add_log_level,
            add_log_level_name,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            redact_sensitive,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Usage:
        logger = get_logger(__name__)
        logger.info("message", key="value", stage="CACHE.L1")
    """
    return structlog.get_logger(name)


def set_correlation_id(correlation_id: str) -> None:
    """Bind a correlation ID to the current context."""
    correlation_id_ctx.set(correlation_id)


def get_correlation_id() -> str | None:
    """Return the correlation ID bound to the current context."""
    return correlation_id_ctx.get()


def clear_correlation_id() -> None:
    """Clear the correlation ID from the current context."""
    correlation_id_ctx.set(None)


def truncate_key(key: str, limit: int = LOG_KEY_MAX_LENGTH) -> str:
    """Shorten a cache key for log output."""
    if len(key) <= limit:
        return key
    return key[: limit - 3] + "..."


def log_stage(
    logger: structlog.stdlib.BoundLogger, stage: str, message: str, level: str = "info", **kwargs
) -> None:
    """
    Log a message with stage information.

    Args:
        logger: Logger instance
        stage: Stage identifier (e.g., "CACHE.L1", "CB")
        message: Log message
        level: Log level (debug, info, warning, error, critical)
        **kwargs: Additional fields to log

    Usage:
        log_stage(logger, "CACHE.L1", "Local cache hit", cache_key="user:42")
    """
    log_func = getattr(logger, level.lower())
    log_func(message, stage=str(getattr(stage, "value", stage)), **kwargs)
