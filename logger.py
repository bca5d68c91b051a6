"""MQTT Topic Explorer — Structured Logging System.

Provides structured JSON logging or colored text output on top of the
stdlib logging module. Secrets (broker passwords, keys, tokens) are
redacted before rendering.

The curses UI owns the terminal while it runs, so the interactive view
logs to a file only; the line-oriented subcommands log to stderr and
keep stdout for message output.

Usage:
    from logger import get_logger, configure_logging

    # Initialize at startup
    configure_logging(environment="production")

    # Get a logger
    logger = get_logger(__name__)
    logger.info("Subscribed", topic="sensors/#")
"""

from __future__ import annotations

import logging
import re
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

SERVICE_NAME = "mqtt-explorer"

# =============================================================================
# Secret Filtering
# =============================================================================

# Patterns that indicate sensitive field names
SENSITIVE_FIELD_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"password", re.IGNORECASE),
    re.compile(r"passwd", re.IGNORECASE),
    re.compile(r"secret", re.IGNORECASE),
    re.compile(r"token", re.IGNORECASE),
    re.compile(r"private[_-]?key", re.IGNORECASE),
    re.compile(r"credential", re.IGNORECASE),
)

# Fields that should never be logged (exact match)
BLOCKLIST_FIELDS: frozenset[str] = frozenset({
    "password",
    "passwd",
    "secret",
    "token",
    "private_key",
    "client_key",
})

REDACTED = "[REDACTED]"


def _is_sensitive_field(field_name: str) -> bool:
    """Check if a field name indicates sensitive data."""
    if field_name.lower() in BLOCKLIST_FIELDS:
        return True
    return any(pattern.search(field_name) for pattern in SENSITIVE_FIELD_PATTERNS)


def _sanitize_value(value: Any, field_name: str = "") -> Any:
    """Recursively sanitize a value, redacting sensitive data."""
    if _is_sensitive_field(field_name):
        return REDACTED

    if isinstance(value, dict):
        return {k: _sanitize_value(v, k) for k, v in value.items()}

    if isinstance(value, (list, tuple)):
        return type(value)(_sanitize_value(item, field_name) for item in value)

    return value


# =============================================================================
# Structlog Processors
# =============================================================================

def sanitize_sensitive_data(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Remove secrets from log entries."""
    return {k: _sanitize_value(v, k) for k, v in event_dict.items()}


def add_service_context(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Add service metadata for log aggregation."""
    event_dict["service"] = SERVICE_NAME
    return event_dict


# =============================================================================
# Logging Configuration
# =============================================================================

def configure_logging(
    environment: str = "development",
    log_level: str = "INFO",
    json_format: bool | None = None,
    output: str = "stderr",
    file_path: str | None = None,
) -> None:
    """Configure structured logging for the application.

    Args:
        environment: Deployment environment (development, staging, production).
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_format: Force JSON output. If None, auto-detect based on environment.
        output: 'stderr', 'file' or 'both'.
        file_path: Log file used when output includes 'file'.
    """
    use_json = json_format if json_format is not None else (environment != "development")
    # ANSI colors only on an interactive stderr
    use_colors = output == "stderr" and sys.stderr.isatty()

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        add_service_context,
        sanitize_sensitive_data,
    ]

    if use_json:
        shared_processors.extend([
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ])
    else:
        shared_processors.append(structlog.dev.ConsoleRenderer(colors=use_colors))

    structlog.configure(
        processors=shared_processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handlers: list[logging.Handler] = []
    if output in ("stderr", "both"):
        handlers.append(logging.StreamHandler(sys.stderr))
    if output in ("file", "both"):
        handlers.append(logging.FileHandler(file_path or f"{SERVICE_NAME}.log", encoding="utf-8"))

    logging.basicConfig(
        format="%(message)s",
        handlers=handlers,
        level=getattr(logging, log_level.upper()),
        force=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a configured structlog logger.

    Args:
        name: Logger name (typically __name__).

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Connected", broker="mqtt://localhost:1883")
    """
    return structlog.stdlib.get_logger(name)
