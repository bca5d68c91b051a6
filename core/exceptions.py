"""MQTT Topic Explorer — Core Exceptions.

Domain-specific exceptions raised at the edges of the explorer (topic
ingestion, broker connection, configuration). The topic-tree view engine
itself never raises; these are caught by the CLI entry point and turned
into a log line and a non-zero exit status.

Usage:
    from core.exceptions import InvalidTopic

    def ingest(topic: str) -> None:
        if not topic:
            raise InvalidTopic(topic, "topic must not be empty")
"""

from __future__ import annotations

from typing import Any


class ExplorerError(Exception):
    """Base exception for all explorer domain errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for structured logging."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class InvalidTopic(ExplorerError):
    """Raised when a topic cannot enter the topic tree.

    Empty topics and topics with an empty level (leading, trailing or
    doubled separator) are rejected at ingestion.

    Attributes:
        topic: The rejected topic string.
        reason: Why it was rejected.
    """

    def __init__(self, topic: str, reason: str):
        self.topic = topic
        self.reason = reason
        super().__init__(f"Invalid topic '{topic}': {reason}", {"topic": topic, "reason": reason})


class BrokerConnectionError(ExplorerError):
    """Raised when the MQTT broker cannot be reached or refuses the connection.

    Attributes:
        host: Broker host.
        port: Broker port.
        original_error: The underlying error message or reason code.
    """

    def __init__(self, host: str, port: int, original_error: str):
        self.host = host
        self.port = port
        self.original_error = original_error
        super().__init__(
            f"Broker {host}:{port} connection failed: {original_error}",
            {"host": host, "port": port, "error": original_error},
        )


class ConfigurationError(ExplorerError):
    """Raised when user-supplied configuration cannot be applied.

    Examples:
        - Unknown broker URL scheme
        - Client certificate given without its key
    """

    def __init__(self, setting: str, message: str):
        self.setting = setting
        super().__init__(f"Configuration error on '{setting}': {message}", {"setting": setting})
