"""MQTT Topic Explorer — Configuration Management.

Strictly-typed configuration system using pydantic-settings.
All settings are loaded from environment variables (or ``.env``) with
validation; command line options are applied on top with
``model_copy(update=...)``.

Secrets use SecretStr to prevent accidental logging.
"""

from __future__ import annotations

import secrets
from functools import lru_cache
from typing import Annotated, Any, Literal
from urllib.parse import urlsplit

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from core.exceptions import ConfigurationError

Transport = Literal["tcp", "ssl", "ws", "wss"]

# Broker URL scheme -> (transport, default port)
BROKER_SCHEMES: dict[str, tuple[Transport, int]] = {
    "mqtt": ("tcp", 1883),
    "tcp": ("tcp", 1883),
    "mqtts": ("ssl", 8883),
    "ssl": ("ssl", 8883),
    "ws": ("ws", 80),
    "wss": ("wss", 443),
}


def _default_client_id() -> str:
    return f"mqtt-explorer-{secrets.token_hex(4)}"


class MQTTSettings(BaseSettings):
    """MQTT broker connection configuration.

    Attributes:
        broker_host: Broker hostname.
        broker_port: Broker port.
        transport: tcp, ssl (TLS over TCP), ws or wss (TLS over WebSocket).
        ws_path: Request path for WebSocket transports.
        username: Optional username.
        password: Optional password (SecretStr).
        client_id: MQTT client identifier; random when not configured.
        keepalive: Keep-alive interval in seconds.
        insecure: Skip broker certificate verification.
        ca_cert_path: CA bundle for broker certificate verification.
        client_cert_path: Client certificate for mutual TLS.
        client_key_path: Client private key for mutual TLS.
        subscribe_topics: Topic filters for the interactive view.
        connect_timeout: Seconds to wait for CONNACK.
    """

    model_config = SettingsConfigDict(
        env_prefix="MQTT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    broker_host: str = Field(default="localhost", description="Broker hostname")
    broker_port: int = Field(default=1883, ge=1, le=65535, description="Broker port")
    transport: Transport = Field(default="tcp", description="Connection transport")
    ws_path: str = Field(default="/", description="WebSocket request path")
    username: str | None = Field(default=None, description="Broker username")
    password: SecretStr | None = Field(default=None, description="Broker password")
    client_id: str = Field(default_factory=_default_client_id, description="MQTT client id")
    keepalive: int = Field(default=60, ge=1, le=65535, description="Keep-alive (seconds)")
    insecure: bool = Field(default=False, description="Skip TLS certificate verification")
    ca_cert_path: str | None = Field(default=None, description="CA certificate bundle")
    client_cert_path: str | None = Field(default=None, description="Client certificate (PEM)")
    client_key_path: str | None = Field(default=None, description="Client private key (PEM)")
    subscribe_topics: Annotated[list[str], NoDecode] = Field(default=["#"], description="Topic filters to subscribe")
    connect_timeout: float = Field(default=5.0, gt=0, description="CONNACK timeout (seconds)")

    @field_validator("subscribe_topics", mode="before")
    @classmethod
    def parse_subscribe_topics(cls, v: str | list[str]) -> list[str]:
        """Parse topic filters from comma-separated string or list."""
        if isinstance(v, str):
            return [topic.strip() for topic in v.split(",") if topic.strip()]
        return v

    @model_validator(mode="after")
    def validate_client_certificate(self) -> "MQTTSettings":
        """Client certificate and key are only usable together."""
        if bool(self.client_cert_path) != bool(self.client_key_path):
            raise ValueError("client_cert_path and client_key_path must be set together")
        return self

    @property
    def tls_enabled(self) -> bool:
        return self.transport in ("ssl", "wss")

    @property
    def url_safe(self) -> str:
        """Broker URL safe for logging and the UI header (no credentials)."""
        scheme = {"tcp": "mqtt", "ssl": "mqtts", "ws": "ws", "wss": "wss"}[self.transport]
        path = self.ws_path if self.transport in ("ws", "wss") else ""
        return f"{scheme}://{self.broker_host}:{self.broker_port}{path}"


class ExplorerSettings(BaseSettings):
    """Interactive explorer configuration.

    Attributes:
        refresh_interval_ms: Redraw interval of the terminal UI.
        payload_history_size: Messages kept per topic.
    """

    model_config = SettingsConfigDict(
        env_prefix="EXPLORER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    refresh_interval_ms: int = Field(default=250, ge=20, le=10000, description="UI redraw interval (ms)")
    payload_history_size: int = Field(default=50, ge=1, le=10000, description="Messages kept per topic")


class LogSettings(BaseSettings):
    """Logging configuration.

    Attributes:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        format: Log output format (json or text).
        output: Log output destination. The interactive UI always logs to file.
        file_path: Log file path (when output includes 'file').
    """

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="WARNING",
        description="Logging level",
    )
    format: Literal["json", "text"] = Field(
        default="text",
        description="Log format",
    )
    output: Literal["stderr", "file", "both"] = Field(
        default="stderr",
        description="Log output destination",
    )
    file_path: str = Field(
        default="mqtt-explorer.log",
        description="Log file path",
    )


class Settings(BaseSettings):
    """Root application settings aggregating all configuration sections.

    Use get_settings() to obtain a cached singleton instance.

    Example:
        >>> settings = get_settings()
        >>> print(settings.mqtt.url_safe)
        mqtt://localhost:1883
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = Field(default="mqtt-explorer", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )
    debug: bool = Field(default=False, description="Debug mode")

    mqtt: MQTTSettings = Field(default_factory=MQTTSettings)
    explorer: ExplorerSettings = Field(default_factory=ExplorerSettings)
    log: LogSettings = Field(default_factory=LogSettings)

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """Enforce quiet settings in production."""
        if self.environment == "production":
            if self.debug:
                raise ValueError("Debug mode must be disabled in production")
            if self.log.level == "DEBUG":
                raise ValueError("DEBUG log level is not allowed in production")
        return self


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings singleton.

    Raises:
        ValidationError: If settings are invalid.
    """
    return Settings()


def parse_broker_url(url: str) -> dict[str, Any]:
    """Turn a broker URL into MQTTSettings overrides.

    'mqtts://broker:8884' -> {'transport': 'ssl', 'broker_host': 'broker', 'broker_port': 8884}

    Raises:
        ConfigurationError: On unknown scheme or missing host.
    """
    if "://" not in url:
        url = f"mqtt://{url}"
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    if scheme not in BROKER_SCHEMES:
        raise ConfigurationError("broker", f"unsupported scheme '{scheme}'")
    if not parts.hostname:
        raise ConfigurationError("broker", f"no host in '{url}'")
    try:
        port = parts.port
    except ValueError as e:
        raise ConfigurationError("broker", str(e)) from e

    transport, default_port = BROKER_SCHEMES[scheme]
    overrides: dict[str, Any] = {
        "transport": transport,
        "broker_host": parts.hostname,
        "broker_port": port or default_port,
    }
    if transport in ("ws", "wss"):
        overrides["ws_path"] = parts.path or "/"
    return overrides
