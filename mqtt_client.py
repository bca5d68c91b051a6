#!/usr/bin/env python3
"""
MQTT connection used by every explorer command.
Uses paho-mqtt (MQTT v5, callback API v2) with config from config.py mqtt group.
Thread-safe: uses loop_start() for the background network thread; message
callbacks run on that thread.
Reconnects are handled by paho's network loop; subscriptions are renewed
in on_connect so they survive a broker restart.
"""

import logging
import ssl
import threading
from collections.abc import Callable, Iterable
from typing import Any

import paho.mqtt.client as mqtt

from config import MQTTSettings
from core.exceptions import BrokerConnectionError
from logger import get_logger

logger = get_logger("mqtt_client")
_paho_logger = logging.getLogger("paho")

MessageHandler = Callable[[mqtt.MQTTMessage], None]


def _reason_value(reason_code: Any) -> int:
    return getattr(reason_code, "value", reason_code) if reason_code is not None else 0


def build_tls_context(cfg: MQTTSettings) -> ssl.SSLContext:
    """TLS context for ssl/wss transports; insecure disables all verification."""
    context = ssl.create_default_context(cafile=cfg.ca_cert_path)
    if cfg.client_cert_path:
        context.load_cert_chain(certfile=cfg.client_cert_path, keyfile=cfg.client_key_path)
    if cfg.insecure:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


class MQTTConnection:
    """
    Broker connection with CONNACK wait and sticky subscriptions.
    connect/subscribe/publish/disconnect are thread-safe.
    """

    def __init__(self, cfg: MQTTSettings, on_message: MessageHandler | None = None) -> None:
        self._cfg = cfg
        self._on_message_handler = on_message
        self._client: mqtt.Client | None = None
        self._connected = False
        self._connack = threading.Event()
        self._connack_rc = 0
        self._lock = threading.Lock()
        self._subscriptions: dict[str, int] = {}
        self._loop_started = False

    @property
    def is_connected(self) -> bool:
        with self._lock:
            return self._connected

    @property
    def client(self) -> mqtt.Client:
        if self._client is None:
            raise RuntimeError("MQTTConnection.connect() has not been called")
        return self._client

    def set_message_handler(self, handler: MessageHandler | None) -> None:
        self._on_message_handler = handler

    def _on_connect(self, client: mqtt.Client, userdata: Any, flags: Any, reason_code: Any, properties: Any = None) -> None:
        rc = _reason_value(reason_code)
        self._connack_rc = rc
        if rc == 0:
            with self._lock:
                self._connected = True
                subscriptions = list(self._subscriptions.items())
            logger.info(
                "MQTT CONNACK",
                mqtt_event="CONNACK",
                broker=self._cfg.url_safe,
                client_id=self._cfg.client_id,
                session_present=getattr(flags, "session_present", None),
            )
            if subscriptions:
                client.subscribe(subscriptions)
        else:
            with self._lock:
                self._connected = False
            logger.warning(
                "MQTT CONNACK failed",
                mqtt_event="CONNACK",
                broker=self._cfg.url_safe,
                reason_code=str(reason_code),
            )
        self._connack.set()

    def _on_disconnect(self, client: mqtt.Client, userdata: Any, disconnect_flags: Any, reason_code: Any = None, properties: Any = None) -> None:
        with self._lock:
            self._connected = False
        logger.info(
            "MQTT DISCONNECT",
            mqtt_event="DISCONNECT",
            broker=self._cfg.url_safe,
            reason_code=str(reason_code),
        )

    def _on_message(self, client: mqtt.Client, userdata: Any, message: mqtt.MQTTMessage) -> None:
        handler = self._on_message_handler
        if handler is None:
            return
        try:
            handler(message)
        except Exception:
            # Handler errors must not reach paho's network thread
            logger.exception("Message handler failed", topic=message.topic)

    def _build_client(self) -> mqtt.Client:
        cfg = self._cfg
        client = mqtt.Client(
            mqtt.CallbackAPIVersion.VERSION2,
            client_id=cfg.client_id,
            protocol=mqtt.MQTTv5,
            transport="websockets" if cfg.transport in ("ws", "wss") else "tcp",
        )
        client.on_connect = self._on_connect
        client.on_disconnect = self._on_disconnect
        client.on_message = self._on_message
        client.enable_logger(_paho_logger)
        client.max_inflight_messages_set(100)

        if cfg.transport in ("ws", "wss"):
            client.ws_set_options(path=cfg.ws_path)

        if cfg.username:
            password = cfg.password.get_secret_value() if cfg.password else None
            client.username_pw_set(cfg.username, password)

        if cfg.tls_enabled:
            client.tls_set_context(build_tls_context(cfg))
            if cfg.insecure:
                client.tls_insecure_set(True)
        return client

    def connect(self) -> None:
        """Connect and wait for CONNACK.

        Raises:
            BrokerConnectionError: Unreachable broker, refused connection or CONNACK timeout.
        """
        cfg = self._cfg
        self._connack.clear()
        self._client = self._build_client()

        try:
            self._client.connect(cfg.broker_host, cfg.broker_port, keepalive=cfg.keepalive)
        except (OSError, ValueError) as e:
            raise BrokerConnectionError(cfg.broker_host, cfg.broker_port, str(e)) from e

        self._client.loop_start()
        self._loop_started = True

        if not self._connack.wait(cfg.connect_timeout):
            self.disconnect()
            raise BrokerConnectionError(cfg.broker_host, cfg.broker_port, "CONNACK timeout")
        if not self.is_connected:
            rc = self._connack_rc
            self.disconnect()
            raise BrokerConnectionError(cfg.broker_host, cfg.broker_port, f"refused (reason code {rc})")

    def subscribe(self, topics: Iterable[str], qos: int = 1) -> None:
        """Subscribe now and again after every reconnect."""
        new = [(topic, qos) for topic in topics]
        with self._lock:
            self._subscriptions.update(new)
        if new:
            self.client.subscribe(new)
            logger.info("Subscribed", topics=[t for t, _ in new], qos=qos)

    def publish(self, topic: str, payload: bytes | str, qos: int = 1, retain: bool = False) -> mqtt.MQTTMessageInfo:
        info = self.client.publish(topic, payload, qos=qos, retain=retain)
        logger.debug("MQTT PUBLISH", mqtt_event="PUBLISH", topic=topic, mid=info.mid, retain=retain)
        return info

    def disconnect(self) -> None:
        """Clean shutdown: stop loop, disconnect."""
        if self._client is None:
            return
        try:
            self._client.disconnect()
        except Exception as e:
            logger.debug("MQTT disconnect failed", error=str(e))
        if self._loop_started:
            self._client.loop_stop()
            self._loop_started = False
        with self._lock:
            self._connected = False
