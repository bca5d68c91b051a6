"""``log`` command: print every incoming message as one line until Ctrl+C."""

from __future__ import annotations

import sys
import threading
from datetime import datetime, timezone

from config import Settings
from core.payload import format_payload, payload_size_label
from mqtt_client import MQTTConnection

RETAINED_MARKER = "RETAINED"


def format_message(topic: str, payload: bytes, qos: int, retain: bool, verbose: bool = False,
                   received_at: datetime | None = None) -> str:
    """'RETAINED sensors/temp QoS:1 21.5' (marker column blank for live messages)."""
    marker = RETAINED_MARKER if retain else " " * len(RETAINED_MARKER)
    line = f"{marker} {topic} QoS:{qos} {format_payload(payload)}"
    if not verbose:
        return line
    ts = (received_at or datetime.now(timezone.utc)).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"
    return f"[{ts}] {marker} {topic} QoS:{qos} Payload({payload_size_label(len(payload))}): {format_payload(payload)}"


def _wait_for_interrupt() -> None:
    threading.Event().wait()


def run(settings: Settings, topics: list[str], verbose: bool = False) -> int:
    def on_message(message) -> None:
        print(format_message(message.topic, message.payload, message.qos, bool(message.retain), verbose), flush=True)

    connection = MQTTConnection(settings.mqtt, on_message=on_message)
    connection.connect()
    try:
        connection.subscribe(topics)
        if verbose:
            print(f"Subscribed to {', '.join(topics)} on {settings.mqtt.url_safe} (Ctrl+C to stop)", file=sys.stderr)
        _wait_for_interrupt()
    except KeyboardInterrupt:
        pass
    finally:
        connection.disconnect()
    return 0
