"""``publish`` command: publish one message with QoS 1 and wait for the PUBACK."""

from __future__ import annotations

import sys

from config import Settings
from logger import get_logger
from mqtt_client import MQTTConnection

logger = get_logger("commands.publish")


def run(settings: Settings, topic: str, payload: str, retain: bool = False, verbose: bool = False) -> int:
    connection = MQTTConnection(settings.mqtt)
    connection.connect()
    try:
        info = connection.publish(topic, payload.encode("utf-8"), qos=1, retain=retain)
        info.wait_for_publish(timeout=settings.mqtt.connect_timeout)
        published = info.is_published()
    finally:
        connection.disconnect()

    if not published:
        logger.error("Publish not acknowledged", topic=topic, timeout=settings.mqtt.connect_timeout)
        return 1
    if verbose:
        retained = " (retained)" if retain else ""
        print(f"Published {len(payload.encode('utf-8'))} bytes to {topic}{retained}", file=sys.stderr)
    return 0
