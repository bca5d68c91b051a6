"""``read-one`` command: print the payload of the first matching message and exit."""

from __future__ import annotations

import queue
import sys

from config import Settings
from logger import get_logger
from mqtt_client import MQTTConnection

logger = get_logger("commands.read_one")


class FirstMessage:
    """Keeps the first acceptable (topic, payload); later offers are ignored."""

    def __init__(self, ignore_retained: bool = False) -> None:
        self.ignore_retained = ignore_retained
        self._queue: queue.Queue[tuple[str, bytes]] = queue.Queue(maxsize=1)

    def offer(self, topic: str, payload: bytes, retain: bool) -> bool:
        if retain and self.ignore_retained:
            return False
        try:
            self._queue.put_nowait((topic, payload))
        except queue.Full:
            return False
        return True

    def wait(self, timeout: float | None = None) -> tuple[str, bytes]:
        """Block until a message was offered.

        Raises:
            queue.Empty: When ``timeout`` passed first.
        """
        return self._queue.get(timeout=timeout)


def run(settings: Settings, topics: list[str], ignore_retained: bool = False) -> int:
    first = FirstMessage(ignore_retained=ignore_retained)
    connection = MQTTConnection(
        settings.mqtt,
        on_message=lambda message: first.offer(message.topic, message.payload, bool(message.retain)),
    )
    connection.connect()
    try:
        connection.subscribe(topics)
        while True:
            try:
                topic, payload = first.wait(timeout=0.5)
                break
            except queue.Empty:
                continue
    except KeyboardInterrupt:
        return 130
    finally:
        connection.disconnect()

    logger.debug("Read message", topic=topic, size=len(payload))
    sys.stdout.buffer.write(payload)
    sys.stdout.buffer.write(b"\n")
    sys.stdout.buffer.flush()
    return 0
