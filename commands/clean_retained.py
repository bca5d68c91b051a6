"""``clean-retained`` command: clear retained messages below a topic filter.

Every retained message is answered with an empty retained publish on the
same topic, which makes the broker drop it. The run ends at the first
live (non-retained) message or when nothing arrived for ``timeout``
seconds.
"""

from __future__ import annotations

import threading
import time

from config import Settings
from logger import get_logger
from mqtt_client import MQTTConnection

logger = get_logger("commands.clean_retained")


class RetainedCleaner:
    """Tracks retained messages seen and clears them unless dry_run."""

    def __init__(self, connection: MQTTConnection | None, dry_run: bool = False) -> None:
        self._connection = connection
        self.dry_run = dry_run
        self.cleaned: list[str] = []
        self.finished = threading.Event()
        self._last_activity = time.monotonic()
        self._lock = threading.Lock()

    def handle(self, topic: str, payload: bytes, retain: bool) -> None:
        # Our own empty publishes come back to the subscription; skip them
        if not payload:
            return
        if not retain:
            self.finished.set()
            return
        with self._lock:
            self.cleaned.append(topic)
            self._last_activity = time.monotonic()
        print(topic, flush=True)
        if not self.dry_run and self._connection is not None:
            self._connection.publish(topic, b"", qos=1, retain=True)

    def idle_for(self) -> float:
        with self._lock:
            return time.monotonic() - self._last_activity

    def wait(self, timeout: float, poll: float = 0.1) -> None:
        """Return at the first live message or after ``timeout`` seconds without messages."""
        while not self.finished.wait(poll):
            if self.idle_for() >= timeout:
                return


def run(settings: Settings, topic: str, dry_run: bool = False, timeout: float = 5.0) -> int:
    connection = MQTTConnection(settings.mqtt)
    cleaner = RetainedCleaner(connection, dry_run=dry_run)
    connection.set_message_handler(lambda message: cleaner.handle(message.topic, message.payload, bool(message.retain)))
    connection.connect()
    try:
        connection.subscribe([topic])
        cleaner.wait(timeout)
    except KeyboardInterrupt:
        pass
    finally:
        connection.disconnect()

    count = len(cleaner.cleaned)
    if dry_run:
        print(f"Dry run: would clean {count} retained topic(s)")
    else:
        print(f"Cleaned {count} retained topic(s)")
    logger.info("Retained messages processed", topic=topic, count=count, dry_run=dry_run)
    return 0
