"""Default command: live, collapsible tree of every topic seen on the broker."""

from __future__ import annotations

import curses

from config import Settings
from interactive.session import InteractiveSession
from interactive.ui import ExplorerUI
from logger import get_logger
from mqtt_client import MQTTConnection
from topic_history import TopicHistory

logger = get_logger("commands.interactive")


def run(settings: Settings) -> int:
    cfg = settings.mqtt
    history = TopicHistory(history_size=settings.explorer.payload_history_size)

    def on_message(message) -> None:
        history.add(message.topic, message.payload, message.qos, bool(message.retain))

    connection = MQTTConnection(cfg, on_message=on_message)
    connection.connect()
    try:
        connection.subscribe(cfg.subscribe_topics)
        ui = ExplorerUI(InteractiveSession(history), cfg.url_safe, settings.explorer.refresh_interval_ms)
        curses.wrapper(ui.run)
    except KeyboardInterrupt:
        pass
    finally:
        connection.disconnect()

    logger.info(
        "Session finished",
        topics=history.topic_count(),
        messages=history.total_messages(),
        rejected=history.rejected_count(),
    )
    return 0
