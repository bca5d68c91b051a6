"""Thread-safe store of every topic and message the subscription observed.

The paho network thread appends through ``add()`` while the UI thread
reads snapshots, so every access goes through one lock. The tree node set
and the per-node descendant counts are memoized together and only rebuilt
when new topics arrived since the last call.
"""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone

from core.exceptions import InvalidTopic
from core.topic import parents, validate_topic
from core.topic_view import build_nodes
from logger import get_logger

logger = get_logger("topic_history")

DEFAULT_HISTORY_SIZE = 50


@dataclass(frozen=True)
class HistoryEntry:
    """One received message."""
    topic: str
    payload: bytes
    qos: int = 0
    retain: bool = False
    received_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class TopicHistory:
    """
    Topics in first-seen order plus the latest messages per topic.
    add() is called from the MQTT network thread; everything else is safe
    to call from the UI thread at the same time.
    """

    def __init__(self, history_size: int = DEFAULT_HISTORY_SIZE) -> None:
        self._history_size = history_size
        self._lock = threading.Lock()
        self._topics: list[str] = []
        self._messages: dict[str, deque[HistoryEntry]] = {}
        self._counts: dict[str, int] = {}
        self._total = 0
        self._rejected = 0
        self._nodes: list[str] = []
        self._descendants: dict[str, int] = {}
        self._nodes_topic_count = 0

    def add(
        self,
        topic: str,
        payload: bytes,
        qos: int = 0,
        retain: bool = False,
        received_at: datetime | None = None,
    ) -> bool:
        """Record a message. Returns False if the topic was rejected."""
        try:
            validate_topic(topic)
        except InvalidTopic as e:
            with self._lock:
                self._rejected += 1
            logger.warning("Skipping message on invalid topic", topic=topic, reason=e.reason)
            return False

        entry = HistoryEntry(
            topic=topic,
            payload=payload,
            qos=qos,
            retain=retain,
            received_at=received_at or datetime.now(timezone.utc),
        )
        with self._lock:
            messages = self._messages.get(topic)
            if messages is None:
                messages = deque(maxlen=self._history_size)
                self._messages[topic] = messages
                self._topics.append(topic)
                self._counts[topic] = 0
            messages.append(entry)
            self._counts[topic] += 1
            self._total += 1
        return True

    def topics(self) -> list[str]:
        """Snapshot of all known topics in first-seen order."""
        with self._lock:
            return list(self._topics)

    def _refresh_tree(self) -> None:
        # Caller holds the lock. Topics are only ever appended, so the count
        # identifies the snapshot.
        if self._nodes_topic_count == len(self._topics):
            return
        descendants: dict[str, int] = {}
        for topic in self._topics:
            descendants[topic] = descendants.get(topic, 0) + 1
            for ancestor in parents(topic):
                descendants[ancestor] = descendants.get(ancestor, 0) + 1
        self._nodes = build_nodes(self._topics)
        self._descendants = descendants
        self._nodes_topic_count = len(self._topics)

    def nodes(self) -> list[str]:
        """Sorted tree nodes (topics and their ancestors) for the current snapshot."""
        with self._lock:
            self._refresh_tree()
            return list(self._nodes)

    def descendant_counts(self) -> dict[str, int]:
        """Known topics at or below each node, for the current snapshot."""
        with self._lock:
            self._refresh_tree()
            return dict(self._descendants)

    def last_message(self, topic: str) -> HistoryEntry | None:
        with self._lock:
            messages = self._messages.get(topic)
            return messages[-1] if messages else None

    def messages(self, topic: str) -> list[HistoryEntry]:
        """Kept messages for ``topic``, oldest first."""
        with self._lock:
            return list(self._messages.get(topic, ()))

    def message_count(self, topic: str) -> int:
        """Messages received on ``topic`` since start (not capped by history size)."""
        with self._lock:
            return self._counts.get(topic, 0)

    def descendant_count(self, node: str) -> int:
        """Known topics at or below ``node``."""
        with self._lock:
            self._refresh_tree()
            return self._descendants.get(node, 0)

    def has_topic(self, topic: str) -> bool:
        with self._lock:
            return topic in self._messages

    def topic_count(self) -> int:
        with self._lock:
            return len(self._topics)

    def total_messages(self) -> int:
        with self._lock:
            return self._total

    def rejected_count(self) -> int:
        with self._lock:
            return self._rejected
