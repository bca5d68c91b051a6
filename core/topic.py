"""Topic string helpers.

Topics are flat strings whose hierarchy is encoded by the ``/`` separator.
The tree is never materialized; parent/child relations are recomputed from
the string structure on demand.
"""

from __future__ import annotations

from core.exceptions import InvalidTopic

SEPARATOR = "/"


def parents(topic: str) -> list[str]:
    """Return every proper ancestor of ``topic``, root first.

    'a/b/c' -> ['a', 'a/b']; a topic without separator has no parents.
    """
    result: list[str] = []
    index = topic.find(SEPARATOR)
    while index != -1:
        result.append(topic[:index])
        index = topic.find(SEPARATOR, index + 1)
    return result


def parent(topic: str) -> str | None:
    """Direct parent of ``topic``, None for root-level topics."""
    index = topic.rfind(SEPARATOR)
    if index == -1:
        return None
    return topic[:index]


def depth(topic: str) -> int:
    """Nesting level: 0 for root-level topics."""
    return topic.count(SEPARATOR)


def leaf_name(topic: str) -> str:
    """Last segment of ``topic``, used as the row label."""
    return topic.rsplit(SEPARATOR, 1)[-1]


def validate_topic(topic: str) -> str:
    """Check that ``topic`` may enter the topic tree and return it.

    Raises:
        InvalidTopic: For the empty string or any empty level.
    """
    if not topic:
        raise InvalidTopic(topic, "topic must not be empty")
    if topic.startswith(SEPARATOR):
        raise InvalidTopic(topic, "leading separator")
    if topic.endswith(SEPARATOR):
        raise InvalidTopic(topic, "trailing separator")
    if SEPARATOR * 2 in topic:
        raise InvalidTopic(topic, "empty level")
    return topic
