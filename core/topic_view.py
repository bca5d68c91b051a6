"""Topic tree view engine.

Turns the flat list of observed topics into the rows the terminal UI
draws. Both steps are pure and re-run on every redraw:

1. ``build_nodes`` adds every ancestor of every topic (synthetic nodes for
   levels that were never published themselves) and sorts the result by
   plain string order. Every ancestor sorts before its descendants, but
   the order is not a strict pre-order: a sibling whose name continues
   with a character below "/" (such as "-", "." or a space) sorts between
   a node and its children, e.g. "a/room", "a/room-1", "a/room/temp".
   Renderers must not assume the row above a node is its parent.
2. ``visible`` keeps only nodes whose ancestors are all opened.

Usage:
    from core.topic_view import shown_topics

    rows = shown_topics(["a/b", "a/d", "e"], opened={"a"})
    # ['a', 'a/b', 'a/d', 'e']
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence, Set

from core.topic import parents


def shown_topics(existing: Iterable[str], opened: Set[str]) -> list[str]:
    """Rows to render for the known topics and the expanded nodes."""
    return visible(build_nodes(existing), opened)


def build_nodes(existing: Iterable[str]) -> list[str]:
    """All tree nodes for ``existing``: topics plus their ancestors, sorted, unique."""
    result: set[str] = set()
    for entry in existing:
        result.update(parents(entry))
        result.add(entry)
    return sorted(result)


def visible(nodes: Sequence[str], opened: Set[str]) -> list[str]:
    """Subsequence of ``nodes`` whose ancestors are all in ``opened``.

    Root-level nodes are always kept. Adding to ``opened`` never removes a
    row from the result.
    """
    return [node for node in nodes if is_topic_opened(opened, node)]


def is_topic_opened(opened: Set[str], topic: str) -> bool:
    return all(ancestor in opened for ancestor in parents(topic))
