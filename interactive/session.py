"""Interactive session state: expanded nodes and the selected row.

The session is the only writer of the opened set and is driven from the
UI thread. Each redraw hands an immutable snapshot of it to the view
engine together with the topic store's node set.
"""

from __future__ import annotations

from dataclasses import dataclass

from core.payload import format_payload
from core.topic import depth, leaf_name, parent, parents
from core.topic_view import visible
from topic_history import TopicHistory

PREVIEW_CHARS = 60


@dataclass(frozen=True)
class TreeRow:
    """One rendered line of the topic tree."""
    topic: str
    depth: int
    label: str
    opened: bool
    has_children: bool
    message_count: int
    descendant_count: int
    preview: str | None

    @property
    def is_synthetic(self) -> bool:
        """Ancestor level that never received a message itself."""
        return self.message_count == 0


class InteractiveSession:
    """
    Owns the opened set and the cursor on top of a TopicHistory.
    Not thread-safe: call from the UI loop only.
    """

    def __init__(self, history: TopicHistory) -> None:
        self._history = history
        self._opened: set[str] = set()
        self._selected: str | None = None

    @property
    def history(self) -> TopicHistory:
        return self._history

    @property
    def opened(self) -> frozenset[str]:
        return frozenset(self._opened)

    @property
    def selected(self) -> str | None:
        """Selected row, re-anchored to what is currently visible."""
        self._selected = self._anchor_selection(self.shown_topics())
        return self._selected

    def shown_topics(self) -> list[str]:
        return visible(self._history.nodes(), frozenset(self._opened))

    def _anchor_selection(self, shown: list[str]) -> str | None:
        if not shown:
            return None
        current = self._selected
        if current is None:
            return shown[0]
        if current in shown:
            return current
        # Hidden by a collapsed ancestor: fall back to the deepest visible one
        for ancestor in reversed(parents(current)):
            if ancestor in shown:
                return ancestor
        return shown[0]

    # -- opened set --------------------------------------------------------

    def is_open(self, topic: str) -> bool:
        return topic in self._opened

    def open(self, topic: str) -> None:
        self._opened.add(topic)

    def close(self, topic: str) -> None:
        self._opened.discard(topic)

    def toggle(self, topic: str) -> None:
        if topic in self._opened:
            self._opened.remove(topic)
        else:
            self._opened.add(topic)

    def open_all(self) -> None:
        self._opened.update(self._history.nodes())

    def close_all(self) -> None:
        self._opened.clear()

    # -- cursor ------------------------------------------------------------

    def select(self, topic: str) -> None:
        self._selected = topic

    def _move(self, offset: int) -> str | None:
        shown = self.shown_topics()
        current = self._anchor_selection(shown)
        if current is None:
            self._selected = None
            return None
        index = min(max(shown.index(current) + offset, 0), len(shown) - 1)
        self._selected = shown[index]
        return self._selected

    def select_next(self) -> str | None:
        return self._move(1)

    def select_previous(self) -> str | None:
        return self._move(-1)

    def select_first(self) -> str | None:
        shown = self.shown_topics()
        self._selected = shown[0] if shown else None
        return self._selected

    def select_last(self) -> str | None:
        shown = self.shown_topics()
        self._selected = shown[-1] if shown else None
        return self._selected

    def toggle_selected(self) -> None:
        current = self.selected
        if current is not None:
            self.toggle(current)

    def expand_selected(self) -> None:
        current = self.selected
        if current is not None:
            self.open(current)

    def collapse_or_select_parent(self) -> None:
        """Close the selected node, or move to its parent if it is closed already."""
        current = self.selected
        if current is None:
            return
        if current in self._opened:
            self._opened.remove(current)
            return
        up = parent(current)
        if up is not None:
            self._selected = up

    # -- rendering ---------------------------------------------------------

    def rows(self, start: int = 0, limit: int | None = None) -> list[TreeRow]:
        """Rows for ``shown_topics()[start:start + limit]``.

        Only the requested slice is rendered, so the cost of a redraw does
        not grow with rows that are scrolled off screen.
        """
        history = self._history
        nodes = history.nodes()
        descendants = history.descendant_counts()
        with_children = {p for p in (parent(node) for node in nodes) if p is not None}
        shown = visible(nodes, frozenset(self._opened))
        labels = _row_labels(shown)
        stop = len(shown) if limit is None else start + limit
        result = []
        for index in range(max(start, 0), min(stop, len(shown))):
            topic = shown[index]
            last = history.last_message(topic)
            preview = None
            if last is not None:
                preview = format_payload(last.payload).replace("\n", " ")[:PREVIEW_CHARS]
            result.append(TreeRow(
                topic=topic,
                depth=depth(topic),
                label=labels[index],
                opened=topic in self._opened,
                has_children=topic in with_children,
                message_count=history.message_count(topic),
                descendant_count=descendants.get(topic, 0),
                preview=preview,
            ))
        return result


def _row_labels(shown: list[str]) -> list[str]:
    """Leaf names, or the full topic where the row above would read as the wrong parent.

    Sorting puts 'room-1' between 'room' and 'room/temp' because '-' sorts
    before '/'. Indented under 'room-1', 'temp' would look like its child,
    so such rows carry their whole topic instead.
    """
    labels = []
    # Rows above that are shallower than the current one, innermost last
    above: list[tuple[int, str]] = []
    for topic in shown:
        level = depth(topic)
        while above and above[-1][0] >= level:
            above.pop()
        up = parent(topic)
        if up is None or (above and above[-1][1] == up):
            labels.append(leaf_name(topic))
        else:
            labels.append(topic)
        above.append((level, topic))
    return labels
