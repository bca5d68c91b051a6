"""curses terminal UI for the interactive topic tree.

Top: the visible rows of the tree, one per line, indented by depth.
Bottom: the selected topic's latest messages.
"""

from __future__ import annotations

import curses

from core.payload import format_payload, payload_size_label
from interactive.session import InteractiveSession, TreeRow
from logger import get_logger

logger = get_logger("interactive.ui")

HELP_LINE = "arrows/jk move  enter/space toggle  left/right collapse/expand  o/c open/close all  q quit"
MIN_HEIGHT = 8
MIN_WIDTH = 40

KEYS_QUIT = (ord("q"), ord("Q"))
KEYS_DOWN = (curses.KEY_DOWN, ord("j"))
KEYS_UP = (curses.KEY_UP, ord("k"))
KEYS_TOGGLE = (curses.KEY_ENTER, 10, 13, ord(" "))
KEYS_EXPAND = (curses.KEY_RIGHT, ord("l"))
KEYS_COLLAPSE = (curses.KEY_LEFT, ord("h"))


def format_row(row: TreeRow) -> str:
    """'  ▼ sensors (3 topics, 12 messages)' or '    temp = 21.5'."""
    indent = "  " * row.depth
    if row.has_children:
        marker = "▼ " if row.opened else "▶ "
    else:
        marker = "  "
    text = f"{indent}{marker}{row.label}"
    if row.preview is not None and not row.has_children:
        return f"{text} = {row.preview}"
    summary = f"{row.descendant_count} topics, {row.message_count} messages" if row.has_children else f"{row.message_count} messages"
    if row.preview is not None:
        return f"{text} = {row.preview} ({summary})"
    return f"{text} ({summary})"


def safe_text(s: str) -> str:
    """Remove NULL and non-printable chars so curses won't explode."""
    return "".join(ch if ch.isprintable() else " " for ch in s)


class ExplorerUI:
    """Redraw loop over an InteractiveSession."""

    def __init__(self, session: InteractiveSession, broker_label: str, refresh_interval_ms: int = 250) -> None:
        self.session = session
        self.broker_label = broker_label
        self.refresh_interval_ms = refresh_interval_ms
        self.running = True
        self._scroll = 0

    def handle_key(self, ch: int) -> None:
        session = self.session
        if ch in KEYS_QUIT:
            self.running = False
        elif ch in KEYS_DOWN:
            session.select_next()
        elif ch in KEYS_UP:
            session.select_previous()
        elif ch == curses.KEY_HOME:
            session.select_first()
        elif ch == curses.KEY_END:
            session.select_last()
        elif ch in KEYS_TOGGLE:
            session.toggle_selected()
        elif ch in KEYS_EXPAND:
            session.expand_selected()
        elif ch in KEYS_COLLAPSE:
            session.collapse_or_select_parent()
        elif ch == ord("o"):
            session.open_all()
        elif ch == ord("c"):
            session.close_all()

    def scroll_for(self, selected_index: int, tree_height: int) -> int:
        """Scroll offset keeping the selected row on screen."""
        if selected_index < self._scroll:
            self._scroll = selected_index
        elif selected_index >= self._scroll + tree_height:
            self._scroll = selected_index - tree_height + 1
        return max(self._scroll, 0)

    def _draw_header(self, stdscr, width: int) -> None:
        history = self.session.history
        text = (
            f" mqtt-explorer  {self.broker_label}  "
            f"topics: {history.topic_count()}  messages: {history.total_messages()}"
        )
        stdscr.attron(curses.A_REVERSE)
        stdscr.addnstr(0, 0, safe_text(text).ljust(width), width)
        stdscr.attroff(curses.A_REVERSE)

    def _draw_tree(self, stdscr, top: int, height: int, width: int) -> None:
        shown = self.session.shown_topics()
        selected = self.session.selected
        if not shown:
            stdscr.addnstr(top, 0, "  (no topics yet, waiting for messages)", width)
            return
        selected_index = shown.index(selected) if selected in shown else 0
        start = self.scroll_for(selected_index, height)
        for offset, row in enumerate(self.session.rows(start, height)):
            attrs = curses.A_REVERSE if row.topic == selected else curses.A_NORMAL
            if row.is_synthetic:
                attrs |= curses.A_DIM
            stdscr.addnstr(top + offset, 0, safe_text(format_row(row)).ljust(width), width, attrs)

    def _draw_details(self, stdscr, top: int, height: int, width: int) -> None:
        stdscr.addnstr(top, 0, "─" * width, width, curses.A_DIM)
        selected = self.session.selected
        if selected is None or height < 2:
            return
        history = self.session.history
        messages = history.messages(selected)
        lines = [f"Topic: {selected}  ({history.message_count(selected)} messages)"]
        if not messages:
            lines.append("  no messages on this topic itself")
        else:
            last = messages[-1]
            retained = " retained" if last.retain else ""
            lines.append(
                f"  {last.received_at:%H:%M:%S}  QoS {last.qos}{retained}  {payload_size_label(len(last.payload))}"
            )
            lines.extend(f"  {line}" for line in format_payload(last.payload, pretty=True).splitlines())
            lines.append("History:")
            for entry in reversed(messages[:-1]):
                lines.append(f"  {entry.received_at:%H:%M:%S}  {format_payload(entry.payload)}")
        for offset, line in enumerate(lines[:height - 1]):
            stdscr.addnstr(top + 1 + offset, 0, safe_text(line), width)

    def draw(self, stdscr) -> None:
        stdscr.erase()
        h, w = stdscr.getmaxyx()
        width = max(1, w - 1)
        if h < MIN_HEIGHT or w < MIN_WIDTH:
            msg = f"enlarge terminal (>={MIN_WIDTH}x{MIN_HEIGHT}). Press q to quit."
            stdscr.addnstr(0, 0, msg, width)
            stdscr.refresh()
            return
        self._draw_header(stdscr, width)
        body = h - 2
        details_height = max(body // 3, 3)
        tree_height = body - details_height
        self._draw_tree(stdscr, 1, tree_height, width)
        self._draw_details(stdscr, 1 + tree_height, details_height, width)
        stdscr.addnstr(h - 1, 0, HELP_LINE, width, curses.A_DIM)
        stdscr.refresh()

    def run(self, stdscr) -> None:
        try:
            curses.curs_set(0)
        except curses.error:
            pass
        stdscr.keypad(True)
        stdscr.timeout(self.refresh_interval_ms)
        while self.running:
            self.draw(stdscr)
            ch = stdscr.getch()
            if ch == -1:
                continue
            self.handle_key(ch)
        logger.info("Interactive view closed")
