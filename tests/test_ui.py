"""Tests for the curses UI pieces that do not need a terminal."""

import curses
from unittest.mock import MagicMock

import pytest

from interactive.session import InteractiveSession, TreeRow
from interactive.ui import ExplorerUI, format_row, safe_text
from topic_history import TopicHistory


def _row(**overrides) -> TreeRow:
    values = dict(
        topic="a/b",
        depth=1,
        label="b",
        opened=False,
        has_children=False,
        message_count=2,
        descendant_count=1,
        preview="21.5",
    )
    values.update(overrides)
    return TreeRow(**values)


class TestFormatRow:
    def test_leaf_with_payload(self):
        assert format_row(_row()) == "    b = 21.5"

    def test_closed_branch(self):
        row = _row(topic="a", depth=0, label="a", has_children=True, message_count=0, descendant_count=3, preview=None)
        assert format_row(row) == "▶ a (3 topics, 0 messages)"

    def test_opened_branch_with_own_payload(self):
        row = _row(opened=True, has_children=True, descendant_count=2)
        assert format_row(row) == "  ▼ b = 21.5 (2 topics, 2 messages)"


def test_safe_text_replaces_control_chars():
    assert safe_text("a\x00b\tc") == "a b c"


@pytest.fixture
def ui() -> ExplorerUI:
    history = TopicHistory()
    for topic in ["a/b", "a/c", "e"]:
        history.add(topic, b"1")
    return ExplorerUI(InteractiveSession(history), "mqtt://localhost:1883")


class TestHandleKey:
    def test_quit(self, ui):
        ui.handle_key(ord("q"))
        assert not ui.running

    def test_navigation_and_toggle(self, ui):
        ui.handle_key(10)
        assert ui.session.shown_topics() == ["a", "a/b", "a/c", "e"]
        ui.handle_key(curses.KEY_DOWN)
        assert ui.session.selected == "a/b"
        ui.handle_key(ord("k"))
        assert ui.session.selected == "a"
        ui.handle_key(curses.KEY_LEFT)
        assert ui.session.shown_topics() == ["a", "e"]

    def test_open_and_close_all(self, ui):
        ui.handle_key(ord("o"))
        assert ui.session.shown_topics() == ["a", "a/b", "a/c", "e"]
        ui.handle_key(ord("c"))
        assert ui.session.shown_topics() == ["a", "e"]

    def test_unknown_key_is_ignored(self, ui):
        ui.handle_key(ord("x"))
        assert ui.running
        assert ui.session.opened == frozenset()


def test_scroll_keeps_selection_visible(ui):
    assert ui.scroll_for(0, 5) == 0
    assert ui.scroll_for(7, 5) == 3
    assert ui.scroll_for(4, 5) == 3
    assert ui.scroll_for(1, 5) == 1


def test_draw_writes_header_and_rows(ui):
    stdscr = MagicMock()
    stdscr.getmaxyx.return_value = (24, 80)
    ui.draw(stdscr)
    written = [call.args[2] for call in stdscr.addnstr.call_args_list]
    assert any("topics: 3" in text and "messages: 3" in text for text in written)
    assert any(text.startswith("▶ a") for text in written)
    assert any(text.startswith("  e = 1") for text in written)
    stdscr.refresh.assert_called_once()


def test_draw_small_terminal(ui):
    stdscr = MagicMock()
    stdscr.getmaxyx.return_value = (4, 20)
    ui.draw(stdscr)
    assert "enlarge terminal" in stdscr.addnstr.call_args_list[0].args[2]


def test_draw_builds_only_visible_rows(ui):
    stdscr = MagicMock()
    stdscr.getmaxyx.return_value = (24, 80)
    ui.session.rows = MagicMock(wraps=ui.session.rows)
    ui.draw(stdscr)
    ui.session.rows.assert_called_once_with(0, 15)


def test_draw_row_under_a_sibling_keeps_its_path():
    history = TopicHistory()
    history.add("sensors/room/temp", b"1")
    history.add("sensors/room-1", b"1")
    ui = ExplorerUI(InteractiveSession(history), "mqtt://localhost:1883")
    ui.handle_key(ord("o"))
    stdscr = MagicMock()
    stdscr.getmaxyx.return_value = (24, 80)
    ui.draw(stdscr)
    written = [call.args[2] for call in stdscr.addnstr.call_args_list]
    assert any(text.startswith("      room-1 = 1") for text in written)
    assert any(text.startswith("      sensors/room/temp = 1") for text in written)
