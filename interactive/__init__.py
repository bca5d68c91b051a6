"""Interactive topic tree: session state and curses UI."""

from interactive.session import InteractiveSession, TreeRow
from interactive.ui import ExplorerUI, format_row

__all__ = ["ExplorerUI", "InteractiveSession", "TreeRow", "format_row"]
