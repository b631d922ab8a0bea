"""Viewer state: lines, cursor, selection and search.

Every user command is one method on Viewer. Methods only mutate the
viewer itself; scrolling geometry lives in the view, clipboard delivery in
the collaborator handed to copy_selection().
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, Optional, Protocol

from .constants import ViewerConstants
from .rules import compile_query

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Position:
    line: int = 0
    col: int = 0

    def __lt__(self, other):
        if self.line != other.line:
            return self.line < other.line
        return self.col < other.col


class SelectionMode(Enum):
    NONE = ""
    CHAR = "visual"
    LINE = "visual-line"
    BLOCK = "visual-block"

    @property
    def label(self) -> str:
        return self.value


@dataclass(frozen=True)
class Selection:
    """Active selection mode and its fixed endpoint.

    The anchor is present exactly when the mode is not NONE; use
    Selection.none() and Selection.start() rather than the constructor.
    """
    mode: SelectionMode = SelectionMode.NONE
    anchor: Optional[Position] = None

    def __post_init__(self):
        if (self.mode is SelectionMode.NONE) != (self.anchor is None):
            raise ValueError("selection anchor must be set exactly when a mode is active")

    @classmethod
    def none(cls) -> "Selection":
        return cls()

    @classmethod
    def start(cls, mode: SelectionMode, anchor: Position) -> "Selection":
        return cls(mode=mode, anchor=anchor)

    @property
    def active(self) -> bool:
        return self.mode is not SelectionMode.NONE


class Clipboard(Protocol):
    def write(self, text: str) -> bool: ...


class LineStore:
    """Append-only sequence of lines."""

    def __init__(self, lines: Optional[Iterable[str]] = None):
        self._lines: list[str] = list(lines or [])

    def __len__(self) -> int:
        return len(self._lines)

    def __getitem__(self, index):
        return self._lines[index]

    def __iter__(self) -> Iterator[str]:
        return iter(self._lines)

    def append(self, batch: Iterable[str]) -> int:
        """Add lines at the end; returns the index of the first new line."""
        first = len(self._lines)
        self._lines.extend(batch)
        return first

    def rune_len(self, index: int) -> int:
        if index < 0 or index >= len(self._lines):
            return 0
        return len(self._lines[index])


def is_word_char(ch: str) -> bool:
    return ch == "_" or ch.isalpha() or ch.isdigit()


class Viewer:
    """Cursor, scroll, selection and search state for one session."""

    def __init__(
        self,
        lines: Optional[Iterable[str]] = None,
        line_numbers: bool = True,
        wrap: bool = False,
        follow: bool = False,
    ):
        self.lines = lines if isinstance(lines, LineStore) else LineStore(lines)
        self.cursor = 0
        self.cursor_col = 0
        self.goal_col = 0  # Column vertical motion tries to keep
        self.top = 0
        self.top_segment = 0
        self.h_offset = 0
        self.wrap = wrap
        self.line_numbers = line_numbers
        self.follow = follow
        self.selection = Selection.none()
        self.query = ""
        self.matches: list[int] = []
        self.match_index = 0
        self.status = ""

    # --- Cursor bookkeeping ---

    @property
    def position(self) -> Position:
        return Position(self.cursor, self.cursor_col)

    def max_col(self, line: Optional[int] = None) -> int:
        length = self.lines.rune_len(self.cursor if line is None else line)
        return max(0, length - 1)

    def clamp_cursor(self) -> None:
        if len(self.lines) == 0:
            self.cursor = 0
        else:
            self.cursor = min(max(self.cursor, 0), len(self.lines) - 1)
        self.cursor_col = min(max(self.cursor_col, 0), self.max_col())

    def _apply_goal_col(self) -> None:
        self.goal_col = max(self.goal_col, 0)
        self.cursor_col = min(self.goal_col, self.max_col())

    def _land(self, line: int, col: int) -> None:
        """Place the cursor and make its column the new goal."""
        self.cursor = line
        self.cursor_col = col
        self.clamp_cursor()
        self.goal_col = self.cursor_col
        self.status = ""

    # --- Vertical motion ---

    def move_cursor(self, delta: int) -> None:
        self.cursor += delta
        self.clamp_cursor()
        self._apply_goal_col()
        self.status = ""

    def page(self, delta: int, page_rows: int) -> None:
        self.move_cursor(delta * max(1, page_rows))

    def cursor_top(self) -> None:
        self._land(0, 0)

    def cursor_bottom(self) -> None:
        self._land(max(0, len(self.lines) - 1), 0)

    # --- Horizontal motion ---

    def move_cursor_col(self, delta: int) -> None:
        self._land(self.cursor, self.cursor_col + delta)

    def move_line_start(self) -> None:
        self._land(self.cursor, 0)

    def move_line_end(self) -> None:
        self._land(self.cursor, self.max_col())

    # --- Word motion ---

    def word_forward(self) -> None:
        """Move to the start of the next word; empty lines count as words."""
        if len(self.lines) == 0:
            return
        line = self.cursor
        text = self.lines[line]
        pos = self.cursor_col
        if pos < len(text) and is_word_char(text[pos]):
            while pos < len(text) and is_word_char(text[pos]):
                pos += 1
        while True:
            while pos < len(text) and not is_word_char(text[pos]):
                pos += 1
            if pos < len(text):
                self._land(line, pos)
                return
            if line + 1 >= len(self.lines):
                # Nothing further; stay put
                return
            line += 1
            text = self.lines[line]
            pos = 0
            if not text:
                self._land(line, 0)
                return

    def word_backward(self) -> None:
        """Move to the start of the current or previous word."""
        if len(self.lines) == 0:
            return
        line = self.cursor
        text = self.lines[line]
        pos = self.cursor_col
        while True:
            pos -= 1
            while pos < 0:
                if line == 0:
                    self._land(0, 0)
                    return
                line -= 1
                text = self.lines[line]
                if not text:
                    self._land(line, 0)
                    return
                pos = len(text) - 1
            if is_word_char(text[pos]):
                break
        while pos > 0 and is_word_char(text[pos - 1]):
            pos -= 1
        self._land(line, pos)

    def word_end(self) -> None:
        """Move to the last character of the current or next word."""
        if len(self.lines) == 0:
            return
        line = self.cursor
        text = self.lines[line]
        pos = self.cursor_col
        while True:
            pos += 1
            while pos >= len(text):
                if line + 1 >= len(self.lines):
                    return
                line += 1
                text = self.lines[line]
                pos = 0
            if is_word_char(text[pos]):
                break
        while pos + 1 < len(text) and is_word_char(text[pos + 1]):
            pos += 1
        self._land(line, pos)

    # --- Display toggles ---

    def toggle_wrap(self) -> None:
        # Column offsets and wrap segments do not convert into each other
        self.wrap = not self.wrap
        self.h_offset = 0
        self.top_segment = 0
        self.status = ""

    def toggle_line_numbers(self) -> None:
        self.line_numbers = not self.line_numbers

    # --- Search ---

    def set_query(self, query: str, direction: int = 1) -> None:
        self.query = query.strip()
        self.matches = []
        self.match_index = 0
        if not self.query:
            return
        matcher = compile_query(self.query)
        self.matches = [i for i, line in enumerate(self.lines) if matcher.search(line)]
        if not self.matches:
            self.status = ViewerConstants.NO_MATCHES_MESSAGE
            return
        self.match_index = self._closest_match_index(direction)
        self._jump_to_match()

    def _closest_match_index(self, direction: int) -> int:
        if direction >= 0:
            for i, line in enumerate(self.matches):
                if line >= self.cursor:
                    return i
            return 0
        for i in range(len(self.matches) - 1, -1, -1):
            if self.matches[i] <= self.cursor:
                return i
        return len(self.matches) - 1

    def next_match(self, direction: int = 1) -> None:
        if not self.matches:
            self.status = ViewerConstants.NO_MATCHES_MESSAGE
            return
        self.match_index = (self.match_index + direction) % len(self.matches)
        self._jump_to_match()

    def _jump_to_match(self) -> None:
        line = self.matches[self.match_index]
        self._land(line, self.match_col(line))

    def match_col(self, line: int) -> int:
        matcher = compile_query(self.query)
        if matcher is None or line < 0 or line >= len(self.lines):
            return 0
        m = matcher.search(self.lines[line])
        return m.start() if m else 0

    # --- Selection ---

    def toggle_select(self, mode: SelectionMode) -> None:
        if self.selection.mode is mode:
            self.clear_selection()
            return
        # Block anchors follow the goal column so the rectangle survives
        # passing through short lines
        col = self.goal_col if mode is SelectionMode.BLOCK else self.cursor_col
        self.selection = Selection.start(mode, Position(self.cursor, col))
        self.status = mode.label

    def clear_selection(self) -> None:
        self.selection = Selection.none()
        self.status = ViewerConstants.SELECTION_CLEARED_MESSAGE

    def _selection_end(self) -> Position:
        if self.selection.mode is SelectionMode.BLOCK:
            return Position(self.cursor, self.goal_col)
        return self.position

    def selection_line_span(self) -> Optional[tuple[int, int]]:
        """First and last line touched by the selection."""
        if not self.selection.active:
            return None
        a = self.selection.anchor.line
        b = self.cursor
        return (min(a, b), max(a, b))

    def selection_ranges(self, line: int) -> list[tuple[int, int]]:
        """Half-open column ranges of ``line`` covered by the selection."""
        span = self.selection_line_span()
        if span is None or not span[0] <= line <= span[1]:
            return []
        length = self.lines.rune_len(line)
        mode = self.selection.mode
        anchor = self.selection.anchor
        end = self._selection_end()

        if mode is SelectionMode.LINE:
            return [(0, length)]

        if mode is SelectionMode.BLOCK:
            lo = min(anchor.col, end.col)
            hi = min(max(anchor.col, end.col), length - 1)
            return _inclusive_range(lo, hi)

        start, stop = (anchor, end) if not end < anchor else (end, anchor)
        if start.line == stop.line:
            return _inclusive_range(start.col, min(stop.col, length - 1))
        if line == start.line:
            return _inclusive_range(start.col, length - 1)
        if line == stop.line:
            return _inclusive_range(0, min(stop.col, length - 1))
        return [(0, length)]

    def selected_text(self) -> str:
        span = self.selection_line_span()
        if span is None:
            return ""
        out = []
        for i in range(span[0], min(span[1], len(self.lines) - 1) + 1):
            text = self.lines[i]
            out.append("".join(text[start:end] for start, end in self.selection_ranges(i)))
        return "\n".join(out)

    def copy_selection(self, clipboard: Clipboard) -> bool:
        """Hand the selected text to ``clipboard``; selection stays active."""
        if not self.selection.active:
            self.status = ViewerConstants.NO_SELECTION_MESSAGE
            return False
        if not clipboard.write(self.selected_text()):
            self.status = ViewerConstants.CLIPBOARD_FAILED_MESSAGE
            return False
        self.status = ViewerConstants.COPIED_MESSAGE
        return True

    # --- Live updates ---

    def append_lines(self, batch: Iterable[str]) -> None:
        batch = list(batch)
        if not batch:
            return
        tracking = self.cursor >= len(self.lines) - 1
        first = self.lines.append(batch)
        if self.query:
            matcher = compile_query(self.query)
            self.matches.extend(
                first + i for i, line in enumerate(batch) if matcher.search(line)
            )
        if tracking:
            self.cursor = len(self.lines) - 1
            self.cursor_col = 0
            self.goal_col = 0
        logger.debug(f"appended {len(batch)} lines (tracking={tracking})")

    def mark(self) -> None:
        """Append an empty separator line while following."""
        if self.follow:
            self.append_lines([""])


def _inclusive_range(lo: int, hi: int) -> list[tuple[int, int]]:
    lo = max(lo, 0)
    if hi < lo:
        return []
    return [(lo, hi + 1)]
