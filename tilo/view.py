"""Screen layout for the viewer.

Vertical scrolling in wrap mode is done on a global segment index: the
running count of wrapped screen rows from the first line. Scroll clamping
and cursor placement convert (line, segment) pairs into that index, do the
arithmetic, and convert back, so content and cursor never disagree.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from .ansi import RESET, pad_left, pad_right, sgr
from .constants import ViewerConstants
from .model import Viewer
from .rules import QUERY_COLOR, QUERY_STYLE, Rule, Span, color_code, query_spans, resolve_spans

REVERSE = "7"


@dataclass
class Frame:
    """One fully laid out screen."""
    rows: list[str]
    status: str
    status_row: int
    cursor_row: int
    cursor_col: int


def _display_char(ch: str) -> str:
    # Control characters would move the terminal cursor
    if ch < " " or ch == "\x7f":
        return " "
    return ch


class TerminalView:
    num_rows: int = ViewerConstants.DEFAULT_HEIGHT  # Whole terminal, status row included
    num_columns: int = ViewerConstants.DEFAULT_WIDTH

    def __init__(
        self,
        viewer: Viewer,
        rules: Optional[Sequence[Rule]] = None,
        plain: bool = False,
        status_at_top: bool = False,
    ):
        self.viewer = viewer
        self.rules = list(rules or [])
        self.plain = plain
        self.status_at_top = status_at_top
        self._span_cache: dict[int, list[Span]] = {}

    def resize(self, columns: int, rows: int) -> None:
        self.num_columns = max(1, columns)
        self.num_rows = max(1, rows)

    # --- Geometry ---

    @property
    def content_height(self) -> int:
        return max(1, self.num_rows - 1)

    def gutter_width(self) -> int:
        return len(str(len(self.viewer.lines))) if len(self.viewer.lines) else 1

    @property
    def content_offset(self) -> int:
        """Columns taken by the line-number gutter and its separator."""
        return self.gutter_width() + 1 if self.viewer.line_numbers else 0

    @property
    def content_width(self) -> int:
        return max(1, self.num_columns - self.content_offset)

    def segment_count(self, line: int) -> int:
        if not self.viewer.wrap:
            return 1
        length = self.viewer.lines.rune_len(line)
        if length == 0:
            return 1
        width = self.content_width
        return (length + width - 1) // width

    def segments(self, line: int) -> list[tuple[int, int]]:
        """Rune ranges of the screen rows ``line`` occupies."""
        length = self.viewer.lines.rune_len(line)
        if not self.viewer.wrap or length == 0:
            return [(0, length)]
        width = self.content_width
        return [(start, min(start + width, length)) for start in range(0, length, width)]

    def cursor_segment(self) -> int:
        if not self.viewer.wrap:
            return 0
        return self.viewer.cursor_col // self.content_width

    def global_segment_index(self, line: int, segment: int) -> int:
        if not self.viewer.wrap:
            return line + segment
        index = 0
        for i in range(min(line, len(self.viewer.lines))):
            index += self.segment_count(i)
        return index + segment

    def from_global_segment_index(self, index: int) -> tuple[int, int]:
        total = len(self.viewer.lines)
        if index < 0 or total == 0:
            return (0, 0)
        if not self.viewer.wrap:
            return (min(index, total - 1), 0)
        for line in range(total):
            count = self.segment_count(line)
            if index < count:
                return (line, index)
            index -= count
        return (total - 1, self.segment_count(total - 1) - 1)

    def max_h_offset(self) -> int:
        return max(0, self.viewer.lines.rune_len(self.viewer.cursor) - self.content_width)

    # --- Scrolling ---

    def ensure_cursor_visible(self) -> None:
        v = self.viewer
        v.clamp_cursor()
        height = self.content_height
        top = self.global_segment_index(v.top, v.top_segment)
        cursor = self.global_segment_index(v.cursor, self.cursor_segment())
        if cursor < top:
            top = cursor
        if cursor >= top + height:
            top = cursor - (height - 1)
        v.top, v.top_segment = self.from_global_segment_index(top)

        if not v.wrap:
            width = self.content_width
            if v.cursor_col < v.h_offset:
                v.h_offset = v.cursor_col
            if v.cursor_col >= v.h_offset + width:
                v.h_offset = v.cursor_col - width + 1
            v.h_offset = max(0, min(v.h_offset, self.max_h_offset()))

    def page_rows(self) -> int:
        """Lines moved by page up/down."""
        return max(1, self.content_height - 1)

    def cursor_screen_position(self) -> tuple[int, int]:
        """Zero-based (row, column) of the cursor on the terminal."""
        v = self.viewer
        top = self.global_segment_index(v.top, v.top_segment)
        cursor = self.global_segment_index(v.cursor, self.cursor_segment())
        row = min(max(cursor - top, 0), self.content_height - 1)
        if self.status_at_top:
            row += 1

        width = self.content_width
        if v.wrap:
            col = v.cursor_col % width
        else:
            col = v.cursor_col - v.h_offset
        col = min(max(col, 0), width - 1)
        col = min(col + self.content_offset, self.num_columns - 1)
        return (row, col)

    # --- Rendering ---

    def render(self) -> Frame:
        v = self.viewer
        self.ensure_cursor_visible()
        self._span_cache = {}

        rows: list[str] = []
        line, segment = v.top, v.top_segment
        height = self.content_height
        while len(rows) < height and line < len(v.lines):
            segs = self.segments(line)
            if segment >= len(segs):
                line += 1
                segment = 0
                continue
            start, end = segs[segment]
            if not v.wrap:
                length = v.lines.rune_len(line)
                start = min(v.h_offset, length)
                end = min(start + self.content_width, length)
            rows.append(pad_right(self.render_segment(line, start, end), self.num_columns))
            segment += 1
        while len(rows) < height:
            rows.append(" " * self.num_columns)

        cursor_row, cursor_col = self.cursor_screen_position()
        return Frame(
            rows=rows,
            status=self.status_line(),
            status_row=0 if self.status_at_top else height,
            cursor_row=cursor_row,
            cursor_col=cursor_col,
        )

    def render_segment(self, line: int, start: int, end: int) -> str:
        """Gutter plus styled text of ``line`` between rune offsets."""
        prefix = ""
        if self.viewer.line_numbers:
            prefix = f"{line + 1:>{self.gutter_width()}} "
        return prefix + self.style_text(line, start, end)

    def _spans(self, line: int) -> list[Span]:
        if line not in self._span_cache:
            self._span_cache[line] = resolve_spans(self.viewer.lines[line], self.rules)
        return self._span_cache[line]

    def style_text(self, line: int, start: int, end: int) -> str:
        """Compose rule colors, query highlight and selection for a slice.

        Each character gets one SGR parameter list; runs of equal styling are
        emitted with a single escape and closed with a reset.
        """
        text = self.viewer.lines[line]
        chunk = text[start:end]
        if not chunk:
            return ""
        codes = [""] * len(chunk)

        def paint(range_start: int, range_end: int, code: str, append: bool = False):
            for i in range(max(range_start, start), min(range_end, end)):
                j = i - start
                codes[j] = f"{codes[j]};{code}" if append and codes[j] else code

        if not self.plain:
            for span in self._spans(line):
                paint(span.start, span.end, color_code(span.color, span.style))
            query_code = color_code(QUERY_COLOR, QUERY_STYLE)
            for q_start, q_end in query_spans(text, self.viewer.query):
                paint(q_start, q_end, query_code)
        for sel_start, sel_end in self.viewer.selection_ranges(line):
            paint(sel_start, sel_end, REVERSE, append=True)

        out = []
        run_start = 0
        for i in range(1, len(chunk) + 1):
            if i < len(chunk) and codes[i] == codes[run_start]:
                continue
            run = "".join(_display_char(ch) for ch in chunk[run_start:i])
            code = codes[run_start]
            out.append(sgr(code) + run + RESET if code else run)
            run_start = i
        return "".join(out)

    def status_line(self) -> str:
        """Plain status text exactly ``num_columns`` wide."""
        v = self.viewer
        parts = []
        if v.query:
            parts.append("/" + v.query)
            if v.matches:
                parts.append(f"match {v.match_index + 1}/{len(v.matches)}")
        if v.selection.active:
            parts.append(v.selection.mode.label)
        if v.follow:
            parts.append("follow")
        if v.status and v.status not in parts:
            parts.append(v.status)
        parts.append(ViewerConstants.HELP_TEXT)
        left = ViewerConstants.STATUS_SEPARATOR.join(parts)

        total = len(v.lines)
        indicator = f"{v.cursor + 1 if total else 0}/{total}"
        available = self.num_columns - len(indicator)
        if available < 1:
            return pad_left(indicator, self.num_columns)
        return left[:available].ljust(available) + indicator

    def prompt_line(self, text: str) -> str:
        return text[:self.num_columns].ljust(self.num_columns)
