"""ANSI-aware text measurement helpers.

Widths count code points of visible text; escape sequences occupy no
columns. Truncation keeps every escape sequence whole and terminates the
result with a reset so styling never bleeds into the next screen row.
"""

from __future__ import annotations

import re

ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]")
RESET = "\x1b[0m"


def strip_ansi(text: str) -> str:
    """Return ``text`` with all escape sequences removed."""
    return ANSI_ESCAPE_RE.sub("", text)


def visible_width(text: str) -> int:
    """Number of visible characters in ``text``."""
    return len(strip_ansi(text))


def truncate_ansi(text: str, width: int) -> str:
    """Cut ``text`` down to ``width`` visible characters.

    Text that already fits is returned unchanged. Otherwise escape sequences
    up to the cut point are preserved and a reset is appended.
    """
    if width <= 0:
        return ""
    if visible_width(text) <= width:
        return text

    out: list[str] = []
    count = 0
    i = 0
    n = len(text)
    while i < n:
        if text[i] == "\x1b":
            match = ANSI_ESCAPE_RE.match(text, i)
            if match:
                out.append(match.group(0))
                i = match.end()
                continue
        if count >= width:
            break
        out.append(text[i])
        count += 1
        i += 1
    out.append(RESET)
    return "".join(out)


def pad_right(text: str, width: int) -> str:
    """Pad or truncate ``text`` to exactly ``width`` visible characters."""
    if width <= 0:
        return text
    visible = visible_width(text)
    if visible >= width:
        return truncate_ansi(text, width)
    return text + " " * (width - visible)


def pad_left(text: str, width: int) -> str:
    """Right-align ``text`` in ``width`` columns; never truncates."""
    if width <= 0:
        return text
    visible = visible_width(text)
    if visible >= width:
        return text
    return " " * (width - visible) + text


def sgr(*codes: str) -> str:
    """Build one combined SGR sequence from non-empty codes."""
    joined = ";".join(code for code in codes if code)
    if not joined:
        return ""
    return f"\x1b[{joined}m"
