"""Regex highlight rules for log lines.

Rules are evaluated in priority order against the original, unstyled text.
The first rule to claim a character keeps it: a later match touching any
claimed character is dropped, even when it is longer.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional, Sequence

from .ansi import ANSI_ESCAPE_RE, RESET, sgr
from .errors import ConfigError

ANSI_COLORS = {
    "black": "30",
    "red": "31",
    "green": "32",
    "yellow": "33",
    "blue": "34",
    "magenta": "35",
    "cyan": "36",
    "white": "37",
    "gray": "90",
}

ANSI_STYLES = {
    "bold": "1",
    "dim": "2",
    "underline": "4",
}

QUERY_COLOR = "blue"
QUERY_STYLE = "underline"


@dataclass
class Rule:
    name: str
    pattern: Optional[re.Pattern]
    color: str = ""
    style: str = ""
    enabled: bool = True


@dataclass(frozen=True)
class CustomRule:
    """A user supplied rule before its pattern is compiled."""
    pattern: str
    color: str = ""
    style: str = ""
    name: str = "custom"

    def to_rule(self) -> Rule:
        try:
            compiled = re.compile(self.pattern)
        except re.error as e:
            raise ConfigError(f"invalid custom rule regex {self.pattern!r}: {e}") from e
        return Rule(name=self.name, pattern=compiled, color=self.color, style=self.style)


@dataclass(frozen=True)
class Span:
    start: int
    end: int
    color: str = ""
    style: str = ""


def color_code(color: str, style: str = "") -> str:
    """SGR parameters for a color/style pair; unknown names contribute nothing."""
    parts = []
    style_code = ANSI_STYLES.get((style or "").lower())
    if style_code:
        parts.append(style_code)
    color_value = ANSI_COLORS.get((color or "").lower())
    if color_value:
        parts.append(color_value)
    return ";".join(parts)


def wrap(text: str, color: str, style: str = "") -> str:
    """Wrap ``text`` in a single combined escape and a reset."""
    code = color_code(color, style)
    if not code:
        return text
    return sgr(code) + text + RESET


def default_rules() -> list[Rule]:
    """Built-in rules, highest priority first."""
    def rule(name, pattern, color, style=""):
        return Rule(name=name, pattern=re.compile(pattern), color=color, style=style)

    return [
        rule(
            "timestamp",
            r"\b\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}:\d{2}(?:\.\d+)?(?:Z|[+-]\d{2}:\d{2})?\b"
            r"|\b(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)\s+\d{1,2}\s+\d{2}:\d{2}:\d{2}\b",
            "cyan",
        ),
        rule("url", r"\bhttps?://[^\s\)\]\}\>\,\;\:]+", "blue"),
        rule("ipv4", r"\b(?:\d{1,3}\.){3}\d{1,3}\b", "yellow"),
        rule("ipv6", r"\b(?:[0-9a-fA-F]{0,4}:){2,7}[0-9a-fA-F]{0,4}\b", "yellow"),
        rule("mac", r"\b(?:[0-9A-Fa-f]{2}:){5}[0-9A-Fa-f]{2}\b", "yellow"),
        rule("port", r":\d{2,5}\b", "magenta"),
        rule("path", r"\B/(?:[^\s\)\]\}\>\,\;\:]+)", "green"),
        rule("level_error", r"(?i)\b(ERROR|FATAL)\b", "red", "bold"),
        rule("level_warn", r"(?i)\b(WARN|WARNING)\b", "yellow", "bold"),
        rule("level_info", r"(?i)\bINFO\b", "blue", "bold"),
        rule("level_debug", r"(?i)\bDEBUG\b", "magenta", "bold"),
        rule("level_trace", r"(?i)\bTRACE\b", "gray", "bold"),
        rule(
            "fail",
            r"(?i)\b(fail|failed|failure|error|err|fatal|panic|crashed|crash|abort|aborted"
            r"|timeout|timedout|refused|reject|denied|unreachable|unavailable|corrupted|invalid)\b",
            "red",
            "bold",
        ),
        rule(
            "success",
            r"(?i)\b(ok|okay|success|successful|successfully|succeeded|complete|completed"
            r"|done|ready|healthy|passed|pass|connected|accepted|resolved)\b",
            "green",
            "bold",
        ),
        rule(
            "keyword",
            r"(?i)\b(kube|pod|node|container|nginx|envoy|http|grpc|tcp|udp|timeout|retry|panic|crash)\b",
            "magenta",
        ),
    ]


def build_rules(
    defaults: Iterable[Rule],
    color_overrides: Optional[Mapping[str, str]] = None,
    disabled_names: Optional[Iterable[str]] = None,
    custom_rules: Optional[Iterable[CustomRule]] = None,
) -> list[Rule]:
    """Combine built-in rules with user overrides and custom patterns.

    Names match case-insensitively; names that match nothing are ignored.
    Raises ConfigError when a custom pattern does not compile.
    """
    overrides = {k.lower(): v for k, v in (color_overrides or {}).items()}
    disabled = {name.lower() for name in (disabled_names or [])}

    rules = []
    for default in defaults:
        key = default.name.lower()
        rules.append(Rule(
            name=default.name,
            pattern=default.pattern,
            color=overrides.get(key, default.color),
            style=default.style,
            enabled=key not in disabled,
        ))
    for custom in custom_rules or []:
        rules.append(custom.to_rule())
    return rules


def resolve_spans(line: str, rules: Sequence[Rule]) -> list[Span]:
    """Non-overlapping spans for ``line``, sorted by start offset."""
    if not line or not rules:
        return []
    claimed = [False] * len(line)
    spans = []
    for rule in rules:
        if not rule.enabled or rule.pattern is None:
            continue
        for match in rule.pattern.finditer(line):
            start, end = match.span()
            if start >= end:
                continue
            if any(claimed[start:end]):
                continue
            for i in range(start, end):
                claimed[i] = True
            spans.append(Span(start, end, rule.color, rule.style))
    spans.sort(key=lambda s: (s.start, s.end))
    return spans


def apply_rules(line: str, rules: Sequence[Rule]) -> str:
    """Return ``line`` with every resolved span wrapped in its style."""
    spans = resolve_spans(line, rules)
    if not spans:
        return line
    out = []
    pos = 0
    for span in spans:
        out.append(line[pos:span.start])
        out.append(wrap(line[span.start:span.end], span.color, span.style))
        pos = span.end
    out.append(line[pos:])
    return "".join(out)


def compile_query(query: str) -> Optional[re.Pattern]:
    """Case-insensitive literal matcher for a search query."""
    if not query:
        return None
    return re.compile(re.escape(query), re.IGNORECASE)


def query_spans(line: str, query: str) -> list[tuple[int, int]]:
    """Half-open ranges of every non-overlapping occurrence of ``query``."""
    matcher = compile_query(query)
    if matcher is None:
        return []
    return [m.span() for m in matcher.finditer(line)]


def highlight_query(text: str, query: str) -> str:
    """Underline every occurrence of ``query`` in already-styled ``text``.

    This is the helper for text that has been through ``apply_rules``:
    escape sequences are copied through untouched and never matched against.
    The interactive view does not use it; it composes query highlighting per
    character from ``query_spans`` so it can layer selection and cursor
    styles on the same cells.
    """
    matcher = compile_query(query)
    if matcher is None:
        return text
    out = []
    pos = 0
    for esc in ANSI_ESCAPE_RE.finditer(text):
        out.append(_highlight_plain(text[pos:esc.start()], matcher))
        out.append(esc.group(0))
        pos = esc.end()
    out.append(_highlight_plain(text[pos:], matcher))
    return "".join(out)


def _highlight_plain(chunk: str, matcher: re.Pattern) -> str:
    if not chunk:
        return chunk
    return matcher.sub(lambda m: wrap(m.group(0), QUERY_COLOR, QUERY_STYLE), chunk)
