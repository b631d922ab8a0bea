"""tilo CLI entry point.

Allows running via `python -m tilo` and provides the console script
defined in `pyproject.toml`.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Iterable, Optional, Sequence, TextIO

from . import __version__
from .config import load_config
from .errors import ConfigError, TiloError
from .reader import open_input
from .rules import Rule, apply_rules

logger = logging.getLogger(__name__)


def _escape_bytes(s: str) -> str:
    """Return a printable representation of raw key string."""
    return s.encode('unicode_escape').decode('ascii')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tilo",
        description="Interactive terminal log viewer with vim-style navigation.",
    )
    parser.add_argument("path", nargs="*", help="file to view, or - for stdin")
    parser.add_argument("--config", metavar="PATH", help="path to config file")
    parser.add_argument("--plain", action="store_true", help="disable color output")
    parser.add_argument("-f", "--follow", action="store_true", help="follow file growth")
    parser.add_argument("--log-file", metavar="PATH", help="write debug log to PATH")
    parser.add_argument("--keytest", action="store_true",
                        help="print decoded key events until ESC (terminal diagnostics)")
    parser.add_argument("-V", "--version", action="version", version=f"tilo {__version__}")
    return parser


def setup_logging(log_file: Optional[str]) -> None:
    """Route the package's log records.

    The screen belongs to the viewer, so records go to a file or nowhere.
    """
    package_logger = logging.getLogger("tilo")
    if not log_file:
        package_logger.addHandler(logging.NullHandler())
        return
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    package_logger.addHandler(handler)
    package_logger.setLevel(logging.DEBUG)


def print_lines(
    lines: Iterable[str],
    rules: Sequence[Rule],
    plain: bool,
    out: Optional[TextIO] = None,
) -> None:
    """Write lines for a non-terminal consumer, colorized unless plain."""
    out = out or sys.stdout
    for line in lines:
        if not plain:
            line = apply_rules(line, rules)
        out.write(line + "\n")
    out.flush()


def run_keyboard_test() -> None:
    """Print each decoded key event; quit with ESC."""
    from .keyboard import KeyboardHandler, KeyType
    from .terminal import TerminalInterface

    print("Keyboard test mode: press keys to see decoded events.")
    print("Quit with ESC.")
    term = TerminalInterface()
    kb = KeyboardHandler(term)
    with term.term.raw():
        while True:
            ev = kb.get_key_event(timeout=None)
            if not ev:
                continue
            if ev.key_type == KeyType.SPECIAL and ev.value == 'escape':
                print("Exiting keyboard test.", end="\r\n")
                break
            parts = [f"type={ev.key_type.value}", f"value={ev.value}", f"raw='{_escape_bytes(ev.raw)}'"]
            if ev.is_ctrl:
                parts.append("flags=ctrl")
            if ev.is_sequence:
                parts.append("flags=seq")
            print(' '.join(parts), end="\r\n", flush=True)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_file)

    if args.keytest:
        run_keyboard_test()
        return 0

    try:
        lines, feed = open_input(args.path, follow=args.follow)
        if not lines:
            print("no input", file=sys.stderr)
            return 1
        try:
            config = load_config(args.config)
            rules = config.build_rules()
        except ConfigError as e:
            print(f"config error: {e}", file=sys.stderr)
            return 1

        logger.debug(f"read {len(lines)} lines (follow={feed is not None})")
        if not (sys.stdin.isatty() and sys.stdout.isatty()):
            print_lines(lines, rules, args.plain)
            if feed is not None:
                for batch in feed.batches():
                    print_lines(batch, rules, args.plain)
            return 0

        from .pager import Pager
        Pager(
            lines,
            rules,
            plain=args.plain,
            status_at_top=config.status_at_top,
            line_numbers=config.line_numbers,
            feed=feed,
        ).run()
    except TiloError as e:
        print(e, file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
