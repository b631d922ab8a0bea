"""Main viewer controller: the interactive loop."""

import logging
from typing import Optional, Sequence

from .clipboard import ClipboardManager
from .commands import CommandRegistry
from .constants import ViewerConstants
from .keyboard import KeyboardHandler, KeyEvent, KeyType
from .model import Viewer
from .reader import LineFeed
from .rules import Rule
from .terminal import TerminalInterface
from .view import TerminalView

logger = logging.getLogger(__name__)


class Pager:
    """Interactive log viewer application controller."""

    def __init__(
        self,
        lines: Sequence[str],
        rules: Optional[Sequence[Rule]] = None,
        plain: bool = False,
        status_at_top: bool = False,
        line_numbers: bool = True,
        feed: Optional[LineFeed] = None,
        terminal: Optional[TerminalInterface] = None,
        clipboard: Optional[ClipboardManager] = None,
    ):
        self.viewer = Viewer(lines, line_numbers=line_numbers, follow=feed is not None)
        self.view = TerminalView(self.viewer, rules, plain=plain, status_at_top=status_at_top)
        self.terminal = terminal or TerminalInterface()
        self.keyboard = KeyboardHandler(self.terminal)
        self.clipboard = clipboard or ClipboardManager()
        self.command_registry = CommandRegistry()  # Command pattern for key handling
        self.feed = feed
        self.running = False

    def run(self):
        """Take over the terminal until the user quits."""
        with self.terminal.session():
            logger.info(f"session started with {len(self.viewer.lines)} lines")
            try:
                self._loop()
            finally:
                logger.info("session ended")

    def _loop(self):
        self.running = True
        need_draw = True
        while self.running:
            if need_draw:
                self.draw()
                need_draw = False

            # Poll briefly while a producer may still deliver lines
            timeout = ViewerConstants.FEED_POLL_TIMEOUT if self._following() else None
            try:
                key_event = self.keyboard.get_key_event(timeout=timeout)
            except EOFError:
                break

            if self.terminal.consume_resize():
                need_draw = True
            if key_event is None:
                if self.drain_feed():
                    need_draw = True
                continue

            self.handle_key_event(key_event)
            need_draw = True

    def _following(self) -> bool:
        return self.feed is not None and not self.feed.closed

    def drain_feed(self) -> bool:
        """Apply at most one pending batch; True if lines were added."""
        if self.feed is None:
            return False
        batch = self.feed.poll()
        if not batch:
            return False
        self.viewer.append_lines(batch)
        return True

    def draw(self):
        columns, rows = self.terminal.size()
        self.view.resize(columns, rows)
        self.terminal.draw_frame(self.view.render())

    def handle_key_event(self, key_event: KeyEvent):
        """Handle a keyboard event.

        Args:
            key_event: KeyEvent object with parsed key information
        """
        # Clear transient status on any keypress
        self.viewer.status = ""
        self.command_registry.execute(self, key_event)

    def prompt(self, prefix: str) -> Optional[str]:
        """Read a line of input on the status row.

        Returns:
            The entered text, or None if the prompt was cancelled
        """
        buf = ""
        while True:
            text = prefix + buf
            row = 0 if self.view.status_at_top else self.view.content_height
            self.terminal.draw_prompt(
                row,
                self.view.prompt_line(text),
                min(len(text), self.view.num_columns - 1),
            )
            try:
                key_event = self.keyboard.get_key_event()
            except EOFError:
                return None

            if key_event is None:
                if self.terminal.consume_resize():
                    self.draw()
                continue
            if key_event.key_type == KeyType.SPECIAL:
                if key_event.value == 'enter':
                    return buf
                if key_event.value == 'escape':
                    return None
                if key_event.value == 'backspace':
                    buf = buf[:-1]
            elif key_event.key_type == KeyType.CTRL and key_event.value == 'c':
                return None
            elif key_event.key_type == KeyType.REGULAR:
                buf += key_event.value
