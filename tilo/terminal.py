"""Terminal interface using Blessed for display and raw byte reads for input."""

import os
import select
import signal
import sys
from contextlib import ExitStack, contextmanager
from typing import Optional

import blessed

from .constants import ViewerConstants
from .view import Frame


class TerminalInterface:
    """Handles terminal I/O using Blessed."""

    def __init__(self, terminal: Optional[blessed.Terminal] = None, stdin_fd: Optional[int] = None):
        """Initialize with a terminal instance (or create one)."""
        self.term = terminal or blessed.Terminal()
        self.stdin_fd = sys.stdin.fileno() if stdin_fd is None else stdin_fd
        self._resize_pipe_r: Optional[int] = None
        self._resize_pipe_w: Optional[int] = None
        self._resized = False

    @contextmanager
    def session(self):
        """Raw mode, alternate screen and block cursor for the duration.

        Everything acquired here is released in reverse order however the
        block exits.
        """
        with ExitStack() as stack:
            stack.enter_context(self.term.raw())
            stack.enter_context(self.term.fullscreen())
            self._write(self.term.normal_cursor + ViewerConstants.CURSOR_BLOCK)
            stack.callback(self._write, ViewerConstants.CURSOR_RESET + self.term.normal)
            self._install_resize_handler(stack)
            yield self

    def _install_resize_handler(self, stack: ExitStack) -> None:
        if not hasattr(signal, 'SIGWINCH'):
            return
        self._resize_pipe_r, self._resize_pipe_w = os.pipe()
        stack.callback(self._close_resize_pipe)

        def handle_resize(signum, frame):
            del signum, frame  # Unused
            # Wake up select()
            os.write(self._resize_pipe_w, ViewerConstants.RESIZE_PIPE_MARKER)

        previous = signal.signal(signal.SIGWINCH, handle_resize)
        stack.callback(signal.signal, signal.SIGWINCH, previous)

    def _close_resize_pipe(self) -> None:
        for fd in (self._resize_pipe_r, self._resize_pipe_w):
            if fd is not None:
                os.close(fd)
        self._resize_pipe_r = self._resize_pipe_w = None

    def consume_resize(self) -> bool:
        """True once after each terminal resize."""
        resized, self._resized = self._resized, False
        return resized

    def read_byte(self, timeout: Optional[float] = None) -> Optional[int]:
        """Read one input byte.

        Args:
            timeout: Seconds to wait (None blocks, 0 polls)

        Returns:
            The byte, or None if nothing arrived or a resize interrupted the wait.

        Raises:
            EOFError: stdin was closed.
        """
        fds = [self.stdin_fd]
        if self._resize_pipe_r is not None:
            fds.append(self._resize_pipe_r)
        ready, _, _ = select.select(fds, [], [], timeout)
        if self._resize_pipe_r is not None and self._resize_pipe_r in ready:
            os.read(self._resize_pipe_r, 1024)
            self._resized = True
        if self.stdin_fd not in ready:
            return None
        data = os.read(self.stdin_fd, 1)
        if not data:
            raise EOFError("terminal input closed")
        return data[0]

    def size(self) -> tuple[int, int]:
        """(columns, rows), or the fallback geometry if the query fails."""
        try:
            width, height = self.term.width, self.term.height
        except OSError:
            width = height = 0
        if not width or not height:
            return ViewerConstants.DEFAULT_WIDTH, ViewerConstants.DEFAULT_HEIGHT
        return width, height

    def status_style(self, text: str) -> str:
        return self.term.bright_white_on_bright_black(text)

    def draw_frame(self, frame: Frame) -> None:
        """Paint a laid out frame and park the cursor."""
        out = [self.term.hide_cursor]
        first_row = 1 if frame.status_row == 0 else 0
        for y, row in enumerate(frame.rows):
            out.append(self.term.move_yx(first_row + y, 0) + row)
        out.append(self.term.move_yx(frame.status_row, 0) + self.status_style(frame.status))
        out.append(self.term.move_yx(frame.cursor_row, frame.cursor_col))
        out.append(self.term.normal_cursor)
        self._write(''.join(out))

    def draw_prompt(self, row: int, line: str, cursor_col: int) -> None:
        """Show prompt input on the status row with the cursor after it."""
        self._write(
            self.term.move_yx(row, 0)
            + self.status_style(line)
            + self.term.move_yx(row, cursor_col)
        )

    def _write(self, text: str) -> None:
        print(text, end='', flush=True)
