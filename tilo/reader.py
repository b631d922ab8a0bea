"""Input reading: the initial lines and, in follow mode, a tailing producer.

The tailer runs on its own daemon thread and hands complete lines to the
viewer through a LineFeed, a bounded queue the single UI loop polls between
key presses. A full queue stalls the tailer; lines are never dropped.
"""

from __future__ import annotations

import logging
import queue
import sys
import threading
from typing import BinaryIO, Iterable, Iterator, Optional, Sequence

from .constants import ViewerConstants
from .errors import InputError

logger = logging.getLogger(__name__)


def decode_line(raw: bytes) -> str:
    """Decode one line, dropping its LF or CRLF terminator."""
    if raw.endswith(b"\n"):
        raw = raw[:-1]
    if raw.endswith(b"\r"):
        raw = raw[:-1]
    return raw.decode("utf-8", errors="replace")


def read_lines(stream: Iterable[bytes]) -> list[str]:
    """Read every line of a binary stream; a final unterminated line counts."""
    return [decode_line(raw) for raw in stream]


class LineFeed:
    """Bounded hand-off of line batches from a producer thread."""

    _CLOSED = object()

    def __init__(self, maxsize: int = ViewerConstants.FEED_QUEUE_SIZE):
        self._queue: queue.Queue = queue.Queue(maxsize=maxsize)
        self.closed = False

    def put(self, batch: Sequence[str]) -> None:
        """Queue a batch, waiting while the feed is full."""
        self._queue.put(list(batch))

    def close(self) -> None:
        """Mark the end of the stream once queued batches are consumed."""
        self._queue.put(self._CLOSED)

    def poll(self) -> Optional[list[str]]:
        """Return the next batch if one is ready, without waiting."""
        if self.closed:
            return None
        try:
            item = self._queue.get_nowait()
        except queue.Empty:
            return None
        if item is self._CLOSED:
            self.closed = True
            return None
        return item

    def batches(self) -> Iterator[list[str]]:
        """Yield batches as they arrive until the feed closes."""
        while not self.closed:
            item = self._queue.get()
            if item is self._CLOSED:
                self.closed = True
                return
            yield item


class FileTailer(threading.Thread):
    """Reads lines appended to an open file and pushes them to a LineFeed.

    A trailing partial line is held back until its newline arrives. At end
    of file the tailer sleeps for ``poll_interval`` and tries again.
    """

    def __init__(
        self,
        file: BinaryIO,
        feed: LineFeed,
        poll_interval: float = ViewerConstants.FOLLOW_POLL_INTERVAL,
        max_batch: int = ViewerConstants.FEED_MAX_BATCH,
    ):
        super().__init__(name="tilo-follow", daemon=True)
        self.file = file
        self.feed = feed
        self.poll_interval = poll_interval
        self.max_batch = max_batch
        self._stop_event = threading.Event()

    def stop(self) -> None:
        self._stop_event.set()

    def run(self) -> None:
        logger.info(f"following {getattr(self.file, 'name', self.file)}")
        pending = b""
        try:
            while not self._stop_event.is_set():
                chunk = self.file.read(65536)
                if not chunk:
                    self._stop_event.wait(self.poll_interval)
                    continue
                pending += chunk
                *complete, pending = pending.split(b"\n")
                lines = [decode_line(raw) for raw in complete]
                for start in range(0, len(lines), self.max_batch):
                    self.feed.put(lines[start:start + self.max_batch])
        except (OSError, ValueError) as e:
            logger.error(f"follow stopped: {e}")
        finally:
            self.file.close()
            self.feed.close()
            logger.info("follow ended")


def open_input(
    paths: Sequence[str],
    follow: bool = False,
    stdin=None,
) -> tuple[list[str], Optional[LineFeed]]:
    """Read the initial lines and start following if asked.

    Args:
        paths: Positional arguments: nothing, ``-`` or a single file path
        follow: Keep reading lines appended to the file
        stdin: Text stream used for ``-`` or when no path is given

    Returns:
        (lines, feed) where feed is None unless following

    Raises:
        InputError: bad arguments, nothing to read, or an unreadable file.
    """
    stdin = stdin if stdin is not None else sys.stdin
    if len(paths) > 1:
        raise InputError("usage: tilo [path|-]")

    if not paths:
        if stdin.isatty():
            raise InputError("no input")
        return read_lines(getattr(stdin, "buffer", stdin)), None

    path = paths[0]
    if path == "-":
        if follow:
            raise InputError("follow requires a file path")
        return read_lines(getattr(stdin, "buffer", stdin)), None

    try:
        file = open(path, "rb")
    except OSError as e:
        raise InputError(f"{path}: {e.strerror or e}") from e

    if not follow:
        with file:
            return read_lines(file), None

    try:
        lines = read_lines(file)
    except OSError as e:
        file.close()
        raise InputError(f"{path}: {e.strerror or e}") from e
    feed = LineFeed()
    FileTailer(file, feed).start()
    return lines, feed
