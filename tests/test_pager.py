"""Test key dispatch through the pager loop."""

import contextlib
from unittest.mock import MagicMock, Mock

import pytest

from tilo.commands import CommandRegistry, SelectCommand
from tilo.keyboard import KeyEvent, KeyType
from tilo.model import SelectionMode
from tilo.pager import Pager
from tilo.reader import LineFeed


class MockTerminal:
    """Terminal stand-in: queued input bytes, recorded output."""

    def __init__(self, data=b"", size=(80, 24)):
        self._bytes = list(data)
        self._size = size
        self.frames = []
        self.prompts = []

    def read_byte(self, timeout=None):
        if self._bytes:
            return self._bytes.pop(0)
        if timeout is None:
            raise EOFError("no more input")
        return None

    def session(self):
        return contextlib.nullcontext(self)

    def consume_resize(self):
        return False

    def size(self):
        return self._size

    def draw_frame(self, frame):
        self.frames.append(frame)

    def draw_prompt(self, row, line, cursor_col):
        self.prompts.append((row, line, cursor_col))


def make_pager(lines, data=b"", **kwargs):
    terminal = MockTerminal(data)
    clipboard = Mock()
    clipboard.write.return_value = True
    pager = Pager(lines, terminal=terminal, clipboard=clipboard, **kwargs)
    return pager, terminal, clipboard


def key(value, key_type=KeyType.REGULAR):
    return KeyEvent(key_type=key_type, value=value, raw=value)


def test_movement_keys_then_quit():
    pager, terminal, _ = make_pager(["a"] * 5, b"jjkjq")
    pager.run()
    assert pager.viewer.cursor == 2
    assert pager.running is False
    assert terminal.frames


def test_quit_stops_reading_input():
    pager, terminal, _ = make_pager(["a"] * 5, b"qj")
    pager.run()
    assert pager.viewer.cursor == 0
    assert terminal._bytes == [ord("j")]


def test_ctrl_c_quits():
    pager, _, _ = make_pager(["a"] * 5, b"j\x03j")
    pager.run()
    assert pager.viewer.cursor == 1


def test_arrow_keys_move_cursor():
    pager, _, _ = make_pager(["abc"] * 5, b"\x1b[B\x1b[B\x1b[C\x1b[A")
    pager.run()
    assert (pager.viewer.cursor, pager.viewer.cursor_col) == (1, 1)


@pytest.mark.parametrize("data", [b"\x1b[1;5A", b"\x1bOP", b"\x1b[3~"])
def test_unmapped_sequences_do_not_run_commands(data):
    pager, _, _ = make_pager(["abcdef"] * 3, data)
    pager.run()
    assert (pager.viewer.cursor, pager.viewer.cursor_col) == (0, 0)


def test_application_mode_arrows_move_cursor():
    pager, _, _ = make_pager(["abc"] * 5, b"\x1bOB\x1bOC")
    pager.run()
    assert (pager.viewer.cursor, pager.viewer.cursor_col) == (1, 1)


def test_page_down_moves_by_page_rows():
    pager, _, _ = make_pager(["a"] * 100, b"\x1b[6~")
    pager.run()
    assert pager.viewer.cursor == 22


def test_search_prompt():
    pager, terminal, _ = make_pager(["a", "b", "an err", "c"], b"/erx\x7fr\r")
    pager.run()
    assert pager.viewer.query == "err"
    assert (pager.viewer.cursor, pager.viewer.cursor_col) == (2, 3)
    row, line, cursor_col = terminal.prompts[-1]
    assert row == 23
    assert line.startswith("/err")
    assert cursor_col == 4


def test_backward_search_prompt():
    pager, terminal, _ = make_pager(["x", "a", "x", "b"], b"G?x\r")
    pager.run()
    assert pager.viewer.cursor == 2
    assert terminal.prompts[0][1].startswith("?")


def test_search_prompt_cancelled_with_escape():
    pager, _, _ = make_pager(["a", "err"], b"/err\x1b")
    pager.run()
    assert pager.viewer.query == ""
    assert pager.viewer.cursor == 0


def test_prompt_on_top_status_bar():
    pager, terminal, _ = make_pager(["a"], b"/a\r", status_at_top=True)
    pager.run()
    assert terminal.prompts[0][0] == 0


def test_select_and_copy():
    pager, _, clipboard = make_pager(["abc"], b"vly")
    pager.run()
    clipboard.write.assert_called_once_with("ab")
    assert pager.viewer.status == "copied"


def test_escape_clears_selection():
    pager, _, _ = make_pager(["abc"], b"V\x1b")
    pager.run()
    assert not pager.viewer.selection.active


def test_ctrl_v_starts_block_selection():
    pager, _, _ = make_pager(["abc"], b"\x16")
    pager.run()
    assert pager.viewer.selection.mode == SelectionMode.BLOCK


def test_display_toggles():
    pager, _, _ = make_pager(["abc"], b"WL")
    pager.run()
    assert pager.viewer.wrap is True
    assert pager.viewer.line_numbers is False


def test_status_cleared_on_keypress():
    pager, _, _ = make_pager(["a", "b"])
    pager.viewer.status = "no matches"
    pager.handle_key_event(key("L"))
    assert pager.viewer.status == ""


def test_enter_marks_followed_stream():
    pager, _, _ = make_pager(["a"], feed=LineFeed())
    assert pager.viewer.follow is True
    pager.handle_key_event(key("enter", KeyType.SPECIAL))
    assert list(pager.viewer.lines) == ["a", ""]


def test_feed_batches_are_applied_between_keys():
    feed = LineFeed()
    feed.put(["b", "c"])
    feed.close()
    pager, terminal, _ = make_pager(["a"], feed=feed)
    pager.run()
    assert list(pager.viewer.lines) == ["a", "b", "c"]
    assert pager.viewer.cursor == 2
    assert feed.closed
    assert len(terminal.frames) >= 2


def test_drain_feed_applies_one_batch():
    feed = LineFeed()
    feed.put(["b"])
    feed.put(["c"])
    pager, _, _ = make_pager(["a"], feed=feed)
    assert pager.drain_feed() is True
    assert list(pager.viewer.lines) == ["a", "b"]


def test_frame_uses_terminal_size():
    pager, terminal, _ = make_pager(["a"])
    terminal._size = (40, 10)
    pager.draw()
    frame = terminal.frames[-1]
    assert len(frame.rows) == 9
    assert len(frame.status) == 40


def test_registry_maps_ctrl_v_to_block_select():
    registry = CommandRegistry()
    command = registry.get_command(KeyType.CTRL, "v")
    assert isinstance(command, SelectCommand)
    assert command.mode == SelectionMode.BLOCK


def test_unmapped_key_is_ignored():
    registry = CommandRegistry()
    pager = MagicMock()
    assert registry.execute(pager, key("z")) is False
    assert pager.method_calls == []
