"""Keyboard input decoding from raw terminal bytes."""

from typing import Optional
from dataclasses import dataclass
from enum import Enum

from .constants import ViewerConstants


class KeyType(Enum):
    """Types of key events."""
    REGULAR = "regular"
    CTRL = "ctrl"
    SPECIAL = "special"


@dataclass
class KeyEvent:
    """Represents a decoded keyboard event."""
    key_type: KeyType
    value: str  # The base key (e.g., 'j', 'up', 'escape')
    raw: str  # The bytes that produced the event, decoded latin-1
    is_ctrl: bool = False
    is_sequence: bool = False


ESC = 0x1b

# Parameter/intermediate and final byte ranges of a CSI sequence
CSI_PARAM_MIN, CSI_PARAM_MAX = 0x20, 0x3F
CSI_FINAL_MIN, CSI_FINAL_MAX = 0x40, 0x7E

# Final byte of parameterless "ESC [ <code>" and "ESC O <code>" sequences
CSI_KEYS = {
    ord('A'): 'up',
    ord('B'): 'down',
    ord('C'): 'right',
    ord('D'): 'left',
    ord('H'): 'home',
    ord('F'): 'end',
}

# "ESC [ <code> ~" sequences
CSI_TILDE_KEYS = {
    ord('5'): 'page_up',
    ord('6'): 'page_down',
}


def _utf8_length(lead: int) -> int:
    if lead >= 0xF0:
        return 4
    if lead >= 0xE0:
        return 3
    if lead >= 0xC0:
        return 2
    return 1


class KeyboardHandler:
    """Turns the terminal's byte stream into KeyEvents.

    The terminal only needs a ``read_byte(timeout)`` method returning an int
    or None when nothing arrived in time.
    """

    def __init__(self, terminal_interface):
        """Initialize with a terminal interface."""
        self.terminal = terminal_interface

    def get_key_event(self, timeout: Optional[float] = None) -> Optional[KeyEvent]:
        """Read and decode one key; None on timeout or a discarded sequence."""
        b = self.terminal.read_byte(timeout)
        if b is None:
            return None
        return self.parse_byte(b)

    def _read_more(self) -> Optional[int]:
        return self.terminal.read_byte(ViewerConstants.ESCAPE_SEQUENCE_TIMEOUT)

    def parse_byte(self, b: int) -> Optional[KeyEvent]:
        """Decode a key starting with byte ``b``, reading more bytes if needed."""
        if b == ESC:
            return self._parse_escape()

        if b in (0x0d, 0x0a):
            return KeyEvent(key_type=KeyType.SPECIAL, value='enter', raw=chr(b))
        if b in (0x7f, 0x08):
            return KeyEvent(key_type=KeyType.SPECIAL, value='backspace', raw=chr(b))
        if 1 <= b <= 26:
            ch = chr(ord('a') + b - 1)
            return KeyEvent(key_type=KeyType.CTRL, value=ch, raw=chr(b), is_ctrl=True)
        if b < 0x20:
            return None

        if b >= 0x80:
            data = bytes([b])
            for _ in range(_utf8_length(b) - 1):
                nxt = self._read_more()
                if nxt is None:
                    break
                data += bytes([nxt])
            ch = data.decode('utf-8', errors='replace')
            return KeyEvent(key_type=KeyType.REGULAR, value=ch, raw=data.decode('latin-1'))

        return KeyEvent(key_type=KeyType.REGULAR, value=chr(b), raw=chr(b))

    def _parse_escape(self) -> Optional[KeyEvent]:
        """Decode what follows ESC.

        A lone ESC is the escape key. ``ESC [`` and ``ESC O`` sequences are
        read through their final byte; only the navigation keys in the tables
        above produce an event, and any other sequence is dropped whole.
        """
        b = self._read_more()
        if b is None:
            return KeyEvent(key_type=KeyType.SPECIAL, value='escape', raw='\x1b')
        if b == ord('O'):
            final = self._read_more()
            if final in CSI_KEYS:
                return KeyEvent(key_type=KeyType.SPECIAL, value=CSI_KEYS[final],
                                raw='\x1bO' + chr(final), is_sequence=True)
            return None
        if b != ord('['):
            return None

        params = []
        while True:
            code = self._read_more()
            if code is None:
                return None
            if CSI_PARAM_MIN <= code <= CSI_PARAM_MAX:
                params.append(code)
                continue
            if not CSI_FINAL_MIN <= code <= CSI_FINAL_MAX:
                # Not a valid sequence byte: give up on the sequence
                return None
            break

        raw = '\x1b[' + bytes(params).decode('latin-1') + chr(code)
        if not params and code in CSI_KEYS:
            return KeyEvent(key_type=KeyType.SPECIAL, value=CSI_KEYS[code],
                            raw=raw, is_sequence=True)
        if code == ord('~') and len(params) == 1 and params[0] in CSI_TILDE_KEYS:
            return KeyEvent(key_type=KeyType.SPECIAL, value=CSI_TILDE_KEYS[params[0]],
                            raw=raw, is_sequence=True)
        return None
