#!/usr/bin/env python3

# Copyright (c) 2026 pykilo contributors
# SPDX-License-Identifier: ISC

"""
rawterm -- pure-Python terminal I/O for kilo

Raw-mode session handling, viewport size discovery and keyboard decoding,
including the multi-byte escape sequences sent for arrow, paging and editing
keys.

Zero external dependencies. Uses only Python stdlib: termios, os, re, sys.

Platform support:
  - Unix (Linux, macOS): termios raw mode with a VTIME-bounded read(2)

Minimum: Python 3.6+, any VT100-capable terminal.
"""

import os
import re
import sys
import termios
from collections import namedtuple


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class TerminalError(Exception):
    """
    Raised when a terminal operation fails at the OS level: reading or
    applying terminal attributes, querying the window size, or reading from
    and writing to the terminal. Never raised for a read that simply times
    out.

    op:
      Name of the failing operation, e.g. "tcsetattr"
    """

    def __init__(self, op, reason):
        self.op = op
        super().__init__(f"{op}: {_reason(reason)}")


def _reason(err):
    # termios.error carries (errno, message) args rather than strerror
    if isinstance(err, OSError) and err.strerror:
        return err.strerror
    if isinstance(err, termios.error) and len(err.args) == 2:
        return err.args[1]
    return str(err)


# ---------------------------------------------------------------------------
# Output escape sequences
# ---------------------------------------------------------------------------

ESC = 0x1B

HIDE_CURSOR = b"\x1b[?25l"
SHOW_CURSOR = b"\x1b[?25h"
CURSOR_HOME = b"\x1b[H"
ERASE_LINE = b"\x1b[K"  # cursor to end of line
ERASE_DISPLAY = b"\x1b[2J"
# Cursor forward/down stop at the screen edge, so this lands bottom-right
CURSOR_FAR = b"\x1b[999C\x1b[999B"
REQUEST_CURSOR_POSITION = b"\x1b[6n"


def cursor_to(row, col):
    """Return the sequence moving the cursor to 0-indexed (row, col)."""
    return f"\x1b[{row + 1};{col + 1}H".encode()


# ---------------------------------------------------------------------------
# Input constants
# ---------------------------------------------------------------------------


class Key:
    """Kinds of key events."""

    CHAR = "key_char"
    CONTROL = "key_control"
    UP = "key_up"
    DOWN = "key_down"
    LEFT = "key_left"
    RIGHT = "key_right"
    PAGE_UP = "key_page_up"
    PAGE_DOWN = "key_page_down"
    HOME = "key_home"
    END = "key_end"
    DELETE = "key_delete"
    ESCAPE = "key_escape"


class KeyEvent:
    """One decoded key: a kind from Key, plus the byte for CHAR/CONTROL."""

    __slots__ = ("kind", "byte")

    def __init__(self, kind, byte=None):
        self.kind = kind
        self.byte = byte

    # Named keys, assigned below
    UP = None
    DOWN = None
    LEFT = None
    RIGHT = None
    PAGE_UP = None
    PAGE_DOWN = None
    HOME = None
    END = None
    DELETE = None
    ESCAPE = None

    @staticmethod
    def char(b):
        return KeyEvent(Key.CHAR, b)

    @staticmethod
    def control(b):
        return KeyEvent(Key.CONTROL, b)

    @staticmethod
    def from_byte(b):
        """Classify a single input byte that doesn't start a sequence."""
        if b < 0x20 or b == 0x7F:
            return KeyEvent.control(b)
        return KeyEvent.char(b)

    def __eq__(self, other):
        if not isinstance(other, KeyEvent):
            return NotImplemented
        return self.kind == other.kind and self.byte == other.byte

    def __hash__(self):
        return hash((self.kind, self.byte))

    def __repr__(self):
        if self.byte is None:
            return f"KeyEvent({self.kind!r})"
        return f"KeyEvent({self.kind!r}, {self.byte:#04x})"


KeyEvent.UP = KeyEvent(Key.UP)
KeyEvent.DOWN = KeyEvent(Key.DOWN)
KeyEvent.LEFT = KeyEvent(Key.LEFT)
KeyEvent.RIGHT = KeyEvent(Key.RIGHT)
KeyEvent.PAGE_UP = KeyEvent(Key.PAGE_UP)
KeyEvent.PAGE_DOWN = KeyEvent(Key.PAGE_DOWN)
KeyEvent.HOME = KeyEvent(Key.HOME)
KeyEvent.END = KeyEvent(Key.END)
KeyEvent.DELETE = KeyEvent(Key.DELETE)
KeyEvent.ESCAPE = KeyEvent(Key.ESCAPE)


def ctrl_key(ch):
    """Return the byte sent for Ctrl+<ch> (top three bits cleared)."""
    return ord(ch) & 0x1F


# ---------------------------------------------------------------------------
# Escape sequence state machine
# ---------------------------------------------------------------------------

# Decoder states. The digit seen in _SAW_BRACKET_DIGIT is kept alongside.
_NORMAL = "normal"
_SAW_ESCAPE = "saw_escape"  # ESC
_SAW_O = "saw_o"  # ESC O
_SAW_BRACKET = "saw_bracket"  # ESC [
_SAW_BRACKET_DIGIT = "saw_bracket_digit"  # ESC [ <digit>

# ESC [ <final>
_BRACKET_FINAL = {
    ord("A"): KeyEvent.UP,
    ord("B"): KeyEvent.DOWN,
    ord("C"): KeyEvent.RIGHT,
    ord("D"): KeyEvent.LEFT,
    ord("H"): KeyEvent.HOME,  # xterm
    ord("F"): KeyEvent.END,  # xterm
}

# ESC O <final> (application mode)
_O_FINAL = {
    ord("H"): KeyEvent.HOME,
    ord("F"): KeyEvent.END,
}

# ESC [ <digit> ~
_TILDE_DIGIT = {
    ord("1"): KeyEvent.HOME,  # tmux/linux
    ord("3"): KeyEvent.DELETE,
    ord("4"): KeyEvent.END,  # tmux/linux
    ord("5"): KeyEvent.PAGE_UP,
    ord("6"): KeyEvent.PAGE_DOWN,
    ord("7"): KeyEvent.HOME,  # rxvt
    ord("8"): KeyEvent.END,  # rxvt
}


class KeyDecoder:
    """
    Turns raw input bytes into KeyEvents, one per read_key() call.

    read_byte:
      Callable returning the next input byte as an int, or None if nothing
      arrived within the read timeout. TerminalSession.read_byte fits.

    A sequence that times out or hits an unexpected byte part-way through
    decodes to KeyEvent.ESCAPE. The bytes read up to that point are
    consumed.
    """

    def __init__(self, read_byte):
        self._read_byte = read_byte

    def read_key(self):
        """Block until a key arrives and return it as a KeyEvent."""
        state = _NORMAL
        digit = None

        while True:
            b = self._read_byte()

            if state == _NORMAL:
                if b is None:
                    # Nothing pressed yet, keep waiting
                    continue
                if b != ESC:
                    return KeyEvent.from_byte(b)
                state = _SAW_ESCAPE
                continue

            if b is None:
                # Lone Esc, or a sequence cut short
                return KeyEvent.ESCAPE

            if state == _SAW_ESCAPE:
                if b == ord("["):
                    state = _SAW_BRACKET
                elif b == ord("O"):
                    state = _SAW_O
                else:
                    return KeyEvent.ESCAPE

            elif state == _SAW_O:
                return _O_FINAL.get(b, KeyEvent.ESCAPE)

            elif state == _SAW_BRACKET:
                if ord("0") <= b <= ord("9"):
                    state = _SAW_BRACKET_DIGIT
                    digit = b
                else:
                    return _BRACKET_FINAL.get(b, KeyEvent.ESCAPE)

            else:  # _SAW_BRACKET_DIGIT
                if b == ord("~"):
                    return _TILDE_DIGIT.get(digit, KeyEvent.ESCAPE)
                return KeyEvent.ESCAPE


# ---------------------------------------------------------------------------
# TerminalSession
# ---------------------------------------------------------------------------

# Read timeout in deciseconds (VTIME). read(2) returns empty after this long.
READ_TIMEOUT_DS = 1

# termios attribute list indices
_IFLAG, _OFLAG, _CFLAG, _LFLAG, _ISPEED, _OSPEED, _CC = range(7)


class TerminalSession:
    """
    Owns the terminal mode for the duration of a session.

    enter() switches the terminal to raw mode and restore() puts the
    original attributes back. restore() only touches the terminal once, and
    not at all if enter() never succeeded. Use as a context manager to get
    restoration on every exit path:

      with TerminalSession() as session:
          ...
    """

    def __init__(self, fd_in=None, fd_out=None):
        self.fd_in = sys.stdin.fileno() if fd_in is None else fd_in
        self.fd_out = sys.stdout.fileno() if fd_out is None else fd_out
        self.active = False
        self._orig_termios = None

    def enter(self):
        """Capture the current attributes and apply raw mode."""
        try:
            orig = termios.tcgetattr(self.fd_in)
        except termios.error as e:
            raise TerminalError("tcgetattr", e) from e

        raw = list(orig)
        raw[_CC] = list(orig[_CC])
        # IFLAG: no BREAK SIGINT, CR->NL, parity check, 8th bit strip, XON/XOFF
        raw[_IFLAG] &= ~(
            termios.BRKINT | termios.ICRNL | termios.INPCK | termios.ISTRIP | termios.IXON
        )
        # OFLAG: no NL->CRNL post-processing
        raw[_OFLAG] &= ~termios.OPOST
        raw[_CFLAG] |= termios.CS8
        # LFLAG: no echo, canonical mode, Ctrl-V, signal keys
        raw[_LFLAG] &= ~(termios.ECHO | termios.ICANON | termios.IEXTEN | termios.ISIG)
        # read() returns as soon as a byte is there, or empty on timeout
        raw[_CC][termios.VMIN] = 0
        raw[_CC][termios.VTIME] = READ_TIMEOUT_DS

        try:
            termios.tcsetattr(self.fd_in, termios.TCSAFLUSH, raw)
        except termios.error as e:
            raise TerminalError("tcsetattr", e) from e

        self._orig_termios = orig
        self.active = True

    def restore(self):
        """Reapply the original attributes. Safe to call more than once."""
        if not self.active:
            return
        self.active = False
        try:
            termios.tcsetattr(self.fd_in, termios.TCSAFLUSH, self._orig_termios)
        except termios.error as e:
            raise TerminalError("tcsetattr", e) from e

    def __enter__(self):
        self.enter()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.restore()

    def read_byte(self):
        """Return the next input byte, or None if the read timed out."""
        try:
            data = os.read(self.fd_in, 1)
        except BlockingIOError:
            # EAGAIN: same as no data (Cygwin returns it on timeout)
            return None
        except OSError as e:
            raise TerminalError("read", e) from e
        return data[0] if data else None

    def write(self, data):
        """Write 'data' to the terminal in a single write(2) call."""
        try:
            n = os.write(self.fd_out, data)
        except OSError as e:
            raise TerminalError("write", e) from e
        if n != len(data):
            raise TerminalError("write", f"short write ({n} of {len(data)} bytes)")


# ---------------------------------------------------------------------------
# Viewport size
# ---------------------------------------------------------------------------

Viewport = namedtuple("Viewport", "rows cols")

# Longest cursor position report we accept, including ESC and the final 'R'
CURSOR_REPORT_MAX = 32

_CURSOR_REPORT_RE = re.compile(rb"\x1b\[(\d+);(\d+)")


def parse_cursor_report(reply):
    """
    Parse a cursor position report (ESC [ <rows> ; <cols>, with the final
    'R' already stripped) into a Viewport. Raises TerminalError if the reply
    is malformed or either number is zero.
    """
    match = _CURSOR_REPORT_RE.fullmatch(reply)
    if not match:
        raise TerminalError("getWindowSize", f"bad cursor position report {reply!r}")

    rows, cols = int(match.group(1)), int(match.group(2))
    if rows < 1 or cols < 1:
        raise TerminalError("getWindowSize", f"bad cursor position report {reply!r}")
    return Viewport(rows, cols)


def get_cursor_position(session):
    """Ask the terminal where the cursor is and return it as a Viewport."""
    session.write(REQUEST_CURSOR_POSITION)

    reply = bytearray()
    while len(reply) < CURSOR_REPORT_MAX - 1:
        b = session.read_byte()
        if b is None or b == ord("R"):
            break
        reply.append(b)

    return parse_cursor_report(bytes(reply))


def get_window_size(session):
    """
    Return the terminal size as a Viewport.

    Asks the terminal driver first. If that fails or reports a zero size,
    pushes the cursor to the bottom-right corner and reads back its
    position instead. The session must be in raw mode for the fallback.
    """
    try:
        size = os.get_terminal_size(session.fd_out)
    except OSError:
        size = None

    if size is None or size.columns == 0 or size.lines == 0:
        session.write(CURSOR_FAR)
        return get_cursor_position(session)

    return Viewport(size.lines, size.columns)
