#!/usr/bin/env python3

# Copyright (c) 2026 pykilo contributors
# SPDX-License-Identifier: ISC

"""
Overview
========

A minimal terminal text viewer in the spirit of antirez's kilo, built on
rawterm (pure-Python terminal I/O).

The screen is redrawn in full on every keypress, with the whole frame sent
to the terminal in a single write. Unused screen rows are marked with '~',
and a version banner is shown a third of the way down when no file is
loaded.

Keys:

  Arrows            : Move the cursor one cell
  Page Up/Page Down : Move the cursor a screenful up/down
  Home/End          : Jump to the first/last column
  Ctrl-K            : Quit


Running
=======

kilo.py can be run as a standalone executable or through the 'kilo' console
script. An optional file can be passed as a command-line argument, and its
first line is shown at the top of the screen.

The cursor can move anywhere within the screen, regardless of how long the
loaded line is.

The exit status is 1 if the terminal can't be set up or the file can't be
opened, and 0 otherwise.
"""

import argparse
import sys

from rawterm import (
    CURSOR_HOME,
    ERASE_DISPLAY,
    ERASE_LINE,
    HIDE_CURSOR,
    SHOW_CURSOR,
    Key,
    KeyDecoder,
    KeyEvent,
    TerminalError,
    TerminalSession,
    ctrl_key,
    cursor_to,
    get_window_size,
)

KILO_VERSION = "0.0.1"

_BANNER = f"Kilo editor -- version {KILO_VERSION} - Exit = Ctrl + K".encode()

QUIT_KEY = KeyEvent.control(ctrl_key("k"))

# Marker drawn on screen rows past the end of the buffer
_EMPTY_ROW_MARKER = b"~"


#
# Data
#


class ContentBuffer:
    """
    Ordered rows of text, in display order. Each row is a bytes object
    without a line terminator.
    """

    def __init__(self):
        self.rows = []

    def __len__(self):
        return len(self.rows)

    def append_row(self, row):
        self.rows.append(bytes(row))

    def open(self, filename):
        """
        Load the first line of 'filename', without its trailing newline or
        carriage return. Raises OSError if the file can't be read. An empty
        file leaves the buffer empty.
        """
        with open(filename, "rb") as f:
            line = f.readline()

        if line:
            self.append_row(line.rstrip(b"\r\n"))


class Cursor:
    """Cursor position, kept inside the viewport by every movement."""

    __slots__ = ("row", "col")

    def __init__(self, row=0, col=0):
        self.row = row
        self.col = col

    def move(self, key, viewport):
        # Moving past a screen edge does nothing

        if key == Key.LEFT:
            if self.col != 0:
                self.col -= 1
        elif key == Key.RIGHT:
            if self.col != viewport.cols - 1:
                self.col += 1
        elif key == Key.UP:
            if self.row != 0:
                self.row -= 1
        elif key == Key.DOWN:
            if self.row != viewport.rows - 1:
                self.row += 1

    def __repr__(self):
        return f"Cursor(row={self.row}, col={self.col})"


class EditorState:
    """
    Everything the editor loop works on: the viewport size (sampled once),
    the cursor and the loaded text.
    """

    def __init__(self, viewport):
        self.viewport = viewport
        self.cursor = Cursor()
        self.buffer = ContentBuffer()

    def process_key(self, event):
        """
        Apply one key event. Returns False if it was the quit key and True
        otherwise. Keys without a binding are ignored.
        """
        if event == QUIT_KEY:
            return False

        kind = event.kind
        if kind == Key.HOME:
            self.cursor.col = 0

        elif kind == Key.END:
            self.cursor.col = self.viewport.cols - 1

        elif kind in (Key.PAGE_UP, Key.PAGE_DOWN):
            # Reuse single-step movement, one step per screen row
            step = Key.UP if kind == Key.PAGE_UP else Key.DOWN
            for _ in range(self.viewport.rows):
                self.cursor.move(step, self.viewport)

        elif kind in (Key.UP, Key.DOWN, Key.LEFT, Key.RIGHT):
            self.cursor.move(kind, self.viewport)

        return True


#
# Output
#


def _draw_rows(state, buf):
    # Appends the screen rows to 'buf'. Rows past the end of the buffer get a
    # '~' marker, and the banner goes on the row a third of the way down when
    # nothing is loaded.

    rows, cols = state.viewport
    text_rows = state.buffer.rows

    for y in range(rows):
        if y < len(text_rows):
            # Truncate, never wrap
            buf.append(text_rows[y][:cols])

        elif not text_rows and y == rows // 3:
            banner = _BANNER[:cols]
            padding = (cols - len(banner)) // 2
            if padding:
                buf.append(_EMPTY_ROW_MARKER)
                padding -= 1
            buf.append(b" " * padding)
            buf.append(banner)

        else:
            buf.append(_EMPTY_ROW_MARKER)

        buf.append(ERASE_LINE)
        if y < rows - 1:
            buf.append(b"\r\n")


def build_frame(state):
    """Return the bytes for one full screen redraw of 'state'."""
    buf = [HIDE_CURSOR, CURSOR_HOME]
    _draw_rows(state, buf)
    buf.append(cursor_to(state.cursor.row, state.cursor.col))
    buf.append(SHOW_CURSOR)
    return b"".join(buf)


def refresh_screen(state, session):
    """Redraw the screen with a single write."""
    session.write(build_frame(state))


def _clear_screen(session):
    session.write(ERASE_DISPLAY + CURSOR_HOME)


#
# Main loop
#


def editor_loop(state, session):
    """
    Redraw, then wait for and apply one key, until the quit key is pressed.
    The screen is left cleared on return.
    """
    decoder = KeyDecoder(session.read_byte)

    while True:
        refresh_screen(state, session)
        if not state.process_key(decoder.read_key()):
            break

    _clear_screen(session)


def run(filename=None, session=None):
    """
    Runs the editor on the terminal, optionally with the first line of
    'filename' loaded, and returns after the user quits.

    session:
      TerminalSession to use. Defaults to one on stdin/stdout.

    On TerminalError or OSError, the screen is cleared if possible and the
    error is re-raised. The terminal mode is restored in every case.
    """
    if session is None:
        session = TerminalSession()

    try:
        with session:
            state = EditorState(get_window_size(session))
            if filename is not None:
                state.buffer.open(filename)
            editor_loop(state, session)
    except (TerminalError, OSError):
        # Also reached when raw mode could not be entered
        try:
            _clear_screen(session)
        except TerminalError:
            # The original error is the one worth reporting
            pass
        raise


def _error_message(e):
    if isinstance(e, OSError) and e.filename is not None:
        return f"{e.filename}: {e.strerror}"
    return str(e)


def main(argv=None):
    parser = argparse.ArgumentParser(
        formatter_class=argparse.RawDescriptionHelpFormatter, description=__doc__
    )

    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {KILO_VERSION}"
    )

    parser.add_argument(
        "filename", metavar="FILE", nargs="?", help="File whose first line to show"
    )

    args = parser.parse_args(argv)

    try:
        run(args.filename)
    except (TerminalError, OSError) as e:
        sys.exit(f"kilo: {_error_message(e)}")


def _main():
    main()


if __name__ == "__main__":
    _main()
