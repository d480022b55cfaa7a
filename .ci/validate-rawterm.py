#!/usr/bin/env python3
"""Validate rawterm and kilo on a POSIX system.

Exercises rawterm key decoding and cursor report parsing, the kilo frame
renderer, and, when a real TTY is attached, a full raw-mode enter/restore
cycle with a window size query.

Run from the project root: python .ci/validate-rawterm.py
"""

import os
import sys
import termios

# Ensure the project root (CWD) is on the import path, since Python
# adds the script's directory (.ci/) rather than CWD by default.
sys.path.insert(0, os.getcwd())


def check_rawterm_units():
    """rawterm KeyEvent, KeyDecoder, cursor reports -- no terminal required."""
    from rawterm import Key, KeyDecoder, KeyEvent, Viewport, parse_cursor_report

    # Named keys exist and compare by value
    for attr in (
        "UP",
        "DOWN",
        "LEFT",
        "RIGHT",
        "HOME",
        "END",
        "PAGE_UP",
        "PAGE_DOWN",
        "DELETE",
        "ESCAPE",
    ):
        event = getattr(KeyEvent, attr)
        assert event == KeyEvent(getattr(Key, attr)), "KeyEvent." + attr

    data = list(b"\x1b[5~\x1bOHq")
    decoder = KeyDecoder(lambda: data.pop(0) if data else None)
    assert decoder.read_key() == KeyEvent.PAGE_UP, "ESC [ 5 ~"
    assert decoder.read_key() == KeyEvent.HOME, "ESC O H"
    assert decoder.read_key() == KeyEvent.char(ord("q")), "plain byte"
    data[:] = [0x1B]
    assert decoder.read_key() == KeyEvent.ESCAPE, "lone ESC"

    assert parse_cursor_report(b"\x1b[24;80") == Viewport(24, 80), "cursor report"

    print("rawterm unit checks passed")


def check_kilo_render():
    """kilo frame layout -- no terminal required."""
    import kilo
    from rawterm import Viewport

    state = kilo.EditorState(Viewport(24, 80))
    frame = kilo.build_frame(state)
    assert frame.count(b"\r\n") == 23, "row separators"
    assert frame.count(b"~") == 24, "row markers"
    assert kilo._BANNER in frame, "banner"

    state.buffer.append_row(b"hello")
    frame = kilo.build_frame(state)
    assert b"\x1b[Hhello\x1b[K" in frame, "loaded row"
    assert kilo._BANNER not in frame, "no banner with content"

    print("kilo render checks passed")


def check_terminal_init():
    """Raw mode enter/restore -- requires a real TTY on stdin/stdout."""
    from rawterm import TerminalSession, get_window_size

    if not (os.isatty(sys.stdin.fileno()) and os.isatty(sys.stdout.fileno())):
        print("Terminal init/restore skipped (no TTY)")
        return

    before = termios.tcgetattr(sys.stdin.fileno())
    with TerminalSession() as session:
        raw = termios.tcgetattr(session.fd_in)
        assert not raw[3] & termios.ICANON, "canonical mode off"
        assert not raw[3] & termios.ECHO, "echo off"
        viewport = get_window_size(session)
        assert viewport.rows > 0 and viewport.cols > 0, "window size"
    after = termios.tcgetattr(sys.stdin.fileno())
    assert before == after, "attributes restored"

    print("Terminal init/restore passed")


if __name__ == "__main__":
    check_rawterm_units()
    check_kilo_render()
    check_terminal_init()
    print("All checks passed")
