# Copyright (c) 2026 pykilo contributors
# SPDX-License-Identifier: ISC
#
# Shared fixtures and fakes for the kilo pytest suite. Terminal attribute
# calls are replaced so that no real TTY is needed.

import os
import sys
import termios

import pytest

# Ensure kilo and rawterm are importable from the project root
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import rawterm  # noqa: E402
from rawterm import TerminalError, TerminalSession  # noqa: E402

# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class ScriptedReader:
    """
    Stands in for TerminalSession.read_byte. Returns the scripted items in
    order, where None means "read timed out". Once the script runs out, every
    read times out.
    """

    def __init__(self, data):
        self.script = list(data)
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.script:
            return self.script.pop(0)
        return None

    @property
    def remaining(self):
        return len(self.script)


def script(*parts):
    """Build a reader script from bytes objects and None (timeouts)."""
    items = []
    for part in parts:
        if part is None:
            items.append(None)
        else:
            items.extend(part)
    return items


class FakeTermios:
    """Records tcsetattr() calls made through the termios module."""

    def __init__(self, fail_get=False, fail_set=False):
        self.orig = [
            termios.ICRNL | termios.IXON,
            termios.OPOST,
            termios.CS8,
            termios.ICANON | termios.ECHO | termios.ISIG | termios.IEXTEN,
            termios.B38400,
            termios.B38400,
            [b"\x00"] * termios.NCCS,
        ]
        self.fail_get = fail_get
        self.fail_set = fail_set
        self.set_calls = []

    def tcgetattr(self, fd):
        if self.fail_get:
            raise termios.error(25, "Inappropriate ioctl for device")
        attrs = list(self.orig)
        attrs[6] = list(self.orig[6])
        return attrs

    def tcsetattr(self, fd, when, attrs):
        if self.fail_set:
            raise termios.error(5, "Input/output error")
        self.set_calls.append((when, attrs))

    @property
    def restore_count(self):
        return sum(1 for _, attrs in self.set_calls if attrs == self.orig)


class ScriptedSession(TerminalSession):
    """
    TerminalSession with scripted input and captured output. Reading past
    the end of the script raises TerminalError, like a dead terminal.
    """

    def __init__(self, data=()):
        super().__init__(fd_in=0, fd_out=1)
        self.script = list(data)
        self.writes = []

    def read_byte(self):
        if not self.script:
            raise TerminalError("read", "Input/output error")
        return self.script.pop(0)

    def write(self, data):
        self.writes.append(data)

    @property
    def output(self):
        return b"".join(self.writes)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_termios(monkeypatch):
    fake = FakeTermios()
    monkeypatch.setattr(rawterm.termios, "tcgetattr", fake.tcgetattr)
    monkeypatch.setattr(rawterm.termios, "tcsetattr", fake.tcsetattr)
    return fake


@pytest.fixture
def terminal_size(monkeypatch):
    """Make the terminal driver report 24 rows by 80 columns."""

    def get_terminal_size(fd):
        return os.terminal_size((80, 24))

    monkeypatch.setattr(rawterm.os, "get_terminal_size", get_terminal_size)
