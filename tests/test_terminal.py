"""Tests for cbreak mode handling on a pseudo-terminal."""

import io
import os
import termios

import pytest

from kafka_eye.app.terminal import MOUSE_OFF, MOUSE_ON, Terminal
from kafka_eye.errors import TerminalError


class FdStream:
    """Minimal stdin stand-in exposing a file descriptor."""

    def __init__(self, fd: int):
        self._fd = fd

    def fileno(self) -> int:
        return self._fd


@pytest.fixture
def pty_fd():
    master, slave = os.openpty()
    yield slave
    os.close(master)
    os.close(slave)


class TestTerminal:
    """enter() and restore() on a real tty."""

    def test_enter_and_restore(self, pty_fd):
        before = termios.tcgetattr(pty_fd)
        out = io.StringIO()
        terminal = Terminal(stdin=FdStream(pty_fd), stdout=out)

        terminal.enter()
        assert terminal.active
        assert not termios.tcgetattr(pty_fd)[3] & termios.ICANON

        terminal.restore()
        assert not terminal.active
        assert termios.tcgetattr(pty_fd) == before
        assert out.getvalue() == MOUSE_ON + MOUSE_OFF

    def test_restore_twice_is_harmless(self, pty_fd):
        terminal = Terminal(stdin=FdStream(pty_fd), stdout=io.StringIO())
        terminal.enter()
        terminal.restore()
        terminal.restore()

    def test_restore_without_enter(self):
        out = io.StringIO()
        Terminal(stdin=io.StringIO(), stdout=out).restore()
        assert out.getvalue() == ""

    def test_not_a_terminal(self):
        terminal = Terminal(stdin=io.StringIO(), stdout=io.StringIO())
        with pytest.raises(TerminalError, match="Cannot enter raw mode"):
            terminal.enter()
        assert not terminal.active
