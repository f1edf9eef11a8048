"""
Terminal mode management.

Terminal.enter() puts stdin into cbreak mode and enables SGR mouse
reporting; Terminal.restore() undoes both. The controller calls restore()
from a finally block so the terminal is restored even when closing the
broker connection failed.
"""

from __future__ import annotations

import logging
import sys
import termios
import tty
from typing import TextIO

from kafka_eye.errors import TerminalError

logger = logging.getLogger(__name__)

# Button tracking + SGR extended coordinates
MOUSE_ON = "\x1b[?1000h\x1b[?1006h"
MOUSE_OFF = "\x1b[?1006l\x1b[?1000l"


class Terminal:
    """
    Saves and restores the tty attributes around the TUI session.

    Example:
        terminal = Terminal()
        terminal.enter()
        try:
            ...
        finally:
            terminal.restore()
    """

    def __init__(self, stdin: TextIO | None = None, stdout: TextIO | None = None) -> None:
        self._stdin = stdin if stdin is not None else sys.stdin
        self._stdout = stdout if stdout is not None else sys.stdout
        self._old_settings: list | None = None

    @property
    def active(self) -> bool:
        return self._old_settings is not None

    def enter(self) -> None:
        """
        Switch to cbreak mode with mouse reporting.

        Raises:
            TerminalError: stdin is not a terminal or attributes cannot be set
        """
        try:
            fd = self._stdin.fileno()
            self._old_settings = termios.tcgetattr(fd)
            tty.setcbreak(fd)
        except (termios.error, OSError, ValueError) as e:
            self._old_settings = None
            raise TerminalError(f"Cannot enter raw mode: {e}") from e
        self._stdout.write(MOUSE_ON)
        self._stdout.flush()
        logger.debug("Terminal entered cbreak mode")

    def restore(self) -> None:
        """
        Put the terminal back the way enter() found it. Safe to call twice.

        Raises:
            TerminalError: Attributes cannot be restored
        """
        if self._old_settings is None:
            return
        settings, self._old_settings = self._old_settings, None
        self._stdout.write(MOUSE_OFF)
        self._stdout.flush()
        try:
            termios.tcsetattr(self._stdin.fileno(), termios.TCSADRAIN, settings)
        except (termios.error, OSError, ValueError) as e:
            raise TerminalError(f"Cannot restore terminal: {e}") from e
        logger.debug("Terminal restored")
