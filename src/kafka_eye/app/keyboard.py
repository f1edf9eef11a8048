"""
InputPoller: async terminal input reader and ticker.

This module provides non-blocking terminal input for the controller's
event loop, and produces the periodic TickEvent from the same task.

- Uses loop.run_in_executor() to wrap the blocking select()/os.read()
- select() timeout is the time left until the next tick, so the thread
  always returns in time to emit the tick and to notice shutdown
- Decodes raw bytes into KeyEvent / MouseEvent values; only key presses
  are forwarded to the queue
- Does NOT change terminal modes; Terminal.enter() must have set cbreak
"""

from __future__ import annotations

import asyncio
import codecs
import logging
import os
import select
import shutil
import sys
import time
from typing import Callable

from kafka_eye.app.events import (
    InputEvent,
    KeyCode,
    KeyEvent,
    KeyKind,
    MouseEvent,
    MouseKind,
    ResizeEvent,
    TickEvent,
)
from kafka_eye.app.queue import EventQueue
from kafka_eye.errors import TerminalError

logger = logging.getLogger(__name__)

ESC = "\x1b"
ESCAPE_FOLLOW_UP = 0.05

CSI_KEYS = {
    "A": KeyCode.UP,
    "B": KeyCode.DOWN,
    "C": KeyCode.RIGHT,
    "D": KeyCode.LEFT,
    "H": KeyCode.HOME,
    "F": KeyCode.END,
    "Z": KeyCode.BACKTAB,
}
TILDE_KEYS = {
    "1": KeyCode.HOME,
    "3": KeyCode.DELETE,
    "4": KeyCode.END,
    "5": KeyCode.PAGE_UP,
    "6": KeyCode.PAGE_DOWN,
    "7": KeyCode.HOME,
    "8": KeyCode.END,
}
SS3_KEYS = {
    "A": KeyCode.UP,
    "B": KeyCode.DOWN,
    "C": KeyCode.RIGHT,
    "D": KeyCode.LEFT,
    "H": KeyCode.HOME,
    "F": KeyCode.END,
}
# Event type field of the kitty keyboard protocol ("1;1:3A" is a release)
KEY_KINDS = {"1": KeyKind.PRESS, "2": KeyKind.REPEAT, "3": KeyKind.RELEASE}


def _decode_char(ch: str) -> KeyEvent:
    if ch in ("\r", "\n"):
        return KeyEvent(KeyCode.ENTER)
    if ch == "\t":
        return KeyEvent(KeyCode.TAB)
    if ch in ("\x7f", "\x08"):
        return KeyEvent(KeyCode.BACKSPACE)
    if ord(ch) < 32:
        # Ctrl+letter arrives as 0x01..0x1a
        return KeyEvent(KeyCode.CHAR, chr(ord(ch) + 96), ctrl=True)
    return KeyEvent(KeyCode.CHAR, ch)


def _key_kind(params: str) -> KeyKind:
    """Extract the key transition from CSI parameters, defaulting to PRESS."""
    fields = params.split(";")
    if len(fields) >= 2 and ":" in fields[1]:
        return KEY_KINDS.get(fields[1].split(":")[1], KeyKind.PRESS)
    return KeyKind.PRESS


def _decode_mouse(params: str, final: str) -> MouseEvent | KeyEvent:
    """Decode an SGR mouse report: ESC [ < button ; column ; row (M|m)."""
    try:
        button, column, row = (int(p) for p in params[1:].split(";"))
    except ValueError:
        return KeyEvent(KeyCode.UNKNOWN)
    if button & 64:
        kind = MouseKind.SCROLL_DOWN if button & 1 else MouseKind.SCROLL_UP
    elif final == "m":
        kind = MouseKind.RELEASE
    elif button & 32:
        kind = MouseKind.DRAG
    else:
        kind = MouseKind.PRESS
    return MouseEvent(kind, column - 1, row - 1)


def _decode_csi(params: str, final: str) -> InputEvent:
    if params.startswith("<") and final in ("M", "m"):
        return _decode_mouse(params, final)
    kind = _key_kind(params)
    if final == "~":
        code = TILDE_KEYS.get(params.split(";")[0], KeyCode.UNKNOWN)
    else:
        code = CSI_KEYS.get(final, KeyCode.UNKNOWN)
    return KeyEvent(code, kind=kind)


def decode_input(text: str) -> list[InputEvent]:
    """
    Decode a chunk of terminal input into events.

    Args:
        text: Characters read from the terminal, possibly several keys

    Returns:
        Events in the order they were typed
    """
    events: list[InputEvent] = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch != ESC:
            events.append(_decode_char(ch))
            i += 1
            continue

        if i + 1 >= len(text):
            events.append(KeyEvent(KeyCode.ESC))
            i += 1
        elif text[i + 1] == "[":
            j = i + 2
            while j < len(text) and not ("\x40" <= text[j] <= "\x7e"):
                j += 1
            if j >= len(text):
                events.append(KeyEvent(KeyCode.UNKNOWN))
                break
            events.append(_decode_csi(text[i + 2 : j], text[j]))
            i = j + 1
        elif text[i + 1] == "O" and i + 2 < len(text):
            events.append(KeyEvent(SS3_KEYS.get(text[i + 2], KeyCode.UNKNOWN)))
            i += 3
        else:
            # Lone ESC followed by an ordinary key
            events.append(KeyEvent(KeyCode.ESC))
            i += 1
    return events


def _incomplete_escape(data: bytes) -> bool:
    """True when data ends inside an escape sequence."""
    start = data.rfind(b"\x1b")
    if start < 0:
        return False
    tail = data[start:]
    if tail in (b"\x1b", b"\x1bO"):
        return True
    if tail.startswith(b"\x1b["):
        return not any(0x40 <= b <= 0x7E for b in tail[2:])
    return False


def _read_available(fd: int, timeout: float) -> bytes | None:
    """
    Read whatever input is ready within timeout.

    Returns:
        Raw bytes, None if nothing arrived before the timeout, or b"" once
        the input has reached end of file
    """
    if not select.select([fd], [], [], timeout)[0]:
        return None
    data = os.read(fd, 1024)
    # Escape sequences can straddle reads; give the rest a moment to arrive
    while _incomplete_escape(data) and select.select([fd], [], [], ESCAPE_FOLLOW_UP)[0]:
        more = os.read(fd, 1024)
        if not more:
            break
        data += more
    return data


class InputPoller:
    """
    Producer task for input and tick events.

    Designed to run alongside the controller's main loop without blocking
    the event loop. It never touches AppState; it only pushes events.

    Example:
        poller = InputPoller(queue, tick_rate=0.25)
        task = asyncio.create_task(poller.run())
        # Later:
        poller.stop()
    """

    def __init__(
        self,
        queue: EventQueue,
        tick_rate: float = 0.25,
        fd: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize input poller.

        Args:
            queue: Queue receiving InputEvent and TickEvent values
            tick_rate: Seconds between ticks
            fd: File descriptor to read (defaults to stdin)
            clock: Monotonic clock, injectable for tests
        """
        self._queue = queue
        self.tick_rate = tick_rate
        self._fd = fd
        self._clock = clock
        self._shutdown = asyncio.Event()
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    async def run(self) -> None:
        """
        Main task loop.

        Waits for input up to the next tick deadline, forwards decoded
        events, then emits a tick if the interval has elapsed.

        Raises:
            TerminalError: The input file descriptor reached end of file
        """
        loop = asyncio.get_running_loop()
        fd = self._fd if self._fd is not None else sys.stdin.fileno()
        last_tick = self._clock()

        while not self._shutdown.is_set():
            timeout = max(0.0, self.tick_rate - (self._clock() - last_tick))
            try:
                data = await loop.run_in_executor(None, _read_available, fd, timeout)
            except asyncio.CancelledError:
                break
            if data == b"":
                logger.error("Terminal input reached end of file")
                raise TerminalError("Terminal input closed")
            if data:
                for event in decode_input(self._decoder.decode(data)):
                    self.emit(event)

            if self._clock() - last_tick >= self.tick_rate:
                self._queue.put(TickEvent())
                last_tick = self._clock()

    def emit(self, event: InputEvent) -> bool:
        """
        Forward one input event, dropping key repeats and releases.

        Returns:
            True if the event was queued
        """
        if isinstance(event, KeyEvent) and event.kind != KeyKind.PRESS:
            logger.debug("Ignoring %s of %s", event.kind.value, event.code.value)
            return False
        self._queue.put(event)
        return True

    def on_resize(self) -> None:
        """SIGWINCH handler: queue the new terminal size."""
        size = shutil.get_terminal_size()
        self._queue.put(ResizeEvent(size.columns, size.lines))

    def stop(self) -> None:
        """Signal task to stop."""
        self._shutdown.set()
