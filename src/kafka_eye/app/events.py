"""
Event values flowing through the event queue.

Three producers push these immutable values into one queue:
- the input poller: KeyEvent, MouseEvent, ResizeEvent
- the ticker: TickEvent
- the broker session: BrokerEvent subclasses

The main loop consumes them one per iteration.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from kafka_eye.broker.protocol import BrokerMessage


class KeyCode(str, Enum):
    """Logical key identities produced by the key decoder."""

    CHAR = "char"
    ENTER = "enter"
    ESC = "esc"
    BACKSPACE = "backspace"
    TAB = "tab"
    BACKTAB = "backtab"
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    HOME = "home"
    END = "end"
    PAGE_UP = "page_up"
    PAGE_DOWN = "page_down"
    DELETE = "delete"
    UNKNOWN = "unknown"


class KeyKind(str, Enum):
    """Key transition. Only PRESS is forwarded to handlers."""

    PRESS = "press"
    REPEAT = "repeat"
    RELEASE = "release"


class MouseKind(str, Enum):
    PRESS = "press"
    RELEASE = "release"
    DRAG = "drag"
    SCROLL_UP = "scroll_up"
    SCROLL_DOWN = "scroll_down"


@dataclass(frozen=True)
class KeyEvent:
    """
    A decoded key.

    Attributes:
        code: Logical key
        char: The character for CHAR keys (empty otherwise)
        ctrl: True when typed with Control held
        kind: Press/repeat/release transition
    """

    code: KeyCode
    char: str = ""
    ctrl: bool = False
    kind: KeyKind = KeyKind.PRESS

    @classmethod
    def of(cls, char: str) -> KeyEvent:
        """Shorthand for a printable character key."""
        return cls(KeyCode.CHAR, char)

    def is_char(self, *chars: str) -> bool:
        return self.code == KeyCode.CHAR and not self.ctrl and self.char in chars


@dataclass(frozen=True)
class MouseEvent:
    kind: MouseKind
    column: int
    row: int


@dataclass(frozen=True)
class ResizeEvent:
    columns: int
    rows: int


@dataclass(frozen=True)
class TickEvent:
    pass


@dataclass(frozen=True)
class BrokerEvent:
    """Base class for events originated by the broker session."""


@dataclass(frozen=True)
class BrokerConnected(BrokerEvent):
    cluster: str


@dataclass(frozen=True)
class BrokerDisconnected(BrokerEvent):
    cluster: str


@dataclass(frozen=True)
class MessageReceived(BrokerEvent):
    message: BrokerMessage


@dataclass(frozen=True)
class BrokerFailure(BrokerEvent):
    reason: str


InputEvent = KeyEvent | MouseEvent | ResizeEvent
Event = KeyEvent | MouseEvent | ResizeEvent | TickEvent | BrokerEvent
