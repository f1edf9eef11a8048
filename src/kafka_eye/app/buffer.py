"""
MessageBuffer for caching consumed records.

Ring buffer of the most recent BrokerMessages. Uses collections.deque with
maxlen so the oldest message is discarded automatically when full, keeping
the remaining messages in arrival order.
"""

from collections import deque
from collections.abc import Iterator

from kafka_eye.broker.protocol import BrokerMessage

DEFAULT_MAX_MESSAGES = 1000


class MessageBuffer:
    """
    Fixed-size ring buffer of consumed messages, oldest first.

    Example:
        buffer = MessageBuffer(maxlen=1000)
        buffer.append(message)
        latest = buffer.get_messages(n=20)
    """

    def __init__(self, maxlen: int = DEFAULT_MAX_MESSAGES) -> None:
        self._buffer: deque[BrokerMessage] = deque(maxlen=maxlen)

    @property
    def maxlen(self) -> int:
        return self._buffer.maxlen or 0

    def append(self, message: BrokerMessage) -> None:
        """Add a message, evicting the oldest when full."""
        self._buffer.append(message)

    def get_messages(self, n: int | None = None) -> list[BrokerMessage]:
        """
        Get last n messages (or all if n is None).

        Returns:
            List of messages, newest last
        """
        messages = list(self._buffer)
        if n is not None:
            return messages[-n:] if n > 0 else []
        return messages

    def __getitem__(self, index: int) -> BrokerMessage:
        return self._buffer[index]

    def __len__(self) -> int:
        return len(self._buffer)

    def __iter__(self) -> Iterator[BrokerMessage]:
        return iter(self._buffer)

    def clear(self) -> None:
        self._buffer.clear()
