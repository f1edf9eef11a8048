"""
ThroughputTracker for the monitoring counters.

Counts consumed messages and bytes between ticks, turns them into a
messages/sec rate on every tick, keeps a sliding window of rates and renders
it as a Unicode sparkline for the Monitoring screen.

- Uses the sparklines library for Unicode bar visualization
- Floors samples at 0.1 so an idle window still renders a baseline
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass

from sparklines import sparklines


@dataclass
class MonitoringStats:
    """Aggregate counters shown on the Dashboard and Monitoring screens."""

    total_topics: int = 0
    total_partitions: int = 0
    total_consumer_groups: int = 0
    messages_received: int = 0
    messages_produced: int = 0
    messages_per_sec: float = 0.0
    bytes_per_sec: float = 0.0


class ThroughputTracker:
    """
    Converts per-message counts into per-second rates on each tick.

    Example:
        tracker = ThroughputTracker()
        tracker.record(message_size)
        tracker.tick(elapsed=0.25)
        tracker.get_sparkline()
    """

    def __init__(self, window_size: int = 40) -> None:
        self._values: deque[float] = deque(maxlen=window_size)
        self._pending_messages = 0
        self._pending_bytes = 0
        self.messages_per_sec = 0.0
        self.bytes_per_sec = 0.0

    def record(self, size: int) -> None:
        """Count one received message of size bytes."""
        self._pending_messages += 1
        self._pending_bytes += size

    def tick(self, elapsed: float) -> None:
        """
        Close the current window.

        Args:
            elapsed: Seconds since the previous tick
        """
        if elapsed <= 0:
            return
        self.messages_per_sec = self._pending_messages / elapsed
        self.bytes_per_sec = self._pending_bytes / elapsed
        self._pending_messages = 0
        self._pending_bytes = 0
        self._values.append(max(0.1, self.messages_per_sec))

    def get_sparkline(self) -> str:
        """Sparkline of recent rates, empty if no samples yet."""
        if not self._values:
            return ""
        lines = list(sparklines(list(self._values)))
        return lines[0] if lines else ""

    def format_panel(self) -> str:
        """Rich markup for the monitoring throughput panel."""
        if not self._values:
            return "[dim]Waiting for consumer data...[/dim]"
        return (
            f"[green]{self.get_sparkline()}[/green]\n\n"
            f"Current: [bold]{self.messages_per_sec:.1f}[/bold] msg/sec "
            f"({self.bytes_per_sec:.0f} B/sec)"
        )

    def apply(self, stats: MonitoringStats) -> None:
        """Copy the latest rates into the monitoring counters."""
        stats.messages_per_sec = self.messages_per_sec
        stats.bytes_per_sec = self.bytes_per_sec
