"""
Application state for the kafka-eye dashboard.

AppState is the single aggregate of UI-visible mutable state. It is owned by
the controller and handed explicitly to every handler; nothing else mutates
it. Navigation, screen cycling and status helpers live here so handlers stay
small.

- Mode: input-interpretation state (NORMAL, INSERT, COMMAND, VISUAL, CLUSTER_FORM)
- Screen: displayed view, cycled in SCREEN_ORDER
- Cursor: selected index + scroll offset relative to the screen's list
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from kafka_eye.app.buffer import DEFAULT_MAX_MESSAGES, MessageBuffer
from kafka_eye.app.form import ClusterFormState
from kafka_eye.app.throughput import MonitoringStats, ThroughputTracker
from kafka_eye.broker.protocol import BrokerMessage, TopicMetadata

VISIBLE_ROWS = 20
PAGE_SIZE = 10


class Mode(str, Enum):
    NORMAL = "normal"
    INSERT = "insert"
    COMMAND = "command"
    VISUAL = "visual"
    CLUSTER_FORM = "cluster_form"


class Screen(str, Enum):
    DASHBOARD = "dashboard"
    TOPIC_LIST = "topic_list"
    MESSAGE_PRODUCER = "message_producer"
    MESSAGE_CONSUMER = "message_consumer"
    CONSUMER_GROUPS = "consumer_groups"
    MONITORING = "monitoring"
    SETTINGS = "settings"
    CLUSTER_MANAGEMENT = "cluster_management"

    @property
    def title(self) -> str:
        return self.value.replace("_", " ").title()


SCREEN_ORDER = (
    Screen.DASHBOARD,
    Screen.TOPIC_LIST,
    Screen.MESSAGE_PRODUCER,
    Screen.MESSAGE_CONSUMER,
    Screen.CONSUMER_GROUPS,
    Screen.MONITORING,
    Screen.SETTINGS,
    Screen.CLUSTER_MANAGEMENT,
)


@dataclass
class Cursor:
    selected_index: int = 0
    scroll_offset: int = 0


@dataclass
class AppState:
    """
    Everything the renderer shows.

    Attributes:
        mode: Current input mode
        screen: Current screen
        last_key: Previous character key, for two-key sequences ("gg")
        command_input: Text typed after ':'
        input_buffer: Text typed in INSERT mode
        cursor: Selection within the current screen's list
        topics: Topic metadata for TopicList
        messages: Ring buffer of consumed messages
        consumer_groups: Group names for ConsumerGroups
        cluster_list: Sorted cluster names for ClusterManagement
        selected_topic: Topic chosen on TopicList, target of produce/consume
        cluster_form: Form state, present only in CLUSTER_FORM mode
        connected: Whether a broker session is live
        current_cluster: Cluster the connection state refers to
        status: Status line, the single channel for operator-facing text
        should_quit: Termination flag checked by the main loop
    """

    mode: Mode = Mode.NORMAL
    screen: Screen = Screen.DASHBOARD
    last_key: str | None = None
    command_input: str = ""
    input_buffer: str = ""
    cursor: Cursor = field(default_factory=Cursor)

    topics: list[TopicMetadata] = field(default_factory=list)
    messages: MessageBuffer = field(default_factory=lambda: MessageBuffer(DEFAULT_MAX_MESSAGES))
    consumer_groups: list[str] = field(default_factory=list)
    cluster_list: list[str] = field(default_factory=list)
    selected_topic: str | None = None
    consuming_topic: str | None = None
    cluster_form: ClusterFormState | None = None

    connected: bool = False
    current_cluster: str | None = None
    status: str = "Disconnected"

    stats: MonitoringStats = field(default_factory=MonitoringStats)
    throughput: ThroughputTracker = field(default_factory=ThroughputTracker)
    terminal_size: tuple[int, int] = (80, 24)
    tick_count: int = 0
    should_quit: bool = False

    # Navigation

    def max_index(self) -> int:
        """Last valid index of the current screen's list (0 when empty)."""
        return max(0, self.list_length() - 1)

    def list_length(self) -> int:
        if self.screen == Screen.TOPIC_LIST:
            return len(self.topics)
        if self.screen in (Screen.MESSAGE_PRODUCER, Screen.MESSAGE_CONSUMER):
            return len(self.messages)
        if self.screen == Screen.CONSUMER_GROUPS:
            return len(self.consumer_groups)
        if self.screen == Screen.CLUSTER_MANAGEMENT:
            return len(self.cluster_list)
        return 0

    def move_up(self) -> None:
        if self.cursor.selected_index > 0:
            self.cursor.selected_index -= 1
        self._adjust_scroll()

    def move_down(self) -> None:
        if self.cursor.selected_index < self.max_index():
            self.cursor.selected_index += 1
        self._adjust_scroll()

    def move_left(self) -> None:
        """Horizontal movement has no list semantics yet."""

    def move_right(self) -> None:
        """Horizontal movement has no list semantics yet."""

    def go_to_top(self) -> None:
        self.cursor.selected_index = 0
        self.cursor.scroll_offset = 0

    def go_to_bottom(self) -> None:
        self.cursor.selected_index = self.max_index()
        self._adjust_scroll()

    def page_up(self) -> None:
        self.cursor.selected_index = max(0, self.cursor.selected_index - PAGE_SIZE)
        self._adjust_scroll()

    def page_down(self) -> None:
        self.cursor.selected_index = min(self.max_index(), self.cursor.selected_index + PAGE_SIZE)
        self._adjust_scroll()

    def _adjust_scroll(self) -> None:
        """Keep the selection inside the visible window."""
        selected = self.cursor.selected_index
        if selected < self.cursor.scroll_offset:
            self.cursor.scroll_offset = selected
        elif selected >= self.cursor.scroll_offset + VISIBLE_ROWS:
            self.cursor.scroll_offset = selected - (VISIBLE_ROWS - 1)

    def reset_selection(self) -> None:
        self.cursor = Cursor()

    def clamp_selection(self) -> None:
        """Pull the cursor back inside the list after it shrinks."""
        if self.cursor.selected_index > self.max_index():
            self.cursor.selected_index = self.max_index()
        self._adjust_scroll()

    # Screens

    def set_screen(self, screen: Screen) -> None:
        self.screen = screen
        self.reset_selection()

    def next_screen(self) -> None:
        index = SCREEN_ORDER.index(self.screen)
        self.set_screen(SCREEN_ORDER[(index + 1) % len(SCREEN_ORDER)])

    def previous_screen(self) -> None:
        index = SCREEN_ORDER.index(self.screen)
        self.set_screen(SCREEN_ORDER[(index - 1) % len(SCREEN_ORDER)])

    # Modes

    def enter_command_mode(self) -> None:
        self.mode = Mode.COMMAND
        self.command_input = ""

    def open_cluster_form(self, form: ClusterFormState) -> None:
        self.cluster_form = form
        self.mode = Mode.CLUSTER_FORM

    def close_cluster_form(self) -> None:
        self.cluster_form = None
        self.mode = Mode.NORMAL

    # Data

    def add_message(self, message: BrokerMessage) -> None:
        """Cache a consumed message and count it for throughput."""
        self.messages.append(message)
        self.stats.messages_received += 1
        self.throughput.record(message.size)

    def set_topics(self, topics: list[TopicMetadata]) -> None:
        self.topics = topics
        self.stats.total_topics = len(topics)
        self.stats.total_partitions = sum(len(t.partitions) for t in topics)
        self.clamp_selection()

    def set_consumer_groups(self, groups: list[str]) -> None:
        self.consumer_groups = groups
        self.stats.total_consumer_groups = len(groups)
        self.clamp_selection()

    def selected_topic_name(self) -> str | None:
        """Topic under the cursor on TopicList."""
        if self.screen == Screen.TOPIC_LIST and self.cursor.selected_index < len(self.topics):
            return self.topics[self.cursor.selected_index].name
        return None

    def selected_cluster_name(self) -> str | None:
        """Cluster under the cursor on ClusterManagement."""
        if self.screen == Screen.CLUSTER_MANAGEMENT and self.cursor.selected_index < len(
            self.cluster_list
        ):
            return self.cluster_list[self.cursor.selected_index]
        return None

    # Status

    def set_connected(self, connected: bool, cluster: str | None) -> None:
        self.connected = connected
        self.current_cluster = cluster
        if connected:
            self.status = f"Connected to {cluster or 'Unknown'}"
        else:
            self.status = "Disconnected"

    def set_status(self, message: str) -> None:
        self.status = message
