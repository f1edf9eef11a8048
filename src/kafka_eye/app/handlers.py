"""
Event dispatch for the main loop.

Dispatcher routes each event to one handler. Key events are looked up in a
table keyed by (mode, screen), falling back to (mode, None), so the cluster
management screen can override Normal-mode keys without an inheritance
hierarchy. Handlers mutate AppState, the cluster registry and the
connection manager; they never touch the terminal.

Error policy:
- registry, persistence and broker errors are caught where the call is made
  and written to the status line
- anything else is caught by dispatch(), logged with traceback and written
  to the status line, so no error unwinds past one loop iteration
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

from kafka_eye.app.commands import (
    AddCluster,
    Command,
    Connect,
    Disconnect,
    ListClusters,
    ManageClusters,
    Quit,
    RemoveCluster,
    ShowStatus,
    SwitchCluster,
    Unknown,
    parse_command,
)
from kafka_eye.app.connection import ConnectionManager
from kafka_eye.app.events import (
    BrokerConnected,
    BrokerDisconnected,
    BrokerEvent,
    BrokerFailure,
    Event,
    KeyCode,
    KeyEvent,
    MessageReceived,
    MouseEvent,
    MouseKind,
    ResizeEvent,
    TickEvent,
)
from kafka_eye.app.form import ClusterFormState, FormAction
from kafka_eye.app.state import AppState, Mode, Screen
from kafka_eye.broker.protocol import BrokerSession, TopicMetadata
from kafka_eye.clusters.registry import ClusterRegistry
from kafka_eye.clusters.store import ConfigStore
from kafka_eye.errors import BrokerError, ConfigStoreError, RegistryError

logger = logging.getLogger(__name__)

DEFAULT_GROUP_ID = "kafka-eye"
NOT_CONNECTED = "Not connected. Use ':connect' to connect to the active cluster."

KeyHandler = Callable[[KeyEvent], Awaitable[None]]


class Dispatcher:
    """
    Applies events to the application state.

    Example:
        dispatcher = Dispatcher(state, registry, store, connection)
        await dispatcher.dispatch(KeyEvent.of(":"))
    """

    def __init__(
        self,
        state: AppState,
        registry: ClusterRegistry,
        store: ConfigStore,
        connection: ConnectionManager,
        tick_rate: float = 0.25,
        refresh_interval: float = 1.0,
    ) -> None:
        """
        Args:
            state: Application state, mutated in place
            registry: Cluster registry, persisted through store after mutations
            store: Config store used for persistence
            connection: Owner of the broker session
            tick_rate: Seconds between TickEvents
            refresh_interval: Seconds between automatic stats refreshes
        """
        self.state = state
        self.registry = registry
        self.store = store
        self.connection = connection
        self.tick_rate = tick_rate
        self.refresh_interval = refresh_interval
        self._since_refresh = 0.0

        self._key_handlers: dict[tuple[Mode, Screen | None], KeyHandler] = {
            (Mode.NORMAL, None): self.handle_normal_key,
            (Mode.NORMAL, Screen.CLUSTER_MANAGEMENT): self.handle_cluster_management_key,
            (Mode.INSERT, None): self.handle_insert_key,
            (Mode.COMMAND, None): self.handle_command_key,
            (Mode.VISUAL, None): self.handle_visual_key,
            (Mode.CLUSTER_FORM, None): self.handle_form_key,
        }
        self._commands: dict[type, Callable[..., Awaitable[None]]] = {
            AddCluster: self._add_cluster,
            RemoveCluster: self._remove_cluster,
            SwitchCluster: self._switch_command,
            ListClusters: self._list_clusters,
            ManageClusters: self._manage_clusters,
            ShowStatus: self._show_status,
            Connect: self._connect,
            Disconnect: self._disconnect,
            Quit: self._quit,
            Unknown: self._unknown,
        }
        self.sync_cluster_list()

    def key_handler(self, mode: Mode, screen: Screen) -> KeyHandler:
        """Look up the key handler for (mode, screen), falling back to the mode default."""
        return self._key_handlers.get((mode, screen)) or self._key_handlers[(mode, None)]

    async def dispatch(self, event: Event) -> None:
        """Apply one event. Never raises."""
        try:
            await self._route(event)
        except Exception as e:
            logger.exception("Unhandled error while handling %s", type(event).__name__)
            self.state.set_status(f"Error: {e}")

    async def _route(self, event: Event) -> None:
        if isinstance(event, KeyEvent):
            await self.key_handler(self.state.mode, self.state.screen)(event)
        elif isinstance(event, TickEvent):
            await self.handle_tick()
        elif isinstance(event, MouseEvent):
            self.handle_mouse(event)
        elif isinstance(event, ResizeEvent):
            self.handle_resize(event)
        elif isinstance(event, BrokerEvent):
            await self.handle_broker_event(event)
        else:
            logger.warning("Ignoring unexpected event %r", event)

    # Key handlers

    async def handle_normal_key(self, key: KeyEvent) -> None:
        state = self.state
        if key.is_char("g"):
            if state.last_key == "g":
                state.go_to_top()
            state.last_key = "g"
            return
        state.last_key = None

        if key.is_char("q"):
            state.should_quit = True
        elif key.is_char(":"):
            state.enter_command_mode()
        elif key.is_char("i"):
            state.mode = Mode.INSERT
        elif key.is_char("v"):
            state.mode = Mode.VISUAL
        elif key.is_char("h") or key.code == KeyCode.LEFT:
            state.move_left()
        elif key.is_char("j") or key.code == KeyCode.DOWN:
            state.move_down()
        elif key.is_char("k") or key.code == KeyCode.UP:
            state.move_up()
        elif key.is_char("l") or key.code == KeyCode.RIGHT:
            state.move_right()
        elif key.is_char("G") or key.code == KeyCode.END:
            state.go_to_bottom()
        elif key.code == KeyCode.HOME:
            state.go_to_top()
        elif key.code == KeyCode.PAGE_UP:
            state.page_up()
        elif key.code == KeyCode.PAGE_DOWN:
            state.page_down()
        elif key.is_char("r"):
            await self.refresh_current_screen()
        elif key.code == KeyCode.TAB:
            state.next_screen()
        elif key.code == KeyCode.BACKTAB:
            state.previous_screen()
        elif key.code == KeyCode.ENTER and state.screen == Screen.TOPIC_LIST:
            await self.select_topic()

    async def handle_cluster_management_key(self, key: KeyEvent) -> None:
        """Cluster list keys; anything not handled here behaves as in Normal mode."""
        state = self.state
        if key.code == KeyCode.ESC:
            state.last_key = None
            state.set_screen(Screen.DASHBOARD)
            state.mode = Mode.NORMAL
        elif key.is_char("a"):
            state.last_key = None
            state.open_cluster_form(ClusterFormState.for_add())
        elif key.is_char("e") or key.code == KeyCode.ENTER:
            state.last_key = None
            self._open_form_for_selected(FormAction.EDIT)
        elif key.is_char("d") or key.code == KeyCode.DELETE:
            state.last_key = None
            self._open_form_for_selected(FormAction.DELETE)
        elif key.is_char("s"):
            state.last_key = None
            name = state.selected_cluster_name()
            if name is None:
                state.set_status("No cluster selected")
            else:
                await self.switch_cluster(name)
        else:
            await self.handle_normal_key(key)

    async def handle_insert_key(self, key: KeyEvent) -> None:
        state = self.state
        if key.code == KeyCode.ESC:
            state.mode = Mode.NORMAL
        elif key.code == KeyCode.ENTER:
            await self.handle_insert_enter()
        elif key.code == KeyCode.BACKSPACE:
            state.input_buffer = state.input_buffer[:-1]
        elif key.code == KeyCode.CHAR and not key.ctrl:
            state.input_buffer += key.char

    async def handle_command_key(self, key: KeyEvent) -> None:
        state = self.state
        if key.code == KeyCode.ESC:
            state.mode = Mode.NORMAL
            state.command_input = ""
        elif key.code == KeyCode.ENTER:
            text = state.command_input
            state.command_input = ""
            state.mode = Mode.NORMAL
            await self.execute(parse_command(text))
        elif key.code == KeyCode.BACKSPACE:
            state.command_input = state.command_input[:-1]
        elif key.code == KeyCode.CHAR and not key.ctrl:
            state.command_input += key.char

    async def handle_visual_key(self, key: KeyEvent) -> None:
        """Selection is not implemented; Esc is the only transition."""
        if key.code == KeyCode.ESC:
            self.state.mode = Mode.NORMAL

    async def handle_form_key(self, key: KeyEvent) -> None:
        state = self.state
        form = state.cluster_form
        if form is None:
            state.mode = Mode.NORMAL
            return

        if key.code == KeyCode.ESC:
            state.close_cluster_form()
        elif key.code == KeyCode.TAB:
            form.next_field()
        elif key.code == KeyCode.BACKTAB:
            form.prev_field()
        elif key.code == KeyCode.ENTER:
            if form.submits_on_enter():
                await self.submit_form(form)
            else:
                form.next_field()
        elif key.code == KeyCode.BACKSPACE:
            form.backspace()
        elif key.code == KeyCode.CHAR and not key.ctrl:
            form.add_char(key.char)

    # Other events

    async def handle_tick(self) -> None:
        """Roll the throughput window and periodically refresh dashboard stats."""
        state = self.state
        state.tick_count += 1
        state.throughput.tick(self.tick_rate)
        state.throughput.apply(state.stats)

        if not self.connection.is_connected:
            self._since_refresh = 0.0
            return
        if state.screen not in (Screen.DASHBOARD, Screen.MONITORING):
            return
        self._since_refresh += self.tick_rate
        if self._since_refresh >= self.refresh_interval:
            self._since_refresh = 0.0
            await self.refresh_dashboard(announce=False)

    def handle_mouse(self, event: MouseEvent) -> None:
        if self.state.mode != Mode.NORMAL:
            return
        if event.kind == MouseKind.SCROLL_UP:
            self.state.move_up()
        elif event.kind == MouseKind.SCROLL_DOWN:
            self.state.move_down()

    def handle_resize(self, event: ResizeEvent) -> None:
        logger.info("Terminal resized to %dx%d", event.columns, event.rows)
        self.state.terminal_size = (event.columns, event.rows)

    async def handle_broker_event(self, event: BrokerEvent) -> None:
        state = self.state
        if isinstance(event, MessageReceived):
            state.add_message(event.message)
        elif isinstance(event, BrokerFailure):
            logger.warning("Broker failure: %s", event.reason)
            state.set_status(f"Broker error: {event.reason}")
        elif isinstance(event, BrokerDisconnected):
            if self.connection.cluster_name == event.cluster:
                await self.connection.disconnect()
                state.consuming_topic = None
                state.set_status(f"Lost connection to {event.cluster}")
        elif isinstance(event, BrokerConnected):
            logger.info("Broker reports connection to %s", event.cluster)

    # Insert mode actions

    async def handle_insert_enter(self) -> None:
        """Run the Enter action of the current screen. Mode is unchanged."""
        if self.state.screen == Screen.MESSAGE_PRODUCER:
            await self.produce_input()
        elif self.state.screen == Screen.MESSAGE_CONSUMER:
            await self.start_consuming()

    async def produce_input(self) -> None:
        state = self.state
        if not state.input_buffer:
            return
        session = self._require_session()
        if session is None:
            return
        topic = self._require_topic()
        if topic is None:
            return
        try:
            await session.produce(topic, state.input_buffer)
        except BrokerError as e:
            state.set_status(f"Failed to send message: {e}")
            return
        logger.info("Sent message to %s", topic)
        state.stats.messages_produced += 1
        state.input_buffer = ""
        state.set_status(f"Sent message to {topic}")

    async def start_consuming(self) -> None:
        state = self.state
        session = self._require_session()
        if session is None:
            return
        topic = self._require_topic()
        if topic is None:
            return
        group_id = state.input_buffer.strip() or DEFAULT_GROUP_ID
        try:
            await session.start_consuming(topic, group_id)
        except BrokerError as e:
            state.set_status(f"Failed to start consumer: {e}")
            return
        state.consuming_topic = topic
        state.input_buffer = ""
        state.set_status(f"Consuming {topic} as group {group_id}")

    # Refresh

    async def refresh_current_screen(self) -> None:
        """Refresh the data behind the current screen. No-op where there is none."""
        screen = self.state.screen
        if screen == Screen.TOPIC_LIST:
            await self.refresh_topics()
        elif screen == Screen.CONSUMER_GROUPS:
            await self.refresh_consumer_groups()
        elif screen in (Screen.DASHBOARD, Screen.MONITORING):
            await self.refresh_dashboard()
        elif screen == Screen.CLUSTER_MANAGEMENT:
            self.sync_cluster_list()
            self.state.set_status(f"{len(self.registry)} clusters configured")

    async def refresh_topics(self) -> None:
        session = self._require_session()
        if session is None:
            return
        logger.info("Refreshing topics...")
        try:
            topics = await self._fetch_topics(session)
        except BrokerError as e:
            self.state.set_status(f"Failed to refresh topics: {e}")
            return
        self.state.set_topics(topics)
        self.state.set_status(f"Loaded {len(topics)} topics")

    async def refresh_consumer_groups(self) -> None:
        session = self._require_session()
        if session is None:
            return
        logger.info("Refreshing consumer groups...")
        try:
            groups = await session.list_consumer_groups()
        except BrokerError as e:
            self.state.set_status(f"Failed to refresh consumer groups: {e}")
            return
        self.state.set_consumer_groups(sorted(groups))
        self.state.set_status(f"Loaded {len(groups)} consumer groups")

    async def refresh_dashboard(self, announce: bool = True) -> None:
        """
        Reload topics and consumer groups for the summary counters.

        Args:
            announce: Write a success message to the status line
        """
        session = self._require_session() if announce else self.connection.session
        if session is None:
            return
        logger.debug("Refreshing dashboard...")
        try:
            topics = await self._fetch_topics(session)
            groups = await session.list_consumer_groups()
        except BrokerError as e:
            self.state.set_status(f"Failed to refresh dashboard: {e}")
            return
        self.state.set_topics(topics)
        self.state.set_consumer_groups(sorted(groups))
        if announce:
            self.state.set_status(
                f"Refreshed: {len(topics)} topics, {len(groups)} consumer groups"
            )

    async def _fetch_topics(self, session: BrokerSession) -> list[TopicMetadata]:
        names = await session.list_topics()
        return [await session.get_topic_metadata(name) for name in sorted(names)]

    async def select_topic(self) -> None:
        """Make the topic under the cursor the produce/consume target and load its metadata."""
        state = self.state
        name = state.selected_topic_name()
        if name is None:
            state.set_status("No topic selected")
            return
        state.selected_topic = name
        session = self.connection.session
        if session is None:
            state.set_status(f"Selected topic {name}")
            return
        try:
            metadata = await session.get_topic_metadata(name)
        except BrokerError as e:
            state.set_status(f"Selected topic {name} (metadata unavailable: {e})")
            return
        state.topics[state.cursor.selected_index] = metadata
        state.set_status(
            f"Selected topic {name}: {len(metadata.partitions)} partitions, "
            f"replication factor {metadata.replicas}"
        )

    # Commands

    async def execute(self, command: Command) -> None:
        """Run a parsed command."""
        logger.debug("Executing %r", command)
        await self._commands[type(command)](command)

    async def _add_cluster(self, command: AddCluster) -> None:
        try:
            self.registry.add_cluster(command.name, list(command.brokers), command.client_id)
        except RegistryError as e:
            self.state.set_status(f"Failed to add cluster: {e}")
            return
        self.sync_cluster_list()
        if self._persist():
            self.state.set_status(f"Cluster '{command.name}' added. Use 'connect' to connect.")

    async def _remove_cluster(self, command: RemoveCluster) -> None:
        if not await self.remove_cluster(command.name):
            return
        active = self.registry.get_active()
        if active is not None:
            self.state.set_status(
                f"Cluster '{command.name}' removed. Ready to connect to cluster: {active[0]}"
            )
        else:
            self.state.set_status(
                f"Cluster '{command.name}' removed. "
                "No cluster configured. Use 'cluster add' to add a cluster."
            )

    async def _switch_command(self, command: SwitchCluster) -> None:
        await self.switch_cluster(command.name)

    async def _list_clusters(self, command: ListClusters) -> None:
        names = self.sync_cluster_list()
        if names:
            self.state.set_status(f"Configured clusters: {', '.join(names)}")
        else:
            self.state.set_status("No clusters configured")

    async def _manage_clusters(self, command: ManageClusters) -> None:
        self.open_cluster_management()

    async def _show_status(self, command: ShowStatus) -> None:
        self.show_status()

    async def _connect(self, command: Connect) -> None:
        state = self.state
        active = self.registry.get_active()
        if active is None:
            logger.warning("No active cluster configured")
            state.set_connected(False, None)
            state.set_status(
                "No active cluster configured. Use 'cluster add <name> <brokers>' to add a cluster."
            )
            return
        name, config = active
        state.consuming_topic = None
        if await self.connection.connect(name, config):
            await self.refresh_dashboard(announce=False)

    async def _disconnect(self, command: Disconnect) -> None:
        if not self.connection.is_connected:
            self.state.set_status("Not connected")
            return
        await self.connection.disconnect()
        self.state.consuming_topic = None
        logger.info("Disconnected from Kafka cluster")

    async def _quit(self, command: Quit) -> None:
        self.state.should_quit = True

    async def _unknown(self, command: Unknown) -> None:
        logger.warning("Unknown command: %s", command.reason)
        self.state.set_status(command.reason)

    # Registry operations shared by commands and the cluster screen

    async def switch_cluster(self, name: str) -> bool:
        """
        Make name the active cluster. Never connects.

        A live session bound to another cluster is closed so the session
        always belongs to the active cluster.
        """
        state = self.state
        try:
            self.registry.set_active(name)
        except RegistryError as e:
            state.set_status(f"Failed to switch cluster: {e}")
            return False

        if self.connection.is_connected and self.connection.cluster_name != name:
            await self.connection.disconnect()
            state.consuming_topic = None
        self._persist()

        if self.connection.is_connected:
            state.set_status(f"Cluster '{name}' is active and connected")
        else:
            state.set_connected(False, name)
            state.set_status(f"Switched to cluster '{name}'. Use 'connect' to connect.")
        return True

    async def remove_cluster(self, name: str) -> bool:
        """Remove a cluster, disconnecting first if it is the connected one."""
        state = self.state
        try:
            self.registry.remove_cluster(name)
        except RegistryError as e:
            state.set_status(f"Failed to remove cluster: {e}")
            return False

        if self.connection.cluster_name == name:
            await self.connection.disconnect()
            state.consuming_topic = None
        if state.current_cluster == name:
            state.current_cluster = None
        self.sync_cluster_list()
        return self._persist()

    def open_cluster_management(self) -> None:
        self.sync_cluster_list()
        self.state.set_screen(Screen.CLUSTER_MANAGEMENT)
        self.state.mode = Mode.NORMAL

    def show_status(self) -> None:
        """Write connection, active cluster, known clusters and a hint to the status line."""
        state = self.state
        parts = []
        if state.connected:
            parts.append(f"✓ Connected to cluster: {state.current_cluster or 'Unknown'}")
        else:
            parts.append("✗ Not connected to any cluster")

        active = self.registry.get_active()
        if active is not None:
            parts.append(f"Active cluster: {active[0]}")
        else:
            parts.append("No active cluster configured")

        names = self.registry.list_clusters()
        if names:
            parts.append(f"Available clusters: {', '.join(names)}")
        else:
            parts.append("No clusters configured")

        if not state.connected:
            if active is not None:
                parts.append("Next steps: Use 'connect' to connect to the active cluster")
            elif names:
                parts.append(
                    "Next steps: Use 'cluster switch <name>' to select a cluster, then 'connect'"
                )
            else:
                parts.append("Next steps: Use 'cluster add <name> <brokers>' to add a cluster")

        state.set_status(" | ".join(parts))

    def sync_cluster_list(self) -> list[str]:
        """Copy the sorted registry names into the state for the cluster screen."""
        names = self.registry.list_clusters()
        self.state.cluster_list = names
        if self.state.screen == Screen.CLUSTER_MANAGEMENT:
            self.state.clamp_selection()
        return names

    # Cluster form

    def _open_form_for_selected(self, action: FormAction) -> None:
        name = self.state.selected_cluster_name()
        if name is None or name not in self.registry:
            self.state.set_status("No cluster selected")
            return
        form = ClusterFormState.from_config(action, name, self.registry.clusters[name])
        self.state.open_cluster_form(form)

    async def submit_form(self, form: ClusterFormState) -> None:
        """
        Apply the form to the registry.

        The form stays open when validation or the registry rejects it, and
        closes once the registry has been changed.
        """
        if form.action == FormAction.DELETE:
            await self._submit_delete(form)
        elif form.action == FormAction.EDIT:
            await self._submit_edit(form)
        else:
            await self._submit_add(form)

    async def _submit_add(self, form: ClusterFormState) -> None:
        state = self.state
        name = form.name.strip()
        if not name or not form.broker_list():
            state.set_status("Cluster name and brokers are required")
            return
        try:
            config = form.build_config()
            self.registry.add_cluster(name, config.brokers, config.client_id, config.security)
        except RegistryError as e:
            state.set_status(f"Failed to add cluster: {e}")
            return

        self.sync_cluster_list()
        state.close_cluster_form()
        if self._persist():
            state.set_status(f"Cluster '{name}' added successfully")

    async def _submit_edit(self, form: ClusterFormState) -> None:
        state = self.state
        original = form.original_name or form.name
        name = form.name.strip()
        if not name or not form.broker_list():
            state.set_status("Cluster name and brokers are required")
            return
        try:
            previous = self.registry.clusters.get(original)
            config = form.build_config()
            if previous is not None:
                config = config.model_copy(
                    update={"producer": previous.producer, "consumer": previous.consumer}
                )
            self.registry.update_cluster(original, name, config)
        except RegistryError as e:
            state.set_status(f"Failed to update cluster: {e}")
            return

        # The live session was built from the old settings
        if self.connection.cluster_name == original:
            await self.connection.disconnect()
            state.consuming_topic = None
        if state.current_cluster == original:
            state.current_cluster = name
        self.sync_cluster_list()
        state.close_cluster_form()
        if self._persist():
            state.set_status(f"Cluster '{name}' updated successfully")

    async def _submit_delete(self, form: ClusterFormState) -> None:
        name = form.original_name or form.name
        removed = await self.remove_cluster(name)
        if name in self.registry:
            return
        self.state.close_cluster_form()
        if removed:
            self.state.set_status(f"Cluster '{name}' deleted successfully")

    # Helpers

    def _persist(self) -> bool:
        """Save the registry; on failure the in-memory registry stays authoritative."""
        try:
            self.store.save(self.registry)
        except ConfigStoreError as e:
            logger.error("Failed to save configuration: %s", e)
            self.state.set_status(f"Failed to save configuration: {e}")
            return False
        return True

    def _require_session(self) -> BrokerSession | None:
        session = self.connection.session
        if session is None:
            self.state.set_status(NOT_CONNECTED)
        return session

    def _require_topic(self) -> str | None:
        topic = self.state.selected_topic
        if topic is None:
            self.state.set_status("No topic selected. Pick one on the Topic List screen.")
        return topic
