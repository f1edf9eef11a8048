"""
Renderer: turns AppState + ClusterRegistry into a Rich renderable.

The renderer only reads state. It is called once per main loop iteration,
after the previous event has been fully applied, so every frame shows a
consistent snapshot.
"""

from __future__ import annotations

from rich.console import Group, RenderableType
from rich.layout import Layout
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from kafka_eye.app.form import FIELD_LABELS, FIELD_NAMES, ClusterFormState, FormAction
from kafka_eye.app.state import VISIBLE_ROWS, AppState, Mode, Screen
from kafka_eye.broker.protocol import BrokerMessage
from kafka_eye.clusters.registry import ClusterRegistry
from kafka_eye.tui.layout import create_layout, make_panel, make_tabs

HELP_TEXT = {
    Mode.NORMAL: "q:quit :cmd Tab:nav r:refresh",
    Mode.INSERT: "Esc:normal Enter:send",
    Mode.COMMAND: "Esc:cancel Enter:exec",
    Mode.VISUAL: "Esc:normal",
    Mode.CLUSTER_FORM: "Tab:field Enter:next Esc:cancel",
}
PREVIEW_WIDTH = 50

COMMAND_HELP = (
    "cluster add <name> <broker1,broker2,...>  Add a new cluster\n"
    "cluster remove|rm <name>                  Remove a cluster\n"
    "cluster switch|use <name>                 Switch to a different cluster\n"
    "cluster list|ls                           List all configured clusters\n"
    "cluster manage                            Open cluster management\n"
    "status | connect | disconnect | quit"
)


def _preview(value: str, width: int = PREVIEW_WIDTH) -> str:
    return escape(value if len(value) <= width else value[:width] + "...")


def _visible(items: list, state: AppState) -> list[tuple[int, object]]:
    """Rows inside the scroll window, paired with their absolute index."""
    start = state.cursor.scroll_offset
    return list(enumerate(items))[start : start + VISIBLE_ROWS]


def _row_style(index: int, state: AppState) -> str:
    return "reverse" if index == state.cursor.selected_index else ""


class Renderer:
    """
    Builds one frame per call.

    Example:
        renderer = Renderer()
        live.update(renderer.render(state, registry))
    """

    def __init__(self) -> None:
        self._layout = create_layout()

    def render(self, state: AppState, registry: ClusterRegistry) -> Layout:
        layout = self._layout
        layout["tabs"].update(make_tabs(state.screen))
        layout["body"].update(self.render_body(state, registry))
        layout["footer"]["status"].update(self.render_status(state))
        layout["footer"]["help"].update(make_panel(HELP_TEXT[state.mode], "Help", "cyan"))
        return layout

    def render_body(self, state: AppState, registry: ClusterRegistry) -> RenderableType:
        if state.mode == Mode.CLUSTER_FORM and state.cluster_form is not None:
            return self.render_form(state.cluster_form)

        screen = state.screen
        if screen == Screen.DASHBOARD:
            return self.render_dashboard(state)
        if screen == Screen.TOPIC_LIST:
            return self.render_topics(state)
        if screen == Screen.MESSAGE_PRODUCER:
            return self.render_producer(state)
        if screen == Screen.MESSAGE_CONSUMER:
            return self.render_consumer(state)
        if screen == Screen.CONSUMER_GROUPS:
            return self.render_groups(state)
        if screen == Screen.MONITORING:
            return self.render_monitoring(state)
        if screen == Screen.SETTINGS:
            return self.render_settings(state, registry)
        return self.render_clusters(state, registry)

    def render_status(self, state: AppState):
        if state.mode == Mode.COMMAND:
            return make_panel(Text(f":{state.command_input}", style="yellow"), "Command", "yellow")
        topic = state.selected_topic or "No topic selected"
        line = Text(f"{state.status} | Mode: {state.mode.name} | {topic}")
        style = "green" if state.connected else "white"
        return make_panel(line, "Status", style)

    # Screens

    def render_dashboard(self, state: AppState) -> RenderableType:
        stats = state.stats
        summary = Table.grid(expand=True, padding=(0, 2))
        for _ in range(4):
            summary.add_column(justify="center")
        summary.add_row("Topics", "Partitions", "Consumer Groups", "Messages/sec")
        summary.add_row(
            f"[bold green]{stats.total_topics}[/bold green]",
            f"[bold blue]{stats.total_partitions}[/bold blue]",
            f"[bold yellow]{stats.total_consumer_groups}[/bold yellow]",
            f"[bold magenta]{stats.messages_per_sec:.2f}[/bold magenta]",
        )

        topics = Table(expand=True, show_header=False, box=None)
        topics.add_column("topic")
        for topic in state.topics[:10]:
            topics.add_row(
                f"{escape(topic.name)} [dim]({len(topic.partitions)}p, {topic.replicas}r)[/dim]"
            )

        recent = Table(expand=True, show_header=False, box=None)
        recent.add_column("message")
        for message in reversed(state.messages.get_messages(10)):
            recent.add_row(self._message_line(message))

        activity = Table.grid(expand=True)
        activity.add_column(ratio=1)
        activity.add_column(ratio=1)
        activity.add_row(
            make_panel(topics, "Recent Topics", "white"),
            make_panel(recent, "Recent Messages", "white"),
        )
        return Group(make_panel(summary, "Overview", "green"), activity)

    def render_topics(self, state: AppState) -> RenderableType:
        if not state.topics:
            hint = "[dim]No topics loaded. Connect and press r to refresh.[/dim]"
            return make_panel(hint, "Topics", "blue")
        table = Table(expand=True)
        table.add_column("Name")
        table.add_column("Partitions", justify="right")
        table.add_column("Replicas", justify="right")
        for index, topic in _visible(state.topics, state):
            marker = "* " if topic.name == state.selected_topic else "  "
            table.add_row(
                marker + escape(topic.name),
                str(len(topic.partitions)),
                str(topic.replicas),
                style=_row_style(index, state),
            )
        return make_panel(table, f"Topics ({len(state.topics)})", "blue")

    def render_producer(self, state: AppState) -> RenderableType:
        target = state.selected_topic or "none (select one on Topics)"
        prompt = Text(f"Topic: {target}\n\n")
        prompt.append("> " + state.input_buffer, style="bold" if state.mode == Mode.INSERT else "dim")
        return Group(
            make_panel(prompt, "Produce", "yellow"),
            self._message_table(state, "Recent Messages"),
        )

    def render_consumer(self, state: AppState) -> RenderableType:
        if state.consuming_topic:
            header = f"Consuming [bold]{escape(state.consuming_topic)}[/bold]"
        else:
            header = "[dim]Not consuming. Press i, type a group id (optional), Enter.[/dim]"
        if state.mode == Mode.INSERT:
            header += f"\nGroup: {escape(state.input_buffer)}"
        return Group(make_panel(header, "Consumer", "magenta"), self._message_table(state, "Messages"))

    def render_groups(self, state: AppState) -> RenderableType:
        table = Table(expand=True, show_header=False, box=None)
        table.add_column("group")
        for index, group in _visible(state.consumer_groups, state):
            table.add_row(escape(group), style=_row_style(index, state))
        if not state.consumer_groups:
            table.add_row("[dim]No consumer groups loaded. Press r to refresh.[/dim]")
        return make_panel(table, f"Consumer Groups ({len(state.consumer_groups)})", "yellow")

    def render_monitoring(self, state: AppState) -> RenderableType:
        stats = state.stats
        counters = (
            f"Messages received: {stats.messages_received}\n"
            f"Messages produced: {stats.messages_produced}\n"
            f"Topics: {stats.total_topics}  Partitions: {stats.total_partitions}  "
            f"Consumer groups: {stats.total_consumer_groups}"
        )
        return Group(
            make_panel(state.throughput.format_panel(), "Throughput", "yellow"),
            make_panel(counters, "Counters", "blue"),
        )

    def render_settings(self, state: AppState, registry: ClusterRegistry) -> RenderableType:
        lines = ["Configured clusters:"]
        for name in registry.list_clusters():
            suffix = " (active)" if name == registry.active else ""
            lines.append(f"  {escape(name)}{suffix}")
        ui = registry.settings.ui
        lines.append("")
        lines.append(
            f"Tick rate: {ui.tick_rate_ms} ms  Refresh: {ui.refresh_interval_ms} ms  "
            f"Message cache: {ui.max_messages}"
        )
        return Group(
            make_panel("\n".join(lines), "Settings", "white"),
            make_panel(COMMAND_HELP, "Commands", "cyan"),
        )

    def render_clusters(self, state: AppState, registry: ClusterRegistry) -> RenderableType:
        table = Table(expand=True)
        table.add_column("Name")
        table.add_column("Brokers")
        table.add_column("Client ID")
        for index, name in _visible(state.cluster_list, state):
            config = registry.clusters.get(name)
            if config is None:
                continue
            label = escape(name)
            if name == registry.active:
                label += " [green](active)[/green]"
            if state.connected and name == state.current_cluster:
                label += " [bold green]●[/bold green]"
            table.add_row(
                label,
                escape(",".join(config.brokers)),
                escape(config.client_id),
                style=_row_style(index, state),
            )
        if not state.cluster_list:
            table.add_row("[dim]No clusters configured[/dim]", "", "")
        keys = (
            "[yellow]↑/↓ j/k[/yellow] move  [green]a[/green] add  [blue]e/Enter[/blue] edit  "
            "[red]d/Delete[/red] delete  [cyan]s[/cyan] switch  Esc back"
        )
        return Group(make_panel(table, "Clusters", "cyan"), make_panel(keys, "Keys", "white"))

    def render_form(self, form: ClusterFormState) -> RenderableType:
        titles = {
            FormAction.ADD: "Add New Cluster",
            FormAction.EDIT: "Edit Cluster",
            FormAction.DELETE: "Delete Cluster",
        }
        if form.action == FormAction.DELETE:
            body = (
                f"Are you sure you want to delete cluster '{escape(form.original_name or form.name)}'?\n\n"
                "Press Enter to confirm deletion, Esc to cancel"
            )
            return make_panel(body, titles[form.action], "red")

        table = Table.grid(padding=(0, 2))
        table.add_column(justify="right")
        table.add_column()
        for index, label in enumerate(FIELD_LABELS):
            value = form.get_field(index)
            if FIELD_NAMES[index] == "sasl_password":
                value = "*" * len(value)
            if index == form.current_field:
                table.add_row(f"[bold yellow]{label}[/bold yellow]", f"[reverse]{escape(value)} [/reverse]")
            else:
                table.add_row(label, escape(value))
        hint = "[dim]Tab/Shift+Tab: Navigate fields, Enter: Next / Submit on last field, Esc: Cancel[/dim]"
        return make_panel(Group(table, Text(""), Text.from_markup(hint)), titles[form.action], "green")

    # Helpers

    def _message_table(self, state: AppState, title: str) -> RenderableType:
        messages = state.messages.get_messages()
        table = Table(expand=True)
        table.add_column("Time", width=8)
        table.add_column("Topic")
        table.add_column("P/Offset", justify="right")
        table.add_column("Key")
        table.add_column("Value", ratio=1)
        for index, message in _visible(messages, state):
            table.add_row(
                message.timestamp.strftime("%H:%M:%S") if message.timestamp else "",
                escape(message.topic),
                f"{message.partition}/{message.offset}",
                escape(message.key or ""),
                _preview(message.value),
                style=_row_style(index, state),
            )
        return make_panel(table, f"{title} ({len(messages)})", "white")

    @staticmethod
    def _message_line(message: BrokerMessage) -> str:
        stamp = message.timestamp.strftime("%H:%M:%S") if message.timestamp else "--:--:--"
        return f"[dim]{stamp}[/dim] [cyan]{escape(message.topic)}[/cyan]: {_preview(message.value)}"
