"""
Layout factory for the kafka-eye dashboard.

Layout structure:
+-----------------------------------------------------------+
|  Tabs (3 rows fixed)                                      |
+-----------------------------------------------------------+
|                                                           |
|  Body (ratio=1, flex) - content of the current screen     |
|                                                           |
+---------------------------------------------+-------------+
|  Status (flex)                              | Help (28)   |
+---------------------------------------------+-------------+
"""

from rich.layout import Layout
from rich.panel import Panel
from rich.text import Text

from kafka_eye.app.state import SCREEN_ORDER, Screen

TAB_LABELS = {
    Screen.DASHBOARD: "Dashboard",
    Screen.TOPIC_LIST: "Topics",
    Screen.MESSAGE_PRODUCER: "Producer",
    Screen.MESSAGE_CONSUMER: "Consumer",
    Screen.CONSUMER_GROUPS: "Groups",
    Screen.MONITORING: "Monitor",
    Screen.SETTINGS: "Settings",
    Screen.CLUSTER_MANAGEMENT: "Clusters",
}


def create_layout() -> Layout:
    """
    Create the dashboard layout structure.

    Access regions via:
    - layout["tabs"]
    - layout["body"]
    - layout["footer"]["status"]
    - layout["footer"]["help"]

    Returns:
        Layout with the named regions
    """
    layout = Layout(name="root")
    layout.split_column(
        Layout(name="tabs", size=3),
        Layout(name="body", ratio=1),
        Layout(name="footer", size=3),
    )
    layout["footer"].split_row(
        Layout(name="status", ratio=1),
        Layout(name="help", size=28),
    )
    return layout


def make_panel(content, title: str, style: str = "blue") -> Panel:
    """
    Create a styled panel with content.

    Args:
        content: Text or any Rich renderable
        title: Panel title (will be bolded)
        style: Border style color (default "blue")

    Returns:
        Panel with formatted title and border style
    """
    return Panel(
        content,
        title=f"[bold]{title}[/bold]",
        border_style=style,
        padding=(0, 1),
    )


def make_tabs(current: Screen) -> Panel:
    """Tab bar with the current screen highlighted."""
    tabs = Text()
    for index, screen in enumerate(SCREEN_ORDER):
        if index:
            tabs.append(" | ", style="dim")
        style = "bold yellow" if screen == current else "white"
        tabs.append(TAB_LABELS[screen], style=style)
    return Panel(tabs, title="[bold]Kafka Eye[/bold]", border_style="white", padding=(0, 1))
