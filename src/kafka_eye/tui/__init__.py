"""
Rendering for the terminal dashboard.

- create_layout / make_panel / make_tabs: Rich layout building blocks
- Renderer: builds one frame from AppState and the cluster registry
"""

from kafka_eye.tui.layout import create_layout, make_panel, make_tabs
from kafka_eye.tui.render import Renderer

__all__ = [
    "Renderer",
    "create_layout",
    "make_panel",
    "make_tabs",
]
