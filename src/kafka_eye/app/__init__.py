"""
Control plane of the dashboard.

This module provides the building blocks driven by the main loop:
- AppState, Mode, Screen: the single aggregate of UI-visible state
- parse_command and the Command values: the ':' command language
- ClusterFormState: the add/edit/delete cluster form
- Event values and EventQueue: the ordered, bounded event stream
- InputPoller: terminal input decoding and the periodic tick
- ConnectionManager: the at-most-one broker session
- Dispatcher: (mode, screen) routing of events to handlers

The main loop itself lives in kafka_eye.app.controller, which also needs
the renderer and is imported directly by the CLI.
"""

from kafka_eye.app.buffer import MessageBuffer
from kafka_eye.app.commands import Command, parse_command, split_brokers
from kafka_eye.app.connection import Connected, ConnectionManager, Disconnected
from kafka_eye.app.events import Event, KeyCode, KeyEvent, TickEvent
from kafka_eye.app.form import ClusterFormState, FormAction
from kafka_eye.app.handlers import Dispatcher
from kafka_eye.app.keyboard import InputPoller, decode_input
from kafka_eye.app.queue import EventQueue
from kafka_eye.app.state import AppState, Mode, Screen
from kafka_eye.app.terminal import Terminal
from kafka_eye.app.throughput import MonitoringStats, ThroughputTracker

__all__ = [
    "AppState",
    "ClusterFormState",
    "Command",
    "Connected",
    "ConnectionManager",
    "Disconnected",
    "Dispatcher",
    "Event",
    "EventQueue",
    "FormAction",
    "InputPoller",
    "KeyCode",
    "KeyEvent",
    "MessageBuffer",
    "Mode",
    "MonitoringStats",
    "Screen",
    "Terminal",
    "ThroughputTracker",
    "TickEvent",
    "decode_input",
    "parse_command",
    "split_brokers",
]
