"""Tests for AppController startup, main loop and shutdown order."""

import asyncio
import io
import signal
from unittest.mock import MagicMock

import pytest
from rich.console import Console

from kafka_eye.app.controller import AppController
from kafka_eye.app.events import KeyCode, KeyEvent
from kafka_eye.clusters.registry import ClusterRegistry
from kafka_eye.errors import BrokerError, TerminalError

from conftest import FakeConnector, FakeSession


class FakePoller:
    """InputPoller stand-in that idles until stopped."""

    def __init__(self, fail: Exception | None = None):
        self.fail = fail
        self.stopped = False
        self._stop = asyncio.Event()

    async def run(self) -> None:
        if self.fail is not None:
            raise self.fail
        await self._stop.wait()

    def stop(self) -> None:
        self.stopped = True
        self._stop.set()

    def on_resize(self) -> None:
        pass


def make_controller(registry, store, connector, poller=None):
    renderer = MagicMock()
    renderer.render.return_value = "frame"
    return AppController(
        registry,
        store,
        connector,
        renderer=renderer,
        terminal=MagicMock(),
        poller=poller or FakePoller(),
        console=Console(file=io.StringIO()),
    )


def queue_keys(controller: AppController, text: str) -> None:
    for char in text:
        controller.queue.put(KeyEvent.of(char))
    controller.queue.put(KeyEvent(KeyCode.ENTER))


class TestInitialStatus:
    """Status line before any input."""

    def test_ready_with_active_cluster(self, registry, store, connector):
        controller = make_controller(registry, store, connector)
        assert controller.state.current_cluster == "local"
        assert controller.state.status.startswith("Ready to connect to cluster: local")

    def test_no_cluster(self, store, connector):
        controller = make_controller(ClusterRegistry(), store, connector)
        assert controller.state.status.startswith("No cluster configured")

    def test_settings_size_the_buffers(self, registry, store, connector):
        registry.settings.ui.queue_size = 8
        controller = make_controller(registry, store, connector)
        assert controller.queue.maxsize == 8


class TestRun:
    """The loop runs until quit and always restores the terminal."""

    @pytest.mark.asyncio
    async def test_quit_command_shuts_down_cleanly(self, registry, store):
        connector = FakeConnector(
            session_factory=lambda: FakeSession(fail_close=BrokerError("close failed"))
        )
        controller = make_controller(registry, store, connector)
        await controller.connection.connect("local", registry.clusters["local"])
        controller.queue.put(KeyEvent.of(":"))
        queue_keys(controller, "quit")

        await controller.run()

        assert controller.state.should_quit
        assert controller.poller.stopped
        assert connector.sessions[0].closed
        assert not controller.state.connected
        controller.terminal.enter.assert_called_once()
        controller.terminal.restore.assert_called_once()

    @pytest.mark.asyncio
    async def test_q_key_quits(self, registry, store, connector):
        controller = make_controller(registry, store, connector)
        controller.queue.put(KeyEvent.of("q"))
        await controller.run()
        assert controller.state.should_quit
        controller.renderer.render.assert_called()

    @pytest.mark.asyncio
    async def test_poller_failure_raises_and_restores(self, registry, store, connector):
        controller = make_controller(registry, store, connector, poller=FakePoller(OSError("bad fd")))
        with pytest.raises(TerminalError, match="Input reader stopped"):
            await controller.run()
        controller.terminal.restore.assert_called_once()

    @pytest.mark.asyncio
    async def test_terminal_setup_failure_still_restores(self, registry, store, connector):
        controller = make_controller(registry, store, connector)
        controller.terminal.enter.side_effect = TerminalError("not a tty")
        with pytest.raises(TerminalError, match="not a tty"):
            await controller.run()
        assert controller.poller.stopped
        controller.terminal.restore.assert_called_once()

    def test_signal_sets_quit_flag(self, registry, store, connector):
        controller = make_controller(registry, store, connector)
        controller._handle_signal(signal.SIGTERM)
        assert controller.state.should_quit
