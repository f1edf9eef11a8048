"""
AppController: owns the main loop and the shutdown order.

This module provides the controller that:
- Builds the state, queue, connection manager and dispatcher from settings
- Registers SIGINT/SIGTERM (quit) and SIGWINCH (resize) handlers first
- Puts the terminal in cbreak mode and starts the input poller task
- Runs render -> drain one event -> dispatch -> sleep until should_quit
- On exit stops the poller, closes the broker session (errors logged,
  shutdown continues) and restores the terminal unconditionally
"""

from __future__ import annotations

import asyncio
import functools
import logging
import signal

from rich.console import Console
from rich.live import Live

from kafka_eye.app.buffer import MessageBuffer
from kafka_eye.app.connection import ConnectionManager
from kafka_eye.app.handlers import Dispatcher
from kafka_eye.app.keyboard import InputPoller
from kafka_eye.app.queue import EventQueue
from kafka_eye.app.state import AppState
from kafka_eye.app.terminal import Terminal
from kafka_eye.broker.protocol import BrokerConnector
from kafka_eye.clusters.registry import ClusterRegistry
from kafka_eye.clusters.store import ConfigStore
from kafka_eye.errors import TerminalError
from kafka_eye.tui.render import Renderer

logger = logging.getLogger(__name__)

FRAME_DELAY = 0.016
POLLER_STOP_TIMEOUT = 1.0


class AppController:
    """
    Runs the dashboard until quit.

    Example:
        controller = AppController(registry, store, KafkaConnector())
        await controller.run()  # Runs until ':quit', q or Ctrl+C
    """

    def __init__(
        self,
        registry: ClusterRegistry,
        store: ConfigStore,
        connector: BrokerConnector,
        renderer: Renderer | None = None,
        terminal: Terminal | None = None,
        poller: InputPoller | None = None,
        console: Console | None = None,
    ) -> None:
        """
        Initialize controller.

        Args:
            registry: Loaded cluster registry
            store: Where registry changes are persisted
            connector: Opens broker sessions
            renderer: Frame builder (creates default if None)
            terminal: Terminal mode manager (creates default if None)
            poller: Input/tick producer (creates default if None)
            console: Rich Console to use (creates default if None)
        """
        ui = registry.settings.ui
        self.registry = registry
        self.state = AppState(messages=MessageBuffer(ui.max_messages))
        self.queue = EventQueue(ui.queue_size)
        self.connection = ConnectionManager(connector, self.state, self.queue.put)
        self.dispatcher = Dispatcher(
            self.state,
            registry,
            store,
            self.connection,
            tick_rate=ui.tick_rate_ms / 1000,
            refresh_interval=ui.refresh_interval_ms / 1000,
        )
        self.poller = poller if poller is not None else InputPoller(self.queue, ui.tick_rate_ms / 1000)
        self.renderer = renderer if renderer is not None else Renderer()
        self.terminal = terminal if terminal is not None else Terminal()
        self.console = console if console is not None else Console()
        self._set_initial_status()

    def _set_initial_status(self) -> None:
        active = self.registry.get_active()
        if active is not None:
            self.state.set_connected(False, active[0])
            self.state.set_status(
                f"Ready to connect to cluster: {active[0]}. "
                "Use ':connect' to connect or ':status' for more info."
            )
        else:
            self.state.set_status(
                "No cluster configured. Use ':cluster add <name> <brokers>' to add a cluster "
                "or ':status' for help."
            )

    async def run(self) -> None:
        """
        Run the dashboard until should_quit is set.

        Raises:
            TerminalError: The terminal could not be set up or restored
        """
        loop = asyncio.get_running_loop()

        # Signal handlers go first so Ctrl+C works during startup
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, functools.partial(self._handle_signal, sig))
        loop.add_signal_handler(signal.SIGWINCH, self.poller.on_resize)

        poller_task: asyncio.Task | None = None
        try:
            self.terminal.enter()
            poller_task = asyncio.create_task(self.poller.run())
            with Live(
                self.renderer.render(self.state, self.registry),
                console=self.console,
                screen=self.console.is_terminal,
                auto_refresh=False,
                transient=True,
            ) as live:
                await self._main_loop(live, poller_task)
        finally:
            try:
                await self._shutdown(poller_task)
            finally:
                for sig in (signal.SIGINT, signal.SIGTERM, signal.SIGWINCH):
                    loop.remove_signal_handler(sig)
                self.terminal.restore()
        logger.info("kafka-eye shutdown complete")

    async def _main_loop(self, live: Live, poller_task: asyncio.Task) -> None:
        while not self.state.should_quit:
            live.update(self.renderer.render(self.state, self.registry), refresh=True)

            event = self.queue.get_nowait()
            if event is not None:
                await self.dispatcher.dispatch(event)

            if poller_task.done() and not self.state.should_quit:
                error = None if poller_task.cancelled() else poller_task.exception()
                raise TerminalError(f"Input reader stopped: {error}")

            await asyncio.sleep(FRAME_DELAY)

    async def _shutdown(self, poller_task: asyncio.Task | None) -> None:
        """Stop the poller, then close the broker session. Never raises."""
        self.poller.stop()
        if poller_task is not None and not poller_task.done():
            try:
                await asyncio.wait_for(poller_task, timeout=POLLER_STOP_TIMEOUT)
            except asyncio.TimeoutError:
                logger.warning("Input poller did not stop in time")
            except Exception:
                logger.exception("Input poller failed during shutdown")

        try:
            await self.connection.disconnect()
        except Exception:
            logger.exception("Failed to disconnect from Kafka")

    def _handle_signal(self, sig: signal.Signals) -> None:
        """
        Handle shutdown signal by setting the quit flag.

        The main loop notices the flag on its next iteration; an in-flight
        broker call is allowed to complete first.

        Args:
            sig: Signal received (SIGINT or SIGTERM)
        """
        logger.info("Received %s, shutting down", sig.name)
        self.state.should_quit = True
