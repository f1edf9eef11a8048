"""
ConnectionManager: owns the single broker session.

The connection is modelled as Disconnected | Connected(cluster_name, session)
so there is never more than one live session. connect() fully closes the old
session before opening a new one. Failures never raise out of the manager;
they are written to the status line and reported through the bool result.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from kafka_eye.app.state import AppState
from kafka_eye.broker.protocol import BrokerConnector, BrokerSession, Notify
from kafka_eye.clusters.models import ClusterConfig
from kafka_eye.errors import BrokerError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Disconnected:
    pass


@dataclass(frozen=True)
class Connected:
    cluster_name: str
    session: BrokerSession


ConnectionState = Disconnected | Connected


class ConnectionManager:
    """
    Reconciles AppState's connection fields with the broker session.

    Example:
        manager = ConnectionManager(KafkaConnector(), state, queue.put)
        if await manager.connect("local", config):
            topics = await manager.session.list_topics()
        await manager.disconnect()
    """

    def __init__(self, connector: BrokerConnector, state: AppState, notify: Notify) -> None:
        """
        Args:
            connector: Opens broker sessions
            state: Application state whose connected/status fields are kept in sync
            notify: Callback handed to sessions for background events
        """
        self._connector = connector
        self._state = state
        self._notify = notify
        self.connection: ConnectionState = Disconnected()

    @property
    def session(self) -> BrokerSession | None:
        if isinstance(self.connection, Connected):
            return self.connection.session
        return None

    @property
    def cluster_name(self) -> str | None:
        if isinstance(self.connection, Connected):
            return self.connection.cluster_name
        return None

    @property
    def is_connected(self) -> bool:
        return isinstance(self.connection, Connected)

    async def connect(self, name: str, config: ClusterConfig) -> bool:
        """
        Open a fresh session to a cluster, closing any prior one first.

        On failure the cluster name is still recorded so the status shows
        which cluster failed.

        Returns:
            True if the new session is live
        """
        if isinstance(self.connection, Connected):
            await self._close_current()
            self._state.connected = False

        logger.info("Connecting to cluster %s (%s)", name, ",".join(config.brokers))
        try:
            session = await self._connector.connect(name, config, self._notify)
        except BrokerError as e:
            logger.warning("Connection to %s failed: %s", name, e)
            self._state.set_connected(False, name)
            self._state.set_status(f"Failed to connect: {e}")
            return False

        self.connection = Connected(name, session)
        self._state.set_connected(True, name)
        logger.info("Connected to cluster %s", name)
        return True

    async def disconnect(self) -> bool:
        """
        Close the live session, if any.

        The state is always marked disconnected; a close error is only
        surfaced in the status line.

        Returns:
            True if there was nothing to close or it closed cleanly
        """
        if not isinstance(self.connection, Connected):
            self._state.connected = False
            return True

        name = self.connection.cluster_name
        ok = await self._close_current()
        self._state.set_connected(False, name)
        if not ok:
            self._state.set_status(f"Disconnected from {name} (close failed)")
        return ok

    async def _close_current(self) -> bool:
        """Close and forget the current session. Returns False on close error."""
        connection = self.connection
        self.connection = Disconnected()
        if not isinstance(connection, Connected):
            return True
        try:
            await connection.session.close()
        except BrokerError as e:
            logger.warning("Error closing session for %s: %s", connection.cluster_name, e)
            return False
        logger.info("Closed session for %s", connection.cluster_name)
        return True
