"""Shared fixtures: in-memory broker doubles and a registry backed by tmp_path."""

import logging
from pathlib import Path

import pytest

from kafka_eye.app.connection import ConnectionManager
from kafka_eye.app.handlers import Dispatcher
from kafka_eye.app.queue import EventQueue
from kafka_eye.app.state import AppState
from kafka_eye.broker.protocol import PartitionMetadata, TopicMetadata
from kafka_eye.clusters.registry import ClusterRegistry
from kafka_eye.clusters.store import ConfigStore
from kafka_eye.errors import BrokerError


class FakeSession:
    """BrokerSession double recording calls."""

    def __init__(self, topics=None, groups=None, fail_close: Exception | None = None):
        self.topics = list(topics or [])
        self.groups = list(groups or [])
        self.fail_close = fail_close
        self.produced: list[tuple[str, str]] = []
        self.consuming: tuple[str, str] | None = None
        self.closed = False

    async def list_topics(self) -> list[str]:
        return list(self.topics)

    async def get_topic_metadata(self, name: str) -> TopicMetadata:
        if name not in self.topics:
            raise BrokerError(f"Topic '{name}' not found")
        partitions = (PartitionMetadata(0, 1, (1, 2), (1, 2)), PartitionMetadata(1, 2, (2, 1), (2,)))
        return TopicMetadata(name=name, partitions=partitions)

    async def create_topic(self, name: str, partitions: int, replication_factor: int) -> None:
        self.topics.append(name)

    async def delete_topic(self, name: str) -> None:
        self.topics.remove(name)

    async def produce(self, topic: str, value: str, key: str | None = None) -> None:
        self.produced.append((topic, value))

    async def start_consuming(self, topic: str, group_id: str) -> None:
        self.consuming = (topic, group_id)

    async def stop_consuming(self) -> None:
        self.consuming = None

    async def list_consumer_groups(self) -> list[str]:
        return list(self.groups)

    async def close(self) -> None:
        self.closed = True
        if self.fail_close is not None:
            raise self.fail_close


class FakeConnector:
    """BrokerConnector double handing out FakeSessions, or failing."""

    def __init__(self, session_factory=FakeSession, fail: str | None = None):
        self.session_factory = session_factory
        self.fail = fail
        self.sessions: list[FakeSession] = []
        self.connected_to: list[str] = []

    async def connect(self, name, config, notify):
        self.connected_to.append(name)
        if self.fail is not None:
            raise BrokerError(self.fail)
        session = self.session_factory()
        self.sessions.append(session)
        return session


@pytest.fixture
def config_path(tmp_path) -> Path:
    return tmp_path / "config.yaml"


@pytest.fixture
def store(config_path) -> ConfigStore:
    return ConfigStore(config_path)


@pytest.fixture
def registry() -> ClusterRegistry:
    registry = ClusterRegistry()
    registry.add_cluster("local", ["localhost:9092"], "kafka-eye")
    return registry


@pytest.fixture
def state() -> AppState:
    return AppState()


@pytest.fixture
def connector() -> FakeConnector:
    return FakeConnector()


@pytest.fixture
def queue() -> EventQueue:
    return EventQueue(maxsize=16)


@pytest.fixture
def connection(connector, state, queue) -> ConnectionManager:
    return ConnectionManager(connector, state, queue.put)


@pytest.fixture
def dispatcher(state, registry, store, connection) -> Dispatcher:
    return Dispatcher(state, registry, store, connection, tick_rate=0.25, refresh_interval=1.0)


@pytest.fixture
def reset_logging():
    """Undo setup_logging so file handlers do not leak between tests."""
    yield
    for name in ("kafka_eye", "aiokafka"):
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
        logger.setLevel(logging.NOTSET)
        logger.propagate = True
