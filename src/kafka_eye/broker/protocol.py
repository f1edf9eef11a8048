"""
Broker session protocol definitions.

The control plane never talks to Kafka directly. It asks a BrokerConnector
for a BrokerSession bound to one cluster and calls the session's async
methods from inside event handlers. Any implementation that satisfies these
protocols can be plugged in (the aiokafka adapter, or a test double).

Sessions report asynchronous happenings (consumed records, background
failures) through the notify callback given at connect time. The callback
pushes onto the event loop's queue and must be called from the event loop
thread.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable, Protocol, runtime_checkable

if TYPE_CHECKING:
    from kafka_eye.clusters.models import ClusterConfig


@dataclass(frozen=True)
class BrokerMessage:
    """One consumed record."""

    topic: str
    partition: int
    offset: int
    value: str
    key: str | None = None
    timestamp: datetime | None = None
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def size(self) -> int:
        """Approximate payload size in bytes."""
        return len(self.value.encode()) + len((self.key or "").encode())


@dataclass(frozen=True)
class PartitionMetadata:
    id: int
    leader: int | None
    replicas: tuple[int, ...] = ()
    in_sync_replicas: tuple[int, ...] = ()


@dataclass(frozen=True)
class TopicMetadata:
    name: str
    partitions: tuple[PartitionMetadata, ...] = ()
    configs: dict[str, str] = field(default_factory=dict)

    @property
    def replicas(self) -> int:
        """Replication factor, taken from the first partition."""
        if not self.partitions:
            return 0
        return len(self.partitions[0].replicas)


Notify = Callable[[Any], None]


@runtime_checkable
class BrokerSession(Protocol):
    """
    A live connection to one cluster.

    All methods may raise BrokerError.
    """

    async def list_topics(self) -> list[str]:
        """Return non-internal topic names."""
        ...

    async def get_topic_metadata(self, name: str) -> TopicMetadata:
        ...

    async def create_topic(self, name: str, partitions: int, replication_factor: int) -> None:
        ...

    async def delete_topic(self, name: str) -> None:
        ...

    async def produce(self, topic: str, value: str, key: str | None = None) -> None:
        ...

    async def start_consuming(self, topic: str, group_id: str) -> None:
        """Start a background consumer; records arrive via notify."""
        ...

    async def stop_consuming(self) -> None:
        ...

    async def list_consumer_groups(self) -> list[str]:
        ...

    async def close(self) -> None:
        """Release all client resources. Must be safe to call once."""
        ...


@runtime_checkable
class BrokerConnector(Protocol):
    """Factory that opens sessions."""

    async def connect(self, name: str, config: ClusterConfig, notify: Notify) -> BrokerSession:
        """
        Open a session to the cluster.

        Raises:
            BrokerError: The cluster could not be reached
        """
        ...
