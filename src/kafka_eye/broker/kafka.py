"""
aiokafka-backed broker session.

KafkaConnector.connect() starts an admin client and a producer for one
cluster and verifies reachability by listing topics. KafkaSession wraps
those clients plus an optional background consumer task that forwards
records to the notify callback as MessageReceived events. A successful
connect emits BrokerConnected and a consumer that loses its connection
emits BrokerDisconnected.

All aiokafka exceptions are re-raised as BrokerError so callers only need
to handle one error type.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any

from aiokafka import AIOKafkaConsumer, AIOKafkaProducer
from aiokafka.admin import AIOKafkaAdminClient, NewTopic
from aiokafka.errors import KafkaConnectionError, KafkaError
from aiokafka.helpers import create_ssl_context

from kafka_eye.app.events import (
    BrokerConnected,
    BrokerDisconnected,
    BrokerFailure,
    MessageReceived,
)
from kafka_eye.broker.protocol import BrokerMessage, Notify, PartitionMetadata, TopicMetadata
from kafka_eye.clusters.models import ClusterConfig
from kafka_eye.errors import BrokerError

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT_MS = 10_000


def build_client_kwargs(config: ClusterConfig) -> dict[str, Any]:
    """
    Translate a ClusterConfig into keyword arguments shared by aiokafka clients.

    Args:
        config: Cluster connection parameters

    Returns:
        Dict with bootstrap_servers, client_id and security options
    """
    kwargs: dict[str, Any] = {
        "bootstrap_servers": ",".join(config.brokers),
        "client_id": config.client_id,
        "request_timeout_ms": REQUEST_TIMEOUT_MS,
    }
    security = config.security
    if security is None:
        return kwargs

    kwargs["security_protocol"] = security.protocol.value
    if security.sasl is not None:
        kwargs["sasl_mechanism"] = security.sasl.mechanism
        if security.sasl.username is not None:
            kwargs["sasl_plain_username"] = security.sasl.username
        if security.sasl.password is not None:
            kwargs["sasl_plain_password"] = security.sasl.password
    if security.tls is not None:
        kwargs["ssl_context"] = create_ssl_context(
            cafile=security.tls.ca_location,
            certfile=security.tls.certificate_location,
            keyfile=security.tls.key_location,
            password=security.tls.key_password,
        )
    return kwargs


def _to_message(record: Any) -> BrokerMessage:
    """Convert an aiokafka ConsumerRecord to a BrokerMessage."""
    timestamp = None
    if record.timestamp is not None:
        timestamp = datetime.fromtimestamp(record.timestamp / 1000, tz=timezone.utc)
    return BrokerMessage(
        topic=record.topic,
        partition=record.partition,
        offset=record.offset,
        key=record.key.decode(errors="replace") if record.key is not None else None,
        value=record.value.decode(errors="replace") if record.value is not None else "",
        timestamp=timestamp,
        headers={k: v.decode(errors="replace") for k, v in (record.headers or ())},
    )


class KafkaSession:
    """
    Live aiokafka clients for one cluster.

    Example:
        session = await KafkaConnector().connect("local", config, queue.put)
        topics = await session.list_topics()
        await session.close()
    """

    def __init__(
        self,
        name: str,
        config: ClusterConfig,
        admin: AIOKafkaAdminClient,
        producer: AIOKafkaProducer,
        notify: Notify,
    ) -> None:
        self.name = name
        self.config = config
        self._admin = admin
        self._producer = producer
        self._notify = notify
        self._consumer: AIOKafkaConsumer | None = None
        self._consumer_task: asyncio.Task | None = None

    async def list_topics(self) -> list[str]:
        try:
            names = await self._admin.list_topics()
        except KafkaError as e:
            raise BrokerError(f"Failed to list topics: {e}") from e
        topics = sorted(n for n in names if not n.startswith("__"))
        logger.debug("Listed %d topics", len(topics))
        return topics

    async def get_topic_metadata(self, name: str) -> TopicMetadata:
        try:
            described = await self._admin.describe_topics([name])
        except KafkaError as e:
            raise BrokerError(f"Failed to describe topic {name}: {e}") from e

        for topic in described:
            if _pick(topic, "topic", "name") != name:
                continue
            partitions = []
            for p in topic.get("partitions", ()):
                leader = _pick(p, "leader", "leader_id", default=-1)
                partitions.append(
                    PartitionMetadata(
                        id=_pick(p, "partition", "partition_index", default=0),
                        leader=leader if leader >= 0 else None,
                        replicas=tuple(_pick(p, "replicas", "replica_nodes", default=())),
                        in_sync_replicas=tuple(_pick(p, "isr", "isr_nodes", default=())),
                    )
                )
            return TopicMetadata(name=name, partitions=tuple(partitions))
        raise BrokerError(f"Topic '{name}' not found")

    async def create_topic(self, name: str, partitions: int, replication_factor: int) -> None:
        topic = NewTopic(name=name, num_partitions=partitions, replication_factor=replication_factor)
        try:
            await self._admin.create_topics([topic])
        except KafkaError as e:
            raise BrokerError(f"Failed to create topic {name}: {e}") from e
        logger.info("Created topic %s", name)

    async def delete_topic(self, name: str) -> None:
        try:
            await self._admin.delete_topics([name])
        except KafkaError as e:
            raise BrokerError(f"Failed to delete topic {name}: {e}") from e
        logger.info("Deleted topic %s", name)

    async def produce(self, topic: str, value: str, key: str | None = None) -> None:
        try:
            meta = await self._producer.send_and_wait(
                topic,
                value=value.encode(),
                key=key.encode() if key is not None else None,
            )
        except KafkaError as e:
            raise BrokerError(f"Failed to deliver message: {e}") from e
        logger.debug(
            "Message delivered to topic: %s, partition: %s, offset: %s",
            topic,
            meta.partition,
            meta.offset,
        )

    async def start_consuming(self, topic: str, group_id: str) -> None:
        await self.stop_consuming()
        settings = self.config.consumer
        consumer = AIOKafkaConsumer(
            topic,
            group_id=group_id,
            enable_auto_commit=settings.enable_auto_commit,
            auto_commit_interval_ms=settings.auto_commit_interval_ms,
            auto_offset_reset=settings.auto_offset_reset,
            session_timeout_ms=settings.session_timeout_ms,
            heartbeat_interval_ms=settings.heartbeat_interval_ms,
            **build_client_kwargs(self.config),
        )
        try:
            await consumer.start()
        except KafkaError as e:
            raise BrokerError(f"Failed to start consumer: {e}") from e

        self._consumer = consumer
        self._consumer_task = asyncio.create_task(self._consume(consumer))
        logger.info("Started consuming from topic: %s with group: %s", topic, group_id)

    async def _consume(self, consumer: AIOKafkaConsumer) -> None:
        """Forward records to notify until cancelled."""
        try:
            async for record in consumer:
                self._notify(MessageReceived(_to_message(record)))
        except asyncio.CancelledError:
            raise
        except KafkaConnectionError as e:
            logger.error("Lost connection to %s while consuming: %s", self.name, e)
            self._notify(BrokerDisconnected(self.name))
        except KafkaError as e:
            logger.error("Consumer stopped: %s", e)
            self._notify(BrokerFailure(f"Consumer stopped: {e}"))

    async def stop_consuming(self) -> None:
        task, self._consumer_task = self._consumer_task, None
        consumer, self._consumer = self._consumer, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        if consumer is not None:
            try:
                await consumer.stop()
            except KafkaError as e:
                raise BrokerError(f"Failed to stop consumer: {e}") from e
            logger.info("Stopped consuming")

    async def list_consumer_groups(self) -> list[str]:
        try:
            groups = await self._admin.list_consumer_groups()
        except KafkaError as e:
            raise BrokerError(f"Failed to list consumer groups: {e}") from e
        return sorted(group[0] for group in groups)

    async def close(self) -> None:
        errors: list[str] = []
        try:
            await self.stop_consuming()
        except BrokerError as e:
            errors.append(str(e))
        for client in (self._producer, self._admin):
            try:
                if isinstance(client, AIOKafkaAdminClient):
                    await client.close()
                else:
                    await client.stop()
            except KafkaError as e:
                errors.append(str(e))
        logger.info("Disconnected from Kafka cluster %s", self.name)
        if errors:
            raise BrokerError("; ".join(errors))


class KafkaConnector:
    """Opens KafkaSession instances."""

    async def connect(self, name: str, config: ClusterConfig, notify: Notify) -> KafkaSession:
        # aiokafka validates security, acks and compression settings eagerly
        try:
            kwargs = build_client_kwargs(config)
            admin = AIOKafkaAdminClient(**kwargs)
            producer = AIOKafkaProducer(
                acks=_acks(config.producer.acks),
                compression_type=_compression(config.producer.compression_type),
                max_batch_size=config.producer.batch_size,
                linger_ms=config.producer.linger_ms,
                **kwargs,
            )
        except (KafkaError, OSError, ValueError) as e:
            raise BrokerError(f"Invalid client settings: {e}") from e
        try:
            await admin.start()
            await producer.start()
        except (KafkaError, OSError) as e:
            await _quietly_close(admin, producer)
            raise BrokerError(f"Cannot connect to {','.join(config.brokers)}: {e}") from e

        session = KafkaSession(name, config, admin, producer, notify)
        try:
            # Reachability check
            await session.list_topics()
        except BrokerError:
            await _quietly_close(admin, producer)
            raise
        logger.info("Successfully connected to Kafka cluster %s", name)
        notify(BrokerConnected(name))
        return session


def _pick(data: dict[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first present key; metadata field names differ across protocol versions."""
    for key in keys:
        if key in data:
            return data[key]
    return default


def _acks(value: str) -> int | str:
    return "all" if value == "all" else int(value)


def _compression(value: str) -> str | None:
    return None if value == "none" else value


async def _quietly_close(admin: AIOKafkaAdminClient, producer: AIOKafkaProducer) -> None:
    """Close half-started clients after a failed connect."""
    for closer in (producer.stop, admin.close):
        try:
            await closer()
        except KafkaError as e:
            logger.debug("Ignoring error while closing half-open client: %s", e)
