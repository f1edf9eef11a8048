"""
Broker access.

- BrokerSession / BrokerConnector: protocols the control plane depends on
- BrokerMessage, TopicMetadata, PartitionMetadata: data returned by sessions

The aiokafka implementation lives in kafka_eye.broker.kafka; only the CLI
imports it, everything else depends on the protocols.
"""

from kafka_eye.broker.protocol import (
    BrokerConnector,
    BrokerMessage,
    BrokerSession,
    Notify,
    PartitionMetadata,
    TopicMetadata,
)

__all__ = [
    "BrokerConnector",
    "BrokerMessage",
    "BrokerSession",
    "Notify",
    "PartitionMetadata",
    "TopicMetadata",
]
