"""
kafka-eye

Terminal dashboard for operating Kafka clusters with a vim-like interface.
This package provides:

- Cluster registry: named cluster configs, active cluster, YAML persistence
- Control plane: modal state machine, command language, cluster form,
  connection lifecycle and the event loop driving them
- Broker access: session protocols plus an aiokafka-backed implementation
- CLI: Typer entry point (kafka-eye / python -m kafka_eye)
"""

__version__ = "0.1.0"

from kafka_eye.errors import (
    BrokerError,
    ClusterNotFoundError,
    ConfigStoreError,
    DuplicateClusterError,
    InvalidClusterError,
    KafkaEyeError,
    RegistryError,
    TerminalError,
)

__all__ = [
    "__version__",
    # Errors
    "KafkaEyeError",
    "RegistryError",
    "ClusterNotFoundError",
    "DuplicateClusterError",
    "InvalidClusterError",
    "ConfigStoreError",
    "BrokerError",
    "TerminalError",
]
