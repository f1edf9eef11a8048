"""
Cluster registry and its persistence.

- ClusterConfig and friends: pydantic models for one cluster's parameters
- ClusterRegistry: named clusters plus the active pointer
- ConfigStore: YAML load/save with a default registry when absent
"""

from kafka_eye.clusters.models import (
    AppSettings,
    ClusterConfig,
    ConsumerSettings,
    LoggingSettings,
    ProducerSettings,
    SaslConfig,
    SecurityConfig,
    SecurityProtocol,
    TlsConfig,
    UiSettings,
    build_cluster_config,
    build_security_config,
    split_brokers,
)
from kafka_eye.clusters.registry import ClusterRegistry
from kafka_eye.clusters.store import ConfigStore, default_registry

__all__ = [
    "AppSettings",
    "ClusterConfig",
    "ClusterRegistry",
    "ConfigStore",
    "ConsumerSettings",
    "LoggingSettings",
    "ProducerSettings",
    "SaslConfig",
    "SecurityConfig",
    "SecurityProtocol",
    "TlsConfig",
    "UiSettings",
    "build_cluster_config",
    "build_security_config",
    "default_registry",
    "split_brokers",
]
