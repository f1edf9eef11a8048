"""
ClusterRegistry: named cluster configurations with an active pointer.

The registry is loaded once at startup by ConfigStore, mutated by command
execution or cluster form submission, and saved by the caller after every
successful mutation.

Invariant: active is None or a key of clusters. Every mutation validates
before touching state, so a rejected mutation leaves the registry unchanged.
"""

from __future__ import annotations

import logging

from kafka_eye.clusters.models import (
    AppSettings,
    ClusterConfig,
    SecurityConfig,
    build_cluster_config,
    split_brokers,
)
from kafka_eye.errors import ClusterNotFoundError, DuplicateClusterError, InvalidClusterError

logger = logging.getLogger(__name__)


class ClusterRegistry:
    """
    Mapping of cluster name to ClusterConfig plus the active cluster name.

    Example:
        registry = ClusterRegistry()
        registry.add_cluster("local", ["localhost:9092"], "kafka-eye")
        registry.set_active("local")
        name, config = registry.get_active()
    """

    def __init__(
        self,
        clusters: dict[str, ClusterConfig] | None = None,
        active: str | None = None,
        settings: AppSettings | None = None,
    ) -> None:
        self.clusters: dict[str, ClusterConfig] = dict(clusters or {})
        self.active: str | None = active
        self.settings = settings if settings is not None else AppSettings()
        self.validate()

    def add_cluster(
        self,
        name: str,
        brokers: list[str],
        client_id: str,
        security: SecurityConfig | None = None,
    ) -> ClusterConfig:
        """
        Add a new cluster.

        The first cluster added to an empty registry becomes active.

        Raises:
            InvalidClusterError: Empty name or invalid definition
            DuplicateClusterError: Name already registered
        """
        if not name.strip():
            raise InvalidClusterError("Cluster name cannot be empty")
        if name in self.clusters:
            raise DuplicateClusterError(name)
        config = build_cluster_config(brokers, client_id, security)
        self.clusters[name] = config
        if self.active is None:
            self.active = name
        logger.info("Added cluster %s (%s)", name, ",".join(config.brokers))
        return config

    def update_cluster(self, name: str, new_name: str, config: ClusterConfig) -> None:
        """
        Replace a cluster's config, optionally renaming it.

        The active pointer follows a rename.

        Raises:
            ClusterNotFoundError: name is not registered
            DuplicateClusterError: new_name is taken by another cluster
            InvalidClusterError: new_name is empty
        """
        if name not in self.clusters:
            raise ClusterNotFoundError(name)
        if not new_name.strip():
            raise InvalidClusterError("Cluster name cannot be empty")
        if new_name != name and new_name in self.clusters:
            raise DuplicateClusterError(new_name)

        # Rebuild the dict so a rename keeps the entry's position
        self.clusters = {
            (new_name if key == name else key): (config if key == name else value)
            for key, value in self.clusters.items()
        }
        if self.active == name:
            self.active = new_name
        logger.info("Updated cluster %s -> %s", name, new_name)

    def remove_cluster(self, name: str) -> ClusterConfig:
        """
        Remove a cluster. Clears the active pointer if it pointed at it.

        Raises:
            ClusterNotFoundError: name is not registered
        """
        if name not in self.clusters:
            raise ClusterNotFoundError(name)
        config = self.clusters.pop(name)
        if self.active == name:
            self.active = None
        logger.info("Removed cluster %s", name)
        return config

    def set_active(self, name: str) -> None:
        """
        Make a registered cluster the active one.

        Raises:
            ClusterNotFoundError: name is not registered
        """
        if name not in self.clusters:
            raise ClusterNotFoundError(name)
        self.active = name

    def has_cluster(self, name: str) -> bool:
        return name in self.clusters

    def list_clusters(self) -> list[str]:
        """Return registered cluster names, sorted."""
        return sorted(self.clusters)

    def get_active(self) -> tuple[str, ClusterConfig] | None:
        """Return (name, config) of the active cluster, or None."""
        if self.active is None:
            return None
        return self.active, self.clusters[self.active]

    def override_brokers(self, broker: str, fallback_name: str = "default") -> str:
        """
        Point the active cluster at the brokers given on the CLI (--broker flag).

        broker is a comma-separated list, split the same way as the command
        and form paths. Client id, security, producer and consumer settings
        of the active cluster are kept. When no cluster is active a new
        cluster named fallback_name is added and activated. Returns the name
        of the cluster that was changed.

        Raises:
            InvalidClusterError: broker holds no usable address
        """
        brokers = split_brokers(broker)
        active = self.get_active()
        if active is None:
            self.add_cluster(fallback_name, brokers, "kafka-eye")
            self.active = fallback_name
            return fallback_name
        name, config = active
        updated = build_cluster_config(brokers, config.client_id, config.security)
        self.clusters[name] = updated.model_copy(
            update={"producer": config.producer, "consumer": config.consumer}
        )
        logger.info("Overriding brokers of %s with %s", name, ",".join(brokers))
        return name

    def validate(self) -> None:
        """
        Check the registry-level invariant.

        Raises:
            InvalidClusterError: active names an unregistered cluster
        """
        if self.active is not None and self.active not in self.clusters:
            raise InvalidClusterError(f"Active cluster '{self.active}' is not configured")

    def __len__(self) -> int:
        return len(self.clusters)

    def __contains__(self, name: object) -> bool:
        return name in self.clusters
