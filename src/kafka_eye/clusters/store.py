"""
ConfigStore: YAML persistence for the cluster registry.

The file holds the cluster map, the active cluster name and the ui/logging
settings. load() creates and saves a default registry when the file is
absent. save() validates the whole document before writing and replaces the
file atomically, so a failed save never leaves a partial file behind.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from kafka_eye.clusters.models import AppSettings, ClusterConfig, LoggingSettings, UiSettings
from kafka_eye.clusters.registry import ClusterRegistry
from kafka_eye.errors import ConfigStoreError, InvalidClusterError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config.yaml")
DEFAULT_CLUSTER_NAME = "local"


class ConfigDocument(BaseModel):
    """On-disk shape of the config file."""

    clusters: dict[str, ClusterConfig] = Field(default_factory=dict)
    active_cluster: str | None = None
    ui: UiSettings = Field(default_factory=UiSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def from_registry(cls, registry: ClusterRegistry) -> ConfigDocument:
        return cls(
            clusters=registry.clusters,
            active_cluster=registry.active,
            ui=registry.settings.ui,
            logging=registry.settings.logging,
        )

    def to_registry(self) -> ClusterRegistry:
        return ClusterRegistry(
            clusters=self.clusters,
            active=self.active_cluster,
            settings=AppSettings(ui=self.ui, logging=self.logging),
        )


def default_registry() -> ClusterRegistry:
    """Registry with a single local cluster, used when no config file exists."""
    registry = ClusterRegistry()
    registry.add_cluster(DEFAULT_CLUSTER_NAME, ["localhost:9092"], "kafka-eye")
    registry.set_active(DEFAULT_CLUSTER_NAME)
    return registry


class ConfigStore:
    """
    Loads and saves a ClusterRegistry at a fixed path.

    Example:
        store = ConfigStore(Path("config.yaml"))
        registry = store.load()
        registry.add_cluster("prod", ["b1:9092"], "kafka-eye-prod")
        store.save(registry)
    """

    def __init__(self, path: Path = DEFAULT_CONFIG_PATH) -> None:
        self.path = Path(path)

    def load(self) -> ClusterRegistry:
        """
        Load the registry, creating a default config file if absent.

        Raises:
            ConfigStoreError: File unreadable, not YAML, or invalid
        """
        if not self.path.exists():
            logger.warning("Configuration file not found at %s, creating default config", self.path)
            registry = default_registry()
            self.save(registry)
            return registry

        try:
            raw = yaml.safe_load(self.path.read_text(encoding="utf-8")) or {}
        except OSError as e:
            raise ConfigStoreError(self.path, f"cannot read: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigStoreError(self.path, f"invalid YAML: {e}") from e

        try:
            registry = ConfigDocument.model_validate(raw).to_registry()
        except (ValidationError, InvalidClusterError) as e:
            raise ConfigStoreError(self.path, f"invalid configuration: {e}") from e

        logger.info("Loaded configuration from %s (%d clusters)", self.path, len(registry))
        return registry

    def save(self, registry: ClusterRegistry) -> None:
        """
        Validate and atomically write the registry.

        Raises:
            ConfigStoreError: Validation or write failure (file left untouched)
        """
        try:
            registry.validate()
            document = ConfigDocument.from_registry(registry)
        except (ValidationError, InvalidClusterError) as e:
            raise ConfigStoreError(self.path, f"refusing to save invalid registry: {e}") from e

        content = yaml.safe_dump(
            document.model_dump(mode="json"),
            sort_keys=False,
            default_flow_style=False,
        )

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(content)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise ConfigStoreError(self.path, f"cannot write: {e}") from e

        logger.info("Saved configuration to %s", self.path)
