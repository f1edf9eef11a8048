"""Tests for ClusterRegistry and ConfigStore."""

import pytest
import yaml

from kafka_eye.clusters.models import (
    ClusterConfig,
    ProducerSettings,
    SecurityProtocol,
    build_cluster_config,
    build_security_config,
)
from kafka_eye.clusters.registry import ClusterRegistry
from kafka_eye.clusters.store import ConfigStore, default_registry
from kafka_eye.errors import (
    ClusterNotFoundError,
    ConfigStoreError,
    DuplicateClusterError,
    InvalidClusterError,
)


class TestClusterConfig:
    """Tests for cluster config validation."""

    def test_requires_brokers(self):
        with pytest.raises(InvalidClusterError, match="At least one Kafka broker"):
            build_cluster_config([], "client")

    def test_requires_client_id(self):
        with pytest.raises(InvalidClusterError, match="Client ID cannot be empty"):
            build_cluster_config(["b:9092"], "  ")

    def test_sasl_protocol_requires_sasl_block(self):
        with pytest.raises(InvalidClusterError, match="SASL configuration is required"):
            build_security_config("SASL_PLAINTEXT")

    def test_ssl_protocol_gets_tls_block(self):
        security = build_security_config("ssl", ca_location="/etc/ca.pem")
        assert security.protocol == SecurityProtocol.SSL
        assert security.tls.ca_location == "/etc/ca.pem"

    def test_sasl_ssl_with_credentials(self):
        security = build_security_config("SASL_SSL", "PLAIN", "user", "secret")
        assert security.sasl.username == "user"
        assert security.tls is not None

    def test_unknown_protocol(self):
        with pytest.raises(InvalidClusterError, match="Invalid security protocol"):
            build_security_config("CARRIER_PIGEON")

    def test_empty_protocol_means_no_security(self):
        assert build_security_config("") is None


class TestClusterRegistry:
    """Tests for registry mutations and the active pointer invariant."""

    def test_first_cluster_becomes_active(self):
        registry = ClusterRegistry()
        registry.add_cluster("a", ["b:9092"], "kafka-eye-a")
        assert registry.active == "a"

    def test_second_cluster_does_not_steal_active(self, registry):
        registry.add_cluster("other", ["o:9092"], "kafka-eye-other")
        assert registry.active == "local"

    def test_duplicate_name_rejected(self, registry):
        with pytest.raises(DuplicateClusterError):
            registry.add_cluster("local", ["x:9092"], "kafka-eye")
        assert registry.clusters["local"].brokers == ["localhost:9092"]

    def test_invalid_add_leaves_registry_unchanged(self, registry):
        with pytest.raises(InvalidClusterError):
            registry.add_cluster("bad", [], "kafka-eye-bad")
        assert registry.list_clusters() == ["local"]

    def test_empty_name_rejected(self, registry):
        with pytest.raises(InvalidClusterError):
            registry.add_cluster(" ", ["x:9092"], "kafka-eye")

    def test_remove_active_clears_pointer(self, registry):
        registry.remove_cluster("local")
        assert registry.active is None
        assert registry.get_active() is None

    def test_remove_unknown(self, registry):
        with pytest.raises(ClusterNotFoundError):
            registry.remove_cluster("nope")

    def test_set_active_unknown(self, registry):
        with pytest.raises(ClusterNotFoundError):
            registry.set_active("nope")
        assert registry.active == "local"

    def test_list_clusters_sorted(self, registry):
        registry.add_cluster("b", ["b:9092"], "kafka-eye-b")
        registry.add_cluster("a", ["a:9092"], "kafka-eye-a")
        assert registry.list_clusters() == ["a", "b", "local"]

    def test_update_with_rename_moves_active(self, registry):
        config = ClusterConfig(brokers=["new:9092"], client_id="kafka-eye")
        registry.update_cluster("local", "dev", config)
        assert registry.active == "dev"
        assert "local" not in registry
        assert registry.clusters["dev"].brokers == ["new:9092"]

    def test_update_rename_onto_existing_rejected(self, registry):
        registry.add_cluster("other", ["o:9092"], "kafka-eye-other")
        config = ClusterConfig(brokers=["new:9092"], client_id="kafka-eye")
        with pytest.raises(DuplicateClusterError):
            registry.update_cluster("local", "other", config)
        assert registry.clusters["local"].brokers == ["localhost:9092"]

    def test_override_brokers_on_active(self, registry):
        name = registry.override_brokers("remote:9093")
        assert name == "local"
        assert registry.clusters["local"].brokers == ["remote:9093"]

    def test_override_brokers_without_active_adds_default(self):
        registry = ClusterRegistry()
        name = registry.override_brokers("remote:9093")
        assert name == "default"
        assert registry.get_active()[1].brokers == ["remote:9093"]

    def test_override_brokers_splits_list(self, registry):
        registry.clusters["local"] = registry.clusters["local"].model_copy(
            update={"producer": ProducerSettings(acks="1")}
        )
        registry.override_brokers("h1:9092, h2:9092")
        config = registry.clusters["local"]
        assert config.brokers == ["h1:9092", "h2:9092"]
        assert config.client_id == "kafka-eye"
        assert config.producer.acks == "1"

    @pytest.mark.parametrize("broker", ["   ", ",,", ""])
    def test_override_brokers_rejects_blank(self, registry, broker):
        with pytest.raises(InvalidClusterError):
            registry.override_brokers(broker)
        assert registry.clusters["local"].brokers == ["localhost:9092"]

    def test_override_brokers_blank_without_active(self):
        registry = ClusterRegistry()
        with pytest.raises(InvalidClusterError):
            registry.override_brokers("   ")
        assert len(registry) == 0
        assert registry.active is None

    def test_constructor_rejects_dangling_active(self):
        with pytest.raises(InvalidClusterError):
            ClusterRegistry(active="ghost")


class TestConfigStore:
    """Tests for YAML persistence."""

    def test_load_creates_default_when_absent(self, store, config_path):
        """A missing file is created with the local cluster, active."""
        registry = store.load()
        assert config_path.exists()
        assert registry.active == "local"
        assert registry.clusters["local"].brokers == ["localhost:9092"]
        assert registry.clusters["local"].client_id == "kafka-eye"

    def test_round_trip(self, store):
        registry = default_registry()
        security = build_security_config("SASL_SSL", "SCRAM-SHA-256", "u", "p", "/ca.pem")
        registry.add_cluster("prod", ["p1:9092", "p2:9092"], "kafka-eye-prod", security)
        registry.settings.ui.max_messages = 50
        store.save(registry)

        loaded = store.load()
        assert loaded.list_clusters() == ["local", "prod"]
        assert loaded.active == "local"
        assert loaded.clusters["prod"] == registry.clusters["prod"]
        assert loaded.settings.ui.max_messages == 50

    def test_saved_file_is_plain_yaml(self, store, config_path):
        store.save(default_registry())
        document = yaml.safe_load(config_path.read_text())
        assert document["active_cluster"] == "local"
        assert document["clusters"]["local"]["brokers"] == ["localhost:9092"]

    def test_invalid_yaml(self, store, config_path):
        config_path.write_text("clusters: [unclosed")
        with pytest.raises(ConfigStoreError, match="invalid YAML"):
            store.load()

    def test_invalid_document(self, store, config_path):
        config_path.write_text("clusters:\n  a:\n    brokers: []\n    client_id: x\n")
        with pytest.raises(ConfigStoreError, match="invalid configuration"):
            store.load()

    def test_dangling_active_rejected_on_load(self, store, config_path):
        config_path.write_text("clusters: {}\nactive_cluster: ghost\n")
        with pytest.raises(ConfigStoreError):
            store.load()

    def test_invalid_registry_not_written(self, store, config_path):
        registry = default_registry()
        store.save(registry)
        before = config_path.read_text()
        registry.active = "ghost"
        with pytest.raises(ConfigStoreError):
            store.save(registry)
        assert config_path.read_text() == before
        assert [p.name for p in config_path.parent.iterdir()] == ["config.yaml"]
