"""Tests for ClusterFormState field editing and conversion."""

import pytest

from kafka_eye.app.form import FIELD_COUNT, LAST_FIELD, ClusterFormState, FormAction
from kafka_eye.clusters.models import SecurityProtocol, build_cluster_config, build_security_config
from kafka_eye.errors import InvalidClusterError


def type_text(form: ClusterFormState, text: str) -> None:
    for char in text:
        form.add_char(char)


class TestFieldNavigation:
    """Field cursor wraparound and editing."""

    def test_next_wraps_to_first(self):
        form = ClusterFormState.for_add()
        for _ in range(FIELD_COUNT):
            form.next_field()
        assert form.current_field == 0

    def test_prev_wraps_to_last(self):
        form = ClusterFormState.for_add()
        form.prev_field()
        assert form.current_field == LAST_FIELD
        assert form.on_last_field

    def test_typing_goes_to_current_field(self):
        form = ClusterFormState.for_add()
        type_text(form, "prod")
        form.next_field()
        type_text(form, "b:9092")
        assert form.name == "prod"
        assert form.brokers == "b:9092"

    def test_backspace(self):
        form = ClusterFormState.for_add()
        type_text(form, "abc")
        form.backspace()
        assert form.name == "ab"
        form.backspace()
        form.backspace()
        form.backspace()
        assert form.name == ""

    def test_submit_on_enter(self):
        form = ClusterFormState.for_add()
        assert not form.submits_on_enter()
        form.current_field = LAST_FIELD
        assert form.submits_on_enter()

    def test_delete_submits_from_any_field(self):
        form = ClusterFormState(action=FormAction.DELETE, name="x")
        assert form.submits_on_enter()


class TestBuildConfig:
    """Turning text fields into a ClusterConfig."""

    def test_brokers_trimmed_and_filtered(self):
        """'h1:9092, h2:9092' becomes two trimmed brokers."""
        form = ClusterFormState(action=FormAction.ADD, name="x", brokers="h1:9092, h2:9092,")
        config = form.build_config()
        assert config.brokers == ["h1:9092", "h2:9092"]

    def test_empty_client_id_defaults_to_name(self):
        form = ClusterFormState(action=FormAction.ADD, name="x", brokers="h1:9092")
        assert form.build_config().client_id == "kafka-eye-x"

    def test_explicit_client_id_kept(self):
        form = ClusterFormState(
            action=FormAction.ADD, name="x", brokers="h1:9092", client_id=" mine "
        )
        assert form.build_config().client_id == "mine"

    def test_security_fields(self):
        form = ClusterFormState(
            action=FormAction.ADD,
            name="x",
            brokers="h1:9092",
            security_protocol="sasl_ssl",
            sasl_mechanism="PLAIN",
            sasl_username="user",
            sasl_password="pw",
            tls_ca_path="/ca.pem",
        )
        security = form.build_config().security
        assert security.protocol == SecurityProtocol.SASL_SSL
        assert security.sasl.password == "pw"
        assert security.tls.ca_location == "/ca.pem"

    def test_invalid_security_raises(self):
        form = ClusterFormState(
            action=FormAction.ADD, name="x", brokers="h1:9092", security_protocol="SASL_PLAINTEXT"
        )
        with pytest.raises(InvalidClusterError):
            form.build_config()

    def test_from_config_round_trip(self):
        security = build_security_config("SASL_PLAINTEXT", "PLAIN", "u", "p")
        config = build_cluster_config(["a:1", "b:2"], "cid", security)
        form = ClusterFormState.from_config(FormAction.EDIT, "prod", config)
        assert form.original_name == "prod"
        assert form.brokers == "a:1,b:2"
        assert form.security_protocol == "SASL_PLAINTEXT"
        assert form.sasl_username == "u"
        assert form.build_config() == config
