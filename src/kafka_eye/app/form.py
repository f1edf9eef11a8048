"""
Cluster form workflow state.

ClusterFormState is the eight-field wizard shown while the application is in
CLUSTER_FORM mode. It only holds text and a field cursor; turning the text
into a ClusterConfig happens in build_config(), and applying it to the
registry is done by the form submit handler.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from kafka_eye.app.commands import default_client_id, split_brokers
from kafka_eye.clusters.models import ClusterConfig, build_cluster_config, build_security_config


class FormAction(str, Enum):
    ADD = "add"
    EDIT = "edit"
    DELETE = "delete"


FIELD_LABELS = (
    "Name",
    "Brokers (comma-separated)",
    "Client ID",
    "Security Protocol",
    "SASL Mechanism",
    "SASL Username",
    "SASL Password",
    "TLS CA Path",
)
FIELD_NAMES = (
    "name",
    "brokers",
    "client_id",
    "security_protocol",
    "sasl_mechanism",
    "sasl_username",
    "sasl_password",
    "tls_ca_path",
)
FIELD_COUNT = len(FIELD_NAMES)
LAST_FIELD = FIELD_COUNT - 1


@dataclass
class ClusterFormState:
    """
    Text fields and cursor of the cluster form.

    Attributes:
        action: What submitting the form does
        original_name: Cluster being edited or deleted (None for ADD)
        current_field: Index 0..7 of the focused field
    """

    action: FormAction
    name: str = ""
    brokers: str = ""
    client_id: str = ""
    security_protocol: str = ""
    sasl_mechanism: str = ""
    sasl_username: str = ""
    sasl_password: str = ""
    tls_ca_path: str = ""
    current_field: int = 0
    original_name: str | None = None

    @classmethod
    def for_add(cls) -> ClusterFormState:
        return cls(action=FormAction.ADD)

    @classmethod
    def from_config(cls, action: FormAction, name: str, config: ClusterConfig) -> ClusterFormState:
        """Pre-populate the form from an existing cluster (EDIT / DELETE)."""
        form = cls(
            action=action,
            name=name,
            brokers=",".join(config.brokers),
            client_id=config.client_id,
            original_name=name,
        )
        security = config.security
        if security is not None:
            form.security_protocol = security.protocol.value
            if security.sasl is not None:
                form.sasl_mechanism = security.sasl.mechanism
                form.sasl_username = security.sasl.username or ""
                form.sasl_password = security.sasl.password or ""
            if security.tls is not None:
                form.tls_ca_path = security.tls.ca_location or ""
        return form

    @property
    def field_name(self) -> str:
        return FIELD_NAMES[self.current_field]

    @property
    def on_last_field(self) -> bool:
        return self.current_field == LAST_FIELD

    def get_field(self, index: int) -> str:
        return getattr(self, FIELD_NAMES[index])

    def next_field(self) -> None:
        self.current_field = (self.current_field + 1) % FIELD_COUNT

    def prev_field(self) -> None:
        self.current_field = (self.current_field - 1) % FIELD_COUNT

    def add_char(self, char: str) -> None:
        setattr(self, self.field_name, self.get_field(self.current_field) + char)

    def backspace(self) -> None:
        setattr(self, self.field_name, self.get_field(self.current_field)[:-1])

    def submits_on_enter(self) -> bool:
        """Enter submits on the last field, or on any field when deleting."""
        return self.on_last_field or self.action == FormAction.DELETE

    def broker_list(self) -> list[str]:
        return split_brokers(self.brokers)

    def effective_client_id(self) -> str:
        client_id = self.client_id.strip()
        return client_id or default_client_id(self.name.strip())

    def build_config(self) -> ClusterConfig:
        """
        Convert the text fields into a validated ClusterConfig.

        Raises:
            InvalidClusterError: Any field fails validation
        """
        security = build_security_config(
            self.security_protocol,
            mechanism=self.sasl_mechanism,
            username=self.sasl_username,
            password=self.sasl_password,
            ca_location=self.tls_ca_path,
        )
        return build_cluster_config(self.broker_list(), self.effective_client_id(), security)
