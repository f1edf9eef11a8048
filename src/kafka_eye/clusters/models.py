"""
Cluster configuration models.

Pydantic models describing one Kafka cluster's connection parameters and the
application settings stored next to them in the config file.

Per project patterns:
- Use str enum for YAML serialization compatibility
- Pydantic BaseModel for validation and serialization
- Field() with descriptions for documentation
"""

from enum import Enum

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from kafka_eye.errors import InvalidClusterError


class SecurityProtocol(str, Enum):
    """Transport security protocols understood by Kafka clients."""

    PLAINTEXT = "PLAINTEXT"
    SSL = "SSL"
    SASL_PLAINTEXT = "SASL_PLAINTEXT"
    SASL_SSL = "SASL_SSL"

    @property
    def requires_sasl(self) -> bool:
        return "SASL" in self.value

    @property
    def requires_tls(self) -> bool:
        return "SSL" in self.value


class SaslConfig(BaseModel):
    """SASL credentials."""

    mechanism: str = Field(description="SASL mechanism, e.g. PLAIN or SCRAM-SHA-256")
    username: str | None = None
    password: str | None = None


class TlsConfig(BaseModel):
    """TLS material locations."""

    ca_location: str | None = Field(default=None, description="CA bundle path")
    certificate_location: str | None = None
    key_location: str | None = None
    key_password: str | None = None


class SecurityConfig(BaseModel):
    """
    Security block for a cluster.

    Invariant: a SASL protocol needs the sasl block and an SSL protocol
    needs the tls block.
    """

    protocol: SecurityProtocol = SecurityProtocol.PLAINTEXT
    sasl: SaslConfig | None = None
    tls: TlsConfig | None = None

    @model_validator(mode="after")
    def _check_blocks(self) -> "SecurityConfig":
        if self.protocol.requires_sasl and self.sasl is None:
            raise ValueError("SASL configuration is required when using SASL protocol")
        if self.protocol.requires_tls and self.tls is None:
            raise ValueError("TLS configuration is required when using SSL protocol")
        return self


class ProducerSettings(BaseModel):
    """Producer tuning passed through to the broker client."""

    acks: str = "all"
    compression_type: str = "none"
    batch_size: int = 16384
    linger_ms: int = 0


class ConsumerSettings(BaseModel):
    """Consumer tuning passed through to the broker client."""

    auto_offset_reset: str = "earliest"
    enable_auto_commit: bool = True
    auto_commit_interval_ms: int = 5000
    session_timeout_ms: int = 30000
    heartbeat_interval_ms: int = 3000


class ClusterConfig(BaseModel):
    """
    Connection parameters for one Kafka cluster.

    Attributes:
        brokers: Ordered, non-empty list of bootstrap addresses
        client_id: Non-empty client identifier sent to the brokers
        security: Optional security block
        producer: Producer settings
        consumer: Consumer settings
    """

    brokers: list[str] = Field(description="Bootstrap broker addresses")
    client_id: str = Field(description="Client identifier")
    security: SecurityConfig | None = None
    producer: ProducerSettings = Field(default_factory=ProducerSettings)
    consumer: ConsumerSettings = Field(default_factory=ConsumerSettings)

    @field_validator("brokers")
    @classmethod
    def _brokers_not_empty(cls, brokers: list[str]) -> list[str]:
        if not brokers:
            raise ValueError("At least one Kafka broker must be configured")
        if any(not b.strip() for b in brokers):
            raise ValueError("Broker addresses cannot be blank")
        return brokers

    @field_validator("client_id")
    @classmethod
    def _client_id_not_empty(cls, client_id: str) -> str:
        if not client_id.strip():
            raise ValueError("Client ID cannot be empty")
        return client_id


class UiSettings(BaseModel):
    """Event loop and display settings."""

    tick_rate_ms: int = Field(default=250, gt=0, description="Tick interval")
    refresh_interval_ms: int = Field(default=1000, gt=0)
    max_messages: int = Field(default=1000, gt=0, description="Message cache size")
    queue_size: int = Field(default=1024, gt=0, description="Event queue bound")


class LoggingSettings(BaseModel):
    """Log level and optional log file path."""

    level: str = "info"
    file: str | None = None


class AppSettings(BaseModel):
    """Non-cluster settings carried in the config file."""

    ui: UiSettings = Field(default_factory=UiSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


def split_brokers(text: str) -> list[str]:
    """
    Split a comma-separated broker list.

    Pieces are trimmed and empty pieces dropped. The command path, the cluster
    form and the --broker flag all use this so broker lists are handled the
    same way.
    """
    return [piece.strip() for piece in text.split(",") if piece.strip()]


def build_cluster_config(
    brokers: list[str],
    client_id: str,
    security: SecurityConfig | None = None,
) -> ClusterConfig:
    """
    Build a ClusterConfig, converting pydantic failures to InvalidClusterError.

    Raises:
        InvalidClusterError: If any invariant is violated
    """
    try:
        return ClusterConfig(brokers=brokers, client_id=client_id, security=security)
    except ValidationError as e:
        raise InvalidClusterError(_first_error(e)) from e


def build_security_config(
    protocol: str,
    mechanism: str = "",
    username: str = "",
    password: str = "",
    ca_location: str = "",
) -> SecurityConfig | None:
    """
    Build a SecurityConfig from the flat text fields of the cluster form.

    Empty protocol means no security block. The SASL block is created when a
    mechanism is given, the TLS block when a CA path is given or the protocol
    needs TLS.

    Raises:
        InvalidClusterError: Unknown protocol or missing required block
    """
    protocol = protocol.strip().upper()
    if not protocol:
        return None
    try:
        proto = SecurityProtocol(protocol)
    except ValueError as e:
        raise InvalidClusterError(f"Invalid security protocol: {protocol}") from e

    sasl = None
    if mechanism.strip():
        sasl = SaslConfig(
            mechanism=mechanism.strip(),
            username=username or None,
            password=password or None,
        )
    tls = None
    if ca_location.strip() or proto.requires_tls:
        tls = TlsConfig(ca_location=ca_location.strip() or None)

    try:
        return SecurityConfig(protocol=proto, sasl=sasl, tls=tls)
    except ValidationError as e:
        raise InvalidClusterError(_first_error(e)) from e


def _first_error(error: ValidationError) -> str:
    """Return the message of the first pydantic error without the 'Value error, ' prefix."""
    message = error.errors()[0]["msg"]
    return message.removeprefix("Value error, ")
