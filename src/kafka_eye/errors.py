"""
Exception classes for kafka-eye.

Hierarchy:
- KafkaEyeError: base for everything raised by this package
  - RegistryError: invalid cluster registry mutation
    - ClusterNotFoundError: named cluster does not exist
    - DuplicateClusterError: named cluster already exists
    - InvalidClusterError: cluster definition fails validation
  - ConfigStoreError: config file could not be read or written
  - BrokerError: broker session operation failed
  - TerminalError: terminal could not enter or leave raw mode

Registry, store and broker errors are caught by the event loop handlers and
turned into status-line messages. TerminalError propagates to the CLI.

Per project patterns:
- Store context data in attributes for error handling
- Include descriptive message with relevant details
"""


class KafkaEyeError(Exception):
    """Base class for all kafka-eye errors."""


class RegistryError(KafkaEyeError):
    """Raised when a cluster registry mutation is rejected."""


class ClusterNotFoundError(RegistryError):
    """
    Raised when a named cluster is not in the registry.

    Attributes:
        name: The cluster name that was looked up
    """

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Cluster '{name}' not found")


class DuplicateClusterError(RegistryError):
    """
    Raised when adding a cluster whose name is already taken.

    Attributes:
        name: The conflicting cluster name
    """

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Cluster '{name}' already exists")


class InvalidClusterError(RegistryError):
    """
    Raised when a cluster definition violates its invariants.

    Attributes:
        reason: Human-readable description of the violation
    """

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


class ConfigStoreError(KafkaEyeError):
    """
    Raised when the config file cannot be loaded or saved.

    Attributes:
        path: Config file path involved
        reason: What went wrong
    """

    def __init__(self, path: object, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Config file {path}: {reason}")


class BrokerError(KafkaEyeError):
    """Raised by broker sessions when a broker operation fails."""


class TerminalError(KafkaEyeError):
    """Raised when the terminal cannot be put into or restored from cbreak mode."""
