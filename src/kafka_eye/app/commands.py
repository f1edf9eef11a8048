"""
Command language for the ':' prompt.

Grammar (whitespace-separated tokens, first token selects the family):

    cluster add <name> <broker1,broker2,...>
    cluster remove|rm <name>
    cluster switch|use <name>
    cluster list|ls
    cluster manage
    status
    connect
    disconnect
    q | quit

parse_command() never raises: malformed input becomes Unknown(reason),
which the dispatcher shows on the status line.
"""

from dataclasses import dataclass, field

from kafka_eye.clusters.models import split_brokers

CLIENT_ID_PREFIX = "kafka-eye"


@dataclass(frozen=True)
class AddCluster:
    name: str
    brokers: tuple[str, ...]
    client_id: str


@dataclass(frozen=True)
class RemoveCluster:
    name: str


@dataclass(frozen=True)
class SwitchCluster:
    name: str


@dataclass(frozen=True)
class ListClusters:
    pass


@dataclass(frozen=True)
class ManageClusters:
    pass


@dataclass(frozen=True)
class ShowStatus:
    pass


@dataclass(frozen=True)
class Connect:
    pass


@dataclass(frozen=True)
class Disconnect:
    pass


@dataclass(frozen=True)
class Quit:
    pass


@dataclass(frozen=True)
class Unknown:
    reason: str = field(default="Unknown command")


Command = (
    AddCluster
    | RemoveCluster
    | SwitchCluster
    | ListClusters
    | ManageClusters
    | ShowStatus
    | Connect
    | Disconnect
    | Quit
    | Unknown
)


def default_client_id(name: str) -> str:
    return f"{CLIENT_ID_PREFIX}-{name}"


def _parse_cluster(parts: list[str]) -> Command:
    if len(parts) < 2:
        return Unknown("Missing cluster subcommand")

    sub = parts[1]
    if sub == "add":
        if len(parts) < 4:
            return Unknown("Usage: cluster add <name> <broker1,broker2,...>")
        name = parts[2]
        return AddCluster(
            name=name,
            brokers=tuple(split_brokers(parts[3])),
            client_id=default_client_id(name),
        )
    if sub in ("remove", "rm"):
        if len(parts) < 3:
            return Unknown("Usage: cluster remove <name>")
        return RemoveCluster(name=parts[2])
    if sub in ("switch", "use"):
        if len(parts) < 3:
            return Unknown("Usage: cluster switch <name>")
        return SwitchCluster(name=parts[2])
    if sub in ("list", "ls"):
        return ListClusters()
    if sub == "manage":
        return ManageClusters()
    return Unknown(f"Unknown cluster subcommand: {sub}")


def parse_command(text: str) -> Command:
    """Parse one line of ':' input into a Command value."""
    parts = text.split()
    if not parts:
        return Unknown("Empty command")

    head = parts[0]
    if head == "cluster":
        return _parse_cluster(parts)
    if head == "status":
        return ShowStatus()
    if head == "connect":
        return Connect()
    if head == "disconnect":
        return Disconnect()
    if head in ("q", "quit"):
        return Quit()
    return Unknown(f"Unknown command: {head}")
