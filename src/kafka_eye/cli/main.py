"""kafka-eye CLI - terminal Kafka client with a vim-like interface.

Conventions:
- Use envvar parameter for environment variable fallback
- Load configuration and logging before the TUI takes the terminal
- Report fatal errors on stderr and exit with code 1
"""

import asyncio
import logging
from pathlib import Path

import typer

from kafka_eye.app.controller import AppController
from kafka_eye.broker.kafka import KafkaConnector
from kafka_eye.clusters.store import DEFAULT_CONFIG_PATH, ConfigStore
from kafka_eye.errors import ConfigStoreError, RegistryError, TerminalError
from kafka_eye.logs import setup_logging

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="kafka-eye",
    help="A terminal-based Kafka client with vim-like interface",
    add_completion=False,
)


@app.command()
def run(
    config: Path = typer.Option(
        DEFAULT_CONFIG_PATH,
        "--config",
        "-c",
        envvar="KAFKA_EYE_CONFIG",
        help="Configuration file path (created with a local cluster if missing)",
    ),
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug logging"),
    broker: str = typer.Option(
        None,
        "--broker",
        "-b",
        envvar="KAFKA_EYE_BROKER",
        help="Kafka broker address (e.g., localhost:9092), overrides the active cluster",
    ),
) -> None:
    """
    Start the dashboard.

    Runs until quit with q, :quit or Ctrl+C.

    Environment variables:
        KAFKA_EYE_CONFIG: Configuration file path
        KAFKA_EYE_BROKER: Broker override for the active cluster
    """
    store = ConfigStore(config)
    try:
        registry = store.load()
    except ConfigStoreError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    settings = registry.settings.logging
    try:
        log_path = setup_logging(settings.level, settings.file, debug=debug)
    except (ValueError, OSError) as e:
        typer.echo(f"Error: cannot set up logging: {e}", err=True)
        raise typer.Exit(1)
    logger.info("Starting Kafka Eye TUI client (log file %s)", log_path)

    if broker:
        try:
            registry.override_brokers(broker)
        except RegistryError as e:
            typer.echo(f"Error: invalid --broker: {e}", err=True)
            raise typer.Exit(1)

    controller = AppController(registry, store, KafkaConnector())
    try:
        asyncio.run(controller.run())
    except TerminalError as e:
        logger.error("Terminal error: %s", e)
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    logger.info("Kafka Eye client shutdown complete")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
