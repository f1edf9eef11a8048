"""
Logging setup.

The terminal belongs to the TUI, so log records go to a file instead of
stderr. Modules log through logging.getLogger(__name__); this module only
configures the kafka_eye package logger once at startup.
"""

from __future__ import annotations

import logging
from pathlib import Path

DEFAULT_LOG_FILE = Path("kafka-eye.log")
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def parse_level(level: str) -> int:
    """
    Convert a level name ("info", "DEBUG", ...) to a logging level.

    Raises:
        ValueError: Unknown level name
    """
    value = logging.getLevelName(level.strip().upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level}")
    return value


def setup_logging(level: str = "info", file: str | Path | None = None, debug: bool = False) -> Path:
    """
    Send kafka_eye log records to a file.

    Args:
        level: Level name from the config file
        file: Log file path (defaults to kafka-eye.log in the working directory)
        debug: Force DEBUG regardless of level

    Returns:
        Path of the log file
    """
    path = Path(file) if file else DEFAULT_LOG_FILE
    levels = {
        "kafka_eye": logging.DEBUG if debug else parse_level(level),
        # Client library warnings would otherwise reach stderr through lastResort
        "aiokafka": logging.DEBUG if debug else logging.WARNING,
    }
    handler = logging.FileHandler(path, mode="a", encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    for name, value in levels.items():
        logger = logging.getLogger(name)
        for old in list(logger.handlers):
            logger.removeHandler(old)
            old.close()
        logger.addHandler(handler)
        logger.setLevel(value)
        logger.propagate = False
    return path
