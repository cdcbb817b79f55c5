"""
logging_config.py - Centralized logging configuration.

Every module logs through a named logger from get_logger(__name__) and
writes messages as `event_name | key=value | ...` lines.
"""

from __future__ import annotations

import logging
import sys

PLAIN_FORMAT = "%(asctime)s [%(name)-20s] %(levelname)-7s %(message)s"
JSON_FORMAT = (
    '{"timestamp":"%(asctime)s","level":"%(levelname)s",'
    '"module":"%(name)s","message":"%(message)s"}'
)


def setup_logging(level: int = logging.INFO, json_format: bool = False) -> None:
    """Configure root logger with consistent formatting.

    Args:
        level: Logging level.
        json_format: If True, emit JSON-like log lines.
    """
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    formatter = logging.Formatter(
        JSON_FORMAT if json_format else PLAIN_FORMAT,
        datefmt="%H:%M:%S",
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Get a named logger."""
    return logging.getLogger(name)
