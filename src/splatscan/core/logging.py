"""Logging setup shared by the CLI and scripts."""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def setup_logging(level: str = "INFO") -> None:
    """Send splatscan logs to stdout at ``level``.

    Raises:
        ValueError: ``level`` is not one of ``LEVELS`` (case-insensitive).
    """
    name = level.upper()
    if name not in LEVELS:
        raise ValueError(f"Unknown log level '{level}', expected one of {', '.join(LEVELS)}")
    logging.basicConfig(
        level=getattr(logging, name),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )
