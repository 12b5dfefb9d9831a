from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def setup_logging(level: str | None = None) -> None:
    """
    Structured-enough logging for ops users.

    Every record goes to stdout; in production the container runtime ships it
    to the log aggregator.
    """
    if level is None:
        from fleet_access.configs.settings import get_settings

        level = get_settings().LOG_LEVEL

    root = logging.getLogger()
    root.setLevel(level.upper())

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT))

    # Replace existing handlers to avoid duplicates under reload.
    root.handlers = [handler]


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
