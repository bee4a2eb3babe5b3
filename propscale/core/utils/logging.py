"""Logging utilities for propscale runtime components."""

from __future__ import annotations

import logging
import sys
from typing import Iterable


_CLIENT_LOGGERS = ("kubernetes", "kubernetes.client.rest", "urllib3")


def install_stdout_logger(level: int = logging.INFO, *, include_timestamp: bool = True, prefix: str = "propscale") -> None:
    """Attach a stream handler for CLI runs with optional timestamp."""
    fmt = "%(asctime)s %(levelname)s: %(message)s" if include_timestamp else "%(levelname)s: %(message)s"
    formatter = logging.Formatter(fmt, datefmt="%H:%M:%S")
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(formatter)
    logger = logging.getLogger(prefix)
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(level)


def demote_client_logging(level: int = logging.WARNING, names: Iterable[str] = _CLIENT_LOGGERS) -> None:
    """Quiet the kubernetes client's request-level chatter."""
    for name in names:
        logging.getLogger(name).setLevel(level)
