"""Utility helpers for propscale."""

from .logging import demote_client_logging, install_stdout_logger  # noqa: F401
from .wait import poll_until  # noqa: F401

__all__ = [
    "demote_client_logging",
    "install_stdout_logger",
    "poll_until",
]
