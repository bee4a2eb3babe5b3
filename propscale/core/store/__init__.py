"""ConfigMap-backed parameter storage."""

from .config_store import ConfigStore  # noqa: F401

__all__ = ["ConfigStore"]
