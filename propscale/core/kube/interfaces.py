"""
Narrow interfaces to the cluster collaborators propscale depends on.

The production implementation lives in :mod:`propscale.core.kube.client`;
anything honouring these contracts (an in-memory double, a recorded fixture)
can be handed to the stores and controllers instead.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Mapping, Sequence

from propscale.core.entities import ConfigRecord, DeploymentInfo, NodeDescriptor, PodInfo

LabelSelector = Mapping[str, str]


def format_selector(selector: LabelSelector) -> str:
    """Render ``{"k8s-app": "kube-dns"}`` as ``k8s-app=kube-dns``."""
    return ",".join(f"{key}={value}" for key, value in sorted(selector.items()))


class NodeInventory(ABC):
    @abstractmethod
    def list_ready_schedulable_nodes(self) -> Sequence[NodeDescriptor]:
        """Return ready, schedulable nodes in a stable order."""


class DeploymentRegistry(ABC):
    @abstractmethod
    def find_by_label(self, namespace: str, selector: LabelSelector) -> Sequence[DeploymentInfo]:
        """Return every deployment in ``namespace`` matching ``selector``."""

    @abstractmethod
    def resize(self, name: str, namespace: str, desired: int) -> None:
        """Set the desired replica count of a deployment."""


class ConfigRegistry(ABC):
    @abstractmethod
    def get(self, name: str, namespace: str) -> ConfigRecord:
        """Return the record or raise :class:`~propscale.core.errors.ConfigNotFoundError`."""

    @abstractmethod
    def put(self, record: ConfigRecord) -> None:
        """Overwrite an existing record's data (last writer wins)."""

    @abstractmethod
    def create(self, record: ConfigRecord) -> None:
        """Create a record that does not exist yet."""

    @abstractmethod
    def delete(self, name: str, namespace: str) -> None:
        """Delete a record."""


class PodRegistry(ABC):
    @abstractmethod
    def find_by_label(self, namespace: str, selector: LabelSelector) -> Sequence[PodInfo]:
        """Return every pod in ``namespace`` matching ``selector``."""

    @abstractmethod
    def delete(self, name: str, namespace: str) -> None:
        """Delete a pod."""


__all__ = [
    "LabelSelector",
    "format_selector",
    "NodeInventory",
    "DeploymentRegistry",
    "ConfigRegistry",
    "PodRegistry",
]
