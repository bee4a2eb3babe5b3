"""
Cluster collaborator interfaces.

The Kubernetes implementation is imported from
:mod:`propscale.core.kube.client` explicitly so the interfaces stay usable
without API credentials.
"""

from .interfaces import (  # noqa: F401
    ConfigRegistry,
    DeploymentRegistry,
    LabelSelector,
    NodeInventory,
    PodRegistry,
    format_selector,
)

__all__ = [
    "ConfigRegistry",
    "DeploymentRegistry",
    "LabelSelector",
    "NodeInventory",
    "PodRegistry",
    "format_selector",
]
