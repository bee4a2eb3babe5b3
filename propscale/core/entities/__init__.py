"""
Domain entities used throughout the propscale runtime.
"""

from .cluster import ClusterSnapshot, NodeDescriptor  # noqa: F401
from .params import ScalingParameters  # noqa: F401
from .types import ConfigRecord, DeploymentInfo, PodInfo  # noqa: F401

__all__ = [
    "ClusterSnapshot",
    "NodeDescriptor",
    "ScalingParameters",
    "ConfigRecord",
    "DeploymentInfo",
    "PodInfo",
]
