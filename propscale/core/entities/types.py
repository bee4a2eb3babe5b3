"""
Common type definitions shared across stores and controllers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional


@dataclass
class ConfigRecord:
    """A named, namespaced string map (a ConfigMap in Kubernetes terms)."""

    name: str
    namespace: str
    data: Dict[str, str] = field(default_factory=dict)
    resource_version: Optional[str] = None


@dataclass
class DeploymentInfo:
    name: str
    namespace: str
    replicas: int
    labels: Dict[str, str] = field(default_factory=dict)


@dataclass
class PodInfo:
    name: str
    namespace: str
    labels: Dict[str, str] = field(default_factory=dict)
