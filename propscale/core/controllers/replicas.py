"""
Replica count access for the scaled deployment.
"""

from __future__ import annotations

import logging
from typing import Dict, Mapping

from propscale.core.entities import DeploymentInfo
from propscale.core.errors import CardinalityError
from propscale.core.kube.interfaces import DeploymentRegistry

logger = logging.getLogger(__name__)


class ReplicaController:
    """
    Owns the replica count of exactly one deployment, located by label.

    Zero or several matches is a data-integrity problem and raises
    :class:`CardinalityError` on every call; it is never treated as zero
    replicas or resolved to the first match.
    """

    def __init__(self, registry: DeploymentRegistry, *, namespace: str, selector: Mapping[str, str]):
        self._registry = registry
        self.namespace = namespace
        self.selector: Dict[str, str] = dict(selector)

    def deployment(self) -> DeploymentInfo:
        matches = list(self._registry.find_by_label(self.namespace, self.selector))
        if len(matches) != 1:
            raise CardinalityError("deployment", self.namespace, self.selector, len(matches))
        return matches[0]

    def current_replicas(self) -> int:
        return self.deployment().replicas

    def set_desired(self, desired: int) -> bool:
        """
        Ask the registry to resize the deployment.

        Returns:
            True if a resize was requested, False if already at ``desired``.
        """
        if desired < 0:
            raise ValueError(f"desired replicas must be non-negative, got {desired}")
        deployment = self.deployment()
        if deployment.replicas == desired:
            logger.debug("Deployment %s/%s already at %s replicas", deployment.namespace, deployment.name, desired)
            return False
        logger.info(
            "Resizing deployment %s/%s from %s to %s replicas",
            deployment.namespace,
            deployment.name,
            deployment.replicas,
            desired,
        )
        self._registry.resize(deployment.name, deployment.namespace, desired)
        return True
