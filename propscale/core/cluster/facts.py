"""
Read-only accessor for the cluster facts the scaling policy consumes.
"""

from __future__ import annotations

import logging
from typing import Callable

from propscale.core.entities import ClusterSnapshot
from propscale.core.kube.interfaces import NodeInventory
from propscale.core.utils.wait import poll_until

logger = logging.getLogger(__name__)


class ClusterFacts:
    """Snapshots node inventory on demand; holds no cached state."""

    def __init__(self, inventory: NodeInventory):
        self._inventory = inventory

    def snapshot(self) -> ClusterSnapshot:
        return ClusterSnapshot.of(self._inventory.list_ready_schedulable_nodes())

    def ready_node_count(self) -> int:
        return self.snapshot().ready_node_count

    def wait_for_node_count(
        self,
        predicate: Callable[[int], bool],
        *,
        timeout: float,
        interval: float = 20.0,
        **poll_kwargs,
    ) -> int:
        """Block until ``predicate(ready_node_count)`` holds; returns the count seen."""
        observed = {"count": None}

        def _condition() -> bool:
            count = self.ready_node_count()
            observed["count"] = count
            if not predicate(count):
                logger.info("Waiting for cluster size, currently %s ready nodes", count)
                return False
            return True

        poll_until(
            _condition,
            interval=interval,
            timeout=timeout,
            description="cluster size to satisfy predicate",
            **poll_kwargs,
        )
        logger.info("Cluster has reached the desired size: %s nodes", observed["count"])
        return observed["count"]
