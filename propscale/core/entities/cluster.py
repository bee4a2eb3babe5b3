"""
Cluster snapshot entity definitions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Tuple

from kubernetes.utils import parse_quantity

from propscale.core.errors import EncodingOverflowError

_INT64_MAX = 2**63 - 1


@dataclass(frozen=True)
class NodeDescriptor:
    """A node as seen by the scaler: schedulability plus CPU capacity."""

    name: str
    schedulable: bool = True
    cpu_capacity: str = "0"


@dataclass(frozen=True)
class ClusterSnapshot:
    """
    Captured view of the ready, schedulable nodes of a cluster.

    The node inventory already filters on readiness; ``schedulable_cores``
    filters again on the per-node ``schedulable`` flag, so the two derived
    values may disagree when the inventory reports a cordoned node.
    """

    nodes: Tuple[NodeDescriptor, ...] = field(default_factory=tuple)

    @classmethod
    def of(cls, nodes: Iterable[NodeDescriptor]) -> "ClusterSnapshot":
        return cls(nodes=tuple(nodes))

    @property
    def ready_node_count(self) -> int:
        return len(self.nodes)

    def schedulable_cores(self) -> int:
        """
        Sum CPU capacity over schedulable nodes.

        Raises:
            EncodingOverflowError: if a quantity is unparsable, or the exact sum
                is fractional or does not fit in a signed 64-bit integer.
        """
        total = Decimal(0)
        for node in self.nodes:
            if not node.schedulable:
                continue
            try:
                total += parse_quantity(node.cpu_capacity)
            except (TypeError, ValueError) as exc:
                raise EncodingOverflowError(
                    f"node {node.name} reports unparsable CPU capacity {node.cpu_capacity!r}"
                ) from exc

        if total != total.to_integral_value():
            raise EncodingOverflowError(f"schedulable cores {total} is not an integer")
        if total > _INT64_MAX:
            raise EncodingOverflowError(f"schedulable cores {total} overflows int64")
        return int(total)
