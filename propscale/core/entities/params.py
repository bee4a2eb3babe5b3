"""
Scaling parameter entity definitions.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Mapping

from propscale.core.errors import InvalidParametersError


@dataclass(frozen=True)
class ScalingParameters:
    """
    Tuning knobs of the linear (cluster-proportional) policy.

    Attributes:
        nodes_per_replica: One replica per this many ready nodes; 0 disables the term.
        cores_per_replica: One replica per this many schedulable cores; 0 disables the term.
        min: Reserved lower bound. Serialized but not applied by the formula.
        max: Reserved upper bound (0 means unbounded). Serialized but not applied.
    """

    nodes_per_replica: float = 0.0
    cores_per_replica: float = 0.0
    min: int = 0
    max: int = 0

    def __post_init__(self) -> None:
        if not (math.isfinite(self.nodes_per_replica) and math.isfinite(self.cores_per_replica)):
            raise InvalidParametersError(
                "Ratios must be finite: "
                f"nodes_per_replica={self.nodes_per_replica}, cores_per_replica={self.cores_per_replica}"
            )
        if self.nodes_per_replica < 0 or self.cores_per_replica < 0:
            raise InvalidParametersError(
                "Ratios must be non-negative: "
                f"nodes_per_replica={self.nodes_per_replica}, cores_per_replica={self.cores_per_replica}"
            )
        if self.min < 0 or self.max < 0:
            raise InvalidParametersError(f"Bounds must be non-negative: min={self.min}, max={self.max}")

    @property
    def is_degenerate(self) -> bool:
        """True when both ratios are disabled and the policy always yields 1."""
        return self.nodes_per_replica == 0 and self.cores_per_replica == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodesPerReplica": self.nodes_per_replica,
            "coresPerReplica": self.cores_per_replica,
            "min": self.min,
            "max": self.max,
        }

    @classmethod
    def from_dict(cls, values: Mapping[str, Any]) -> "ScalingParameters":
        """
        Build parameters from a mapping keyed by wire names (``nodesPerReplica``)
        or attribute names (``nodes_per_replica``).

        Raises:
            InvalidParametersError: when a value is negative or not numeric.
        """
        def pick(wire: str, attr: str) -> Any:
            if wire in values:
                return values[wire]
            return values.get(attr, 0)

        try:
            nodes = float(pick("nodesPerReplica", "nodes_per_replica"))
            cores = float(pick("coresPerReplica", "cores_per_replica"))
            lower = _as_int(pick("min", "min"), "min")
            upper = _as_int(pick("max", "max"), "max")
        except (TypeError, ValueError) as exc:
            raise InvalidParametersError(f"Invalid scaling parameters: {exc}") from exc
        return cls(nodes_per_replica=nodes, cores_per_replica=cores, min=lower, max=upper)


def _as_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        raise TypeError(f"'{field_name}' must be an integer, got {value!r}")
    if isinstance(value, int):
        return value
    as_float = float(value)
    if not as_float.is_integer():
        raise ValueError(f"'{field_name}' must be an integer, got {value!r}")
    return int(as_float)
