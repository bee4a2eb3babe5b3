"""
Public facing controller facades for propscale.
"""

from .autoscaler import AutoscalerController, ReconcileResult  # noqa: F401
from .convergence import ConvergenceWaiter  # noqa: F401
from .replicas import ReplicaController  # noqa: F401
from .scenario import Baseline, ScalingScenario  # noqa: F401

__all__ = [
    "AutoscalerController",
    "ReconcileResult",
    "ConvergenceWaiter",
    "ReplicaController",
    "Baseline",
    "ScalingScenario",
]
