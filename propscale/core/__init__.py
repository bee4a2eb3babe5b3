"""
Core package bootstrap for the propscale runtime.

Re-exports the primary façade classes so callers can simply do::

    from propscale.core import AutoscalerController
"""

from __future__ import annotations

from propscale.core.controllers import AutoscalerController, ConvergenceWaiter, ReplicaController, ScalingScenario

__all__ = ["AutoscalerController", "ConvergenceWaiter", "ReplicaController", "ScalingScenario"]
