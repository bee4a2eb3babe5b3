"""
propscale package skeleton.

Public names are resolved lazily: ``import propscale`` alone loads no
third-party modules, so packaging tools can read ``__version__`` without the
kubernetes client installed. Touching any export imports ``propscale.core``,
which does require it (CPU quantities are parsed with
``kubernetes.utils.parse_quantity``).
"""

from __future__ import annotations

from importlib import import_module
from importlib.metadata import PackageNotFoundError, version

__all__ = [
    "AutoscalerController",
    "ConfigStore",
    "ConvergenceWaiter",
    "KubernetesBackend",
    "LinearPolicy",
    "ScalingParameters",
    "__version__",
]


try:
    __version__ = version("propscale-core")
except PackageNotFoundError:
    __version__ = "0.0.0"


_LAZY_TARGETS = {
    "AutoscalerController": ("propscale.core.controllers", "AutoscalerController"),
    "ConfigStore": ("propscale.core.store", "ConfigStore"),
    "ConvergenceWaiter": ("propscale.core.controllers", "ConvergenceWaiter"),
    "KubernetesBackend": ("propscale.core.kube.client", "KubernetesBackend"),
    "LinearPolicy": ("propscale.core.scaling", "LinearPolicy"),
    "ScalingParameters": ("propscale.core.entities", "ScalingParameters"),
}


def __getattr__(name: str):
    """Dynamically load public symbols to avoid importing optional deps early."""
    target = _LAZY_TARGETS.get(name)
    if target is None:
        raise AttributeError(f"module '{__name__}' has no attribute '{name}'")

    module_name, attribute = target
    module = import_module(module_name)
    value = getattr(module, attribute)
    globals()[name] = value  # cache for subsequent lookups
    return value
