"""Configuration helpers for propscale.

This module loads optional YAML configuration files that describe where the
scaled service and its ConfigMap live and how long to wait for them.
Configuration precedence:

1. Environment variable ``PROPSCALE_CONFIG`` pointing to a YAML file.
2. ``propscale.yaml`` in the current working directory.
3. Built-in defaults bundled with the package (``config/default.yaml``).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from propscale.core.entities import ScalingParameters
from propscale.core.errors import InvalidParametersError
from propscale.core.scaling.codec import encode_linear

__all__ = [
    "RuntimeConfig",
    "get_runtime_config",
    "load_runtime_config",
    "reset_runtime_config",
]


_ENV_VAR = "PROPSCALE_CONFIG"
_CWD_FILE = "propscale.yaml"


@dataclass
class RuntimeConfig:
    namespace: str = "kube-system"
    config_map_name: str = "kube-dns-autoscaler"
    target_selector: Dict[str, str] = field(default_factory=lambda: {"k8s-app": "kube-dns"})
    autoscaler_selector: Dict[str, str] = field(default_factory=lambda: {"k8s-app": "kube-dns-autoscaler"})
    replica_poll_interval: float = 2.0
    config_poll_interval: float = 1.0
    default_timeout: float = 300.0
    reconcile_period: float = 10.0
    default_params: ScalingParameters = field(
        default_factory=lambda: ScalingParameters(nodes_per_replica=16, cores_per_replica=256)
    )

    def default_data(self) -> Dict[str, str]:
        """ConfigMap data the autoscaler republishes when the record is deleted."""
        return encode_linear(self.default_params)


_runtime_config: Optional[RuntimeConfig] = None


def _resolve_config_path() -> Optional[Path]:
    env_path = os.environ.get(_ENV_VAR)
    if env_path:
        candidate = Path(env_path).expanduser()
        if candidate.is_file():
            return candidate

    cwd_file = Path.cwd() / _CWD_FILE
    if cwd_file.is_file():
        return cwd_file
    return None


def _load_yaml_dict(path: Optional[Path] = None) -> Dict[str, Any]:
    path = path or _resolve_config_path()
    if path is not None:
        with path.open("r", encoding="utf-8") as fh:
            return yaml.safe_load(fh) or {}

    # Fallback to bundled default configuration
    from importlib import resources

    bundled = resources.files("propscale.config").joinpath("default.yaml")
    with bundled.open("r", encoding="utf-8") as fh:
        return yaml.safe_load(fh) or {}


def _coerce_selector(raw: Any, key: str) -> Dict[str, str]:
    if not isinstance(raw, dict) or not raw:
        raise ValueError(f"'{key}' must be a non-empty mapping of label keys to values")
    return {str(k): str(v) for k, v in raw.items()}


def _coerce_positive(raw: Any, key: str) -> float:
    try:
        value = float(raw)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"'{key}' must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ValueError(f"'{key}' must be positive, got {value}")
    return value


def _build_runtime_config(data: Dict[str, Any]) -> RuntimeConfig:
    node = data.get("propscale", {})
    if not isinstance(node, dict):
        raise ValueError("'propscale' section must be a mapping")

    config = RuntimeConfig()
    target = node.get("target", {}) or {}
    if not isinstance(target, dict):
        raise ValueError("'target' section must be a mapping")
    config.namespace = str(target.get("namespace", config.namespace)).strip() or config.namespace
    if "selector" in target:
        config.target_selector = _coerce_selector(target["selector"], "target.selector")

    autoscaler = node.get("autoscaler", {}) or {}
    if not isinstance(autoscaler, dict):
        raise ValueError("'autoscaler' section must be a mapping")
    config.config_map_name = str(autoscaler.get("config_map", config.config_map_name)).strip() or config.config_map_name
    if "selector" in autoscaler:
        config.autoscaler_selector = _coerce_selector(autoscaler["selector"], "autoscaler.selector")
    if "reconcile_period" in autoscaler:
        config.reconcile_period = _coerce_positive(autoscaler["reconcile_period"], "autoscaler.reconcile_period")
    if "default_params" in autoscaler:
        raw_params = autoscaler["default_params"]
        if not isinstance(raw_params, dict):
            raise ValueError("'autoscaler.default_params' must be a mapping")
        try:
            config.default_params = ScalingParameters.from_dict(raw_params)
        except InvalidParametersError as exc:
            raise ValueError(f"Invalid 'autoscaler.default_params': {exc}") from exc

    waits = node.get("waits", {}) or {}
    if not isinstance(waits, dict):
        raise ValueError("'waits' section must be a mapping")
    if "replica_poll_interval" in waits:
        config.replica_poll_interval = _coerce_positive(waits["replica_poll_interval"], "waits.replica_poll_interval")
    if "config_poll_interval" in waits:
        config.config_poll_interval = _coerce_positive(waits["config_poll_interval"], "waits.config_poll_interval")
    if "timeout" in waits:
        config.default_timeout = _coerce_positive(waits["timeout"], "waits.timeout")

    return config


def load_runtime_config(path: Optional[Path] = None) -> RuntimeConfig:
    """Load settings from ``path`` (or the default search order) without caching."""
    return _build_runtime_config(_load_yaml_dict(path))


def get_runtime_config() -> RuntimeConfig:
    global _runtime_config
    if _runtime_config is None:
        _runtime_config = load_runtime_config()
    return _runtime_config


def reset_runtime_config() -> None:
    """Reset cached runtime configuration (intended for tests)."""
    global _runtime_config
    _runtime_config = None
