"""
Scaling policy implementations for propscale.
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from typing import Callable, Type, Union

from propscale.core.entities.cluster import ClusterSnapshot
from propscale.core.entities.params import ScalingParameters
from propscale.core.errors import EncodingOverflowError, UnknownPolicyError

logger = logging.getLogger(__name__)

PolicyFactory = Callable[[], "ScalingPolicy"]
PolicySpec = Union[
    str,
    "ScalingPolicy",
    Type["ScalingPolicy"],
    PolicyFactory,
]


class ScalingPolicy(ABC):
    """Base class for all replica scaling policies."""

    #: ConfigMap data key the policy reads its parameters from.
    config_key: str = ""

    @abstractmethod
    def compute(self, snapshot: ClusterSnapshot, params: ScalingParameters) -> int:
        """Return the target replica count for the given cluster facts."""


class LinearPolicy(ScalingPolicy):
    """
    Cluster-proportional policy.

    ``max(1, ceil(nodes / nodes_per_replica), ceil(cores / cores_per_replica))``,
    where a zero ratio disables its term.

    ``params.min`` and ``params.max`` are carried but not applied.
    """

    config_key = "linear"

    def compute(self, snapshot: ClusterSnapshot, params: ScalingParameters) -> int:
        from_nodes = 0
        if params.nodes_per_replica > 0:
            from_nodes = math.ceil(snapshot.ready_node_count / params.nodes_per_replica)

        from_cores = 0
        if params.cores_per_replica > 0:
            from_cores = math.ceil(self._schedulable_cores(snapshot) / params.cores_per_replica)

        target = max(1, from_nodes, from_cores)
        logger.debug(
            "LinearPolicy nodes=%s from_nodes=%s from_cores=%s -> %s",
            snapshot.ready_node_count,
            from_nodes,
            from_cores,
            target,
        )
        return target

    @staticmethod
    def _schedulable_cores(snapshot: ClusterSnapshot) -> int:
        try:
            return snapshot.schedulable_cores()
        except EncodingOverflowError as exc:
            logger.warning("Unable to compute integer value of schedulable cores, using 0: %s", exc)
            return 0


def _coerce_policy_instance(candidate: ScalingPolicy | object) -> ScalingPolicy:
    if isinstance(candidate, ScalingPolicy):
        return candidate
    raise TypeError("Factory did not return a ScalingPolicy instance.")


_POLICY_REGISTRY: dict[str, PolicyFactory] = {}


def register_policy(name: str, factory: PolicyFactory, *, replace: bool = False) -> None:
    """
    将扩缩容策略注册到全局表中。

    Args:
        name: 策略名称，同时也是 ConfigMap 中的数据键，标准化为小写。
        factory: 返回策略实例的工厂方法。
        replace: 当名称已存在时是否允许覆盖，默认不允许。
    """
    key = name.strip().lower()
    if not key:
        raise ValueError("Policy name must be a non-empty string.")
    if key in _POLICY_REGISTRY and not replace:
        raise ValueError(f"Policy '{key}' already registered.")
    _POLICY_REGISTRY[key] = factory


def unregister_policy(name: str) -> None:
    """从全局表删除指定名称的策略，名称不存在时静默返回。"""
    _POLICY_REGISTRY.pop(name.strip().lower(), None)


def available_policies() -> tuple[str, ...]:
    return tuple(sorted(_POLICY_REGISTRY))


def create_policy(policy: PolicySpec) -> ScalingPolicy:
    """
    Resolve a policy name, class or instance into an instance.

    Accepts a registered name (``"linear"``), a ScalingPolicy subclass, a
    zero-argument factory, or an existing instance (returned as-is).
    """
    if isinstance(policy, ScalingPolicy):
        return policy

    if isinstance(policy, str):
        key = policy.strip().lower()
        try:
            factory = _POLICY_REGISTRY[key]
        except KeyError as exc:
            raise UnknownPolicyError(
                f"Unknown scaling policy '{policy}'. "
                f"Available policies: {', '.join(available_policies()) or '<none>'}"
            ) from exc
        return _coerce_policy_instance(factory())

    if isinstance(policy, type) and issubclass(policy, ScalingPolicy):
        return policy()

    if callable(policy):
        return _coerce_policy_instance(policy())

    raise TypeError(
        "Policy must be provided as a name, ScalingPolicy subclass, "
        "callable factory, or ScalingPolicy instance."
    )


register_policy("linear", LinearPolicy)


__all__ = [
    "ScalingPolicy",
    "LinearPolicy",
    "available_policies",
    "register_policy",
    "unregister_policy",
    "create_policy",
]
