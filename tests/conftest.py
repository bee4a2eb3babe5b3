"""
Shared pytest fixtures.

The in-memory doubles below implement the collaborator interfaces from
:mod:`propscale.core.kube.interfaces` on top of one shared dict-based state,
so a test can play the role of the cluster and of the external autoscaler.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional

import pytest

from propscale.core.cluster import ClusterFacts
from propscale.core.controllers import ConvergenceWaiter, ReplicaController
from propscale.core.entities import ConfigRecord, DeploymentInfo, NodeDescriptor, PodInfo
from propscale.core.errors import ConfigNotFoundError, TransportError
from propscale.core.kube.interfaces import ConfigRegistry, DeploymentRegistry, NodeInventory, PodRegistry
from propscale.core.store import ConfigStore

logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s", force=True)
logging.getLogger("propscale").setLevel(logging.DEBUG)

NAMESPACE = "kube-system"
CONFIG_MAP = "kube-dns-autoscaler"
DNS_SELECTOR = {"k8s-app": "kube-dns"}
AUTOSCALER_SELECTOR = {"k8s-app": "kube-dns-autoscaler"}


def _matches(labels: Dict[str, str], selector: Dict[str, str]) -> bool:
    return all(labels.get(key) == value for key, value in selector.items())


class InMemoryCluster:
    """Dict-backed stand-in for the cluster API."""

    def __init__(self):
        self.node_list: List[NodeDescriptor] = []
        self.deployment_map: Dict[tuple, DeploymentInfo] = {}
        self.config_maps: Dict[tuple, ConfigRecord] = {}
        self.pod_map: Dict[tuple, PodInfo] = {}
        self.resize_calls: List[tuple] = []
        self.fail_next: Dict[str, Exception] = {}

        self.nodes = _Nodes(self)
        self.deployments = _Deployments(self)
        self.configs = _Configs(self)
        self.pods = _Pods(self)

    def _maybe_fail(self, op: str) -> None:
        exc = self.fail_next.pop(op, None)
        if exc is not None:
            raise exc

    def set_nodes(self, count: int, *, cpu: str = "1", cordoned: int = 0) -> None:
        self.node_list = [
            NodeDescriptor(name=f"node-{index}", schedulable=index >= cordoned, cpu_capacity=cpu)
            for index in range(count)
        ]

    def add_deployment(self, name: str, replicas: int, labels: Optional[Dict[str, str]] = None) -> None:
        self.deployment_map[(NAMESPACE, name)] = DeploymentInfo(
            name=name,
            namespace=NAMESPACE,
            replicas=replicas,
            labels=dict(labels if labels is not None else DNS_SELECTOR),
        )

    def add_pod(self, name: str, labels: Optional[Dict[str, str]] = None) -> None:
        self.pod_map[(NAMESPACE, name)] = PodInfo(
            name=name,
            namespace=NAMESPACE,
            labels=dict(labels if labels is not None else AUTOSCALER_SELECTOR),
        )

    def replicas_of(self, name: str) -> int:
        return self.deployment_map[(NAMESPACE, name)].replicas


class _Nodes(NodeInventory):
    def __init__(self, state: InMemoryCluster):
        self._state = state

    def list_ready_schedulable_nodes(self):
        self._state._maybe_fail("nodes.list")
        return list(self._state.node_list)


class _Deployments(DeploymentRegistry):
    def __init__(self, state: InMemoryCluster):
        self._state = state

    def find_by_label(self, namespace, selector):
        self._state._maybe_fail("deployments.list")
        return [
            DeploymentInfo(name=d.name, namespace=d.namespace, replicas=d.replicas, labels=dict(d.labels))
            for (ns, _), d in sorted(self._state.deployment_map.items())
            if ns == namespace and _matches(d.labels, dict(selector))
        ]

    def resize(self, name, namespace, desired):
        self._state._maybe_fail("deployments.resize")
        self._state.deployment_map[(namespace, name)].replicas = desired
        self._state.resize_calls.append((name, namespace, desired))


class _Configs(ConfigRegistry):
    def __init__(self, state: InMemoryCluster):
        self._state = state

    def get(self, name, namespace):
        self._state._maybe_fail("configs.get")
        record = self._state.config_maps.get((namespace, name))
        if record is None:
            raise ConfigNotFoundError(name, namespace)
        return ConfigRecord(name=record.name, namespace=record.namespace, data=dict(record.data))

    def put(self, record):
        self._state._maybe_fail("configs.put")
        if (record.namespace, record.name) not in self._state.config_maps:
            raise ConfigNotFoundError(record.name, record.namespace)
        self._state.config_maps[(record.namespace, record.name)] = ConfigRecord(
            name=record.name, namespace=record.namespace, data=dict(record.data)
        )

    def create(self, record):
        self._state._maybe_fail("configs.create")
        if (record.namespace, record.name) in self._state.config_maps:
            raise TransportError("already exists", status=409)
        self._state.config_maps[(record.namespace, record.name)] = ConfigRecord(
            name=record.name, namespace=record.namespace, data=dict(record.data)
        )

    def delete(self, name, namespace):
        self._state._maybe_fail("configs.delete")
        if self._state.config_maps.pop((namespace, name), None) is None:
            raise ConfigNotFoundError(name, namespace)


class _Pods(PodRegistry):
    def __init__(self, state: InMemoryCluster):
        self._state = state

    def find_by_label(self, namespace, selector):
        return [
            p for (ns, _), p in sorted(self._state.pod_map.items())
            if ns == namespace and _matches(p.labels, dict(selector))
        ]

    def delete(self, name, namespace):
        del self._state.pod_map[(namespace, name)]


class FakeClock:
    """
    Deterministic replacement for ``time.monotonic``/``time.sleep``.

    ``on_sleep`` hooks run after each simulated sleep, which lets a test act
    as the external autoscaler between two polls.
    """

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: List[float] = []
        self.on_sleep: List[Callable[["FakeClock"], None]] = []

    def monotonic(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        for hook in list(self.on_sleep):
            hook(self)


@pytest.fixture
def cluster() -> InMemoryCluster:
    state = InMemoryCluster()
    state.set_nodes(4, cpu="4")
    state.add_deployment("kube-dns", replicas=1)
    state.add_pod("kube-dns-autoscaler-abc12")
    return state


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(cluster) -> ConfigStore:
    return ConfigStore(cluster.configs, name=CONFIG_MAP, namespace=NAMESPACE)


@pytest.fixture
def replicas(cluster) -> ReplicaController:
    return ReplicaController(cluster.deployments, namespace=NAMESPACE, selector=DNS_SELECTOR)


@pytest.fixture
def facts(cluster) -> ClusterFacts:
    return ClusterFacts(cluster.nodes)


@pytest.fixture
def waiter(replicas, store, clock) -> ConvergenceWaiter:
    return ConvergenceWaiter(replicas, store, clock=clock.monotonic, sleep=clock.sleep)
