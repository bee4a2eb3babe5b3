"""
Kubernetes-backed implementations of the collaborator interfaces.

Uses the official ``kubernetes`` Python client. Credentials are resolved the
usual way: in-cluster service account first, then the local kubeconfig.
API failures are translated into the propscale error taxonomy:

* HTTP 404 on a ConfigMap -> :class:`ConfigNotFoundError`
* any other API or connection failure -> :class:`TransportError`
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator, List, Optional, Sequence

import urllib3
from kubernetes import client, config
from kubernetes.client.rest import ApiException

from propscale.core.entities import ConfigRecord, DeploymentInfo, NodeDescriptor, PodInfo
from propscale.core.errors import ConfigNotFoundError, TransportError
from propscale.core.kube.interfaces import (
    ConfigRegistry,
    DeploymentRegistry,
    LabelSelector,
    NodeInventory,
    PodRegistry,
    format_selector,
)

logger = logging.getLogger(__name__)


def load_cluster_config(kubeconfig: Optional[str] = None, context: Optional[str] = None) -> None:
    """Load in-cluster credentials, falling back to a kubeconfig file."""
    if kubeconfig is None:
        try:
            config.load_incluster_config()
            logger.debug("Loaded in-cluster Kubernetes configuration")
            return
        except config.ConfigException:
            pass
    try:
        config.load_kube_config(config_file=kubeconfig, context=context)
    except config.ConfigException as exc:
        raise TransportError(f"Could not load Kubernetes configuration: {exc}") from exc
    logger.debug("Loaded kubeconfig (file=%s context=%s)", kubeconfig or "<default>", context or "<current>")


@contextmanager
def _translate_errors(action: str) -> Iterator[None]:
    try:
        yield
    except ApiException as exc:
        raise TransportError(f"{action} failed: {exc.status} {exc.reason}", status=exc.status) from exc
    except urllib3.exceptions.HTTPError as exc:
        raise TransportError(f"{action} failed: {exc}") from exc


def _condition_is_true(node: Any, condition_type: str) -> bool:
    for condition in (node.status.conditions or []) if node.status else []:
        if condition.type == condition_type:
            return condition.status == "True"
    return False


def is_node_ready_and_schedulable(node: Any) -> bool:
    """Ready, not cordoned, and with a working network."""
    if node.spec is not None and node.spec.unschedulable:
        return False
    if not _condition_is_true(node, "Ready"):
        return False
    return not _condition_is_true(node, "NetworkUnavailable")


class KubeNodeInventory(NodeInventory):
    def __init__(self, core_v1: client.CoreV1Api):
        self._core_v1 = core_v1

    def list_ready_schedulable_nodes(self) -> Sequence[NodeDescriptor]:
        with _translate_errors("list nodes"):
            response = self._core_v1.list_node(field_selector="spec.unschedulable=false")

        nodes: List[NodeDescriptor] = []
        for node in response.items:
            if not is_node_ready_and_schedulable(node):
                logger.debug("Skipping node %s: not ready/schedulable", node.metadata.name)
                continue
            capacity = (node.status.capacity or {}) if node.status else {}
            nodes.append(
                NodeDescriptor(
                    name=node.metadata.name,
                    schedulable=not bool(node.spec and node.spec.unschedulable),
                    cpu_capacity=str(capacity.get("cpu", "0")),
                )
            )
        return nodes


class KubeDeploymentRegistry(DeploymentRegistry):
    def __init__(self, apps_v1: client.AppsV1Api):
        self._apps_v1 = apps_v1

    def find_by_label(self, namespace: str, selector: LabelSelector) -> Sequence[DeploymentInfo]:
        label_selector = format_selector(selector)
        with _translate_errors(f"list deployments in {namespace} ({label_selector})"):
            response = self._apps_v1.list_namespaced_deployment(namespace, label_selector=label_selector)
        return [
            DeploymentInfo(
                name=item.metadata.name,
                namespace=item.metadata.namespace or namespace,
                replicas=int(item.spec.replicas or 0),
                labels=dict(item.metadata.labels or {}),
            )
            for item in response.items
        ]

    def resize(self, name: str, namespace: str, desired: int) -> None:
        body = {"spec": {"replicas": int(desired)}}
        with _translate_errors(f"scale deployment {namespace}/{name}"):
            self._apps_v1.patch_namespaced_deployment_scale(name, namespace, body)
        logger.info("Deployment %s/%s scaled to %s", namespace, name, desired)


class KubeConfigRegistry(ConfigRegistry):
    def __init__(self, core_v1: client.CoreV1Api):
        self._core_v1 = core_v1

    @staticmethod
    def _body(record: ConfigRecord) -> client.V1ConfigMap:
        return client.V1ConfigMap(
            metadata=client.V1ObjectMeta(name=record.name, namespace=record.namespace),
            data=dict(record.data),
        )

    @contextmanager
    def _not_found_as(self, name: str, namespace: str, action: str) -> Iterator[None]:
        try:
            with _translate_errors(action):
                yield
        except TransportError as exc:
            if exc.status == 404:
                raise ConfigNotFoundError(name, namespace) from exc
            raise

    def get(self, name: str, namespace: str) -> ConfigRecord:
        with self._not_found_as(name, namespace, f"read ConfigMap {namespace}/{name}"):
            item = self._core_v1.read_namespaced_config_map(name, namespace)
        return ConfigRecord(
            name=item.metadata.name,
            namespace=item.metadata.namespace or namespace,
            data=dict(item.data or {}),
            resource_version=item.metadata.resource_version,
        )

    def put(self, record: ConfigRecord) -> None:
        with self._not_found_as(record.name, record.namespace, f"replace ConfigMap {record.namespace}/{record.name}"):
            self._core_v1.replace_namespaced_config_map(record.name, record.namespace, self._body(record))

    def create(self, record: ConfigRecord) -> None:
        with _translate_errors(f"create ConfigMap {record.namespace}/{record.name}"):
            self._core_v1.create_namespaced_config_map(record.namespace, self._body(record))

    def delete(self, name: str, namespace: str) -> None:
        with self._not_found_as(name, namespace, f"delete ConfigMap {namespace}/{name}"):
            self._core_v1.delete_namespaced_config_map(name, namespace)


class KubePodRegistry(PodRegistry):
    def __init__(self, core_v1: client.CoreV1Api):
        self._core_v1 = core_v1

    def find_by_label(self, namespace: str, selector: LabelSelector) -> Sequence[PodInfo]:
        label_selector = format_selector(selector)
        with _translate_errors(f"list pods in {namespace} ({label_selector})"):
            response = self._core_v1.list_namespaced_pod(namespace, label_selector=label_selector)
        return [
            PodInfo(
                name=item.metadata.name,
                namespace=item.metadata.namespace or namespace,
                labels=dict(item.metadata.labels or {}),
            )
            for item in response.items
        ]

    def delete(self, name: str, namespace: str) -> None:
        with _translate_errors(f"delete pod {namespace}/{name}"):
            self._core_v1.delete_namespaced_pod(name, namespace)


class KubernetesBackend:
    """
    Bundle of the four cluster collaborators over one API client.

    Typical usage::

        backend = KubernetesBackend.from_environment()
        store = ConfigStore(backend.configs, name="kube-dns-autoscaler", namespace="kube-system")
    """

    def __init__(
        self,
        *,
        core_v1: Optional[client.CoreV1Api] = None,
        apps_v1: Optional[client.AppsV1Api] = None,
    ) -> None:
        core_v1 = core_v1 or client.CoreV1Api()
        apps_v1 = apps_v1 or client.AppsV1Api()
        self.nodes = KubeNodeInventory(core_v1)
        self.deployments = KubeDeploymentRegistry(apps_v1)
        self.configs = KubeConfigRegistry(core_v1)
        self.pods = KubePodRegistry(core_v1)

    @classmethod
    def from_environment(cls, kubeconfig: Optional[str] = None, context: Optional[str] = None) -> "KubernetesBackend":
        load_cluster_config(kubeconfig, context)
        return cls()


__all__ = [
    "KubernetesBackend",
    "KubeNodeInventory",
    "KubeDeploymentRegistry",
    "KubeConfigRegistry",
    "KubePodRegistry",
    "is_node_ready_and_schedulable",
    "load_cluster_config",
]
