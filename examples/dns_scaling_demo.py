#!/usr/bin/env python3
"""
kube-dns 比例伸缩演示

展示：
1. 按当前集群规模计算期望副本数
2. 修改 ConfigMap 参数并等待副本收敛
3. 恢复原始参数

需要可访问的集群（in-cluster 或 kubeconfig）。
"""

from propscale.core.config import get_runtime_config
from propscale.core.controllers import ConvergenceWaiter, ReplicaController
from propscale.core.cluster import ClusterFacts
from propscale.core.entities import ScalingParameters
from propscale.core.kube.client import KubernetesBackend
from propscale.core.scaling import LinearPolicy
from propscale.core.store import ConfigStore


def main():
    config = get_runtime_config()
    backend = KubernetesBackend.from_environment()

    store = ConfigStore(backend.configs, name=config.config_map_name, namespace=config.namespace)
    replicas = ReplicaController(backend.deployments, namespace=config.namespace, selector=config.target_selector)
    facts = ClusterFacts(backend.nodes)
    waiter = ConvergenceWaiter(replicas, store)
    policy = LinearPolicy()

    print("\n" + "=" * 60)
    print("1. 当前集群")
    print("=" * 60)
    snapshot = facts.snapshot()
    print(f"   ready nodes: {snapshot.ready_node_count}")
    print(f"   当前副本数: {replicas.current_replicas()}")

    original = store.fetch().data
    params = ScalingParameters(nodes_per_replica=2)
    print(f"   期望副本数 ({params}): {policy.compute(snapshot, params)}")

    print("\n2. 更新参数并等待收敛")
    try:
        store.update_params(params)
        expected_fn = waiter.expected_replicas_fn(policy, facts, params)
        converged = waiter.wait_for_replicas(expected_fn, timeout=config.default_timeout)
        print(f"   ✓ 副本数收敛到 {converged}")
    finally:
        print("\n3. 恢复原始参数")
        store.update(original)


if __name__ == "__main__":
    main()
