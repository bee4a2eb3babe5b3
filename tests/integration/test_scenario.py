"""
End-to-end scenario tests: the test plays the external autoscaler by
reconciling on every simulated poll sleep.
"""

from __future__ import annotations

import pytest

from propscale.core.controllers import AutoscalerController, ScalingScenario
from propscale.core.entities import ConfigRecord, ScalingParameters
from propscale.core.errors import CardinalityError, ConfigMismatchError, ReplicaConvergenceTimeout, TransportError
from propscale.core.scaling import decode_linear, encode_linear

DEFAULTS = ScalingParameters(nodes_per_replica=16, cores_per_replica=256)
FIRST = ScalingParameters(nodes_per_replica=1)
SECOND = ScalingParameters(nodes_per_replica=2)
THIRD = ScalingParameters(nodes_per_replica=3, cores_per_replica=3)
CONFIG_KEY = ("kube-system", "kube-dns-autoscaler")


def _attach_autoscaler(cluster, clock, store, facts, replicas, *, defaults=DEFAULTS):
    controller = AutoscalerController(
        store=store,
        cluster=facts,
        replicas=replicas,
        default_data=encode_linear(defaults),
    )
    controller.reconcile()
    clock.on_sleep.append(lambda _clock: controller.reconcile())
    return controller


@pytest.fixture
def scenario(cluster, store, replicas, facts, waiter):
    return ScalingScenario(
        store=store,
        replicas=replicas,
        cluster=facts,
        waiter=waiter,
        pods=cluster.pods,
        autoscaler_selector={"k8s-app": "kube-dns-autoscaler"},
        timeout=60,
    )


def test_full_parameter_scenarios(cluster, clock, store, facts, replicas, scenario):
    _attach_autoscaler(cluster, clock, store, facts, replicas)

    scenario.run_parameter_scenarios(FIRST, SECOND, THIRD)

    # FIRST, THIRD, defaults after recreation, SECOND, FIRST after the pod fault
    assert [call[2] for call in cluster.resize_calls] == [4, 6, 1, 2, 4]
    assert cluster.pod_map == {}
    assert decode_linear(cluster.config_maps[CONFIG_KEY].data) == DEFAULTS
    assert scenario.baseline.replicas == 1


def test_scenario_without_pod_fault_keeps_pod(cluster, clock, store, facts, replicas, scenario):
    _attach_autoscaler(cluster, clock, store, facts, replicas)

    scenario.run_parameter_scenarios(FIRST, SECOND, THIRD, include_pod_fault=False)

    assert list(cluster.pod_map) == [("kube-system", "kube-dns-autoscaler-abc12")]


def test_recreated_config_must_match_baseline(cluster, clock, store, facts, replicas, scenario):
    controller = _attach_autoscaler(cluster, clock, store, facts, replicas)
    scenario.capture_baseline()
    controller.default_data = encode_linear(ScalingParameters(nodes_per_replica=8))

    with pytest.raises(ConfigMismatchError):
        scenario.delete_config_and_wait_recreated()


def test_baseline_restored_when_a_step_fails(cluster, clock, store, facts, replicas, scenario):
    _attach_autoscaler(cluster, clock, store, facts, replicas)
    cluster.add_pod("kube-dns-autoscaler-def34")

    with pytest.raises(CardinalityError) as excinfo:
        scenario.run_parameter_scenarios(FIRST, SECOND, THIRD)

    assert excinfo.value.count == 2
    assert decode_linear(cluster.config_maps[CONFIG_KEY].data) == DEFAULTS


def test_stalled_autoscaler_times_out(cluster, clock, store, scenario):
    cluster.config_maps[CONFIG_KEY] = ConfigRecord(
        name="kube-dns-autoscaler", namespace="kube-system", data=encode_linear(DEFAULTS)
    )
    scenario.capture_baseline()
    scenario.apply_params(FIRST)

    with pytest.raises(ReplicaConvergenceTimeout) as excinfo:
        scenario.wait_for_expected(FIRST, timeout=10)
    assert (excinfo.value.expected, excinfo.value.observed) == (4, 1)


def test_delete_autoscaler_pod_requires_registry(store, replicas, facts, waiter):
    bare = ScalingScenario(store=store, replicas=replicas, cluster=facts, waiter=waiter)
    with pytest.raises(ValueError):
        bare.delete_autoscaler_pod()


def test_zero_timeout_is_honoured(clock, scenario):
    with pytest.raises(ReplicaConvergenceTimeout) as excinfo:
        scenario.wait_for_expected(FIRST, timeout=0)
    assert excinfo.value.attempts == 1
    assert clock.sleeps == []


def test_restore_failure_keeps_the_step_error(cluster, store, scenario, monkeypatch):
    cluster.config_maps[CONFIG_KEY] = ConfigRecord(
        name="kube-dns-autoscaler", namespace="kube-system", data=encode_linear(DEFAULTS)
    )
    cluster.fail_next["nodes.list"] = TransportError("nodes unavailable", status=503)

    def _failing_restore(**_kwargs):
        raise TransportError("apiserver gone")

    monkeypatch.setattr(scenario, "restore_baseline", _failing_restore)

    with pytest.raises(TransportError, match="nodes unavailable"):
        scenario.run_parameter_scenarios(FIRST, SECOND, THIRD)
