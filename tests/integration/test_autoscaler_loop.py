"""
Integration tests for the AutoscalerController reconcile loop over the in-memory cluster.
"""

from __future__ import annotations

import threading

import pytest

from propscale.core.controllers import AutoscalerController
from propscale.core.entities import ScalingParameters
from propscale.core.errors import ConfigDecodeError, TransportError
from propscale.core.scaling import decode_linear, encode_linear

DEFAULTS = ScalingParameters(nodes_per_replica=16, cores_per_replica=256)
CONFIG_KEY = ("kube-system", "kube-dns-autoscaler")


@pytest.fixture
def controller(store, facts, replicas):
    return AutoscalerController(
        store=store,
        cluster=facts,
        replicas=replicas,
        default_data=encode_linear(DEFAULTS),
    )


def test_first_reconcile_publishes_defaults(cluster, controller):
    result = controller.reconcile()

    assert result.config_recreated is True
    assert result.params == DEFAULTS
    assert result.target == 1
    assert result.resized is False
    assert decode_linear(cluster.config_maps[CONFIG_KEY].data) == DEFAULTS


def test_reconcile_follows_parameter_changes(cluster, store, controller):
    controller.reconcile()

    store.update_params(ScalingParameters(nodes_per_replica=1))
    result = controller.reconcile()
    assert (result.previous, result.target, result.resized) == (1, 4, True)
    assert cluster.replicas_of("kube-dns") == 4

    store.update_params(ScalingParameters(nodes_per_replica=3, cores_per_replica=3))
    assert controller.reconcile().target == 6
    assert cluster.replicas_of("kube-dns") == 6


def test_reconcile_follows_cluster_growth(cluster, store, controller):
    controller.reconcile()
    store.update_params(ScalingParameters(nodes_per_replica=2))
    assert controller.reconcile().target == 2

    cluster.set_nodes(10, cpu="4")
    assert controller.reconcile().target == 5


def test_deleted_config_is_recreated_with_defaults(cluster, store, controller):
    controller.reconcile()
    store.update_params(ScalingParameters(nodes_per_replica=1))
    controller.reconcile()

    store.delete()
    result = controller.reconcile()

    assert result.config_recreated is True
    assert result.params == DEFAULTS
    assert cluster.replicas_of("kube-dns") == 1


def test_invalid_config_keeps_last_good_params(cluster, store, controller):
    controller.reconcile()
    store.update_params(ScalingParameters(nodes_per_replica=2))
    controller.reconcile()

    cluster.config_maps[CONFIG_KEY].data = {"linear": "{not json"}
    result = controller.reconcile()

    assert result.params == ScalingParameters(nodes_per_replica=2)
    assert cluster.replicas_of("kube-dns") == 2


def test_invalid_config_without_history_raises(store, controller):
    store.ensure({"linear": '{"nodesPerReplica": -1}'})
    with pytest.raises(ConfigDecodeError):
        controller.reconcile()


def test_run_survives_failed_cycles(cluster, store, controller):
    controller.reconcile()
    store.update_params(ScalingParameters(nodes_per_replica=1))
    cluster.fail_next["nodes.list"] = TransportError("apiserver unavailable", status=503)

    cycles = controller.run(0.01, max_cycles=3)

    assert cycles == 3
    assert cluster.replicas_of("kube-dns") == 4


def test_run_stops_on_event(controller):
    stop = threading.Event()
    stop.set()
    assert controller.run(0.01, stop_event=stop) == 0
