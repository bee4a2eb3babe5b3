from __future__ import annotations

import pytest

from propscale.core.entities import ClusterSnapshot, NodeDescriptor
from propscale.core.errors import EncodingOverflowError, WaitTimeoutError


def test_schedulable_cores_sums_quantities():
    snapshot = ClusterSnapshot.of(
        [
            NodeDescriptor("a", cpu_capacity="4"),
            NodeDescriptor("b", cpu_capacity="3500m"),
            NodeDescriptor("c", cpu_capacity="500m"),
        ]
    )
    assert snapshot.ready_node_count == 3
    assert snapshot.schedulable_cores() == 8


def test_schedulable_cores_ignores_unschedulable_nodes():
    snapshot = ClusterSnapshot.of(
        [
            NodeDescriptor("a", schedulable=True, cpu_capacity="2"),
            NodeDescriptor("b", schedulable=False, cpu_capacity="1500m"),
        ]
    )
    assert snapshot.schedulable_cores() == 2


def test_fractional_sum_is_not_representable():
    snapshot = ClusterSnapshot.of([NodeDescriptor("a", cpu_capacity="1500m")])
    with pytest.raises(EncodingOverflowError):
        snapshot.schedulable_cores()


def test_int64_overflow_is_not_representable():
    snapshot = ClusterSnapshot.of([NodeDescriptor("a", cpu_capacity="10E"), NodeDescriptor("b", cpu_capacity="10E")])
    with pytest.raises(EncodingOverflowError, match="overflows"):
        snapshot.schedulable_cores()


def test_unparsable_quantity_is_reported():
    snapshot = ClusterSnapshot.of([NodeDescriptor("a", cpu_capacity="lots")])
    with pytest.raises(EncodingOverflowError, match="unparsable"):
        snapshot.schedulable_cores()


def test_empty_snapshot():
    snapshot = ClusterSnapshot()
    assert snapshot.ready_node_count == 0
    assert snapshot.schedulable_cores() == 0


def test_cluster_facts_wait_for_node_count(cluster, clock, facts):
    def _join(_clock):
        if len(clock.sleeps) == 2:
            cluster.set_nodes(6, cpu="4")

    clock.on_sleep.append(_join)
    count = facts.wait_for_node_count(
        lambda nodes: nodes >= 6, timeout=120, clock=clock.monotonic, sleep=clock.sleep
    )
    assert count == 6
    assert clock.sleeps == [20.0, 20.0]


def test_cluster_facts_wait_for_node_count_times_out(clock, facts):
    with pytest.raises(WaitTimeoutError):
        facts.wait_for_node_count(
            lambda nodes: nodes > 10, timeout=30, interval=10, clock=clock.monotonic, sleep=clock.sleep
        )
