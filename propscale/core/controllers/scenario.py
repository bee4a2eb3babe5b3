"""
Scenario driver that exercises a running autoscaler end to end.

Sequencing only: mutate the ConfigMap, optionally inject faults, and wait for
the deployment to converge on what the policy computes locally. The
baseline parameters are always restored, even when a step fails.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterator, Mapping, Optional

from propscale.core.cluster import ClusterFacts
from propscale.core.controllers.convergence import ConvergenceWaiter
from propscale.core.controllers.replicas import ReplicaController
from propscale.core.entities import ConfigRecord, ScalingParameters
from propscale.core.errors import CardinalityError, ConfigMismatchError
from propscale.core.kube.interfaces import PodRegistry
from propscale.core.scaling.policy import PolicySpec, create_policy
from propscale.core.store import ConfigStore

logger = logging.getLogger(__name__)


@dataclass
class Baseline:
    """Replica count and ConfigMap data captured before a scenario runs."""

    replicas: int
    data: Dict[str, str] = field(default_factory=dict)


class ScalingScenario:
    def __init__(
        self,
        *,
        store: ConfigStore,
        replicas: ReplicaController,
        cluster: ClusterFacts,
        waiter: ConvergenceWaiter,
        pods: Optional[PodRegistry] = None,
        autoscaler_selector: Optional[Mapping[str, str]] = None,
        policy: PolicySpec = "linear",
        timeout: float = 300.0,
    ) -> None:
        self.store = store
        self.replicas = replicas
        self.cluster = cluster
        self.waiter = waiter
        self.pods = pods
        self.autoscaler_selector = dict(autoscaler_selector or {})
        self.policy = create_policy(policy)
        self.timeout = timeout
        self.baseline: Optional[Baseline] = None

    @contextmanager
    def step(self, description: str) -> Iterator[None]:
        logger.info("STEP: %s", description)
        try:
            yield
        except Exception:
            logger.error("STEP failed: %s", description)
            raise

    # ------------------------------------------------------------------ #
    # Individual steps
    # ------------------------------------------------------------------ #

    def capture_baseline(self) -> Baseline:
        with self.step("Collecting original replicas count and scaling params"):
            self.baseline = Baseline(
                replicas=self.replicas.current_replicas(),
                data=dict(self.store.fetch().data),
            )
        return self.baseline

    def apply_params(self, params: ScalingParameters) -> None:
        with self.step(f"Replace the scaling parameters with {params}"):
            self.store.update_params(params)

    def wait_for_expected(self, params: ScalingParameters, *, timeout: Optional[float] = None) -> int:
        with self.step("Wait for replicas scaled to expected number"):
            expected_fn = self.waiter.expected_replicas_fn(self.policy, self.cluster, params)
            return self.waiter.wait_for_replicas(expected_fn, self.timeout if timeout is None else timeout)

    def delete_config_and_wait_recreated(self, *, timeout: Optional[float] = None) -> ConfigRecord:
        with self.step("Delete the ConfigMap and wait for it to be re-created"):
            self.store.delete()
            record = self.waiter.wait_for_config_recreated(self.timeout if timeout is None else timeout)

        if self.baseline is not None:
            with self.step("Check the re-created ConfigMap carries the baseline data"):
                if dict(record.data) != self.baseline.data:
                    raise ConfigMismatchError(self.baseline.data, record.data)
        return record

    def delete_autoscaler_pod(self) -> str:
        if self.pods is None:
            raise ValueError("delete_autoscaler_pod requires a pod registry")
        with self.step("Delete the autoscaler pod"):
            namespace = self.replicas.namespace
            matches = list(self.pods.find_by_label(namespace, self.autoscaler_selector))
            if len(matches) != 1:
                raise CardinalityError("autoscaler pod", namespace, self.autoscaler_selector, len(matches))
            pod_name = matches[0].name
            self.pods.delete(pod_name, namespace)
        logger.info("Autoscaler pod %s deleted", pod_name)
        return pod_name

    def restore_baseline(self, *, wait: bool = False, timeout: Optional[float] = None) -> None:
        if self.baseline is None:
            return
        baseline = self.baseline
        with self.step("Restoring initial scaling parameters"):
            self.store.update(baseline.data)
        if wait:
            with self.step("Wait for replicas to recover"):
                self.waiter.wait_for_replicas(lambda: baseline.replicas, self.timeout if timeout is None else timeout)

    # ------------------------------------------------------------------ #
    # Composite flow
    # ------------------------------------------------------------------ #

    def run_parameter_scenarios(
        self,
        first: ScalingParameters,
        second: ScalingParameters,
        third: ScalingParameters,
        *,
        include_pod_fault: bool = True,
    ) -> None:
        """
        Exercise parameter changes plus both fault scenarios:

        1. scale on ``first``, then on ``third`` (changed parameters);
        2. delete the ConfigMap, expect defaults to be republished, scale on ``second``;
        3. delete the autoscaler pod, scale on ``first`` again.
        """
        self.capture_baseline()
        try:
            self.apply_params(first)
            self.wait_for_expected(first)

            logger.info("--- Scenario: should scale based on changed parameters ---")
            self.apply_params(third)
            self.wait_for_expected(third)

            logger.info("--- Scenario: should re-create scaling parameters with default value when deleted ---")
            self.delete_config_and_wait_recreated()
            self.apply_params(second)
            self.wait_for_expected(second)

            if include_pod_fault and self.pods is not None:
                logger.info("--- Scenario: should recover after autoscaler pod got deleted ---")
                self.delete_autoscaler_pod()
                self.apply_params(first)
                self.wait_for_expected(first)
        except BaseException:
            try:
                self.restore_baseline()
            except Exception:  # pylint: disable=broad-except
                logger.exception("Restoring the baseline failed after an earlier step failure")
            raise
        self.restore_baseline()
