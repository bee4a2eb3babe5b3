"""
Convergence waiters built on :func:`propscale.core.utils.wait.poll_until`.

The two waiters handle errors differently, inside their conditions rather
than in the poll loop:

* replica convergence aborts on the first read failure;
* ConfigMap recreation treats "not found" and transport failures as
  "not yet".
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Optional

from propscale.core.cluster import ClusterFacts
from propscale.core.controllers.replicas import ReplicaController
from propscale.core.entities import ConfigRecord, ScalingParameters
from propscale.core.errors import (
    ConfigNotFoundError,
    ConfigRecreationTimeout,
    PropscaleError,
    ReplicaConvergenceTimeout,
    TransportError,
    WaitTimeoutError,
)
from propscale.core.scaling.policy import ScalingPolicy
from propscale.core.store import ConfigStore
from propscale.core.utils.wait import Clock, Sleeper, poll_until

logger = logging.getLogger(__name__)

REPLICA_POLL_INTERVAL = 2.0
CONFIG_POLL_INTERVAL = 1.0

ExpectedReplicasFn = Callable[[], int]


class ConvergenceWaiter:
    """Waits for replica counts and ConfigMap recreation to settle."""

    def __init__(
        self,
        replicas: ReplicaController,
        store: ConfigStore,
        *,
        replica_interval: float = REPLICA_POLL_INTERVAL,
        config_interval: float = CONFIG_POLL_INTERVAL,
        clock: Clock = time.monotonic,
        sleep: Sleeper = time.sleep,
    ) -> None:
        self._replicas = replicas
        self._store = store
        self.replica_interval = replica_interval
        self.config_interval = config_interval
        self._clock = clock
        self._sleep = sleep

    @staticmethod
    def expected_replicas_fn(
        policy: ScalingPolicy,
        cluster: ClusterFacts,
        params: ScalingParameters,
    ) -> ExpectedReplicasFn:
        """Build a callable that recomputes the target from a fresh snapshot."""

        def _expected() -> int:
            return policy.compute(cluster.snapshot(), params)

        return _expected

    def wait_for_replicas(self, expected_fn: ExpectedReplicasFn, timeout: float) -> int:
        """
        Poll until the deployment's replica count equals ``expected_fn()``.

        Both sides are re-read on every attempt since the cluster may be
        resizing while we wait.

        Returns:
            The converged replica count.

        Raises:
            ReplicaConvergenceTimeout: with the last observed and expected counts.
            PropscaleError: any failure reading the replica count, unchanged.
        """
        state: Dict[str, Optional[int]] = {"current": None, "expected": None}
        logger.info("Waiting up to %ss for replicas to reach the expected count", timeout)

        def _condition() -> bool:
            state["current"] = self._replicas.current_replicas()
            state["expected"] = expected_fn()
            if state["current"] != state["expected"]:
                logger.info("Replicas not as expected: got %s, expected %s", state["current"], state["expected"])
                return False
            return True

        started = self._clock()
        try:
            poll_until(
                _condition,
                interval=self.replica_interval,
                timeout=timeout,
                description="replica convergence",
                clock=self._clock,
                sleep=self._sleep,
            )
        except WaitTimeoutError as exc:
            raise ReplicaConvergenceTimeout(
                expected=state["expected"],
                observed=state["current"],
                attempts=exc.attempts,
                waited=exc.waited,
            ) from exc
        except PropscaleError:
            logger.error(
                "Aborting replica wait after %.1fs: expected %s, last observed %s",
                self._clock() - started,
                state["expected"],
                state["current"],
            )
            raise

        logger.info("Replicas reached expected count: %s", state["expected"])
        return state["expected"]

    def wait_for_config_recreated(self, timeout: float) -> ConfigRecord:
        """
        Poll until the ConfigMap exists again and return it.

        Raises:
            ConfigRecreationTimeout: if it is still missing when ``timeout`` elapses.
        """
        last_error: Dict[str, Any] = {"error": None}
        logger.info("Waiting up to %ss for ConfigMap %s/%s to be re-created", timeout, self._store.namespace, self._store.name)

        def _condition() -> Optional[ConfigRecord]:
            try:
                return self._store.fetch()
            except (ConfigNotFoundError, TransportError) as exc:
                last_error["error"] = exc
                return None

        try:
            record = poll_until(
                _condition,
                interval=self.config_interval,
                timeout=timeout,
                description="ConfigMap recreation",
                clock=self._clock,
                sleep=self._sleep,
            )
        except WaitTimeoutError as exc:
            raise ConfigRecreationTimeout(
                self._store.name,
                self._store.namespace,
                attempts=exc.attempts,
                waited=exc.waited,
                last_error=last_error["error"],
            ) from exc

        logger.info("ConfigMap %s/%s re-created", self._store.namespace, self._store.name)
        return record
