"""
Autoscaler reconcile loop.

Each cycle reads the scaling ConfigMap (republishing the defaults when it has
been deleted), snapshots the cluster, runs the policy and hands the target to
the :class:`ReplicaController`.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Mapping, Optional

from propscale.core.cluster import ClusterFacts
from propscale.core.controllers.replicas import ReplicaController
from propscale.core.entities import ScalingParameters
from propscale.core.errors import ConfigDecodeError, PropscaleError
from propscale.core.scaling.codec import decode_linear
from propscale.core.scaling.policy import PolicySpec, create_policy
from propscale.core.store import ConfigStore

logger = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    target: int
    previous: int
    params: ScalingParameters
    resized: bool
    config_recreated: bool = False


class AutoscalerController:
    """Drives one deployment towards the policy-computed replica count."""

    def __init__(
        self,
        *,
        store: ConfigStore,
        cluster: ClusterFacts,
        replicas: ReplicaController,
        default_data: Mapping[str, str],
        policy: PolicySpec = "linear",
    ) -> None:
        self.store = store
        self.cluster = cluster
        self.replicas = replicas
        self.default_data = dict(default_data)
        self.policy = create_policy(policy)
        self._last_params: Optional[ScalingParameters] = None

    def _load_params(self) -> tuple[ScalingParameters, bool]:
        record, created = self.store.ensure(self.default_data)
        key = self.policy.config_key or "linear"
        try:
            params = decode_linear(record.data, key=key)
        except ConfigDecodeError:
            if self._last_params is None:
                raise
            logger.warning("Invalid scaling parameters in %s, keeping last known good %s", self.store, self._last_params)
            return self._last_params, created
        self._last_params = params
        return params, created

    def reconcile(self) -> ReconcileResult:
        """Run one reconcile cycle."""
        params, created = self._load_params()
        target = self.policy.compute(self.cluster.snapshot(), params)
        previous = self.replicas.current_replicas()
        resized = self.replicas.set_desired(target)
        logger.debug("Autoscaler reconcile cycle: params=%s previous=%s target=%s", params, previous, target)
        return ReconcileResult(
            target=target,
            previous=previous,
            params=params,
            resized=resized,
            config_recreated=created,
        )

    def run(
        self,
        period: float,
        *,
        stop_event: Optional[threading.Event] = None,
        max_cycles: Optional[int] = None,
    ) -> int:
        """
        Reconcile every ``period`` seconds until ``stop_event`` is set or
        ``max_cycles`` cycles have run. Returns the number of cycles run.

        Errors from a single cycle are logged and the loop carries on.
        """
        stop_event = stop_event or threading.Event()
        cycles = 0
        while not stop_event.is_set():
            cycles += 1
            try:
                self.reconcile()
            except PropscaleError:
                logger.exception("Autoscaler reconcile cycle %s failed", cycles)
            if max_cycles is not None and cycles >= max_cycles:
                break
            stop_event.wait(period)
        return cycles
