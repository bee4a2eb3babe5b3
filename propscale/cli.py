"""
Command line entry point for propscale.

Subcommands::

    propscale expected  --nodes-per-replica 2
    propscale wait      --nodes-per-replica 2 --timeout 300
    propscale reconcile [--once]
    propscale scenario
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

import yaml

from propscale.core.cluster import ClusterFacts
from propscale.core.config import RuntimeConfig, get_runtime_config, load_runtime_config
from propscale.core.controllers import AutoscalerController, ConvergenceWaiter, ReplicaController, ScalingScenario
from propscale.core.entities import ScalingParameters
from propscale.core.errors import PropscaleError
from propscale.core.scaling import LinearPolicy
from propscale.core.store import ConfigStore
from propscale.core.utils.logging import demote_client_logging, install_stdout_logger

logger = logging.getLogger("propscale.cli")

# Parameter sets used by the built-in scenario.
SCENARIO_PARAMS_1 = ScalingParameters(nodes_per_replica=1)
SCENARIO_PARAMS_2 = ScalingParameters(nodes_per_replica=2)
SCENARIO_PARAMS_3 = ScalingParameters(nodes_per_replica=3, cores_per_replica=3)


@dataclass
class Components:
    config: RuntimeConfig
    store: ConfigStore
    cluster: ClusterFacts
    replicas: ReplicaController
    waiter: ConvergenceWaiter
    backend: object


def build_components(config: RuntimeConfig, backend) -> Components:
    """Wire stores and controllers over a backend exposing nodes/deployments/configs/pods."""
    store = ConfigStore(backend.configs, name=config.config_map_name, namespace=config.namespace)
    replicas = ReplicaController(backend.deployments, namespace=config.namespace, selector=config.target_selector)
    waiter = ConvergenceWaiter(
        replicas,
        store,
        replica_interval=config.replica_poll_interval,
        config_interval=config.config_poll_interval,
    )
    return Components(
        config=config,
        store=store,
        cluster=ClusterFacts(backend.nodes),
        replicas=replicas,
        waiter=waiter,
        backend=backend,
    )


def _add_params_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--nodes-per-replica", type=float, default=0.0)
    parser.add_argument("--cores-per-replica", type=float, default=0.0)
    parser.add_argument("--min", type=int, default=0, dest="min_replicas")
    parser.add_argument("--max", type=int, default=0, dest="max_replicas")


def _params_from_args(args: argparse.Namespace) -> ScalingParameters:
    return ScalingParameters(
        nodes_per_replica=args.nodes_per_replica,
        cores_per_replica=args.cores_per_replica,
        min=args.min_replicas,
        max=args.max_replicas,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="propscale", description="Cluster-proportional replica scaling")
    parser.add_argument("--config", type=Path, default=None, help="YAML settings file (overrides $PROPSCALE_CONFIG)")
    parser.add_argument("--kubeconfig", default=None, help="kubeconfig path; in-cluster credentials are tried first when omitted")
    parser.add_argument("--context", default=None, help="kubeconfig context")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])

    subparsers = parser.add_subparsers(dest="command", required=True)

    expected = subparsers.add_parser("expected", help="print the replica count the linear policy yields now")
    _add_params_arguments(expected)

    wait = subparsers.add_parser("wait", help="wait for the target deployment to converge")
    _add_params_arguments(wait)
    wait.add_argument("--timeout", type=float, default=None)

    reconcile = subparsers.add_parser("reconcile", help="run the autoscaler reconcile loop")
    reconcile.add_argument("--once", action="store_true", help="run a single cycle and exit")
    reconcile.add_argument("--period", type=float, default=None)

    scenario = subparsers.add_parser("scenario", help="run the parameter and fault scenarios")
    scenario.add_argument("--timeout", type=float, default=None)
    scenario.add_argument("--skip-pod-fault", action="store_true")

    return parser


def run_command(args: argparse.Namespace, components: Components) -> int:
    config = components.config
    policy = LinearPolicy()

    if args.command == "expected":
        target = policy.compute(components.cluster.snapshot(), _params_from_args(args))
        print(target)
        return 0

    if args.command == "wait":
        expected_fn = components.waiter.expected_replicas_fn(policy, components.cluster, _params_from_args(args))
        timeout = config.default_timeout if args.timeout is None else args.timeout
        components.waiter.wait_for_replicas(expected_fn, timeout)
        return 0

    if args.command == "reconcile":
        controller = AutoscalerController(
            store=components.store,
            cluster=components.cluster,
            replicas=components.replicas,
            default_data=config.default_data(),
            policy=policy,
        )
        if args.once:
            result = controller.reconcile()
            logger.info("Reconciled: %s -> %s replicas", result.previous, result.target)
            return 0
        controller.run(config.reconcile_period if args.period is None else args.period)
        return 0

    if args.command == "scenario":
        scenario = ScalingScenario(
            store=components.store,
            replicas=components.replicas,
            cluster=components.cluster,
            waiter=components.waiter,
            pods=components.backend.pods,
            autoscaler_selector=config.autoscaler_selector,
            policy=policy,
            timeout=config.default_timeout if args.timeout is None else args.timeout,
        )
        scenario.run_parameter_scenarios(
            SCENARIO_PARAMS_1,
            SCENARIO_PARAMS_2,
            SCENARIO_PARAMS_3,
            include_pod_fault=not args.skip_pod_fault,
        )
        return 0

    raise ValueError(f"Unknown command '{args.command}'")


def main(argv: Optional[Sequence[str]] = None, *, backend=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    install_stdout_logger(getattr(logging, args.log_level))
    demote_client_logging()

    try:
        config = load_runtime_config(args.config) if args.config else get_runtime_config()
    except (OSError, ValueError, yaml.YAMLError) as exc:
        logger.error("Invalid settings: %s", exc)
        return 1

    try:
        if backend is None:
            from propscale.core.kube.client import KubernetesBackend  # pylint: disable=import-outside-toplevel

            backend = KubernetesBackend.from_environment(args.kubeconfig, args.context)
        return run_command(args, build_components(config, backend))
    except PropscaleError as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
