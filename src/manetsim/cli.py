"""
Command-line entry point.

    manetsim tick --config config.yaml     run one distributed tick
    manetsim plan --config config.yaml     print each worker's shard
"""

from __future__ import annotations
import argparse
import logging
import sys

from manetsim.config import SimulationConfig, configure_logging, load_config
from manetsim.core.errors import ManetError
from manetsim.core.partition import plan_all

logger = logging.getLogger(__name__)


def _load(args) -> SimulationConfig:
    config = load_config(args.config) if args.config else SimulationConfig()
    if args.nodes is not None:
        config.node_num = args.nodes
    if args.workers is not None:
        config.worker_num = args.workers
    return config.validate()


def cmd_tick(args) -> int:
    from manetsim.engine.runner import run_tick

    config = _load(args)
    if args.barrier_timeout is not None:
        config.barrier_timeout = args.barrier_timeout
    result = run_tick(config)
    print(f"tick {result.tick}: {result.node_count} nodes, {result.worker_count} workers, "
          f"{len(result.mobility_failures)} mobility failures, {result.elapsed:.3f}s")
    return 0


def cmd_plan(args) -> int:
    config = _load(args)
    for i, shard in enumerate(plan_all(config.node_num, config.worker_num)):
        print(f"worker {i}: [{shard.start}, {shard.end})  {len(shard)} nodes")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="manetsim", description=__doc__.splitlines()[1])
    parser.add_argument("--log-level", default=None, help="override the configured log level")
    sub = parser.add_subparsers(dest="command", required=True)

    for name, func, help_text in (
        ("tick", cmd_tick, "run one distributed tick"),
        ("plan", cmd_plan, "print the shard plan"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("--config", "-c", default=None, help="YAML configuration file")
        p.add_argument("--nodes", type=int, default=None, help="override node_num")
        p.add_argument("--workers", type=int, default=None, help="override worker_num")
        p.set_defaults(func=func)
        if name == "tick":
            p.add_argument("--barrier-timeout", type=float, default=None,
                           help="seconds to wait for workers before failing the tick")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        level = args.log_level or _load(args).log_level
        configure_logging(level)
        return args.func(args)
    except (ManetError, ValueError, FileNotFoundError) as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
