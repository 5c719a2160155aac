"""
Process bootstrap: one controller plus `worker_num` worker processes.

Each process builds its own node table from the shared configuration and
resolves its collaborator once at startup. The runner spawns the workers,
drives a single tick from the parent process, then stops the workers.
"""

from __future__ import annotations
import logging
import multiprocessing as mp
from dataclasses import dataclass

from manetsim.config import SimulationConfig, configure_logging
from manetsim.core.errors import CollaboratorUnavailable
from manetsim.core.nodes import MobilityState, NodeTable, RadioParams
from manetsim.engine.controller import TickController, TickResult
from manetsim.engine.worker import TickWorker
from manetsim.services.channel import ChannelClient
from manetsim.services.mobility import MobilityClient
from manetsim.services.registry import ServiceRegistry
from manetsim.transport.broker import Broker

logger = logging.getLogger(__name__)

JOIN_TIMEOUT = 5.0  # seconds to wait for a worker to exit before terminating it


@dataclass
class UnresolvedCollaborator:
    """
    Stand-in for a collaborator whose endpoint could not be resolved.

    Every call raises CollaboratorUnavailable, so the per-node and per-pair
    isolation in the controller and workers applies unchanged.
    """

    service: str
    reason: str

    def request_next_position(self, node):
        raise CollaboratorUnavailable(self.service, self.reason)

    def evaluate_link(self, link):
        raise CollaboratorUnavailable(self.service, self.reason)


def initial_table(config: SimulationConfig) -> NodeTable:
    """Node table every process starts from. Identical across processes."""
    return NodeTable.generate(
        config.node_num,
        area=config.area,
        radio_range=config.radio_range,
        radio=RadioParams(),
        mobility=MobilityState(params=dict(config.mobility_params)),
        seed=config.seed,
    )


def resolve_mobility(config: SimulationConfig, registry: ServiceRegistry):
    try:
        return MobilityClient.from_registry(
            registry, config.mobility_service, timeout=config.request_timeout,
        )
    except CollaboratorUnavailable as e:
        logger.error("mobility model unavailable, positions will not move: %s", e)
        return UnresolvedCollaborator(config.mobility_service, e.reason)


def resolve_channel(config: SimulationConfig, registry: ServiceRegistry):
    try:
        return ChannelClient.from_registry(
            registry, config.channel_service,
            large_scale_model=config.large_scale_model,
            small_scale_model=config.small_scale_model,
            timeout=config.request_timeout,
        )
    except CollaboratorUnavailable as e:
        logger.error("channel model unavailable, links will not be evaluated: %s", e)
        return UnresolvedCollaborator(config.channel_service, e.reason)


def worker_main(config: SimulationConfig, worker_index: int, broker: Broker, stop_event) -> None:
    """Entry point of a worker process."""
    configure_logging(config.log_level)
    registry = ServiceRegistry(config.consul_address, timeout=config.request_timeout)
    worker = TickWorker(
        worker_index=worker_index,
        worker_count=config.worker_num,
        table=initial_table(config),
        channel=resolve_channel(config, registry),
        broker=broker,
    )
    worker.serve(stop_event)


def run_tick(config: SimulationConfig, ctx=None) -> TickResult:
    """
    Spawn the workers, run one tick, shut the workers down.

    Args:
        config: Shared configuration
        ctx: multiprocessing context ("spawn" if None)

    Raises:
        DispatchFailure: if a snapshot could not be enqueued
        BarrierTimeout: if config.barrier_timeout elapses
    """
    config.validate()
    ctx = ctx if ctx is not None else mp.get_context("spawn")
    broker = Broker.create(config.worker_num, ctx)
    stop_event = ctx.Event()

    workers = [
        ctx.Process(
            target=worker_main,
            args=(config, i, broker, stop_event),
            name=f"worker{i + 1}",
            daemon=True,
        )
        for i in range(config.worker_num)
    ]
    for p in workers:
        p.start()
    logger.info("started %d workers", len(workers))

    try:
        registry = ServiceRegistry(config.consul_address, timeout=config.request_timeout)
        controller = TickController(
            table=initial_table(config),
            mobility=resolve_mobility(config, registry),
            broker=broker,
            worker_count=config.worker_num,
            barrier_timeout=config.barrier_timeout,
        )
        return controller.run_tick()
    finally:
        stop_event.set()
        for p in workers:
            p.join(timeout=JOIN_TIMEOUT)
            if p.is_alive():
                logger.warning("%s did not exit, terminating", p.name)
                p.terminate()
