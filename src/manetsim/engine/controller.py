"""
Tick controller: drives one simulation tick from the controller process.

Per tick:
1. Refresh every node's position through the mobility collaborator
2. Build the snapshot from the updated table
3. Subscribe to the completion channel
4. Send the identical snapshot to every worker queue
5. Block on the barrier until every worker has signalled

The controller never looks at worker state. It only sees its own
dispatches and the completion signals that come back.
"""

from __future__ import annotations
import logging
import math
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from manetsim.core.barrier import CompletionBarrier
from manetsim.core.errors import CollaboratorUnavailable
from manetsim.core.snapshot import encode_snapshot
from manetsim.transport.broker import TYPE_SNAPSHOT_DELIVERY, Task, queue_name

if TYPE_CHECKING:
    from manetsim.core.nodes import NodeTable
    from manetsim.services.mobility import MobilityModel
    from manetsim.transport.broker import Broker

logger = logging.getLogger(__name__)


def _usable_position(position) -> tuple[float, float, float]:
    """Three finite floats, or CollaboratorUnavailable."""
    try:
        x, y, z = (float(c) for c in position)
    except (TypeError, ValueError, OverflowError) as e:
        raise CollaboratorUnavailable("mobility", f"unusable position {position!r}") from e
    if not all(math.isfinite(c) for c in (x, y, z)):
        raise CollaboratorUnavailable("mobility", f"non-finite position {position!r}")
    return x, y, z


@dataclass
class TickResult:
    """What the controller observed during one tick."""

    tick: int
    node_count: int
    worker_count: int
    mobility_failures: list[int] = field(default_factory=list)  # Node IDs kept in place
    signals_received: int = 0
    elapsed: float = 0.0


@dataclass
class TickController:
    """
    Controller side of the tick pipeline.

    `worker_count` is both the dispatch fan-out and the barrier target.
    """

    table: "NodeTable"
    mobility: "MobilityModel"
    broker: "Broker"
    worker_count: int
    barrier_timeout: float | None = None

    current_tick: int = field(default=0, init=False)

    def __post_init__(self):
        if self.worker_count < 1:
            raise ValueError(f"worker_count must be >= 1, got {self.worker_count}")
        if self.worker_count > self.broker.worker_count:
            raise ValueError(
                f"broker has {self.broker.worker_count} queues, "
                f"cannot dispatch to {self.worker_count} workers"
            )

    def update_positions(self) -> list[int]:
        """
        Ask the mobility collaborator for every node's next position.

        A failing node keeps its previous position.

        Returns:
            IDs of nodes whose position could not be refreshed
        """
        failed = []
        for node in self.table:
            try:
                position = _usable_position(self.mobility.request_next_position(node))
            except CollaboratorUnavailable as e:
                logger.warning("node %d: mobility update failed, keeping position: %s", node.id, e)
                failed.append(node.id)
                continue
            self.table.set_position(node.id, position)
        return failed

    def dispatch(self, tick: int, payload: bytes) -> None:
        """
        Send one snapshot to every worker queue.

        Raises:
            DispatchFailure: on the first queue that cannot accept it
        """
        task = Task(TYPE_SNAPSHOT_DELIVERY, tick, payload)
        for worker_index in range(self.worker_count):
            self.broker.enqueue(queue_name(worker_index), task)
        logger.info("tick %d: dispatched snapshot (%d bytes) to %d workers",
                    tick, len(payload), self.worker_count)

    def run_tick(self) -> TickResult:
        """
        Run one full tick and return once every worker is done.

        Raises:
            DispatchFailure: if the snapshot could not be enqueued
            BarrierTimeout: if barrier_timeout is set and elapses
        """
        self.current_tick += 1
        tick = self.current_tick
        started = time.monotonic()

        failed = self.update_positions()
        payload = encode_snapshot(self.table.to_snapshot())

        # Subscribe before dispatch so no completion can be missed
        subscription = self.broker.subscribe()
        barrier = CompletionBarrier(tick=tick, target=self.worker_count)

        self.dispatch(tick, payload)
        barrier.wait(subscription, timeout=self.barrier_timeout)

        result = TickResult(
            tick=tick,
            node_count=len(self.table),
            worker_count=self.worker_count,
            mobility_failures=failed,
            signals_received=subscription.received,
            elapsed=time.monotonic() - started,
        )
        logger.info("tick %d complete in %.3fs (%d mobility failures)",
                    tick, result.elapsed, len(failed))
        return result
