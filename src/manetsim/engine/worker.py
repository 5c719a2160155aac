"""
Tick worker: discovery and channel evaluation for one shard.

On each snapshot message the worker:
1. Decodes the snapshot (malformed payloads are dropped, never retried)
2. Applies it to its private node table
3. Builds a fresh k-d tree over the whole table
4. Derives its own shard from (node_count, worker_count, worker_index)
5. Queries the radio-range ball of every source in the shard and calls the
   channel collaborator for every neighbor found
6. Publishes exactly one completion signal

Workers share nothing with each other. The only coordination is the
snapshot coming in and the completion signal going out.
"""

from __future__ import annotations
import logging
import queue
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from manetsim.core.barrier import CompletionSignal
from manetsim.core.discovery import build_index, discover_neighbors
from manetsim.core.errors import CollaboratorUnavailable, MalformedSnapshot, UnknownNodeID
from manetsim.core.partition import IndexShard, plan
from manetsim.core.snapshot import decode_snapshot
from manetsim.services.channel import LinkRequest
from manetsim.transport.broker import TYPE_SNAPSHOT_DELIVERY, queue_name

if TYPE_CHECKING:
    from manetsim.core.discovery import NeighborPair
    from manetsim.core.nodes import NodeTable
    from manetsim.services.channel import ChannelModel
    from manetsim.transport.broker import Broker, Task

logger = logging.getLogger(__name__)


@dataclass
class WorkerReport:
    """Outcome of one snapshot on one worker."""

    worker_index: int
    tick: int
    shard: IndexShard
    sources: int = 0
    pairs: list["NeighborPair"] = field(default_factory=list)
    channel_failures: int = 0


@dataclass
class TickWorker:
    """Worker side of the tick pipeline. Owns its table and index."""

    worker_index: int
    worker_count: int
    table: "NodeTable"
    channel: "ChannelModel"
    broker: "Broker"

    last_report: WorkerReport | None = field(default=None, init=False)

    def __post_init__(self):
        if not 0 <= self.worker_index < self.worker_count:
            raise ValueError(
                f"worker_index must be in [0, {self.worker_count}), got {self.worker_index}"
            )

    @property
    def queue_name(self) -> str:
        return queue_name(self.worker_index)

    @property
    def shard(self) -> IndexShard:
        return plan(len(self.table), self.worker_count, self.worker_index)

    def link_request(self, pair: "NeighborPair") -> LinkRequest:
        src, dst = pair.source_id, pair.neighbor_id
        return LinkRequest(
            link_id=src * len(self.table) + dst,
            tx=self.table.radio[src],
            rx=self.table.radio[dst],
            tx_position=self.table.position_of(src),
            rx_position=self.table.position_of(dst),
        )

    def handle(self, task: "Task") -> WorkerReport:
        """
        Process one snapshot task end to end.

        Raises:
            MalformedSnapshot: payload could not be decoded; no signal sent
            UnknownNodeID: snapshot does not fit the table; no signal sent
        """
        snapshot = decode_snapshot(task.payload)
        if len(snapshot) != len(self.table):
            logger.warning("tick %d: snapshot has %d nodes, table has %d",
                           task.tick, len(snapshot), len(self.table))
        self.table.apply(snapshot)

        index = build_index(self.table)
        shard = self.shard
        report = WorkerReport(self.worker_index, task.tick, shard, sources=len(shard))

        for pair in discover_neighbors(self.table, index, shard):
            report.pairs.append(pair)
            link = self.link_request(pair)
            try:
                self.channel.evaluate_link(link)
            except CollaboratorUnavailable as e:
                logger.warning("link %d->%d: channel evaluation failed: %s",
                               pair.source_id, pair.neighbor_id, e)
                report.channel_failures += 1
                continue
            logger.debug("link %d->%d evaluated", pair.source_id, pair.neighbor_id)

        self.last_report = report
        self.broker.publish(CompletionSignal(self.worker_index, task.tick))
        logger.info("worker %d tick %d: %d sources, %d pairs, %d channel failures",
                    self.worker_index, task.tick, report.sources,
                    len(report.pairs), report.channel_failures)
        return report

    def process(self, task: "Task") -> WorkerReport | None:
        """
        Handle a task from the queue, logging instead of raising.

        Structural failures drop the message without retry. The missing
        completion signal then shows up as a stall at the controller.
        """
        if task.type != TYPE_SNAPSHOT_DELIVERY:
            logger.error("worker %d: dropping task of unknown type %r", self.worker_index, task.type)
            return None
        try:
            return self.handle(task)
        except MalformedSnapshot as e:
            logger.error("worker %d tick %d: malformed snapshot, dropped without retry: %s",
                         self.worker_index, task.tick, e)
        except UnknownNodeID as e:
            logger.error("worker %d tick %d: %s", self.worker_index, task.tick, e)
        return None

    def serve(self, stop_event, poll_interval: float = 0.5) -> None:
        """Consume this worker's queue until `stop_event` is set."""
        logger.info("worker %d serving %s (shard %s)", self.worker_index, self.queue_name, self.shard)
        while not stop_event.is_set():
            try:
                task = self.broker.dequeue(self.queue_name, timeout=poll_interval)
            except queue.Empty:
                continue
            self.process(task)
        logger.info("worker %d stopped", self.worker_index)
