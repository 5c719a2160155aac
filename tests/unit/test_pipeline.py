"""
End-to-end tests: one controller and several workers on a shared broker.

Workers run in threads here; each still owns a private table and index
and talks to the controller only through the broker.
"""

import threading

import numpy as np
import pytest

from conftest import LINE_POSITIONS, RecordingChannel, ShiftMobility, StaticMobility
from manetsim.core.discovery import NeighborPair, unique_links
from manetsim.core.errors import BarrierTimeout
from manetsim.core.nodes import NodeTable
from manetsim.engine.controller import TickController
from manetsim.engine.worker import TickWorker
from manetsim.transport.broker import Broker


class Cluster:
    """Controller plus threaded workers."""

    def __init__(self, positions, worker_count, radio_range, mobility=None, barrier_timeout=10.0):
        n = len(positions)
        self.broker = Broker.create(worker_count)
        self.controller = TickController(
            table=NodeTable.from_positions(positions, radio_range=radio_range),
            mobility=mobility or StaticMobility(),
            broker=self.broker,
            worker_count=worker_count,
            barrier_timeout=barrier_timeout,
        )
        self.workers = [
            TickWorker(i, worker_count, NodeTable.from_positions(np.zeros((n, 3)), radio_range),
                       RecordingChannel(), self.broker)
            for i in range(worker_count)
        ]
        self.stop = threading.Event()
        self.threads = [
            threading.Thread(target=w.serve, args=(self.stop, 0.05), daemon=True)
            for w in self.workers
        ]

    def __enter__(self):
        for t in self.threads:
            t.start()
        return self

    def __exit__(self, *exc):
        self.stop.set()
        for t in self.threads:
            t.join(timeout=5.0)
        self.broker.close()

    def pairs(self):
        return [p for w in self.workers for p in w.last_report.pairs]


class TestPipeline:
    """Full tick through the broker."""

    def test_four_node_line(self):
        with Cluster(LINE_POSITIONS, worker_count=2, radio_range=2.0) as cluster:
            result = cluster.controller.run_tick()

        assert result.signals_received == 2
        assert unique_links(cluster.pairs()) == {frozenset({0, 1}), frozenset({2, 3})}

    def test_each_worker_uses_its_shard(self):
        with Cluster(LINE_POSITIONS, worker_count=2, radio_range=2.0) as cluster:
            cluster.controller.run_tick()

        w0, w1 = cluster.workers
        assert w0.last_report.pairs == [NeighborPair(0, 1), NeighborPair(1, 0)]
        assert w1.last_report.pairs == [NeighborPair(2, 3), NeighborPair(3, 2)]

    def test_workers_see_moved_positions(self):
        """Mobility moves node 2 next to node 1; worker 0 must cite it."""
        class MoveNodeTwo(StaticMobility):
            def request_next_position(self, node):
                return (2.0, 0.0, 0.0) if node.id == 2 else node.position

        with Cluster(LINE_POSITIONS, 2, 2.0, mobility=MoveNodeTwo()) as cluster:
            cluster.controller.run_tick()

        assert NeighborPair(1, 2) in cluster.workers[0].last_report.pairs
        assert NeighborPair(2, 1) in cluster.workers[1].last_report.pairs

    @pytest.mark.parametrize("worker_count", [1, 3, 4])
    def test_union_matches_single_worker(self, rng, worker_count):
        positions = rng.uniform(0, 1000, size=(60, 3))
        with Cluster(positions, 1, 200.0) as single:
            single.controller.run_tick()
        with Cluster(positions, worker_count, 200.0) as many:
            many.controller.run_tick()

        assert sorted(many.pairs(), key=lambda p: (p.source_id, p.neighbor_id)) == single.pairs()

    def test_multiple_ticks(self):
        with Cluster(LINE_POSITIONS, 2, 2.0, mobility=ShiftMobility((0.5, 0.0, 0.0))) as cluster:
            first = cluster.controller.run_tick()
            second = cluster.controller.run_tick()

        assert (first.tick, second.tick) == (1, 2)
        assert cluster.workers[1].last_report.tick == 2
        assert cluster.workers[0].table.position_of(0) == (1.0, 0.0, 0.0)

    def test_stalled_worker_detected_by_timeout(self):
        with Cluster(LINE_POSITIONS, 2, 2.0, barrier_timeout=0.5) as cluster:
            # Worker 1 holds a table too small for the snapshot and drops it
            cluster.workers[1].table = NodeTable.from_positions(np.zeros((2, 3)))
            with pytest.raises(BarrierTimeout) as exc:
                cluster.controller.run_tick()

        assert exc.value.missing == [1]

    def test_infinite_position_does_not_stall_tick(self):
        class InfiniteNodeZero(StaticMobility):
            def request_next_position(self, node):
                return (float("inf"), 0.0, 0.0) if node.id == 0 else node.position

        with Cluster(LINE_POSITIONS, 2, 2.0, mobility=InfiniteNodeZero(), barrier_timeout=5.0) as cluster:
            result = cluster.controller.run_tick()

        assert result.signals_received == 2
        assert result.mobility_failures == [0]
        assert NeighborPair(0, 1) in cluster.workers[0].last_report.pairs
