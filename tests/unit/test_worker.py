"""Unit tests for TickWorker."""

import queue

import numpy as np
import pytest

from conftest import LINE_POSITIONS, RecordingChannel
from manetsim.core.barrier import CompletionSignal
from manetsim.core.discovery import NeighborPair
from manetsim.core.errors import MalformedSnapshot, UnknownNodeID
from manetsim.core.nodes import NodeTable
from manetsim.core.partition import IndexShard
from manetsim.core.snapshot import encode_snapshot
from manetsim.engine.worker import TickWorker
from manetsim.transport.broker import TYPE_SNAPSHOT_DELIVERY, Broker, Task


@pytest.fixture
def broker():
    b = Broker.create(2)
    yield b
    b.close()


def blank_table(n=4, radio_range=2.0):
    """Worker-side table before any snapshot: every node at the origin."""
    return NodeTable.from_positions(np.zeros((n, 3)), radio_range=radio_range)


def snapshot_task(positions, tick=1):
    table = NodeTable.from_positions(positions)
    return Task(TYPE_SNAPSHOT_DELIVERY, tick, encode_snapshot(table.to_snapshot()))


def next_signal(broker):
    return broker.subscribe().get(timeout=2.0)


class TestHandle:
    """Tests for TickWorker.handle."""

    def test_shard_from_worker_index(self, broker):
        w0 = TickWorker(0, 2, blank_table(), RecordingChannel(), broker)
        w1 = TickWorker(1, 2, blank_table(), RecordingChannel(), broker)
        assert w0.shard == IndexShard(0, 2)
        assert w1.shard == IndexShard(2, 4)
        assert w1.queue_name == "queue2"

    def test_discovers_own_shard(self, broker):
        channel = RecordingChannel()
        worker = TickWorker(1, 2, blank_table(), channel, broker)

        report = worker.handle(snapshot_task(LINE_POSITIONS))

        assert report.pairs == [NeighborPair(2, 3), NeighborPair(3, 2)]
        assert report.sources == 2
        assert [link.link_id for link in channel.links] == [2 * 4 + 3, 3 * 4 + 2]
        assert channel.links[0].tx_position == (10.0, 0.0, 0.0)
        assert channel.links[0].rx_position == (11.0, 0.0, 0.0)
        assert next_signal(broker) == CompletionSignal(1, 1)

    def test_snapshot_replaces_local_positions(self, broker):
        """Before the snapshot every node sits at the origin and is in range."""
        worker = TickWorker(0, 1, blank_table(), RecordingChannel(), broker)
        report = worker.handle(snapshot_task(LINE_POSITIONS))
        assert len(report.pairs) == 4
        assert worker.table.position_of(2) == (10.0, 0.0, 0.0)

    def test_channel_failures_are_isolated(self, broker):
        channel = RecordingChannel(failing_links={0 * 4 + 1})
        worker = TickWorker(0, 2, blank_table(), channel, broker)

        report = worker.handle(snapshot_task(LINE_POSITIONS))

        assert report.channel_failures == 1
        assert len(channel.links) == 1
        assert next_signal(broker) == CompletionSignal(0, 1)

    def test_malformed_snapshot_sends_no_signal(self, broker):
        worker = TickWorker(0, 2, blank_table(), RecordingChannel(), broker)
        with pytest.raises(MalformedSnapshot):
            worker.handle(Task(TYPE_SNAPSHOT_DELIVERY, 1, b"{bad"))
        with pytest.raises(queue.Empty):
            broker.subscribe().get(timeout=0.1)

    def test_unknown_node_sends_no_signal(self, broker):
        worker = TickWorker(0, 2, blank_table(n=3), RecordingChannel(), broker)
        with pytest.raises(UnknownNodeID):
            worker.handle(snapshot_task(LINE_POSITIONS))
        with pytest.raises(queue.Empty):
            broker.subscribe().get(timeout=0.1)

    def test_index_validated(self, broker):
        with pytest.raises(ValueError):
            TickWorker(2, 2, blank_table(), RecordingChannel(), broker)


class TestProcess:
    """Tests for TickWorker.process (queue-facing, never raises)."""

    def test_malformed_dropped(self, broker):
        worker = TickWorker(0, 2, blank_table(), RecordingChannel(), broker)
        assert worker.process(Task(TYPE_SNAPSHOT_DELIVERY, 1, b"[1, 2")) is None
        assert worker.last_report is None

    @pytest.mark.parametrize("payload", [
        b'{"TreeNodes": [{"id": 99999999999999999999, "coordinates": [0, 0, 0]}]}',
        b'{"TreeNodes": [{"id": 0, "coordinates": [1' + b"0" * 400 + b', 0, 0]}]}',
    ])
    def test_out_of_range_numbers_dropped(self, broker, payload):
        subscription = broker.subscribe()
        worker = TickWorker(0, 2, blank_table(), RecordingChannel(), broker)

        assert worker.process(Task(TYPE_SNAPSHOT_DELIVERY, 1, payload)) is None
        assert worker.last_report is None
        with pytest.raises(queue.Empty):
            subscription.get(timeout=0.2)

    def test_unknown_type_dropped(self, broker):
        channel = RecordingChannel()
        worker = TickWorker(0, 2, blank_table(), channel, broker)
        assert worker.process(Task("email:deliver", 1, b"{}")) is None
        assert channel.links == []

    def test_valid_task(self, broker):
        worker = TickWorker(0, 2, blank_table(), RecordingChannel(), broker)
        report = worker.process(snapshot_task(LINE_POSITIONS, tick=3))
        assert report.tick == 3
        assert worker.last_report is report
