#!/usr/bin/env python3
"""
Demo: One Tick of the Distributed Pipeline

Runs a controller and several workers in one process, with local
stand-ins for the mobility and channel models:

1. The controller moves every node with a bounded random walk
2. The new positions are broadcast to each worker as one snapshot
3. Each worker indexes the snapshot in its own k-d tree
4. Each worker finds the neighbors of its shard and evaluates the links
5. The controller waits until every worker has reported completion

Output: output/demo_single_tick/topology.png
"""

import threading
from pathlib import Path

import numpy as np
import matplotlib.pyplot as plt

from manetsim.analysis import summarize_topology
from manetsim.core import NodeTable, plan_all
from manetsim.engine import TickController, TickWorker
from manetsim.transport import Broker
from manetsim.viz.topology import plot_topology, save_figure


class RandomWalk:
    """Local mobility model: each node moves up to max_step per tick."""

    def __init__(self, max_step, seed=0):
        self.max_step = max_step
        self.rng = np.random.default_rng(seed)

    def request_next_position(self, node):
        step = self.rng.uniform(-self.max_step, self.max_step, size=3)
        return tuple(np.asarray(node.position) + step)


class LinkCounter:
    """Local channel model: records link IDs instead of computing path loss."""

    def __init__(self):
        self.link_ids = []

    def evaluate_link(self, link):
        self.link_ids.append(link.link_id)


def main():
    print("=" * 60)
    print("  SINGLE TICK DEMONSTRATION")
    print("=" * 60)

    node_count = 200
    worker_count = 4
    radio_range = 1500.0
    area = (10000.0, 10000.0, 1000.0)

    print("\n1. Generating node table...")
    table = NodeTable.generate(node_count, area=area, radio_range=radio_range, seed=3)
    print(f"   {node_count} nodes in {area[0]:.0f} x {area[1]:.0f} x {area[2]:.0f} m")
    print(f"   Radio range: {radio_range:.0f} m")

    print("\n2. Planning shards...")
    for i, shard in enumerate(plan_all(node_count, worker_count)):
        print(f"   worker {i}: [{shard.start}, {shard.end})  {len(shard)} nodes")

    broker = Broker.create(worker_count)
    controller = TickController(
        table=table,
        mobility=RandomWalk(max_step=50.0, seed=1),
        broker=broker,
        worker_count=worker_count,
        barrier_timeout=30.0,
    )
    channels = [LinkCounter() for _ in range(worker_count)]
    workers = [
        TickWorker(i, worker_count, table.copy(), channels[i], broker)
        for i in range(worker_count)
    ]

    stop = threading.Event()
    threads = [threading.Thread(target=w.serve, args=(stop, 0.05), daemon=True) for w in workers]
    for t in threads:
        t.start()

    print("\n3. Running one tick...")
    try:
        result = controller.run_tick()
    finally:
        stop.set()
        for t in threads:
            t.join(timeout=5.0)
        broker.close()

    print(f"   Tick {result.tick} complete in {result.elapsed * 1000:.1f} ms")
    print(f"   Completion signals: {result.signals_received}/{result.worker_count}")
    for w, channel in zip(workers, channels):
        report = w.last_report
        print(f"   worker {w.worker_index}: {len(report.pairs)} pairs, "
              f"{len(channel.link_ids)} links evaluated")

    print("\n4. Analyzing link graph...")
    pairs = [p for w in workers for p in w.last_report.pairs]
    summary = summarize_topology(pairs, node_count)
    print(f"   Links: {summary.link_count} ({summary.asymmetric_links} asymmetric)")
    print(f"   Components: {summary.n_components} (largest: {summary.largest_component})")
    print(f"   Isolated nodes: {len(summary.isolated_nodes)}")
    print(f"   Mean degree: {summary.mean_degree:.2f}")

    print("\n5. Plotting topology...")
    fig, ax = plot_topology(controller.table, pairs)
    output_dir = Path("output/demo_single_tick")
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / "topology.png"
    save_figure(fig, output_path)
    plt.close(fig)
    print(f"   Saved: {output_path}")

    print("\n" + "=" * 60)
    print("  Single tick demonstration complete!")
    print("=" * 60)


if __name__ == "__main__":
    main()
