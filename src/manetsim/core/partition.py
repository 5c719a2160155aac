"""
Partition planner: which node IDs each worker runs discovery for.

Shards partition computation, not data: every worker holds the full
snapshot and may match neighbors anywhere in it. Each worker derives its
own shard locally from (node_count, worker_count, worker_index).
"""

from __future__ import annotations
from dataclasses import dataclass


@dataclass(frozen=True)
class IndexShard:
    """Half-open range [start, end) of node IDs."""

    start: int
    end: int

    def __len__(self) -> int:
        return max(0, self.end - self.start)

    def __contains__(self, node_id: int) -> bool:
        return self.start <= node_id < self.end

    def __iter__(self):
        return iter(range(self.start, self.end))


def plan(node_count: int, worker_count: int, worker_index: int) -> IndexShard:
    """
    Compute one worker's shard.

    Shards are node_count // worker_count wide; the last worker also takes
    the remainder. Over worker_index = 0..worker_count-1 the shards are
    contiguous, disjoint, and cover [0, node_count).

    Args:
        node_count: Total number of nodes
        worker_count: Number of workers (>= 1)
        worker_index: This worker's index in [0, worker_count)
    """
    if node_count < 0:
        raise ValueError(f"node_count must be >= 0, got {node_count}")
    if worker_count < 1:
        raise ValueError(f"worker_count must be >= 1, got {worker_count}")
    if not 0 <= worker_index < worker_count:
        raise ValueError(
            f"worker_index must be in [0, {worker_count}), got {worker_index}"
        )

    size = node_count // worker_count
    start = worker_index * size
    end = node_count if worker_index == worker_count - 1 else start + size
    return IndexShard(start, end)


def plan_all(node_count: int, worker_count: int) -> list[IndexShard]:
    """Every worker's shard, in worker order."""
    return [plan(node_count, worker_count, i) for i in range(worker_count)]
