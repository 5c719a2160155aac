"""
Neighbor discovery: from a node table and its spatial index to the pairs
that are within radio range.

Only source nodes inside the shard are queried. The matched neighbor can
be any node in the index.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator

from manetsim.core.kdtree import KDTree

if TYPE_CHECKING:
    from manetsim.core.nodes import NodeTable
    from manetsim.core.partition import IndexShard


@dataclass(frozen=True)
class NeighborPair:
    """Directed discovery result: `neighbor_id` is in range of `source_id`."""

    source_id: int
    neighbor_id: int

    def unordered(self) -> frozenset[int]:
        return frozenset((self.source_id, self.neighbor_id))


def build_index(table: "NodeTable") -> KDTree[int]:
    """Build a spatial index over every node of the table, keyed by node ID."""
    return KDTree.build(
        [(table.positions[i], i) for i in range(len(table))]
    )


def discover_neighbors(
    table: "NodeTable",
    index: KDTree[int],
    shard: "IndexShard",
) -> Iterator[NeighborPair]:
    """
    Yield every (source, neighbor) pair for the sources in `shard`.

    A neighbor is any indexed node within the source's radio range, other
    than the source itself. Pairs for one source come out sorted by
    neighbor ID so that the order is reproducible.
    """
    for source_id in shard:
        center = table.positions[source_id]
        radius = float(table.radio_range[source_id])
        neighbors = sorted(
            m.data for m in index.query_ball(center, radius)
            if m.data != source_id
        )
        for neighbor_id in neighbors:
            yield NeighborPair(source_id, neighbor_id)


def unique_links(pairs) -> set[frozenset[int]]:
    """Collapse directed pairs to unordered links."""
    return {p.unordered() for p in pairs}
