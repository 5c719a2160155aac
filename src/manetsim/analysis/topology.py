"""
Link-graph analysis of one tick's neighbor discovery.

IMPORTANT: This is NOT seen by the tick pipeline. It consumes the pairs
workers report and derives graph-level quantities for inspection:
- adjacency matrix of the discovered links
- connected components (network partitions)
- degree statistics
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, TYPE_CHECKING

import numpy as np
from scipy import sparse
from scipy.sparse.csgraph import connected_components

if TYPE_CHECKING:
    from manetsim.core.discovery import NeighborPair


@dataclass
class TopologySummary:
    """Graph-level view of one tick's links."""

    node_count: int
    link_count: int               # Unordered links
    asymmetric_links: int         # Links discovered in one direction only
    n_components: int
    component_labels: np.ndarray  # [N] component index per node
    degree: np.ndarray            # [N] undirected degree per node

    @property
    def largest_component(self) -> int:
        if self.node_count == 0:
            return 0
        return int(np.bincount(self.component_labels).max())

    @property
    def isolated_nodes(self) -> np.ndarray:
        return np.flatnonzero(self.degree == 0)

    @property
    def mean_degree(self) -> float:
        return float(self.degree.mean()) if self.node_count else 0.0


def adjacency_matrix(pairs: Iterable["NeighborPair"], node_count: int) -> sparse.csr_matrix:
    """
    Directed adjacency matrix: entry (i, j) is 1 when j was found in range of i.

    Args:
        pairs: Discovered (source, neighbor) pairs
        node_count: Matrix dimension
    """
    pairs = list(pairs)
    rows = np.fromiter((p.source_id for p in pairs), dtype=np.int64, count=len(pairs))
    cols = np.fromiter((p.neighbor_id for p in pairs), dtype=np.int64, count=len(pairs))
    data = np.ones(len(pairs), dtype=np.int8)
    adj = sparse.coo_matrix((data, (rows, cols)), shape=(node_count, node_count)).tocsr()
    # Duplicate pairs collapse to a single edge
    adj.data[:] = 1
    return adj


def summarize_topology(pairs: Iterable["NeighborPair"], node_count: int) -> TopologySummary:
    """
    Compute the link-graph summary for one tick.

    Links are treated as undirected for components and degree. Nodes with
    different radio ranges can see each other in one direction only; those
    are counted in `asymmetric_links`.
    """
    if node_count == 0:
        empty = np.zeros(0, dtype=np.int64)
        return TopologySummary(0, 0, 0, 0, empty, empty)

    adj = adjacency_matrix(pairs, node_count)
    undirected = ((adj + adj.T) > 0).astype(np.int8)
    mutual = adj.multiply(adj.T).tocsr()
    mutual.eliminate_zeros()

    n_undirected = int(undirected.nnz // 2)
    n_mutual = int(mutual.nnz // 2)

    n_components, labels = connected_components(undirected, directed=False)
    degree = np.asarray(undirected.sum(axis=1)).ravel()

    return TopologySummary(
        node_count=node_count,
        link_count=n_undirected,
        asymmetric_links=n_undirected - n_mutual,
        n_components=int(n_components),
        component_labels=labels,
        degree=degree,
    )
