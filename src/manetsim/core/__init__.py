"""
Core tick-pipeline primitives.

This layer does no I/O. It only knows:
- Nodes indexed by dense ID, with positions and radio ranges
- Snapshots of positions and their wire codec
- A k-d tree answering radius queries
- Shards of node IDs per worker
- Neighbor discovery over a shard
- The completion barrier
"""

from manetsim.core.barrier import CompletionBarrier, CompletionSignal
from manetsim.core.discovery import NeighborPair, build_index, discover_neighbors, unique_links
from manetsim.core.errors import (
    BarrierTimeout,
    CollaboratorUnavailable,
    DispatchFailure,
    MalformedSnapshot,
    ManetError,
    UnknownNodeID,
)
from manetsim.core.kdtree import KDTree, Match
from manetsim.core.nodes import MobilityState, NodeTable, RadioParams, SimNode
from manetsim.core.partition import IndexShard, plan, plan_all
from manetsim.core.snapshot import Snapshot, SnapshotPoint, decode_snapshot, encode_snapshot

__all__ = [
    "CompletionBarrier",
    "CompletionSignal",
    "NeighborPair",
    "build_index",
    "discover_neighbors",
    "unique_links",
    "BarrierTimeout",
    "CollaboratorUnavailable",
    "DispatchFailure",
    "MalformedSnapshot",
    "ManetError",
    "UnknownNodeID",
    "KDTree",
    "Match",
    "MobilityState",
    "NodeTable",
    "RadioParams",
    "SimNode",
    "IndexShard",
    "plan",
    "plan_all",
    "Snapshot",
    "SnapshotPoint",
    "decode_snapshot",
    "encode_snapshot",
]
