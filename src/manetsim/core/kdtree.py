"""
KDTree: balanced k-d tree over node positions with ball queries.

The tree is rebuilt from scratch every tick from the full snapshot, so it
supports no insertion or deletion. Each indexed point carries a typed
payload (the node ID in the tick pipeline) that comes back with every
match.

Construction splits at the median along the axis chosen by depth
(round-robin over the coordinate axes). Ball queries prune any subtree
whose bounding box lies entirely outside the query radius.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Generic, Sequence, TypeVar

import numpy as np

T = TypeVar("T")

LEAF_SIZE = 8  # Points per leaf before splitting stops


@dataclass(frozen=True)
class Match(Generic[T]):
    """One point returned by a ball query."""

    data: T
    coordinates: tuple[float, ...]


@dataclass
class _Node:
    """Internal tree node. Leaves hold point indices; inner nodes hold children."""

    lo: np.ndarray  # Bounding box lower corner
    hi: np.ndarray  # Bounding box upper corner
    indices: np.ndarray | None = None
    axis: int = 0
    left: "_Node | None" = None
    right: "_Node | None" = None

    @property
    def is_leaf(self) -> bool:
        return self.indices is not None


class KDTree(Generic[T]):
    """
    Static k-d tree answering radius queries.

    Usage:
        tree = KDTree.build([((x, y, z), node_id), ...])
        for match in tree.query_ball(center, radius):
            match.data  # payload of the matched point
    """

    def __init__(
        self,
        coords: np.ndarray,
        data: list[T],
        leaf_size: int = LEAF_SIZE,
    ):
        if coords.ndim != 2:
            raise ValueError(f"coordinates must be 2D, got shape {coords.shape}")
        if len(data) != coords.shape[0]:
            raise ValueError("coordinates and data must have the same length")
        if leaf_size < 1:
            raise ValueError("leaf_size must be >= 1")

        self._coords = coords
        self._data = data
        self._leaf_size = leaf_size
        self._dims = coords.shape[1]
        self._root: _Node | None = None

        if len(data) > 0:
            indices = np.arange(len(data))
            self._root = self._build(indices, depth=0)

    @classmethod
    def build(
        cls,
        points: Sequence[tuple[Sequence[float], T]],
        dims: int = 3,
        leaf_size: int = LEAF_SIZE,
    ) -> "KDTree[T]":
        """
        Build a tree from (coordinates, data) pairs.

        Args:
            points: Sequence of (coordinates, payload)
            dims: Expected dimensionality of every coordinate
            leaf_size: Maximum points stored in a leaf

        Returns:
            A KDTree. An empty point set gives an empty tree.
        """
        if len(points) == 0:
            return cls(np.empty((0, dims), dtype=np.float64), [], leaf_size)

        coords = np.asarray([p[0] for p in points], dtype=np.float64)
        if coords.ndim != 2 or coords.shape[1] != dims:
            raise ValueError(f"every point must have {dims} coordinates")
        data = [p[1] for p in points]
        return cls(coords, data, leaf_size)

    def __len__(self) -> int:
        return len(self._data)

    @property
    def dims(self) -> int:
        return self._dims

    def _build(self, indices: np.ndarray, depth: int) -> _Node:
        pts = self._coords[indices]
        node = _Node(lo=pts.min(axis=0), hi=pts.max(axis=0))

        if len(indices) <= self._leaf_size:
            node.indices = indices
            return node

        axis = depth % self._dims
        mid = len(indices) // 2

        # Median split: argpartition places the median at `mid`
        order = np.argpartition(pts[:, axis], mid)
        node.axis = axis
        node.left = self._build(indices[order[:mid]], depth + 1)
        node.right = self._build(indices[order[mid:]], depth + 1)
        return node

    def query_ball(self, center: Sequence[float], radius: float) -> list[Match[T]]:
        """
        Return every indexed point within `radius` of `center`.

        Distance is exact Euclidean, boundary inclusive. A point located at
        `center` (including the querying node itself) is part of the result.

        Args:
            center: Query point
            radius: Non-negative search radius

        Returns:
            List of matches in no particular order
        """
        if radius < 0:
            raise ValueError(f"radius must be non-negative, got {radius}")

        c = np.asarray(center, dtype=np.float64)
        if c.shape != (self._dims,):
            raise ValueError(f"center must have {self._dims} coordinates")

        if self._root is None:
            return []

        hits: list[int] = []
        self._query(self._root, c, radius * radius, hits)
        return [
            Match(self._data[i], tuple(float(v) for v in self._coords[i]))
            for i in hits
        ]

    def _query(self, node: _Node, c: np.ndarray, r2: float, hits: list[int]):
        # Squared distance from center to the node's bounding box
        gap = np.maximum(node.lo - c, 0.0) + np.maximum(c - node.hi, 0.0)
        if float(gap @ gap) > r2:
            return

        if node.is_leaf:
            diff = self._coords[node.indices] - c
            d2 = np.einsum("ij,ij->i", diff, diff)
            hits.extend(int(i) for i in node.indices[d2 <= r2])
            return

        self._query(node.left, c, r2, hits)
        self._query(node.right, c, r2, hits)
