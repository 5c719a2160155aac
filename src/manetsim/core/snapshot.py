"""
Snapshot and its wire codec.

A snapshot is the immutable, ordered set of (ID, coordinates) pairs the
controller broadcasts to every worker at the start of a tick. On the wire
it is JSON:

    {"TreeNodes": [{"id": 0, "coordinates": [x, y, z]}, ...]}
"""

from __future__ import annotations
import json
import math
from dataclasses import dataclass
from typing import Iterator

import numpy as np

from manetsim.core.errors import MalformedSnapshot

SNAPSHOT_KEY = "TreeNodes"


@dataclass(frozen=True)
class SnapshotPoint:
    """One node's position in a snapshot."""

    id: int
    coordinates: tuple[float, float, float]


@dataclass(frozen=True)
class Snapshot:
    """Immutable ordered sequence of snapshot points."""

    points: tuple[SnapshotPoint, ...]

    @classmethod
    def from_arrays(cls, ids, coordinates: np.ndarray) -> "Snapshot":
        """Build a snapshot from an ID vector and an [N, 3] coordinate array."""
        return cls(tuple(
            SnapshotPoint(int(i), (float(c[0]), float(c[1]), float(c[2])))
            for i, c in zip(ids, coordinates)
        ))

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self) -> Iterator[SnapshotPoint]:
        return iter(self.points)

    def ids(self) -> np.ndarray:
        return np.fromiter((p.id for p in self.points), dtype=np.int64, count=len(self.points))

    def coordinates(self) -> np.ndarray:
        """[N, 3] float64 array of coordinates, in snapshot order."""
        if not self.points:
            return np.empty((0, 3), dtype=np.float64)
        return np.array([p.coordinates for p in self.points], dtype=np.float64)


def encode_snapshot(snapshot: Snapshot) -> bytes:
    """Serialize a snapshot to its JSON wire form."""
    body = {
        SNAPSHOT_KEY: [
            {"id": p.id, "coordinates": list(p.coordinates)}
            for p in snapshot.points
        ]
    }
    return json.dumps(body, separators=(",", ":")).encode("utf-8")


def decode_snapshot(payload: bytes | str) -> Snapshot:
    """
    Parse a snapshot from its JSON wire form.

    Raises:
        MalformedSnapshot: on invalid JSON, a missing or mistyped field,
            a coordinate list that is not 3 finite numbers, or a duplicate ID
    """
    try:
        body = json.loads(payload)
    except (json.JSONDecodeError, UnicodeDecodeError, TypeError) as e:
        raise MalformedSnapshot(f"payload is not valid JSON: {e}") from e

    if not isinstance(body, dict) or not isinstance(body.get(SNAPSHOT_KEY), list):
        raise MalformedSnapshot(f"payload must be an object with a '{SNAPSHOT_KEY}' list")

    points = []
    seen: set[int] = set()
    for n, entry in enumerate(body[SNAPSHOT_KEY]):
        if not isinstance(entry, dict):
            raise MalformedSnapshot(f"entry {n} is not an object")

        node_id = entry.get("id")
        # bool is an int subclass; reject it explicitly
        if not isinstance(node_id, int) or isinstance(node_id, bool):
            raise MalformedSnapshot(f"entry {n} has no integer 'id'")
        if node_id in seen:
            raise MalformedSnapshot(f"duplicate id {node_id}")
        seen.add(node_id)

        coords = entry.get("coordinates")
        if not isinstance(coords, list) or len(coords) != 3:
            raise MalformedSnapshot(f"entry {n} must have 3 coordinates")
        if not all(_is_finite_number(c) for c in coords):
            raise MalformedSnapshot(f"entry {n} has non-numeric coordinates")

        points.append(SnapshotPoint(node_id, tuple(float(c) for c in coords)))

    return Snapshot(tuple(points))


def _is_finite_number(value) -> bool:
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # int literal too large for a float
        return False
