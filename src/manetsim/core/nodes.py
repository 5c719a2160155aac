"""
Node state table: the per-process array of simulated nodes.

Nodes are indexed by dense integer ID. The ID is the slot in the table,
so lookups are O(1) and the table must stay index-aligned: writes by ID
go to slot ID, nothing is appended or reordered.

Positions live in a single (N, 3) float64 array. Radio and mobility
parameters are opaque to the tick pipeline; they are carried so they can
be handed to the collaborators unchanged.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterator

import numpy as np

from manetsim.core.errors import UnknownNodeID

if TYPE_CHECKING:
    from manetsim.core.snapshot import Snapshot


@dataclass(frozen=True)
class RadioParams:
    """Physical-layer parameters of one node's radio."""

    frequency: float = 2.4e9    # Hz
    bit_rate: float = 5.0e7     # bit/s
    modulation: str = "BPSK"
    bandwidth: float = 2.0e7    # Hz
    m: float = 0.0              # Nakagami shape parameter
    power_dbm: float = 20.0     # Transmit power

    def to_wire(self) -> dict:
        """Field names expected by the channel model service."""
        return {
            "frequency": self.frequency,
            "bitrate": self.bit_rate,
            "modulation": self.modulation,
            "bandwidth": self.bandwidth,
            "m": self.m,
            "powerindbm": self.power_dbm,
        }


@dataclass(frozen=True)
class MobilityState:
    """Mobility-model inputs for one node, other than its position."""

    velocity: tuple[float, float, float] = (10.0, 10.0, 10.0)
    time: float = 10.0
    model: str = "RandomWalk"
    params: dict = field(default_factory=lambda: {"minspeed": 0.0, "maxspeed": 20.0})


@dataclass
class SimNode:
    """
    View of one row of the node table.

    Reading `position` returns a copy; positions are written through
    NodeTable.set_position so that the table stays the single owner.
    """

    id: int
    position: tuple[float, float, float]
    radio_range: float
    radio: RadioParams
    mobility: MobilityState


class NodeTable:
    """
    Fully pre-populated table of simulated nodes.

    Structure:
    - positions: [N, 3] float64, meters
    - radio_range: [N] float64, meters
    - radio / mobility: per-node parameter records
    """

    def __init__(
        self,
        positions: np.ndarray,
        radio_range: np.ndarray,
        radio: list[RadioParams],
        mobility: list[MobilityState],
    ):
        n = positions.shape[0]
        if positions.shape != (n, 3):
            raise ValueError(f"positions must be shaped (N, 3), got {positions.shape}")
        if radio_range.shape != (n,) or len(radio) != n or len(mobility) != n:
            raise ValueError("all node columns must have the same length")

        self.positions = positions.astype(np.float64, copy=True)
        self.radio_range = radio_range.astype(np.float64, copy=True)
        self.radio = list(radio)
        self.mobility = list(mobility)

    @classmethod
    def generate(
        cls,
        node_count: int,
        area: tuple[float, float, float] = (10_000.0, 10_000.0, 1_000.0),
        radio_range: float = 2000.0,
        radio: RadioParams | None = None,
        mobility: MobilityState | None = None,
        seed: int = 0,
    ) -> "NodeTable":
        """
        Generate a table of identical radios at uniform random positions.

        Every process that calls this with the same arguments gets the same
        table, so worker state is consistent before the first snapshot.

        Args:
            node_count: Number of nodes (IDs 0..node_count-1)
            area: Extent of the box positions are drawn from, meters
            radio_range: Neighbor radius for every node
            radio: Radio parameters shared by every node
            mobility: Mobility state shared by every node
            seed: Seed for the position generator
        """
        if node_count < 0:
            raise ValueError(f"node_count must be >= 0, got {node_count}")

        rng = np.random.default_rng(seed)
        positions = rng.uniform(0.0, 1.0, size=(node_count, 3)) * np.asarray(area)
        radio = radio if radio is not None else RadioParams()
        mobility = mobility if mobility is not None else MobilityState()
        return cls(
            positions=positions,
            radio_range=np.full(node_count, radio_range, dtype=np.float64),
            radio=[radio] * node_count,
            mobility=[mobility] * node_count,
        )

    @classmethod
    def from_positions(
        cls,
        positions,
        radio_range: float = 2000.0,
        radio: RadioParams | None = None,
    ) -> "NodeTable":
        """Build a table with the given positions and uniform radios."""
        positions = np.asarray(positions, dtype=np.float64).reshape(-1, 3)
        n = positions.shape[0]
        radio = radio if radio is not None else RadioParams()
        return cls(
            positions=positions,
            radio_range=np.full(n, radio_range, dtype=np.float64),
            radio=[radio] * n,
            mobility=[MobilityState()] * n,
        )

    def __len__(self) -> int:
        return self.positions.shape[0]

    def __contains__(self, node_id: int) -> bool:
        return 0 <= node_id < len(self)

    def __getitem__(self, node_id: int) -> SimNode:
        if node_id not in self:
            raise UnknownNodeID([node_id], len(self))
        return SimNode(
            id=node_id,
            position=self.position_of(node_id),
            radio_range=float(self.radio_range[node_id]),
            radio=self.radio[node_id],
            mobility=self.mobility[node_id],
        )

    def __iter__(self) -> Iterator[SimNode]:
        for node_id in range(len(self)):
            yield self[node_id]

    def position_of(self, node_id: int) -> tuple[float, float, float]:
        x, y, z = self.positions[node_id]
        return float(x), float(y), float(z)

    def set_position(self, node_id: int, position) -> None:
        """Overwrite one node's position in place."""
        if node_id not in self:
            raise UnknownNodeID([node_id], len(self))
        self.positions[node_id] = position

    def apply(self, snapshot: "Snapshot") -> None:
        """
        Overwrite positions from a snapshot.

        Every ID is validated before anything is written, so an unknown ID
        leaves the table untouched. Radio parameters, ranges and mobility
        state are never modified. Applying the same snapshot twice gives
        the same state as applying it once.

        Raises:
            UnknownNodeID: if any snapshot ID is outside [0, len(self))
        """
        if len(snapshot) == 0:
            return

        # Checked on the Python ints: an ID beyond int64 must still be reported
        unknown = {p.id for p in snapshot if p.id not in self}
        if unknown:
            raise UnknownNodeID(sorted(unknown), len(self))

        self.positions[snapshot.ids()] = snapshot.coordinates()

    def to_snapshot(self) -> "Snapshot":
        """Snapshot of every node's current position, in ID order."""
        from manetsim.core.snapshot import Snapshot

        return Snapshot.from_arrays(np.arange(len(self)), self.positions)

    def copy(self) -> "NodeTable":
        """Independent copy; a worker takes one as its private table."""
        return NodeTable(self.positions, self.radio_range, self.radio, self.mobility)
