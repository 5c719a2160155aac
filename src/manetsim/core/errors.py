"""
Error taxonomy for the tick pipeline.

Two families:
- Collaborator failures (mobility, channel, registry) are isolated per
  node or per pair. The tick continues with partial results.
- Structural failures (bad IDs, malformed messages, failed dispatch) abort
  the unit of work they occur in and are surfaced to the operator.
"""

from __future__ import annotations


class ManetError(Exception):
    """Base class for all manetsim errors."""


class CollaboratorUnavailable(ManetError):
    """A registry lookup or collaborator HTTP call failed."""

    def __init__(self, service: str, reason: str):
        self.service = service
        self.reason = reason
        super().__init__(f"{service}: {reason}")


class MalformedSnapshot(ManetError):
    """A snapshot payload could not be decoded. Never retried."""


class UnknownNodeID(ManetError):
    """A snapshot references an ID outside the node table."""

    def __init__(self, node_ids: list[int], node_count: int):
        self.node_ids = node_ids
        self.node_count = node_count
        shown = ", ".join(str(i) for i in node_ids[:10])
        if len(node_ids) > 10:
            shown += ", ..."
        super().__init__(
            f"snapshot references unknown node IDs [{shown}] "
            f"(table holds {node_count} nodes)"
        )


class DispatchFailure(ManetError):
    """The controller could not enqueue a snapshot to a worker queue."""

    def __init__(self, queue_name: str, reason: str):
        self.queue_name = queue_name
        self.reason = reason
        super().__init__(f"could not enqueue to {queue_name}: {reason}")


class BarrierTimeout(ManetError):
    """The operator-facing barrier timeout elapsed before all workers finished."""

    def __init__(self, tick: int, missing: list[int], timeout: float):
        self.tick = tick
        self.missing = missing
        self.timeout = timeout
        super().__init__(
            f"tick {tick}: no completion from workers {missing} after {timeout:.1f}s"
        )
