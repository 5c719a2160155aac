"""
Broker: named task queues plus the shared completion channel.

Every worker reads its own named queue ("queue1", "queue2", ...). The
controller is the only producer on those queues. The completion channel is
the reverse direction: every worker publishes to it, only the controller
consumes.

The queues are multiprocessing queues, so a Broker created in the parent
can be handed to worker processes at spawn time. Everything crossing the
broker is a value (Task, CompletionSignal); no state is shared by
reference.
"""

from __future__ import annotations
import logging
import multiprocessing as mp
import queue
from dataclasses import dataclass

from manetsim.core.barrier import CompletionSignal
from manetsim.core.errors import DispatchFailure

logger = logging.getLogger(__name__)

TYPE_SNAPSHOT_DELIVERY = "kdtree:delivery"


@dataclass(frozen=True)
class Task:
    """Message placed on a worker queue."""

    type: str
    tick: int
    payload: bytes


def queue_name(worker_index: int) -> str:
    """Queue name for a 0-based worker index."""
    return f"queue{worker_index + 1}"


class Subscription:
    """Controller-side handle on the completion channel."""

    def __init__(self, channel: "mp.Queue"):
        self._channel = channel
        self.received = 0

    def get(self, timeout: float | None = None) -> CompletionSignal:
        """Next signal; raises queue.Empty if `timeout` elapses."""
        signal = self._channel.get(timeout=timeout)
        self.received += 1
        return signal


class Broker:
    """
    Per-worker task queues and one completion channel.

    Structure:
    - queues: {queue_name: Queue[Task]}
    - completion: Queue[CompletionSignal]
    """

    def __init__(self, queues: dict[str, "mp.Queue"], completion: "mp.Queue"):
        self.queues = queues
        self.completion = completion

    @classmethod
    def create(cls, worker_count: int, ctx=None) -> "Broker":
        """
        Create queues for `worker_count` workers.

        Args:
            worker_count: Number of worker queues
            ctx: multiprocessing context (default context if None)
        """
        if worker_count < 1:
            raise ValueError(f"worker_count must be >= 1, got {worker_count}")
        ctx = ctx if ctx is not None else mp.get_context()
        queues = {queue_name(i): ctx.Queue() for i in range(worker_count)}
        return cls(queues, ctx.Queue())

    @property
    def worker_count(self) -> int:
        return len(self.queues)

    def enqueue(self, name: str, task: Task, timeout: float | None = None) -> None:
        """
        Put a task on a named queue.

        Raises:
            DispatchFailure: unknown queue, closed queue, or full queue
        """
        q = self.queues.get(name)
        if q is None:
            raise DispatchFailure(name, "no such queue")
        try:
            q.put(task, timeout=timeout)
        except queue.Full as e:
            raise DispatchFailure(name, "queue is full") from e
        except (ValueError, OSError) as e:
            raise DispatchFailure(name, str(e)) from e
        logger.debug("enqueued %s tick=%d on %s", task.type, task.tick, name)

    def dequeue(self, name: str, timeout: float | None = None) -> Task:
        """Next task from a named queue; raises queue.Empty on timeout."""
        return self.queues[name].get(timeout=timeout)

    def publish(self, signal: CompletionSignal) -> None:
        """Publish a completion signal."""
        self.completion.put(signal)

    def subscribe(self) -> Subscription:
        return Subscription(self.completion)

    def close(self) -> None:
        """Close every queue in this process."""
        for q in (*self.queues.values(), self.completion):
            q.close()
