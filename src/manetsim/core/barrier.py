"""
Completion barrier: how the controller learns that a tick is finished.

Each worker publishes one CompletionSignal per tick on the shared
completion channel. The controller's barrier counts distinct workers for
the current tick and releases exactly once, when the count reaches the
number of workers the snapshot was dispatched to. Arrival order does not
matter. Signals for other ticks and repeated signals from the same worker
are ignored.
"""

from __future__ import annotations
import logging
import queue
import time
from dataclasses import dataclass, field
from typing import Protocol

from manetsim.core.errors import BarrierTimeout

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompletionSignal:
    """Marker published by a worker when its shard is done."""

    worker_index: int
    tick: int


class SignalSource(Protocol):
    """Anything the barrier can pull completion signals from."""

    def get(self, timeout: float | None = None) -> CompletionSignal:
        """Block for the next signal; raise queue.Empty on timeout."""
        ...


@dataclass
class CompletionBarrier:
    """
    Per-tick counter of completion signals.

    Created at tick start with target = number of workers dispatched to,
    discarded once released.
    """

    tick: int
    target: int
    _arrived: set[int] = field(default_factory=set, init=False)
    _released: bool = field(default=False, init=False)
    release_count: int = field(default=0, init=False)

    def __post_init__(self):
        if self.target < 1:
            raise ValueError(f"barrier target must be >= 1, got {self.target}")

    @property
    def released(self) -> bool:
        return self._released

    @property
    def arrived(self) -> frozenset[int]:
        return frozenset(self._arrived)

    def missing(self) -> list[int]:
        """Worker indices that have not signalled yet."""
        return [i for i in range(self.target) if i not in self._arrived]

    def record(self, signal: CompletionSignal) -> bool:
        """
        Count one signal.

        Returns:
            True exactly once: on the signal that reaches the target
        """
        if self._released:
            return False
        if signal.tick != self.tick:
            logger.debug("ignoring completion for tick %d during tick %d", signal.tick, self.tick)
            return False
        if not 0 <= signal.worker_index < self.target:
            logger.warning("ignoring completion from unknown worker %d", signal.worker_index)
            return False
        if signal.worker_index in self._arrived:
            logger.warning("duplicate completion from worker %d for tick %d",
                           signal.worker_index, self.tick)
            return False

        self._arrived.add(signal.worker_index)
        if len(self._arrived) >= self.target:
            self._released = True
            self.release_count += 1
            return True
        return False

    def wait(self, source: SignalSource, timeout: float | None = None) -> None:
        """
        Block until the barrier releases.

        With timeout=None this waits indefinitely: a worker that never
        finishes stalls the controller.

        Raises:
            BarrierTimeout: if `timeout` seconds pass before release
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while not self._released:
            remaining = None
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise BarrierTimeout(self.tick, self.missing(), timeout)
            try:
                signal = source.get(timeout=remaining)
            except queue.Empty:
                continue
            if self.record(signal):
                logger.info("tick %d: barrier released after %d signals", self.tick, self.target)
