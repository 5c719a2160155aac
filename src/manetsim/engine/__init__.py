"""
Tick engine: the controller and worker roles and the process bootstrap.

- TickController: mobility refresh, snapshot dispatch, barrier wait
- TickWorker: snapshot ingest, discovery over a shard, completion signal
- run_tick: spawn workers and drive one tick
"""

from manetsim.engine.controller import TickController, TickResult
from manetsim.engine.worker import TickWorker, WorkerReport

__all__ = ["TickController", "TickResult", "TickWorker", "WorkerReport"]
