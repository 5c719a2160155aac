"""
Transport between controller and workers.

- Broker: one named task queue per worker plus the completion channel
- Task: snapshot message envelope
"""

from manetsim.transport.broker import TYPE_SNAPSHOT_DELIVERY, Broker, Subscription, Task, queue_name

__all__ = ["TYPE_SNAPSHOT_DELIVERY", "Broker", "Subscription", "Task", "queue_name"]
