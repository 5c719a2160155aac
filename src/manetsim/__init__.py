"""
manetsim: distributed tick pipeline for mobile wireless network simulation.

One tick:
- The controller refreshes node positions through the mobility model
- A snapshot of every position is broadcast to each worker's queue
- Each worker builds a k-d tree and discovers in-range pairs for its shard
- Every discovered pair is handed to the channel model
- Workers signal completion; the controller's barrier releases the tick

Mobility and channel physics live in external services.
"""

__version__ = "0.1.0"
