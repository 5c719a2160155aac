"""
Mobility model collaborator.

The mobility service computes a node's next position from its full
current state. The controller calls it once per node per tick.
"""

from __future__ import annotations
import math
from typing import TYPE_CHECKING, Protocol

from manetsim.core.errors import CollaboratorUnavailable
from manetsim.services.http import DEFAULT_TIMEOUT, new_session, post_json, xyz

if TYPE_CHECKING:
    from manetsim.core.nodes import SimNode
    from manetsim.services.registry import ServiceEntry, ServiceRegistry

MOBILITY_SERVICE = "Default_MobilityModel"


class MobilityModel(Protocol):
    """Anything that can advance a node's position."""

    def request_next_position(self, node: "SimNode") -> tuple[float, float, float]:
        """
        Return the node's next position.

        Raises:
            CollaboratorUnavailable: if no position could be obtained
        """
        ...


class MobilityClient:
    """HTTP client for POST {endpoint}/mobility."""

    def __init__(self, endpoint: "ServiceEntry", session=None, timeout: float = DEFAULT_TIMEOUT):
        self.endpoint = endpoint
        self.session = session if session is not None else new_session()
        self.timeout = timeout

    @classmethod
    def from_registry(
        cls,
        registry: "ServiceRegistry",
        service_name: str = MOBILITY_SERVICE,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> "MobilityClient":
        return cls(registry.resolve(service_name), session=registry.session, timeout=timeout)

    @staticmethod
    def request_body(node: "SimNode") -> dict:
        m = node.mobility
        return {
            "node": {
                "pos": xyz(node.position),
                "time": m.time,
                "v": xyz(m.velocity),
                "model": m.model,
                "param": dict(m.params),
                "range": node.radio_range,
            }
        }

    def request_next_position(self, node: "SimNode") -> tuple[float, float, float]:
        body = post_json(
            self.session, MOBILITY_SERVICE, self.endpoint.url("mobility"),
            self.request_body(node), timeout=self.timeout,
        )
        try:
            pos = body["node"]["pos"]
            position = float(pos["x"]), float(pos["y"]), float(pos["z"])
        except (KeyError, TypeError, ValueError, OverflowError) as e:
            raise CollaboratorUnavailable(MOBILITY_SERVICE, f"response has no position: {e!r}") from e
        if not all(math.isfinite(c) for c in position):
            raise CollaboratorUnavailable(MOBILITY_SERVICE, f"non-finite position {position}")
        return position
