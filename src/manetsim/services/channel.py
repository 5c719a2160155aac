"""
Channel model collaborator.

For each discovered pair the worker asks the channel service to compute
the link's physical-layer metrics. The response is not consumed here;
only whether the call succeeded matters.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from manetsim.services.http import DEFAULT_TIMEOUT, new_session, post_json, xyz

if TYPE_CHECKING:
    from manetsim.core.nodes import RadioParams
    from manetsim.services.registry import ServiceEntry, ServiceRegistry

CHANNEL_SERVICE = "Default_ChannelModel"


@dataclass(frozen=True)
class LinkRequest:
    """Everything the channel model needs for one directed link."""

    link_id: int
    tx: "RadioParams"
    rx: "RadioParams"
    tx_position: tuple[float, float, float]
    rx_position: tuple[float, float, float]


class ChannelModel(Protocol):
    """Anything that can evaluate a link."""

    def evaluate_link(self, link: LinkRequest) -> None:
        """
        Evaluate one link.

        Raises:
            CollaboratorUnavailable: if the call failed
        """
        ...


class ChannelClient:
    """HTTP client for POST {endpoint}/model."""

    def __init__(
        self,
        endpoint: "ServiceEntry",
        large_scale_model: str = "FreeSpacePathLossModel",
        small_scale_model: str = "NakagamiFadingModel",
        session=None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.endpoint = endpoint
        self.large_scale_model = large_scale_model
        self.small_scale_model = small_scale_model
        self.session = session if session is not None else new_session()
        self.timeout = timeout

    @classmethod
    def from_registry(
        cls,
        registry: "ServiceRegistry",
        service_name: str = CHANNEL_SERVICE,
        **kwargs,
    ) -> "ChannelClient":
        kwargs.setdefault("session", registry.session)
        return cls(registry.resolve(service_name), **kwargs)

    def request_body(self, link: LinkRequest) -> dict:
        return {
            "linkid": link.link_id,
            "txnode": link.tx.to_wire(),
            "rxnode": link.rx.to_wire(),
            "txposition": xyz(link.tx_position),
            "rxposition": xyz(link.rx_position),
            "model": {
                "largescalemodel": self.large_scale_model,
                "smallscalemodel": self.small_scale_model,
            },
        }

    def evaluate_link(self, link: LinkRequest) -> None:
        post_json(
            self.session, CHANNEL_SERVICE, self.endpoint.url("model"),
            self.request_body(link), timeout=self.timeout, parse=False,
        )
