"""
Clients for external collaborators.

- ServiceRegistry: Consul lookup of collaborator endpoints
- MobilityClient: next position for a node
- ChannelClient: link evaluation for a discovered pair
"""

from manetsim.services.channel import CHANNEL_SERVICE, ChannelClient, ChannelModel, LinkRequest
from manetsim.services.mobility import MOBILITY_SERVICE, MobilityClient, MobilityModel
from manetsim.services.registry import ServiceEntry, ServiceRegistry

__all__ = [
    "CHANNEL_SERVICE",
    "ChannelClient",
    "ChannelModel",
    "LinkRequest",
    "MOBILITY_SERVICE",
    "MobilityClient",
    "MobilityModel",
    "ServiceEntry",
    "ServiceRegistry",
]
