"""
Service registry lookup (Consul health API).

Collaborator endpoints are resolved once per process at startup. The
first healthy entry wins.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass

from manetsim.core.errors import CollaboratorUnavailable
from manetsim.services.http import DEFAULT_TIMEOUT, get_json, new_session

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServiceEntry:
    """Network location of one service instance."""

    address: str
    port: int

    def url(self, path: str) -> str:
        return f"http://{self.address}:{self.port}/{path.lstrip('/')}"


class ServiceRegistry:
    """Client for Consul's /v1/health/service endpoint."""

    def __init__(
        self,
        address: str = "127.0.0.1:8500",
        session=None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.address = address
        self.session = session if session is not None else new_session()
        self.timeout = timeout

    def lookup(self, service_name: str) -> list[ServiceEntry]:
        """
        List the passing instances of a service.

        Raises:
            CollaboratorUnavailable: if the registry cannot be reached or
                returns something other than a list of entries
        """
        url = f"http://{self.address}/v1/health/service/{service_name}"
        body = get_json(
            self.session, "registry", url,
            params={"passing": "true"}, timeout=self.timeout,
        )
        if not isinstance(body, list):
            raise CollaboratorUnavailable("registry", "health response is not a list")

        entries = []
        for item in body:
            try:
                service = item["Service"]
                # Consul leaves Service.Address empty when it equals the node address
                address = service.get("Address") or item["Node"]["Address"]
                entries.append(ServiceEntry(address, int(service["Port"])))
            except (KeyError, TypeError, ValueError):
                logger.warning("skipping malformed registry entry for %s", service_name)
        return entries

    def resolve(self, service_name: str) -> ServiceEntry:
        """
        First healthy instance of a service.

        Raises:
            CollaboratorUnavailable: if the lookup fails or finds nothing
        """
        entries = self.lookup(service_name)
        if not entries:
            raise CollaboratorUnavailable(service_name, "no healthy instances registered")
        entry = entries[0]
        logger.info("resolved %s -> %s:%d", service_name, entry.address, entry.port)
        return entry
