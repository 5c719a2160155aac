"""
Shared JSON-over-HTTP helpers for collaborator clients.

Every transport problem (connection error, timeout, non-2xx status,
unparseable body) is raised as CollaboratorUnavailable so callers have
one exception to isolate per node or per pair.
"""

from __future__ import annotations
import logging

import requests

from manetsim.core.errors import CollaboratorUnavailable

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0  # seconds


def xyz(v) -> dict:
    """Position or velocity as the {x, y, z} object the services expect."""
    return {"x": float(v[0]), "y": float(v[1]), "z": float(v[2])}


def new_session() -> requests.Session:
    session = requests.Session()
    session.headers.update({"Content-Type": "application/json"})
    return session


def _check_status(service: str, resp) -> None:
    if not 200 <= resp.status_code < 300:
        raise CollaboratorUnavailable(service, f"unexpected status code {resp.status_code}")


def post_json(
    session,
    service: str,
    url: str,
    body: dict,
    timeout: float = DEFAULT_TIMEOUT,
    parse: bool = True,
):
    """
    POST a JSON body and optionally parse the JSON response.

    Args:
        session: requests.Session (or compatible object)
        service: Name used in error messages
        url: Full request URL
        body: JSON-serializable request body
        timeout: Request timeout in seconds
        parse: Return the decoded response body when True, None otherwise
    """
    logger.debug("POST %s", url)
    try:
        resp = session.post(url, json=body, timeout=timeout)
    except requests.RequestException as e:
        raise CollaboratorUnavailable(service, str(e)) from e

    _check_status(service, resp)
    if not parse:
        return None
    try:
        return resp.json()
    except ValueError as e:
        raise CollaboratorUnavailable(service, f"invalid JSON response: {e}") from e


def get_json(
    session,
    service: str,
    url: str,
    params: dict | None = None,
    timeout: float = DEFAULT_TIMEOUT,
):
    """GET a URL and decode its JSON body."""
    try:
        resp = session.get(url, params=params, timeout=timeout)
    except requests.RequestException as e:
        raise CollaboratorUnavailable(service, str(e)) from e

    _check_status(service, resp)
    try:
        return resp.json()
    except ValueError as e:
        raise CollaboratorUnavailable(service, f"invalid JSON response: {e}") from e
