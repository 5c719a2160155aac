"""
Pytest configuration and shared fixtures.
"""

import queue

import pytest
import numpy as np

from manetsim.core.errors import CollaboratorUnavailable


# Four nodes in two well-separated pairs: {0, 1} and {2, 3} are in range
LINE_POSITIONS = [
    (0.0, 0.0, 0.0),
    (1.0, 0.0, 0.0),
    (10.0, 0.0, 0.0),
    (11.0, 0.0, 0.0),
]


@pytest.fixture
def rng():
    """Reproducible random number generator."""
    return np.random.default_rng(seed=42)


@pytest.fixture
def line_table():
    """The four-node table with radio range 2."""
    from manetsim.core.nodes import NodeTable
    return NodeTable.from_positions(LINE_POSITIONS, radio_range=2.0)


@pytest.fixture
def small_config():
    """Configuration for a small 20-node, 2-worker tick."""
    from manetsim.config import SimulationConfig
    return SimulationConfig(node_num=20, worker_num=2, radio_range=3000.0, seed=7)


# ═══════════════════════════════════════════════════════════════
# COLLABORATOR FAKES
# ═══════════════════════════════════════════════════════════════


class StaticMobility:
    """Mobility model that leaves every node where it is."""

    def __init__(self):
        self.calls = 0

    def request_next_position(self, node):
        self.calls += 1
        return node.position


class ShiftMobility:
    """Mobility model that moves every node by a fixed offset."""

    def __init__(self, offset=(1.0, 0.0, 0.0), failing=()):
        self.offset = offset
        self.failing = set(failing)

    def request_next_position(self, node):
        if node.id in self.failing:
            raise CollaboratorUnavailable("Default_MobilityModel", "connection refused")
        return tuple(p + o for p, o in zip(node.position, self.offset))


class RecordingChannel:
    """Channel model that records every link it is asked to evaluate."""

    def __init__(self, failing_links=()):
        self.links = []
        self.failing_links = set(failing_links)

    def evaluate_link(self, link):
        if link.link_id in self.failing_links:
            raise CollaboratorUnavailable("Default_ChannelModel", "503")
        self.links.append(link)


class ListSignalSource:
    """Signal source backed by a list; raises queue.Empty when exhausted."""

    def __init__(self, signals):
        self.signals = list(signals)
        self.taken = 0

    def get(self, timeout=None):
        if not self.signals:
            raise queue.Empty
        self.taken += 1
        return self.signals.pop(0)


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, status_code=200, body=None, invalid_json=False):
        self.status_code = status_code
        self._body = body
        self._invalid = invalid_json

    def json(self):
        if self._invalid:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._body


class FakeSession:
    """
    Minimal stand-in for requests.Session.

    `handler(method, url, payload)` returns a FakeResponse or raises.
    """

    def __init__(self, handler):
        self.handler = handler
        self.calls = []

    def post(self, url, json=None, timeout=None):
        self.calls.append(("POST", url, json))
        return self.handler("POST", url, json)

    def get(self, url, params=None, timeout=None):
        self.calls.append(("GET", url, params))
        return self.handler("GET", url, params)


@pytest.fixture
def recording_channel():
    return RecordingChannel()
