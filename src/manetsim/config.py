"""
Simulation configuration.

A single YAML file is shared by the controller and every worker, so the
barrier target and the dispatch fan-out come from the same `worker_num`.
Keys are snake_case field names; the legacy `NodeNum` / `WorkerNum` keys
are accepted as aliases.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field, fields
from pathlib import Path

import yaml

LOG_FORMAT = "%(asctime)s %(processName)s %(name)s %(levelname)s %(message)s"

_ALIASES = {
    "NodeNum": "node_num",
    "WorkerNum": "worker_num",
}


@dataclass
class SimulationConfig:
    """Configuration for one distributed tick."""

    node_num: int = 100    # Nodes in the table (IDs 0..node_num-1)
    worker_num: int = 2    # Worker processes = queues = barrier target

    # Initial state. Every process generates the same table from `seed`.
    seed: int = 0
    area: tuple[float, float, float] = (10_000.0, 10_000.0, 1_000.0)  # meters
    radio_range: float = 2000.0  # meters

    # Collaborators
    consul_address: str = "127.0.0.1:8500"
    mobility_service: str = "Default_MobilityModel"
    channel_service: str = "Default_ChannelModel"
    large_scale_model: str = "FreeSpacePathLossModel"
    small_scale_model: str = "NakagamiFadingModel"
    request_timeout: float = 5.0  # seconds per collaborator call

    # Operator-facing timeout on the barrier; None waits forever
    barrier_timeout: float | None = None

    log_level: str = "INFO"

    # Extra mobility-model parameters passed through to the service
    mobility_params: dict = field(default_factory=lambda: {"minspeed": 0.0, "maxspeed": 20.0})

    def validate(self) -> "SimulationConfig":
        if self.node_num < 0:
            raise ValueError(f"node_num must be >= 0, got {self.node_num}")
        if self.worker_num < 1:
            raise ValueError(f"worker_num must be >= 1, got {self.worker_num}")
        if self.radio_range < 0:
            raise ValueError(f"radio_range must be >= 0, got {self.radio_range}")
        if len(self.area) != 3 or any(a <= 0 for a in self.area):
            raise ValueError(f"area must be three positive extents, got {self.area}")
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be positive")
        if self.barrier_timeout is not None and self.barrier_timeout <= 0:
            raise ValueError("barrier_timeout must be positive or null")
        return self

    @classmethod
    def from_dict(cls, data: dict) -> "SimulationConfig":
        """Build a config from a mapping, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in data.items():
            name = _ALIASES.get(key, key)
            if name not in known:
                raise ValueError(f"unknown configuration key: {key}")
            kwargs[name] = value
        if "area" in kwargs:
            kwargs["area"] = tuple(float(a) for a in kwargs["area"])
        return cls(**kwargs).validate()


def load_config(path: str | Path) -> SimulationConfig:
    """
    Load a configuration file.

    An empty file gives the defaults.

    Raises:
        FileNotFoundError: if `path` does not exist
        ValueError: on unknown keys or invalid values
    """
    path = Path(path)
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: configuration must be a mapping")
    return SimulationConfig.from_dict(data)


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once per process."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
