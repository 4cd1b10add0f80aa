"""Depth integration configuration."""

from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Dict, Any, Union

import yaml


@dataclass
class IntegrationConfig:
    """Settings for a single integration call.

    Passed explicitly to the integrator so calls with different settings do
    not influence each other.
    """
    # Rolling shutter: one pose per line using the camera's line delay.
    # Works for pinhole depth maps (line: row) and lidar depth images (line: column).
    enable_rolling_shutter_compensation: bool = True

    # Added once to every sensor resource timestamp (resource clock -> IMU clock)
    timestamp_shift_ns: int = 0

    # Cancellation
    enable_cancellation: bool = True

    # Progress
    show_progress: bool = True
    progress_update_every_n_vertices: int = 20

    def __post_init__(self):
        if isinstance(self.timestamp_shift_ns, bool) or not isinstance(self.timestamp_shift_ns, int):
            raise TypeError(
                f"timestamp_shift_ns must be an integer number of nanoseconds, "
                f"got {self.timestamp_shift_ns!r}"
            )
        if self.progress_update_every_n_vertices < 1:
            raise ValueError("progress_update_every_n_vertices must be >= 1")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "IntegrationConfig":
        valid_keys = set(cls.__dataclass_fields__)
        filtered = {k: v for k, v in d.items() if k in valid_keys}
        return cls(**filtered)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "IntegrationConfig":
        """Load from a YAML file; a top-level `depth_integration` section is used if present."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{path}: expected a mapping, got {type(data).__name__}")
        section = data.get("depth_integration", data)
        if section is None:
            section = {}
        if not isinstance(section, dict):
            raise ValueError(f"{path}: expected a mapping under depth_integration, got {type(section).__name__}")
        return cls.from_dict(section)

    def to_yaml(self, path: Union[str, Path]) -> None:
        with open(path, "w") as f:
            yaml.safe_dump({"depth_integration": self.to_dict()}, f, sort_keys=False)
