"""Capture-time correction: clock shift, rolling shutter lines, window clamping."""

from dataclasses import dataclass, field
from typing import Dict, Hashable, Sequence

import torch

from .types import Camera


@dataclass(frozen=True)
class TrajectoryWindow:
    """Time range [min_ns, max_ns] over which poses can be interpolated."""
    min_ns: int
    max_ns: int
    vertex_to_time: Dict[Hashable, int] = field(default_factory=dict, compare=False, repr=False)

    def __post_init__(self):
        if self.min_ns > self.max_ns:
            raise ValueError(f"Empty trajectory window [{self.min_ns}, {self.max_ns}]")

    def contains(self, timestamp_ns: int) -> bool:
        return self.min_ns <= timestamp_ns <= self.max_ns


@dataclass(frozen=True)
class RollingShutter:
    """Lines per depth map and the delay between consecutive lines."""
    num_lines: int = 1
    line_delay_ns: int = 0

    def __post_init__(self):
        if self.num_lines < 1:
            raise ValueError(f"num_lines must be >= 1, got {self.num_lines}")

    @property
    def is_rolling_shutter(self) -> bool:
        return self.num_lines > 1


def rolling_shutter_for(camera: Camera, enabled: bool = True) -> RollingShutter:
    """Rolling shutter parameters of a camera; a single global-shutter line if disabled."""
    if not enabled:
        return RollingShutter()
    return RollingShutter(num_lines=int(camera.num_lines), line_delay_ns=int(camera.line_delay_ns))


def line_time_offsets(num_lines: int, line_delay_ns: int) -> torch.Tensor:
    """Time offset of every line relative to the first: dt(i) = i * line_delay."""
    if num_lines < 1:
        raise ValueError(f"num_lines must be >= 1, got {num_lines}")
    return torch.arange(num_lines, dtype=torch.int64) * int(line_delay_ns)


def correct_timestamps(
    base_ns: int,
    shift_ns: int,
    num_lines: int,
    line_delay_ns: int,
    min_ns: int,
    max_ns: int,
) -> torch.Tensor:
    """Per-line capture times of one resource, clamped into [min_ns, max_ns].

    Clamping only keeps interpolation well defined; it says nothing about
    whether the resource lies inside the window.
    """
    t = int(base_ns) + int(shift_ns) + line_time_offsets(num_lines, line_delay_ns)
    return t.clamp(min=int(min_ns), max=int(max_ns))


def build_timestamp_batch(
    base_timestamps: Sequence[int],
    shift_ns: int,
    rolling_shutter: RollingShutter,
    window: TrajectoryWindow,
) -> torch.Tensor:
    """Corrected timestamps of all resources of a sensor, flattened.

    Returns:
        int64 tensor [N * L], resource-major: entries [k*L, (k+1)*L) belong to
        resource k.
    """
    base = torch.tensor([int(t) for t in base_timestamps], dtype=torch.int64).view(-1, 1)
    offsets = line_time_offsets(rolling_shutter.num_lines, rolling_shutter.line_delay_ns)
    t = base + int(shift_ns) + offsets.view(1, -1)
    return t.clamp(min=window.min_ns, max=window.max_ns).reshape(-1)
