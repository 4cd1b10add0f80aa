"""Map data model: resource types, cameras, rigs, vertices and missions."""

import bisect
import enum
from dataclasses import dataclass, field
from typing import Dict, Hashable, Iterator, List, Optional, Sequence, Tuple

import numpy as np
import torch

from .geometry import as_transform


class ResourceType(enum.Enum):
    RAW_IMAGE = "raw_image"
    RAW_DEPTH_MAP = "raw_depth_map"
    OPTIMIZED_DEPTH_MAP = "optimized_depth_map"
    IMAGE_FOR_DEPTH_MAP = "image_for_depth_map"
    COLOR_IMAGE_FOR_DEPTH_MAP = "color_image_for_depth_map"


SUPPORTED_DEPTH_MAP_INPUT_TYPES = frozenset({
    ResourceType.RAW_DEPTH_MAP,
    ResourceType.OPTIMIZED_DEPTH_MAP,
})


@dataclass(frozen=True)
class Camera:
    """Camera model handed to the integration callback.

    A line is a row for pinhole cameras and a column for 3D lidars rendered
    as depth images; `line_delay_ns` is the exposure offset between two
    consecutive lines.
    """
    camera_id: Hashable
    num_lines: int = 1
    line_delay_ns: int = 0
    intrinsics: Optional[np.ndarray] = field(default=None, compare=False)
    image_size: Optional[Tuple[int, int]] = None

    def __post_init__(self):
        if self.num_lines < 1:
            raise ValueError(f"Camera {self.camera_id} needs at least one line, got {self.num_lines}")


class CameraRig:
    """Ordered set of cameras rigidly mounted on a rig (NCamera).

    Each camera carries `T_C_B`, the transform from the rig frame into the
    camera frame.
    """

    def __init__(self, rig_id: Hashable, cameras: Sequence[Camera], T_C_B: Sequence):
        if len(cameras) != len(T_C_B):
            raise ValueError(
                f"Rig {rig_id}: {len(cameras)} cameras but {len(T_C_B)} extrinsics"
            )
        self.rig_id = rig_id
        self._cameras = list(cameras)
        self._T_C_B = [as_transform(T) for T in T_C_B]

    @property
    def num_cameras(self) -> int:
        return len(self._cameras)

    def get_camera(self, idx: int) -> Camera:
        return self._cameras[idx]

    def get_T_C_B(self, idx: int) -> torch.Tensor:
        return self._T_C_B[idx]

    def __repr__(self) -> str:
        return f"CameraRig(rig_id={self.rig_id!r}, num_cameras={self.num_cameras})"


@dataclass
class Vertex:
    """Pose-graph vertex: body pose in mission frame plus attached frames."""
    vertex_id: Hashable
    T_M_I: torch.Tensor
    num_frames: int = 0
    timestamp_ns: Optional[int] = None

    def __post_init__(self):
        self.T_M_I = as_transform(self.T_M_I)


class TemporalResourceBuffer:
    """Resource ids of one sensor and one type, ordered by capture timestamp."""

    def __init__(self, entries: Optional[Sequence[Tuple[int, Hashable]]] = None):
        self._timestamps: List[int] = []
        self._resource_ids: List[Hashable] = []
        for timestamp_ns, resource_id in entries or ():
            self.add(timestamp_ns, resource_id)

    def add(self, timestamp_ns: int, resource_id: Hashable) -> None:
        timestamp_ns = int(timestamp_ns)
        idx = bisect.bisect_left(self._timestamps, timestamp_ns)
        if idx < len(self._timestamps) and self._timestamps[idx] == timestamp_ns:
            raise ValueError(f"Buffer already holds a resource at {timestamp_ns}ns")
        self._timestamps.insert(idx, timestamp_ns)
        self._resource_ids.insert(idx, resource_id)

    def timestamps(self) -> List[int]:
        return list(self._timestamps)

    def __len__(self) -> int:
        return len(self._timestamps)

    def __iter__(self) -> Iterator[Tuple[int, Hashable]]:
        return iter(zip(self._timestamps, self._resource_ids))


@dataclass
class Mission:
    """One recording session.

    Attributes:
        mission_id: identifier
        T_G_M: mission base frame expressed in the global frame
        ncamera_id: sensor id of the camera rig bound to vertex frames
        vertex_ids: vertices in pose-graph order
        sensor_resources: per type, per sensor resource buffers
    """
    mission_id: Hashable
    T_G_M: torch.Tensor = field(default_factory=lambda: torch.eye(4, dtype=torch.float64))
    ncamera_id: Optional[Hashable] = None
    vertex_ids: List[Hashable] = field(default_factory=list)
    sensor_resources: Dict[ResourceType, Dict[Hashable, TemporalResourceBuffer]] = field(
        default_factory=dict
    )

    def __post_init__(self):
        self.T_G_M = as_transform(self.T_G_M)

    @property
    def has_ncamera(self) -> bool:
        return self.ncamera_id is not None
