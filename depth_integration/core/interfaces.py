"""Read-only collaborator interfaces consumed by the integrator.

Any map backend can be integrated as long as it provides these queries;
`InMemoryMap` and `VertexPoseInterpolator` are the bundled implementations.
"""

from typing import Dict, Hashable, List, Optional, Protocol, Tuple

import numpy as np
import torch

from .types import Mission, ResourceType, TemporalResourceBuffer, Vertex


class MapQuery(Protocol):
    def get_mission(self, mission_id: Hashable) -> Mission:  # pragma: no cover
        ...

    def get_vertex(self, vertex_id: Hashable) -> Vertex:  # pragma: no cover
        ...

    def get_vertex_ids_along_graph(self, mission_id: Hashable) -> List[Hashable]:  # pragma: no cover
        ...

    def get_sensor_resource_buffers(
        self, mission_id: Hashable, resource_type: ResourceType
    ) -> Optional[Dict[Hashable, TemporalResourceBuffer]]:  # pragma: no cover
        ...


class SensorQuery(Protocol):
    def get_sensor(self, sensor_id: Hashable) -> object:  # pragma: no cover
        """Sensor object; depth sensors are `CameraRig` instances."""
        ...

    def get_T_B_S(self, sensor_id: Hashable) -> torch.Tensor:  # pragma: no cover
        """Sensor pose in the body (IMU) frame."""
        ...


class ResourceQuery(Protocol):
    def get_frame_resource(
        self, vertex: Vertex, frame_idx: int, resource_type: ResourceType
    ) -> Optional[np.ndarray]:  # pragma: no cover
        ...

    def get_sensor_resource(
        self, mission: Mission, resource_type: ResourceType, sensor_id: Hashable, timestamp_ns: int
    ) -> Optional[np.ndarray]:  # pragma: no cover
        ...


class VIMapQuery(MapQuery, SensorQuery, ResourceQuery, Protocol):
    """Everything the integrator asks of a map."""


class PoseInterpolator(Protocol):
    def get_vertex_time_map(
        self, mission_id: Hashable
    ) -> Tuple[Dict[Hashable, int], int, int]:  # pragma: no cover
        """Vertex timestamps plus min/max interpolable time; empty map if no data."""
        ...

    def get_poses_at_time(
        self, mission_id: Hashable, timestamps_ns: torch.Tensor
    ) -> torch.Tensor:  # pragma: no cover
        """[N, 4, 4] body poses in mission frame at the given int64 timestamps."""
        ...


__all__ = [
    "MapQuery",
    "SensorQuery",
    "ResourceQuery",
    "VIMapQuery",
    "PoseInterpolator",
]
