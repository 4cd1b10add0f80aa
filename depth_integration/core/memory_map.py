"""In-memory map holding missions, vertices, sensors and resources."""

from typing import Dict, Hashable, List, Optional, Tuple

import numpy as np
import torch

from .geometry import as_transform
from .types import Mission, ResourceType, TemporalResourceBuffer, Vertex


class InMemoryMap:
    """Map backend for embedding and tests; implements `VIMapQuery`.

    Example:
        vi_map = InMemoryMap()
        vi_map.add_sensor("rig", rig, T_B_S=np.eye(4))
        vi_map.add_mission(Mission("m0", ncamera_id="rig"))
        vi_map.add_vertex("m0", Vertex("v0", np.eye(4), num_frames=1, timestamp_ns=0))
        vi_map.add_frame_resource("v0", 0, ResourceType.RAW_DEPTH_MAP, depth)
    """

    def __init__(self):
        self._missions: Dict[Hashable, Mission] = {}
        self._vertices: Dict[Hashable, Vertex] = {}
        self._sensors: Dict[Hashable, object] = {}
        self._T_B_S: Dict[Hashable, torch.Tensor] = {}
        self._frame_resources: Dict[Tuple[Hashable, int, ResourceType], np.ndarray] = {}
        self._sensor_resources: Dict[Tuple[Hashable, ResourceType, Hashable, int], np.ndarray] = {}

    # Building

    def add_mission(self, mission: Mission) -> Mission:
        if mission.mission_id in self._missions:
            raise ValueError(f"Mission {mission.mission_id} already exists")
        self._missions[mission.mission_id] = mission
        return mission

    def add_vertex(self, mission_id: Hashable, vertex: Vertex) -> Vertex:
        if vertex.vertex_id in self._vertices:
            raise ValueError(f"Vertex {vertex.vertex_id} already exists")
        self._missions[mission_id].vertex_ids.append(vertex.vertex_id)
        self._vertices[vertex.vertex_id] = vertex
        return vertex

    def add_sensor(self, sensor_id: Hashable, sensor: object, T_B_S=None) -> None:
        self._sensors[sensor_id] = sensor
        self._T_B_S[sensor_id] = (
            as_transform(T_B_S) if T_B_S is not None else torch.eye(4, dtype=torch.float64)
        )

    def add_frame_resource(
        self, vertex_id: Hashable, frame_idx: int, resource_type: ResourceType, data: np.ndarray
    ) -> None:
        self._frame_resources[(vertex_id, frame_idx, resource_type)] = data

    def add_sensor_resource(
        self,
        mission_id: Hashable,
        resource_type: ResourceType,
        sensor_id: Hashable,
        timestamp_ns: int,
        data: np.ndarray,
    ) -> None:
        """Store a sensor resource and register it in the mission's resource buffer."""
        timestamp_ns = int(timestamp_ns)
        mission = self._missions[mission_id]
        buffers = mission.sensor_resources.setdefault(resource_type, {})
        buffer = buffers.setdefault(sensor_id, TemporalResourceBuffer())
        buffer.add(timestamp_ns, (sensor_id, resource_type.value, timestamp_ns))
        self._sensor_resources[(mission_id, resource_type, sensor_id, timestamp_ns)] = data

    # MapQuery

    def get_mission(self, mission_id: Hashable) -> Mission:
        return self._missions[mission_id]

    def get_mission_ids(self) -> List[Hashable]:
        return list(self._missions)

    def get_vertex(self, vertex_id: Hashable) -> Vertex:
        return self._vertices[vertex_id]

    def get_vertex_ids_along_graph(self, mission_id: Hashable) -> List[Hashable]:
        return list(self._missions[mission_id].vertex_ids)

    def get_sensor_resource_buffers(
        self, mission_id: Hashable, resource_type: ResourceType
    ) -> Optional[Dict[Hashable, TemporalResourceBuffer]]:
        return self._missions[mission_id].sensor_resources.get(resource_type)

    # SensorQuery

    def get_sensor(self, sensor_id: Hashable) -> object:
        return self._sensors[sensor_id]

    def get_T_B_S(self, sensor_id: Hashable) -> torch.Tensor:
        return self._T_B_S[sensor_id]

    # ResourceQuery

    def get_frame_resource(
        self, vertex: Vertex, frame_idx: int, resource_type: ResourceType
    ) -> Optional[np.ndarray]:
        return self._frame_resources.get((vertex.vertex_id, frame_idx, resource_type))

    def get_sensor_resource(
        self, mission: Mission, resource_type: ResourceType, sensor_id: Hashable, timestamp_ns: int
    ) -> Optional[np.ndarray]:
        return self._sensor_resources.get((mission.mission_id, resource_type, sensor_id, int(timestamp_ns)))
