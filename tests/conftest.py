"""Shared map fixtures."""

import math

import numpy as np
import pytest

from depth_integration.core import (
    Camera,
    CameraRig,
    InMemoryMap,
    IntegrationConfig,
    Mission,
    ResourceType,
    Vertex,
    make_transform,
)

NS = 1_000_000_000


def rot_z(angle: float) -> np.ndarray:
    c, s = math.cos(angle), math.sin(angle)
    return np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])


def rot_x(angle: float) -> np.ndarray:
    c, s = math.cos(angle), math.sin(angle)
    return np.array([[1.0, 0.0, 0.0], [0.0, c, -s], [0.0, s, c]])


def depth_image(value: float = 1.0, shape=(4, 6)) -> np.ndarray:
    return np.full(shape, value, dtype=np.float32)


@pytest.fixture
def quiet_config():
    return IntegrationConfig(show_progress=False)


@pytest.fixture
def T_G_M():
    return make_transform(rot_z(0.4), [10.0, -3.0, 1.5])


@pytest.fixture
def T_B_Cn():
    return make_transform(rot_x(-0.5), [0.2, 0.0, 0.1])


@pytest.fixture
def T_C_Cn():
    return make_transform(rot_z(1.1) @ rot_x(0.3), [0.05, 0.02, -0.03])


@pytest.fixture
def frame_map(T_G_M, T_B_Cn, T_C_Cn):
    """One mission with three vertices, one frame each, all carrying a raw depth map."""
    vi_map = InMemoryMap()
    rig = CameraRig("ncam", [Camera("cam0")], [T_C_Cn])
    vi_map.add_sensor("ncam", rig, T_B_S=T_B_Cn)
    vi_map.add_mission(Mission("m0", T_G_M=T_G_M, ncamera_id="ncam"))
    for i in range(3):
        T_M_I = make_transform(rot_z(0.2 * i), [float(i), 0.5 * i, 0.0])
        vi_map.add_vertex("m0", Vertex(f"v{i}", T_M_I, num_frames=1, timestamp_ns=i * NS))
        vi_map.add_frame_resource(f"v{i}", 0, ResourceType.RAW_DEPTH_MAP, depth_image(float(i)))
    return vi_map


def add_sensor_mission(
    vi_map: InMemoryMap,
    mission_id="m0",
    sensor_id="lidar",
    num_lines: int = 1,
    line_delay_ns: int = 0,
    velocity=(1.0, 2.0, 0.0),
    num_vertices: int = 11,
    resource_timestamps=(2 * NS, 5 * NS),
    T_G_M=None,
    T_B_S=None,
    T_C_B=None,
):
    """Mission moving at constant velocity with vertices every second from t=0."""
    camera = Camera(f"{sensor_id}_cam", num_lines=num_lines, line_delay_ns=line_delay_ns)
    rig = CameraRig(sensor_id, [camera], [T_C_B if T_C_B is not None else np.eye(4)])
    vi_map.add_sensor(sensor_id, rig, T_B_S=T_B_S)
    vi_map.add_mission(Mission(mission_id, T_G_M=T_G_M if T_G_M is not None else np.eye(4)))
    v = np.asarray(velocity, dtype=np.float64)
    for i in range(num_vertices):
        vertex = Vertex(f"{mission_id}_v{i}", make_transform(t=v * i), num_frames=0, timestamp_ns=i * NS)
        vi_map.add_vertex(mission_id, vertex)
    for timestamp_ns in resource_timestamps:
        vi_map.add_sensor_resource(mission_id, ResourceType.RAW_DEPTH_MAP, sensor_id, timestamp_ns,
                                   depth_image(timestamp_ns / NS))
    return camera


class Recorder:
    """Integration callback that records every call."""

    def __init__(self, on_call=None):
        self.calls = []
        self.on_call = on_call

    def __call__(self, poses, depth_map, intensities, camera):
        self.calls.append((poses.clone(), depth_map, intensities, camera))
        if self.on_call is not None:
            self.on_call(len(self.calls))
