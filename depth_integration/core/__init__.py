"""Depth integration core: pose chains, timestamps, resource lookup and the integrator."""

from .config import IntegrationConfig
from .engine import (
    DepthMapIntegrator,
    IntegrationStats,
    integrate_all_frame_depth_map_resources_of_type,
    integrate_all_optional_sensor_depth_map_resources_of_type,
)
from .types import (
    ResourceType,
    SUPPORTED_DEPTH_MAP_INPUT_TYPES,
    Camera,
    CameraRig,
    Vertex,
    Mission,
    TemporalResourceBuffer,
)
from .timestamps import (
    TrajectoryWindow,
    RollingShutter,
    rolling_shutter_for,
    line_time_offsets,
    correct_timestamps,
    build_timestamp_batch,
)
from .trajectories import TrajectoryPoseResolver, VertexPoseInterpolator
from .geometry import (
    as_transform,
    make_transform,
    invert_transform,
    sensor_extrinsics,
    compose_global_poses,
)
from .resources import ResourceFetcher, DepthResources, empty_buffer
from .callbacks import adapt_single_pose, as_multi_pose
from .cancellation import CancellationToken, SigintBreaker
from .memory_map import InMemoryMap
from .errors import (
    DepthIntegrationError,
    PreconditionError,
    UnsupportedResourceTypeError,
    InternalConsistencyError,
)

__all__ = [
    "IntegrationConfig",
    "DepthMapIntegrator",
    "IntegrationStats",
    "integrate_all_frame_depth_map_resources_of_type",
    "integrate_all_optional_sensor_depth_map_resources_of_type",
    "ResourceType",
    "SUPPORTED_DEPTH_MAP_INPUT_TYPES",
    "Camera",
    "CameraRig",
    "Vertex",
    "Mission",
    "TemporalResourceBuffer",
    "TrajectoryWindow",
    "RollingShutter",
    "rolling_shutter_for",
    "line_time_offsets",
    "correct_timestamps",
    "build_timestamp_batch",
    "TrajectoryPoseResolver",
    "VertexPoseInterpolator",
    "as_transform",
    "make_transform",
    "invert_transform",
    "sensor_extrinsics",
    "compose_global_poses",
    "ResourceFetcher",
    "DepthResources",
    "empty_buffer",
    "adapt_single_pose",
    "as_multi_pose",
    "CancellationToken",
    "SigintBreaker",
    "InMemoryMap",
    "DepthIntegrationError",
    "PreconditionError",
    "UnsupportedResourceTypeError",
    "InternalConsistencyError",
]
