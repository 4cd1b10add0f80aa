"""depth_integration: posed depth maps from a visual-inertial map, ready for fusion.

Main components:
- core: pose chain composition, rolling shutter timestamps, resource lookup
  and the DepthMapIntegrator driving both integration paths
- utils: logging
"""

from .core import (
    IntegrationConfig,
    DepthMapIntegrator,
    IntegrationStats,
    integrate_all_frame_depth_map_resources_of_type,
    integrate_all_optional_sensor_depth_map_resources_of_type,
    ResourceType,
    Camera,
    CameraRig,
    Vertex,
    Mission,
    TemporalResourceBuffer,
    InMemoryMap,
    VertexPoseInterpolator,
    CancellationToken,
    SigintBreaker,
    DepthIntegrationError,
    PreconditionError,
    UnsupportedResourceTypeError,
    InternalConsistencyError,
)

__version__ = "0.1.0"
__all__ = [
    # Integration
    "IntegrationConfig",
    "DepthMapIntegrator",
    "IntegrationStats",
    "integrate_all_frame_depth_map_resources_of_type",
    "integrate_all_optional_sensor_depth_map_resources_of_type",
    # Map model
    "ResourceType",
    "Camera",
    "CameraRig",
    "Vertex",
    "Mission",
    "TemporalResourceBuffer",
    "InMemoryMap",
    "VertexPoseInterpolator",
    # Cancellation
    "CancellationToken",
    "SigintBreaker",
    # Errors
    "DepthIntegrationError",
    "PreconditionError",
    "UnsupportedResourceTypeError",
    "InternalConsistencyError",
]
