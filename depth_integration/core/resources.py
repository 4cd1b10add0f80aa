"""Depth map retrieval with intensity/color fallback."""

from dataclasses import dataclass
from typing import Hashable, Optional, Tuple

import numpy as np

from ..utils.logging import get_logger
from .errors import InternalConsistencyError
from .interfaces import ResourceQuery
from .types import Mission, ResourceType, Vertex

logger = get_logger(__name__)

# Intensity sources in priority order; the first one present wins.
FRAME_INTENSITY_PRIORITY: Tuple[ResourceType, ...] = (
    ResourceType.IMAGE_FOR_DEPTH_MAP,
    ResourceType.RAW_IMAGE,
)
SENSOR_INTENSITY_PRIORITY: Tuple[ResourceType, ...] = (
    ResourceType.IMAGE_FOR_DEPTH_MAP,
    ResourceType.COLOR_IMAGE_FOR_DEPTH_MAP,
)


def empty_buffer() -> np.ndarray:
    """Placeholder handed to the callback when no intensity image exists."""
    return np.empty((0, 0), dtype=np.uint8)


@dataclass
class DepthResources:
    depth: np.ndarray
    intensity: np.ndarray
    intensity_source: Optional[ResourceType] = None

    @property
    def has_intensity(self) -> bool:
        return self.intensity_source is not None


class ResourceFetcher:
    """Fetch depth maps and their best available intensity image."""

    def __init__(self, resources: ResourceQuery):
        self.resources = resources

    def fetch_frame_depth(
        self, vertex: Vertex, frame_idx: int, resource_type: ResourceType
    ) -> Optional[DepthResources]:
        """Depth map of a vertex frame, or None if the frame has none."""
        depth = self.resources.get_frame_resource(vertex, frame_idx, resource_type)
        if depth is None:
            return None
        for source in FRAME_INTENSITY_PRIORITY:
            image = self.resources.get_frame_resource(vertex, frame_idx, source)
            if image is not None:
                logger.debug("Vertex %s / frame %d: intensity from %s",
                             vertex.vertex_id, frame_idx, source.value)
                return DepthResources(depth, image, source)
        logger.debug("Vertex %s / frame %d: depth map without intensity", vertex.vertex_id, frame_idx)
        return DepthResources(depth, empty_buffer())

    def fetch_sensor_depth(
        self,
        mission: Mission,
        resource_type: ResourceType,
        sensor_id: Hashable,
        timestamp_ns: int,
    ) -> DepthResources:
        """Depth map of a sensor at a buffered timestamp.

        Raises:
            InternalConsistencyError: the resource buffer lists a depth map
                that cannot be retrieved.
        """
        depth = self.resources.get_sensor_resource(mission, resource_type, sensor_id, timestamp_ns)
        if depth is None:
            raise InternalConsistencyError(
                f"Cannot retrieve {resource_type.value} resource of sensor {sensor_id} "
                f"at timestamp {timestamp_ns}ns"
            )
        for source in SENSOR_INTENSITY_PRIORITY:
            image = self.resources.get_sensor_resource(mission, source, sensor_id, timestamp_ns)
            if image is not None:
                logger.debug("Sensor %s @ %dns: intensity from %s", sensor_id, timestamp_ns, source.value)
                return DepthResources(depth, image, source)
        logger.debug("Sensor %s @ %dns: depth map without color/intensity", sensor_id, timestamp_ns)
        return DepthResources(depth, empty_buffer())
