"""Trajectory pose resolution for sensor-bound resources."""

import time
from typing import Dict, Hashable, Optional, Tuple

import numpy as np
import torch
from scipy.spatial.transform import Rotation, Slerp

from ..utils.logging import get_logger
from .errors import InternalConsistencyError
from .geometry import DTYPE, as_transform
from .interfaces import MapQuery, PoseInterpolator
from .timestamps import TrajectoryWindow

logger = get_logger(__name__)


class VertexPoseInterpolator:
    """Interpolate body poses between timestamped pose-graph vertices.

    Translation is interpolated linearly and orientation with Slerp. Queries
    must lie inside [first, last] vertex timestamp; callers clamp beforehand.
    """

    def __init__(self, vi_map: MapQuery):
        self.vi_map = vi_map

    def _stamped_vertices(self, mission_id: Hashable):
        stamped = []
        for vertex_id in self.vi_map.get_vertex_ids_along_graph(mission_id):
            vertex = self.vi_map.get_vertex(vertex_id)
            if vertex.timestamp_ns is not None:
                stamped.append((int(vertex.timestamp_ns), vertex))
        stamped.sort(key=lambda tv: tv[0])
        return stamped

    def get_vertex_time_map(self, mission_id: Hashable) -> Tuple[Dict[Hashable, int], int, int]:
        stamped = self._stamped_vertices(mission_id)
        if not stamped:
            return {}, 0, 0
        vertex_to_time = {v.vertex_id: t for t, v in stamped}
        return vertex_to_time, stamped[0][0], stamped[-1][0]

    def get_poses_at_time(self, mission_id: Hashable, timestamps_ns: torch.Tensor) -> torch.Tensor:
        stamped = self._stamped_vertices(mission_id)
        if not stamped:
            raise ValueError(f"Mission {mission_id} has no timestamped vertices")

        query = torch.as_tensor(timestamps_ns, dtype=torch.int64).reshape(-1)
        num_queries = query.numel()
        if num_queries == 0:
            return torch.zeros(0, 4, 4, dtype=DTYPE)

        # Vertices sharing a timestamp collapse to the last one along the graph.
        stamped = sorted(dict(stamped).items(), key=lambda tv: tv[0])
        poses = np.stack([v.T_M_I.numpy() for _, v in stamped])
        if len(stamped) == 1:
            return torch.from_numpy(np.repeat(poses, num_queries, axis=0))

        # Relative times keep nanosecond resolution in float64.
        t0 = stamped[0][0]
        knots = np.array([t - t0 for t, _ in stamped], dtype=np.float64)
        t = (query - t0).numpy().astype(np.float64)
        if t.min() < knots[0] or t.max() > knots[-1]:
            raise ValueError("Timestamps outside the interpolable range of mission "
                             f"{mission_id}; clamp them to the trajectory window first")

        out = np.zeros((num_queries, 4, 4), dtype=np.float64)
        out[:, 3, 3] = 1.0
        for axis in range(3):
            out[:, axis, 3] = np.interp(t, knots, poses[:, axis, 3])
        slerp = Slerp(knots, Rotation.from_matrix(poses[:, :3, :3]))
        out[:, :3, :3] = slerp(t).as_matrix()
        return torch.from_numpy(out)


class TrajectoryPoseResolver:
    """Batch pose lookups against a mission trajectory.

    Args:
        interpolator: pose interpolation engine
    """

    def __init__(self, interpolator: PoseInterpolator):
        self.interpolator = interpolator

    def time_window(self, mission_id: Hashable) -> Optional[TrajectoryWindow]:
        """Interpolable time range of a mission, or None if it has no trajectory data."""
        vertex_to_time, min_ns, max_ns = self.interpolator.get_vertex_time_map(mission_id)
        if not vertex_to_time:
            return None
        return TrajectoryWindow(int(min_ns), int(max_ns), dict(vertex_to_time))

    def resolve(self, mission_id: Hashable, timestamps_ns: torch.Tensor) -> torch.Tensor:
        """Mission-from-body poses [N, 4, 4], one per timestamp, same order."""
        num_poses = int(timestamps_ns.numel())
        start = time.perf_counter()
        poses_M_B = self.interpolator.get_poses_at_time(mission_id, timestamps_ns)
        if len(poses_M_B) != num_poses:
            raise InternalConsistencyError(
                f"Interpolator returned {len(poses_M_B)} poses for {num_poses} timestamps"
            )
        logger.debug("Interpolated %d poses in %.3fs", num_poses, time.perf_counter() - start)
        if not isinstance(poses_M_B, torch.Tensor):
            if num_poses == 0:
                return torch.zeros(0, 4, 4, dtype=DTYPE)
            poses_M_B = torch.stack([as_transform(T) for T in poses_M_B])
        return as_transform(poses_M_B)
