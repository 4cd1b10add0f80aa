"""DepthMapIntegrator: feeds posed depth maps of a map to an integration callback."""

import contextlib
from dataclasses import dataclass, asdict
from typing import Callable, Dict, Hashable, Iterable, Optional

import torch
from tqdm import tqdm

from ..utils.logging import get_logger
from .callbacks import MultiPoseCallback, as_multi_pose
from .cancellation import CancellationToken, SigintBreaker
from .config import IntegrationConfig
from .errors import InternalConsistencyError, UnsupportedResourceTypeError
from .geometry import compose_global_poses, sensor_extrinsics
from .interfaces import PoseInterpolator, VIMapQuery
from .resources import ResourceFetcher
from .timestamps import TrajectoryWindow, build_timestamp_batch, rolling_shutter_for
from .trajectories import TrajectoryPoseResolver, VertexPoseInterpolator
from .types import CameraRig, Mission, ResourceType

logger = get_logger(__name__)


@dataclass
class IntegrationStats:
    """Outcome of one integration call."""
    integrated: int = 0
    skipped_missions: int = 0
    missing_depth_maps: int = 0
    out_of_window: int = 0
    cancelled: bool = False

    def to_dict(self) -> Dict:
        return asdict(self)


class _Cancelled(Exception):
    pass


class DepthMapIntegrator:
    """Integrate frame-bound and sensor-bound depth maps of a map.

    Args:
        vi_map: map providing missions, vertices, sensors and resources
        interpolator: trajectory interpolation engine (interpolates between
            vertices of `vi_map` if None)
        config: IntegrationConfig (defaults if None)
    """

    def __init__(
        self,
        vi_map: VIMapQuery,
        interpolator: Optional[PoseInterpolator] = None,
        config: Optional[IntegrationConfig] = None,
    ):
        self.vi_map = vi_map
        self.cfg = config or IntegrationConfig()
        self.resolver = TrajectoryPoseResolver(interpolator or VertexPoseInterpolator(vi_map))
        self.fetcher = ResourceFetcher(vi_map)

        # Both depth types are handled identically; anything else is rejected at entry.
        self._frame_handlers: Dict[ResourceType, Callable] = {
            ResourceType.RAW_DEPTH_MAP: self._integrate_frame_depth_map,
            ResourceType.OPTIMIZED_DEPTH_MAP: self._integrate_frame_depth_map,
        }
        self._sensor_handlers: Dict[ResourceType, Callable] = {
            ResourceType.RAW_DEPTH_MAP: self._integrate_sensor_depth_map,
            ResourceType.OPTIMIZED_DEPTH_MAP: self._integrate_sensor_depth_map,
        }

    @staticmethod
    def _handler_for(handlers: Dict[ResourceType, Callable], resource_type: ResourceType) -> Callable:
        try:
            return handlers[resource_type]
        except (KeyError, TypeError):
            name = getattr(resource_type, "value", resource_type)
            raise UnsupportedResourceTypeError(
                f"This depth type is not supported! type: {name}"
            ) from None

    @contextlib.contextmanager
    def _cancellation(self, cancel_token: Optional[CancellationToken]):
        if not self.cfg.enable_cancellation:
            yield None
        elif cancel_token is not None:
            yield cancel_token
        else:
            with SigintBreaker() as token:
                yield token

    @staticmethod
    def _check_cancelled(token: Optional[CancellationToken]) -> None:
        if token is not None and token.is_cancelled:
            logger.warning("Depth integration has been aborted by the user!")
            raise _Cancelled()

    # Frame-bound depth maps

    @torch.no_grad()
    def integrate_frame_resources(
        self,
        mission_ids: Iterable[Hashable],
        resource_type: ResourceType,
        callback,
        single_pose: bool = False,
        cancel_token: Optional[CancellationToken] = None,
    ) -> IntegrationStats:
        """Integrate depth maps attached to vertex frames.

        Args:
            mission_ids: missions to integrate, in order
            resource_type: RAW_DEPTH_MAP or OPTIMIZED_DEPTH_MAP
            callback: (T_G_C, depth, intensity, camera) callable; T_G_C is
                [1, 4, 4], or [4, 4] when `single_pose` is set
            single_pose: callback takes a single pose
            cancel_token: polled before every vertex

        Returns:
            IntegrationStats
        """
        callback = as_multi_pose(callback, single_pose)
        handler = self._handler_for(self._frame_handlers, resource_type)
        stats = IntegrationStats()

        with self._cancellation(cancel_token) as token:
            try:
                for mission_id in mission_ids:
                    self._integrate_frame_mission(mission_id, resource_type, handler, callback, stats, token)
            except _Cancelled:
                stats.cancelled = True
        return stats

    def _integrate_frame_mission(self, mission_id, resource_type, handler, callback, stats, token):
        mission = self.vi_map.get_mission(mission_id)
        if not mission.has_ncamera:
            logger.debug("Mission %s has no NCamera, hence no such resources!", mission_id)
            stats.skipped_missions += 1
            return
        logger.info("Integrating mission %s", mission_id)

        n_camera = self.vi_map.get_sensor(mission.ncamera_id)
        if not isinstance(n_camera, CameraRig):
            raise InternalConsistencyError(
                f"Sensor {mission.ncamera_id} of mission {mission_id} is not a camera rig"
            )
        T_B_Cn = self.vi_map.get_T_B_S(mission.ncamera_id)
        T_B_C = [sensor_extrinsics(T_B_Cn, n_camera.get_T_C_B(i)) for i in range(n_camera.num_cameras)]

        vertex_ids = self.vi_map.get_vertex_ids_along_graph(mission_id)
        progress = tqdm(vertex_ids, desc=f"Mission {mission_id}", disable=not self.cfg.show_progress,
                        miniters=self.cfg.progress_update_every_n_vertices)
        with progress:
            for vertex_id in progress:
                self._check_cancelled(token)
                vertex = self.vi_map.get_vertex(vertex_id)
                for frame_idx in range(vertex.num_frames):
                    if frame_idx >= len(T_B_C):
                        raise InternalConsistencyError(
                            f"Vertex {vertex_id} has frame {frame_idx} but rig "
                            f"{mission.ncamera_id} only has {len(T_B_C)} cameras"
                        )
                    T_G_C = compose_global_poses(mission.T_G_M, vertex.T_M_I, T_B_C[frame_idx])
                    handler(vertex, frame_idx, resource_type, T_G_C, n_camera.get_camera(frame_idx),
                            callback, stats)

    def _integrate_frame_depth_map(self, vertex, frame_idx, resource_type, T_G_C, camera, callback, stats):
        resources = self.fetcher.fetch_frame_depth(vertex, frame_idx, resource_type)
        if resources is None:
            logger.debug("Vertex %s / frame %d: nothing to integrate.", vertex.vertex_id, frame_idx)
            stats.missing_depth_maps += 1
            return
        callback(T_G_C, resources.depth, resources.intensity, camera)
        stats.integrated += 1

    # Sensor-bound depth maps

    @torch.no_grad()
    def integrate_sensor_resources(
        self,
        mission_ids: Iterable[Hashable],
        resource_type: ResourceType,
        callback,
        single_pose: bool = False,
        cancel_token: Optional[CancellationToken] = None,
    ) -> IntegrationStats:
        """Integrate depth maps of independently timestamped sensors.

        Poses are interpolated along the mission trajectory at the shifted
        resource timestamp, one per line when rolling shutter compensation is
        enabled.

        Args:
            mission_ids: missions to integrate, in order
            resource_type: RAW_DEPTH_MAP or OPTIMIZED_DEPTH_MAP
            callback: (T_G_C, depth, intensity, camera) callable; T_G_C is
                [L, 4, 4], or [4, 4] (first line) when `single_pose` is set
            single_pose: callback takes a single pose
            cancel_token: polled before every resource

        Returns:
            IntegrationStats
        """
        callback = as_multi_pose(callback, single_pose)
        handler = self._handler_for(self._sensor_handlers, resource_type)
        stats = IntegrationStats()

        with self._cancellation(cancel_token) as token:
            try:
                for mission_id in mission_ids:
                    self._integrate_sensor_mission(mission_id, resource_type, handler, callback, stats, token)
            except _Cancelled:
                stats.cancelled = True
        return stats

    def _integrate_sensor_mission(self, mission_id, resource_type, handler, callback, stats, token):
        logger.info("Integrating mission %s", mission_id)
        mission = self.vi_map.get_mission(mission_id)

        window = self.resolver.time_window(mission_id)
        if window is None:
            logger.debug("Couldn't find any trajectory data to interpolate sensor poses in mission %s",
                         mission_id)
            stats.skipped_missions += 1
            return
        logger.info("All resources within this time range will be integrated: [%dns, %dns]",
                    window.min_ns, window.max_ns)

        buffers = self.vi_map.get_sensor_resource_buffers(mission_id, resource_type)
        if not buffers:
            return
        logger.debug("Found %d sensors that have resources of this depth type.", len(buffers))

        for sensor_id, resource_buffer in buffers.items():
            self._integrate_sensor(mission, window, sensor_id, resource_buffer, resource_type,
                                   handler, callback, stats, token)

    def _integrate_sensor(self, mission: Mission, window: TrajectoryWindow, sensor_id, resource_buffer,
                          resource_type, handler, callback, stats, token):
        n_camera = self.vi_map.get_sensor(sensor_id)
        if not isinstance(n_camera, CameraRig):
            raise InternalConsistencyError(
                f"The sensor ({sensor_id}) associated with this depth map resource is not a camera!"
            )
        if n_camera.num_cameras != 1:
            raise InternalConsistencyError(
                f"Sensor {sensor_id} must be a single-camera rig, has {n_camera.num_cameras} cameras"
            )
        camera = n_camera.get_camera(0)
        T_B_C = sensor_extrinsics(self.vi_map.get_T_B_S(sensor_id), n_camera.get_T_C_B(0))

        rolling_shutter = rolling_shutter_for(camera, self.cfg.enable_rolling_shutter_compensation)
        num_lines = rolling_shutter.num_lines
        num_resources = len(resource_buffer)
        logger.debug("Sensor %s has %d such resources. Rolling shutter compensation: %s. "
                     "Number of poses interpolated per resource: %d",
                     sensor_id, num_resources, "ON" if rolling_shutter.is_rolling_shutter else "OFF",
                     num_lines)
        if num_resources == 0:
            return

        shift_ns = self.cfg.timestamp_shift_ns
        timestamps = [timestamp_ns for timestamp_ns, _ in resource_buffer]
        resource_timestamps = build_timestamp_batch(timestamps, shift_ns, rolling_shutter, window)

        poses_M_B = self.resolver.resolve(mission.mission_id, resource_timestamps)
        T_G_C_all = compose_global_poses(mission.T_G_M, poses_M_B, T_B_C).view(num_resources, num_lines, 4, 4)

        progress = tqdm(timestamps, desc=f"Sensor {sensor_id}", disable=not self.cfg.show_progress)
        with progress:
            for idx, timestamp_ns in enumerate(progress):
                self._check_cancelled(token)
                corrected_ns = timestamp_ns + shift_ns
                if not window.contains(corrected_ns):
                    logger.warning("The depth resource at %dns (corrected: %dns) is outside of the "
                                   "time range of the pose graph, skipping.", timestamp_ns, corrected_ns)
                    stats.out_of_window += 1
                    continue
                handler(mission, sensor_id, timestamp_ns, resource_type, T_G_C_all[idx], camera,
                        callback, stats)

    def _integrate_sensor_depth_map(self, mission, sensor_id, timestamp_ns, resource_type, T_G_C_vec,
                                    camera, callback, stats):
        resources = self.fetcher.fetch_sensor_depth(mission, resource_type, sensor_id, timestamp_ns)
        callback(T_G_C_vec, resources.depth, resources.intensity, camera)
        stats.integrated += 1


def integrate_all_frame_depth_map_resources_of_type(
    mission_ids: Iterable[Hashable],
    resource_type: ResourceType,
    vi_map: VIMapQuery,
    callback,
    single_pose: bool = False,
    config: Optional[IntegrationConfig] = None,
    cancel_token: Optional[CancellationToken] = None,
) -> IntegrationStats:
    """Functional wrapper around `DepthMapIntegrator.integrate_frame_resources`."""
    integrator = DepthMapIntegrator(vi_map, config=config)
    return integrator.integrate_frame_resources(
        mission_ids, resource_type, callback, single_pose=single_pose, cancel_token=cancel_token
    )


def integrate_all_optional_sensor_depth_map_resources_of_type(
    mission_ids: Iterable[Hashable],
    resource_type: ResourceType,
    vi_map: VIMapQuery,
    callback,
    single_pose: bool = False,
    interpolator: Optional[PoseInterpolator] = None,
    config: Optional[IntegrationConfig] = None,
    cancel_token: Optional[CancellationToken] = None,
) -> IntegrationStats:
    """Functional wrapper around `DepthMapIntegrator.integrate_sensor_resources`."""
    integrator = DepthMapIntegrator(vi_map, interpolator=interpolator, config=config)
    return integrator.integrate_sensor_resources(
        mission_ids, resource_type, callback, single_pose=single_pose, cancel_token=cancel_token
    )
