"""Tests for trajectory interpolation and pose resolution."""

import numpy as np
import pytest
import torch

from depth_integration.core import (
    InMemoryMap,
    InternalConsistencyError,
    Mission,
    TrajectoryPoseResolver,
    Vertex,
    VertexPoseInterpolator,
    make_transform,
)

from conftest import NS, add_sensor_mission, rot_z


class TestVertexPoseInterpolator:
    def test_time_map(self):
        vi_map = InMemoryMap()
        add_sensor_mission(vi_map, num_vertices=4)
        vertex_to_time, min_ns, max_ns = VertexPoseInterpolator(vi_map).get_vertex_time_map("m0")

        assert len(vertex_to_time) == 4
        assert min_ns == 0
        assert max_ns == 3 * NS

    def test_no_timestamped_vertices(self):
        vi_map = InMemoryMap()
        vi_map.add_mission(Mission("m0"))
        vi_map.add_vertex("m0", Vertex("v0", np.eye(4)))

        vertex_to_time, _, _ = VertexPoseInterpolator(vi_map).get_vertex_time_map("m0")
        assert vertex_to_time == {}

    def test_linear_translation(self):
        vi_map = InMemoryMap()
        add_sensor_mission(vi_map, velocity=(1.0, -2.0, 0.5))
        t = torch.tensor([0, NS // 2, 3 * NS + NS // 4, 10 * NS], dtype=torch.int64)

        poses = VertexPoseInterpolator(vi_map).get_poses_at_time("m0", t)

        expected = np.outer(t.numpy() / NS, [1.0, -2.0, 0.5])
        assert poses.shape == (4, 4, 4)
        assert np.allclose(poses[:, :3, 3].numpy(), expected, atol=1e-9)
        assert np.allclose(poses[:, :3, :3].numpy(), np.eye(3), atol=1e-12)

    def test_rotation_slerp(self):
        vi_map = InMemoryMap()
        vi_map.add_mission(Mission("m0"))
        vi_map.add_vertex("m0", Vertex("v0", make_transform(rot_z(0.0)), timestamp_ns=0))
        vi_map.add_vertex("m0", Vertex("v1", make_transform(rot_z(1.0)), timestamp_ns=NS))

        poses = VertexPoseInterpolator(vi_map).get_poses_at_time("m0", torch.tensor([NS // 2]))

        assert np.allclose(poses[0, :3, :3].numpy(), rot_z(0.5), atol=1e-9)

    def test_single_vertex(self):
        vi_map = InMemoryMap()
        vi_map.add_mission(Mission("m0"))
        T = make_transform(rot_z(0.3), [1.0, 2.0, 3.0])
        vi_map.add_vertex("m0", Vertex("v0", T, timestamp_ns=5))

        poses = VertexPoseInterpolator(vi_map).get_poses_at_time("m0", torch.tensor([5, 5]))

        assert poses.shape == (2, 4, 4)
        assert torch.allclose(poses[1], T)

    def test_duplicate_vertex_timestamps(self):
        vi_map = InMemoryMap()
        vi_map.add_mission(Mission("m0"))
        vi_map.add_vertex("m0", Vertex("v0", make_transform(t=[0.0, 0.0, 0.0]), timestamp_ns=0))
        vi_map.add_vertex("m0", Vertex("v1", make_transform(t=[5.0, 0.0, 0.0]), timestamp_ns=NS))
        vi_map.add_vertex("m0", Vertex("v2", make_transform(rot_z(0.4), [2.0, 0.0, 0.0]), timestamp_ns=NS))
        vi_map.add_vertex("m0", Vertex("v3", make_transform(rot_z(0.4), [4.0, 0.0, 0.0]), timestamp_ns=2 * NS))
        interpolator = VertexPoseInterpolator(vi_map)

        poses = interpolator.get_poses_at_time("m0", torch.tensor([NS // 2, NS, 3 * NS // 2]))

        assert poses[:, 0, 3].tolist() == pytest.approx([1.0, 2.0, 3.0])
        assert np.allclose(poses[0, :3, :3].numpy(), rot_z(0.2), atol=1e-9)
        assert np.allclose(poses[2, :3, :3].numpy(), rot_z(0.4), atol=1e-9)
        vertex_to_time, _, _ = interpolator.get_vertex_time_map("m0")
        assert set(vertex_to_time) == {"v0", "v1", "v2", "v3"}

    def test_out_of_range_query(self):
        vi_map = InMemoryMap()
        add_sensor_mission(vi_map, num_vertices=3)
        with pytest.raises(ValueError):
            VertexPoseInterpolator(vi_map).get_poses_at_time("m0", torch.tensor([3 * NS]))


class _ShortInterpolator:
    """Returns one pose too few."""

    def get_vertex_time_map(self, mission_id):
        return {"v0": 0, "v1": 10}, 0, 10

    def get_poses_at_time(self, mission_id, timestamps_ns):
        return torch.eye(4, dtype=torch.float64).repeat(max(len(timestamps_ns) - 1, 0), 1, 1)


class _EmptyInterpolator:
    def get_vertex_time_map(self, mission_id):
        return {}, 0, 0

    def get_poses_at_time(self, mission_id, timestamps_ns):
        raise AssertionError("must not be queried")


class TestTrajectoryPoseResolver:
    def test_window(self):
        window = TrajectoryPoseResolver(_ShortInterpolator()).time_window("m0")
        assert (window.min_ns, window.max_ns) == (0, 10)
        assert window.vertex_to_time == {"v0": 0, "v1": 10}

    def test_no_trajectory_data(self):
        assert TrajectoryPoseResolver(_EmptyInterpolator()).time_window("m0") is None

    def test_batch_size_mismatch_is_fatal(self):
        resolver = TrajectoryPoseResolver(_ShortInterpolator())
        with pytest.raises(InternalConsistencyError):
            resolver.resolve("m0", torch.tensor([0, 5, 10]))

    def test_resolve_preserves_order(self):
        vi_map = InMemoryMap()
        add_sensor_mission(vi_map, velocity=(1.0, 0.0, 0.0))
        resolver = TrajectoryPoseResolver(VertexPoseInterpolator(vi_map))

        poses = resolver.resolve("m0", torch.tensor([3 * NS, NS, 2 * NS]))

        assert poses[:, 0, 3].tolist() == pytest.approx([3.0, 1.0, 2.0])

    def test_accepts_pose_lists(self):
        class _ListInterpolator(_ShortInterpolator):
            def get_poses_at_time(self, mission_id, timestamps_ns):
                return [np.eye(4) for _ in range(len(timestamps_ns))]

        poses = TrajectoryPoseResolver(_ListInterpolator()).resolve("m0", torch.tensor([1, 2]))
        assert poses.shape == (2, 4, 4)
        assert poses.dtype == torch.float64
