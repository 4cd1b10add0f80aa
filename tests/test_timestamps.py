"""Tests for timestamp correction."""

import pytest
import torch

from depth_integration.core import (
    Camera,
    RollingShutter,
    TrajectoryWindow,
    build_timestamp_batch,
    correct_timestamps,
    line_time_offsets,
    rolling_shutter_for,
)


class TestCorrectTimestamps:
    def test_formula(self):
        t = correct_timestamps(1000, 50, num_lines=4, line_delay_ns=10, min_ns=0, max_ns=10_000)
        assert t.dtype == torch.int64
        assert t.tolist() == [1050, 1060, 1070, 1080]

    def test_single_line(self):
        t = correct_timestamps(1000, -200, num_lines=1, line_delay_ns=10, min_ns=0, max_ns=10_000)
        assert t.tolist() == [800]

    def test_clamped_to_window(self):
        t = correct_timestamps(990, 0, num_lines=4, line_delay_ns=5, min_ns=0, max_ns=1000)
        assert t.tolist() == [990, 995, 1000, 1000]

        t = correct_timestamps(-10, 0, num_lines=3, line_delay_ns=5, min_ns=0, max_ns=1000)
        assert t.tolist() == [0, 0, 0]

    def test_monotonic_for_non_negative_delay(self):
        t = correct_timestamps(123, 7, num_lines=64, line_delay_ns=31, min_ns=0, max_ns=1500)
        assert torch.all(t[1:] >= t[:-1])

    def test_nanosecond_precision_at_epoch_scale(self):
        base = 1_700_000_000_123_456_789
        t = correct_timestamps(base, 1, num_lines=2, line_delay_ns=3,
                               min_ns=base - 10, max_ns=base + 10)
        assert t.tolist() == [base + 1, base + 4]

    def test_invalid_line_count(self):
        with pytest.raises(ValueError):
            line_time_offsets(0, 10)


class TestTimestampBatch:
    def test_layout_is_resource_major(self):
        window = TrajectoryWindow(0, 1_000)
        batch = build_timestamp_batch([100, 200], 5, RollingShutter(3, 10), window)
        assert batch.tolist() == [105, 115, 125, 205, 215, 225]

    def test_empty(self):
        batch = build_timestamp_batch([], 0, RollingShutter(3, 10), TrajectoryWindow(0, 10))
        assert batch.numel() == 0

    def test_clamping(self):
        window = TrajectoryWindow(100, 200)
        batch = build_timestamp_batch([50, 195], 0, RollingShutter(2, 10), window)
        assert batch.tolist() == [100, 100, 195, 200]


class TestRollingShutter:
    def test_from_camera(self):
        camera = Camera("cam", num_lines=480, line_delay_ns=30_000)
        rs = rolling_shutter_for(camera)
        assert rs.num_lines == 480
        assert rs.line_delay_ns == 30_000
        assert rs.is_rolling_shutter

    def test_disabled(self):
        camera = Camera("cam", num_lines=480, line_delay_ns=30_000)
        rs = rolling_shutter_for(camera, enabled=False)
        assert rs.num_lines == 1
        assert rs.line_delay_ns == 0
        assert not rs.is_rolling_shutter

    def test_global_shutter_camera(self):
        assert not rolling_shutter_for(Camera("cam")).is_rolling_shutter


class TestTrajectoryWindow:
    def test_contains_is_inclusive(self):
        window = TrajectoryWindow(10, 20)
        assert window.contains(10)
        assert window.contains(20)
        assert not window.contains(9)
        assert not window.contains(21)

    def test_rejects_inverted_range(self):
        with pytest.raises(ValueError):
            TrajectoryWindow(20, 10)
