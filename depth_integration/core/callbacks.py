"""Integration callback shapes and the adapter between them."""

from typing import Callable

import numpy as np
import torch

from .errors import PreconditionError
from .types import Camera

# (T_G_C [4, 4], depth, intensity, camera) -> None
SinglePoseCallback = Callable[[torch.Tensor, np.ndarray, np.ndarray, Camera], None]
# (T_G_C [L, 4, 4], depth, intensity, camera) -> None, one pose per line
MultiPoseCallback = Callable[[torch.Tensor, np.ndarray, np.ndarray, Camera], None]


def adapt_single_pose(callback: SinglePoseCallback) -> MultiPoseCallback:
    """Wrap a single-pose callback so it accepts per-line poses, forwarding the first."""

    def _forward_first(poses, depth_map, intensities, camera):
        if len(poses) < 1:
            raise PreconditionError("Expected at least one pose per depth map")
        callback(poses[0], depth_map, intensities, camera)

    return _forward_first


def as_multi_pose(callback, single_pose: bool = False) -> MultiPoseCallback:
    if callback is None or not callable(callback):
        raise PreconditionError(f"Integration callback must be callable, got {callback!r}")
    return adapt_single_pose(callback) if single_pose else callback
