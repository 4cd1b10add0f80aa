"""SE(3) helpers and the global-from-sensor pose chain.

Transforms are 4x4 homogeneous float64 tensors named `T_A_B`, mapping points
from frame B into frame A, so `T_A_C = T_A_B @ T_B_C`. Frames used here:

    G  global
    M  mission base frame
    B  body / IMU (the vertex pose is T_M_I = T_M_B)
    Cn camera rig (NCamera) frame
    C  physical camera
"""

from typing import Optional

import numpy as np
import torch

DTYPE = torch.float64


def as_transform(T) -> torch.Tensor:
    """Convert an array-like [..., 4, 4] to a float64 tensor, validating its shape."""
    if isinstance(T, torch.Tensor):
        out = T.to(DTYPE)
    else:
        out = torch.as_tensor(np.asarray(T, dtype=np.float64))
    if out.dim() < 2 or out.shape[-2:] != (4, 4):
        raise ValueError(f"Expected [..., 4, 4] transform, got shape {tuple(out.shape)}")
    return out


def make_transform(R=None, t=None) -> torch.Tensor:
    """Build a transform from a 3x3 rotation and a translation."""
    T = torch.eye(4, dtype=DTYPE)
    if R is not None:
        T[:3, :3] = torch.as_tensor(np.asarray(R, dtype=np.float64))
    if t is not None:
        T[:3, 3] = torch.as_tensor(np.asarray(t, dtype=np.float64)).reshape(3)
    return T


def invert_transform(T: torch.Tensor) -> torch.Tensor:
    """Closed-form inverse of one or a batch of rigid transforms."""
    T = as_transform(T)
    R, t = T[..., :3, :3], T[..., :3, 3:4]
    Rt = R.transpose(-1, -2)
    out = torch.zeros_like(T)
    out[..., :3, :3] = Rt
    out[..., :3, 3:4] = -Rt @ t
    out[..., 3, 3] = 1.0
    return out


def sensor_extrinsics(T_B_Cn: torch.Tensor, T_C_Cn: torch.Tensor) -> torch.Tensor:
    """Body-from-camera transform T_B_C = T_B_Cn * T_Cn_C.

    Rigs store the camera-from-rig transform, so it is inverted here once per
    camera instead of per resource.
    """
    return as_transform(T_B_Cn) @ invert_transform(T_C_Cn)


def compose_global_poses(
    T_G_M: torch.Tensor,
    T_M_B: torch.Tensor,
    T_B_C: Optional[torch.Tensor] = None,
) -> torch.Tensor:
    """T_G_C = T_G_M * T_M_B * T_B_C, batched over T_M_B.

    Args:
        T_G_M: [4, 4] mission base frame
        T_M_B: [4, 4] or [N, 4, 4] body poses in mission frame
        T_B_C: [4, 4] camera extrinsics (identity if None)

    Returns:
        [N, 4, 4] camera poses in global frame
    """
    T_M_B = as_transform(T_M_B)
    if T_M_B.dim() == 2:
        T_M_B = T_M_B.unsqueeze(0)
    T_G_B = as_transform(T_G_M).unsqueeze(0) @ T_M_B
    if T_B_C is None:
        return T_G_B
    return T_G_B @ as_transform(T_B_C).unsqueeze(0)
