"""Depth pixel -> world space conversion.

The segmentation core only needs a pure callable

    convert(x, y, depth, resize_factor) -> ndarray[..., 3]

that accepts scalars or broadcastable numpy arrays. `DepthCameraModel` is the
default implementation: a field-of-view model for a depth stream of a fixed
native resolution, where pixel coordinates of a downscaled buffer are scaled
back up by `resize_factor` before normalizing.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable

import numpy as np

DepthToWorld = Callable[[Any, Any, Any, float], np.ndarray]


@dataclass(frozen=True)
class DepthCameraModel:
    resolution_x: int = 320
    resolution_y: int = 240
    horizontal_fov: float = 1.0226  # radians
    vertical_fov: float = 0.796  # radians

    def __post_init__(self) -> None:
        if int(self.resolution_x) <= 0 or int(self.resolution_y) <= 0:
            raise ValueError("camera resolution must be positive")
        if not (0.0 < float(self.horizontal_fov) < math.pi) or not (0.0 < float(self.vertical_fov) < math.pi):
            raise ValueError("camera field of view must be in (0, pi) radians")

    @property
    def xz_factor(self) -> float:
        return 2.0 * math.tan(float(self.horizontal_fov) / 2.0)

    @property
    def yz_factor(self) -> float:
        return 2.0 * math.tan(float(self.vertical_fov) / 2.0)

    def convert_depth_to_world(self, x: Any, y: Any, depth: Any, resize_factor: float = 1.0) -> np.ndarray:
        """
        Map pixel (x, y) at `depth` to a world point (X right, Y up, Z forward).

        Inputs broadcast against each other; the result has a trailing axis of 3.
        """
        rf = float(resize_factor)
        z = np.asarray(depth, dtype=np.float64)
        nx = np.asarray(x, dtype=np.float64) * rf / float(self.resolution_x) - 0.5
        ny = 0.5 - np.asarray(y, dtype=np.float64) * rf / float(self.resolution_y)
        wx = nx * z * self.xz_factor
        wy = ny * z * self.yz_factor
        wx, wy, wz = np.broadcast_arrays(wx, wy, z)
        return np.stack((wx, wy, wz), axis=-1)

    def __call__(self, x: Any, y: Any, depth: Any, resize_factor: float = 1.0) -> np.ndarray:
        return self.convert_depth_to_world(x, y, depth, resize_factor)


def convert_point_to_world(points: Any, resize_factor: float, convert: DepthToWorld) -> np.ndarray:
    """Convert (..., 3) pixel+depth samples `(x, y, depth)` with `convert`."""
    p = np.asarray(points, dtype=np.float64)
    if p.shape[-1] != 3:
        raise ValueError("points must have a trailing axis of 3 (x, y, depth)")
    return np.asarray(convert(p[..., 0], p[..., 1], p[..., 2], float(resize_factor)), dtype=np.float64)


DEFAULT_CAMERA = DepthCameraModel()
