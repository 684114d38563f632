# tracking_types.py - shared datatypes for the hand segmentation core.

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Tuple

import numpy as np

Point = Tuple[int, int]

# "No pixel found" marker returned by the tracker and the foreground scanner.
NO_POINT: Point = (-1, -1)

DEFAULT_MAX_TTL = 250.0  # depth units (mm)


class PixelType(IntEnum):
    """Values held by the pixel-state buffer and the segmentation masks."""

    UNVISITED = 0
    FOREGROUND = 1
    SEARCHED = 2


class TrackedPointType(IntEnum):
    PASSIVE = 0
    ACTIVE = 1


@dataclass
class TrackingData:
    """
    Buffers and parameters for tracking one point in one frame.

    All arrays are caller-owned and share the same (H, W) shape. `state` and
    `global_segmentation` are mutated in place and accumulate across tracker
    calls; `layer_segmentation` is replaced by every tracker call.
    """

    depth: np.ndarray
    area: np.ndarray
    score: np.ndarray
    state: np.ndarray
    global_segmentation: np.ndarray
    seed_position: Point
    reference_depth: float
    bandwidth_depth: float
    point_type: TrackedPointType = TrackedPointType.PASSIVE
    iteration_max: int = 10
    max_ttl: float = DEFAULT_MAX_TTL
    layer_segmentation: Optional[np.ndarray] = None

    @property
    def max_depth(self) -> float:
        """Exclusive upper depth bound of the in-range band."""
        return float(self.reference_depth) + float(self.bandwidth_depth)

    @property
    def is_active(self) -> bool:
        return self.point_type == TrackedPointType.ACTIVE


def is_no_point(p: Point) -> bool:
    return int(p[0]) == -1 or int(p[1]) == -1


def check_buffer(name: str, buf: np.ndarray, shape: Tuple[int, int]) -> None:
    """Raise ValueError unless `buf` is a 2D array of the given shape."""
    if not isinstance(buf, np.ndarray) or buf.ndim != 2:
        raise ValueError(f"{name} must be a 2D numpy array")
    if tuple(buf.shape) != tuple(shape):
        raise ValueError(f"{name} shape {tuple(buf.shape)} does not match depth shape {tuple(shape)}")


def check_seed(seed: Point, shape: Tuple[int, int]) -> Point:
    H, W = int(shape[0]), int(shape[1])
    x, y = int(seed[0]), int(seed[1])
    if x < 0 or x >= W or y < 0 or y >= H:
        raise ValueError(f"seed {(x, y)} outside buffer of size {W}x{H}")
    return x, y
