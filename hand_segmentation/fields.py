"""Per-pixel fields consumed by the segmentation core.

- area:          world-space surface area represented by each depth pixel
- score:         height/closeness score used to rank re-seed candidates
- edge distance: area-weighted erosion depth of a segmentation mask
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import cv2
import numpy as np

from .conversion import DEFAULT_CAMERA, DepthToWorld, convert_point_to_world
from .tracking_types import check_buffer

logger = logging.getLogger(__name__)

MAX_DEPTH = 10000.0  # sensor range, depth units (mm)

_CROSS = cv2.getStructuringElement(cv2.MORPH_CROSS, (3, 3))


def _as_depth(depth: Any) -> np.ndarray:
    d = np.asarray(depth)
    if d.ndim != 2:
        raise ValueError("depth must be a 2D array")
    return d


def _out_buffer(out: Optional[np.ndarray], shape: tuple, name: str) -> np.ndarray:
    if out is None:
        return np.zeros(shape, dtype=np.float32)
    check_buffer(name, out, shape)
    out.fill(0)
    return out


def get_depth_area(p1: Any, p2: Any, p3: Any, resize_factor: float, convert: DepthToWorld = DEFAULT_CAMERA) -> np.ndarray:
    """
    World-space area of the triangle(s) p1-p2-p3.

    Each corner is an (x, y, depth) sample, or a (..., 3) array of them.
    """
    w1 = convert_point_to_world(p1, resize_factor, convert)
    w2 = convert_point_to_world(p2, resize_factor, convert)
    w3 = convert_point_to_world(p3, resize_factor, convert)
    c = np.cross(w2 - w1, w3 - w1)
    return 0.5 * np.linalg.norm(c, axis=-1)


def calculate_segment_area(
    depth: Any,
    resize_factor: float,
    convert: DepthToWorld = DEFAULT_CAMERA,
    out: Optional[np.ndarray] = None,
) -> np.ndarray:
    """
    Area field: each pixel gets the area of the quad spanned with its right and
    lower neighbors, split into two triangles at the pixel's own depth.

    The last row and column are left at 0, as are pixels without depth.
    """
    d = _as_depth(depth)
    H, W = int(d.shape[0]), int(d.shape[1])
    area = _out_buffer(out, (H, W), "area")
    if H < 2 or W < 2:
        return area

    z = np.asarray(d[: H - 1, : W - 1], dtype=np.float64)
    ys, xs = np.mgrid[0 : H - 1, 0 : W - 1].astype(np.float64)
    p1 = np.stack((xs, ys, z), axis=-1)
    p2 = np.stack((xs + 1.0, ys, z), axis=-1)
    p3 = np.stack((xs, ys + 1.0, z), axis=-1)
    p4 = np.stack((xs + 1.0, ys + 1.0, z), axis=-1)

    a = get_depth_area(p1, p2, p3, resize_factor, convert)
    a += get_depth_area(p2, p3, p4, resize_factor, convert)
    a[z == 0] = 0.0
    area[: H - 1, : W - 1] = a
    return area


def calculate_basic_score(
    depth: Any,
    height_factor: float,
    depth_factor: float,
    resize_factor: float,
    convert: DepthToWorld = DEFAULT_CAMERA,
    out: Optional[np.ndarray] = None,
    max_depth: float = MAX_DEPTH,
) -> np.ndarray:
    """score = world_y * height_factor + (max_depth - world_z) * depth_factor; 0 where depth is 0."""
    d = _as_depth(depth)
    H, W = int(d.shape[0]), int(d.shape[1])
    score = _out_buffer(out, (H, W), "score")
    if H == 0 or W == 0:
        return score

    ys, xs = np.mgrid[0:H, 0:W]
    world = np.asarray(convert(xs, ys, np.asarray(d, dtype=np.float64), float(resize_factor)), dtype=np.float64)
    s = world[..., 1] * float(height_factor) + (float(max_depth) - world[..., 2]) * float(depth_factor)
    valid = d != 0
    score[valid] = s[valid]
    return score


def calculate_edge_distance(segmentation: Any, area: np.ndarray, out: Optional[np.ndarray] = None) -> np.ndarray:
    """
    Approximate area-weighted distance to the mask boundary.

    The mask is dilated once (closes pinholes), then eroded repeatedly with a
    3x3 cross; after each erosion the area of every surviving pixel is added to
    the accumulator. Stops when nothing survives, when everything survives
    (a full image never erodes), or after width // 2 rounds.
    """
    seg = np.asarray(segmentation)
    if seg.ndim != 2:
        raise ValueError("segmentation must be a 2D array")
    check_buffer("area", area, seg.shape)
    edge = _out_buffer(out, seg.shape, "edge_distance")

    eroded = (seg != 0).astype(np.uint8)
    eroded = cv2.dilate(eroded, _CROSS)

    image_len = int(eroded.size)
    max_iterations = int(seg.shape[1]) // 2
    iterations = 0
    while True:
        eroded = cv2.erode(eroded, _CROSS)
        keep = eroded != 0
        edge[keep] += area[keep]

        nonzero = int(cv2.countNonZero(eroded))
        if nonzero == 0 or nonzero >= image_len:
            break
        iterations += 1
        if iterations >= max_iterations:
            break

    logger.debug("edge distance: %d erosion rounds", iterations + 1)
    return edge
