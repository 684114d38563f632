"""
Seeded depth-band region growing and score-driven re-seeding.

One tracker pass grows a region from the seed with a breadth-first flood fill:
each branch carries a distance budget (TTL) that decays by sqrt(pixel area)
per step, and a "path in range" flag that latches once the branch reaches a
pixel inside the depth band. Pixels already marked FOREGROUND in the state
buffer refresh the budget. The best-scoring pixel of the grown region becomes
the next seed; `converge_track_point_from_seed` repeats until it stops moving.

Example:

    data = TrackingData(depth=depth, area=area, score=score, state=state,
                        global_segmentation=global_mask, seed_position=(x, y),
                        reference_depth=z_hand, bandwidth_depth=150.0)
    point = converge_track_point_from_seed(data)
    if not is_no_point(point):
        ...
"""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import Tuple

import cv2
import numpy as np
from numba import njit

from .tracking_types import (
    NO_POINT,
    PixelType,
    Point,
    TrackingData,
    check_buffer,
    check_seed,
)

logger = logging.getLogger(__name__)

_FOREGROUND = int(PixelType.FOREGROUND)
_SEARCHED = int(PixelType.SEARCHED)


@njit(cache=True, nogil=True)  # type: ignore[misc]
def _nb_segment_foreground(
    depth: np.ndarray,
    area: np.ndarray,
    state: np.ndarray,
    layer: np.ndarray,
    sx: int,
    sy: int,
    max_depth: float,
    max_ttl: float,
    is_active: bool,
    visited: np.ndarray,
    q_idx: np.ndarray,
    q_ttl: np.ndarray,
    q_path: np.ndarray,
) -> int:
    """
    Budgeted BFS from (sx, sy). Queue entries live in three parallel arrays
    (flat pixel index, TTL, path-in-range); every pixel is enqueued at most once,
    so H*W slots suffice. Returns the number of pixels marked in `layer`.
    """
    H, W = depth.shape

    z0 = depth[sy, sx]
    seed_in_range = z0 != 0.0 and z0 < max_depth
    any_in_range = seed_in_range

    head = 0
    tail = 0
    q_idx[tail] = sy * W + sx
    q_ttl[tail] = max_ttl
    q_path[tail] = seed_in_range
    tail += 1
    visited[sy, sx] = 1
    count = 0

    while head < tail:
        idx = q_idx[head]
        ttl = float(q_ttl[head])
        path_in_range = q_path[head]
        head += 1
        x = idx % W
        y = idx // W

        if state[y, x] == _FOREGROUND:
            ttl = max_ttl
        if ttl <= 0.0:
            continue

        state[y, x] = _SEARCHED

        z = depth[y, x]
        point_in_range = z != 0.0 and z < max_depth
        if path_in_range and not point_in_range:
            continue

        # Active points keep their full budget until something in range turns up.
        if (not is_active) or any_in_range:
            ttl -= math.sqrt(area[y, x])

        if point_in_range:
            path_in_range = True
            any_in_range = True
            if layer[y, x] != _FOREGROUND:
                count += 1
            layer[y, x] = _FOREGROUND

        # right
        if x + 1 < W and visited[y, x + 1] == 0:
            visited[y, x + 1] = 1
            q_idx[tail] = idx + 1
            q_ttl[tail] = ttl
            q_path[tail] = path_in_range
            tail += 1
        # left
        if x - 1 >= 0 and visited[y, x - 1] == 0:
            visited[y, x - 1] = 1
            q_idx[tail] = idx - 1
            q_ttl[tail] = ttl
            q_path[tail] = path_in_range
            tail += 1
        # down
        if y + 1 < H and visited[y + 1, x] == 0:
            visited[y + 1, x] = 1
            q_idx[tail] = idx + W
            q_ttl[tail] = ttl
            q_path[tail] = path_in_range
            tail += 1
        # up
        if y - 1 >= 0 and visited[y - 1, x] == 0:
            visited[y - 1, x] = 1
            q_idx[tail] = idx - W
            q_ttl[tail] = ttl
            q_path[tail] = path_in_range
            tail += 1

    return count


def _check_tracking_data(data: TrackingData) -> Point:
    depth = data.depth
    if not isinstance(depth, np.ndarray) or depth.ndim != 2:
        raise ValueError("depth must be a 2D numpy array")
    shape = depth.shape
    check_buffer("area", data.area, shape)
    check_buffer("score", data.score, shape)
    check_buffer("state", data.state, shape)
    check_buffer("global_segmentation", data.global_segmentation, shape)
    return check_seed(data.seed_position, shape)


def segment_foreground(data: TrackingData, layer: np.ndarray) -> int:
    """
    Grow the region for `data.seed_position` into `layer`.

    Mutates `data.state` (visited pixels become SEARCHED) and `layer` (in-range
    pixels become FOREGROUND). Returns the number of newly marked pixels.
    """
    sx, sy = _check_tracking_data(data)
    check_buffer("layer", layer, data.depth.shape)

    H, W = data.depth.shape
    n = int(H) * int(W)
    visited = np.zeros((H, W), dtype=np.uint8)
    q_idx = np.empty((n,), dtype=np.int64)
    q_ttl = np.empty((n,), dtype=np.float32)
    q_path = np.empty((n,), dtype=np.bool_)

    filled = _nb_segment_foreground(
        data.depth,
        data.area,
        data.state,
        layer,
        int(sx),
        int(sy),
        float(data.max_depth),
        float(data.max_ttl),
        bool(data.is_active),
        visited,
        q_idx,
        q_ttl,
        q_path,
    )
    return int(filled)


def track_point_from_seed(data: TrackingData) -> Point:
    """
    One flood fill into a fresh layer mask, merged into the global mask.

    Returns the highest-scoring pixel of the layer (first in row-major order
    on ties), or NO_POINT when the layer is empty.
    """
    layer = np.zeros(data.global_segmentation.shape, dtype=np.uint8)
    data.layer_segmentation = layer

    filled = segment_foreground(data, layer)
    data.global_segmentation[layer != 0] = _FOREGROUND

    if filled == 0:
        return NO_POINT

    score = data.score
    if score.dtype != np.float32 and score.dtype != np.float64:
        score = score.astype(np.float32)
    _, _, _, max_loc = cv2.minMaxLoc(score, mask=layer)
    return int(max_loc[0]), int(max_loc[1])


def converge_track_point_from_seed(data: TrackingData) -> Point:
    """
    Re-seed from the tracker's own output until it reaches a fixed point,
    `data.iteration_max` passes have run, or the region comes back empty.
    """
    point = (int(data.seed_position[0]), int(data.seed_position[1]))
    current = data
    iterations = 0
    while True:
        last_point = point
        point = track_point_from_seed(current)
        iterations += 1
        if point == NO_POINT or point == last_point or iterations >= int(data.iteration_max):
            break
        current = replace(current, seed_position=point)

    data.layer_segmentation = current.layer_segmentation
    logger.debug("track point %s -> %s after %d iteration(s)", data.seed_position, point, iterations)
    return point


def find_foreground_pixel(state: np.ndarray) -> Tuple[bool, Point]:
    """
    First FOREGROUND pixel in row-major order, downgraded to SEARCHED so that
    repeated calls enumerate distinct seeds. Returns (False, NO_POINT) and
    leaves the buffer untouched when there is none.
    """
    if not isinstance(state, np.ndarray) or state.ndim != 2:
        raise ValueError("state must be a 2D numpy array")
    fg = state == _FOREGROUND
    if not bool(fg.any()):
        return False, NO_POINT
    y, x = np.unravel_index(int(np.argmax(fg)), state.shape)
    state[y, x] = _SEARCHED
    return True, (int(x), int(y))
