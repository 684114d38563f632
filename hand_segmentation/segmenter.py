"""
Per-frame driver around the segmentation core.

Typical host loop:

    seg = HandSegmenter(settings=SegmentationSettings(), camera=DepthCameraModel())
    seg.prepare(depth, foreground=motion_mask)
    found, seed = seg.next_seed()
    while found:
        point = seg.track(seed, reference_depth=float(depth[seed[1], seed[0]]))
        ...
        found, seed = seg.next_seed()
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Tuple

import numpy as np

from .config import SegmentationSettings
from .conversion import DEFAULT_CAMERA, DepthToWorld
from .fields import calculate_basic_score, calculate_edge_distance, calculate_segment_area
from .segmentation import converge_track_point_from_seed, find_foreground_pixel
from .tracking_types import PixelType, Point, TrackedPointType, TrackingData, check_buffer

logger = logging.getLogger(__name__)


class HandSegmenter:
    def __init__(self, *, settings: SegmentationSettings = SegmentationSettings(), camera: DepthToWorld = DEFAULT_CAMERA):
        self.settings = settings
        self.camera = camera

        self._shape: Tuple[int, int] = (0, 0)
        self._depth: Optional[np.ndarray] = None
        self._area = np.empty((1, 1), dtype=np.float32)
        self._score = np.empty((1, 1), dtype=np.float32)
        self._state = np.empty((1, 1), dtype=np.uint8)
        self._global = np.empty((1, 1), dtype=np.uint8)

        # Last-run debug
        self.last_filled_px: int = 0
        self.last_layer: Optional[np.ndarray] = None

    def _ensure(self, h: int, w: int) -> None:
        if self._shape == (h, w):
            return
        self._shape = (h, w)
        self._area = np.zeros((h, w), dtype=np.float32)
        self._score = np.zeros((h, w), dtype=np.float32)
        self._state = np.zeros((h, w), dtype=np.uint8)
        self._global = np.zeros((h, w), dtype=np.uint8)

    def _require_frame(self) -> np.ndarray:
        if self._depth is None:
            raise RuntimeError("prepare() must be called before tracking")
        return self._depth

    @property
    def area(self) -> np.ndarray:
        return self._area

    @property
    def score(self) -> np.ndarray:
        return self._score

    @property
    def state(self) -> np.ndarray:
        return self._state

    @property
    def global_segmentation(self) -> np.ndarray:
        return self._global

    def prepare(self, depth: Any, foreground: Optional[np.ndarray] = None) -> None:
        """Load a depth frame: build the area and score fields and reset the masks."""
        d = np.asarray(depth, dtype=np.float32)
        if d.ndim != 2 or d.size == 0:
            raise ValueError("depth must be a non-empty 2D array")
        H, W = int(d.shape[0]), int(d.shape[1])
        if foreground is not None:
            check_buffer("foreground", foreground, (H, W))

        self._ensure(H, W)
        self._depth = d
        s = self.settings
        calculate_segment_area(d, s.resize_factor, self.camera, out=self._area)
        calculate_basic_score(
            d,
            s.height_factor,
            s.depth_factor,
            s.resize_factor,
            self.camera,
            out=self._score,
            max_depth=s.max_depth,
        )
        self._global.fill(0)
        self._state.fill(int(PixelType.UNVISITED))
        if foreground is not None:
            self._state[np.asarray(foreground) != 0] = int(PixelType.FOREGROUND)
        self.last_filled_px = 0
        self.last_layer = None

    def track(
        self,
        seed: Point,
        reference_depth: float,
        point_type: TrackedPointType = TrackedPointType.PASSIVE,
        bandwidth_depth: Optional[float] = None,
    ) -> Point:
        """Converge a tracked point from `seed`; NO_POINT when nothing is in range."""
        depth = self._require_frame()
        s = self.settings
        data = TrackingData(
            depth=depth,
            area=self._area,
            score=self._score,
            state=self._state,
            global_segmentation=self._global,
            seed_position=(int(seed[0]), int(seed[1])),
            reference_depth=float(reference_depth),
            bandwidth_depth=float(s.bandwidth_depth if bandwidth_depth is None else bandwidth_depth),
            point_type=point_type,
            iteration_max=int(s.iteration_max),
            max_ttl=float(s.max_ttl),
        )
        point = converge_track_point_from_seed(data)
        self.last_layer = data.layer_segmentation
        self.last_filled_px = 0 if self.last_layer is None else int(np.count_nonzero(self.last_layer))
        logger.debug("tracked %s from seed %s (%d px)", point, data.seed_position, self.last_filled_px)
        return point

    def next_seed(self) -> Tuple[bool, Point]:
        self._require_frame()
        return find_foreground_pixel(self._state)

    def edge_distance(self) -> np.ndarray:
        """Edge-distance field of everything segmented so far in this frame."""
        self._require_frame()
        return calculate_edge_distance(self._global, self._area)
