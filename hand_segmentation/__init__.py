"""
`hand_segmentation` - depth-image region growing and re-seeding for hand tracking.

A tracked point is grown into a depth-band region with a budgeted flood fill,
then re-seeded at the best-scoring pixel of that region until it settles.
"""

from __future__ import annotations

from .config import CameraSettings, SegmentationSettings, load_config, settings_from_config
from .conversion import DEFAULT_CAMERA, DepthCameraModel, convert_point_to_world
from .fields import (
    MAX_DEPTH,
    calculate_basic_score,
    calculate_edge_distance,
    calculate_segment_area,
    get_depth_area,
)
from .segmentation import (
    converge_track_point_from_seed,
    find_foreground_pixel,
    segment_foreground,
    track_point_from_seed,
)
from .segmenter import HandSegmenter
from .tracking_types import NO_POINT, PixelType, TrackedPointType, TrackingData, is_no_point

__all__ = [
    "__version__",
    "CameraSettings",
    "DEFAULT_CAMERA",
    "DepthCameraModel",
    "HandSegmenter",
    "MAX_DEPTH",
    "NO_POINT",
    "PixelType",
    "SegmentationSettings",
    "TrackedPointType",
    "TrackingData",
    "calculate_basic_score",
    "calculate_edge_distance",
    "calculate_segment_area",
    "converge_track_point_from_seed",
    "convert_point_to_world",
    "find_foreground_pixel",
    "get_depth_area",
    "is_no_point",
    "load_config",
    "segment_foreground",
    "settings_from_config",
    "track_point_from_seed",
]

__version__ = "0.1.0"
