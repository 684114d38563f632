"""Configuration helpers and defaults (YAML + programmatic overrides)."""

from __future__ import annotations

import copy
import logging
import os
from dataclasses import dataclass
from typing import Any, Optional

import yaml

from .conversion import DepthCameraModel
from .tracking_types import DEFAULT_MAX_TTL

logger = logging.getLogger(__name__)


def _default_config() -> dict:
    return {
        "segmentation": {
            # Flood-fill distance budget (depth units, mm). Refreshed on FOREGROUND pixels.
            "max_ttl": DEFAULT_MAX_TTL,
            # Sensor range used by the score field.
            "max_depth": 10000.0,
            # Depth band accepted around the reference depth: [ref, ref + bandwidth).
            "bandwidth_depth": 150.0,
            # Cap on re-seeding passes per tracked point.
            "iteration_max": 10,
            "height_factor": 1.0,
            "depth_factor": 1.0,
            # Processing buffers are the native depth stream downscaled by this factor.
            "resize_factor": 1.0,
        },
        "camera": {
            "resolution_x": 320,
            "resolution_y": 240,
            "horizontal_fov": 1.0226,  # radians
            "vertical_fov": 0.796,  # radians
        },
    }


def _deep_update(dst: dict, src: dict) -> dict:
    for k, v in (src or {}).items():
        if isinstance(v, dict) and isinstance(dst.get(k), dict):
            _deep_update(dst[k], v)
        else:
            dst[k] = v
    return dst


def _load_yaml_config(path: Optional[str]) -> dict:
    if not path:
        return {}
    if not os.path.exists(str(path)):
        logger.info("config file %s not found; using defaults", path)
        return {}
    try:
        with open(str(path), "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as exc:
        raise RuntimeError(f"Failed to parse YAML config: {path} ({type(exc).__name__}: {exc})") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise RuntimeError(f"Failed to parse YAML config: {path} (top level is not a mapping)")
    logger.info("loaded config %s", path)
    return dict(data)


def load_config(path: Optional[str] = None, overrides: Optional[dict] = None) -> dict:
    """Defaults, deep-merged with the YAML file at `path`, then with `overrides`."""
    cfg = _default_config()
    _deep_update(cfg, _load_yaml_config(path))
    _deep_update(cfg, copy.deepcopy(overrides or {}))
    return cfg


def _section(cfg: Optional[dict], name: str) -> dict:
    defaults = _default_config()[name]
    sec = (cfg or {}).get(name) or {}
    if not isinstance(sec, dict):
        raise ValueError(f"config section '{name}' must be a mapping")
    out = dict(defaults)
    out.update(sec)
    return out


@dataclass(frozen=True)
class SegmentationSettings:
    max_ttl: float = DEFAULT_MAX_TTL
    max_depth: float = 10000.0
    bandwidth_depth: float = 150.0
    iteration_max: int = 10
    height_factor: float = 1.0
    depth_factor: float = 1.0
    resize_factor: float = 1.0

    def __post_init__(self) -> None:
        if float(self.max_ttl) <= 0.0:
            raise ValueError("max_ttl must be > 0")
        if float(self.bandwidth_depth) <= 0.0:
            raise ValueError("bandwidth_depth must be > 0")
        if float(self.resize_factor) <= 0.0:
            raise ValueError("resize_factor must be > 0")
        if int(self.iteration_max) < 1:
            raise ValueError("iteration_max must be >= 1")

    @classmethod
    def from_config(cls, cfg: Optional[dict]) -> "SegmentationSettings":
        s = _section(cfg, "segmentation")
        return cls(
            max_ttl=float(s["max_ttl"]),
            max_depth=float(s["max_depth"]),
            bandwidth_depth=float(s["bandwidth_depth"]),
            iteration_max=int(s["iteration_max"]),
            height_factor=float(s["height_factor"]),
            depth_factor=float(s["depth_factor"]),
            resize_factor=float(s["resize_factor"]),
        )


@dataclass(frozen=True)
class CameraSettings:
    resolution_x: int = 320
    resolution_y: int = 240
    horizontal_fov: float = 1.0226
    vertical_fov: float = 0.796

    @classmethod
    def from_config(cls, cfg: Optional[dict]) -> "CameraSettings":
        s = _section(cfg, "camera")
        return cls(
            resolution_x=int(s["resolution_x"]),
            resolution_y=int(s["resolution_y"]),
            horizontal_fov=float(s["horizontal_fov"]),
            vertical_fov=float(s["vertical_fov"]),
        )

    def camera_model(self) -> DepthCameraModel:
        """Validated depth-to-world model for these settings."""
        return DepthCameraModel(
            resolution_x=int(self.resolution_x),
            resolution_y=int(self.resolution_y),
            horizontal_fov=float(self.horizontal_fov),
            vertical_fov=float(self.vertical_fov),
        )


def settings_from_config(cfg: Any) -> tuple:
    """(SegmentationSettings, DepthCameraModel) for a loaded config dict."""
    return SegmentationSettings.from_config(cfg), CameraSettings.from_config(cfg).camera_model()
