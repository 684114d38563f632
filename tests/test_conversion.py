import math

import numpy as np
import pytest

from hand_segmentation import DepthCameraModel, convert_point_to_world


def test_optical_center_maps_onto_axis():
    cam = DepthCameraModel()
    w = cam.convert_depth_to_world(160, 120, 1000.0, 1.0)
    np.testing.assert_allclose(w, [0.0, 0.0, 1000.0], atol=1e-9)


def test_axes_orientation():
    cam = DepthCameraModel()
    w = cam(0, 0, 1000.0)
    assert w[0] < 0.0  # left of center
    assert w[1] > 0.0  # above center
    assert w[2] == 1000.0
    assert w[0] == pytest.approx(-0.5 * 1000.0 * 2.0 * math.tan(1.0226 / 2.0))


def test_resize_factor_scales_pixel_coordinates():
    cam = DepthCameraModel()
    a = cam.convert_depth_to_world(80, 60, 750.0, 2.0)
    b = cam.convert_depth_to_world(160, 120, 750.0, 1.0)
    np.testing.assert_allclose(a, b)


def test_broadcasting():
    cam = DepthCameraModel(resolution_x=64, resolution_y=48)
    ys, xs = np.mgrid[0:3, 0:4]
    w = cam.convert_depth_to_world(xs, ys, 500.0, 1.0)
    assert w.shape == (3, 4, 3)
    assert (w[..., 2] == 500.0).all()


def test_convert_point_to_world_matches_xyz_form():
    cam = DepthCameraModel()
    pts = np.array([[10.0, 20.0, 800.0], [300.0, 5.0, 1200.0]])
    w = convert_point_to_world(pts, 1.0, cam)
    np.testing.assert_allclose(w[1], cam(300.0, 5.0, 1200.0))


def test_convert_point_to_world_rejects_bad_shape():
    with pytest.raises(ValueError):
        convert_point_to_world(np.zeros((2, 2)), 1.0, DepthCameraModel())


@pytest.mark.parametrize("kwargs", [{"resolution_x": 0}, {"resolution_y": -1}, {"horizontal_fov": 0.0}, {"vertical_fov": 4.0}])
def test_invalid_camera_model(kwargs):
    with pytest.raises(ValueError):
        DepthCameraModel(**kwargs)
