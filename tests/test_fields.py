import numpy as np
import pytest

from hand_segmentation import (
    MAX_DEPTH,
    DepthCameraModel,
    calculate_basic_score,
    calculate_edge_distance,
    calculate_segment_area,
    get_depth_area,
)


def ortho(x, y, depth, resize_factor):
    """Orthographic stand-in: pixel units scaled by the resize factor, z = depth."""
    rf = float(resize_factor)
    wx, wy, wz = np.broadcast_arrays(np.asarray(x, dtype=np.float64) * rf, np.asarray(y, dtype=np.float64) * rf,
                                     np.asarray(depth, dtype=np.float64))
    return np.stack((wx, wy, wz), axis=-1)


# ---------------------------------------------------------------------------
# Geometry helper / area field
# ---------------------------------------------------------------------------


def test_depth_area_single_triangle():
    a = get_depth_area((0, 0, 5), (1, 0, 5), (0, 1, 5), 1.0, ortho)
    assert float(a) == pytest.approx(0.5)


def test_depth_area_resize_factor_scales_quadratically():
    a = get_depth_area((0, 0, 5), (1, 0, 5), (0, 1, 5), 3.0, ortho)
    assert float(a) == pytest.approx(4.5)


def test_segment_area_orthographic():
    depth = np.full((4, 5), 700.0, dtype=np.float32)
    depth[1, 2] = 0.0
    area = calculate_segment_area(depth, 2.0, ortho)

    assert area.shape == (4, 5)
    assert area.dtype == np.float32
    assert area[1, 2] == 0.0
    # Last row and column are never filled.
    assert not area[-1, :].any()
    assert not area[:, -1].any()
    interior = area[:-1, :-1].copy()
    interior[1, 2] = 4.0
    np.testing.assert_allclose(interior, 4.0)


def test_segment_area_camera_model():
    cam = DepthCameraModel()
    z = 1000.0
    depth = np.full((6, 8), z, dtype=np.float32)
    area = calculate_segment_area(depth, 1.0, cam)

    dx = z * cam.xz_factor / cam.resolution_x
    dy = z * cam.yz_factor / cam.resolution_y
    np.testing.assert_allclose(area[:-1, :-1], dx * dy, rtol=1e-5)


def test_segment_area_zero_depth_and_non_negative():
    rng = np.random.default_rng(7)
    depth = rng.uniform(300.0, 3000.0, size=(12, 16)).astype(np.float32)
    depth[rng.random((12, 16)) < 0.3] = 0.0
    area = calculate_segment_area(depth, 2.0)
    assert (area[depth == 0] == 0).all()
    assert (area >= 0).all()


def test_segment_area_writes_into_out_buffer():
    depth = np.full((3, 3), 500.0)
    out = np.full((3, 3), -1.0, dtype=np.float32)
    res = calculate_segment_area(depth, 1.0, ortho, out=out)
    assert res is out
    assert out[2, 2] == 0.0
    assert out[0, 0] == pytest.approx(1.0)


def test_segment_area_rejects_bad_out_shape():
    with pytest.raises(ValueError):
        calculate_segment_area(np.ones((3, 3)), 1.0, ortho, out=np.zeros((2, 3), dtype=np.float32))


# ---------------------------------------------------------------------------
# Score field
# ---------------------------------------------------------------------------


def test_basic_score_formula():
    depth = np.zeros((4, 3), dtype=np.float32)
    depth[2, 1] = 500.0
    score = calculate_basic_score(depth, 2.0, 0.5, 1.0, ortho)
    assert score[2, 1] == pytest.approx(2.0 * 2.0 + (MAX_DEPTH - 500.0) * 0.5)
    mask = np.ones(depth.shape, dtype=bool)
    mask[2, 1] = False
    assert not score[mask].any()


def test_basic_score_prefers_higher_and_closer_pixels():
    cam = DepthCameraModel()
    depth = np.full((240, 320), 1500.0, dtype=np.float32)
    depth[100, 160] = 900.0
    score = calculate_basic_score(depth, 1.0, 1.0, 1.0, cam)

    # On the optical center row world_y is 0, so only closeness counts.
    assert score[120, 160] == pytest.approx(MAX_DEPTH - 1500.0, rel=1e-5)
    assert score[10, 50] > score[200, 50]
    assert score[100, 160] > score[100, 161]


def test_basic_score_zero_depth_and_sensor_range():
    depth = np.array([[0.0, 1000.0], [0.0, 0.0]])
    score = calculate_basic_score(depth, 0.0, 1.0, 1.0, ortho, max_depth=4000.0)
    np.testing.assert_allclose(score, [[0.0, 3000.0], [0.0, 0.0]])


# ---------------------------------------------------------------------------
# Edge distance
# ---------------------------------------------------------------------------


def test_edge_distance_square_block():
    seg = np.zeros((9, 9), dtype=np.uint8)
    seg[3:6, 3:6] = 1
    area = np.ones((9, 9), dtype=np.float32)
    edge = calculate_edge_distance(seg, area)

    expected = np.zeros((9, 9), dtype=np.float32)
    expected[3:6, 3:6] = 1.0
    expected[4, 4] = 2.0
    np.testing.assert_array_equal(edge, expected)


def test_edge_distance_weights_by_area():
    seg = np.zeros((9, 9), dtype=bool)
    seg[3:6, 3:6] = True
    area = np.full((9, 9), 2.5, dtype=np.float32)
    edge = calculate_edge_distance(seg, area)
    assert edge[4, 4] == pytest.approx(5.0)
    assert edge[3, 3] == pytest.approx(2.5)


def test_edge_distance_full_mask_stops_after_one_round():
    seg = np.ones((4, 4), dtype=np.uint8)
    area = np.full((4, 4), 3.0, dtype=np.float32)
    edge = calculate_edge_distance(seg, area)
    np.testing.assert_allclose(edge, 3.0)


def test_edge_distance_empty_mask():
    edge = calculate_edge_distance(np.zeros((5, 5), dtype=np.uint8), np.ones((5, 5), dtype=np.float32))
    assert edge.shape == (5, 5)
    assert not edge.any()


def test_edge_distance_iteration_cap_is_half_width():
    seg = np.zeros((20, 4), dtype=np.uint8)
    seg[2:18, :] = 1
    area = np.ones((20, 4), dtype=np.float32)
    edge = calculate_edge_distance(seg, area)

    # width // 2 == 2 erosion rounds, although the band is much thicker.
    assert edge.max() == 2.0
    assert (edge[3:17] == 2.0).all()
    assert (edge[2] == 1.0).all() and (edge[17] == 1.0).all()
    assert not edge[:2].any() and not edge[18:].any()


def test_edge_distance_shape_mismatch():
    with pytest.raises(ValueError):
        calculate_edge_distance(np.ones((4, 4), dtype=np.uint8), np.ones((4, 5), dtype=np.float32))
