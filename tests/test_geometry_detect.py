"""
Pytest for the edge-map contour search and card validation.
These tests generate synthetic images on the fly, so no test assets are required.
"""
from __future__ import annotations

import numpy as np
import cv2
import pytest

from nidscan.core.contracts import Quad, ValidationResult
from nidscan.geometry.detect import (
    detect_document,
    find_biggest_quad,
    order_corners_clockwise,
    quad_is_wide,
    rect_geometry,
)
from nidscan.geometry.enhance import enhance

# ---------- Utilities to build synthetic scenes ---------- #

def _card_scene(frame_w: int = 800, frame_h: int = 600, card_w: int = 616, card_h: int = 388,
                bg: int = 30, fg: int = 200) -> np.ndarray:
    """Gray frame with one filled, axis-aligned, centred card."""
    frame = np.full((frame_h, frame_w), bg, np.uint8)
    x0 = (frame_w - card_w) // 2
    y0 = (frame_h - card_h) // 2
    cv2.rectangle(frame, (x0, y0), (x0 + card_w - 1, y0 + card_h - 1), fg, -1)
    return frame

def _outline(frame_w: int, frame_h: int, pts, thickness: int = 3) -> np.ndarray:
    """Binary edge map containing one closed polygon outline."""
    edges = np.zeros((frame_h, frame_w), np.uint8)
    cv2.polylines(edges, [np.asarray(pts, np.int32)], True, 255, thickness)
    return edges

def _rect_pts(x0, y0, w, h):
    return [[x0, y0], [x0 + w, y0], [x0 + w, y0 + h], [x0, y0 + h]]

# ---------- Tests ---------- #

def test_order_corners_clockwise_basic():
    pts = np.array([[100, 50], [400, 60], [420, 500], [90, 480]], dtype=np.float32)
    np.random.default_rng(0).shuffle(pts)
    ordered = order_corners_clockwise(pts)
    s = ordered.sum(axis=1)
    assert np.argmin(s) == 0  # TL
    assert np.argmax(s) == 2  # BR
    np.testing.assert_allclose(ordered, [[100, 50], [400, 60], [420, 500], [90, 480]])

def test_empty_edge_map_is_not_found():
    res = find_biggest_quad(np.zeros((0, 0), np.uint8))
    assert res == ValidationResult(quad=None, is_size_valid=False, is_wide=True)
    assert not res.found

@pytest.mark.parametrize("value", [0, 255])
def test_uniform_frames_have_no_quad(value):
    gray = np.full((480, 640), value, np.uint8)
    res = detect_document(gray)
    assert res.quad is None
    assert res.is_size_valid is False

def test_centered_card_half_frame_is_valid():
    # 616×388 ≈ 1.588 aspect, ≈ 50% of an 800×600 frame
    gray = _card_scene()
    res = detect_document(gray)
    assert isinstance(res.quad, Quad)
    assert res.quad.pts.shape == (4, 2)
    assert res.quad.pts.dtype == np.float32
    assert res.is_size_valid
    assert res.is_wide
    cx, cy = res.quad.centroid()
    assert cx == pytest.approx(400, abs=3)
    assert cy == pytest.approx(300, abs=3)

def test_portrait_card_is_not_wide():
    gray = _card_scene(frame_w=600, frame_h=800, card_w=388, card_h=616)
    res = detect_document(gray)
    assert res.quad is not None
    assert res.is_size_valid
    assert res.is_wide is False

def test_small_contours_are_ignored():
    # ~1% of frame: below the 5% floor
    edges = _outline(800, 600, _rect_pts(100, 100, 80, 50))
    assert find_biggest_quad(edges).quad is None

def test_largest_four_sided_contour_wins():
    edges = _outline(800, 600, _rect_pts(20, 20, 300, 190))
    cv2.polylines(edges, [np.asarray(_rect_pts(380, 150, 400, 252), np.int32)], True, 255, 3)
    res = find_biggest_quad(edges)
    assert res.quad is not None
    assert res.quad.pts[:, 0].min() >= 370

def test_non_quadrilateral_is_skipped():
    tri = [[100, 500], [400, 60], [700, 500]]
    edges = _outline(800, 600, tri)
    assert find_biggest_quad(edges).quad is None

def test_square_is_found_but_invalid():
    edges = _outline(800, 600, _rect_pts(200, 100, 400, 400))
    res = find_biggest_quad(edges)
    assert res.quad is not None
    assert res.is_size_valid is False

def test_concave_outline_fails_extent():
    # arrowhead: 4 vertices, but fills only a third of its bounding rect
    dart = [[100, 100], [700, 300], [100, 500], [300, 300]]
    res = find_biggest_quad(_outline(800, 600, dart))
    assert res.quad is not None
    assert res.is_size_valid is False

def test_elongated_rectangle_is_invalid():
    # 600×250 = 2.4, above the 1.8 ceiling
    res = find_biggest_quad(_outline(800, 600, _rect_pts(100, 175, 600, 250)))
    assert res.quad is not None
    assert res.is_wide
    assert res.is_size_valid is False

def test_nearly_full_frame_is_invalid():
    # 97% of the frame, aspect fine: treated as the background, not a card
    edges = _outline(800, 504, _rect_pts(4, 4, 790, 495), thickness=2)
    res = find_biggest_quad(edges)
    assert res.quad is not None
    assert res.is_size_valid is False

def test_config_can_widen_aspect_window():
    edges = _outline(800, 600, _rect_pts(200, 100, 400, 400))
    res = find_biggest_quad(edges, {"aspect_range": (0.9, 1.8)})
    assert res.is_size_valid

@pytest.mark.parametrize("rect, wide", [
    (((0, 0), (100, 50), 0.0), True),
    (((0, 0), (50, 100), 0.0), False),
    (((0, 0), (50, 100), 90.0), True),     # OpenCV >= 4.5.1 convention
    (((0, 0), (50, 100), -90.0), True),    # legacy convention
    (((0, 0), (100, 50), -80.0), False),
    (((0, 0), (100, 50), 30.0), True),
])
def test_quad_is_wide_normalizes_angle(rect, wide):
    assert quad_is_wide(rect) is wide

def test_rect_geometry_guards_degenerate_sides():
    assert rect_geometry(((0, 0), (0.0, 10.0), 0.0), 0.0) is None
    aspect, extent = rect_geometry(((0, 0), (50.0, 100.0), 0.0), 2500.0)
    assert aspect == pytest.approx(2.0)
    assert extent == pytest.approx(0.5)

def test_enhanced_map_of_card_detects_same_as_convenience():
    gray = _card_scene()
    a = find_biggest_quad(enhance(gray))
    b = detect_document(gray)
    np.testing.assert_array_equal(a.quad.pts, b.quad.pts)
