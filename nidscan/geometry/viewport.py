# nidscan/geometry/viewport.py
"""
Image-pixel → viewport mapping for preview overlays.

FILL scales so the viewport is covered (image may overflow), FIT so the
whole image is visible (viewport may letterbox). The start/center/end part
of the policy places the scaled image on each axis independently.
"""
from __future__ import annotations
from typing import Tuple, Union
import numpy as np

from nidscan.core.contracts import FitPolicy, TransformParams
from nidscan.geometry.detect import order_corners_clockwise

Size = Tuple[float, float]   # (width, height)


def _as_policy(policy: Union[FitPolicy, str]) -> FitPolicy:
    if isinstance(policy, FitPolicy):
        return policy
    try:
        return FitPolicy(str(policy).lower())
    except ValueError:
        raise ValueError(f"Unknown fit policy: {policy!r}") from None


def _align(free_space: float, alignment: str) -> float:
    if alignment == "start":
        return 0.0
    if alignment == "center":
        return free_space / 2.0
    return free_space


def compute_transform(image_size: Size, viewport_size: Size,
                      policy: Union[FitPolicy, str] = FitPolicy.FILL_CENTER) -> TransformParams:
    """
    Uniform scale + offset placing an image of image_size (w, h) inside a
    viewport of viewport_size (w, h).
    """
    policy = _as_policy(policy)
    src_w, src_h = float(image_size[0]), float(image_size[1])
    view_w, view_h = float(viewport_size[0]), float(viewport_size[1])
    if src_w <= 0 or src_h <= 0:
        raise ValueError(f"Image size must be positive, got {image_size}")
    if view_w <= 0 or view_h <= 0:
        raise ValueError(f"Viewport size must be positive, got {viewport_size}")

    sx, sy = view_w / src_w, view_h / src_h
    scale = max(sx, sy) if policy.is_fill else min(sx, sy)

    offset_x = _align(view_w - src_w * scale, policy.alignment)
    offset_y = _align(view_h - src_h * scale, policy.alignment)
    return TransformParams(scale_x=scale, scale_y=scale, offset_x=offset_x, offset_y=offset_y)


def map_points(pts: np.ndarray, params: TransformParams) -> np.ndarray:
    """Map 4 image points into the viewport, returned as TL, TR, BR, BL."""
    p = np.asarray(pts, np.float64).reshape(-1, 2)
    if p.shape[0] != 4:
        raise ValueError(f"Expected 4 points, got {p.shape[0]}")
    mapped = np.empty_like(p)
    mapped[:, 0] = p[:, 0] * params.scale_x + params.offset_x
    mapped[:, 1] = p[:, 1] * params.scale_y + params.offset_y
    return order_corners_clockwise(mapped)

