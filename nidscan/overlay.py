# nidscan/overlay.py
"""Preview-outline geometry and drawing."""
from __future__ import annotations
from typing import Tuple
import cv2
import numpy as np


def expand_points(pts: np.ndarray, padding: float) -> np.ndarray:
    """Push every point `padding` px further from the centroid along its ray."""
    p = np.asarray(pts, np.float64).reshape(-1, 2)
    if p.shape[0] == 0:
        return p.astype(np.float32)
    c = p.mean(axis=0)
    d = p - c
    length = np.hypot(d[:, 0], d[:, 1])
    scale = np.ones_like(length)
    nz = length > 1e-9
    scale[nz] = (length[nz] + float(padding)) / length[nz]
    return (c + d * scale[:, None]).astype(np.float32)


def draw_overlay(img: np.ndarray, pts: np.ndarray, valid: bool, padding: float = 8.0,
                 color: Tuple[int, int, int] = (0, 255, 0), thickness: int = 3) -> np.ndarray:
    """Copy of img with the padded outline drawn when valid (4 points only)."""
    vis = img.copy()
    if not valid or pts is None or np.asarray(pts).size != 8:
        return vis
    q = np.round(expand_points(pts, padding)).astype(np.int32).reshape(-1, 1, 2)
    if vis.ndim == 3 and vis.shape[2] == 4:
        color = tuple(color) + (255,)
    cv2.polylines(vis, [q], True, color, thickness, lineType=cv2.LINE_AA)
    return vis
