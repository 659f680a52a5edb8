# nidscan/capture/gate.py
from __future__ import annotations
import math
from typing import Optional, Sequence, Tuple
import numpy as np

DEFAULT_THRESHOLD_RATIO = 0.1


def is_near_center(
    pts: Optional[Sequence[Sequence[float]]],
    viewport_size: Tuple[float, float],
    threshold_ratio: float = DEFAULT_THRESHOLD_RATIO,
) -> bool:
    """
    True when the centroid of the 4 viewport points lies strictly within
    threshold_ratio * min(view_w, view_h) of the viewport centre.

    Anything other than exactly 4 points is "not ready".
    """
    if pts is None:
        return False
    p = np.asarray(pts, np.float64)
    if p.size != 8:
        return False
    p = p.reshape(4, 2)
    view_w, view_h = float(viewport_size[0]), float(viewport_size[1])
    cx, cy = p.mean(axis=0)
    distance = math.hypot(cx - view_w / 2.0, cy - view_h / 2.0)
    return distance < min(view_w, view_h) * float(threshold_ratio)
