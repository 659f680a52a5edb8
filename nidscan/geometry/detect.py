# nidscan/geometry/detect.py
from __future__ import annotations
from typing import Dict, Optional, Tuple
import cv2
import numpy as np

from nidscan.core.config import merge_cfg
from nidscan.core.contracts import Quad, ValidationResult
from nidscan.geometry.enhance import enhance

# ID-1 cards are 85.60 × 53.98 mm (≈1.586); the aspect window brackets that
# with room for perspective foreshortening.
_DEFAULT_CFG: Dict = {
    "min_area_ratio": 0.05,     # contours below this share of the frame are noise
    "max_area_ratio": 0.9,      # above this it is the table / the whole frame
    "approx_epsilon": 0.02,     # approxPolyDP tolerance, fraction of perimeter
    "aspect_range": (1.3, 1.8),
    "min_extent": 0.6,          # contour area / minAreaRect area
    "min_rect_side": 1e-3,
    "debug": False,
}

NOT_FOUND = ValidationResult(quad=None, is_size_valid=False, is_wide=True)


# ----------------------------------------------------------------------------- #
# Point / rectangle helpers                                                      #
# ----------------------------------------------------------------------------- #

def order_corners_clockwise(pts: np.ndarray) -> np.ndarray:
    """Return TL, TR, BR, BL given 4 unordered points.

    Sort by (y, x); the two smallest-y points are the top pair, the other two
    the bottom pair; left/right within each pair by x.
    """
    pts = np.asarray(pts, np.float32)
    if pts.shape != (4, 2):
        pts = pts.reshape(4, 2)
    idx = np.lexsort((pts[:, 0], pts[:, 1]))
    sorted_y = pts[idx]
    top2 = sorted_y[:2]
    bottom2 = sorted_y[2:]
    tl, tr = top2[np.argsort(top2[:, 0], kind="stable")]
    bl, br = bottom2[np.argsort(bottom2[:, 0], kind="stable")]
    return np.array([tl, tr, br, bl], dtype=np.float32)


def quad_is_wide(rect: Tuple[Tuple[float, float], Tuple[float, float], float]) -> bool:
    """Is the minAreaRect wider than tall once its angle is normalized?

    OpenCV < 4.5.1 reports angles in [-90, 0) and swaps sides below -45°;
    newer builds report (0, 90] and swap above 45°. Both are folded so the
    width is the side closest to the image x axis.
    """
    (_, _), (w, h), angle = rect
    if angle < -45.0 or angle > 45.0:
        w, h = h, w
    return w >= h


def rect_geometry(rect, contour_area: float, min_side: float = 1e-3) -> Optional[Tuple[float, float]]:
    """(aspect_ratio >= 1, extent) of a minAreaRect, or None if degenerate."""
    (_, _), (w, h), _ = rect
    w, h = float(w), float(h)
    if w <= min_side or h <= min_side:
        return None
    aspect = max(w, h) / min(w, h)
    extent = float(contour_area) / (w * h)
    return aspect, extent


# ----------------------------------------------------------------------------- #
# Contour search                                                                 #
# ----------------------------------------------------------------------------- #

def find_biggest_quad(edges: np.ndarray, cfg: Optional[Dict] = None) -> ValidationResult:
    """
    Pick the largest external contour that approximates to exactly 4 vertices
    and validate it as an ID card.

    Never raises for "nothing there": an empty map or no 4-vertex contour
    gives ValidationResult(None, False, True).
    """
    cfg = merge_cfg(_DEFAULT_CFG, cfg)
    if edges is None or edges.size == 0:
        return NOT_FOUND
    e = np.asarray(edges)
    if e.ndim != 2:
        raise ValueError(f"Edge map must be single-channel, got shape {e.shape}")
    if e.dtype != np.uint8:
        e = e.astype(np.uint8)

    H, W = e.shape[:2]
    frame_area = float(H * W)
    min_area = frame_area * float(cfg["min_area_ratio"])
    eps_scale = float(cfg["approx_epsilon"])

    cnts, _ = cv2.findContours(e, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)

    best: Optional[np.ndarray] = None
    best_area = 0.0
    for c in cnts:
        area = float(cv2.contourArea(c))
        # strict ">" keeps the first-seen contour on ties
        if area <= min_area or area <= best_area:
            continue
        peri = cv2.arcLength(c, True)
        approx = cv2.approxPolyDP(c, eps_scale * peri, True)
        if len(approx) != 4:
            continue
        best = approx.reshape(4, 2).astype(np.float32)
        best_area = area

    if best is None:
        if cfg.get("debug"):
            print(f"[detect] no 4-vertex contour among {len(cnts)} (min area {min_area:.0f})")
        return NOT_FOUND

    rect = cv2.minAreaRect(best)
    is_wide = quad_is_wide(rect)
    geom = rect_geometry(rect, best_area, float(cfg["min_rect_side"]))
    if geom is None:
        if cfg.get("debug"):
            print(f"[detect] degenerate rect {rect[1]}")
        return ValidationResult(quad=Quad(pts=order_corners_clockwise(best)),
                                is_size_valid=False, is_wide=is_wide)

    aspect, extent = geom
    a_min, a_max = cfg["aspect_range"]
    valid = (best_area < frame_area * float(cfg["max_area_ratio"])
             and float(a_min) <= aspect <= float(a_max)
             and extent > float(cfg["min_extent"]))

    if cfg.get("debug"):
        print(f"[detect] area%={best_area / frame_area:.3f} aspect={aspect:.3f} "
              f"extent={extent:.3f} wide={is_wide} -> valid={valid}")
    return ValidationResult(quad=Quad(pts=order_corners_clockwise(best)),
                            is_size_valid=valid, is_wide=is_wide)


def detect_document(gray: np.ndarray,
                    enhance_cfg: Optional[Dict] = None,
                    detect_cfg: Optional[Dict] = None) -> ValidationResult:
    """Enhance a gray frame and search it for the card outline."""
    edges = enhance(gray, enhance_cfg)
    return find_biggest_quad(edges, detect_cfg)
