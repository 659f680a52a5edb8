# nidscan/geometry/rectify.py
from __future__ import annotations
from typing import Dict, Optional, Tuple
import cv2
import numpy as np

from nidscan.core.config import merge_cfg
from nidscan.geometry.detect import order_corners_clockwise
from nidscan.geometry.orient import rotate_image

# ID-1 aspect (W/H). 85.60×53.98 mm ≈ 1.586.
CARD_ASPECT = 1.586

_DEFAULT_CFG: Dict = {
    "card_width": 1000.0,
    "card_aspect": CARD_ASPECT,
    "padding": 64,
    "debug": False,
}


def card_base_size(is_wide: bool, cfg: Optional[Dict] = None) -> Tuple[float, float]:
    """(width, height) of the card area before padding."""
    cfg = merge_cfg(_DEFAULT_CFG, cfg)
    long_side = float(cfg["card_width"])
    short_side = long_side / float(cfg["card_aspect"])
    return (long_side, short_side) if is_wide else (short_side, long_side)


def destination_corners(base_w: float, base_h: float, padding: int) -> np.ndarray:
    p = float(padding)
    return np.array([[p, p],
                     [base_w + p, p],
                     [base_w + p, base_h + p],
                     [p, base_h + p]], dtype=np.float32)


def crop_id_card(
    image: np.ndarray,
    quad_xy: np.ndarray,
    is_wide: bool,
    *,
    padding: Optional[int] = None,
    cfg: Optional[Dict] = None,
) -> Optional[np.ndarray]:
    """
    Perspective-warp the detected quad into a padded, upright ID-card image.

    Args:
        image: color image (BGR or RGBA), same pixel space as quad_xy.
        quad_xy: 4×2 points (any order; reordered TL,TR,BR,BL here).
        is_wide: orientation from the detector. Portrait quads are warped
                 into a portrait rectangle and then turned 90° clockwise.
        padding: margin in pixels kept around the card on every side.

    Returns:
        The rectified image, or None when quad_xy does not hold exactly
        4 points.
    """
    cfg = merge_cfg(_DEFAULT_CFG, cfg)
    if quad_xy is None:
        return None
    q = np.asarray(quad_xy, np.float32)
    if q.size != 8:
        if cfg.get("debug"):
            print(f"[rectify] need 4 points, got {q.size // 2 if q.ndim else 0}")
        return None

    pad = int(cfg["padding"] if padding is None else padding)
    base_w, base_h = card_base_size(is_wide, cfg)
    out_w = int(round(base_w + 2 * pad))
    out_h = int(round(base_h + 2 * pad))

    src = order_corners_clockwise(q.reshape(4, 2))
    dst = destination_corners(base_w, base_h, pad)
    Hmat = cv2.getPerspectiveTransform(src, dst)
    warped = cv2.warpPerspective(image, Hmat, (out_w, out_h), flags=cv2.INTER_LANCZOS4)

    if cfg.get("debug"):
        print(f"[rectify] wide={is_wide} out={out_w}x{out_h} pad={pad}")
    if not is_wide:
        return rotate_image(warped, 90)
    return warped
