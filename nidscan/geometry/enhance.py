# nidscan/geometry/enhance.py
"""
Adaptive edge-map builder for document contour search.

Each frame is classified on its own (no smoothing across frames) into
bright / high-quality / low-contrast, and the filter chain is picked from
that classification:

    gray ─► [CLAHE if low contrast] ─► bright?  Sobel+Laplacian blend
                                        └─ else  Gaussian blur
         ─► Canny (thresholds follow mean intensity) ─► elliptical close
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Optional
import cv2
import numpy as np

from nidscan.core.config import merge_cfg
from nidscan.core.contracts import ImageStatistics

_DEFAULT_CFG: Dict = {
    "bright_intensity": 130.0,
    "low_contrast_std": 30.0,
    "sharpness_min": 100.0,
    "high_quality_pixels": 1_000_000,
    "clahe": {"clip_limit": 2.0, "tile_grid": 8},
    "gradient_weight": 0.4,
    "laplacian_weight": {"high_quality": 0.1, "default": 0.25},
    "blur_ksize": {"high_quality": 9, "default": 7},
    "canny": {"low_floor": 30.0, "low_factor": 0.4, "high_ceil": 220.0, "high_factor": 1.4},
    "close_ksize": {"bright_high_quality": 11, "bright": 9, "default": 7},
    "debug": False,
}


@dataclass(frozen=True)
class SceneClass:
    bright: bool
    high_quality: bool
    low_contrast: bool


def _odd(k: int) -> int:
    k = max(1, int(k))
    return k if k % 2 == 1 else k + 1


def _check_gray(gray: np.ndarray) -> np.ndarray:
    g = np.asarray(gray)
    if g.ndim != 2:
        raise ValueError(f"Expected a single-channel image, got shape {g.shape}")
    if g.dtype != np.uint8:
        raise ValueError(f"Expected uint8 samples, got {g.dtype}")
    return g


def image_statistics(gray: np.ndarray) -> ImageStatistics:
    """Mean / std of intensity and std of the Laplacian (sharpness)."""
    g = _check_gray(gray)
    mean, std = cv2.meanStdDev(g)
    lap = cv2.Laplacian(g, cv2.CV_64F)
    _, lap_std = cv2.meanStdDev(lap)
    return ImageStatistics(
        mean_intensity=float(mean[0][0]),
        intensity_std=float(std[0][0]),
        laplacian_std=float(lap_std[0][0]),
        pixel_count=int(g.shape[0] * g.shape[1]),
    )


def classify_scene(stats: ImageStatistics, cfg: Optional[Dict] = None) -> SceneClass:
    cfg = merge_cfg(_DEFAULT_CFG, cfg)
    bright = stats.mean_intensity > float(cfg["bright_intensity"])
    high_quality = (stats.pixel_count > int(cfg["high_quality_pixels"])
                    and stats.laplacian_std > float(cfg["sharpness_min"]))
    low_contrast = stats.intensity_std < float(cfg["low_contrast_std"]) and not bright
    return SceneClass(bright=bright, high_quality=high_quality, low_contrast=low_contrast)


def canny_thresholds(mean_intensity: float, cfg: Optional[Dict] = None):
    """(low, high) hysteresis thresholds scaled by scene brightness."""
    c = merge_cfg(_DEFAULT_CFG, cfg)["canny"]
    low = max(float(c["low_floor"]), float(c["low_factor"]) * mean_intensity)
    high = min(float(c["high_ceil"]), float(c["high_factor"]) * mean_intensity)
    return low, high


def close_kernel_size(scene: SceneClass, cfg: Optional[Dict] = None) -> int:
    k = merge_cfg(_DEFAULT_CFG, cfg)["close_ksize"]
    if scene.bright:
        return int(k["bright_high_quality"] if scene.high_quality else k["bright"])
    return int(k["default"])


def _gradient_blend(base: np.ndarray, scene: SceneClass, cfg: Dict) -> np.ndarray:
    # Structural edges over noise for bright, detailed scenes
    sobel_x = cv2.Sobel(base, cv2.CV_16S, 1, 0)
    sobel_y = cv2.Sobel(base, cv2.CV_16S, 0, 1)
    lap = cv2.Laplacian(base, cv2.CV_16S, ksize=3, scale=1.0, delta=0.0)
    abs_x = cv2.convertScaleAbs(sobel_x)
    abs_y = cv2.convertScaleAbs(sobel_y)
    abs_lap = cv2.convertScaleAbs(lap)
    gw = float(cfg["gradient_weight"])
    lw = cfg["laplacian_weight"]
    lap_w = float(lw["high_quality"] if scene.high_quality else lw["default"])
    blend = cv2.addWeighted(abs_x, gw, abs_y, gw, 0.0)
    return cv2.addWeighted(blend, 1.0, abs_lap, lap_w, 0.0)


def enhance(gray: np.ndarray, cfg: Optional[Dict] = None) -> np.ndarray:
    """
    Build a closed binary edge map (values 0/255, same size as input).

    Raises ValueError for non-2D or non-uint8 input. An empty input gives
    back an empty map, which the detector reports as "not found".
    """
    cfg = merge_cfg(_DEFAULT_CFG, cfg)
    g = _check_gray(gray)
    if g.size == 0:
        return np.zeros_like(g)

    stats = image_statistics(g)
    scene = classify_scene(stats, cfg)

    if scene.low_contrast:
        c = cfg["clahe"]
        tile = int(c["tile_grid"])
        clahe = cv2.createCLAHE(clipLimit=float(c["clip_limit"]), tileGridSize=(tile, tile))
        base = clahe.apply(g)
    else:
        base = g

    if scene.bright:
        filtered = _gradient_blend(base, scene, cfg)
    else:
        b = cfg["blur_ksize"]
        k = _odd(b["high_quality"] if scene.high_quality else b["default"])
        filtered = cv2.GaussianBlur(base, (k, k), 0)

    low, high = canny_thresholds(stats.mean_intensity, cfg)
    edges = cv2.Canny(filtered, low, high)

    ksize = close_kernel_size(scene, cfg)
    kernel = cv2.getStructuringElement(cv2.MORPH_ELLIPSE, (ksize, ksize))
    closed = cv2.morphologyEx(edges, cv2.MORPH_CLOSE, kernel)

    if cfg.get("debug"):
        print(f"[enhance] mean={stats.mean_intensity:.1f} std={stats.intensity_std:.1f} "
              f"sharp={stats.laplacian_std:.1f} px={stats.pixel_count} "
              f"bright={scene.bright} hq={scene.high_quality} clahe={scene.low_contrast} "
              f"canny=({low:.1f},{high:.1f}) close={ksize}")
    return closed
