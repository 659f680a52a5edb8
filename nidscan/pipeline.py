# nidscan/pipeline.py
"""
Wires the stages together.

Live preview (per frame, on a worker thread):
    gray ─► enhance ─► find_biggest_quad ─► map to viewport ─► centre gate
         ─► arm / cancel the delayed capture

Still / gallery:
    file ─► decode_still ─► enhance ─► find_biggest_quad ─► crop_id_card
"""
from __future__ import annotations
from pathlib import Path
from typing import Dict, Optional, Tuple, Union
import numpy as np

from nidscan.capture.gate import DEFAULT_THRESHOLD_RATIO, is_near_center
from nidscan.capture.scheduler import CaptureScheduler
from nidscan.core.contracts import FitPolicy, FrameAnalysis, ValidationResult
from nidscan.geometry.detect import find_biggest_quad
from nidscan.geometry.enhance import enhance
from nidscan.geometry.rectify import crop_id_card
from nidscan.geometry.viewport import compute_transform, map_points
from nidscan.io.ingest import decode_still


def _section(cfg: Optional[Dict], name: str) -> Dict:
    return dict((cfg or {}).get(name) or {})


class LivePipeline:
    """
    Per-frame analysis for the preview path. Holds only the viewport
    settings and an optional scheduler; nothing about previous frames.
    """

    def __init__(self,
                 viewport_size: Tuple[float, float],
                 fit_policy: FitPolicy = FitPolicy.FILL_CENTER,
                 cfg: Optional[Dict] = None,
                 scheduler: Optional[CaptureScheduler] = None):
        self.viewport_size = viewport_size
        self.fit_policy = fit_policy
        self.cfg = cfg or {}
        self.scheduler = scheduler

    def analyze(self, gray: np.ndarray) -> FrameAnalysis:
        edges = enhance(gray, _section(self.cfg, "enhance"))
        validation = find_biggest_quad(edges, _section(self.cfg, "detect"))

        if validation.quad is None:
            result = FrameAnalysis(validation=validation)
        else:
            h, w = gray.shape[:2]
            params = compute_transform((w, h), self.viewport_size, self.fit_policy)
            mapped = map_points(validation.quad.pts, params)
            ratio = float(_section(self.cfg, "gate").get("threshold_ratio", DEFAULT_THRESHOLD_RATIO))
            near = is_near_center(mapped, self.viewport_size, ratio)
            result = FrameAnalysis(validation=validation, mapped_pts=mapped, near_center=near)

        if self.scheduler is not None:
            if result.should_capture:
                self.scheduler.arm()
            else:
                self.scheduler.cancel()
        return result


def make_scheduler(on_fire, cfg: Optional[Dict] = None) -> CaptureScheduler:
    """CaptureScheduler using the capture section (capture_delay_s, debug)."""
    sec = _section(cfg, "capture")
    return CaptureScheduler(on_fire, delay_s=float(sec.get("capture_delay_s", 1.0)),
                            debug=bool(sec.get("debug", False)))


def scan_still(gray: np.ndarray, color: np.ndarray,
               cfg: Optional[Dict] = None) -> Tuple[ValidationResult, Optional[np.ndarray]]:
    """
    Detect and rectify on a captured still. The crop is None unless a
    size-valid card was found.
    """
    edges = enhance(gray, _section(cfg, "enhance"))
    validation = find_biggest_quad(edges, _section(cfg, "detect"))
    if validation.quad is None or not validation.is_size_valid:
        return validation, None
    crop = crop_id_card(color, validation.quad.pts, validation.is_wide,
                        cfg=_section(cfg, "rectify"))
    return validation, crop


def scan_file(path: Union[str, Path, bytes],
              cfg: Optional[Dict] = None) -> Tuple[ValidationResult, Optional[np.ndarray]]:
    """decode_still + scan_still. The crop (if any) is RGBA."""
    max_side = int(_section(cfg, "ingest").get("max_side", 1080))
    gray, rgba = decode_still(path, max_side=max_side)
    return scan_still(gray, rgba, cfg)
