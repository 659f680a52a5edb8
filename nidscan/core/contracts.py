"""
Core contracts and simple data types shared across stages.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple
import numpy as np


@dataclass
class Quad:
    """
    The four document corners in pixel coordinates, ordered clockwise:
    [top-left, top-right, bottom-right, bottom-left].

    pts: np.ndarray with shape (4, 2), dtype float32
    """
    pts: np.ndarray

    def as_tuple(self) -> Tuple[Tuple[float, float], Tuple[float, float], Tuple[float, float], Tuple[float, float]]:
        return tuple(map(tuple, self.pts.astype(float)))  # type: ignore[return-value]

    def centroid(self) -> Tuple[float, float]:
        c = np.asarray(self.pts, np.float64).reshape(-1, 2).mean(axis=0)
        return float(c[0]), float(c[1])


@dataclass(frozen=True)
class ImageStatistics:
    mean_intensity: float
    intensity_std: float
    laplacian_std: float   # sharpness proxy
    pixel_count: int


@dataclass(frozen=True)
class ValidationResult:
    """
    Detector output. When quad is None the other two fields carry no
    geometry (is_size_valid is False, is_wide defaults to True).
    """
    quad: Optional[Quad] = None
    is_size_valid: bool = False
    is_wide: bool = True

    @property
    def found(self) -> bool:
        return self.quad is not None


@dataclass(frozen=True)
class TransformParams:
    """Image → viewport mapping. Scale is uniform; both axes are kept."""
    scale_x: float
    scale_y: float
    offset_x: float
    offset_y: float


class FitPolicy(Enum):
    FILL_START = "fill_start"
    FILL_CENTER = "fill_center"
    FILL_END = "fill_end"
    FIT_START = "fit_start"
    FIT_CENTER = "fit_center"
    FIT_END = "fit_end"

    @property
    def is_fill(self) -> bool:
        return self in (FitPolicy.FILL_START, FitPolicy.FILL_CENTER, FitPolicy.FILL_END)

    @property
    def alignment(self) -> str:
        """'start', 'center' or 'end'."""
        return self.value.split("_", 1)[1]


@dataclass(frozen=True)
class FrameAnalysis:
    """Result of one live-preview frame."""
    validation: ValidationResult
    mapped_pts: Optional[np.ndarray] = None   # viewport space, TL,TR,BR,BL
    near_center: bool = False

    @property
    def should_capture(self) -> bool:
        return self.validation.is_size_valid and self.near_center
