"""
Still-image I/O: reading photos (disk or bytes) into the gray + color pair
the detector and rectifier expect, and writing crops back out as JPEG.
"""

from __future__ import annotations
import io
from pathlib import Path
from typing import Tuple, Union
import cv2
import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

_EXIF_ORIENTATION = 0x0112
_ORIENTATION_NORMAL = 1

Source = Union[str, Path, bytes, bytearray]


def _imread(path: Union[str, Path], flags: int) -> np.ndarray:
    p = Path(path)
    img = cv2.imread(str(p), flags)
    if img is None:
        raise FileNotFoundError(f"Could not read image at: {p}")
    return img


def load_image(path: Union[str, Path]) -> np.ndarray:
    """BGR frame as stored on disk: no EXIF rotation, no downsampling."""
    return _imread(path, cv2.IMREAD_COLOR)


def load_grayscale(path: Union[str, Path]) -> np.ndarray:
    return _imread(path, cv2.IMREAD_GRAYSCALE)


def calculate_sample_size(width: int, height: int, req_width: int, req_height: int) -> int:
    """
    Largest power-of-two subsampling that keeps both sides at or above the
    requested size (same rule Android's inSampleSize documentation uses).
    """
    sample = 1
    if height > req_height or width > req_width:
        half_h = height // 2
        half_w = width // 2
        while half_h // sample >= req_height and half_w // sample >= req_width:
            sample *= 2
    return sample


def _open(source: Source) -> Image.Image:
    if isinstance(source, (bytes, bytearray)):
        try:
            img = Image.open(io.BytesIO(bytes(source)))
            img.load()
        except (UnidentifiedImageError, OSError) as e:
            raise ValueError(f"Could not decode image bytes: {e}") from e
        return img
    p = Path(source)
    if not p.is_file():
        raise FileNotFoundError(f"Could not read image at: {p}")
    try:
        img = Image.open(p)
        img.load()
    except (UnidentifiedImageError, OSError) as e:
        raise ValueError(f"Could not decode image at {p}: {e}") from e
    return img


def decode_still(source: Source, max_side: int = 1080) -> Tuple[np.ndarray, np.ndarray]:
    """
    Decode a photo into (gray, rgba) arrays sharing one orientation.

    EXIF orientation is applied, then the image is subsampled by a power of
    two (see calculate_sample_size) so neither side drops below max_side.
    """
    # reduce() rejects palette and 16-bit modes
    img = ImageOps.exif_transpose(_open(source)).convert("RGBA")
    sample = calculate_sample_size(img.width, img.height, max_side, max_side)
    if sample > 1:
        img = img.reduce(sample)
    rgba = np.asarray(img).copy()
    gray = cv2.cvtColor(rgba, cv2.COLOR_RGBA2GRAY)
    return gray, rgba


def save_jpeg(image: np.ndarray, path: Union[str, Path], quality: int = 95) -> Path:
    """
    Write a JPEG with EXIF orientation reset to normal.

    3-channel input is taken as BGR (OpenCV order), 4-channel as RGBA
    (decode_still order), 2-D as gray.
    """
    if image.ndim == 2:
        pil = Image.fromarray(image)
    elif image.shape[2] == 4:
        pil = Image.fromarray(image).convert("RGB")
    else:
        pil = Image.fromarray(cv2.cvtColor(image, cv2.COLOR_BGR2RGB))

    exif = Image.Exif()
    exif[_EXIF_ORIENTATION] = _ORIENTATION_NORMAL
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    pil.save(out, "JPEG", quality=int(quality), exif=exif.tobytes())
    return out
