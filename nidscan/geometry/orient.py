# nidscan/geometry/orient.py
"""
Orientation helpers shared by the frame decoders and the rectifier.
"""
from __future__ import annotations
import cv2
import numpy as np


def rotate_image(image: np.ndarray, degrees: int) -> np.ndarray:
    """
    Rotate clockwise by `degrees` (any integer, taken modulo 360). Right
    angles are exact (cv2.rotate); anything else is an affine rotation about
    the centre that keeps the original size.
    """
    d = int(degrees) % 360
    if d == 0:
        return image
    if d == 90:
        return cv2.rotate(image, cv2.ROTATE_90_CLOCKWISE)
    if d == 180:
        return cv2.rotate(image, cv2.ROTATE_180)
    if d == 270:
        return cv2.rotate(image, cv2.ROTATE_90_COUNTERCLOCKWISE)
    h, w = image.shape[:2]
    # getRotationMatrix2D turns counter-clockwise for positive angles
    m = cv2.getRotationMatrix2D((w / 2.0, h / 2.0), -float(d), 1.0)
    return cv2.warpAffine(image, m, (w, h))


def apply_rotation(image: np.ndarray, degrees: int, mirror: bool = False) -> np.ndarray:
    """Sensor rotation, then a horizontal flip for front-camera frames."""
    out = rotate_image(image, degrees)
    if mirror:
        out = cv2.flip(out, 1)
    return out


def scale_to_fit(image: np.ndarray, max_width: int = 1080, max_height: int = 1080) -> np.ndarray:
    """Downscale (never enlarge) so the image fits inside max_width × max_height."""
    h, w = image.shape[:2]
    if w <= max_width and h <= max_height:
        return image
    ratio = min(max_width / float(w), max_height / float(h))
    new_w = max(1, int(w * ratio))
    new_h = max(1, int(h * ratio))
    return cv2.resize(image, (new_w, new_h), interpolation=cv2.INTER_AREA)
