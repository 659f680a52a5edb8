"""
Live camera frames (YUV_420_888 planes) → gray / RGBA arrays, with the
sensor rotation applied so every later stage sees upright pixels.
"""

from __future__ import annotations
from typing import Optional, Union
import cv2
import numpy as np

from nidscan.geometry.orient import apply_rotation

Buffer = Union[bytes, bytearray, memoryview, np.ndarray]


def _plane(buf: Buffer, rows: int, cols: int, row_stride: Optional[int] = None,
           slack: int = 0) -> np.ndarray:
    """
    Copy a (rows, cols) uint8 plane out of a strided buffer. The last row may
    lack its trailing padding, as camera buffers often do; `slack` extra bytes
    may be missing from the very end (interleaved chroma views stop one byte
    short of the last pair).
    """
    stride = cols if row_stride is None else int(row_stride)
    if stride < cols:
        raise ValueError(f"Row stride {stride} is smaller than row width {cols}")
    if isinstance(buf, np.ndarray):
        flat = np.asarray(buf, np.uint8).reshape(-1)
    else:
        flat = np.frombuffer(buf, dtype=np.uint8)
    need = (rows - 1) * stride + cols - int(slack)
    if flat.size < need:
        raise ValueError(f"Plane buffer too short: {flat.size} < {need} bytes")
    if flat.size < rows * stride:
        flat = np.concatenate([flat, np.zeros(rows * stride - flat.size, np.uint8)])
    if stride == cols:
        return flat[:rows * cols].reshape(rows, cols).copy()
    return flat[:rows * stride].reshape(rows, stride)[:, :cols].copy()


def gray_from_y_plane(y_plane: Buffer, width: int, height: int,
                      row_stride: Optional[int] = None, rotation_degrees: int = 0) -> np.ndarray:
    """Luma plane → rotated (H, W) gray image."""
    gray = _plane(y_plane, int(height), int(width), row_stride)
    return apply_rotation(gray, rotation_degrees)


def color_from_yuv420(
    y_plane: Buffer,
    u_plane: Buffer,
    v_plane: Buffer,
    width: int,
    height: int,
    *,
    y_row_stride: Optional[int] = None,
    uv_row_stride: Optional[int] = None,
    uv_pixel_stride: int = 1,
    nv21: bool = True,
    rotation_degrees: int = 0,
) -> np.ndarray:
    """
    YUV 4:2:0 planes → rotated RGBA image.

    uv_pixel_stride == 2 means the chroma planes are interleaved views of
    one buffer: NV21 (V first, so read v_plane) or NV12 (U first, read
    u_plane). uv_pixel_stride == 1 is fully planar I420.
    """
    w, h = int(width), int(height)
    if w % 2 or h % 2:
        raise ValueError(f"YUV 4:2:0 needs even dimensions, got {w}x{h}")
    y = _plane(y_plane, h, w, y_row_stride)

    if uv_pixel_stride == 2:
        interleaved = v_plane if nv21 else u_plane
        uv = _plane(interleaved, h // 2, w, uv_row_stride, slack=1)
        yuv = np.concatenate([y.reshape(-1), uv.reshape(-1)]).reshape(h * 3 // 2, w)
        code = cv2.COLOR_YUV2RGBA_NV21 if nv21 else cv2.COLOR_YUV2RGBA_NV12
    elif uv_pixel_stride == 1:
        u = _plane(u_plane, h // 2, w // 2, uv_row_stride)
        v = _plane(v_plane, h // 2, w // 2, uv_row_stride)
        yuv = np.concatenate([y.reshape(-1), u.reshape(-1), v.reshape(-1)]).reshape(h * 3 // 2, w)
        code = cv2.COLOR_YUV2RGBA_I420
    else:
        raise ValueError(f"Unsupported chroma pixel stride: {uv_pixel_stride}")

    rgba = cv2.cvtColor(yuv, code)
    return apply_rotation(rgba, rotation_degrees)
