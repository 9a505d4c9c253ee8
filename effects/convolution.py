"""
PhotoFX -- Convolution Filters
Sharpen, emboss, Sobel edge detection and Gaussian blur.

Sharpen, emboss and edge detection read a frozen snapshot and write only
interior pixels (1 <= x < W-1, 1 <= y < H-1). The one-pixel border is
returned untouched.
"""

import numpy as np
import cv2

from core.pixels import snapshot
from core.scaling import scaling_for_frame
from effects.color import to_float, to_uint8

SHARPEN_KERNEL = np.array([
    [0, -1, 0],
    [-1, 5, -1],
    [0, -1, 0],
], dtype=np.float32)


def _has_interior(frame: np.ndarray) -> bool:
    return frame.shape[0] >= 3 and frame.shape[1] >= 3


def _neighbours(src: np.ndarray):
    """Views of the 8 neighbours of every interior pixel, keyed by compass offset."""
    return {
        (dy, dx): src[1 + dy:src.shape[0] - 1 + dy, 1 + dx:src.shape[1] - 1 + dx]
        for dy in (-1, 0, 1) for dx in (-1, 0, 1)
    }


def sharpen(frame: np.ndarray, strength: float = 50) -> np.ndarray:
    """Sharpen with a 3x3 kernel blended against the original by strength.

    Args:
        frame: (H, W, 3) uint8 RGB array.
        strength: 0-100. 100 = full kernel response.

    Returns:
        Sharpened frame.
    """
    if not _has_interior(frame):
        return frame.copy()
    src = snapshot(to_float(frame))
    n = _neighbours(src)
    center = n[(0, 0)]
    conv = (SHARPEN_KERNEL[1, 1] * center
            - n[(-1, 0)] - n[(1, 0)] - n[(0, -1)] - n[(0, 1)])
    s = strength / 100.0
    out = src.copy()
    out[1:-1, 1:-1] = center * (1.0 - s) + np.clip(conv, 0, 255) * s
    return to_uint8(out)


def emboss(frame: np.ndarray, strength: float = 50, depth: float = 3) -> np.ndarray:
    """Relief from the top-left to bottom-right diagonal gradient, centered on grey 128."""
    if not _has_interior(frame):
        return frame.copy()
    src = snapshot(to_float(frame))
    n = _neighbours(src)
    relief = (n[(1, 1)] - n[(-1, -1)]) * (depth / 3.0) + 128.0
    out = src.copy()
    out[1:-1, 1:-1] = np.clip(relief * (strength / 100.0), 0, 255)
    return to_uint8(out)


def sobel_magnitude(src: np.ndarray) -> np.ndarray:
    """(H-2, W-2) maximum over channels of the Sobel gradient magnitude."""
    n = _neighbours(src)
    gx = (-n[(-1, -1)] + n[(-1, 1)]
          - 2.0 * n[(0, -1)] + 2.0 * n[(0, 1)]
          - n[(1, -1)] + n[(1, 1)])
    gy = (-n[(-1, -1)] - 2.0 * n[(-1, 0)] - n[(-1, 1)]
          + n[(1, -1)] + 2.0 * n[(1, 0)] + n[(1, 1)])
    return np.sqrt(gx * gx + gy * gy).max(axis=2)


def edgedetect(frame: np.ndarray, threshold: float = 50, invert: int = 0,
               scale=None) -> np.ndarray:
    """Binary Sobel edge map: white edges on black, or inverted.

    Args:
        frame: (H, W, 3) uint8 RGB array.
        threshold: 0-255 gradient magnitude cutoff, scaled by DPI.
        invert: 1 = black edges on white.

    Returns:
        Edge map (border pixels keep their original color).
    """
    if not _has_interior(frame):
        return frame.copy()
    scale = scale or scaling_for_frame(frame)
    src = snapshot(to_float(frame))
    edge = np.where(sobel_magnitude(src) > threshold * scale.dpi_scale, 255.0, 0.0)
    if int(invert):
        edge = 255.0 - edge
    out = src.copy()
    out[1:-1, 1:-1] = edge[:, :, np.newaxis]
    return to_uint8(out)


def blur(frame: np.ndarray, radius: float = 5, scale=None) -> np.ndarray:
    """Gaussian blur. radius is the standard deviation in reference pixels."""
    scale = scale or scaling_for_frame(frame)
    sigma = radius * scale.linear_scale
    if sigma <= 0:
        return frame.copy()
    return cv2.GaussianBlur(np.ascontiguousarray(frame), (0, 0), sigma,
                            borderType=cv2.BORDER_REPLICATE)
