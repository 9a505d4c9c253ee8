"""
PhotoFX -- Color Primitives
Shared float32 building blocks for the effect families: luminance, contrast,
saturation, warmth, fade, radial falloff, grain and scanlines.

Every primitive takes and returns float32 (H, W, 3) arrays clipped to
[0, 255] so callers can chain them without re-clipping.
"""

import numpy as np
import cv2

# Perceptual weights, used for every luminance decision in the engine
LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114], dtype=np.float32)


def to_float(frame: np.ndarray) -> np.ndarray:
    return frame[:, :, :3].astype(np.float32)


def luminance(f: np.ndarray) -> np.ndarray:
    """(H, W) perceptual luminance of an RGB float array."""
    return f @ LUMA_WEIGHTS


def adjust_contrast(f: np.ndarray, percent: float) -> np.ndarray:
    """Stretch around mid-grey. 100 = unchanged."""
    return np.clip((f - 128.0) * (percent / 100.0) + 128.0, 0, 255)


def adjust_brightness(f: np.ndarray, percent: float) -> np.ndarray:
    return np.clip(f * (percent / 100.0), 0, 255)


def adjust_saturation(f: np.ndarray, factor: float) -> np.ndarray:
    """Push channels away from (factor > 1) or toward (factor < 1) luminance."""
    gray = luminance(f)[:, :, np.newaxis]
    return np.clip(gray + (f - gray) * factor, 0, 255)


def warm_tint(f: np.ndarray, warmth: float) -> np.ndarray:
    """Yellow tint: lift red and green, pull blue."""
    w = warmth / 100.0
    shift = np.array([20.0 * w, 15.0 * w, -10.0 * w], dtype=np.float32)
    return np.clip(f + shift, 0, 255)


def fade_to_white(f: np.ndarray, fade: float, tint=(1.0, 1.0, 1.0)) -> np.ndarray:
    """Uniform lift toward (tinted) white, like washed-out print stock."""
    k = fade / 100.0
    target = 255.0 * np.asarray(tint, dtype=np.float32)
    return np.clip(f * (1.0 - k) + target * k, 0, 255)


def radial_distance(h: int, w: int) -> np.ndarray:
    """(H, W) distance of each pixel from the image center, normalized to 1 at the corners."""
    cx, cy = w / 2.0, h / 2.0
    max_d = max(np.sqrt(cx * cx + cy * cy), 1e-6)
    ys = np.arange(h, dtype=np.float32).reshape(-1, 1)
    xs = np.arange(w, dtype=np.float32).reshape(1, -1)
    return np.sqrt((xs - cx) ** 2 + (ys - cy) ** 2) / max_d


def radial_falloff(f: np.ndarray, amount: float) -> np.ndarray:
    """Darken toward the corners: factor = max(0, 1 - d/maxD * amount/100)."""
    h, w = f.shape[:2]
    factor = np.maximum(0.0, 1.0 - radial_distance(h, w) * (amount / 100.0))
    return np.clip(f * factor[:, :, np.newaxis], 0, 255)


def sprinkle_grain(f: np.ndarray, rng: np.random.RandomState, probability: float,
                   spread: float, per_channel: bool = False) -> np.ndarray:
    """Add uniform noise in [-spread/2, spread/2] to a random subset of pixels.

    Args:
        probability: Per-pixel Bernoulli probability, already scaled.
        spread: Full width of the noise distribution.
        per_channel: Independent noise per channel (chroma) instead of one value (luma).
    """
    h, w = f.shape[:2]
    if probability <= 0 or spread <= 0:
        return f
    hit = rng.random((h, w)) < probability
    if per_channel:
        noise = (rng.random((h, w, 3)) - 0.5) * spread
    else:
        noise = np.repeat(((rng.random((h, w)) - 0.5) * spread)[:, :, np.newaxis], 3, axis=2)
    return np.clip(f + noise * hit[:, :, np.newaxis], 0, 255)


def darken_rows(f: np.ndarray, rows: np.ndarray, multipliers=(0.8, 0.8, 0.8)) -> np.ndarray:
    """Multiply the selected rows (boolean mask of length H) by per-channel factors."""
    if not rows.any():
        return f
    out = f.copy()
    out[rows] = np.clip(out[rows] * np.asarray(multipliers, dtype=np.float32), 0, 255)
    return out


def scanline_rows(h: int, spacing: int, rng: np.random.RandomState = None,
                  probability: float = 1.0) -> np.ndarray:
    """Boolean mask of rows that get a scanline: every `spacing` rows, kept with `probability`."""
    rows = np.zeros(h, dtype=bool)
    rows[::max(1, int(spacing))] = True
    if rng is not None and probability < 1.0:
        rows &= rng.random(h) < probability
    return rows


def horizontal_smear(f: np.ndarray, radius: int, channels=(0, 2)) -> np.ndarray:
    """Box-blur the given channels along rows only (analog chroma bleed)."""
    radius = int(radius)
    if radius <= 0:
        return f
    out = f.copy()
    k = 2 * radius + 1
    for ch in channels:
        out[:, :, ch] = cv2.blur(np.ascontiguousarray(f[:, :, ch]), (k, 1),
                                 borderType=cv2.BORDER_REPLICATE)
    return out


def rgb_to_hsv(frame_u8: np.ndarray) -> np.ndarray:
    """OpenCV HSV as float32: H in 0-179 (half degrees), S and V in 0-255."""
    return cv2.cvtColor(np.ascontiguousarray(frame_u8), cv2.COLOR_RGB2HSV).astype(np.float32)


def hsv_to_rgb(hsv: np.ndarray) -> np.ndarray:
    hsv = np.clip(hsv, 0, 255)
    hsv[:, :, 0] = np.clip(hsv[:, :, 0], 0, 179)
    return cv2.cvtColor(hsv.astype(np.uint8), cv2.COLOR_HSV2RGB).astype(np.float32)


def to_uint8(f: np.ndarray) -> np.ndarray:
    return np.clip(np.nan_to_num(f, nan=0.0), 0, 255).astype(np.uint8)
