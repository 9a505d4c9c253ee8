"""
PhotoFX -- Quantization & Dithering
Posterization, palette matching, block averaging, ordered (Bayer / random)
and error-diffusion (Floyd-Steinberg) dithering. The retro console effects
build on these primitives.
"""

import math

import numpy as np

from core.scaling import scaled_pixels, scaling_for_frame
from effects.color import to_float, to_uint8

BAYER_4X4 = np.array([
    [0, 8, 2, 10],
    [12, 4, 14, 6],
    [3, 11, 1, 9],
    [15, 7, 13, 5],
], dtype=np.float32)

# Pixels per palette-matching chunk; keeps the (N, P, 3) distance table small
_MATCH_CHUNK = 65536


def quantize(values, levels: int) -> np.ndarray:
    """Snap values to `levels` evenly spaced steps across 0-255.

    quantize(v, L) = round(v * (L - 1) / 255) * (255 / (L - 1)), rounding half up.
    """
    levels = max(2, int(levels))
    v = np.asarray(values, dtype=np.float32)
    return np.floor(v * (levels - 1) / 255.0 + 0.5) * (255.0 / (levels - 1))


def posterize_floor(f: np.ndarray, levels: float) -> np.ndarray:
    """Truncating posterization into 256/levels wide bins (bin floor is kept)."""
    step = 256.0 / max(1.0, float(levels))
    return np.floor(f / step) * step


def nearest_palette_color(rgb, palette) -> int:
    """Index of the palette entry closest to rgb in Euclidean RGB distance.

    Ties resolve to the lowest index.
    """
    pal = np.asarray(palette, dtype=np.int64).reshape(-1, 3)
    px = np.asarray(rgb, dtype=np.int64).reshape(1, 3)
    d = ((pal - px) ** 2).sum(axis=1)
    return int(np.argmin(d))


def match_palette(f: np.ndarray, palette) -> np.ndarray:
    """Replace every pixel with its nearest palette color.

    Distances are compared as exact integers on rounded pixels, so equidistant
    pixels deterministically pick the lowest palette index.
    """
    pal = np.asarray(palette, dtype=np.int64).reshape(-1, 3)
    shape = f.shape
    flat = np.clip(np.floor(f.reshape(-1, 3) + 0.5), 0, 255).astype(np.int64)
    idx = np.empty(flat.shape[0], dtype=np.int64)
    for start in range(0, flat.shape[0], _MATCH_CHUNK):
        chunk = flat[start:start + _MATCH_CHUNK]
        d = ((chunk[:, np.newaxis, :] - pal[np.newaxis, :, :]) ** 2).sum(axis=2)
        idx[start:start + _MATCH_CHUNK] = np.argmin(d, axis=1)
    return pal[idx].astype(np.float32).reshape(shape)


def block_average(f: np.ndarray, size: int) -> np.ndarray:
    """Mean color of each size x size block, floored.

    Edge blocks are averaged over the pixels they actually contain. Returns
    the reduced (ceil(H/size), ceil(W/size), 3) array.
    """
    size = max(1, int(size))
    h, w = f.shape[:2]
    ys = np.arange(0, h, size)
    xs = np.arange(0, w, size)
    sums = np.add.reduceat(np.add.reduceat(f.astype(np.float64), ys, axis=0), xs, axis=1)
    counts_y = np.diff(np.append(ys, h)).astype(np.float64)
    counts_x = np.diff(np.append(xs, w)).astype(np.float64)
    counts = counts_y[:, np.newaxis, np.newaxis] * counts_x[np.newaxis, :, np.newaxis]
    return np.floor(sums / counts).astype(np.float32)


def expand_blocks(small: np.ndarray, size: int, h: int, w: int) -> np.ndarray:
    size = max(1, int(size))
    return np.repeat(np.repeat(small, size, axis=0), size, axis=1)[:h, :w]


def pixelate(f: np.ndarray, size: int) -> np.ndarray:
    h, w = f.shape[:2]
    return expand_blocks(block_average(f, size), size, h, w)


def bayer_threshold(h: int, w: int, cell: int = 1) -> np.ndarray:
    """(H, W) Bayer thresholds in [0, 1), each matrix entry covering cell x cell pixels."""
    cell = max(1, int(cell))
    ys = (np.arange(h) // cell) % 4
    xs = (np.arange(w) // cell) % 4
    return BAYER_4X4[ys[:, np.newaxis], xs[np.newaxis, :]] / 16.0


def ordered_dither(f: np.ndarray, levels: int, strength: float = 100.0,
                   threshold: np.ndarray = None) -> np.ndarray:
    """Offset each pixel by a threshold pattern, then quantize.

    Args:
        f: float32 (H, W, 3).
        levels: Output levels per channel.
        strength: 0-100, scales the threshold offset (max +/-64).
        threshold: (H, W) values in [0, 1). Defaults to the 4x4 Bayer matrix.
    """
    h, w = f.shape[:2]
    if threshold is None:
        threshold = bayer_threshold(h, w)
    offset = (threshold - 0.5) * (strength / 100.0) * 128.0
    return np.clip(quantize(f + offset[:, :, np.newaxis], levels), 0, 255)


def floyd_steinberg(f: np.ndarray, levels: int, strength: float = 100.0) -> np.ndarray:
    """Error-diffusion dither in strict raster order.

    The quantization error of each pixel, scaled by strength/100, goes 7/16
    right, 3/16 below-left, 5/16 below and 1/16 below-right. Neighbours are
    clamped to [0, 255] after every addition.
    """
    levels = max(2, int(levels))
    k = strength / 100.0
    to_level = (levels - 1) / 255.0
    step = 255.0 / (levels - 1)
    h, w = f.shape[:2]
    channels = f.shape[2]

    # Row-by-row Python lists; the scan is inherently sequential
    rows = np.asarray(f, dtype=np.float64).tolist()
    for y in range(h):
        row = rows[y]
        below = rows[y + 1] if y + 1 < h else None
        for x in range(w):
            px = row[x]
            for c in range(channels):
                old = px[c]
                new = math.floor(old * to_level + 0.5) * step
                px[c] = new
                err = (old - new) * k
                if err == 0.0:
                    continue
                if x + 1 < w:
                    n = row[x + 1]
                    n[c] = min(255.0, max(0.0, n[c] + err * 7.0 / 16.0))
                if below is not None:
                    if x > 0:
                        n = below[x - 1]
                        n[c] = min(255.0, max(0.0, n[c] + err * 3.0 / 16.0))
                    n = below[x]
                    n[c] = min(255.0, max(0.0, n[c] + err * 5.0 / 16.0))
                    if x + 1 < w:
                        n = below[x + 1]
                        n[c] = min(255.0, max(0.0, n[c] + err * 1.0 / 16.0))
    return np.clip(np.array(rows, dtype=np.float32), 0, 255)


DITHER_METHODS = ("Bayer", "Floyd-Steinberg", "Random")


def dither(frame: np.ndarray, levels: float = 4, strength: float = 50,
           method: int = 0, pattern_size: float = 1,
           rng: np.random.RandomState = None, scale=None) -> np.ndarray:
    """Reduce each channel to a few levels with a dither pattern.

    Args:
        frame: (H, W, 3) uint8 RGB array.
        levels: 2-16 output levels per channel.
        strength: 0-100 dither strength.
        method: 0 = Bayer, 1 = Floyd-Steinberg, 2 = random threshold.
        pattern_size: Bayer cell size in reference pixels.

    Returns:
        Dithered frame.
    """
    scale = scale or scaling_for_frame(frame)
    rng = rng if rng is not None else np.random.RandomState()
    f = to_float(frame)
    levels = max(2, int(round(levels)))
    h, w = f.shape[:2]

    if int(method) == 1:
        out = floyd_steinberg(f, levels, strength)
    elif int(method) == 2:
        out = ordered_dither(f, levels, strength, threshold=rng.random((h, w)))
    else:
        cell = scaled_pixels(pattern_size, scale.linear_scale)
        out = ordered_dither(f, levels, strength, threshold=bayer_threshold(h, w, cell))
    return to_uint8(out)
