"""
PhotoFX -- Retro Console & Era Emulation
NES, Sega Genesis, SNES, Sega CD, 90s web graphics and a Shadowrun-style
green CRT terminal. Built from block averaging, palette matching,
posterization, dither and scanline primitives.
"""

import numpy as np
import cv2

from core.scaling import scaled_pixels, scaled_probability, scaling_for_frame
from effects.color import (
    adjust_brightness,
    adjust_contrast,
    adjust_saturation,
    darken_rows,
    horizontal_smear,
    luminance,
    scanline_rows,
    sprinkle_grain,
    to_float,
    to_uint8,
)
from effects.dither import (
    bayer_threshold,
    block_average,
    expand_blocks,
    match_palette,
    posterize_floor,
)

# 2C02-style palette, first two rows (dark and mid luminance)
NES_PALETTE = np.array([
    [124, 124, 124], [0, 0, 252], [0, 0, 188], [68, 40, 188],
    [148, 0, 132], [168, 0, 32], [168, 16, 0], [136, 20, 0],
    [80, 48, 0], [0, 120, 0], [0, 104, 0], [0, 88, 0],
    [0, 64, 88], [0, 0, 0], [0, 0, 0], [0, 0, 0],
    [188, 188, 188], [0, 120, 248], [0, 88, 248], [104, 68, 252],
    [216, 0, 204], [228, 0, 88], [248, 56, 0], [228, 92, 16],
    [172, 124, 0], [0, 184, 0], [0, 168, 0], [0, 168, 68],
    [0, 136, 136], [0, 0, 0], [0, 0, 0], [0, 0, 0],
], dtype=np.int64)


def nes_palette(color_depth: float) -> np.ndarray:
    """Evenly spaced subset of the NES palette with color_depth * 2 entries."""
    n = int(max(2, min(len(NES_PALETTE), round(color_depth) * 2)))
    idx = np.round(np.linspace(0, len(NES_PALETTE) - 1, n)).astype(int)
    return NES_PALETTE[idx]


def _banded_rows(h: int, band: int) -> np.ndarray:
    """Alternate bands of `band` rows: False, True, False, True..."""
    band = max(1, int(band))
    return (np.arange(h) // band) % 2 == 1


def nes(frame: np.ndarray, pixelation: float = 4, color_depth: float = 8,
        contrast: float = 120, scanlines: float = 20, dithering: float = 15,
        scale=None) -> np.ndarray:
    """8-bit NES look: chunky pixels snapped to the console palette.

    Args:
        frame: (H, W, 3) uint8 RGB array.
        pixelation: Block size in reference pixels (1-8).
        color_depth: Palette size / 2 (4-16).
        contrast: 80-150, applied after palette matching.
        scanlines: 0-100 darkening of alternate block-high bands.
        dithering: 0-100 Bayer pre-dither applied per block before matching.

    Returns:
        NES-styled frame.
    """
    scale = scale or scaling_for_frame(frame)
    f = to_float(frame)
    h, w = f.shape[:2]
    size = scaled_pixels(pixelation, scale.linear_scale)

    small = block_average(f, size)
    if dithering > 0:
        sh, sw = small.shape[:2]
        offset = (bayer_threshold(sh, sw) - 0.5) * (dithering / 100.0) * 64.0
        small = np.clip(small + offset[:, :, np.newaxis], 0, 255)
    small = match_palette(small, nes_palette(color_depth))

    out = expand_blocks(small, size, h, w)
    out = adjust_contrast(out, contrast)
    if scanlines > 0:
        k = 1.0 - 0.4 * scanlines / 100.0
        out = darken_rows(out, _banded_rows(h, max(1, size // 2)), (k, k, k))
    return to_uint8(out)


def genesis(frame: np.ndarray, saturation: float = 140, dithering: float = 25,
            color_depth: float = 512, scanlines: float = 30, sharpness: float = 130,
            rng: np.random.RandomState = None, scale=None) -> np.ndarray:
    """Sega Genesis look: punchy saturation, 9-bit color, noisy dither."""
    scale = scale or scaling_for_frame(frame)
    rng = rng if rng is not None else np.random.RandomState()
    f = to_float(frame)
    h = f.shape[0]

    f = adjust_saturation(f, saturation / 100.0)

    if sharpness != 100:
        sigma = max(0.5, 1.0 * scale.linear_scale)
        soft = cv2.GaussianBlur(f, (0, 0), sigma)
        f = np.clip(f + (f - soft) * (sharpness / 100.0 - 1.0), 0, 255)

    f = posterize_floor(f, max(8.0, color_depth / 64.0))

    if dithering > 0:
        p = scaled_probability(dithering, scale.combined_scale)
        f = sprinkle_grain(f, rng, p, 16.0)

    if scanlines > 0:
        k = 1.0 - 0.3 * scanlines / 100.0
        band = scaled_pixels(1, scale.linear_scale)
        f = darken_rows(f, _banded_rows(h, band), (k, k, k))
    return to_uint8(f)


def snes(frame: np.ndarray, softness: float = 40, color_boost: float = 115,
         brightness: float = 110, color_bleed: float = 25, scanlines: float = 15,
         scale=None) -> np.ndarray:
    """Super Nintendo look: 15-bit color, soft video output, mild chroma bleed."""
    scale = scale or scaling_for_frame(frame)
    f = to_float(frame)
    h = f.shape[0]

    f = adjust_brightness(f, brightness)
    f = adjust_saturation(f, color_boost / 100.0)
    f = np.clip(posterize_floor(f, 16), 0, 255)

    if softness > 0:
        sigma = max(0.1, softness / 25.0 * scale.linear_scale)
        soft = cv2.GaussianBlur(f, (0, 0), sigma)
        f = f * 0.5 + soft * 0.5

    if color_bleed > 0:
        radius = scaled_pixels(color_bleed / 10.0, scale.linear_scale, minimum=0)
        f = horizontal_smear(f, radius)

    if scanlines > 0:
        k = 1.0 - 0.3 * scanlines / 100.0
        band = scaled_pixels(1, scale.linear_scale)
        f = darken_rows(f, _banded_rows(h, band), (k, k, k))
    return to_uint8(f)


def segacd(frame: np.ndarray, compression: float = 30, fmv_look: float = 40,
           color_banding: float = 20, rng: np.random.RandomState = None,
           scale=None) -> np.ndarray:
    """Sega CD full-motion-video look: blocky compression, banding, muted color.

    Args:
        frame: (H, W, 3) uint8 RGB array.
        compression: 10-50, chance that a 2x2 (reference) block gets a brightness offset.
        fmv_look: 20-60, pull toward luminance per channel.
        color_banding: 10-40, fewer bands as it rises.

    Returns:
        Sega CD styled frame.
    """
    scale = scale or scaling_for_frame(frame)
    rng = rng if rng is not None else np.random.RandomState()
    f = to_float(frame)
    h, w = f.shape[:2]

    if compression > 0:
        block = scaled_pixels(2, scale.linear_scale)
        bh, bw = -(-h // block), -(-w // block)
        hit = rng.random((bh, bw)) < compression / 100.0
        offsets = (rng.randint(0, 32, size=(bh, bw)) - 16).astype(np.float32) * hit
        f = np.clip(f + expand_blocks(offsets[:, :, np.newaxis], block, h, w), 0, 255)

    f = posterize_floor(f, max(4.0, 32.0 - color_banding))

    k = fmv_look / 100.0
    mix = np.array([0.2, 0.1, 0.15], dtype=np.float32) * k
    gray = luminance(f)[:, :, np.newaxis]
    f = f * (1.0 - mix) + gray * mix
    return to_uint8(f)


def aol90s(frame: np.ndarray, pixelation: float = 40, colors: float = 50,
           dither: float = 30, rng: np.random.RandomState = None,
           scale=None) -> np.ndarray:
    """Dial-up era web graphic: big pixels, tiny palette, noisy dither."""
    scale = scale or scaling_for_frame(frame)
    rng = rng if rng is not None else np.random.RandomState()
    f = to_float(frame)
    h, w = f.shape[:2]

    size = scaled_pixels(max(1, int(pixelation // 10)), scale.linear_scale)
    small = block_average(f, size)
    small = posterize_floor(small, int(colors // 10) + 2)

    if dither > 0:
        sh, sw = small.shape[:2]
        hit = rng.random((sh, sw)) < dither / 100.0
        noise = (rng.random((sh, sw)) - 0.5) * 50.0 * hit
        small = np.clip(small + noise[:, :, np.newaxis], 0, 255)

    return to_uint8(expand_blocks(small, size, h, w))


def shadowrun(frame: np.ndarray, crt_glow: float = 70, matrix_tint: float = 60,
              scanlines: float = 40, phosphor_decay: float = 30,
              interference: float = 20, rng: np.random.RandomState = None,
              scale=None) -> np.ndarray:
    """Green-phosphor cyberdeck terminal.

    Args:
        frame: (H, W, 3) uint8 RGB array.
        crt_glow: 0-100 green lift on bright areas.
        matrix_tint: 0-100 blend toward a green monochrome.
        scanlines: 0-100 chance per third row of a darkened scanline.
        phosphor_decay: 0-100 downward afterglow trail.
        interference: 0-100 rate of bright horizontal interference lines.

    Returns:
        Terminal-styled frame.
    """
    scale = scale or scaling_for_frame(frame)
    rng = rng if rng is not None else np.random.RandomState()
    f = to_float(frame)
    h = f.shape[0]

    f = np.clip(f * np.array([0.7, 1.2, 0.8], dtype=np.float32), 0, 255)

    t = matrix_tint / 100.0
    lum = luminance(f)[:, :, np.newaxis]
    green = lum * np.array([0.3, 1.4, 0.1], dtype=np.float32)
    f = np.clip(f * (1.0 - t) + green * t, 0, 255)

    if crt_glow > 0:
        bright = luminance(f) > 100
        f[:, :, 1] = np.where(bright, np.minimum(255.0, f[:, :, 1] + crt_glow / 100.0 * 30.0), f[:, :, 1])

    if phosphor_decay > 0:
        decay = phosphor_decay / 100.0 * 0.6
        trail = scaled_pixels(3, scale.linear_scale)
        glow = f.copy()
        for i in range(1, min(trail, h - 1) + 1):
            shifted = np.concatenate([np.repeat(f[:1], i, axis=0), f[:-i]], axis=0)
            glow = np.maximum(glow, shifted * (decay ** i))
        f = glow

    if scanlines > 0:
        spacing = scaled_pixels(3, scale.linear_scale)
        p = scaled_probability(scanlines, scale.size_scale)
        f = darken_rows(f, scanline_rows(h, spacing, rng, p), (0.8, 0.9, 0.7))

    if interference > 0:
        p = scaled_probability(interference, scale.size_scale, rate=0.05)
        rows = rng.random(h) < p
        if rows.any():
            lift = rng.uniform(10.0, 40.0, size=int(rows.sum())).astype(np.float32)
            f[rows] = np.clip(f[rows] + lift[:, np.newaxis, np.newaxis], 0, 255)

    p = scaled_probability(2, scale.combined_scale)
    f = sprinkle_grain(f, rng, p, 20.0)
    return to_uint8(f)
