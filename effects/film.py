"""
PhotoFX -- Analog Film Emulation
Vintage print, Polaroid, lo-fi, film grain and lens vignette.
"""

import numpy as np
import cv2

from core.scaling import scaled_pixels, scaled_probability, scaling_for_frame
from effects.color import (
    adjust_contrast,
    adjust_saturation,
    fade_to_white,
    luminance,
    radial_distance,
    radial_falloff,
    sprinkle_grain,
    to_float,
    to_uint8,
    warm_tint,
)
from effects.dither import expand_blocks

GRAIN_TYPES = ("Fine", "Medium", "Coarse", "Mixed")


def _scratches(f, rng, scale, amount):
    """Short vertical strokes of randomized width. Count follows amount only."""
    h, w = f.shape[:2]
    count = int(round(amount * 0.2))
    for _ in range(count):
        x = rng.randint(0, w)
        width = scaled_pixels(rng.randint(1, 3), scale.linear_scale)
        length = max(1, int(h * rng.uniform(0.1, 0.6)))
        y0 = rng.randint(0, max(1, h - length + 1))
        tone = 235.0 if rng.random() < 0.7 else 30.0
        alpha = rng.uniform(0.35, 0.75)
        seg = f[y0:y0 + length, x:x + width]
        f[y0:y0 + length, x:x + width] = seg * (1.0 - alpha) + tone * alpha
    return f


def _dust(f, rng, scale, amount):
    """Filled circular specks. Count follows amount only."""
    h, w = f.shape[:2]
    count = int(round(amount * 0.3))
    if count == 0:
        return f
    dark = np.zeros((h, w), dtype=np.uint8)
    light = np.zeros((h, w), dtype=np.uint8)
    for _ in range(count):
        center = (int(rng.randint(0, w)), int(rng.randint(0, h)))
        radius = scaled_pixels(rng.randint(1, 4), scale.linear_scale)
        target = dark if rng.random() < 0.6 else light
        cv2.circle(target, center, radius, 255, thickness=-1)
    dm = (dark > 0)[:, :, np.newaxis]
    lm = (light > 0)[:, :, np.newaxis]
    f = np.where(dm, f * 0.3 + 20.0 * 0.7, f)
    f = np.where(lm, f * 0.3 + 230.0 * 0.7, f)
    return f.astype(np.float32)


def vintage(frame: np.ndarray, fade: float = 50, grain: float = 30,
            vignette: float = 25, warmth: float = 40, scratches: float = 20,
            dust_spots: float = 15, rng: np.random.RandomState = None,
            scale=None) -> np.ndarray:
    """Aged print: faded, warm, grainy, darkened corners, scratched and dusty.

    Args:
        frame: (H, W, 3) uint8 RGB array.
        fade: 0-100 lift toward white.
        grain: 0-100 share of pixels receiving grain.
        vignette: 0-100 radial darkening strength.
        warmth: 0-100 yellow tint.
        scratches: 0-100, number of vertical scratch strokes.
        dust_spots: 0-100, number of dust specks.

    Returns:
        Vintage-styled frame.
    """
    scale = scale or scaling_for_frame(frame)
    rng = rng if rng is not None else np.random.RandomState()
    f = to_float(frame)

    f = warm_tint(f, warmth)
    f = fade_to_white(f, fade)
    f = sprinkle_grain(f, rng, scaled_probability(grain, scale.combined_scale), 40.0)
    f = radial_falloff(f, vignette)
    if scratches > 0:
        f = _scratches(f, rng, scale, scratches)
    if dust_spots > 0:
        f = _dust(f, rng, scale, dust_spots)
    return to_uint8(f)


def polaroid(frame: np.ndarray, fade: float = 40, warmth: float = 60,
             vignette: float = 30) -> np.ndarray:
    """Instant-film look: warm, creamy highlights, soft vignette."""
    f = to_float(frame)
    f = warm_tint(f, warmth)
    f = fade_to_white(f, fade, tint=(0.95, 0.95, 0.9))
    f = radial_falloff(f, vignette)
    return to_uint8(f)


def lofi(frame: np.ndarray, warmth: float = 60, grain: float = 40,
         vignette: float = 30, rng: np.random.RandomState = None,
         scale=None) -> np.ndarray:
    """Cheap-camera snapshot: muted color, crushed contrast, warm cast, grain."""
    scale = scale or scaling_for_frame(frame)
    rng = rng if rng is not None else np.random.RandomState()
    f = to_float(frame)

    f = adjust_saturation(f, 0.8)
    f = adjust_contrast(f, 115)
    f = fade_to_white(f, 6)
    f = warm_tint(f, warmth)
    f = sprinkle_grain(f, rng, scaled_probability(grain, scale.combined_scale), 30.0)
    f = radial_falloff(f, vignette)
    return to_uint8(f)


def _grain_field(rng, h, w, cell, amplitude):
    gh, gw = -(-h // cell), -(-w // cell)
    field = (rng.random((gh, gw)) - 0.5) * amplitude
    return expand_blocks(field.astype(np.float32), cell, h, w)


def filmgrain(frame: np.ndarray, intensity: float = 65, size: float = 3,
              opacity: float = 80, grain_type: int = 0, shadows: float = 85,
              highlights: float = 45, rng: np.random.RandomState = None,
              scale=None) -> np.ndarray:
    """Photographic grain with separate weight in shadows and highlights.

    Args:
        frame: (H, W, 3) uint8 RGB array.
        intensity: 0-100 grain amplitude.
        size: 1-10 grain clump size in reference pixels.
        opacity: 0-100 grain opacity.
        grain_type: 0 fine, 1 medium, 2 coarse, 3 mixed fine and coarse.
        shadows: 0-100 grain weight in dark tones.
        highlights: 0-100 grain weight in bright tones.

    Returns:
        Grainy frame.
    """
    scale = scale or scaling_for_frame(frame)
    rng = rng if rng is not None else np.random.RandomState()
    f = to_float(frame)
    h, w = f.shape[:2]

    grain_type = int(grain_type)
    if grain_type == 3:
        fine = _grain_field(rng, h, w, scaled_pixels(size * 0.5, scale.linear_scale), intensity)
        coarse = _grain_field(rng, h, w, scaled_pixels(size * 2.0, scale.linear_scale), intensity)
        noise = (fine + coarse) * 0.6
    else:
        mult = (0.5, 1.0, 2.0)[max(0, min(2, grain_type))]
        noise = _grain_field(rng, h, w, scaled_pixels(size * mult, scale.linear_scale), intensity)

    lum = luminance(f) / 255.0
    weight = (shadows / 100.0) * (1.0 - lum) + (highlights / 100.0) * lum
    noise = noise * weight * (opacity / 100.0)
    return to_uint8(f + noise[:, :, np.newaxis])


def vignette(frame: np.ndarray, intensity: float = 50, size: float = 60,
             softness: float = 40) -> np.ndarray:
    """Lens vignette: clear center disc, darkening ramp outside it.

    Args:
        frame: (H, W, 3) uint8 RGB array.
        intensity: 0-100 darkness at the end of the ramp.
        size: 10-90 radius of the untouched disc, percent of the corner distance.
        softness: 0-100 ramp length, percent of the corner distance (min 10).

    Returns:
        Vignetted frame.
    """
    f = to_float(frame)
    h, w = f.shape[:2]
    d = radial_distance(h, w)
    ramp = max(0.1, softness / 100.0)
    strength = np.clip((d - size / 100.0) / ramp, 0.0, 1.0) * (intensity / 100.0)
    out = f * (1.0 - strength)[:, :, np.newaxis]
    return to_uint8(np.floor(out + 0.5))
