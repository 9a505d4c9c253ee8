"""
PhotoFX -- Tone Mapping & False Color
Infrared, thermal, sepia, cross-process, black & white, neon, color pop,
cyberpunk grading.

Every brightness decision uses perceptual luminance (0.299R + 0.587G + 0.114B).
"""

import numpy as np
import cv2

from core.params import parse_color
from core.scaling import scaled_probability, scaling_for_frame
from effects.color import (
    adjust_brightness,
    adjust_contrast,
    adjust_saturation,
    hsv_to_rgb,
    luminance,
    rgb_to_hsv,
    sprinkle_grain,
    to_float,
    to_uint8,
)

SEPIA_MATRIX = np.array([
    [0.393, 0.769, 0.189],
    [0.349, 0.686, 0.168],
    [0.272, 0.534, 0.131],
], dtype=np.float32)

FALSE_COLOR_MODES = ("Standard", "Wood's Effect", "Aerochrome")

# Five stops at luminance 0, 0.25, 0.5, 0.75, 1
THERMAL_PALETTES = {
    "Hot Iron": [(0, 0, 0), (0, 0, 255), (0, 255, 255), (255, 255, 0), (255, 0, 0)],
    "Rainbow": [(0, 0, 255), (0, 255, 255), (0, 255, 0), (255, 255, 0), (255, 0, 0)],
    "Grayscale": [(0, 0, 0), (64, 64, 64), (128, 128, 128), (191, 191, 191), (255, 255, 255)],
    "Medical": [(0, 0, 0), (0, 0, 128), (0, 160, 80), (255, 220, 0), (255, 255, 255)],
    "Arctic": [(0, 0, 0), (0, 0, 96), (0, 80, 200), (0, 200, 255), (255, 255, 255)],
}
THERMAL_PALETTE_NAMES = tuple(THERMAL_PALETTES)
_THERMAL_STOPS = np.array([0.0, 0.25, 0.5, 0.75, 1.0], dtype=np.float32)

CONVERSION_METHODS = ("Luminance", "Red Channel", "Green Channel", "Blue Channel")


def _lerp(a: np.ndarray, b: np.ndarray, t: float) -> np.ndarray:
    return a * (1.0 - t) + b * t


def infrared(frame: np.ndarray, intensity: float = 70, red_channel: float = 150,
             contrast: float = 120, false_color: int = 0) -> np.ndarray:
    """False-color infrared: foliage (green) reads as the bright channel.

    Args:
        frame: (H, W, 3) uint8 RGB array.
        intensity: 0-100 blend of the infrared remix over the original.
        red_channel: 0-200 gain applied to green when it becomes the new red.
        contrast: 50-200 contrast after blending.
        false_color: 0 standard, 1 Wood's effect (glowing mono), 2 Aerochrome.

    Returns:
        Infrared-styled frame.
    """
    f = to_float(frame)
    r, g, b = f[:, :, 0], f[:, :, 1], f[:, :, 2]
    boost = red_channel / 100.0
    mode = int(false_color)

    if mode == 1:
        glow = np.clip(g * boost * 0.7 + r * 0.3, 0, 255)
        ir = np.stack([glow, glow, glow * 0.9], axis=2)
    elif mode == 2:
        ir = np.stack([g * boost, r, b], axis=2)
    else:
        ir = np.stack([g * boost, r * 0.8, b * 0.3], axis=2)

    ir = np.clip(ir, 0, 255)
    out = _lerp(f, ir, intensity / 100.0)
    return to_uint8(adjust_contrast(out, contrast))


def thermal_ramp(lum: np.ndarray, palette: str = "Hot Iron") -> np.ndarray:
    """Map normalized luminance (0-1) through a 5-stop piecewise-linear palette."""
    stops = np.asarray(THERMAL_PALETTES[palette], dtype=np.float32)
    out = np.empty(lum.shape + (3,), dtype=np.float32)
    for c in range(3):
        out[:, :, c] = np.interp(lum, _THERMAL_STOPS, stops[:, c])
    return out


def thermal(frame: np.ndarray, intensity: float = 80, color_range: float = 60,
            contrast: float = 140, palette: int = 0) -> np.ndarray:
    """Pseudo-color heat map driven by luminance.

    The default palette runs black, blue, cyan, yellow, red across the four
    luminance quartiles. color_range narrows (high) or widens (low) the band
    of luminance the ramp spans, centered on mid-grey; 60 is neutral.
    """
    f = to_float(frame)
    n = luminance(f) / 255.0
    n = np.clip(0.5 + (n - 0.5) * (60.0 / max(1.0, color_range)), 0.0, 1.0)
    name = THERMAL_PALETTE_NAMES[max(0, min(len(THERMAL_PALETTE_NAMES) - 1, int(palette)))]
    heat = thermal_ramp(n, name)
    out = _lerp(f, heat, intensity / 100.0)
    return to_uint8(adjust_contrast(out, contrast))


def sepia(frame: np.ndarray, intensity: float = 80, warmth: float = 60) -> np.ndarray:
    """Classic sepia matrix blended by intensity, warmed by scaling red and green."""
    f = to_float(frame)
    toned = np.clip(f @ SEPIA_MATRIX.T, 0, 255)
    out = np.clip(_lerp(f, toned, intensity / 100.0), 0, 255)
    w = warmth / 100.0
    out = out * np.array([1.0 + 0.2 * w, 1.0 + 0.1 * w, 1.0], dtype=np.float32)
    return to_uint8(out)


def crossprocess(frame: np.ndarray, intensity: float = 60,
                 color_shift: float = 40) -> np.ndarray:
    """Slide film in C-41 chemistry: cyan-blue highlights, green shadows, extra saturation.

    Args:
        frame: (H, W, 3) uint8 RGB array.
        intensity: 0-100 blend of the processed look over the original.
        color_shift: 0-100 strength of the highlight/shadow channel multipliers.
            40 reproduces the classic multipliers; 0 leaves channels alone.

    Returns:
        Cross-processed frame.
    """
    f = to_float(frame)
    k = color_shift / 40.0
    hi = 1.0 + (np.array([1.08, 1.32, 1.44], dtype=np.float32) - 1.0) * k
    lo = 1.0 + (np.array([0.88, 0.96, 0.64], dtype=np.float32) - 1.0) * k
    highlight = (luminance(f) > 128.0)[:, :, np.newaxis]
    shifted = np.clip(f * np.where(highlight, hi, lo), 0, 255)
    shifted = adjust_saturation(shifted, 1.6)
    return to_uint8(_lerp(f, shifted, intensity / 100.0))


def blackwhite(frame: np.ndarray, contrast: float = 110, brightness: float = 100,
               grain: float = 15, conversion_method: int = 0,
               rng: np.random.RandomState = None, scale=None) -> np.ndarray:
    """Monochrome from luminance or a single channel, with optional grain."""
    scale = scale or scaling_for_frame(frame)
    rng = rng if rng is not None else np.random.RandomState()
    f = to_float(frame)
    method = int(conversion_method)
    gray = luminance(f) if method == 0 else f[:, :, min(method, 3) - 1]
    g = np.repeat(gray[:, :, np.newaxis], 3, axis=2)
    g = adjust_brightness(g, brightness)
    g = adjust_contrast(g, contrast)
    g = sprinkle_grain(g, rng, scaled_probability(grain, scale.combined_scale), 20.0)
    return to_uint8(g)


def neon(frame: np.ndarray, glow: float = 60, color="#00ffff",
         brightness: float = 120, scale=None) -> np.ndarray:
    """Hyper-saturated colors with a tinted halo around bright areas.

    Args:
        frame: (H, W, 3) uint8 RGB array.
        glow: 0-100 halo strength.
        color: Halo tint, hex string or (r, g, b).
        brightness: 0-200 brightness after saturation. 100 = unchanged.

    Returns:
        Neon-styled frame.
    """
    scale = scale or scaling_for_frame(frame)
    f = to_float(frame)
    tint = np.asarray(parse_color(color), dtype=np.float32) / 255.0

    light = (f.max(axis=2, keepdims=True) + f.min(axis=2, keepdims=True)) / 2.0
    f = np.clip(f + (f - light) * 1.0, 0, 255)
    f = adjust_brightness(f, brightness)

    if glow > 0:
        bright = np.clip((luminance(f) - 100.0) / 155.0, 0.0, 1.0)
        sigma = max(0.5, 8.0 * scale.linear_scale)
        halo = cv2.GaussianBlur(bright, (0, 0), sigma)
        f = f + halo[:, :, np.newaxis] * tint * 80.0 * (glow / 100.0)
    return to_uint8(f)


def colorpop(frame: np.ndarray, intensity: float = 120, hue: float = 180,
             hue_range: float = 30, scale=None) -> np.ndarray:
    """Boost one hue band and drain color from everything else.

    Args:
        frame: (H, W, 3) uint8 RGB array.
        intensity: 0-200 strength of the boost (and of the desaturation elsewhere).
        hue: 0-360 target hue in degrees.
        hue_range: 10-90 half-width of the hue band in degrees.

    Returns:
        Color-popped frame.
    """
    scale = scale or scaling_for_frame(frame)
    hsv = rgb_to_hsv(frame[:, :, :3])
    deg = hsv[:, :, 0] * 2.0
    d = np.abs(deg - (hue % 360.0))
    d = np.minimum(d, 360.0 - d)
    weight = np.clip(1.0 - d / max(1.0, hue_range), 0.0, 1.0)
    # Near-grey pixels have no meaningful hue
    weight = np.where(hsv[:, :, 1] > 20.0 * scale.dpi_scale, weight, 0.0)

    k = intensity / 100.0
    gain = weight * (1.0 + k) + (1.0 - weight) * max(0.0, 1.0 - k / 2.0)
    hsv[:, :, 1] = hsv[:, :, 1] * gain
    return to_uint8(hsv_to_rgb(hsv))


def cyberpunk(frame: np.ndarray, neon: float = 70, contrast: float = 80,
              color_temp: float = 60, glow_radius: float = 30,
              saturation: float = 150, scale=None) -> np.ndarray:
    """Night-city grade: hard contrast, blown neon highlights, cold cast, bloom.

    Args:
        frame: (H, W, 3) uint8 RGB array.
        neon: 0-100 push of bright areas toward white.
        contrast: 0-200, doubled into the contrast factor (80 -> 1.6x).
        color_temp: 0-100 shift toward cyan/blue.
        glow_radius: 0-100 bloom radius in tenths of reference pixels.
        saturation: 50-200 saturation. 100 = unchanged.

    Returns:
        Cyberpunk-graded frame.
    """
    scale = scale or scaling_for_frame(frame)
    f = to_float(frame)

    f = adjust_contrast(f, contrast * 2.0)
    bright = (luminance(f) > 150.0)[:, :, np.newaxis]
    f = np.where(bright, f + (255.0 - f) * (neon / 100.0), f)

    t = color_temp / 100.0
    f = np.clip(f * np.array([1.0 - 0.3 * t, 1.0 - 0.1 * t, 1.0 + 0.2 * t], dtype=np.float32), 0, 255)
    f = adjust_saturation(f, saturation / 100.0)

    if glow_radius > 0 and neon > 0:
        sigma = max(0.5, glow_radius / 10.0 * scale.linear_scale)
        highlights = np.where(luminance(f)[:, :, np.newaxis] > 150.0, f, 0.0).astype(np.float32)
        bloom = cv2.GaussianBlur(highlights, (0, 0), sigma)
        f = f + bloom * 0.5 * (neon / 100.0)
    return to_uint8(f)
