"""
PhotoFX -- Color Overlay Compositing
Blend a flat color over the image with one of 12 blend modes.
"""

import numpy as np

from core.params import parse_color

BLEND_MODES = (
    "Normal", "Multiply", "Screen", "Overlay", "Soft Light", "Hard Light",
    "Color Dodge", "Color Burn", "Darken", "Lighten", "Difference", "Exclusion",
)


def _dodge(base, c):
    with np.errstate(divide="ignore", invalid="ignore"):
        raw = np.minimum(255.0, base * 255.0 / (255.0 - c))
    out = np.where(c >= 255.0, 255.0, raw)
    return np.where(base <= 0.0, 0.0, out)


def _burn(base, c):
    with np.errstate(divide="ignore", invalid="ignore"):
        raw = np.maximum(0.0, 255.0 - (255.0 - base) * 255.0 / c)
    out = np.where(c <= 0.0, 0.0, raw)
    return np.where(base >= 255.0, 255.0, out)


def _soft_light(base, c):
    return np.where(
        c < 128.0,
        base - (255.0 - 2.0 * c) * base * (255.0 - base) / 65025.0,
        base + (2.0 * c - 255.0) * base * (255.0 - base) / 65025.0,
    )


def _hard_light(base, c):
    return np.where(
        c < 128.0,
        2.0 * base * c / 255.0,
        255.0 - 2.0 * (255.0 - base) * (255.0 - c) / 255.0,
    )


def _overlay(base, c):
    return _hard_light(c, base)


# Index matches the select option value
_BLEND_FNS = (
    lambda b, c: np.broadcast_to(c, b.shape),
    lambda b, c: b * c / 255.0,
    lambda b, c: 255.0 - (255.0 - b) * (255.0 - c) / 255.0,
    _overlay,
    _soft_light,
    _hard_light,
    _dodge,
    _burn,
    np.minimum,
    np.maximum,
    lambda b, c: np.abs(b - c),
    lambda b, c: b + c - 2.0 * b * c / 255.0,
)


def blend(base: np.ndarray, overlay, mode: int) -> np.ndarray:
    """Per-channel blend of base (float, 0-255) with overlay (broadcastable).

    Unknown modes return base unchanged. Never produces NaN or infinity.
    """
    mode = int(mode)
    base = np.asarray(base, dtype=np.float64)
    c = np.asarray(overlay, dtype=np.float64)
    if not 0 <= mode < len(_BLEND_FNS):
        return base.copy()
    return np.clip(_BLEND_FNS[mode](base, c), 0, 255)


def color(frame: np.ndarray, color="#ff0000", opacity: float = 50,
          blend_mode: int = 0) -> np.ndarray:
    """Lay a flat color over the frame.

    Args:
        frame: (H, W, 3) uint8 RGB array.
        color: Overlay color, hex string or (r, g, b).
        opacity: 0-100 mix between original and blended result.
        blend_mode: 0-11, see BLEND_MODES.

    Returns:
        Composited frame, rounded to the nearest integer.
    """
    base = frame[:, :, :3].astype(np.float64)
    c = np.asarray(parse_color(color), dtype=np.float64)
    blended = blend(base, c, blend_mode)
    k = opacity / 100.0
    out = base * (1.0 - k) + blended * k
    return np.clip(np.floor(out + 0.5), 0, 255).astype(np.uint8)
