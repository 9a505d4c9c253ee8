"""
PhotoFX -- Resolution Scaling
Normalizes effect magnitudes so a 200px thumbnail and a 4000px photo get
the same look. Everything is relative to a 1920x1080 frame at 72 DPI.
"""

import math
from dataclasses import dataclass

from core.pixels import InvalidDimensionsError

REFERENCE_WIDTH = 1920
REFERENCE_HEIGHT = 1080
DEFAULT_DPI = 72


@dataclass(frozen=True)
class ScalingFactors:
    """Multipliers for one image, derived once per effect call.

    size_scale:     sqrt of the pixel-count ratio (divides per-scanline probabilities)
    dpi_scale:      density ratio (perceptual thresholds)
    combined_scale: size_scale * dpi_scale (divides per-pixel probabilities)
    linear_scale:   long-edge ratio (lengths in pixels)
    min_scale:      short-edge ratio
    """
    size_scale: float
    dpi_scale: float
    combined_scale: float
    linear_scale: float
    min_scale: float


def compute_scaling(width: int, height: int, dpi: float = DEFAULT_DPI) -> ScalingFactors:
    """Compute scaling factors for an image of the given size and density.

    Raises:
        InvalidDimensionsError: If width, height or dpi is not positive.
    """
    if width <= 0 or height <= 0:
        raise InvalidDimensionsError(f"Image must have positive dimensions. Got {width}x{height}")
    if not dpi or dpi <= 0 or not math.isfinite(dpi):
        raise InvalidDimensionsError(f"DPI must be positive. Got {dpi}")

    size_scale = math.sqrt((width * height) / (REFERENCE_WIDTH * REFERENCE_HEIGHT))
    dpi_scale = dpi / DEFAULT_DPI
    return ScalingFactors(
        size_scale=size_scale,
        dpi_scale=dpi_scale,
        combined_scale=size_scale * dpi_scale,
        linear_scale=max(width, height) / REFERENCE_WIDTH,
        min_scale=min(width, height) / min(REFERENCE_WIDTH, REFERENCE_HEIGHT),
    )


def scaling_for_frame(frame, dpi: float = DEFAULT_DPI) -> ScalingFactors:
    """Shortcut for an (H, W, C) array."""
    h, w = frame.shape[:2]
    return compute_scaling(w, h, dpi)


def scaled_pixels(value: float, factor: float, minimum: int = 1) -> int:
    """Scale a length authored in reference pixels (block size, shift distance)."""
    return max(minimum, int(round(value * factor)))


def scaled_probability(percent: float, factor: float, rate: float = 1.0) -> float:
    """Turn a 0-100 UI amount into a Bernoulli probability for this image.

    rate is the per-trial probability at 100% on the reference frame. Dividing
    by the area factor keeps artifacts per unit of picture constant: bigger
    images get sparser trials, thumbnails saturate.
    """
    p = (percent / 100.0) * rate / factor
    return max(0.0, min(1.0, p))
