"""
PhotoFX -- Safety & Resource Guards
Preflight checks for input files, output sizes and effect chains.
Prevents runaway memory use from oversized images or upscale targets.
"""

import os
from pathlib import Path

from core.pixels import InvalidDimensionsError

# --- Configurable Limits ---
MAX_FILE_MB = 100                 # Maximum input file size
MAX_INPUT_PIXELS = 50_000_000     # ~8K x 6K
MAX_OUTPUT_PIXELS = 100_000_000   # Upscale target ceiling (~10K x 10K)
MAX_CHAIN_DEPTH = 10              # Maximum effects in a chain
ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp", ".bmp", ".gif", ".tif", ".tiff"}


class SafetyError(Exception):
    """Raised when a preflight check fails."""
    pass


def preflight(input_path: str) -> dict:
    """Run file checks before decoding an image from disk.

    Returns:
        dict with path, size_mb and extension.

    Raises:
        SafetyError: If any check fails.
        FileNotFoundError: If input doesn't exist.
    """
    real_path = os.path.realpath(str(input_path))

    if not os.path.isfile(real_path):
        raise FileNotFoundError(f"Input file not found: {input_path}")

    size_mb = os.path.getsize(real_path) / (1024 * 1024)
    if size_mb > MAX_FILE_MB:
        raise SafetyError(
            f"Input file is {size_mb:.0f}MB, exceeds {MAX_FILE_MB}MB limit."
        )

    ext = Path(real_path).suffix.lower()
    if ext not in ALLOWED_EXTENSIONS:
        raise SafetyError(
            f"File type '{ext}' not allowed. "
            f"Supported: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
        )

    return {
        "path": real_path,
        "size_mb": size_mb,
        "extension": ext,
    }


def validate_dimensions(width: int, height: int, max_pixels: int = MAX_OUTPUT_PIXELS) -> None:
    """Check a target geometry before allocating a buffer for it.

    Raises:
        InvalidDimensionsError: Zero or negative width/height.
        SafetyError: More than max_pixels pixels.
    """
    if int(width) <= 0 or int(height) <= 0:
        raise InvalidDimensionsError(f"Dimensions must be positive. Got {width}x{height}")
    if int(width) * int(height) > max_pixels:
        raise SafetyError(
            f"{width}x{height} is {int(width) * int(height):,} pixels, "
            f"max is {max_pixels:,}."
        )


def validate_frame(frame) -> None:
    """Check a decoded frame against the input pixel budget."""
    h, w = frame.shape[:2]
    validate_dimensions(w, h, max_pixels=MAX_INPUT_PIXELS)


def validate_chain_depth(effects_list: list) -> None:
    """Check that effect chain isn't too deep.

    Raises:
        SafetyError: If chain exceeds MAX_CHAIN_DEPTH.
    """
    if len(effects_list) > MAX_CHAIN_DEPTH:
        raise SafetyError(
            f"Effect chain has {len(effects_list)} effects, max is {MAX_CHAIN_DEPTH}. "
            f"Split into multiple passes."
        )
