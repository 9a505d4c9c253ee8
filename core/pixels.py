"""
PhotoFX -- Pixel Buffer I/O
Decode encoded images into RGBA arrays and back.

A pixel buffer is an (H, W, 4) uint8 array: row-major RGBA, the same bytes
as a flat W*H*4 sequence. Every decode returns a private copy, so effects
may write freely without touching the caller's data.
"""

import base64
import binascii
import io
import logging
from pathlib import Path

import numpy as np
from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

DATA_URL_PREFIX = "data:image/"


class ImageDecodeError(ValueError):
    """Source image could not be decoded."""
    pass


class InvalidDimensionsError(ValueError):
    """Image geometry is empty or negative."""
    pass


def _image_bytes(image) -> bytes:
    """Accept raw bytes or a data URL string; return encoded bytes."""
    if isinstance(image, (bytes, bytearray, memoryview)):
        return bytes(image)
    if isinstance(image, str):
        if not image.startswith(DATA_URL_PREFIX) or "," not in image:
            raise ImageDecodeError("String input must be a data:image/...;base64 URL")
        header, payload = image.split(",", 1)
        if ";base64" not in header:
            raise ImageDecodeError("Only base64 data URLs are supported")
        try:
            return base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ImageDecodeError(f"Invalid base64 payload: {e}") from e
    raise ImageDecodeError(f"Unsupported image type: {type(image).__name__}")


def decode(image) -> np.ndarray:
    """Decode an encoded image into a fresh (H, W, 4) uint8 RGBA array.

    Args:
        image: Encoded bytes (PNG, JPEG, ...) or a base64 data URL.

    Raises:
        ImageDecodeError: Unreadable, truncated or decompression-bomb data.
        InvalidDimensionsError: Zero-area image.
    """
    data = _image_bytes(image)
    if not data:
        raise ImageDecodeError("Empty image data")
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            rgba = img.convert("RGBA")
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError) as e:
        raise ImageDecodeError(f"Could not decode image: {e}") from e

    frame = np.array(rgba, dtype=np.uint8)
    if frame.ndim != 3 or frame.shape[0] == 0 or frame.shape[1] == 0:
        raise InvalidDimensionsError(f"Decoded image has no pixels: shape {frame.shape}")
    logger.debug("decoded %dx%d image", frame.shape[1], frame.shape[0])
    return frame


def _as_rgba(frame: np.ndarray) -> np.ndarray:
    frame = np.asarray(frame)
    if frame.ndim != 3 or frame.shape[2] not in (3, 4):
        raise InvalidDimensionsError(f"Expected (H, W, 3|4) array, got shape {frame.shape}")
    if frame.shape[0] == 0 or frame.shape[1] == 0:
        raise InvalidDimensionsError(f"Frame has no pixels: shape {frame.shape}")
    if frame.dtype != np.uint8:
        frame = clamp(frame)
    if frame.shape[2] == 3:
        alpha = np.full(frame.shape[:2] + (1,), 255, dtype=np.uint8)
        frame = np.concatenate([frame, alpha], axis=2)
    return np.ascontiguousarray(frame)


def encode(frame: np.ndarray, fmt: str = "PNG") -> bytes:
    """Encode an RGB or RGBA array as image bytes (lossless PNG by default)."""
    rgba = _as_rgba(frame)
    img = Image.fromarray(rgba)
    if fmt.upper() in ("JPEG", "JPG"):
        img = img.convert("RGB")
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


def to_data_url(frame: np.ndarray) -> str:
    """Encode a frame as a PNG data URL."""
    b64 = base64.b64encode(encode(frame)).decode("ascii")
    return f"data:image/png;base64,{b64}"


def from_buffer(buf, width: int, height: int) -> np.ndarray:
    """Build an (H, W, 4) array from a flat RGBA byte sequence."""
    if width <= 0 or height <= 0:
        raise InvalidDimensionsError(f"Buffer dimensions must be positive. Got {width}x{height}")
    flat = np.frombuffer(bytes(buf), dtype=np.uint8)
    expected = width * height * 4
    if flat.size != expected:
        raise InvalidDimensionsError(
            f"Buffer has {flat.size} bytes, expected {expected} for {width}x{height} RGBA"
        )
    return flat.reshape(height, width, 4).copy()


def to_buffer(frame: np.ndarray) -> bytes:
    """Flatten a frame to row-major RGBA bytes."""
    return _as_rgba(frame).tobytes()


def snapshot(frame: np.ndarray) -> np.ndarray:
    """Read-only copy of a frame for neighbour reads during a write pass."""
    snap = np.array(frame, copy=True)
    snap.flags.writeable = False
    return snap


def clamp(values: np.ndarray) -> np.ndarray:
    """Clip to [0, 255] and convert to uint8. NaN becomes 0."""
    values = np.nan_to_num(np.asarray(values, dtype=np.float32), nan=0.0, posinf=255.0, neginf=0.0)
    return np.clip(values, 0, 255).astype(np.uint8)


def load_image(path) -> np.ndarray:
    """Read an image file into an RGBA array."""
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise ImageDecodeError(f"Could not read {path}: {e}") from e
    return decode(data)


def save_image(frame: np.ndarray, path) -> Path:
    """Write a frame to disk; format follows the file extension."""
    path = Path(path)
    ext = path.suffix.lower().lstrip(".")
    fmt = {"jpg": "JPEG", "jpeg": "JPEG", "webp": "WEBP", "bmp": "BMP"}.get(ext, "PNG")
    path.write_bytes(encode(frame, fmt=fmt))
    return path
