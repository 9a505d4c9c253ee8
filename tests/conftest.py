"""
Conftest: shared fixtures for all PhotoFX test modules.

1. Synthetic frames (gradient, solid, checkerboard) -- no image files needed
2. Encoded PNG bytes for the bytes-in/bytes-out entry points
3. Image files on disk for CLI tests
"""

import io
import os
import sys

import numpy as np
import pytest
from PIL import Image

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


def _make_test_frame(width=96, height=64, alpha=False):
    """Generate a synthetic test frame (gradient, not blank)."""
    frame = np.zeros((height, width, 3), dtype=np.uint8)
    frame[:, :, 0] = np.linspace(0, 255, width, dtype=np.uint8)  # R gradient
    frame[:, :, 1] = np.linspace(0, 255, height, dtype=np.uint8)[:, np.newaxis]  # G gradient
    frame[:, :, 2] = np.linspace(255, 0, width, dtype=np.uint8)  # B inverse
    frame[height // 4:3 * height // 4, width // 4:3 * width // 4, 2] = 200
    if alpha:
        a = np.full((height, width, 1), 255, dtype=np.uint8)
        a[:, : width // 2] = 90
        frame = np.concatenate([frame, a], axis=2)
    return frame


def _solid(value, width=48, height=32, alpha=True):
    channels = 4 if alpha else 3
    frame = np.full((height, width, channels), value, dtype=np.uint8)
    if alpha:
        frame[:, :, 3] = 255
    return frame


def _png_bytes(frame):
    buf = io.BytesIO()
    Image.fromarray(np.ascontiguousarray(frame)).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def frame():
    """A 96x64 gradient RGB frame."""
    return _make_test_frame()


@pytest.fixture
def rgba_frame():
    """Gradient frame with a half-transparent left side."""
    return _make_test_frame(alpha=True)


@pytest.fixture
def noisy_frame():
    """A 64x64 deterministic random frame."""
    rng = np.random.RandomState(123)
    return rng.randint(0, 256, (64, 64, 3), dtype=np.uint8)


@pytest.fixture
def png_bytes():
    return _png_bytes(_make_test_frame(alpha=True))


@pytest.fixture
def image_file(tmp_path):
    """Gradient PNG on disk."""
    path = tmp_path / "input.png"
    path.write_bytes(_png_bytes(_make_test_frame()))
    return path
