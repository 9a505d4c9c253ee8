"""
PhotoFX -- Pixel Buffer I/O Tests
Decode/encode, data URLs, flat buffers, snapshots and clamping.

Run with: pytest tests/test_pixels.py -v
"""

import base64
import io
import os
import sys

import numpy as np
import pytest
from PIL import Image

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from conftest import _make_test_frame, _png_bytes
from core.pixels import (
    ImageDecodeError,
    InvalidDimensionsError,
    clamp,
    decode,
    encode,
    from_buffer,
    load_image,
    save_image,
    snapshot,
    to_buffer,
    to_data_url,
)


class TestDecode:

    def test_png_decodes_to_rgba(self):
        src = _make_test_frame(alpha=True)
        frame = decode(_png_bytes(src))
        assert frame.shape == (64, 96, 4)
        assert frame.dtype == np.uint8
        np.testing.assert_array_equal(frame, src)

    def test_rgb_source_gets_opaque_alpha(self):
        frame = decode(_png_bytes(_make_test_frame()))
        assert (frame[:, :, 3] == 255).all()

    def test_jpeg_decodes(self):
        buf = io.BytesIO()
        Image.fromarray(_make_test_frame()).save(buf, format="JPEG")
        frame = decode(buf.getvalue())
        assert frame.shape == (64, 96, 4)

    def test_data_url_roundtrip(self):
        src = _make_test_frame(alpha=True)
        url = to_data_url(src)
        assert url.startswith("data:image/png;base64,")
        np.testing.assert_array_equal(decode(url), src)

    def test_garbage_bytes_raise(self):
        with pytest.raises(ImageDecodeError):
            decode(b"definitely not an image")

    def test_empty_bytes_raise(self):
        with pytest.raises(ImageDecodeError):
            decode(b"")

    def test_truncated_png_raises(self):
        data = _png_bytes(_make_test_frame())
        with pytest.raises(ImageDecodeError):
            decode(data[: len(data) // 2])

    def test_decompression_bomb_raises_decode_error(self, monkeypatch):
        # 96x64 is more than twice this limit, which Pillow treats as a bomb
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 100)
        with pytest.raises(ImageDecodeError, match="Could not decode"):
            decode(_png_bytes(_make_test_frame()))

    def test_plain_string_rejected(self):
        with pytest.raises(ImageDecodeError):
            decode("hello")

    def test_bad_base64_rejected(self):
        with pytest.raises(ImageDecodeError):
            decode("data:image/png;base64,@@@@")

    def test_unsupported_type_rejected(self):
        with pytest.raises(ImageDecodeError):
            decode(12345)

    def test_decode_errors_are_value_errors(self):
        assert issubclass(ImageDecodeError, ValueError)
        assert issubclass(InvalidDimensionsError, ValueError)

    def test_decode_returns_private_copy(self):
        data = _png_bytes(_make_test_frame())
        a = decode(data)
        a[:] = 0
        b = decode(data)
        assert b.any()


class TestEncode:

    def test_png_magic(self):
        data = encode(_make_test_frame())
        assert data[:4] == b"\x89PNG"

    def test_alpha_preserved(self):
        src = _make_test_frame(alpha=True)
        np.testing.assert_array_equal(decode(encode(src)), src)

    def test_jpeg_output(self):
        data = encode(_make_test_frame(alpha=True), fmt="JPEG")
        assert data[:2] == b"\xff\xd8"

    @pytest.mark.parametrize("shape", [(10, 10), (10, 10, 2), (0, 10, 3), (10, 0, 4)])
    def test_bad_shapes_raise(self, shape):
        with pytest.raises(InvalidDimensionsError):
            encode(np.zeros(shape, dtype=np.uint8))

    def test_float_input_is_clamped(self):
        frame = np.full((4, 4, 3), 300.0, dtype=np.float32)
        frame[0, 0] = -20.0
        out = decode(encode(frame))
        assert out[0, 0, 0] == 0
        assert out[1, 1, 0] == 255


class TestFlatBuffer:

    def test_roundtrip(self):
        src = _make_test_frame(width=5, height=3, alpha=True)
        buf = to_buffer(src)
        assert len(buf) == 5 * 3 * 4
        np.testing.assert_array_equal(from_buffer(buf, 5, 3), src)

    def test_row_major_layout(self):
        buf = bytes(range(2 * 2 * 4))
        frame = from_buffer(buf, 2, 2)
        assert list(frame[0, 1]) == [4, 5, 6, 7]
        assert list(frame[1, 0]) == [8, 9, 10, 11]

    def test_wrong_length_raises(self):
        with pytest.raises(InvalidDimensionsError):
            from_buffer(b"\x00" * 15, 2, 2)

    def test_zero_dimension_raises(self):
        with pytest.raises(InvalidDimensionsError):
            from_buffer(b"", 0, 2)

    def test_rgb_gets_alpha(self):
        buf = to_buffer(np.zeros((1, 1, 3), dtype=np.uint8))
        assert buf == b"\x00\x00\x00\xff"


class TestSnapshotAndClamp:

    def test_snapshot_is_read_only_copy(self):
        src = _make_test_frame()
        snap = snapshot(src)
        with pytest.raises(ValueError):
            snap[0, 0, 0] = 1
        src[0, 0, 0] = 7
        assert snap[0, 0, 0] == 0

    def test_clamp_handles_nan_and_inf(self):
        values = np.array([np.nan, np.inf, -np.inf, -5.0, 128.4, 999.0], dtype=np.float32)
        out = clamp(values)
        assert out.dtype == np.uint8
        assert list(out) == [0, 255, 0, 0, 128, 255]


class TestFiles:

    def test_save_and_load(self, tmp_path):
        src = _make_test_frame(alpha=True)
        path = save_image(src, tmp_path / "out.png")
        np.testing.assert_array_equal(load_image(path), src)

    def test_load_missing_file_raises(self, tmp_path):
        with pytest.raises(ImageDecodeError):
            load_image(tmp_path / "missing.png")

    def test_save_jpeg_by_extension(self, tmp_path):
        path = save_image(_make_test_frame(alpha=True), tmp_path / "out.jpg")
        assert path.read_bytes()[:2] == b"\xff\xd8"

    def test_base64_payload_matches_png(self):
        src = _make_test_frame()
        payload = to_data_url(src).split(",", 1)[1]
        assert base64.b64decode(payload) == encode(src)
