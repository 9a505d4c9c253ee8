"""
PhotoFX -- CLI Smoke Tests

Run with: pytest tests/test_cli.py -v
"""

import json
import logging
import os
import sys

import numpy as np
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.pixels import load_image
from photofx import _parse_param_value, _parse_params, main


@pytest.fixture(autouse=True)
def restore_logging():
    """main() reconfigures the root logger; put it back afterwards."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestParamParsing:

    @pytest.mark.parametrize("raw,expected", [
        ("42", 42),
        ("-3", -3),
        ("0.5", 0.5),
        ("1e2", 100.0),
        ("#00ffff", "#00ffff"),
        ("Luminance", "Luminance"),
    ])
    def test_values(self, raw, expected):
        assert _parse_param_value(raw) == expected

    @pytest.mark.parametrize("raw", ["nan", "inf", "-Infinity", " NaN "])
    def test_nan_inf_rejected(self, raw):
        with pytest.raises(ValueError):
            _parse_param_value(raw)

    def test_pairs(self):
        assert _parse_params(["tracking=60", "noise_type=Luminance"]) == {
            "tracking": 60, "noise_type": "Luminance"}

    def test_missing_equals(self):
        with pytest.raises(ValueError, match="key=value"):
            _parse_params(["tracking"])


class TestListing:

    def test_list_effects(self, capsys):
        assert main(["list-effects"]) == 0
        out = capsys.readouterr().out
        assert "vhs" in out and "Total: 27 effects" in out

    def test_list_category(self, capsys):
        assert main(["list-effects", "--category", "vintage", "--compact"]) == 0
        out = capsys.readouterr().out
        assert "polaroid" in out and "vhs" not in out

    def test_describe(self, capsys):
        assert main(["describe", "thermal"]) == 0
        out = capsys.readouterr().out
        assert "Hot Iron" in out

    def test_describe_json(self, capsys):
        assert main(["describe", "color", "--json"]) == 0
        schema = json.loads(capsys.readouterr().out)
        assert schema["params"]["color"]["default"] == "#ff0000"

    def test_describe_unknown_suggests(self, capsys):
        assert main(["describe", "vh"]) == 1
        assert "Did you mean: vhs" in capsys.readouterr().err

    def test_search(self, capsys):
        assert main(["search", "grain"]) == 0
        assert "filmgrain" in capsys.readouterr().out

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "usage" in capsys.readouterr().out.lower()


class TestApply:

    def test_apply_writes_image(self, image_file, tmp_path, capsys):
        out_path = tmp_path / "out.png"
        code = main(["apply", str(image_file), str(out_path), "--effect", "vhs",
                     "--params", "tracking=60", "noise_type=Luminance", "--seed", "7"])
        assert code == 0
        assert load_image(out_path).shape == (64, 96, 4)

    def test_apply_seeded_is_reproducible(self, image_file, tmp_path):
        a, b = tmp_path / "a.png", tmp_path / "b.png"
        for path in (a, b):
            main(["apply", str(image_file), str(path), "--effect", "glitch", "--seed", "3"])
        assert a.read_bytes() == b.read_bytes()

    def test_apply_mix_zero_keeps_pixels(self, image_file, tmp_path):
        out_path = tmp_path / "dry.png"
        main(["apply", str(image_file), str(out_path), "--effect", "sepia", "--mix", "0"])
        np.testing.assert_array_equal(load_image(out_path), load_image(image_file))

    def test_apply_unknown_effect(self, image_file, tmp_path, capsys):
        code = main(["apply", str(image_file), str(tmp_path / "x.png"), "--effect", "nope"])
        assert code == 1
        assert "Unknown effect" in capsys.readouterr().err

    def test_apply_missing_input(self, tmp_path, capsys):
        code = main(["apply", str(tmp_path / "missing.png"), str(tmp_path / "x.png"),
                     "--effect", "sepia"])
        assert code == 1
        assert "Error:" in capsys.readouterr().err

    def test_apply_garbage_input(self, tmp_path, capsys):
        bad = tmp_path / "bad.png"
        bad.write_bytes(b"not a png")
        code = main(["apply", str(bad), str(tmp_path / "x.png"), "--effect", "sepia"])
        assert code == 1
        assert "Could not decode" in capsys.readouterr().err

    def test_apply_disallowed_extension(self, tmp_path, capsys):
        bad = tmp_path / "image.txt"
        bad.write_bytes(b"hello")
        code = main(["apply", str(bad), str(tmp_path / "x.png"), "--effect", "sepia"])
        assert code == 1
        assert "not allowed" in capsys.readouterr().err

    def test_apply_nan_param(self, image_file, tmp_path, capsys):
        code = main(["apply", str(image_file), str(tmp_path / "x.png"), "--effect", "sepia",
                     "--params", "intensity=nan"])
        assert code == 1

    def test_verbose_logs_dispatch(self, image_file, tmp_path, capsys):
        main(["-v", "apply", str(image_file), str(tmp_path / "x.png"), "--effect", "sepia"])
        assert "apply sepia" in capsys.readouterr().err


class TestUpscaleAndScaling:

    def test_upscale(self, image_file, tmp_path):
        out_path = tmp_path / "big.png"
        code = main(["upscale", str(image_file), str(out_path), "--width", "192",
                     "--height", "128", "--method", "ai"])
        assert code == 0
        assert load_image(out_path).shape == (128, 192, 4)

    def test_upscale_bad_size(self, image_file, tmp_path, capsys):
        code = main(["upscale", str(image_file), str(tmp_path / "x.png"),
                     "--width", "0", "--height", "10"])
        assert code == 1
        assert "positive" in capsys.readouterr().err

    def test_scaling(self, image_file, capsys):
        assert main(["scaling", str(image_file), "--dpi", "144"]) == 0
        out = capsys.readouterr().out
        assert "96x64 @ 144 DPI" in out
        line = next(l for l in out.splitlines() if "dpi_scale" in l)
        assert line.split()[-1] == "2.0000"
