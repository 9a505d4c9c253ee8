"""
PhotoFX -- Registry & Dispatch Tests
Effect lookup, schemas, search, the apply entry points, alpha handling,
dry/wet mix, seeding and chains.

Run with: pytest tests/test_registry.py -v
"""

import json
import os
import sys

import numpy as np
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from conftest import _make_test_frame, _png_bytes
from core.pixels import ImageDecodeError, InvalidDimensionsError, decode
from core.safety import MAX_CHAIN_DEPTH, SafetyError
from effects import (
    CATEGORIES,
    EFFECTS,
    STOCHASTIC_EFFECTS,
    apply,
    apply_chain,
    apply_effect,
    get_effect,
    get_schema,
    list_categories,
    list_effects,
    search_effects,
)

EXPECTED_EFFECTS = {
    "vhs", "aol90s", "nes", "genesis", "snes", "segacd",
    "glitch", "cyberpunk", "shadowrun", "neon", "dither",
    "vintage", "sepia", "polaroid", "filmgrain", "lofi",
    "colorpop", "crossprocess", "emboss", "edgedetect", "vignette",
    "blur", "sharpen", "blackwhite", "infrared", "thermal", "color",
}


# ---------------------------------------------------------------------------
# REGISTRY
# ---------------------------------------------------------------------------

class TestRegistry:

    def test_all_effects_registered(self):
        assert set(EFFECTS) == EXPECTED_EFFECTS

    def test_every_effect_has_known_category(self):
        for name, entry in EFFECTS.items():
            assert entry["category"] in CATEGORIES, name

    def test_categories_ordered(self):
        assert list_categories() == ["retro", "modern", "vintage", "artistic", "technical"]

    def test_get_effect_returns_defaults(self):
        fn, params = get_effect("vhs")
        assert callable(fn)
        assert params["tracking"] == 30.0
        assert params["noise_type"] == 0

    def test_unknown_effect_lists_available(self):
        with pytest.raises(ValueError, match="Unknown effect: nope. Available:"):
            get_effect("nope")

    def test_schema_shape(self):
        schema = get_schema("color")
        assert schema["name"] == "color"
        assert schema["category"] == "technical"
        assert schema["params"]["blend_mode"]["kind"] == "select"
        assert len(schema["params"]["blend_mode"]["options"]) == 12
        assert schema["params"]["color"]["kind"] == "color"

    def test_all_schemas_json_serialisable(self):
        text = json.dumps(list_effects())
        assert "vhs" in text

    def test_list_effects_by_category(self):
        retro = list_effects("retro")
        assert {e["name"] for e in retro} == {"vhs", "aol90s", "nes", "genesis", "snes", "segacd"}

    def test_stochastic_set(self):
        assert "vhs" in STOCHASTIC_EFFECTS
        assert "glitch" in STOCHASTIC_EFFECTS
        assert "sharpen" not in STOCHASTIC_EFFECTS
        assert "polaroid" not in STOCHASTIC_EFFECTS


class TestSearch:

    def test_by_name(self):
        assert any(e["name"] == "thermal" for e in search_effects("therm"))

    def test_by_description(self):
        names = {e["name"] for e in search_effects("sobel")}
        assert names == {"edgedetect"}

    def test_case_insensitive(self):
        assert search_effects("VHS")

    def test_query_length_limit(self):
        with pytest.raises(ValueError, match="too long"):
            search_effects("x" * 201)


# ---------------------------------------------------------------------------
# DISPATCH
# ---------------------------------------------------------------------------

class TestApplyEffect:

    def test_input_never_mutated(self, frame):
        before = frame.copy()
        for name in EXPECTED_EFFECTS:
            apply_effect(frame, name, seed=1)
        np.testing.assert_array_equal(frame, before)

    def test_rgb_in_rgb_out(self, frame):
        out = apply_effect(frame, "sepia")
        assert out.shape == frame.shape
        assert out.dtype == np.uint8

    def test_alpha_reattached_unchanged(self, rgba_frame):
        out = apply_effect(rgba_frame, "vhs", seed=3, tracking=100, dropout=100)
        assert out.shape == rgba_frame.shape
        np.testing.assert_array_equal(out[:, :, 3], rgba_frame[:, :, 3])

    def test_unknown_params_ignored(self, frame):
        a = apply_effect(frame, "sepia", bogus=5)
        b = apply_effect(frame, "sepia")
        np.testing.assert_array_equal(a, b)

    def test_out_of_range_params_clamped(self, frame):
        a = apply_effect(frame, "sepia", intensity=1000)
        b = apply_effect(frame, "sepia", intensity=100)
        np.testing.assert_array_equal(a, b)

    def test_select_by_label(self, frame):
        a = apply_effect(frame, "thermal", palette="Rainbow")
        b = apply_effect(frame, "thermal", palette=1)
        np.testing.assert_array_equal(a, b)

    def test_float_frame_is_clamped(self, frame):
        f = frame.astype(np.float32) * 2.0
        out = apply_effect(f, "sepia")
        assert out.dtype == np.uint8

    def test_bad_shape_raises(self):
        with pytest.raises(InvalidDimensionsError):
            apply_effect(np.zeros((8, 8), dtype=np.uint8), "sepia")

    def test_empty_frame_raises(self):
        with pytest.raises(InvalidDimensionsError):
            apply_effect(np.zeros((0, 8, 3), dtype=np.uint8), "sepia")

    def test_unknown_effect_raises(self, frame):
        with pytest.raises(ValueError):
            apply_effect(frame, "nope")


class TestDryWetMix:

    def test_mix_zero_returns_original(self, noisy_frame):
        out = apply_effect(noisy_frame, "sepia", mix=0.0)
        np.testing.assert_array_equal(out, noisy_frame)

    def test_mix_one_is_default(self, noisy_frame):
        a = apply_effect(noisy_frame, "sepia", mix=1.0)
        b = apply_effect(noisy_frame, "sepia")
        np.testing.assert_array_equal(a, b)

    def test_mix_half_is_blend(self, noisy_frame):
        wet = apply_effect(noisy_frame, "sepia")
        half = apply_effect(noisy_frame, "sepia", mix=0.5)
        expected = noisy_frame.astype(np.float32) * 0.5 + wet.astype(np.float32) * 0.5
        diff = np.abs(half.astype(int) - expected.astype(int))
        assert diff.max() <= 1

    def test_mix_clamped(self, noisy_frame):
        a = apply_effect(noisy_frame, "sepia", mix=7.0)
        b = apply_effect(noisy_frame, "sepia")
        np.testing.assert_array_equal(a, b)

    def test_mix_garbage_means_full_wet(self, noisy_frame):
        a = apply_effect(noisy_frame, "sepia", mix="lots")
        b = apply_effect(noisy_frame, "sepia")
        np.testing.assert_array_equal(a, b)


class TestSeeding:

    @pytest.mark.parametrize("name", sorted(STOCHASTIC_EFFECTS))
    def test_fixed_seed_is_reproducible(self, frame, name):
        a = apply_effect(frame, name, seed=42)
        b = apply_effect(frame, name, seed=42)
        np.testing.assert_array_equal(a, b)

    def test_different_seeds_differ(self):
        frame = _make_test_frame(320, 240)
        a = apply_effect(frame, "vhs", seed=1, tape_noise=100)
        b = apply_effect(frame, "vhs", seed=2, tape_noise=100)
        assert not np.array_equal(a, b)

    @pytest.mark.parametrize("name", sorted(EXPECTED_EFFECTS - STOCHASTIC_EFFECTS))
    def test_deterministic_effects_ignore_seed(self, frame, name):
        a = apply_effect(frame, name)
        b = apply_effect(frame, name, seed=99)
        np.testing.assert_array_equal(a, b)


class TestChain:

    def test_chain_matches_sequential_calls(self, frame):
        chain = [
            {"name": "sepia", "params": {"intensity": 90}},
            {"name": "vignette"},
            {"name": "sharpen", "params": {"strength": 70}},
        ]
        expected = apply_effect(frame, "sepia", intensity=90)
        expected = apply_effect(expected, "vignette")
        expected = apply_effect(expected, "sharpen", strength=70)
        np.testing.assert_array_equal(apply_chain(frame, chain), expected)

    def test_chain_steps_get_offset_seeds(self, frame):
        chain = [{"name": "vhs"}, {"name": "glitch"}]
        expected = apply_effect(frame, "vhs", seed=10)
        expected = apply_effect(expected, "glitch", seed=11)
        np.testing.assert_array_equal(apply_chain(frame, chain, seed=10), expected)

    def test_chain_depth_limit(self, frame):
        with pytest.raises(SafetyError):
            apply_chain(frame, [{"name": "blur"}] * (MAX_CHAIN_DEPTH + 1))

    def test_empty_chain_returns_input(self, frame):
        np.testing.assert_array_equal(apply_chain(frame, []), frame)


class TestBytesEntryPoint:

    def test_png_in_png_out(self, png_bytes):
        out = apply(png_bytes, "sepia")
        assert out[:4] == b"\x89PNG"
        frame = decode(out)
        assert frame.shape == (64, 96, 4)

    def test_alpha_survives_encode(self, png_bytes):
        out = decode(apply(png_bytes, "vhs", {"tracking": 80}, seed=5))
        np.testing.assert_array_equal(out[:, :, 3], decode(png_bytes)[:, :, 3])

    def test_seeded_bytes_identical(self, png_bytes):
        assert apply(png_bytes, "glitch", seed=3) == apply(png_bytes, "glitch", seed=3)

    def test_garbage_raises_decode_error(self):
        with pytest.raises(ImageDecodeError):
            apply(b"junk", "sepia")

    def test_unknown_effect_checked_first(self):
        with pytest.raises(ValueError, match="Unknown effect"):
            apply(b"junk", "nope")

    def test_data_url_input(self):
        import base64
        url = "data:image/png;base64," + base64.b64encode(_png_bytes(_make_test_frame())).decode()
        assert apply(url, "blackwhite", seed=1)[:4] == b"\x89PNG"

    def test_dpi_changes_threshold_effects(self, png_bytes):
        a = apply(png_bytes, "edgedetect", {"threshold": 100}, dpi=72)
        b = apply(png_bytes, "edgedetect", {"threshold": 100}, dpi=7.2)
        assert a != b

    def test_bad_dpi_raises(self, png_bytes):
        with pytest.raises(InvalidDimensionsError):
            apply(png_bytes, "sepia", dpi=0)
