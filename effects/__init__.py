"""
PhotoFX -- Effects Registry
Maps effect names to implementations and parameter schemas, and provides
the uniform entry points.
Every effect is a function: (frame: np.ndarray, **params) -> np.ndarray
"""

import inspect
import logging

import numpy as np

from core.params import color as color_param, defaults, number, resolve_params, schema_to_dict, select
from core.pixels import InvalidDimensionsError, clamp, decode, encode
from core.safety import validate_chain_depth, validate_frame
from core.scaling import DEFAULT_DPI, scaling_for_frame
from effects.composite import BLEND_MODES, color as color_overlay
from effects.convolution import blur, edgedetect, emboss, sharpen
from effects.dither import DITHER_METHODS, dither
from effects.film import GRAIN_TYPES, filmgrain, lofi, polaroid, vignette, vintage
from effects.retro import aol90s, genesis, nes, segacd, shadowrun, snes
from effects.tape import NOISE_TYPES, glitch, vhs
from effects.tone import (
    CONVERSION_METHODS,
    FALSE_COLOR_MODES,
    THERMAL_PALETTE_NAMES,
    blackwhite,
    colorpop,
    crossprocess,
    cyberpunk,
    infrared,
    neon,
    sepia,
    thermal,
)
from effects.upscale import is_upscaling, upscale_frame

logger = logging.getLogger(__name__)

# Master registry: name -> fn, category, label, description, parameter schema
EFFECTS = {
    # === RETRO & GAMING ===
    "vhs": {
        "fn": vhs,
        "category": "retro",
        "label": "VHS Glitch",
        "description": "Dramatic VHS tape glitches: tracking, dropouts, sync loss, tape noise",
        "params": {
            "tracking": number("Tracking Errors", 30),
            "chromatic": number("Color Separation", 25),
            "dropout": number("Signal Dropout", 20),
            "sync_loss": number("Sync Loss", 15),
            "tape_noise": number("Tape Noise", 25),
            "color_bleed": number("Color Bleeding", 30),
            "scanlines": number("Scanlines", 40),
            "noise_type": select("Noise Type", list(NOISE_TYPES)),
        },
    },
    "aol90s": {
        "fn": aol90s,
        "category": "retro",
        "label": "90s Internet",
        "description": "Retro web aesthetics: big pixels, few colors, noisy dither",
        "params": {
            "pixelation": number("Pixelation", 40),
            "colors": number("Color Depth", 50),
            "dither": number("Dithering", 30),
        },
    },
    "nes": {
        "fn": nes,
        "category": "retro",
        "label": "NES Classic",
        "description": "8-bit Nintendo nostalgia: block pixels matched to the NES palette",
        "params": {
            "pixelation": number("Pixel Size", 4, 1, 8),
            "color_depth": number("Color Depth", 8, 4, 16),
            "contrast": number("Contrast", 120, 80, 150),
            "scanlines": number("Scanlines", 20),
            "dithering": number("Dithering", 15),
        },
    },
    "genesis": {
        "fn": genesis,
        "category": "retro",
        "label": "Sega Genesis",
        "description": "16-bit Sega blast processing: vivid 9-bit color and dither",
        "params": {
            "saturation": number("Saturation", 140, 100, 200),
            "dithering": number("Dithering", 25, 0, 50),
            "color_depth": number("Color Depth", 512, 256, 1024),
            "scanlines": number("Scanlines", 30),
            "sharpness": number("Sharpness", 130, 50, 200),
        },
    },
    "snes": {
        "fn": snes,
        "category": "retro",
        "label": "Super Nintendo",
        "description": "16-bit Nintendo smoothness: soft video, boosted color",
        "params": {
            "softness": number("CRT Softness", 40, 0, 60),
            "color_boost": number("Color Boost", 115, 100, 150),
            "brightness": number("Brightness", 110, 90, 130),
            "color_bleed": number("Color Bleeding", 25),
            "scanlines": number("Scanlines", 15),
        },
    },
    "segacd": {
        "fn": segacd,
        "category": "retro",
        "label": "Sega CD",
        "description": "FMV compression artifacts and color banding",
        "params": {
            "compression": number("Compression", 30, 10, 50),
            "fmv_look": number("FMV Processing", 40, 20, 60),
            "color_banding": number("Color Banding", 20, 10, 40),
        },
    },

    # === MODERN & DIGITAL ===
    "glitch": {
        "fn": glitch,
        "category": "modern",
        "label": "Digital Glitch",
        "description": "Digital corruption: shifted lines, split channels, broken blocks",
        "params": {
            "intensity": number("Glitch Intensity", 50),
            "frequency": number("Glitch Frequency", 30),
            "rgb_shift": number("RGB Separation", 15),
            "block_corruption": number("Block Corruption", 40),
            "digital_noise": number("Digital Noise", 20),
        },
    },
    "cyberpunk": {
        "fn": cyberpunk,
        "category": "modern",
        "label": "Cyberpunk Neon",
        "description": "Futuristic neon glow with cold highlights and bloom",
        "params": {
            "neon": number("Neon Intensity", 70),
            "contrast": number("Contrast", 80, 0, 200),
            "color_temp": number("Cool/Warm", 60),
            "glow_radius": number("Glow Radius", 30),
            "saturation": number("Color Boost", 150, 50, 200),
        },
    },
    "shadowrun": {
        "fn": shadowrun,
        "category": "modern",
        "label": "Shadowrun CRT",
        "description": "Cyberpunk hacker terminal: green phosphor, scanlines, interference",
        "params": {
            "crt_glow": number("CRT Glow", 70),
            "matrix_tint": number("Matrix Tint", 60),
            "scanlines": number("Scanlines", 40),
            "phosphor_decay": number("Phosphor Decay", 30),
            "interference": number("Signal Noise", 20),
        },
    },
    "neon": {
        "fn": neon,
        "category": "modern",
        "label": "Neon Glow",
        "description": "Electric neon effect with a tinted halo",
        "params": {
            "glow": number("Glow Intensity", 60),
            "color": color_param("Neon Color", "#00ffff"),
            "brightness": number("Brightness", 120, 0, 200),
        },
    },
    "dither": {
        "fn": dither,
        "category": "modern",
        "label": "Digital Dither",
        "description": "Retro dithering: Bayer, Floyd-Steinberg or random threshold",
        "params": {
            "levels": number("Color Levels", 4, 2, 16),
            "strength": number("Intensity", 50),
            "method": select("Pattern", list(DITHER_METHODS)),
            "pattern_size": number("Pattern Size", 1, 1, 8),
        },
    },

    # === VINTAGE & FILM ===
    "vintage": {
        "fn": vintage,
        "category": "vintage",
        "label": "Vintage Film",
        "description": "Classic film look: fade, warmth, grain, scratches, dust",
        "params": {
            "fade": number("Fade", 50),
            "grain": number("Grain", 30),
            "vignette": number("Vignette", 25),
            "warmth": number("Warmth", 40),
            "scratches": number("Scratches", 20),
            "dust_spots": number("Dust Spots", 15),
        },
    },
    "sepia": {
        "fn": sepia,
        "category": "vintage",
        "label": "Sepia Tone",
        "description": "Classic sepia toning",
        "params": {
            "intensity": number("Intensity", 80),
            "warmth": number("Warmth", 60),
        },
    },
    "polaroid": {
        "fn": polaroid,
        "category": "vintage",
        "label": "Polaroid",
        "description": "Instant camera look",
        "params": {
            "fade": number("Fade", 40),
            "warmth": number("Warmth", 60),
            "vignette": number("Vignette", 30),
        },
    },
    "filmgrain": {
        "fn": filmgrain,
        "category": "vintage",
        "label": "Film Grain",
        "description": "Analog film texture with tonal grain weighting",
        "params": {
            "intensity": number("Intensity", 65),
            "size": number("Grain Size", 3, 1, 10),
            "opacity": number("Opacity", 80),
            "grain_type": select("Grain Type", list(GRAIN_TYPES)),
            "shadows": number("Shadow Grain", 85),
            "highlights": number("Highlight Grain", 45),
        },
    },
    "lofi": {
        "fn": lofi,
        "category": "vintage",
        "label": "Lo-Fi Aesthetic",
        "description": "Vintage low-fi look",
        "params": {
            "warmth": number("Warmth", 60),
            "grain": number("Film Grain", 40),
            "vignette": number("Vignette", 30),
        },
    },

    # === ARTISTIC & CREATIVE ===
    "colorpop": {
        "fn": colorpop,
        "category": "artistic",
        "label": "Color Pop",
        "description": "Selective color enhancement around a target hue",
        "params": {
            "intensity": number("Intensity", 120, 0, 200),
            "hue": number("Target Hue", 180, 0, 360),
            "hue_range": number("Color Range", 30, 10, 90),
        },
    },
    "crossprocess": {
        "fn": crossprocess,
        "category": "artistic",
        "label": "Cross Process",
        "description": "Film cross-processing color shifts",
        "params": {
            "intensity": number("Intensity", 60),
            "color_shift": number("Color Shift", 40),
        },
    },
    "emboss": {
        "fn": emboss,
        "category": "artistic",
        "label": "Emboss",
        "description": "3D embossed relief",
        "params": {
            "strength": number("Strength", 50),
            "depth": number("Depth", 3, 1, 10),
        },
    },
    "edgedetect": {
        "fn": edgedetect,
        "category": "artistic",
        "label": "Edge Detect",
        "description": "Sobel outline detection",
        "params": {
            "threshold": number("Threshold", 50, 0, 255),
            "invert": select("Invert", ["Off", "On"]),
        },
    },
    "vignette": {
        "fn": vignette,
        "category": "artistic",
        "label": "Vignette",
        "description": "Dark edge framing",
        "params": {
            "intensity": number("Intensity", 50),
            "size": number("Size", 60, 10, 90),
            "softness": number("Softness", 40),
        },
    },

    # === TECHNICAL & FILTERS ===
    "blur": {
        "fn": blur,
        "category": "technical",
        "label": "Blur",
        "description": "Gaussian blur",
        "params": {
            "radius": number("Blur Radius", 5, 0, 20),
        },
    },
    "sharpen": {
        "fn": sharpen,
        "category": "technical",
        "label": "Sharpen",
        "description": "Image sharpening",
        "params": {
            "strength": number("Strength", 50),
        },
    },
    "blackwhite": {
        "fn": blackwhite,
        "category": "technical",
        "label": "Black & White",
        "description": "Monochrome conversion",
        "params": {
            "contrast": number("Contrast", 110, 0, 200),
            "brightness": number("Brightness", 100, 0, 200),
            "grain": number("Film Grain", 15, 0, 50),
            "conversion_method": select("Conversion Method", list(CONVERSION_METHODS)),
        },
    },
    "infrared": {
        "fn": infrared,
        "category": "technical",
        "label": "Infrared",
        "description": "Infrared camera false color",
        "params": {
            "intensity": number("Intensity", 70),
            "red_channel": number("Red Boost", 150, 0, 200),
            "contrast": number("Contrast", 120, 50, 200),
            "false_color": select("False Color", list(FALSE_COLOR_MODES)),
        },
    },
    "thermal": {
        "fn": thermal,
        "category": "technical",
        "label": "Thermal",
        "description": "Thermal imaging pseudo-color",
        "params": {
            "intensity": number("Intensity", 80),
            "color_range": number("Color Range", 60, 20, 100),
            "contrast": number("Contrast", 140, 80, 200),
            "palette": select("Thermal Palette", list(THERMAL_PALETTE_NAMES)),
        },
    },
    "color": {
        "fn": color_overlay,
        "category": "technical",
        "label": "Insert Color",
        "description": "Add a colored layer overlay",
        "params": {
            "color": color_param("Color", "#ff0000"),
            "opacity": number("Opacity", 50),
            "blend_mode": select("Blend Mode", list(BLEND_MODES)),
        },
    },
}

# Category display order and labels
CATEGORIES = {
    "retro": "Retro & Gaming",
    "modern": "Modern & Digital",
    "vintage": "Vintage & Film",
    "artistic": "Artistic & Creative",
    "technical": "Technical & Filters",
}

# Effects whose output depends on the random source
STOCHASTIC_EFFECTS = frozenset(
    name for name, entry in EFFECTS.items()
    if "rng" in inspect.signature(entry["fn"]).parameters
)


def get_effect(name: str):
    """Get an effect by name. Returns (fn, default_params).

    Raises ValueError if effect doesn't exist.
    """
    if name not in EFFECTS:
        available = ", ".join(sorted(EFFECTS.keys()))
        raise ValueError(f"Unknown effect: {name}. Available: {available}")
    entry = EFFECTS[name]
    return entry["fn"], defaults(entry["params"])


def get_schema(name: str) -> dict:
    """JSON-ready definition of one effect, for rendering controls."""
    get_effect(name)
    entry = EFFECTS[name]
    return {
        "name": name,
        "label": entry["label"],
        "description": entry["description"],
        "category": entry["category"],
        "params": schema_to_dict(entry["params"]),
    }


def list_effects(category: str = None) -> list[dict]:
    """List all available effects with descriptions.

    Args:
        category: Optional filter, only return effects in this category.
    """
    return [get_schema(name) for name, entry in EFFECTS.items()
            if not category or entry["category"] == category]


def list_categories() -> list[str]:
    """Return ordered list of category keys."""
    return list(CATEGORIES.keys())


def search_effects(query: str, max_query_len: int = 200) -> list[dict]:
    """Search effects by name, label or description substring."""
    if len(query) > max_query_len:
        raise ValueError(f"Search query too long (max {max_query_len} chars)")
    q = query.lower()
    return [get_schema(name) for name, entry in EFFECTS.items()
            if q in name or q in entry["label"].lower() or q in entry["description"].lower()]


def _blend_mix(original, wet, mix):
    """Dry/wet linear blend of two RGB uint8 frames."""
    result = original.astype(np.float32) * (1.0 - mix) + wet.astype(np.float32) * mix
    return np.clip(result, 0, 255).astype(np.uint8)


def _run(frame, effect_name: str, params: dict, seed=None, dpi=DEFAULT_DPI):
    fn, _ = get_effect(effect_name)
    params = dict(params or {})

    mix = params.pop("mix", 1.0)
    try:
        mix = max(0.0, min(1.0, float(mix)))
    except (TypeError, ValueError):
        mix = 1.0

    frame = np.asarray(frame)
    if frame.ndim != 3 or frame.shape[2] not in (3, 4):
        raise InvalidDimensionsError(f"Expected (H, W, 3|4) frame, got shape {frame.shape}")
    if frame.dtype != np.uint8:
        frame = clamp(frame)

    # Validates geometry before any buffer is allocated
    scale = scaling_for_frame(frame, dpi)
    merged = resolve_params(EFFECTS[effect_name]["params"], params)

    # RGBA normalization gate: effects see RGB, alpha is reattached untouched
    alpha = None
    if frame.shape[2] == 4:
        alpha = frame[:, :, 3].copy()
    rgb = np.ascontiguousarray(frame[:, :, :3]).copy()

    sig = inspect.signature(fn)
    if "rng" in sig.parameters:
        merged["rng"] = np.random.RandomState(seed)
    if "scale" in sig.parameters:
        merged["scale"] = scale

    logger.debug("apply %s %dx%d seed=%s params=%s", effect_name, rgb.shape[1], rgb.shape[0],
                 seed, {k: v for k, v in merged.items() if k not in ("rng", "scale")})
    wet = clamp(fn(rgb, **merged))

    if mix < 1.0:
        wet = rgb.copy() if mix <= 0.0 else _blend_mix(rgb, wet, mix)

    if alpha is not None:
        return np.dstack([wet, alpha])
    return wet


def apply_effect(frame, effect_name: str, seed: int = None, dpi: float = DEFAULT_DPI, **params):
    """Apply a named effect to a frame with given params.

    The caller's frame is never modified. Parameters are resolved against the
    effect's schema: missing ones take their default, out-of-range ones are
    clamped, unknown ones are ignored.

    Special params:
        mix (0.0-1.0): Dry/wet blend. 1.0 = fully processed (default).
    """
    return _run(frame, effect_name, params, seed=seed, dpi=dpi)


def apply_chain(frame, effects_list: list[dict], seed: int = None, dpi: float = DEFAULT_DPI):
    """Apply a chain of effects sequentially.

    effects_list: [{"name": "vhs", "params": {"tracking": 60}}, ...]

    With a seed, step i uses seed + i so each stochastic step draws its own
    stream and the whole chain is reproducible.
    """
    validate_chain_depth(effects_list)
    for i, effect in enumerate(effects_list):
        step_seed = None if seed is None else seed + i
        frame = _run(frame, effect["name"], effect.get("params", {}), seed=step_seed, dpi=dpi)
    return frame


def apply(image, effect_name: str, params: dict = None, seed: int = None,
          dpi: float = DEFAULT_DPI) -> bytes:
    """Engine entry point: encoded image in, encoded PNG out.

    Raises:
        ImageDecodeError: The source cannot be decoded.
        InvalidDimensionsError: The source has no pixels.
        SafetyError: The source exceeds the input pixel budget.
        ValueError: Unknown effect name.
    """
    get_effect(effect_name)
    frame = decode(image)
    validate_frame(frame)
    return encode(_run(frame, effect_name, params, seed=seed, dpi=dpi))


def upscale(image, width: int, height: int, method: str = "bicubic") -> bytes:
    """Resample an encoded image to width x height; returns PNG bytes."""
    frame = decode(image)
    validate_frame(frame)
    return encode(upscale_frame(frame, width, height, method))


__all__ = [
    "EFFECTS",
    "CATEGORIES",
    "STOCHASTIC_EFFECTS",
    "apply",
    "apply_chain",
    "apply_effect",
    "get_effect",
    "get_schema",
    "is_upscaling",
    "list_categories",
    "list_effects",
    "search_effects",
    "upscale",
    "upscale_frame",
]
