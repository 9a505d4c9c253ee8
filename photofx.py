#!/usr/bin/env python3
"""
PhotoFX -- Photo Effects Engine
CLI entry point. Also importable as a library.

Usage:
    python photofx.py list-effects
    python photofx.py describe vhs
    python photofx.py search grain
    python photofx.py apply photo.jpg out.png --effect vhs --params tracking=60 noise_type=Luminance --seed 7
    python photofx.py upscale photo.jpg big.png --width 3840 --height 2160 --method ai
    python photofx.py scaling photo.jpg --dpi 300
"""

import sys
import os
import json
import logging
import argparse

# Add project root to path so imports work
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from core.logconf import setup_logging
from core.pixels import ImageDecodeError, InvalidDimensionsError, load_image, save_image
from core.safety import SafetyError, preflight, validate_frame
from core.scaling import DEFAULT_DPI, scaling_for_frame
from effects import (
    CATEGORIES,
    EFFECTS,
    apply_effect,
    get_schema,
    is_upscaling,
    list_categories,
    list_effects,
    search_effects,
    upscale_frame,
)

__version__ = "0.1.0"

logger = logging.getLogger("photofx")


def _parse_param_value(val: str):
    """Safely parse a CLI parameter value (number, or string for colors and option labels)."""
    if val.lower().strip() in ('nan', 'inf', '-inf', '+inf', 'infinity', '-infinity'):
        raise ValueError(f"NaN/Inf not allowed: {val}")

    if val.startswith('#'):
        return val

    try:
        return int(val)
    except ValueError:
        pass
    try:
        return float(val)
    except ValueError:
        return val  # Keep as string


def _parse_params(pairs) -> dict:
    params = {}
    for p in pairs or []:
        if "=" not in p:
            raise ValueError(f"Expected key=value, got: {p}")
        key, val = p.split("=", 1)
        params[key.strip()] = _parse_param_value(val.strip())
    return params


def _suggest(name: str) -> str:
    matches = [n for n in EFFECTS if name in n]
    if matches:
        return f"Unknown effect: {name}. Did you mean: {', '.join(matches)}?"
    return f"Unknown effect: {name}. Use 'photofx list-effects' to see all."


def _format_param(name: str, p: dict) -> str:
    if p["kind"] == "select":
        opts = "/".join(o["label"] for o in p["options"])
        return f"{name}={p['default']} [{opts}]"
    if p["kind"] == "color":
        return f"{name}={p['default']}"
    return f"{name}={p['default']:g} ({p['min']:g}-{p['max']:g})"


def _load(path: str):
    preflight(path)
    frame = load_image(path)
    validate_frame(frame)
    return frame


def cmd_list_effects(args):
    """List all available effects, grouped by category."""
    total = 0
    for cat_key, cat_label in CATEGORIES.items():
        if args.category and cat_key != args.category:
            continue
        effects = list_effects(category=cat_key)
        total += len(effects)
        print(f"\n  {cat_label} ({len(effects)})")
        print(f"  {'-' * 50}")
        for e in effects:
            print(f"    {e['name']:12s} {e['label']:18s} {e['description']}")
            if not args.compact:
                params_str = ", ".join(_format_param(k, p) for k, p in e["params"].items())
                print(f"    {'':12s} Params: {params_str}")
    print(f"\n  Total: {total} effects")
    print(f"  Use 'photofx describe <effect>' for details.\n")
    return 0


def cmd_describe(args):
    """Show the parameter schema of a single effect."""
    if args.effect_name not in EFFECTS:
        print(_suggest(args.effect_name), file=sys.stderr)
        return 1
    schema = get_schema(args.effect_name)
    if args.json:
        print(json.dumps(schema, indent=2))
        return 0

    print(f"\n  {schema['label']} ({schema['name']})")
    print(f"  {'-' * 40}")
    print(f"  Category:    {CATEGORIES.get(schema['category'], schema['category'])}")
    print(f"  Description: {schema['description']}")
    print(f"\n  Parameters:")
    for k, p in schema["params"].items():
        print(f"    {p['label']:22s} {_format_param(k, p)}")
    print(f"\n  All effects support 'mix' (0.0-1.0) for dry/wet blend.\n")
    return 0


def cmd_search(args):
    """Search effects by name, label or description."""
    results = search_effects(args.query)
    if not results:
        print(f"No effects matching '{args.query}'.")
        return 0
    print(f"\n  Results for '{args.query}' ({len(results)} found):")
    for e in results:
        print(f"    {e['name']:12s} [{e['category']:9s}] {e['description']}")
    print()
    return 0


def cmd_apply(args):
    """Apply one effect to an image file."""
    if args.effect not in EFFECTS:
        print(_suggest(args.effect), file=sys.stderr)
        return 1
    params = _parse_params(args.params)
    if args.mix is not None:
        params["mix"] = args.mix

    frame = _load(args.input)
    out = apply_effect(frame, args.effect, seed=args.seed, dpi=args.dpi, **params)
    path = save_image(out, args.output)
    print(f"Applied {args.effect} -> {path}")
    return 0


def cmd_upscale(args):
    """Resample an image file to a new size."""
    frame = _load(args.input)
    h, w = frame.shape[:2]
    if not is_upscaling(w, h, args.width, args.height):
        logger.info("target %dx%d is not larger than %dx%d", args.width, args.height, w, h)
    out = upscale_frame(frame, args.width, args.height, args.method)
    path = save_image(out, args.output)
    print(f"Resized {w}x{h} -> {args.width}x{args.height} ({args.method}) -> {path}")
    return 0


def cmd_scaling(args):
    """Print the resolution scaling factors effects will use for an image."""
    frame = _load(args.input)
    h, w = frame.shape[:2]
    s = scaling_for_frame(frame, args.dpi)
    print(f"\n  {w}x{h} @ {args.dpi:g} DPI")
    for field in ("size_scale", "dpi_scale", "combined_scale", "linear_scale", "min_scale"):
        print(f"    {field:15s} {getattr(s, field):.4f}")
    print()
    return 0


def build_parser():
    parser = argparse.ArgumentParser(
        prog="photofx",
        description="PhotoFX -- resolution-aware photo effects",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--log-file", help="Also write a rotating debug log here")
    sub = parser.add_subparsers(dest="command")

    # list-effects
    p = sub.add_parser("list-effects", help="List all available effects")
    p.add_argument("--category", choices=list_categories(), help="Filter by category")
    p.add_argument("--compact", action="store_true", help="Compact view (names only)")

    # describe
    p = sub.add_parser("describe", help="Show an effect's parameters")
    p.add_argument("effect_name", help="Effect name")
    p.add_argument("--json", action="store_true", help="Print the schema as JSON")

    # search
    p = sub.add_parser("search", help="Search effects by name or description")
    p.add_argument("query", help="Search term")

    # apply
    p = sub.add_parser("apply", help="Apply an effect to an image")
    p.add_argument("input", help="Source image")
    p.add_argument("output", help="Destination image (format from extension)")
    p.add_argument("--effect", required=True, help="Effect name")
    p.add_argument("--params", nargs="*", help="Effect params as key=value pairs")
    p.add_argument("--seed", type=int, help="Seed for stochastic effects")
    p.add_argument("--dpi", type=float, default=DEFAULT_DPI, help="Nominal pixel density")
    p.add_argument("--mix", type=float, help="Dry/wet blend 0.0-1.0")

    # upscale
    p = sub.add_parser("upscale", help="Resize an image")
    p.add_argument("input", help="Source image")
    p.add_argument("output", help="Destination image")
    p.add_argument("--width", type=int, required=True)
    p.add_argument("--height", type=int, required=True)
    p.add_argument("--method", default="bicubic",
                   help="nearest, bilinear, bicubic, lanczos or ai")

    # scaling
    p = sub.add_parser("scaling", help="Show scaling factors for an image")
    p.add_argument("input", help="Source image")
    p.add_argument("--dpi", type=float, default=DEFAULT_DPI, help="Nominal pixel density")

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.WARNING, args.log_file)

    commands = {
        "list-effects": cmd_list_effects,
        "describe": cmd_describe,
        "search": cmd_search,
        "apply": cmd_apply,
        "upscale": cmd_upscale,
        "scaling": cmd_scaling,
    }

    if args.command not in commands:
        parser.print_help()
        return 0
    try:
        return commands[args.command](args)
    except (SafetyError, ImageDecodeError, InvalidDimensionsError,
            FileNotFoundError, ValueError) as e:
        logger.debug("command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
