"""
PhotoFX -- Effect Parameter Schema

Pydantic models describing every tunable effect input: its kind, range,
default and (for selects) its options. The UI renders controls from these;
the engine uses them to resolve raw caller values before an effect runs.

Resolution never fails. Missing values take the default, out-of-range
numbers are clamped, unknown select values snap to the nearest option and
malformed colors fall back to the default color.
"""

from __future__ import annotations

import logging
import math
import re
from enum import Enum

from pydantic import BaseModel, Field, model_validator

logger = logging.getLogger(__name__)

_HEX_RE = re.compile(r"^#?([0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


class ParamKind(str, Enum):
    """Control type for an effect parameter."""
    NUMBER = "number"  # Continuous slider between min and max
    SELECT = "select"  # Enumerated integer options
    COLOR = "color"    # Hex RGB triplet


class SelectOption(BaseModel):
    value: int
    label: str


def parse_color(value) -> tuple[int, int, int]:
    """Parse '#rgb', '#rrggbb', 'rrggbb' or an (r, g, b) sequence.

    Raises:
        ValueError: If the value is not a recognizable color.
    """
    if isinstance(value, (tuple, list)):
        if len(value) < 3:
            raise ValueError(f"Color needs 3 components, got {len(value)}")
        return tuple(max(0, min(255, int(round(float(c))))) for c in value[:3])
    if isinstance(value, str):
        m = _HEX_RE.match(value.strip())
        if not m:
            raise ValueError(f"Not a hex color: {value!r}")
        digits = m.group(1)
        if len(digits) == 3:
            digits = "".join(d * 2 for d in digits)
        return tuple(int(digits[i:i + 2], 16) for i in (0, 2, 4))
    raise ValueError(f"Unsupported color value: {value!r}")


def rgb_to_hex(rgb) -> str:
    r, g, b = parse_color(rgb)
    return f"#{r:02x}{g:02x}{b:02x}"


def _to_number(value) -> float | None:
    """Best-effort numeric conversion. None for anything unusable."""
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        f = float(value)
    elif isinstance(value, str):
        try:
            f = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(f):
        return None
    return f


class EffectParam(BaseModel):
    """One declared effect input.

    For NUMBER params, min/max bound the value. For SELECT params the option
    values are authoritative and min/max mirror their extent. COLOR params
    ignore min/max.
    """
    label: str
    kind: ParamKind = ParamKind.NUMBER
    default: float | int | str
    min: float = 0
    max: float = 100
    options: list[SelectOption] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_default(self):
        if self.kind == ParamKind.COLOR:
            parse_color(self.default)
            return self
        if self.kind == ParamKind.SELECT:
            if not self.options:
                raise ValueError(f"Select param '{self.label}' has no options")
            values = [o.value for o in self.options]
            if self.default not in values:
                raise ValueError(f"Default {self.default} is not an option of '{self.label}'")
            self.min = float(min(values))
            self.max = float(max(values))
            return self
        if self.min > self.max:
            raise ValueError(f"Param '{self.label}' has min > max ({self.min} > {self.max})")
        if not (self.min <= float(self.default) <= self.max):
            raise ValueError(
                f"Default {self.default} of '{self.label}' outside [{self.min}, {self.max}]"
            )
        return self

    def coerce(self, value):
        """Return the nearest valid value for this parameter."""
        if value is None:
            return self.resolved_default()

        if self.kind == ParamKind.COLOR:
            try:
                return parse_color(value)
            except (TypeError, ValueError):
                return self.resolved_default()

        if self.kind == ParamKind.SELECT:
            if isinstance(value, str):
                wanted = value.strip().lower()
                for opt in self.options:
                    if opt.label.lower() == wanted:
                        return opt.value
            f = _to_number(value)
            if f is None:
                return self.resolved_default()
            # Nearest option; ties go to the earlier option
            best = min(self.options, key=lambda o: abs(o.value - f))
            return best.value

        f = _to_number(value)
        if f is None:
            return self.resolved_default()
        return max(self.min, min(self.max, f))

    def resolved_default(self):
        if self.kind == ParamKind.COLOR:
            return parse_color(self.default)
        if self.kind == ParamKind.SELECT:
            return int(self.default)
        return float(self.default)


# --- Constructors used by the effect registry ---

def number(label: str, default: float, min: float = 0, max: float = 100) -> EffectParam:
    return EffectParam(label=label, default=default, min=min, max=max)


def select(label: str, options: list[str], default: int = 0) -> EffectParam:
    """Select whose option values are 0..n-1 in the order given."""
    return EffectParam(
        label=label,
        kind=ParamKind.SELECT,
        default=default,
        options=[SelectOption(value=i, label=name) for i, name in enumerate(options)],
    )


def color(label: str, default: str) -> EffectParam:
    return EffectParam(label=label, kind=ParamKind.COLOR, default=default)


def resolve_params(schema: dict[str, EffectParam], raw: dict | None) -> dict:
    """Resolve caller values against a parameter schema.

    Every declared parameter appears in the result exactly once. Unknown
    keys are dropped.
    """
    raw = dict(raw or {})
    resolved = {}
    for name, param in schema.items():
        value = raw.pop(name, None)
        result = param.coerce(value)
        if value is not None and result != value:
            logger.debug("param %s: %r corrected to %r", name, value, result)
        resolved[name] = result
    if raw:
        logger.debug("ignoring undeclared params: %s", ", ".join(sorted(raw)))
    return resolved


def defaults(schema: dict[str, EffectParam]) -> dict:
    return {name: p.resolved_default() for name, p in schema.items()}


def schema_to_dict(schema: dict[str, EffectParam]) -> dict:
    """JSON-ready description of a parameter schema."""
    return {name: p.model_dump(mode="json") for name, p in schema.items()}
