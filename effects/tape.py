"""
PhotoFX -- Tape & Digital Corruption
VHS tape degradation and digital glitch artifacts.

Artifacts are placed with Bernoulli trials per scanline or per pixel, their
probabilities scaled by image size so a thumbnail and a full-size photo show
the same density of damage. Line-level stages read a snapshot of the
previous stage and write into a fresh buffer.
"""

import numpy as np

from core.pixels import snapshot
from core.scaling import scaled_pixels, scaled_probability, scaling_for_frame
from effects.color import (
    darken_rows,
    horizontal_smear,
    scanline_rows,
    sprinkle_grain,
    to_float,
    to_uint8,
)

NOISE_TYPES = ("Mixed", "Luminance", "Chrominance", "High Frequency")


def _shift_columns(channel: np.ndarray, dx: int) -> np.ndarray:
    """Shift a 2-D channel right by dx (left if negative), replicating the edge."""
    if dx == 0:
        return channel.copy()
    out = np.empty_like(channel)
    if dx > 0:
        out[:, dx:] = channel[:, :-dx]
        out[:, :dx] = channel[:, :1]
    else:
        out[:, :dx] = channel[:, -dx:]
        out[:, dx:] = channel[:, -1:]
    return out


def _tracking_bands(f, rng, scale, tracking):
    """Horizontal band shifts where the heads lose the track."""
    h = f.shape[0]
    p = scaled_probability(tracking, scale.size_scale, rate=0.02)
    starts = np.flatnonzero(rng.random(h) < p)
    if starts.size == 0:
        return f
    src = snapshot(f)
    out = f.copy()
    max_band = scaled_pixels(8, scale.linear_scale)
    max_shift = scaled_pixels(tracking * 0.3, scale.linear_scale)
    for y in starts:
        band = rng.randint(1, max_band + 1)
        shift = rng.randint(-max_shift, max_shift + 1)
        out[y:y + band] = np.roll(src[y:y + band], shift, axis=1)
    return out


def _sync_loss(f, rng, scale, sync_loss):
    """Rows wrap sideways after a sync pulse is missed, settling over the following rows."""
    h, w = f.shape[:2]
    p = scaled_probability(sync_loss, scale.size_scale, rate=0.005)
    kicks = rng.random(h) < p
    if not kicks.any():
        return f
    src = snapshot(f)
    out = f.copy()
    offset = 0.0
    # Sequential: each row inherits the decayed offset of the row above
    for y in range(h):
        if kicks[y]:
            sign = 1.0 if rng.random() < 0.5 else -1.0
            offset += sign * rng.uniform(0.05, 0.25) * w
        if abs(offset) >= 1.0:
            out[y] = np.roll(src[y], int(offset), axis=0)
            offset *= 0.85
        else:
            offset = 0.0
    return out


def _chromatic(f, scale, chromatic):
    """Red drifts right, blue drifts left."""
    dx = scaled_pixels(chromatic / 10.0, scale.linear_scale, minimum=0)
    if dx == 0:
        return f
    src = snapshot(f)
    out = f.copy()
    out[:, :, 0] = _shift_columns(src[:, :, 0], dx)
    out[:, :, 2] = _shift_columns(src[:, :, 2], -dx)
    return out


def _dropouts(f, rng, scale, dropout):
    """Bright streaks where oxide is missing from the tape."""
    h, w = f.shape[:2]
    p = scaled_probability(dropout, scale.size_scale, rate=0.01)
    rows = np.flatnonzero(rng.random(h) < p)
    if rows.size == 0:
        return f
    out = f.copy()
    max_h = scaled_pixels(2, scale.linear_scale)
    for y in rows:
        length = scaled_pixels(rng.randint(20, 201), scale.linear_scale)
        x0 = rng.randint(0, w)
        y1 = min(h, y + rng.randint(1, max_h + 1))
        x1 = min(w, x0 + length)
        streak = rng.uniform(180.0, 255.0, size=(y1 - y, x1 - x0, 1)).astype(np.float32)
        out[y:y1, x0:x1] = streak
    return out


def _tape_noise(f, rng, scale, amount, noise_type):
    p = scaled_probability(amount, scale.combined_scale)
    if p <= 0:
        return f
    noise_type = int(noise_type)
    if noise_type == 1:
        return sprinkle_grain(f, rng, p, 50.0)
    if noise_type == 2:
        return sprinkle_grain(f, rng, p, 50.0, per_channel=True)
    if noise_type == 3:
        # Alternating-sign speckle: energy only at the highest spatial frequency
        h, w = f.shape[:2]
        hit = rng.random((h, w)) < p
        mag = rng.random((h, w)) * 30.0
        sign = np.where((np.arange(h)[:, np.newaxis] + np.arange(w)[np.newaxis, :]) % 2 == 0, 1.0, -1.0)
        return np.clip(f + (mag * sign * hit)[:, :, np.newaxis], 0, 255)
    f = sprinkle_grain(f, rng, p, 50.0)
    return sprinkle_grain(f, rng, p, 20.0, per_channel=True)


def vhs(frame: np.ndarray, tracking: float = 30, chromatic: float = 25,
        dropout: float = 20, sync_loss: float = 15, tape_noise: float = 25,
        color_bleed: float = 30, scanlines: float = 40, noise_type: int = 0,
        rng: np.random.RandomState = None, scale=None) -> np.ndarray:
    """Simulate worn VHS playback.

    Args:
        frame: (H, W, 3) uint8 RGB array.
        tracking: 0-100 tracking error bands (shifted horizontal strips).
        chromatic: 0-100 red/blue channel separation.
        dropout: 0-100 rate of bright dropout streaks.
        sync_loss: 0-100 rate of horizontal sync loss (rows wrap and settle).
        tape_noise: 0-100 share of pixels receiving noise.
        color_bleed: 0-100 horizontal smear of the chroma channels.
        scanlines: 0-100 chance of each alternate row being darkened.
        noise_type: 0 mixed, 1 luminance, 2 chrominance, 3 high frequency.
        rng: Random source. A fresh one is created when omitted.
        scale: ScalingFactors for this frame.

    Returns:
        VHS-degraded frame.
    """
    scale = scale or scaling_for_frame(frame)
    rng = rng if rng is not None else np.random.RandomState()
    f = to_float(frame)
    h = f.shape[0]

    if tracking > 0:
        f = _tracking_bands(f, rng, scale, tracking)
    if sync_loss > 0:
        f = _sync_loss(f, rng, scale, sync_loss)
    if chromatic > 0:
        f = _chromatic(f, scale, chromatic)
    if color_bleed > 0:
        f = horizontal_smear(f, scaled_pixels(color_bleed / 10.0, scale.linear_scale, minimum=0))
    if dropout > 0:
        f = _dropouts(f, rng, scale, dropout)
    if scanlines > 0:
        spacing = scaled_pixels(2, scale.linear_scale, minimum=2)
        p = scaled_probability(scanlines, scale.size_scale)
        f = darken_rows(f, scanline_rows(h, spacing, rng, p), (0.8, 0.8, 0.8))
    if tape_noise > 0:
        f = _tape_noise(f, rng, scale, tape_noise, noise_type)
    return to_uint8(f)


def _line_segments(f, rng, scale, frequency, intensity, rgb_shift):
    """Short runs of a row copied from a horizontally offset position."""
    h, w = f.shape[:2]
    p = scaled_probability(frequency, scale.combined_scale, rate=0.01)
    count = rng.binomial(h * w, p) if p > 0 else 0
    if count == 0:
        return f
    src = snapshot(f)
    out = f.copy()
    max_shift = scaled_pixels(rgb_shift, scale.linear_scale)
    max_len = int(intensity) + 2
    ys = rng.randint(0, h, size=count)
    xs = rng.randint(0, w, size=count)
    for y, x in zip(ys, xs):
        length = scaled_pixels(rng.randint(1, max_len), scale.linear_scale)
        off = rng.randint(-max_shift, max_shift + 1)
        x1 = min(w, x + length)
        sx0, sx1 = x + off, x1 + off
        if sx0 < 0 or sx1 > w or x1 <= x:
            continue
        out[y, x:x1] = src[y, sx0:sx1]
    return out


def _channel_split(f, rng, scale, intensity, rgb_shift):
    """Individual pixels pull each channel from a different neighbour."""
    h, w = f.shape[:2]
    p = scaled_probability(intensity, scale.combined_scale, rate=0.01)
    hit = rng.random((h, w)) < p
    if not hit.any():
        return f
    src = snapshot(f)
    out = f.copy()
    ys, xs = np.nonzero(hit)
    span = scaled_pixels(rgb_shift, scale.linear_scale)
    for c in range(3):
        shift = rng.randint(0, span + 1, size=ys.size) - span // 2
        sx = np.clip(xs + shift, 0, w - 1)
        out[ys, xs, c] = src[ys, sx, c]
    return out


def _corrupt_blocks(f, rng, scale, amount):
    """Macroblock damage: shift, invert, channel swap or smeared repeat."""
    h, w = f.shape[:2]
    cell = scaled_pixels(32, scale.linear_scale)
    gh, gw = -(-h // cell), -(-w // cell)
    hits = np.argwhere(rng.random((gh, gw)) < amount / 100.0 * 0.05)
    if hits.size == 0:
        return f
    src = snapshot(f)
    out = f.copy()
    for gy, gx in hits:
        y0, x0 = gy * cell, gx * cell
        y1 = min(h, y0 + cell)
        x1 = min(w, x0 + cell * rng.randint(1, 4))
        block = src[y0:y1, x0:x1]
        mode = rng.randint(0, 4)
        if mode == 0:
            out[y0:y1, x0:x1] = np.roll(block, rng.randint(1, cell + 1), axis=1)
        elif mode == 1:
            out[y0:y1, x0:x1] = 255.0 - block
        elif mode == 2:
            out[y0:y1, x0:x1] = block[:, :, rng.permutation(3)]
        else:
            out[y0:y1, x0:x1] = block[:1]
    return out


def glitch(frame: np.ndarray, intensity: float = 50, frequency: float = 30,
           rgb_shift: float = 15, block_corruption: float = 40,
           digital_noise: float = 20, rng: np.random.RandomState = None,
           scale=None) -> np.ndarray:
    """Digital corruption: displaced line segments, split channels, broken blocks, salt.

    Args:
        frame: (H, W, 3) uint8 RGB array.
        intensity: 0-100 segment length and channel-split rate.
        frequency: 0-100 rate of displaced line segments.
        rgb_shift: 0-100 maximum displacement in reference pixels.
        block_corruption: 0-100 share of macroblocks damaged.
        digital_noise: 0-100 rate of saturated salt pixels.

    Returns:
        Glitched frame.
    """
    scale = scale or scaling_for_frame(frame)
    rng = rng if rng is not None else np.random.RandomState()
    f = to_float(frame)
    h, w = f.shape[:2]

    if frequency > 0:
        f = _line_segments(f, rng, scale, frequency, intensity, rgb_shift)
    if intensity > 0 and rgb_shift > 0:
        f = _channel_split(f, rng, scale, intensity, rgb_shift)
    if block_corruption > 0:
        f = _corrupt_blocks(f, rng, scale, block_corruption)
    if digital_noise > 0:
        p = scaled_probability(digital_noise, scale.combined_scale, rate=0.05)
        hit = rng.random((h, w)) < p
        n = int(hit.sum())
        if n:
            f[hit] = rng.randint(0, 2, size=(n, 3)).astype(np.float32) * 255.0
    return to_uint8(f)
