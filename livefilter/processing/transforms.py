"""
Per-kind pixel transforms.

Every transform takes a PixelBuffer and a mapping of effective parameters
and returns a PixelBuffer, which may be the input mutated in place or a new
buffer. Parameters are resolved before any sample is written, so a rejected
parameter never leaves a half-processed buffer behind.

Channel writes follow 8-bit clamped-array semantics: clamp to [0, 255] and
round half to even.
"""

from typing import Any, Callable, Dict, Mapping, Optional
import math

import numpy as np

from ..core import FilterKind, InvalidParameter, PixelBuffer

LUMA_WEIGHTS = (0.299, 0.587, 0.114)

SEPIA_MATRIX = np.array(
    [
        [0.393, 0.769, 0.189],
        [0.349, 0.686, 0.168],
        [0.272, 0.534, 0.131],
    ]
)

SOBEL_X = np.array([[-1, 0, 1], [-2, 0, 2], [-1, 0, 1]])
SOBEL_Y = np.array([[-1, -2, -1], [0, 0, 0], [1, 2, 1]])
EMBOSS_KERNEL = np.array([[-2, -1, 0], [-1, 1, 1], [0, 1, 2]])

VINTAGE_WARMTH = 0.7

Transform = Callable[..., PixelBuffer]


def _number(kind: FilterKind, params: Mapping[str, Any], name: str) -> float:
    """Resolve a numeric parameter or raise InvalidParameter."""
    value = params.get(name)
    if isinstance(value, bool) or value is None:
        raise InvalidParameter(kind, name, value, "expected a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidParameter(kind, name, value, "expected a number") from None
    if not math.isfinite(number):
        raise InvalidParameter(kind, name, value, "must be finite")
    return number


def _store(values: np.ndarray) -> np.ndarray:
    return np.rint(np.clip(values, 0, 255)).astype(np.uint8)


def _rgb(buffer: PixelBuffer) -> np.ndarray:
    return buffer.samples[:, :, :3].astype(np.float64)


def _luma(rgb: np.ndarray) -> np.ndarray:
    r, g, b = LUMA_WEIGHTS
    return r * rgb[:, :, 0] + g * rgb[:, :, 1] + b * rgb[:, :, 2]


def _round_half_up(values: np.ndarray) -> np.ndarray:
    return np.floor(values + 0.5)


def _kernel_sum(channels: np.ndarray, kernel: np.ndarray) -> np.ndarray:
    """Apply a 3x3 kernel to the interior (1-pixel border excluded)."""
    height, width = channels.shape[:2]
    total = np.zeros((height - 2, width - 2) + channels.shape[2:], dtype=np.float64)
    for dy in range(3):
        for dx in range(3):
            weight = kernel[dy, dx]
            if weight:
                total += weight * channels[dy:height - 2 + dy, dx:width - 2 + dx]
    return total


# ============================================================================
# TRANSFORMS
# ============================================================================

def grayscale(buffer: PixelBuffer, params: Mapping[str, Any], rng=None) -> PixelBuffer:
    """Blend each color channel towards rounded luma by `strength`."""
    strength = _number(FilterKind.GRAYSCALE, params, "strength")
    rgb = _rgb(buffer)
    gray = _round_half_up(_luma(rgb))[:, :, np.newaxis]
    buffer.samples[:, :, :3] = _store(rgb + (gray - rgb) * strength)
    return buffer


def sepia(buffer: PixelBuffer, params: Mapping[str, Any], rng=None) -> PixelBuffer:
    """Blend towards the sepia matrix target by `warmth`."""
    warmth = _number(FilterKind.SEPIA, params, "warmth")
    return _sepia(buffer, warmth)


def _sepia(buffer: PixelBuffer, warmth: float) -> PixelBuffer:
    rgb = _rgb(buffer)
    r, g, b = rgb[:, :, 0], rgb[:, :, 1], rgb[:, :, 2]
    # Each row summed left to right, term by term
    target = np.stack([kr * r + kg * g + kb * b for kr, kg, kb in SEPIA_MATRIX], axis=2)
    target = np.minimum(255.0, target)
    buffer.samples[:, :, :3] = _store(rgb + (target - rgb) * warmth)
    return buffer


def blur(buffer: PixelBuffer, params: Mapping[str, Any], rng=None) -> PixelBuffer:
    """
    Box blur over a (2r+1)^2 window, alpha included.

    Only pixels at least `radius` away from every edge are blurred; the
    border band is copied from the input unchanged.
    """
    radius = _number(FilterKind.BLUR, params, "radius")
    if radius < 0:
        raise InvalidParameter(FilterKind.BLUR, "radius", params.get("radius"), "must be >= 0")

    r = int(math.floor(radius))
    size = 2 * r + 1
    height, width = buffer.height, buffer.width
    output = buffer.samples.copy()
    if r == 0 or size > height or size > width:
        return PixelBuffer(width, height, output)

    # Summed-area table, padded with a leading zero row/column
    integral = np.zeros((height + 1, width + 1, 4), dtype=np.int64)
    integral[1:, 1:] = buffer.samples.astype(np.int64).cumsum(axis=0).cumsum(axis=1)
    window = (
        integral[size:, size:]
        - integral[:-size, size:]
        - integral[size:, :-size]
        + integral[:-size, :-size]
    )
    output[r:height - r, r:width - r] = _store(window / (size * size))
    return PixelBuffer(width, height, output)


def brightness(buffer: PixelBuffer, params: Mapping[str, Any], rng=None) -> PixelBuffer:
    level = _number(FilterKind.BRIGHTNESS, params, "level")
    buffer.samples[:, :, :3] = _store(_rgb(buffer) * level)
    return buffer


def contrast(buffer: PixelBuffer, params: Mapping[str, Any], rng=None) -> PixelBuffer:
    level = _number(FilterKind.CONTRAST, params, "level")
    intercept = 128 * (1 - level)
    buffer.samples[:, :, :3] = _store(_rgb(buffer) * level + intercept)
    return buffer


def saturation(buffer: PixelBuffer, params: Mapping[str, Any], rng=None) -> PixelBuffer:
    level = _number(FilterKind.SATURATION, params, "level")
    rgb = _rgb(buffer)
    gray = _luma(rgb)[:, :, np.newaxis]
    buffer.samples[:, :, :3] = _store(gray + (rgb - gray) * level)
    return buffer


def hue_shift(buffer: PixelBuffer, params: Mapping[str, Any], rng=None) -> PixelBuffer:
    """
    Rotate hue in HSL space by `degrees`.

    Achromatic pixels (max == min) are left untouched since their hue is
    undefined.
    """
    degrees = _number(FilterKind.HUE_SHIFT, params, "degrees")
    rgb = buffer.samples[:, :, :3].astype(np.float64) / 255
    r, g, b = rgb[:, :, 0], rgb[:, :, 1], rgb[:, :, 2]

    high = rgb.max(axis=2)
    low = rgb.min(axis=2)
    diff = high - low
    chromatic = diff != 0
    if not chromatic.any():
        return buffer

    safe_diff = np.where(chromatic, diff, 1.0)
    hue = np.where(
        high == r,
        np.fmod((g - b) / safe_diff, 6),
        np.where(high == g, (b - r) / safe_diff + 2, (r - g) / safe_diff + 4),
    )
    hue = np.fmod(hue * 60 + degrees, 360)
    hue = np.where(hue < 0, hue + 360, hue)

    lightness = (high + low) / 2
    span = 1 - np.abs(2 * lightness - 1)
    sat = safe_diff / np.where(span == 0, 1.0, span)
    c = span * sat
    x = c * (1 - np.abs(np.fmod(hue / 60, 2) - 1))
    m = lightness - c / 2
    zero = np.zeros_like(c)

    sectors = [hue < 60, hue < 120, hue < 180, hue < 240, hue < 300]
    nr = np.select(sectors, [c, x, zero, zero, x], default=c)
    ng = np.select(sectors, [x, c, c, x, zero], default=zero)
    nb = np.select(sectors, [zero, zero, x, c, c], default=x)

    shifted = np.stack([nr, ng, nb], axis=2) + m[:, :, np.newaxis]
    shifted = _store(_round_half_up(shifted * 255))
    buffer.samples[:, :, :3] = np.where(chromatic[:, :, np.newaxis], shifted, buffer.samples[:, :, :3])
    return buffer


def edge_detect(buffer: PixelBuffer, params: Mapping[str, Any], rng=None) -> PixelBuffer:
    """
    Sobel edge detection on luma.

    Interior pixels become white or black with the source alpha. The
    1-pixel border is not computed and comes out as (0, 0, 0, 0).
    """
    threshold = _number(FilterKind.EDGE_DETECT, params, "threshold")
    height, width = buffer.height, buffer.width
    output = np.zeros_like(buffer.samples)
    if height < 3 or width < 3:
        return PixelBuffer(width, height, output)

    lum = _luma(_rgb(buffer))
    gx = _kernel_sum(lum, SOBEL_X)
    gy = _kernel_sum(lum, SOBEL_Y)
    magnitude = np.sqrt(gx * gx + gy * gy)
    edge = np.where(magnitude > threshold * 255, 255, 0).astype(np.uint8)

    output[1:-1, 1:-1, 0] = edge
    output[1:-1, 1:-1, 1] = edge
    output[1:-1, 1:-1, 2] = edge
    output[1:-1, 1:-1, 3] = buffer.samples[1:-1, 1:-1, 3]
    return PixelBuffer(width, height, output)


def emboss(buffer: PixelBuffer, params: Mapping[str, Any], rng=None) -> PixelBuffer:
    """Emboss kernel per color channel; alpha and the 1-pixel border are copied through."""
    strength = _number(FilterKind.EMBOSS, params, "strength")
    height, width = buffer.height, buffer.width
    output = buffer.samples.copy()
    if height < 3 or width < 3:
        return PixelBuffer(width, height, output)

    response = _kernel_sum(_rgb(buffer), EMBOSS_KERNEL)
    output[1:-1, 1:-1, :3] = _store(response * strength + 128)
    return PixelBuffer(width, height, output)


def vintage(buffer: PixelBuffer, params: Mapping[str, Any], rng: Optional[np.random.Generator] = None) -> PixelBuffer:
    """
    Sepia at a fixed warmth of 0.7 plus film grain.

    One uniform noise value per pixel in [-grain*255/2, grain*255/2] is added
    to R, G and B. `vignette` is accepted but has no effect. Output varies
    between calls unless a seeded generator is passed.
    """
    grain = _number(FilterKind.VINTAGE, params, "grain")
    if rng is None:
        rng = np.random.default_rng()

    buffer = _sepia(buffer, VINTAGE_WARMTH)
    noise = (rng.random((buffer.height, buffer.width)) - 0.5) * grain * 255
    buffer.samples[:, :, :3] = _store(_rgb(buffer) + noise[:, :, np.newaxis])
    return buffer


def neon_glow(buffer: PixelBuffer, params: Mapping[str, Any], rng=None) -> PixelBuffer:
    """Boost pixels brighter than mid-gray by `glow`. `color` has no effect."""
    glow = _number(FilterKind.NEON_GLOW, params, "glow")
    rgb = _rgb(buffer)
    bright = (rgb.sum(axis=2) / 3) > 128
    boosted = _store(rgb * glow)
    buffer.samples[:, :, :3] = np.where(bright[:, :, np.newaxis], boosted, buffer.samples[:, :, :3])
    return buffer


TRANSFORMS: Dict[FilterKind, Transform] = {
    FilterKind.GRAYSCALE: grayscale,
    FilterKind.SEPIA: sepia,
    FilterKind.BLUR: blur,
    FilterKind.BRIGHTNESS: brightness,
    FilterKind.CONTRAST: contrast,
    FilterKind.SATURATION: saturation,
    FilterKind.HUE_SHIFT: hue_shift,
    FilterKind.EDGE_DETECT: edge_detect,
    FilterKind.EMBOSS: emboss,
    FilterKind.VINTAGE: vintage,
    FilterKind.NEON_GLOW: neon_glow,
}


def apply_transform(
    kind: FilterKind,
    buffer: PixelBuffer,
    params: Mapping[str, Any],
    rng: Optional[np.random.Generator] = None,
) -> PixelBuffer:
    """Dispatch to the transform registered for `kind`."""
    return TRANSFORMS[kind](buffer, params, rng=rng)
