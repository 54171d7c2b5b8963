"""Deterministic type → color mapping used for handles and edge strokes."""

from __future__ import annotations

import math
from typing import Mapping

__all__ = ["DEFAULT_PALETTE", "RGB", "UNRESOLVED_COLOR", "rgb_to_css", "type_to_color"]

RGB = tuple[int, int, int]

DEFAULT_PALETTE: dict[str, RGB] = {
    "*": (255, 255, 255),
    "ref": (255, 165, 0),
    "str": (0, 255, 0),
    "int": (0, 0, 255),
    "float": (0, 255, 255),
    "bool": (255, 0, 255),
    "ref<str>": (128, 255, 128),
    "ref<int>": (128, 128, 255),
    "ref<float>": (128, 255, 255),
    "ref<bool>": (255, 128, 255),
}

UNRESOLVED_COLOR: RGB = (128, 128, 128)

_MASK32 = 0xFFFFFFFF


def _fnv1a_hash(text: str) -> int:
    # FNV-1a with the multiply expanded into shifts, truncated to 32 bits.
    value = 0x811C9DC5
    for ch in text:
        value ^= ord(ch)
        value = (
            value + (value << 1) + (value << 4) + (value << 7) + (value << 8) + (value << 24)
        ) & _MASK32
    return value


def _to_int32(value: int) -> int:
    return value - (1 << 32) if value & 0x80000000 else value


def type_to_color(type_str: str, palette: Mapping[str, RGB] | None = None) -> RGB:
    """Return the RGB color for a canonical type string.

    Known types come from ``palette`` (``DEFAULT_PALETTE`` when omitted); other
    strings are hashed onto a saturated HSV color so that the same type always
    gets the same color.
    """

    colors = DEFAULT_PALETTE if palette is None else palette
    if type_str in colors:
        r, g, b = colors[type_str]
        return (int(r), int(g), int(b))

    digest = _fnv1a_hash(type_str)
    # The shifts operate on the signed 32-bit view of the hash.
    signed = _to_int32(digest)
    hue = abs(digest) % 360
    saturation = 70 + abs(signed >> 16) % 31
    brightness = 70 + abs(signed >> 24) % 31

    chroma = (brightness / 100) * (saturation / 100)
    x = chroma * (1 - abs(((hue / 60) % 2) - 1))
    m = brightness / 100 - chroma

    if hue < 60:
        r, g, b = chroma, x, 0.0
    elif hue < 120:
        r, g, b = x, chroma, 0.0
    elif hue < 180:
        r, g, b = 0.0, chroma, x
    elif hue < 240:
        r, g, b = 0.0, x, chroma
    elif hue < 300:
        r, g, b = x, 0.0, chroma
    else:
        r, g, b = chroma, 0.0, x

    return (_channel(r + m), _channel(g + m), _channel(b + m))


def _channel(value: float) -> int:
    # Halves round up, not to even.
    return min(255, max(0, math.floor(value * 255 + 0.5)))


def rgb_to_css(rgb: RGB) -> str:
    return f"rgb({rgb[0]}, {rgb[1]}, {rgb[2]})"
