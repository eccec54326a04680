# wplace_bot/colour.py
from __future__ import annotations

"""
Colour helpers on plain RGB triples.

Exports:
  to_hex(rgb)              -> "#rrggbb"   (bad channels become 0)
  parse_hex(value)         -> RGBTuple | None
  parse_css_rgb(value)     -> RGBTuple | None   ("rgb(r, g, b)")
  normalise_colour(value)  -> "#rrggbb" or ValueError
  rgb_distance(a, b)       -> float   (plain Euclidean, ranking only)
"""

import math
import re
from typing import Any, Optional, Sequence

from .core_types import HexStr, RGBTuple

_HEX6 = re.compile(r"^#?([0-9a-fA-F]{2})([0-9a-fA-F]{2})([0-9a-fA-F]{2})$")
_CSS_RGB = re.compile(r"^rgba?\s*\(", re.IGNORECASE)
_INTS = re.compile(r"\d+")


def _channel(value: Any) -> int:
    """0..255 int, or 0 for anything missing, non-numeric or out of range."""
    if isinstance(value, bool):
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(number) or number < 0 or number > 255:
        return 0
    return int(number)


def to_hex(rgb: Sequence[Any]) -> HexStr:
    """Pack up to three channels into '#rrggbb'."""
    channels = list(rgb)[:3] if rgb is not None else []
    channels += [0] * (3 - len(channels))
    r, g, b = (_channel(c) for c in channels)
    return f"#{r:02x}{g:02x}{b:02x}"


def parse_hex(value: Any) -> Optional[RGBTuple]:
    """'#rrggbb' or 'rrggbb' (any case) -> (r, g, b); None when malformed."""
    if not isinstance(value, str):
        return None
    m = _HEX6.match(value.strip())
    if m is None:
        return None
    return (int(m.group(1), 16), int(m.group(2), 16), int(m.group(3), 16))


def parse_css_rgb(value: Any) -> Optional[RGBTuple]:
    """'rgb(r, g, b)' / 'rgba(r, g, b, a)' -> (r, g, b); None when malformed."""
    if not isinstance(value, str) or not _CSS_RGB.match(value.strip()):
        return None
    numbers = _INTS.findall(value)
    if len(numbers) < 3:
        return None
    r, g, b = (int(n) for n in numbers[:3])
    if max(r, g, b) > 255:
        return None
    return (r, g, b)


def normalise_colour(value: Any) -> HexStr:
    """
    Canonicalise a colour to lowercase '#rrggbb'.

    Accepts '#rrggbb', 'rgb(r, g, b)', or a 3-sequence of 0..255 ints.
    Raises ValueError for anything else.
    """
    if isinstance(value, str):
        text = value.strip()
        if text.startswith("#"):
            rgb = parse_hex(text)
        else:
            rgb = parse_css_rgb(text)
        if rgb is None:
            raise ValueError(f"colour must be #RRGGBB or rgb(r,g,b), got {value!r}")
        return to_hex(rgb)
    if isinstance(value, (tuple, list)) and len(value) == 3:
        if all(
            isinstance(c, int) and not isinstance(c, bool) and 0 <= c <= 255
            for c in value
        ):
            return to_hex(value)
    raise ValueError(f"unsupported colour value {value!r}")


def rgb_distance(a: RGBTuple, b: RGBTuple) -> float:
    """Euclidean distance in RGB space. No perceptual weighting."""
    return math.hypot(a[0] - b[0], a[1] - b[1], a[2] - b[2])


__all__ = [
    "to_hex",
    "parse_hex",
    "parse_css_rgb",
    "normalise_colour",
    "rgb_distance",
]
