# wplace_bot/palette_data.py
from __future__ import annotations

"""
The wplace board palette and snapping helpers.

Exports:
  PALETTE: list[tuple[str, str]]   # [(hex, name), ...]
  colour_for_name(name) -> "#rrggbb" | None
  snap_to_palette(rgb, alpha, palette=PALETTE) -> uint8 [H,W,3]
"""

from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from .colour import parse_hex
from .colour_convert import nearest_indices_lab, rgb_to_lab
from .core_types import HexStr, U8Image, U8Mask

PALETTE: List[Tuple[str, str]] = [
    ("#ed1c24", "Red"),
    ("#d18078", "Peach"),
    ("#fa8072", "Light Red"),
    ("#9b5249", "Dark Peach"),
    ("#fab6a4", "Light Peach"),
    ("#e45c1a", "Dark Orange"),
    ("#684634", "Dark Brown"),
    ("#ffc5a5", "Light Beige"),
    ("#d18051", "Dark Beige"),
    ("#ff7f27", "Orange"),
    ("#7b6352", "Dark Tan"),
    ("#f8b277", "Beige"),
    ("#d6b594", "Light Tan"),
    ("#9c846b", "Tan"),
    ("#dba463", "Light Brown"),
    ("#95682a", "Brown"),
    ("#f6aa09", "Gold"),
    ("#9c8431", "Dark Goldenrod"),
    ("#6d643f", "Dark Stone"),
    ("#948c6b", "Stone"),
    ("#cdc59e", "Light Stone"),
    ("#c5ad31", "Goldenrod"),
    ("#f9dd3b", "Yellow"),
    ("#e8d45f", "Light Goldenrod"),
    ("#fffabc", "Light Yellow"),
    ("#4a6b3a", "Dark Olive"),
    ("#87ff5e", "Light Green"),
    ("#5a944a", "Olive"),
    ("#84c573", "Light Olive"),
    ("#13e67b", "Green"),
    ("#0eb968", "Dark Green"),
    ("#13e1be", "Light Teal"),
    ("#0c816e", "Dark Teal"),
    ("#bbfaf2", "Light Cyan"),
    ("#10aea6", "Teal"),
    ("#60f7f2", "Cyan"),
    ("#0f799f", "Dark Cyan"),
    ("#7dc7ff", "Light Blue"),
    ("#4093e4", "Blue"),
    ("#333941", "Dark Slate"),
    ("#28509e", "Dark Blue"),
    ("#6d758d", "Slate"),
    ("#99b1fb", "Light Indigo"),
    ("#b3b9d1", "Light Slate"),
    ("#b5aef1", "Light Slate Blue"),
    ("#7a71c4", "Slate Blue"),
    ("#4a4284", "Dark Slate Blue"),
    ("#6b50f6", "Indigo"),
    ("#4d31b8", "Dark Indigo"),
    ("#e09ff9", "Light Purple"),
    ("#780c99", "Dark Purple"),
    ("#aa38b9", "Purple"),
    ("#cb007a", "Dark Pink"),
    ("#ec1f80", "Pink"),
    ("#f38da9", "Light Pink"),
    ("#600018", "Deep Red"),
    ("#a50e1e", "Dark Red"),
    ("#000000", "Black"),
    ("#3c3c3c", "Dark Gray"),
    ("#787878", "Gray"),
    ("#aaaaaa", "Medium Gray"),
    ("#d2d2d2", "Light Gray"),
    ("#ffffff", "White"),
]

_BY_NAME: Dict[str, HexStr] = {name.lower(): hx for hx, name in PALETTE}


def colour_for_name(name: str) -> Optional[HexStr]:
    """Palette hex for a colour name such as 'Dark Red' (case-insensitive)."""
    return _BY_NAME.get(name.strip().lower())


def palette_rgb(palette: Sequence[Tuple[str, str]] = PALETTE) -> U8Image:
    """(P, 3) uint8 array of the palette colours."""
    rows = [parse_hex(hx) for hx, _ in palette]
    if any(r is None for r in rows):
        raise ValueError("palette contains a malformed hex colour")
    return np.array(rows, dtype=np.uint8).reshape(-1, 3)


def snap_to_palette(
    rgb: U8Image,
    alpha: U8Mask,
    palette: Sequence[Tuple[str, str]] = PALETTE,
) -> U8Image:
    """
    Replace each visible colour with its nearest palette colour in CIE Lab.

    Works on unique colours, so cost scales with colour count, not pixel count.
    Hidden pixels (alpha == 0) are returned unchanged.
    """
    out = rgb.copy()
    visible = alpha > 0
    if not np.any(visible):
        return out
    pal_rgb = palette_rgb(palette)
    uniques, inverse = np.unique(
        rgb[visible].reshape(-1, 3), axis=0, return_inverse=True
    )
    nearest = nearest_indices_lab(rgb_to_lab(uniques), rgb_to_lab(pal_rgb))
    out[visible] = pal_rgb[nearest][inverse.reshape(-1)]
    return out


__all__ = ["PALETTE", "colour_for_name", "palette_rgb", "snap_to_palette"]
