# wplace_bot/resolve.py
from __future__ import annotations

"""
Lock-aware colour resolution.

resolve(target, palette, mode) decides what to do for one task:

  empty palette                 -> DeferToManual("empty_palette")
  no candidate at all           -> DeferToManual("no_match", downgrade=False)
  closest swatch unlocked       -> Selected(closest)
  closest swatch locked, mode:
    skip                        -> Skip()
    manual                      -> DeferToManual("locked_manual")
    map                         -> Selected(nearest unlocked)
                                   or DeferToManual("no_unlocked")

The function is pure: selecting the swatch and switching the session to
manual mode are the caller's job.
"""

from typing import Dict

from .constants import LOCKED_MODES
from .core_types import Action, DeferToManual, HexStr, Selected, Skip
from .palette import Palette

EMPTY_PALETTE = "empty_palette"
NO_MATCH = "no_match"
LOCKED_MANUAL = "locked_manual"
NO_UNLOCKED = "no_unlocked"

# One advisory per reason, shown the first time the engine downgrades.
ADVISORIES: Dict[str, str] = {
    EMPTY_PALETTE: (
        "No palette detected, switching to MANUAL colour mode. Pick a colour in "
        "the UI, rescan the palette and turn manual mode off to re-enable auto."
    ),
    LOCKED_MANUAL: "Locked colour, switching to MANUAL mode (pick a colour yourself).",
    NO_UNLOCKED: "No unlocked replacement colour, switching to MANUAL mode.",
    "locked": "Some colours are locked, skipping those pixels.",
}


def check_locked_mode(mode: str) -> str:
    if mode not in LOCKED_MODES:
        raise ValueError(f"locked colour mode must be one of: {' | '.join(LOCKED_MODES)}")
    return mode


def resolve(target: HexStr, palette: Palette, mode: str = "map") -> Action:
    """Pick a swatch for target, skip the task, or hand over to manual colour."""
    if palette.is_empty():
        return DeferToManual(EMPTY_PALETTE)

    closest = palette.nearest(target, restrict_to_unlocked=False)
    if closest is None:
        return DeferToManual(NO_MATCH, downgrade=False)
    if not closest.locked:
        return Selected(closest)

    if mode == "skip":
        return Skip("locked")
    if mode == "manual":
        return DeferToManual(LOCKED_MANUAL)

    alternative = palette.nearest(target, restrict_to_unlocked=True)
    if alternative is not None:
        return Selected(alternative)
    return DeferToManual(NO_UNLOCKED)


__all__ = [
    "EMPTY_PALETTE",
    "NO_MATCH",
    "LOCKED_MANUAL",
    "NO_UNLOCKED",
    "ADVISORIES",
    "check_locked_mode",
    "resolve",
]
