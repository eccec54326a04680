# wplace_bot/collaborators.py
from __future__ import annotations

"""
Desktop collaborators for the drawing engine.

  ScreenSurface       : places cells by clicking at origin + (x, y)
  JsonPaletteSource   : swatch layout file, re-read on every scan
  pyautogui_clicker() : real mouse clicks (optional 'desktop' extra)
  RecordingClicker    : logs and records clicks instead of clicking (dry run)

Swatch layout file:
  {"swatches": [
      {"color": "#ed1c24", "x": 40, "y": 900},
      {"name": "Dark Red", "x": 64, "y": 900, "locked": true}
  ]}
"""

import json
from pathlib import Path
from typing import Any, Callable, List, Optional, Tuple, Union

from .colour import normalise_colour
from .core_types import PaletteEntry
from .errors import PaletteScanError, SurfaceNotFoundError
from .palette_data import colour_for_name
from .utils import log

Clicker = Callable[[int, int], None]


def pyautogui_clicker() -> Clicker:
    """Clicker backed by pyautogui. Moving the mouse to a corner aborts a run."""
    try:
        import pyautogui  # needs a display; imported on demand
    except Exception as exc:
        raise SurfaceNotFoundError(
            f"pyautogui is not usable here ({exc}); install the 'desktop' extra "
            "and run with a display, or use --dry-run"
        ) from exc
    pyautogui.FAILSAFE = True

    def click(x: int, y: int) -> None:
        pyautogui.click(x, y)

    return click


class RecordingClicker:
    """Collects clicks; prints them when verbose."""

    def __init__(self, verbose: bool = False) -> None:
        self.clicks: List[Tuple[int, int]] = []
        self.verbose = verbose

    def __call__(self, x: int, y: int) -> None:
        self.clicks.append((int(x), int(y)))
        if self.verbose:
            log(f"[dry-run] click {x},{y}")


class ScreenSurface:
    """Drawable surface whose origin is a fixed screen position."""

    def __init__(self, clicker: Optional[Clicker], origin: Tuple[int, int] = (0, 0)):
        self.clicker = clicker
        self.origin = (int(origin[0]), int(origin[1]))

    def locate(self) -> Optional[Tuple[int, int]]:
        return self.origin if self.clicker is not None else None

    def place(self, handle: Any, x: int, y: int) -> None:
        if self.clicker is None:
            raise SurfaceNotFoundError("surface has no clicker")
        ox, oy = handle
        self.clicker(ox + int(x), oy + int(y))


def _swatch_colour(item: dict, index: int) -> str:
    if "color" in item:
        try:
            return normalise_colour(item["color"])
        except ValueError as exc:
            raise PaletteScanError(f"swatch {index}: {exc}") from exc
    if "name" in item:
        found = colour_for_name(str(item["name"]))
        if found is None:
            raise PaletteScanError(f"swatch {index}: unknown colour name {item['name']!r}")
        return found
    raise PaletteScanError(f"swatch {index}: needs 'color' or 'name'")


class JsonPaletteSource:
    """
    Palette source backed by a swatch layout file.

    The file is read on every scan(), so editing 'locked' flags and rescanning
    mid-run changes which swatches later tasks may use.
    """

    def __init__(self, path: Union[str, Path], clicker: Optional[Clicker]) -> None:
        self.path = Path(path)
        self.clicker = clicker

    def scan(self) -> List[PaletteEntry]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise PaletteScanError(f"cannot read swatch layout {self.path}: {exc}") from exc
        items = data.get("swatches") if isinstance(data, dict) else data
        if not isinstance(items, list):
            raise PaletteScanError("swatch layout must be a list or {'swatches': [...]}")

        entries: List[PaletteEntry] = []
        for index, item in enumerate(items):
            if not isinstance(item, dict) or "x" not in item or "y" not in item:
                raise PaletteScanError(f"swatch {index}: needs x and y")
            try:
                handle = (int(item["x"]), int(item["y"]))
            except (TypeError, ValueError) as exc:
                raise PaletteScanError(f"swatch {index}: bad position") from exc
            entries.append(
                PaletteEntry(
                    handle=handle,
                    color=_swatch_colour(item, index),
                    locked=bool(item.get("locked", False)),
                    name=str(item.get("name", "")),
                )
            )
        return entries

    def select(self, handle: Any) -> None:
        if self.clicker is None:
            raise PaletteScanError("palette source has no clicker")
        x, y = handle
        self.clicker(x, y)


__all__ = [
    "Clicker",
    "pyautogui_clicker",
    "RecordingClicker",
    "ScreenSurface",
    "JsonPaletteSource",
]
