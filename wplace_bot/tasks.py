# wplace_bot/tasks.py
from __future__ import annotations

"""
Task queue construction.

Every loader funnels into normalise_tasks(), which validates the whole batch
before anything is returned: one bad item rejects the batch. The result has
exactly one task per (x, y), the last colour given for a cell wins, and tasks
are ordered row-major by (y, x).

Exports:
  normalise_tasks(raw)                     -> list[PixelTask]
  tasks_from_matrix(rows)                  -> list[PixelTask]
  tasks_from_rgba(rgb, alpha, threshold)   -> list[PixelTask]
  demo_block(size, colour)                 -> list[PixelTask]
  queue_extent(tasks)                      -> (width, height)
  colour_counts(tasks)                     -> [(hex, count), ...]
"""

import math
from collections import Counter
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from .colour import normalise_colour, to_hex
from .constants import ALPHA_THRESHOLD, DEMO_COLOUR, DEMO_SIZE
from .core_types import HexStr, PixelTask, U8Image, U8Mask
from .errors import TaskValidationError


def _coordinate(value: Any, axis: str, index: int) -> int:
    numeric = (int, float, np.integer, np.floating)
    if isinstance(value, bool) or not isinstance(value, numeric):
        raise TaskValidationError(f"{axis} must be a number, got {value!r}", index)
    number = float(value)
    if not math.isfinite(number):
        raise TaskValidationError(f"{axis} must be finite, got {value!r}", index)
    coord = math.floor(number)
    if coord < 0:
        raise TaskValidationError(f"{axis} must be >= 0, got {value!r}", index)
    return int(coord)


def _normalise_one(item: Any, index: int) -> PixelTask:
    if isinstance(item, PixelTask):
        x, y, colour = item.x, item.y, item.color
    elif isinstance(item, Mapping):
        missing = [k for k in ("x", "y", "color") if k not in item]
        if missing:
            raise TaskValidationError(
                f"expected {{x, y, color}}, missing {', '.join(missing)}", index
            )
        x, y, colour = item["x"], item["y"], item["color"]
    else:
        raise TaskValidationError(f"expected {{x, y, color}}, got {item!r}", index)

    try:
        hex_colour = normalise_colour(colour)
    except ValueError as exc:
        raise TaskValidationError(str(exc), index) from exc
    return PixelTask(
        x=_coordinate(x, "x", index), y=_coordinate(y, "y", index), color=hex_colour
    )


def normalise_tasks(raw: Iterable[Any]) -> List[PixelTask]:
    """
    Validate, deduplicate and order raw pixel descriptions.

    Items may be PixelTask instances or mappings with x, y and color keys.
    Coordinates are floored; colours may be '#rrggbb' or 'rgb(r,g,b)'.
    Raises TaskValidationError on the first bad item.
    """
    if raw is None or isinstance(raw, (str, bytes, Mapping)):
        raise TaskValidationError("pixel data must be a list of {x, y, color}")
    by_cell: Dict[Tuple[int, int], PixelTask] = {}
    for index, item in enumerate(raw):
        task = _normalise_one(item, index)
        by_cell[task.key] = task
    return sorted(by_cell.values(), key=lambda t: t.row_major)


def _is_blank(cell: Any) -> bool:
    return cell is None or (isinstance(cell, str) and cell.strip() == "")


def tasks_from_matrix(rows: Sequence[Sequence[Any]]) -> List[PixelTask]:
    """
    Flat colour matrix -> tasks. rows[y][x] is a colour or None/'' for no task.
    """
    if rows is None or isinstance(rows, (str, bytes, Mapping)):
        raise TaskValidationError("colour matrix must be a list of rows")
    raw: List[Dict[str, Any]] = []
    for y, row in enumerate(rows):
        if isinstance(row, (str, bytes, Mapping)) or not isinstance(row, Sequence):
            raise TaskValidationError(f"row {y} must be a list of colours")
        for x, cell in enumerate(row):
            if not _is_blank(cell):
                raw.append({"x": x, "y": y, "color": cell})
    return normalise_tasks(raw)


def tasks_from_rgba(
    rgb: U8Image, alpha: U8Mask, threshold: int = ALPHA_THRESHOLD
) -> List[PixelTask]:
    """
    Decoded image -> tasks. Pixels with alpha below threshold produce no task.
    """
    if rgb.ndim != 3 or rgb.shape[-1] < 3 or alpha.shape != rgb.shape[:2]:
        raise TaskValidationError(
            f"expected (H,W,3) rgb and (H,W) alpha, got {rgb.shape} and {alpha.shape}"
        )
    ys, xs = np.nonzero(alpha >= threshold)  # row-major already
    tasks: List[PixelTask] = []
    hex_of: Dict[Tuple[int, int, int], HexStr] = {}
    for y, x in zip(ys.tolist(), xs.tolist()):
        key = (int(rgb[y, x, 0]), int(rgb[y, x, 1]), int(rgb[y, x, 2]))
        colour = hex_of.get(key)
        if colour is None:
            colour = hex_of[key] = to_hex(key)
        tasks.append(PixelTask(x=x, y=y, color=colour))
    return tasks


def demo_block(size: int = DEMO_SIZE, colour: str = DEMO_COLOUR) -> List[PixelTask]:
    """size x size block of one colour at (0..size-1, 0..size-1)."""
    return normalise_tasks(
        [{"x": x, "y": y, "color": colour} for y in range(size) for x in range(size)]
    )


def queue_extent(tasks: Sequence[PixelTask]) -> Tuple[int, int]:
    """Bounding size (max_x + 1, max_y + 1); (0, 0) for an empty queue."""
    if not tasks:
        return (0, 0)
    return (max(t.x for t in tasks) + 1, max(t.y for t in tasks) + 1)


def colour_counts(
    tasks: Sequence[PixelTask], top: Optional[int] = None
) -> List[Tuple[HexStr, int]]:
    """Colour usage sorted by count descending, then hex."""
    counts = Counter(t.color for t in tasks)
    ordered = sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
    return ordered if top is None else ordered[:top]


__all__ = [
    "normalise_tasks",
    "tasks_from_matrix",
    "tasks_from_rgba",
    "demo_block",
    "queue_extent",
    "colour_counts",
]
