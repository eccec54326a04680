# wplace_bot/core_types.py
from __future__ import annotations

"""
Core type aliases, small value objects, and the resolution outcome variants.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Literal, Optional, Tuple, Union

import numpy as np
from numpy.typing import NDArray

# Basic aliases

RGBTuple = Tuple[int, int, int]
HexStr = str  # canonical "#rrggbb", lowercase

U8Image = NDArray[np.uint8]  # (H, W, 3)
U8Mask = NDArray[np.uint8]  # (H, W)
Lab = NDArray[np.float32]  # (..., 3) CIE Lab

LockedMode = Literal["skip", "map", "manual"]
DevicePoint = Tuple[int, int]

# Value objects


@dataclass(frozen=True)
class PixelTask:
    """Place `color` at logical cell (x, y)."""

    x: int
    y: int
    color: HexStr

    @property
    def key(self) -> Tuple[int, int]:
        return (self.x, self.y)

    @property
    def row_major(self) -> Tuple[int, int]:
        """Sort key: rows top to bottom, then columns left to right."""
        return (self.y, self.x)

    def to_record(self) -> dict:
        return {"x": self.x, "y": self.y, "color": self.color}


@dataclass(frozen=True, eq=False)
class PaletteEntry:
    """
    One selectable swatch.

    `handle` belongs to the palette source and is only ever passed back to it.
    `generation` is stamped by Palette.rescan(); entries from an older scan are
    stale. Equality is identity, so two swatches of the same colour stay distinct.
    """

    handle: Any
    color: HexStr
    locked: bool = False
    name: str = ""
    generation: int = 0


class RunState(Enum):
    """Drawing engine lifecycle."""

    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"
    FINISHED = "finished"


# Resolution outcomes


@dataclass(frozen=True)
class Selected:
    """Click this swatch, let it settle, then place."""

    entry: PaletteEntry


@dataclass(frozen=True)
class Skip:
    """Count the task as attempted without placing anything."""

    reason: str = "locked"


@dataclass(frozen=True)
class DeferToManual:
    """Place with whatever colour is active. `downgrade` turns auto palette off."""

    reason: str
    downgrade: bool = True


Action = Union[Selected, Skip, DeferToManual]


@dataclass
class SessionState:
    """The persisted checkpoint record, in Python field names."""

    image_name: str
    start_x: int
    start_y: int
    delay_ms: int
    total_tasks: int
    remaining: List[PixelTask]
    cell_width: Optional[int] = None
    cell_height: Optional[int] = None
    saved_at: int = 0
    cursor: int = 0


__all__ = [
    "RGBTuple",
    "HexStr",
    "U8Image",
    "U8Mask",
    "Lab",
    "LockedMode",
    "DevicePoint",
    "PixelTask",
    "PaletteEntry",
    "RunState",
    "Selected",
    "Skip",
    "DeferToManual",
    "Action",
    "SessionState",
]
