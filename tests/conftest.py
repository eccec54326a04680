"""Shared fakes for the drawing engine tests.

Every collaborator is replaced by an in-memory fake that records what the
engine asked of it, and time is virtual: the sleeper records requested
durations and only yields to the event loop.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, List, Optional, Tuple

import pytest

from wplace_bot.checkpoint import CheckpointStore, MemoryStore
from wplace_bot.core_types import PaletteEntry
from wplace_bot.engine import DrawingEngine, SessionConfig
from wplace_bot.palette import Palette


class FakeSurface:
    def __init__(self, events: Optional[list] = None, found: bool = True) -> None:
        self.found = found
        self.placements: List[Tuple[int, int]] = []
        self.events = events if events is not None else []
        self.on_place: Optional[Callable[[int, int], None]] = None

    def locate(self) -> Optional[str]:
        return "canvas" if self.found else None

    def place(self, handle: Any, x: int, y: int) -> None:
        assert handle == "canvas"
        self.placements.append((x, y))
        self.events.append(("place", x, y))
        if self.on_place is not None:
            self.on_place(x, y)


class FakePaletteSource:
    def __init__(self, swatches: List[Tuple[str, str, bool]], events: Optional[list] = None):
        # (handle, colour, locked)
        self.swatches = list(swatches)
        self.selected: List[Any] = []
        self.events = events if events is not None else []

    def scan(self) -> List[PaletteEntry]:
        return [PaletteEntry(handle=h, color=c, locked=l) for h, c, l in self.swatches]

    def select(self, handle: Any) -> None:
        self.selected.append(handle)
        self.events.append(("select", handle))


class VirtualSleep:
    def __init__(self) -> None:
        self.calls: List[float] = []
        # raise on this call number (1-based) when set
        self.fail_on: Optional[int] = None

    @property
    def elapsed(self) -> float:
        return sum(self.calls)

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        if self.fail_on is not None and len(self.calls) == self.fail_on:
            raise RuntimeError("timer broke")
        await asyncio.sleep(0)


class Harness:
    """Engine plus the fakes it was built from."""

    def __init__(
        self,
        swatches: Optional[List[Tuple[str, str, bool]]] = None,
        cap: int = 50_000,
        config: Optional[SessionConfig] = None,
        store: Optional[MemoryStore] = None,
    ) -> None:
        self.events: list = []
        self.surface = FakeSurface(self.events)
        self.source = FakePaletteSource(swatches or [], self.events)
        self.palette = Palette(self.source)
        if swatches:
            self.palette.rescan()
        self.store = store if store is not None else MemoryStore()
        self.checkpoints = CheckpointStore(self.store, cap=cap, clock=lambda: 1_700_000_000_000)
        self.sleep = VirtualSleep()
        self.engine = DrawingEngine(
            self.surface,
            self.palette,
            self.checkpoints,
            config or SessionConfig(delay_ms=0),
            sleep=self.sleep,
        )


@pytest.fixture
def harness() -> Harness:
    return Harness()


@pytest.fixture
def make_harness() -> Callable[..., Harness]:
    return Harness
