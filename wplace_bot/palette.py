# wplace_bot/palette.py
from __future__ import annotations

"""
Palette model: the current snapshot of selectable swatches.

The snapshot is replaced wholesale on every rescan and each rescan bumps a
generation counter. Entries carry the generation they were scanned in, so a
handle from an older scan is refused by select().

Exports:
  PaletteSource  : protocol for whatever discovers and clicks swatches
  Palette        : snapshot holder with nearest-colour lookup
"""

from dataclasses import replace
from typing import List, Optional, Protocol, Sequence, Tuple

from .colour import normalise_colour, parse_hex, rgb_distance
from .core_types import HexStr, PaletteEntry, RGBTuple
from .errors import PaletteScanError, StaleSwatchError, WplaceBotError
from .utils import debug_log, log, warn


class PaletteSource(Protocol):
    """Discovers visible swatches and selects one by handle."""

    def scan(self) -> Sequence[PaletteEntry]: ...

    def select(self, handle: object) -> None: ...


class Palette:
    """Lock-aware swatch snapshot."""

    def __init__(self, source: Optional[PaletteSource] = None) -> None:
        self._source = source
        self._entries: Tuple[PaletteEntry, ...] = ()
        self._rgb: Tuple[RGBTuple, ...] = ()
        self._generation = 0

    # Snapshot

    @property
    def source(self) -> Optional[PaletteSource]:
        return self._source

    @property
    def entries(self) -> Tuple[PaletteEntry, ...]:
        return self._entries

    @property
    def generation(self) -> int:
        return self._generation

    def __len__(self) -> int:
        return len(self._entries)

    def is_empty(self) -> bool:
        return not self._entries

    def counts(self) -> Tuple[int, int]:
        """(unlocked, locked)."""
        locked = sum(1 for e in self._entries if e.locked)
        return len(self._entries) - locked, locked

    def rescan(self) -> List[PaletteEntry]:
        """
        Ask the source for a fresh swatch list and replace the snapshot.

        Entries whose colour does not parse are dropped. On a source failure
        the previous snapshot is kept and PaletteScanError is raised.
        """
        if self._source is None:
            found: Sequence[PaletteEntry] = ()
        else:
            try:
                found = list(self._source.scan())
            except WplaceBotError:
                raise
            except Exception as exc:
                raise PaletteScanError(f"palette scan failed: {exc}") from exc

        generation = self._generation + 1
        entries: List[PaletteEntry] = []
        for entry in found:
            try:
                colour = normalise_colour(entry.color)
            except ValueError:
                debug_log(f"ignoring swatch with unreadable colour {entry.color!r}")
                continue
            entries.append(replace(entry, color=colour, generation=generation))

        self._generation = generation
        self._entries = tuple(entries)
        self._rgb = tuple(parse_hex(e.color) or (0, 0, 0) for e in entries)

        unlocked, locked = self.counts()
        log(f"Palette detected: {len(entries)} (unlocked: {unlocked}, locked: {locked})")
        if not entries:
            warn("No palette detected. Open the colour picker, then rescan the palette.")
        return list(entries)

    # Lookup

    def nearest(
        self, target: HexStr, restrict_to_unlocked: bool = False
    ) -> Optional[PaletteEntry]:
        """
        Closest swatch by RGB distance. Ties keep the first entry in scan order.
        Locked swatches are never considered when restrict_to_unlocked is set.
        """
        target_rgb = parse_hex(target) or (0, 0, 0)
        best: Optional[PaletteEntry] = None
        best_d = float("inf")
        for entry, rgb in zip(self._entries, self._rgb):
            if restrict_to_unlocked and entry.locked:
                continue
            d = rgb_distance(target_rgb, rgb)
            if d < best_d:
                best_d = d
                best = entry
        return best

    def select(self, entry: PaletteEntry) -> None:
        """Click the swatch through the source. Stale entries are refused."""
        if entry.generation != self._generation:
            raise StaleSwatchError(
                f"swatch {entry.color} is from scan {entry.generation}, "
                f"current scan is {self._generation}"
            )
        if self._source is None:
            raise StaleSwatchError("palette has no source to select through")
        self._source.select(entry.handle)


__all__ = ["PaletteSource", "Palette"]
