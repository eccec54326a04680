# wplace_bot/errors.py
"""
Exception hierarchy.

Validation errors reject a whole batch; collaborator errors report a failed
operation and leave the session untouched. Checkpoint failures never show up
here because the checkpoint layer swallows them.
"""
from __future__ import annotations


class WplaceBotError(Exception):
    """Base class for every error raised to callers of wplace_bot."""


class TaskValidationError(WplaceBotError, ValueError):
    """A raw pixel description could not be normalised into a task."""

    def __init__(self, message: str, index: int = -1) -> None:
        super().__init__(message if index < 0 else f"item {index}: {message}")
        self.index = index


class SurfaceNotFoundError(WplaceBotError):
    """The drawable surface could not be located."""


class ImageLoadError(WplaceBotError):
    """An image could not be read, decoded or fetched from the clipboard."""


class PaletteScanError(WplaceBotError):
    """The palette source failed to produce a swatch list."""


class StaleSwatchError(WplaceBotError):
    """A palette entry from an earlier scan was used after a rescan."""


class PlacementError(WplaceBotError):
    """Placing a cell or selecting a swatch failed during a run."""


__all__ = [
    "WplaceBotError",
    "TaskValidationError",
    "SurfaceNotFoundError",
    "ImageLoadError",
    "PaletteScanError",
    "StaleSwatchError",
    "PlacementError",
]
