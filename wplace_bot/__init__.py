# wplace_bot/__init__.py
"""
wplace_bot package.

Purpose:
  Resumable, palette-aware pixel drawing for the wplace board. See wplace_draw.py for CLI.

Public API:
  DrawingEngine  : sequential placement loop with checkpoints (engine)
  SessionConfig  : per-session settings (engine)
  Palette        : lock-aware swatch snapshot (palette)
  resolve        : colour resolution policy (resolve)
  CheckpointStore: save/load/clear of the session record (checkpoint)
  tasks          : task queue construction from data, matrices and images
  image_io       : image decoding from files, data URLs and the clipboard
  palette_data   : the board palette and Lab snapping

Quick start:
  from wplace_bot import DrawingEngine, Palette, CheckpointStore, MemoryStore
  engine = DrawingEngine(surface, Palette(source), CheckpointStore(MemoryStore()))
  engine.load_demo_block()
  asyncio.run(engine.start())
"""

__version__ = "0.1.0"

from . import colour
from . import core_types
from . import tasks
from . import palette_data
from . import image_io
from . import utils

from .checkpoint import CheckpointStore, JsonFileStore, MemoryStore
from .core_types import (
    DeferToManual,
    PaletteEntry,
    PixelTask,
    RunState,
    Selected,
    SessionState,
    Skip,
)
from .engine import DrawingEngine, SessionConfig, StepOutcome
from .errors import (
    ImageLoadError,
    PaletteScanError,
    PlacementError,
    StaleSwatchError,
    SurfaceNotFoundError,
    TaskValidationError,
    WplaceBotError,
)
from .palette import Palette
from .resolve import resolve

__all__ = [
    "__version__",
    "colour",
    "core_types",
    "tasks",
    "palette_data",
    "image_io",
    "utils",
    "CheckpointStore",
    "JsonFileStore",
    "MemoryStore",
    "DeferToManual",
    "PaletteEntry",
    "PixelTask",
    "RunState",
    "Selected",
    "SessionState",
    "Skip",
    "DrawingEngine",
    "SessionConfig",
    "StepOutcome",
    "ImageLoadError",
    "PaletteScanError",
    "PlacementError",
    "StaleSwatchError",
    "SurfaceNotFoundError",
    "TaskValidationError",
    "WplaceBotError",
    "Palette",
    "resolve",
]
