# wplace_bot/constants.py
"""
Defaults and tunables used across the project.

- Timing (delay, settle, skip yield)
- Checkpointing (state key, schema version, autosave cadence, save cap)
- Image loading (alpha threshold, default max size)
- Locked colour modes
"""
from __future__ import annotations

from typing import Tuple

# =========================
# Timing (milliseconds)
# =========================
DEFAULT_DELAY_MS: int = 600
SETTLE_MS: int = 180  # pause after a swatch click so the UI registers it
SKIP_YIELD_MS: int = 1

# =========================
# Checkpointing
# =========================
STATE_KEY: str = "WPLACE_BOT_STATE_V1"
SCHEMA_VERSION: int = 1
AUTOSAVE_EVERY: int = 20
SAVE_CAP: int = 50_000
STATE_DIR_ENV: str = "WPLACE_BOT_HOME"
DEFAULT_IMAGE_NAME: str = "Custom Image"

# =========================
# Image loading
# =========================
ALPHA_THRESHOLD: int = 128
DEFAULT_MAX_WIDTH: int = 50
DEFAULT_MAX_HEIGHT: int = 50

# =========================
# Colour resolution
# =========================
LOCKED_MODES: Tuple[str, ...] = ("skip", "map", "manual")
DEFAULT_LOCKED_MODE: str = "map"

# Demo block
DEMO_SIZE: int = 5
DEMO_COLOUR: str = "#000000"

__all__ = [
    "DEFAULT_DELAY_MS",
    "SETTLE_MS",
    "SKIP_YIELD_MS",
    "STATE_KEY",
    "SCHEMA_VERSION",
    "AUTOSAVE_EVERY",
    "SAVE_CAP",
    "STATE_DIR_ENV",
    "DEFAULT_IMAGE_NAME",
    "ALPHA_THRESHOLD",
    "DEFAULT_MAX_WIDTH",
    "DEFAULT_MAX_HEIGHT",
    "LOCKED_MODES",
    "DEFAULT_LOCKED_MODE",
    "DEMO_SIZE",
    "DEMO_COLOUR",
]
