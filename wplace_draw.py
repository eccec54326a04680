#!/usr/bin/env python3
"""
wplace_draw.py
Draw an image onto the wplace board one pixel at a time, with resumable progress.

Usage:
  python wplace_draw.py draw IMAGE --start X Y --delay MS [--cell W [H]] [--palette LAYOUT.json]
  python wplace_draw.py draw --demo --start 120 300 --delay 300 --dry-run
  python wplace_draw.py resume [--palette LAYOUT.json]
  python wplace_draw.py status | clear
  python wplace_draw.py palette LAYOUT.json
  python wplace_draw.py preview IMAGE --out preview.png

Sources (draw / preview):
  IMAGE          : any Pillow-readable file, shrunk to fit --max-size (default 50x50)
  --data FILE    : JSON list of {"x", "y", "color"}
  --matrix FILE  : JSON list of rows, each a list of colours or null
  --data-url FILE: text file holding a data:image/...;base64 URL
  --clipboard    : image on the system clipboard
  --demo         : 5x5 test block

Notes:
  Coordinates given to --start are relative to --origin (screen position of the board).
  Progress is saved every 20 pixels and on stop (Ctrl+C); 'resume' continues it.
  Without --palette the bot never changes colour: pick one in the UI yourself.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import signal
import sys
from pathlib import Path
from typing import Any, Awaitable, Callable, List, Optional

from wplace_bot.checkpoint import CheckpointStore, JsonFileStore, MemoryStore
from wplace_bot.collaborators import (
    JsonPaletteSource,
    RecordingClicker,
    ScreenSurface,
    pyautogui_clicker,
)
from wplace_bot.constants import (
    AUTOSAVE_EVERY,
    DEFAULT_DELAY_MS,
    DEFAULT_MAX_HEIGHT,
    DEFAULT_MAX_WIDTH,
    LOCKED_MODES,
    STATE_KEY,
)
from wplace_bot.core_types import RunState
from wplace_bot.engine import DrawingEngine, SessionConfig
from wplace_bot.errors import WplaceBotError
from wplace_bot.image_io import (
    decode_data_url,
    decode_image,
    grab_clipboard_image,
    save_preview,
)
from wplace_bot.palette import Palette
from wplace_bot.palette_data import snap_to_palette
from wplace_bot.tasks import colour_counts
from wplace_bot.utils import (
    enable_line_buffered_stdout,
    error,
    key_value_pairs_to_string,
    log,
    print_banner,
)

# CLI args


def _add_source_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("image", type=Path, nargs="?", help="Input image file")
    src = p.add_argument_group("other sources")
    src.add_argument("--data", type=Path, help="JSON list of {x, y, color}")
    src.add_argument("--matrix", type=Path, help="JSON list of colour rows")
    src.add_argument("--data-url", type=Path, help="File holding a base64 data URL")
    src.add_argument("--clipboard", action="store_true", help="Image from clipboard")
    src.add_argument("--demo", action="store_true", help="5x5 black test block")
    p.add_argument("--name", default=None, help="Session name shown in logs")
    p.add_argument(
        "--max-size",
        type=int,
        nargs=2,
        metavar=("W", "H"),
        default=(DEFAULT_MAX_WIDTH, DEFAULT_MAX_HEIGHT),
        help="Shrink images to fit W x H (never enlarges)",
    )
    p.add_argument(
        "--snap", action="store_true", help="Snap image colours to the board palette"
    )


def _add_run_args(p: argparse.ArgumentParser, defaults: bool) -> None:
    """Drawing options. For resume the defaults are None so the checkpoint wins."""
    p.add_argument(
        "--start",
        type=int,
        nargs=2,
        metavar=("X", "Y"),
        default=(0, 0) if defaults else None,
        help="Top-left of the image, relative to --origin",
    )
    p.add_argument(
        "--delay",
        type=int,
        default=DEFAULT_DELAY_MS if defaults else None,
        help="Milliseconds between pixels",
    )
    p.add_argument(
        "--cell",
        type=float,
        nargs="+",
        metavar="PX",
        default=None,
        help="Cell size in screen px: W [H]",
    )
    p.add_argument(
        "--origin",
        type=int,
        nargs=2,
        metavar=("X", "Y"),
        default=(0, 0),
        help="Screen position of the board's top-left corner",
    )
    p.add_argument("--palette", type=Path, default=None, help="Swatch layout JSON")
    p.add_argument("--locked-mode", choices=LOCKED_MODES, default="map")
    p.add_argument(
        "--manual", action="store_true", help="Never change colour automatically"
    )
    p.add_argument(
        "--autosave", type=int, default=AUTOSAVE_EVERY, help="Save every N pixels"
    )
    p.add_argument(
        "--dry-run", action="store_true", help="Log clicks instead of clicking"
    )


def parse_cli_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="wplace_draw",
        description="Resumable pixel-by-pixel drawing for the wplace board.",
    )
    parser.add_argument(
        "--state-dir",
        type=Path,
        default=None,
        help="Checkpoint directory (default $WPLACE_BOT_HOME or ~/.wplace_bot)",
    )
    parser.add_argument("--debug", action="store_true", help="Verbose per-pixel logs")
    sub = parser.add_subparsers(dest="command", required=True)

    p_draw = sub.add_parser("draw", help="Load a source and start drawing")
    _add_source_args(p_draw)
    _add_run_args(p_draw, defaults=True)

    p_resume = sub.add_parser("resume", help="Continue the saved session")
    _add_run_args(p_resume, defaults=False)

    sub.add_parser("status", help="Show the saved session")
    sub.add_parser("clear", help="Delete the saved session")

    p_pal = sub.add_parser("palette", help="Scan a swatch layout and list it")
    p_pal.add_argument("layout", type=Path)

    p_prev = sub.add_parser("preview", help="Render the task queue to a PNG")
    _add_source_args(p_prev)
    p_prev.add_argument("--out", type=Path, default=Path("preview.png"))
    p_prev.add_argument("--scale", type=int, default=8, help="Enlarge factor")

    return parser.parse_args(argv)


# Building blocks


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise WplaceBotError(f"cannot read {path}: {exc}") from exc


def _checkpoints(args: argparse.Namespace) -> CheckpointStore:
    """File-backed store; dry runs work on an in-memory copy of it."""
    files = JsonFileStore(args.state_dir)
    if not getattr(args, "dry_run", False):
        return CheckpointStore(files)
    mem = MemoryStore()
    try:
        raw = files.get(STATE_KEY)
    except OSError:
        raw = None
    if raw:
        mem.set(STATE_KEY, raw)
    return CheckpointStore(mem)


def _build_engine(args: argparse.Namespace, drawing: bool) -> DrawingEngine:
    clicker = None
    if drawing:
        if args.dry_run:
            clicker = RecordingClicker(verbose=args.debug)
        else:
            clicker = pyautogui_clicker()
    origin = tuple(getattr(args, "origin", (0, 0)))
    palette_path = getattr(args, "palette", None)
    source = JsonPaletteSource(palette_path, clicker) if palette_path else None
    return DrawingEngine(
        ScreenSurface(clicker, origin),  # type: ignore[arg-type]
        Palette(source),
        _checkpoints(args) if drawing else CheckpointStore(MemoryStore()),
        SessionConfig(),
        debug=args.debug,
    )


def _load_source(engine: DrawingEngine, args: argparse.Namespace) -> int:
    chosen = [
        flag
        for flag, on in (
            ("IMAGE", args.image is not None),
            ("--data", args.data is not None),
            ("--matrix", args.matrix is not None),
            ("--data-url", args.data_url is not None),
            ("--clipboard", args.clipboard),
            ("--demo", args.demo),
        )
        if on
    ]
    if len(chosen) != 1:
        raise WplaceBotError(
            "give exactly one source: IMAGE, --data, --matrix, --data-url, "
            "--clipboard or --demo"
        )

    max_w, max_h = args.max_size
    if args.demo:
        return engine.load_demo_block()
    if args.data is not None:
        data = _read_json(args.data)
        pixels = data.get("pixels") if isinstance(data, dict) else data
        return engine.load_tasks(pixels, args.name or args.data.stem)
    if args.matrix is not None:
        return engine.load_matrix(_read_json(args.matrix), args.name or args.matrix.stem)

    if args.image is not None:
        rgb, alpha = decode_image(args.image, max_w, max_h)
        name = args.name or args.image.name
    elif args.data_url is not None:
        try:
            text = args.data_url.read_text(encoding="utf-8")
        except OSError as exc:
            raise WplaceBotError(f"cannot read {args.data_url}: {exc}") from exc
        rgb, alpha = decode_data_url(text, max_w, max_h)
        name = args.name or "Base64 Image"
    else:
        rgb, alpha = grab_clipboard_image(max_w, max_h)
        name = args.name or "Pasted Image"
    if args.snap:
        rgb = snap_to_palette(rgb, alpha)
    return engine.load_image(rgb, alpha, name)


def _apply_run_args(engine: DrawingEngine, args: argparse.Namespace) -> None:
    if args.start is not None:
        engine.set_start_position(*args.start)
    if args.delay is not None:
        engine.set_delay(args.delay)
    if args.cell:
        if len(args.cell) > 2:
            raise WplaceBotError(f"--cell takes W or W H, got {len(args.cell)} values")
        engine.set_cell_size(*args.cell)
    engine.set_locked_colour_mode(args.locked_mode)
    engine.config.autosave_every = max(0, args.autosave)
    if args.manual or args.palette is None:
        engine.set_manual_colour_mode(True)
    else:
        engine.rescan_palette()


def _run(engine: DrawingEngine, action: Callable[[], Awaitable[RunState]]) -> RunState:
    """Run a coroutine with Ctrl+C mapped to a cooperative stop where possible."""

    async def drive() -> RunState:
        loop = asyncio.get_running_loop()
        try:
            loop.add_signal_handler(signal.SIGINT, engine.stop)
            handled = True
        except (NotImplementedError, RuntimeError):
            handled = False
        try:
            return await action()
        finally:
            if handled:
                loop.remove_signal_handler(signal.SIGINT)

    return asyncio.run(drive())


# Commands


def cmd_draw(args: argparse.Namespace) -> int:
    engine = _build_engine(args, drawing=True)
    _apply_run_args(engine, args)
    _load_source(engine, args)
    state = _run(engine, engine.start)
    return 0 if state in (RunState.FINISHED, RunState.STOPPED) else 1


def cmd_resume(args: argparse.Namespace) -> int:
    engine = _build_engine(args, drawing=True)
    if not engine.restore_checkpoint():
        log("No saved session")
        return 1
    _apply_run_args(engine, args)
    state = _run(engine, engine.resume)
    return 0 if state in (RunState.FINISHED, RunState.STOPPED) else 1


def cmd_status(args: argparse.Namespace) -> int:
    files = JsonFileStore(args.state_dir)
    saved = CheckpointStore(files).load()
    print_banner("wplace_draw status")
    log(f"Checkpoint: {files.path_for(STATE_KEY)}")
    if saved is None:
        log("No saved session")
        return 0
    done = saved.total_tasks - len(saved.remaining)
    log(
        key_value_pairs_to_string(
            [
                ("Image", saved.image_name),
                ("Done", f"{done:,}/{saved.total_tasks:,}"),
                ("Remaining", len(saved.remaining)),
                ("Start", f"{saved.start_x},{saved.start_y}"),
                ("Delay ms", saved.delay_ms),
                ("Cell", f"{saved.cell_width or '-'}x{saved.cell_height or '-'}"),
            ]
        )
    )
    log("Colours left:")
    for hex_code, count in colour_counts(saved.remaining, top=10):
        log(f"  {hex_code}: {count:,}")
    return 0


def cmd_clear(args: argparse.Namespace) -> int:
    CheckpointStore(JsonFileStore(args.state_dir)).clear()
    log("Saved session cleared.")
    return 0


def cmd_palette(args: argparse.Namespace) -> int:
    palette = Palette(JsonPaletteSource(args.layout, None))
    entries = palette.rescan()
    for e in entries:
        label = f"  {e.name}" if e.name else ""
        state = "locked" if e.locked else "unlocked"
        log(f"  {e.color}{label}  {state}  at {e.handle[0]},{e.handle[1]}")
    return 0


def cmd_preview(args: argparse.Namespace) -> int:
    engine = _build_engine(args, drawing=False)
    _load_source(engine, args)
    path = save_preview(args.out, engine.queue, scale=max(1, args.scale))
    log(f"Wrote {path} | {len(engine.queue):,} px")
    for hex_code, count in colour_counts(engine.queue, top=10):
        log(f"  {hex_code}: {count:,}")
    return 0


COMMANDS = {
    "draw": cmd_draw,
    "resume": cmd_resume,
    "status": cmd_status,
    "clear": cmd_clear,
    "palette": cmd_palette,
    "preview": cmd_preview,
}


# Entry point


def main(argv: Optional[List[str]] = None) -> int:
    enable_line_buffered_stdout()
    args = parse_cli_args(argv)
    try:
        return COMMANDS[args.command](args)
    except (WplaceBotError, ValueError) as exc:
        error(str(exc))
        return 2
    except KeyboardInterrupt:
        log("Interrupted. Progress saved.")
        return 130


if __name__ == "__main__":
    sys.exit(main())
