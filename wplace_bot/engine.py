# wplace_bot/engine.py
from __future__ import annotations

"""
Drawing engine: a resumable, strictly sequential placement loop.

States: IDLE -> RUNNING -> (STOPPED | FINISHED). IDLE and STOPPED can start
again. step() performs exactly one task; start() drives step() and awaits the
inter-task delay through an injectable sleep coroutine, so tests can run on
virtual time. stop() only raises a flag; the loop notices it at the top of the
next iteration, so an in-flight selection and placement always complete.

Per task:
  1. read the head task (it stays in the checkpoint until attempted)
  2. map (x, y) to device coordinates through the calibrated cell size
  3. with auto palette on, resolve the colour:
       Skip           -> advance, yield 1 ms, no placement, no delay
       Selected       -> click the swatch, settle, then place
       DeferToManual  -> place with whatever colour is active
  4. place, advance the cursor, autosave every N tasks, sleep the delay
"""

import asyncio
import math
import time
from dataclasses import dataclass
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    List,
    Optional,
    Protocol,
    Sequence,
    Tuple,
)

from .checkpoint import CheckpointStore
from .constants import (
    AUTOSAVE_EVERY,
    DEFAULT_DELAY_MS,
    DEFAULT_IMAGE_NAME,
    DEFAULT_LOCKED_MODE,
    DEMO_COLOUR,
    DEMO_SIZE,
    SETTLE_MS,
    SKIP_YIELD_MS,
)
from .core_types import (
    Action,
    DeferToManual,
    DevicePoint,
    PaletteEntry,
    PixelTask,
    RunState,
    Selected,
    SessionState,
    Skip,
    U8Image,
    U8Mask,
)
from .errors import PlacementError, SurfaceNotFoundError, WplaceBotError
from .palette import Palette
from .resolve import ADVISORIES, EMPTY_PALETTE, check_locked_mode, resolve
from .tasks import (
    demo_block,
    normalise_tasks,
    queue_extent,
    tasks_from_matrix,
    tasks_from_rgba,
)
from .utils import (
    Advisories,
    debug_log,
    format_eta,
    format_seconds_compact,
    log,
    print_config_line,
)

Sleeper = Callable[[float], Awaitable[Any]]


class DrawableSurface(Protocol):
    """Where cells get placed. Coordinates are relative to the surface origin."""

    def locate(self) -> Optional[object]: ...

    def place(self, handle: object, x: int, y: int) -> None: ...


def calibrate_axis(first: float, second: float) -> int:
    """Cell size from two samples on adjacent cells along one axis."""
    delta = abs(float(second) - float(first))
    if not math.isfinite(delta) or delta < 1:
        raise ValueError("calibration samples overlap; pick two adjacent cells")
    return int(round(delta))


@dataclass
class SessionConfig:
    """Per-engine settings. Nothing here is shared between engines."""

    image_name: str = DEFAULT_IMAGE_NAME
    start_x: int = 0
    start_y: int = 0
    delay_ms: int = DEFAULT_DELAY_MS
    cell_width: Optional[int] = None
    cell_height: Optional[int] = None
    locked_mode: str = DEFAULT_LOCKED_MODE
    auto_palette: bool = True
    autosave_every: int = AUTOSAVE_EVERY
    settle_ms: int = SETTLE_MS

    def is_calibrated(self) -> bool:
        return bool(self.cell_width and self.cell_width > 0)

    def cell_size(self) -> Tuple[int, int]:
        """(width, height); width defaults to 1, height to the width."""
        w = self.cell_width if self.cell_width and self.cell_width > 0 else 1
        h = self.cell_height if self.cell_height and self.cell_height > 0 else w
        return w, h

    def device_point(self, task: PixelTask) -> DevicePoint:
        """Centre of the task's cell in device coordinates."""
        w, h = self.cell_size()
        return (
            self.start_x + task.x * w + w // 2,
            self.start_y + task.y * h + h // 2,
        )


@dataclass(frozen=True)
class StepOutcome:
    """What one step did. `action` is None when auto palette was off."""

    task: PixelTask
    action: Optional[Action]
    point: Optional[DevicePoint]
    placed: bool


class DrawingEngine:
    """
    Owns one session: its task queue, cursor, run state and config.

    Parameters
    ----------
    surface     : DrawableSurface used to place cells
    palette     : Palette consulted when auto palette is on
    checkpoints : CheckpointStore for autosave/restore
    config      : SessionConfig, defaults if omitted
    sleep       : coroutine taking seconds; asyncio.sleep by default
    debug       : per-task detail through debug_log
    """

    def __init__(
        self,
        surface: DrawableSurface,
        palette: Palette,
        checkpoints: CheckpointStore,
        config: Optional[SessionConfig] = None,
        *,
        sleep: Sleeper = asyncio.sleep,
        debug: bool = False,
    ) -> None:
        self.surface = surface
        self.palette = palette
        self.checkpoints = checkpoints
        self.config = config if config is not None else SessionConfig()
        self.debug = debug
        self._sleep = sleep

        self._queue: List[PixelTask] = []
        self._cursor = 0
        self._total = 0
        self._state = RunState.IDLE
        self._stop_requested = False
        self._handle: Optional[object] = None
        self.selected_colour: Optional[str] = None
        self.advisories = Advisories()

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def queue(self) -> Tuple[PixelTask, ...]:
        return tuple(self._queue)

    @property
    def remaining(self) -> List[PixelTask]:
        return self._queue[self._cursor :]

    @property
    def total_tasks(self) -> int:
        return self._total

    def is_running(self) -> bool:
        return self._state is RunState.RUNNING

    def status(self) -> Dict[str, Any]:
        """Summary for the CLI 'status' view."""
        unlocked, locked = self.palette.counts()
        w, h = self.config.cell_size()
        return {
            "image": self.config.image_name,
            "state": self._state.value,
            "total": self._total,
            "remaining": len(self.remaining),
            "start": (self.config.start_x, self.config.start_y),
            "delay_ms": self.config.delay_ms,
            "cell": (w, h),
            "calibrated": self.config.is_calibrated(),
            "locked_mode": self.config.locked_mode,
            "auto_palette": self.config.auto_palette,
            "palette_unlocked": unlocked,
            "palette_locked": locked,
        }

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def _autosave_if_loaded(self) -> None:
        if self.remaining:
            self.save_checkpoint()

    def set_start_position(self, x: float, y: float) -> None:
        self.config.start_x = int(x)
        self.config.start_y = int(y)
        log(f"Start position set to ({self.config.start_x}, {self.config.start_y})")
        self._autosave_if_loaded()

    def set_delay(self, ms: float) -> None:
        self.config.delay_ms = max(0, int(ms))
        log(f"Delay set to {self.config.delay_ms} ms")
        self._autosave_if_loaded()

    def set_locked_colour_mode(self, mode: str) -> None:
        self.config.locked_mode = check_locked_mode(mode)
        log(f"Locked colour mode = {mode}")

    def set_manual_colour_mode(self, on: bool = True) -> None:
        self.config.auto_palette = not on
        if not on:
            # auto is back; let the downgrade advisories fire again
            self.advisories.reset()
        log(f"Manual colour mode: {'ON' if on else 'OFF'}")

    def set_cell_size(self, width: float, height: Optional[float] = None) -> None:
        """Cell size in device pixels. Height follows width when omitted."""
        h_val = width if height is None else height
        for v in (width, h_val):
            if isinstance(v, bool) or not isinstance(v, (int, float)):
                raise ValueError("cell size must be positive numbers")
            if not math.isfinite(v) or v <= 0:
                raise ValueError("cell size must be positive numbers")
        self.config.cell_width = max(1, int(round(width)))
        self.config.cell_height = max(1, int(round(h_val)))
        log(f"Cell size set to {self.config.cell_width}x{self.config.cell_height} px")
        self._autosave_if_loaded()

    def calibrate_cell(self, axis: str, first: float, second: float) -> int:
        """Set cell width ('x') or height ('y') from two adjacent-cell samples."""
        size = calibrate_axis(first, second)
        if axis == "x":
            self.config.cell_width = size
        elif axis == "y":
            self.config.cell_height = size
        else:
            raise ValueError("axis must be 'x' or 'y'")
        log(f"Calibrated cell {'width' if axis == 'x' else 'height'} = {size}px")
        self._autosave_if_loaded()
        return size

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def _install(self, tasks: Sequence[PixelTask], name: str) -> int:
        self._queue = list(tasks)
        self._cursor = 0
        self._total = len(self._queue)
        self._state = RunState.IDLE
        self._handle = None
        self.config.image_name = name
        width, height = queue_extent(self._queue)
        log(f"{name} loaded: {len(self._queue):,} px | approx size: {width}x{height}")
        if len(self._queue) <= self.checkpoints.cap:
            self.save_checkpoint()
        else:
            self.checkpoints.clear()
            log("Large image: initial save skipped, progress autosaves while drawing.")
        return len(self._queue)

    def _refuse_while_running(self, what: str) -> None:
        if self.is_running():
            raise WplaceBotError(f"cannot {what} while drawing; stop first")

    def load_tasks(self, raw: Any, name: str = DEFAULT_IMAGE_NAME) -> int:
        """Replace the queue with validated raw {x, y, color} items."""
        self._refuse_while_running("load tasks")
        return self._install(normalise_tasks(raw), name)

    def load_matrix(self, rows: Any, name: str = DEFAULT_IMAGE_NAME) -> int:
        self._refuse_while_running("load tasks")
        return self._install(tasks_from_matrix(rows), name)

    def load_image(
        self, rgb: U8Image, alpha: U8Mask, name: str = DEFAULT_IMAGE_NAME
    ) -> int:
        self._refuse_while_running("load an image")
        return self._install(tasks_from_rgba(rgb, alpha), name)

    def load_demo_block(self, size: int = DEMO_SIZE, colour: str = DEMO_COLOUR) -> int:
        self._refuse_while_running("load tasks")
        return self._install(demo_block(size, colour), f"Test {size}x{size}")

    def rescan_palette(self) -> List[PaletteEntry]:
        return self.palette.rescan()

    # ------------------------------------------------------------------
    # Checkpoints
    # ------------------------------------------------------------------

    def snapshot(self) -> SessionState:
        return SessionState(
            image_name=self.config.image_name,
            start_x=self.config.start_x,
            start_y=self.config.start_y,
            delay_ms=self.config.delay_ms,
            total_tasks=self._total,
            remaining=self.remaining,
            cell_width=self.config.cell_width,
            cell_height=self.config.cell_height,
        )

    def save_checkpoint(self) -> bool:
        return self.checkpoints.save(self.snapshot())

    def restore_checkpoint(self) -> bool:
        """Load the saved session into this engine. False when there is none."""
        self._refuse_while_running("restore a checkpoint")
        saved = self.checkpoints.load()
        if saved is None:
            return False
        cfg = self.config
        cfg.image_name = saved.image_name or DEFAULT_IMAGE_NAME
        cfg.start_x = saved.start_x
        cfg.start_y = saved.start_y
        cfg.delay_ms = saved.delay_ms
        if saved.cell_width is not None:
            cfg.cell_width = saved.cell_width
        if saved.cell_height is not None:
            cfg.cell_height = saved.cell_height
        self._queue = list(saved.remaining)
        self._cursor = 0
        self._total = max(saved.total_tasks, len(self._queue))
        self._state = RunState.IDLE
        self._handle = None
        log(f"Loaded saved session: {cfg.image_name} | remaining {len(self._queue):,} px")
        return True

    def clear_checkpoint(self) -> None:
        self.checkpoints.clear()
        log("Saved session cleared.")

    # ------------------------------------------------------------------
    # Running
    # ------------------------------------------------------------------

    def _locate(self) -> object:
        try:
            handle = self.surface.locate()
        except WplaceBotError:
            raise
        except Exception as exc:
            raise SurfaceNotFoundError(f"locating the canvas failed: {exc}") from exc
        if handle is None:
            raise SurfaceNotFoundError("Canvas not found. Make sure the board is visible.")
        return handle

    def _downgrade(self, reason: str) -> None:
        self.config.auto_palette = False
        self.advisories.once(reason, ADVISORIES.get(reason, "Switching to MANUAL mode."))

    async def step(self) -> StepOutcome:
        """Attempt the head task. The cursor moves only once the attempt is done."""
        if self._cursor >= len(self._queue):
            raise WplaceBotError("no task left to draw")
        if self._handle is None:
            self._handle = self._locate()

        cfg = self.config
        task = self._queue[self._cursor]
        point = cfg.device_point(task)
        action: Optional[Action] = None

        if cfg.auto_palette:
            action = resolve(task.color, self.palette, cfg.locked_mode)
            if isinstance(action, Skip):
                self.advisories.once(action.reason, ADVISORIES[action.reason])
                self._cursor += 1
                await self._sleep(SKIP_YIELD_MS / 1000.0)
                return StepOutcome(task, action, None, False)
            if isinstance(action, Selected):
                try:
                    self.palette.select(action.entry)
                except Exception as exc:
                    raise PlacementError(
                        f"selecting swatch {action.entry.color} failed: {exc}"
                    ) from exc
                self.selected_colour = action.entry.color
                await self._sleep(cfg.settle_ms / 1000.0)
            elif isinstance(action, DeferToManual) and action.downgrade:
                self._downgrade(action.reason)

        try:
            self.surface.place(self._handle, point[0], point[1])
        except Exception as exc:
            raise PlacementError(
                f"placing ({task.x}, {task.y}) at {point} failed: {exc}"
            ) from exc
        self._cursor += 1
        if self.debug:
            debug_log(f"#{self._cursor} ({task.x},{task.y}) {task.color} -> {point}")
        return StepOutcome(task, action, point, True)

    def _progress(self) -> None:
        done = self._total - len(self.remaining)
        eta = len(self.remaining) * (self.config.delay_ms / 1000.0)
        log(f"[draw] {done:,}/{self._total:,} done  ETA {format_eta(eta)}")

    async def start(self) -> RunState:
        """
        Run until the queue is exhausted or stop() is called.

        Returns the final state. Raises SurfaceNotFoundError when the canvas
        cannot be located and PlacementError when a collaborator fails mid-run.
        Whatever escapes the loop leaves the run STOPPED with progress saved,
        the failed task still at the head of the checkpoint.
        """
        if self.is_running():
            log("Bot already running")
            return self._state
        if self._cursor >= len(self._queue):
            log("Load an image first")
            return self._state
        self._handle = self._locate()

        cfg = self.config
        if cfg.auto_palette and self.palette.is_empty():
            self._downgrade(EMPTY_PALETTE)
        if not cfg.is_calibrated():
            self.advisories.once(
                "no_cell",
                "Cell size not calibrated. Pixels may not line up with the board "
                "grid; set or calibrate the cell size for contiguous pixels.",
            )

        w, h = cfg.cell_size()
        print_config_line(
            "draw",
            [
                ("Image", cfg.image_name),
                ("Start", f"{cfg.start_x},{cfg.start_y}"),
                ("Delay ms", cfg.delay_ms),
                ("Cell", f"{w}x{h}"),
                ("Locked", cfg.locked_mode),
                ("Auto palette", cfg.auto_palette),
            ],
            debug=self.debug,
        )
        log(
            f"Bot started ({cfg.image_name}) from pixel "
            f"#{self._cursor + 1}/{len(self._queue)}"
        )

        self._stop_requested = False
        self._state = RunState.RUNNING
        t_start = time.perf_counter()
        try:
            while not self._stop_requested and self._cursor < len(self._queue):
                outcome = await self.step()
                if not outcome.placed:
                    continue
                if cfg.autosave_every > 0 and self._cursor % cfg.autosave_every == 0:
                    self.save_checkpoint()
                    self._progress()
                await self._sleep(cfg.delay_ms / 1000.0)
        except BaseException:
            self._state = RunState.STOPPED
            self.save_checkpoint()
            raise

        elapsed = format_seconds_compact(time.perf_counter() - t_start)
        if self._cursor >= len(self._queue):
            self._state = RunState.FINISHED
            log(f"Bot finished in {elapsed}. Clearing saved state.")
            self.checkpoints.clear()
        else:
            self._state = RunState.STOPPED
            log(f"Bot stopped after {elapsed}. Progress saved.")
            self.save_checkpoint()
        return self._state

    def stop(self) -> None:
        """Ask the loop to stop after the current task and save progress."""
        if not self.is_running():
            log("Not running")
        self._stop_requested = True
        if self.remaining:
            self.save_checkpoint()
        log("Stopped (state saved).")

    async def resume(self) -> RunState:
        """Continue the loaded queue, or the saved session when none is loaded."""
        if not self.remaining and not self.restore_checkpoint():
            log("No saved session")
            return self._state
        return await self.start()


__all__ = [
    "DrawableSurface",
    "Sleeper",
    "SessionConfig",
    "StepOutcome",
    "DrawingEngine",
    "calibrate_axis",
]
