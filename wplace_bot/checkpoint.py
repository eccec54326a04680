# wplace_bot/checkpoint.py
from __future__ import annotations

"""
Checkpoint persistence.

One JSON record per state key, holding the session configuration and the
tasks not yet attempted. The persisted cursor is always 0 because the
remaining list already excludes consumed tasks.

Every failure stays inside this module: save() logs and returns False,
load() returns None, clear() is best-effort.

Known limit: a remaining queue longer than the cap is cut to its first `cap`
tasks on save. If the process dies before a later autosave writes a shorter
remainder, the cut tail is gone from the checkpoint. The cut is logged with
the number of dropped tasks.

Record layout (version 1):
  version, imageName, startX, startY, delayMs, cursor, totalTasks,
  remainingQueue: [{x, y, color}], cellWidth, cellHeight, savedAt (epoch ms)
"""

import json
import math
import os
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Protocol, Union

from .constants import SAVE_CAP, SCHEMA_VERSION, STATE_DIR_ENV, STATE_KEY
from .core_types import SessionState
from .errors import TaskValidationError
from .tasks import normalise_tasks
from .utils import debug_log, epoch_millis, warn


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryStore:
    """Dict-backed store for tests and dry runs."""

    def __init__(self) -> None:
        self.data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def remove(self, key: str) -> None:
        self.data.pop(key, None)


def default_state_dir() -> Path:
    """$WPLACE_BOT_HOME, else ~/.wplace_bot."""
    env = os.environ.get(STATE_DIR_ENV)
    return Path(env).expanduser() if env else Path.home() / ".wplace_bot"


class JsonFileStore:
    """
    One file per key under a directory.

    Writes go to a .tmp sibling first, are flushed and fsynced, then renamed
    over the target, so a crash mid-write leaves the old record intact.
    """

    def __init__(self, directory: Union[str, Path, None] = None) -> None:
        self.directory = Path(directory) if directory is not None else default_state_dir()

    def path_for(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        path = self.path_for(key)
        tmp_path = path.with_suffix(".tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                f.write(value)
                f.flush()
                os.fsync(f.fileno())
            tmp_path.replace(path)
        except BaseException:
            try:
                tmp_path.unlink(missing_ok=True)
            except OSError:
                pass
            raise

    def remove(self, key: str) -> None:
        self.path_for(key).unlink(missing_ok=True)


def _as_int(value: Any, default: int) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if not math.isfinite(value):
        return default
    return int(value)


def _as_cell(value: Any) -> Optional[int]:
    cell = _as_int(value, 0)
    return cell if cell > 0 else None


class CheckpointStore:
    """Save, load and clear the session checkpoint under one key."""

    def __init__(
        self,
        store: KeyValueStore,
        key: str = STATE_KEY,
        cap: int = SAVE_CAP,
        clock: Callable[[], int] = epoch_millis,
    ) -> None:
        if cap < 1:
            raise ValueError("checkpoint cap must be >= 1")
        self.store = store
        self.key = key
        self.cap = cap
        self._clock = clock

    def to_record(self, state: SessionState) -> Dict[str, Any]:
        remaining = state.remaining
        if len(remaining) > self.cap:
            warn(
                f"Checkpoint holds only the first {self.cap:,} of {len(remaining):,} "
                f"remaining tasks; {len(remaining) - self.cap:,} are not saved"
            )
            remaining = remaining[: self.cap]
        return {
            "version": SCHEMA_VERSION,
            "imageName": state.image_name,
            "startX": int(state.start_x),
            "startY": int(state.start_y),
            "delayMs": int(state.delay_ms),
            "cursor": 0,
            "totalTasks": int(state.total_tasks),
            "remainingQueue": [t.to_record() for t in remaining],
            "cellWidth": state.cell_width,
            "cellHeight": state.cell_height,
            "savedAt": int(self._clock()),
        }

    def from_record(self, record: Any) -> Optional[SessionState]:
        if not isinstance(record, dict) or record.get("version") != SCHEMA_VERSION:
            return None
        queue = record.get("remainingQueue")
        if not isinstance(queue, list):
            return None
        try:
            remaining = normalise_tasks(queue)
        except TaskValidationError as exc:
            debug_log(f"checkpoint has a bad task ({exc}); ignoring it")
            return None
        image_name = record.get("imageName")
        return SessionState(
            image_name=image_name if isinstance(image_name, str) and image_name else "",
            start_x=_as_int(record.get("startX"), 0),
            start_y=_as_int(record.get("startY"), 0),
            delay_ms=max(0, _as_int(record.get("delayMs"), 0)),
            total_tasks=max(_as_int(record.get("totalTasks"), 0), len(remaining)),
            remaining=remaining[: self.cap],
            cell_width=_as_cell(record.get("cellWidth")),
            cell_height=_as_cell(record.get("cellHeight")),
            saved_at=_as_int(record.get("savedAt"), 0),
            cursor=0,
        )

    def save(self, state: SessionState) -> bool:
        """Overwrite the slot. Returns False (and logs) when the store fails."""
        try:
            self.store.set(self.key, json.dumps(self.to_record(state)))
        except Exception as exc:
            warn(f"saving checkpoint failed: {exc}")
            return False
        return True

    def load(self) -> Optional[SessionState]:
        """The saved session, or None for missing, unreadable or foreign records."""
        try:
            raw = self.store.get(self.key)
            if not raw:
                return None
            return self.from_record(json.loads(raw))
        except Exception as exc:
            warn(f"loading checkpoint failed: {exc}")
            return None

    def clear(self) -> None:
        try:
            self.store.remove(self.key)
        except Exception as exc:
            debug_log(f"clearing checkpoint failed: {exc}")


__all__ = [
    "KeyValueStore",
    "MemoryStore",
    "JsonFileStore",
    "default_state_dir",
    "CheckpointStore",
]
