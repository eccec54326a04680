# wplace_bot/utils.py
from __future__ import annotations

"""
Shared utilities for wplace_bot.

Includes duration formatting for progress lines, tidy console logging, and a
small once-only advisory helper used by the drawing engine.
"""

import math
import sys
import time
from typing import Any, Iterable, List, Optional, Set, Tuple


#  Time formatting


def format_seconds_compact(seconds: float) -> str:
    """Elapsed run time: 12.5ms, 3.204s or 4m 2.0s."""
    if seconds < 1.0:
        return f"{seconds * 1000.0:.1f}ms"
    if seconds < 60.0:
        return f"{seconds:.3f}s"
    minutes = int(seconds // 60)
    return f"{minutes}m {seconds - 60 * minutes:.1f}s"


def format_eta(seconds: Optional[float]) -> str:
    """Remaining time as 1h 5m, 4m 10s or 9s; --:-- when unknown."""
    if seconds is None or not math.isfinite(seconds) or seconds < 0:
        return "--:--"
    total = int(round(seconds))
    if total >= 3600:
        return f"{total // 3600}h {(total % 3600) // 60}m"
    if total >= 60:
        return f"{total // 60}m {total % 60}s"
    return f"{total}s"


def epoch_millis() -> int:
    """Wall-clock time in integer milliseconds since the epoch."""
    return int(time.time() * 1000)


# Pretty logging


def format_bool_on_off(value: Any) -> str:
    """Booleans read as on/off in config lines."""
    if isinstance(value, bool):
        return "on" if value else "off"
    return str(value)


def format_number_compact(value: Any) -> str:
    """Pretty number: 1,234 style for ints; compact for floats; passthrough otherwise."""
    if isinstance(value, bool):
        return format_bool_on_off(value)
    if isinstance(value, int):
        return f"{value:,}"
    if isinstance(value, float):
        return f"{value:.3f}".rstrip("0").rstrip(".")
    if value is None:
        return "-"
    return str(value)


def key_value_pairs_to_string(
    pairs: Iterable[Tuple[str, Any]], sep: str = "  ", eq: str = ": "
) -> str:
    """Format (name, value) pairs as 'Name: value' blocks separated by sep."""
    return sep.join(f"{name}{eq}{format_number_compact(value)}" for name, value in pairs)


def print_config_line(
    section: str, pairs: Iterable[Tuple[str, Any]], debug: bool = False
) -> None:
    """
    Emit a single human-readable config line, e.g.:
      [draw] Start: 120,300  Delay: 300  Cell: 1x1  Locked: map  Auto palette: on
    Routes to debug_log() when debug=True, else to log().
    """
    line = f"[{section}] {key_value_pairs_to_string(pairs)}"
    (debug_log if debug else log)(line)


def print_banner(title: str) -> None:
    """Section banner."""
    print(f"\n=== {title} ===", flush=True)


def enable_line_buffered_stdout() -> None:
    """Line-buffered stdout where supported, so progress shows up live."""
    reconfig = getattr(sys.stdout, "reconfigure", None)
    if callable(reconfig):
        try:
            reconfig(line_buffering=True, write_through=True)
        except (OSError, ValueError):
            pass


def log(message: str) -> None:
    """Plain log line."""
    print(message, flush=True)


def debug_log(message: str) -> None:
    """Debug log line."""
    print(f"[debug] {message}", flush=True)


def warn(message: str) -> None:
    """Warning log line."""
    print(f"[warn] {message}", flush=True)


def error(message: str) -> None:
    """Error line on stderr."""
    print(f"[error] {message}", file=sys.stderr, flush=True)


class Advisories:
    """Remembers which one-time warnings were already shown."""

    def __init__(self) -> None:
        self._shown: Set[str] = set()

    def once(self, key: str, message: str) -> bool:
        """Warn with message the first time key is seen. Returns True if printed."""
        if key in self._shown:
            return False
        self._shown.add(key)
        warn(message)
        return True

    def shown(self) -> List[str]:
        return sorted(self._shown)

    def reset(self, key: Optional[str] = None) -> None:
        if key is None:
            self._shown.clear()
        else:
            self._shown.discard(key)


__all__ = [
    "format_seconds_compact",
    "format_eta",
    "epoch_millis",
    "format_bool_on_off",
    "format_number_compact",
    "key_value_pairs_to_string",
    "print_config_line",
    "print_banner",
    "enable_line_buffered_stdout",
    "log",
    "debug_log",
    "warn",
    "error",
    "Advisories",
]
