"""
Structured console logger with timing support.

Lines go to stderr with colours and are mirrored, ANSI-stripped,
into a per-context buffer.  When ``WRITE_TO_FILE`` is set each
fetch also gets its own log file under ``.logs/``.

All mutable state (timers, buffer, open log file) is held in one
``_FetchLog`` stored in a ``contextvars.ContextVar``, so concurrent
fetches served by the HTTP harness never interleave.
"""

from __future__ import annotations

import contextvars
import dataclasses
import os
import pathlib
import re
import sys
import time
from datetime import UTC, datetime
from typing import TextIO

_ANSI_PATTERN = re.compile(r"\033\[[0-9;]*m")


@dataclasses.dataclass
class _FetchLog:
    timers: dict[str, tuple[float, str]] = dataclasses.field(default_factory=dict)
    lines: list[str] = dataclasses.field(default_factory=list)
    file: TextIO | None = None


_state_var: contextvars.ContextVar[_FetchLog] = contextvars.ContextVar("netmonitor_log_state")


def _state() -> _FetchLog:
    """Return this context's log state, creating it on first use."""
    state = _state_var.get(None)
    if state is None:
        state = _FetchLog()
        _state_var.set(state)
    return state


def get_log_buffer() -> list[str]:
    """Return a copy of the ANSI-stripped lines logged in this context."""
    return list(_state().lines)


def clear_log_buffer() -> None:
    """Forget buffered lines and running timers before the next fetch."""
    state = _state()
    state.lines.clear()
    state.timers.clear()


def _emit(line: str) -> None:
    print(line, file=sys.stderr)
    plain = _ANSI_PATTERN.sub("", line)
    state = _state()
    state.lines.append(plain)
    if state.file is not None:
        print(plain, file=state.file, flush=True)


def _report_failure(message: str) -> None:
    print(f"{_colours['red']}✗ [Logger] {message}{_colours['reset']}", file=sys.stderr)


# ============================================================================
# File Output
# ============================================================================


def _write_to_file_enabled() -> bool:
    return os.environ.get("WRITE_TO_FILE", "").lower() == "true"


def _output_path(folder: str, domain: str, suffix: str, when: datetime) -> pathlib.Path:
    """Build ``<cwd>/<folder>/<domain>_<timestamp><suffix>``, creating the folder."""
    directory = pathlib.Path.cwd() / folder
    directory.mkdir(parents=True, exist_ok=True)
    stem = "".join(ch if ch.isalnum() or ch in ".-" else "_" for ch in domain.removeprefix("www."))
    return directory / f"{stem[:50]}_{when:%Y-%m-%d_%H-%M-%S}{suffix}"


def start_log_file(domain: str) -> str | None:
    """Open a log file for a fetch of *domain*.

    Returns:
        The path of the new file, or ``None`` when file logging
        is disabled or the file could not be opened.
    """
    if not _write_to_file_enabled():
        return None

    end_log_file()
    started = datetime.now(UTC)
    path = _output_path(".logs", domain, ".log", started)
    try:
        stream = path.open("a", encoding="utf-8")
    except OSError as exc:
        _report_failure(f"Failed to open log file: {exc}")
        return None

    banner = "=" * 80
    stream.write(f"\n{banner}\n  Fetch Log - {domain}\n  Started: {started.isoformat()}\n{banner}\n")
    _state().file = stream
    return str(path)


def end_log_file() -> None:
    """Close this context's log file, if one is open."""
    state = _state()
    stream, state.file = state.file, None
    if stream is None:
        return
    try:
        stream.close()
    except OSError as exc:
        _report_failure(f"Failed to close log file: {exc}")


def save_report_file(domain: str, report_json: str) -> str | None:
    """Save a serialised fetch report under ``.reports/``.

    Does nothing unless ``WRITE_TO_FILE`` is enabled.

    Args:
        domain: The fetched domain, used in the filename.
        report_json: The report rendered as JSON.

    Returns:
        The file path written, or ``None`` if skipped or failed.
    """
    if not _write_to_file_enabled():
        return None

    path = _output_path(".reports", domain, ".json", datetime.now(UTC))
    try:
        path.write_text(report_json, encoding="utf-8")
    except OSError as exc:
        _report_failure(f"Failed to save report: {exc}")
        return None
    return str(path)


# ============================================================================
# Formatting
# ============================================================================

_colours = {
    "reset": "\033[0m",
    "bright": "\033[1m",
    "dim": "\033[2m",
    "red": "\033[31m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "blue": "\033[34m",
    "magenta": "\033[35m",
    "cyan": "\033[36m",
    "gray": "\033[90m",
}

# level -> (colour, symbol)
_levels = {
    "info": ("cyan", "ℹ"),
    "success": ("green", "✓"),
    "warn": ("yellow", "⚠"),
    "error": ("red", "✗"),
    "debug": ("gray", "•"),
    "timing": ("magenta", "⏱"),
}

_MAX_VALUE_LENGTH = 200


def _paint(colour: str, text: object) -> str:
    return f"{_colours[colour]}{text}{_colours['reset']}"


def _clock(when: datetime | None = None) -> str:
    """Render *when* (default: now, UTC) as ``HH:MM:SS.mmm``."""
    when = when or datetime.now(UTC)
    return f"{when:%H:%M:%S}.{when.microsecond // 1000:03d}"


def _format_duration(ms: float) -> str:
    if ms >= 60_000:
        return f"{int(ms // 60_000)}m {(ms % 60_000) / 1000:.1f}s"
    if ms >= 1000:
        return f"{ms / 1000:.2f}s"
    return f"{int(ms)}ms"


def _format_value(value: object) -> str:
    """Colour a structured log value; long strings and containers are summarised."""
    match value:
        case None:
            return _paint("dim", "None")
        case bool():
            return _paint("green" if value else "red", value)
        case int() | float():
            return _paint("yellow", value)
        case str() if len(value) > _MAX_VALUE_LENGTH:
            return _paint("green", f'"{value[: _MAX_VALUE_LENGTH - 3]}..."')
        case str():
            return _paint("green", f'"{value}"')
        case list() | tuple() | set() | frozenset():
            return _paint("cyan", f"[{len(value)} items]")
        case dict():
            return _paint("cyan", f"{{{len(value)} keys}}")
    return str(value)


# ============================================================================
# Logger
# ============================================================================


class Logger:
    """Writes ``[time] symbol [Context] message key=value`` lines."""

    def __init__(self, context: str = "NetworkMonitor") -> None:
        self._context = context

    def _log(self, level: str, message: str, data: dict[str, object] | None = None) -> None:
        colour, symbol = _levels.get(level, _levels["info"])
        parts = [
            _paint("gray", f"[{_clock()}]"),
            _paint(colour, symbol),
            _paint("bright", f"[{self._context}]"),
            message,
        ]
        if data:
            parts.extend(f"{_paint('dim', f'{key}=')}{_format_value(val)}" for key, val in data.items())
        _emit(" ".join(parts))

    def info(self, message: str, data: dict[str, object] | None = None) -> None:
        self._log("info", message, data)

    def success(self, message: str, data: dict[str, object] | None = None) -> None:
        self._log("success", message, data)

    def warn(self, message: str, data: dict[str, object] | None = None) -> None:
        self._log("warn", message, data)

    def error(self, message: str, data: dict[str, object] | None = None) -> None:
        self._log("error", message, data)

    def debug(self, message: str, data: dict[str, object] | None = None) -> None:
        self._log("debug", message, data)

    def start_timer(self, label: str) -> None:
        """Start timing *label*; timers are scoped to this logger's context name."""
        _state().timers[f"{self._context}:{label}"] = (time.monotonic() * 1000, _clock())
        self._log("timing", f"Starting: {label}")

    def end_timer(self, label: str, message: str | None = None) -> float:
        """Stop timing *label*, log the elapsed time and return it in ms.

        Returns ``0.0`` (and logs a warning) if the timer was never started.
        """
        entry = _state().timers.pop(f"{self._context}:{label}", None)
        if entry is None:
            self.warn(f'Timer "{label}" was not started')
            return 0.0

        started_ms, started_at = entry
        elapsed = time.monotonic() * 1000 - started_ms
        self._log(
            "timing",
            f"{message or f'Completed: {label}'} {_paint('dim', 'took')}"
            f" {_paint('magenta', _format_duration(elapsed))} {_paint('dim', f'(started {started_at})')}",
        )
        return elapsed

    def section(self, title: str) -> None:
        """Emit a prominent divider announcing *title*."""
        rule = _paint("blue", "─" * 60)
        for line in ("", rule, _paint("blue", f"{_colours['bright']}  {title}"), rule, ""):
            _emit(line)


def create_logger(context: str) -> Logger:
    """Return a :class:`Logger` whose lines are tagged ``[context]``."""
    return Logger(context)
