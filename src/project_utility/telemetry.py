from __future__ import annotations

"""Telemetry events for the agent service: structlog JSONL file sink plus a Rich console sink."""

import json
import os
import threading
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

import structlog
from rich.console import Console
from rich.table import Table
from rich.text import Text

from project_utility.clock import utc_iso
from project_utility.config.paths import get_log_root

TELEMETRY_FILENAME = "telemetry.jsonl"

_SEVERITY = {"debug": 10, "info": 20, "warning": 30, "error": 40, "critical": 50}
_CONSOLE_STYLES = {
    "debug": "dim",
    "info": "cyan",
    "warning": "yellow",
    "error": "bold red",
    "critical": "bold white on red",
}
_SUMMARY_KEYS = ("provider", "model", "message_count", "code", "status_code", "latency_ms")

Listener = Callable[[Mapping[str, Any]], None]


def _severity(level: str) -> int:
    return _SEVERITY.get(level, _SEVERITY["info"])


def _clip(value: str, limit: int = 160) -> str:
    return value if len(value) <= limit else value[: limit - 3] + "..."


def redact(payload: Mapping[str, Any], keys: Sequence[str]) -> Dict[str, Any]:
    """Copy of `payload` with the named values clipped for display."""

    shown = dict(payload)
    for key in keys:
        if shown.get(key) is not None:
            shown[key] = _clip(str(shown[key]))
    return shown


class JsonlSink:
    def __init__(self, path: Path) -> None:
        self.path = path
        self._lock = threading.Lock()
        self._handle = path.open("a", encoding="utf-8")
        self._logger = structlog.wrap_logger(
            structlog.WriteLoggerFactory(file=self._handle)(),
            processors=[
                structlog.processors.dict_tracebacks,
                structlog.processors.JSONRenderer(ensure_ascii=False),
            ],
        )

    def write(self, event: Mapping[str, Any]) -> None:
        fields = {key: value for key, value in event.items() if key != "event_type"}
        with self._lock:
            self._logger.info(event["event_type"], **fields)

    @property
    def closed(self) -> bool:
        return self._handle.closed

    def close(self) -> None:
        with self._lock:
            self._handle.close()


class ConsoleSink:
    def __init__(self, console: Optional[Console] = None) -> None:
        self._console = console or Console(stderr=True)

    def write(self, event: Mapping[str, Any]) -> None:
        level = str(event.get("level", "info"))
        payload = event.get("payload") or {}
        parts = [f"{key}={event[key]}" for key in ("request_id", "conversation_id") if event.get(key)]
        parts.extend(f"{key}={payload[key]}" for key in _SUMMARY_KEYS if payload.get(key) is not None)
        grid = Table.grid(padding=(0, 1))
        grid.add_row(
            Text(f"{level.upper():<8} {event.get('event_type')}", style=_CONSOLE_STYLES.get(level, "white")),
            Text(str(event.get("timestamp", "")), style="dim"),
        )
        grid.add_row(Text(" ".join(parts) or "-", style="dim"))
        if payload.get("error"):
            grid.add_row(Text(f"error={payload['error']}", style="red"))
        self._console.print(grid)


class TelemetryEmitter:
    """
    Build one event dict per call and hand it to the file sink, the console sink and listeners.

    The file sink only exists after `configure()`. Console output is gated by
    `TELEMETRY_CONSOLE_LEVEL` (default warning), the file by `TELEMETRY_FILE_LEVEL` (default info).
    Listeners always receive the full, unredacted event.
    """

    def __init__(self, *, console: Optional[ConsoleSink] = None) -> None:
        self._console = console or ConsoleSink()
        self._file: Optional[JsonlSink] = None
        self._listeners: List[Listener] = []
        self._listener_lock = threading.Lock()
        self._console_threshold = _severity(os.getenv("TELEMETRY_CONSOLE_LEVEL", "warning").lower())
        self._file_threshold = _severity(os.getenv("TELEMETRY_FILE_LEVEL", "info").lower())

    def configure(self, *, log_root: Optional[Path] = None) -> None:
        root = (log_root or get_log_root()).resolve()
        root.mkdir(parents=True, exist_ok=True)
        previous, self._file = self._file, JsonlSink(root / TELEMETRY_FILENAME)
        if previous is not None:
            previous.close()

    @property
    def configured(self) -> bool:
        return self._file is not None

    def add_listener(self, listener: Listener) -> None:
        with self._listener_lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        with self._listener_lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def emit(
        self,
        event_type: str,
        *,
        level: str = "info",
        payload: Optional[Mapping[str, Any]] = None,
        sensitive: Optional[Sequence[str]] = None,
        **fields: Any,
    ) -> None:
        level = level.lower()
        event: Dict[str, Any] = {
            "event_type": event_type,
            "level": level,
            "timestamp": utc_iso(),
            **fields,
            "payload": dict(payload or {}),
        }
        severity = _severity(level)
        if self._file is not None and severity >= self._file_threshold:
            self._file.write(event)
        if severity >= self._console_threshold:
            self._console.write({**event, "payload": redact(event["payload"], sensitive or ())})
        self._notify(event)

    def _notify(self, event: Mapping[str, Any]) -> None:
        with self._listener_lock:
            listeners = tuple(self._listeners)
        if not listeners:
            return
        snapshot = json.loads(json.dumps(event, ensure_ascii=False, default=str))
        for listener in listeners:
            listener(snapshot)


_EMITTER: Optional[TelemetryEmitter] = None
_EMITTER_LOCK = threading.Lock()


def get_telemetry() -> TelemetryEmitter:
    global _EMITTER
    with _EMITTER_LOCK:
        if _EMITTER is None:
            _EMITTER = TelemetryEmitter()
        return _EMITTER


def setup_telemetry(log_root: Optional[Path] = None) -> None:
    get_telemetry().configure(log_root=log_root)


def emit(event_type: str, **kwargs: Any) -> None:
    get_telemetry().emit(event_type, **kwargs)


def register_listener(listener: Listener) -> None:
    get_telemetry().add_listener(listener)


def unregister_listener(listener: Listener) -> None:
    get_telemetry().remove_listener(listener)


__all__ = [
    "ConsoleSink",
    "JsonlSink",
    "TelemetryEmitter",
    "emit",
    "get_telemetry",
    "redact",
    "register_listener",
    "setup_telemetry",
    "unregister_listener",
]
