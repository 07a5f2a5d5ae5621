"""
Rich-backed logging for the agent service.

`configure_logging()` routes INFO-and-below records to a Rich console renderer, WARNING-and-above to
a throttled Rich alert renderer, and both bands into rotating files under the log root. Pipeline
modules attach identifiers through `extra=ContextBridge.log_extra(...)`; the keys listed in
`EXTRA_KEYS` are rendered under the message.
"""

from __future__ import annotations

import logging
import time
import traceback
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from rich.console import Console
from rich.text import Text

from project_utility.config.paths import get_log_root
from project_utility.telemetry import setup_telemetry

INFO_LOG_FILENAME = "agent-info.log"
ERROR_LOG_FILENAME = "agent-error.log"

EXTRA_KEYS = (
    "request_id",
    "conversation_id",
    "provider",
    "model",
    "message_count",
    "batch_id",
    "batch_index",
    "credential",
    "status_code",
    "latency_ms",
)

_LEVEL_STYLES = {
    logging.DEBUG: ("dim", "dim"),
    logging.INFO: ("bold cyan", "default"),
    logging.WARNING: ("bold yellow", "yellow"),
    logging.ERROR: ("bold red", "red"),
    logging.CRITICAL: ("bold white on red", "red"),
}

_configured = False


def _record_fields(record: logging.LogRecord) -> List[Tuple[str, str]]:
    fields = [
        (key, str(getattr(record, key)))
        for key in EXTRA_KEYS
        if getattr(record, key, None) not in (None, "")
    ]
    if record.exc_info:
        fields.append(("error", "".join(traceback.format_exception(*record.exc_info)).rstrip()))
    elif getattr(record, "error", None) is not None:
        fields.append(("error", str(record.error)))  # type: ignore[attr-defined]
    return fields


def _render(record: logging.LogRecord, message: str) -> Text:
    label_style, message_style = _LEVEL_STYLES.get(record.levelno, ("white", "default"))
    stamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S.%f")[:-3]
    text = Text.assemble(
        (stamp, "dim"),
        " ",
        (f"{record.levelname:<8}", label_style),
        " ",
        (record.name, "bold"),
        "  ",
        (message, message_style),
    )
    fields = _record_fields(record)
    for position, (key, value) in enumerate(fields, start=1):
        branch = "└─" if position == len(fields) else "├─"
        indent = "\n" + " " * 8
        text.append(f"\n    {branch} {key}=", style="dim")
        text.append(value.replace("\n", indent), style="italic red" if key == "error" else "white")
    return text


class _AlertThrottle:
    """Fold repeats of the same alert inside `window` seconds into a counter on the next print."""

    def __init__(self, window: float = 60.0, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._window = window
        self._clock = clock
        self._seen: Dict[str, Tuple[float, int]] = {}

    def admit(self, record: logging.LogRecord) -> Optional[int]:
        key = "|".join(
            (
                record.name,
                record.getMessage(),
                str(getattr(record, "conversation_id", "")),
            )
        )
        now = self._clock()
        last, folded = self._seen.get(key, (0.0, 0))
        if key in self._seen and now - last < self._window:
            self._seen[key] = (last, folded + 1)
            return None
        self._evict(now, keep=key)
        self._seen[key] = (now, 0)
        return folded

    def _evict(self, now: float, *, keep: str) -> None:
        expired = [
            key for key, (last, _) in self._seen.items() if key != keep and now - last >= self._window
        ]
        for key in expired:
            del self._seen[key]

    def __len__(self) -> int:
        return len(self._seen)


class _RichBandHandler(logging.Handler):
    """Print records whose level falls in `[low, high]`; alert bands pass through a throttle."""

    def __init__(
        self,
        console: Console,
        *,
        low: int,
        high: int = logging.CRITICAL,
        throttle: Optional[_AlertThrottle] = None,
    ) -> None:
        super().__init__(level=low)
        self._console = console
        self._high = high
        self._throttle = throttle

    def emit(self, record: logging.LogRecord) -> None:
        if record.levelno > self._high:
            return
        try:
            message = record.getMessage()
            if self._throttle is not None:
                folded = self._throttle.admit(record)
                if folded is None:
                    return
                if folded:
                    message = f"{message} (+{folded} suppressed)"
            self._console.print(_render(record, message))
        except Exception:
            self.handleError(record)


class _FileFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        suffix = " ".join(f"{key}={value}" for key, value in _record_fields(record) if key != "error")
        return f"{line} {suffix}" if suffix else line


def _file_handler(path: Path, *, low: int, high: Optional[int] = None) -> logging.Handler:
    handler = RotatingFileHandler(path, maxBytes=2 * 1024 * 1024, backupCount=10, encoding="utf-8")
    handler.setLevel(low)
    handler.setFormatter(_FileFormatter("%(asctime)s %(levelname)-8s %(name)s :: %(message)s", "%Y-%m-%d %H:%M:%S"))
    if high is not None:
        handler.addFilter(lambda record: record.levelno <= high)
    return handler


def configure_logging(
    *,
    log_root: Optional[Path] = None,
    level: int = logging.INFO,
    extra_loggers: Optional[Dict[str, Dict[str, Any]]] = None,
) -> Dict[str, logging.Logger]:
    """
    Install console and file handlers on the root logger and start the telemetry file sink.

    Only the first call installs handlers. Loggers named in `extra_loggers` get their `level` and
    `handlers` options applied on every call and are returned by name.
    """

    global _configured
    if not _configured:
        root = (log_root or get_log_root()).resolve()
        root.mkdir(parents=True, exist_ok=True)
        setup_telemetry(log_root=root)
        console = Console()
        logging.captureWarnings(True)
        logging.basicConfig(
            level=level,
            handlers=[
                _RichBandHandler(console, low=logging.DEBUG, high=logging.INFO),
                _RichBandHandler(console, low=logging.WARNING, throttle=_AlertThrottle()),
                _file_handler(root / INFO_LOG_FILENAME, low=logging.DEBUG, high=logging.INFO),
                _file_handler(root / ERROR_LOG_FILENAME, low=logging.WARNING),
            ],
        )
        _configured = True

    loggers: Dict[str, logging.Logger] = {}
    for name, options in (extra_loggers or {}).items():
        logger = logging.getLogger(name)
        if "level" in options:
            logger.setLevel(options["level"])
        for handler in options.get("handlers", ()):
            logger.addHandler(handler)
        loggers[name] = logger
    return loggers


__all__ = ["EXTRA_KEYS", "configure_logging"]
