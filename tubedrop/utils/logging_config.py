"""Logging setup for tubedrop entrypoints.

Library modules only ever call ``logging.getLogger(__name__)``.  The
entrypoint (``scripts/run_schedule.py`` or an embedding shell) calls
:func:`setup_logging` once, which attaches a console and/or file handler
to the root logger.  Records carry the fields pushed with
:func:`push_context` (``app``, ``command``, ``mode`` ...), so a log line
can be traced back to the schedule run that produced it.

Public API:
    setup_logging(log_level="INFO", context={"app": "run_schedule"})
    get_logger(name)
    push_context(mode="PWM")
    pop_context(keys=["mode"])
    install_excepthook()

Line formats:
    human: 2026-10-19T13:45:12.345Z | INFO     | app=run_schedule | 12 drops
    json:  {"t": "...", "lvl": "INFO", "name": "...", "pid": 1, "msg": "12 drops"}

Calling :func:`setup_logging` again replaces the handlers it installed
before; handlers added by other code are left alone.
"""

import contextvars
import json
import logging
import logging.handlers
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

_context_var: contextvars.ContextVar = contextvars.ContextVar(
    'tubedrop_log_context', default={}
)

_configured = False
_installed: List[logging.Handler] = []

_LEVEL_COLORS = {
    'DEBUG': '\033[36m',
    'INFO': '\033[32m',
    'WARNING': '\033[33m',
    'ERROR': '\033[31m',
    'CRITICAL': '\033[35m',
}
_RESET = '\033[0m'

DEFAULT_ROTATE_BYTES = 5_000_000
DEFAULT_ROTATE_BACKUPS = 3


class ContextFormatter(logging.Formatter):
    """Render records as human-readable or JSON lines.

    Parameters
    ----------
    fmt_mode : str
        ``"human"`` or ``"json"``.
    use_color : bool
        Color the level name; only honored when stderr is a terminal.
    tz : str
        ``"UTC"`` or ``"local"``.
    """

    def __init__(self, fmt_mode: str = "human", use_color: bool = True, tz: str = "UTC"):
        super().__init__()
        if fmt_mode not in ("human", "json"):
            raise ValueError(f"Unknown log format: {fmt_mode!r}")
        self.fmt_mode = fmt_mode
        self.use_color = use_color and sys.stderr.isatty()
        self.tz = tz

    def _timestamp(self, record: logging.LogRecord) -> datetime:
        if self.tz == "UTC":
            return datetime.fromtimestamp(record.created, tz=timezone.utc)
        return datetime.fromtimestamp(record.created)

    def format(self, record: logging.LogRecord) -> str:
        ts = self._timestamp(record)
        fields = dict(_context_var.get())
        if self.fmt_mode == "json":
            return self._json_line(record, ts, fields)
        return self._human_line(record, ts, fields)

    def _json_line(self, record: logging.LogRecord, ts: datetime, fields: Dict[str, Any]) -> str:
        entry: Dict[str, Any] = {
            't': ts.isoformat(),
            'lvl': record.levelname,
            'name': record.name,
            'pid': os.getpid(),
            'msg': record.getMessage(),
        }
        entry.update(fields)
        if record.exc_info:
            entry['exc'] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)

    def _human_line(self, record: logging.LogRecord, ts: datetime, fields: Dict[str, Any]) -> str:
        stamp = ts.strftime('%Y-%m-%dT%H:%M:%S.') + f"{ts.microsecond // 1000:03d}Z"
        level = f"{record.levelname:8s}"
        if self.use_color and record.levelname in _LEVEL_COLORS:
            level = f"{_LEVEL_COLORS[record.levelname]}{level}{_RESET}"

        segments = [stamp, level]
        if fields:
            segments.append(' '.join(f"{k}={v}" for k, v in fields.items()))
        segments.append(record.getMessage())
        text = ' | '.join(segments)

        if record.exc_info:
            text = f"{text}\n{self.formatException(record.exc_info)}"
        return text


def _parse_level(name: str) -> int:
    level = logging.getLevelName(str(name).upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {name!r}")
    return level


def _file_handler(
    log_file: str,
    rotate: Optional[Dict[str, Any]],
) -> logging.Handler:
    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    if not rotate:
        return logging.FileHandler(path, encoding="utf-8")
    return logging.handlers.RotatingFileHandler(
        path,
        maxBytes=int(rotate.get("max_bytes", DEFAULT_ROTATE_BYTES)),
        backupCount=int(rotate.get("backup_count", DEFAULT_ROTATE_BACKUPS)),
        encoding="utf-8",
    )


def _remove_installed(root: logging.Logger) -> None:
    while _installed:
        handler = _installed.pop()
        root.removeHandler(handler)
        handler.close()


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    *,
    json: bool = False,
    color: bool = True,
    to_stderr: bool = True,
    rotate: Optional[Dict[str, Any]] = None,
    tz: str = "UTC",
    capture_warnings: bool = True,
    quiet_libs: Optional[List[str]] = None,
    context: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Attach tubedrop handlers to the root logger.

    Parameters
    ----------
    log_level : str
        Level name, case-insensitive.
    log_file : str, optional
        Also log to this file (parents are created).
    json : bool
        JSON lines on every handler instead of the human format.
    color : bool
        Color level names on the console.
    to_stderr : bool
        Attach a stderr handler.
    rotate : dict, optional
        ``{"max_bytes": ..., "backup_count": ...}`` to rotate *log_file*.
    tz : str
        ``"UTC"`` or ``"local"`` timestamps.
    capture_warnings : bool
        Route ``warnings.warn`` through logging.
    quiet_libs : list[str], optional
        Loggers raised to WARNING, e.g. ``["PIL"]``.
    context : dict, optional
        Fields pushed onto every following record.

    Returns
    -------
    dict
        ``{"handlers": [...]}``, the handlers installed by this call.

    Raises
    ------
    ValueError
        If *log_level* is not a logging level name.
    """
    global _configured

    level = _parse_level(log_level)
    root = logging.getLogger()
    _remove_installed(root)
    root.setLevel(level)

    mode = "json" if json else "human"
    if to_stderr:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(ContextFormatter(mode, color, tz))
        _installed.append(console)
    if log_file:
        handler = _file_handler(log_file, rotate)
        handler.setFormatter(ContextFormatter(mode, False, tz))
        _installed.append(handler)
    for handler in _installed:
        root.addHandler(handler)

    for lib in quiet_libs or ():
        logging.getLogger(lib).setLevel(logging.WARNING)
    if capture_warnings:
        logging.captureWarnings(True)
    if context:
        push_context(**context)

    _configured = True
    root.debug("Logging configured: level=%s format=%s file=%s", log_level, mode, log_file)
    return {'handlers': list(_installed)}


def get_logger(name: str) -> logging.Logger:
    """Shorthand for ``logging.getLogger(name)``."""
    return logging.getLogger(name)


def push_context(**kwargs: Any) -> None:
    """Merge *kwargs* into the fields attached to every record.

    Examples
    --------
    >>> push_context(app="run_schedule", mode="DITHER")
    >>> logger.info("Started")  # ... | app=run_schedule mode=DITHER | Started
    """
    _context_var.set({**_context_var.get(), **kwargs})


def pop_context(keys: Optional[List[str]] = None) -> None:
    """Drop the given context fields, or all of them when *keys* is None."""
    if keys is None:
        _context_var.set({})
        return
    remaining = {k: v for k, v in _context_var.get().items() if k not in keys}
    _context_var.set(remaining)


def install_excepthook() -> None:
    """Route uncaught exceptions (other than Ctrl+C) to the root logger."""
    def _hook(exc_type, exc_value, exc_tb):
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_tb)
            return
        logging.getLogger("tubedrop").critical(
            "Uncaught exception", exc_info=(exc_type, exc_value, exc_tb)
        )

    sys.excepthook = _hook
