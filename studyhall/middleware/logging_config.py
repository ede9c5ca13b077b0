"""
Logging setup for the admissions service.

    production   one JSON object per line on stderr
    development  short coloured lines on stderr
    LOG_LEVEL    overrides the level (DEBUG in dev/test, INFO in prod)
    LOG_FORMAT   "json" | "readable", overrides the environment default

Loggers are plain ``logging.getLogger(__name__)``. Context travels through
``extra={...}``; the keys in CONTEXT_FIELDS are lifted into the JSON payload
and the library id is shown in the readable form as ``[lib=N]``.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone

CONTEXT_FIELDS = (
    "request_id",
    "method",
    "path",
    "status",
    "duration_ms",
    "remote_addr",
    "library_id",
    "actor_id",
    "request_pk",
    "student_id",
)

_QUIET_LOGGERS = ("werkzeug", "sqlalchemy.engine")


class JSONFormatter(logging.Formatter):
    """Machine-readable records for log shipping."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "where": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        payload.update({
            key: getattr(record, key)
            for key in CONTEXT_FIELDS
            if getattr(record, key, None) is not None
        })
        if record.exc_info and record.exc_info[0] is not None:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class ReadableFormatter(logging.Formatter):
    """Compact coloured lines for a developer terminal."""

    _LEVEL_COLOURS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    _RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        colour = self._LEVEL_COLOURS.get(record.levelno, "")
        stamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        parts = [f"{colour}{stamp} {record.levelname:<8}{self._RESET} {record.name}"]
        library_id = getattr(record, "library_id", None)
        if library_id is not None:
            parts.append(f"[lib={library_id}]")
        line = " ".join(parts) + f": {record.getMessage()}"
        duration_ms = getattr(record, "duration_ms", None)
        if duration_ms is not None:
            line += f" ({duration_ms:.0f}ms)"
        if record.exc_info and record.exc_info[0] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(app):
    """Install a single stderr handler on the root logger for *app*."""
    testing = bool(app.config.get("TESTING"))
    production = not app.config.get("DEBUG") and not testing

    level_name = os.getenv("LOG_LEVEL", "INFO" if production else "DEBUG").upper()
    level = getattr(logging, level_name, logging.INFO)
    fmt = os.getenv("LOG_FORMAT", "json" if production else "readable").lower()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter() if fmt == "json" else ReadableFormatter())

    root = logging.getLogger()
    # create_app runs once per test session; never stack handlers
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    app.logger.setLevel(level)

    if not testing:
        app.logger.info("Logging ready (level=%s, format=%s)", level_name, fmt)
