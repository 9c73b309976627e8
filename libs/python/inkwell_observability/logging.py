"""JSON logging with per-task context fields."""

from __future__ import annotations

import json
import logging
import logging.config
import os
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Mapping

LOG_LEVEL_ENV_VAR = "INKWELL_LOG_LEVEL"
CAPTURE_WARNINGS_ENV_VAR = "INKWELL_CAPTURE_WARNINGS"

# Client libraries that log every HTTP exchange at INFO.
NOISY_LOGGERS = ("httpx", "httpcore", "openai", "anthropic", "google_genai")

_LOG_CONTEXT: ContextVar[Dict[str, Any]] = ContextVar("inkwell_log_context", default={})

# Attributes present on every LogRecord; anything else arrived via ``extra``.
_STANDARD_ATTRS = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}


def current_log_context() -> Mapping[str, Any]:
    return dict(_LOG_CONTEXT.get())


@contextmanager
def log_context(**fields: Any) -> Iterator[None]:
    """Bind ``fields`` to every record logged inside the block.

    Nested blocks add to the outer context; a ``None`` value unbinds a key.
    The context follows the current asyncio task.
    """

    merged = dict(_LOG_CONTEXT.get())
    for key, value in fields.items():
        if value is None:
            merged.pop(key, None)
        else:
            merged[key] = value
    token = _LOG_CONTEXT.set(merged)
    try:
        yield
    finally:
        _LOG_CONTEXT.reset(token)


class ContextFilter(logging.Filter):
    """Copies the bound context and the service name onto each record."""

    def __init__(self, service_name: str) -> None:
        super().__init__()
        self.service_name = service_name

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _LOG_CONTEXT.get().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        if getattr(record, "service", None) is None:
            record.service = self.service_name
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per record: core fields, then context and extras."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(
                timespec="milliseconds"
            ),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key in _STANDARD_ATTRS or key.startswith("_") or value is None:
                continue
            payload[key] = value if _json_safe(value) else repr(value)

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = self.formatStack(record.stack_info)
        return json.dumps(payload, ensure_ascii=False)


def _json_safe(value: Any) -> bool:
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return False
    return True


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in {"1", "true", "t", "yes", "y"}


def setup_logging(
    service_name: str,
    level: str | int | None = None,
    *,
    capture_warnings: bool | None = None,
    stream: Any = None,
) -> None:
    """Route the root logger through a JSON handler on ``stream`` (stdout).

    Safe to call again: the handler is replaced rather than duplicated.
    """

    handlers = ["default"]
    quiet = {name: {"level": "WARNING"} for name in NOISY_LOGGERS}
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"json": {"()": JsonFormatter}},
            "filters": {"context": {"()": ContextFilter, "service_name": service_name}},
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "stream": stream or sys.stdout,
                    "formatter": "json",
                    "filters": ["context"],
                }
            },
            "root": {
                "level": level or os.getenv(LOG_LEVEL_ENV_VAR, "INFO"),
                "handlers": handlers,
            },
            "loggers": quiet,
        }
    )

    if capture_warnings is None:
        capture_warnings = _env_flag(CAPTURE_WARNINGS_ENV_VAR)
    logging.captureWarnings(capture_warnings)
