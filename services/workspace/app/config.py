"""Runtime configuration resolved from the environment."""

from __future__ import annotations

import os
from pathlib import Path

from inkwell_observability import setup_logging, start_metrics_server

SERVICE_NAME = "workspace"

DATA_ROOT_ENV_VAR = "INKWELL_DATA_ROOT"
GENERATION_TIMEOUT_ENV_VAR = "INKWELL_GENERATION_TIMEOUT"
METRICS_PORT_ENV_VAR = "INKWELL_METRICS_PORT"
DEFAULT_GENERATION_TIMEOUT_SECONDS = 120.0


def data_root() -> Path:
    """Directory holding ``settings.json``, ``styles.json`` and ``books/``.

    Read on every call so a host process or test can redirect it at runtime.
    """

    configured = os.getenv(DATA_ROOT_ENV_VAR)
    if configured:
        return Path(configured).expanduser().resolve()
    return (Path.cwd() / "data").resolve()


def generation_timeout_seconds() -> float:
    raw = os.getenv(GENERATION_TIMEOUT_ENV_VAR, "")
    try:
        value = float(raw) if raw.strip() else DEFAULT_GENERATION_TIMEOUT_SECONDS
    except ValueError:
        return DEFAULT_GENERATION_TIMEOUT_SECONDS
    return value if value > 0 else DEFAULT_GENERATION_TIMEOUT_SECONDS


def metrics_port() -> int | None:
    raw = os.getenv(METRICS_PORT_ENV_VAR, "").strip()
    return int(raw) if raw.isdigit() and int(raw) > 0 else None


def configure_host(level: str | None = None) -> None:
    """Process start-up for a host embedding the engine.

    Installs JSON logging and, when ``INKWELL_METRICS_PORT`` is set, exposes
    Prometheus metrics on that port.
    """

    setup_logging(SERVICE_NAME, level)
    port = metrics_port()
    if port is not None:
        start_metrics_server(port)
