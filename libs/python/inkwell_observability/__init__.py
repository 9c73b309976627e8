"""Logging and metrics shared by the Inkwell engine."""

from .logging import current_log_context, log_context, setup_logging
from .metrics import (
    observe_chapter_status,
    observe_generation_failure,
    observe_provider_response,
    observe_stage_duration,
    start_metrics_server,
)

__all__ = [
    "setup_logging",
    "log_context",
    "current_log_context",
    "start_metrics_server",
    "observe_chapter_status",
    "observe_generation_failure",
    "observe_provider_response",
    "observe_stage_duration",
]
