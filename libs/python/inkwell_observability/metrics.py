"""Prometheus instruments for engine stages and generation calls."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from prometheus_client import Counter, Histogram, start_http_server

if TYPE_CHECKING:  # pragma: no cover - imported for type checking only
    from inkwell_providers.base import ProviderResponse


STAGE_DURATION = Histogram(
    "inkwell_stage_duration_seconds",
    "Wall time of planning, drafting, reconciliation and lore stages",
    labelnames=("service", "stage", "status"),
)

GENERATION_CALLS = Counter(
    "inkwell_generation_calls_total",
    "Generation service calls by outcome",
    labelnames=("service", "stage", "provider", "outcome"),
)

GENERATION_TOKENS = Counter(
    "inkwell_generation_tokens_total",
    "Tokens billed by the generation service",
    labelnames=("service", "provider", "direction"),
)

GENERATION_COST = Counter(
    "inkwell_generation_cost_usd_total",
    "Estimated generation cost in USD",
    labelnames=("service", "provider"),
)

GENERATION_LATENCY = Histogram(
    "inkwell_generation_latency_seconds",
    "Provider round-trip latency",
    labelnames=("service", "provider"),
    buckets=(0.5, 1, 2.5, 5, 10, 20, 40, 60, 120, float("inf")),
)

CHAPTER_TRANSITIONS = Counter(
    "inkwell_chapter_status_transitions_total",
    "Outline node status changes made by the chapter generator",
    labelnames=("service", "status"),
)

_SERVERS: set[tuple[str, int]] = set()


def start_metrics_server(port: int, addr: str = "0.0.0.0") -> None:
    """Serve ``/metrics`` from a background thread; repeat calls are no-ops."""

    if (addr, port) in _SERVERS:
        return
    start_http_server(port, addr=addr)
    _SERVERS.add((addr, port))


def observe_stage_duration(
    stage: str,
    duration_seconds: float,
    *,
    service_name: str,
    status: str = "success",
) -> None:
    STAGE_DURATION.labels(service_name, stage, status).observe(max(duration_seconds, 0.0))


def observe_provider_response(
    *,
    stage: str,
    provider: str,
    service_name: str,
    response: Optional["ProviderResponse"],
) -> None:
    """Count a successful call with its token usage, latency and cost."""

    GENERATION_CALLS.labels(service_name, stage, provider, "success").inc()
    if response is None:
        return

    for direction, tokens in (
        ("prompt", response.prompt_tokens),
        ("completion", response.completion_tokens),
    ):
        if tokens and tokens > 0:
            GENERATION_TOKENS.labels(service_name, provider, direction).inc(tokens)
    if response.latency_ms is not None and response.latency_ms >= 0:
        GENERATION_LATENCY.labels(service_name, provider).observe(response.latency_ms / 1000)
    if response.cost_usd:
        GENERATION_COST.labels(service_name, provider).inc(response.cost_usd)


def observe_generation_failure(
    *, stage: str, provider: str, service_name: str, reason: str
) -> None:
    GENERATION_CALLS.labels(service_name, stage, provider, reason).inc()


def observe_chapter_status(status: str, *, service_name: str) -> None:
    CHAPTER_TRANSITIONS.labels(service_name, status).inc()
