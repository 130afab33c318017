"""Observability helpers for tabrelay."""

from __future__ import annotations

import logging

import structlog
from prometheus_client import Counter, Histogram

_logger_configured = False


def configure_logging(level: int | str = logging.INFO) -> None:
    global _logger_configured  # noqa: PLW0603 - module-level guard
    if _logger_configured:
        return
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(level=level, format="%(message)s")
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _logger_configured = True


def bind_correlation_id(correlation_id: str) -> None:
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)


def clear_correlation_id() -> None:
    structlog.contextvars.clear_contextvars()


def get_logger(name: str = "tabrelay") -> structlog.BoundLogger:
    configure_logging()
    return structlog.get_logger(name)


class PipelineMetrics:
    """Prometheus metrics for the request pipelines."""

    search_latency = Histogram(
        "tabrelay_search_duration_seconds",
        "Time spent fetching and aggregating search results.",
        buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
    )
    search_raw_results = Histogram(
        "tabrelay_search_raw_result_count",
        "Results extracted from the upstream page.",
        buckets=(0, 1, 5, 10, 20, 50, 100),
    )
    search_aggregated_results = Histogram(
        "tabrelay_search_aggregated_result_count",
        "Results left after per-artist aggregation.",
        buckets=(0, 1, 5, 10, 20, 50, 100),
    )
    converter_latency = Histogram(
        "tabrelay_converter_duration_seconds",
        "Time spent waiting on the external converter.",
        ["command"],
        buckets=(0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
    )
    relay_responses = Counter(
        "tabrelay_relay_responses_total",
        "Submission relay outcomes by downstream status.",
        ["status"],
    )
    rate_limited = Counter(
        "tabrelay_rate_limited_total",
        "Requests rejected by a rate limit policy.",
        ["policy"],
    )

    @classmethod
    def observe_search(cls, duration_seconds: float, raw_count: int, aggregated_count: int) -> None:
        cls.search_latency.observe(duration_seconds)
        cls.search_raw_results.observe(raw_count)
        cls.search_aggregated_results.observe(aggregated_count)

    @classmethod
    def observe_converter(cls, command: str, duration_seconds: float) -> None:
        cls.converter_latency.labels(command=command).observe(duration_seconds)

    @classmethod
    def observe_relay(cls, status: int | str) -> None:
        cls.relay_responses.labels(status=str(status)).inc()

    @classmethod
    def observe_rate_limited(cls, policy: str) -> None:
        cls.rate_limited.labels(policy=policy).inc()


__all__ = [
    "PipelineMetrics",
    "bind_correlation_id",
    "clear_correlation_id",
    "configure_logging",
    "get_logger",
]
