"""Observability utilities for structured logging and Prometheus metrics."""

from __future__ import annotations

import contextlib
import time
from typing import Iterator, Mapping, Optional

from prometheus_client import Counter, Gauge, Histogram

from . import logging_manager as log_mgr

logger = log_mgr.get_logger()

# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------
PIPELINE_STAGE_DURATION = Histogram(
    "dictionary_api_pipeline_stage_duration_seconds",
    "Lookup pipeline stage execution time in seconds",
    ["stage"],
    buckets=[0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10, 30],
)

UPSTREAM_REQUESTS = Counter(
    "dictionary_api_upstream_requests_total",
    "Requests to the dictionary source by outcome",
    ["outcome"],
)

NORMALIZER_ANOMALIES = Counter(
    "dictionary_api_normalizer_anomalies_total",
    "Normalization heuristics fired on irregular source data",
    ["rule"],
)

# ---------------------------------------------------------------------------
# Cache & admission
# ---------------------------------------------------------------------------
CACHE_LOOKUPS = Counter(
    "dictionary_api_cache_lookups_total",
    "Response cache lookups by result",
    ["result"],
)

CACHE_KEYS = Gauge(
    "dictionary_api_cache_keys",
    "Entries currently held by the response cache",
)

ADMISSION_REJECTIONS = Counter(
    "dictionary_api_admission_rejections_total",
    "Requests refused by admission control",
)

# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------
ERRORS_TOTAL = Counter(
    "dictionary_api_errors_total",
    "Lookup failures by error kind",
    ["kind"],
)


def record_upstream_outcome(outcome: str) -> None:
    UPSTREAM_REQUESTS.labels(outcome=outcome).inc()


def record_anomaly(rule: str) -> None:
    NORMALIZER_ANOMALIES.labels(rule=rule).inc()


def record_cache_result(result: str) -> None:
    CACHE_LOOKUPS.labels(result=result.lower()).inc()


def record_cache_size(keys: int) -> None:
    CACHE_KEYS.set(keys)


def record_admission_rejection() -> None:
    ADMISSION_REJECTIONS.inc()


def record_error(kind: str) -> None:
    ERRORS_TOTAL.labels(kind=kind).inc()


@contextlib.contextmanager
def pipeline_stage(stage: str, attributes: Optional[Mapping[str, object]] = None) -> Iterator[None]:
    """Instrument a pipeline stage with structured logging and a duration histogram."""

    attrs = dict(attributes or {})

    with log_mgr.log_context(stage=stage):
        start = time.perf_counter()
        logger.debug(
            "Stage started",
            extra={
                "event": "pipeline.stage.start",
                "stage": stage,
                "attributes": attrs,
            },
        )
        try:
            yield
        finally:
            duration = time.perf_counter() - start
            PIPELINE_STAGE_DURATION.labels(stage=stage).observe(duration)
        logger.debug(
            "Stage completed",
            extra={
                "event": "pipeline.stage.complete",
                "stage": stage,
                "duration_ms": round(duration * 1000.0, 2),
                "attributes": attrs,
            },
        )


__all__ = [
    "ADMISSION_REJECTIONS",
    "CACHE_KEYS",
    "CACHE_LOOKUPS",
    "ERRORS_TOTAL",
    "NORMALIZER_ANOMALIES",
    "PIPELINE_STAGE_DURATION",
    "UPSTREAM_REQUESTS",
    "pipeline_stage",
    "record_admission_rejection",
    "record_anomaly",
    "record_cache_result",
    "record_cache_size",
    "record_error",
    "record_upstream_outcome",
]
