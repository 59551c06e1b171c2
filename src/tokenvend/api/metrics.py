"""Prometheus metrics for token request transitions."""

from __future__ import annotations

import os
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    make_asgi_app,
    multiprocess,
)

from ..domain.errors import AlreadyIssued, TokenVendError

TRANSITION_DURATION_BUCKETS = (
    [float(x) for x in range(1, 11)]  # 1ms..10ms
    + [float(x) for x in range(20, 110, 10)]  # 20ms..100ms
    + [250.0, 500.0, 1000.0, 2500.0, float("inf")]
)

token_request_transitions_total = Counter(
    "token_request_transitions_total",
    "Total token request lifecycle events processed",
    ["event", "outcome"],
)

token_request_duration_milliseconds = Histogram(
    "token_request_duration_milliseconds",
    "Wall time to process a token request lifecycle event (ms)",
    ["event"],
    buckets=TRANSITION_DURATION_BUCKETS,
)

token_requests_inprogress = Gauge(
    "token_requests_inprogress",
    "Number of token request lifecycle events currently being processed",
    multiprocess_mode="livesum",
)


@asynccontextmanager
async def track_transition(event: str) -> AsyncIterator[None]:
    """Count, time and gauge one lifecycle event; errors are re-raised."""
    start_time = time.perf_counter()
    token_requests_inprogress.inc()
    outcome = "success"
    try:
        yield
    except AlreadyIssued:
        outcome = "already_issued"
        raise
    except TokenVendError:
        outcome = "client_error"
        raise
    except Exception:
        outcome = "server_error"
        raise
    finally:
        elapsed = (time.perf_counter() - start_time) * 1000
        token_request_transitions_total.labels(event=event, outcome=outcome).inc()
        token_request_duration_milliseconds.labels(event=event).observe(elapsed)
        token_requests_inprogress.dec()


def create_metrics_app():
    """ASGI app serving /metrics, aggregating workers when multiprocess is on."""
    if os.environ.get("PROMETHEUS_MULTIPROC_DIR"):
        registry = CollectorRegistry()
        multiprocess.MultiProcessCollector(registry)
        return make_asgi_app(registry=registry)
    return make_asgi_app()
