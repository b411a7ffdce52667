"""
Metrics for incremental sync runs.

Tracks batch outcomes, per-row decisions, the resolved watermark and
circuit-breaker trips for each synchronized entity.
"""

import logging
import time
from datetime import UTC, datetime
from typing import Optional

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
)

logger = logging.getLogger(__name__)


class SyncMetrics:
    """
    Prometheus metrics for sync batches

    One instance per registry. Use ``get_sync_metrics()`` for the
    process-wide instance bound to the default registry.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        """
        Args:
            registry: Custom Prometheus registry (default: global REGISTRY)
        """
        self.registry = registry or REGISTRY

        self.runs_total = Counter(
            "sync_runs_total",
            "Total number of sync batch runs",
            ["entity", "status"],
            registry=self.registry,
        )

        self.run_duration_seconds = Histogram(
            "sync_run_duration_seconds",
            "Duration of sync batch runs in seconds",
            ["entity"],
            buckets=(0.5, 1, 5, 10, 30, 60, 120, 300, 600, 1800),
            registry=self.registry,
        )

        self.rows_total = Counter(
            "sync_rows_total",
            "Rows reconciled, by decision",
            ["entity", "decision"],
            registry=self.registry,
        )

        self.rows_fetched = Gauge(
            "sync_rows_fetched",
            "Rows in the change set of the last run",
            ["entity"],
            registry=self.registry,
        )

        self.watermark_timestamp = Gauge(
            "sync_watermark_timestamp_seconds",
            "Watermark resolved at the start of the last run (epoch seconds)",
            ["entity"],
            registry=self.registry,
        )

        self.last_run_timestamp = Gauge(
            "sync_last_run_timestamp_seconds",
            "Time the last run finished (epoch seconds)",
            ["entity"],
            registry=self.registry,
        )

        self.circuit_breaker_trips_total = Counter(
            "sync_circuit_breaker_trips_total",
            "Runs stopped early because the error threshold was reached",
            ["entity"],
            registry=self.registry,
        )

    def record_decision(self, entity: str, decision: str) -> None:
        self.rows_total.labels(entity=entity, decision=decision).inc()

    def record_watermark(self, entity: str, watermark: datetime) -> None:
        """Record the resolved watermark; naive datetimes are read as UTC."""
        self.watermark_timestamp.labels(entity=entity).set(_epoch_seconds(watermark))

    def record_fetched(self, entity: str, count: int) -> None:
        self.rows_fetched.labels(entity=entity).set(count)

    def record_circuit_breaker(self, entity: str) -> None:
        self.circuit_breaker_trips_total.labels(entity=entity).inc()

    def record_run(self, entity: str, success: bool, duration: float) -> None:
        """
        Record a finished batch run

        Args:
            entity: Entity name
            success: Whether the run finished with zero errors
            duration: Duration in seconds
        """
        status = "success" if success else "failed"
        self.runs_total.labels(entity=entity, status=status).inc()
        self.run_duration_seconds.labels(entity=entity).observe(duration)
        self.last_run_timestamp.labels(entity=entity).set(time.time())

        logger.debug(
            f"Recorded sync run: entity={entity}, status={status}, "
            f"duration={duration:.2f}s"
        )

    def record_failure(self, entity: str) -> None:
        """Record a run that aborted before producing a result."""
        self.runs_total.labels(entity=entity, status="aborted").inc()


def _epoch_seconds(value: datetime) -> float:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.timestamp()


_default_metrics: SyncMetrics | None = None


def get_sync_metrics() -> SyncMetrics:
    """Return the process-wide SyncMetrics bound to the default registry."""
    global _default_metrics

    if _default_metrics is None:
        _default_metrics = SyncMetrics()
    return _default_metrics
