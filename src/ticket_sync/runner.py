"""
Batch orchestration for incremental sync.

A run resolves the watermark, backs it off by the lag margin, fetches
the change set and reconciles every row in order. Each row commits on
its own, so a run stopped by the error threshold keeps what it wrote;
rows it never reached are picked up again by the next run's window.
"""

import logging
import time
import uuid

from opentelemetry import trace

from sync_utils.logging import ContextLogger
from sync_utils.metrics import SyncMetrics, get_sync_metrics
from sync_utils.tracing import add_span_attributes, add_span_event, trace_operation

from .config import SyncSettings
from .entities import EntityMapping
from .errors import SyncError
from .fetcher import ChangeSetFetcher
from .models import BatchResult, Decision
from .reconciler import RowReconciler
from .stores import PostgresDestinationStore, SqlServerSourceStore
from .watermark import compute_window_start, resolve_watermark

logger = logging.getLogger(__name__)


class BatchRunner:
    """Runs one incremental sync pass for a single entity."""

    def __init__(
        self,
        source,
        destination,
        entity: EntityMapping,
        settings: SyncSettings | None = None,
        metrics: SyncMetrics | None = None,
    ):
        """
        Initialize batch runner.

        Args:
            source: Source store bound to ``entity``
            destination: Destination store bound to ``entity``
            entity: Entity mapping to synchronize
            settings: Lag margin, error threshold and progress interval
            metrics: Metrics sink (default: process-wide SyncMetrics)
        """
        self.source = source
        self.destination = destination
        self.entity = entity
        self.settings = settings or SyncSettings()
        self.metrics = metrics or get_sync_metrics()
        self.fetcher = ChangeSetFetcher(source, entity)
        self.reconciler = RowReconciler(destination, entity)

    def run_batch(self) -> BatchResult:
        """
        Execute one sync pass.

        Returns:
            BatchResult with counters and progress messages. ``success`` is
            True only when no row errored.

        Raises:
            DestinationUnavailableError: If the watermark cannot be resolved
            SourceUnavailableError: If the change set cannot be fetched
        """
        entity = self.entity.name
        log = ContextLogger(__name__, entity=entity, run_id=uuid.uuid4().hex[:8])
        result = BatchResult()
        start = time.monotonic()

        with trace_operation("run_batch", kind=trace.SpanKind.INTERNAL, entity=entity):
            result.add_message(f"Starting incremental sync of {entity}")
            log.info(f"Starting incremental sync of {entity}")

            try:
                watermark = resolve_watermark(self.destination, self.entity)
                window_start = compute_window_start(watermark, self.settings.lag_margin)
                rows = self.fetcher.fetch_changed(window_start)
            except Exception as e:
                log.error(f"Sync of {entity} aborted: {e}")
                self.metrics.record_failure(entity)
                raise

            self.metrics.record_watermark(entity, watermark)
            self.metrics.record_fetched(entity, len(rows))
            result.add_message(f"Watermark: {watermark.isoformat()}")
            result.add_message(
                f"Window start: {window_start.isoformat()} "
                f"(lag margin {self.settings.lag_margin})"
            )
            result.add_message(f"Fetched {len(rows)} changed rows")

            if not rows:
                result.add_message("Nothing to synchronize")
                log.info(f"No changes for {entity} since {window_start.isoformat()}")

            self._process(rows, result, log)

            result.success = result.errors == 0
            result.add_message(result.summary())
            add_span_attributes(
                success=result.success,
                total_processed=result.total_processed,
                errors=result.errors,
            )

        duration = time.monotonic() - start
        self.metrics.record_run(entity, result.success, duration)
        log.info(f"{result.summary()} in {duration:.2f}s", success=result.success)
        return result

    def _process(self, rows: list[dict], result: BatchResult, log: ContextLogger) -> None:
        threshold = self.settings.error_threshold
        interval = self.settings.progress_log_interval
        entity = self.entity.name

        for index, row in enumerate(rows, start=1):
            decision = self.reconciler.reconcile(row)
            result.record(decision)
            self.metrics.record_decision(entity, decision.value)

            if index % interval == 0:
                log.info(
                    f"Progress: {index}/{len(rows)} rows "
                    f"({result.inserted} inserted, {result.updated} updated, "
                    f"{result.skipped} skipped, {result.errors} errors)"
                )

            if decision is Decision.ERROR and result.errors >= threshold:
                abandoned = len(rows) - index
                message = (
                    f"Stopped after {result.errors} errors; "
                    f"{abandoned} rows left for the next run"
                )
                result.add_message(message)
                log.error(message, abandoned=abandoned)
                self.metrics.record_circuit_breaker(entity)
                add_span_event("circuit_breaker_tripped", errors=result.errors, abandoned=abandoned)
                break


def run_batch(
    source,
    destination,
    entity: EntityMapping,
    settings: SyncSettings | None = None,
    metrics: SyncMetrics | None = None,
) -> BatchResult:
    """Run one sync pass for ``entity``. See ``BatchRunner.run_batch``."""
    return BatchRunner(source, destination, entity, settings, metrics).run_batch()


def run_entities(
    source_connection,
    destination_connection,
    entities: list[EntityMapping],
    settings: SyncSettings | None = None,
) -> dict[str, BatchResult]:
    """
    Run one sync pass per entity over shared connections.

    An entity whose run aborts (store unreachable) gets an unsuccessful
    result carrying the error message; the remaining entities still run.

    Returns:
        BatchResult keyed by entity name
    """
    results = {}
    for entity in entities:
        source = SqlServerSourceStore(source_connection, entity)
        destination = PostgresDestinationStore(destination_connection, entity)
        try:
            results[entity.name] = run_batch(source, destination, entity, settings)
        except SyncError as e:
            logger.error(f"Sync of {entity.name} failed: {e}")
            failed = BatchResult(success=False)
            failed.add_message(f"Aborted: {e}")
            results[entity.name] = failed
    return results
