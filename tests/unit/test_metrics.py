"""
Unit tests for sync_utils.metrics

Each test uses its own CollectorRegistry so metric names never collide.
"""

from datetime import UTC, datetime
from unittest.mock import patch

import pytest
from prometheus_client import CollectorRegistry

from sync_utils.metrics import MetricsPublisher, SyncMetrics, get_sync_metrics, publish_build_info


@pytest.fixture
def registry():
    return CollectorRegistry()


class TestSyncMetrics:
    """Test sync metric recording"""

    def test_record_run(self, registry):
        metrics = SyncMetrics(registry=registry)

        metrics.record_run("tickets", success=True, duration=3.5)
        metrics.record_run("tickets", success=False, duration=1.0)

        assert registry.get_sample_value(
            "sync_runs_total", {"entity": "tickets", "status": "success"}
        ) == 1
        assert registry.get_sample_value(
            "sync_runs_total", {"entity": "tickets", "status": "failed"}
        ) == 1
        assert registry.get_sample_value(
            "sync_run_duration_seconds_sum", {"entity": "tickets"}
        ) == 4.5

    def test_record_decision(self, registry):
        metrics = SyncMetrics(registry=registry)

        metrics.record_decision("tickets", "insert")
        metrics.record_decision("tickets", "insert")

        assert registry.get_sample_value(
            "sync_rows_total", {"entity": "tickets", "decision": "insert"}
        ) == 2

    def test_naive_watermark_read_as_utc(self, registry):
        metrics = SyncMetrics(registry=registry)

        metrics.record_watermark("tickets", datetime(2024, 6, 10))

        expected = datetime(2024, 6, 10, tzinfo=UTC).timestamp()
        assert registry.get_sample_value(
            "sync_watermark_timestamp_seconds", {"entity": "tickets"}
        ) == expected

    def test_failure_and_breaker(self, registry):
        metrics = SyncMetrics(registry=registry)

        metrics.record_failure("apontamentos")
        metrics.record_circuit_breaker("apontamentos")

        assert registry.get_sample_value(
            "sync_runs_total", {"entity": "apontamentos", "status": "aborted"}
        ) == 1
        assert registry.get_sample_value(
            "sync_circuit_breaker_trips_total", {"entity": "apontamentos"}
        ) == 1

    def test_default_instance_is_shared(self):
        assert get_sync_metrics() is get_sync_metrics()


class TestPublisher:
    """Test the metrics HTTP server wrapper"""

    @patch("sync_utils.metrics.publisher.start_http_server")
    def test_start_is_idempotent(self, mock_start, registry):
        publisher = MetricsPublisher(port=9999, registry=registry)

        publisher.start()
        publisher.start()

        mock_start.assert_called_once_with(9999, registry=registry)
        assert publisher.is_started()

    @patch("sync_utils.metrics.publisher.start_http_server")
    def test_bind_failure(self, mock_start, registry):
        mock_start.side_effect = OSError("Address already in use")

        with pytest.raises(RuntimeError, match="could not bind port 9999"):
            MetricsPublisher(port=9999, registry=registry).start()

    def test_build_info(self, registry):
        publish_build_info("1.0.0", registry=registry)

        assert registry.get_sample_value(
            "ticket_sync_build_info", {"name": "ticket-sync", "version": "1.0.0"}
        ) == 1
