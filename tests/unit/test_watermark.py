"""
Unit tests for watermark resolution and the lag window

Tests verify:
- Empty destination falls back to the entity epoch
- Watermark is the latest synced modification timestamp
- Watermark scope for time entries
- Window start is exactly watermark minus lag margin
"""

from datetime import datetime, timedelta
from unittest.mock import Mock

import pytest

from fakes import InMemoryDestinationStore
from ticket_sync.config import LAG_MARGIN
from ticket_sync.entities import APONTAMENTOS, TICKETS
from ticket_sync.errors import DestinationUnavailableError
from ticket_sync.watermark import compute_window_start, resolve_watermark


class TestResolveWatermark:
    """Test watermark resolution"""

    def test_empty_destination_returns_epoch(self, destination):
        assert resolve_watermark(destination, TICKETS) == datetime(2024, 1, 1)

    def test_rows_without_timestamp_return_epoch(self, destination):
        destination.rows.append({"nro_solicitacao": "1", "source_modified_at": None})
        assert resolve_watermark(destination, TICKETS) == TICKETS.epoch_default

    def test_returns_latest_synced_timestamp(self, destination):
        destination.rows.extend([
            {"nro_solicitacao": "1", "source_modified_at": datetime(2024, 6, 1)},
            {"nro_solicitacao": "2", "source_modified_at": datetime(2024, 6, 10)},
        ])
        assert resolve_watermark(destination, TICKETS) == datetime(2024, 6, 10)

    def test_time_entries_use_scoped_column(self):
        destination = InMemoryDestinationStore(APONTAMENTOS)
        destination.rows.extend([
            {"origem": "sql_server", "data_ult_modificacao_geral": datetime(2024, 4, 1)},
            {"origem": "manual", "data_ult_modificacao_geral": datetime(2024, 9, 1)},
        ])
        assert resolve_watermark(destination, APONTAMENTOS) == datetime(2024, 4, 1)

    def test_passes_column_and_scope_to_store(self):
        destination = Mock()
        destination.query_max_column.return_value = None

        resolve_watermark(destination, APONTAMENTOS)

        destination.query_max_column.assert_called_once_with(
            "data_ult_modificacao_geral", scope={"origem": "sql_server"}
        )

    def test_unreachable_destination_propagates(self, destination):
        destination.unavailable = True
        with pytest.raises(DestinationUnavailableError):
            resolve_watermark(destination, TICKETS)


class TestComputeWindowStart:
    """Test lag window computation"""

    def test_default_margin_is_one_day(self):
        assert LAG_MARGIN == timedelta(days=1)
        assert compute_window_start(datetime(2024, 6, 10)) == datetime(2024, 6, 9)

    def test_custom_margin(self):
        watermark = datetime(2024, 6, 10, 12, 0, 0)
        assert compute_window_start(watermark, timedelta(hours=6)) == datetime(2024, 6, 10, 6, 0, 0)

    def test_zero_margin_returns_watermark(self):
        watermark = datetime(2024, 6, 10)
        assert compute_window_start(watermark, timedelta(0)) == watermark

    def test_negative_margin_rejected(self):
        with pytest.raises(ValueError, match="must not be negative"):
            compute_window_start(datetime(2024, 6, 10), timedelta(seconds=-1))
