"""Change set fetching from the source store."""

import logging
from datetime import datetime
from typing import Any

from opentelemetry import trace

from sync_utils.tracing import add_span_attributes, trace_operation

from .entities import EntityMapping

logger = logging.getLogger(__name__)

PREVIEW_ROWS = 3


class ChangeSetFetcher:
    """
    Fetches every source row modified at or after a window start.

    The query has no row cap; every row in the window is returned.
    """

    def __init__(self, source, entity: EntityMapping):
        self.source = source
        self.entity = entity

    def fetch_changed(self, window_start: datetime) -> list[dict[str, Any]]:
        """
        Fetch the change set.

        Args:
            window_start: Inclusive lower bound on the modification timestamp

        Returns:
            Rows ordered by modification timestamp ascending; empty when
            nothing changed

        Raises:
            SourceUnavailableError: If the source query fails
        """
        with trace_operation(
            "fetch_changed",
            kind=trace.SpanKind.CLIENT,
            entity=self.entity.name,
            window_start=window_start.isoformat(),
        ):
            rows = list(self.source.query_rows_modified_since(window_start))
            add_span_attributes(row_count=len(rows))

            logger.info(
                f"Fetched {len(rows)} changed {self.entity.name} rows "
                f"since {window_start.isoformat()}"
            )
            if rows and logger.isEnabledFor(logging.DEBUG):
                self._log_preview(rows)

            return rows

    def _log_preview(self, rows: list[dict[str, Any]]) -> None:
        head = rows[:PREVIEW_ROWS]
        tail = rows[-PREVIEW_ROWS:] if len(rows) > PREVIEW_ROWS else []

        for label, sample in (("first", head), ("last", tail)):
            for row in sample:
                logger.debug(
                    f"{label}: {row.get(self.entity.key_fields[0])} "
                    f"modified {row.get(self.entity.modified_field)}"
                )
