"""
Watermark resolution and lag window computation.

The watermark is never stored on its own: it is re-derived from the
destination at the start of every run as the latest synced modification
timestamp. The window start backs it off by the lag margin so rows near
the boundary are fetched again.
"""

import logging
from datetime import datetime, timedelta

from opentelemetry import trace

from sync_utils.tracing import trace_operation

from .config import LAG_MARGIN
from .entities import EntityMapping, normalize_timestamp

logger = logging.getLogger(__name__)


def resolve_watermark(destination, entity: EntityMapping) -> datetime:
    """
    Resolve the high-water mark for an entity.

    Args:
        destination: Destination store exposing ``query_max_column``
        entity: Entity whose watermark column is queried

    Returns:
        Latest synced modification timestamp, or the entity's epoch
        default when the destination holds no timestamped rows

    Raises:
        DestinationUnavailableError: If the destination cannot be queried
    """
    with trace_operation(
        "resolve_watermark",
        kind=trace.SpanKind.CLIENT,
        entity=entity.name,
        column=entity.watermark_column,
    ):
        latest = destination.query_max_column(
            entity.watermark_column, scope=entity.watermark_scope or None
        )

        if latest is None:
            logger.info(
                f"No synced rows for {entity.name}, "
                f"starting from {entity.epoch_default.isoformat()}"
            )
            return entity.epoch_default

        watermark = normalize_timestamp(latest)
        logger.debug(f"Watermark for {entity.name}: {watermark.isoformat()}")
        return watermark


def compute_window_start(watermark: datetime, lag_margin: timedelta = LAG_MARGIN) -> datetime:
    """Lower bound of the change set query: ``watermark - lag_margin``."""
    if lag_margin < timedelta(0):
        raise ValueError(f"lag_margin must not be negative, got {lag_margin}")
    return watermark - lag_margin
