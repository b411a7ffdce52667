"""Read-only inspection of sync state."""

import logging

from .config import SyncSettings
from .entities import EntityMapping, normalize_timestamp
from .models import SyncStatus
from .watermark import compute_window_start, resolve_watermark

logger = logging.getLogger(__name__)


def inspect_status(
    source,
    destination,
    entity: EntityMapping,
    settings: SyncSettings | None = None,
) -> SyncStatus:
    """
    Report where the next run would start and how much it would fetch.

    The watermark and window are resolved exactly as ``run_batch`` does,
    but nothing is written.
    """
    settings = settings or SyncSettings()
    watermark = resolve_watermark(destination, entity)
    window_start = compute_window_start(watermark, settings.lag_margin)

    pending = source.count_rows_modified_since(window_start)
    source_min, source_max = source.modified_range()

    return SyncStatus(
        entity=entity.name,
        watermark=watermark,
        window_start=window_start,
        pending_rows=pending,
        source_min_modified=normalize_timestamp(source_min),
        source_max_modified=normalize_timestamp(source_max),
    )


def check_connectivity(source, destination) -> dict[str, bool]:
    """Ping both stores."""
    results = {"source": source.ping(), "destination": destination.ping()}

    for name, ok in results.items():
        if not ok:
            logger.warning(f"{name} store is not reachable")
    return results
