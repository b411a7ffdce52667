"""
Row-level reconciliation of source rows against the destination.

Each call looks the row up by business key, decides INSERT, UPDATE or
SKIP from the modification timestamps and applies the decision before
returning. A destination row is only ever overwritten by a source row
whose modification timestamp is strictly newer than the stored one.
"""

import logging
from datetime import UTC, datetime
from typing import Any

from .entities import EntityMapping, normalize_timestamp
from .errors import RowValidationError
from .models import BusinessKey, Decision

logger = logging.getLogger(__name__)


def classify(
    incoming_modified_at: datetime | None,
    existing: dict[str, Any] | None,
    watermark_column: str = "source_modified_at",
) -> Decision:
    """
    Decide what to do with one source row.

    Args:
        incoming_modified_at: Normalized modification timestamp of the source row
        existing: Destination row with the same business key, or None
        watermark_column: Destination column mirroring the source timestamp

    Returns:
        INSERT when no destination row exists, UPDATE when the incoming
        timestamp is strictly newer (or the stored one is unknown), SKIP
        otherwise. A missing incoming timestamp never justifies an overwrite.
    """
    if existing is None:
        return Decision.INSERT
    if incoming_modified_at is None:
        return Decision.SKIP

    stored = normalize_timestamp(existing.get(watermark_column))
    if stored is None or incoming_modified_at > stored:
        return Decision.UPDATE
    return Decision.SKIP


class RowReconciler:
    """
    Reconciles source rows one at a time.

    Errors never leave ``reconcile``: validation, lookup and write failures
    are logged and reported as ``Decision.ERROR`` so the batch can go on.
    """

    def __init__(self, destination, entity: EntityMapping):
        """
        Args:
            destination: Destination store (find_by_business_key/insert/update)
            entity: Mapping of the entity being synchronized
        """
        self.destination = destination
        self.entity = entity

    def reconcile(self, row: dict[str, Any]) -> Decision:
        """Classify a source row and apply the resulting write."""
        try:
            key = self.entity.business_key(row)
        except RowValidationError as e:
            logger.warning(f"Rejected {self.entity.name} row: {e}")
            return Decision.ERROR
        except (TypeError, ValueError) as e:
            logger.warning(f"Rejected {self.entity.name} row with malformed key: {e}")
            return Decision.ERROR

        try:
            incoming = self.entity.modified_at(row)
            existing = self.destination.find_by_business_key(key)
            decision = classify(incoming, existing, self.entity.watermark_column)
            return self._apply(decision, key, row)
        except Exception as e:
            logger.error(f"Failed to reconcile {self.entity.name} {key}: {e}")
            return Decision.ERROR

    def _apply(self, decision: Decision, key: BusinessKey, row: dict[str, Any]) -> Decision:
        if decision is Decision.SKIP:
            logger.debug(f"Skipped {key}: destination is up to date")
            return decision

        values = self.entity.map_row(row)
        values[self.entity.synced_at_column] = datetime.now(UTC)

        if decision is Decision.INSERT:
            values.update(self.entity.insert_only_values)
            self.destination.insert(values)
            logger.debug(f"Inserted {key}")
            return decision

        affected = self.destination.update(key, values)
        if affected == 0:
            # A concurrent writer stored a row at least as new
            logger.debug(f"Skipped {key}: update guard rejected stale write")
            return Decision.SKIP

        logger.debug(f"Updated {key}")
        return decision
