"""
Value types shared by the sync components.

BusinessKey identifies a row on both sides, Decision is the outcome of
reconciling one row, and BatchResult aggregates a whole run.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


@dataclass(frozen=True)
class BusinessKey:
    """Natural key of a synchronized row (e.g. ticket number + open date)."""

    primary: str
    secondary: Any = None

    def __str__(self) -> str:
        if self.secondary is None:
            return self.primary
        if isinstance(self.secondary, datetime):
            return f"{self.primary}@{self.secondary.isoformat()}"
        return f"{self.primary}/{self.secondary}"

    def as_tuple(self) -> tuple[str, Any]:
        return (self.primary, self.secondary)


class Decision(str, Enum):
    """Per-row reconciliation outcome."""

    INSERT = "insert"
    UPDATE = "update"
    SKIP = "skip"
    ERROR = "error"


@dataclass
class BatchResult:
    """Counters and progress messages for one batch run."""

    success: bool = False
    total_processed: int = 0
    inserted: int = 0
    updated: int = 0
    skipped: int = 0
    errors: int = 0
    messages: list[str] = field(default_factory=list)
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def record(self, decision: Decision) -> None:
        """Count one attempted row."""
        self.total_processed += 1
        if decision is Decision.INSERT:
            self.inserted += 1
        elif decision is Decision.UPDATE:
            self.updated += 1
        elif decision is Decision.SKIP:
            self.skipped += 1
        else:
            self.errors += 1

    def add_message(self, message: str) -> None:
        self.messages.append(message)

    def summary(self) -> str:
        return (
            f"Sync finished: {self.inserted} inserted, {self.updated} updated, "
            f"{self.skipped} skipped, {self.errors} errors"
        )

    def to_dict(self) -> dict[str, Any]:
        """Structured result as returned to callers of run_batch()."""
        return {
            "success": self.success,
            "total_processed": self.total_processed,
            "inserted": self.inserted,
            "updated": self.updated,
            "skipped": self.skipped,
            "errors": self.errors,
            "messages": list(self.messages),
        }


@dataclass(frozen=True)
class SyncStatus:
    """Read-only snapshot of where the next run would start."""

    entity: str
    watermark: datetime
    window_start: datetime
    pending_rows: int
    source_min_modified: datetime | None
    source_max_modified: datetime | None

    def to_dict(self) -> dict[str, Any]:
        def iso(value: datetime | None) -> str | None:
            return value.isoformat() if value is not None else None

        return {
            "entity": self.entity,
            "watermark": iso(self.watermark),
            "window_start": iso(self.window_start),
            "pending_rows": self.pending_rows,
            "source_min_modified": iso(self.source_min_modified),
            "source_max_modified": iso(self.source_max_modified),
        }
