"""
Run report generation and formatting.

This module turns batch results into a run report and renders it as
JSON or console output.
"""

import json
from datetime import UTC, datetime
from typing import Any

from ..models import BatchResult, SyncStatus


def generate_run_report(results: dict[str, BatchResult]) -> dict[str, Any]:
    """
    Build a run report from per-entity batch results

    Args:
        results: Batch result keyed by entity name

    Returns:
        Dictionary with overall status, timestamp, totals and the structured
        result of each entity
    """
    success = all(result.success for result in results.values())
    totals = {
        name: sum(getattr(result, name) for result in results.values())
        for name in ("total_processed", "inserted", "updated", "skipped", "errors")
    }

    return {
        "status": "SUCCESS" if success else "FAILED",
        "timestamp": datetime.now(UTC).isoformat(),
        "totals": totals,
        "entities": {name: result.to_dict() for name, result in results.items()},
    }


def export_report_json(report: dict[str, Any], output_path: str) -> None:
    """
    Export report to JSON file

    Args:
        report: Report dictionary
        output_path: Path to output file
    """
    with open(output_path, 'w') as f:
        json.dump(report, f, indent=2)


def format_result_console(result: BatchResult, entity: str) -> str:
    """
    Format one entity's batch result for console output

    Args:
        result: Batch result
        entity: Entity name

    Returns:
        Formatted string for console display
    """
    lines = []

    lines.append("=" * 80)
    lines.append(f"INCREMENTAL SYNC: {entity}")
    lines.append("=" * 80)
    lines.append(f"Status: {'SUCCESS' if result.success else 'FAILED'}")
    lines.append(f"Started: {result.started_at.isoformat()}")
    lines.append(f"Processed: {result.total_processed:,}")
    lines.append(f"Inserted: {result.inserted:,}")
    lines.append(f"Updated: {result.updated:,}")
    lines.append(f"Skipped: {result.skipped:,}")
    lines.append(f"Errors: {result.errors:,}")
    lines.append("")

    if result.messages:
        lines.append("MESSAGES")
        lines.append("-" * 80)
        for message in result.messages:
            lines.append(f"  {message}")
        lines.append("")

    lines.append("=" * 80)

    return "\n".join(lines)


def format_status_console(status: SyncStatus, connectivity: dict[str, bool] | None = None) -> str:
    """Format a sync status snapshot for console output."""

    def fmt(value: datetime | None) -> str:
        return value.isoformat() if value is not None else "-"

    lines = [
        f"Entity: {status.entity}",
        f"  Watermark: {fmt(status.watermark)}",
        f"  Window start: {fmt(status.window_start)}",
        f"  Pending rows: {status.pending_rows:,}",
        f"  Source range: {fmt(status.source_min_modified)} .. {fmt(status.source_max_modified)}",
    ]
    if connectivity is not None:
        for store, ok in connectivity.items():
            lines.append(f"  {store.capitalize()}: {'OK' if ok else 'UNREACHABLE'}")

    return "\n".join(lines)
