"""
Incremental sync of Aranda tickets from SQL Server to PostgreSQL

Pulls change-tracked rows from the SQL Server source, compares them with
what is already stored in PostgreSQL and inserts, updates or skips each
row so that stored data is never replaced by older data.

Components:
- watermark: Watermark resolution and lag window
- fetcher: Change set fetching
- reconciler: Per-row INSERT/UPDATE/SKIP decision and write
- runner: Batch orchestration with error-threshold circuit breaker
- stores: SQL Server source and PostgreSQL destination adapters
- cli, scheduler, report: Operational surface

Usage:
    from ticket_sync.entities import TICKETS
    from ticket_sync.runner import run_batch

    result = run_batch(source, destination, TICKETS)
"""

__version__ = "1.0.0"
__all__ = ["entities", "runner", "stores", "cli", "scheduler", "report"]
