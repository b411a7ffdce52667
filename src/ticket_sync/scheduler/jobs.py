"""
Job wrapper functions for scheduled sync runs.

This module provides the function the scheduler calls to connect to both
stores, run the configured entities and save a report.
"""

import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def sync_job_wrapper(
    source_config: dict[str, Any],
    destination_config: dict[str, Any],
    entity_names: list[str],
    output_dir: str | None = None,
) -> dict[str, Any]:
    """
    Wrapper function for scheduled sync jobs

    Opens fresh connections for every run and closes them afterwards, so a
    dropped connection never outlives one run.

    Args:
        source_config: SQL Server connection configuration
        destination_config: PostgreSQL connection configuration
        entity_names: Names of the entities to synchronize
        output_dir: Directory to save the JSON run report (optional)

    Returns:
        The run report
    """
    from ticket_sync.cli.credentials import connect_postgres, connect_sqlserver
    from ticket_sync.config import SyncSettings
    from ticket_sync.entities import get_entity
    from ticket_sync.report import export_report_json, generate_run_report
    from ticket_sync.runner import run_entities

    timestamp = datetime.now(UTC).strftime("%Y%m%d_%H%M%S")
    logger.info(f"Starting scheduled sync at {timestamp}: {', '.join(entity_names)}")

    entities = [get_entity(name) for name in entity_names]
    settings = SyncSettings.from_env()

    source_conn = connect_sqlserver(source_config)
    try:
        destination_conn = connect_postgres(destination_config)
        try:
            results = run_entities(source_conn, destination_conn, entities, settings)
        finally:
            destination_conn.close()
    finally:
        source_conn.close()

    report = generate_run_report(results)

    if output_dir:
        Path(output_dir).mkdir(parents=True, exist_ok=True)
        output_path = Path(output_dir) / f"sync_{timestamp}.json"
        export_report_json(report, str(output_path))
        logger.info(f"Report saved to {output_path}")

    log = logger.info if report["status"] == "SUCCESS" else logger.warning
    log(f"Scheduled sync finished with status {report['status']}: {report['totals']}")
    return report
