"""
CLI command implementations.

This module contains the implementation of the three CLI commands:
- run: One incremental sync pass
- status: Watermark, window start and pending rows per entity
- schedule: Periodic scheduled sync
"""

import argparse
import logging
import sys
from pathlib import Path

from ..config import SyncSettings
from ..entities import ENTITIES, EntityMapping, get_entity
from ..errors import SyncError
from ..report import (
    export_report_json,
    format_result_console,
    format_status_console,
    generate_run_report,
)
from ..runner import run_entities
from ..scheduler import SyncScheduler, sync_job_wrapper
from ..status import check_connectivity, inspect_status
from ..stores import PostgresDestinationStore, SqlServerSourceStore
from .credentials import connect_postgres, connect_sqlserver, get_credentials_from_vault_or_env

logger = logging.getLogger(__name__)


def selected_entities(name: str) -> list[EntityMapping]:
    """Entities named by ``--entity`` ('all' selects every entity)."""
    if name == 'all':
        return list(ENTITIES.values())
    return [get_entity(name)]


def _connect(source_config: dict, destination_config: dict) -> tuple:
    try:
        source_conn = connect_sqlserver(source_config)
    except Exception as e:
        logger.error(f"Could not connect to SQL Server: {e}")
        sys.exit(1)

    try:
        destination_conn = connect_postgres(destination_config)
    except Exception as e:
        source_conn.close()
        logger.error(f"Could not connect to PostgreSQL: {e}")
        sys.exit(1)

    return source_conn, destination_conn


def cmd_run(args: argparse.Namespace) -> None:
    """
    Run one incremental sync pass

    Exits with 0 when every entity finished without errors, 1 otherwise.

    Args:
        args: Parsed command-line arguments
    """
    entities = selected_entities(args.entity)
    logger.info(f"Starting sync run for: {', '.join(e.name for e in entities)}")

    settings = SyncSettings.from_env()
    source_config, destination_config = get_credentials_from_vault_or_env(args)
    source_conn, destination_conn = _connect(source_config, destination_config)

    try:
        results = run_entities(source_conn, destination_conn, entities, settings)
    finally:
        source_conn.close()
        destination_conn.close()

    report = generate_run_report(results)

    if args.format == "json" and args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        export_report_json(report, str(output_path))
        logger.info(f"Report saved to {output_path}")
    else:
        for name, result in results.items():
            print(format_result_console(result, name))
        if args.output:
            output_path = Path(args.output)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            export_report_json(report, str(output_path))
            logger.info(f"Report saved to {output_path}")

    if report["status"] != "SUCCESS":
        logger.warning("Sync finished with errors")
        sys.exit(1)

    logger.info("Sync completed successfully")
    sys.exit(0)


def cmd_status(args: argparse.Namespace) -> None:
    """
    Print watermark, window start and pending rows for each entity

    Args:
        args: Parsed command-line arguments
    """
    entities = selected_entities(args.entity)
    settings = SyncSettings.from_env()
    source_config, destination_config = get_credentials_from_vault_or_env(args)
    source_conn, destination_conn = _connect(source_config, destination_config)

    exit_code = 0
    try:
        for entity in entities:
            source = SqlServerSourceStore(source_conn, entity)
            destination = PostgresDestinationStore(destination_conn, entity)

            connectivity = check_connectivity(source, destination)
            if not all(connectivity.values()):
                exit_code = 1

            try:
                status = inspect_status(source, destination, entity, settings)
            except SyncError as e:
                logger.error(f"Could not inspect {entity.name}: {e}")
                exit_code = 1
                continue

            print(format_status_console(status, connectivity))
    finally:
        source_conn.close()
        destination_conn.close()

    sys.exit(exit_code)


def cmd_schedule(args: argparse.Namespace) -> None:
    """
    Schedule periodic sync runs

    Args:
        args: Parsed command-line arguments
    """
    logger.info("Setting up sync scheduler")

    entity_names = [entity.name for entity in selected_entities(args.entity)]
    source_config, destination_config = get_credentials_from_vault_or_env(args)

    output_dir = args.output_dir
    if output_dir:
        Path(output_dir).mkdir(parents=True, exist_ok=True)

    scheduler = SyncScheduler()
    job_kwargs = {
        "source_config": source_config,
        "destination_config": destination_config,
        "entity_names": entity_names,
        "output_dir": output_dir,
    }

    if args.cron:
        scheduler.add_cron_job(sync_job_wrapper, args.cron, "sync_job", **job_kwargs)
        logger.info(f"Scheduled sync with cron: {args.cron}")
    else:
        scheduler.add_interval_job(sync_job_wrapper, args.interval, "sync_job", **job_kwargs)
        logger.info(f"Scheduled sync every {args.interval} seconds")

    # Start scheduler (blocking)
    logger.info("Starting scheduler (press Ctrl+C to stop)")
    scheduler.start()
