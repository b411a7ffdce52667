"""
Command-line argument parser configuration.

This module sets up the argument parser for the ticket-sync CLI tool,
defining all commands and their options.
"""

import argparse

from ..entities import ENTITIES

ENTITY_CHOICES = sorted(ENTITIES) + ['all']


def _add_connection_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        '--use-vault',
        action='store_true',
        help='Fetch credentials from HashiCorp Vault'
    )
    # Source database options
    parser.add_argument('--source-server', help='SQL Server host')
    parser.add_argument('--source-port', help='SQL Server port')
    parser.add_argument('--source-database', help='SQL Server database name')
    parser.add_argument('--source-user', help='SQL Server username')
    parser.add_argument('--source-password', help='SQL Server password')
    # Destination database options
    parser.add_argument('--target-host', help='PostgreSQL host')
    parser.add_argument('--target-port', help='PostgreSQL port')
    parser.add_argument('--target-database', help='PostgreSQL database name')
    parser.add_argument('--target-user', help='PostgreSQL username')
    parser.add_argument('--target-password', help='PostgreSQL password')


def _add_entity_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        '--entity',
        choices=ENTITY_CHOICES,
        default='tickets',
        help='Entity to synchronize (default: tickets)'
    )


def create_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser for the CLI.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        description="Incremental ticket sync from SQL Server to PostgreSQL",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Sync tickets once and print the result
  ticket-sync run

  # Sync every entity and save a JSON report
  ticket-sync run --entity all --format json --output reports/sync.json

  # Use Vault for credentials
  ticket-sync run --use-vault --entity apontamentos

  # Show watermark, window start and pending rows
  ticket-sync status --entity all

  # Sync every 15 minutes, exposing metrics on :9091
  ticket-sync --metrics-port 9091 schedule --entity all --interval 900

  # Sync hourly at minute 5
  ticket-sync schedule --cron "5 * * * *"
        """
    )

    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        default='INFO',
        help='Logging level (default: INFO)'
    )
    parser.add_argument(
        '--log-json',
        action='store_true',
        help='Emit structured JSON logs'
    )
    parser.add_argument(
        '--log-file',
        help='Also write logs to this file (rotated)'
    )
    parser.add_argument(
        '--metrics-port',
        type=int,
        help='Expose Prometheus metrics on this port'
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # ========== Run command ==========
    run_parser = subparsers.add_parser('run', help='Run one incremental sync pass')
    _add_entity_argument(run_parser)
    run_parser.add_argument(
        '--output',
        help='Output file path for the JSON report'
    )
    run_parser.add_argument(
        '--format',
        choices=['console', 'json'],
        default='console',
        help='Output format (default: console)'
    )
    _add_connection_arguments(run_parser)

    # ========== Status command ==========
    status_parser = subparsers.add_parser('status', help='Show sync watermark and pending rows')
    _add_entity_argument(status_parser)
    _add_connection_arguments(status_parser)

    # ========== Schedule command ==========
    schedule_parser = subparsers.add_parser('schedule', help='Schedule periodic sync runs')
    _add_entity_argument(schedule_parser)
    schedule_parser.add_argument(
        '--cron',
        help='Cron expression (e.g., "*/15 * * * *" for every 15 minutes)'
    )
    schedule_parser.add_argument(
        '--interval',
        type=int,
        default=900,
        help='Interval in seconds (default: 900 = 15 minutes)'
    )
    schedule_parser.add_argument(
        '--output-dir',
        help='Directory to save run reports'
    )
    _add_connection_arguments(schedule_parser)

    return parser
