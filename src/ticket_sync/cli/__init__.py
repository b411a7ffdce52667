"""
Command-line interface for incremental ticket sync.

This module provides a CLI for running incremental sync passes from the
SQL Server source to the PostgreSQL destination.

Available commands:
- run: Execute one sync pass
- status: Show watermark and pending rows
- schedule: Set up periodic sync jobs
"""

import sys

from sync_utils.logging import setup_logging
from sync_utils.metrics import MetricsPublisher, publish_build_info
from sync_utils.tracing import initialize_tracing, shutdown_tracing

from .. import __version__
from .commands import cmd_run, cmd_schedule, cmd_status
from .credentials import get_credentials_from_vault_or_env
from .parser import create_parser


def main() -> None:
    """Main entry point for the ticket-sync CLI"""
    parser = create_parser()
    args = parser.parse_args()

    setup_logging(level=args.log_level, log_file=args.log_file, json_format=args.log_json)

    if args.command == 'schedule' and args.cron is None and args.interval <= 0:
        parser.error("--interval must be positive")

    if args.metrics_port:
        publish_build_info(__version__)
        MetricsPublisher(port=args.metrics_port).start()

    initialize_tracing()

    try:
        if args.command == 'run':
            cmd_run(args)
        elif args.command == 'status':
            cmd_status(args)
        elif args.command == 'schedule':
            cmd_schedule(args)
        else:
            parser.print_help()
            sys.exit(1)
    finally:
        shutdown_tracing()


__all__ = [
    'main',
    'get_credentials_from_vault_or_env',
    'cmd_run',
    'cmd_status',
    'cmd_schedule',
    'create_parser',
]


if __name__ == '__main__':
    main()
