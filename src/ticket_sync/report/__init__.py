"""
Sync run reports.

Renders batch results and status snapshots for the console and exports
run reports as JSON.
"""

from .formatters import (
    export_report_json,
    format_result_console,
    format_status_console,
    generate_run_report,
)

__all__ = [
    'generate_run_report',
    'export_report_json',
    'format_result_console',
    'format_status_console',
]
