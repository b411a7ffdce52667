"""
Structured logging configuration for ticket-sync

Usage:
    from sync_utils.logging import setup_logging, ContextLogger

    setup_logging(level="INFO", json_format=True)

    log = ContextLogger(__name__, entity="tickets")
    log.info("Batch started", window_start="2024-06-09T00:00:00")
"""

from .config import configure_from_env, get_logger, setup_logging
from .formatters import ConsoleFormatter, JSONFormatter
from .handlers import ContextLogger

__all__ = [
    "setup_logging",
    "get_logger",
    "configure_from_env",
    "JSONFormatter",
    "ConsoleFormatter",
    "ContextLogger",
]
