"""
Sync configuration constants and settings.

The lag margin and error threshold are fixed per deployment, not per
call. ``SyncSettings.from_env()`` lets operators override them through
environment variables.
"""

import logging
import os
from dataclasses import dataclass
from datetime import timedelta

logger = logging.getLogger(__name__)

LAG_MARGIN = timedelta(days=1)
ERROR_THRESHOLD = 10
PROGRESS_LOG_INTERVAL = 50


@dataclass(frozen=True)
class SyncSettings:
    """Tunables of a batch run."""

    lag_margin: timedelta = LAG_MARGIN
    error_threshold: int = ERROR_THRESHOLD
    progress_log_interval: int = PROGRESS_LOG_INTERVAL

    def __post_init__(self):
        if self.lag_margin < timedelta(0):
            raise ValueError(f"lag_margin must not be negative, got {self.lag_margin}")
        if self.error_threshold < 1:
            raise ValueError(f"error_threshold must be >= 1, got {self.error_threshold}")
        if self.progress_log_interval < 1:
            raise ValueError(
                f"progress_log_interval must be >= 1, got {self.progress_log_interval}"
            )

    @classmethod
    def from_env(cls) -> "SyncSettings":
        """
        Build settings from environment variables

        Environment variables:
            SYNC_LAG_MARGIN_HOURS: Lag margin in hours (default: 24)
            SYNC_ERROR_THRESHOLD: Errors that stop a batch (default: 10)
            SYNC_PROGRESS_LOG_INTERVAL: Rows between progress logs (default: 50)
        """
        lag_hours = float(os.getenv("SYNC_LAG_MARGIN_HOURS", LAG_MARGIN.total_seconds() / 3600))
        settings = cls(
            lag_margin=timedelta(hours=lag_hours),
            error_threshold=int(os.getenv("SYNC_ERROR_THRESHOLD", ERROR_THRESHOLD)),
            progress_log_interval=int(
                os.getenv("SYNC_PROGRESS_LOG_INTERVAL", PROGRESS_LOG_INTERVAL)
            ),
        )
        logger.debug(f"Loaded sync settings: {settings}")
        return settings
