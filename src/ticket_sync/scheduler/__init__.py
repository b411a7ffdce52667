"""
Sync scheduler module

Provides cron-like scheduling of incremental sync runs using APScheduler.
"""

from .jobs import sync_job_wrapper
from .scheduler import SyncScheduler

__all__ = [
    'SyncScheduler',
    'sync_job_wrapper',
]
