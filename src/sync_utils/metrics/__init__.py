"""
Prometheus metrics for ticket-sync

Usage:
    from sync_utils.metrics import MetricsPublisher, get_sync_metrics

    MetricsPublisher(port=9091).start()
    get_sync_metrics().record_run("tickets", success=True, duration=12.4)
"""

from .publisher import MetricsPublisher, publish_build_info
from .sync import SyncMetrics, get_sync_metrics

__all__ = [
    "MetricsPublisher",
    "SyncMetrics",
    "get_sync_metrics",
    "publish_build_info",
]
