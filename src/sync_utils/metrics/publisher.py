"""
Prometheus HTTP exposition for the sync process.

Long-running ``schedule`` processes expose /metrics; one-shot runs
usually skip the server and rely on logs.
"""

import logging
from typing import Optional

from prometheus_client import REGISTRY, CollectorRegistry, Info, start_http_server

logger = logging.getLogger(__name__)


class MetricsPublisher:
    """Starts the Prometheus HTTP server serving /metrics."""

    def __init__(
        self,
        port: int = 9091,
        registry: Optional[CollectorRegistry] = None,
    ):
        self.port = port
        self.registry = registry or REGISTRY
        self._server_started = False

    def start(self) -> None:
        """Start the metrics HTTP server (idempotent)."""
        if self._server_started:
            logger.warning(f"Metrics server already running on port {self.port}")
            return

        try:
            start_http_server(self.port, registry=self.registry)
        except OSError as e:
            raise RuntimeError(
                f"Metrics server could not bind port {self.port}: {e}"
            ) from e

        self._server_started = True
        logger.info(f"Metrics server started on port {self.port}")

    def is_started(self) -> bool:
        return self._server_started


def publish_build_info(
    version: str,
    app_name: str = "ticket-sync",
    registry: Optional[CollectorRegistry] = None,
) -> Info:
    """Expose application name and version as a Prometheus Info metric."""
    info = Info(
        "ticket_sync_build",
        "Application metadata",
        registry=registry or REGISTRY,
    )
    info.info({"name": app_name, "version": version})
    return info
