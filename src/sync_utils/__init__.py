"""
Shared infrastructure for ticket-sync

Provides:
- logging: structured/console logging setup
- metrics: Prometheus metrics for sync runs
- tracing: OpenTelemetry spans
- retry: backoff for store connection setup
- vault_client: HashiCorp Vault credential lookup
"""

__all__ = ["logging", "metrics", "tracing", "retry", "vault_client"]
