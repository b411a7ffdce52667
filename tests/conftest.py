"""
Pytest configuration and fixtures for ticket-sync tests.
Provides shared fixtures for in-memory stores, isolated metrics and test setup.
"""

import os
from datetime import datetime

import pytest
from prometheus_client import CollectorRegistry

from fakes import InMemoryDestinationStore, InMemorySourceStore
from sync_utils.metrics import SyncMetrics
from ticket_sync.entities import TICKETS


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


@pytest.fixture(autouse=True)
def set_test_env_vars() -> None:
    """Set default test environment variables if not already set."""
    defaults = {
        "SQLSERVER_HOST": "localhost",
        "SQLSERVER_DATABASE": "aranda",
        "SQLSERVER_USER": "sa",
        "SQLSERVER_PASSWORD": "YourStrong!Passw0rd",
        "POSTGRES_HOST": "localhost",
        "POSTGRES_PORT": "5432",
        "POSTGRES_DB": "postgres",
        "POSTGRES_USER": "postgres",
        "POSTGRES_PASSWORD": "postgres_secure_password",
        "VAULT_ADDR": "http://localhost:8200",
        "VAULT_TOKEN": "dev-root-token",
    }

    for key, value in defaults.items():
        if key not in os.environ:
            os.environ[key] = value


@pytest.fixture
def metrics() -> SyncMetrics:
    """SyncMetrics bound to a private registry."""
    return SyncMetrics(registry=CollectorRegistry())


@pytest.fixture
def source() -> InMemorySourceStore:
    return InMemorySourceStore(TICKETS)


@pytest.fixture
def destination() -> InMemoryDestinationStore:
    return InMemoryDestinationStore(TICKETS)


@pytest.fixture
def opened_at() -> datetime:
    return datetime(2024, 5, 2, 9, 30, 0)
