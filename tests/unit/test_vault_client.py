"""
Unit tests for sync_utils/vault_client.py

Tests cover initialization, KV v2 secret retrieval, store credential
lookup and health checks. HTTP calls are mocked.
"""

from unittest.mock import Mock, patch

import pytest
import requests

from sync_utils.vault_client import VaultClient


def vault_response(status_code=200, data=None):
    response = Mock()
    response.status_code = status_code
    response.json.return_value = {"data": {"data": data or {}}}
    if status_code >= 400 and status_code != 404:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status_code}")
    return response


class TestVaultClientInit:
    """Test VaultClient initialization scenarios"""

    def test_init_with_explicit_parameters(self):
        """Test initialization with explicitly provided parameters"""
        client = VaultClient(vault_addr="https://vault.example.com/", vault_token="t-123")

        assert client.vault_addr == "https://vault.example.com"
        assert client.headers == {
            "X-Vault-Token": "t-123",
            "Content-Type": "application/json",
        }

    def test_namespace_header(self):
        client = VaultClient("https://vault", "t", namespace="team-a")
        assert client.headers["X-Vault-Namespace"] == "team-a"

    def test_missing_address_raises(self, monkeypatch):
        monkeypatch.delenv("VAULT_ADDR", raising=False)
        with pytest.raises(ValueError, match="VAULT_ADDR"):
            VaultClient(vault_token="t")

    def test_missing_token_raises(self, monkeypatch):
        monkeypatch.delenv("VAULT_TOKEN", raising=False)
        with pytest.raises(ValueError, match="VAULT_TOKEN"):
            VaultClient(vault_addr="https://vault")


class TestGetSecret:
    """Test KV v2 reads"""

    @patch("sync_utils.vault_client.requests.get")
    def test_reads_data_path(self, mock_get):
        mock_get.return_value = vault_response(data={"username": "sync"})
        client = VaultClient("https://vault", "t")

        assert client.get_secret("secret/ticket-sync/postgresql") == {"username": "sync"}
        assert mock_get.call_args[0][0] == "https://vault/v1/secret/data/ticket-sync/postgresql"

    @patch("sync_utils.vault_client.requests.get")
    def test_not_found(self, mock_get):
        mock_get.return_value = vault_response(status_code=404)

        with pytest.raises(ValueError, match="Secret not found"):
            VaultClient("https://vault", "t").get_secret("secret/missing")

    @patch("sync_utils.vault_client.requests.get")
    def test_empty_secret(self, mock_get):
        mock_get.return_value = vault_response(data={})

        with pytest.raises(ValueError, match="No data found"):
            VaultClient("https://vault", "t").get_secret("secret/empty")

    @patch("sync_utils.vault_client.requests.get")
    def test_server_error_propagates(self, mock_get):
        mock_get.return_value = vault_response(status_code=500)

        with pytest.raises(requests.HTTPError):
            VaultClient("https://vault", "t").get_secret("secret/x")

    @pytest.mark.parametrize("path", ["", "../etc/passwd", "secret/a b", "secret/$x"])
    def test_unsafe_path_rejected(self, path):
        with pytest.raises(ValueError, match="Invalid secret_path"):
            VaultClient("https://vault", "t").get_secret(path)


class TestDatabaseCredentials:
    """Test store credential lookup"""

    @patch("sync_utils.vault_client.requests.get")
    def test_postgres_credentials_get_default_port(self, mock_get):
        mock_get.return_value = vault_response(data={
            "host": "pg", "database": "postgres", "username": "sync", "password": "pw",
        })

        creds = VaultClient("https://vault", "t").get_database_credentials("postgresql")

        assert creds["port"] == 5432
        assert mock_get.call_args[0][0].endswith("/v1/secret/data/ticket-sync/postgresql")

    @patch("sync_utils.vault_client.requests.get")
    def test_missing_fields(self, mock_get):
        mock_get.return_value = vault_response(data={"server": "sql"})

        with pytest.raises(ValueError, match="database, username, password"):
            VaultClient("https://vault", "t").get_database_credentials("sqlserver")

    def test_unknown_type(self):
        with pytest.raises(ValueError, match="Unsupported database_type"):
            VaultClient("https://vault", "t").get_database_credentials("mysql")


class TestHealthCheck:
    """Test health checks"""

    @pytest.mark.parametrize("status, expected", [(200, True), (429, True), (503, False)])
    @patch("sync_utils.vault_client.requests.get")
    def test_status_codes(self, mock_get, status, expected):
        mock_get.return_value = Mock(status_code=status)
        assert VaultClient("https://vault", "t").health_check() is expected

    @patch("sync_utils.vault_client.requests.get")
    def test_connection_error(self, mock_get):
        mock_get.side_effect = requests.ConnectionError("refused")
        assert VaultClient("https://vault", "t").health_check() is False
