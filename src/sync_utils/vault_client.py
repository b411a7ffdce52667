"""
HashiCorp Vault client for fetching store credentials

Reads source (SQL Server) and destination (PostgreSQL) credentials from
the KV v2 secrets engine over the Vault HTTP API.
"""

import logging
import os
import re
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)

SAFE_SECRET_PATH = re.compile(r"^[a-zA-Z0-9/_-]+$")

REQUIRED_FIELDS = {
    "sqlserver": ("server", "database", "username", "password"),
    "postgresql": ("host", "database", "username", "password"),
}

DEFAULT_PORTS = {
    "sqlserver": 1433,
    "postgresql": 5432,
}


class VaultClient:
    """
    Minimal Vault KV v2 reader

    Secrets for the stores live under ``<mount>/<prefix>/<database_type>``,
    e.g. ``secret/ticket-sync/postgresql``.
    """

    def __init__(
        self,
        vault_addr: Optional[str] = None,
        vault_token: Optional[str] = None,
        namespace: Optional[str] = None,
        secret_prefix: str = "secret/ticket-sync",
        timeout: float = 10.0,
    ):
        """
        Args:
            vault_addr: Vault server address (default: VAULT_ADDR env var)
            vault_token: Vault token (default: VAULT_TOKEN env var)
            namespace: Vault Enterprise namespace
            secret_prefix: Mount and path prefix holding the store secrets
            timeout: HTTP timeout in seconds

        Raises:
            ValueError: If the address or token is missing
        """
        self.vault_addr = vault_addr or os.getenv("VAULT_ADDR")
        self.vault_token = vault_token or os.getenv("VAULT_TOKEN")
        self.namespace = namespace
        self.secret_prefix = secret_prefix.strip("/")
        self.timeout = timeout

        if not self.vault_addr:
            raise ValueError(
                "Vault address not provided. Set VAULT_ADDR or pass vault_addr."
            )
        if not self.vault_token:
            raise ValueError(
                "Vault token not provided. Set VAULT_TOKEN or pass vault_token."
            )

        self.vault_addr = self.vault_addr.rstrip("/")
        self.headers = {
            "X-Vault-Token": self.vault_token,
            "Content-Type": "application/json",
        }
        if self.namespace:
            self.headers["X-Vault-Namespace"] = self.namespace

        logger.info(f"Initialized Vault client for {self.vault_addr}")

    def get_secret(self, secret_path: str) -> Dict[str, Any]:
        """
        Fetch the data of a KV v2 secret

        Args:
            secret_path: Logical path, e.g. "secret/ticket-sync/postgresql"

        Raises:
            ValueError: If the path is unsafe or the secret is missing/empty
            requests.RequestException: If the HTTP request fails
        """
        if not secret_path or ".." in secret_path or not SAFE_SECRET_PATH.match(secret_path):
            raise ValueError(f"Invalid secret_path: {secret_path!r}")

        mount, _, rest = secret_path.partition("/")
        api_path = f"{mount}/data/{rest}" if rest else f"{mount}/data"
        url = f"{self.vault_addr}/v1/{api_path}"

        response = requests.get(url, headers=self.headers, timeout=self.timeout)
        if response.status_code == 404:
            raise ValueError(f"Secret not found at path: {secret_path}")
        response.raise_for_status()

        secret_data = response.json().get("data", {}).get("data", {})
        if not secret_data:
            raise ValueError(f"No data found in secret at path: {secret_path}")

        return secret_data

    def get_database_credentials(self, database_type: str) -> Dict[str, Any]:
        """
        Fetch credentials for one of the stores

        Args:
            database_type: "sqlserver" (source) or "postgresql" (destination)

        Returns:
            Credential dict with a default port filled in when absent

        Raises:
            ValueError: On unknown type or missing required fields
        """
        if database_type not in REQUIRED_FIELDS:
            raise ValueError(
                f"Unsupported database_type: {database_type!r}. "
                f"Must be one of {sorted(REQUIRED_FIELDS)}."
            )

        secret_data = dict(self.get_secret(f"{self.secret_prefix}/{database_type}"))

        missing = [f for f in REQUIRED_FIELDS[database_type] if f not in secret_data]
        if missing:
            raise ValueError(f"Missing required fields in secret: {', '.join(missing)}")

        secret_data.setdefault("port", DEFAULT_PORTS[database_type])

        logger.info(f"Fetched {database_type} credentials from Vault")
        return secret_data

    def health_check(self) -> bool:
        """Return True if Vault reports itself initialized and unsealed."""
        try:
            response = requests.get(f"{self.vault_addr}/v1/sys/health", timeout=5)
        except requests.RequestException as e:
            logger.error(f"Vault health check failed: {e}")
            return False
        # 200 active, 429 standby, 472/473 replication/performance standby
        return response.status_code in (200, 429, 472, 473)
