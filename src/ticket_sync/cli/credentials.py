"""
Credential lookup and store connections for the CLI.

Credentials come from HashiCorp Vault or from command-line arguments and
environment variables. Connection setup retries transient failures with
exponential backoff; nothing after that point is retried.
"""

import argparse
import logging
import os
import sys
from typing import Any

import psycopg2
import pyodbc
import requests

from sync_utils.retry import retry_database_operation
from sync_utils.vault_client import VaultClient

logger = logging.getLogger(__name__)

ODBC_DRIVER = os.getenv("SQLSERVER_ODBC_DRIVER", "ODBC Driver 18 for SQL Server")


def get_credentials_from_vault_or_env(args: argparse.Namespace) -> tuple:
    """
    Get database credentials from Vault or environment/args

    Args:
        args: Parsed command-line arguments

    Returns:
        Tuple of (source_config, destination_config)
    """
    if args.use_vault:
        try:
            vault_client = VaultClient()
            source_creds = vault_client.get_database_credentials("sqlserver")
            target_creds = vault_client.get_database_credentials("postgresql")

            source_config = {
                "server": source_creds["server"],
                "port": int(source_creds["port"]),
                "database": source_creds["database"],
                "username": source_creds["username"],
                "password": source_creds["password"]
            }

            destination_config = {
                "host": target_creds["host"],
                "port": int(target_creds["port"]),
                "database": target_creds["database"],
                "username": target_creds["username"],
                "password": target_creds["password"]
            }

            logger.info("Successfully fetched credentials from Vault")
        except (ValueError, KeyError, requests.RequestException) as e:
            logger.error(f"Failed to fetch credentials from Vault: {e}")
            sys.exit(1)
    else:
        # Get from command-line args or environment variables
        source_config = {
            "server": args.source_server or os.getenv("SQLSERVER_HOST", "localhost"),
            "port": int(args.source_port or os.getenv("SQLSERVER_PORT", "1433")),
            "database": args.source_database or os.getenv("SQLSERVER_DATABASE", "aranda"),
            "username": args.source_user or os.getenv("SQLSERVER_USER", "sa"),
            "password": args.source_password or os.getenv("SQLSERVER_PASSWORD")
        }

        destination_config = {
            "host": args.target_host or os.getenv("POSTGRES_HOST", "localhost"),
            "port": int(args.target_port or os.getenv("POSTGRES_PORT", "5432")),
            "database": args.target_database or os.getenv("POSTGRES_DB", "postgres"),
            "username": args.target_user or os.getenv("POSTGRES_USER", "postgres"),
            "password": args.target_password or os.getenv("POSTGRES_PASSWORD")
        }

        # Validate passwords
        if not source_config["password"]:
            logger.error("Source database password not provided")
            sys.exit(1)
        if not destination_config["password"]:
            logger.error("Destination database password not provided")
            sys.exit(1)

    return source_config, destination_config


@retry_database_operation(max_retries=3, base_delay=2.0)
def connect_sqlserver(config: dict[str, Any]) -> Any:
    """Open a pyodbc connection to the SQL Server source."""
    connection = pyodbc.connect(
        f"DRIVER={{{ODBC_DRIVER}}};"
        f"SERVER={config['server']},{config.get('port', 1433)};"
        f"DATABASE={config['database']};"
        f"UID={config['username']};"
        f"PWD={config['password']};"
        f"TrustServerCertificate=yes;",
        timeout=30,
    )
    logger.info("Connected to SQL Server source")
    return connection


@retry_database_operation(max_retries=3, base_delay=2.0)
def connect_postgres(config: dict[str, Any]) -> Any:
    """Open a psycopg2 connection to the PostgreSQL destination."""
    connection = psycopg2.connect(
        host=config['host'],
        port=config.get('port', 5432),
        database=config['database'],
        user=config['username'],
        password=config['password'],
        connect_timeout=30,
    )
    logger.info("Connected to PostgreSQL destination")
    return connection
