"""
SQL identifier quoting for the source and destination stores.

Source column names in SQL Server carry spaces, parentheses and accented
characters (e.g. ``Data da aprovação (somente se aprovado)``), so they are
bracket-quoted with ``]`` doubled instead of being matched against an
ASCII pattern. Destination identifiers are plain snake_case and are
validated strictly before being wrapped in ``psycopg2.sql.Identifier``.
"""

import re

from psycopg2 import sql

# Strict ASCII-only pattern for destination identifiers (optional schema prefix)
VALID_IDENTIFIER_PATTERN = re.compile(
    r'^[a-zA-Z_][a-zA-Z0-9_]*(\.[a-zA-Z_][a-zA-Z0-9_]*)?$'
)

_CONTROL_CHARS = re.compile(r'[\x00-\x1f\x7f]')


def quote_sqlserver_identifier(identifier: str) -> str:
    """
    Bracket-quote a single SQL Server identifier

    Args:
        identifier: Column or table name, unquoted

    Returns:
        Identifier wrapped in brackets with any ``]`` doubled

    Raises:
        ValueError: If the identifier is empty or holds control characters
    """
    if not identifier or not identifier.strip():
        raise ValueError("Identifier must not be empty")
    if _CONTROL_CHARS.search(identifier):
        raise ValueError(f"Invalid identifier format: {identifier!r}")
    return "[" + identifier.replace("]", "]]") + "]"


def quote_sqlserver_table(table: str) -> str:
    """
    Quote a SQL Server table name, with optional ``schema.`` prefix

    Raises:
        ValueError: If the name is not a plain (schema.)table identifier
    """
    clean = table.replace("[", "").replace("]", "")
    if not VALID_IDENTIFIER_PATTERN.match(clean):
        raise ValueError(f"Invalid identifier format: {table}")
    return ".".join(f"[{part}]" for part in clean.split("."))


def postgres_identifier(identifier: str) -> sql.Identifier:
    """
    Build a psycopg2 Identifier for a destination table or column

    Raises:
        ValueError: If identifier format is invalid
    """
    if not VALID_IDENTIFIER_PATTERN.match(identifier):
        raise ValueError(f"Invalid identifier format: {identifier}")
    return sql.Identifier(*identifier.split("."))
