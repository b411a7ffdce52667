"""
Store adapters for the sync source and destination.

SqlServerSourceStore reads change sets through pyodbc;
PostgresDestinationStore looks up and writes rows through psycopg2.
"""

from .destination import PostgresDestinationStore
from .quoting import postgres_identifier, quote_sqlserver_identifier, quote_sqlserver_table
from .source import SqlServerSourceStore

__all__ = [
    "SqlServerSourceStore",
    "PostgresDestinationStore",
    "quote_sqlserver_identifier",
    "quote_sqlserver_table",
    "postgres_identifier",
]
