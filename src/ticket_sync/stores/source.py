"""
SQL Server source store.

Read-only access to the change-tracked source tables through pyodbc.
Every driver error is wrapped in SourceUnavailableError, which aborts
the batch.
"""

import logging
from datetime import datetime
from typing import Any

import pyodbc
from opentelemetry import trace

from sync_utils.tracing import trace_operation

from ..entities import EntityMapping
from ..errors import SourceUnavailableError
from .quoting import quote_sqlserver_identifier, quote_sqlserver_table

logger = logging.getLogger(__name__)


class SqlServerSourceStore:
    """Source store for one entity, backed by a pyodbc connection."""

    def __init__(self, connection: Any, entity: EntityMapping):
        """
        Args:
            connection: Open pyodbc connection
            entity: Entity whose source table is read
        """
        self.connection = connection
        self.entity = entity
        self._table = quote_sqlserver_table(entity.source_table)
        self._modified = quote_sqlserver_identifier(entity.modified_source_column)

    def _select_list(self) -> str:
        return ",\n    ".join(
            f"{quote_sqlserver_identifier(f.source_name)} AS {quote_sqlserver_identifier(f.column)}"
            for f in self.entity.fields
        )

    def _where(self) -> str:
        clauses = [
            f"{self._modified} IS NOT NULL",
            f"CAST({self._modified} AS DATETIME) >= ?",
        ]
        if self.entity.source_filter:
            clauses.append(self.entity.source_filter)
        return " AND ".join(clauses)

    def build_changed_rows_query(self) -> str:
        """SELECT for the change set; one ``?`` parameter for the window start."""
        return (
            f"SELECT\n    {self._select_list()}\n"
            f"FROM {self._table}\n"
            f"WHERE {self._where()}\n"
            f"ORDER BY CAST({self._modified} AS DATETIME) ASC"
        )

    def _execute(self, operation: str, query: str, params: tuple = ()) -> Any:
        cursor = self.connection.cursor()
        try:
            cursor.execute(query, params)
            return cursor
        except pyodbc.Error as e:
            cursor.close()
            raise SourceUnavailableError(
                f"Source {operation} on {self.entity.source_table} failed: {e}"
            ) from e

    def query_rows_modified_since(self, since: datetime) -> list[dict[str, Any]]:
        """
        Fetch every row modified at or after ``since``

        Rows with a null modification timestamp are excluded. The result is
        not capped.

        Raises:
            SourceUnavailableError: If the query fails
        """
        with trace_operation(
            "source_query_rows_modified_since",
            kind=trace.SpanKind.CLIENT,
            table=self.entity.source_table,
            since=since.isoformat(),
        ):
            cursor = self._execute("query", self.build_changed_rows_query(), (since,))
            try:
                columns = [column[0] for column in cursor.description]
                return [dict(zip(columns, row)) for row in cursor.fetchall()]
            except pyodbc.Error as e:
                raise SourceUnavailableError(
                    f"Reading rows from {self.entity.source_table} failed: {e}"
                ) from e
            finally:
                cursor.close()

    def count_rows_modified_since(self, since: datetime) -> int:
        """Number of rows a fetch from ``since`` would return."""
        query = f"SELECT COUNT(*) FROM {self._table} WHERE {self._where()}"
        cursor = self._execute("count", query, (since,))
        try:
            return cursor.fetchone()[0]
        finally:
            cursor.close()

    def modified_range(self) -> tuple[datetime | None, datetime | None]:
        """Oldest and newest modification timestamps in the source table."""
        query = (
            f"SELECT MIN(CAST({self._modified} AS DATETIME)), "
            f"MAX(CAST({self._modified} AS DATETIME)) FROM {self._table}"
        )
        if self.entity.source_filter:
            query += f" WHERE {self.entity.source_filter}"
        cursor = self._execute("range", query)
        try:
            row = cursor.fetchone()
            return row[0], row[1]
        finally:
            cursor.close()

    def ping(self) -> bool:
        try:
            cursor = self.connection.cursor()
            try:
                cursor.execute("SELECT 1")
                cursor.fetchone()
            finally:
                cursor.close()
            return True
        except pyodbc.Error as e:
            logger.warning(f"SQL Server ping failed: {e}")
            return False
