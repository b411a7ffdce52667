"""
PostgreSQL destination store.

Lookups, inserts and guarded updates for one entity's destination table
through psycopg2. The connection runs in autocommit mode so every row
write commits on its own.
"""

import logging
from datetime import datetime
from typing import Any

import psycopg2
from psycopg2 import errors, sql
from psycopg2.extras import RealDictCursor

from ..entities import EntityMapping, normalize_timestamp
from ..errors import DestinationUnavailableError, DestinationWriteError, DuplicateKeyError
from ..models import BusinessKey
from .quoting import postgres_identifier

logger = logging.getLogger(__name__)


class PostgresDestinationStore:
    """Destination store for one entity, backed by a psycopg2 connection."""

    def __init__(self, connection: Any, entity: EntityMapping):
        """
        Args:
            connection: Open psycopg2 connection (switched to autocommit)
            entity: Entity whose destination table is written
        """
        self.connection = connection
        self.connection.autocommit = True
        self.entity = entity
        self._table = postgres_identifier(entity.destination_table)

    def _key_condition(self, key: BusinessKey) -> tuple[sql.Composable, list[Any]]:
        columns = self.entity.key_columns
        values = self.entity.key_values(key)

        clauses = []
        for index, column in enumerate(columns):
            # Secondary key parts may be null and must still match
            operator = "=" if index == 0 else "IS NOT DISTINCT FROM"
            clauses.append(
                sql.SQL("{} " + operator + " %s").format(postgres_identifier(column))
            )
        return sql.SQL(" AND ").join(clauses), list(values)

    def find_by_business_key(self, key: BusinessKey) -> dict[str, Any] | None:
        """
        Look up the destination row for a business key

        Raises:
            DestinationWriteError: If the lookup fails
        """
        condition, params = self._key_condition(key)
        query = sql.SQL("SELECT * FROM {} WHERE {} LIMIT 1").format(self._table, condition)

        try:
            with self.connection.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute(query, params)
                row = cursor.fetchone()
        except psycopg2.Error as e:
            raise DestinationWriteError(f"Lookup of {key} failed: {e}") from e

        return dict(row) if row is not None else None

    def insert(self, row: dict[str, Any]) -> None:
        """
        Insert a mapped row

        Raises:
            DuplicateKeyError: If another writer already stored the key
            DestinationWriteError: On any other failure
        """
        columns = list(row)
        query = sql.SQL("INSERT INTO {} ({}) VALUES ({})").format(
            self._table,
            sql.SQL(", ").join(postgres_identifier(c) for c in columns),
            sql.SQL(", ").join(sql.Placeholder() for _ in columns),
        )

        try:
            with self.connection.cursor() as cursor:
                cursor.execute(query, [row[c] for c in columns])
        except errors.UniqueViolation as e:
            raise DuplicateKeyError(
                f"Duplicate key inserting into {self.entity.destination_table}: {e}"
            ) from e
        except psycopg2.Error as e:
            raise DestinationWriteError(
                f"Insert into {self.entity.destination_table} failed: {e}"
            ) from e

    def update(self, key: BusinessKey, row: dict[str, Any]) -> int:
        """
        Overwrite the row for ``key`` if the stored timestamp is older

        The statement only matches when the stored watermark column is null
        or strictly older than the incoming one, so a concurrent writer's
        newer data is never replaced.

        Returns:
            Number of rows updated (0 when the guard rejected the write)

        Raises:
            DestinationWriteError: If the update fails
        """
        watermark_column = self.entity.watermark_column
        key_columns = set(self.entity.key_columns)
        columns = [c for c in row if c not in key_columns]
        condition, key_params = self._key_condition(key)
        watermark = postgres_identifier(watermark_column)

        query = sql.SQL(
            "UPDATE {} SET {} WHERE {} AND ({} IS NULL OR {} < %s)"
        ).format(
            self._table,
            sql.SQL(", ").join(
                sql.SQL("{} = %s").format(postgres_identifier(c)) for c in columns
            ),
            condition,
            watermark,
            watermark,
        )
        params = [row[c] for c in columns] + key_params + [row[watermark_column]]

        try:
            with self.connection.cursor() as cursor:
                cursor.execute(query, params)
                return cursor.rowcount
        except psycopg2.Error as e:
            raise DestinationWriteError(f"Update of {key} failed: {e}") from e

    def query_max_column(
        self, column: str, scope: dict[str, Any] | None = None
    ) -> datetime | None:
        """
        Maximum non-null value of a column, optionally filtered by equality

        Raises:
            DestinationUnavailableError: If the query fails
        """
        query = sql.SQL("SELECT MAX({}) FROM {}").format(postgres_identifier(column), self._table)
        params: list[Any] = []
        if scope:
            query += sql.SQL(" WHERE ") + sql.SQL(" AND ").join(
                sql.SQL("{} = %s").format(postgres_identifier(name)) for name in scope
            )
            params = list(scope.values())

        try:
            with self.connection.cursor() as cursor:
                cursor.execute(query, params)
                row = cursor.fetchone()
        except psycopg2.Error as e:
            raise DestinationUnavailableError(
                f"Could not read MAX({column}) from {self.entity.destination_table}: {e}"
            ) from e

        if row is None or row[0] is None:
            return None
        return normalize_timestamp(row[0])

    def ping(self) -> bool:
        try:
            with self.connection.cursor() as cursor:
                cursor.execute("SELECT 1")
                cursor.fetchone()
            return True
        except psycopg2.Error as e:
            logger.warning(f"PostgreSQL ping failed: {e}")
            return False
