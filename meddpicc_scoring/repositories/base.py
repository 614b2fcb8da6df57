"""
Base Repository - MEDDPICC Scoring Engine
meddpicc_scoring/repositories/base.py

Base repository class with Snowflake connection management and common utilities.
"""

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Generator, Optional
from uuid import UUID

import snowflake.connector
from snowflake.connector import DictCursor
from snowflake.connector.errors import DatabaseError, InterfaceError, ProgrammingError

from meddpicc_scoring.core.exceptions import (
    DatabaseConnectionException,
    DuplicateEntityException,
    RepositoryException,
)
from meddpicc_scoring.services.snowflake import get_snowflake_connection


class BaseRepository:
    """Base repository with Snowflake connection management."""

    def __init__(self, connection_factory=None):
        self._connection_factory = connection_factory or get_snowflake_connection

    @contextmanager
    def get_connection(self) -> Generator[snowflake.connector.SnowflakeConnection, None, None]:
        """Context manager for Snowflake connections."""
        conn = None
        try:
            conn = self._connection_factory()
            yield conn
        except InterfaceError as e:
            raise DatabaseConnectionException(f"Failed to connect to Snowflake: {e}")
        finally:
            if conn:
                conn.close()

    @contextmanager
    def get_cursor(self, dict_cursor: bool = True) -> Generator[Any, None, None]:
        """Context manager for Snowflake cursors with automatic connection cleanup."""
        with self.get_connection() as conn:
            cursor = conn.cursor(DictCursor) if dict_cursor else conn.cursor()
            try:
                yield cursor
            finally:
                cursor.close()

    @contextmanager
    def transaction(self) -> Generator[Any, None, None]:
        """
        Run statements in one explicit transaction.

        Commits when the block exits cleanly; rolls back on any exception.
        """
        with self.get_cursor() as cursor:
            conn = cursor.connection
            self._execute(cursor, "BEGIN")
            try:
                yield cursor
            except BaseException:
                conn.rollback()
                raise
            else:
                conn.commit()

    def execute_query(
        self,
        sql: str,
        params: Optional[tuple] = None,
        fetch_one: bool = False,
        fetch_all: bool = False,
        commit: bool = False,
    ) -> Optional[Any]:
        """
        Execute a SQL query with error handling.

        Args:
            sql: SQL query string
            params: Query parameters
            fetch_one: Return single row
            fetch_all: Return all rows
            commit: Commit transaction after execution

        Returns:
            Query results or None
        """
        with self.get_cursor() as cursor:
            self._execute(cursor, sql, params)

            if commit:
                cursor.connection.commit()

            if fetch_one:
                return cursor.fetchone()
            elif fetch_all:
                return cursor.fetchall()

            return cursor.rowcount

    def _execute(self, cursor: Any, sql: str, params: Optional[tuple] = None) -> Any:
        """Execute on an open cursor, mapping connector errors to repository errors."""
        try:
            return cursor.execute(sql, params or ())
        except ProgrammingError as e:
            error_msg = str(e).upper()
            if "UNIQUE" in error_msg or "DUPLICATE" in error_msg:
                raise DuplicateEntityException(str(e))
            raise RepositoryException(f"Query error: {e}")
        except DatabaseError as e:
            raise RepositoryException(f"Database error: {e}")

    def uuid_to_str(self, uuid_val: Optional[UUID]) -> Optional[str]:
        """Convert UUID to string for Snowflake storage."""
        return str(uuid_val) if uuid_val else None

    def str_to_uuid(self, uuid_str: Optional[str]) -> Optional[UUID]:
        """Convert string from Snowflake to UUID."""
        return UUID(uuid_str) if uuid_str else None

    def normalize_timestamp(self, dt: Optional[datetime]) -> Optional[datetime]:
        """Ensure timestamp is UTC-aware."""
        if dt is None:
            return None
        if dt.tzinfo is None:
            return dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)

    def row_to_dict(self, row: Dict[str, Any]) -> Dict[str, Any]:
        """Convert Snowflake row (uppercase keys) to lowercase dict."""
        if row is None:
            return {}
        return {k.lower(): v for k, v in row.items()}
