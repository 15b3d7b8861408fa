"""Fallback database driver built directly on mysql-connector-python.

Used when the installation does not ship its own database library, e.g.
when only --db-* flags are given. It mimics the result shape of OpenCart's
DB class: every statement yields a QueryResult with ``row``, ``rows`` and
``num_rows``.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

import mysql.connector
from mysql.connector import Error as MySQLError

from ..base import QueryResult, bind_parameters, count_placeholders, resolve_host
from ..config import OpenCartConfig
from ...core.exceptions import ConnectionError, QueryError


logger = logging.getLogger(__name__)


class FallbackDriverConnection:
    """Direct mysql-connector-python connection with OpenCart-style results.

    Statements without parameters run on a buffered dictionary cursor and
    are drained eagerly. Statements with parameters run as server-side
    prepared statements, which cannot be buffered, so their rows are pulled
    one at a time using the column names from the result metadata.
    """

    def __init__(self, config: OpenCartConfig, buffered: bool = True):
        """Open the connection.

        Args:
            config: Resolved configuration record
            buffered: Use buffered cursors for statements without parameters

        Raises:
            ConnectionError: If the server cannot be reached or rejects the login
        """
        self.config = config
        self.buffered = buffered
        self._affected_rows = 0
        self._last_insert_id = 0
        self._connection = self._connect()

    def _create_connection_config(self) -> Dict[str, Any]:
        """Create connection configuration dictionary."""
        conn_config = {
            'host': resolve_host(self.config.db_hostname),
            'port': self.config.db_port,
            'user': self.config.db_username,
            'password': self.config.db_password,
            'database': self.config.db_database,
            'connection_timeout': self.config.connect_timeout,
            'autocommit': True,
            'charset': 'utf8mb4',
            'use_unicode': True,
            'use_pure': True,
        }

        # Remove None values
        return {k: v for k, v in conn_config.items() if v is not None}

    def _connect(self):
        conn_config = self._create_connection_config()
        host = conn_config.get('host')
        try:
            connection = mysql.connector.connect(**conn_config)
        except MySQLError as e:
            raise ConnectionError(f"Database connection failed: {e}", host=host) from e
        except OSError as e:
            raise ConnectionError(f"Database connection failed: {e}", host=host) from e

        logger.info(f"Connected to MySQL database: {host}:{self.config.db_port}")
        return connection

    @property
    def is_open(self) -> bool:
        return self._connection is not None

    def execute(self, sql: str, params: Sequence[Any] = ()) -> QueryResult:
        """Execute a statement and normalize its result.

        Args:
            sql: SQL text, using ``?`` for positional parameters
            params: Parameter values, bound left to right

        Returns:
            Normalized query result

        Raises:
            QueryError: If the statement cannot be prepared or executed
        """
        if self._connection is None:
            raise QueryError("Database connection is closed", sql=sql)

        values = bind_parameters(params)
        if values:
            expected = count_placeholders(sql)
            if expected != len(values):
                raise QueryError(
                    f"Statement expects {expected} parameters, {len(values)} given",
                    sql=sql
                )

        cursor = None
        try:
            if values:
                cursor = self._connection.cursor(prepared=True)
                cursor.execute(sql, tuple(values))
                result = self._fetch_unbuffered(cursor)
            elif self.buffered:
                cursor = self._connection.cursor(buffered=True, dictionary=True)
                cursor.execute(sql)
                result = self._fetch_buffered(cursor)
            else:
                cursor = self._connection.cursor()
                cursor.execute(sql)
                result = self._fetch_unbuffered(cursor)

            self._affected_rows = max(cursor.rowcount or 0, 0)
            self._last_insert_id = cursor.lastrowid or 0
            return result

        except MySQLError as e:
            raise QueryError(e.msg or str(e), sql=sql) from e
        finally:
            if cursor is not None:
                self._close_cursor(cursor)

    @staticmethod
    def _fetch_buffered(cursor) -> QueryResult:
        if not cursor.description:
            return QueryResult.empty()
        return QueryResult.from_rows(dict(row) for row in cursor.fetchall())

    @staticmethod
    def _fetch_unbuffered(cursor) -> QueryResult:
        if not cursor.description:
            return QueryResult.empty()

        columns = [column[0] for column in cursor.description]
        rows: List[Dict[str, Any]] = []
        while True:
            values = cursor.fetchone()
            if values is None:
                break
            # A new mapping per row; the cursor reuses its own row buffers
            rows.append(dict(zip(columns, values)))

        return QueryResult.from_rows(rows)

    @staticmethod
    def _close_cursor(cursor) -> None:
        try:
            cursor.close()
        except MySQLError as e:
            logger.debug(f"Error closing cursor: {e}")

    def escape(self, value: Any) -> str:
        """Escape a value for interpolation inside a quoted SQL string."""
        if self._connection is None:
            raise QueryError("Database connection is closed")
        return self._connection.converter.escape(str(value))

    def last_insert_id(self) -> int:
        return self._last_insert_id

    def affected_rows(self) -> int:
        return self._affected_rows

    def close(self) -> None:
        """Close the connection. Safe to call more than once."""
        if self._connection is None:
            return
        try:
            self._connection.close()
            logger.debug("Disconnected from MySQL database")
        except MySQLError as e:
            logger.warning(f"Error during MySQL disconnect: {e}")
        finally:
            self._connection = None

    def __repr__(self) -> str:
        return (f"{self.__class__.__name__}("
                f"host={self.config.db_hostname}, database={self.config.db_database})")
