"""Database gateway used by every command.

The gateway picks one of two strategies when it connects:

* the native strategy, when the installation ships ``system/library/db.php``
  and the driver file named by DB_DRIVER;
* the fallback mysql-connector-python driver, when the configuration came
  from explicit command-line flags.

Anything else is a DatabaseLibraryNotFoundError.
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional, Sequence, Union

from sqlalchemy.exc import SQLAlchemyError

from .base import ConnectionHandle, DatabaseBackend, QueryResult
from .config import OpenCartConfig
from .drivers.fallback import FallbackDriverConnection
from .drivers.native import (
    NativeLibraryConnection,
    is_valid_driver_name,
    native_driver_path,
    native_library_path,
)
from ..core.exceptions import (
    DatabaseLibraryNotFoundError,
    DriverNotFoundError,
    QueryError,
)


logger = logging.getLogger(__name__)

# Errors an execute() call can raise, whichever strategy is active
QUERY_ERRORS = (QueryError, SQLAlchemyError)


def _is_dir(path: Path) -> bool:
    try:
        return path.is_dir()
    except OSError as e:
        logger.debug(f"Cannot inspect {path}: {e}")
        return False


def _is_file(path: Path) -> bool:
    try:
        return path.is_file()
    except OSError as e:
        logger.debug(f"Cannot inspect {path}: {e}")
        return False


def select_backend(config: OpenCartConfig) -> DatabaseBackend:
    """Decide which strategy serves ``config``.

    Paths that cannot be inspected count as absent.

    Raises:
        DriverNotFoundError: The native library exists but the driver file does not
        DatabaseLibraryNotFoundError: Neither strategy applies
    """
    dir_system = config.dir_system
    if dir_system and _is_dir(Path(dir_system)) and _is_file(native_library_path(dir_system)):
        driver = config.db_driver
        if not is_valid_driver_name(driver):
            raise DriverNotFoundError(driver, message=f"Invalid database driver name: {driver}")

        driver_file = native_driver_path(dir_system, driver)
        if not _is_file(driver_file):
            raise DriverNotFoundError(driver, path=str(driver_file))
        return DatabaseBackend.NATIVE

    if config.explicit:
        return DatabaseBackend.FALLBACK

    raise DatabaseLibraryNotFoundError()


class DatabaseGateway:
    """Single entry point for executing SQL against an OpenCart database."""

    def __init__(self, config: OpenCartConfig):
        self.config = config
        self.backend: Optional[DatabaseBackend] = None
        self._handle: Optional[ConnectionHandle] = None

    @classmethod
    def connect(cls, config: OpenCartConfig) -> "DatabaseGateway":
        """Create a gateway and open its connection."""
        gateway = cls(config)
        gateway.open()
        return gateway

    def open(self) -> "DatabaseGateway":
        if self._handle is not None:
            return self

        backend = select_backend(self.config)
        if backend == DatabaseBackend.NATIVE:
            self._handle = NativeLibraryConnection(self.config)
        else:
            self._handle = FallbackDriverConnection(self.config)
        self.backend = backend

        logger.debug(f"Database gateway opened using {backend.value} backend")
        return self

    @property
    def is_connected(self) -> bool:
        return self._handle is not None

    def _require_handle(self) -> ConnectionHandle:
        if self._handle is None:
            raise QueryError("Database connection is not open")
        return self._handle

    def execute(self, sql: str, params: Sequence[Any] = ()) -> QueryResult:
        """Execute one statement.

        Args:
            sql: SQL text with ``?`` positional placeholders
            params: Values bound to the placeholders, left to right

        Returns:
            QueryResult with ``row``, ``rows`` and ``num_rows``

        Raises:
            QueryError: On fallback driver failures or placeholder mismatch
            SQLAlchemyError: On native strategy failures
        """
        handle = self._require_handle()
        logger.debug(f"SQL: {sql}")
        return handle.execute(sql, params)

    def escape(self, value: Union[str, Any]) -> str:
        return self._require_handle().escape(value)

    def last_insert_id(self) -> int:
        return self._require_handle().last_insert_id()

    def affected_rows(self) -> int:
        return self._require_handle().affected_rows()

    def server_version(self) -> Optional[str]:
        result = self.execute("SELECT VERSION() AS version")
        return result.scalar("version")

    def table(self, name: str) -> str:
        return self.config.table(name)

    @contextmanager
    def transaction(self) -> Iterator["DatabaseGateway"]:
        """Run the block in a transaction, rolling back on any exception."""
        self.execute("START TRANSACTION")
        try:
            yield self
        except BaseException:
            try:
                self.execute("ROLLBACK")
            except QUERY_ERRORS as e:
                logger.warning(f"Rollback failed: {e}")
            raise
        else:
            self.execute("COMMIT")

    def close(self) -> None:
        """Close the connection. Safe to call more than once."""
        if self._handle is None:
            return
        try:
            self._handle.close()
        finally:
            self._handle = None
            logger.debug("Database gateway closed")

    def __enter__(self) -> "DatabaseGateway":
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        backend = self.backend.value if self.backend else "closed"
        return f"{self.__class__.__name__}({backend}, database={self.config.db_database})"
