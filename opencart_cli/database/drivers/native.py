"""Native database strategy for installations that ship system/library/db.php.

The installation's DB_DRIVER decides which SQLAlchemy dialect and DBAPI
are used, mirroring the PHP driver it would load (mysqli or PDO). Errors
raised by SQLAlchemy while executing statements are not translated.
"""

import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Sequence, Tuple, Union

from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import NullPool

from ..base import QueryResult, bind_parameters, resolve_host, split_placeholders
from ..config import OpenCartConfig
from ...core.exceptions import ConnectionError, DriverNotFoundError, QueryError


logger = logging.getLogger(__name__)

# OpenCart driver file name -> SQLAlchemy dialect+DBAPI
NATIVE_DRIVERS = {
    "mysqli": "mysql+mysqlconnector",
    "mysql": "mysql+mysqlconnector",
    "mpdo": "mysql+pymysql",
    "pdo": "mysql+pymysql",
}

_DRIVER_NAME = re.compile(r"^[A-Za-z0-9_]+$")

# Matches what SQLAlchemy's text() would treat as a named bind
_BIND_LIKE = re.compile(r"(?<![:\w\\]):(\w+)(?!:)")


def native_library_path(dir_system: Union[str, Path]) -> Path:
    return Path(dir_system) / "library" / "db.php"


def native_driver_path(dir_system: Union[str, Path], driver: str) -> Path:
    return Path(dir_system) / "library" / "db" / f"{driver}.php"


def is_valid_driver_name(driver: str) -> bool:
    return bool(_DRIVER_NAME.match(driver or ""))


def to_named_statement(sql: str, values: Sequence[Any]) -> Tuple[str, Dict[str, Any]]:
    """Rewrite ``?`` placeholders as ``:p0``, ``:p1``... for text().

    Colons already present in the SQL are escaped so text() does not
    mistake them for binds.
    """
    segments = split_placeholders(sql)
    if len(segments) - 1 != len(values):
        raise QueryError(
            f"Statement expects {len(segments) - 1} parameters, {len(values)} given",
            sql=sql
        )

    parts: List[str] = [_BIND_LIKE.sub(r"\\:\1", segments[0])]
    binds: Dict[str, Any] = {}
    for index, (value, segment) in enumerate(zip(values, segments[1:])):
        name = f"p{index}"
        binds[name] = value
        parts.append(f":{name}")
        parts.append(_BIND_LIKE.sub(r"\\:\1", segment))

    return "".join(parts), binds


def _connect_args(drivername: str, timeout: int) -> Dict[str, Any]:
    if drivername.endswith("+pymysql"):
        return {"connect_timeout": timeout, "charset": "utf8mb4"}
    return {"connection_timeout": timeout, "charset": "utf8mb4", "use_pure": True}


class NativeLibraryConnection:
    """Connection managed by SQLAlchemy, selected by the installation's driver."""

    def __init__(self, config: OpenCartConfig):
        """Open the connection.

        Raises:
            DriverNotFoundError: If the OpenCart driver has no Python counterpart
            ConnectionError: If the server cannot be reached or rejects the login
        """
        self.config = config
        self._affected_rows = 0
        self._last_insert_id = 0

        driver = (config.db_driver or "").lower()
        self.drivername = NATIVE_DRIVERS.get(driver)
        if self.drivername is None:
            raise DriverNotFoundError(
                config.db_driver,
                message=f"No Python database driver available for OpenCart driver '{config.db_driver}'"
            )

        url = URL.create(
            self.drivername,
            username=config.db_username,
            password=config.db_password,
            host=resolve_host(config.db_hostname),
            port=config.db_port,
            database=config.db_database,
        )
        self._engine = create_engine(
            url,
            connect_args=_connect_args(self.drivername, config.connect_timeout),
            poolclass=NullPool,
        )

        try:
            connection = self._engine.connect()
        except SQLAlchemyError as e:
            self._engine.dispose()
            reason = getattr(e, "orig", None) or e
            raise ConnectionError(f"Database connection exception: {reason}", host=url.host) from e

        # Match mysqli: every statement commits on its own unless a
        # transaction is started explicitly.
        self._connection = connection.execution_options(isolation_level="AUTOCOMMIT")
        logger.info(f"Connected via {self.drivername} to {url.host}:{config.db_port}")

    @property
    def is_open(self) -> bool:
        return self._connection is not None

    def execute(self, sql: str, params: Sequence[Any] = ()) -> QueryResult:
        """Execute a statement through SQLAlchemy.

        Statements without parameters are sent to the DBAPI untouched, so
        percent signs and colons need no escaping.
        """
        if self._connection is None:
            raise QueryError("Database connection is closed", sql=sql)

        values = bind_parameters(params)
        if values:
            statement, binds = to_named_statement(sql, values)
            result = self._connection.execute(text(statement), binds)
        else:
            result = self._connection.exec_driver_sql(
                sql, execution_options={"no_parameters": True}
            )

        self._affected_rows = max(result.rowcount or 0, 0)
        self._last_insert_id = result.lastrowid or 0

        if not result.returns_rows:
            result.close()
            return QueryResult.empty()

        return QueryResult.from_rows(dict(mapping) for mapping in result.mappings())

    def escape(self, value: Any) -> str:
        """Escape using the DBAPI connection's own string escaping."""
        if self._connection is None:
            raise QueryError("Database connection is closed")

        dbapi_connection = self._connection.connection.dbapi_connection
        if hasattr(dbapi_connection, "escape_string"):
            # PyMySQL
            return dbapi_connection.escape_string(str(value))
        return dbapi_connection.converter.escape(str(value))

    def last_insert_id(self) -> int:
        return self._last_insert_id

    def affected_rows(self) -> int:
        return self._affected_rows

    def close(self) -> None:
        """Close the connection and dispose of the engine."""
        if self._connection is None:
            return
        try:
            self._connection.close()
        except SQLAlchemyError as e:
            logger.warning(f"Error closing database connection: {e}")
        finally:
            self._connection = None
            self._engine.dispose()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.drivername}, database={self.config.db_database})"
