"""
Plain SQL database dumps written and replayed through the gateway.

Dumps contain DROP TABLE / CREATE TABLE / INSERT statements, one statement
per line for data, optionally gzip-compressed. Restore reads the file line by
line and executes a statement whenever a line ends with ``;``.
"""

import gzip
import logging
import os
import tempfile
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import IO, Any, Callable, List, Optional, Sequence, Union

from ..core.exceptions import BackupError, QueryError
from ..database.base import escape_like, quote_identifier
from ..database.gateway import QUERY_ERRORS, DatabaseGateway

logger = logging.getLogger(__name__)

GZIP_SUFFIX = ".gz"
PROGRESS_INTERVAL = 100
# Column types whose zero values drivers cannot represent
TEMPORAL_TYPES = ("date", "datetime", "timestamp")


@dataclass
class BackupReport:
    """Outcome of a backup run."""
    path: Path
    tables: List[str] = field(default_factory=list)
    rows_written: int = 0
    compressed: bool = False

    @property
    def size(self) -> int:
        try:
            return self.path.stat().st_size
        except OSError:
            return 0


@dataclass
class RestoreReport:
    """Outcome of a restore run."""
    queries_executed: int = 0
    errors: List[str] = field(default_factory=list)


def is_compressed(path: Union[str, Path]) -> bool:
    return str(path).endswith(GZIP_SUFFIX)


def _open_dump(path: Path, mode: str, compress: Optional[bool] = None) -> IO[str]:
    if compress is None:
        compress = is_compressed(path)
    if compress:
        return gzip.open(path, mode + "t", encoding="utf-8")
    return open(path, mode, encoding="utf-8")


def _text(value: Any) -> str:
    # SHOW COLUMNS may return bytes for the Type column
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)


def _discard(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"Could not remove temporary file {path}: {e}")


def _error_text(error: Exception) -> str:
    """Driver message for either strategy's query errors."""
    if isinstance(error, QueryError):
        return error.message
    return str(getattr(error, "orig", None) or error)


def list_prefixed_tables(gateway: DatabaseGateway) -> List[str]:
    """Base tables of the current database whose names start with the table prefix."""
    result = gateway.execute(
        "SELECT table_name AS name FROM information_schema.tables "
        "WHERE table_schema = DATABASE() AND table_type = 'BASE TABLE' "
        "AND table_name LIKE ? ORDER BY table_name",
        [escape_like(gateway.config.db_prefix) + "%"]
    )
    return [row["name"] for row in result.rows]


class SqlDumpWriter:
    """Write a SQL dump of selected tables."""

    def __init__(
        self,
        gateway: DatabaseGateway,
        on_table: Optional[Callable[[str], None]] = None
    ):
        self.gateway = gateway
        self.on_table = on_table

    def _literal(self, value: Any) -> str:
        if value is None:
            return "NULL"
        if isinstance(value, bool):
            return "1" if value else "0"
        if isinstance(value, (bytes, bytearray)):
            return ("0x" + bytes(value).hex()) if value else "''"
        return "'" + self.gateway.escape(str(value)) + "'"

    def write(
        self,
        path: Union[str, Path],
        tables: Optional[Sequence[str]] = None,
        compress: bool = False
    ) -> BackupReport:
        """
        Dump ``tables`` (all prefixed tables by default) to ``path``.

        The dump is written to a temporary file next to ``path`` and moved
        into place only after every table has been written, so a failed
        run never leaves a partial dump behind.

        Raises:
            BackupError: If there is nothing to back up or the file cannot be written
        """
        path = Path(path)
        tables = list(tables) if tables else list_prefixed_tables(self.gateway)
        if not tables:
            raise BackupError("No tables found to backup.")

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, temp_name = tempfile.mkstemp(
                dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp"
            )
            os.close(fd)
        except OSError as e:
            raise BackupError(f"Could not create backup file in {path.parent}: {e}") from e

        temp_path = Path(temp_name)
        report = BackupReport(path=path, compressed=compress)
        try:
            with _open_dump(temp_path, "w", compress) as handle:
                self._write_header(handle)
                for table in tables:
                    if self.on_table:
                        self.on_table(table)
                    report.rows_written += self._write_table(handle, table)
                    report.tables.append(table)
                handle.write("SET FOREIGN_KEY_CHECKS=1;\n")
            os.replace(temp_path, path)
        except BaseException as e:
            _discard(temp_path)
            if isinstance(e, OSError):
                raise BackupError(f"Could not write backup file {path}: {e}") from e
            raise

        logger.info(f"Backup written to {path}: {len(report.tables)} tables, {report.rows_written} rows")
        return report

    def _write_header(self, handle: IO[str]) -> None:
        handle.write("-- OpenCart Database Backup\n")
        handle.write(f"-- Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n")
        handle.write(f"-- Database: {self.gateway.config.db_database}\n\n")
        handle.write("SET FOREIGN_KEY_CHECKS=0;\n\n")

    def _select_list(self, table: str) -> str:
        """Column list for the data query.

        Temporal columns are read as text: MySQL drivers turn zero dates
        such as ``0000-00-00`` into None, which would be dumped as NULL.
        """
        columns = self.gateway.execute(f"SHOW COLUMNS FROM {quote_identifier(table)}")
        if not columns.num_rows:
            return "*"

        selected = []
        for column in columns.rows:
            name = quote_identifier(_text(column["Field"]))
            column_type = _text(column["Type"]).lower()
            if column_type.startswith(TEMPORAL_TYPES):
                selected.append(f"CAST({name} AS CHAR) AS {name}")
            else:
                selected.append(name)
        return ", ".join(selected)

    def _write_table(self, handle: IO[str], table: str) -> int:
        quoted = quote_identifier(table)

        create = self.gateway.execute(f"SHOW CREATE TABLE {quoted}")
        if create.num_rows:
            statement = create.row.get("Create Table") or list(create.row.values())[-1]
            handle.write(f"-- Table structure for {table}\n")
            handle.write(f"DROP TABLE IF EXISTS {quoted};\n")
            handle.write(f"{statement};\n\n")

        data = self.gateway.execute(f"SELECT {self._select_list(table)} FROM {quoted}")
        if not data.num_rows:
            return 0

        handle.write(f"-- Data for table {table}\n")
        for row in data.rows:
            columns = ", ".join(quote_identifier(c) for c in row.keys())
            values = ", ".join(self._literal(v) for v in row.values())
            handle.write(f"INSERT INTO {quoted} ({columns}) VALUES ({values});\n")
        handle.write("\n")
        return data.num_rows


def restore_dump(
    gateway: DatabaseGateway,
    path: Union[str, Path],
    ignore_errors: bool = False,
    on_progress: Optional[Callable[[int], None]] = None
) -> RestoreReport:
    """
    Replay a SQL dump.

    Blank lines and lines starting with ``--`` or ``/*`` are skipped. Lines
    are accumulated, joined by a space, until one ends with ``;``.

    Args:
        gateway: Open gateway
        path: Dump file; ``.gz`` files are decompressed transparently
        ignore_errors: Record failing statements and continue
        on_progress: Called with the executed count every 100 statements

    Raises:
        BackupError: If the file cannot be read
        QueryError: On the first failing statement unless ``ignore_errors``
    """
    path = Path(path)
    report = RestoreReport()
    buffer: List[str] = []

    gateway.execute("SET FOREIGN_KEY_CHECKS=0")
    try:
        with _open_dump(path, "r") as handle:
            for line_number, raw in enumerate(handle, start=1):
                line = raw.strip()
                if not line or line.startswith("--") or line.startswith("/*"):
                    continue

                buffer.append(line)
                if not line.endswith(";"):
                    continue

                statement = " ".join(buffer)
                buffer = []

                try:
                    gateway.execute(statement)
                except QUERY_ERRORS as e:
                    message = _error_text(e)
                    if not ignore_errors:
                        raise QueryError(message, sql=statement, line_number=line_number) from e
                    report.errors.append(f"Line {line_number}: {message}")
                    logger.warning(f"SQL Error at line {line_number}: {message}")
                    continue

                report.queries_executed += 1
                if on_progress and report.queries_executed % PROGRESS_INTERVAL == 0:
                    on_progress(report.queries_executed)
    except (OSError, EOFError, UnicodeDecodeError) as e:
        raise BackupError(f"Could not read backup file {path}: {e}") from e
    finally:
        try:
            gateway.execute("SET FOREIGN_KEY_CHECKS=1")
        except QUERY_ERRORS as e:
            logger.warning(f"Could not re-enable foreign key checks: {e}")

    logger.info(f"Restore finished: {report.queries_executed} statements, {len(report.errors)} errors")
    return report
