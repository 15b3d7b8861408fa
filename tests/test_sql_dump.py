"""Tests for SQL dump backup and restore."""

import gzip

import pytest
from sqlalchemy.exc import ProgrammingError

from opencart_cli.backup.sql_dump import (
    SqlDumpWriter,
    is_compressed,
    list_prefixed_tables,
    restore_dump,
)
from opencart_cli.core.exceptions import BackupError, QueryError
from opencart_cli.database.base import QueryResult


CREATE_PRODUCT = "CREATE TABLE `oc_product` (`product_id` int NOT NULL, `model` varchar(64))"


def dump_results(sql, params=()):
    if sql.startswith("SHOW CREATE TABLE"):
        return QueryResult.from_rows([{"Table": "oc_product", "Create Table": CREATE_PRODUCT}])
    if sql.startswith("SELECT * FROM"):
        return QueryResult.from_rows([
            {"product_id": 1, "model": "O'Neil"},
            {"product_id": 2, "model": None},
        ])
    return QueryResult.empty()


class TestListPrefixedTables:
    """Test cases for list_prefixed_tables."""

    def test_prefix_is_escaped_for_like(self, mock_gateway):
        mock_gateway.execute.return_value = QueryResult.from_rows([{"name": "oc_product"}])

        assert list_prefixed_tables(mock_gateway) == ["oc_product"]
        assert mock_gateway.execute.call_args.args[1] == ["oc\\_%"]


class TestSqlDumpWriter:
    """Test cases for SqlDumpWriter."""

    def test_plain_dump(self, mock_gateway, tmp_path):
        mock_gateway.execute.side_effect = dump_results
        target = tmp_path / "out" / "backup.sql"

        report = SqlDumpWriter(mock_gateway).write(target, tables=["oc_product"])

        content = target.read_text()
        assert content.startswith("-- OpenCart Database Backup\n")
        assert "SET FOREIGN_KEY_CHECKS=0;" in content
        assert "DROP TABLE IF EXISTS `oc_product`;" in content
        assert CREATE_PRODUCT + ";" in content
        assert "INSERT INTO `oc_product` (`product_id`, `model`) VALUES ('1', 'O\\'Neil');" in content
        assert "VALUES ('2', NULL);" in content
        assert content.rstrip().endswith("SET FOREIGN_KEY_CHECKS=1;")
        assert report.tables == ["oc_product"]
        assert report.rows_written == 2
        assert report.size > 0

    def test_compressed_dump(self, mock_gateway, tmp_path):
        mock_gateway.execute.side_effect = dump_results
        target = tmp_path / "backup.sql.gz"

        report = SqlDumpWriter(mock_gateway).write(target, tables=["oc_product"], compress=True)

        with gzip.open(target, "rt", encoding="utf-8") as handle:
            assert "DROP TABLE IF EXISTS `oc_product`;" in handle.read()
        assert report.compressed is True

    def test_all_prefixed_tables_by_default(self, mock_gateway, tmp_path):
        def results(sql, params=()):
            if "information_schema" in sql:
                return QueryResult.from_rows([{"name": "oc_product"}, {"name": "oc_setting"}])
            return QueryResult.empty()

        mock_gateway.execute.side_effect = results
        seen = []

        report = SqlDumpWriter(mock_gateway, on_table=seen.append).write(tmp_path / "b.sql")

        assert seen == ["oc_product", "oc_setting"]
        assert report.rows_written == 0

    def test_zero_dates_are_dumped_as_text(self, mock_gateway, tmp_path):
        def results(sql, params=()):
            if sql.startswith("SHOW COLUMNS"):
                return QueryResult.from_rows([
                    {"Field": "product_id", "Type": "int(11)"},
                    {"Field": "date_available", "Type": b"date"},
                    {"Field": "date_added", "Type": "datetime"},
                ])
            if sql.startswith("SELECT"):
                # Drivers convert zero dates to None unless they arrive as text
                cast = "CAST(`date_added` AS CHAR) AS `date_added`" in sql
                return QueryResult.from_rows([{
                    "product_id": 1,
                    "date_available": "0000-00-00" if "CAST(`date_available`" in sql else None,
                    "date_added": "0000-00-00 00:00:00" if cast else None,
                }])
            return QueryResult.empty()

        mock_gateway.execute.side_effect = results
        target = tmp_path / "backup.sql"

        SqlDumpWriter(mock_gateway).write(target, tables=["oc_product"])

        content = target.read_text()
        assert ("INSERT INTO `oc_product` (`product_id`, `date_available`, `date_added`) "
                "VALUES ('1', '0000-00-00', '0000-00-00 00:00:00');") in content
        assert "NULL" not in content

    def test_real_nulls_stay_null(self, mock_gateway, tmp_path):
        def results(sql, params=()):
            if sql.startswith("SHOW COLUMNS"):
                return QueryResult.from_rows([{"Field": "date_end", "Type": "date"}])
            if sql.startswith("SELECT"):
                return QueryResult.from_rows([{"date_end": None}])
            return QueryResult.empty()

        mock_gateway.execute.side_effect = results
        target = tmp_path / "backup.sql"

        SqlDumpWriter(mock_gateway).write(target, tables=["oc_coupon"])

        assert "VALUES (NULL);" in target.read_text()

    def test_failed_query_leaves_no_file(self, mock_gateway, tmp_path):
        def results(sql, params=()):
            if sql == "SELECT * FROM `oc_b`":
                raise QueryError("Lost connection to MySQL server during query")
            if sql.startswith("SELECT"):
                return QueryResult.from_rows([{"id": 1}])
            return QueryResult.empty()

        mock_gateway.execute.side_effect = results
        target = tmp_path / "backup.sql"

        with pytest.raises(QueryError):
            SqlDumpWriter(mock_gateway).write(target, tables=["oc_a", "oc_b"])

        assert not target.exists()
        assert list(tmp_path.iterdir()) == []

    def test_failed_backup_keeps_previous_file(self, mock_gateway, tmp_path):
        target = tmp_path / "backup.sql"
        target.write_text("previous dump\n")
        mock_gateway.execute.side_effect = QueryError("Lost connection")

        with pytest.raises(QueryError):
            SqlDumpWriter(mock_gateway).write(target, tables=["oc_a"])

        assert target.read_text() == "previous dump\n"

    def test_no_tables(self, mock_gateway, tmp_path):
        with pytest.raises(BackupError, match="No tables found"):
            SqlDumpWriter(mock_gateway).write(tmp_path / "b.sql")

    def test_binary_and_bool_literals(self, mock_gateway):
        writer = SqlDumpWriter(mock_gateway)
        assert writer._literal(b"\x01\xff") == "0x01ff"
        assert writer._literal(b"") == "''"
        assert writer._literal(True) == "1"

    def test_is_compressed(self):
        assert is_compressed("a.sql.gz")
        assert not is_compressed("a.sql")


class TestRestoreDump:
    """Test cases for restore_dump."""

    def test_statements_split_on_semicolon(self, mock_gateway, executed_sql, tmp_path):
        dump = tmp_path / "in.sql"
        dump.write_text(
            "-- comment\n"
            "/*!40101 SET NAMES utf8 */;\n"
            "\n"
            "CREATE TABLE t (\n"
            "  id int\n"
            ");\n"
            "INSERT INTO t VALUES (1);\n"
        )

        report = restore_dump(mock_gateway, dump)

        assert executed_sql(mock_gateway) == [
            "SET FOREIGN_KEY_CHECKS=0",
            "CREATE TABLE t ( id int );",
            "INSERT INTO t VALUES (1);",
            "SET FOREIGN_KEY_CHECKS=1",
        ]
        assert report.queries_executed == 2
        assert report.errors == []

    def test_compressed_input(self, mock_gateway, tmp_path):
        dump = tmp_path / "in.sql.gz"
        with gzip.open(dump, "wt", encoding="utf-8") as handle:
            handle.write("INSERT INTO t VALUES (1);\n")

        assert restore_dump(mock_gateway, dump).queries_executed == 1

    def test_error_reports_line_number(self, mock_gateway, executed_sql, tmp_path):
        dump = tmp_path / "in.sql"
        dump.write_text("INSERT INTO t VALUES (1);\n\nINSERT INTO missing VALUES (1);\n")

        def execute(sql, params=()):
            if "missing" in sql:
                raise QueryError("Table 'shop.missing' doesn't exist")
            return QueryResult.empty()

        mock_gateway.execute.side_effect = execute

        with pytest.raises(QueryError) as exc_info:
            restore_dump(mock_gateway, dump)

        assert str(exc_info.value) == "SQL Error at line 3: Table 'shop.missing' doesn't exist"
        assert exc_info.value.line_number == 3
        # Foreign key checks are restored even on failure
        assert executed_sql(mock_gateway)[-1] == "SET FOREIGN_KEY_CHECKS=1"

    def test_ignore_errors(self, mock_gateway, tmp_path):
        dump = tmp_path / "in.sql"
        dump.write_text("INSERT INTO bad VALUES (1);\nINSERT INTO t VALUES (1);\n")

        def execute(sql, params=()):
            if "bad" in sql:
                raise ProgrammingError(sql, {}, Exception("syntax error"))
            return QueryResult.empty()

        mock_gateway.execute.side_effect = execute

        report = restore_dump(mock_gateway, dump, ignore_errors=True)

        assert report.queries_executed == 1
        assert report.errors == ["Line 1: syntax error"]

    def test_progress_callback(self, mock_gateway, tmp_path):
        dump = tmp_path / "in.sql"
        dump.write_text("SELECT 1;\n" * 250)
        progress = []

        restore_dump(mock_gateway, dump, on_progress=progress.append)

        assert progress == [100, 200]

    def test_missing_file(self, mock_gateway, tmp_path):
        with pytest.raises(BackupError):
            restore_dump(mock_gateway, tmp_path / "nope.sql")
