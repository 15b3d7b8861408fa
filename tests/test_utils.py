"""Tests for helper, output and logging utilities."""

import json
import logging
from datetime import datetime
from decimal import Decimal

import pytest
import yaml

from opencart_cli.utils.helpers import (
    backup_filename,
    format_bytes,
    truncate,
    version_at_least,
    version_to_tuple,
)
from opencart_cli.utils.logging import (
    ROOT_LOGGER_NAME,
    LogEntry,
    StructuredFormatter,
    setup_logging,
)
from opencart_cli.utils.output import build_table, to_json, to_yaml


class TestHelpers:
    """Test cases for helper functions."""

    @pytest.mark.parametrize("count,expected", [
        (0, "0 B"),
        (512, "512 B"),
        (1536, "1.5 KB"),
        (1048576, "1 MB"),
        (1024 ** 5, "1024 TB"),
    ])
    def test_format_bytes(self, count, expected):
        assert format_bytes(count) == expected

    @pytest.mark.parametrize("version,expected", [
        ("8.0.36", (8, 0, 36)),
        ("8.0.36-0ubuntu0.22.04.1", (8, 0, 36)),
        ("10.6.16-MariaDB", (10, 6, 16)),
        ("5.7", (5, 7, 0)),
        ("", ()),
        (None, ()),
        ("abc", ()),
    ])
    def test_version_to_tuple(self, version, expected):
        assert version_to_tuple(version) == expected

    def test_version_at_least(self):
        assert version_at_least("5.6.0", "5.6")
        assert version_at_least("10.4.1-MariaDB", "5.6")
        assert not version_at_least("5.5.62", "5.6")
        assert not version_at_least(None, "5.6")

    def test_backup_filename(self):
        assert backup_filename(datetime(2024, 3, 5, 14, 7, 9)) == "opencart_backup_2024-03-05_14-07-09.sql"

    def test_truncate(self):
        assert truncate("short") == "short"
        assert truncate("x" * 60, 10) == "xxxxxxx..."


class TestOutput:
    """Test cases for output formatting."""

    def test_json_handles_non_native_values(self):
        data = json.loads(to_json({"price": Decimal("9.99"), "when": datetime(2024, 1, 1)}))
        assert data == {"price": "9.99", "when": "2024-01-01 00:00:00"}

    def test_yaml_handles_non_native_values(self):
        data = yaml.safe_load(to_yaml([{"price": Decimal("9.99"), "qty": 3, "note": None}]))
        assert data == [{"price": "9.99", "qty": 3, "note": None}]

    def test_yaml_keeps_key_order(self):
        assert to_yaml({"b": 1, "a": 2}).splitlines() == ["b: 1", "a: 2"]

    def test_build_table(self):
        table = build_table(
            [{"product_id": 1, "name": None}],
            title="Products",
            headers={"product_id": "ID"}
        )
        assert [c.header for c in table.columns] == ["ID", "Name"]
        assert table.row_count == 1
        assert table.title == "Products"


class TestLogging:
    """Test cases for logging setup."""

    def teardown_method(self):
        logger = logging.getLogger(ROOT_LOGGER_NAME)
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()

    def test_setup_replaces_handlers(self):
        setup_logging()
        logger = setup_logging(level="INFO")

        assert logger.name == ROOT_LOGGER_NAME
        assert logger.level == logging.INFO
        assert len(logger.handlers) == 1
        assert logger.propagate is False

    def test_log_file_gets_debug(self, tmp_path):
        log_file = tmp_path / "logs" / "oc-cli.log"
        logger = setup_logging(level="WARNING", log_file=str(log_file))

        logging.getLogger("opencart_cli.database.gateway").debug("SQL: SELECT 1")
        for handler in logger.handlers:
            handler.flush()

        assert "SQL: SELECT 1" in log_file.read_text()
        assert logger.handlers[0].level == logging.WARNING

    def test_structured_logging_writes_json_lines(self, tmp_path):
        log_file = tmp_path / "oc-cli.log"
        logger = setup_logging(level="INFO", log_file=str(log_file), structured_logging=True)

        logging.getLogger("opencart_cli.database.gateway").debug("SQL: SELECT 1")
        for handler in logger.handlers:
            handler.flush()

        console = logger.handlers[0]
        assert type(console) is logging.StreamHandler
        assert isinstance(console.formatter, StructuredFormatter)
        entries = [json.loads(line) for line in log_file.read_text().splitlines()]
        assert entries[-1]["message"] == "SQL: SELECT 1"
        assert entries[-1]["level"] == "DEBUG"

    def test_structured_formatter(self):
        record = logging.LogRecord(
            "opencart_cli.test", logging.INFO, __file__, 10, "hello %s", ("world",), None
        )
        record.table = "oc_product"

        entry = json.loads(StructuredFormatter().format(record))

        assert entry["message"] == "hello world"
        assert entry["level"] == "INFO"
        assert entry["metadata"]["table"] == "oc_product"

    def test_log_entry_to_dict(self):
        entry = LogEntry(timestamp=datetime(2024, 1, 1), message="x")
        assert entry.to_dict()["timestamp"] == "2024-01-01T00:00:00"
