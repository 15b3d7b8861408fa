"""
Pytest configuration and fixtures for the oc-cli tests.

Provides fake OpenCart installations on disk and mock database gateways,
so nothing here needs a running MySQL server.
"""

from pathlib import Path
from typing import Dict, List
from unittest.mock import MagicMock

import pytest

from opencart_cli.database.base import QueryResult
from opencart_cli.database.config import ConfigSource, OpenCartConfig
from opencart_cli.database.gateway import DatabaseGateway


CONFIG_TEMPLATE = """<?php
// HTTP
define('HTTP_SERVER', 'http://shop.test/');
define('HTTPS_SERVER', 'https://shop.test/');

// DIR
define('DIR_SYSTEM', '{dir_system}');

// DB
define('DB_DRIVER', 'mysqli');
define('DB_HOSTNAME', 'localhost');
define('DB_USERNAME', 'shop_user');
define('DB_PASSWORD', 'secret');
define('DB_DATABASE', 'shop');
define('DB_PORT', '3307');
define('DB_PREFIX', 'oc_');
"""


def _write_php_defines(path: Path, values: Dict[str, str]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = ["<?php"]
    lines.extend(f"define('{name}', '{value}');" for name, value in values.items())
    path.write_text("\n".join(lines) + "\n")
    return path


@pytest.fixture
def opencart_root(tmp_path: Path) -> Path:
    """A minimal OpenCart 3 installation with a full config.php."""
    root = tmp_path / "shop"
    (root / "system").mkdir(parents=True)
    (root / "system" / "startup.php").write_text("<?php\ndefine('VERSION', '3.0.3.8');\n")
    (root / "admin").mkdir()
    (root / "admin" / "config.php").write_text("<?php\n")
    (root / "config.php").write_text(
        CONFIG_TEMPLATE.format(dir_system=str(root / "system") + "/")
    )
    return root


@pytest.fixture
def native_root(opencart_root: Path) -> Path:
    """An installation that also ships the database library and mysqli driver."""
    library = opencart_root / "system" / "library"
    (library / "db").mkdir(parents=True)
    (library / "db.php").write_text("<?php\nclass DB {}\n")
    (library / "db" / "mysqli.php").write_text("<?php\n")
    return opencart_root


@pytest.fixture
def sample_config() -> OpenCartConfig:
    return OpenCartConfig(
        db_hostname="localhost",
        db_username="shop_user",
        db_password="secret",
        db_database="shop",
        db_port=3306,
        db_prefix="oc_",
        db_driver="mysqli",
        source=ConfigSource.FILE,
    )


@pytest.fixture
def cli_config() -> OpenCartConfig:
    return OpenCartConfig(
        db_hostname="db.example.com",
        db_username="admin",
        db_password="pw",
        db_database="shop",
        db_prefix="oc_",
        http_server="",
        https_server="",
        source=ConfigSource.CLI,
    )


@pytest.fixture
def mock_gateway(sample_config: OpenCartConfig) -> MagicMock:
    """Gateway double with real table prefixing and transaction support.

    Queue results with ``gateway.execute.side_effect = [...]`` or set
    ``gateway.execute.return_value``.
    """
    gateway = MagicMock(spec=DatabaseGateway)
    gateway.config = sample_config
    gateway.table.side_effect = sample_config.table
    gateway.execute.return_value = QueryResult.empty()
    gateway.affected_rows.return_value = 0
    gateway.last_insert_id.return_value = 0
    gateway.escape.side_effect = lambda value: str(value).replace("\\", "\\\\").replace("'", "\\'")

    transaction = MagicMock()
    transaction.__enter__.return_value = gateway
    transaction.__exit__.return_value = False
    gateway.transaction.return_value = transaction
    return gateway


def _executed_sql(gateway: MagicMock) -> List[str]:
    return [c.args[0] for c in gateway.execute.call_args_list]


@pytest.fixture
def php_defines():
    """Write a PHP file made of ``define()`` calls."""
    return _write_php_defines


@pytest.fixture
def executed_sql():
    """SQL text of every execute() call on a mock gateway."""
    return _executed_sql
