"""Integration tests that open real network connections.

Run with ``pytest -m integration``.
"""

import time

import pytest

from opencart_cli.core.exceptions import ConnectionError
from opencart_cli.database.config import DatabaseOptions, build_config_from_options
from opencart_cli.database.gateway import DatabaseGateway


@pytest.mark.integration
class TestUnreachableServer:
    """Connection failures against hosts that do not exist."""

    def test_unresolvable_host_fails_fast(self):
        config = build_config_from_options(
            DatabaseOptions(host="invalid.host.invalid", user="u", password="p", name="shop")
        )

        started = time.monotonic()
        with pytest.raises(ConnectionError):
            DatabaseGateway.connect(config)

        assert time.monotonic() - started < 5
