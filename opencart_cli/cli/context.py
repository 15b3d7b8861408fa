"""
Per-invocation command context.

Every command that touches an installation runs inside a CommandContext,
which resolves the OpenCart root and configuration once, opens the
database gateway on first use and always closes it on exit.
"""

import functools
import logging
import sys
import traceback
from pathlib import Path
from typing import Callable, Optional

import click
from sqlalchemy.exc import SQLAlchemyError

from ..core.exceptions import ConfigUnreadableError, OpenCartCLIError, RootNotFoundError
from ..database.config import DatabaseOptions, OpenCartConfig, resolve_config
from ..database.gateway import DatabaseGateway
from ..platforms.opencart import get_opencart_root
from ..utils.output import print_error

logger = logging.getLogger(__name__)


class CommandContext:
    """Root, configuration and database gateway for one command run."""

    def __init__(
        self,
        opencart_root: Optional[str] = None,
        db_options: Optional[DatabaseOptions] = None,
        require_opencart: bool = True
    ):
        self.requested_root = opencart_root
        self.db_options = db_options or DatabaseOptions()
        self.require_opencart = require_opencart
        self.root: Optional[Path] = None
        self._config: Optional[OpenCartConfig] = None
        self._config_loaded = False
        self._gateway: Optional[DatabaseGateway] = None

    def __enter__(self) -> "CommandContext":
        self.root = get_opencart_root(self.requested_root or ".")
        logger.debug(f"OpenCart root: {self.root or 'not found'}")

        if self.require_opencart and self.root is None and not self.db_options.explicit:
            raise RootNotFoundError()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    @property
    def has_database(self) -> bool:
        """True when there is an installation or explicit options to connect with."""
        return self.root is not None or self.db_options.explicit

    @property
    def config(self) -> OpenCartConfig:
        """Resolved configuration.

        Raises:
            ConfigUnreadableError: If config.php is missing or unreadable
        """
        if not self._config_loaded:
            self._config = resolve_config(self.root, self.db_options)
            self._config_loaded = True
        if self._config is None:
            raise ConfigUnreadableError("Could not read OpenCart configuration.")
        return self._config

    @property
    def gateway(self) -> DatabaseGateway:
        """Database gateway, connected on first access."""
        if self._gateway is None:
            self._gateway = DatabaseGateway.connect(self.config)
        return self._gateway

    def close(self) -> None:
        if self._gateway is not None:
            self._gateway.close()
            self._gateway = None


def _build_options(
    db_host, db_user, db_pass, db_name, db_port, db_prefix, db_driver
) -> DatabaseOptions:
    return DatabaseOptions(
        host=db_host,
        user=db_user,
        password=db_pass,
        name=db_name,
        port=db_port,
        prefix=db_prefix,
        driver=db_driver,
    )


_CONNECTION_OPTIONS = [
    click.option('--opencart-root', type=click.Path(file_okay=False),
                 help='Path to OpenCart installation directory'),
    click.option('--db-host', help='Database hostname'),
    click.option('--db-user', help='Database username'),
    click.option('--db-pass', help='Database password'),
    click.option('--db-name', help='Database name'),
    click.option('--db-port', type=click.IntRange(1, 65535), help='Database port (default: 3306)'),
    click.option('--db-prefix', help='Database table prefix (default: oc_)'),
    click.option('--db-driver', help='Database driver (default: mysqli)'),
]


def connection_options(func: Callable) -> Callable:
    """Add the global connection options and pass them on as a ``target`` dict."""

    @functools.wraps(func)
    def wrapper(*args, opencart_root, db_host, db_user, db_pass, db_name,
                db_port, db_prefix, db_driver, **kwargs):
        target = {
            "opencart_root": opencart_root,
            "db_options": _build_options(
                db_host, db_user, db_pass, db_name, db_port, db_prefix, db_driver
            ),
        }
        return func(*args, target=target, **kwargs)

    for option in reversed(_CONNECTION_OPTIONS):
        wrapper = option(wrapper)
    return wrapper


def handle_errors(func: Callable) -> Callable:
    """Print failures as one red line and exit with status 1."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (OpenCartCLIError, SQLAlchemyError) as e:
            message = e.message if isinstance(e, OpenCartCLIError) else str(getattr(e, "orig", None) or e)
            print_error(message)
            ctx = click.get_current_context(silent=True)
            if ctx is not None and (ctx.find_root().obj or {}).get('verbose', False):
                click.echo(traceback.format_exc(), err=True)
            sys.exit(1)

    return wrapper
