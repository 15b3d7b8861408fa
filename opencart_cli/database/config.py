"""OpenCart database configuration models and config.php extraction.

config.php is only ever read as text. Values are pulled out with a regular
expression so that arbitrary code in an installation is never executed.
"""

import logging
import re
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

DEFAULT_PORT = 3306
DEFAULT_DRIVER = "mysqli"
DEFAULT_CLI_PREFIX = "oc_"
DEFAULT_CONNECT_TIMEOUT = 2

CONFIG_FILE = "config.php"

# config.php constant -> OpenCartConfig field
CONFIG_CONSTANTS = {
    "DB_HOSTNAME": "db_hostname",
    "DB_USERNAME": "db_username",
    "DB_PASSWORD": "db_password",
    "DB_DATABASE": "db_database",
    "DB_PORT": "db_port",
    "DB_PREFIX": "db_prefix",
    "DB_DRIVER": "db_driver",
    "HTTP_SERVER": "http_server",
    "HTTPS_SERVER": "https_server",
    "DIR_SYSTEM": "dir_system",
}


class ConfigSource(str, Enum):
    """Where a configuration record came from."""
    FILE = "file"
    CLI = "cli"


class DatabaseOptions(BaseModel):
    """Database connection flags given on the command line."""
    host: Optional[str] = None
    user: Optional[str] = None
    password: Optional[str] = None
    name: Optional[str] = None
    port: Optional[int] = Field(default=None, ge=1, le=65535)
    prefix: Optional[str] = None
    driver: Optional[str] = None

    @property
    def explicit(self) -> bool:
        """True when --db-host was given, which replaces config.php entirely."""
        return bool(self.host)


class OpenCartConfig(BaseModel):
    """Resolved connection and runtime parameters for one invocation."""
    model_config = ConfigDict(frozen=True)

    db_hostname: Optional[str] = None
    db_username: Optional[str] = None
    db_password: Optional[str] = None
    db_database: Optional[str] = None
    db_port: int = DEFAULT_PORT
    db_prefix: str = ""
    db_driver: str = DEFAULT_DRIVER
    http_server: Optional[str] = None
    https_server: Optional[str] = None
    dir_system: Optional[str] = None
    source: ConfigSource = ConfigSource.FILE
    connect_timeout: int = Field(default=DEFAULT_CONNECT_TIMEOUT, ge=1, le=300)

    @field_validator('db_port', mode='before')
    @classmethod
    def default_port(cls, v):
        if not v:
            return DEFAULT_PORT
        try:
            port = int(v)
        except (TypeError, ValueError):
            return DEFAULT_PORT
        if not (1 <= port <= 65535):
            return DEFAULT_PORT
        return port

    @field_validator('db_prefix', mode='before')
    @classmethod
    def default_prefix(cls, v):
        return v or ""

    @field_validator('db_driver', mode='before')
    @classmethod
    def default_driver(cls, v):
        return v or DEFAULT_DRIVER

    @property
    def explicit(self) -> bool:
        """True when the record was built from CLI flags."""
        return self.source == ConfigSource.CLI

    def table(self, name: str) -> str:
        """Prefixed table name, e.g. ``oc_product`` for ``product``."""
        return f"{self.db_prefix}{name}"


def extract_config_value(content: str, constant: str) -> Optional[str]:
    """Extract the value of ``define('CONSTANT', 'value')`` from PHP source.

    Matching is case-insensitive, accepts single or double quotes and
    tolerates whitespace around the parentheses and the comma. The first
    match wins; commented-out definitions are not skipped.

    Args:
        content: Raw contents of a PHP file
        constant: Constant name to look for

    Returns:
        The defined value, or None when the constant is not defined
    """
    pattern = re.compile(
        r"define\s*\(\s*['\"]" + re.escape(constant) + r"['\"]\s*,\s*['\"]([^'\"]*)['\"\s]*\)",
        re.IGNORECASE
    )
    match = pattern.search(content)
    if match:
        return match.group(1)
    return None


def _system_dir(root: Union[str, Path]) -> str:
    return str(root).rstrip("/\\") + "/system/"


def build_config(root: Optional[Union[str, Path]]) -> Optional[OpenCartConfig]:
    """Build a configuration record from ``<root>/config.php``.

    Args:
        root: OpenCart installation root

    Returns:
        Configuration record, or None when there is no root or config.php
        is missing or unreadable
    """
    if root is None:
        return None

    config_file = Path(root) / CONFIG_FILE
    try:
        content = config_file.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        logger.debug(f"Cannot read {config_file}: {e}")
        return None

    values = {
        field: extract_config_value(content, constant)
        for constant, field in CONFIG_CONSTANTS.items()
    }
    values["dir_system"] = values["dir_system"] or _system_dir(root)

    logger.debug(f"Loaded configuration from {config_file}")
    return OpenCartConfig(source=ConfigSource.FILE, **values)


def build_config_from_options(
    options: DatabaseOptions,
    root: Optional[Union[str, Path]] = None
) -> OpenCartConfig:
    """Build a configuration record from explicit CLI flags.

    No file is read. ``dir_system`` is derived from ``root`` when one is
    known so that an installation's native database library can still be
    used with overridden credentials.
    """
    return OpenCartConfig(
        db_hostname=options.host,
        db_username=options.user,
        db_password=options.password,
        db_database=options.name,
        db_port=options.port or DEFAULT_PORT,
        db_prefix=options.prefix or DEFAULT_CLI_PREFIX,
        db_driver=options.driver or DEFAULT_DRIVER,
        http_server="",
        https_server="",
        dir_system=_system_dir(root) if root else None,
        source=ConfigSource.CLI,
    )


def resolve_config(
    root: Optional[Union[str, Path]],
    options: Optional[DatabaseOptions] = None
) -> Optional[OpenCartConfig]:
    """Pick the configuration for this invocation.

    Explicit CLI database flags win over config.php; the two sources are
    never merged field by field.
    """
    if options is not None and options.explicit:
        return build_config_from_options(options, root)
    return build_config(root)
