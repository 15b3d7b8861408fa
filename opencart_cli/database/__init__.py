"""
Database access for OpenCart installations.

Configuration extraction, the gateway and its two connection strategies.
"""

from .base import DatabaseBackend, QueryResult, escape_like, quote_identifier
from .config import (
    ConfigSource,
    DatabaseOptions,
    OpenCartConfig,
    build_config,
    build_config_from_options,
    extract_config_value,
    resolve_config,
)
from .gateway import QUERY_ERRORS, DatabaseGateway, select_backend

__all__ = [
    'DatabaseBackend',
    'QueryResult',
    'escape_like',
    'quote_identifier',
    'ConfigSource',
    'DatabaseOptions',
    'OpenCartConfig',
    'build_config',
    'build_config_from_options',
    'extract_config_value',
    'resolve_config',
    'QUERY_ERRORS',
    'DatabaseGateway',
    'select_backend',
]
