"""
Core module for oc-cli.

This module contains the exception hierarchy shared by the
database layer and the command line interface.
"""

from opencart_cli.core.exceptions import (
    OpenCartCLIError,
    RootNotFoundError,
    ConfigUnreadableError,
    ValidationError,
    BackupError,
    DatabaseError,
    DatabaseLibraryNotFoundError,
    DriverNotFoundError,
    ConnectionError,
    QueryError,
)

__all__ = [
    "OpenCartCLIError",
    "RootNotFoundError",
    "ConfigUnreadableError",
    "ValidationError",
    "BackupError",
    "DatabaseError",
    "DatabaseLibraryNotFoundError",
    "DriverNotFoundError",
    "ConnectionError",
    "QueryError",
]
