"""
Custom exceptions for oc-cli.

This module defines the exception classes raised by the database
gateway, the command context and the commands themselves.
"""

from typing import Any, Dict, Optional


class OpenCartCLIError(Exception):
    """Base exception class for oc-cli errors."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}


class RootNotFoundError(OpenCartCLIError):
    """Raised when a command needs an OpenCart root and none was found."""

    def __init__(self, message: Optional[str] = None, **kwargs):
        super().__init__(
            message or (
                "This command must be run from an OpenCart installation directory "
                "or provide database connection options (--db-host, --db-user, --db-pass, --db-name)."
            ),
            **kwargs
        )


class ConfigUnreadableError(OpenCartCLIError):
    """Raised when config.php is missing or cannot be read."""
    pass


class ValidationError(OpenCartCLIError):
    """Raised when command input is invalid."""
    pass


class BackupError(OpenCartCLIError):
    """Raised when backup or restore file operations fail."""
    pass


class DatabaseError(OpenCartCLIError):
    """Raised when database operations fail."""
    pass


class DatabaseLibraryNotFoundError(DatabaseError):
    """Raised when system/library/db.php is absent and no CLI flags were given."""

    def __init__(self, message: Optional[str] = None, **kwargs):
        super().__init__(
            message or "Unable to locate OpenCart database library (system/library/db.php).",
            **kwargs
        )


class DriverNotFoundError(DatabaseError):
    """Raised when the configured database driver is not available."""

    def __init__(self, driver: str, path: Optional[str] = None, message: Optional[str] = None):
        self.driver = driver
        self.path = path
        if message is None:
            message = f"OpenCart database driver not found: {path or driver}"
        super().__init__(message, details={"driver": driver, "path": path})


class ConnectionError(DatabaseError):
    """Raised when the database server cannot be reached or rejects the login."""

    def __init__(self, message: str, host: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.host = host


class QueryError(DatabaseError):
    """Raised when a statement fails on the fallback driver."""

    def __init__(
        self,
        message: str,
        sql: Optional[str] = None,
        line_number: Optional[int] = None,
        **kwargs
    ):
        if line_number is not None:
            message = f"SQL Error at line {line_number}: {message}"
        super().__init__(message, **kwargs)
        self.sql = sql
        self.line_number = line_number
