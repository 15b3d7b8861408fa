"""Utility functions and helpers for oc-cli."""

from .helpers import backup_filename, format_bytes, truncate, version_at_least, version_to_tuple
from .logging import LOG_FORMATS, setup_logging

__all__ = [
    'backup_filename',
    'format_bytes',
    'truncate',
    'version_at_least',
    'version_to_tuple',
    'LOG_FORMATS',
    'setup_logging',
]
