"""
Platform discovery for OpenCart installations.
"""

from .opencart import (
    MARKER_FILES,
    detect_opencart,
    get_opencart_root,
    get_opencart_version,
    is_opencart4,
)

__all__ = [
    'MARKER_FILES',
    'detect_opencart',
    'get_opencart_root',
    'get_opencart_version',
    'is_opencart4',
]
