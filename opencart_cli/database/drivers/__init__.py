"""Connection strategies backing the database gateway."""

from .fallback import FallbackDriverConnection
from .native import NativeLibraryConnection

__all__ = [
    'FallbackDriverConnection',
    'NativeLibraryConnection',
]
