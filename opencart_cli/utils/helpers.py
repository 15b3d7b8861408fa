"""
Helper utilities for oc-cli.

Small formatting and conversion functions shared by the commands.
"""

import re
from datetime import datetime
from typing import Optional, Union


def format_bytes(bytes_count: Union[int, float], precision: int = 2) -> str:
    """Format bytes into human-readable string, e.g. ``1.5 KB``."""
    units = ['B', 'KB', 'MB', 'GB', 'TB']
    value = float(bytes_count)
    index = 0
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1

    rounded = round(value, precision)
    if rounded == int(rounded):
        rounded = int(rounded)
    return f"{rounded} {units[index]}"


def version_to_tuple(version: Optional[str]) -> tuple:
    """Numeric components of a dotted version, padded to three.

    ``8.0.36-log`` -> ``(8, 0, 36)``, ``10.6`` -> ``(10, 6, 0)``.
    """
    if not version:
        return ()
    parts = []
    for part in str(version).split("."):
        match = re.match(r"\d+", part)
        if not match:
            break
        parts.append(int(match.group(0)))
    if not parts:
        return ()
    # "8" compares like "8.0.0"
    while len(parts) < 3:
        parts.append(0)
    return tuple(parts)


def version_at_least(version: Optional[str], minimum: str) -> bool:
    current = version_to_tuple(version)
    if not current:
        return False
    return current >= version_to_tuple(minimum)


def backup_filename(now: Optional[datetime] = None) -> str:
    """Default database backup file name."""
    now = now or datetime.now()
    return f"opencart_backup_{now.strftime('%Y-%m-%d_%H-%M-%S')}.sql"


def truncate(text: str, length: int = 50) -> str:
    text = str(text)
    if len(text) <= length:
        return text
    return text[:length - 3] + "..."
