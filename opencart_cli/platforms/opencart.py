"""
OpenCart installation discovery.

Locates an OpenCart root by walking up from a starting directory and
looking for well-known marker files, and reads the installed OpenCart
version from the PHP sources without executing them.
"""

import logging
import re
from pathlib import Path
from typing import Iterable, Optional, Union

from ..utils.helpers import version_at_least

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

MARKER_FILES = (
    "system/startup.php",
    "system/config/catalog.php",
    "admin/config.php",
    "config.php",
)

_VERSION_PATTERN = re.compile(
    r"define\s*\(\s*['\"]VERSION['\"]\s*,\s*['\"]([^'\"]+)['\"]\s*\)"
)


def _exists(path: Path) -> bool:
    try:
        return path.exists()
    except OSError:
        # Unreadable intermediate directories count as "marker absent"
        return False


def detect_opencart(path: PathLike = ".") -> bool:
    """Check whether ``path`` looks like an OpenCart root.

    Only the given directory is inspected. A missing or unreadable path is
    reported as "not OpenCart" rather than raising.

    Args:
        path: Directory to check

    Returns:
        True if at least one marker file exists directly under ``path``
    """
    base = Path(path)
    for marker in MARKER_FILES:
        if _exists(base / marker):
            logger.debug(f"Found OpenCart marker {marker} in {base}")
            return True
    return False


def get_opencart_root(start_path: PathLike = ".") -> Optional[Path]:
    """Find the nearest OpenCart root at or above ``start_path``.

    The start path is resolved to an absolute path with symlinks followed.
    The walk goes strictly upward, so a nested installation closer to
    ``start_path`` wins over one further up. The filesystem root itself is
    never treated as an installation.

    Args:
        start_path: Directory to start searching from

    Returns:
        Absolute path of the installation root, or None if none was found
    """
    try:
        path = Path(start_path).resolve(strict=True)
    except (OSError, RuntimeError):
        logger.debug(f"Cannot resolve start path {start_path}")
        return None

    while path != path.parent:
        if detect_opencart(path):
            return path
        path = path.parent

    return None


def _read_text(path: Path) -> Optional[str]:
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return None


def _candidate_version_files(root: Path) -> Iterable[Path]:
    yield root / "system" / "startup.php"
    yield root / "index.php"
    for config_dir in (root / "system" / "config", root / "admin" / "config"):
        try:
            if config_dir.is_dir():
                yield from sorted(config_dir.glob("*.php"))
        except OSError:
            continue


def get_opencart_version(root: Optional[PathLike]) -> Optional[str]:
    """Read the OpenCart version from the installation sources.

    Looks for ``define('VERSION', '...')`` in system/startup.php, index.php
    and the PHP files under system/config and admin/config, in that order.
    """
    if root is None:
        return None

    for candidate in _candidate_version_files(Path(root)):
        if not _exists(candidate):
            continue
        content = _read_text(candidate)
        if content is None:
            continue
        match = _VERSION_PATTERN.search(content)
        if match:
            return match.group(1)

    return None


def is_opencart4(version: Optional[str]) -> bool:
    """True for OpenCart 4.0.0 and later."""
    return version_at_least(version, "4.0.0")
