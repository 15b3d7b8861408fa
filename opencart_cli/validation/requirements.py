"""
System requirements check for running oc-cli against an installation.

Checks are grouped by category (python, modules, permissions, database).
Every check records whether it passed and a short detail message.
"""

import importlib.util
import logging
import os
import platform
import sys
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional

from ..core.exceptions import OpenCartCLIError
from ..database.gateway import QUERY_ERRORS, DatabaseGateway
from ..utils.helpers import version_at_least

logger = logging.getLogger(__name__)

MIN_PYTHON_VERSION = (3, 8)
MIN_MYSQL_VERSION = "5.6"

# (import name, label)
REQUIRED_MODULES = [
    ("sqlalchemy", "SQLAlchemy"),
    ("mysql.connector", "mysql-connector-python"),
    ("pydantic", "pydantic"),
    ("click", "click"),
    ("rich", "rich"),
    ("yaml", "PyYAML"),
    ("gzip", "gzip"),
    ("zlib", "zlib"),
    ("ssl", "ssl"),
]
RECOMMENDED_MODULES = [
    ("pymysql", "PyMySQL"),
]

WRITABLE_DIRS = [
    "image/",
    "image/cache/",
    "image/catalog/",
    "system/storage/",
    "system/storage/cache/",
    "system/storage/logs/",
    "system/storage/download/",
    "system/storage/upload/",
    "system/storage/modification/",
]
WRITABLE_FILES = [
    "config.php",
    "admin/config.php",
]


@dataclass
class RequirementCheck:
    """Result of a single requirement check"""
    name: str
    passed: bool
    message: str

    def to_dict(self) -> Dict[str, object]:
        data = asdict(self)
        data["status"] = "pass" if self.passed else "fail"
        return data


def _module_available(name: str) -> bool:
    try:
        return importlib.util.find_spec(name) is not None
    except (ImportError, ValueError):
        return False


def check_python() -> List[RequirementCheck]:
    minimum = ".".join(str(p) for p in MIN_PYTHON_VERSION)
    return [
        RequirementCheck(
            name=f"Python Version >= {minimum}",
            passed=sys.version_info[:2] >= MIN_PYTHON_VERSION,
            message=f"Current: {platform.python_version()}",
        )
    ]


def check_modules() -> List[RequirementCheck]:
    checks = []
    for modules, kind in ((REQUIRED_MODULES, "required"), (RECOMMENDED_MODULES, "recommended")):
        for module, label in modules:
            available = _module_available(module)
            checks.append(RequirementCheck(
                name=f"Module: {label} ({kind})",
                passed=available,
                message="Available" if available else "Missing",
            ))
    return checks


def check_permissions(root: Optional[Path]) -> List[RequirementCheck]:
    if root is None:
        return [RequirementCheck("OpenCart Installation", False, "No OpenCart installation detected")]

    checks = []
    for directory in WRITABLE_DIRS:
        path = root / directory
        writable = path.is_dir() and os.access(path, os.W_OK)
        checks.append(RequirementCheck(
            name=f"Directory writable: {directory}",
            passed=writable,
            message="Writable" if writable else ("Not writable" if path.is_dir() else "Does not exist"),
        ))

    for filename in WRITABLE_FILES:
        path = root / filename
        writable = path.is_file() and os.access(path, os.W_OK)
        checks.append(RequirementCheck(
            name=f"File writable: {filename}",
            passed=writable,
            message="Writable" if writable else ("Not writable" if path.exists() else "Does not exist"),
        ))

    return checks


def check_database(
    connect: Optional[Callable[[], DatabaseGateway]]
) -> List[RequirementCheck]:
    """Connect with ``connect`` and check the server version.

    ``connect`` is None when there is neither an installation nor explicit
    connection options to test with.
    """
    if connect is None:
        return [RequirementCheck("Database Connection", False, "No OpenCart installation to test")]

    try:
        gateway = connect()
    except OpenCartCLIError as e:
        logger.debug(f"Database connection check failed: {e}")
        return [RequirementCheck("Database Connection", False, f"Failed to connect: {e.message}")]

    checks = [RequirementCheck("Database Connection", True, "Connected")]
    try:
        version = gateway.server_version()
    except QUERY_ERRORS as e:
        logger.debug(f"Could not read server version: {e}")
        version = None

    checks.append(RequirementCheck(
        name=f"MySQL Version >= {MIN_MYSQL_VERSION}",
        passed=version_at_least(version, MIN_MYSQL_VERSION),
        message=f"Current: {version or 'unknown'}",
    ))
    return checks


class RequirementsChecker:
    """Runs every requirement check for one installation."""

    def __init__(
        self,
        root: Optional[Path],
        connect: Optional[Callable[[], DatabaseGateway]] = None
    ):
        self.root = root
        self.connect = connect

    def run(self) -> Dict[str, List[RequirementCheck]]:
        return {
            "python": check_python(),
            "modules": check_modules(),
            "permissions": check_permissions(self.root),
            "database": check_database(self.connect),
        }

    @staticmethod
    def has_failures(results: Dict[str, List[RequirementCheck]]) -> bool:
        return any(not check.passed for checks in results.values() for check in checks)
