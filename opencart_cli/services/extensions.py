"""
Extension and OCMOD modification management.

Enabling an extension means having a row in ``<prefix>extension`` that
points at its ``<prefix>extension_install`` record; disabling removes it.
"""

import logging
import re
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel

from ..core.exceptions import ValidationError
from ..database.base import quote_identifier
from ..database.gateway import DatabaseGateway

logger = logging.getLogger(__name__)

ALLOWED_PACKAGE_TYPES = ("zip", "ocmod", "xml")


class ExtensionPackage(BaseModel):
    """Metadata of an extension file about to be installed."""
    name: str
    code: str
    type: str = "module"
    version: str = "1.0.0"
    author: str = "Unknown"
    filename: str
    path: str


def make_code(name: str) -> str:
    """Extension code derived from a name: lowercase, non ``[a-z0-9_]`` -> ``_``."""
    return re.sub(r"[^a-z0-9_]", "_", name.lower())


def validate_package_path(path: Union[str, Path]) -> Path:
    """Check that ``path`` is a readable extension file of a supported type.

    Raises:
        ValidationError: If the file is missing, unreadable or of the wrong type
    """
    path = Path(path)
    if not path.exists():
        raise ValidationError(f"Extension file not found: {path}")
    if not path.is_file():
        raise ValidationError(f"Extension file is not readable: {path}")

    suffix = path.suffix.lower().lstrip(".")
    if suffix not in ALLOWED_PACKAGE_TYPES:
        raise ValidationError(
            f"Unsupported extension file type. Allowed: {', '.join(ALLOWED_PACKAGE_TYPES)}"
        )
    return path


def parse_ocmod_xml(path: Union[str, Path]) -> Optional[Dict[str, str]]:
    """Read name, code, version and author from an OCMOD install.xml."""
    try:
        root = ET.parse(str(path)).getroot()
    except (ET.ParseError, OSError) as e:
        logger.warning(f"Could not parse OCMOD XML: {e}")
        return None

    def text(tag: str) -> str:
        return (root.findtext(tag) or "").strip()

    name = text("name")
    return {
        "name": name or "Unknown Extension",
        "code": text("code") or make_code(name),
        "version": text("version") or "1.0.0",
        "author": text("author") or "Unknown",
    }


def read_extension_package(path: Union[str, Path]) -> ExtensionPackage:
    """Build package metadata from the file name, refined by OCMOD XML when present."""
    path = validate_package_path(path)
    stem = path.stem
    data: Dict[str, Any] = {
        "name": stem,
        "code": make_code(stem),
        "filename": path.name,
        "path": str(path),
    }

    if path.suffix.lower() in (".xml", ".ocmod"):
        xml_data = parse_ocmod_xml(path)
        if xml_data:
            data.update(xml_data)

    return ExtensionPackage(**data)


class ExtensionService:
    """Queries and changes against the extension tables."""

    def __init__(self, gateway: DatabaseGateway):
        self.gateway = gateway

    def _table(self, name: str) -> str:
        return quote_identifier(self.gateway.table(name))

    def list_extensions(self, extension_type: Optional[str] = None) -> List[Dict[str, Any]]:
        sql = f"SELECT `type`, `code`, 'enabled' AS `status` FROM {self._table('extension')}"
        params: List[Any] = []
        if extension_type:
            sql += " WHERE `type` = ?"
            params.append(extension_type)
        sql += " ORDER BY `type`, `code`"

        result = self.gateway.execute(sql, params)
        return [
            {"type": row["type"], "code": row["code"], "status": row["status"]}
            for row in result.rows
        ]

    def find_extension(self, identifier: str) -> Optional[Dict[str, Any]]:
        """Installed extension whose code or name equals ``identifier``."""
        result = self.gateway.execute(
            f"SELECT `extension_install_id`, `type`, `code`, `name`, `version`, `author` "
            f"FROM {self._table('extension_install')} WHERE `code` = ? OR `name` = ? LIMIT 1",
            [identifier, identifier]
        )
        return result.row or None

    def is_enabled(self, extension: Dict[str, Any]) -> bool:
        result = self.gateway.execute(
            f"SELECT `extension_id` FROM {self._table('extension')} "
            f"WHERE `extension_install_id` = ? AND `code` = ?",
            [int(extension["extension_install_id"]), extension["code"]]
        )
        return result.num_rows > 0

    def enable(self, extension: Dict[str, Any]) -> bool:
        """Enable an extension. Returns False when it was already enabled."""
        if self.is_enabled(extension):
            return False
        self.gateway.execute(
            f"INSERT INTO {self._table('extension')} (`extension_install_id`, `type`, `code`) "
            f"VALUES (?, ?, ?)",
            [int(extension["extension_install_id"]), extension["type"], extension["code"]]
        )
        logger.info(f"Enabled extension {extension['code']}")
        return True

    def disable(self, extension: Dict[str, Any]) -> bool:
        """Disable an extension. Returns False when it was already disabled."""
        if not self.is_enabled(extension):
            return False
        self.gateway.execute(
            f"DELETE FROM {self._table('extension')} "
            f"WHERE `extension_install_id` = ? AND `code` = ?",
            [int(extension["extension_install_id"]), extension["code"]]
        )
        logger.info(f"Disabled extension {extension['code']}")
        return True

    def install(self, package: ExtensionPackage, activate: bool = False) -> int:
        """Register an extension package.

        Returns:
            The new extension_install_id

        Raises:
            ValidationError: If an extension with the same code is installed
        """
        existing = self.gateway.execute(
            f"SELECT `extension_install_id` FROM {self._table('extension_install')} WHERE `code` = ?",
            [package.code]
        )
        if existing.num_rows:
            raise ValidationError(f"Extension '{package.code}' is already installed.")

        with self.gateway.transaction():
            self.gateway.execute(
                f"INSERT INTO {self._table('extension_install')} "
                f"(`type`, `code`, `name`, `version`, `author`, `filename`, `date_added`) "
                f"VALUES (?, ?, ?, ?, ?, ?, NOW())",
                [package.type, package.code, package.name, package.version,
                 package.author, package.filename]
            )
            install_id = self.gateway.last_insert_id()

            self.gateway.execute(
                f"INSERT INTO {self._table('extension_path')} (`extension_install_id`, `path`) "
                f"VALUES (?, ?)",
                [install_id, package.path]
            )

            if activate:
                self.gateway.execute(
                    f"INSERT INTO {self._table('extension')} (`extension_install_id`, `type`, `code`) "
                    f"VALUES (?, ?, ?)",
                    [install_id, package.type, package.code]
                )

        logger.info(f"Installed extension {package.code} (id {install_id})")
        return install_id

    def list_modifications(self) -> List[Dict[str, Any]]:
        result = self.gateway.execute(
            f"SELECT `modification_id`, `name`, `code`, `author`, `version`, `link`, "
            f"`status`, `date_added` FROM {self._table('modification')} ORDER BY `name` ASC"
        )
        return [
            {
                "id": row["modification_id"],
                "name": row["name"],
                "code": row["code"],
                "author": row["author"],
                "version": row["version"],
                "link": row["link"],
                "status": "enabled" if _truthy(row["status"]) else "disabled",
                "date_added": row["date_added"],
            }
            for row in result.rows
        ]


def _truthy(value: Any) -> bool:
    if isinstance(value, str):
        return value not in ("", "0")
    return bool(value)
