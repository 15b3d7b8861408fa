"""Store settings kept in the ``<prefix>setting`` table."""

import logging
from typing import Dict, Optional

from ..database.base import quote_identifier
from ..database.gateway import DatabaseGateway

logger = logging.getLogger(__name__)

SETTING_CODE = "config"
DEFAULT_STORE_ID = 0


class SettingsService:
    """Read and write store settings."""

    def __init__(self, gateway: DatabaseGateway, store_id: int = DEFAULT_STORE_ID):
        self.gateway = gateway
        self.store_id = store_id

    @property
    def _table(self) -> str:
        return quote_identifier(self.gateway.table("setting"))

    def list_settings(self) -> Dict[str, str]:
        """All settings of the store, ordered by key."""
        result = self.gateway.execute(
            f"SELECT `key`, `value` FROM {self._table} WHERE `store_id` = ? ORDER BY `key`",
            [self.store_id]
        )
        return {row["key"]: row["value"] for row in result.rows}

    def get_setting(self, key: str) -> Optional[str]:
        result = self.gateway.execute(
            f"SELECT `value` FROM {self._table} WHERE `store_id` = ? AND `key` = ? LIMIT 1",
            [self.store_id, key]
        )
        if not result.num_rows:
            return None
        return result.scalar("value")

    def set_setting(self, key: str, value: str) -> bool:
        """Update a setting, inserting it when it does not exist yet.

        Returns:
            True when a new row was inserted, False when an existing row was updated
        """
        self.gateway.execute(
            f"UPDATE {self._table} SET `value` = ? WHERE `code` = ? AND `key` = ? AND `store_id` = ?",
            [value, SETTING_CODE, key, self.store_id]
        )
        if self.gateway.affected_rows() > 0:
            logger.info(f"Updated setting {key}")
            return False

        # Zero affected rows also happens when the value is unchanged
        existing = self.gateway.execute(
            f"SELECT COUNT(*) AS count FROM {self._table} "
            f"WHERE `code` = ? AND `key` = ? AND `store_id` = ?",
            [SETTING_CODE, key, self.store_id]
        )
        if int(existing.scalar("count", 0) or 0) > 0:
            return False

        self.gateway.execute(
            f"INSERT INTO {self._table} (`store_id`, `code`, `key`, `value`, `serialized`) "
            f"VALUES (?, ?, ?, ?, 0)",
            [self.store_id, SETTING_CODE, key, value]
        )
        logger.info(f"Inserted setting {key}")
        return True
