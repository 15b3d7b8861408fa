"""Store language lookup."""

from ..database.base import quote_identifier
from ..database.gateway import DatabaseGateway

FALLBACK_LANGUAGE_ID = 1


def default_language_id(gateway: DatabaseGateway) -> int:
    """Id of the store's default language.

    Uses the ``config_language_id`` setting, then the first enabled
    language by sort order, then 1.
    """
    setting = gateway.execute(
        f"SELECT `value` FROM {quote_identifier(gateway.table('setting'))} "
        f"WHERE `code` = 'config' AND `key` = 'config_language_id' LIMIT 1"
    )
    language_id = _to_int(setting.scalar("value"))

    if not language_id:
        language = gateway.execute(
            f"SELECT `language_id` FROM {quote_identifier(gateway.table('language'))} "
            f"WHERE `status` = 1 ORDER BY `sort_order` ASC, `name` ASC LIMIT 1"
        )
        language_id = _to_int(language.scalar("language_id"))

    return language_id if language_id > 0 else FALLBACK_LANGUAGE_ID


def _to_int(value) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0
