"""Database backup and restore."""

from .sql_dump import BackupReport, RestoreReport, SqlDumpWriter, list_prefixed_tables, restore_dump

__all__ = [
    'BackupReport',
    'RestoreReport',
    'SqlDumpWriter',
    'list_prefixed_tables',
    'restore_dump',
]
