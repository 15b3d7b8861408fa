"""Database commands: info, backup and restore."""

import logging
from pathlib import Path
from typing import Optional

import click

from ...backup.sql_dump import SqlDumpWriter, is_compressed, restore_dump
from ...core.exceptions import BackupError, DatabaseError
from ...database.gateway import QUERY_ERRORS
from ...utils.helpers import backup_filename, format_bytes
from ...utils.output import console, format_option, print_success, print_warning, render
from ..context import CommandContext, connection_options, handle_errors

logger = logging.getLogger(__name__)

MAX_LISTED_ERRORS = 5


@click.command(name='db:info')
@format_option
@connection_options
@handle_errors
def info(output_format: str, target: dict):
    """Display database connection information."""
    with CommandContext(**target) as context:
        config = context.config
        status = "Connected"
        server_version = database_size = table_count = None

        try:
            gateway = context.gateway
        except DatabaseError as e:
            logger.warning(f"Database connection failed: {e.message}")
            gateway = None
            status = "Failed"

        if gateway is not None:
            try:
                server_version = gateway.server_version()
                stats = gateway.execute(
                    "SELECT ROUND(SUM(data_length + index_length) / 1024 / 1024, 2) AS size_mb, "
                    "COUNT(*) AS table_count FROM information_schema.tables WHERE table_schema = ?",
                    [config.db_database]
                )
                if stats.row.get("size_mb") is not None:
                    database_size = f"{stats.row['size_mb']} MB"
                table_count = stats.row.get("table_count")
            except QUERY_ERRORS as e:
                logger.warning(f"Could not read database statistics: {e}")

        details = {
            "hostname": config.db_hostname,
            "port": config.db_port,
            "username": config.db_username,
            "database": config.db_database,
            "prefix": config.db_prefix,
            "driver": config.db_driver,
            "backend": gateway.backend.value if gateway is not None else None,
            "connection_status": status,
            "server_version": server_version,
            "database_size": database_size,
            "table_count": table_count,
        }

        if output_format == 'table':
            details = {k.replace('_', ' ').title(): (v if v not in (None, "") else "N/A")
                       for k, v in details.items()}
        render(details, output_format, title="Database Information")


@click.command(name='db:backup')
@click.argument('filename', required=False)
@click.option('--compress', '-c', is_flag=True, help='Compress backup with gzip')
@click.option('--tables', '-t', help='Comma-separated list of tables to backup')
@click.option('--output-dir', '-o', type=click.Path(file_okay=False), default='.',
              help='Output directory for backup file')
@connection_options
@handle_errors
def backup(filename: Optional[str], compress: bool, tables: Optional[str],
           output_dir: str, target: dict):
    """Create a database backup."""
    filename = filename or backup_filename()
    if compress and not is_compressed(filename):
        filename += ".gz"
    path = Path(output_dir) / filename

    selected = [t.strip() for t in tables.split(",") if t.strip()] if tables else None

    with CommandContext(**target) as context:
        console.print("[bold blue]Creating Database Backup[/bold blue]")
        console.print(f"Database: {context.config.db_database}")
        console.print(f"Output: {path}")

        writer = SqlDumpWriter(
            context.gateway,
            on_table=lambda table: console.print(f"[dim]Backing up table: {table}[/dim]")
        )
        report = writer.write(path, tables=selected, compress=compress)

    print_success(
        f"Backup created successfully: {report.path} "
        f"({len(report.tables)} tables, {format_bytes(report.size)})"
    )


@click.command(name='db:restore')
@click.argument('filename', type=click.Path(dir_okay=False))
@click.option('--force', '-f', is_flag=True, help='Skip confirmation prompt')
@click.option('--ignore-errors', '-i', is_flag=True, help='Continue restore even if SQL errors occur')
@connection_options
@handle_errors
def restore(filename: str, force: bool, ignore_errors: bool, target: dict):
    """Restore the database from a backup file."""
    path = Path(filename)
    if not path.is_file():
        raise BackupError(f"Backup file not found: {filename}")

    with CommandContext(**target) as context:
        console.print("[bold blue]Database Restore[/bold blue]")
        console.print(f"Source: {path}")
        console.print(f"Database: {context.config.db_database}")
        console.print(f"File size: {format_bytes(path.stat().st_size)}")

        if not force:
            print_warning("This will replace all data in the current database!")
            if not click.confirm("Are you sure you want to continue?", default=False):
                console.print("Restore cancelled.")
                return

        report = restore_dump(
            context.gateway,
            path,
            ignore_errors=ignore_errors,
            on_progress=lambda count: console.print(f"[dim]Executed {count} queries...[/dim]")
        )

    console.print(f"Total queries executed: {report.queries_executed}")
    if report.errors:
        print_warning(f"Encountered {len(report.errors)} errors during restore:")
        for error in report.errors[:MAX_LISTED_ERRORS]:
            console.print(f"  - {error}", highlight=False)
        if len(report.errors) > MAX_LISTED_ERRORS:
            console.print(f"  ... and {len(report.errors) - MAX_LISTED_ERRORS} more errors")

    print_success("Database restored successfully.")
