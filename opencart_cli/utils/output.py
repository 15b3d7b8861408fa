"""
Rendering of command results as rich tables, JSON or YAML.
"""

import json
from typing import Any, Dict, List, Optional, Sequence

import click
import yaml
from rich import box
from rich.console import Console
from rich.table import Table

OUTPUT_FORMATS = ('table', 'json', 'yaml')

console = Console()
error_console = Console(stderr=True)

format_option = click.option(
    '--format', '-f', 'output_format',
    type=click.Choice(OUTPUT_FORMATS),
    default='table',
    help='Output format'
)


def to_json(data: Any) -> str:
    return json.dumps(data, indent=2, default=str)


def to_yaml(data: Any) -> str:
    return yaml.safe_dump(_plain(data), default_flow_style=False, sort_keys=False, allow_unicode=True)


def _plain(data: Any) -> Any:
    """Convert values yaml.safe_dump cannot represent (Decimal, datetime...) to strings."""
    if isinstance(data, dict):
        return {str(k): _plain(v) for k, v in data.items()}
    if isinstance(data, (list, tuple)):
        return [_plain(v) for v in data]
    if data is None or isinstance(data, (str, int, float, bool)):
        return data
    return str(data)


def build_table(
    rows: Sequence[Dict[str, Any]],
    columns: Optional[List[str]] = None,
    title: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None
) -> Table:
    """Build a rich table from a list of mappings."""
    if columns is None:
        columns = list(rows[0].keys()) if rows else []
    headers = headers or {}

    table = Table(
        title=title,
        box=box.ROUNDED,
        show_header=True,
        header_style="bold magenta"
    )
    for column in columns:
        table.add_column(headers.get(column, column.replace('_', ' ').title()))

    for row in rows:
        table.add_row(*["" if row.get(c) is None else str(row.get(c)) for c in columns])

    return table


def render(
    data: Any,
    output_format: str = 'table',
    columns: Optional[List[str]] = None,
    title: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None
) -> None:
    """Print ``data`` in the requested format.

    For ``table``, ``data`` is either a list of mappings or a single
    mapping, which is shown as a two-column property table.
    """
    if output_format == 'json':
        click.echo(to_json(data))
        return
    if output_format == 'yaml':
        click.echo(to_yaml(data), nl=False)
        return

    if isinstance(data, dict):
        rows = [{"property": k, "value": v} for k, v in data.items()]
        table = build_table(
            rows, ["property", "value"], title=title,
            headers={"property": "Property", "value": "Value"}
        )
    else:
        table = build_table(list(data), columns, title=title, headers=headers)
    console.print(table)


def print_success(message: str) -> None:
    console.print(f"[green]{message}[/green]")


def print_warning(message: str) -> None:
    console.print(f"[yellow]{message}[/yellow]")


def print_error(message: str) -> None:
    error_console.print(f"[red]Error: {message}[/red]", highlight=False)
