"""Core commands: version, config and check-requirements."""

import platform
import sys
from typing import Optional

import click
from rich import box
from rich.table import Table

from ... import __version__
from ...core.exceptions import ValidationError
from ...platforms.opencart import get_opencart_version
from ...services.settings import SettingsService
from ...utils.helpers import truncate
from ...utils.output import (
    console,
    format_option,
    print_success,
    print_warning,
    render,
    to_json,
    to_yaml,
)
from ...validation.requirements import RequirementsChecker
from ..context import CommandContext, connection_options, handle_errors

NOT_DETECTED = "Not detected"


@click.command(name='core:version')
@click.option('--opencart', '-o', 'opencart_only', is_flag=True, help='Show OpenCart version only')
@format_option
@connection_options
@handle_errors
def version(opencart_only: bool, output_format: str, target: dict):
    """Display version information."""
    with CommandContext(**target, require_opencart=False) as context:
        versions = {
            "oc-cli": __version__,
            "python": platform.python_version(),
            "os": f"{platform.system()} {platform.release()}",
            "opencart": get_opencart_version(context.root) or NOT_DETECTED,
        }

        if opencart_only:
            if output_format == 'json':
                click.echo(to_json({"opencart": versions["opencart"]}))
            else:
                click.echo(versions["opencart"])
            return

        if output_format != 'table':
            render(versions, output_format)
            return

        render(
            [{"component": k, "version": v} for k, v in versions.items()],
            columns=["component", "version"],
            title="Version Information"
        )
        if context.root:
            console.print(f"[dim]OpenCart root: {context.root}[/dim]")
        else:
            print_warning("No OpenCart installation detected in current directory or parent directories.")


@click.command(name='core:config')
@click.argument('action', type=click.Choice(['list', 'get', 'set']), default='list')
@click.argument('key', required=False)
@click.argument('value', required=False)
@click.option('--admin', '-a', is_flag=True, help='Use admin configuration instead of catalog')
@format_option
@connection_options
@handle_errors
def config(action: str, key: Optional[str], value: Optional[str], admin: bool,
           output_format: str, target: dict):
    """Manage OpenCart configuration (list, get, set)."""
    if action in ('get', 'set') and not key:
        raise ValidationError(f"Key is required for {action} action")
    if action == 'set' and value is None:
        raise ValidationError("Value is required for set action")

    with CommandContext(**target) as context:
        settings = SettingsService(context.gateway)

        if action == 'get':
            current = settings.get_setting(key)
            if current is None:
                raise ValidationError(f"Configuration key '{key}' not found")
            if output_format == 'json':
                click.echo(to_json({key: current}))
            elif output_format == 'yaml':
                click.echo(to_yaml({key: current}), nl=False)
            else:
                click.echo(current)
            return

        if action == 'set':
            inserted = settings.set_setting(key, value)
            verb = "set" if inserted else "updated"
            print_success(f"Configuration '{key}' {verb} to '{value}'")
            return

        entries = settings.list_settings()
        if output_format != 'table':
            render(entries, output_format)
            return

        if not entries:
            print_warning("No configuration found")
            return

        render(
            [{"key": k, "value": truncate(v or "")} for k, v in entries.items()],
            columns=["key", "value"],
            title="Admin Configuration" if admin else "Catalog Configuration"
        )
        console.print(f"[dim]Total: {len(entries)} configuration entries[/dim]")
        if context.root:
            console.print(f"[dim]OpenCart root: {context.root}[/dim]")


@click.command(name='core:check-requirements')
@format_option
@connection_options
@handle_errors
def check_requirements(output_format: str, target: dict):
    """Check system requirements for OpenCart administration."""
    with CommandContext(**target, require_opencart=False) as context:
        connect = (lambda: context.gateway) if context.has_database else None
        checker = RequirementsChecker(context.root, connect)
        results = checker.run()
        failed = checker.has_failures(results)

        if output_format != 'table':
            render(
                {category: [c.to_dict() for c in checks] for category, checks in results.items()},
                output_format
            )
        else:
            console.print("[bold blue]System Requirements Check[/bold blue]")
            for category, checks in results.items():
                table = Table(title=category.capitalize(), box=box.ROUNDED, header_style="bold magenta")
                table.add_column("Requirement", style="cyan")
                table.add_column("Status")
                table.add_column("Details", style="dim")
                for check in checks:
                    status = "[green]✓ PASS[/green]" if check.passed else "[red]✗ FAIL[/red]"
                    table.add_row(check.name, status, check.message)
                console.print(table)

            if failed:
                console.print("[red]Some requirements are not met. Please fix the issues above.[/red]")
            else:
                print_success("All requirements are met!")

    if failed:
        sys.exit(1)
