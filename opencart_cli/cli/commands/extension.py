"""Extension and modification commands."""

from typing import Optional

import click

from ...core.exceptions import ValidationError
from ...platforms.opencart import get_opencart_version, is_opencart4
from ...services.extensions import ExtensionService, read_extension_package
from ...utils.output import console, format_option, print_success, print_warning, render
from ..context import CommandContext, connection_options, handle_errors


def _with_status_icon(rows, key="status"):
    return [
        {**row, key: f"{'✓' if row[key] == 'enabled' else '✗'} {row[key].capitalize()}"}
        for row in rows
    ]


@click.command(name='extension:list')
@click.argument('extension_type', metavar='TYPE', required=False)
@format_option
@connection_options
@handle_errors
def list_extensions(extension_type: Optional[str], output_format: str, target: dict):
    """List installed extensions."""
    with CommandContext(**target) as context:
        extensions = ExtensionService(context.gateway).list_extensions(extension_type)

    if not extensions:
        print_warning(
            f"No extensions found for type '{extension_type}'." if extension_type
            else "No extensions found."
        )
        return

    if output_format != 'table':
        render(extensions, output_format)
        return
    render(_with_status_icon(extensions), columns=["type", "code", "status"],
           title="Installed Extensions")


def _toggle(identifier: str, enable: bool, target: dict) -> None:
    action = "enable" if enable else "disable"
    with CommandContext(**target) as context:
        service = ExtensionService(context.gateway)
        extension = service.find_extension(identifier)
        if extension is None:
            raise ValidationError(f"Extension '{identifier}' not found.")

        changed = service.enable(extension) if enable else service.disable(extension)

    if not changed:
        print_warning(f"Extension '{extension['name']}' is already {action}d.")
        return
    print_success(f"Extension '{extension['name']}' ({extension['code']}) {action}d successfully.")


@click.command(name='extension:enable')
@click.argument('extension')
@connection_options
@handle_errors
def enable(extension: str, target: dict):
    """Enable an extension by code or name."""
    _toggle(extension, True, target)


@click.command(name='extension:disable')
@click.argument('extension')
@connection_options
@handle_errors
def disable(extension: str, target: dict):
    """Disable an extension by code or name."""
    _toggle(extension, False, target)


@click.command(name='extension:install')
@click.argument('extension', type=click.Path(dir_okay=False))
@click.option('--activate', '-a', is_flag=True, help='Activate extension after installation')
@connection_options
@handle_errors
def install(extension: str, activate: bool, target: dict):
    """Install an extension from a .zip, .ocmod or .xml file."""
    with CommandContext(**target) as context:
        if is_opencart4(get_opencart_version(context.root)):
            print_warning("Extension installation is not fully supported for OpenCart 4.")
            console.print("This feature is designed for OpenCart 3 with OCMOD support.")
            if not click.confirm("Continue anyway?", default=False):
                return

        package = read_extension_package(extension)
        console.print("[bold blue]Installing Extension[/bold blue]")
        console.print(f"Extension: {extension}")

        install_id = ExtensionService(context.gateway).install(package, activate=activate)

    print_success(f"Extension '{package.name}' installed successfully (id {install_id}).")
    if activate:
        print_success("Extension activated successfully.")


@click.command(name='modification:list')
@format_option
@connection_options
@handle_errors
def list_modifications(output_format: str, target: dict):
    """List installed OCMOD modifications."""
    with CommandContext(**target) as context:
        modifications = ExtensionService(context.gateway).list_modifications()

    if not modifications:
        print_warning("No modifications found.")
        return

    if output_format != 'table':
        render(modifications, output_format)
        return
    render(
        _with_status_icon(modifications),
        columns=["id", "name", "code", "author", "version", "status", "date_added"],
        title="Installed Modifications",
        headers={"id": "ID"}
    )
