"""
Main CLI entry point for oc-cli.

Commands are grouped by namespace (``core:``, ``db:``, ``extension:``,
``modification:``, ``product:``) and run against the OpenCart installation
found at or above the current directory, or against the database given
with the ``--db-*`` options.
"""

import sys
from typing import Optional

import click

from .. import __version__
from ..utils.logging import LOG_FORMATS, setup_logging
from ..utils.output import console
from .commands import core, database, extension, product


@click.group(invoke_without_command=True)
@click.option('--version', 'show_version', is_flag=True, help='Show version information')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose output')
@click.option('--log-file', type=click.Path(dir_okay=False), help='Write debug log to this file')
@click.option('--log-format', type=click.Choice(LOG_FORMATS), default='text', show_default=True,
              help='Log record format on stderr and in the log file')
@click.pass_context
def main(ctx: click.Context, show_version: bool, verbose: bool, log_file: Optional[str],
         log_format: str):
    """
    OC-CLI - OpenCart Command Line Interface

    Manage OpenCart configuration, products, extensions and database
    backups from the command line.
    """
    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose

    setup_logging(
        level="DEBUG" if verbose else "WARNING",
        log_file=log_file,
        structured_logging=log_format == 'json'
    )

    if show_version:
        console.print(f"OC-CLI version {__version__}")
        sys.exit(0)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


COMMANDS = [
    core.version,
    core.config,
    core.check_requirements,
    database.info,
    database.backup,
    database.restore,
    extension.list_extensions,
    extension.enable,
    extension.disable,
    extension.install,
    extension.list_modifications,
    product.list_products,
    product.create,
]

ALIASES = {
    "version": core.version,
}

for command in COMMANDS:
    main.add_command(command)

for alias, command in ALIASES.items():
    main.add_command(command, name=alias)


if __name__ == '__main__':
    main()
