"""
OC-CLI - OpenCart Command Line Interface

Administration tool for OpenCart installations: locates the installation,
reads its configuration without executing PHP and manages the database.
"""

__version__ = "1.0.0"
__author__ = "OC-CLI Team"

from opencart_cli.database.config import OpenCartConfig
from opencart_cli.database.gateway import DatabaseGateway

__all__ = [
    "OpenCartConfig",
    "DatabaseGateway",
]
