"""Command-line interface for oc-cli."""

from .main import main

__all__ = ['main']
