"""CLI commands for Strategy Utils.

This package provides the command-line interface: config setup, the
single-token price table and the compare-all view.
"""

from strategyutils.cli.main import cli, main

__all__ = ["cli", "main"]
