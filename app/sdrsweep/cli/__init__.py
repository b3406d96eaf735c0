"""Command-line interface for sdrsweep.

This package contains the Typer-based CLI application and commands.
"""

from sdrsweep.cli.main import app

__all__ = ["app"]
