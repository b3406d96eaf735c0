"""CLI commands for sdrsweep.

This package contains all subcommand implementations.
"""

from sdrsweep.cli.commands import config, history, run, topologies

__all__ = ["config", "history", "run", "topologies"]
