"""Sweep command.

Provides the command that walks the active metadata store and removes
orphaned sidecar folders.
"""

import json
from enum import Enum
from pathlib import Path
from typing import Annotated

import typer

from sdrsweep.cli.display import print_report
from sdrsweep.core.config import SweepConfigError, load_config_or_default
from sdrsweep.core.state import StateManager
from sdrsweep.models.history import create_run_record
from sdrsweep.sidecars.engine import sweep
from sdrsweep.sidecars.errors import UnknownTopologyError, UnusableRootError
from sdrsweep.utils.formatting import console, print_error, print_info, print_warning

app = typer.Typer(
    help="Remove orphaned sidecar folders.",
    invoke_without_command=True,
)

# Exit code for caller/configuration problems (unknown topology, bad config)
EXIT_CONFIG_ERROR = 2


class OutputFormat(str, Enum):
    """Output format options for the sweep report."""

    TABLE = "table"
    JSON = "json"


@app.callback(invoke_without_command=True)
def run(
    ctx: typer.Context,
    topology: Annotated[
        str | None,
        typer.Option(
            "--topology",
            "-t",
            help="Storage mode to sweep (doc, dir, hash). Overrides the config.",
        ),
    ] = None,
    root: Annotated[
        Path | None,
        typer.Option(
            "--root",
            "-r",
            help="Directory to sweep instead of the storage mode's default.",
        ),
    ] = None,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Config file to use.",
        ),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Show what would be removed."),
    ] = False,
    output_format: Annotated[
        OutputFormat,
        typer.Option(
            "--format",
            "-f",
            help="Output format.",
            case_sensitive=False,
        ),
    ] = OutputFormat.TABLE,
) -> None:
    """Sweep the active metadata store for orphaned sidecar folders.

    Examples:
        sdrsweep run                    # Sweep the configured storage mode
        sdrsweep run --dry-run          # Report without removing
        sdrsweep run -t hash --format json
    """
    quiet = bool(ctx.obj and ctx.obj.get("quiet"))

    try:
        config = load_config_or_default(config_path)
    except SweepConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=EXIT_CONFIG_ERROR) from None

    if topology is not None:
        config = config.model_copy(update={"topology": topology})

    try:
        report = sweep(config, dry_run=dry_run, root=root)
    except UnknownTopologyError as e:
        print_error(str(e))
        raise typer.Exit(code=EXIT_CONFIG_ERROR) from None
    except UnusableRootError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from None

    if output_format == OutputFormat.JSON:
        console.print_json(json.dumps(report.to_dict()))
    else:
        print_report(report, quiet=quiet)

    # Record to history (only actual removals, not dry-run)
    if not dry_run and report.sidecars_removed:
        try:
            StateManager().record_run(create_run_record(report))
            if not quiet and output_format == OutputFormat.TABLE:
                print_info("Run recorded to history.")
        except OSError as e:
            print_warning(f"Could not record to history: {e}")

    if report.has_failures:
        raise typer.Exit(code=1)
