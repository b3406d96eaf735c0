"""Topologies command.

Lists the registered storage modes and the directory each would sweep.
"""

from pathlib import Path
from typing import Annotated

import typer
from rich.table import Table

from sdrsweep.core.config import SweepConfigError, load_config_or_default
from sdrsweep.sidecars.registry import default_registry
from sdrsweep.utils.formatting import console, print_error

app = typer.Typer(
    help="List supported storage modes.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def topologies(
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Config file to use.",
        ),
    ] = None,
) -> None:
    """Show every storage mode with its resolved sweep directory."""
    try:
        config = load_config_or_default(config_path)
    except SweepConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=2) from None

    table = Table(
        title="Storage Modes",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("ID", width=6)
    table.add_column("Name")
    table.add_column("Directory", style="muted")
    table.add_column("Active", justify="center", width=8)

    for topology_id, spec in default_registry():
        root = spec.root_resolver(config)
        if root is None:
            directory = "-"
        elif Path(root).is_dir():
            directory = str(root)
        else:
            directory = f"{root} [warning](missing)[/]"
        active = "[success]*[/]" if topology_id == config.topology else ""
        table.add_row(topology_id, spec.display_name, directory, active)

    console.print(table)
