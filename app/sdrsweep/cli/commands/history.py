"""History command for viewing past sweeps.

This module provides the `sdrsweep history` command for viewing the
runs that removed sidecar folders.
"""

import json
from datetime import datetime
from typing import Annotated

import typer
from rich.table import Table

from sdrsweep.core.state import StateManager
from sdrsweep.models.history import RunRecord
from sdrsweep.utils.formatting import console, print_info

app = typer.Typer(
    name="history",
    help="View history of sweeps.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def history(
    limit: Annotated[
        int,
        typer.Option(
            "--limit",
            "-n",
            help="Maximum number of entries to show.",
        ),
    ] = 20,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output as JSON.",
        ),
    ] = False,
) -> None:
    """Show history of sweeps that removed sidecar folders.

    Examples:
        sdrsweep history              # Show last 20 runs
        sdrsweep history -n 50        # Show last 50 runs
        sdrsweep history --json       # JSON output for scripting
    """
    records = StateManager().get_history(limit=limit)

    if not records:
        print_info("No history entries found.")
        return

    if json_output:
        console.print_json(json.dumps([record.to_dict() for record in records]))
    else:
        _print_table(records)


def _print_table(records: list[RunRecord]) -> None:
    """Print history as Rich table."""
    table = Table(title="Sweep History")
    table.add_column("ID", style="dim")
    table.add_column("Timestamp", style="cyan")
    table.add_column("Mode", style="green")
    table.add_column("Removed", justify="right")
    table.add_column("Skipped", justify="right")
    table.add_column("Failed", justify="right")
    table.add_column("Root", style="white")

    for record in records:
        table.add_row(
            record.id[:8],
            _format_timestamp(record.timestamp),
            record.topology,
            str(record.sidecars_removed),
            str(record.sidecars_skipped),
            str(record.sidecars_failed),
            record.root,
        )

    console.print(table)


def _format_timestamp(iso_timestamp: str) -> str:
    """Format ISO timestamp for display (YYYY-MM-DD HH:MM)."""
    dt = datetime.fromisoformat(iso_timestamp.replace("Z", "+00:00"))
    return dt.strftime("%Y-%m-%d %H:%M")
