"""Config commands for viewing and creating the sweep configuration."""

from pathlib import Path
from typing import Annotated

import typer
from rich.table import Table

from sdrsweep.core.config import (
    SweepConfig,
    SweepConfigError,
    load_config_or_default,
    save_config,
)
from sdrsweep.core.paths import get_config_path
from sdrsweep.sidecars.registry import default_registry
from sdrsweep.utils.formatting import console, print_error, print_info, print_success

app = typer.Typer(
    help="View and create the sweep configuration.",
    no_args_is_help=True,
)


@app.command()
def show(
    config_path: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Config file to read."),
    ] = None,
) -> None:
    """Show the effective configuration."""
    try:
        config = load_config_or_default(config_path)
    except SweepConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=2) from None

    source = config_path or get_config_path()
    table = Table(
        title="Configuration",
        caption=str(source) if source.exists() else f"{source} (not found, using defaults)",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Setting", style="bold")
    table.add_column("Value")

    table.add_row("topology", config.topology)
    table.add_row("home_dir", str(config.effective_home_dir))
    table.add_row("docsettings_dir", str(config.effective_docsettings_dir))
    table.add_row("hash_docsettings_dir", str(config.effective_hash_docsettings_dir))
    table.add_row("content_root", str(config.content_root))
    table.add_row("sidecar_suffix", config.sidecar_suffix)
    table.add_row("metadata_filename", config.metadata_filename)
    table.add_row("doc_path_field", config.doc_path_field)
    table.add_row("follow_symlinks", str(config.follow_symlinks))
    table.add_row("extensions", ", ".join(config.extensions))

    console.print(table)


@app.command()
def init(
    topology: Annotated[
        str,
        typer.Option("--topology", "-t", help="Storage mode to configure (doc, dir, hash)."),
    ] = "doc",
    home_dir: Annotated[
        Path | None,
        typer.Option("--home-dir", help="Content library root for the doc mode."),
    ] = None,
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite an existing config file."),
    ] = False,
    config_path: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Config file to write."),
    ] = None,
) -> None:
    """Create a config file."""
    target = config_path or get_config_path()

    if target.exists() and not force:
        print_info(f"Config already exists: {target} (use --force to overwrite)")
        raise typer.Exit(code=0)

    registry = default_registry()
    if topology not in registry:
        print_error(
            f"Unknown metadata storage mode: {topology} "
            f"(expected one of: {', '.join(registry.identifiers())})"
        )
        raise typer.Exit(code=2)

    try:
        saved = save_config(SweepConfig(topology=topology, home_dir=home_dir), target)
    except SweepConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from None

    print_success(f"Config written to {saved}")


@app.command()
def path() -> None:
    """Print the default config file path."""
    typer.echo(str(get_config_path()))
