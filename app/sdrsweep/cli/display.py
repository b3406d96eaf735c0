"""Shared Rich display functions for sweep reports.

Provides the end-of-run summary table and the per-path listing used by
the run command.
"""

from rich.markup import escape
from rich.table import Table

from sdrsweep.sidecars.models import CleanupReport
from sdrsweep.utils.formatting import (
    console,
    format_count,
    format_outcome,
    print_info,
    print_success,
    print_warning,
)


def create_summary_table(report: CleanupReport) -> Table:
    """Create a Rich table with the counters of a report.

    Args:
        report: Report of a finished run.

    Returns:
        Rich Table with one row per counter.
    """
    title = f"Sidecar Sweep: {report.display_name}"
    if report.dry_run:
        title += " (Dry Run)"

    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Metric")
    table.add_column("Count", justify="right")

    removed_label = "Would remove" if report.dry_run else "Removed"
    table.add_row("Directories scanned", str(report.directories_scanned))
    table.add_row("Sidecars found", str(report.sidecars_found))
    table.add_row("Kept (document exists)", format_count(report.sidecars_preserved, "kept"))
    table.add_row(removed_label, format_count(report.sidecars_removed, "removed"))
    table.add_row("Skipped (uncertain)", format_count(report.sidecars_skipped, "skipped"))
    table.add_row("Failed", format_count(report.sidecars_failed, "failed"))
    if report.unreadable_directories:
        table.add_row("Unreadable directories", f"[warning]{report.unreadable_directories}[/]")
    return table


def create_paths_table(report: CleanupReport) -> Table | None:
    """Create a Rich table listing every sidecar the run acted on or skipped.

    Args:
        report: Report of a finished run.

    Returns:
        Rich Table, or None if there is nothing to list.
    """
    rows: list[tuple[str, str]] = []
    removed_status = format_outcome("dry-run" if report.dry_run else "removed")
    rows.extend((removed_status, path) for path in report.removed_paths)
    rows.extend((format_outcome("skipped"), path) for path in report.skipped_paths)
    rows.extend((format_outcome("failed"), path) for path in report.failed_paths)
    if not rows:
        return None

    table = Table(title="Sidecars", show_lines=False)
    table.add_column("Status", width=10)
    table.add_column("Path", style="bold")
    for status, path in rows:
        table.add_row(status, escape(path))
    return table


def print_report(report: CleanupReport, quiet: bool = False) -> None:
    """Print the end-of-run summary for a report.

    Args:
        report: Report of a finished run.
        quiet: If True, print only the one-line outcome.
    """
    if not quiet:
        console.print(create_summary_table(report))
        paths_table = create_paths_table(report)
        if paths_table is not None:
            console.print(paths_table)

    if report.dry_run and report.sidecars_removed:
        print_info(
            f"Dry-run: {report.sidecars_removed} orphaned sidecar folder(s) "
            f"would be removed from {report.display_name}."
        )
    elif report.sidecars_removed:
        print_success(
            f"Cleaned up {report.sidecars_removed} orphaned sidecar folder(s) "
            f"in {report.display_name}."
        )
    else:
        print_info(f"No orphaned sidecar folders found in {report.display_name}.")

    if report.sidecars_skipped:
        print_warning(
            f"{report.sidecars_skipped} sidecar folder(s) kept because their "
            "document could not be determined."
        )
    if report.sidecars_failed:
        print_warning(f"{report.sidecars_failed} sidecar folder(s) could not be removed.")
