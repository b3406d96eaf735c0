"""Rich console output for sweep results.

Holds the shared consoles, the theme styles used for each sidecar
outcome, and the message helpers the commands print through. Results
go to stdout; warnings and errors go to stderr so that ``--format json``
output stays parseable.
"""

import sys

from rich.console import Console
from rich.markup import escape

from sdrsweep.core.theme import get_theme

# Theme style for each outcome a sidecar can have after a run
OUTCOME_STYLES: dict[str, str] = {
    "kept": "kept",
    "removed": "removed",
    "dry-run": "info",
    "skipped": "skipped",
    "failed": "error",
}


def _detect_color_system() -> str | None:
    """Use truecolor on a terminal so the theme's hex colors render as given."""
    if sys.stdout.isatty():
        return "truecolor"
    return None


# Theme loaded once at import
console = Console(theme=get_theme(), color_system=_detect_color_system())
err_console = Console(theme=get_theme(), stderr=True, color_system=_detect_color_system())


def format_outcome(outcome: str) -> str:
    """Wrap an outcome label in its theme style.

    Args:
        outcome: One of the keys of OUTCOME_STYLES.

    Returns:
        Rich markup for the label. Unknown outcomes are returned unstyled.
    """
    style = OUTCOME_STYLES.get(outcome)
    if style is None:
        return escape(outcome)
    return f"[{style}]{outcome}[/]"


def format_count(count: int, outcome: str) -> str:
    """Render a counter in the style of the outcome it counts."""
    style = OUTCOME_STYLES.get(outcome)
    if style is None or not count:
        return str(count)
    return f"[{style}]{count}[/]"


def print_info(message: str) -> None:
    console.print(f"[info]{message}[/]")


def print_success(message: str) -> None:
    console.print(f"[success]{message}[/]")


def print_warning(message: str) -> None:
    """Print a warning to stderr, prefixed with ``Warning:``."""
    err_console.print(f"[warning]Warning:[/] {message}")


def print_error(message: str) -> None:
    """Print an error to stderr, prefixed with ``Error:``."""
    err_console.print(f"[error]Error:[/] {message}")
