"""Utility modules for sdrsweep.

This module exports commonly used utility functions.
"""

from sdrsweep.utils.formatting import (
    OUTCOME_STYLES,
    console,
    err_console,
    format_count,
    format_outcome,
    print_error,
    print_info,
    print_success,
    print_warning,
)

__all__ = [
    "OUTCOME_STYLES",
    "console",
    "err_console",
    "format_count",
    "format_outcome",
    "print_error",
    "print_info",
    "print_success",
    "print_warning",
]
