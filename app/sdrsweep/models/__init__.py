"""Data models for sdrsweep.

This module exports the run-history models.
"""

from sdrsweep.models.history import RunRecord, create_run_record

__all__ = [
    "RunRecord",
    "create_run_record",
]
