"""Run history model for tracking reclamations.

This module defines the data structure recorded for every sweep that
removed sidecars, giving an audit trail of what was deleted and when.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from sdrsweep.sidecars.models import CleanupReport


@dataclass(frozen=True, slots=True)
class RunRecord:
    """Record of a single completed sweep.

    Attributes:
        id: Unique identifier (12-character hex string from UUID).
        timestamp: When the run finished (ISO 8601 format with timezone).
        topology: Topology identifier the run used.
        root: Root directory that was walked.
        sidecars_found: Sidecars discovered.
        sidecars_removed: Sidecars reclaimed.
        sidecars_skipped: Sidecars kept on indeterminate evidence.
        sidecars_failed: Sidecars that could not be reclaimed.
        removed_paths: Paths of reclaimed sidecars.
    """

    id: str
    timestamp: str
    topology: str
    root: str
    sidecars_found: int
    sidecars_removed: int
    sidecars_skipped: int
    sidecars_failed: int
    removed_paths: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        """Validate record data after initialization."""
        if not self.id:
            msg = "Run record ID cannot be empty"
            raise ValueError(msg)
        if not self.timestamp:
            msg = "Timestamp cannot be empty"
            raise ValueError(msg)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON storage."""
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "topology": self.topology,
            "root": self.root,
            "sidecars_found": self.sidecars_found,
            "sidecars_removed": self.sidecars_removed,
            "sidecars_skipped": self.sidecars_skipped,
            "sidecars_failed": self.sidecars_failed,
            "removed_paths": list(self.removed_paths),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RunRecord:
        """Deserialize from dictionary.

        Raises:
            KeyError: If required fields are missing.
            ValueError: If data is invalid.
        """
        return cls(
            id=data["id"],
            timestamp=data["timestamp"],
            topology=data["topology"],
            root=data["root"],
            sidecars_found=int(data.get("sidecars_found", 0)),
            sidecars_removed=int(data.get("sidecars_removed", 0)),
            sidecars_skipped=int(data.get("sidecars_skipped", 0)),
            sidecars_failed=int(data.get("sidecars_failed", 0)),
            removed_paths=tuple(data.get("removed_paths", ())),
        )

    def to_json_line(self) -> str:
        """Serialize to JSON line for JSONL storage (no trailing newline)."""
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_json_line(cls, line: str) -> RunRecord:
        """Deserialize from JSON line.

        Raises:
            json.JSONDecodeError: If line is not valid JSON.
            KeyError: If required fields are missing.
            ValueError: If data is invalid.
        """
        data = json.loads(line.strip())
        return cls.from_dict(data)


def create_run_record(report: CleanupReport) -> RunRecord:
    """Create a RunRecord from a finished run's report.

    Automatically generates a unique ID and current timestamp.

    Args:
        report: Report of the completed run.

    Returns:
        New RunRecord.
    """
    return RunRecord(
        id=uuid.uuid4().hex[:12],
        timestamp=datetime.now(UTC).isoformat(),
        topology=report.topology.value,
        root=report.root,
        sidecars_found=report.sidecars_found,
        sidecars_removed=report.sidecars_removed,
        sidecars_skipped=report.sidecars_skipped,
        sidecars_failed=report.sidecars_failed,
        removed_paths=report.removed_paths,
    )
