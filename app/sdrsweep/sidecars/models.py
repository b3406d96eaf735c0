"""Sidecar domain models for orphan detection and reclamation.

This module defines the core data structures shared by the classifier,
existence strategies, walker, reclaimer and engine. All of them are
scan-scoped: created during a single run and discarded once the
report has been produced.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class StorageTopology(str, Enum):
    """Structural convention relating sidecar directories to content.

    The values are the identifiers used in configuration files.

    Attributes:
        CO_LOCATED: Sidecars live next to the content files they describe.
        MIRRORED: Sidecars live in a central tree mirroring the content tree.
        HASH_BUCKETED: Sidecars live in buckets keyed by a content hash.
    """

    CO_LOCATED = "doc"
    MIRRORED = "dir"
    HASH_BUCKETED = "hash"


class EntryKind(str, Enum):
    """Classification of a single directory entry.

    Attributes:
        SIDECAR: Directory whose name carries the sidecar suffix.
        DIRECTORY: Ordinary directory to descend into.
        FILE: Regular file.
        SYMLINK: Symbolic link (never reclaimed).
        SPECIAL: ``.``/``..``, sockets, FIFOs, devices or vanished entries.
    """

    SIDECAR = "sidecar"
    DIRECTORY = "directory"
    FILE = "file"
    SYMLINK = "symlink"
    SPECIAL = "special"


class ExistenceVerdict(str, Enum):
    """Outcome of checking whether a sidecar's content still exists.

    INDETERMINATE must be treated exactly like EXISTS: a sidecar is only
    ever reclaimed on an ORPHANED verdict.
    """

    EXISTS = "exists"
    ORPHANED = "orphaned"
    INDETERMINATE = "indeterminate"


@dataclass(frozen=True, slots=True)
class SidecarDirectory:
    """A sidecar directory discovered during a scan.

    Attributes:
        path: Absolute path to the sidecar directory.
        base_name: Directory name with the sidecar suffix stripped.
        topology: Topology the sidecar was discovered under.
    """

    path: str
    base_name: str
    topology: StorageTopology

    def __post_init__(self) -> None:
        """Validate sidecar data after initialization."""
        if not self.path:
            msg = "Path cannot be empty"
            raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class ExistenceCheck:
    """Result of a single existence query.

    Attributes:
        verdict: Whether the content exists, is gone, or is unknown.
        content_path: Content path the sidecar refers to, when known.
        detail: Human-readable explanation (set for INDETERMINATE).
    """

    verdict: ExistenceVerdict
    content_path: str | None = None
    detail: str | None = None

    @property
    def is_orphaned(self) -> bool:
        """True only for a conclusive ORPHANED verdict."""
        return self.verdict == ExistenceVerdict.ORPHANED


@dataclass(frozen=True, slots=True)
class ReclaimResult:
    """Result of reclaiming a single sidecar directory.

    Attributes:
        path: Absolute path that was operated on.
        success: Whether the directory is gone (or would be, in dry-run).
        error: Error message if the operation failed, None otherwise.
        dry_run: Whether this was a dry-run (no actual deletion).
    """

    path: str
    success: bool
    error: str | None = None
    dry_run: bool = False


@dataclass(frozen=True, slots=True)
class CleanupReport:
    """Aggregated outcome of one reconciliation run.

    Attributes:
        topology: Topology the run was performed under.
        display_name: Human-readable name of the scanned location.
        root: Root directory that was walked.
        directories_scanned: Directories listed during the walk.
        sidecars_found: Sidecar directories discovered.
        sidecars_removed: Orphans reclaimed successfully.
        sidecars_skipped: Sidecars preserved on indeterminate evidence.
        sidecars_failed: Orphans whose reclamation failed.
        unreadable_directories: Subtrees skipped because they could not be listed.
        removed_paths: Paths of reclaimed sidecars.
        skipped_paths: Paths of sidecars preserved on indeterminate evidence.
        failed_paths: Paths of sidecars that could not be reclaimed.
        dry_run: Whether removals were only simulated.
    """

    topology: StorageTopology
    display_name: str
    root: str
    directories_scanned: int = 0
    sidecars_found: int = 0
    sidecars_removed: int = 0
    sidecars_skipped: int = 0
    sidecars_failed: int = 0
    unreadable_directories: int = 0
    removed_paths: tuple[str, ...] = field(default_factory=tuple)
    skipped_paths: tuple[str, ...] = field(default_factory=tuple)
    failed_paths: tuple[str, ...] = field(default_factory=tuple)
    dry_run: bool = False

    @property
    def sidecars_preserved(self) -> int:
        """Sidecars left in place because their content exists."""
        return (
            self.sidecars_found
            - self.sidecars_removed
            - self.sidecars_skipped
            - self.sidecars_failed
        )

    @property
    def has_failures(self) -> bool:
        """True if any orphan could not be reclaimed."""
        return self.sidecars_failed > 0

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON output.

        Returns:
            Dictionary representation of the report.
        """
        return {
            "topology": self.topology.value,
            "display_name": self.display_name,
            "root": self.root,
            "directories_scanned": self.directories_scanned,
            "sidecars_found": self.sidecars_found,
            "sidecars_removed": self.sidecars_removed,
            "sidecars_skipped": self.sidecars_skipped,
            "sidecars_failed": self.sidecars_failed,
            "unreadable_directories": self.unreadable_directories,
            "removed_paths": list(self.removed_paths),
            "skipped_paths": list(self.skipped_paths),
            "failed_paths": list(self.failed_paths),
            "dry_run": self.dry_run,
        }
