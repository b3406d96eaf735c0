"""Reconciliation of a sidecar tree against its content.

The engine is topology-agnostic: it walks the tree, asks the strategy
it was given about every sidecar, and hands conclusive orphans to the
reclaimer. Only an unusable root aborts a run; everything else is
counted in the CleanupReport.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING

from sdrsweep.sidecars.classifier import PathClassifier
from sdrsweep.sidecars.errors import UnusableRootError
from sdrsweep.sidecars.models import (
    CleanupReport,
    ExistenceCheck,
    ExistenceVerdict,
    StorageTopology,
)
from sdrsweep.sidecars.reclaimer import Reclaimer
from sdrsweep.sidecars.registry import TopologyRegistry, default_registry
from sdrsweep.sidecars.strategies import ExistenceStrategy
from sdrsweep.sidecars.walker import TreeWalker

if TYPE_CHECKING:
    from sdrsweep.core.config import SweepConfig

logger = logging.getLogger(__name__)


class ReconciliationEngine:
    """Drives the walker, strategy and reclaimer for one run at a time.

    The engine keeps no state between runs; each call to ``run`` is
    independent and safe to repeat.

    Args:
        classifier: Classifier recognising sidecar directories.
        reclaimer: Reclaimer used for orphans (controls dry-run).
        follow_symlinks: If True, the walker descends into symlinked directories.
    """

    def __init__(
        self,
        classifier: PathClassifier | None = None,
        reclaimer: Reclaimer | None = None,
        *,
        follow_symlinks: bool = False,
    ) -> None:
        self._classifier = classifier or PathClassifier()
        self._reclaimer = reclaimer or Reclaimer(self._classifier.suffix)
        self._follow_symlinks = follow_symlinks

    def run(
        self,
        topology: StorageTopology,
        root: str | Path | None,
        strategy: ExistenceStrategy,
        display_name: str | None = None,
        *,
        topology_root: str | Path | None = None,
    ) -> CleanupReport:
        """Reclaim every orphaned sidecar below root.

        Args:
            topology: Topology the tree is organised by.
            root: Directory to walk.
            strategy: Existence strategy for the topology.
            display_name: Name of the location for the report.
            topology_root: Root of the whole sidecar tree, passed to the
                strategy. Defaults to root; when given, root must lie
                inside it.

        Returns:
            CleanupReport with the run's counters.

        Raises:
            UnusableRootError: If root is unset, missing, not a directory
                or not readable, or lies outside topology_root. Raised
                before any traversal.
        """
        root_path = self._check_root(root)
        store_root = root_path
        if topology_root is not None:
            store_root = os.path.abspath(os.fspath(topology_root))
            if os.path.commonpath([store_root, root_path]) != store_root:
                raise UnusableRootError(root_path, f"not inside {store_root}")
        name = display_name or topology.value

        walker = TreeWalker(self._classifier, topology, follow_symlinks=self._follow_symlinks)
        found = 0
        removed: list[str] = []
        skipped: list[str] = []
        failed: list[str] = []

        for sidecar in walker.walk(root_path):
            found += 1
            check = self._check(strategy, sidecar.path, store_root)

            if check.verdict == ExistenceVerdict.INDETERMINATE:
                logger.info(
                    "Keeping sidecar on indeterminate evidence: %s (%s)",
                    sidecar.path,
                    check.detail,
                )
                skipped.append(sidecar.path)
                continue
            if check.verdict == ExistenceVerdict.EXISTS:
                continue

            logger.info("Cleaning orphaned sidecar folder: %s", sidecar.path)
            result = self._reclaimer.reclaim(sidecar.path)
            if result.success:
                removed.append(sidecar.path)
            else:
                failed.append(sidecar.path)

        return CleanupReport(
            topology=topology,
            display_name=name,
            root=root_path,
            directories_scanned=walker.directories_scanned,
            sidecars_found=found,
            sidecars_removed=len(removed),
            sidecars_skipped=len(skipped),
            sidecars_failed=len(failed),
            unreadable_directories=len(walker.unreadable),
            removed_paths=tuple(removed),
            skipped_paths=tuple(skipped),
            failed_paths=tuple(failed),
            dry_run=self._reclaimer.dry_run,
        )

    @staticmethod
    def _check(strategy: ExistenceStrategy, sidecar_path: str, root: str) -> ExistenceCheck:
        """Query the strategy, treating unexpected OS errors as indeterminate."""
        try:
            return strategy.exists(sidecar_path, root)
        except OSError as e:
            logger.warning("Existence check failed for %s: %s", sidecar_path, e)
            return ExistenceCheck(ExistenceVerdict.INDETERMINATE, detail=str(e))

    @staticmethod
    def _check_root(root: str | Path | None) -> str:
        """Validate the scan root and return it as an absolute path."""
        if root is None or str(root) == "":
            raise UnusableRootError(None, "directory not configured")

        root_path = os.path.abspath(os.fspath(root))
        if not os.path.isdir(root_path):
            raise UnusableRootError(root_path, "directory not found or not accessible")
        if not os.access(root_path, os.R_OK | os.X_OK):
            raise UnusableRootError(root_path, "permission denied")
        return root_path


def sweep(
    config: SweepConfig,
    registry: TopologyRegistry | None = None,
    *,
    dry_run: bool = False,
    root: Path | None = None,
) -> CleanupReport:
    """Run one sweep for the topology selected in config.

    Args:
        config: Resolved sweep configuration.
        registry: Topology registry. Defaults to the built-in topologies.
        dry_run: If True, report orphans without removing them.
        root: Directory to scan instead of the topology's root. For
            topologies whose checks depend on the sidecar's position in
            the store, it must be a subdirectory of the configured root.

    Returns:
        CleanupReport for the run.

    Raises:
        UnknownTopologyError: If config.topology is not registered.
        UnusableRootError: If the root directory cannot be scanned,
            or an override lies outside the configured store.
    """
    if registry is None:
        registry = default_registry()
    spec = registry.resolve(config.topology)

    topology_root = spec.root_resolver(config)
    scan_root = topology_root if root is None else root
    if root is not None and not spec.requires_store_root:
        topology_root = root
    elif root is not None and topology_root is None:
        raise UnusableRootError(None, f"{spec.display_name} not configured")
    strategy = spec.strategy_factory(config)
    classifier = PathClassifier(config.sidecar_suffix)
    engine = ReconciliationEngine(
        classifier,
        Reclaimer(config.sidecar_suffix, dry_run=dry_run),
        follow_symlinks=config.follow_symlinks,
    )

    logger.info("Starting cleanup of orphaned sidecar folders in %s", spec.display_name)
    logger.info("Scanning directory: %s", scan_root)

    report = engine.run(
        spec.topology, scan_root, strategy, spec.display_name, topology_root=topology_root
    )

    if report.sidecars_removed:
        logger.info(
            "Cleanup completed: removed %d orphaned sidecar folders from %s",
            report.sidecars_removed,
            spec.display_name,
        )
    else:
        logger.info("No orphaned sidecar folders found in %s", spec.display_name)
    return report
