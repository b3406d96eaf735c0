"""Sidecar detection and reclamation module.

This module provides sidecar classification, per-topology existence
strategies, tree traversal, safe removal and the reconciliation engine
tying them together.
"""

from sdrsweep.sidecars.classifier import DEFAULT_SIDECAR_SUFFIX, PathClassifier
from sdrsweep.sidecars.engine import ReconciliationEngine, sweep
from sdrsweep.sidecars.errors import (
    ConfigurationError,
    MetadataError,
    SweepError,
    UnknownTopologyError,
    UnusableRootError,
)
from sdrsweep.sidecars.models import (
    CleanupReport,
    EntryKind,
    ExistenceCheck,
    ExistenceVerdict,
    ReclaimResult,
    SidecarDirectory,
    StorageTopology,
)
from sdrsweep.sidecars.reclaimer import Reclaimer
from sdrsweep.sidecars.registry import TopologyRegistry, TopologySpec, default_registry
from sdrsweep.sidecars.strategies import (
    CoLocatedChecker,
    ExistenceStrategy,
    HashBucketChecker,
    MirroredChecker,
)
from sdrsweep.sidecars.walker import TreeWalker

__all__ = [
    "DEFAULT_SIDECAR_SUFFIX",
    "CleanupReport",
    "CoLocatedChecker",
    "ConfigurationError",
    "EntryKind",
    "ExistenceCheck",
    "ExistenceStrategy",
    "ExistenceVerdict",
    "HashBucketChecker",
    "MetadataError",
    "MirroredChecker",
    "PathClassifier",
    "ReclaimResult",
    "Reclaimer",
    "ReconciliationEngine",
    "SidecarDirectory",
    "StorageTopology",
    "SweepError",
    "TopologyRegistry",
    "TopologySpec",
    "TreeWalker",
    "UnknownTopologyError",
    "UnusableRootError",
    "default_registry",
    "sweep",
]
