"""Registry of storage topologies.

Maps a topology identifier to everything a run needs to know about it:
how to find the root directory, how to build its existence strategy,
and how to name it to the user. New topologies are added by
registering another TopologySpec; the engine never changes.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from sdrsweep.sidecars.errors import UnknownTopologyError
from sdrsweep.sidecars.models import StorageTopology
from sdrsweep.sidecars.strategies import (
    CoLocatedChecker,
    ExistenceStrategy,
    HashBucketChecker,
    MirroredChecker,
)

if TYPE_CHECKING:
    from sdrsweep.core.config import SweepConfig

RootResolver = Callable[["SweepConfig"], Path | None]
StrategyFactory = Callable[["SweepConfig"], ExistenceStrategy]


@dataclass(frozen=True, slots=True)
class TopologySpec:
    """Everything needed to run a sweep under one topology.

    Attributes:
        topology: Topology this entry describes.
        display_name: Human-readable name of the scanned location.
        root_resolver: Returns the directory to walk for a config.
        strategy_factory: Builds the existence strategy for a config.
        requires_store_root: Existence checks depend on where a sidecar sits
            below the resolved root, so a root override must stay inside it.
    """

    topology: StorageTopology
    display_name: str
    root_resolver: RootResolver
    strategy_factory: StrategyFactory
    requires_store_root: bool = False


class TopologyRegistry:
    """Lookup table from topology identifier to TopologySpec.

    Example:
        >>> registry = default_registry()
        >>> registry.resolve("hash").display_name
        'hash docsettings folder'
    """

    def __init__(self) -> None:
        self._specs: dict[str, TopologySpec] = {}

    def register(self, spec: TopologySpec, topology_id: str | None = None) -> None:
        """Register (or replace) a topology.

        Args:
            spec: Topology description.
            topology_id: Identifier to register under. Defaults to the
                topology's own value.
        """
        self._specs[topology_id or spec.topology.value] = spec

    def resolve(self, topology_id: str) -> TopologySpec:
        """Look up a topology by identifier.

        Args:
            topology_id: Identifier from configuration (e.g. "doc").

        Returns:
            The registered TopologySpec.

        Raises:
            UnknownTopologyError: If the identifier is not registered.
        """
        try:
            return self._specs[topology_id]
        except KeyError:
            raise UnknownTopologyError(topology_id, self.identifiers()) from None

    def identifiers(self) -> tuple[str, ...]:
        """Return the registered identifiers in registration order."""
        return tuple(self._specs)

    def __contains__(self, topology_id: object) -> bool:
        return topology_id in self._specs

    def __iter__(self) -> Iterator[tuple[str, TopologySpec]]:
        return iter(self._specs.items())


def _co_located_strategy(config: SweepConfig) -> ExistenceStrategy:
    return CoLocatedChecker(config.extensions, config.sidecar_suffix)


def _mirrored_strategy(config: SweepConfig) -> ExistenceStrategy:
    return MirroredChecker(str(config.content_root), config.sidecar_suffix, config.extensions)


def _hash_bucket_strategy(config: SweepConfig) -> ExistenceStrategy:
    return HashBucketChecker(config.metadata_filename, config.doc_path_field)


def default_registry() -> TopologyRegistry:
    """Create a registry holding the three built-in topologies.

    Returns:
        TopologyRegistry with "doc", "dir" and "hash" registered.
    """
    registry = TopologyRegistry()
    registry.register(
        TopologySpec(
            topology=StorageTopology.CO_LOCATED,
            display_name="book folder",
            root_resolver=lambda config: config.effective_home_dir,
            strategy_factory=_co_located_strategy,
        )
    )
    registry.register(
        TopologySpec(
            topology=StorageTopology.MIRRORED,
            display_name="docsettings folder",
            root_resolver=lambda config: config.effective_docsettings_dir,
            strategy_factory=_mirrored_strategy,
            requires_store_root=True,
        )
    )
    registry.register(
        TopologySpec(
            topology=StorageTopology.HASH_BUCKETED,
            display_name="hash docsettings folder",
            root_resolver=lambda config: config.effective_hash_docsettings_dir,
            strategy_factory=_hash_bucket_strategy,
        )
    )
    return registry
