"""Depth-first traversal of a sidecar storage tree.

The walker uses an explicit stack rather than recursion so that deep
trees cannot exhaust the interpreter stack, and it remembers the
``(st_dev, st_ino)`` of every directory it enters so that bind mounts
and followed symlinks cannot send it around a cycle.
"""

import logging
import os
from collections.abc import Iterator

from sdrsweep.sidecars.classifier import PathClassifier
from sdrsweep.sidecars.models import EntryKind, SidecarDirectory, StorageTopology

logger = logging.getLogger(__name__)


class TreeWalker:
    """Enumerates sidecar directories below a root directory.

    Sidecar directories are yielded as units; their contents are never
    classified. Unreadable subdirectories are logged, recorded in
    ``unreadable`` and skipped without aborting the walk.

    Args:
        classifier: Classifier used to recognise sidecar directories.
        topology: Topology recorded on every yielded sidecar.
        follow_symlinks: If True, descend into symlinked directories.
    """

    def __init__(
        self,
        classifier: PathClassifier,
        topology: StorageTopology,
        *,
        follow_symlinks: bool = False,
    ) -> None:
        self._classifier = classifier
        self._topology = topology
        self._follow_symlinks = follow_symlinks

        # Per-walk counters, reset by walk()
        self.directories_scanned = 0
        self.unreadable: list[str] = []

    def walk(self, root: str) -> Iterator[SidecarDirectory]:
        """Walk the tree below root and yield every sidecar directory.

        Args:
            root: Directory to start from. It is never yielded itself.

        Yields:
            SidecarDirectory for each sidecar found.
        """
        self.directories_scanned = 0
        self.unreadable = []

        visited: set[tuple[int, int]] = set()
        root_key = self._dir_key(root)
        if root_key is not None:
            visited.add(root_key)

        stack: list[str] = [root]
        while stack:
            directory = stack.pop()
            entries = self._list_directory(directory)
            if entries is None:
                continue
            self.directories_scanned += 1

            subdirectories: list[str] = []
            for name in entries:
                path = os.path.join(directory, name)
                kind = self._classifier.classify(name, path)

                if kind == EntryKind.SIDECAR:
                    yield SidecarDirectory(
                        path=path,
                        base_name=self._classifier.strip_suffix(name),
                        topology=self._topology,
                    )
                elif kind == EntryKind.DIRECTORY or (
                    kind == EntryKind.SYMLINK and self._follow_symlinks
                ):
                    if self._should_descend(path, kind, visited):
                        subdirectories.append(path)

            # Reversed so that entries are visited in sorted order
            stack.extend(reversed(subdirectories))

    def _list_directory(self, directory: str) -> list[str] | None:
        """List entry names of a directory, or None if it cannot be read."""
        try:
            with os.scandir(directory) as it:
                return sorted(entry.name for entry in it)
        except OSError as e:
            logger.warning("Cannot read directory %s: %s", directory, e)
            self.unreadable.append(directory)
            return None

    def _should_descend(
        self,
        path: str,
        kind: EntryKind,
        visited: set[tuple[int, int]],
    ) -> bool:
        """Check that path is a directory not yet visited and mark it."""
        if kind == EntryKind.SYMLINK:
            if self._classifier.is_sidecar_name(os.path.basename(path)):
                # A linked sidecar is neither reclaimed nor traversed
                return False
            if not os.path.isdir(path):
                return False

        key = self._dir_key(path)
        if key is None:
            return True
        if key in visited:
            logger.debug("Skipping already visited directory: %s", path)
            return False
        visited.add(key)
        return True

    @staticmethod
    def _dir_key(path: str) -> tuple[int, int] | None:
        try:
            st = os.stat(path)
        except OSError:
            return None
        return (st.st_dev, st.st_ino)
