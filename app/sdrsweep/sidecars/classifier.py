"""Classification of directory entries into sidecars and plain entries.

A sidecar is recognised purely by name and type: a directory whose name
ends with the configured suffix. Classification never touches the
filesystem beyond a single ``lstat`` call.
"""

import os
import stat

from sdrsweep.sidecars.models import EntryKind

DEFAULT_SIDECAR_SUFFIX = ".sdr"

_SPECIAL_NAMES: frozenset[str] = frozenset({".", ".."})


class PathClassifier:
    """Decides whether a directory entry is a sidecar directory.

    Args:
        suffix: Name suffix identifying sidecar directories.
    """

    def __init__(self, suffix: str = DEFAULT_SIDECAR_SUFFIX) -> None:
        if not suffix:
            msg = "Sidecar suffix cannot be empty"
            raise ValueError(msg)
        self._suffix = suffix

    @property
    def suffix(self) -> str:
        """Sidecar suffix this classifier matches."""
        return self._suffix

    def classify(self, entry_name: str, entry_path: str) -> EntryKind:
        """Classify a single directory entry.

        Symbolic links are reported as SYMLINK before any type check so
        that a link named like a sidecar is never mistaken for one.

        Args:
            entry_name: Entry name (basename).
            entry_path: Full path to the entry.

        Returns:
            EntryKind classification.
        """
        if entry_name in _SPECIAL_NAMES:
            return EntryKind.SPECIAL

        try:
            mode = os.lstat(entry_path).st_mode
        except OSError:
            # Vanished or inaccessible between listing and classification
            return EntryKind.SPECIAL

        if stat.S_ISLNK(mode):
            return EntryKind.SYMLINK

        if stat.S_ISDIR(mode):
            if self.is_sidecar_name(entry_name):
                return EntryKind.SIDECAR
            return EntryKind.DIRECTORY

        if stat.S_ISREG(mode):
            return EntryKind.FILE

        return EntryKind.SPECIAL

    def is_sidecar_name(self, name: str) -> bool:
        """Check whether a name carries the sidecar suffix.

        A name consisting of the bare suffix (e.g. ``.sdr``) has no base
        name and is not a sidecar.
        """
        return name.endswith(self._suffix) and len(name) > len(self._suffix)

    def strip_suffix(self, name: str) -> str:
        """Return the name with the sidecar suffix removed.

        Args:
            name: Sidecar directory name or path.

        Returns:
            Name without the trailing suffix, unchanged if absent.
        """
        if name.endswith(self._suffix):
            return name[: -len(self._suffix)]
        return name
