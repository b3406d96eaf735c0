"""Paths that must never be reclaimed.

The reclaimer only ever removes directories named like sidecars. This
module holds the last line of defence against a misconfigured root or
suffix turning a sweep into the removal of a library or home directory.
"""

import fnmatch
import os
from pathlib import Path

from sdrsweep.sidecars.classifier import DEFAULT_SIDECAR_SUFFIX

# Locations that are never reclaimed regardless of their name (glob-style).
# Patterns starting with ~ are expanded to the user's home directory.
PROTECTED_PATH_PATTERNS: list[str] = [
    "/",
    "~",
    "/home",
    "/mnt",
    "/media",
    "/run/media",
    "/storage",
    "/sdcard",
    # sdrsweep itself
    "~/.config/sdrsweep",
    "~/.local/state/sdrsweep",
]


def is_protected_path(path: str, suffix: str = DEFAULT_SIDECAR_SUFFIX) -> bool:
    """Check if a path must not be reclaimed.

    A path is protected when its final component does not carry the
    sidecar suffix (or is the bare suffix), or when it matches one of
    PROTECTED_PATH_PATTERNS.

    Args:
        path: Absolute filesystem path to check.
        suffix: Sidecar directory suffix.

    Returns:
        True if the path must not be reclaimed, False otherwise.
    """
    normalized = os.path.normpath(path)
    name = os.path.basename(normalized)
    if not name.endswith(suffix) or name == suffix:
        return True

    home = str(Path.home())
    for pattern in PROTECTED_PATH_PATTERNS:
        expanded = home + pattern[1:] if pattern.startswith("~") else pattern
        if fnmatch.fnmatch(normalized, expanded):
            return True

    return False
