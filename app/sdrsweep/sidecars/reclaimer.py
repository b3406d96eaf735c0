"""Safe recursive removal of sidecar directories.

Deletion is bottom-up with an explicit stack: every file and symlink is
unlinked (links are never followed), every directory is removed once its
contents are gone, and the sidecar directory itself goes last. Failures
are reported as values; a partially removed sidecar is left as it is.
"""

import logging
import os
import stat

from sdrsweep.sidecars.classifier import DEFAULT_SIDECAR_SUFFIX
from sdrsweep.sidecars.models import ReclaimResult
from sdrsweep.sidecars.protected import is_protected_path

logger = logging.getLogger(__name__)


class Reclaimer:
    """Removes orphaned sidecar directories.

    Supports dry-run mode and rejects protected paths and symlinks.

    Attributes:
        _suffix: Sidecar suffix every reclaimed path must carry.
        _dry_run: If True, simulate removals without modifying the filesystem.
    """

    def __init__(self, suffix: str = DEFAULT_SIDECAR_SUFFIX, dry_run: bool = False) -> None:
        """Initialize the Reclaimer.

        Args:
            suffix: Sidecar directory suffix.
            dry_run: If True, report what would be removed without removing.
        """
        self._suffix = suffix
        self._dry_run = dry_run

    @property
    def dry_run(self) -> bool:
        """Whether removals are only simulated."""
        return self._dry_run

    def reclaim(self, sidecar_path: str) -> ReclaimResult:
        """Remove a sidecar directory and everything below it.

        Idempotent: a path that no longer exists is reported as success.
        Never raises for filesystem errors.

        Args:
            sidecar_path: Absolute path to the sidecar directory.

        Returns:
            ReclaimResult indicating success or failure.
        """
        if is_protected_path(sidecar_path, self._suffix):
            return ReclaimResult(
                path=sidecar_path,
                success=False,
                error=f"Protected path cannot be reclaimed: {sidecar_path}",
            )

        try:
            mode = os.lstat(sidecar_path).st_mode
        except FileNotFoundError:
            logger.debug("Sidecar already gone: %s", sidecar_path)
            return ReclaimResult(path=sidecar_path, success=True, dry_run=self._dry_run)
        except OSError as e:
            return ReclaimResult(path=sidecar_path, success=False, error=str(e))

        if stat.S_ISLNK(mode):
            return ReclaimResult(
                path=sidecar_path,
                success=False,
                error=f"Refusing to reclaim symlink: {sidecar_path}",
            )
        if not stat.S_ISDIR(mode):
            return ReclaimResult(
                path=sidecar_path,
                success=False,
                error=f"Not a directory: {sidecar_path}",
            )

        if self._dry_run:
            logger.info("Dry-run: would remove %s", sidecar_path)
            return ReclaimResult(path=sidecar_path, success=True, dry_run=True)

        errors = self._remove_tree(sidecar_path)
        if errors:
            logger.warning("Failed to remove directory %s: %s", sidecar_path, errors[0])
            return ReclaimResult(path=sidecar_path, success=False, error=errors[0])

        logger.info("Successfully removed directory: %s", sidecar_path)
        return ReclaimResult(path=sidecar_path, success=True)

    def _remove_tree(self, top: str) -> list[str]:
        """Remove top and its contents bottom-up.

        Args:
            top: Directory to remove (not a symlink).

        Returns:
            Error messages for every removal that failed, empty on success.
        """
        errors: list[str] = []
        # (directory, contents_removed)
        stack: list[tuple[str, bool]] = [(top, False)]

        while stack:
            directory, contents_removed = stack.pop()

            if contents_removed:
                try:
                    os.rmdir(directory)
                except FileNotFoundError:
                    pass
                except OSError as e:
                    errors.append(f"{directory}: {e.strerror or e}")
                continue

            stack.append((directory, True))
            try:
                with os.scandir(directory) as it:
                    entries = list(it)
            except FileNotFoundError:
                stack.pop()
                continue
            except OSError as e:
                errors.append(f"{directory}: {e.strerror or e}")
                continue

            for entry in entries:
                try:
                    is_dir = entry.is_dir(follow_symlinks=False)
                except OSError:
                    is_dir = False

                if is_dir:
                    stack.append((entry.path, False))
                    continue

                try:
                    os.unlink(entry.path)
                    logger.debug("Removed file: %s", entry.path)
                except FileNotFoundError:
                    pass
                except OSError as e:
                    errors.append(f"{entry.path}: {e.strerror or e}")

        return errors
