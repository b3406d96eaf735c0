"""Per-topology existence strategies.

Each strategy answers one question for a sidecar directory: does the
content item it describes still exist? Content is only considered
absent when the filesystem says so conclusively (the path does not
exist, or exists but is not a regular file). Permission problems,
unreadable metadata and similar ambiguity yield INDETERMINATE, which
callers must treat as EXISTS.
"""

import logging
import os
import stat
from abc import ABC, abstractmethod
from collections.abc import Iterable
from pathlib import Path

from sdrsweep.sidecars.classifier import DEFAULT_SIDECAR_SUFFIX
from sdrsweep.sidecars.errors import MetadataError
from sdrsweep.sidecars.metadata import read_metadata_field
from sdrsweep.sidecars.models import ExistenceCheck, ExistenceVerdict

logger = logging.getLogger(__name__)

DEFAULT_METADATA_FILENAME = "metadata.lua"
DEFAULT_PATH_FIELD = "doc_path"

# Document formats a sidecar can belong to. Compound extensions must be
# listed explicitly; they are not derived from their last component.
DEFAULT_EXTENSIONS: tuple[str, ...] = (
    ".azw",
    ".azw3",
    ".cbt",
    ".cbz",
    ".chm",
    ".djv",
    ".djvu",
    ".doc",
    ".docx",
    ".epub",
    ".fb2",
    ".fb2.zip",
    ".htm",
    ".html",
    ".kepub.epub",
    ".md",
    ".mobi",
    ".odt",
    ".oxps",
    ".pdb",
    ".pdf",
    ".prc",
    ".rtf",
    ".txt",
    ".xhtml",
    ".xps",
    ".zip",
)


class ExistenceStrategy(ABC):
    """Abstract base class for topology-specific existence checks.

    Example:
        >>> strategy = CoLocatedChecker(DEFAULT_EXTENSIONS)
        >>> check = strategy.exists("/books/novel.sdr", "/books")
        >>> check.verdict
        <ExistenceVerdict.ORPHANED: 'orphaned'>
    """

    @abstractmethod
    def exists(self, sidecar_path: str, topology_root: str) -> ExistenceCheck:
        """Decide whether the content behind a sidecar still exists.

        Args:
            sidecar_path: Absolute path to the sidecar directory.
            topology_root: Root directory of the scanned sidecar tree.

        Returns:
            ExistenceCheck carrying the verdict and, when known, the
            content path the sidecar refers to.
        """


def check_regular_file(path: str) -> ExistenceVerdict:
    """Check conclusively whether a regular file exists at path.

    Args:
        path: Path to check (symlinks are followed).

    Returns:
        EXISTS for a regular file, ORPHANED when the path is absent or
        is something other than a regular file, INDETERMINATE when the
        filesystem refused to answer.
    """
    try:
        mode = os.stat(path).st_mode
    except (FileNotFoundError, NotADirectoryError):
        return ExistenceVerdict.ORPHANED
    except OSError as e:
        logger.warning("Cannot stat content path %s: %s", path, e)
        return ExistenceVerdict.INDETERMINATE

    if stat.S_ISREG(mode):
        return ExistenceVerdict.EXISTS
    return ExistenceVerdict.ORPHANED


def normalize_extensions(extensions: Iterable[str]) -> tuple[str, ...]:
    """Normalize extensions to lower-case with a leading dot, longest first.

    Longest-first ordering lets compound extensions (``.kepub.epub``) win
    over their last component when both are present.
    """
    normalized: set[str] = set()
    for ext in extensions:
        ext = ext.strip().lower()
        if not ext:
            continue
        normalized.add(ext if ext.startswith(".") else f".{ext}")
    return tuple(sorted(normalized, key=lambda e: (-len(e), e)))


def find_content_file(
    directory: str,
    base: str,
    extensions: tuple[str, ...],
    exclude: str | None = None,
) -> str | None:
    """Find a regular file in directory belonging to the given base name.

    The base name must match exactly while the extension is compared
    without regard to case, so ``Novel.PDF`` belongs to ``Novel``. A file
    named ``base`` itself matches when base already ends in a supported
    extension.

    Args:
        directory: Directory to list.
        base: Base name the content file must start with.
        extensions: Normalized (lower-case) supported extensions.
        exclude: Entry name to ignore (the sidecar itself).

    Returns:
        Path of the first matching regular file, or None.

    Raises:
        OSError: If the directory cannot be listed.
    """
    base_is_complete = base.lower().endswith(extensions)
    with os.scandir(directory) as entries:
        for entry in entries:
            if entry.name == exclude or not entry.name.startswith(base):
                continue
            extension = entry.name[len(base) :]
            if extension:
                if extension.lower() not in extensions:
                    continue
            elif not base_is_complete:
                continue
            try:
                if entry.is_file():
                    return entry.path
            except OSError:
                continue
    return None


class CoLocatedChecker(ExistenceStrategy):
    """Existence check for sidecars stored next to their content.

    ``novel.sdr`` belongs to ``novel.epub`` (or any other supported
    extension, in any letter case); ``novel.epub.sdr`` belongs to
    ``novel.epub`` itself.

    Args:
        extensions: Supported content extensions (compound ones included).
        suffix: Sidecar directory suffix.
    """

    def __init__(
        self,
        extensions: Iterable[str] = DEFAULT_EXTENSIONS,
        suffix: str = DEFAULT_SIDECAR_SUFFIX,
    ) -> None:
        self._extensions = normalize_extensions(extensions)
        self._suffix = suffix

    def exists(self, sidecar_path: str, topology_root: str) -> ExistenceCheck:
        """Look for a sibling content file matching the sidecar's base name."""
        parent, name = os.path.split(sidecar_path.rstrip(os.sep))
        base = name[: -len(self._suffix)] if name.endswith(self._suffix) else name

        try:
            content = find_content_file(parent or os.curdir, base, self._extensions, name)
        except OSError as e:
            logger.warning("Cannot list directory %s: %s", parent, e)
            return ExistenceCheck(
                ExistenceVerdict.INDETERMINATE,
                detail=f"Cannot list {parent}: {e}",
            )

        if content is not None:
            logger.debug("Found matching content %s for sidecar %s", content, name)
            return ExistenceCheck(ExistenceVerdict.EXISTS, content_path=content)

        logger.debug("No matching content found for sidecar: %s", sidecar_path)
        return ExistenceCheck(ExistenceVerdict.ORPHANED, content_path=os.path.join(parent, base))


class MirroredChecker(ExistenceStrategy):
    """Existence check for a central sidecar tree mirroring the content tree.

    With content root ``/`` a sidecar at
    ``<root>/home/user/Books/fiction/book.pdf.sdr`` belongs to
    ``/home/user/Books/fiction/book.pdf``. The content path is derived
    from the sidecar's position below ``topology_root``, which must be
    the root of the whole sidecar tree.

    Args:
        content_root: Root of the content tree mirrored by the sidecar tree.
        suffix: Sidecar directory suffix.
        extensions: Extensions tried when the sidecar is named after the
            content file's stem rather than its full name.
    """

    def __init__(
        self,
        content_root: str = os.sep,
        suffix: str = DEFAULT_SIDECAR_SUFFIX,
        extensions: Iterable[str] = DEFAULT_EXTENSIONS,
    ) -> None:
        self._content_root = content_root
        self._suffix = suffix
        self._extensions = normalize_extensions(extensions)

    def exists(self, sidecar_path: str, topology_root: str) -> ExistenceCheck:
        """Reconstruct the content path under the content root and check it."""
        stripped = sidecar_path.rstrip(os.sep)
        if stripped.endswith(self._suffix):
            stripped = stripped[: -len(self._suffix)]

        relative = os.path.relpath(stripped, topology_root)
        if relative == os.curdir or relative.startswith(os.pardir + os.sep):
            return ExistenceCheck(
                ExistenceVerdict.INDETERMINATE,
                detail=f"Sidecar {sidecar_path} is outside {topology_root}",
            )

        original = os.path.join(self._content_root, relative)
        verdict = check_regular_file(original)
        if verdict == ExistenceVerdict.EXISTS:
            return ExistenceCheck(ExistenceVerdict.EXISTS, content_path=original)

        if not original.lower().endswith(self._extensions):
            # Sidecar named after the stem: look for stem + any extension
            parent, stem = os.path.split(original)
            try:
                content = find_content_file(parent, stem, self._extensions)
            except (FileNotFoundError, NotADirectoryError):
                content = None
            except OSError as e:
                logger.warning("Cannot list directory %s: %s", parent, e)
                content = None
                verdict = ExistenceVerdict.INDETERMINATE
            if content is not None:
                return ExistenceCheck(ExistenceVerdict.EXISTS, content_path=content)

        if verdict == ExistenceVerdict.INDETERMINATE:
            return ExistenceCheck(
                ExistenceVerdict.INDETERMINATE,
                content_path=original,
                detail=f"Cannot determine whether {original} exists",
            )

        logger.debug("Original file not found for mirrored sidecar: %s", sidecar_path)
        return ExistenceCheck(ExistenceVerdict.ORPHANED, content_path=original)


class HashBucketChecker(ExistenceStrategy):
    """Existence check for sidecars stored under content-hash buckets.

    The content path can only be learned from the sidecar's metadata
    record. A missing or unreadable record, or one without the path
    field, is ambiguous evidence and never leads to deletion. A content
    file moved without updating its record is reported as orphaned; the
    record is the only link between the two.

    Args:
        metadata_filename: Name of the metadata record inside the sidecar.
        path_field: Record field holding the content path.
    """

    def __init__(
        self,
        metadata_filename: str = DEFAULT_METADATA_FILENAME,
        path_field: str = DEFAULT_PATH_FIELD,
    ) -> None:
        self._metadata_filename = metadata_filename
        self._path_field = path_field

    def exists(self, sidecar_path: str, topology_root: str) -> ExistenceCheck:
        """Read the content path from the metadata record and check it."""
        record = self._find_record(Path(sidecar_path))
        if record is None:
            logger.warning("Metadata file not found in hash mode sidecar: %s", sidecar_path)
            return ExistenceCheck(
                ExistenceVerdict.INDETERMINATE,
                detail=f"No {self._metadata_filename} in {sidecar_path}",
            )

        try:
            content_path = read_metadata_field(record, self._path_field)
        except MetadataError as e:
            logger.warning("Failed to read metadata from hash mode sidecar %s: %s", record, e)
            return ExistenceCheck(ExistenceVerdict.INDETERMINATE, detail=str(e))

        if content_path is None:
            logger.warning("No %s field in metadata record: %s", self._path_field, record)
            return ExistenceCheck(
                ExistenceVerdict.INDETERMINATE,
                detail=f"Field {self._path_field!r} missing from {record}",
            )

        if not os.path.isabs(content_path):
            return ExistenceCheck(
                ExistenceVerdict.INDETERMINATE,
                content_path=content_path,
                detail=f"Relative {self._path_field} in {record}: {content_path}",
            )

        verdict = check_regular_file(content_path)
        if verdict == ExistenceVerdict.ORPHANED:
            logger.debug("Document file not found for hash mode sidecar: %s", content_path)
        return ExistenceCheck(verdict, content_path=content_path)

    def _find_record(self, sidecar: Path) -> Path | None:
        """Locate the metadata record, falling back to ``metadata.<ext>.lua``."""
        record = sidecar / self._metadata_filename
        try:
            if record.is_file():
                return record
            if self._metadata_filename == DEFAULT_METADATA_FILENAME:
                for candidate in sorted(sidecar.glob("metadata.*.lua")):
                    if candidate.is_file():
                        return candidate
        except OSError as e:
            logger.warning("Cannot inspect sidecar %s: %s", sidecar, e)
        return None
