"""Unit tests for ReconciliationEngine and sweep().

Covers the end-to-end scenarios for each topology as well as the
safety properties every run must hold: repeated runs are no-ops,
nothing but conclusive orphans is removed, and every failure is
reported rather than raised.
"""

import os
from collections.abc import Callable
from pathlib import Path
from unittest.mock import patch

import pytest
from sdrsweep.core.config import SweepConfig
from sdrsweep.sidecars.classifier import PathClassifier
from sdrsweep.sidecars.engine import ReconciliationEngine, sweep
from sdrsweep.sidecars.errors import UnknownTopologyError, UnusableRootError
from sdrsweep.sidecars.models import ExistenceCheck, ExistenceVerdict, StorageTopology
from sdrsweep.sidecars.reclaimer import Reclaimer
from sdrsweep.sidecars.strategies import CoLocatedChecker, ExistenceStrategy


def _snapshot(root: Path) -> set[str]:
    """Return every path below root."""
    return {str(path) for path in root.rglob("*")}


class FixedVerdict(ExistenceStrategy):
    """Strategy answering the same verdict for every sidecar."""

    def __init__(self, verdict: ExistenceVerdict) -> None:
        self.verdict = verdict
        self.calls: list[str] = []

    def exists(self, sidecar_path: str, topology_root: str) -> ExistenceCheck:
        self.calls.append(sidecar_path)
        return ExistenceCheck(self.verdict, detail="fixed")


@pytest.fixture
def library(tmp_path: Path, make_sidecar: Callable[..., Path]) -> Path:
    """A co-located library with one live and one orphaned sidecar."""
    root = tmp_path / "books"
    root.mkdir()
    (root / "novel.epub").write_text("content")
    make_sidecar(root / "novel.epub.sdr")
    make_sidecar(root / "ghost.pdf.sdr")
    return root


class TestCoLocatedScenario:
    """Sidecars stored next to their documents."""

    def test_removes_only_orphan(self, library: Path) -> None:
        report = ReconciliationEngine().run(
            StorageTopology.CO_LOCATED, library, CoLocatedChecker(), "book folder"
        )

        assert report.sidecars_found == 2
        assert report.sidecars_removed == 1
        assert report.sidecars_preserved == 1
        assert report.removed_paths == (str(library / "ghost.pdf.sdr"),)
        assert (library / "novel.epub.sdr").is_dir()
        assert not (library / "ghost.pdf.sdr").exists()
        assert report.display_name == "book folder"

    def test_nested_folders(self, library: Path, make_sidecar: Callable[..., Path]) -> None:
        """Orphans at every depth are reclaimed in one run."""
        deep = library / "series" / "vol1" / "extras"
        deep.mkdir(parents=True)
        (library / "series" / "vol1" / "book1.pdf").write_text("x")
        make_sidecar(library / "series" / "vol1" / "book1.pdf.sdr")
        make_sidecar(library / "series" / "lost.epub.sdr")
        make_sidecar(deep / "gone.sdr")

        report = ReconciliationEngine().run(StorageTopology.CO_LOCATED, library, CoLocatedChecker())

        assert report.sidecars_found == 5
        assert report.sidecars_removed == 3
        assert (library / "series" / "vol1" / "book1.pdf.sdr").is_dir()
        assert not (deep / "gone.sdr").exists()
        assert deep.is_dir()

    def test_display_name_defaults_to_topology(self, library: Path) -> None:
        report = ReconciliationEngine().run(StorageTopology.CO_LOCATED, library, CoLocatedChecker())
        assert report.display_name == "doc"

    def test_upper_case_extension_keeps_sidecar(
        self, tmp_path: Path, make_sidecar: Callable[..., Path]
    ) -> None:
        """Documents with upper-case extensions keep their sidecars."""
        root = tmp_path / "books"
        root.mkdir()
        (root / "Novel.PDF").write_text("content")
        (root / "Scan.Djvu").write_text("content")
        make_sidecar(root / "Novel.sdr")
        make_sidecar(root / "Scan.Djvu.sdr")
        make_sidecar(root / "Lost.PDF.sdr")

        report = sweep(SweepConfig(home_dir=root))

        assert report.sidecars_preserved == 2
        assert report.removed_paths == (str(root / "Lost.PDF.sdr"),)
        assert (root / "Novel.sdr").is_dir()
        assert (root / "Scan.Djvu.sdr").is_dir()


class TestMirroredScenario:
    """Central sidecar tree mirroring the content tree."""

    @pytest.fixture
    def config(self, tmp_path: Path, make_sidecar: Callable[..., Path]) -> SweepConfig:
        docsettings = tmp_path / "koreader" / "docsettings"
        make_sidecar(docsettings / "fiction" / "book.pdf.sdr")
        (tmp_path / "content" / "fiction").mkdir(parents=True)
        return SweepConfig(
            topology="dir",
            data_dir=tmp_path / "koreader",
            content_root=tmp_path / "content",
        )

    def test_missing_content_is_removed(self, config: SweepConfig, tmp_path: Path) -> None:
        report = sweep(config)
        assert report.sidecars_removed == 1
        assert report.display_name == "docsettings folder"
        assert not (tmp_path / "koreader" / "docsettings" / "fiction" / "book.pdf.sdr").exists()

    def test_present_content_is_preserved(self, config: SweepConfig, tmp_path: Path) -> None:
        (tmp_path / "content" / "fiction" / "book.pdf").write_text("x")
        report = sweep(config)
        assert report.sidecars_removed == 0
        assert report.sidecars_preserved == 1
        assert (tmp_path / "koreader" / "docsettings" / "fiction" / "book.pdf.sdr").is_dir()

    def test_subtree_override_keeps_mirrored_paths(
        self, config: SweepConfig, tmp_path: Path, make_sidecar: Callable[..., Path]
    ) -> None:
        """Scanning part of the store still maps sidecars from the store root."""
        store = tmp_path / "koreader" / "docsettings"
        (tmp_path / "content" / "fiction" / "book.pdf").write_text("x")
        make_sidecar(store / "fiction" / "lost.epub.sdr")

        report = sweep(config, root=store / "fiction")

        assert report.root == str(store / "fiction")
        assert report.sidecars_preserved == 1
        assert report.removed_paths == (str(store / "fiction" / "lost.epub.sdr"),)
        assert (store / "fiction" / "book.pdf.sdr").is_dir()

    def test_override_outside_store_is_rejected(
        self, config: SweepConfig, tmp_path: Path, make_sidecar: Callable[..., Path]
    ) -> None:
        elsewhere = tmp_path / "elsewhere"
        make_sidecar(elsewhere / "book.pdf.sdr")
        before = _snapshot(tmp_path)

        with pytest.raises(UnusableRootError, match="not inside"):
            sweep(config, root=elsewhere)

        assert _snapshot(tmp_path) == before


class TestHashBucketScenario:
    """Sidecars stored in hash buckets with a metadata record."""

    @pytest.fixture
    def config(self, tmp_path: Path) -> SweepConfig:
        return SweepConfig(topology="hash", hash_docsettings_dir=tmp_path / "hashdocsettings")

    def test_deleted_document_is_removed(
        self,
        config: SweepConfig,
        tmp_path: Path,
        make_sidecar: Callable[..., Path],
        lua_metadata: Callable[[str], str],
    ) -> None:
        bucket = make_sidecar(
            tmp_path / "hashdocsettings" / "ab" / "abcdef.sdr",
            metadata=lua_metadata(str(tmp_path / "deleted.epub")),
        )
        report = sweep(config)
        assert report.sidecars_removed == 1
        assert not bucket.exists()

    def test_missing_field_is_skipped(
        self, config: SweepConfig, tmp_path: Path, make_sidecar: Callable[..., Path]
    ) -> None:
        bucket = make_sidecar(
            tmp_path / "hashdocsettings" / "ab" / "abcdef.sdr",
            metadata='return { ["title"] = "No path here" }\n',
        )
        report = sweep(config)
        assert report.sidecars_removed == 0
        assert report.sidecars_skipped == 1
        assert report.skipped_paths == (str(bucket),)
        assert bucket.is_dir()

    def test_live_document_is_kept(
        self,
        config: SweepConfig,
        tmp_path: Path,
        make_sidecar: Callable[..., Path],
        lua_metadata: Callable[[str], str],
    ) -> None:
        (tmp_path / "alive.epub").write_text("x")
        bucket = make_sidecar(
            tmp_path / "hashdocsettings" / "cd" / "cdef01.sdr",
            metadata=lua_metadata(str(tmp_path / "alive.epub")),
        )
        report = sweep(config)
        assert report.sidecars_preserved == 1
        assert bucket.is_dir()


class TestSafetyProperties:
    """Invariants that must hold for every run."""

    def test_second_run_is_noop(self, library: Path) -> None:
        engine = ReconciliationEngine()
        engine.run(StorageTopology.CO_LOCATED, library, CoLocatedChecker())
        before = _snapshot(library)

        report = engine.run(StorageTopology.CO_LOCATED, library, CoLocatedChecker())

        assert report.sidecars_removed == 0
        assert _snapshot(library) == before

    def test_only_sidecars_are_touched(self, library: Path) -> None:
        """Files and non-sidecar directories survive an all-orphan verdict."""
        (library / "notes").mkdir()
        (library / "notes" / "todo.txt").write_text("x")
        (library / "stray.sdr").write_text("a file, not a sidecar")

        ReconciliationEngine().run(
            StorageTopology.CO_LOCATED, library, FixedVerdict(ExistenceVerdict.ORPHANED)
        )

        assert (library / "novel.epub").is_file()
        assert (library / "notes" / "todo.txt").is_file()
        assert (library / "stray.sdr").is_file()
        assert not (library / "novel.epub.sdr").exists()

    def test_indeterminate_is_never_removed(self, library: Path) -> None:
        before = _snapshot(library)
        strategy = FixedVerdict(ExistenceVerdict.INDETERMINATE)

        report = ReconciliationEngine().run(StorageTopology.CO_LOCATED, library, strategy)

        assert report.sidecars_skipped == 2
        assert report.sidecars_removed == 0
        assert _snapshot(library) == before

    def test_strategy_os_error_is_indeterminate(self, library: Path) -> None:
        strategy = FixedVerdict(ExistenceVerdict.ORPHANED)
        with patch.object(strategy, "exists", side_effect=PermissionError(13, "denied")):
            report = ReconciliationEngine().run(StorageTopology.CO_LOCATED, library, strategy)

        assert report.sidecars_skipped == 2
        assert (library / "ghost.pdf.sdr").is_dir()

    def test_sidecar_contents_are_not_inspected(
        self, library: Path, make_sidecar: Callable[..., Path]
    ) -> None:
        """A sidecar-looking directory inside a sidecar is not a separate sidecar."""
        make_sidecar(library / "novel.epub.sdr" / "inner.sdr")
        strategy = FixedVerdict(ExistenceVerdict.EXISTS)

        report = ReconciliationEngine().run(StorageTopology.CO_LOCATED, library, strategy)

        assert report.sidecars_found == 2
        assert str(library / "novel.epub.sdr" / "inner.sdr") not in strategy.calls

    def test_reclaim_failure_is_counted(self, library: Path) -> None:
        real_rmdir = os.rmdir
        target = str(library / "ghost.pdf.sdr")

        def fake_rmdir(path: str) -> None:
            if os.fspath(path) == target:
                raise PermissionError(13, "Permission denied", path)
            real_rmdir(path)

        with patch("sdrsweep.sidecars.reclaimer.os.rmdir", side_effect=fake_rmdir):
            report = ReconciliationEngine().run(
                StorageTopology.CO_LOCATED, library, CoLocatedChecker()
            )

        assert report.sidecars_failed == 1
        assert report.failed_paths == (target,)
        assert report.has_failures

    def test_unreadable_subtree_does_not_abort(
        self, library: Path, make_sidecar: Callable[..., Path]
    ) -> None:
        make_sidecar(library / "locked" / "hidden.sdr")
        locked = str(library / "locked")
        real_scandir = os.scandir

        def fake_scandir(path: str):  # type: ignore[no-untyped-def]
            if os.fspath(path) == locked:
                raise PermissionError(13, "Permission denied", path)
            return real_scandir(path)

        with patch("sdrsweep.sidecars.walker.os.scandir", side_effect=fake_scandir):
            report = ReconciliationEngine().run(
                StorageTopology.CO_LOCATED, library, FixedVerdict(ExistenceVerdict.EXISTS)
            )

        assert report.unreadable_directories == 1
        assert report.sidecars_found == 2

    def test_dry_run_removes_nothing(self, library: Path) -> None:
        before = _snapshot(library)
        engine = ReconciliationEngine(reclaimer=Reclaimer(dry_run=True))

        report = engine.run(StorageTopology.CO_LOCATED, library, CoLocatedChecker())

        assert report.dry_run
        assert report.sidecars_removed == 1
        assert _snapshot(library) == before

    def test_custom_suffix(self, tmp_path: Path) -> None:
        (tmp_path / "orphan.meta").mkdir()
        (tmp_path / "orphan.sdr").mkdir()
        engine = ReconciliationEngine(PathClassifier(".meta"))

        report = engine.run(
            StorageTopology.CO_LOCATED, tmp_path, CoLocatedChecker(suffix=".meta")
        )

        assert report.removed_paths == (str(tmp_path / "orphan.meta"),)
        assert (tmp_path / "orphan.sdr").is_dir()


class TestUnusableRoot:
    """Runs that cannot start."""

    @pytest.mark.parametrize("root", [None, ""])
    def test_unset_root(self, root: str | None) -> None:
        with pytest.raises(UnusableRootError, match="not configured"):
            ReconciliationEngine().run(StorageTopology.CO_LOCATED, root, CoLocatedChecker())

    def test_missing_root(self, tmp_path: Path) -> None:
        with pytest.raises(UnusableRootError, match="not found") as exc_info:
            ReconciliationEngine().run(
                StorageTopology.CO_LOCATED, tmp_path / "absent", CoLocatedChecker()
            )
        assert exc_info.value.root == str(tmp_path / "absent")

    def test_file_root(self, tmp_path: Path) -> None:
        (tmp_path / "file").write_text("x")
        with pytest.raises(UnusableRootError):
            ReconciliationEngine().run(
                StorageTopology.CO_LOCATED, tmp_path / "file", CoLocatedChecker()
            )

    def test_unreadable_root(self, library: Path) -> None:
        with (
            patch("sdrsweep.sidecars.engine.os.access", return_value=False),
            pytest.raises(UnusableRootError, match="permission denied"),
        ):
            ReconciliationEngine().run(StorageTopology.CO_LOCATED, library, CoLocatedChecker())

    def test_root_outside_topology_root(self, library: Path, tmp_path: Path) -> None:
        strategy = FixedVerdict(ExistenceVerdict.ORPHANED)
        with pytest.raises(UnusableRootError, match="not inside"):
            ReconciliationEngine().run(
                StorageTopology.MIRRORED, library, strategy, topology_root=tmp_path / "store"
            )
        assert strategy.calls == []
        assert (library / "ghost.pdf.sdr").is_dir()

    def test_topology_root_is_passed_to_strategy(self, library: Path, tmp_path: Path) -> None:
        seen: list[str] = []

        class RecordingStrategy(ExistenceStrategy):
            def exists(self, sidecar_path: str, topology_root: str) -> ExistenceCheck:
                seen.append(topology_root)
                return ExistenceCheck(ExistenceVerdict.EXISTS)

        ReconciliationEngine().run(
            StorageTopology.MIRRORED, library, RecordingStrategy(), topology_root=tmp_path
        )

        assert seen == [str(tmp_path), str(tmp_path)]


class TestSweep:
    """Tests for the sweep() entry point."""

    def test_unknown_topology_mutates_nothing(self, library: Path) -> None:
        before = _snapshot(library)
        config = SweepConfig(topology="cloud", home_dir=library)

        with pytest.raises(UnknownTopologyError):
            sweep(config)

        assert _snapshot(library) == before

    def test_root_override(self, library: Path, tmp_path: Path) -> None:
        config = SweepConfig(topology="doc", home_dir=tmp_path / "nowhere")
        report = sweep(config, root=library)
        assert report.root == str(library)
        assert report.sidecars_removed == 1

    def test_dry_run(self, library: Path) -> None:
        report = sweep(SweepConfig(home_dir=library), dry_run=True)
        assert report.dry_run
        assert (library / "ghost.pdf.sdr").is_dir()

    def test_missing_store_raises(self, tmp_path: Path) -> None:
        config = SweepConfig(topology="hash", data_dir=tmp_path / "koreader")
        with pytest.raises(UnusableRootError, match="not found"):
            sweep(config)
