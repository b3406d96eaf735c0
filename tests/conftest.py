"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

from collections.abc import Callable
from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def isolated_xdg(monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory) -> Path:
    """Point XDG config/state directories at a throwaway location."""
    base = tmp_path_factory.mktemp("xdg")
    monkeypatch.setenv("XDG_CONFIG_HOME", str(base / "config"))
    monkeypatch.setenv("XDG_STATE_HOME", str(base / "state"))
    return base


@pytest.fixture
def make_sidecar() -> Callable[..., Path]:
    """Factory creating a sidecar directory with some nested content."""

    def _make(path: Path, metadata: str | None = None) -> Path:
        path.mkdir(parents=True, exist_ok=True)
        (path / "notes").mkdir(exist_ok=True)
        (path / "notes" / "highlight.txt").write_text("highlight")
        if metadata is not None:
            (path / "metadata.lua").write_text(metadata)
        return path

    return _make


def lua_record(doc_path: str) -> str:
    """Build a metadata.lua body pointing at doc_path."""
    return (
        "-- we can read Lua syntax here!\n"
        "return {\n"
        f'    ["doc_path"] = "{doc_path}",\n'
        '    ["partial_md5_checksum"] = "0123456789abcdef",\n'
        '    ["stats"] = {\n'
        '        ["pages"] = 312,\n'
        '        ["title"] = "Novel",\n'
        "    },\n"
        "}\n"
    )


@pytest.fixture
def lua_metadata() -> Callable[[str], str]:
    """Return the metadata.lua body builder."""
    return lua_record
