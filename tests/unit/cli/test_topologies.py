"""Unit tests for the topologies command."""

from pathlib import Path

from sdrsweep.cli.main import app
from typer.testing import CliRunner

runner = CliRunner()


class TestTopologiesCommand:
    """Tests for sdrsweep topologies."""

    def test_lists_all_modes(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["topologies", "--config", str(tmp_path / "absent.toml")])

        assert result.exit_code == 0
        assert "Storage Modes" in result.output
        for topology_id in ("doc", "dir", "hash"):
            assert topology_id in result.output

    def test_invalid_config(self, tmp_path: Path) -> None:
        path = tmp_path / "config.toml"
        path.write_text("nonsense = true\n")
        result = runner.invoke(app, ["topologies", "--config", str(path)])
        assert result.exit_code == 2
