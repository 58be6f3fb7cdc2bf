"""Tests for ``depunify graph``.

Verifies:
    - The overview table lists every package.
    - JSON output mirrors the graph structure.
    - Per-package detail and unknown ids (exit code 2).
    - Malformed snapshots exit with code 2.
"""

from __future__ import annotations

import json
from pathlib import Path

from click.testing import CliRunner

from depunify.cli.main import cli


class TestGraphOverview:
    def test_lists_packages(self, runner: CliRunner, metadata_path: Path) -> None:
        result = runner.invoke(cli, ["graph", str(metadata_path)])
        assert result.exit_code == 0
        assert "Package Graph" in result.output
        assert "6 packages" in result.output
        assert "2 workspace members" in result.output

    def test_json(self, runner: CliRunner, metadata_path: Path) -> None:
        result = runner.invoke(cli, ["graph", str(metadata_path), "--format", "json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["workspace_members"] == ["app 0.1.0", "cli 0.1.0"]
        deps = data["packages"]["app 0.1.0"]["dependencies"]
        libc = next(d for d in deps if d["name"] == "libc")
        assert libc["target"] == "cfg(unix)"


class TestGraphPackage:
    def test_package_json(self, runner: CliRunner, metadata_path: Path) -> None:
        result = runner.invoke(
            cli, ["graph", str(metadata_path), "-p", "cli 0.1.0", "--format", "json"]
        )
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["workspace_member"] is True
        assert [d["kind"] for d in data["dependencies"]] == ["normal", "dev"]

    def test_package_detail(self, runner: CliRunner, metadata_path: Path) -> None:
        result = runner.invoke(cli, ["graph", str(metadata_path), "-p", "app 0.1.0"])
        assert result.exit_code == 0
        assert "Dependencies" in result.output

    def test_unknown_package(self, runner: CliRunner, metadata_path: Path) -> None:
        result = runner.invoke(cli, ["graph", str(metadata_path), "-p", "ghost 1.0.0"])
        assert result.exit_code == 2
        assert "ghost" in result.output


class TestGraphErrors:
    def test_invalid_json(self, runner: CliRunner, broken_metadata_path: Path) -> None:
        result = runner.invoke(cli, ["graph", str(broken_metadata_path)])
        assert result.exit_code == 2
        assert "not valid JSON" in result.output

    def test_missing_file(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(cli, ["graph", str(tmp_path / "absent.json")])
        assert result.exit_code == 2
