"""Tests for ``depunify unify``.

Verifies:
    - Default text output lists packages that need unification.
    - JSON output carries the full result.
    - Options reach the builder (platforms, dev, omission, aggregation).
    - --output writes a summary and --config reads one back.
    - Configuration errors exit 1; malformed input exits 2.
"""

from __future__ import annotations

import json
from pathlib import Path

from click.testing import CliRunner

from depunify.cli.main import cli
from depunify.core.unify import Summary

LINUX = "x86_64-unknown-linux-gnu"
WINDOWS = "x86_64-pc-windows-msvc"


def _unify_json(runner: CliRunner, metadata: Path, *args: str) -> dict:
    result = runner.invoke(cli, ["unify", str(metadata), "--format", "json", *args])
    assert result.exit_code == 0, result.output
    return json.loads(result.output)


class TestUnifyOutput:
    def test_text_output(self, runner: CliRunner, metadata_path: Path) -> None:
        result = runner.invoke(cli, ["unify", str(metadata_path)])
        assert result.exit_code == 0
        assert "Feature Unification" in result.output
        assert "1 need unification" in result.output

    def test_json_output(self, runner: CliRunner, metadata_path: Path) -> None:
        data = _unify_json(runner, metadata_path)
        assert data["unified"] == ["log 0.1.0"]
        assert data["features"]["log 0.1.0"]["target"] == ["default", "std"]
        assert data["resolver"] == "2"

    def test_optional_dependency_workspace(
        self, runner: CliRunner, optional_metadata_path: Path
    ) -> None:
        data = _unify_json(runner, optional_metadata_path)
        assert data["features"]["a 0.1.0"]["target"] == ["default", "x", "y"]
        assert "c 0.1.0" in data["features"]

    def test_nothing_to_unify(self, runner: CliRunner, metadata_path: Path) -> None:
        result = runner.invoke(
            cli, ["unify", str(metadata_path), "--omit", "cli 0.1.0",
                  "--unify-target-host", "unified"],
        )
        assert result.exit_code == 0
        assert "No packages need unification" in result.output


class TestUnifyOptions:
    def test_platforms(self, runner: CliRunner, metadata_path: Path) -> None:
        data = _unify_json(runner, metadata_path, "-p", WINDOWS)
        assert data["platforms"] == [WINDOWS]
        assert "libc 0.1.0" not in data["features"]

    def test_include_dev(self, runner: CliRunner, metadata_path: Path) -> None:
        data = _unify_json(runner, metadata_path, "--include-dev")
        assert "testkit 0.1.0" in data["features"]

    def test_resolver_v1(self, runner: CliRunner, metadata_path: Path) -> None:
        data = _unify_json(runner, metadata_path, "--resolver", "1", "-p", WINDOWS)
        assert "libc 0.1.0" in data["features"]
        assert "host" not in data["features"]["log 0.1.0"]

    def test_aggregate(self, runner: CliRunner, metadata_path: Path) -> None:
        data = _unify_json(runner, metadata_path, "--aggregate", "app 0.1.0")
        assert data["aggregation_package"] == "app 0.1.0"
        assert data["omitted_packages"] == ["app 0.1.0"]
        assert "app 0.1.0" not in data["features"]

    def test_verify_mode(self, runner: CliRunner, metadata_path: Path) -> None:
        data = _unify_json(runner, metadata_path, "--aggregate", "app 0.1.0", "--verify")
        assert data["omitted_packages"] == []
        assert "app 0.1.0" in data["features"]

    def test_unify_all(self, runner: CliRunner, metadata_path: Path) -> None:
        data = _unify_json(runner, metadata_path, "--unify-all")
        assert data["unified"] == ["cc 0.1.0", "libc 0.1.0", "log 0.1.0"]

    def test_seed_features(
        self, runner: CliRunner, optional_metadata_path: Path
    ) -> None:
        declared = _unify_json(runner, optional_metadata_path)
        resolved = _unify_json(
            runner, optional_metadata_path, "--seed-features", "resolved"
        )
        assert declared["seed_features"] == "default"
        assert resolved["seed_features"] == "resolved"
        assert resolved["features"]["a 0.1.0"]["target"] == ["default", "x", "y"]


class TestUnifySummaryFiles:
    def test_output_writes_summary(
        self, runner: CliRunner, metadata_path: Path, tmp_path: Path
    ) -> None:
        out = tmp_path / "out" / "summary.json"
        result = runner.invoke(
            cli, ["unify", str(metadata_path), "-p", LINUX, "-o", str(out)]
        )
        assert result.exit_code == 0
        summary = Summary.read(out)
        assert summary.platforms == (LINUX,)
        assert "log 0.1.0" in summary.packages

    def test_config_seeds_options(
        self, runner: CliRunner, metadata_path: Path, tmp_path: Path
    ) -> None:
        config = tmp_path / "config.json"
        Summary.from_dict({"platforms": [WINDOWS], "include_dev": True}).write(config)
        data = _unify_json(runner, metadata_path, "--config", str(config))
        assert data["platforms"] == [WINDOWS]
        assert data["include_dev"] is True

    def test_options_override_config(
        self, runner: CliRunner, metadata_path: Path, tmp_path: Path
    ) -> None:
        config = tmp_path / "config.json"
        Summary.from_dict({"platforms": [WINDOWS], "include_dev": True}).write(config)
        data = _unify_json(
            runner, metadata_path, "--config", str(config), "-p", LINUX, "--no-include-dev"
        )
        assert data["platforms"] == [LINUX]
        assert data["include_dev"] is False

    def test_omit_adds_to_config(
        self, runner: CliRunner, metadata_path: Path, tmp_path: Path
    ) -> None:
        config = tmp_path / "config.json"
        Summary.from_dict({"omitted_packages": ["cli 0.1.0"]}).write(config)
        result = runner.invoke(
            cli, ["unify", str(metadata_path), "--config", str(config), "--omit", "app 0.1.0"]
        )
        assert result.exit_code == 1
        assert "every workspace member is omitted" in result.output


class TestUnifyErrors:
    def test_invalid_platform(self, runner: CliRunner, metadata_path: Path) -> None:
        result = runner.invoke(cli, ["unify", str(metadata_path), "-p", "bogus"])
        assert result.exit_code == 2
        assert "invalid target triple" in result.output

    def test_omit_non_member(self, runner: CliRunner, metadata_path: Path) -> None:
        result = runner.invoke(cli, ["unify", str(metadata_path), "--omit", "log 0.1.0"])
        assert result.exit_code == 1
        assert "omitted_packages" in result.output

    def test_unknown_aggregate(self, runner: CliRunner, metadata_path: Path) -> None:
        result = runner.invoke(cli, ["unify", str(metadata_path), "--aggregate", "ghost"])
        assert result.exit_code == 1

    def test_inconsistent_resolver(self, runner: CliRunner, metadata_path: Path) -> None:
        result = runner.invoke(
            cli,
            ["unify", str(metadata_path), "--resolver", "1",
             "--unify-target-host", "independent"],
        )
        assert result.exit_code == 1
        assert "resolver version 1" in result.output

    def test_malformed_config(
        self, runner: CliRunner, metadata_path: Path, tmp_path: Path
    ) -> None:
        config = tmp_path / "config.json"
        config.write_text(json.dumps({"resolver": "7"}))
        result = runner.invoke(cli, ["unify", str(metadata_path), "--config", str(config)])
        assert result.exit_code == 2
        assert "resolver" in result.output

    def test_malformed_metadata(self, runner: CliRunner, broken_metadata_path: Path) -> None:
        result = runner.invoke(cli, ["unify", str(broken_metadata_path)])
        assert result.exit_code == 2

    def test_verbose_logging(self, runner: CliRunner, metadata_path: Path) -> None:
        result = runner.invoke(cli, ["-v", "unify", str(metadata_path)])
        assert result.exit_code == 0
