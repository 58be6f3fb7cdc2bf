"""Shared fixtures for CLI tests.

Writes metadata snapshots to temporary files so commands can be invoked on
real paths.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from click.testing import CliRunner

from graph_helpers import conditional_workspace, optional_dep_workspace


@pytest.fixture
def runner() -> CliRunner:
    """Create a Click CliRunner for invoking commands."""
    return CliRunner()


@pytest.fixture
def metadata_path(tmp_path: Path) -> Path:
    """Snapshot of the shared-``log`` workspace with a unix-only ``libc``."""
    return conditional_workspace().write(tmp_path / "metadata.json")


@pytest.fixture
def optional_metadata_path(tmp_path: Path) -> Path:
    """Snapshot where member ``a`` enables optional dependency ``c``."""
    return optional_dep_workspace().write(tmp_path / "optional.json")


@pytest.fixture
def broken_metadata_path(tmp_path: Path) -> Path:
    """A file that is not valid JSON."""
    path = tmp_path / "broken.json"
    path.write_text("{not json")
    return path
