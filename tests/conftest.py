"""Shared fixtures for depunify tests."""

import pytest

from depunify.core.graph import PackageGraph
from graph_helpers import conditional_workspace, optional_dep_workspace


@pytest.fixture
def optional_graph() -> PackageGraph:
    """Graph where member ``a`` enables optional dependency ``c``."""
    return optional_dep_workspace().build()


@pytest.fixture
def conditional_graph() -> PackageGraph:
    """Graph with a shared ``log`` dependency and a unix-only ``libc``."""
    return conditional_workspace().build()
