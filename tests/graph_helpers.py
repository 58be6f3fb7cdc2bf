"""Shared helpers for building metadata snapshots in tests.

``SnapshotBuilder`` assembles a snapshot dict in the resolved-metadata shape,
deriving the resolve table from the declared dependencies, so a test only
states packages and edges once.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from depunify.core.graph import PackageGraph, ResolvedMetadata


def pkg_id(name: str, version: str = "0.1.0") -> str:
    """Package id used by the helpers: ``"<name> <version>"``."""
    return f"{name} {version}"


class SnapshotBuilder:
    """Builds a metadata snapshot dict one package and edge at a time."""

    def __init__(self) -> None:
        self._packages: dict[str, dict[str, Any]] = {}
        self._resolved: dict[str, list[str]] = {}
        self._members: list[str] = []
        self._edges: list[tuple[str, str, dict[str, Any]]] = []

    def add_package(
        self,
        name: str,
        version: str = "0.1.0",
        member: bool = False,
        features: dict[str, list[str]] | None = None,
        resolved: list[str] | None = None,
    ) -> str:
        package_id = pkg_id(name, version)
        self._packages[package_id] = {
            "id": package_id,
            "name": name,
            "version": version,
            "features": features or {},
            "dependencies": [],
        }
        self._resolved[package_id] = list(resolved or [])
        if member:
            self._members.append(package_id)
        return package_id

    def add_dep(
        self,
        source: str,
        target: str,
        kind: str | None = None,
        target_spec: str | None = None,
        optional: bool = False,
        default_features: bool = True,
        features: list[str] | None = None,
        rename: str | None = None,
    ) -> None:
        declared = {
            "name": self._packages[target]["name"],
            "rename": rename,
            "kind": kind,
            "target": target_spec,
            "optional": optional,
            "uses_default_features": default_features,
            "features": list(features or []),
        }
        self._packages[source]["dependencies"].append(declared)
        self._edges.append((source, target, declared))

    def to_dict(self) -> dict[str, Any]:
        deps: dict[str, dict[str, dict[str, Any]]] = {pid: {} for pid in self._packages}
        for source, target, declared in self._edges:
            extern = (declared["rename"] or declared["name"]).replace("-", "_")
            entry = deps[source].setdefault(
                target, {"name": extern, "pkg": target, "dep_kinds": []}
            )
            entry["dep_kinds"].append(
                {"kind": declared["kind"], "target": declared["target"]}
            )
        return {
            "packages": list(self._packages.values()),
            "workspace_members": list(self._members),
            "resolve": {
                "nodes": [
                    {
                        "id": pid,
                        "features": self._resolved[pid],
                        "deps": list(deps[pid].values()),
                    }
                    for pid in self._packages
                ],
            },
        }

    def metadata(self) -> ResolvedMetadata:
        return ResolvedMetadata.from_dict(self.to_dict())

    def build(self) -> PackageGraph:
        return self.metadata().build_graph()

    def write(self, path: Path) -> Path:
        path.write_text(json.dumps(self.to_dict(), indent=2), encoding="utf-8")
        return path


# ---------------------------------------------------------------------------
# Canned workspaces
# ---------------------------------------------------------------------------


def optional_dep_workspace() -> SnapshotBuilder:
    """Two members; ``a`` enables its optional dependency ``c`` through ``x``.

    - ``a`` (member): ``default -> [x]``, ``x -> [y, dep:c]``, ``y -> []``
    - ``b`` (member, no dependencies)
    - ``c`` (non-member, optional dependency of ``a``)
    """
    snap = SnapshotBuilder()
    a = snap.add_package(
        "a", member=True,
        features={"default": ["x"], "x": ["y", "dep:c"], "y": []},
        resolved=["default", "x", "y"],
    )
    snap.add_package("b", member=True)
    c = snap.add_package("c", features={"default": ["std"], "std": []})
    snap.add_dep(a, c, optional=True)
    return snap


def conditional_workspace() -> SnapshotBuilder:
    """Two members sharing ``log``, with a unix-only dependency on ``libc``.

    - ``app`` (member) -> ``log`` with feature ``std``
    - ``app`` -> ``libc`` only on ``cfg(unix)``
    - ``cli`` (member) -> ``log`` with default features only
    - ``app`` -> ``cc`` as a build dependency, ``cc`` -> ``log`` with ``kv``
    - ``cli`` -> ``testkit`` as a dev dependency, ``testkit`` -> ``log`` with
      ``serde``
    """
    snap = SnapshotBuilder()
    app = snap.add_package("app", member=True)
    cli = snap.add_package("cli", member=True)
    log = snap.add_package(
        "log", features={"default": [], "std": [], "kv": [], "serde": []},
    )
    libc = snap.add_package("libc", features={"default": ["std"], "std": []})
    cc = snap.add_package("cc")
    testkit = snap.add_package("testkit")

    snap.add_dep(app, log, features=["std"])
    snap.add_dep(app, libc, target_spec="cfg(unix)")
    snap.add_dep(app, cc, kind="build")
    snap.add_dep(cc, log, features=["kv"])
    snap.add_dep(cli, log)
    snap.add_dep(cli, testkit, kind="dev")
    snap.add_dep(testkit, log, features=["serde"])
    return snap
