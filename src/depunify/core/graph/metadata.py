"""Resolved-metadata snapshot: the input the package graph is built from.

The snapshot has the shape the build tool's ``metadata`` command emits:
a ``packages`` list, the ``workspace_members`` ids, and a ``resolve`` table
with one node per package listing its concretely resolved dependencies and
the features the tool's own resolver chose. Producing that text (running the
tool) is not this module's job; it only reads it.

Unknown fields are ignored so that snapshots from newer tool versions still
load.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from depunify.core.graph.models import DependencyKind
from depunify.exceptions import MetadataError

if TYPE_CHECKING:
    from depunify.core.graph.graph import PackageGraph


@dataclass(frozen=True)
class DeclaredDependency:
    """A dependency as declared in a package's manifest."""

    name: str
    kind: DependencyKind = DependencyKind.NORMAL
    target: str | None = None
    rename: str | None = None
    optional: bool = False
    uses_default_features: bool = True
    features: tuple[str, ...] = ()

    @property
    def dep_name(self) -> str:
        return self.rename or self.name


@dataclass(frozen=True)
class PackageEntry:
    """One entry of the ``packages`` list."""

    id: str
    name: str
    version: str
    features: dict[str, tuple[str, ...]] = field(default_factory=dict, hash=False)
    dependencies: tuple[DeclaredDependency, ...] = ()


@dataclass(frozen=True)
class DepKindInfo:
    kind: DependencyKind = DependencyKind.NORMAL
    target: str | None = None


@dataclass(frozen=True)
class ResolvedDep:
    """A resolved dependency of a resolve node: target id plus its kinds."""

    name: str
    pkg: str
    dep_kinds: tuple[DepKindInfo, ...] = (DepKindInfo(),)


@dataclass(frozen=True)
class ResolveNode:
    id: str
    deps: tuple[ResolvedDep, ...] = ()
    features: tuple[str, ...] = ()


@dataclass
class ResolvedMetadata:
    """A parsed resolved-metadata snapshot.

    Attributes:
        packages: Every package in the dependency graph.
        workspace_members: Ids of the workspace members.
        resolve: Resolve nodes, or None if the snapshot was produced
            without dependency resolution.
    """

    packages: list[PackageEntry] = field(default_factory=list)
    workspace_members: list[str] = field(default_factory=list)
    resolve: list[ResolveNode] | None = None

    # -- Deserialization ---------------------------------------------------

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ResolvedMetadata:
        """Build a snapshot from parsed JSON.

        Raises:
            MetadataError: If a required field is missing or mistyped.
        """
        if not isinstance(data, dict):
            raise MetadataError("metadata must be a JSON object")

        packages = [_package_from_dict(p) for p in _list(data, "packages")]
        members = [str(m) for m in _list(data, "workspace_members")]

        resolve: list[ResolveNode] | None = None
        resolve_data = data.get("resolve")
        if resolve_data is not None:
            if not isinstance(resolve_data, dict):
                raise MetadataError("'resolve' must be an object")
            resolve = [_node_from_dict(n) for n in _list(resolve_data, "nodes")]

        return cls(packages=packages, workspace_members=members, resolve=resolve)

    @classmethod
    def from_json(cls, json_str: str) -> ResolvedMetadata:
        """Parse a JSON string.

        Raises:
            MetadataError: If the text is not valid JSON or not a snapshot.
        """
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as exc:
            raise MetadataError(f"metadata is not valid JSON: {exc}") from exc
        return cls.from_dict(data)

    @classmethod
    def read(cls, path: Path) -> ResolvedMetadata:
        """Read a snapshot from disk."""
        return cls.from_json(path.read_text(encoding="utf-8"))

    def build_graph(self) -> PackageGraph:
        """Build a ``PackageGraph`` out of this snapshot."""
        from depunify.core.graph.graph import PackageGraph

        return PackageGraph.build(self)


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------


def _list(data: dict[str, Any], key: str) -> list[Any]:
    value = data.get(key, [])
    if value is None:
        return []
    if not isinstance(value, list):
        raise MetadataError(f"{key!r} must be a list")
    return value


def _required_str(data: dict[str, Any], key: str, where: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value:
        raise MetadataError(f"{where}: missing or invalid {key!r}")
    return value


def _kind(value: Any, where: str) -> DependencyKind:
    try:
        return DependencyKind.from_metadata(value)
    except ValueError as exc:
        raise MetadataError(f"{where}: unknown dependency kind {value!r}") from exc


def _package_from_dict(data: Any) -> PackageEntry:
    if not isinstance(data, dict):
        raise MetadataError("package entries must be objects")
    pkg_id = _required_str(data, "id", "package")
    where = f"package {pkg_id!r}"

    raw_features = data.get("features") or {}
    if not isinstance(raw_features, dict):
        raise MetadataError(f"{where}: 'features' must be an object")
    features = {
        str(name): tuple(str(v) for v in values)
        for name, values in raw_features.items()
    }

    deps = []
    for dep in _list(data, "dependencies"):
        if not isinstance(dep, dict):
            raise MetadataError(f"{where}: dependency entries must be objects")
        deps.append(
            DeclaredDependency(
                name=_required_str(dep, "name", where),
                kind=_kind(dep.get("kind"), where),
                target=dep.get("target"),
                rename=dep.get("rename"),
                optional=bool(dep.get("optional", False)),
                uses_default_features=bool(dep.get("uses_default_features", True)),
                features=tuple(str(f) for f in dep.get("features") or ()),
            )
        )

    return PackageEntry(
        id=pkg_id,
        name=_required_str(data, "name", where),
        version=str(data.get("version", "")),
        features=features,
        dependencies=tuple(deps),
    )


def _node_from_dict(data: Any) -> ResolveNode:
    if not isinstance(data, dict):
        raise MetadataError("resolve nodes must be objects")
    node_id = _required_str(data, "id", "resolve node")
    where = f"resolve node {node_id!r}"

    deps = []
    for dep in _list(data, "deps"):
        if not isinstance(dep, dict):
            raise MetadataError(f"{where}: deps must be objects")
        kinds = tuple(
            DepKindInfo(kind=_kind(k.get("kind"), where), target=k.get("target"))
            for k in dep.get("dep_kinds") or ()
        )
        deps.append(
            ResolvedDep(
                name=str(dep.get("name", "")),
                pkg=_required_str(dep, "pkg", where),
                dep_kinds=kinds or (DepKindInfo(),),
            )
        )

    return ResolveNode(
        id=node_id,
        deps=tuple(deps),
        features=tuple(str(f) for f in data.get("features") or ()),
    )
