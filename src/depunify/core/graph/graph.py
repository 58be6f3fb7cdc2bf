"""PackageGraph: an immutable dependency graph over resolved packages.

Packages live in an arena indexed by a stable integer handle; edges are kept
in separate outgoing and incoming adjacency lists per dependency kind rather
than inside the package records. The graph is built once from a resolved
metadata snapshot and exposes no mutators afterwards, so it can be read from
several threads at once without synchronization. Rebuilding means building
a new instance.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Iterable, Iterator

from depunify.core.graph.metadata import (
    DeclaredDependency,
    PackageEntry,
    ResolvedMetadata,
)
from depunify.core.graph.models import (
    ALL_KINDS,
    DependencyEdge,
    DependencyKind,
    Package,
)
from depunify.core.platform import Platform, TargetSpec
from depunify.exceptions import (
    CfgParseError,
    DuplicatePackageIdError,
    InvalidTargetSpecError,
    MissingResolveDataError,
    UnknownPackageError,
)

logger = logging.getLogger(__name__)

_Adjacency = dict[DependencyKind, list[list[DependencyEdge]]]


class PackageGraph:
    """A resolved package dependency graph.

    Invariants:
        - every edge's endpoints are packages of the graph;
        - adjacency lists are ordered by target id, then kind, then
          condition, so that every traversal is deterministic.
    """

    def __init__(self, packages: list[Package], edges: Iterable[DependencyEdge]) -> None:
        self._packages: list[Package] = []
        self._index: dict[str, int] = {}
        for package in packages:
            if package.id in self._index:
                raise DuplicatePackageIdError(package.id)
            self._index[package.id] = len(self._packages)
            self._packages.append(package)

        count = len(self._packages)
        self._outgoing: _Adjacency = {k: [[] for _ in range(count)] for k in ALL_KINDS}
        self._incoming: _Adjacency = {k: [[] for _ in range(count)] for k in ALL_KINDS}
        edge_count = 0
        for edge in edges:
            for endpoint in (edge.source, edge.target):
                if endpoint not in self._index:
                    raise UnknownPackageError(endpoint, "dependency edge endpoint")
            self._outgoing[edge.kind][self._index[edge.source]].append(edge)
            self._incoming[edge.kind][self._index[edge.target]].append(edge)
            edge_count += 1

        for adjacency in (self._outgoing, self._incoming):
            for lists in adjacency.values():
                for edge_list in lists:
                    edge_list.sort(key=DependencyEdge.sort_key)

        self._members = tuple(sorted(p.id for p in self._packages if p.in_workspace))
        self._edge_count = edge_count

    # -- Construction ------------------------------------------------------

    @classmethod
    def build(cls, metadata: ResolvedMetadata) -> PackageGraph:
        """Build a graph from a resolved metadata snapshot.

        One pass builds the nodes, one pass links edges from the resolve
        table: O(P + E).

        Raises:
            MissingResolveDataError: A package has no resolve entry.
            DuplicatePackageIdError: Two packages share an id.
            UnknownPackageError: A resolve edge or workspace member names an
                id absent from the package list.
            InvalidTargetSpecError: A dependency condition is malformed.
        """
        resolve = {node.id: node for node in metadata.resolve or ()}
        members = set(metadata.workspace_members)

        entries: dict[str, PackageEntry] = {}
        packages: list[Package] = []
        for entry in metadata.packages:
            if entry.id in entries:
                raise DuplicatePackageIdError(entry.id)
            node = resolve.get(entry.id)
            if node is None:
                raise MissingResolveDataError(entry.id)
            entries[entry.id] = entry
            packages.append(
                Package(
                    id=entry.id,
                    name=entry.name,
                    version=entry.version,
                    features=_with_implicit_features(entry),
                    in_workspace=entry.id in members,
                    resolved_features=frozenset(node.features),
                )
            )

        for member in sorted(members):
            if member not in entries:
                raise UnknownPackageError(member, "workspace member")

        specs: dict[str, TargetSpec] = {}
        edges: list[DependencyEdge] = []
        for entry in metadata.packages:
            for dep in resolve[entry.id].deps:
                target_entry = entries.get(dep.pkg)
                if target_entry is None:
                    raise UnknownPackageError(dep.pkg, f"dependency of {entry.id!r}")
                for kind_info in dep.dep_kinds:
                    decl = _find_declaration(
                        entry, target_entry.name, dep.name, kind_info.kind, kind_info.target
                    )
                    spec = None
                    if kind_info.target is not None:
                        spec = specs.get(kind_info.target)
                        if spec is None:
                            try:
                                spec = TargetSpec.parse(kind_info.target)
                            except CfgParseError as exc:
                                raise InvalidTargetSpecError(
                                    entry.id, kind_info.target, exc
                                ) from exc
                            specs[kind_info.target] = spec
                    edges.append(
                        DependencyEdge(
                            source=entry.id,
                            target=dep.pkg,
                            dep_name=decl.dep_name if decl else target_entry.name,
                            kind=kind_info.kind,
                            target_spec=spec,
                            optional=decl.optional if decl else False,
                            default_features=decl.uses_default_features if decl else True,
                            features=decl.features if decl else (),
                        )
                    )

        graph = cls(packages, edges)
        logger.debug(
            "Built package graph: %d packages, %d edges, %d workspace members",
            graph.package_count, graph.edge_count, len(graph.workspace_members()),
        )
        return graph

    # -- Membership --------------------------------------------------------

    @property
    def package_count(self) -> int:
        return len(self._packages)

    @property
    def edge_count(self) -> int:
        return self._edge_count

    def contains(self, package_id: str) -> bool:
        return package_id in self._index

    def package(self, package_id: str) -> Package:
        """Return the package with ``package_id``.

        Raises:
            UnknownPackageError: If the id is not in the graph.
        """
        return self._packages[self.handle(package_id)]

    def packages(self) -> Iterator[Package]:
        """Iterate packages in id order."""
        for package_id in self.package_ids():
            yield self.package(package_id)

    def package_ids(self) -> list[str]:
        return sorted(self._index)

    def workspace_members(self) -> tuple[str, ...]:
        """Return the workspace member ids, sorted."""
        return self._members

    def is_workspace_member(self, package_id: str) -> bool:
        """True if ``package_id`` is a workspace member.

        Raises:
            UnknownPackageError: If the id is not in the graph.
        """
        return self.package(package_id).in_workspace

    def resolved_features(self, package_id: str) -> frozenset[str]:
        """Features the build tool's own resolver recorded for the package."""
        return self.package(package_id).resolved_features

    # -- Arena access ------------------------------------------------------

    def handle(self, package_id: str) -> int:
        """Return the stable integer handle of ``package_id``."""
        try:
            return self._index[package_id]
        except KeyError:
            raise UnknownPackageError(package_id) from None

    def package_at(self, handle: int) -> Package:
        return self._packages[handle]

    def edges_out(self, handle: int, kind: DependencyKind) -> list[DependencyEdge]:
        """Outgoing edges of one kind; the returned list must not be mutated."""
        return self._outgoing[kind][handle]

    # -- Queries -----------------------------------------------------------

    def direct_dependencies(
        self, package_id: str, kinds: Iterable[DependencyKind] | None = None
    ) -> list[DependencyEdge]:
        """Return outgoing edges of ``package_id``, ordered by target id.

        Args:
            package_id: Source package.
            kinds: Kinds to include; None includes all.
        """
        return self._collect(self._outgoing, package_id, kinds)

    def reverse_dependencies(
        self, package_id: str, kinds: Iterable[DependencyKind] | None = None
    ) -> list[DependencyEdge]:
        """Return incoming edges of ``package_id``, ordered by source id."""
        edges = self._collect(self._incoming, package_id, kinds)
        edges.sort(key=lambda e: (e.source, e.kind.order, str(e.target_spec or "")))
        return edges

    def _collect(
        self,
        adjacency: _Adjacency,
        package_id: str,
        kinds: Iterable[DependencyKind] | None,
    ) -> list[DependencyEdge]:
        handle = self.handle(package_id)
        selected = ALL_KINDS if kinds is None else tuple(kinds)
        edges = [e for kind in selected for e in adjacency[kind][handle]]
        edges.sort(key=DependencyEdge.sort_key)
        return edges

    @staticmethod
    def is_edge_active(edge: DependencyEdge, platform: Platform | None) -> bool:
        """True if ``edge`` has no condition or its condition matches.

        A ``platform`` of None means no platform filtering.
        """
        if edge.target_spec is None or platform is None:
            return True
        return edge.target_spec.eval(platform)

    def transitive_closure(
        self, root_ids: Iterable[str], include_dev: bool = False
    ) -> set[str]:
        """Return every package reachable from ``root_ids``, roots included.

        Follows normal and build edges everywhere and dev edges only out of
        the roots. Platform conditions are not applied here; they only
        matter during feature resolution.
        """
        roots = [self.handle(root) for root in root_ids]
        seen = set(roots)
        queue = deque(roots)
        root_set = frozenset(roots)
        while queue:
            current = queue.popleft()
            kinds = ALL_KINDS if include_dev and current in root_set else (
                DependencyKind.NORMAL, DependencyKind.BUILD,
            )
            for kind in kinds:
                for edge in self._outgoing[kind][current]:
                    target = self._index[edge.target]
                    if target not in seen:
                        seen.add(target)
                        queue.append(target)
        return {self._packages[h].id for h in seen}


# ---------------------------------------------------------------------------
# Build helpers
# ---------------------------------------------------------------------------


def _with_implicit_features(entry: PackageEntry) -> dict[str, tuple[str, ...]]:
    """Add ``name = ["dep:name"]`` for optional deps never named via ``dep:``."""
    features = dict(entry.features)
    explicit = {
        value[4:]
        for values in entry.features.values()
        for value in values
        if value.startswith("dep:")
    }
    for dep in entry.dependencies:
        name = dep.dep_name
        if dep.optional and name not in explicit and name not in features:
            features[name] = (f"dep:{name}",)
    return features


def _find_declaration(
    entry: PackageEntry,
    target_name: str,
    extern_name: str,
    kind: DependencyKind,
    target: str | None,
) -> DeclaredDependency | None:
    candidates = [
        d for d in entry.dependencies
        if d.name == target_name and d.kind == kind and d.target == target
    ]
    if len(candidates) > 1:
        narrowed = [
            d for d in candidates if d.dep_name.replace("-", "_") == extern_name
        ]
        candidates = narrowed or candidates
    if not candidates:
        logger.warning(
            "No declaration in %s matches resolved %s dependency on %s; "
            "assuming a required dependency with default features",
            entry.id, kind.value, target_name,
        )
        return None
    return candidates[0]
