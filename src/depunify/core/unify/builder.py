"""UnifyBuilder: configure, validate and run a feature-unification pass.

Usage follows a two-phase shape: a mutable configuration value is set up
through fluent setters, then the terminal ``compute()`` call reads it and
returns a fully materialized, immutable ``UnifiedResult``::

    builder = UnifyBuilder(graph, aggregation_id="workspace-hack 0.1.0")
    builder.set_platforms(["x86_64-unknown-linux-gnu", "x86_64-pc-windows-msvc"])
    builder.set_include_dev(True).set_unify_all(False)
    result = builder.compute()

Every configuration problem is detected before any propagation runs, and no
partial result is ever returned. A builder only reads the graph, so several
builders may run against one shared graph at the same time.
"""

from __future__ import annotations

import logging
from typing import Iterable

from depunify.core.graph import Package, PackageGraph
from depunify.core.platform import Platform
from depunify.core.unify.models import (
    BuildPlatform,
    FeatureMap,
    ResolverVersion,
    SeedFeatures,
    UnifiedResult,
    UnifyTargetHost,
)
from depunify.core.unify.propagate import Assignment, EvalContext, FeaturePropagator
from depunify.exceptions import (
    EmptyWorkspaceError,
    InconsistentResolverVersionError,
    InvalidOmittedPackageError,
    NotWorkspaceMemberError,
    UnknownAggregationTargetError,
)

logger = logging.getLogger(__name__)

_Unions = dict[tuple[BuildPlatform, int], set[str]]


class UnifyBuilder:
    """Configuration for a feature-unification run over a ``PackageGraph``.

    Args:
        graph: The package graph to unify.
        aggregation_id: Optional workspace member that will hold the unified
            dependencies (the package the result is written into).

    Raises:
        EmptyWorkspaceError: If the graph has no workspace members.
        UnknownAggregationTargetError: If ``aggregation_id`` is not in the
            graph.
        NotWorkspaceMemberError: If ``aggregation_id`` is not a workspace
            member.
    """

    def __init__(self, graph: PackageGraph, aggregation_id: str | None = None) -> None:
        if not graph.workspace_members():
            raise EmptyWorkspaceError("the package graph has no workspace members")
        if aggregation_id is not None:
            if not graph.contains(aggregation_id):
                raise UnknownAggregationTargetError(aggregation_id)
            if not graph.is_workspace_member(aggregation_id):
                raise NotWorkspaceMemberError(aggregation_id)

        self._graph = graph
        self._aggregation_id = aggregation_id
        self._platforms: tuple[Platform, ...] = ()
        self._resolver_version = ResolverVersion.V2
        self._include_dev = False
        self._verify_mode = False
        self._omitted: set[str] = set()
        self._unify_target_host = UnifyTargetHost.AUTO
        self._unify_all = False
        self._seed_features = SeedFeatures.DEFAULT

    # -- Fluent setters ----------------------------------------------------

    def set_platforms(self, platforms: Iterable[Platform | str]) -> UnifyBuilder:
        """Set the platforms to evaluate; duplicates are dropped, order is canonical.

        An empty list means a single context without platform filtering.

        Raises:
            TripleParseError: If a platform string does not parse.
        """
        self._platforms = tuple(sorted({Platform.coerce(p) for p in platforms}))
        return self

    def set_resolver_version(self, version: ResolverVersion | str) -> UnifyBuilder:
        self._resolver_version = ResolverVersion(version)
        return self

    def set_include_dev(self, include_dev: bool) -> UnifyBuilder:
        self._include_dev = include_dev
        return self

    def set_verify_mode(self, verify_mode: bool) -> UnifyBuilder:
        """In verify mode the aggregation package takes part in the pass."""
        self._verify_mode = verify_mode
        return self

    def add_omitted_packages(self, package_ids: Iterable[str]) -> UnifyBuilder:
        """Exclude workspace members from unification.

        All ids are validated before any is added.

        Raises:
            InvalidOmittedPackageError: If an id is unknown or not a
                workspace member.
        """
        ids = list(package_ids)
        for package_id in ids:
            if not self._graph.contains(package_id):
                raise InvalidOmittedPackageError(package_id, "not in the package graph")
            if not self._graph.is_workspace_member(package_id):
                raise InvalidOmittedPackageError(package_id, "not a workspace member")
        self._omitted.update(ids)
        return self

    def set_unify_target_host(self, policy: UnifyTargetHost | str) -> UnifyBuilder:
        self._unify_target_host = UnifyTargetHost(policy)
        return self

    def set_unify_all(self, unify_all: bool) -> UnifyBuilder:
        self._unify_all = unify_all
        return self

    def set_seed_features(self, policy: SeedFeatures | str) -> UnifyBuilder:
        """Choose what each workspace member is seeded with (default: ``DEFAULT``)."""
        self._seed_features = SeedFeatures(policy)
        return self

    # -- Accessors ---------------------------------------------------------

    @property
    def graph(self) -> PackageGraph:
        return self._graph

    @property
    def aggregation_id(self) -> str | None:
        return self._aggregation_id

    @property
    def aggregation_package(self) -> Package | None:
        if self._aggregation_id is None:
            return None
        return self._graph.package(self._aggregation_id)

    @property
    def platforms(self) -> tuple[Platform, ...]:
        return self._platforms

    @property
    def resolver_version(self) -> ResolverVersion:
        return self._resolver_version

    @property
    def include_dev(self) -> bool:
        return self._include_dev

    @property
    def verify_mode(self) -> bool:
        return self._verify_mode

    @property
    def unify_target_host(self) -> UnifyTargetHost:
        return self._unify_target_host

    @property
    def unify_all(self) -> bool:
        return self._unify_all

    @property
    def seed_features(self) -> SeedFeatures:
        return self._seed_features

    def member_seed(self, package_id: str) -> frozenset[str]:
        """Features ``package_id`` is seeded with when it is a root.

        Raises:
            UnknownPackageError: If the id is not in the graph.
        """
        package = self._graph.package(package_id)
        if self._seed_features is SeedFeatures.RESOLVED:
            return package.resolved_features
        if package.has_feature("default"):
            return frozenset(("default",))
        return frozenset()

    def explicit_omitted_packages(self) -> list[str]:
        """Ids omitted through ``add_omitted_packages``, sorted."""
        return sorted(self._omitted)

    def omits_package(self, package_id: str) -> bool:
        """True if ``package_id`` is excluded from unification.

        Raises:
            UnknownPackageError: If the id is not in the graph.
        """
        self._graph.handle(package_id)
        if package_id in self._omitted:
            return True
        return not self._verify_mode and package_id == self._aggregation_id

    def omitted_packages(self) -> list[str]:
        """All omitted ids, including the aggregation package outside verify mode."""
        omitted = set(self._omitted)
        if not self._verify_mode and self._aggregation_id is not None:
            omitted.add(self._aggregation_id)
        return sorted(omitted)

    def effective_unify_target_host(self) -> UnifyTargetHost:
        return self._unify_target_host.resolve(self._resolver_version)

    # -- Validation & execution --------------------------------------------

    def validate(self) -> None:
        """Check the configuration as a whole.

        Raises:
            InconsistentResolverVersionError: Independent target/host tracks
                were requested with resolver V1, which always merges them.
            EmptyWorkspaceError: Every workspace member is omitted.
        """
        if (
            self._resolver_version is ResolverVersion.V1
            and self._unify_target_host is UnifyTargetHost.INDEPENDENT
        ):
            raise InconsistentResolverVersionError(
                "resolver version 1 always merges build and normal dependency "
                "features; unify_target_host=independent requires version 2 or 3"
            )
        omitted = set(self.omitted_packages())
        if all(member in omitted for member in self._graph.workspace_members()):
            raise EmptyWorkspaceError("every workspace member is omitted")

    def contexts(self) -> list[EvalContext]:
        """Return the evaluation contexts in the order they are run."""
        merge = self.effective_unify_target_host() is UnifyTargetHost.UNIFIED
        platforms: tuple[Platform | None, ...] = self._platforms or (None,)
        dev_values = (False, True) if self._include_dev else (False,)
        return [
            EvalContext(platform, dev, self._resolver_version, merge)
            for platform in platforms
            for dev in dev_values
        ]

    def compute(self) -> UnifiedResult:
        """Run the unification pass and return its immutable result.

        Raises:
            ConfigError: If ``validate()`` fails; nothing is computed.
        """
        self.validate()
        graph = self._graph
        omitted = self.omitted_packages()
        excluded = [graph.handle(pkg_id) for pkg_id in omitted]
        roots = {
            graph.handle(member): self.member_seed(member)
            for member in graph.workspace_members()
            if member not in omitted
        }

        global_unions: _Unions = {}
        member_unions: dict[int, _Unions] = {}
        needs_unification: set[int] = set()

        for context in self.contexts():
            logger.debug("Evaluating context: %s", context.describe())
            if self._unify_all:
                assignment = FeaturePropagator(graph, context, excluded).run(roots)
                _fold(global_unions, assignment)
                continue

            views: dict[tuple[BuildPlatform, int], set[frozenset[str]]] = {}
            for root in sorted(roots):
                assignment = FeaturePropagator(graph, context, excluded).run(
                    {root: roots[root]}
                )
                _fold(global_unions, assignment)
                _fold(member_unions.setdefault(root, {}), assignment)
                for unit, features in assignment.items():
                    views.setdefault(unit, set()).add(features)
            needs_unification.update(
                unit[1] for unit, seen in views.items() if len(seen) > 1
            )

        features = _to_feature_map(graph, global_unions)
        if self._unify_all:
            unified = sorted(
                pkg_id for pkg_id in features
                if not graph.is_workspace_member(pkg_id)
            )
            per_member: dict[str, FeatureMap] = {}
        else:
            split_tracks = {
                pkg_id for pkg_id, tracks in features.items()
                if len(set(tracks.values())) > 1
            }
            unified = sorted(
                {graph.package_at(h).id for h in needs_unification} | split_tracks
            )
            unified = [pkg_id for pkg_id in unified if not graph.is_workspace_member(pkg_id)]
            per_member = {
                graph.package_at(h).id: _to_feature_map(graph, unions)
                for h, unions in member_unions.items()
            }

        logger.debug(
            "Unification reached %d packages; %d need a unified build",
            len(features), len(unified),
        )
        return UnifiedResult(
            platforms=tuple(str(p) for p in self._platforms),
            resolver_version=self._resolver_version,
            include_dev=self._include_dev,
            verify_mode=self._verify_mode,
            unify_target_host=self._unify_target_host,
            unify_all=self._unify_all,
            seed_features=self._seed_features,
            aggregation_id=self._aggregation_id,
            explicit_omitted=frozenset(self._omitted),
            omitted=frozenset(omitted),
            features=features,
            per_member=per_member,
            unified=tuple(unified),
        )

    # -- Comparison --------------------------------------------------------

    def _config_key(self) -> tuple:
        return (
            self._aggregation_id,
            self._platforms,
            self._resolver_version,
            self._include_dev,
            self._verify_mode,
            frozenset(self._omitted),
            self._unify_target_host,
            self._unify_all,
            self._seed_features,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, UnifyBuilder):
            return NotImplemented
        return self._graph is other._graph and self._config_key() == other._config_key()

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"UnifyBuilder(aggregation_id={self._aggregation_id!r}, "
            f"platforms={[str(p) for p in self._platforms]}, "
            f"resolver={self._resolver_version.value}, "
            f"include_dev={self._include_dev}, verify_mode={self._verify_mode}, "
            f"omitted={sorted(self._omitted)}, "
            f"unify_target_host={self._unify_target_host.value}, "
            f"unify_all={self._unify_all}, "
            f"seed_features={self._seed_features.value})"
        )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _fold(unions: _Unions, assignment: Assignment) -> None:
    for unit, features in assignment.items():
        unions.setdefault(unit, set()).update(features)


def _to_feature_map(graph: PackageGraph, unions: _Unions) -> FeatureMap:
    fmap: FeatureMap = {}
    for (track, handle), features in sorted(unions.items(), key=lambda kv: (kv[0][1], kv[0][0].value)):
        fmap.setdefault(graph.package_at(handle).id, {})[track] = frozenset(features)
    return dict(sorted(fmap.items()))
