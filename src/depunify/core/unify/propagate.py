"""Worklist feature propagation for a single evaluation context.

A context is one platform (or no platform filter) combined with one
dev-inclusion setting, a resolver version and a target/host policy. Within a
context every package is built on one of two tracks (target or host); a
*unit* is a ``(track, package handle)`` pair and owns a feature set.

Propagation is an explicit worklist of ``(unit, item)`` pairs, where ``item``
is None when the unit was just activated, ``"dep:name"`` when an optional
dependency was just enabled, and a feature name otherwise. Feature sets only
grow and the set of possible features is finite, so the loop reaches a fixed
point and terminates.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Iterable, Iterator

from depunify.core.graph import DependencyEdge, DependencyKind, PackageGraph
from depunify.core.platform import Platform
from depunify.core.unify.models import BuildPlatform, ResolverVersion

logger = logging.getLogger(__name__)

Unit = tuple[BuildPlatform, int]
Assignment = dict[Unit, frozenset[str]]

_DEP_PREFIX = "dep:"


@dataclass(frozen=True)
class EvalContext:
    """One evaluation context of a unification run."""

    platform: Platform | None
    include_dev: bool
    resolver_version: ResolverVersion
    merge_target_host: bool

    def describe(self) -> str:
        platform = str(self.platform) if self.platform else "<any platform>"
        dev = "with dev" if self.include_dev else "without dev"
        return f"{platform}, {dev}, resolver {self.resolver_version.value}"


class FeaturePropagator:
    """Computes the feature assignment of one context from a set of roots.

    Args:
        graph: The package graph to walk.
        context: Evaluation context.
        excluded: Handles of packages never entered (omitted packages).
    """

    def __init__(
        self,
        graph: PackageGraph,
        context: EvalContext,
        excluded: Iterable[int] = (),
    ) -> None:
        self._graph = graph
        self._context = context
        self._excluded = frozenset(excluded)
        self._features: dict[Unit, set[str]] = {}
        self._followed: dict[tuple[Unit, str], set[Unit]] = {}
        self._dep_features: dict[tuple[Unit, str], set[str]] = {}
        self._optional_names: dict[int, frozenset[str]] = {}
        self._queue: deque[tuple[Unit, str | None]] = deque()
        self._roots: frozenset[int] = frozenset()
        self.steps = 0

    def run(self, roots: dict[int, Iterable[str]]) -> Assignment:
        """Propagate from ``roots`` (handle -> seed features) to a fixed point.

        Returns:
            Unit -> enabled features, without internal ``dep:`` markers.
        """
        self._roots = frozenset(roots)
        for handle in sorted(roots):
            unit = (BuildPlatform.TARGET, handle)
            self._activate(unit)
            for feature in sorted(roots[handle]):
                self._apply_value(unit, feature)

        while self._queue:
            unit, item = self._queue.popleft()
            self.steps += 1
            if item is None:
                self._on_activated(unit)
            elif item.startswith(_DEP_PREFIX):
                self._on_dep_enabled(unit, item[len(_DEP_PREFIX):])
            else:
                self._on_feature(unit, item)

        logger.debug(
            "Fixed point for %s reached after %d steps (%d units)",
            self._context.describe(), self.steps, len(self._features),
        )
        return {
            unit: frozenset(f for f in features if not f.startswith(_DEP_PREFIX))
            for unit, features in self._features.items()
        }

    # -- Worklist handlers -------------------------------------------------

    def _on_activated(self, unit: Unit) -> None:
        enabled = self._features[unit]
        for edge in self._active_edges(unit):
            if not edge.optional or _DEP_PREFIX + edge.dep_name in enabled:
                self._follow(unit, edge)

    def _on_dep_enabled(self, unit: Unit, dep_name: str) -> None:
        for edge in self._active_edges(unit):
            if edge.optional and edge.dep_name == dep_name:
                self._follow(unit, edge)

    def _on_feature(self, unit: Unit, feature: str) -> None:
        package = self._graph.package_at(unit[1])
        for value in package.implied_features(feature):
            self._apply_value(unit, value)

    # -- State transitions -------------------------------------------------

    def _activate(self, unit: Unit) -> None:
        if unit not in self._features:
            self._features[unit] = set()
            self._queue.append((unit, None))

    def _enable(self, unit: Unit, feature: str) -> None:
        self._activate(unit)
        enabled = self._features[unit]
        if feature not in enabled:
            enabled.add(feature)
            self._queue.append((unit, feature))

    def _apply_value(self, unit: Unit, value: str) -> None:
        """Apply one feature value: ``f``, ``dep:d``, ``d/f`` or ``d?/f``."""
        if value.startswith(_DEP_PREFIX) or "/" not in value:
            self._enable(unit, value)
            return

        dep_name, feature = value.split("/", 1)
        weak = dep_name.endswith("?")
        dep_name = dep_name.rstrip("?")
        key = (unit, dep_name)
        self._dep_features.setdefault(key, set()).add(feature)
        for target in sorted(self._followed.get(key, ())):
            self._enable(target, feature)

        if not weak and dep_name in self._optional_dep_names(unit[1]):
            package = self._graph.package_at(unit[1])
            implicit = (_DEP_PREFIX + dep_name,)
            if package.implied_features(dep_name) == implicit:
                self._enable(unit, dep_name)
            else:
                self._enable(unit, _DEP_PREFIX + dep_name)

    def _follow(self, unit: Unit, edge: DependencyEdge) -> None:
        handle = self._graph.handle(edge.target)
        if handle in self._excluded:
            return
        target = (self._track_for(unit, edge), handle)
        key = (unit, edge.dep_name)
        self._followed.setdefault(key, set()).add(target)
        self._activate(target)

        for feature in edge.features:
            self._apply_value(target, feature)
        if edge.default_features and self._graph.package_at(handle).has_feature("default"):
            self._enable(target, "default")
        for feature in sorted(self._dep_features.get(key, ())):
            self._enable(target, feature)

    # -- Edge selection ----------------------------------------------------

    def _track_for(self, unit: Unit, edge: DependencyEdge) -> BuildPlatform:
        if self._context.merge_target_host:
            return BuildPlatform.TARGET
        if edge.kind is DependencyKind.BUILD:
            return BuildPlatform.HOST
        return unit[0]

    def _kinds_for(self, unit: Unit) -> tuple[DependencyKind, ...]:
        track, handle = unit
        dev_allowed = (
            self._context.include_dev
            or self._context.resolver_version.always_unifies_dev
        )
        if dev_allowed and track is BuildPlatform.TARGET and handle in self._roots:
            return (DependencyKind.NORMAL, DependencyKind.BUILD, DependencyKind.DEV)
        return (DependencyKind.NORMAL, DependencyKind.BUILD)

    def _active_edges(self, unit: Unit) -> Iterator[DependencyEdge]:
        platform = self._context.platform
        filters = self._context.resolver_version.filters_platforms
        for kind in self._kinds_for(unit):
            for edge in self._graph.edges_out(unit[1], kind):
                if not filters or self._graph.is_edge_active(edge, platform):
                    yield edge

    def _optional_dep_names(self, handle: int) -> frozenset[str]:
        names = self._optional_names.get(handle)
        if names is None:
            names = frozenset(
                edge.dep_name
                for kind in DependencyKind
                for edge in self._graph.edges_out(handle, kind)
                if edge.optional
            )
            self._optional_names[handle] = names
        return names
