"""Package graph data models: Package, DependencyEdge, DependencyKind.

These are pure, immutable data holders with no graph logic, making them
safe to import from every other module without circular-dependency concerns.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from depunify.core.platform import TargetSpec


# ---------------------------------------------------------------------------
# DependencyKind
# ---------------------------------------------------------------------------


class DependencyKind(str, Enum):
    """The section a dependency was declared in."""

    NORMAL = "normal"
    BUILD = "build"
    DEV = "dev"

    @classmethod
    def from_metadata(cls, value: str | None) -> DependencyKind:
        """Map a metadata ``kind`` field (null means normal) to a member.

        Raises:
            ValueError: For an unrecognized kind string.
        """
        if value is None:
            return cls.NORMAL
        return cls(value)

    @property
    def order(self) -> int:
        return _KIND_ORDER[self]


_KIND_ORDER = {DependencyKind.NORMAL: 0, DependencyKind.BUILD: 1, DependencyKind.DEV: 2}

ALL_KINDS: tuple[DependencyKind, ...] = (
    DependencyKind.NORMAL,
    DependencyKind.BUILD,
    DependencyKind.DEV,
)


# ---------------------------------------------------------------------------
# Package: a vertex in the graph
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Package:
    """A package as recorded in the resolved metadata.

    Attributes:
        id: Opaque, globally unique package id.
        name: Package name.
        version: Version string (never validated here).
        features: Feature name -> implied feature values. Values use the
            build tool's syntax: ``"f"``, ``"dep:d"``, ``"d/f"``, ``"d?/f"``.
            Includes implicit features for optional dependencies.
        in_workspace: True for workspace members.
        resolved_features: Features the build tool's own resolver chose.
    """

    id: str
    name: str
    version: str
    features: dict[str, tuple[str, ...]] = field(default_factory=dict, hash=False)
    in_workspace: bool = False
    resolved_features: frozenset[str] = frozenset()

    def implied_features(self, feature: str) -> tuple[str, ...]:
        """Return the values ``feature`` implies; empty if undeclared."""
        return self.features.get(feature, ())

    def has_feature(self, feature: str) -> bool:
        return feature in self.features


# ---------------------------------------------------------------------------
# DependencyEdge: a resolved edge
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DependencyEdge:
    """A resolved dependency from ``source`` to ``target``.

    One edge exists per (kind, condition) pair: a package depending on
    another as both a normal and a build dependency yields two edges.

    Attributes:
        source: Id of the depending package.
        target: Id of the package depended on.
        dep_name: Name the source uses for the dependency in feature values
            (the rename if any, else the target's package name).
        kind: Normal, build or dev dependency.
        target_spec: Platform condition; None means always active.
        optional: True if the dependency must be enabled by a feature.
        default_features: True if the edge enables the target's ``default``.
        features: Target features explicitly enabled by this edge.
    """

    source: str
    target: str
    dep_name: str
    kind: DependencyKind = DependencyKind.NORMAL
    target_spec: TargetSpec | None = None
    optional: bool = False
    default_features: bool = True
    features: tuple[str, ...] = ()

    @property
    def is_conditional(self) -> bool:
        return self.target_spec is not None

    def sort_key(self) -> tuple[str, int, str, str]:
        spec = str(self.target_spec) if self.target_spec is not None else ""
        return (self.target, self.kind.order, spec, self.dep_name)
