"""Feature-unification data models: policy enums and the UnifiedResult.

Defines the immutable output of a ``UnifyBuilder.compute()`` run. These are
pure data holders with no propagation logic, making them safe to import
from the builder and the summary modules alike.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


# ---------------------------------------------------------------------------
# Policy enums
# ---------------------------------------------------------------------------


class ResolverVersion(str, Enum):
    """Feature resolver version of the build tool.

    V1 unifies features across every platform, dev dependencies and build
    dependencies. V2 and V3 filter by platform, only unify dev-dependency
    features when dev dependencies are built, and keep build dependencies
    on a separate host track. V3 only changes version selection, which is
    already resolved by the time the graph is built.
    """

    V1 = "1"
    V2 = "2"
    V3 = "3"

    @property
    def filters_platforms(self) -> bool:
        return self is not ResolverVersion.V1

    @property
    def always_unifies_dev(self) -> bool:
        return self is ResolverVersion.V1


class UnifyTargetHost(str, Enum):
    """Whether build-time (host) and runtime (target) features are merged.

    ``AUTO`` resolves to ``UNIFIED`` under resolver V1 and ``INDEPENDENT``
    otherwise.
    """

    AUTO = "auto"
    INDEPENDENT = "independent"
    UNIFIED = "unified"

    def resolve(self, version: ResolverVersion) -> UnifyTargetHost:
        if self is UnifyTargetHost.AUTO:
            if version is ResolverVersion.V1:
                return UnifyTargetHost.UNIFIED
            return UnifyTargetHost.INDEPENDENT
        return self


class SeedFeatures(str, Enum):
    """Features each workspace member starts a pass with.

    ``DEFAULT`` enables the member's own ``default`` feature when it declares
    one. ``RESOLVED`` starts from the features the build tool's resolver
    recorded for the member, which are already unified across the workspace.
    """

    DEFAULT = "default"
    RESOLVED = "resolved"


class BuildPlatform(str, Enum):
    """The track a package is built on: for the target, or for the host."""

    TARGET = "target"
    HOST = "host"


FeatureMap = dict[str, dict[BuildPlatform, frozenset[str]]]


# ---------------------------------------------------------------------------
# UnifiedResult
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class UnifiedResult:
    """The outcome of one feature-unification run.

    Attributes:
        platforms: Canonical platform strings evaluated (empty = no filter).
        resolver_version: Resolver version used.
        include_dev: Whether dev dependencies were included.
        verify_mode: Verify mode of the producing builder.
        unify_target_host: The policy as configured (may be ``AUTO``).
        unify_all: Whether every member was unified into one assignment.
        seed_features: Seed policy for workspace members.
        aggregation_id: Designated aggregation package, if any.
        explicit_omitted: Ids omitted explicitly by the caller.
        omitted: All omitted ids, including an auto-omitted aggregation
            package.
        features: Package id -> track -> union of enabled features over
            every configured context.
        per_member: Workspace member id -> its own unions, in the same shape
            as ``features``. Empty when ``unify_all`` is set.
        unified: Ids of the non-workspace packages that must be listed in a
            shared unification package, sorted.
    """

    platforms: tuple[str, ...]
    resolver_version: ResolverVersion
    include_dev: bool
    verify_mode: bool
    unify_target_host: UnifyTargetHost
    unify_all: bool
    seed_features: SeedFeatures
    aggregation_id: str | None
    explicit_omitted: frozenset[str]
    omitted: frozenset[str]
    features: FeatureMap = field(default_factory=dict, hash=False)
    per_member: dict[str, FeatureMap] = field(default_factory=dict, hash=False)
    unified: tuple[str, ...] = ()

    def features_for(
        self, package_id: str, build_platform: BuildPlatform = BuildPlatform.TARGET
    ) -> frozenset[str]:
        """Return the unified features of a package on one track.

        Packages never reached on that track have no features.
        """
        return self.features.get(package_id, {}).get(build_platform, frozenset())

    def contains(self, package_id: str) -> bool:
        """True if the package was reached in any context."""
        return package_id in self.features

    def package_ids(self) -> list[str]:
        return sorted(self.features)

    def unified_packages(self) -> FeatureMap:
        """Return the minimal unification output: id -> track -> features."""
        return {pkg_id: dict(self.features[pkg_id]) for pkg_id in self.unified}

    def omits_package(self, package_id: str) -> bool:
        return package_id in self.omitted

    def omitted_packages(self) -> list[str]:
        return sorted(self.omitted)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a deterministic, JSON-ready dict."""
        return {
            "platforms": list(self.platforms),
            "resolver": self.resolver_version.value,
            "include_dev": self.include_dev,
            "verify_mode": self.verify_mode,
            "unify_target_host": self.unify_target_host.value,
            "unify_all": self.unify_all,
            "seed_features": self.seed_features.value,
            "aggregation_package": self.aggregation_id,
            "omitted_packages": sorted(self.omitted),
            "features": _feature_map_to_dict(self.features),
            "per_member": {
                member: _feature_map_to_dict(fmap)
                for member, fmap in sorted(self.per_member.items())
            },
            "unified": list(self.unified),
        }


def _feature_map_to_dict(fmap: FeatureMap) -> dict[str, dict[str, list[str]]]:
    return {
        pkg_id: {
            track.value: sorted(features)
            for track, features in sorted(tracks.items(), key=lambda kv: kv[0].value)
        }
        for pkg_id, tracks in sorted(fmap.items())
    }
