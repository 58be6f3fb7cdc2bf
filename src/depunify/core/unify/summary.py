"""Summary --- the canonical, persisted form of a unification run.

A ``Summary`` is a flat structural record: platform strings, policy flags,
the omitted-id set and per-package feature sets. Set-valued fields are held
as sets (or sorted tuples), so two summaries compare equal regardless of the
order their fields were produced in.

Round-trip guarantee: for any graph and any builder,
``builder.to_summary().to_builder(graph).to_summary() == builder.to_summary()``,
and a result's summary replayed against the same graph reproduces an equal
result.

JSON encoding: ``to_json()`` is deterministic (sorted keys, sorted lists).
``from_dict()`` ignores unknown fields so that summaries written by newer
versions still load, and reports every malformed field at once.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from depunify.core.graph import PackageGraph
from depunify.core.platform import Platform
from depunify.core.unify.builder import UnifyBuilder
from depunify.core.unify.models import (
    BuildPlatform,
    ResolverVersion,
    SeedFeatures,
    UnifiedResult,
    UnifyTargetHost,
)
from depunify.exceptions import ConfigError, SummaryError, TripleParseError

SummaryPackages = dict[str, dict[str, frozenset[str]]]


@dataclass(frozen=True)
class Summary:
    """Order-independent record of a builder configuration and its output.

    Attributes:
        aggregation_package: Id of the aggregation package, if any.
        resolver: Resolver version.
        include_dev: Whether dev dependencies are included.
        verify_mode: Verify mode flag.
        unify_target_host: Target/host policy as configured.
        unify_all: Unify-all flag.
        seed_features: Seed policy for workspace members.
        platforms: Canonical platform strings, sorted and unique.
        omitted_packages: Explicitly omitted ids.
        packages: Package id -> track name -> features. Empty for a summary
            of a builder that has not been computed.
    """

    FORMAT_VERSION = "1"

    aggregation_package: str | None = None
    resolver: ResolverVersion = ResolverVersion.V2
    include_dev: bool = False
    verify_mode: bool = False
    unify_target_host: UnifyTargetHost = UnifyTargetHost.AUTO
    unify_all: bool = False
    seed_features: SeedFeatures = SeedFeatures.DEFAULT
    platforms: tuple[str, ...] = ()
    omitted_packages: frozenset[str] = frozenset()
    packages: SummaryPackages = field(default_factory=dict, hash=False)

    # -- Replay ------------------------------------------------------------

    def to_builder(self, graph: PackageGraph) -> UnifyBuilder:
        """Reconstruct the builder this summary describes.

        Raises:
            SummaryError: If a platform string is malformed or an id does not
                fit the graph, one problem per offending value.
        """
        problems: list[tuple[str, str]] = []
        try:
            builder = UnifyBuilder(graph, self.aggregation_package)
        except ConfigError as exc:
            raise SummaryError([("aggregation_package", str(exc))]) from exc

        try:
            builder.set_platforms(self.platforms)
        except TripleParseError as exc:
            problems.append(("platforms", str(exc)))
        builder.set_resolver_version(self.resolver)
        builder.set_include_dev(self.include_dev)
        builder.set_verify_mode(self.verify_mode)
        builder.set_unify_target_host(self.unify_target_host)
        builder.set_unify_all(self.unify_all)
        builder.set_seed_features(self.seed_features)

        for package_id in sorted(self.omitted_packages):
            try:
                builder.add_omitted_packages([package_id])
            except ConfigError as exc:
                problems.append(("omitted_packages", str(exc)))

        for package_id in sorted(self.packages):
            if not graph.contains(package_id):
                problems.append(("packages", f"unknown package id {package_id!r}"))

        if problems:
            raise SummaryError(problems)
        return builder

    def to_result(self, graph: PackageGraph) -> UnifiedResult:
        """Replay the summary against ``graph`` and compute a fresh result.

        Raises:
            SummaryError: If the summary does not fit the graph.
            ConfigError: If the replayed configuration is inconsistent.
        """
        return self.to_builder(graph).compute()

    # -- Serialization -----------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a deterministic dict."""
        return {
            "version": self.FORMAT_VERSION,
            "aggregation_package": self.aggregation_package,
            "resolver": self.resolver.value,
            "include_dev": self.include_dev,
            "verify_mode": self.verify_mode,
            "unify_target_host": self.unify_target_host.value,
            "unify_all": self.unify_all,
            "seed_features": self.seed_features.value,
            "platforms": sorted(self.platforms),
            "omitted_packages": sorted(self.omitted_packages),
            "packages": {
                pkg_id: {track: sorted(feats) for track, feats in sorted(tracks.items())}
                for pkg_id, tracks in sorted(self.packages.items())
            },
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, sort_keys=True)

    def write(self, path: Path) -> None:
        """Write the summary as JSON, creating parent directories."""
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_json() + "\n", encoding="utf-8")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Summary:
        """Deserialize a summary; fields not present take their defaults.

        Raises:
            SummaryError: Listing every malformed field.
        """
        if not isinstance(data, dict):
            raise SummaryError([("<root>", "summary must be an object")])

        problems: list[tuple[str, str]] = []

        aggregation = data.get("aggregation_package")
        if aggregation is not None and not isinstance(aggregation, str):
            problems.append(("aggregation_package", "must be a string or null"))
            aggregation = None

        resolver = ResolverVersion.V2
        try:
            resolver = ResolverVersion(str(data.get("resolver", "2")))
        except ValueError:
            problems.append(("resolver", f"unknown resolver {data.get('resolver')!r}"))

        policy = UnifyTargetHost.AUTO
        try:
            policy = UnifyTargetHost(data.get("unify_target_host", "auto"))
        except ValueError:
            problems.append((
                "unify_target_host",
                f"unknown policy {data.get('unify_target_host')!r}",
            ))

        seed = SeedFeatures.DEFAULT
        try:
            seed = SeedFeatures(data.get("seed_features", "default"))
        except ValueError:
            problems.append((
                "seed_features",
                f"unknown seed policy {data.get('seed_features')!r}",
            ))

        flags: dict[str, bool] = {}
        for name in ("include_dev", "verify_mode", "unify_all"):
            value = data.get(name, False)
            if not isinstance(value, bool):
                problems.append((name, "must be a boolean"))
                value = False
            flags[name] = value

        platforms: set[str] = set()
        for raw in _string_list(data, "platforms", problems):
            try:
                platforms.add(Platform.parse(raw).as_canonical_string())
            except TripleParseError as exc:
                problems.append(("platforms", str(exc)))

        omitted = frozenset(_string_list(data, "omitted_packages", problems))
        packages = _packages_from_dict(data.get("packages", {}), problems)

        if problems:
            raise SummaryError(problems)
        return cls(
            aggregation_package=aggregation,
            resolver=resolver,
            include_dev=flags["include_dev"],
            verify_mode=flags["verify_mode"],
            unify_target_host=policy,
            unify_all=flags["unify_all"],
            seed_features=seed,
            platforms=tuple(sorted(platforms)),
            omitted_packages=omitted,
            packages=packages,
        )

    @classmethod
    def from_json(cls, json_str: str) -> Summary:
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as exc:
            raise SummaryError([("<root>", f"not valid JSON: {exc}")]) from exc
        return cls.from_dict(data)

    @classmethod
    def read(cls, path: Path) -> Summary:
        """Read a summary from disk.

        Raises:
            FileNotFoundError: If the file does not exist.
            SummaryError: If the file is not a valid summary.
        """
        return cls.from_json(path.read_text(encoding="utf-8"))

    # -- Comparison --------------------------------------------------------

    def diff(self, other: Summary) -> dict[str, Any]:
        """Compare two summaries (typically stored vs. freshly computed).

        - **added**: package ids present in ``other`` only.
        - **removed**: package ids present in ``self`` only.
        - **changed**: per-track feature differences for shared ids.
        - **config**: names of configuration fields that differ.

        Returns:
            Dict with keys 'added', 'removed', 'changed', 'config'.
        """
        self_ids = set(self.packages)
        other_ids = set(other.packages)

        changes: list[dict[str, Any]] = []
        for pkg_id in sorted(self_ids & other_ids):
            old, new = self.packages[pkg_id], other.packages[pkg_id]
            for track in sorted(set(old) | set(new)):
                before = old.get(track, frozenset())
                after = new.get(track, frozenset())
                if before != after:
                    changes.append({
                        "id": pkg_id,
                        "track": track,
                        "added": sorted(after - before),
                        "removed": sorted(before - after),
                    })

        config = [
            name for name in (
                "aggregation_package", "resolver", "include_dev", "verify_mode",
                "unify_target_host", "unify_all", "seed_features",
                "platforms", "omitted_packages",
            )
            if getattr(self, name) != getattr(other, name)
        ]

        return {
            "added": sorted(other_ids - self_ids),
            "removed": sorted(self_ids - other_ids),
            "changed": changes,
            "config": config,
        }


# ---------------------------------------------------------------------------
# Conversions attached to UnifyBuilder / UnifiedResult in ``__init__``
# ---------------------------------------------------------------------------


def _builder_to_summary(self: UnifyBuilder) -> Summary:
    """Summarize a builder's configuration (no package features)."""
    return Summary(
        aggregation_package=self.aggregation_id,
        resolver=self.resolver_version,
        include_dev=self.include_dev,
        verify_mode=self.verify_mode,
        unify_target_host=self.unify_target_host,
        unify_all=self.unify_all,
        seed_features=self.seed_features,
        platforms=tuple(str(p) for p in self.platforms),
        omitted_packages=frozenset(self.explicit_omitted_packages()),
    )


def _result_to_summary(self: UnifiedResult) -> Summary:
    """Summarize a result: its configuration plus every package's features."""
    return Summary(
        aggregation_package=self.aggregation_id,
        resolver=self.resolver_version,
        include_dev=self.include_dev,
        verify_mode=self.verify_mode,
        unify_target_host=self.unify_target_host,
        unify_all=self.unify_all,
        seed_features=self.seed_features,
        platforms=tuple(sorted(self.platforms)),
        omitted_packages=self.explicit_omitted,
        packages={
            pkg_id: {track.value: feats for track, feats in tracks.items()}
            for pkg_id, tracks in self.features.items()
        },
    )


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------


def _string_list(
    data: dict[str, Any], key: str, problems: list[tuple[str, str]]
) -> list[str]:
    value = data.get(key, [])
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        problems.append((key, "must be a list of strings"))
        return []
    return value


_TRACKS = frozenset(track.value for track in BuildPlatform)


def _packages_from_dict(
    value: Any, problems: list[tuple[str, str]]
) -> SummaryPackages:
    if not isinstance(value, dict):
        problems.append(("packages", "must be an object"))
        return {}
    packages: SummaryPackages = {}
    for pkg_id, tracks in value.items():
        if not isinstance(tracks, dict):
            problems.append(("packages", f"{pkg_id!r}: must map tracks to features"))
            continue
        entry: dict[str, frozenset[str]] = {}
        for track, feats in tracks.items():
            if track not in _TRACKS:
                problems.append(("packages", f"{pkg_id!r}: unknown track {track!r}"))
                continue
            if not isinstance(feats, list) or not all(isinstance(f, str) for f in feats):
                problems.append(("packages", f"{pkg_id!r}: features must be strings"))
                continue
            entry[track] = frozenset(feats)
        packages[pkg_id] = entry
    return packages
