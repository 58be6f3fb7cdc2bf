"""Hypothesis strategies for random workspaces and builder configurations."""

from __future__ import annotations

from hypothesis import strategies as st

from depunify.core.graph import PackageGraph
from depunify.core.unify import ResolverVersion, SeedFeatures, UnifyBuilder, UnifyTargetHost

from graph_helpers import SnapshotBuilder

PLATFORMS = (
    "x86_64-unknown-linux-gnu",
    "x86_64-pc-windows-msvc",
    "aarch64-apple-darwin",
    "wasm32-unknown-unknown",
    "x86_64-unknown-linux-gnu+avx2",
)

CONDITIONS = (
    None,
    None,
    "cfg(unix)",
    "cfg(windows)",
    'cfg(target_arch = "aarch64")',
    'cfg(all(unix, not(target_os = "macos")))',
    'cfg(target_feature = "avx2")',
    "x86_64-pc-windows-msvc",
)

KINDS = (None, None, "build", "dev")


@st.composite
def workspaces(draw: st.DrawFn) -> SnapshotBuilder:
    """Generate an acyclic workspace of 2-7 packages, 1-3 of them members.

    Every package declares ``f0``, ``f1 -> f0`` and ``default``; packages with
    dependencies may also forward a feature to one of them, strongly or
    weakly.
    """
    count = draw(st.integers(min_value=2, max_value=7))
    member_count = draw(st.integers(min_value=1, max_value=min(3, count)))
    names = [f"p{i}" for i in range(count)]

    deps: dict[int, list[int]] = {}
    for i in range(count - 1):
        targets = draw(st.lists(
            st.integers(min_value=i + 1, max_value=count - 1), unique=True, max_size=3,
        ))
        deps[i] = sorted(targets)

    snap = SnapshotBuilder()
    ids = []
    for i, name in enumerate(names):
        features: dict[str, list[str]] = {
            "default": draw(st.sampled_from([[], ["f0"]])),
            "f0": [],
            "f1": ["f0"],
        }
        if deps.get(i):
            target = names[draw(st.sampled_from(deps[i]))]
            marker = draw(st.sampled_from(["/", "?/"]))
            features["fwd"] = [f"{target}{marker}f1"]
        resolved = draw(st.lists(st.sampled_from(sorted(features)), unique=True, max_size=2))
        ids.append(snap.add_package(
            name, member=i < member_count, features=features,
            resolved=resolved if i < member_count else [],
        ))

    for i, targets in deps.items():
        for j in targets:
            snap.add_dep(
                ids[i], ids[j],
                kind=draw(st.sampled_from(KINDS)),
                target_spec=draw(st.sampled_from(CONDITIONS)),
                optional=draw(st.booleans()),
                default_features=draw(st.booleans()),
                features=draw(st.lists(st.sampled_from(["f0", "f1"]), unique=True, max_size=1)),
            )
    return snap


@st.composite
def configured_builders(
    draw: st.DrawFn, graph: PackageGraph, valid_only: bool = True
) -> UnifyBuilder:
    """Generate a builder configuration for ``graph``.

    With ``valid_only``, at least one member is left to unify and resolver 1
    is never paired with independent target/host tracks.
    """
    members = list(graph.workspace_members())
    aggregation = draw(st.one_of(st.none(), st.sampled_from(members)))
    builder = UnifyBuilder(graph, aggregation)
    builder.set_platforms(draw(st.lists(st.sampled_from(PLATFORMS), max_size=3)))
    builder.set_resolver_version(draw(st.sampled_from(list(ResolverVersion))))
    builder.set_include_dev(draw(st.booleans()))
    builder.set_verify_mode(draw(st.booleans()))
    builder.set_unify_all(draw(st.booleans()))
    builder.set_seed_features(draw(st.sampled_from(list(SeedFeatures))))

    policies = list(UnifyTargetHost)
    if valid_only and builder.resolver_version is ResolverVersion.V1:
        policies.remove(UnifyTargetHost.INDEPENDENT)
    builder.set_unify_target_host(draw(st.sampled_from(policies)))

    candidates = members
    if valid_only:
        keep = draw(st.sampled_from(members))
        candidates = [m for m in members if m != keep]
        if keep == aggregation:
            builder.set_verify_mode(True)
    if candidates:
        builder.add_omitted_packages(
            draw(st.lists(st.sampled_from(candidates), unique=True))
        )
    return builder


@st.composite
def graphs_and_builders(draw: st.DrawFn, valid_only: bool = True):
    """Draw a workspace graph together with a builder configured for it."""
    graph = draw(workspaces()).build()
    builder = draw(configured_builders(graph, valid_only=valid_only))
    return graph, builder
