"""Resolved package dependency graph.

Submodules:
    models    -- Package, DependencyEdge, DependencyKind
    metadata  -- ResolvedMetadata snapshot reader (from_dict/from_json/read)
    graph     -- PackageGraph (build, membership, traversal)

All public names are re-exported here so that imports of the form
``from depunify.core.graph import PackageGraph`` work unchanged.
"""

from depunify.core.graph.models import (
    ALL_KINDS,
    DependencyEdge,
    DependencyKind,
    Package,
)
from depunify.core.graph.metadata import (
    DeclaredDependency,
    DepKindInfo,
    PackageEntry,
    ResolveNode,
    ResolvedDep,
    ResolvedMetadata,
)
from depunify.core.graph.graph import PackageGraph

__all__ = [
    "ALL_KINDS",
    "DeclaredDependency",
    "DepKindInfo",
    "DependencyEdge",
    "DependencyKind",
    "Package",
    "PackageEntry",
    "PackageGraph",
    "ResolveNode",
    "ResolvedDep",
    "ResolvedMetadata",
]
