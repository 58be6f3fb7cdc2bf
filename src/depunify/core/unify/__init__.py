"""Feature unification over a package graph.

The package is split into focused submodules:

- ``models``: Policy enums (``ResolverVersion``, ``UnifyTargetHost``,
  ``SeedFeatures``, ``BuildPlatform``) and the immutable ``UnifiedResult``.
- ``propagate``: Worklist propagation of features within one evaluation
  context (``EvalContext``, ``FeaturePropagator``).
- ``builder``: ``UnifyBuilder``, the configuration and ``compute()`` entry
  point.
- ``summary``: ``Summary``, the persisted form of a builder or a result.

All public names are re-exported here so that imports like
``from depunify.core.unify import UnifyBuilder`` work unchanged.
"""

from depunify.core.unify.models import (
    BuildPlatform,
    FeatureMap,
    ResolverVersion,
    SeedFeatures,
    UnifiedResult,
    UnifyTargetHost,
)
from depunify.core.unify.propagate import EvalContext, FeaturePropagator
from depunify.core.unify.builder import UnifyBuilder
from depunify.core.unify.summary import Summary

# Attach summary conversions to the builder and result types
from depunify.core.unify import summary as _summary

UnifyBuilder.to_summary = _summary._builder_to_summary
UnifiedResult.to_summary = _summary._result_to_summary

__all__ = [
    "BuildPlatform",
    "EvalContext",
    "FeatureMap",
    "FeaturePropagator",
    "ResolverVersion",
    "SeedFeatures",
    "Summary",
    "UnifiedResult",
    "UnifyBuilder",
    "UnifyTargetHost",
]
