"""Target platforms and cfg-style predicate evaluation.

Submodules:
    cfg       -- cfg expression tree, parser and leaf evaluation
    targets   -- static table of known targets (``TargetInfo``)
    triple    -- ``Triple`` with builtin-table and grammar representations
    platform  -- ``Platform`` (triple + target features) and ``TargetSpec``

All public names are re-exported here so that imports of the form
``from depunify.core.platform import Platform`` work unchanged.
"""

from depunify.core.platform.cfg import (
    CfgAll,
    CfgAny,
    CfgExpr,
    CfgNot,
    CfgPredicate,
    parse_cfg,
    parse_cfg_expr,
)
from depunify.core.platform.targets import (
    BUILTIN_TARGETS,
    TargetInfo,
    builtin_triples,
)
from depunify.core.platform.triple import LexiconTriple, Triple
from depunify.core.platform.platform import Platform, TargetSpec

__all__ = [
    "BUILTIN_TARGETS",
    "CfgAll",
    "CfgAny",
    "CfgExpr",
    "CfgNot",
    "CfgPredicate",
    "LexiconTriple",
    "Platform",
    "TargetInfo",
    "TargetSpec",
    "Triple",
    "builtin_triples",
    "parse_cfg",
    "parse_cfg_expr",
]
