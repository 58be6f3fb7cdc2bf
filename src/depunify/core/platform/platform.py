"""Evaluation platforms and dependency target specs.

A ``Platform`` is a ``Triple`` plus the set of target features (fine-grained
CPU features such as ``avx2``) that ``target_feature`` predicates consult.
Target features never influence package features.

A ``TargetSpec`` is the condition attached to a dependency edge: either a
``cfg(...)`` expression or a plain triple string that matches only that
exact target.
"""

from __future__ import annotations

import functools
from dataclasses import dataclass
from typing import Iterable

from depunify.core.platform.cfg import CfgExpr, parse_cfg
from depunify.core.platform.triple import Triple
from depunify.exceptions import TripleParseError

_FEATURE_SEPARATOR = "+"


@functools.total_ordering
class Platform:
    """A platform to evaluate conditional dependencies against.

    The canonical string is the triple, followed by ``+feature`` for each
    enabled target feature in sorted order, e.g.
    ``x86_64-unknown-linux-gnu+avx2+sse4.2``. Equality, ordering and
    hashing are defined over that string alone.
    """

    __slots__ = ("_triple", "_features", "_canonical")

    def __init__(self, triple: Triple, target_features: Iterable[str] = ()) -> None:
        self._triple = triple
        self._features = frozenset(f.strip() for f in target_features if f.strip())
        self._canonical = _FEATURE_SEPARATOR.join(
            [triple.as_canonical_string(), *sorted(self._features)]
        )

    @classmethod
    def parse(cls, platform_str: str) -> Platform:
        """Parse ``triple[+feature...]``.

        Raises:
            TripleParseError: If the triple part is invalid.
        """
        triple_str, *features = platform_str.strip().split(_FEATURE_SEPARATOR)
        if not triple_str:
            raise TripleParseError(platform_str, "missing triple")
        return cls(Triple.parse(triple_str), features)

    @classmethod
    def coerce(cls, value: Platform | str) -> Platform:
        if isinstance(value, Platform):
            return value
        return cls.parse(value)

    @property
    def triple(self) -> Triple:
        return self._triple

    @property
    def target_features(self) -> frozenset[str]:
        return self._features

    def as_canonical_string(self) -> str:
        return self._canonical

    def matches(self, expr: CfgExpr) -> bool:
        """Evaluate a cfg expression; unknown attributes are false."""
        return self._triple.matches(expr, self._features)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Platform):
            return NotImplemented
        return self._canonical == other._canonical

    def __lt__(self, other: Platform) -> bool:
        if not isinstance(other, Platform):
            return NotImplemented
        return self._canonical < other._canonical

    def __hash__(self) -> int:
        return hash(self._canonical)

    def __str__(self) -> str:
        return self._canonical

    def __repr__(self) -> str:
        return f"Platform({self._canonical!r})"


@dataclass(frozen=True)
class TargetSpec:
    """Condition under which a dependency edge is active.

    Attributes:
        raw: The spec as written in the metadata.
        expr: Parsed expression for ``cfg(...)`` specs; None for a plain
            triple spec.
    """

    raw: str
    expr: CfgExpr | None = None

    @classmethod
    def parse(cls, spec: str) -> TargetSpec:
        """Parse a dependency target spec.

        Raises:
            CfgParseError: For a malformed ``cfg(...)`` spec.
        """
        spec = spec.strip()
        if spec.startswith("cfg(") or spec.startswith("cfg "):
            return cls(raw=spec, expr=parse_cfg(spec))
        return cls(raw=spec)

    def eval(self, platform: Platform) -> bool:
        """Return True if the edge is active on ``platform``."""
        if self.expr is None:
            return platform.triple.as_canonical_string() == self.raw
        return platform.matches(self.expr)

    def __str__(self) -> str:
        if self.expr is None:
            return self.raw
        return f"cfg({self.expr})"
