"""depunify exception hierarchy.

All public exceptions inherit from DepUnifyError, giving callers a single
base class to catch when they want to handle any depunify-specific failure
without swallowing unrelated errors.

Every failure is a deterministic input-validation problem: nothing in this
package retries, and no error is downgraded to a default value.
"""

from __future__ import annotations


class DepUnifyError(Exception):
    """Base exception for all depunify errors."""


# ---------------------------------------------------------------------------
# Parse errors
# ---------------------------------------------------------------------------


class ParseError(DepUnifyError):
    """Raised when a platform identifier or predicate cannot be parsed."""


class TripleParseError(ParseError):
    """Raised when a target triple is neither a known target nor well-formed.

    Attributes:
        triple_str: The string that failed to parse.
        reason: Short description of the grammar violation.
    """

    def __init__(self, triple_str: str, reason: str) -> None:
        self.triple_str = triple_str
        self.reason = reason
        super().__init__(f"invalid target triple {triple_str!r}: {reason}")


class CfgParseError(ParseError):
    """Raised for a malformed ``cfg(...)`` expression.

    Attributes:
        expr: The expression text.
        position: Character offset where parsing stopped.
    """

    def __init__(self, expr: str, position: int, reason: str) -> None:
        self.expr = expr
        self.position = position
        self.reason = reason
        super().__init__(
            f"invalid cfg expression {expr!r} at offset {position}: {reason}"
        )


# ---------------------------------------------------------------------------
# Graph construction errors
# ---------------------------------------------------------------------------


class GraphError(DepUnifyError):
    """Raised when a package graph cannot be built from resolved metadata.

    Fatal to that build call: no partial graph is ever returned.
    """


class MetadataError(GraphError):
    """Raised when the resolved-metadata snapshot is structurally malformed."""


class MissingResolveDataError(GraphError):
    """Raised when a package has no entry in the resolve table."""

    def __init__(self, package_id: str) -> None:
        self.package_id = package_id
        super().__init__(f"no resolve data found for package {package_id!r}")


class DuplicatePackageIdError(GraphError):
    """Raised when two packages in the snapshot share an id."""

    def __init__(self, package_id: str) -> None:
        self.package_id = package_id
        super().__init__(f"duplicate package id {package_id!r}")


class UnknownPackageError(GraphError):
    """Raised when an id does not name a package in the graph."""

    def __init__(self, package_id: str, context: str = "") -> None:
        self.package_id = package_id
        suffix = f" ({context})" if context else ""
        super().__init__(f"unknown package id {package_id!r}{suffix}")


class InvalidTargetSpecError(GraphError):
    """Raised when a dependency's platform condition cannot be parsed."""

    def __init__(self, package_id: str, spec: str, cause: Exception) -> None:
        self.package_id = package_id
        self.spec = spec
        super().__init__(
            f"package {package_id!r} has invalid target spec {spec!r}: {cause}"
        )


# ---------------------------------------------------------------------------
# Configuration-validation errors
# ---------------------------------------------------------------------------


class ConfigError(DepUnifyError):
    """Raised when a unification builder is configured inconsistently.

    Detected eagerly, before any feature propagation runs.
    """


class EmptyWorkspaceError(ConfigError):
    """Raised when there are no workspace members left to unify."""


class InvalidOmittedPackageError(ConfigError):
    """Raised when an omitted id is unknown or not a workspace member."""

    def __init__(self, package_id: str, reason: str) -> None:
        self.package_id = package_id
        self.reason = reason
        super().__init__(f"cannot omit package {package_id!r}: {reason}")


class UnknownAggregationTargetError(ConfigError):
    """Raised when the aggregation package id is not in the graph."""

    def __init__(self, package_id: str) -> None:
        self.package_id = package_id
        super().__init__(f"aggregation package {package_id!r} is not in the graph")


class NotWorkspaceMemberError(ConfigError):
    """Raised when the aggregation package is not a workspace member."""

    def __init__(self, package_id: str) -> None:
        self.package_id = package_id
        super().__init__(
            f"aggregation package {package_id!r} is not a workspace member"
        )


class InconsistentResolverVersionError(ConfigError):
    """Raised when a policy is not supported by the chosen resolver version."""


# ---------------------------------------------------------------------------
# Summary errors
# ---------------------------------------------------------------------------


class SummaryError(DepUnifyError):
    """Raised when a summary is malformed or refers to unknown packages.

    Attributes:
        problems: ``(field, message)`` pairs, one per offending field.
    """

    def __init__(self, problems: list[tuple[str, str]]) -> None:
        self.problems = list(problems)
        detail = "; ".join(f"{field}: {msg}" for field, msg in self.problems)
        super().__init__(f"invalid summary: {detail}")
