"""Tests for the depunify exception hierarchy.

Verifies:
    - Every error family derives from DepUnifyError.
    - Errors keep the offending value as an attribute.
    - SummaryError lists each problem in its message.
"""

from __future__ import annotations

import pytest

from depunify.exceptions import (
    CfgParseError,
    ConfigError,
    DepUnifyError,
    DuplicatePackageIdError,
    EmptyWorkspaceError,
    GraphError,
    InconsistentResolverVersionError,
    InvalidOmittedPackageError,
    InvalidTargetSpecError,
    MetadataError,
    MissingResolveDataError,
    NotWorkspaceMemberError,
    ParseError,
    SummaryError,
    TripleParseError,
    UnknownAggregationTargetError,
    UnknownPackageError,
)


class TestHierarchy:
    @pytest.mark.parametrize("family, members", [
        (ParseError, [TripleParseError, CfgParseError]),
        (GraphError, [
            MetadataError, MissingResolveDataError, DuplicatePackageIdError,
            UnknownPackageError, InvalidTargetSpecError,
        ]),
        (ConfigError, [
            EmptyWorkspaceError, InvalidOmittedPackageError,
            UnknownAggregationTargetError, NotWorkspaceMemberError,
            InconsistentResolverVersionError,
        ]),
    ])
    def test_families(self, family: type, members: list[type]) -> None:
        assert issubclass(family, DepUnifyError)
        for member in members:
            assert issubclass(member, family)

    def test_summary_error_is_base_subclass(self) -> None:
        assert issubclass(SummaryError, DepUnifyError)
        assert not issubclass(SummaryError, ConfigError)


class TestAttributes:
    def test_triple_parse_error(self) -> None:
        exc = TripleParseError("bogus", "unrecognized architecture 'bogus'")
        assert exc.triple_str == "bogus"
        assert "invalid target triple 'bogus'" in str(exc)

    def test_cfg_parse_error(self) -> None:
        exc = CfgParseError("cfg(unix $)", 9, "unexpected character")
        assert exc.position == 9
        assert "offset 9" in str(exc)

    def test_omitted_package_error(self) -> None:
        exc = InvalidOmittedPackageError("log 0.1.0", "not a workspace member")
        assert exc.package_id == "log 0.1.0"
        assert exc.reason == "not a workspace member"

    def test_unknown_package_context(self) -> None:
        exc = UnknownPackageError("ghost 1.0.0", "workspace member")
        assert str(exc) == "unknown package id 'ghost 1.0.0' (workspace member)"

    def test_invalid_target_spec_keeps_cause(self) -> None:
        cause = CfgParseError("cfg(", 4, "unexpected end of input")
        exc = InvalidTargetSpecError("app 0.1.0", "cfg(", cause)
        assert exc.spec == "cfg("
        assert "offset 4" in str(exc)

    def test_summary_problems(self) -> None:
        exc = SummaryError([("resolver", "unknown"), ("platforms", "bad")])
        assert exc.problems == [("resolver", "unknown"), ("platforms", "bad")]
        assert str(exc) == "invalid summary: resolver: unknown; platforms: bad"
