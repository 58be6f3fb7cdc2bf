"""Tests for Platform (triple plus target features) and TargetSpec."""

from __future__ import annotations

import pytest

from depunify.core.platform import Platform, TargetSpec, Triple
from depunify.exceptions import CfgParseError, TripleParseError


class TestPlatform:
    """Parsing and identity of evaluation platforms."""

    def test_plain_triple(self) -> None:
        platform = Platform.parse("x86_64-unknown-linux-gnu")
        assert platform.triple == Triple.parse("x86_64-unknown-linux-gnu")
        assert platform.target_features == frozenset()
        assert str(platform) == "x86_64-unknown-linux-gnu"

    def test_features_sorted_in_canonical_form(self) -> None:
        """Target features appear sorted after the triple."""
        platform = Platform.parse("x86_64-unknown-linux-gnu+sse4.2+avx2")
        assert platform.as_canonical_string() == "x86_64-unknown-linux-gnu+avx2+sse4.2"

    def test_feature_order_does_not_affect_identity(self) -> None:
        a = Platform.parse("x86_64-unknown-linux-gnu+avx2+bmi2")
        b = Platform.parse("x86_64-unknown-linux-gnu+bmi2+avx2")
        assert a == b
        assert hash(a) == hash(b)

    def test_features_distinguish_platforms(self) -> None:
        assert Platform.parse("x86_64-unknown-linux-gnu") != Platform.parse(
            "x86_64-unknown-linux-gnu+avx2"
        )

    def test_ordering(self) -> None:
        platforms = sorted([
            Platform.parse("x86_64-unknown-linux-gnu"),
            Platform.parse("aarch64-apple-darwin"),
        ])
        assert [str(p) for p in platforms] == [
            "aarch64-apple-darwin", "x86_64-unknown-linux-gnu",
        ]

    def test_missing_triple(self) -> None:
        with pytest.raises(TripleParseError):
            Platform.parse("+avx2")

    def test_invalid_triple(self) -> None:
        with pytest.raises(TripleParseError):
            Platform.parse("nonsense")

    def test_coerce(self) -> None:
        """coerce passes Platform instances through and parses strings."""
        platform = Platform.parse("x86_64-pc-windows-msvc")
        assert Platform.coerce(platform) is platform
        assert Platform.coerce("x86_64-pc-windows-msvc") == platform


class TestTargetSpec:
    """Dependency conditions: cfg expressions and plain triples."""

    def test_cfg_spec(self) -> None:
        spec = TargetSpec.parse("cfg(unix)")
        assert spec.expr is not None
        assert spec.eval(Platform.parse("x86_64-unknown-linux-gnu"))
        assert not spec.eval(Platform.parse("x86_64-pc-windows-msvc"))

    def test_plain_triple_matches_exactly(self) -> None:
        """A plain triple spec is active on that target only."""
        spec = TargetSpec.parse("x86_64-pc-windows-msvc")
        assert spec.expr is None
        assert spec.eval(Platform.parse("x86_64-pc-windows-msvc"))
        assert spec.eval(Platform.parse("x86_64-pc-windows-msvc+avx2"))
        assert not spec.eval(Platform.parse("i686-pc-windows-msvc"))

    def test_target_feature_spec(self) -> None:
        spec = TargetSpec.parse('cfg(target_feature = "crt-static")')
        assert spec.eval(Platform.parse("x86_64-pc-windows-msvc+crt-static"))
        assert not spec.eval(Platform.parse("x86_64-pc-windows-msvc"))

    def test_str_is_normalized(self) -> None:
        assert str(TargetSpec.parse("cfg( any(unix,windows) )")) == "cfg(any(unix, windows))"
        assert str(TargetSpec.parse("aarch64-apple-darwin")) == "aarch64-apple-darwin"

    def test_malformed_cfg(self) -> None:
        with pytest.raises(CfgParseError):
            TargetSpec.parse("cfg(all(unix)")
