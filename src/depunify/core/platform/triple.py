"""Target triples with a two-tier parsing strategy.

``Triple.parse`` first looks the string up in the static table of known
targets (``targets.BUILTIN_TARGETS``). On a miss it falls back to a general
``arch-[vendor-]os[-env]`` grammar, producing a ``LexiconTriple`` that owns
its string. Both representations expose ``as_canonical_string()`` and
``matches()``, so callers never need to know which one they hold.

Equality, ordering and hashing of a ``Triple`` are defined purely over the
canonical string: the two parse paths may produce structurally different
internal representations for the same target, and identity must not depend
on which path was taken.
"""

from __future__ import annotations

import functools
import re
from dataclasses import dataclass
from typing import Union

from depunify.core.platform.cfg import CfgExpr, evaluate_leaf
from depunify.core.platform.targets import TargetInfo, get_builtin_target
from depunify.exceptions import TripleParseError


# ---------------------------------------------------------------------------
# Grammar tables
# ---------------------------------------------------------------------------

# (pattern, target_arch, pointer_width, endian); first match wins.
_ARCHES: tuple[tuple[re.Pattern[str], str, int, str], ...] = tuple(
    (re.compile(pattern), arch, width, endian)
    for pattern, arch, width, endian in (
        (r"^(x86_64|amd64)$", "x86_64", 64, "little"),
        (r"^i[3-6]86$", "x86", 32, "little"),
        (r"^(aarch64|arm64)$", "aarch64", 64, "little"),
        (r"^aarch64_be$", "aarch64", 64, "big"),
        (r"^armeb.*$", "arm", 32, "big"),
        (r"^(arm|thumb)(v[0-9].*)?$", "arm", 32, "little"),
        (r"^riscv64[a-z]*$", "riscv64", 64, "little"),
        (r"^riscv32[a-z]*$", "riscv32", 32, "little"),
        (r"^mips$", "mips", 32, "big"),
        (r"^mipsel$", "mips", 32, "little"),
        (r"^mips64$", "mips64", 64, "big"),
        (r"^mips64el$", "mips64", 64, "little"),
        (r"^powerpc$", "powerpc", 32, "big"),
        (r"^powerpc64$", "powerpc64", 64, "big"),
        (r"^powerpc64le$", "powerpc64", 64, "little"),
        (r"^s390x$", "s390x", 64, "big"),
        (r"^(sparc64|sparcv9)$", "sparc64", 64, "big"),
        (r"^wasm32$", "wasm32", 32, "little"),
        (r"^wasm64$", "wasm64", 64, "little"),
        (r"^loongarch64$", "loongarch64", 64, "little"),
        (r"^nvptx64$", "nvptx64", 64, "little"),
    )
)

_VENDORS = frozenset({
    "unknown", "pc", "apple", "nvidia", "sun", "fortanix", "uwp", "wrs",
    "esp", "espressif", "kmc", "sony", "nintendo", "ibm", "openwrt", "win7",
})

_UNIX_OSES = frozenset({
    "linux", "android", "macos", "ios", "tvos", "watchos", "freebsd",
    "netbsd", "openbsd", "dragonfly", "solaris", "illumos", "haiku", "redox",
    "fuchsia", "emscripten", "aix", "hurd", "l4re", "nto", "horizon",
    "espidf", "vxworks",
})

_OSES = _UNIX_OSES | {
    "windows", "wasi", "none", "unknown", "cuda", "uefi", "hermit",
}

_OS_ALIASES = {"darwin": "macos", "wasip1": "wasi", "wasip2": "wasi"}

# environment component -> (target_env, target_abi)
_ENVS: dict[str, tuple[str, str]] = {
    "msvc": ("msvc", ""),
    "android": ("", ""),
    "androideabi": ("", "eabi"),
    "eabi": ("", "eabi"),
    "eabihf": ("", "eabihf"),
    "elf": ("", ""),
    "sgx": ("sgx", ""),
    "macabi": ("", "macabi"),
    "sim": ("", "sim"),
    "newlib": ("newlib", ""),
    "ohos": ("ohos", ""),
    "relibc": ("relibc", ""),
    "p1": ("p1", ""),
    "p2": ("p2", ""),
}

_LIBC_ENV_RE = re.compile(r"^(gnu|musl|uclibc)(.*)$")


def _parse_arch(component: str) -> tuple[str, int, str] | None:
    for pattern, arch, width, endian in _ARCHES:
        if pattern.match(component):
            return arch, width, endian
    return None


def _parse_os(component: str) -> str | None:
    if component in _OS_ALIASES:
        return _OS_ALIASES[component]
    if component in _OSES:
        return component
    # Version suffixes such as "macosx10.7" or "freebsd13" are allowed.
    base = re.sub(r"x?[0-9][0-9.]*$", "", component)
    base = _OS_ALIASES.get(base, base)
    return base if base in _OSES else None


def _parse_env(component: str) -> tuple[str, str] | None:
    if component in _ENVS:
        return _ENVS[component]
    m = _LIBC_ENV_RE.match(component)
    if m:
        return m.group(1), m.group(2)
    return None


# ---------------------------------------------------------------------------
# LexiconTriple: grammar-parsed representation
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LexiconTriple:
    """A triple recovered by the general grammar parser.

    Owns its original string, which is also its canonical form.
    """

    triple: str
    arch: str
    os: str
    families: tuple[str, ...]
    env: str
    vendor: str
    endian: str
    pointer_width: int
    abi: str = ""

    @classmethod
    def parse(cls, triple_str: str) -> LexiconTriple:
        """Parse ``triple_str`` with the ``arch-[vendor-]os[-env]`` grammar.

        Raises:
            TripleParseError: On an unknown component or wrong arity.
        """
        parts = triple_str.split("-")
        if any(not part for part in parts):
            raise TripleParseError(triple_str, "empty component")

        arch_info = _parse_arch(parts[0])
        if arch_info is None:
            raise TripleParseError(triple_str, f"unrecognized architecture {parts[0]!r}")
        arch, width, endian = arch_info

        rest = parts[1:]
        if not rest:
            raise TripleParseError(triple_str, "missing operating system")
        if len(rest) > 3:
            raise TripleParseError(triple_str, "too many components")

        vendor = "unknown"
        if rest[0] in _VENDORS and len(rest) >= 2:
            vendor = rest.pop(0)

        os = _parse_os(rest[0])
        if os is None:
            raise TripleParseError(triple_str, f"unrecognized operating system {rest[0]!r}")
        rest.pop(0)

        env, abi = "", ""
        if rest:
            env_info = _parse_env(rest[0])
            if env_info is None:
                raise TripleParseError(triple_str, f"unrecognized environment {rest[0]!r}")
            if rest[0].startswith("android") and os == "linux":
                os = "android"
            env, abi = env_info
            rest.pop(0)
        if rest:
            raise TripleParseError(triple_str, "too many components")

        families: list[str] = []
        if os in _UNIX_OSES:
            families.append("unix")
        if os == "windows":
            families.append("windows")
        if arch in ("wasm32", "wasm64"):
            families.append("wasm")

        return cls(
            triple=triple_str,
            arch=arch,
            os=os,
            families=tuple(families),
            env=env,
            vendor=vendor,
            endian=endian,
            pointer_width=width,
            abi=abi,
        )

    def as_canonical_string(self) -> str:
        return self.triple

    def matches(self, expr: CfgExpr, features: frozenset[str] = frozenset()) -> bool:
        """Evaluate a cfg expression against this triple."""
        return expr.evaluate(lambda pred: evaluate_leaf(self, pred, features))


_TripleInner = Union[TargetInfo, LexiconTriple]


# ---------------------------------------------------------------------------
# Triple: representation-agnostic handle
# ---------------------------------------------------------------------------


@functools.total_ordering
class Triple:
    """A single, specific compilation target, identified by its triple.

    Example::

        linux = Triple.parse("x86_64-unknown-linux-gnu")   # table entry
        darwin = Triple.parse("x86_64-pc-darwin")          # grammar fallback
        Triple.parse("cannot-be-known")                    # TripleParseError
    """

    __slots__ = ("_inner",)

    def __init__(self, inner: _TripleInner) -> None:
        self._inner = inner

    @classmethod
    def parse(cls, triple_str: str) -> Triple:
        """Parse a triple string, preferring the builtin table.

        Raises:
            TripleParseError: If the string is unknown and not well-formed.
        """
        triple_str = triple_str.strip()
        builtin = get_builtin_target(triple_str)
        if builtin is not None:
            return cls(builtin)
        return cls(LexiconTriple.parse(triple_str))

    @property
    def is_builtin(self) -> bool:
        """True if this triple came from the static target table."""
        return isinstance(self._inner, TargetInfo)

    @property
    def info(self) -> _TripleInner:
        return self._inner

    def as_canonical_string(self) -> str:
        return self._inner.as_canonical_string()

    def matches(self, expr: CfgExpr, features: frozenset[str] = frozenset()) -> bool:
        """Evaluate ``expr`` against this triple; never raises."""
        return self._inner.matches(expr, features)

    # -- Identity is the canonical string ----------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Triple):
            return NotImplemented
        return self.as_canonical_string() == other.as_canonical_string()

    def __lt__(self, other: Triple) -> bool:
        if not isinstance(other, Triple):
            return NotImplemented
        return self.as_canonical_string() < other.as_canonical_string()

    def __hash__(self) -> int:
        return hash(self.as_canonical_string())

    def __str__(self) -> str:
        return self.as_canonical_string()

    def __repr__(self) -> str:
        return f"Triple({self.as_canonical_string()!r})"
