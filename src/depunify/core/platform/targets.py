"""Static table of known compilation targets.

Exhaustively enumerated target data is more accurate than what the generic
triple grammar can infer (for example ``x86_64-apple-ios`` carries the
``sim`` ABI, and ``wasm32-unknown-emscripten`` is both ``unix`` and
``wasm``). ``Triple.parse`` consults this table first and only falls back to
the grammar parser on a miss.

Each entry is a ``TargetInfo`` owned by the module for the lifetime of the
process; lookups return the shared instance.
"""

from __future__ import annotations

from dataclasses import dataclass

from depunify.core.platform.cfg import CfgExpr, evaluate_leaf


@dataclass(frozen=True)
class TargetInfo:
    """Attributes of one known target, as seen by cfg predicates.

    Attributes:
        triple: Canonical triple string.
        arch: ``target_arch`` value (e.g. "x86_64", "arm").
        os: ``target_os`` value (e.g. "linux", "macos", "none").
        families: ``target_family`` values (e.g. ("unix",)).
        env: ``target_env`` value, empty when unset.
        vendor: ``target_vendor`` value.
        endian: "little" or "big".
        pointer_width: ``target_pointer_width`` in bits.
        abi: ``target_abi`` value, empty when unset.
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

    def as_canonical_string(self) -> str:
        return self.triple

    def matches(self, expr: CfgExpr, features: frozenset[str] = frozenset()) -> bool:
        """Evaluate a cfg expression against this target."""
        return expr.evaluate(lambda pred: evaluate_leaf(self, pred, features))


_UNIX = ("unix",)
_WINDOWS = ("windows",)
_WASM = ("wasm",)


def _t(triple, arch, os, families, env, vendor, endian, width, abi=""):
    return TargetInfo(triple, arch, os, families, env, vendor, endian, width, abi)


_TABLE: tuple[TargetInfo, ...] = (
    # Linux
    _t("x86_64-unknown-linux-gnu", "x86_64", "linux", _UNIX, "gnu", "unknown", "little", 64),
    _t("x86_64-unknown-linux-musl", "x86_64", "linux", _UNIX, "musl", "unknown", "little", 64),
    _t("i686-unknown-linux-gnu", "x86", "linux", _UNIX, "gnu", "unknown", "little", 32),
    _t("i686-unknown-linux-musl", "x86", "linux", _UNIX, "musl", "unknown", "little", 32),
    _t("aarch64-unknown-linux-gnu", "aarch64", "linux", _UNIX, "gnu", "unknown", "little", 64),
    _t("aarch64-unknown-linux-musl", "aarch64", "linux", _UNIX, "musl", "unknown", "little", 64),
    _t("arm-unknown-linux-gnueabihf", "arm", "linux", _UNIX, "gnu", "unknown", "little", 32, "eabihf"),
    _t("armv7-unknown-linux-gnueabihf", "arm", "linux", _UNIX, "gnu", "unknown", "little", 32, "eabihf"),
    _t("armv7-unknown-linux-musleabihf", "arm", "linux", _UNIX, "musl", "unknown", "little", 32, "eabihf"),
    _t("riscv64gc-unknown-linux-gnu", "riscv64", "linux", _UNIX, "gnu", "unknown", "little", 64),
    _t("powerpc64le-unknown-linux-gnu", "powerpc64", "linux", _UNIX, "gnu", "unknown", "little", 64),
    _t("s390x-unknown-linux-gnu", "s390x", "linux", _UNIX, "gnu", "unknown", "big", 64),
    _t("loongarch64-unknown-linux-gnu", "loongarch64", "linux", _UNIX, "gnu", "unknown", "little", 64),
    # Windows
    _t("x86_64-pc-windows-msvc", "x86_64", "windows", _WINDOWS, "msvc", "pc", "little", 64),
    _t("x86_64-pc-windows-gnu", "x86_64", "windows", _WINDOWS, "gnu", "pc", "little", 64),
    _t("i686-pc-windows-msvc", "x86", "windows", _WINDOWS, "msvc", "pc", "little", 32),
    _t("i686-pc-windows-gnu", "x86", "windows", _WINDOWS, "gnu", "pc", "little", 32),
    _t("aarch64-pc-windows-msvc", "aarch64", "windows", _WINDOWS, "msvc", "pc", "little", 64),
    # Apple
    _t("x86_64-apple-darwin", "x86_64", "macos", _UNIX, "", "apple", "little", 64),
    _t("aarch64-apple-darwin", "aarch64", "macos", _UNIX, "", "apple", "little", 64),
    _t("aarch64-apple-ios", "aarch64", "ios", _UNIX, "", "apple", "little", 64),
    _t("aarch64-apple-ios-sim", "aarch64", "ios", _UNIX, "", "apple", "little", 64, "sim"),
    _t("x86_64-apple-ios", "x86_64", "ios", _UNIX, "", "apple", "little", 64, "sim"),
    # Android
    _t("aarch64-linux-android", "aarch64", "android", _UNIX, "", "unknown", "little", 64),
    _t("armv7-linux-androideabi", "arm", "android", _UNIX, "", "unknown", "little", 32, "eabi"),
    _t("x86_64-linux-android", "x86_64", "android", _UNIX, "", "unknown", "little", 64),
    # BSDs and other unixes
    _t("x86_64-unknown-freebsd", "x86_64", "freebsd", _UNIX, "", "unknown", "little", 64),
    _t("x86_64-unknown-netbsd", "x86_64", "netbsd", _UNIX, "", "unknown", "little", 64),
    _t("x86_64-unknown-openbsd", "x86_64", "openbsd", _UNIX, "", "unknown", "little", 64),
    _t("x86_64-unknown-illumos", "x86_64", "illumos", _UNIX, "", "unknown", "little", 64),
    _t("x86_64-unknown-redox", "x86_64", "redox", _UNIX, "relibc", "unknown", "little", 64),
    _t("x86_64-unknown-fuchsia", "x86_64", "fuchsia", _UNIX, "", "unknown", "little", 64),
    # WebAssembly
    _t("wasm32-unknown-unknown", "wasm32", "unknown", _WASM, "", "unknown", "little", 32),
    _t("wasm32-wasi", "wasm32", "wasi", _WASM, "", "unknown", "little", 32),
    _t("wasm32-wasip1", "wasm32", "wasi", _WASM, "p1", "unknown", "little", 32),
    _t("wasm32-unknown-emscripten", "wasm32", "emscripten", ("unix", "wasm"), "", "unknown", "little", 32),
    # Bare metal
    _t("thumbv7em-none-eabihf", "arm", "none", (), "", "unknown", "little", 32, "eabihf"),
    _t("thumbv6m-none-eabi", "arm", "none", (), "", "unknown", "little", 32, "eabi"),
    _t("riscv32imac-unknown-none-elf", "riscv32", "none", (), "", "unknown", "little", 32),
    _t("x86_64-fortanix-unknown-sgx", "x86_64", "unknown", (), "sgx", "fortanix", "little", 64),
)

BUILTIN_TARGETS: dict[str, TargetInfo] = {info.triple: info for info in _TABLE}


def get_builtin_target(triple_str: str) -> TargetInfo | None:
    """Return the table entry for ``triple_str``, or None on a miss."""
    return BUILTIN_TARGETS.get(triple_str)


def builtin_triples() -> list[str]:
    """Return every known triple string, sorted."""
    return sorted(BUILTIN_TARGETS)
