"""cfg-style target predicates: parsing and evaluation.

Grammar (whitespace-insensitive)::

    spec  := 'cfg' '(' expr ')'
    expr  := 'all' '(' list ')' | 'any' '(' list ')' | 'not' '(' expr ')'
           | IDENT '=' STRING | IDENT
    list  := [ expr { ',' expr } [ ',' ] ]

``all()`` with no operands is true and ``any()`` is false, matching the build
tool. Evaluation never fails: predicates on keys or flags that a target does
not know evaluate to ``False``, because predicates are authored by the wider
ecosystem and an unrecognized attribute must not abort graph evaluation.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Protocol, Union

from depunify.exceptions import CfgParseError


# ---------------------------------------------------------------------------
# Expression tree
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CfgPredicate:
    """A leaf predicate: ``key = "value"`` or a bare ``flag`` (value None)."""

    key: str
    value: str | None = None

    def evaluate(self, leaf: Callable[[CfgPredicate], bool]) -> bool:
        return leaf(self)

    def __str__(self) -> str:
        if self.value is None:
            return self.key
        return f'{self.key} = "{self.value}"'


@dataclass(frozen=True)
class CfgAll:
    operands: tuple[CfgExpr, ...]

    def evaluate(self, leaf: Callable[[CfgPredicate], bool]) -> bool:
        return all(op.evaluate(leaf) for op in self.operands)

    def __str__(self) -> str:
        return f"all({', '.join(str(op) for op in self.operands)})"


@dataclass(frozen=True)
class CfgAny:
    operands: tuple[CfgExpr, ...]

    def evaluate(self, leaf: Callable[[CfgPredicate], bool]) -> bool:
        return any(op.evaluate(leaf) for op in self.operands)

    def __str__(self) -> str:
        return f"any({', '.join(str(op) for op in self.operands)})"


@dataclass(frozen=True)
class CfgNot:
    operand: CfgExpr

    def evaluate(self, leaf: Callable[[CfgPredicate], bool]) -> bool:
        return not self.operand.evaluate(leaf)

    def __str__(self) -> str:
        return f"not({self.operand})"


CfgExpr = Union[CfgPredicate, CfgAll, CfgAny, CfgNot]


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

_SPACE_RE = re.compile(r"\s*")
_TOKEN_RE = re.compile(
    r"""(?:
        (?P<ident>[A-Za-z_][A-Za-z0-9_]*)
      | (?P<string>"(?:[^"\\]|\\.)*")
      | (?P<punct>[(),=])
    )""",
    re.VERBOSE,
)


class _Parser:
    def __init__(self, text: str) -> None:
        self.text = text
        self.tokens: list[tuple[str, str, int]] = []
        pos = _SPACE_RE.match(text).end()
        while pos < len(text):
            m = _TOKEN_RE.match(text, pos)
            if not m:
                raise CfgParseError(text, pos, "unexpected character")
            kind = m.lastgroup or ""
            self.tokens.append((kind, m.group(kind), m.start(kind)))
            pos = _SPACE_RE.match(text, m.end()).end()
        self.index = 0

    def _peek(self) -> tuple[str, str, int] | None:
        if self.index < len(self.tokens):
            return self.tokens[self.index]
        return None

    def _position(self) -> int:
        tok = self._peek()
        return tok[2] if tok else len(self.text)

    def _expect(self, value: str) -> None:
        tok = self._peek()
        if tok is None or tok[1] != value:
            raise CfgParseError(self.text, self._position(), f"expected {value!r}")
        self.index += 1

    def _accept(self, value: str) -> bool:
        tok = self._peek()
        if tok is not None and tok[0] == "punct" and tok[1] == value:
            self.index += 1
            return True
        return False

    def finish(self) -> None:
        if self._peek() is not None:
            raise CfgParseError(self.text, self._position(), "trailing input")

    def spec(self) -> CfgExpr:
        tok = self._peek()
        if tok is None or tok[0] != "ident" or tok[1] != "cfg":
            raise CfgParseError(self.text, self._position(), "expected 'cfg('")
        self.index += 1
        self._expect("(")
        expr = self.expr()
        self._expect(")")
        return expr

    def expr(self) -> CfgExpr:
        tok = self._peek()
        if tok is None or tok[0] != "ident":
            raise CfgParseError(self.text, self._position(), "expected identifier")
        self.index += 1
        name = tok[1]

        if name in ("all", "any", "not") and self._accept("("):
            operands = self._operands()
            if name == "all":
                return CfgAll(tuple(operands))
            if name == "any":
                return CfgAny(tuple(operands))
            if len(operands) != 1:
                raise CfgParseError(
                    self.text, tok[2], "not() takes exactly one operand"
                )
            return CfgNot(operands[0])

        if self._accept("="):
            value_tok = self._peek()
            if value_tok is None or value_tok[0] != "string":
                raise CfgParseError(self.text, self._position(), "expected string")
            self.index += 1
            raw = value_tok[1][1:-1]
            return CfgPredicate(name, re.sub(r"\\(.)", r"\1", raw))

        return CfgPredicate(name)

    def _operands(self) -> list[CfgExpr]:
        operands: list[CfgExpr] = []
        while not self._accept(")"):
            operands.append(self.expr())
            if self._accept(")"):
                break
            self._expect(",")
        return operands


def parse_cfg(text: str) -> CfgExpr:
    """Parse a full ``cfg(...)`` spec into an expression tree.

    Raises:
        CfgParseError: If ``text`` is not a well-formed cfg spec.
    """
    parser = _Parser(text)
    expr = parser.spec()
    parser.finish()
    return expr


def parse_cfg_expr(text: str) -> CfgExpr:
    """Parse a bare expression (the part inside ``cfg(...)``)."""
    parser = _Parser(text)
    expr = parser.expr()
    parser.finish()
    return expr


# ---------------------------------------------------------------------------
# Leaf evaluation
# ---------------------------------------------------------------------------


class TargetAttributes(Protocol):
    arch: str
    os: str
    families: tuple[str, ...]
    env: str
    vendor: str
    endian: str
    pointer_width: int
    abi: str


_FAMILY_FLAGS = frozenset({"unix", "windows", "wasm"})


def evaluate_leaf(
    target: TargetAttributes, pred: CfgPredicate, features: frozenset[str]
) -> bool:
    """Evaluate one leaf predicate against a target's attributes.

    Unknown keys and flags are false, never an error.
    """
    key, value = pred.key, pred.value
    if value is None:
        return key in _FAMILY_FLAGS and key in target.families

    if key == "target_os":
        return target.os == value
    if key == "target_arch":
        return target.arch == value
    if key == "target_family":
        return value in target.families
    if key == "target_env":
        return target.env == value
    if key == "target_vendor":
        return target.vendor == value
    if key == "target_endian":
        return target.endian == value
    if key == "target_pointer_width":
        return str(target.pointer_width) == value
    if key == "target_abi":
        return target.abi == value
    if key == "target_feature":
        return value in features
    return False
