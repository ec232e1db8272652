"""Expression tree data model.

Every node is an immutable (frozen) dataclass. Equality is structural: two
trees are equal when their node kinds, operators and operands match
recursively. Singularity nodes compare by kind, index expression and root set.

Trees are built with the helpers below or with Python operators:

    >>> x = var("x")
    >>> (x * x - 1) / (x - 1)
    BinaryOp(op=<BinaryOperator.DIV: '/'>, ...)
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from fractions import Fraction
from typing import Optional, Tuple, Union

from .rational import Rational

Number = Union[Rational, float]


class BinaryOperator(str, Enum):
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"


class Function(str, Enum):
    SIN = "sin"
    COS = "cos"
    TAN = "tan"
    SINH = "sinh"
    COSH = "cosh"
    POW = "pow"
    LOG = "log"
    EXP = "exp"
    SQRT = "sqrt"

    @property
    def arity(self) -> int:
        return 2 if self is Function.POW else 1


TRIGONOMETRIC = frozenset({Function.SIN, Function.COS, Function.TAN})


class Expression:
    """Base class of every tree node. Provides operator-based construction."""

    __slots__ = ()

    def __add__(self, other):
        return BinaryOp(BinaryOperator.ADD, self, as_expression(other))

    def __radd__(self, other):
        return BinaryOp(BinaryOperator.ADD, as_expression(other), self)

    def __sub__(self, other):
        return BinaryOp(BinaryOperator.SUB, self, as_expression(other))

    def __rsub__(self, other):
        return BinaryOp(BinaryOperator.SUB, as_expression(other), self)

    def __mul__(self, other):
        return BinaryOp(BinaryOperator.MUL, self, as_expression(other))

    def __rmul__(self, other):
        return BinaryOp(BinaryOperator.MUL, as_expression(other), self)

    def __truediv__(self, other):
        return BinaryOp(BinaryOperator.DIV, self, as_expression(other))

    def __rtruediv__(self, other):
        return BinaryOp(BinaryOperator.DIV, as_expression(other), self)

    def __pow__(self, other):
        return Call(Function.POW, (self, as_expression(other)))

    def __neg__(self):
        return Negate(self)

    def __str__(self) -> str:
        return format_expression(self)


def _to_number(value) -> Number:
    if isinstance(value, bool):
        raise TypeError("bool is not a numeric constant")
    if isinstance(value, Rational):
        return value
    if isinstance(value, float):
        return value
    if isinstance(value, (int, Fraction, Decimal, str)):
        return Rational(value)
    raise TypeError(f"Unsupported constant type: {type(value).__name__}")


@dataclass(frozen=True)
class Constant(Expression):
    """Numeric literal. Exact values are Rational; inexact literals stay float."""

    value: Number

    def __post_init__(self):
        object.__setattr__(self, "value", _to_number(self.value))

    @property
    def is_exact(self) -> bool:
        return isinstance(self.value, Rational)


@dataclass(frozen=True)
class Variable(Expression):
    name: str


@dataclass(frozen=True)
class BinaryOp(Expression):
    op: BinaryOperator
    left: Expression
    right: Expression


@dataclass(frozen=True)
class Negate(Expression):
    operand: Expression


@dataclass(frozen=True)
class Call(Expression):
    fn: Function
    args: Tuple[Expression, ...]

    def __post_init__(self):
        object.__setattr__(self, "fn", Function(self.fn))
        object.__setattr__(self, "args", tuple(self.args))
        if len(self.args) != self.fn.arity:
            raise ValueError(
                f"{self.fn.value} expects {self.fn.arity} argument(s), got {len(self.args)}"
            )


@dataclass(frozen=True)
class Root:
    """A point where an expression vanishes.

    The value is a Rational when the root was found by exact search and a
    float approximation otherwise.
    """

    variable: str
    value: Number

    @property
    def is_exact(self) -> bool:
        return isinstance(self.value, Rational)

    def to_float(self) -> float:
        if isinstance(self.value, Rational):
            return self.value.to_float()
        return float(self.value)

    def __str__(self) -> str:
        return f"{self.variable}={format_number(self.value)}"


class Infinity(Expression):
    """Base of the singularity variants.

    Subclasses carry an ``index`` (the subtree deciding the character of the
    singularity) and ``roots`` (the points where the denominator vanishes).
    """

    __slots__ = ()
    state = "abstract"
    is_terminal = True

    @property
    def variable(self) -> Optional[str]:
        return self.roots[0].variable if self.roots else None


@dataclass(frozen=True)
class LazyInfinity(Infinity):
    """Unresolved singularity; the index has not been evaluated at the roots.

    ``denominator`` is set when the node stands for a division already known
    to be 0/0, so a later pass can still try the limit rule.
    """

    index: Expression
    roots: Tuple[Root, ...]
    denominator: Optional[Expression] = field(default=None, compare=False)

    state = "lazy"
    is_terminal = False

    def __post_init__(self):
        object.__setattr__(self, "roots", tuple(self.roots))


@dataclass(frozen=True)
class ZeroInfinity(Infinity):
    """Identity singularity: the 0/0 case, projecting to 1."""

    roots: Tuple[Root, ...]

    state = "identity"

    def __post_init__(self):
        object.__setattr__(self, "roots", tuple(self.roots))

    @property
    def index(self) -> Expression:
        return ZERO


@dataclass(frozen=True)
class PoleInfinity(Infinity):
    """Diverging singularity. Also stores the roots of the index itself."""

    index: Expression
    roots: Tuple[Root, ...]
    numerator_roots: Tuple[Root, ...] = field(default=(), compare=False)

    state = "pole"

    def __post_init__(self):
        object.__setattr__(self, "roots", tuple(self.roots))
        object.__setattr__(self, "numerator_roots", tuple(self.numerator_roots))


@dataclass(frozen=True)
class ErrorInfinity(Infinity):
    """Singularity whose resolution is undecidable."""

    index: Expression
    roots: Tuple[Root, ...]
    reason: str = field(default="INDETERMINATE_AMBIGUOUS", compare=False)

    state = "error"

    def __post_init__(self):
        object.__setattr__(self, "roots", tuple(self.roots))


ZERO = Constant(Rational(0))
ONE = Constant(Rational(1))


def as_expression(value) -> Expression:
    """Coerce numbers to Constant nodes; expressions pass through."""
    if isinstance(value, Expression):
        return value
    return Constant(value)


def const(value) -> Constant:
    return Constant(value)


def var(name: str) -> Variable:
    return Variable(name)


def call(fn: Union[Function, str], *args) -> Call:
    return Call(Function(fn), tuple(as_expression(a) for a in args))


def sin(arg) -> Call:
    return call(Function.SIN, arg)


def cos(arg) -> Call:
    return call(Function.COS, arg)


def tan(arg) -> Call:
    return call(Function.TAN, arg)


def sinh(arg) -> Call:
    return call(Function.SINH, arg)


def cosh(arg) -> Call:
    return call(Function.COSH, arg)


def log(arg) -> Call:
    return call(Function.LOG, arg)


def exp(arg) -> Call:
    return call(Function.EXP, arg)


def sqrt(arg) -> Call:
    return call(Function.SQRT, arg)


def power(base, exponent) -> Call:
    return call(Function.POW, base, exponent)


def is_zero(expr: Expression) -> bool:
    """True for a Constant exactly equal to zero."""
    return isinstance(expr, Constant) and expr.value == 0


def is_one(expr: Expression) -> bool:
    """True for a Constant exactly equal to one."""
    return isinstance(expr, Constant) and expr.value == 1


# ============================================================
# Rendering
# ============================================================

_PRECEDENCE = {
    BinaryOperator.ADD: 1,
    BinaryOperator.SUB: 1,
    BinaryOperator.MUL: 2,
    BinaryOperator.DIV: 2,
}
_UNARY_PRECEDENCE = 3
_ATOM_PRECEDENCE = 4


def format_number(value: Number) -> str:
    if isinstance(value, Rational):
        return str(value)
    if math.isinf(value) or math.isnan(value):
        return str(value)
    return format(value, ".12g")


def _precedence(expr: Expression) -> int:
    if isinstance(expr, BinaryOp):
        return _PRECEDENCE[expr.op]
    if isinstance(expr, Negate):
        return _UNARY_PRECEDENCE
    if isinstance(expr, Constant):
        if expr.value < 0 or (isinstance(expr.value, Rational) and not expr.value.is_integer):
            return _UNARY_PRECEDENCE
    if isinstance(expr, Call) and expr.fn is Function.POW:
        return _UNARY_PRECEDENCE + 0.5
    return _ATOM_PRECEDENCE


def _wrap(expr: Expression, parent: float, strict: bool = False) -> str:
    text = format_expression(expr)
    child = _precedence(expr)
    if child < parent or (strict and child == parent):
        return f"({text})"
    return text


def format_roots(roots: Tuple[Root, ...]) -> str:
    if len(roots) == 1:
        return f"when {roots[0]}"
    return "at {" + ", ".join(str(r) for r in roots) + "}"


def format_expression(expr: Expression) -> str:
    """Render an expression as infix text."""
    if isinstance(expr, Constant):
        return format_number(expr.value)
    if isinstance(expr, Variable):
        return expr.name
    if isinstance(expr, BinaryOp):
        precedence = _PRECEDENCE[expr.op]
        left = _wrap(expr.left, precedence)
        right = _wrap(
            expr.right,
            precedence,
            strict=expr.op in (BinaryOperator.SUB, BinaryOperator.DIV),
        )
        return f"{left} {expr.op.value} {right}"
    if isinstance(expr, Negate):
        return f"-{_wrap(expr.operand, _UNARY_PRECEDENCE, strict=True)}"
    if isinstance(expr, Call):
        if expr.fn is Function.POW:
            base, exponent = expr.args
            return f"{_wrap(base, _ATOM_PRECEDENCE)}^{_wrap(exponent, _ATOM_PRECEDENCE)}"
        return f"{expr.fn.value}({', '.join(format_expression(a) for a in expr.args)})"
    if isinstance(expr, Infinity):
        text = f"∞_{{{format_expression(expr.index)}}}"
        if expr.roots:
            text = f"{text} {format_roots(expr.roots)}"
        return text
    raise TypeError(f"Unknown expression kind: {type(expr).__name__}")
