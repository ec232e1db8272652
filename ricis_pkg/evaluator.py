"""Exact and numeric evaluation of expression trees.

Two evaluators live here:

- ``try_evaluate_exact`` walks the tree with Rational arithmetic and refuses
  anything it cannot compute without rounding (non-integral float literals,
  non-integer powers, transcendental calls away from their trivial zero
  identities). It answers "is this exactly zero?" questions.
- ``compile_expression`` / ``evaluate`` convert the tree to SymPy and compile
  it with ``lambdify`` for the numeric fallback paths (root scanning,
  bisection, limits at approximate points).
"""

from __future__ import annotations

import math
from typing import Callable, Optional, Union

import numpy as np
import sympy as sp

from .expression import (
    BinaryOp,
    BinaryOperator,
    Call,
    Constant,
    Expression,
    Function,
    Infinity,
    Negate,
    Number,
    Variable,
)
from .logging_config import get_logger
from .rational import Rational
from .types import DivisionByZero, NonFiniteResult
from .visitor import ExpressionVisitor, free_variables

logger = get_logger("evaluator")


class _Unevaluable(Exception):
    """Internal signal: the subtree has no exact rational value."""


class ExactEvaluator(ExpressionVisitor):
    """Evaluates a tree to a Rational, binding one variable."""

    def __init__(self, variable: Optional[str], value: Optional[Rational]):
        self.variable = variable
        self.value = value

    def visit_Constant(self, node: Constant) -> Rational:
        if isinstance(node.value, Rational):
            return node.value
        if math.isfinite(node.value) and float(node.value).is_integer():
            return Rational(int(node.value))
        raise _Unevaluable(f"inexact literal {node.value!r}")

    def visit_Variable(self, node: Variable) -> Rational:
        if node.name == self.variable and self.value is not None:
            return self.value
        raise _Unevaluable(f"unbound variable {node.name}")

    def visit_BinaryOp(self, node: BinaryOp) -> Rational:
        left = self.visit(node.left)
        right = self.visit(node.right)
        if node.op is BinaryOperator.ADD:
            return left + right
        if node.op is BinaryOperator.SUB:
            return left - right
        if node.op is BinaryOperator.MUL:
            return left * right
        try:
            return left / right
        except DivisionByZero as e:
            raise _Unevaluable(str(e)) from e

    def visit_Negate(self, node: Negate) -> Rational:
        return -self.visit(node.operand)

    def visit_Call(self, node: Call) -> Rational:
        if node.fn is Function.POW:
            base = self.visit(node.args[0])
            exponent = self.visit(node.args[1])
            if not exponent.is_integer or exponent < 0:
                raise _Unevaluable("non-integer or negative exponent")
            return base ** int(exponent)

        argument = self.visit(node.args[0])
        if argument.is_zero:
            if node.fn in (Function.SIN, Function.TAN):
                return Rational(0)
            if node.fn is Function.COS:
                return Rational(1)
        raise _Unevaluable(f"{node.fn.value} has no exact value here")

    def visit_Infinity(self, node: Infinity) -> Rational:
        raise _Unevaluable("singularity nodes have no scalar value")


def try_evaluate_exact(
    expr: Expression,
    variable: Optional[str] = None,
    value: Union[Rational, int, None] = None,
) -> Optional[Rational]:
    """Evaluate exactly, returning None when the tree is not exactly evaluable.

    Args:
        expr: Tree to evaluate
        variable: Name of the variable to bind (None for closed expressions)
        value: Rational value bound to the variable

    Returns:
        The exact Rational value, or None
    """
    if value is not None and not isinstance(value, Rational):
        value = Rational(value)
    try:
        return ExactEvaluator(variable, value).visit(expr)
    except _Unevaluable as e:
        logger.debug(f"Exact evaluation refused: {e}")
        return None


class SympyConverter(ExpressionVisitor):
    """Builds an unevaluated SymPy expression mirroring the tree."""

    _functions = {
        Function.SIN: sp.sin,
        Function.COS: sp.cos,
        Function.TAN: sp.tan,
        Function.SINH: sp.sinh,
        Function.COSH: sp.cosh,
        Function.LOG: sp.log,
        Function.EXP: sp.exp,
    }

    def visit_Constant(self, node: Constant) -> sp.Basic:
        if isinstance(node.value, Rational):
            return node.value.to_sympy()
        return sp.Float(node.value)

    def visit_Variable(self, node: Variable) -> sp.Basic:
        return sp.Symbol(node.name)

    def visit_BinaryOp(self, node: BinaryOp) -> sp.Basic:
        left = self.visit(node.left)
        right = self.visit(node.right)
        if node.op is BinaryOperator.ADD:
            return sp.Add(left, right, evaluate=False)
        if node.op is BinaryOperator.SUB:
            return sp.Add(left, sp.Mul(-1, right, evaluate=False), evaluate=False)
        if node.op is BinaryOperator.MUL:
            return sp.Mul(left, right, evaluate=False)
        return sp.Mul(left, sp.Pow(right, -1, evaluate=False), evaluate=False)

    def visit_Negate(self, node: Negate) -> sp.Basic:
        return sp.Mul(-1, self.visit(node.operand), evaluate=False)

    def visit_Call(self, node: Call) -> sp.Basic:
        args = [self.visit(arg) for arg in node.args]
        if node.fn is Function.POW:
            return sp.Pow(args[0], args[1], evaluate=False)
        if node.fn is Function.SQRT:
            return sp.sqrt(args[0], evaluate=False)
        return self._functions[node.fn](args[0], evaluate=False)

    def visit_Infinity(self, node: Infinity) -> sp.Basic:
        raise TypeError("singularity nodes cannot be converted to SymPy")


def to_sympy(expr: Expression) -> sp.Basic:
    """Convert a tree to an (unevaluated) SymPy expression."""
    return SympyConverter().visit(expr)


def compile_expression(expr: Expression, variable: str) -> Callable[[float], float]:
    """Compile a tree into a plain float function of one variable.

    Args:
        expr: Tree to compile (must not contain singularity nodes)
        variable: Name of the function argument

    Returns:
        Callable mapping a float to the (possibly complex or raising) value
    """
    symbol = sp.Symbol(variable)
    return sp.lambdify(symbol, to_sympy(expr), modules="math")


def compile_vectorized(expr: Expression, variable: str) -> Callable[[np.ndarray], np.ndarray]:
    """Compile a tree into a NumPy function evaluated over a whole grid at once."""
    symbol = sp.Symbol(variable)
    return sp.lambdify(symbol, to_sympy(expr), modules="numpy")


def _finite(raw) -> float:
    if isinstance(raw, complex):
        if raw.imag != 0:
            raise NonFiniteResult(f"complex value {raw}")
        raw = raw.real
    value = float(raw)
    if not math.isfinite(value):
        raise NonFiniteResult(f"non-finite value {value}")
    return value


def call_compiled(function: Callable[[float], float], point: float) -> float:
    """Call a compiled function, converting domain failures to NonFiniteResult."""
    try:
        return _finite(function(point))
    except (ValueError, ZeroDivisionError, OverflowError, TypeError, NameError) as e:
        raise NonFiniteResult(f"evaluation failed at {point}: {e}") from e


def evaluate(expr: Expression, variable: Optional[str], value: float) -> float:
    """Evaluate numerically. Raises NonFiniteResult when the value is undefined."""
    if variable is None:
        names = free_variables(expr)
        variable = next(iter(names)) if names else "x"
    try:
        function = compile_expression(expr, variable)
    except (TypeError, ValueError, KeyError) as e:
        raise NonFiniteResult(f"cannot compile {expr}: {e}") from e
    return call_compiled(function, float(value))


def try_evaluate(expr: Expression, variable: Optional[str], value: float) -> Optional[float]:
    """Like ``evaluate`` but returns None instead of raising."""
    try:
        return evaluate(expr, variable, value)
    except NonFiniteResult as e:
        logger.debug(f"Numeric evaluation failed: {e}")
        return None


def evaluate_grid(expr: Expression, variable: str, x_vals: np.ndarray) -> np.ndarray:
    """Evaluate over a sample grid; undefined or non-finite samples become NaN.

    The whole grid goes through one NumPy call. If that call fails, each point
    is evaluated on its own with the scalar compiled function.

    Raises:
        TypeError: if the tree contains singularity nodes
    """
    function = compile_vectorized(expr, variable)
    try:
        with np.errstate(all="ignore"):
            raw = np.broadcast_to(np.asarray(function(x_vals)), x_vals.shape)
            if np.iscomplexobj(raw):
                raw = np.where(raw.imag == 0, raw.real, np.nan)
            y_vals = raw.astype(float)
    except (ValueError, TypeError, ZeroDivisionError, OverflowError, NameError) as e:
        logger.debug(f"Vectorized evaluation of {expr} failed ({e}); sampling per point")
        scalar = compile_expression(expr, variable)
        samples = []
        for point in x_vals:
            try:
                samples.append(call_compiled(scalar, float(point)))
            except NonFiniteResult:
                samples.append(np.nan)
        y_vals = np.array(samples, dtype=float)
    return np.where(np.isfinite(y_vals), y_vals, np.nan)


def evaluate_point(
    expr: Expression, variable: str, value: Number
) -> Optional[Number]:
    """Evaluate at a root value, exactly when the value is Rational.

    An exact root that the exact evaluator cannot handle (e.g. cos(x) at
    x=1) falls back to a float. Returns None when neither works.
    """
    if isinstance(value, Rational):
        exact = try_evaluate_exact(expr, variable, value)
        if exact is not None:
            return exact
        return try_evaluate(expr, variable, value.to_float())
    exact = try_evaluate_exact(expr)
    if exact is not None:
        return exact
    return try_evaluate(expr, variable, value)
