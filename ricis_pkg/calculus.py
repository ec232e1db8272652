"""Symbolic differentiation and the derivative-ratio limit."""

from __future__ import annotations

from typing import Optional

from .config import LIMIT_MAX_ROUNDS, ZERO_TOLERANCE
from .evaluator import evaluate_point
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
    ONE,
    Root,
    Variable,
    ZERO,
    cos,
    cosh,
    exp,
    is_one,
    is_zero,
    log,
    power,
    sin,
    sinh,
    sqrt,
)
from .logging_config import get_logger
from .rational import Rational
from .types import DivisionByZero
from .visitor import ExpressionVisitor, depends_on

logger = get_logger("calculus")


def _both_exact(left: Expression, right: Expression) -> bool:
    return (
        isinstance(left, Constant)
        and isinstance(right, Constant)
        and left.is_exact
        and right.is_exact
    )


def _add(left: Expression, right: Expression) -> Expression:
    if is_zero(left):
        return right
    if is_zero(right):
        return left
    if _both_exact(left, right):
        return Constant(left.value + right.value)
    return BinaryOp(BinaryOperator.ADD, left, right)


def _sub(left: Expression, right: Expression) -> Expression:
    if is_zero(right):
        return left
    if is_zero(left):
        return _neg(right)
    if _both_exact(left, right):
        return Constant(left.value - right.value)
    return BinaryOp(BinaryOperator.SUB, left, right)


def _mul(left: Expression, right: Expression) -> Expression:
    if is_zero(left) or is_zero(right):
        return ZERO
    if is_one(left):
        return right
    if is_one(right):
        return left
    if _both_exact(left, right):
        return Constant(left.value * right.value)
    return BinaryOp(BinaryOperator.MUL, left, right)


def _div(left: Expression, right: Expression) -> Expression:
    if is_zero(left):
        return ZERO
    if is_one(right):
        return left
    if _both_exact(left, right) and not right.value.is_zero:
        return Constant(left.value / right.value)
    return BinaryOp(BinaryOperator.DIV, left, right)


def _neg(operand: Expression) -> Expression:
    if isinstance(operand, Negate):
        return operand.operand
    if isinstance(operand, Constant) and operand.is_exact:
        return Constant(-operand.value)
    return Negate(operand)


def _pow(base: Expression, exponent: Expression) -> Expression:
    if is_zero(exponent):
        return ONE
    if is_one(exponent):
        return base
    return power(base, exponent)


class Differentiator(ExpressionVisitor):
    """Derivative of a tree with respect to one variable."""

    def __init__(self, variable: str):
        self.variable = variable

    def visit_Constant(self, node: Constant) -> Expression:
        return ZERO

    def visit_Variable(self, node: Variable) -> Expression:
        return ONE if node.name == self.variable else ZERO

    def visit_BinaryOp(self, node: BinaryOp) -> Expression:
        u, v = node.left, node.right
        du, dv = self.visit(u), self.visit(v)
        if node.op is BinaryOperator.ADD:
            return _add(du, dv)
        if node.op is BinaryOperator.SUB:
            return _sub(du, dv)
        if node.op is BinaryOperator.MUL:
            return _add(_mul(du, v), _mul(u, dv))
        # quotient rule
        return _div(_sub(_mul(du, v), _mul(u, dv)), _pow(v, Constant(2)))

    def visit_Negate(self, node: Negate) -> Expression:
        return _neg(self.visit(node.operand))

    def visit_Call(self, node: Call) -> Expression:
        if node.fn is Function.POW:
            return self._power_rule(*node.args)

        u = node.args[0]
        du = self.visit(u)
        if is_zero(du):
            return ZERO
        if node.fn is Function.SIN:
            outer = cos(u)
        elif node.fn is Function.COS:
            outer = _neg(sin(u))
        elif node.fn is Function.TAN:
            outer = _div(ONE, _pow(cos(u), Constant(2)))
        elif node.fn is Function.SINH:
            outer = cosh(u)
        elif node.fn is Function.COSH:
            outer = sinh(u)
        elif node.fn is Function.LOG:
            return _div(du, u)
        elif node.fn is Function.EXP:
            outer = exp(u)
        elif node.fn is Function.SQRT:
            return _div(du, _mul(Constant(2), sqrt(u)))
        else:
            raise TypeError(f"No derivative rule for {node.fn.value}")
        return _mul(outer, du)

    def _power_rule(self, u: Expression, v: Expression) -> Expression:
        du = self.visit(u)
        if not depends_on(v, self.variable):
            if is_zero(du):
                return ZERO
            if isinstance(v, Constant) and v.is_exact:
                reduced: Expression = Constant(v.value - 1)
            else:
                reduced = _sub(v, ONE)
            return _mul(_mul(v, _pow(u, reduced)), du)

        # u^v * (v' * log(u) + v * u' / u)
        dv = self.visit(v)
        inner = _add(_mul(dv, log(u)), _div(_mul(v, du), u))
        return _mul(power(u, v), inner)

    def visit_Infinity(self, node: Infinity) -> Expression:
        raise TypeError("singularity nodes cannot be differentiated")


def differentiate(expr: Expression, variable: str) -> Expression:
    """Differentiate ``expr`` with respect to ``variable``.

    Args:
        expr: Tree to differentiate (must not contain singularity nodes)
        variable: Name of the differentiation variable

    Returns:
        The derivative tree, lightly folded (zero terms and unit factors removed)
    """
    return Differentiator(variable).visit(expr)


def vanishes(value: Number) -> bool:
    if isinstance(value, Rational):
        return value.is_zero
    return abs(value) < ZERO_TOLERANCE


def _as_constant(value: Number) -> Constant:
    if isinstance(value, Rational):
        return Constant(value)
    nearest = round(value)
    if abs(value - nearest) < ZERO_TOLERANCE:
        return Constant(Rational(int(nearest)))
    return Constant(value)


def _ratio(numerator: Number, denominator: Number) -> Number:
    if isinstance(numerator, Rational) and isinstance(denominator, Rational):
        return numerator / denominator
    return float(numerator) / float(denominator)


def derivative_limit(
    numerator: Expression,
    denominator: Expression,
    variable: str,
    root: Root,
    max_rounds: int = LIMIT_MAX_ROUNDS,
) -> Optional[Constant]:
    """Limit of numerator/denominator at a 0/0 point by repeated differentiation.

    Args:
        numerator: Numerator tree, vanishing at ``root``
        denominator: Denominator tree, vanishing at ``root``
        variable: Variable of both trees
        root: The point of the indeterminate form
        max_rounds: Maximum number of differentiation rounds

    Returns:
        The limit as a Constant (Rational when exact or integral), or None when
        the limit is undefined or still indeterminate after ``max_rounds``
    """
    num, den = numerator, denominator
    for round_number in range(1, max_rounds + 1):
        try:
            num = differentiate(num, variable)
            den = differentiate(den, variable)
        except TypeError as e:
            logger.debug(f"Differentiation failed in limit round {round_number}: {e}")
            return None

        num_value = evaluate_point(num, variable, root.value)
        den_value = evaluate_point(den, variable, root.value)
        if num_value is None or den_value is None:
            logger.debug(f"Derivatives not evaluable at {root} in round {round_number}")
            return None

        if not vanishes(den_value):
            try:
                return _as_constant(_ratio(num_value, den_value))
            except (DivisionByZero, ZeroDivisionError, OverflowError):
                return None
        if not vanishes(num_value):
            logger.debug(f"Limit at {root} diverges: {num_value}/0")
            return None

    logger.debug(f"Limit at {root} still indeterminate after {max_rounds} rounds")
    return None
