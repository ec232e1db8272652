"""The three-pass simplification pipeline.

``simplify`` runs, in order:

1. ``AlgebraicReduction``: equal operands, exact polynomial long division and
   detection of 0/0 divisions at exact polynomial roots.
2. ``RicisTransform``: turns divisions by vanishing denominators into
   singularity nodes, resolving removable 0/0 points with the
   derivative-ratio limit when there is a single root.
3. ``StandardOperations``: reduces lazy singularities, merges singularities
   at the same points and folds identities and exact constants.

A fault inside one pass is logged and that pass's input carried forward, so
``simplify`` never raises.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Type

from .calculus import derivative_limit, vanishes
from .evaluator import evaluate_point, try_evaluate_exact
from .expression import (
    BinaryOp,
    BinaryOperator,
    Constant,
    Expression,
    Infinity,
    LazyInfinity,
    Negate,
    ONE,
    Root,
    ZERO,
    ZeroInfinity,
    is_one,
    is_zero,
)
from .logging_config import get_logger
from .polynomial import try_collect_coefficients, try_divide
from .roots import dedupe_roots, find_roots, trigonometric_roots
from .singularity import merge_singularities, reduce_singularity
from .types import DivisionByZero
from .visitor import ExpressionRewriter, contains_singularity, depends_on, single_variable

logger = get_logger("phases")


class AlgebraicReduction(ExpressionRewriter):
    """Simplifies divisions algebraically before any singularity is built."""

    def visit_BinaryOp(self, node: BinaryOp) -> Expression:
        rebuilt = super().visit_BinaryOp(node)
        if not isinstance(rebuilt, BinaryOp) or rebuilt.op is not BinaryOperator.DIV:
            return rebuilt
        return self._reduce_division(rebuilt)

    def _reduce_division(self, node: BinaryOp) -> Expression:
        numerator, denominator = node.left, node.right
        if contains_singularity(numerator) or contains_singularity(denominator):
            return node

        if numerator == denominator:
            return self._equal_operands(numerator)

        variable = single_variable(node)
        if variable is None:
            return node

        quotient = try_divide(numerator, denominator, variable)
        if quotient is not None:
            logger.debug(f"Divided {numerator} by {denominator} exactly: {quotient}")
            return self.visit(quotient)

        if not depends_on(denominator, variable):
            return node
        if try_collect_coefficients(denominator, variable) is None:
            return node
        for root in find_roots(denominator, variable):
            if not root.is_exact:
                continue
            value = try_evaluate_exact(numerator, variable, root.value)
            if value is not None and value.is_zero:
                return LazyInfinity(numerator, (root,), denominator=denominator)
        return node

    def _equal_operands(self, operand: Expression) -> Expression:
        variable = single_variable(operand)
        if variable is None:
            return ONE
        roots = find_roots(operand, variable)
        if not roots:
            return ONE
        return ZeroInfinity(tuple(roots))


class RicisTransform(ExpressionRewriter):
    """Builds singularity nodes for divisions by vanishing denominators."""

    def visit_BinaryOp(self, node: BinaryOp) -> Expression:
        rebuilt = super().visit_BinaryOp(node)
        if not isinstance(rebuilt, BinaryOp) or rebuilt.op is not BinaryOperator.DIV:
            return rebuilt
        if contains_singularity(rebuilt.left) or contains_singularity(rebuilt.right):
            return rebuilt
        resolved = self._resolve_division(rebuilt.left, rebuilt.right)
        return rebuilt if resolved is None else resolved

    def visit_LazyInfinity(self, node: LazyInfinity) -> Expression:
        if node.denominator is None:
            return node
        resolved = self._resolve_division(node.index, node.denominator)
        if resolved is None:
            return LazyInfinity(node.index, node.roots)
        return resolved

    def _denominator_roots(self, denominator: Expression, variable: str) -> List[Root]:
        return dedupe_roots(
            find_roots(denominator, variable) + trigonometric_roots(denominator, variable)
        )

    def _resolve_division(
        self, numerator: Expression, denominator: Expression
    ) -> Optional[Expression]:
        variable = single_variable(denominator)
        if variable is None:
            return None
        roots = self._denominator_roots(denominator, variable)
        if not roots:
            return None

        if len(roots) == 1:
            root = roots[0]
            value = evaluate_point(numerator, variable, root.value)
            if value is not None and vanishes(value):
                limit = derivative_limit(numerator, denominator, variable, root)
                if limit is not None:
                    logger.debug(f"Limit of {numerator}/{denominator} at {root} is {limit}")
                    return limit

        return LazyInfinity(numerator, tuple(roots))


def _fold_constants(op: BinaryOperator, left: Constant, right: Constant) -> Optional[Constant]:
    a, b = left.value, right.value
    try:
        if op is BinaryOperator.ADD:
            return Constant(a + b)
        if op is BinaryOperator.SUB:
            return Constant(a - b)
        if op is BinaryOperator.MUL:
            return Constant(a * b)
        return Constant(a / b)
    except DivisionByZero:
        return None


def fold_binary(op: BinaryOperator, left: Expression, right: Expression) -> Optional[Expression]:
    """Identity, zero and exact-constant folding; None when nothing applies."""
    if op is BinaryOperator.MUL:
        if is_zero(left) or is_zero(right):
            return ZERO
        if is_one(left):
            return right
        if is_one(right):
            return left
    elif op is BinaryOperator.ADD:
        if is_zero(left):
            return right
        if is_zero(right):
            return left
    elif op is BinaryOperator.SUB:
        if is_zero(right):
            return left
    elif op is BinaryOperator.DIV:
        if is_one(right):
            return left

    if (
        isinstance(left, Constant)
        and isinstance(right, Constant)
        and left.is_exact
        and right.is_exact
    ):
        return _fold_constants(op, left, right)
    return None


class StandardOperations(ExpressionRewriter):
    """Reduces lazy singularities, merges singularity arithmetic and folds constants."""

    def visit_LazyInfinity(self, node: LazyInfinity) -> Expression:
        index = self.visit(node.index)
        if index is not node.index:
            node = LazyInfinity(index, node.roots)
        return reduce_singularity(node)

    def visit_BinaryOp(self, node: BinaryOp) -> Expression:
        left = self.visit(node.left)
        right = self.visit(node.right)

        if isinstance(left, Infinity) or isinstance(right, Infinity):
            merged = merge_singularities(node.op, left, right)
            if merged is not None:
                return self.visit(merged)
        else:
            folded = fold_binary(node.op, left, right)
            if folded is not None:
                return folded

        if left is node.left and right is node.right:
            return node
        return BinaryOp(node.op, left, right)

    def visit_Negate(self, node: Negate) -> Expression:
        operand = self.visit(node.operand)
        if isinstance(operand, Negate):
            return operand.operand
        if isinstance(operand, Constant) and operand.is_exact:
            return Constant(-operand.value)
        if operand is node.operand:
            return node
        return Negate(operand)


PHASES: Sequence[Type[ExpressionRewriter]] = (
    AlgebraicReduction,
    RicisTransform,
    StandardOperations,
)


def run_phase(phase: Type[ExpressionRewriter], expr: Expression) -> Expression:
    """Run one pass; on failure log it and return the input unchanged."""
    try:
        return phase().visit(expr)
    except Exception as e:
        logger.warning(
            f"{phase.__name__} failed on {expr}: {e}",
            exc_info=True,
            extra={"phase": phase.__name__},
        )
        return expr


def simplify(expr: Expression) -> Expression:
    """Simplify an expression tree, resolving indeterminate divisions.

    Args:
        expr: Tree to simplify

    Returns:
        The simplified tree: an ordinary expression or a singularity node.
        Never raises; a failing pass leaves its input unchanged.
    """
    current = expr
    for phase in PHASES:
        current = run_phase(phase, current)
    return current
