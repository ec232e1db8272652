"""Singularity algebra.

A division whose denominator vanishes becomes a ``LazyInfinity`` carrying the
numerator as its index and the denominator roots. Reduction decides what the
singularity is:

- Identity (``ZeroInfinity``) when the index is exactly zero at the root(s),
  the removable 0/0 case, projecting to 1;
- Pole (``PoleInfinity``) when the index is nonzero at its single root,
  projecting to a signed infinity;
- Error (``ErrorInfinity``) when the answer cannot be decided.

Singularities at the same root set combine through their indices.
"""

from __future__ import annotations

import math
from typing import Optional, Tuple

from .config import ROOT_MATCH_TOLERANCE, ZERO_TOLERANCE
from .evaluator import evaluate_point, try_evaluate, try_evaluate_exact
from .expression import (
    BinaryOp,
    BinaryOperator,
    ErrorInfinity,
    Expression,
    Infinity,
    LazyInfinity,
    ONE,
    PoleInfinity,
    Root,
    ZeroInfinity,
    is_zero,
)
from .logging_config import get_logger
from .rational import Rational
from .roots import find_roots
from .types import IndeterminateAmbiguous, NonFiniteResult
from .visitor import contains_singularity, depends_on

logger = get_logger("singularity")

INDETERMINATE_AMBIGUOUS = IndeterminateAmbiguous.default_code
NON_FINITE_RESULT = NonFiniteResult.default_code


def _exact_index_value(index: Expression, root: Root) -> Optional[Rational]:
    if root.is_exact:
        return try_evaluate_exact(index, root.variable, root.value)
    if not depends_on(index, root.variable):
        return try_evaluate_exact(index)
    return None


def _index_roots(index: Expression, variable: str) -> Tuple[Root, ...]:
    return tuple(find_roots(index, variable))


def reduce_singularity(node: Expression) -> Expression:
    """Resolve a LazyInfinity into Identity, Pole or Error.

    Nodes that are not lazy are returned unchanged.
    """
    if not isinstance(node, LazyInfinity):
        return node

    index, roots = node.index, node.roots
    if not roots:
        return ErrorInfinity(index, roots, reason=INDETERMINATE_AMBIGUOUS)

    if len(roots) > 1:
        values = [_exact_index_value(index, root) for root in roots]
        if all(v is not None and v.is_zero for v in values):
            return ZeroInfinity(roots)
        logger.debug(f"Index {index} is not exactly zero at every root of {roots}")
        return ErrorInfinity(index, roots, reason=INDETERMINATE_AMBIGUOUS)

    root = roots[0]
    exact = _exact_index_value(index, root)
    if exact is not None:
        if exact.is_zero:
            return ZeroInfinity(roots)
        return PoleInfinity(index, roots, numerator_roots=_index_roots(index, root.variable))

    value = try_evaluate(index, root.variable, root.to_float())
    if value is None:
        return ErrorInfinity(index, roots, reason=NON_FINITE_RESULT)
    if abs(value) > ZERO_TOLERANCE:
        return PoleInfinity(index, roots, numerator_roots=_index_roots(index, root.variable))
    logger.debug(
        f"Index {index} is numerically zero at an inexact root", extra={"root": root}
    )
    return ErrorInfinity(index, roots, reason=INDETERMINATE_AMBIGUOUS)


def classic_projection(node: Infinity) -> float:
    """Project a singularity onto ordinary floating-point semantics.

    Identity projects to 1.0 and a Pole to the sign of its index times
    infinity. Lazy nodes are reduced first.

    Raises:
        IndeterminateAmbiguous: for Error singularities
    """
    if isinstance(node, LazyInfinity):
        node = reduce_singularity(node)
    if isinstance(node, ZeroInfinity):
        return 1.0
    if isinstance(node, PoleInfinity):
        root = node.roots[0]
        value = evaluate_point(node.index, root.variable, root.value)
        if value is None:
            raise NonFiniteResult(f"pole index {node.index} has no value at {root}")
        return math.copysign(math.inf, float(value))
    if isinstance(node, ErrorInfinity):
        raise IndeterminateAmbiguous(
            f"singularity {node} has no classic value", code=node.reason
        )
    raise TypeError(f"Not a singularity: {type(node).__name__}")


def roots_compatible(left: Tuple[Root, ...], right: Tuple[Root, ...]) -> bool:
    """True when both root sets name the same points."""
    if len(left) != len(right):
        return False
    ordered_left = sorted(left, key=Root.to_float)
    ordered_right = sorted(right, key=Root.to_float)
    for a, b in zip(ordered_left, ordered_right):
        if a.variable != b.variable:
            return False
        if abs(a.to_float() - b.to_float()) > ROOT_MATCH_TOLERANCE:
            return False
    return True


def merge_singularities(
    op: BinaryOperator, left: Expression, right: Expression
) -> Optional[Expression]:
    """Combine a binary operation involving at least one singularity.

    Returns the merged node (a LazyInfinity still to be reduced, or for
    ∞_A/∞_B the plain quotient A/B, which is 1 for two Identities), or None
    when no rule applies.
    """
    left_inf = isinstance(left, Infinity)
    right_inf = isinstance(right, Infinity)

    if left_inf and right_inf:
        if not roots_compatible(left.roots, right.roots):
            return None
        if op is BinaryOperator.DIV:
            if is_zero(left.index) and is_zero(right.index):
                # Identity / Identity at the same points
                return ONE
            return BinaryOp(BinaryOperator.DIV, left.index, right.index)
        return LazyInfinity(BinaryOp(op, left.index, right.index), left.roots)

    if left_inf and not contains_singularity(right):
        if op in (BinaryOperator.MUL, BinaryOperator.DIV):
            return LazyInfinity(BinaryOp(op, left.index, right), left.roots)
        return None

    if right_inf and not contains_singularity(left):
        if op is BinaryOperator.MUL:
            return LazyInfinity(BinaryOp(BinaryOperator.MUL, right.index, left), right.roots)
        return None

    return None
