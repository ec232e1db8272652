"""Polynomial support: coefficient collection, long division and rebuilding.

Coefficient maps are plain ``Dict[int, Rational]`` keyed by degree, with zero
coefficients pruned. An empty map is the zero polynomial.
"""

from __future__ import annotations

import math
from typing import Dict, List, Optional

import sympy as sp

from .expression import (
    BinaryOp,
    BinaryOperator,
    Call,
    Constant,
    Expression,
    Function,
    Negate,
    Variable,
    ZERO,
    power,
)
from .logging_config import get_logger
from .rational import Rational
from .types import DivisionByZero, InexactDivision, NotAPolynomial

logger = get_logger("polynomial")

Coefficients = Dict[int, Rational]


def _add_term(coefficients: Coefficients, degree: int, value: Rational) -> None:
    if value.is_zero:
        return
    total = coefficients.get(degree, Rational(0)) + value
    if total.is_zero:
        coefficients.pop(degree, None)
    else:
        coefficients[degree] = total


def _scale(coefficients: Coefficients, factor: Rational) -> Coefficients:
    if factor.is_zero:
        return {}
    return {degree: value * factor for degree, value in coefficients.items()}


def _convolve(left: Coefficients, right: Coefficients) -> Coefficients:
    product: Coefficients = {}
    for i, a in left.items():
        for j, b in right.items():
            _add_term(product, i + j, a * b)
    return product


def _exact_constant(node: Constant) -> Rational:
    if isinstance(node.value, Rational):
        return node.value
    if math.isfinite(node.value) and float(node.value).is_integer():
        return Rational(int(node.value))
    raise NotAPolynomial(f"inexact literal {node.value!r}")


def collect_coefficients(expr: Expression, variable: str) -> Coefficients:
    """Extract the degree -> coefficient map of ``expr`` in ``variable``.

    Args:
        expr: Tree to analyse
        variable: Name of the polynomial variable

    Returns:
        Mapping of degree to nonzero Rational coefficient

    Raises:
        NotAPolynomial: if any node cannot be part of a polynomial in variable
    """
    if isinstance(expr, Constant):
        value = _exact_constant(expr)
        return {} if value.is_zero else {0: value}

    if isinstance(expr, Variable):
        if expr.name != variable:
            raise NotAPolynomial(f"second variable {expr.name!r}")
        return {1: Rational(1)}

    if isinstance(expr, BinaryOp):
        if expr.op is BinaryOperator.DIV:
            raise NotAPolynomial("division is not polynomial")
        left = collect_coefficients(expr.left, variable)
        right = collect_coefficients(expr.right, variable)
        if expr.op is BinaryOperator.MUL:
            return _convolve(left, right)
        sign = Rational(-1) if expr.op is BinaryOperator.SUB else Rational(1)
        result = dict(left)
        for degree, value in right.items():
            _add_term(result, degree, value * sign)
        return result

    if isinstance(expr, Negate):
        return _scale(collect_coefficients(expr.operand, variable), Rational(-1))

    if isinstance(expr, Call) and expr.fn is Function.POW:
        base, exponent = expr.args
        if not isinstance(exponent, Constant):
            raise NotAPolynomial("non-constant exponent")
        n = _exact_constant(exponent)
        if not n.is_integer or n < 0:
            raise NotAPolynomial(f"exponent {n} is not a non-negative integer")
        base_coefficients = collect_coefficients(base, variable)
        result: Coefficients = {0: Rational(1)}
        for _ in range(int(n)):
            result = _convolve(result, base_coefficients)
        return result

    raise NotAPolynomial(f"{type(expr).__name__} node is not polynomial")


def try_collect_coefficients(expr: Expression, variable: str) -> Optional[Coefficients]:
    try:
        return collect_coefficients(expr, variable)
    except NotAPolynomial as e:
        logger.debug(f"Not a polynomial in {variable}: {e}")
        return None


def degree(coefficients: Coefficients) -> int:
    """Degree of the polynomial; -1 for the zero polynomial."""
    return max(coefficients) if coefficients else -1


def integer_coefficients(coefficients: Coefficients) -> Dict[int, int]:
    """Scale a rational coefficient map to the smallest integer multiple."""
    common = 1
    for value in coefficients.values():
        common = common * value.denominator // math.gcd(common, value.denominator)
    return {d: int(value * common) for d, value in coefficients.items()}


def rational_root_candidates(coefficients: Coefficients) -> List[Rational]:
    """Candidate roots ±p/q by the rational root theorem.

    The lowest-degree term plays the role of the constant term, so x^k
    factors are divided out before enumeration. Returns candidates sorted by
    value; an empty list for the zero polynomial or a monomial.
    """
    if not coefficients:
        return []
    low = min(coefficients)
    high = max(coefficients)
    if low == high:
        return []
    scaled = integer_coefficients(coefficients)
    constant = abs(scaled[low])
    leading = abs(scaled[high])
    candidates = set()
    for p in sp.divisors(constant):
        for q in sp.divisors(leading):
            candidate = Rational(int(p), int(q))
            candidates.add(candidate)
            candidates.add(-candidate)
    return sorted(candidates)


def divide_coefficients(dividend: Coefficients, divisor: Coefficients) -> Coefficients:
    """Exact polynomial long division.

    Raises:
        DivisionByZero: if the divisor is the zero polynomial
        InexactDivision: if a nonzero remainder is left
    """
    if not divisor:
        raise DivisionByZero("division by the zero polynomial")
    divisor_degree = max(divisor)
    leading = divisor[divisor_degree]

    remainder = dict(dividend)
    quotient: Coefficients = {}
    while remainder and max(remainder) >= divisor_degree:
        current = max(remainder)
        term = remainder[current] / leading
        shift = current - divisor_degree
        quotient[shift] = term
        for d, value in divisor.items():
            _add_term(remainder, d + shift, -(term * value))

    if remainder:
        raise InexactDivision(f"remainder {remainder} is not zero")
    return quotient


def build_polynomial(coefficients: Coefficients, variable: str) -> Expression:
    """Rebuild a sum of ``c * x^n`` terms in descending degree."""
    x = Variable(variable)
    result: Optional[Expression] = None
    for d in sorted(coefficients, reverse=True):
        value = coefficients[d]
        if value.is_zero:
            continue
        if d == 0:
            term: Expression = Constant(value)
        elif d == 1:
            term = BinaryOp(BinaryOperator.MUL, Constant(value), x)
        else:
            term = BinaryOp(BinaryOperator.MUL, Constant(value), power(x, d))
        result = term if result is None else BinaryOp(BinaryOperator.ADD, result, term)
    return ZERO if result is None else result


def try_divide(
    numerator: Expression, denominator: Expression, variable: str
) -> Optional[Expression]:
    """Divide two polynomial trees exactly; None when not possible.

    Zero numerators are not divided; the caller keeps the division node.
    """
    dividend = try_collect_coefficients(numerator, variable)
    if not dividend:
        return None
    divisor = try_collect_coefficients(denominator, variable)
    if not divisor:
        return None
    try:
        quotient = divide_coefficients(dividend, divisor)
    except InexactDivision as e:
        logger.debug(f"Long division of {numerator} by {denominator} is inexact: {e}")
        return None
    return build_polynomial(quotient, variable)
