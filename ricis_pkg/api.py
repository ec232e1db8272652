"""Public API for RICIS - returns structured objects without side effects."""

from __future__ import annotations

from .calculus import differentiate
from .evaluator import evaluate, try_evaluate_exact
from .expression import Expression, Infinity, format_number
from .logging_config import get_logger
from .phases import simplify
from .rational import Rational
from .roots import find_roots
from .singularity import classic_projection
from .types import (
    EvalResult,
    IndeterminateAmbiguous,
    NonFiniteResult,
    RicisError,
    RootsResult,
    SimplifyResult,
)
from .visitor import contains_singularity, single_variable

logger = get_logger("api")


def _approximation(result: Expression) -> str | None:
    if isinstance(result, Infinity):
        try:
            return format_number(classic_projection(result))
        except RicisError as e:
            logger.debug(f"No classic projection for {result}: {e}")
            return None
    exact = try_evaluate_exact(result)
    if exact is not None:
        return format_number(exact.to_float())
    return None


def simplify_expression(expr: Expression) -> SimplifyResult:
    """Simplify an expression and classify the outcome.

    Args:
        expr: Expression tree (e.g. ``(x * x - 1) / (x - 1)``)

    Returns:
        SimplifyResult with the rendered result, its kind and, for
        singularities or closed constants, the classic floating-point value

    Example:
        >>> from ricis_pkg.expression import var, sin
        >>> x = var("x")
        >>> simplify_expression(sin(x) / x).result
        '1'
        >>> simplify_expression(3 / (x - 2)).kind
        'pole'
    """
    try:
        result = simplify(expr)
        kind = result.state if isinstance(result, Infinity) else "expression"
        return SimplifyResult(
            ok=True,
            result=str(result),
            kind=kind,
            approx=_approximation(result),
            expression=result,
        )
    except (ValueError, TypeError) as e:
        return SimplifyResult(ok=False, error=f"Simplification error: {e}")


def find_expression_roots(expr: Expression, variable: str | None = None) -> RootsResult:
    """Find the real roots of an expression.

    Args:
        expr: Expression tree
        variable: Variable to solve for (default: the only free variable)

    Returns:
        RootsResult with exact and approximate roots as strings
    """
    if variable is None:
        variable = single_variable(expr)
        if variable is None:
            return RootsResult(
                ok=False, error="Expression must have exactly one free variable"
            )
    if contains_singularity(expr):
        return RootsResult(ok=False, error="Cannot solve an expression with singularities")

    try:
        roots = find_roots(expr, variable)
    except (ValueError, TypeError) as e:
        return RootsResult(ok=False, error=f"Root finding error: {e}")
    return RootsResult(
        ok=True,
        variable=variable,
        exact=[format_number(r.value) for r in roots if r.is_exact],
        approx=[format_number(r.value) for r in roots if not r.is_exact],
    )


def evaluate_expression(
    expr: Expression, variable: str | None = None, value=None
) -> EvalResult:
    """Evaluate an expression, exactly when possible.

    Args:
        expr: Expression tree
        variable: Variable to bind (default: the only free variable)
        value: Value bound to the variable (int, Fraction, Rational, decimal
            string or float)

    Returns:
        EvalResult with the exact result (when available) and its float value
    """
    if variable is None:
        variable = single_variable(expr)

    if isinstance(expr, Infinity):
        try:
            projected = classic_projection(expr)
        except (IndeterminateAmbiguous, NonFiniteResult) as e:
            return EvalResult(ok=False, error=str(e), error_code=e.code)
        return EvalResult(ok=True, approx=format_number(projected))

    exact_value = None
    if value is not None and not isinstance(value, float):
        try:
            exact_value = value if isinstance(value, Rational) else Rational(value)
        except (ValueError, TypeError) as e:
            return EvalResult(ok=False, error=f"Invalid value: {e}", error_code="INVALID_VALUE")

    exact = try_evaluate_exact(expr, variable, exact_value)
    if exact is not None:
        return EvalResult(
            ok=True, result=str(exact), approx=format_number(exact.to_float()), exact=True
        )

    if value is None and variable is not None:
        return EvalResult(
            ok=False,
            error=f"No value given for variable '{variable}'",
            error_code="UNBOUND_VARIABLE",
        )
    point = 0.0 if value is None else float(exact_value if exact_value is not None else value)
    try:
        approx = evaluate(expr, variable, point)
    except NonFiniteResult as e:
        return EvalResult(ok=False, error=str(e), error_code=e.code)
    return EvalResult(ok=True, approx=format_number(approx))


def differentiate_expression(expr: Expression, variable: str | None = None) -> EvalResult:
    """Differentiate an expression with respect to a variable.

    Args:
        expr: Expression tree (e.g. ``x ** 3``)
        variable: Variable to differentiate with respect to (default: the
            only free variable)

    Returns:
        EvalResult with the simplified derivative as result
    """
    if variable is None:
        variable = single_variable(expr)
        if variable is None:
            return EvalResult(ok=False, error="No single variable found in expression")
    try:
        derivative = simplify(differentiate(expr, variable))
    except TypeError as e:
        return EvalResult(ok=False, error=f"Differentiation error: {e}")
    return EvalResult(ok=True, result=str(derivative))
