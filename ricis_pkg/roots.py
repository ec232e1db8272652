"""Root finding for single-variable expressions.

Polynomials are handled exactly where possible: a factored-out x^k gives the
root 0, the rational root theorem finds every rational root, deflation leaves
a remainder whose degree-2 roots come from the quadratic formula, and a
higher-degree remainder is scanned numerically. Other expressions go through
the trig/log/exp recognizers and finally a numeric scan with bisection over a
fixed interval.
"""

from __future__ import annotations

import math
from typing import Callable, Iterable, List, Optional, Tuple

import numpy as np

from .config import (
    BISECTION_TOLERANCE,
    MAX_BISECTION_ITERATIONS,
    ROOT_ACCEPT_TOLERANCE,
    ROOT_ROUND_DIGITS,
    SCAN_INTERVAL_MAX,
    SCAN_INTERVAL_MIN,
    SCAN_STEP,
    ZERO_TOLERANCE,
)
from .evaluator import (
    call_compiled,
    compile_expression,
    evaluate_grid,
    try_evaluate,
    try_evaluate_exact,
)
from .expression import (
    BinaryOp,
    BinaryOperator,
    Call,
    Constant,
    Expression,
    Function,
    Negate,
    Number,
    Root,
    is_one,
)
from .logging_config import get_logger
from .polynomial import (
    Coefficients,
    build_polynomial,
    degree,
    divide_coefficients,
    rational_root_candidates,
    try_collect_coefficients,
)
from .rational import Rational
from .types import InexactDivision, NonFiniteResult
from .visitor import depends_on, single_variable

logger = get_logger("roots")


def dedupe_roots(roots: Iterable[Root]) -> List[Root]:
    """Drop roots that coincide after rounding; exact roots win. Sorted by value."""
    unique = {}
    for root in roots:
        key = (root.variable, round(root.to_float(), ROOT_ROUND_DIGITS))
        existing = unique.get(key)
        if existing is None or (root.is_exact and not existing.is_exact):
            unique[key] = root
    return sorted(unique.values(), key=lambda r: (r.variable, r.to_float()))


def _exact_sqrt(value: Rational) -> Optional[Rational]:
    if value < 0:
        return None
    num_root = math.isqrt(value.numerator)
    den_root = math.isqrt(value.denominator)
    if num_root * num_root == value.numerator and den_root * den_root == value.denominator:
        return Rational(num_root, den_root)
    return None


def quadratic_roots(a: Rational, b: Rational, c: Rational, variable: str) -> List[Root]:
    """Real roots of a*x^2 + b*x + c.

    Perfect-square discriminants give exact roots; otherwise the roots are
    float approximations. A negative discriminant gives no roots.
    """
    if a.is_zero:
        if b.is_zero:
            return []
        return [Root(variable, -c / b)]

    discriminant = b * b - Rational(4) * a * c
    if discriminant < 0:
        return []
    if discriminant.is_zero:
        return [Root(variable, -b / (Rational(2) * a))]

    exact = _exact_sqrt(discriminant)
    if exact is not None:
        values = [(-b - exact) / (Rational(2) * a), (-b + exact) / (Rational(2) * a)]
        return [Root(variable, v) for v in sorted(values)]

    sq = math.sqrt(discriminant.to_float())
    fa, fb = a.to_float(), b.to_float()
    values = [(-fb - sq) / (2 * fa), (-fb + sq) / (2 * fa)]
    return [Root(variable, v) for v in sorted(values)]


def bisect(
    function: Callable[[float], float],
    lo: float,
    hi: float,
    tolerance: float = BISECTION_TOLERANCE,
    max_iterations: int = MAX_BISECTION_ITERATIONS,
) -> Optional[float]:
    """Bisect a sign-changing bracket down to ``tolerance``.

    Returns the midpoint of the final bracket, or None when the bracket does
    not change sign or the function is undefined inside it.
    """
    try:
        f_lo = call_compiled(function, lo)
        f_hi = call_compiled(function, hi)
    except NonFiniteResult:
        return None
    if f_lo == 0:
        return lo
    if f_hi == 0:
        return hi
    if (f_lo < 0) == (f_hi < 0):
        return None

    for _ in range(max_iterations):
        if hi - lo <= tolerance:
            break
        mid = (lo + hi) / 2
        try:
            f_mid = call_compiled(function, mid)
        except NonFiniteResult:
            return None
        if f_mid == 0:
            return mid
        if (f_mid < 0) == (f_lo < 0):
            lo, f_lo = mid, f_mid
        else:
            hi = mid
    return (lo + hi) / 2


def scan_roots(
    expr: Expression,
    variable: str,
    lo: float = SCAN_INTERVAL_MIN,
    hi: float = SCAN_INTERVAL_MAX,
    step: float = SCAN_STEP,
) -> List[Root]:
    """Sample ``expr`` over a NumPy grid in one call and bisect every sign change.

    Samples where the function is undefined break the bracket chain, so poles
    are never bracketed from both sides. Bisected points must satisfy
    ``|f| <= ROOT_ACCEPT_TOLERANCE`` scaled by the bracket slope (when it
    exceeds 1), which rejects sign changes across a pole such as tan at pi/2.
    Roots found this way are approximate.
    """
    try:
        function = compile_expression(expr, variable)
    except (TypeError, ValueError, KeyError) as e:
        logger.debug(f"Cannot compile {expr} for scanning: {e}")
        return []

    points = int(round((hi - lo) / step)) + 1
    x_vals = np.linspace(lo, hi, points)
    y_vals = evaluate_grid(expr, variable, x_vals)

    found: List[Root] = [Root(variable, float(p)) for p in x_vals[y_vals == 0]]

    # Undefined samples are NaN, so brackets never straddle a domain gap
    signs = np.sign(y_vals)
    brackets = np.nonzero(signs[:-1] * signs[1:] < 0)[0]
    for i in brackets:
        a, b = float(x_vals[i]), float(x_vals[i + 1])
        candidate = bisect(function, a, b)
        if candidate is None:
            continue
        try:
            residual = abs(call_compiled(function, candidate))
        except NonFiniteResult:
            residual = math.inf
        slope = abs(y_vals[i + 1] - y_vals[i]) / (b - a)
        if residual <= ROOT_ACCEPT_TOLERANCE * max(1.0, slope):
            found.append(Root(variable, candidate))
        else:
            logger.debug(
                f"Rejected bracket near {candidate}: |f|={residual}",
                extra={"variable": variable},
            )

    return dedupe_roots(found)


def extract_linear(expr: Expression, variable: str) -> Optional[Tuple[Number, Number]]:
    """Return (k, b) when ``expr`` is k*variable + b with k != 0.

    Rational coefficients come from exact collection. Linear subtrees with
    float literals fall back to numeric sampling and give float coefficients.
    """
    coefficients = try_collect_coefficients(expr, variable)
    if coefficients is not None:
        if degree(coefficients) != 1:
            return None
        return coefficients[1], coefficients.get(0, Rational(0))

    samples = [try_evaluate(expr, variable, float(p)) for p in (0, 1, 2, -1)]
    if any(s is None for s in samples):
        return None
    b = samples[0]
    k = samples[1] - b
    if abs(k) <= ZERO_TOLERANCE:
        return None
    for point, sample in zip((2, -1), samples[2:]):
        if abs(k * point + b - sample) > ZERO_TOLERANCE * max(1.0, abs(sample)):
            return None
    return k, b


def _solve_linear(k: Number, b: Number, target: Number, variable: str) -> Root:
    if isinstance(k, Rational) and isinstance(b, Rational) and isinstance(target, Rational):
        return Root(variable, (target - b) / k)
    return Root(variable, (float(target) - float(b)) / float(k))


def _strip_scaling(expr: Expression) -> Expression:
    """Remove negation and nonzero constant factors, which do not move roots."""
    while True:
        if isinstance(expr, Negate):
            expr = expr.operand
        elif isinstance(expr, BinaryOp) and expr.op in (BinaryOperator.MUL, BinaryOperator.DIV):
            if isinstance(expr.right, Constant) and expr.right.value != 0:
                expr = expr.left
            elif (
                expr.op is BinaryOperator.MUL
                and isinstance(expr.left, Constant)
                and expr.left.value != 0
            ):
                expr = expr.right
            else:
                return expr
        else:
            return expr


def trigonometric_roots(expr: Expression, variable: str) -> List[Root]:
    """Principal zero of sin/tan/cos of a linear argument.

    sin and tan vanish where the argument is 0 (exact for rational k, b);
    cos vanishes where it is pi/2 (always approximate).
    """
    expr = _strip_scaling(expr)
    if not isinstance(expr, Call) or expr.fn not in (Function.SIN, Function.TAN, Function.COS):
        return []
    linear = extract_linear(expr.args[0], variable)
    if linear is None:
        return []
    k, b = linear
    target: Number = math.pi / 2 if expr.fn is Function.COS else Rational(0)
    return [_solve_linear(k, b, target, variable)]


def logarithmic_roots(expr: Expression, variable: str) -> List[Root]:
    """Zero of log(k*x + b), where the argument equals 1."""
    expr = _strip_scaling(expr)
    if not isinstance(expr, Call) or expr.fn is not Function.LOG:
        return []
    linear = extract_linear(expr.args[0], variable)
    if linear is None:
        return []
    return [_solve_linear(linear[0], linear[1], Rational(1), variable)]


def exponential_roots(expr: Expression, variable: str) -> List[Root]:
    """Zero of exp(k*x + b) - 1, where the argument equals 0."""
    expr = _strip_scaling(expr)
    if not (
        isinstance(expr, BinaryOp)
        and expr.op is BinaryOperator.SUB
        and isinstance(expr.left, Call)
        and expr.left.fn is Function.EXP
        and is_one(expr.right)
    ):
        return []
    linear = extract_linear(expr.left.args[0], variable)
    if linear is None:
        return []
    return [_solve_linear(linear[0], linear[1], Rational(0), variable)]


_RECOGNIZERS = (trigonometric_roots, logarithmic_roots, exponential_roots)


def _deflate(coefficients: Coefficients, root: Rational) -> Coefficients:
    """Divide out every power of (x - root)."""
    factor = {1: Rational(1)}
    if not root.is_zero:
        factor[0] = -root
    while degree(coefficients) >= 1:
        try:
            coefficients = divide_coefficients(coefficients, factor)
        except InexactDivision:
            break
    return coefficients


def _polynomial_roots(
    coefficients: Coefficients, expr: Expression, variable: str
) -> List[Root]:
    if degree(coefficients) <= 0:
        return []

    roots: List[Root] = []
    low = min(coefficients)
    if low > 0:
        roots.append(Root(variable, Rational(0)))
    reduced = {d - low: value for d, value in coefficients.items()}
    if degree(reduced) == 0:
        return roots

    found = []
    for candidate in rational_root_candidates(reduced):
        value = try_evaluate_exact(expr, variable, candidate)
        if value is not None and value.is_zero:
            found.append(candidate)
    roots.extend(Root(variable, r) for r in found)

    remaining = reduced
    for r in found:
        remaining = _deflate(remaining, r)
    if degree(remaining) == 2:
        roots.extend(
            quadratic_roots(
                remaining.get(2, Rational(0)),
                remaining.get(1, Rational(0)),
                remaining.get(0, Rational(0)),
                variable,
            )
        )
    elif degree(remaining) == 1:
        roots.append(Root(variable, -remaining.get(0, Rational(0)) / remaining[1]))
    elif degree(remaining) > 2:
        # No rational roots remain; the x^k and rational factors are divided out
        rest = build_polynomial(remaining, variable)
        logger.debug(f"No closed-form roots for {rest}; scanning numerically")
        roots.extend(scan_roots(rest, variable))
    return roots


def find_roots(expr: Expression, variable: Optional[str] = None) -> List[Root]:
    """Find the real roots of ``expr`` in ``variable``.

    Args:
        expr: Expression to solve for zero
        variable: Variable name; defaults to the expression's only free variable

    Returns:
        Deduplicated roots sorted by value. Exact roots carry Rational values,
        approximate ones carry floats.
    """
    if variable is None:
        variable = single_variable(expr)
        if variable is None:
            return []
    if not depends_on(expr, variable):
        return []

    coefficients = try_collect_coefficients(expr, variable)
    if coefficients is not None:
        return dedupe_roots(_polynomial_roots(coefficients, expr, variable))

    for recognizer in _RECOGNIZERS:
        roots = recognizer(expr, variable)
        if roots:
            return dedupe_roots(roots)

    logger.debug(f"No recognizer matched {expr}; scanning numerically")
    return scan_roots(expr, variable)
