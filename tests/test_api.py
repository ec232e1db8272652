"""Test that API functions return typed result objects."""

import unittest
from fractions import Fraction

from ricis_pkg.api import (
    differentiate_expression,
    evaluate_expression,
    find_expression_roots,
    simplify_expression,
)
from ricis_pkg.expression import (
    ErrorInfinity,
    PoleInfinity,
    Root,
    ZeroInfinity,
    const,
    cos,
    log,
    power,
    sin,
    var,
)
from ricis_pkg.rational import Rational
from ricis_pkg.types import EvalResult, RootsResult, SimplifyResult

x = var("x")
y = var("y")


class TestSimplifyExpression(unittest.TestCase):
    """Test simplify_expression."""

    def test_returns_simplify_result(self):
        result = simplify_expression((x * x - 1) / (x - 1))
        self.assertIsInstance(result, SimplifyResult)
        self.assertTrue(result.ok)
        self.assertEqual(result.result, "x + 1")
        self.assertEqual(result.kind, "expression")
        self.assertIsNone(result.approx)

    def test_removable_singularity(self):
        result = simplify_expression(sin(x) / x)
        self.assertEqual(result.result, "1")
        self.assertEqual(result.approx, "1")

    def test_pole(self):
        result = simplify_expression(const(-3) / (x - 2))
        self.assertEqual(result.kind, "pole")
        self.assertEqual(result.approx, "-inf")
        self.assertIsInstance(result.expression, PoleInfinity)

    def test_identity(self):
        result = simplify_expression((x * x - 1) / (x * x - 1))
        self.assertEqual(result.kind, "identity")
        self.assertEqual(result.approx, "1")
        self.assertEqual(result.result, "∞_{0} at {x=-1, x=1}")

    def test_error_has_no_approximation(self):
        result = simplify_expression((x + 1) / (x * x - 1))
        self.assertEqual(result.kind, "error")
        self.assertIsNone(result.approx)

    def test_to_dict(self):
        data = simplify_expression(const(3) / (x - 2)).to_dict()
        self.assertEqual(data["ok"], True)
        self.assertEqual(data["kind"], "pole")
        self.assertEqual(data["result"], "∞_{3} when x=2")
        self.assertNotIn("expression", data)


class TestFindExpressionRoots(unittest.TestCase):
    """Test find_expression_roots."""

    def test_exact_and_approximate(self):
        result = find_expression_roots((x * x - 2) * (x - 1))
        self.assertIsInstance(result, RootsResult)
        self.assertTrue(result.ok)
        self.assertEqual(result.variable, "x")
        self.assertEqual(result.exact, ["1"])
        self.assertEqual(len(result.approx), 2)

    def test_multiple_variables_rejected(self):
        result = find_expression_roots(x * y)
        self.assertFalse(result.ok)
        self.assertIn("variable", result.error)

    def test_singularity_rejected(self):
        pole = PoleInfinity(const(1), (Root("x", Rational(1)),))
        self.assertFalse(find_expression_roots(pole + x).ok)


class TestEvaluateExpression(unittest.TestCase):
    """Test evaluate_expression."""

    def test_exact_value(self):
        result = evaluate_expression(x * x - 1, "x", Fraction(1, 2))
        self.assertIsInstance(result, EvalResult)
        self.assertTrue(result.exact)
        self.assertEqual(result.result, "-3/4")
        self.assertEqual(result.approx, "-0.75")

    def test_decimal_string_is_exact(self):
        result = evaluate_expression(x * 10, value="0.1")
        self.assertEqual(result.result, "1")

    def test_numeric_fallback(self):
        result = evaluate_expression(cos(x), value=0.5)
        self.assertTrue(result.ok)
        self.assertFalse(result.exact)
        self.assertAlmostEqual(float(result.approx), 0.8775825619)

    def test_undefined_value(self):
        result = evaluate_expression(log(x), value=-1)
        self.assertFalse(result.ok)
        self.assertEqual(result.error_code, "NON_FINITE_RESULT")

    def test_unbound_variable(self):
        result = evaluate_expression(x + 1)
        self.assertFalse(result.ok)
        self.assertEqual(result.error_code, "UNBOUND_VARIABLE")

    def test_singularity_projection(self):
        identity = ZeroInfinity((Root("x", Rational(0)),))
        self.assertEqual(evaluate_expression(identity).approx, "1")

    def test_error_singularity(self):
        error = ErrorInfinity(x, (Root("x", Rational(1)),))
        result = evaluate_expression(error)
        self.assertFalse(result.ok)
        self.assertEqual(result.error_code, "INDETERMINATE_AMBIGUOUS")

    def test_to_dict(self):
        data = evaluate_expression(power(x, 2), value=3).to_dict()
        self.assertEqual(data, {"ok": True, "exact": True, "result": "9", "approx": "9"})


class TestDifferentiateExpression(unittest.TestCase):
    """Test differentiate_expression."""

    def test_polynomial(self):
        result = differentiate_expression(power(x, 3))
        self.assertTrue(result.ok)
        self.assertEqual(result.result, "3 * x^2")

    def test_trig(self):
        result = differentiate_expression(sin(x))
        self.assertIn("cos", result.result)

    def test_no_variable(self):
        self.assertFalse(differentiate_expression(x * y).ok)


if __name__ == "__main__":
    unittest.main()
