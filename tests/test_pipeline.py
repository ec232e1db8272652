"""Integration tests for the three-pass simplification pipeline."""

import math
import unittest

import pytest

from ricis_pkg import phases
from ricis_pkg.expression import (
    BinaryOperator,
    Constant,
    ErrorInfinity,
    LazyInfinity,
    PoleInfinity,
    Root,
    ZeroInfinity,
    const,
    cos,
    exp,
    power,
    sin,
    tan,
    var,
)
from ricis_pkg.phases import (
    AlgebraicReduction,
    RicisTransform,
    StandardOperations,
    fold_binary,
    simplify,
)
from ricis_pkg.polynomial import collect_coefficients
from ricis_pkg.rational import Rational
from ricis_pkg.singularity import classic_projection

x = var("x")
y = var("y")


class TestSimplifyProperties(unittest.TestCase):
    """End-to-end behaviour of simplify."""

    def test_removable_polynomial_division(self):
        self.assertEqual(simplify((x * x - 1) / (x - 1)), x + 1)

    def test_exact_quotient_restores_dividend(self):
        p = power(x, 3) - x * 2 + 4
        # p(-2) = -8 + 4 + 4 = 0
        quotient = simplify(p / (x + 2))
        self.assertEqual(
            collect_coefficients(quotient * (x + 2), "x"), collect_coefficients(p, "x")
        )

    def test_equal_operands_without_roots(self):
        self.assertEqual(simplify((x * x + 1) / (x * x + 1)), Constant(1))
        self.assertEqual(simplify(exp(x) / exp(x)), Constant(1))

    def test_equal_operands_with_roots_is_identity(self):
        result = simplify((x * x - 1) / (x * x - 1))
        self.assertIsInstance(result, ZeroInfinity)
        self.assertEqual(
            result.roots, (Root("x", Rational(-1)), Root("x", Rational(1)))
        )
        self.assertEqual(classic_projection(result), 1.0)

    def test_sin_over_x(self):
        self.assertEqual(simplify(sin(x) / x), Constant(1))

    def test_x_over_sin(self):
        self.assertEqual(simplify(x / sin(x)), Constant(1))

    def test_tan_over_x(self):
        self.assertEqual(simplify(tan(x) / x), Constant(1))

    def test_pole_projection_sign(self):
        for c, expected in ((3, math.inf), (-3, -math.inf)):
            with self.subTest(c=c):
                result = simplify(const(c) / (x - 2))
                self.assertIsInstance(result, PoleInfinity)
                self.assertEqual(result.roots, (Root("x", Rational(2)),))
                self.assertEqual(classic_projection(result), expected)

    def test_pole_at_approximate_root(self):
        result = simplify(const(1) / cos(x))
        self.assertIsInstance(result, PoleInfinity)
        self.assertAlmostEqual(result.roots[0].to_float(), math.pi / 2)

    def test_ambiguous_multi_root_is_error(self):
        result = simplify((x + 1) / (x * x - 1))
        self.assertIsInstance(result, ErrorInfinity)

    def test_non_vanishing_denominator_left_alone(self):
        expr = x / (x * x + 1)
        self.assertEqual(simplify(expr), expr)

    def test_folding(self):
        self.assertEqual(simplify(x * 1 + 0), x)
        self.assertEqual(simplify(-(-x)), x)
        self.assertEqual(simplify(const(1) / 2 + const(1) / 3), Constant(Rational(5, 6)))
        self.assertEqual(simplify(x * 0 + y), y)

    def test_singularity_arithmetic_same_point(self):
        result = simplify(const(2) / (x - 1) + const(3) / (x - 1))
        self.assertIsInstance(result, PoleInfinity)
        self.assertEqual(result.index, Constant(5))

    def test_singularities_at_different_points_stay_separate(self):
        result = simplify(const(1) / (x - 1) + const(1) / (x - 2))
        self.assertIsInstance(result.left, PoleInfinity)
        self.assertIsInstance(result.right, PoleInfinity)

    def test_identity_over_identity(self):
        identity = (x * x - 1) / (x * x - 1)
        self.assertEqual(simplify(identity / identity), Constant(1))

    def test_denominator_with_power_of_x_and_irrational_root(self):
        # x^4 - 2x vanishes at 0 and at the cube root of 2
        result = simplify(const(1) / (power(x, 4) - x * 2))
        self.assertIsInstance(result, ErrorInfinity)
        self.assertEqual(len(result.roots), 2)
        self.assertEqual(result.roots[0], Root("x", Rational(0)))
        self.assertAlmostEqual(result.roots[1].to_float(), 2 ** (1 / 3), places=5)

    def test_rendering_of_result(self):
        self.assertEqual(str(simplify(const(3) / (x - 2))), "∞_{3} when x=2")


class TestIdempotence:
    """simplify(simplify(e)) == simplify(e)."""

    @pytest.mark.parametrize(
        "expr",
        [
            (x * x - 1) / (x - 1),
            (x * x - 1) / (x * x - 1),
            sin(x) / x,
            const(3) / (x - 2),
            (x + 1) / (x * x - 1),
            x / (x * x + 1),
            const(1) / (x - 1) + const(1) / (x - 2),
            x * 1 + 0,
            ((x * x - 1) / (x * x - 1)) / ((x * x - 1) / (x * x - 1)),
            const(1) / (power(x, 4) - x * 2),
        ],
    )
    def test_idempotent(self, expr):
        once = simplify(expr)
        assert simplify(once) == once


class TestPasses(unittest.TestCase):
    """Each pass in isolation."""

    def test_algebraic_reduction_emits_sentinel(self):
        result = AlgebraicReduction().visit(sin(x) / x)
        self.assertIsInstance(result, LazyInfinity)
        self.assertEqual(result.denominator, x)
        self.assertEqual(result.roots, (Root("x", Rational(0)),))

    def test_algebraic_reduction_skips_non_polynomial_denominator(self):
        expr = x / sin(x)
        self.assertIs(AlgebraicReduction().visit(expr), expr)

    def test_ricis_transform_builds_lazy(self):
        result = RicisTransform().visit(const(1) / (x * x - 4))
        self.assertEqual(
            result,
            LazyInfinity(const(1), (Root("x", Rational(-2)), Root("x", Rational(2)))),
        )

    def test_standard_operations_reduce_lazy(self):
        result = StandardOperations().visit(LazyInfinity(x * 1, (Root("x", Rational(3)),)))
        self.assertEqual(result, PoleInfinity(x, (Root("x", Rational(3)),)))

    def test_standard_operations_leave_division_by_zero(self):
        expr = const(1) / const(0)
        self.assertEqual(StandardOperations().visit(expr), expr)

    def test_fold_binary(self):
        self.assertEqual(fold_binary(BinaryOperator.SUB, x, const(0)), x)
        self.assertEqual(fold_binary(BinaryOperator.DIV, x, const(1)), x)
        self.assertIsNone(fold_binary(BinaryOperator.ADD, x, y))


class TestFaultTolerance:
    """A failing pass must not stop the pipeline."""

    def test_failing_pass_is_skipped(self, monkeypatch, caplog):
        def explode(self, node):
            raise RuntimeError("boom")

        monkeypatch.setattr(RicisTransform, "visit_BinaryOp", explode)
        with caplog.at_level("WARNING", logger="ricis.phases"):
            result = simplify((x * 1) / (x * x + 1))
        assert result == x / (x * x + 1)
        assert "RicisTransform failed" in caplog.text
        assert [r.phase for r in caplog.records] == ["RicisTransform"]

    def test_simplify_never_raises(self, monkeypatch):
        def explode(self, expr):
            raise ValueError("broken")

        monkeypatch.setattr(phases.AlgebraicReduction, "visit", explode)
        assert simplify(x + 0) == x
