"""Unit tests for exact and numeric evaluation."""

import math
import unittest

import numpy as np
import pytest
import sympy as sp

from ricis_pkg.evaluator import (
    evaluate,
    evaluate_grid,
    evaluate_point,
    to_sympy,
    try_evaluate,
    try_evaluate_exact,
)
from ricis_pkg.expression import PoleInfinity, Root, const, cos, log, power, sin, sqrt, tan, var
from ricis_pkg.rational import Rational
from ricis_pkg.types import NonFiniteResult

x = var("x")


class TestExactEvaluation(unittest.TestCase):
    """Test the exact evaluator."""

    def test_polynomial_at_rational_point(self):
        value = try_evaluate_exact(x * x - 1, "x", Rational(1, 2))
        self.assertEqual(value, Rational(-3, 4))

    def test_trig_zero_identities(self):
        self.assertEqual(try_evaluate_exact(sin(x), "x", 0), Rational(0))
        self.assertEqual(try_evaluate_exact(tan(x * 2), "x", 0), Rational(0))
        self.assertEqual(try_evaluate_exact(cos(x), "x", 0), Rational(1))

    def test_refuses_transcendental_values(self):
        self.assertIsNone(try_evaluate_exact(sin(x), "x", 1))
        self.assertIsNone(try_evaluate_exact(log(x), "x", 1))

    def test_refuses_inexact_literals(self):
        self.assertIsNone(try_evaluate_exact(x * 0.5, "x", 1))
        self.assertEqual(try_evaluate_exact(x * 2.0, "x", 1), Rational(2))

    def test_refuses_fractional_powers(self):
        self.assertIsNone(try_evaluate_exact(power(x, "1/2"), "x", 4))
        self.assertEqual(try_evaluate_exact(power(x, 3), "x", Rational(-2)), Rational(-8))

    def test_division_by_zero_is_unevaluable(self):
        self.assertIsNone(try_evaluate_exact(const(1) / x, "x", 0))

    def test_unbound_variable(self):
        self.assertIsNone(try_evaluate_exact(x + 1))

    def test_singularity_is_unevaluable(self):
        pole = PoleInfinity(const(1), (Root("x", Rational(0)),))
        self.assertIsNone(try_evaluate_exact(pole + 1))


class TestNumericEvaluation:
    """Test the SymPy-compiled numeric path."""

    def test_evaluate(self):
        assert evaluate(sin(x) + 1, "x", math.pi / 2) == pytest.approx(2.0)

    def test_sympy_bridge_matches(self):
        expr = (x * x - 1) / (x + 2)
        converted = to_sympy(expr)
        assert sp.simplify(converted - (sp.Symbol("x") ** 2 - 1) / (sp.Symbol("x") + 2)) == 0

    @pytest.mark.parametrize(
        "expr,point",
        [
            (const(1) / x, 0.0),
            (log(x), -1.0),
            (sqrt(x), -4.0),
        ],
    )
    def test_undefined_values_raise(self, expr, point):
        with pytest.raises(NonFiniteResult):
            evaluate(expr, "x", point)

    def test_try_evaluate_returns_none(self):
        assert try_evaluate(log(x), "x", 0.0) is None

    def test_evaluate_point_exact_first(self):
        assert evaluate_point(x * x, "x", Rational(1, 3)) == Rational(1, 9)

    def test_evaluate_point_falls_back_to_float(self):
        value = evaluate_point(cos(x), "x", Rational(1))
        assert isinstance(value, float)
        assert value == pytest.approx(math.cos(1))


class TestGridEvaluation:
    """Test whole-grid NumPy evaluation."""

    def test_matches_pointwise_values(self):
        grid = np.linspace(-2.0, 2.0, 9)
        values = evaluate_grid(x * x - 1, "x", grid)
        assert values == pytest.approx(grid * grid - 1)

    def test_undefined_samples_are_nan(self):
        grid = np.array([-1.0, 0.0, 1.0, math.e])
        values = evaluate_grid(log(x), "x", grid)
        assert np.isnan(values[0])
        assert np.isnan(values[1])
        assert values[2:] == pytest.approx([0.0, 1.0])

    def test_pole_sample_is_nan(self):
        values = evaluate_grid(const(1) / x, "x", np.array([-1.0, 0.0, 2.0]))
        assert np.isnan(values[1])
        assert values[2] == pytest.approx(0.5)

    def test_constant_is_broadcast(self):
        values = evaluate_grid(const(3), "x", np.zeros(4))
        assert values.shape == (4,)
        assert list(values) == [3.0, 3.0, 3.0, 3.0]

    def test_singularity_cannot_be_sampled(self):
        pole = PoleInfinity(const(1), (Root("x", Rational(0)),))
        with pytest.raises(TypeError):
            evaluate_grid(pole, "x", np.zeros(2))
