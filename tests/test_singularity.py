"""Unit tests for singularity reduction, projection and merging."""

import math
import unittest

import pytest

from ricis_pkg.expression import (
    BinaryOp,
    BinaryOperator,
    ErrorInfinity,
    LazyInfinity,
    PoleInfinity,
    Root,
    ZeroInfinity,
    const,
    cos,
    log,
    var,
)
from ricis_pkg.rational import Rational
from ricis_pkg.singularity import (
    classic_projection,
    merge_singularities,
    reduce_singularity,
    roots_compatible,
)
from ricis_pkg.types import IndeterminateAmbiguous

x = var("x")
AT_ONE = (Root("x", Rational(1)),)
AT_TWO = (Root("x", Rational(2)),)


class TestReduceSingularity(unittest.TestCase):
    """Test Lazy -> Identity / Pole / Error."""

    def test_exact_zero_index_is_identity(self):
        node = reduce_singularity(LazyInfinity(x - 1, AT_ONE))
        self.assertIsInstance(node, ZeroInfinity)
        self.assertEqual(node.roots, AT_ONE)

    def test_nonzero_index_is_pole(self):
        node = reduce_singularity(LazyInfinity(x + 1, AT_ONE))
        self.assertIsInstance(node, PoleInfinity)
        self.assertEqual(node.numerator_roots, (Root("x", Rational(-1)),))

    def test_several_roots_all_zero(self):
        roots = (Root("x", Rational(-1)), Root("x", Rational(1)))
        node = reduce_singularity(LazyInfinity(x * x - 1, roots))
        self.assertIsInstance(node, ZeroInfinity)

    def test_several_roots_ambiguous(self):
        roots = (Root("x", Rational(-1)), Root("x", Rational(1)))
        node = reduce_singularity(LazyInfinity(x + 1, roots))
        self.assertIsInstance(node, ErrorInfinity)
        self.assertEqual(node.reason, "INDETERMINATE_AMBIGUOUS")

    def test_empty_roots_is_error(self):
        self.assertIsInstance(reduce_singularity(LazyInfinity(x, ())), ErrorInfinity)

    def test_numeric_fallback_pole(self):
        node = reduce_singularity(LazyInfinity(cos(x), AT_ONE))
        self.assertIsInstance(node, PoleInfinity)

    def test_non_finite_index_is_error(self):
        node = reduce_singularity(LazyInfinity(log(x), (Root("x", Rational(-1)),)))
        self.assertIsInstance(node, ErrorInfinity)
        self.assertEqual(node.reason, "NON_FINITE_RESULT")

    def test_numerically_zero_index_is_error(self):
        root = (Root("x", math.pi / 2),)
        node = reduce_singularity(LazyInfinity(cos(x), root))
        self.assertIsInstance(node, ErrorInfinity)

    def test_terminal_nodes_unchanged(self):
        pole = PoleInfinity(const(2), AT_ONE)
        self.assertIs(reduce_singularity(pole), pole)


class TestClassicProjection:
    """Test projection onto floating-point semantics."""

    def test_identity_projects_to_one(self):
        assert classic_projection(ZeroInfinity(AT_ONE)) == 1.0

    @pytest.mark.parametrize("c,expected", [(3, math.inf), (-3, -math.inf)])
    def test_pole_sign(self, c, expected):
        assert classic_projection(PoleInfinity(const(c), AT_TWO)) == expected

    def test_lazy_is_reduced_first(self):
        assert classic_projection(LazyInfinity(x - 2, AT_TWO)) == 1.0

    def test_error_raises(self):
        with pytest.raises(IndeterminateAmbiguous):
            classic_projection(ErrorInfinity(x, AT_ONE))


class TestMerging(unittest.TestCase):
    """Test singularity arithmetic."""

    def test_roots_compatible(self):
        self.assertTrue(roots_compatible(AT_ONE, (Root("x", 1.0 + 1e-12),)))
        self.assertFalse(roots_compatible(AT_ONE, AT_TWO))
        self.assertFalse(roots_compatible(AT_ONE, AT_ONE + AT_TWO))

    def test_sum_at_same_point(self):
        merged = merge_singularities(
            BinaryOperator.ADD, PoleInfinity(const(2), AT_ONE), PoleInfinity(const(3), AT_ONE)
        )
        self.assertEqual(merged, LazyInfinity(const(2) + const(3), AT_ONE))

    def test_quotient_drops_singularity(self):
        merged = merge_singularities(
            BinaryOperator.DIV, PoleInfinity(x, AT_ONE), PoleInfinity(const(3), AT_ONE)
        )
        self.assertEqual(merged, BinaryOp(BinaryOperator.DIV, x, const(3)))

    def test_identity_quotient_is_one(self):
        merged = merge_singularities(
            BinaryOperator.DIV, ZeroInfinity(AT_ONE), ZeroInfinity(AT_ONE)
        )
        self.assertEqual(merged, const(1))

    def test_scalar_product_both_sides(self):
        pole = PoleInfinity(x, AT_ONE)
        expected = LazyInfinity(x * 5, AT_ONE)
        self.assertEqual(merge_singularities(BinaryOperator.MUL, pole, const(5)), expected)
        self.assertEqual(merge_singularities(BinaryOperator.MUL, const(5), pole), expected)

    def test_scalar_quotient(self):
        merged = merge_singularities(BinaryOperator.DIV, PoleInfinity(x, AT_ONE), const(2))
        self.assertEqual(merged, LazyInfinity(x / 2, AT_ONE))

    def test_different_points_not_merged(self):
        left = PoleInfinity(const(1), AT_ONE)
        right = PoleInfinity(const(1), AT_TWO)
        self.assertIsNone(merge_singularities(BinaryOperator.ADD, left, right))

    def test_scalar_sum_not_merged(self):
        pole = PoleInfinity(const(1), AT_ONE)
        self.assertIsNone(merge_singularities(BinaryOperator.ADD, pole, const(1)))
