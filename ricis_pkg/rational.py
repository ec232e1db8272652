"""Exact rational arithmetic.

Values are held as ``sympy.Rational`` in lowest terms with a positive
denominator. Inputs are parsed exactly through ``fractions.Fraction`` first,
so "0.1" is 1/10 and never a binary float. Mixing a Rational with a float is
refused rather than silently rounded, and division by zero raises
``DivisionByZero`` instead of producing sympy's complex infinity.
"""

from __future__ import annotations

import math
from decimal import Decimal
from fractions import Fraction
from functools import total_ordering
from typing import Union

import sympy as sp

from .types import DivisionByZero

RationalLike = Union["Rational", int, Fraction, Decimal, str]


def _to_fraction(value) -> Fraction:
    if isinstance(value, Rational):
        return value.to_fraction()
    if isinstance(value, bool):
        raise TypeError("bool is not a rational value")
    if isinstance(value, (int, Fraction)):
        return Fraction(value)
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise ValueError(f"Cannot convert non-finite decimal {value} to Rational")
        return Fraction(value)
    if isinstance(value, str):
        # Fraction parses decimal literals ("0.1", "1e-3") and "p/q" exactly
        return Fraction(value.strip())
    if isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            raise ValueError(f"Float {value!r} has no exact rational form")
        return Fraction(int(value))
    raise TypeError(f"Unsupported rational value type: {type(value).__name__}")


def _sympy_value(value: Fraction) -> sp.Rational:
    return sp.Rational(value.numerator, value.denominator)


def _coerce(value):
    if isinstance(value, Rational):
        return value._value
    if isinstance(value, int) and not isinstance(value, bool):
        return sp.Integer(value)
    if isinstance(value, Fraction):
        return _sympy_value(value)
    return None


@total_ordering
class Rational:
    """Arbitrary-precision fraction in lowest terms."""

    __slots__ = ("_value",)

    def __init__(self, numerator: RationalLike = 0, denominator: RationalLike = 1):
        num = _to_fraction(numerator)
        den = _to_fraction(denominator)
        if den == 0:
            raise DivisionByZero(f"Rational with zero denominator: {numerator}/0")
        self._value = _sympy_value(num / den)

    @classmethod
    def _wrap(cls, value: sp.Rational) -> "Rational":
        obj = cls.__new__(cls)
        obj._value = value
        return obj

    @classmethod
    def from_int(cls, value: int) -> "Rational":
        return cls._wrap(sp.Integer(value))

    @classmethod
    def from_decimal(cls, value: Union[Decimal, str]) -> "Rational":
        """Exact conversion from a decimal literal, e.g. "0.1" -> 1/10."""
        if isinstance(value, str):
            value = Decimal(value)
        return cls._wrap(_sympy_value(_to_fraction(value)))

    @classmethod
    def from_float(cls, value: float) -> "Rational":
        """Accepts integral-valued floats only; anything else raises ValueError."""
        return cls._wrap(_sympy_value(_to_fraction(float(value))))

    @classmethod
    def from_sympy(cls, value) -> "Rational":
        """Wrap a sympy Rational/Integer; other sympy numbers raise TypeError."""
        if not isinstance(value, sp.Rational):
            raise TypeError(f"Not an exact sympy rational: {value!r}")
        return cls._wrap(value)

    @property
    def numerator(self) -> int:
        return int(self._value.p)

    @property
    def denominator(self) -> int:
        return int(self._value.q)

    @property
    def is_zero(self) -> bool:
        return self._value.p == 0

    @property
    def is_one(self) -> bool:
        return self._value.p == 1 and self._value.q == 1

    @property
    def is_integer(self) -> bool:
        return self._value.q == 1

    def to_fraction(self) -> Fraction:
        return Fraction(self.numerator, self.denominator)

    def to_sympy(self) -> sp.Rational:
        return self._value

    def to_float(self) -> float:
        """Best-effort float conversion. Overflow saturates to a signed infinity."""
        try:
            return self.numerator / self.denominator
        except OverflowError:
            return math.copysign(math.inf, self.numerator)

    def __add__(self, other):
        value = _coerce(other)
        if value is None:
            return NotImplemented
        return Rational._wrap(self._value + value)

    __radd__ = __add__

    def __sub__(self, other):
        value = _coerce(other)
        if value is None:
            return NotImplemented
        return Rational._wrap(self._value - value)

    def __rsub__(self, other):
        value = _coerce(other)
        if value is None:
            return NotImplemented
        return Rational._wrap(value - self._value)

    def __mul__(self, other):
        value = _coerce(other)
        if value is None:
            return NotImplemented
        return Rational._wrap(self._value * value)

    __rmul__ = __mul__

    def __truediv__(self, other):
        value = _coerce(other)
        if value is None:
            return NotImplemented
        if value == 0:
            raise DivisionByZero(f"Division of {self} by zero")
        return Rational._wrap(self._value / value)

    def __rtruediv__(self, other):
        value = _coerce(other)
        if value is None:
            return NotImplemented
        if self.is_zero:
            raise DivisionByZero(f"Division of {other} by zero")
        return Rational._wrap(value / self._value)

    def __pow__(self, exponent):
        if not isinstance(exponent, int) or isinstance(exponent, bool):
            return NotImplemented
        if exponent < 0 and self.is_zero:
            raise DivisionByZero("Zero raised to a negative power")
        return Rational._wrap(self._value**exponent)

    def __neg__(self) -> "Rational":
        return Rational._wrap(-self._value)

    def __pos__(self) -> "Rational":
        return self

    def __abs__(self) -> "Rational":
        return Rational._wrap(abs(self._value))

    def __bool__(self) -> bool:
        return not self.is_zero

    def __int__(self) -> int:
        return int(self._value)

    def __float__(self) -> float:
        return self.to_float()

    # Comparisons go through Fraction so that floats compare by value
    def __eq__(self, other) -> bool:
        if isinstance(other, Rational):
            return self._value == other._value
        if isinstance(other, (int, Fraction, float)):
            return self.to_fraction() == other
        return NotImplemented

    def __lt__(self, other) -> bool:
        if isinstance(other, Rational):
            return bool(self._value < other._value)
        if isinstance(other, (int, Fraction, float)):
            return self.to_fraction() < other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.to_fraction())

    def __repr__(self) -> str:
        if self.is_integer:
            return f"Rational({self.numerator})"
        return f"Rational({self.numerator}, {self.denominator})"

    def __str__(self) -> str:
        if self.is_integer:
            return str(self.numerator)
        return f"{self.numerator}/{self.denominator}"


ZERO = Rational(0)
ONE = Rational(1)
