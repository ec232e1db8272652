"""Error kinds and result dataclasses for consistent API responses."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


class RicisError(Exception):
    """Base class for simplifier errors. Carries a stable error code."""

    default_code = "RICIS_ERROR"

    def __init__(self, message: str, code: str | None = None):
        self.message = message
        self.code = code or self.default_code
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class DivisionByZero(RicisError, ZeroDivisionError):
    """Raised when rational arithmetic divides by an exact zero."""

    default_code = "DIVISION_BY_ZERO"


class NotAPolynomial(RicisError):
    """Raised when an expression is not a polynomial in the requested variable."""

    default_code = "NOT_A_POLYNOMIAL"


class InexactDivision(RicisError):
    """Raised when polynomial long division leaves a nonzero remainder."""

    default_code = "INEXACT_DIVISION"


class IndeterminateAmbiguous(RicisError):
    """Raised when a singularity cannot be resolved to an identity or a pole."""

    default_code = "INDETERMINATE_AMBIGUOUS"


class NonFiniteResult(RicisError):
    """Raised when an evaluation is undefined, NaN or infinite."""

    default_code = "NON_FINITE_RESULT"


@dataclass
class SimplifyResult:
    """Result of simplifying an expression."""

    ok: bool
    result: str | None = None
    kind: str | None = None  # "expression", "lazy", "identity", "pole", "error"
    approx: str | None = None
    expression: Any = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result_dict: dict[str, Any] = {"ok": self.ok}
        if self.result is not None:
            result_dict["result"] = self.result
        if self.kind is not None:
            result_dict["kind"] = self.kind
        if self.approx is not None:
            result_dict["approx"] = self.approx
        if self.error is not None:
            result_dict["error"] = self.error
        return result_dict

    def __repr__(self) -> str:
        if not self.ok:
            return f"SimplifyResult(ok=False, error={self.error!r})"
        parts = [f"ok={self.ok}", f"result={self.result!r}", f"kind={self.kind!r}"]
        if self.approx is not None:
            parts.append(f"approx={self.approx!r}")
        return f"SimplifyResult({', '.join(parts)})"


@dataclass
class RootsResult:
    """Result of searching for the roots of an expression."""

    ok: bool
    variable: str | None = None
    exact: list[str] | None = None
    approx: list[str] | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result_dict: dict[str, Any] = {"ok": self.ok}
        if self.variable is not None:
            result_dict["variable"] = self.variable
        if self.exact is not None:
            result_dict["exact"] = self.exact
        if self.approx is not None:
            result_dict["approx"] = self.approx
        if self.error is not None:
            result_dict["error"] = self.error
        return result_dict

    def __repr__(self) -> str:
        if not self.ok:
            return f"RootsResult(ok=False, error={self.error!r})"
        return (
            f"RootsResult(ok={self.ok}, variable={self.variable!r}, "
            f"exact={self.exact!r}, approx={self.approx!r})"
        )


@dataclass
class EvalResult:
    """Result of evaluating an expression at a point."""

    ok: bool
    result: str | None = None
    approx: str | None = None
    exact: bool = False
    error: str | None = None
    error_code: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result_dict: dict[str, Any] = {"ok": self.ok, "exact": self.exact}
        if self.result is not None:
            result_dict["result"] = self.result
        if self.approx is not None:
            result_dict["approx"] = self.approx
        if self.error is not None:
            result_dict["error"] = self.error
        if self.error_code is not None:
            result_dict["error_code"] = self.error_code
        return result_dict

    def __repr__(self) -> str:
        if not self.ok:
            return f"EvalResult(ok=False, error={self.error!r})"
        parts = [f"ok={self.ok}", f"exact={self.exact}"]
        if self.result is not None:
            parts.append(f"result={self.result!r}")
        if self.approx is not None:
            parts.append(f"approx={self.approx!r}")
        return f"EvalResult({', '.join(parts)})"
