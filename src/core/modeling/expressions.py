"""
Variables and Affine Expressions for Mutable Models.

Classes
-------
BoundState
    Tagged bound state of a variable
ModelVariable
    Handle to a decision variable owned by a Model
AffineExpression
    sum_j a_j x_j + c over ModelVariables

Notes
-----
Variables compare and hash by identity, so they can key coefficient
dictionaries. Only ``+``, ``-``, ``*`` and ``/`` (by a number) are
overloaded; comparison operators are not, and constraints are added
through ``Model.add_constraint`` with an explicit constraint type.
"""

import numbers
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Union


# ============================================================
# BOUND STATE
# ============================================================


class BoundState(Enum):
    """Bound configuration of a variable."""

    UNBOUNDED = "unbounded"
    LOWER_ONLY = "lower_only"
    UPPER_ONLY = "upper_only"
    BOUNDED = "bounded"
    FIXED = "fixed"


# ============================================================
# VARIABLE HANDLE
# ============================================================


@dataclass(eq=False)
class ModelVariable:
    """
    Handle to a decision variable.

    Bounds and fix values are mutated only through the owning ``Model``;
    reading them directly is fine.

    Attributes
    ----------
    name : str
        Display name (unique names are not enforced)
    index : int
        Creation order within the model, never reused
    lower : float, optional
        Lower bound, None if absent
    upper : float, optional
        Upper bound, None if absent
    fixed_value : float, optional
        Fixed value, None unless fixed
    """

    name: str
    index: int
    model: object = field(repr=False)
    lower: Optional[float] = None
    upper: Optional[float] = None
    fixed_value: Optional[float] = None
    valid: bool = field(default=True, repr=False)

    @property
    def bound_state(self) -> BoundState:
        if self.fixed_value is not None:
            return BoundState.FIXED
        if self.lower is not None and self.upper is not None:
            return BoundState.BOUNDED
        if self.lower is not None:
            return BoundState.LOWER_ONLY
        if self.upper is not None:
            return BoundState.UPPER_ONLY
        return BoundState.UNBOUNDED

    def __str__(self) -> str:
        return self.name

    # Arithmetic builds AffineExpressions

    def _as_expression(self) -> "AffineExpression":
        return AffineExpression({self: 1.0})

    def __add__(self, other):
        return self._as_expression() + other

    def __radd__(self, other):
        return self._as_expression() + other

    def __sub__(self, other):
        return self._as_expression() - other

    def __rsub__(self, other):
        return (-self._as_expression()) + other

    def __mul__(self, other):
        return self._as_expression() * other

    def __rmul__(self, other):
        return self._as_expression() * other

    def __truediv__(self, other):
        return self._as_expression() / other

    def __neg__(self):
        return -self._as_expression()


# ============================================================
# AFFINE EXPRESSIONS
# ============================================================


class AffineExpression:
    """
    Affine function of model variables: sum_j a_j x_j + c.

    Parameters
    ----------
    terms : dict, optional
        Mapping ModelVariable -> coefficient. Zero coefficients are dropped.
    constant : float, default=0.0
        Constant offset

    Examples
    --------
    >>> expr = 2 * x + y - 1
    >>> expr.coefficient(x), expr.constant
    (2.0, -1.0)
    """

    __hash__ = None

    def __init__(
        self, terms: Optional[Dict[ModelVariable, float]] = None, constant: float = 0.0
    ):
        self.terms: Dict[ModelVariable, float] = {}
        for var, coef in (terms or {}).items():
            if coef != 0:
                self.terms[var] = float(coef)
        self.constant = float(constant)

    @staticmethod
    def coerce(value: Union["AffineExpression", ModelVariable, numbers.Real]):
        """Convert a variable, number or expression to an AffineExpression."""
        if isinstance(value, AffineExpression):
            return value
        if isinstance(value, ModelVariable):
            return value._as_expression()
        if isinstance(value, numbers.Real):
            return AffineExpression(constant=float(value))
        raise TypeError(
            f"Cannot use object of type {type(value).__name__} in an affine expression"
        )

    def copy(self) -> "AffineExpression":
        return AffineExpression(dict(self.terms), self.constant)

    def coefficient(self, var: ModelVariable) -> float:
        return self.terms.get(var, 0.0)

    def variables(self) -> List[ModelVariable]:
        return list(self.terms)

    def set_coefficient(self, var: ModelVariable, value: float) -> None:
        """Set one coefficient in place (zero removes the term)."""
        if value == 0:
            self.terms.pop(var, None)
        else:
            self.terms[var] = float(value)

    def remove_variable(self, var: ModelVariable) -> None:
        self.terms.pop(var, None)

    def __add__(self, other):
        if not isinstance(other, (AffineExpression, ModelVariable, numbers.Real)):
            return NotImplemented
        other = AffineExpression.coerce(other)
        terms = dict(self.terms)
        for var, coef in other.terms.items():
            terms[var] = terms.get(var, 0.0) + coef
        return AffineExpression(terms, self.constant + other.constant)

    __radd__ = __add__

    def __neg__(self):
        return AffineExpression(
            {var: -coef for var, coef in self.terms.items()}, -self.constant
        )

    def __sub__(self, other):
        if not isinstance(other, (AffineExpression, ModelVariable, numbers.Real)):
            return NotImplemented
        return self + (-AffineExpression.coerce(other))

    def __rsub__(self, other):
        if not isinstance(other, (ModelVariable, numbers.Real)):
            return NotImplemented
        return (-self) + other

    def __mul__(self, other):
        if not isinstance(other, numbers.Real):
            # Only affine results are representable
            return NotImplemented
        return AffineExpression(
            {var: coef * other for var, coef in self.terms.items()},
            self.constant * other,
        )

    __rmul__ = __mul__

    def __truediv__(self, other):
        if not isinstance(other, numbers.Real):
            return NotImplemented
        return self * (1.0 / other)

    def __eq__(self, other):
        if not isinstance(other, AffineExpression):
            return NotImplemented
        return self.terms == other.terms and self.constant == other.constant

    def __repr__(self) -> str:
        parts = [f"{coef:g} {var.name}" for var, coef in self.terms.items()]
        if self.constant != 0 or not parts:
            parts.append(f"{self.constant:g}")
        return " + ".join(parts).replace("+ -", "- ")
