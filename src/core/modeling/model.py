"""
Mutable Optimization Model.

This module provides an explicit model object that owns variables, linear
constraints and a linear objective, and supports modifying them in place
after the model has been built. ``solve()`` lowers the current model to
cvxpy and hands it to the conic solver.

Classes
-------
ObjectiveSense
    Minimize, maximize, or feasibility (no objective)
ModelConstraint
    Handle to a linear constraint owned by a Model
Model
    Mutable container and the full mutation API
ModelSolution
    Status, objective value and variable values from one solve

Notes
-----
Every operation checks that the variables and constraints it touches are
still valid members of this model and raises ``InvalidReferenceError``
otherwise. Bound and fix operations check ``BoundState`` first.

Linear constraints have the form (constants moved to the right-hand side):
    a1*x1 + a2*x2 + ... ≤ rhs  (or ≥, or =)

Examples
--------
>>> model = Model()
>>> x = model.add_variable("x", lower=0)
>>> y = model.add_variable("y", lower=0, upper=4)
>>> con = model.add_constraint(2 * x + y, "le", 10, name="capacity")
>>> model.set_objective("max", 3 * x + y)
>>> model.fix(y, 2.0, force=True)
>>> model.set_coefficient(con, x, 4.0)
>>> solution = model.solve()
>>> solution.value(x)
2.0
"""

import numbers
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Literal, Optional, Union

import cvxpy as cp
import numpy as np

from src.core.exceptions import (
    BoundConflictError,
    InvalidReferenceError,
    ModelError,
    SolverNonOptimalError,
)
from src.core.modeling.expressions import AffineExpression, BoundState, ModelVariable
from src.core.solver import SolverConfig, SolverOutcome, SolveStatus, solve_problem

ExpressionLike = Union[AffineExpression, ModelVariable, numbers.Real]


# ============================================================
# OBJECTIVE SENSE
# ============================================================


class ObjectiveSense(Enum):
    """Optimization sense of the objective."""

    MINIMIZE = "minimize"
    MAXIMIZE = "maximize"
    FEASIBILITY = "feasibility"


_SENSE_ALIASES = {
    "min": ObjectiveSense.MINIMIZE,
    "minimize": ObjectiveSense.MINIMIZE,
    "max": ObjectiveSense.MAXIMIZE,
    "maximize": ObjectiveSense.MAXIMIZE,
    "feasibility": ObjectiveSense.FEASIBILITY,
}


def _coerce_sense(sense: Union[ObjectiveSense, str]) -> ObjectiveSense:
    if isinstance(sense, ObjectiveSense):
        return sense
    if isinstance(sense, str) and sense.lower() in _SENSE_ALIASES:
        return _SENSE_ALIASES[sense.lower()]
    raise ValueError(
        f"Unknown objective sense: '{sense}'. "
        f"Must be 'min', 'max' or 'feasibility'."
    )


# ============================================================
# CONSTRAINT HANDLE
# ============================================================


@dataclass(eq=False)
class ModelConstraint:
    """
    Handle to a linear constraint.

    Attributes
    ----------
    name : str
        Display name
    index : int
        Creation order within the model, never reused
    terms : dict
        ModelVariable -> coefficient of the normalized left-hand side
    constraint_type : {'le', 'ge', 'eq'}
        Constraint type (≤, ≥, or =)
    rhs : float
        Right-hand side after moving constants across
    """

    name: str
    index: int
    model: object = field(repr=False)
    terms: Dict[ModelVariable, float] = field(default_factory=dict)
    constraint_type: Literal["le", "ge", "eq"] = "le"
    rhs: float = 0.0
    valid: bool = field(default=True, repr=False)

    def function(self) -> AffineExpression:
        """Left-hand side as a fresh expression."""
        return AffineExpression(dict(self.terms))

    def __str__(self) -> str:
        symbol = {"le": "<=", "ge": ">=", "eq": "=="}[self.constraint_type]
        return f"{self.name}: {self.function()} {symbol} {self.rhs:g}"


# ============================================================
# SOLUTION
# ============================================================


@dataclass
class ModelSolution:
    """
    Result from solving a Model.

    Attributes
    ----------
    status : SolveStatus
        Terminal solver state
    objective_value : float, optional
        Objective value including its constant; None unless OPTIMAL
    values : dict
        ModelVariable -> optimal value; empty unless OPTIMAL
    outcome : SolverOutcome
        Raw outcome (raw status, accuracy flag, solve time)
    """

    status: SolveStatus
    objective_value: Optional[float]
    values: Dict[ModelVariable, float]
    outcome: SolverOutcome

    @property
    def is_optimal(self) -> bool:
        return self.status is SolveStatus.OPTIMAL

    def require_optimal(self) -> "ModelSolution":
        """
        Return self if optimal, otherwise raise SolverNonOptimalError.
        """
        if not self.is_optimal:
            raise SolverNonOptimalError(
                f"Model did not solve to optimality: status "
                f"'{self.status.value}' (solver reported "
                f"'{self.outcome.raw_status}')",
                status=self.status,
            )
        return self

    def value(self, var: ModelVariable) -> float:
        """
        Optimal value of ``var``.

        Raises
        ------
        SolverNonOptimalError
            If the solve was not optimal
        InvalidReferenceError
            If the variable was not part of the solved model, or has been
            deleted since
        """
        self.require_optimal()
        if not var.valid:
            raise InvalidReferenceError(
                f"Variable '{var.name}' has been deleted from the model"
            )
        if var not in self.values:
            raise InvalidReferenceError(
                f"Variable '{var.name}' was not part of the solved model"
            )
        return self.values[var]


# ============================================================
# MODEL
# ============================================================


class Model:
    """
    Mutable optimization model with linear constraints and objective.

    Parameters
    ----------
    name : str, default='model'
        Display name

    Notes
    -----
    Each Model is independent; handles from one model are invalid in
    another.
    """

    def __init__(self, name: str = "model"):
        self.name = name
        self._variables: List[ModelVariable] = []
        self._constraints: List[ModelConstraint] = []
        self._objective = AffineExpression()
        self._sense = ObjectiveSense.FEASIBILITY
        self._next_variable_index = 0
        self._next_constraint_index = 0

    def __repr__(self) -> str:
        return (
            f"Model(name={self.name!r}, variables={self.num_variables}, "
            f"constraints={self.num_constraints}, sense={self._sense.value})"
        )

    # ------------------------------------------------------------
    # Validity
    # ------------------------------------------------------------

    def is_valid(self, entity: Union[ModelVariable, ModelConstraint]) -> bool:
        """True if ``entity`` belongs to this model and has not been deleted."""
        if not isinstance(entity, (ModelVariable, ModelConstraint)):
            return False
        return entity.model is self and entity.valid

    def _check_variable(self, var) -> ModelVariable:
        if not isinstance(var, ModelVariable):
            raise TypeError(f"Expected a ModelVariable, got {type(var).__name__}")
        if not self.is_valid(var):
            raise InvalidReferenceError(
                f"Variable '{var.name}' is not a valid reference in model "
                f"'{self.name}' (deleted or owned by another model)"
            )
        return var

    def _check_constraint(self, con) -> ModelConstraint:
        if not isinstance(con, ModelConstraint):
            raise TypeError(f"Expected a ModelConstraint, got {type(con).__name__}")
        if not self.is_valid(con):
            raise InvalidReferenceError(
                f"Constraint '{con.name}' is not a valid reference in model "
                f"'{self.name}' (deleted or owned by another model)"
            )
        return con

    def _check_expression(self, expr: ExpressionLike) -> AffineExpression:
        expr = AffineExpression.coerce(expr)
        for var in expr.terms:
            self._check_variable(var)
        return expr

    # ------------------------------------------------------------
    # Variables
    # ------------------------------------------------------------

    def add_variable(
        self,
        name: Optional[str] = None,
        lower: Optional[float] = None,
        upper: Optional[float] = None,
        fixed: Optional[float] = None,
    ) -> ModelVariable:
        """
        Add a decision variable.

        Parameters
        ----------
        name : str, optional
            Display name (defaults to ``x{index}``)
        lower, upper : float, optional
            Initial bounds
        fixed : float, optional
            Initial fixed value; cannot be combined with bounds

        Raises
        ------
        BoundConflictError
            If ``fixed`` is given together with a bound
        """
        if fixed is not None and (lower is not None or upper is not None):
            raise BoundConflictError(
                f"Variable '{name}' cannot be created both fixed and bounded"
            )

        index = self._next_variable_index
        self._next_variable_index += 1

        var = ModelVariable(
            name=name if name is not None else f"x{index}",
            index=index,
            model=self,
            lower=None if lower is None else _as_float(lower, "lower bound"),
            upper=None if upper is None else _as_float(upper, "upper bound"),
            fixed_value=None if fixed is None else _as_float(fixed, "fixed value"),
        )
        self._variables.append(var)
        return var

    def all_variables(self) -> List[ModelVariable]:
        """Live variables in creation order."""
        return list(self._variables)

    @property
    def num_variables(self) -> int:
        return len(self._variables)

    def variable_by_name(self, name: str) -> Optional[ModelVariable]:
        """First live variable with this name, or None."""
        for var in self._variables:
            if var.name == name:
                return var
        return None

    def bound_state(self, var: ModelVariable) -> BoundState:
        return self._check_variable(var).bound_state

    # ------------------------------------------------------------
    # Bounds
    # ------------------------------------------------------------

    def _check_not_fixed(self, var: ModelVariable, action: str) -> None:
        if var.bound_state is BoundState.FIXED:
            raise BoundConflictError(
                f"Cannot {action} of variable '{var.name}': it is fixed to "
                f"{var.fixed_value:g}. Call unfix() first."
            )

    def set_lower_bound(self, var: ModelVariable, value: float) -> None:
        """
        Set (or replace) the lower bound.

        Raises
        ------
        BoundConflictError
            If the variable is fixed
        """
        self._check_variable(var)
        self._check_not_fixed(var, "set lower bound")
        var.lower = _as_float(value, "lower bound")

    def has_lower_bound(self, var: ModelVariable) -> bool:
        return self._check_variable(var).lower is not None

    def lower_bound(self, var: ModelVariable) -> float:
        """
        Raises
        ------
        ModelError
            If the variable has no lower bound
        """
        self._check_variable(var)
        if var.lower is None:
            raise ModelError(f"Variable '{var.name}' does not have a lower bound")
        return var.lower

    def delete_lower_bound(self, var: ModelVariable) -> None:
        self._check_variable(var)
        if var.lower is None:
            raise ModelError(f"Variable '{var.name}' does not have a lower bound")
        var.lower = None

    def set_upper_bound(self, var: ModelVariable, value: float) -> None:
        """
        Set (or replace) the upper bound.

        Raises
        ------
        BoundConflictError
            If the variable is fixed
        """
        self._check_variable(var)
        self._check_not_fixed(var, "set upper bound")
        var.upper = _as_float(value, "upper bound")

    def has_upper_bound(self, var: ModelVariable) -> bool:
        return self._check_variable(var).upper is not None

    def upper_bound(self, var: ModelVariable) -> float:
        self._check_variable(var)
        if var.upper is None:
            raise ModelError(f"Variable '{var.name}' does not have an upper bound")
        return var.upper

    def delete_upper_bound(self, var: ModelVariable) -> None:
        self._check_variable(var)
        if var.upper is None:
            raise ModelError(f"Variable '{var.name}' does not have an upper bound")
        var.upper = None

    # ------------------------------------------------------------
    # Fixing
    # ------------------------------------------------------------

    def fix(self, var: ModelVariable, value: float, force: bool = False) -> None:
        """
        Fix a variable to a constant.

        Parameters
        ----------
        var : ModelVariable
            Variable to fix
        value : float
            Fixed value
        force : bool, default=False
            Delete existing bounds before fixing

        Raises
        ------
        BoundConflictError
            If the variable has a bound and ``force`` is False

        Notes
        -----
        Fixing an already fixed variable replaces its value. Bounds removed
        by ``force`` are not restored by ``unfix``.
        """
        self._check_variable(var)
        value = _as_float(value, "fixed value")
        if not np.isfinite(value):
            raise ValueError(f"Cannot fix variable '{var.name}' to {value}")

        if var.lower is not None or var.upper is not None:
            if not force:
                raise BoundConflictError(
                    f"Unable to fix variable '{var.name}' to {value:g} because it "
                    f"has existing bounds ({var.bound_state.value}). "
                    f"Use fix(var, value, force=True) to remove them."
                )
            var.lower = None
            var.upper = None

        var.fixed_value = value

    def unfix(self, var: ModelVariable) -> None:
        """
        Raises
        ------
        ModelError
            If the variable is not fixed
        """
        self._check_variable(var)
        if var.fixed_value is None:
            raise ModelError(f"Variable '{var.name}' is not fixed")
        var.fixed_value = None

    def is_fixed(self, var: ModelVariable) -> bool:
        return self._check_variable(var).fixed_value is not None

    def fix_value(self, var: ModelVariable) -> float:
        self._check_variable(var)
        if var.fixed_value is None:
            raise ModelError(f"Variable '{var.name}' is not fixed")
        return var.fixed_value

    # ------------------------------------------------------------
    # Constraints
    # ------------------------------------------------------------

    def add_constraint(
        self,
        expr: ExpressionLike,
        constraint_type: Literal["le", "ge", "eq"],
        rhs: float = 0.0,
        name: Optional[str] = None,
    ) -> ModelConstraint:
        """
        Add the linear constraint ``expr (≤|≥|=) rhs``.

        The constant part of ``expr`` is moved to the right-hand side, so
        ``2x + 1 <= 5`` is stored as ``2x <= 4``.

        Raises
        ------
        ValueError
            If constraint_type is not 'le', 'ge' or 'eq'
        InvalidReferenceError
            If ``expr`` uses a deleted or foreign variable
        """
        if constraint_type not in ("le", "ge", "eq"):
            raise ValueError(f"Unknown constraint type: {constraint_type}")

        expr = self._check_expression(expr)
        index = self._next_constraint_index
        self._next_constraint_index += 1

        con = ModelConstraint(
            name=name if name is not None else f"c{index}",
            index=index,
            model=self,
            terms=dict(expr.terms),
            constraint_type=constraint_type,
            rhs=_as_float(rhs, "right-hand side") - expr.constant,
        )
        self._constraints.append(con)
        return con

    def all_constraints(self) -> List[ModelConstraint]:
        """Live constraints in creation order."""
        return list(self._constraints)

    @property
    def num_constraints(self) -> int:
        return len(self._constraints)

    def constraint_by_name(self, name: str) -> Optional[ModelConstraint]:
        for con in self._constraints:
            if con.name == name:
                return con
        return None

    def set_coefficient(
        self, con: ModelConstraint, var: ModelVariable, value: float
    ) -> None:
        """
        Change the coefficient of ``var`` in the normalized constraint.

        A zero coefficient removes the term.
        """
        self._check_constraint(con)
        self._check_variable(var)
        value = _as_float(value, "coefficient")
        if value == 0:
            con.terms.pop(var, None)
        else:
            con.terms[var] = value

    def coefficient(self, con: ModelConstraint, var: ModelVariable) -> float:
        self._check_constraint(con)
        self._check_variable(var)
        return con.terms.get(var, 0.0)

    def set_rhs(self, con: ModelConstraint, value: float) -> None:
        self._check_constraint(con)
        con.rhs = _as_float(value, "right-hand side")

    def rhs(self, con: ModelConstraint) -> float:
        return self._check_constraint(con).rhs

    # ------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------

    def delete(self, entity: Union[ModelVariable, ModelConstraint]) -> None:
        """
        Delete a variable or constraint.

        Deleting a variable also removes its terms from every constraint
        and from the objective. Afterwards ``is_valid(entity)`` is False
        and any other operation on it raises ``InvalidReferenceError``.
        """
        if isinstance(entity, ModelConstraint):
            self._check_constraint(entity)
            self._constraints.remove(entity)
            entity.valid = False
            return

        var = self._check_variable(entity)
        for con in self._constraints:
            con.terms.pop(var, None)
        self._objective.remove_variable(var)
        self._variables.remove(var)
        var.valid = False

    # ------------------------------------------------------------
    # Objective
    # ------------------------------------------------------------

    def set_objective(
        self, sense: Union[ObjectiveSense, str], expr: ExpressionLike
    ) -> None:
        """
        Replace the objective sense and function.

        Nothing of the previous objective is kept.
        """
        sense = _coerce_sense(sense)
        expr = self._check_expression(expr)
        self._sense = sense
        self._objective = expr.copy()

    def set_objective_sense(self, sense: Union[ObjectiveSense, str]) -> None:
        """
        Change only the sense.

        Switching to FEASIBILITY discards the objective function.
        """
        sense = _coerce_sense(sense)
        self._sense = sense
        if sense is ObjectiveSense.FEASIBILITY:
            self._objective = AffineExpression()

    def set_objective_function(self, expr: ExpressionLike) -> None:
        """Replace only the objective function, keeping the sense."""
        self._objective = self._check_expression(expr).copy()

    def set_objective_coefficient(self, var: ModelVariable, value: float) -> None:
        """Change one objective coefficient in place."""
        self._check_variable(var)
        self._objective.set_coefficient(var, _as_float(value, "coefficient"))

    def objective_function(self) -> AffineExpression:
        """Copy of the current objective function."""
        return self._objective.copy()

    def objective_sense(self) -> ObjectiveSense:
        return self._sense

    # ------------------------------------------------------------
    # Solve
    # ------------------------------------------------------------

    def to_cvxpy(self):
        """
        Lower the live model to cvxpy.

        Returns
        -------
        problem : cp.Problem
        x : cp.Variable, shape (num_variables,)
            Column j corresponds to ``all_variables()[j]``

        Raises
        ------
        ModelError
            If the model has no variables
        """
        if not self._variables:
            raise ModelError(f"Model '{self.name}' has no variables to solve for")

        n = len(self._variables)
        position = {var: j for j, var in enumerate(self._variables)}
        x = cp.Variable(n, name="x")
        constraints = []

        for j, var in enumerate(self._variables):
            if var.fixed_value is not None:
                constraints.append(x[j] == var.fixed_value)
                continue
            if var.lower is not None and np.isfinite(var.lower):
                constraints.append(x[j] >= var.lower)
            if var.upper is not None and np.isfinite(var.upper):
                constraints.append(x[j] <= var.upper)

        for con in self._constraints:
            a = np.zeros(n)
            for var, coef in con.terms.items():
                a[position[var]] = coef
            lhs = a @ x
            if con.constraint_type == "le":
                constraints.append(lhs <= con.rhs)
            elif con.constraint_type == "ge":
                constraints.append(lhs >= con.rhs)
            else:
                constraints.append(lhs == con.rhs)

        c = np.zeros(n)
        for var, coef in self._objective.terms.items():
            c[position[var]] = coef
        objective_expr = c @ x + self._objective.constant

        if self._sense is ObjectiveSense.MAXIMIZE:
            objective = cp.Maximize(objective_expr)
        elif self._sense is ObjectiveSense.MINIMIZE:
            objective = cp.Minimize(objective_expr)
        else:
            objective = cp.Minimize(0)

        return cp.Problem(objective, constraints), x

    def solve(self, config: Optional[SolverConfig] = None) -> ModelSolution:
        """
        Solve the current model.

        Returns
        -------
        ModelSolution
            Status always populated; values only when optimal
        """
        problem, x = self.to_cvxpy()
        outcome = solve_problem(problem, config)

        values = {}
        objective_value = None
        if outcome.is_optimal and x.value is not None:
            values = {
                var: float(x.value[j]) for j, var in enumerate(self._variables)
            }
            objective_value = outcome.objective_value

        return ModelSolution(
            status=outcome.status,
            objective_value=objective_value,
            values=values,
            outcome=outcome,
        )


def _as_float(value, what: str) -> float:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise TypeError(f"{what} must be a real number, got {value!r}")
    value = float(value)
    if np.isnan(value):
        raise ValueError(f"{what} must not be NaN")
    return value
