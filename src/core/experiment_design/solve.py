"""
High-Level API for Convex Experiment Design.

This module provides the user-facing functions for solving experiment
design problems: formulate, hand off to the conic solver, and package the
allocation for reporting.

Classes
-------
DesignResult
    Container for a solved (or failed) design problem

Functions
---------
solve_design_problem
    Solve an already formulated problem
design_experiment
    Formulate and solve one scalarization
run_design_study
    Solve several scalarizations on the same inputs
format_design_report
    Objective value and allocation vector as printable text
"""

from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Union

import numpy as np
import pandas as pd

from src.core.exceptions import SolverNonOptimalError
from src.core.experiment_design.formulation import (
    ExperimentDesignProblem,
    ScalarizationCriterion,
    formulate_design_problem,
)
from src.core.experiment_design.vectors import ExperimentVectorSet
from src.core.solver import SolverConfig, SolverOutcome, SolveStatus, solve_problem


# ============================================================
# RESULT CONTAINER
# ============================================================


@dataclass
class DesignResult:
    """
    Result from solving an experiment design problem.

    Attributes
    ----------
    criterion_type : str
        Scalarization used ('A-optimal', 'E-optimal', 'D-optimal')
    status : SolveStatus
        Terminal solver state
    objective_value : float, optional
        Optimal objective; None unless status is OPTIMAL
    allocation : np.ndarray, shape (p,), optional
        Optimal allocation, clipped to [0, cap]; None unless OPTIMAL
    auxiliary_values : dict
        Optimal values of auxiliary variables ('u' or 't')
    budget : float
        Total budget n
    caps : np.ndarray, shape (p,)
        Per-experiment caps
    outcome : SolverOutcome
        Raw outcome (raw status, accuracy flag, solve time)
    """

    criterion_type: str
    status: SolveStatus
    objective_value: Optional[float]
    allocation: Optional[np.ndarray]
    auxiliary_values: Dict[str, np.ndarray]
    budget: float
    caps: np.ndarray
    outcome: SolverOutcome

    @property
    def is_optimal(self) -> bool:
        return self.status is SolveStatus.OPTIMAL

    def require_optimal(self) -> "DesignResult":
        """
        Return self if optimal, otherwise raise.

        Raises
        ------
        SolverNonOptimalError
            If the solver ended infeasible, unbounded or in error
        """
        if not self.is_optimal:
            raise SolverNonOptimalError(
                f"{self.criterion_type} design did not solve to optimality: "
                f"status '{self.status.value}' (solver reported "
                f"'{self.outcome.raw_status}')",
                status=self.status,
            )
        return self

    def to_frame(self) -> pd.DataFrame:
        """
        Allocation as a DataFrame with columns Experiment, Allocation, Cap.

        Raises
        ------
        SolverNonOptimalError
            If no allocation is available
        """
        self.require_optimal()
        return pd.DataFrame(
            {
                "Experiment": np.arange(1, len(self.allocation) + 1),
                "Allocation": self.allocation,
                "Cap": self.caps,
            }
        )


# ============================================================
# SOLVE
# ============================================================


def solve_design_problem(
    formulated: ExperimentDesignProblem, config: Optional[SolverConfig] = None
) -> DesignResult:
    """
    Solve a formulated design problem.

    Parameters
    ----------
    formulated : ExperimentDesignProblem
        Output of ``formulate_design_problem``
    config : SolverConfig, optional
        Solver settings

    Returns
    -------
    DesignResult
        Status always populated; values only when optimal

    Notes
    -----
    Non-optimal statuses are returned, not raised. Call
    ``require_optimal()`` to turn them into ``SolverNonOptimalError``.
    """
    outcome = solve_problem(formulated.problem, config)

    allocation = None
    auxiliary_values = {}
    if outcome.is_optimal and formulated.allocation.value is not None:
        # Solver round-off can leave entries a hair outside [0, cap]
        allocation = np.clip(
            np.asarray(formulated.allocation.value, dtype=float).ravel(),
            0.0,
            formulated.caps,
        )
        auxiliary_values = {
            name: np.asarray(var.value, dtype=float)
            for name, var in formulated.auxiliary.items()
            if var.value is not None
        }

    return DesignResult(
        criterion_type=formulated.criterion.name,
        status=outcome.status,
        objective_value=outcome.objective_value,
        allocation=allocation,
        auxiliary_values=auxiliary_values,
        budget=formulated.budget,
        caps=formulated.caps,
        outcome=outcome,
    )


def design_experiment(
    vectors: ExperimentVectorSet,
    budget: float,
    cap: Union[float, np.ndarray],
    criterion: Union[str, ScalarizationCriterion] = "D",
    config: Optional[SolverConfig] = None,
) -> DesignResult:
    """
    Formulate and solve one experiment design problem.

    Examples
    --------
    >>> vectors = generate_experiment_vectors(q=4, p=8, seed=42)
    >>> result = design_experiment(vectors, budget=12, cap=3, criterion='E')
    >>> result.status
    <SolveStatus.OPTIMAL: 'optimal'>
    """
    formulated = formulate_design_problem(vectors, budget, cap, criterion)
    return solve_design_problem(formulated, config)


def run_design_study(
    vectors: ExperimentVectorSet,
    budget: float,
    cap: Union[float, np.ndarray],
    criteria: Sequence[str] = ("A", "E", "D"),
    config: Optional[SolverConfig] = None,
) -> Dict[str, DesignResult]:
    """
    Solve each scalarization on the same vectors, budget and cap.

    Every problem is formulated (and validated) before the first solve,
    so a dimension error never leaves a partially completed study.

    Returns
    -------
    dict
        Criterion letter -> DesignResult, in the order given

    Raises
    ------
    ValueError
        If a criterion is repeated (letters are case-insensitive)
    """
    keys = [key.upper() for key in criteria]
    duplicates = sorted({key for key in keys if keys.count(key) > 1})
    if duplicates:
        raise ValueError(f"Duplicate criteria in study: {', '.join(duplicates)}")

    formulated = {
        key: formulate_design_problem(vectors, budget, cap, key)
        for key in keys
    }
    return {
        key: solve_design_problem(problem, config)
        for key, problem in formulated.items()
    }


# ============================================================
# REPORTING
# ============================================================


def format_design_report(result: DesignResult, decimals: int = 4) -> str:
    """
    Render objective value and allocation vector as text.

    Non-optimal results report the status instead of values.
    """
    lines = [f"{result.criterion_type} design"]

    if not result.is_optimal:
        lines.append(f"  status: {result.status.value}")
        return "\n".join(lines)

    allocation = np.round(result.allocation, decimals)
    lines.append(f"  objective value: {result.objective_value:.{decimals}f}")
    lines.append(f"  allocation: {np.array2string(allocation, separator=', ')}")
    lines.append(
        f"  total allocated: {allocation.sum():.{decimals}f} "
        f"of budget {result.budget:g}"
    )
    return "\n".join(lines)
