"""
Conic Solver Invocation.

This module submits a formulated cvxpy problem to an external conic solver
and maps whatever the solver reports onto a fixed set of terminal states.

Classes
-------
SolveStatus
    The four terminal states surfaced to callers
SolverConfig
    Solver selection, tolerance and iteration limit
SolverOutcome
    Status and timing from one solve

Functions
---------
solve_problem
    Solve a cvxpy problem and classify its terminal status

Notes
-----
Nothing here retries, warm-starts or recovers. An inaccurate solution keeps
its base status, gets ``accurate=False`` and triggers a warning. It is never
promoted to a different state.
"""

import warnings
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Literal, Optional

import cvxpy as cp

from src.core.exceptions import OptimizationError


# ============================================================
# TERMINAL STATES
# ============================================================


class SolveStatus(Enum):
    """Terminal state of a delegated solve."""

    OPTIMAL = "optimal"
    INFEASIBLE = "infeasible"
    UNBOUNDED = "unbounded"
    SOLVER_ERROR = "solver_error"


# cvxpy status string -> (terminal state, accurate)
_STATUS_MAP: Dict[str, tuple] = {
    "optimal": (SolveStatus.OPTIMAL, True),
    "optimal_inaccurate": (SolveStatus.OPTIMAL, False),
    "infeasible": (SolveStatus.INFEASIBLE, True),
    "infeasible_inaccurate": (SolveStatus.INFEASIBLE, False),
    "unbounded": (SolveStatus.UNBOUNDED, True),
    "unbounded_inaccurate": (SolveStatus.UNBOUNDED, False),
    "user_limit": (SolveStatus.SOLVER_ERROR, True),
    "infeasible_or_unbounded": (SolveStatus.SOLVER_ERROR, True),
    "solver_error": (SolveStatus.SOLVER_ERROR, True),
}


def classify_status(raw_status: Optional[str]) -> tuple:
    """
    Map a cvxpy status string to ``(SolveStatus, accurate)``.

    ``infeasible_or_unbounded`` deliberately maps to ``SOLVER_ERROR``:
    the solver stopped without deciding between the two, and reporting
    either one would claim a terminal state that was never reached.
    ``user_limit``, a missing status and any status not listed above map
    to ``SOLVER_ERROR`` as well.
    """
    if raw_status is None:
        return SolveStatus.SOLVER_ERROR, True
    return _STATUS_MAP.get(raw_status, (SolveStatus.SOLVER_ERROR, True))


# ============================================================
# SOLVER CONFIGURATION
# ============================================================


@dataclass
class SolverConfig:
    """
    Configuration for the delegated conic solve.

    Attributes
    ----------
    solver : {'CLARABEL', 'SCS'}, default='CLARABEL'
        Backend passed to ``cvxpy.Problem.solve``. Both accept PSD and
        exponential cones, which the log-det constraint needs.
    tolerance : float, default=1e-8
        Feasibility and duality-gap tolerance (absolute and relative)
    max_iterations : int, default=200
        Iteration limit. Clarabel converges in tens of iterations on these
        problems; SCS, a first-order method, typically needs thousands.
    verbose : bool, default=False
        Forward solver progress output

    Notes
    -----
    The solver runs to completion or to its own iteration limit; no
    wall-clock timeout is applied.
    """

    solver: Literal["CLARABEL", "SCS"] = "CLARABEL"
    tolerance: float = 1e-8
    max_iterations: int = 200
    verbose: bool = False

    def __post_init__(self):
        """Validate configuration."""
        self.solver = self.solver.upper()
        if self.solver not in ("CLARABEL", "SCS"):
            raise ValueError(
                f"Unknown solver: '{self.solver}'. Must be 'CLARABEL' or 'SCS'."
            )
        if self.tolerance <= 0:
            raise ValueError("tolerance must be > 0")
        if self.max_iterations < 1:
            raise ValueError("max_iterations must be >= 1")

    def solver_options(self) -> dict:
        """Translate tolerance and iteration limit into backend keywords."""
        if self.solver == "CLARABEL":
            return {
                "tol_gap_abs": self.tolerance,
                "tol_gap_rel": self.tolerance,
                "tol_feas": self.tolerance,
                "max_iter": self.max_iterations,
            }
        return {
            "eps_abs": self.tolerance,
            "eps_rel": self.tolerance,
            "max_iters": self.max_iterations,
        }


# ============================================================
# SOLVE
# ============================================================


@dataclass
class SolverOutcome:
    """
    Result of one delegated solve.

    Attributes
    ----------
    status : SolveStatus
        Terminal state
    raw_status : str
        Status string reported by cvxpy (or the solver error message)
    accurate : bool
        False when the solver flagged its answer as inaccurate
    objective_value : float, optional
        Optimal objective; None unless status is OPTIMAL
    solve_time : float, optional
        Solver-reported time in seconds
    """

    status: SolveStatus
    raw_status: str
    accurate: bool
    objective_value: Optional[float]
    solve_time: Optional[float]

    @property
    def is_optimal(self) -> bool:
        return self.status is SolveStatus.OPTIMAL


def solve_problem(
    problem: cp.Problem, config: Optional[SolverConfig] = None
) -> SolverOutcome:
    """
    Solve a cvxpy problem and classify the terminal status.

    Parameters
    ----------
    problem : cp.Problem
        Fully formulated problem
    config : SolverConfig, optional
        Solver settings (defaults to ``SolverConfig()``)

    Returns
    -------
    SolverOutcome
        Classified status and, when optimal, the objective value

    Raises
    ------
    OptimizationError
        If the configured solver is not installed

    Warnings
    --------
    Issues a warning when the solver reports an inaccurate solution.
    """
    if config is None:
        config = SolverConfig()

    if config.solver not in cp.installed_solvers():
        raise OptimizationError(
            f"Solver '{config.solver}' is not installed. "
            f"Available: {', '.join(cp.installed_solvers())}"
        )

    try:
        problem.solve(
            solver=config.solver, verbose=config.verbose, **config.solver_options()
        )
    except cp.SolverError as e:
        return SolverOutcome(
            status=SolveStatus.SOLVER_ERROR,
            raw_status=str(e),
            accurate=True,
            objective_value=None,
            solve_time=None,
        )

    status, accurate = classify_status(problem.status)

    if not accurate:
        warnings.warn(
            f"Solver {config.solver} reported '{problem.status}'; "
            f"results may not meet tolerance {config.tolerance:g}."
        )

    objective_value = None
    if status is SolveStatus.OPTIMAL and problem.value is not None:
        objective_value = float(problem.value)

    solve_time = None
    if problem.solver_stats is not None:
        solve_time = problem.solver_stats.solve_time

    return SolverOutcome(
        status=status,
        raw_status=str(problem.status),
        accurate=accurate,
        objective_value=objective_value,
        solve_time=solve_time,
    )
