"""
Conic Formulations of Scalarized Experiment Design.

Given experiment vectors v_1..v_p in R^q, a total budget n and a
per-experiment cap, the allocation lambda defines the information matrix

    M(lambda) = sum_i lambda_i v_i v_i^T

whose inverse is the estimation error covariance. Each scalarization turns
"make the covariance small" into a linear objective over a convex cone.

Classes
-------
ScalarizationCriterion : ABC
    Abstract base class for scalarizations
AOptimalCriterion : ScalarizationCriterion
    Minimize trace of the covariance (Schur complement blocks)
EOptimalCriterion : ScalarizationCriterion
    Minimize largest covariance eigenvalue (maximize lambda_min(M))
DOptimalCriterion : ScalarizationCriterion
    Minimize covariance determinant (maximize log det M)
ExperimentDesignProblem
    Formulated problem ready for the solver

Functions
---------
create_scalarization
    Factory function to create criterion objects
information_matrix_expression
    Symbolic M(lambda) as a cvxpy expression
formulate_design_problem
    Build variables, constraints and objective for one scalarization

References
----------
.. [1] Boyd, S., & Vandenberghe, L. (2004). Convex Optimization.
       Cambridge University Press. Section 7.5.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Literal, Tuple, Union

import cvxpy as cp
import numpy as np

from src.core.experiment_design.vectors import (
    ExperimentVectorSet,
    validate_design_inputs,
)


# ============================================================
# INFORMATION MATRIX
# ============================================================


def information_matrix_expression(
    vectors: ExperimentVectorSet, allocation: cp.Variable
) -> cp.Expression:
    """
    Build M(lambda) = V diag(lambda) V^T symbolically.

    The expression is explicitly symmetrized; PSD and log-det cones only
    read one triangle of their argument.
    """
    V = np.asarray(vectors.matrix)
    M = V @ cp.diag(allocation) @ V.T
    return (M + M.T) / 2


# ============================================================
# SCALARIZATION BASE CLASS
# ============================================================


class ScalarizationCriterion(ABC):
    """
    Abstract base class for experiment design scalarizations.

    Subclasses introduce their auxiliary variables and cone constraints
    over an information matrix expression and return a linear objective.
    """

    sense: Literal["minimize", "maximize"]

    @abstractmethod
    def build(
        self, M: cp.Expression, q: int
    ) -> Tuple[Dict[str, cp.Variable], List[cp.Constraint], cp.Expression]:
        """
        Formulate the scalarization over information matrix ``M``.

        Parameters
        ----------
        M : cp.Expression, shape (q, q)
            Symmetric information matrix expression
        q : int
            Dimension of M

        Returns
        -------
        auxiliary : dict
            Auxiliary variables by name
        constraints : list
            Cone constraints linking auxiliaries to M
        objective : cp.Expression
            Scalar linear objective (optimized in ``self.sense``)
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Return criterion name."""
        pass


# ============================================================
# A-OPTIMALITY
# ============================================================


class AOptimalCriterion(ScalarizationCriterion):
    """
    A-optimality: minimize tr(M^-1).

    For each coordinate k, the block matrix

        [[M,     e_k],
         [e_k^T, u_k]]

    is PSD iff u_k >= e_k^T M^-1 e_k (Schur complement, M positive
    definite). Summing u_k bounds the trace of the covariance from above.
    """

    sense = "minimize"

    def build(self, M, q):
        u = cp.Variable(q, nonneg=True, name="u")
        constraints = []

        for k in range(q):
            e_k = np.zeros((q, 1))
            e_k[k, 0] = 1.0
            block = cp.bmat(
                [[M, e_k], [e_k.T, cp.reshape(u[k], (1, 1), order="F")]]
            )
            constraints.append(block >> 0)

        return {"u": u}, constraints, cp.sum(u)

    @property
    def name(self) -> str:
        return "A-optimal"


# ============================================================
# E-OPTIMALITY
# ============================================================


class EOptimalCriterion(ScalarizationCriterion):
    """
    E-optimality: maximize t subject to M - t I PSD.

    The optimal t is lambda_min(M), so the largest eigenvalue of the
    covariance M^-1 is minimized.
    """

    sense = "maximize"

    def build(self, M, q):
        t = cp.Variable(name="t")
        constraints = [M - t * np.eye(q) >> 0]
        return {"t": t}, constraints, t

    @property
    def name(self) -> str:
        return "E-optimal"


# ============================================================
# D-OPTIMALITY
# ============================================================


class DOptimalCriterion(ScalarizationCriterion):
    """
    D-optimality: maximize t subject to t <= log det M.

    The hypograph of log det is the log-determinant cone; cvxpy lowers it
    to PSD and exponential cone constraints. At the optimum t equals
    log det M(lambda*).
    """

    sense = "maximize"

    def build(self, M, q):
        t = cp.Variable(name="t")
        constraints = [t <= cp.log_det(M)]
        return {"t": t}, constraints, t

    @property
    def name(self) -> str:
        return "D-optimal"


# ============================================================
# FACTORY FUNCTION
# ============================================================


def create_scalarization(
    criterion_type: Literal["A", "E", "D"],
) -> ScalarizationCriterion:
    """
    Factory function to create a scalarization criterion.

    Parameters
    ----------
    criterion_type : {'A', 'E', 'D'}
        - 'A': minimize trace of covariance
        - 'E': minimize largest covariance eigenvalue
        - 'D': minimize covariance determinant

    Returns
    -------
    ScalarizationCriterion

    Raises
    ------
    ValueError
        If criterion_type is not 'A', 'E' or 'D'
    """
    key = criterion_type.upper() if isinstance(criterion_type, str) else None

    if key == "A":
        return AOptimalCriterion()
    elif key == "E":
        return EOptimalCriterion()
    elif key == "D":
        return DOptimalCriterion()
    else:
        raise ValueError(
            f"Unknown criterion_type: '{criterion_type}'. "
            f"Must be 'A', 'E' or 'D'."
        )


# ============================================================
# PROBLEM FORMULATION
# ============================================================


@dataclass
class ExperimentDesignProblem:
    """
    Formulated experiment design problem.

    Attributes
    ----------
    vectors : ExperimentVectorSet
        Candidate experiments
    budget : float
        Total budget n
    caps : np.ndarray, shape (p,)
        Per-experiment upper bounds
    criterion : ScalarizationCriterion
        Scalarization used
    allocation : cp.Variable, shape (p,)
        Allocation weights lambda
    auxiliary : dict
        Scalarization-specific variables ('u' or 't')
    constraints : list
        All constraints (allocation bounds, budget, cones)
    problem : cp.Problem
        Problem handed to the solver
    """

    vectors: ExperimentVectorSet
    budget: float
    caps: np.ndarray
    criterion: ScalarizationCriterion
    allocation: cp.Variable
    auxiliary: Dict[str, cp.Variable]
    constraints: List[cp.Constraint] = field(default_factory=list)
    problem: cp.Problem = None

    @property
    def n_variables(self) -> int:
        return self.allocation.size + sum(v.size for v in self.auxiliary.values())


def formulate_design_problem(
    vectors: ExperimentVectorSet,
    budget: float,
    cap: Union[float, np.ndarray],
    criterion: Union[str, ScalarizationCriterion] = "D",
) -> ExperimentDesignProblem:
    """
    Build the conic program for one scalarization.

    Common constraints:
        0 <= lambda_i <= cap_i   for all i
        sum_i lambda_i <= n

    Parameters
    ----------
    vectors : ExperimentVectorSet
        Candidate experiments (q, p)
    budget : float
        Total experiment budget n
    cap : float or array-like, shape (p,)
        Per-experiment allocation cap
    criterion : {'A', 'E', 'D'} or ScalarizationCriterion, default='D'
        Scalarization to formulate

    Returns
    -------
    ExperimentDesignProblem
        Problem ready for ``solve_design_problem``

    Raises
    ------
    DimensionMismatchError
        If cap has the wrong length. Raised before any solver call.
    ValidationError
        If budget or caps are not positive

    Examples
    --------
    >>> vectors = generate_experiment_vectors(q=4, p=8, seed=0)
    >>> formulated = formulate_design_problem(vectors, 12, 3, criterion='A')
    >>> formulated.problem.is_dcp()
    True
    """
    caps = validate_design_inputs(vectors, budget, cap)

    if isinstance(criterion, str):
        criterion = create_scalarization(criterion)

    allocation = cp.Variable(vectors.p, name="lambda")
    constraints = [
        allocation >= 0,
        allocation <= caps,
        cp.sum(allocation) <= budget,
    ]

    M = information_matrix_expression(vectors, allocation)
    auxiliary, cone_constraints, objective_expr = criterion.build(M, vectors.q)
    constraints.extend(cone_constraints)

    if criterion.sense == "minimize":
        objective = cp.Minimize(objective_expr)
    else:
        objective = cp.Maximize(objective_expr)

    return ExperimentDesignProblem(
        vectors=vectors,
        budget=float(budget),
        caps=caps,
        criterion=criterion,
        allocation=allocation,
        auxiliary=auxiliary,
        constraints=constraints,
        problem=cp.Problem(objective, constraints),
    )
