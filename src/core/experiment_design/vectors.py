"""
Experiment Vector Sets and Input Validation.

This module holds the candidate experiment directions that an allocation is
distributed over, and checks budget/cap inputs against them before any
problem is formulated.

Classes
-------
ExperimentVectorSet
    Read-only set of p experiment vectors in R^q

Functions
---------
generate_experiment_vectors
    Draw a random vector set (standard normal entries)
validate_design_inputs
    Check budget and per-experiment cap against a vector set
"""

import warnings
from dataclasses import dataclass
from typing import Optional, Union

import numpy as np

from src.core.exceptions import DimensionMismatchError, ValidationError


# ============================================================
# VECTOR SET
# ============================================================


@dataclass(frozen=True, eq=False)
class ExperimentVectorSet:
    """
    Ordered set of p experiment vectors in R^q.

    Stored column-wise as a (q, p) matrix V so that column i is v_i.
    The underlying array is read-only.

    Attributes
    ----------
    matrix : np.ndarray, shape (q, p)
        Experiment vectors as columns

    Examples
    --------
    >>> vectors = ExperimentVectorSet.from_array(np.eye(3))
    >>> vectors.q, vectors.p
    (3, 3)
    """

    matrix: np.ndarray

    def __post_init__(self):
        """
        Validate and copy the input into a read-only array.

        Raises
        ------
        DimensionMismatchError
            If the array is not 2-D or has an empty dimension
        ValidationError
            If the array contains non-finite values
        """
        matrix = np.array(self.matrix, dtype=float, copy=True)

        if matrix.ndim != 2:
            raise DimensionMismatchError(
                f"Experiment vectors must form a 2-D (q, p) array, "
                f"got shape {matrix.shape}"
            )
        if matrix.shape[0] == 0 or matrix.shape[1] == 0:
            raise DimensionMismatchError(
                f"Experiment vectors must have q >= 1 and p >= 1, "
                f"got shape {matrix.shape}"
            )
        if not np.all(np.isfinite(matrix)):
            raise ValidationError("Experiment vectors contain NaN or infinite values")

        matrix.setflags(write=False)
        object.__setattr__(self, "matrix", matrix)

    @classmethod
    def from_array(cls, array) -> "ExperimentVectorSet":
        """Validate and copy an array into a read-only vector set."""
        return cls(matrix=array)

    @property
    def q(self) -> int:
        """Dimension of each experiment vector."""
        return self.matrix.shape[0]

    @property
    def p(self) -> int:
        """Number of candidate experiments."""
        return self.matrix.shape[1]

    def vector(self, i: int) -> np.ndarray:
        """Return v_i (read-only view)."""
        if not 0 <= i < self.p:
            raise IndexError(f"Experiment index {i} out of range for p={self.p}")
        return self.matrix[:, i]

    def information_matrix(self, allocation) -> np.ndarray:
        """
        Evaluate sum_i lambda_i v_i v_i^T for a numeric allocation.

        Raises
        ------
        DimensionMismatchError
            If the allocation length differs from p
        """
        allocation = np.asarray(allocation, dtype=float).ravel()
        if allocation.shape != (self.p,):
            raise DimensionMismatchError(
                f"Allocation must have length p={self.p}, got {allocation.shape[0]}"
            )
        return (self.matrix * allocation) @ self.matrix.T


# ============================================================
# GENERATION
# ============================================================


def generate_experiment_vectors(
    q: int, p: int, seed: Optional[int] = None
) -> ExperimentVectorSet:
    """
    Generate p random experiment vectors in R^q.

    Parameters
    ----------
    q : int
        Vector dimension (number of parameters being estimated)
    p : int
        Number of candidate experiments
    seed : int, optional
        Random seed for reproducibility

    Returns
    -------
    ExperimentVectorSet
        Vector set with standard normal entries

    Examples
    --------
    >>> vectors = generate_experiment_vectors(q=4, p=8, seed=42)
    >>> vectors.matrix.shape
    (4, 8)
    """
    if q < 1 or p < 1:
        raise DimensionMismatchError(f"q and p must be >= 1, got q={q}, p={p}")

    rng = np.random.default_rng(seed)
    return ExperimentVectorSet.from_array(rng.standard_normal((q, p)))


# ============================================================
# INPUT VALIDATION
# ============================================================


def validate_design_inputs(
    vectors: ExperimentVectorSet,
    budget: float,
    cap: Union[float, np.ndarray],
) -> np.ndarray:
    """
    Validate budget and per-experiment cap against a vector set.

    Parameters
    ----------
    vectors : ExperimentVectorSet
        Candidate experiments
    budget : float
        Total experiment budget n (sum of allocations may not exceed it)
    cap : float or array-like, shape (p,)
        Upper bound on each individual allocation

    Returns
    -------
    np.ndarray, shape (p,)
        Per-experiment caps broadcast to length p

    Raises
    ------
    DimensionMismatchError
        If cap is an array whose length is not p
    ValidationError
        If budget or any cap is not strictly positive

    Warnings
    --------
    Warns when n < q or p < q (information matrix may be singular, which
    makes A- and D-optimal formulations degenerate), and when the caps
    alone keep the total below n (budget never binds).
    """
    if not np.isfinite(budget) or budget <= 0:
        raise ValidationError(f"Budget must be a positive number, got {budget}")

    cap_array = np.asarray(cap, dtype=float)
    if cap_array.ndim == 0:
        cap_array = np.full(vectors.p, float(cap_array))
    elif cap_array.shape != (vectors.p,):
        raise DimensionMismatchError(
            f"Per-experiment cap must be a scalar or have length p={vectors.p}, "
            f"got shape {cap_array.shape}"
        )

    if not np.all(np.isfinite(cap_array)) or np.any(cap_array <= 0):
        raise ValidationError("Per-experiment caps must be positive and finite")

    if vectors.p < vectors.q:
        warnings.warn(
            f"Only {vectors.p} experiments for {vectors.q} dimensions; "
            f"information matrix is singular for every allocation."
        )
    elif budget < vectors.q:
        warnings.warn(
            f"Budget {budget:g} is below dimension q={vectors.q}; "
            f"formulation may be degenerate."
        )

    if cap_array.sum() < budget:
        warnings.warn(
            f"Caps sum to {cap_array.sum():g} < budget {budget:g}; "
            f"budget constraint can never bind."
        )

    return cap_array
