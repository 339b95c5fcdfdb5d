"""
Numerical evaluation of allocations outside the solver.

These functions compute the A-, E- and D-criteria of a fixed allocation
directly from the eigenvalues of its information matrix. Used to check
solver output and to compare allocations.
"""

from typing import Dict

import numpy as np
from scipy import linalg

from src.core.experiment_design.vectors import ExperimentVectorSet


def information_matrix(vectors: ExperimentVectorSet, allocation) -> np.ndarray:
    """Symmetric information matrix sum_i lambda_i v_i v_i^T."""
    M = vectors.information_matrix(allocation)
    return (M + M.T) / 2


def _eigenvalues(M: np.ndarray) -> np.ndarray:
    return linalg.eigvalsh(M)


def a_criterion(M: np.ndarray, tol: float = 1e-10) -> float:
    """
    Trace of the covariance, tr(M^-1).

    Returns inf if M is singular (smallest eigenvalue <= tol).
    """
    eigvals = _eigenvalues(M)
    if eigvals[0] <= tol:
        return np.inf
    return float(np.sum(1.0 / eigvals))


def e_criterion(M: np.ndarray) -> float:
    """Smallest eigenvalue of M."""
    return float(_eigenvalues(M)[0])


def d_criterion(M: np.ndarray, tol: float = 1e-10) -> float:
    """
    log det M.

    Returns -inf if M is singular (smallest eigenvalue <= tol).
    """
    eigvals = _eigenvalues(M)
    if eigvals[0] <= tol:
        return -np.inf
    return float(np.sum(np.log(eigvals)))


def evaluate_allocation(
    vectors: ExperimentVectorSet, allocation
) -> Dict[str, float]:
    """
    Evaluate all three scalarizations for one allocation.

    Returns
    -------
    dict
        Keys 'A' (trace of covariance), 'E' (lambda_min of M) and
        'D' (log det M)
    """
    M = information_matrix(vectors, allocation)
    return {"A": a_criterion(M), "E": e_criterion(M), "D": d_criterion(M)}


def design_efficiency(
    vectors: ExperimentVectorSet, allocation, reference_allocation
) -> float:
    """
    Relative D-efficiency of ``allocation`` against ``reference_allocation``.

    (det M / det M_ref)^(1/q), computed in log space. 1.0 means the two
    allocations are equally informative; values below 1 favour the
    reference.
    """
    logdet = d_criterion(information_matrix(vectors, allocation))
    logdet_ref = d_criterion(information_matrix(vectors, reference_allocation))

    if not np.isfinite(logdet_ref):
        raise ValueError("Reference allocation has a singular information matrix")
    if not np.isfinite(logdet):
        return 0.0

    return float(np.exp((logdet - logdet_ref) / vectors.q))
