"""Tests for eigenvalue-based evaluation of fixed allocations."""

import numpy as np
import pytest

from src.core.experiment_design.diagnostics import (
    a_criterion,
    d_criterion,
    design_efficiency,
    e_criterion,
    evaluate_allocation,
    information_matrix,
)
from src.core.experiment_design.vectors import ExperimentVectorSet


@pytest.fixture
def unit_vectors():
    """Standard basis of R^3 as experiment vectors."""
    return ExperimentVectorSet.from_array(np.eye(3))


class TestCriteria:
    """Test A, E and D criteria on known matrices."""

    def test_diagonal_matrix(self):
        M = np.diag([1.0, 2.0, 4.0])

        assert a_criterion(M) == pytest.approx(1.0 + 0.5 + 0.25)
        assert e_criterion(M) == pytest.approx(1.0)
        assert d_criterion(M) == pytest.approx(np.log(8.0))

    def test_singular_matrix(self):
        M = np.diag([1.0, 0.0])

        assert a_criterion(M) == np.inf
        assert d_criterion(M) == -np.inf
        assert e_criterion(M) == pytest.approx(0.0)

    def test_information_matrix_is_symmetric(self):
        rng = np.random.default_rng(3)
        vectors = ExperimentVectorSet.from_array(rng.standard_normal((3, 5)))
        M = information_matrix(vectors, rng.uniform(0, 1, 5))
        np.testing.assert_array_equal(M, M.T)


class TestEvaluateAllocation:
    """Test evaluate_allocation on a basis vector set."""

    def test_keys_and_values(self, unit_vectors):
        values = evaluate_allocation(unit_vectors, [1.0, 2.0, 4.0])

        assert set(values) == {"A", "E", "D"}
        assert values["A"] == pytest.approx(1.75)
        assert values["E"] == pytest.approx(1.0)
        assert values["D"] == pytest.approx(np.log(8.0))


class TestDesignEfficiency:
    """Test relative D-efficiency."""

    def test_identical_allocations(self, unit_vectors):
        assert design_efficiency(unit_vectors, [1, 1, 1], [1, 1, 1]) == pytest.approx(
            1.0
        )

    def test_scaled_allocation(self, unit_vectors):
        # det scales by 2^3, so efficiency is 2
        assert design_efficiency(unit_vectors, [2, 2, 2], [1, 1, 1]) == pytest.approx(
            2.0
        )

    def test_singular_allocation_has_zero_efficiency(self, unit_vectors):
        assert design_efficiency(unit_vectors, [1, 1, 0], [1, 1, 1]) == 0.0

    def test_singular_reference_rejected(self, unit_vectors):
        with pytest.raises(ValueError, match="singular"):
            design_efficiency(unit_vectors, [1, 1, 1], [0, 1, 1])
