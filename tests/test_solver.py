"""
Tests for solver configuration and status classification.

Tests cover:
- SolverConfig defaults and validation
- Backend option translation
- Status mapping (including inaccurate variants)
- Optimal, infeasible and unbounded solves
- Solver errors and missing backends
"""

import cvxpy as cp
import pytest

from src.core.exceptions import OptimizationError
from src.core.solver import SolverConfig, SolveStatus, classify_status, solve_problem


# ============================================================
# CONFIGURATION
# ============================================================


class TestSolverConfig:
    """Test SolverConfig dataclass and validation."""

    def test_default_config(self):
        config = SolverConfig()

        assert config.solver == "CLARABEL"
        assert config.tolerance == 1e-8
        assert config.max_iterations == 200
        assert config.verbose is False

    def test_solver_name_normalized(self):
        assert SolverConfig(solver="scs").solver == "SCS"

    def test_unknown_solver(self):
        with pytest.raises(ValueError, match="Unknown solver"):
            SolverConfig(solver="GUROBI")

    def test_invalid_tolerance(self):
        with pytest.raises(ValueError, match="tolerance"):
            SolverConfig(tolerance=0)

    def test_invalid_max_iterations(self):
        with pytest.raises(ValueError, match="max_iterations"):
            SolverConfig(max_iterations=0)

    def test_clarabel_options(self):
        options = SolverConfig(tolerance=1e-6, max_iterations=50).solver_options()
        assert options == {
            "tol_gap_abs": 1e-6,
            "tol_gap_rel": 1e-6,
            "tol_feas": 1e-6,
            "max_iter": 50,
        }

    def test_scs_options(self):
        options = SolverConfig(
            solver="SCS", tolerance=1e-5, max_iterations=5000
        ).solver_options()
        assert options == {"eps_abs": 1e-5, "eps_rel": 1e-5, "max_iters": 5000}


# ============================================================
# STATUS CLASSIFICATION
# ============================================================


class TestClassifyStatus:
    """Test mapping of cvxpy statuses onto four terminal states."""

    @pytest.mark.parametrize(
        "raw, expected, accurate",
        [
            ("optimal", SolveStatus.OPTIMAL, True),
            ("optimal_inaccurate", SolveStatus.OPTIMAL, False),
            ("infeasible", SolveStatus.INFEASIBLE, True),
            ("infeasible_inaccurate", SolveStatus.INFEASIBLE, False),
            ("unbounded", SolveStatus.UNBOUNDED, True),
            ("unbounded_inaccurate", SolveStatus.UNBOUNDED, False),
            ("user_limit", SolveStatus.SOLVER_ERROR, True),
            ("solver_error", SolveStatus.SOLVER_ERROR, True),
        ],
    )
    def test_known_statuses(self, raw, expected, accurate):
        assert classify_status(raw) == (expected, accurate)

    def test_undecided_status_is_not_promoted(self):
        status, accurate = classify_status("infeasible_or_unbounded")
        assert status is SolveStatus.SOLVER_ERROR
        assert accurate is True

    def test_unrecognized_status_is_error(self):
        assert classify_status("some_future_status")[0] is SolveStatus.SOLVER_ERROR

    def test_missing_status_is_error(self):
        assert classify_status(None)[0] is SolveStatus.SOLVER_ERROR


# ============================================================
# SOLVE
# ============================================================


class TestSolveProblem:
    """Test solve_problem on small linear programs."""

    def test_optimal(self):
        x = cp.Variable(2)
        problem = cp.Problem(cp.Maximize(cp.sum(x)), [x >= 0, x <= 1])

        outcome = solve_problem(problem)

        assert outcome.status is SolveStatus.OPTIMAL
        assert outcome.is_optimal
        assert outcome.accurate
        assert outcome.objective_value == pytest.approx(2.0, abs=1e-6)

    def test_infeasible(self):
        x = cp.Variable()
        problem = cp.Problem(cp.Minimize(x), [x >= 1, x <= 0])

        outcome = solve_problem(problem)

        assert outcome.status is SolveStatus.INFEASIBLE
        assert outcome.objective_value is None

    def test_unbounded(self):
        x = cp.Variable()
        problem = cp.Problem(cp.Maximize(x), [x >= 0])

        outcome = solve_problem(problem)

        assert outcome.status is SolveStatus.UNBOUNDED
        assert outcome.objective_value is None

    def test_solver_error_becomes_status(self, monkeypatch):
        x = cp.Variable()
        problem = cp.Problem(cp.Minimize(x), [x >= 0])

        def explode(*args, **kwargs):
            raise cp.SolverError("numerical trouble")

        monkeypatch.setattr(problem, "solve", explode)

        outcome = solve_problem(problem)

        assert outcome.status is SolveStatus.SOLVER_ERROR
        assert "numerical trouble" in outcome.raw_status

    def test_inaccurate_solution_warns(self, monkeypatch):
        x = cp.Variable()
        problem = cp.Problem(cp.Minimize(x), [x >= 0])

        def fake_solve(*args, **kwargs):
            problem._status = "optimal_inaccurate"
            problem._value = 0.0

        monkeypatch.setattr(problem, "solve", fake_solve)

        with pytest.warns(UserWarning, match="optimal_inaccurate"):
            outcome = solve_problem(problem)

        assert outcome.status is SolveStatus.OPTIMAL
        assert outcome.accurate is False

    def test_missing_solver(self, monkeypatch):
        monkeypatch.setattr(cp, "installed_solvers", lambda: ["ECOS"])
        problem = cp.Problem(cp.Minimize(cp.Variable()), [])

        with pytest.raises(OptimizationError, match="not installed"):
            solve_problem(problem)
