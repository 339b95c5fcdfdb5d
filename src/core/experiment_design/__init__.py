"""
Convex Experiment Design Package.

This package formulates scalarized experiment design problems as conic
programs and solves them with an external conic solver.

Given p candidate experiment vectors v_i in R^q, a total budget n and a
per-experiment cap, choose allocations lambda_i that make the error
covariance (sum_i lambda_i v_i v_i^T)^-1 small.

Main Functions
--------------
design_experiment
    Formulate and solve one scalarization (A, E or D)
run_design_study
    Solve several scalarizations on the same inputs
plot_allocations
    Grouped bar chart of study allocations
generate_experiment_vectors
    Random candidate vectors for demonstrations

Key Classes
-----------
ExperimentVectorSet
    Read-only (q, p) set of experiment vectors
DesignResult
    Status, objective value and allocation
SolverConfig
    Solver backend, tolerance and iteration limit

Examples
--------
>>> from src.core.experiment_design import (
...     design_experiment,
...     format_design_report,
...     generate_experiment_vectors,
... )
>>>
>>> vectors = generate_experiment_vectors(q=4, p=8, seed=42)
>>> result = design_experiment(vectors, budget=12, cap=3, criterion='A')
>>> print(format_design_report(result))
"""

# Main API
from src.core.experiment_design.solve import (
    DesignResult,
    design_experiment,
    format_design_report,
    run_design_study,
    solve_design_problem,
)
from src.core.experiment_design.vectors import (
    ExperimentVectorSet,
    generate_experiment_vectors,
    validate_design_inputs,
)

# Configuration
from src.core.solver import SolverConfig, SolveStatus

# Advanced: Formulations for custom workflows
from src.core.experiment_design.formulation import (
    AOptimalCriterion,
    DOptimalCriterion,
    EOptimalCriterion,
    ExperimentDesignProblem,
    ScalarizationCriterion,
    create_scalarization,
    formulate_design_problem,
    information_matrix_expression,
)
from src.core.experiment_design.diagnostics import (
    design_efficiency,
    evaluate_allocation,
)
from src.core.experiment_design.plotting import plot_allocations

__all__ = [
    # Main API
    "design_experiment",
    "run_design_study",
    "solve_design_problem",
    "format_design_report",
    "generate_experiment_vectors",
    "validate_design_inputs",
    "DesignResult",
    "ExperimentVectorSet",
    # Configuration
    "SolverConfig",
    "SolveStatus",
    # Advanced
    "ScalarizationCriterion",
    "AOptimalCriterion",
    "EOptimalCriterion",
    "DOptimalCriterion",
    "ExperimentDesignProblem",
    "create_scalarization",
    "formulate_design_problem",
    "information_matrix_expression",
    "evaluate_allocation",
    "design_efficiency",
    "plot_allocations",
]
