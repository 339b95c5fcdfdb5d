"""
Mutable Optimization Model Package.

This package provides a model object whose variables, bounds, linear
constraints and objective can be modified after construction. The model
is lowered to cvxpy when solved.

Key Classes
-----------
Model
    Mutable container and mutation API
ModelVariable
    Variable handle (supports +, -, * with numbers)
ModelConstraint
    Linear constraint handle
AffineExpression
    Linear expression over variables
BoundState
    UNBOUNDED, LOWER_ONLY, UPPER_ONLY, BOUNDED or FIXED
ObjectiveSense
    MINIMIZE, MAXIMIZE or FEASIBILITY
ModelSolution
    Status and values from a solve

Examples
--------
>>> from src.core.modeling import Model
>>>
>>> model = Model()
>>> x = model.add_variable("x", lower=0, upper=5)
>>> model.fix(x, 2.0)
Traceback (most recent call last):
    ...
BoundConflictError: Unable to fix variable 'x' to 2 because it has existing bounds ...
>>> model.fix(x, 2.0, force=True)
>>> model.has_lower_bound(x)
False
"""

from src.core.modeling.expressions import AffineExpression, BoundState, ModelVariable
from src.core.modeling.model import (
    Model,
    ModelConstraint,
    ModelSolution,
    ObjectiveSense,
)

__all__ = [
    "Model",
    "ModelVariable",
    "ModelConstraint",
    "ModelSolution",
    "AffineExpression",
    "BoundState",
    "ObjectiveSense",
]
