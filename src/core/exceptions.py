"""Custom exceptions for Convex-DOE."""

class DOEError(Exception):
    """Base exception for all Convex-DOE errors."""
    pass

class ValidationError(DOEError):
    """Errors from design or input validation."""
    pass

class DimensionMismatchError(ValidationError):
    """Vector set, budget or cap dimensions do not agree."""
    pass

class ModelError(DOEError):
    """Errors from mutating or querying an optimization model."""
    pass

class BoundConflictError(ModelError):
    """Bound and fix operations that contradict the variable's state."""
    pass

class InvalidReferenceError(ModelError):
    """Variable or constraint is no longer part of the model."""
    pass

class OptimizationError(DOEError):
    """Errors from optimization routines."""
    pass

class SolverNonOptimalError(OptimizationError):
    """Solver terminated without an optimal solution."""

    def __init__(self, message: str, status=None):
        super().__init__(message)
        self.status = status
