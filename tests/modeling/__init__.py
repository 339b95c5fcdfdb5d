"""
Tests for the mutable optimization model package.

Test modules:
- test_expressions: Variable arithmetic and affine expressions
- test_model: Bounds, fixing, deletion, constraints, objective and solve
"""
