"""
Tests for the convex experiment design package.

Test modules:
- test_vectors: Vector sets and input validation
- test_formulation: A/E/D conic formulations
- test_solve: Solving, results and reporting
- test_diagnostics: Eigenvalue-based criteria of fixed allocations
- test_plotting: Allocation charts
"""
