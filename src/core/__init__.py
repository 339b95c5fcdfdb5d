"""Core optimization modules for Convex-DOE."""
