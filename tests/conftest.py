"""Pytest configuration and shared fixtures for Convex-DOE tests."""

import sys
from pathlib import Path

import pytest

# Get absolute path to project root
project_root = Path(__file__).parent.parent.resolve()

# Add project root to Python path at the beginning
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from src.core.experiment_design.vectors import generate_experiment_vectors  # noqa: E402

# Reference scenario: 8 candidate experiments in R^4, budget 12, cap 3
SCENARIO = {"q": 4, "p": 8, "budget": 12.0, "cap": 3.0, "seed": 42}


@pytest.fixture(scope="session")
def scenario():
    return dict(SCENARIO)


@pytest.fixture(scope="session")
def scenario_vectors():
    """Fixed-seed vector set for the reference scenario."""
    return generate_experiment_vectors(
        q=SCENARIO["q"], p=SCENARIO["p"], seed=SCENARIO["seed"]
    )
