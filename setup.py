"""
Setup configuration for Convex-DOE.
"""

from setuptools import setup, find_packages

setup(
    name="convex-doe",
    version="0.1.0",
    description="Convex experiment design and mutable optimization models",
    author="Convex-DOE Contributors",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.11",
    install_requires=[
        "numpy",
        "pandas",
        "scipy",
        "cvxpy",
        "clarabel",
        "scs",
        "plotly",
    ],
    extras_require={
        "dev": [
            "pytest",
            "pytest-cov",
        ],
    },
)
