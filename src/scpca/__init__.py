"""
scpca - Core Package

Sparse contrastive principal component analysis with automatic
hyperparameter selection.

This package provides:
- Contrastive covariance construction from target and background data
- Sparse eigendecomposition over a (contrast x penalty) grid
- Clustering-based model selection, optionally cross-validated
"""

__version__ = "0.1.0"

from .algorithms import SelectionResult, search, search_with_config
from .config import SearchConfig
from .exceptions import (
    ScpcaError,
    DimensionMismatch,
    InsufficientObservations,
    SolverFailure,
    DegenerateClusteringFailure,
    EmptyGridResult,
    NoViableSolution,
)

# Explicitly import subpackages to ensure they're discoverable
from . import algorithms
from . import utils

__all__ = [
    "search",
    "search_with_config",
    "SearchConfig",
    "SelectionResult",
    "ScpcaError",
    "DimensionMismatch",
    "InsufficientObservations",
    "SolverFailure",
    "DegenerateClusteringFailure",
    "EmptyGridResult",
    "NoViableSolution",
    "algorithms",
    "utils",
]
