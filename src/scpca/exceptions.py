"""
Exception hierarchy for the sparse contrastive PCA search.

Fatal errors (``DimensionMismatch``, ``InsufficientObservations``,
``EmptyGridResult``, ``NoViableSolution``) escape from ``search``.
``SolverFailure`` and ``DegenerateClusteringFailure`` are raised for a single
grid point, candidate or fold and are caught by the engine, which records
them as warnings and carries on.
"""

from __future__ import annotations

from typing import Optional


class ScpcaError(Exception):
    """Base exception for all search errors."""

    pass


class DimensionMismatch(ScpcaError, ValueError):
    """Raised when input matrices have incompatible shapes."""

    pass


class InsufficientObservations(ScpcaError, ValueError):
    """Raised when a matrix has too few rows to estimate a covariance."""

    pass


class SolverFailure(ScpcaError, RuntimeError):
    """Raised when the sparse eigensolver fails for one grid point."""

    def __init__(
        self,
        message: str,
        contrast: Optional[float] = None,
        penalty: Optional[float] = None,
    ):
        super().__init__(message)
        self.contrast = contrast
        self.penalty = penalty


class DegenerateClusteringFailure(ScpcaError, RuntimeError):
    """Raised when a partition cannot be scored (too few clusters or rows)."""

    pass


class EmptyGridResult(ScpcaError, RuntimeError):
    """Raised when every grid point failed to produce a solution."""

    pass


class NoViableSolution(ScpcaError, RuntimeError):
    """Raised when every candidate scored negative infinity."""

    pass
