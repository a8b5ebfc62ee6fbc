"""
Hyperparameter grid enumeration and evaluation.

Grid points are enumerated contrast-major, penalty-minor, with both value
lists sorted ascending. The grid index of a point is its position in that
enumeration and is the tie-breaker everywhere downstream.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Union
import numpy as np

from ..exceptions import EmptyGridResult, SolverFailure
from ..utils.logging_config import get_logger
from ..utils.matrix_utils import as_value_list
from ..utils.parallel import ordered_map
from .covariance import CovariancePair, contrastive_covariances
from .sparse_eigen import SparseComponentSolver

logger = get_logger(__name__)


@dataclass(frozen=True)
class GridPoint:
    """One (contrast, penalty) pair and its position in the grid."""

    index: int
    contrast: float
    penalty: float


@dataclass
class HyperparameterGrid:
    """Cartesian product of sorted contrast and penalty values."""

    contrasts: List[float]
    penalties: List[float]

    @classmethod
    def from_values(cls, contrasts: Iterable[float], penalties: Iterable[float]) -> "HyperparameterGrid":
        """
        Validate and sort the value lists.

        Raises:
            ValueError: On empty, negative, non-finite or duplicate values
        """
        return cls(
            contrasts=as_value_list(contrasts, "contrasts"),
            penalties=as_value_list(penalties, "penalties"),
        )

    @property
    def size(self) -> int:
        return len(self.contrasts) * len(self.penalties)

    def point(self, index: int) -> GridPoint:
        n_pen = len(self.penalties)
        return GridPoint(index, self.contrasts[index // n_pen], self.penalties[index % n_pen])

    def points(self) -> List[GridPoint]:
        return [self.point(i) for i in range(self.size)]


@dataclass
class CandidateSolution:
    """Loadings produced by the solver at one grid point."""

    point: GridPoint
    loadings: np.ndarray  # (p, k)
    eigenvalues: np.ndarray  # (k,)

    @property
    def index(self) -> int:
        return self.point.index

    @property
    def contrast(self) -> float:
        return self.point.contrast

    @property
    def penalty(self) -> float:
        return self.point.penalty


@dataclass
class GridFailure:
    """A grid point dropped because the solver failed."""

    point: GridPoint
    reason: str

    def describe(self) -> str:
        return (
            f"grid point {self.point.index} (contrast={self.point.contrast:g}, "
            f"penalty={self.point.penalty:g}) dropped: {self.reason}"
        )


@dataclass
class GridResult:
    """Successful candidates (in grid order) plus the dropped points."""

    grid: HyperparameterGrid
    candidates: List[CandidateSolution] = field(default_factory=list)
    failures: List[GridFailure] = field(default_factory=list)


class GridEngine:
    """
    Evaluates the sparse solver at every grid point.

    Args:
        solver: Wrapped sparse eigen primitive
        n_workers: Degree of parallelism; 1 runs serially
    """

    def __init__(self, solver: SparseComponentSolver, n_workers: int = 1):
        self.solver = solver
        self.n_workers = max(1, int(n_workers))

    def run(self, pair: CovariancePair, grid: HyperparameterGrid) -> GridResult:
        """
        Solve every grid point and collect the results in grid order.

        Raises:
            EmptyGridResult: If no grid point produced a solution
        """
        # One contrastive matrix per contrast value, shared read-only
        matrices: Dict[float, np.ndarray] = contrastive_covariances(pair, grid.contrasts)

        def evaluate(point: GridPoint) -> Union[CandidateSolution, GridFailure]:
            try:
                loadings, eigenvalues = self.solver.solve(
                    matrices[point.contrast], point.penalty, contrast=point.contrast
                )
            except SolverFailure as e:
                return GridFailure(point, str(e))
            return CandidateSolution(point, loadings, eigenvalues)

        logger.debug("Evaluating %d grid points with %d worker(s)", grid.size, self.n_workers)
        outcomes = ordered_map(evaluate, grid.points(), self.n_workers)

        result = GridResult(grid=grid)
        for outcome in outcomes:
            if isinstance(outcome, GridFailure):
                logger.warning("Solver failure: %s", outcome.describe())
                result.failures.append(outcome)
            else:
                result.candidates.append(outcome)

        if not result.candidates:
            raise EmptyGridResult(
                f"All {grid.size} grid points failed; first failure: {result.failures[0].reason}"
            )
        logger.info(
            "Grid evaluated: %d/%d points solved", len(result.candidates), grid.size
        )
        return result
