"""
Out-of-sample clustering scores.

Loadings are always those fitted on the full target/background covariances.
Only the clustering step is repeated on held-out folds of the target rows,
so a candidate cannot look good merely by clustering the rows it was
derived from. Fold membership is drawn once, from the seed, before any grid
point is evaluated.
"""

from __future__ import annotations

from typing import List, Sequence
import numpy as np

from ..exceptions import DegenerateClusteringFailure
from ..utils.logging_config import get_logger
from ..utils.parallel import ordered_map
from .clustering import NEG_INF, ClusterScorer, ScoredSolution, project
from .dedup import UniqueSolution

logger = get_logger(__name__)


def assign_folds(n_rows: int, n_folds: int, seed: int = 0) -> List[np.ndarray]:
    """
    Split ``range(n_rows)`` into *n_folds* disjoint, near-equal folds.

    Rows are shuffled with ``numpy.random.default_rng(seed)`` and cut into
    contiguous chunks; indices within each fold are sorted.

    Raises:
        ValueError: If *n_folds* is not in ``[1, n_rows]``
    """
    if n_folds < 1:
        raise ValueError(f"n_folds must be >= 1, got {n_folds}")
    if n_folds > n_rows:
        raise ValueError(f"n_folds ({n_folds}) cannot exceed number of rows ({n_rows})")
    rng = np.random.default_rng(seed)
    perm = rng.permutation(n_rows)
    return [np.sort(chunk) for chunk in np.array_split(perm, n_folds)]


class CrossValidatedScorer:
    """
    Averages a ClusterScorer's criterion over held-out folds.

    A fold whose partition is degenerate scores -inf and is left out of the
    mean; a solution with no usable fold scores -inf overall. With a single
    fold the plain ClusterScorer result is returned unchanged.
    """

    def __init__(self, scorer: ClusterScorer, folds: Sequence[np.ndarray]):
        if len(folds) < 1:
            raise ValueError("At least one fold is required")
        self.scorer = scorer
        self.folds = [np.asarray(f, dtype=int) for f in folds]

    @property
    def n_folds(self) -> int:
        return len(self.folds)

    def score_solution(self, solution: UniqueSolution, data: np.ndarray) -> ScoredSolution:
        if self.n_folds == 1:
            return self.scorer.score_solution(solution, data)

        fold_scores: List[float] = []
        failures: List[str] = []
        for f, rows in enumerate(self.folds):
            points = project(data[rows], solution.loadings)
            try:
                fold_scores.append(self.scorer.score_points(points, rows))
            except DegenerateClusteringFailure as e:
                fold_scores.append(NEG_INF)
                failures.append(
                    f"candidate {solution.index} (contrast={solution.contrast:g}, "
                    f"penalty={solution.penalty:g}) fold {f} scored -inf: {e}"
                )

        finite = [s for s in fold_scores if np.isfinite(s)]
        score = float(np.mean(finite)) if finite else NEG_INF
        for msg in failures:
            logger.warning(msg)
        logger.debug(
            "Candidate %d CV silhouette=%.4f over %d/%d folds",
            solution.index, score, len(finite), self.n_folds,
        )
        return ScoredSolution(solution=solution, score=score, fold_scores=fold_scores, failures=failures)

    def score(self, solutions: Sequence[UniqueSolution], data: np.ndarray) -> List[ScoredSolution]:
        """Score every solution across all folds, preserving input order."""
        if self.n_folds == 1:
            return self.scorer.score(solutions, data)
        if self.scorer.clusters is not None and self.scorer.clusters.shape[0] != data.shape[0]:
            raise ValueError(
                f"clusters has {self.scorer.clusters.shape[0]} labels but target has {data.shape[0]} rows"
            )
        return ordered_map(lambda s: self.score_solution(s, data), solutions, self.scorer.n_workers)
