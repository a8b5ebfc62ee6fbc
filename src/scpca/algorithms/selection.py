"""
Selection of the best-scoring solution.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence
import numpy as np
import pandas as pd

from ..exceptions import NoViableSolution
from ..utils.logging_config import get_logger
from .clustering import ScoredSolution, project

logger = get_logger(__name__)

TABLE_COLUMNS = [
    "rank", "grid_index", "contrast", "penalty", "score",
    "n_members", "members", "n_nonzero", "fold_scores",
]


@dataclass
class SelectionResult:
    """Outcome of a search."""

    contrast: float
    penalty: float
    loadings: np.ndarray  # (p, k)
    scores: np.ndarray  # (n, k) projected target
    selected: ScoredSolution
    table: Optional[pd.DataFrame] = None
    warnings: List[str] = field(default_factory=list)
    n_grid_points: int = 0

    @property
    def score(self) -> float:
        return self.selected.score

    @property
    def grid_index(self) -> int:
        return self.selected.solution.index

    @property
    def eigenvalues(self) -> np.ndarray:
        return self.selected.solution.eigenvalues


def rank_solutions(scored: Sequence[ScoredSolution]) -> List[ScoredSolution]:
    """Sort by score descending; ties go to the lowest canonical grid index."""
    return sorted(scored, key=lambda s: (-s.score, s.solution.index))


def ranked_table(scored: Sequence[ScoredSolution]) -> pd.DataFrame:
    """Diagnostic table of every unique solution, best first."""
    rows = []
    for rank, s in enumerate(rank_solutions(scored), start=1):
        sol = s.solution
        rows.append({
            "rank": rank,
            "grid_index": sol.index,
            "contrast": sol.contrast,
            "penalty": sol.penalty,
            "score": s.score,
            "n_members": sol.n_members,
            "members": [(m.contrast, m.penalty) for m in sol.members],
            "n_nonzero": sol.n_nonzero(),
            "fold_scores": s.fold_scores,
        })
    return pd.DataFrame(rows, columns=TABLE_COLUMNS)


def select(
    scored: Sequence[ScoredSolution],
    target: np.ndarray,
    with_table: bool = True,
) -> SelectionResult:
    """
    Pick the best solution and project the full target onto it.

    Args:
        scored: Scored unique solutions
        target: Preprocessed target data (n, p)
        with_table: Attach the ranked diagnostic table

    Raises:
        NoViableSolution: If there are no solutions or every score is -inf
    """
    ranked = rank_solutions(scored)
    if not ranked or not ranked[0].viable:
        raise NoViableSolution(
            f"None of the {len(ranked)} unique solutions produced a usable clustering"
        )
    best = ranked[0]
    sol = best.solution
    logger.info(
        "Selected contrast=%g, penalty=%g (grid index %d, score=%.4f)",
        sol.contrast, sol.penalty, sol.index, best.score,
    )
    return SelectionResult(
        contrast=sol.contrast,
        penalty=sol.penalty,
        loadings=sol.loadings.copy(),
        scores=project(target, sol.loadings),
        selected=best,
        table=ranked_table(ranked) if with_table else None,
    )
