"""
Collapse grid points that produced the same loadings.

Large penalties in particular drive many (contrast, penalty) pairs to an
identical sparse solution; scoring each copy would only repeat the same
clustering work.

Eigenvectors are unique up to sign, so loadings are compared after flipping
every column to make its largest-magnitude entry positive. Rotations within
a repeated eigenspace are not detected: two solutions spanning the same
eigenspace with different bases stay distinct.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List
import numpy as np

from ..utils.logging_config import get_logger
from .grid import CandidateSolution, GridPoint

logger = get_logger(__name__)

DEFAULT_TOL = 1e-5


def canonicalize_signs(loadings: np.ndarray) -> np.ndarray:
    """
    Flip column signs so each column's largest-magnitude entry is positive.

    On exact magnitude ties the first such entry decides. All-zero columns
    are left as they are.
    """
    L = np.array(loadings, dtype=np.float64, copy=True)
    if L.size == 0:
        return L
    rows = np.argmax(np.abs(L), axis=0)
    signs = np.sign(L[rows, np.arange(L.shape[1])])
    signs[signs == 0] = 1.0
    return L * signs


def loadings_equivalent(a: np.ndarray, b: np.ndarray, atol: float = DEFAULT_TOL) -> bool:
    """True when two loadings matrices match up to column signs within *atol*."""
    if a.shape != b.shape:
        return False
    return bool(np.allclose(canonicalize_signs(a), canonicalize_signs(b), rtol=0.0, atol=atol))


@dataclass
class UniqueSolution:
    """
    A distinct loadings matrix and every grid point that produced it.

    ``canonical`` is the member with the lowest grid index; ``loadings`` is
    its sign-canonicalised copy.
    """

    canonical: CandidateSolution
    loadings: np.ndarray
    members: List[GridPoint] = field(default_factory=list)

    @property
    def index(self) -> int:
        return self.canonical.index

    @property
    def contrast(self) -> float:
        return self.canonical.contrast

    @property
    def penalty(self) -> float:
        return self.canonical.penalty

    @property
    def eigenvalues(self) -> np.ndarray:
        return self.canonical.eigenvalues

    @property
    def n_members(self) -> int:
        return len(self.members)

    def n_nonzero(self) -> int:
        """Number of non-zero loadings entries."""
        return int(np.count_nonzero(self.loadings))


class Deduplicator:
    """
    Merges equivalent candidates.

    Candidates are visited in grid order and each joins the first existing
    entry it matches, so the canonical attribution is always the lowest
    grid index among the members.

    Args:
        atol: Absolute element-wise tolerance on sign-canonicalised loadings
    """

    def __init__(self, atol: float = DEFAULT_TOL):
        if atol < 0:
            raise ValueError(f"atol must be non-negative, got {atol}")
        self.atol = atol

    def deduplicate(self, candidates: Iterable[CandidateSolution]) -> List[UniqueSolution]:
        unique: List[UniqueSolution] = []
        n_in = 0
        for cand in sorted(candidates, key=lambda c: c.index):
            n_in += 1
            L = canonicalize_signs(cand.loadings)
            for entry in unique:
                if entry.loadings.shape == L.shape and np.allclose(
                    entry.loadings, L, rtol=0.0, atol=self.atol
                ):
                    entry.members.append(cand.point)
                    break
            else:
                unique.append(UniqueSolution(canonical=cand, loadings=L, members=[cand.point]))

        logger.info("Deduplicated %d candidates into %d unique solutions", n_in, len(unique))
        return unique
