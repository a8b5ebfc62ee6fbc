"""
Sparse eigendecomposition of (contrastive) covariance matrices.

The search engine talks to the eigensolver through ``SparseComponentSolver``,
which accepts any object satisfying the ``SparseEigenPrimitive`` protocol
(or a plain ``solve(matrix, penalty, k)`` callable). ``ElasticNetSparseEigen``
is the default primitive and delegates the penalised fit to scikit-learn.
"""

from __future__ import annotations

from typing import Callable, Optional, Protocol, Tuple, Union, runtime_checkable
import numpy as np
from sklearn.decomposition import SparsePCA

from ..exceptions import SolverFailure
from ..utils.logging_config import get_logger

logger = get_logger(__name__)

Array2D = np.ndarray
SolveResult = Tuple[np.ndarray, np.ndarray]


@runtime_checkable
class SparseEigenPrimitive(Protocol):
    """Structural interface for sparse eigensolvers.

    ``solve`` receives a symmetric (p, p) matrix that may be indefinite, a
    non-negative penalty and the number of components k. It returns
    ``(loadings, eigenvalues)`` with loadings of shape (p, k), unit-norm
    columns, and k eigenvalues. With ``penalty == 0`` the loadings must be
    the ordinary top-k eigenvectors.
    """

    def solve(self, matrix: Array2D, penalty: float, k: int) -> SolveResult: ...


EigenPrimitiveLike = Union[SparseEigenPrimitive, Callable[[Array2D, float, int], SolveResult]]


def _sorted_eigh(C: Array2D) -> Tuple[np.ndarray, Array2D]:
    """Eigenpairs of a symmetric matrix, largest eigenvalue first."""
    vals, vecs = np.linalg.eigh(C)
    order = np.argsort(vals)[::-1]
    return vals[order], vecs[:, order]


class ElasticNetSparseEigen:
    """
    Default sparse eigensolver built on ``sklearn.decomposition.SparsePCA``.

    With ``penalty == 0`` the top-k eigenvectors from ``numpy.linalg.eigh`` are
    returned, so the search reduces exactly to (contrastive) PCA.

    With ``penalty > 0`` the positive part of the matrix is written as
    pseudo-data ``Z`` whose Gram matrix ``Z.T @ Z`` equals it, and SparsePCA
    is fitted on ``Z`` with ``alpha=penalty``. The rows of ``Z`` are mirrored
    (``[Z; -Z] / sqrt(2)``) so the column means are exactly zero and
    SparsePCA's internal centring leaves the Gram matrix untouched.

    Components that the penalty drives to zero are replaced by the unit
    vector on the largest unused entry of the matching dense eigenvector, so
    every returned column has unit norm.

    Args:
        ridge_alpha: Ridge shrinkage passed to SparsePCA's transform
        max_iter: Maximum SparsePCA iterations
        tol: SparsePCA stopping tolerance
        eig_tol: Relative threshold below which eigenvalues count as zero
        random_state: Seed forwarded to SparsePCA
        strict_convergence: Raise ``SolverFailure`` when SparsePCA stops at
            ``max_iter`` instead of logging a warning
    """

    def __init__(
        self,
        ridge_alpha: float = 0.01,
        max_iter: int = 1000,
        tol: float = 1e-8,
        eig_tol: float = 1e-10,
        random_state: Optional[int] = 0,
        strict_convergence: bool = False,
    ):
        self.ridge_alpha = ridge_alpha
        self.max_iter = max_iter
        self.tol = tol
        self.eig_tol = eig_tol
        self.random_state = random_state
        self.strict_convergence = strict_convergence

    def solve(self, matrix: Array2D, penalty: float, k: int) -> SolveResult:
        C = np.asarray(matrix, dtype=np.float64)
        p = C.shape[0]
        if C.ndim != 2 or C.shape[1] != p:
            raise ValueError(f"matrix must be square; got shape {C.shape}")
        if k < 1 or k > p:
            raise ValueError(f"k must be in [1, {p}], got {k}")
        if penalty < 0:
            raise ValueError(f"penalty must be non-negative, got {penalty}")

        vals, vecs = _sorted_eigh(C)
        if penalty == 0:
            return vecs[:, :k].copy(), vals[:k].copy()

        scale = max(1.0, float(np.abs(vals).max()))
        positive = vals > self.eig_tol * scale
        if not np.any(positive):
            raise SolverFailure(f"matrix has no positive eigenvalues (max {vals[0]:.3g})")

        Z = np.sqrt(vals[positive])[:, None] * vecs[:, positive].T  # (r, p)
        pseudo = np.vstack([Z, -Z]) / np.sqrt(2.0)

        model = SparsePCA(
            n_components=k,
            alpha=penalty,
            ridge_alpha=self.ridge_alpha,
            max_iter=self.max_iter,
            tol=self.tol,
            random_state=self.random_state,
        )
        model.fit(pseudo)
        # dict_learning stops silently at max_iter
        if model.n_iter_ >= self.max_iter:
            msg = f"SparsePCA did not converge within max_iter={self.max_iter} (penalty={penalty:g})"
            if self.strict_convergence:
                raise SolverFailure(msg)
            logger.warning(msg)

        loadings = np.array(model.components_.T, dtype=np.float64)  # (p, k)
        norms = np.linalg.norm(loadings, axis=0)
        nonzero = norms > 0
        loadings[:, nonzero] /= norms[nonzero]

        # Fully penalised components fall back to a single coordinate axis
        used = set(np.flatnonzero(np.any(loadings[:, nonzero] != 0, axis=1)).tolist())
        for j in np.flatnonzero(~nonzero):
            ranked = np.argsort(-np.abs(vecs[:, j]), kind="stable")
            free = [int(i) for i in ranked if int(i) not in used]
            i = free[0] if free else int(ranked[0])
            loadings[:, j] = 0.0
            loadings[i, j] = 1.0
            used.add(i)

        eigenvalues = np.einsum("ij,ik,kj->j", loadings, C, loadings)
        order = np.argsort(-eigenvalues, kind="stable")
        return loadings[:, order], eigenvalues[order]


class SparseComponentSolver:
    """
    Runs a sparse eigen primitive and enforces its output contract.

    Any exception raised by the primitive, a wrongly shaped result or
    non-finite values become a ``SolverFailure`` tagged with the grid point.
    Columns are returned ordered by descending eigenvalue.
    """

    def __init__(self, primitive: EigenPrimitiveLike, n_components: int):
        if n_components < 1:
            raise ValueError(f"n_components must be >= 1, got {n_components}")
        self.primitive = primitive
        self.n_components = n_components

    def _call(self, matrix: Array2D, penalty: float) -> SolveResult:
        if isinstance(self.primitive, SparseEigenPrimitive):
            return self.primitive.solve(matrix, penalty, self.n_components)
        return self.primitive(matrix, penalty, self.n_components)

    def solve(self, matrix: Array2D, penalty: float, contrast: Optional[float] = None) -> SolveResult:
        """
        Solve for one grid point.

        Raises:
            SolverFailure: If the primitive fails or violates its contract
        """
        k = self.n_components
        p = matrix.shape[0]
        where = f"contrast={contrast}, penalty={penalty}"
        try:
            loadings, eigenvalues = self._call(matrix, penalty)
        except SolverFailure as e:
            raise SolverFailure(f"{where}: {e}", contrast=contrast, penalty=penalty) from e
        except Exception as e:
            raise SolverFailure(
                f"{where}: {type(e).__name__}: {e}", contrast=contrast, penalty=penalty
            ) from e

        loadings = np.asarray(loadings, dtype=np.float64)
        eigenvalues = np.asarray(eigenvalues, dtype=np.float64).reshape(-1)
        if loadings.shape != (p, k):
            raise SolverFailure(
                f"{where}: expected loadings of shape {(p, k)}, got {loadings.shape}",
                contrast=contrast, penalty=penalty,
            )
        if eigenvalues.shape != (k,):
            raise SolverFailure(
                f"{where}: expected {k} eigenvalues, got {eigenvalues.shape[0]}",
                contrast=contrast, penalty=penalty,
            )
        if not (np.all(np.isfinite(loadings)) and np.all(np.isfinite(eigenvalues))):
            raise SolverFailure(f"{where}: non-finite solver output", contrast=contrast, penalty=penalty)

        order = np.argsort(-eigenvalues, kind="stable")
        return loadings[:, order], eigenvalues[order]
