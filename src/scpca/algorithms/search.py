"""
Hyperparameter search for sparse contrastive PCA.

Pipeline:
1. Preprocess target and background, compute both covariances once
2. Draw the cross-validation folds (before any grid point is evaluated)
3. Solve the sparse eigenproblem at every (contrast, penalty) grid point
4. Collapse grid points that produced the same loadings
5. Score each unique solution by clustering the projected target,
   optionally out-of-sample over the folds
6. Select the best score (lowest grid index on ties) and project the target

Per-point solver failures and per-candidate clustering failures are
recorded in ``SelectionResult.warnings``; only an empty grid or a search
with no viable candidate raises.

Example:
    result = search(target, background, contrasts=[0, 1, 10], penalties=[0, 0.5],
                    n_centers=3, n_components=2)
    result.contrast, result.penalty, result.scores
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence
import numpy as np

from ..config import SearchConfig
from ..utils.logging_config import get_logger
from ..utils.matrix_utils import MatrixIn, as_data_matrix
from .clustering import ClusteringLike, ClusterScorer, make_clustering_primitive
from .covariance import CovariancePair
from .cross_validation import CrossValidatedScorer, assign_folds
from .dedup import Deduplicator
from .grid import GridEngine, HyperparameterGrid
from .selection import SelectionResult, select
from .sparse_eigen import EigenPrimitiveLike, ElasticNetSparseEigen, SparseComponentSolver

logger = get_logger(__name__)


def default_contrasts(n: int = 40) -> List[float]:
    """*n* log-spaced contrast values from 0.1 to 1000."""
    return np.exp(np.linspace(np.log(0.1), np.log(1000.0), n)).tolist()


def default_penalties(n: int = 20) -> List[float]:
    """*n* evenly spaced penalty values from 0.05 to 1."""
    return np.linspace(0.05, 1.0, n).tolist()


def search(
    target: MatrixIn,
    background: MatrixIn,
    contrasts: Optional[Iterable[float]] = None,
    penalties: Optional[Iterable[float]] = None,
    n_centers: int = 2,
    n_components: int = 2,
    center: bool = True,
    scale: bool = False,
    cv_folds: int = 1,
    seed: int = 0,
    clustering_primitive: Optional[ClusteringLike] = None,
    sparse_eigen_primitive: Optional[EigenPrimitiveLike] = None,
    parallel: bool = False,
    *,
    n_workers: Optional[int] = None,
    clusters: Optional[Sequence] = None,
    clust_method: str = "kmeans",
    linkage: str = "complete",
    tol: float = 1e-5,
    return_table: bool = True,
) -> SelectionResult:
    """
    Find the sparse contrastive embedding whose clustering scores best.

    Args:
        target: Target data (n_samples, n_features)
        background: Background data (m_samples, n_features)
        contrasts: Contrast values; defaults to ``default_contrasts()``
        penalties: Sparsity penalties; defaults to ``default_penalties()``
        n_centers: Number of clusters used for scoring
        n_components: Number of components per solution
        center: Centre columns of both matrices
        scale: Scale columns of both matrices to unit variance
        cv_folds: Number of folds for out-of-sample scoring (1 = none)
        seed: Seed for fold assignment, the default solver and k-means
        clustering_primitive: ``cluster(points, k) -> labels`` capability;
            defaults to the primitive named by *clust_method*
        sparse_eigen_primitive: ``solve(matrix, penalty, k)`` capability;
            defaults to ``ElasticNetSparseEigen(random_state=seed)``
        parallel: Fan grid points and candidates out over a thread pool
        n_workers: Pool size when *parallel* (defaults to the CPU count)
        clusters: Fixed labels for the target rows, scored instead of
            running a clustering algorithm
        clust_method: "kmeans" or "hclust"
        linkage: Linkage for "hclust"
        tol: Absolute tolerance for merging duplicate loadings
        return_table: Attach the ranked diagnostic table

    Returns:
        SelectionResult with the chosen contrast, penalty, loadings and
        projected target scores

    Raises:
        DimensionMismatch: If the inputs are not 2-D with equal column counts
        InsufficientObservations: If either input has fewer than 2 rows
        EmptyGridResult: If the solver failed at every grid point
        NoViableSolution: If no candidate produced a usable clustering
        ValueError: On invalid hyperparameters
    """
    cfg = SearchConfig(
        n_centers=n_centers,
        n_components=n_components,
        center=center,
        scale=scale,
        cv_folds=cv_folds,
        seed=seed,
        parallel=parallel,
        n_workers=n_workers,
        clust_method=clust_method,
        linkage=linkage,
        tol=tol,
        return_table=return_table,
    )
    return search_with_config(
        target,
        background,
        cfg,
        contrasts=contrasts,
        penalties=penalties,
        clustering_primitive=clustering_primitive,
        sparse_eigen_primitive=sparse_eigen_primitive,
        clusters=clusters,
    )


def search_with_config(
    target: MatrixIn,
    background: MatrixIn,
    cfg: SearchConfig,
    *,
    contrasts: Optional[Iterable[float]] = None,
    penalties: Optional[Iterable[float]] = None,
    clustering_primitive: Optional[ClusteringLike] = None,
    sparse_eigen_primitive: Optional[EigenPrimitiveLike] = None,
    clusters: Optional[Sequence] = None,
) -> SelectionResult:
    """Same as ``search`` with the tuning knobs taken from *cfg*."""
    X = as_data_matrix(target, "target")
    Y = as_data_matrix(background, "background")
    pair = CovariancePair.build(X, Y, center=cfg.center, scale=cfg.scale)

    if cfg.n_components > pair.n_features:
        raise ValueError(
            f"n_components ({cfg.n_components}) cannot exceed number of variables ({pair.n_features})"
        )
    if clusters is not None and len(clusters) != X.shape[0]:
        raise ValueError(f"clusters has {len(clusters)} labels but target has {X.shape[0]} rows")

    grid = HyperparameterGrid.from_values(
        default_contrasts() if contrasts is None else contrasts,
        default_penalties() if penalties is None else penalties,
    )
    folds = assign_folds(X.shape[0], cfg.cv_folds, cfg.seed)
    n_workers = cfg.resolved_workers()

    logger.info(
        "Starting search: target %s, background %s, %d contrasts x %d penalties, "
        "k=%d, n_centers=%d, cv_folds=%d, workers=%d",
        X.shape, Y.shape, len(grid.contrasts), len(grid.penalties),
        cfg.n_components, cfg.n_centers, cfg.cv_folds, n_workers,
    )

    if sparse_eigen_primitive is None:
        sparse_eigen_primitive = ElasticNetSparseEigen(random_state=cfg.seed)
    solver = SparseComponentSolver(sparse_eigen_primitive, cfg.n_components)
    grid_result = GridEngine(solver, n_workers=n_workers).run(pair, grid)

    unique = Deduplicator(atol=cfg.tol).deduplicate(grid_result.candidates)

    if clustering_primitive is None and clusters is None:
        clustering_primitive = make_clustering_primitive(cfg.clust_method, seed=cfg.seed, linkage=cfg.linkage)
    scorer = ClusterScorer(
        cfg.n_centers,
        clustering_primitive=clustering_primitive,
        clusters=clusters,
        n_workers=n_workers,
    )
    scored = CrossValidatedScorer(scorer, folds).score(unique, pair.target)

    result = select(scored, pair.target, with_table=cfg.return_table)
    result.warnings = [f.describe() for f in grid_result.failures]
    result.warnings.extend(msg for s in scored for msg in s.failures)
    result.n_grid_points = grid.size
    return result
