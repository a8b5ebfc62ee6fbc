"""
Clustering primitives and clustering-quality scoring.

Candidates are scored by projecting the target data onto their loadings,
partitioning the projection into ``n_centers`` clusters and taking the
average silhouette width (Euclidean distance). Higher is better.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Protocol, Sequence, Union, runtime_checkable
import numpy as np
from sklearn.cluster import AgglomerativeClustering, KMeans
from sklearn.metrics import silhouette_score

from ..config import CLUSTERING_METHODS, LINKAGE_METHODS
from ..exceptions import DegenerateClusteringFailure
from ..utils.logging_config import get_logger
from ..utils.parallel import ordered_map
from .dedup import UniqueSolution

logger = get_logger(__name__)

Array2D = np.ndarray
NEG_INF = float("-inf")


@runtime_checkable
class ClusteringPrimitive(Protocol):
    """Structural interface for clustering algorithms.

    ``cluster`` partitions the rows of *points* into *k* groups and returns
    one integer label per row.
    """

    def cluster(self, points: Array2D, k: int) -> np.ndarray: ...


ClusteringLike = Union[ClusteringPrimitive, Callable[[Array2D, int], np.ndarray]]


class KMeansClustering:
    """k-means with k-means++ seeding (scikit-learn), seeded for reproducibility."""

    def __init__(self, seed: int = 0, n_init: int = 10, max_iter: int = 300):
        self.seed = seed
        self.n_init = n_init
        self.max_iter = max_iter

    def cluster(self, points: Array2D, k: int) -> np.ndarray:
        model = KMeans(n_clusters=k, n_init=self.n_init, max_iter=self.max_iter, random_state=self.seed)
        return model.fit_predict(points)


class HierarchicalClustering:
    """Agglomerative clustering cut at *k* clusters."""

    def __init__(self, linkage: str = "complete"):
        if linkage not in LINKAGE_METHODS:
            raise ValueError(f"linkage must be one of {LINKAGE_METHODS}, got {linkage!r}")
        self.linkage = linkage

    def cluster(self, points: Array2D, k: int) -> np.ndarray:
        model = AgglomerativeClustering(n_clusters=k, linkage=self.linkage)
        return model.fit_predict(points)


def make_clustering_primitive(
    method: str = "kmeans", seed: int = 0, linkage: str = "complete", **kwargs
) -> ClusteringPrimitive:
    """
    Build one of the bundled clustering primitives.

    Args:
        method: "kmeans" or "hclust"
        seed: Random seed (k-means initialisation)
        linkage: Linkage criterion for "hclust"
        **kwargs: Extra constructor arguments (e.g. ``n_init`` for k-means)

    Raises:
        ValueError: If *method* is unknown
    """
    if method == "kmeans":
        return KMeansClustering(seed=seed, **kwargs)
    if method == "hclust":
        return HierarchicalClustering(linkage=linkage, **kwargs)
    raise ValueError(f"method must be one of {CLUSTERING_METHODS}, got {method!r}")


def project(data: Array2D, loadings: Array2D) -> Array2D:
    """Scores of *data* (n, p) on *loadings* (p, k): shape (n, k)."""
    return data @ loadings


def silhouette_width(points: Array2D, labels: np.ndarray) -> float:
    """
    Average silhouette width of a partition, Euclidean distance.

    Raises:
        DegenerateClusteringFailure: If the partition has fewer than two
            clusters, one cluster per point, or a label count that does not
            match the number of points
    """
    labels = np.asarray(labels).reshape(-1)
    n = points.shape[0]
    if labels.shape[0] != n:
        raise DegenerateClusteringFailure(f"got {labels.shape[0]} labels for {n} points")
    n_clusters = len(np.unique(labels))
    if n_clusters < 2:
        raise DegenerateClusteringFailure(f"partition has {n_clusters} non-empty cluster(s); need at least 2")
    if n_clusters >= n:
        raise DegenerateClusteringFailure(f"partition has {n_clusters} clusters for {n} points")
    score = float(silhouette_score(points, labels, metric="euclidean"))
    if not np.isfinite(score):
        raise DegenerateClusteringFailure("silhouette width is not finite")
    return score


@dataclass
class ScoredSolution:
    """A unique solution with its clustering score."""

    solution: UniqueSolution
    score: float
    fold_scores: Optional[List[float]] = None
    failures: List[str] = field(default_factory=list)

    @property
    def viable(self) -> bool:
        return self.score > NEG_INF


class ClusterScorer:
    """
    Scores candidate loadings by clustering the projected target.

    Args:
        n_centers: Number of clusters requested from the primitive
        clustering_primitive: Object with ``cluster(points, k)`` or a callable
            ``(points, k) -> labels``. Ignored when *clusters* is given.
        clusters: Fixed cluster labels for the target rows; when given the
            silhouette of these labels is measured in each projected space
            instead of running a clustering algorithm
        n_workers: Degree of parallelism across candidates
    """

    def __init__(
        self,
        n_centers: int,
        clustering_primitive: Optional[ClusteringLike] = None,
        clusters: Optional[Sequence] = None,
        n_workers: int = 1,
    ):
        if n_centers < 2:
            raise ValueError(f"n_centers must be >= 2 (silhouette needs two clusters), got {n_centers}")
        if clustering_primitive is None and clusters is None:
            raise ValueError("Either clustering_primitive or clusters must be provided")
        self.n_centers = n_centers
        self.clustering_primitive = clustering_primitive
        self.clusters = None if clusters is None else np.asarray(clusters).reshape(-1)
        self.n_workers = max(1, int(n_workers))

    def _labels(self, points: Array2D, rows: Optional[np.ndarray]) -> np.ndarray:
        if self.clusters is not None:
            return self.clusters if rows is None else self.clusters[rows]

        n = points.shape[0]
        if self.n_centers > n:
            raise DegenerateClusteringFailure(f"n_centers={self.n_centers} exceeds the {n} rows to cluster")
        prim = self.clustering_primitive
        try:
            if isinstance(prim, ClusteringPrimitive):
                labels = prim.cluster(points, self.n_centers)
            else:
                labels = prim(points, self.n_centers)
        except DegenerateClusteringFailure:
            raise
        except Exception as e:
            raise DegenerateClusteringFailure(f"clustering failed: {type(e).__name__}: {e}") from e
        return np.asarray(labels)

    def score_points(self, points: Array2D, rows: Optional[np.ndarray] = None) -> float:
        """
        Cluster *points* and return their silhouette width.

        Args:
            points: Projected observations (n, k)
            rows: Target row indices of *points*, used to slice fixed labels

        Raises:
            DegenerateClusteringFailure: On an unusable partition
        """
        return silhouette_width(points, self._labels(points, rows))

    def score_solution(self, solution: UniqueSolution, data: Array2D) -> ScoredSolution:
        """Score one solution on *data*; degenerate partitions score -inf."""
        try:
            score = self.score_points(project(data, solution.loadings))
        except DegenerateClusteringFailure as e:
            msg = (
                f"candidate {solution.index} (contrast={solution.contrast:g}, "
                f"penalty={solution.penalty:g}) scored -inf: {e}"
            )
            logger.warning(msg)
            return ScoredSolution(solution=solution, score=NEG_INF, failures=[msg])
        logger.debug("Candidate %d silhouette=%.4f", solution.index, score)
        return ScoredSolution(solution=solution, score=score)

    def score(self, solutions: Sequence[UniqueSolution], data: Array2D) -> List[ScoredSolution]:
        """Score every solution, preserving input order."""
        if self.clusters is not None and self.clusters.shape[0] != data.shape[0]:
            raise ValueError(
                f"clusters has {self.clusters.shape[0]} labels but target has {data.shape[0]} rows"
            )
        return ordered_map(lambda s: self.score_solution(s, data), solutions, self.n_workers)
