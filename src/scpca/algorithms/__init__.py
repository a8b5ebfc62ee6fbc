"""
Algorithm Core Library - sparse contrastive PCA hyperparameter search.

Covariance construction, sparse eigendecomposition over a (contrast x
penalty) grid, deduplication, clustering-based scoring and selection.
"""

from .covariance import (
    CovariancePair,
    preprocess,
    sample_covariance,
    contrastive_covariance,
    contrastive_covariances,
)
from .sparse_eigen import SparseEigenPrimitive, ElasticNetSparseEigen, SparseComponentSolver
from .grid import GridPoint, HyperparameterGrid, CandidateSolution, GridFailure, GridResult, GridEngine
from .dedup import canonicalize_signs, loadings_equivalent, UniqueSolution, Deduplicator
from .clustering import (
    ClusteringPrimitive,
    KMeansClustering,
    HierarchicalClustering,
    make_clustering_primitive,
    project,
    silhouette_width,
    ScoredSolution,
    ClusterScorer,
)
from .cross_validation import assign_folds, CrossValidatedScorer
from .selection import SelectionResult, rank_solutions, ranked_table, select
from .search import default_contrasts, default_penalties, search, search_with_config

__all__ = [
    # Covariance
    "CovariancePair",
    "preprocess",
    "sample_covariance",
    "contrastive_covariance",
    "contrastive_covariances",
    # Sparse eigensolver
    "SparseEigenPrimitive",
    "ElasticNetSparseEigen",
    "SparseComponentSolver",
    # Grid
    "GridPoint",
    "HyperparameterGrid",
    "CandidateSolution",
    "GridFailure",
    "GridResult",
    "GridEngine",
    # Deduplication
    "canonicalize_signs",
    "loadings_equivalent",
    "UniqueSolution",
    "Deduplicator",
    # Clustering and scoring
    "ClusteringPrimitive",
    "KMeansClustering",
    "HierarchicalClustering",
    "make_clustering_primitive",
    "project",
    "silhouette_width",
    "ScoredSolution",
    "ClusterScorer",
    "assign_folds",
    "CrossValidatedScorer",
    # Selection
    "SelectionResult",
    "rank_solutions",
    "ranked_table",
    "select",
    # Search orchestration
    "default_contrasts",
    "default_penalties",
    "search",
    "search_with_config",
]
