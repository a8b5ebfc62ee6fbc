"""
Configuration management for scpca.

Search settings live in a ``SearchConfig`` object that is passed explicitly
into ``search_with_config``; nothing in the package reads global state while
a search runs. ``SearchConfig.from_env()`` builds a config from environment
variables (typically from a .env file), loaded via python-dotenv.

Usage:
    from scpca.config import SearchConfig

    cfg = SearchConfig(n_centers=4, n_components=2, cv_folds=5)
    cfg = SearchConfig.from_env(n_centers=4)
"""

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Look for .env in project root (parent of src/)
env_path = Path(__file__).parent.parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)

CLUSTERING_METHODS = ("kmeans", "hclust")
LINKAGE_METHODS = ("ward", "complete", "average", "single")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"Environment variable {name} must be an integer; got {raw!r}") from e


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"Environment variable {name} must be a number; got {raw!r}") from e


@dataclass
class SearchConfig:
    """Tuning knobs for one sparse contrastive PCA search."""

    n_centers: int = 2
    n_components: int = 2
    center: bool = True
    scale: bool = False
    cv_folds: int = 1
    seed: int = 0
    parallel: bool = False
    n_workers: Optional[int] = None
    clust_method: str = "kmeans"  # "kmeans" or "hclust"
    linkage: str = "complete"  # only used by "hclust"
    tol: float = 1e-5  # absolute tolerance for duplicate loadings
    return_table: bool = True

    def __post_init__(self):
        """Validate settings."""
        if self.n_centers < 2:
            raise ValueError(f"n_centers must be >= 2 (silhouette needs two clusters), got {self.n_centers}")
        if self.n_components < 1:
            raise ValueError(f"n_components must be >= 1, got {self.n_components}")
        if self.cv_folds < 1:
            raise ValueError(f"cv_folds must be >= 1, got {self.cv_folds}")
        if self.n_workers is not None and self.n_workers < 1:
            raise ValueError(f"n_workers must be >= 1 when set, got {self.n_workers}")
        if self.clust_method not in CLUSTERING_METHODS:
            raise ValueError(
                f"clust_method must be one of {CLUSTERING_METHODS}, got {self.clust_method!r}"
            )
        if self.linkage not in LINKAGE_METHODS:
            raise ValueError(f"linkage must be one of {LINKAGE_METHODS}, got {self.linkage!r}")
        if self.tol < 0:
            raise ValueError(f"tol must be non-negative, got {self.tol}")

    def resolved_workers(self) -> int:
        """Number of workers to use; 1 when running serially."""
        if not self.parallel:
            return 1
        if self.n_workers is not None:
            return self.n_workers
        return os.cpu_count() or 1

    @classmethod
    def from_env(cls, **overrides) -> "SearchConfig":
        """
        Build a config from ``SCPCA_*`` environment variables.

        Environment variables can be set:
        1. In a .env file in the project root
        2. In the system environment

        Keyword arguments override both the environment and the defaults.

        Raises:
            ValueError: If an override names an unknown field or an
                environment variable cannot be parsed
        """
        known = {f.name for f in fields(cls)}
        unknown = set(overrides) - known
        if unknown:
            raise ValueError(f"Unknown SearchConfig fields: {sorted(unknown)}")

        defaults = cls.__dataclass_fields__
        values = {
            "seed": _env_int("SCPCA_SEED", defaults["seed"].default),
            "cv_folds": _env_int("SCPCA_CV_FOLDS", defaults["cv_folds"].default),
            "parallel": _env_bool("SCPCA_PARALLEL", defaults["parallel"].default),
            "n_workers": _env_int("SCPCA_N_WORKERS", None),
            "clust_method": os.getenv("SCPCA_CLUST_METHOD") or defaults["clust_method"].default,
            "tol": _env_float("SCPCA_DEDUP_TOL", defaults["tol"].default),
        }
        values.update(overrides)
        return cls(**values)
