"""
Covariance and contrastive covariance construction.

The target and background covariances are computed once per search; every
grid point only differs in the scalar weight applied to the background.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable
import numpy as np

from ..exceptions import DimensionMismatch, InsufficientObservations
from ..utils.logging_config import get_logger

logger = get_logger(__name__)

Array2D = np.ndarray


def preprocess(X: Array2D, center: bool = True, scale: bool = False) -> Array2D:
    """
    Column-wise centring and/or unit-variance scaling.

    Args:
        X: Data of shape (n_samples, n_features)
        center: Subtract each column's mean
        scale: Divide each column by its sample standard deviation (ddof=1).
            Constant columns are left unscaled.

    Returns:
        New array of the same shape; *X* is not modified.
    """
    out = np.array(X, dtype=np.float64, copy=True)
    if center:
        out -= out.mean(axis=0, keepdims=True)
    if scale:
        sd = out.std(axis=0, ddof=1, keepdims=True)
        constant = sd == 0
        if np.any(constant):
            logger.debug("Leaving %d constant column(s) unscaled", int(constant.sum()))
        sd[constant] = 1.0
        out /= sd
    return out


def sample_covariance(X: Array2D) -> Array2D:
    """
    Unbiased sample covariance of the columns of *X*, shape (p, p).

    Raises:
        InsufficientObservations: If *X* has fewer than 2 rows
    """
    n = X.shape[0]
    if n < 2:
        raise InsufficientObservations(f"Need at least 2 observations to estimate a covariance; got {n}")
    Xc = X - X.mean(axis=0, keepdims=True)
    cov = (Xc.T @ Xc) / (n - 1)
    return 0.5 * (cov + cov.T)


@dataclass
class CovariancePair:
    """Preprocessed target/background data and their covariances."""

    target: Array2D
    background: Array2D
    target_cov: Array2D
    background_cov: Array2D

    @property
    def n_features(self) -> int:
        return self.target_cov.shape[0]

    @classmethod
    def build(
        cls,
        target: Array2D,
        background: Array2D,
        center: bool = True,
        scale: bool = False,
    ) -> "CovariancePair":
        """
        Preprocess both matrices independently and compute their covariances.

        Raises:
            DimensionMismatch: If either input is not 2-D or the column
                counts differ
            InsufficientObservations: If either matrix has fewer than 2 rows
        """
        if target.ndim != 2 or background.ndim != 2:
            raise DimensionMismatch(
                f"target and background must be 2-D; got {target.shape} and {background.shape}"
            )
        if target.shape[1] != background.shape[1]:
            raise DimensionMismatch(
                f"target has {target.shape[1]} variables but background has {background.shape[1]}"
            )
        for name, M in (("target", target), ("background", background)):
            if M.shape[0] < 2:
                raise InsufficientObservations(f"{name} needs at least 2 rows; got {M.shape[0]}")

        Xp = preprocess(target, center=center, scale=scale)
        Yp = preprocess(background, center=center, scale=scale)
        logger.debug(
            "Built covariances: target %s, background %s (center=%s, scale=%s)",
            Xp.shape, Yp.shape, center, scale,
        )
        return cls(
            target=Xp,
            background=Yp,
            target_cov=sample_covariance(Xp),
            background_cov=sample_covariance(Yp),
        )


def contrastive_covariance(pair: CovariancePair, contrast: float) -> Array2D:
    """
    ``Cov(target) - contrast * Cov(background)``.

    Symmetric, but indefinite in general when ``contrast > 0``.
    """
    C = pair.target_cov - contrast * pair.background_cov
    return 0.5 * (C + C.T)


def contrastive_covariances(
    pair: CovariancePair, contrasts: Iterable[float]
) -> Dict[float, Array2D]:
    """Contrastive covariance for every contrast value, keyed by value."""
    return {float(a): contrastive_covariance(pair, a) for a in contrasts}
