"""
Pytest configuration and shared fixtures.

This file is automatically discovered by pytest and provides fixtures
available to all test modules.
"""

import sys
from pathlib import Path

import numpy as np
import pytest

# scripts/ is not an installed package; make it importable as ``scripts.*``
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


N_SIGNAL = 20
N_NOISE = 10


def _make_contrastive_data(seed: int = 0, n: int = 100):
    """
    Target with 4 groups in 20 signal variables plus 10 noisy variables.

    The noisy variables are driven by two strong latent factors that the
    background shares; the background carries no group structure.
    """
    rng = np.random.default_rng(seed)
    p = N_SIGNAL + N_NOISE

    centers = 3.0 * rng.standard_normal((4, N_SIGNAL))
    groups = np.repeat(np.arange(4), n // 4)
    noise_loadings = rng.standard_normal((2, N_NOISE))
    noise_loadings /= np.linalg.norm(noise_loadings, axis=1, keepdims=True)

    target = np.empty((n, p))
    target[:, :N_SIGNAL] = centers[groups] + rng.standard_normal((n, N_SIGNAL))
    factors = 20.0 * rng.standard_normal((n, 2))
    target[:, N_SIGNAL:] = factors @ noise_loadings + rng.standard_normal((n, N_NOISE))

    background = np.empty((n, p))
    background[:, :N_SIGNAL] = 0.5 * rng.standard_normal((n, N_SIGNAL))
    factors_bg = 20.0 * rng.standard_normal((n, 2))
    background[:, N_SIGNAL:] = factors_bg @ noise_loadings + rng.standard_normal((n, N_NOISE))
    return target, background, groups


@pytest.fixture
def contrastive_data():
    """
    (target, background, groups) for the 4-group contrastive scenario.

    Variables 0-19 carry the group signal, 20-29 the shared noise.
    """
    return _make_contrastive_data(seed=0)


@pytest.fixture
def random_data():
    """Small unstructured (target, background) pair, 40x6 and 30x6."""
    rng = np.random.default_rng(42)
    scales = np.array([5.0, 4.0, 3.0, 2.0, 1.0, 0.5])
    target = rng.standard_normal((40, 6)) * scales
    background = rng.standard_normal((30, 6))
    return target, background


@pytest.fixture
def blob_points():
    """Three well-separated 2-D blobs of 20 points each, with labels."""
    rng = np.random.default_rng(7)
    centers = np.array([[0.0, 0.0], [10.0, 0.0], [0.0, 10.0]])
    labels = np.repeat(np.arange(3), 20)
    points = centers[labels] + 0.3 * rng.standard_normal((60, 2))
    return points, labels


@pytest.fixture
def eigh_primitive():
    """
    Sparse-eigen primitive that ignores the penalty: plain top-k eigenvectors.

    Useful for exercising the engine without scikit-learn's SparsePCA.
    """
    def solve(matrix, penalty, k):
        vals, vecs = np.linalg.eigh(matrix)
        order = np.argsort(vals)[::-1][:k]
        return vecs[:, order], vals[order]

    return solve
