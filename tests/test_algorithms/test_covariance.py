"""
Tests for covariance and contrastive covariance construction.
"""

import numpy as np
import pytest

from scpca.algorithms.covariance import (
    CovariancePair,
    preprocess,
    sample_covariance,
    contrastive_covariance,
    contrastive_covariances,
)
from scpca.exceptions import DimensionMismatch, InsufficientObservations


def test_preprocess_center_only():
    """Centring removes column means and leaves spread untouched."""
    rng = np.random.default_rng(0)
    X = rng.standard_normal((20, 4)) * 3 + 5
    out = preprocess(X, center=True, scale=False)
    np.testing.assert_allclose(out.mean(axis=0), 0.0, atol=1e-12)
    np.testing.assert_allclose(out.std(axis=0), X.std(axis=0))


def test_preprocess_scale():
    """Scaling gives unit sample variance per column."""
    rng = np.random.default_rng(1)
    X = rng.standard_normal((30, 5)) * np.arange(1, 6)
    out = preprocess(X, center=True, scale=True)
    np.testing.assert_allclose(out.std(axis=0, ddof=1), 1.0)


def test_preprocess_constant_column_left_unscaled():
    X = np.column_stack([np.arange(5.0), np.full(5, 3.0)])
    out = preprocess(X, center=True, scale=True)
    assert np.all(np.isfinite(out))
    np.testing.assert_array_equal(out[:, 1], 0.0)


def test_preprocess_does_not_modify_input():
    X = np.arange(12.0).reshape(4, 3)
    original = X.copy()
    preprocess(X, center=True, scale=True)
    np.testing.assert_array_equal(X, original)


def test_sample_covariance_matches_numpy():
    rng = np.random.default_rng(2)
    X = rng.standard_normal((25, 6))
    np.testing.assert_allclose(sample_covariance(X), np.cov(X, rowvar=False))


def test_sample_covariance_requires_two_rows():
    with pytest.raises(InsufficientObservations):
        sample_covariance(np.ones((1, 3)))


def test_covariance_pair_shapes(random_data):
    target, background = random_data
    pair = CovariancePair.build(target, background)
    assert pair.n_features == 6
    assert pair.target_cov.shape == (6, 6)
    assert pair.background_cov.shape == (6, 6)
    assert pair.target.shape == target.shape
    assert pair.background.shape == background.shape


def test_covariance_pair_column_mismatch():
    with pytest.raises(DimensionMismatch):
        CovariancePair.build(np.ones((5, 3)), np.ones((5, 4)))


def test_covariance_pair_rows_may_differ():
    rng = np.random.default_rng(3)
    pair = CovariancePair.build(rng.standard_normal((10, 3)), rng.standard_normal((50, 3)))
    assert pair.target.shape[0] == 10
    assert pair.background.shape[0] == 50


@pytest.mark.parametrize("shape_x, shape_y", [((1, 3), (5, 3)), ((5, 3), (1, 3))])
def test_covariance_pair_insufficient_rows(shape_x, shape_y):
    with pytest.raises(InsufficientObservations):
        CovariancePair.build(np.ones(shape_x), np.ones(shape_y))


def test_covariance_pair_rejects_1d():
    with pytest.raises(DimensionMismatch):
        CovariancePair.build(np.ones(5), np.ones((5, 1)))


def test_contrastive_covariance_formula(random_data):
    target, background = random_data
    pair = CovariancePair.build(target, background)
    C = contrastive_covariance(pair, 2.5)
    np.testing.assert_allclose(C, pair.target_cov - 2.5 * pair.background_cov)
    np.testing.assert_array_equal(C, C.T)


def test_contrastive_covariance_zero_is_target_cov(random_data):
    target, background = random_data
    pair = CovariancePair.build(target, background)
    np.testing.assert_allclose(contrastive_covariance(pair, 0.0), pair.target_cov)


def test_contrastive_covariance_can_be_indefinite(random_data):
    """Large contrasts give negative eigenvalues; that is expected."""
    target, background = random_data
    pair = CovariancePair.build(target, background)
    vals = np.linalg.eigvalsh(contrastive_covariance(pair, 100.0))
    assert vals.min() < 0


def test_contrastive_covariances_keyed_by_value(random_data):
    target, background = random_data
    pair = CovariancePair.build(target, background)
    mats = contrastive_covariances(pair, [0, 1, 10])
    assert sorted(mats) == [0.0, 1.0, 10.0]
    np.testing.assert_allclose(mats[10.0], contrastive_covariance(pair, 10.0))
