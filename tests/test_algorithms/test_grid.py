"""
Tests for grid enumeration and the grid engine.
"""

import time

import numpy as np
import pytest

from scpca.algorithms.covariance import CovariancePair
from scpca.algorithms.grid import GridEngine, GridPoint, HyperparameterGrid
from scpca.algorithms.sparse_eigen import SparseComponentSolver
from scpca.exceptions import EmptyGridResult


# ------------------------------------------------------------------
# HyperparameterGrid
# ------------------------------------------------------------------


def test_grid_sorts_values():
    grid = HyperparameterGrid.from_values([10, 0, 1], [1.0, 0.5])
    assert grid.contrasts == [0.0, 1.0, 10.0]
    assert grid.penalties == [0.5, 1.0]
    assert grid.size == 6


def test_grid_enumeration_is_contrast_major():
    grid = HyperparameterGrid.from_values([0, 1], [0.1, 0.2, 0.3])
    pts = grid.points()
    assert [p.index for p in pts] == list(range(6))
    assert [(p.contrast, p.penalty) for p in pts] == [
        (0.0, 0.1), (0.0, 0.2), (0.0, 0.3),
        (1.0, 0.1), (1.0, 0.2), (1.0, 0.3),
    ]
    assert grid.point(4) == GridPoint(4, 1.0, 0.2)


@pytest.mark.parametrize(
    "contrasts, penalties",
    [
        ([1, 1], [0]),
        ([0], [0.5, 0.5]),
        ([-1], [0]),
        ([0], [-0.1]),
        ([], [0]),
        ([np.inf], [0]),
    ],
)
def test_grid_rejects_invalid_values(contrasts, penalties):
    with pytest.raises(ValueError):
        HyperparameterGrid.from_values(contrasts, penalties)


# ------------------------------------------------------------------
# GridEngine
# ------------------------------------------------------------------


def test_engine_solves_every_point(random_data, eigh_primitive):
    target, background = random_data
    pair = CovariancePair.build(target, background)
    grid = HyperparameterGrid.from_values([0, 1, 5], [0, 0.5])
    result = GridEngine(SparseComponentSolver(eigh_primitive, 2)).run(pair, grid)

    assert len(result.candidates) == 6
    assert result.failures == []
    assert [c.index for c in result.candidates] == list(range(6))
    for cand in result.candidates:
        assert cand.loadings.shape == (6, 2)
        assert cand.eigenvalues.shape == (2,)


def test_engine_drops_failed_points(random_data, eigh_primitive):
    target, background = random_data
    pair = CovariancePair.build(target, background)

    def flaky(matrix, penalty, k):
        if penalty == 0.5:
            raise RuntimeError("no convergence")
        return eigh_primitive(matrix, penalty, k)

    grid = HyperparameterGrid.from_values([0, 1], [0, 0.5])
    result = GridEngine(SparseComponentSolver(flaky, 2)).run(pair, grid)

    assert [c.index for c in result.candidates] == [0, 2]
    assert [f.point.index for f in result.failures] == [1, 3]
    assert "no convergence" in result.failures[0].reason
    assert "dropped" in result.failures[0].describe()


def test_engine_all_points_fail(random_data):
    target, background = random_data
    pair = CovariancePair.build(target, background)

    def always_fails(matrix, penalty, k):
        raise RuntimeError("boom")

    grid = HyperparameterGrid.from_values([0, 1], [0])
    with pytest.raises(EmptyGridResult):
        GridEngine(SparseComponentSolver(always_fails, 2)).run(pair, grid)


def test_engine_parallel_keeps_grid_order(random_data, eigh_primitive):
    """Later grid points finish first, but results stay in grid order."""
    target, background = random_data
    pair = CovariancePair.build(target, background)

    def slow_for_small_penalty(matrix, penalty, k):
        time.sleep(0.05 * (1.0 - penalty))
        return eigh_primitive(matrix, penalty, k)

    grid = HyperparameterGrid.from_values([0, 2], [0.0, 0.25, 0.5, 0.75])
    solver = SparseComponentSolver(slow_for_small_penalty, 2)
    serial = GridEngine(solver, n_workers=1).run(pair, grid)
    parallel = GridEngine(solver, n_workers=4).run(pair, grid)

    assert [c.index for c in parallel.candidates] == list(range(8))
    for a, b in zip(serial.candidates, parallel.candidates):
        assert a.point == b.point
        np.testing.assert_array_equal(a.loadings, b.loadings)


def test_engine_uses_contrastive_matrix(random_data):
    target, background = random_data
    pair = CovariancePair.build(target, background)
    seen = []

    def recording(matrix, penalty, k):
        seen.append(matrix.copy())
        return np.eye(matrix.shape[0])[:, :k], np.zeros(k)

    grid = HyperparameterGrid.from_values([0, 3], [0])
    GridEngine(SparseComponentSolver(recording, 1)).run(pair, grid)
    np.testing.assert_allclose(seen[0], pair.target_cov)
    np.testing.assert_allclose(seen[1], pair.target_cov - 3 * pair.background_cov)
