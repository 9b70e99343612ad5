import numpy as np
import pytest

from ..loggers.tolerances import TolerancePolicy
from ..truncation import truncated_svd

def _with_spectrum(rng, s, rows=8, cols=30):
    Q1, _ = np.linalg.qr(rng.standard_normal((rows, rows)))
    Q2, _ = np.linalg.qr(rng.standard_normal((cols, rows)))
    d = np.zeros(rows)
    d[:len(s)] = s
    return Q1 @ np.diag(d) @ Q2.T

def test_rank_counts_values_strictly_above_threshold(rng):
    M = _with_spectrum(rng, [3.0, 1.0, 1e-3, 1e-12])
    svd = truncated_svd(M, thresh=1e-10)
    assert svd.rank == 3
    assert svd.U.shape == (8, 3) and svd.V.shape == (30, 3) and svd.s.shape == (3,)
    assert svd.spectrum.size == 8
    assert svd.rank <= min(M.shape)

def test_truncated_factors_reconstruct_retained_part(rng):
    M = _with_spectrum(rng, [2.0, 0.5, 0.1])
    svd = truncated_svd(M)
    assert np.allclose(svd.U @ svd.Sigma @ svd.V.T, M, atol=1e-10)

def test_rank_is_monotone_in_threshold(rng):
    M = _with_spectrum(rng, np.logspace(1, -12, 8))
    ranks = [truncated_svd(M, thresh=eps).rank for eps in np.logspace(-14, 2, 33)]
    assert all(r2 <= r1 for r1, r2 in zip(ranks, ranks[1:]))
    assert ranks[0] == 8 and ranks[-1] == 0

def test_zero_matrix_gives_rank_zero(rng):
    svd = truncated_svd(np.zeros((10, 40)))
    assert svd.rank == 0
    assert svd.U.shape == (10, 0) and svd.V.shape == (40, 0)
    assert svd.condition == float("inf")

def test_pinv_sigma_inverts_truncated_diagonal(rng):
    M = _with_spectrum(rng, [4.0, 2.0, 1e-4])
    svd = truncated_svd(M)
    assert np.allclose(svd.pinv_sigma() @ svd.Sigma, np.eye(svd.rank))
    assert np.isclose(svd.condition, 4.0 / 1e-4)

def test_policy_threshold_wins_and_near_threshold_band(rng):
    M = _with_spectrum(rng, [1.0, 5e-6, 5e-9])
    tol = TolerancePolicy(svd_thresh=1e-6, near_factor=10.0)
    svd = truncated_svd(M, thresh=1e-12, tol=tol)
    assert svd.rank == 2 and svd.thresh == 1e-6
    near = svd.near_threshold(10.0)
    assert near.size == 1 and np.isclose(near[0], 5e-6)

def test_negative_threshold_rejected_by_solver_opts():
    from ..config import SolverOpts
    with pytest.raises(ValueError):
        SolverOpts(thresh=-1.0)
