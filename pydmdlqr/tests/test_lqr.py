import numpy as np
import pytest
from scipy.linalg import solve_discrete_are

from ..ensembles import ginibre, multirotor_hover, stable_dt, uncontrollable_unstable
from ..errors import ShapeMismatch, UnstabilizableSystem
from ..lqr import dlqr, is_stabilizable, pbh_uncontrollable_modes
from .helpers import assert_schur

@pytest.mark.parametrize("seed", range(8))
def test_gain_is_stabilizing_for_random_systems(seed):
    rng = np.random.default_rng(seed)
    n, m = 6, 4
    A, B = ginibre(n, m, rng)
    A = 1.3 * A  # typically unstable open loop
    Q = np.diag(rng.uniform(0.1, 2.0, n))
    R = np.diag(rng.uniform(0.1, 2.0, m))
    g = dlqr(A, B, Q, R)
    assert g.K.shape == (m, n) and g.P.shape == (n, n)
    assert_schur(A - B @ g.K)
    assert g.spectral_radius < 1.0

def test_matches_riccati_fixed_point(rng):
    A, B = stable_dt(5, 2, rng, rho=1.1)
    Q, R = np.eye(5), 0.5 * np.eye(2)
    g = dlqr(A, B, Q, R)
    P = solve_discrete_are(A, B, Q, R)
    assert np.allclose(g.P, P)
    BtP = B.T @ P
    K = np.linalg.solve(R + BtP @ B, BtP @ A)
    assert np.allclose(g.K, K)
    rhs = A.T @ P @ A - A.T @ P @ B @ np.linalg.solve(R + B.T @ P @ B, B.T @ P @ A) + Q
    assert np.allclose(P, rhs, atol=1e-8)

def test_hover_model_with_default_weights(dt):
    from ..config import LQRWeights
    Ad, Bd = multirotor_hover(dt)
    w = LQRWeights()
    g = dlqr(Ad, Bd, w.Q, w.R)
    assert_schur(Ad - Bd @ g.K)
    # yaw does not act on translation, so its gain row vanishes
    assert np.allclose(g.K[2], 0.0, atol=1e-8)

def test_uncontrollable_unstable_mode_is_rejected():
    A, B = uncontrollable_unstable(3, 1)
    assert not is_stabilizable(A, B)
    bad = pbh_uncontrollable_modes(A, B)
    assert bad.size == 1 and np.isclose(bad[0], 1.5)
    with pytest.raises(UnstabilizableSystem) as ei:
        dlqr(A, B, np.eye(3), np.eye(1))
    assert ei.value.stage == "lqr"

def test_uncontrollable_stable_mode_is_fine():
    A = np.diag([0.5, 0.3, 1.2])
    B = np.array([[0.0], [0.0], [1.0]])
    assert is_stabilizable(A, B)
    g = dlqr(A, B, np.eye(3), np.eye(1))
    assert_schur(A - B @ g.K)

def test_unstabilizable_is_a_linalg_error():
    A, B = uncontrollable_unstable(2, 1)
    with pytest.raises(np.linalg.LinAlgError):
        dlqr(A, B, np.eye(2), np.eye(1))

def test_shape_and_weight_validation(rng):
    A, B = stable_dt(4, 2, rng)
    with pytest.raises(ShapeMismatch):
        dlqr(A, B, np.eye(3), np.eye(2))
    with pytest.raises(ShapeMismatch):
        dlqr(A, B, np.eye(4), np.eye(3))
    with pytest.raises(ShapeMismatch):
        dlqr(A[:, :3], B, np.eye(4), np.eye(2))
    with pytest.raises(ValueError):
        dlqr(A, B, np.eye(4), np.diag([1.0, 0.0]))
    with pytest.raises(ValueError):
        dlqr(A, B, -np.eye(4), np.eye(2))

def test_gain_is_read_only(rng):
    A, B = stable_dt(3, 1, rng)
    gain = dlqr(A, B, np.eye(3), np.eye(1))
    for arr in (gain.K, gain.P, gain.closed_loop_eigs):
        with pytest.raises(ValueError):
            arr[0] = 0.0
