import importlib.util

import numpy as np
import pytest

from ..ensembles import multirotor_hover, stable_dt
from ..errors import ShapeMismatch
from ..metrics import settle_index
from ..simulation import evaluate_generalization, simulate_closed_loop
from .helpers import model_and_gain

def test_rollout_shapes_and_recurrence(rng):
    A, B = stable_dt(6, 4, rng)
    model, gain = model_and_gain(A, B)
    Xref = rng.standard_normal((6, 30))
    r = simulate_closed_loop(model, gain, Xref)
    assert r.x.shape == (6, 31) and r.u_est.shape == (4, 30) and r.horizon == 30
    assert np.array_equal(r.x[:, 0], Xref[:, 0])
    for k in (0, 7, 29):
        u = gain.K @ (Xref[:, k] - r.x[:, k])
        assert np.allclose(r.u_est[:, k], u)
        assert np.allclose(r.x[:, k + 1], A @ r.x[:, k] + B @ u)
    assert np.allclose(r.tracking_error, Xref - r.x[:, :-1])

def test_rollout_is_bit_deterministic(rng):
    A, B = stable_dt(6, 4, rng, rho=1.05)
    model, gain = model_and_gain(A, B)
    Xref = rng.standard_normal((6, 100))
    r1 = simulate_closed_loop(model, gain, Xref)
    r2 = simulate_closed_loop(model, gain, Xref.copy())
    assert np.array_equal(r1.x, r2.x) and np.array_equal(r1.u_est, r2.u_est)

def test_constant_reference_is_tracked(dt):
    Ad, Bd = multirotor_hover(dt)
    model, gain = model_and_gain(Ad, Bd, q=1.0, r=0.01)
    c = np.array([1.0, -2.0, 0.5, 0.0, 0.0, 0.0])  # hover point: A c = c
    T = 1500
    Xref = np.tile(c[:, None], (1, T))
    r = simulate_closed_loop(model, gain, Xref, x0=np.zeros(6))
    err = np.linalg.norm(r.x - c[:, None], axis=0)
    assert err[0] > 1.0
    k = settle_index(err, 1e-3)
    assert k is not None and k < T
    assert err[-1] < 1e-5

def test_explicit_initial_state(rng):
    A, B = stable_dt(3, 1, rng)
    model, gain = model_and_gain(A, B)
    x0 = np.array([1.0, 2.0, 3.0])
    r = simulate_closed_loop(model, gain, np.zeros((3, 5)), x0=x0)
    assert np.array_equal(r.x[:, 0], x0)

def test_rollout_shape_errors(rng):
    A, B = stable_dt(4, 2, rng)
    model, gain = model_and_gain(A, B)
    with pytest.raises(ShapeMismatch):
        simulate_closed_loop(model, gain, rng.standard_normal((3, 10)))
    with pytest.raises(ShapeMismatch):
        simulate_closed_loop(model, gain, np.zeros((4, 0)))
    with pytest.raises(ShapeMismatch):
        simulate_closed_loop(model, gain, np.zeros((4, 5)), x0=np.zeros(3))

def test_generalization_uses_same_model_and_gain(rng):
    A, B = stable_dt(6, 4, rng)
    model, gain = model_and_gain(A, B)
    X1 = rng.standard_normal((6, 40))
    X2 = rng.standard_normal((6, 60))
    r1 = simulate_closed_loop(model, gain, X1)
    out = evaluate_generalization(model, gain, X2, X_measured=X2)
    r2 = out["rollout"]
    assert r2.horizon == 60 and r1.horizon == 40
    assert np.array_equal(r2.x, simulate_closed_loop(model, gain, X2).x)
    assert out["ref_rmse"].shape == (6,) and out["measured_rmse"].shape == (6,)
    assert np.all(np.isfinite(out["measured_rmse"]))

has_jax = importlib.util.find_spec("jax") is not None

@pytest.mark.skipif(not has_jax, reason="JAX not installed")
def test_jax_rollout_parity(rng):
    from .. import jax_accel as jxa
    jxa.enable_x64(True)
    A, B = stable_dt(6, 4, rng, rho=1.05)
    model, gain = model_and_gain(A, B)
    Xref = rng.standard_normal((6, 80))
    rn = simulate_closed_loop(model, gain, Xref)
    rj = simulate_closed_loop(model, gain, Xref, use_jax=True)
    rel = np.linalg.norm(rj.x - rn.x) / (1 + np.linalg.norm(rn.x))
    assert rel <= 1e-10
    assert np.allclose(rj.u_est, rn.u_est, atol=1e-9)
