import numpy as np
import pytest

from ..errors import ShapeMismatch
from ..snapshots import align_inputs, build_snapshots

def test_shifted_pair_and_omega_layout(rng):
    n, m, T = 6, 4, 50
    X = rng.standard_normal((n, T))
    U = rng.standard_normal((m, T - 1))
    s = build_snapshots(X, U)
    assert s.X_now.shape == (n, T - 1) and s.X_next.shape == (n, T - 1)
    assert s.Omega.shape == (n + m, T - 1)
    assert np.array_equal(s.X_now, X[:, :-1])
    assert np.array_equal(s.X_next, X[:, 1:])
    assert np.array_equal(s.Omega[:n], X[:, :-1])
    assert np.array_equal(s.Omega[n:], U)
    assert (s.n, s.m) == (n, m)

def test_one_column_short_input_is_rejected(rng):
    X = rng.standard_normal((6, 50))
    U = rng.standard_normal((4, 48))  # needs 49
    with pytest.raises(ShapeMismatch) as ei:
        build_snapshots(X, U)
    assert ei.value.stage == "snapshots"
    assert "49" in str(ei.value)

def test_full_length_input_is_not_silently_truncated(rng):
    X = rng.standard_normal((6, 50))
    U = rng.standard_normal((4, 50))
    with pytest.raises(ShapeMismatch):
        build_snapshots(X, U)

def test_single_sample_and_non_2d_rejected(rng):
    with pytest.raises(ShapeMismatch):
        build_snapshots(rng.standard_normal((6, 1)), np.zeros((4, 0)))
    with pytest.raises(ShapeMismatch):
        build_snapshots(rng.standard_normal(6), np.zeros((4, 5)))

def test_shape_mismatch_is_a_value_error(rng):
    with pytest.raises(ValueError):
        build_snapshots(rng.standard_normal((3, 10)), rng.standard_normal((1, 3)))

def test_align_inputs_drops_trailing_sample_only(rng):
    X = rng.standard_normal((6, 20))
    U = rng.standard_normal((4, 20))
    Ua = align_inputs(X, U)
    assert Ua.shape == (4, 19)
    assert np.array_equal(Ua, U[:, :-1])
    assert align_inputs(X, Ua) is Ua
    with pytest.raises(ShapeMismatch):
        align_inputs(X, rng.standard_normal((4, 17)))
