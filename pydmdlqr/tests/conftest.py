import matplotlib
matplotlib.use("Agg")

import numpy as np
import pytest

from ..ensembles import stable_dt

@pytest.fixture(scope="session")
def seed():
    return 12345

@pytest.fixture
def rng(seed):
    return np.random.default_rng(seed)

@pytest.fixture
def dt():
    return 0.02

@pytest.fixture
def horizon():
    return 200  # T-1 >= n+m with margin

@pytest.fixture
def linear_data(rng, horizon):
    """Noise-free (X, U, A*, B*) from a Schur-stable 6-state / 4-input system."""
    def _make(n=6, m=4, T=None, rho=0.95):
        T = T or horizon
        A, B = stable_dt(n, m, rng, rho=rho)
        U = rng.standard_normal((m, T - 1))
        X = np.zeros((n, T))
        X[:, 0] = rng.standard_normal(n)
        for k in range(T - 1):
            X[:, k + 1] = A @ X[:, k] + B @ U[:, k]
        return X, U, A, B
    return _make
