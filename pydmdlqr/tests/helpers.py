import numpy as np

from ..estimators.dmdc import LinearModel
from ..lqr import dlqr


def model_and_gain(A, B, q=1.0, r=0.1):
    n, m = B.shape
    model = LinearModel(A=A, B=B)
    gain = dlqr(A, B, q * np.eye(n), r * np.eye(m))
    return model, gain


def assert_schur(M, margin=0.0):
    rho = float(np.max(np.abs(np.linalg.eigvals(M))))
    assert rho < 1.0 - margin, f"spectral radius {rho:.6f} not inside the unit circle"
