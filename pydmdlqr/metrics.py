from __future__ import annotations
import numpy as np
import numpy.linalg as npl
from typing import Dict, Optional

from scipy.linalg import expm

# ---------------------------------------------------------------------
# Diagnostics for identified models and closed-loop rollouts
# - ZOH discretization (synthetic ground truth)
# - one-step data residual
# - tracking / control RMSE
# - gain recovered from a rollout
# - model distance to ground truth
# ---------------------------------------------------------------------


# ====================== Discretization ===============================

def cont2discrete_zoh(A: np.ndarray, B: np.ndarray, dt: float):
    """Zero-order hold (ZOH) discretization of (A,B) with step dt."""
    n, m = B.shape
    M = np.zeros((n + m, n + m))
    M[:n, :n] = A * dt
    M[:n, n:] = B * dt
    Md = expm(M)
    Ad = Md[:n, :n]
    Bd = Md[:n, n:]
    return Ad, Bd


# ====================== Spectra =======================================

def spectral_radius(A: np.ndarray) -> float:
    A = np.asarray(A)
    if A.size == 0:
        return 0.0
    return float(np.max(np.abs(npl.eigvals(A))))


def is_schur(A: np.ndarray, margin: float = 0.0) -> bool:
    """All eigenvalues strictly inside the circle of radius 1 - margin."""
    return spectral_radius(A) < 1.0 - margin


# ====================== Residuals / errors ============================

def one_step_residual(X0: np.ndarray, X1: np.ndarray, U: np.ndarray,
                      Ahat: np.ndarray, Bhat: np.ndarray) -> float:
    """||X1 - Ahat X0 - Bhat U||_F / ||X1||_F."""
    R = X1 - Ahat @ X0 - Bhat @ U
    return float(npl.norm(R, "fro") / (npl.norm(X1, "fro") + 1e-18))


def pair_distance(
        Ahat: np.ndarray,
        Bhat: np.ndarray,
        A: np.ndarray,
        B: np.ndarray) -> Dict[str, float]:
    errA = float(npl.norm(Ahat - A, "fro"))
    errB = float(npl.norm(Bhat - B, "fro"))
    return {"A_err": errA, "B_err": errB, "mean": float(np.mean([errA, errB]))}


def tracking_rmse(X: np.ndarray, Xtarget: np.ndarray) -> np.ndarray:
    """Per-row RMSE over the common horizon of two (rows, T) arrays."""
    X = np.asarray(X, dtype=float)
    Xtarget = np.asarray(Xtarget, dtype=float)
    if X.shape[0] != Xtarget.shape[0]:
        raise ValueError(f"row mismatch: {X.shape} vs {Xtarget.shape}")
    T = min(X.shape[1], Xtarget.shape[1])
    if T == 0:
        return np.full(X.shape[0], np.nan)
    d = X[:, :T] - Xtarget[:, :T]
    return np.sqrt(np.mean(d ** 2, axis=1))


def control_rmse(Uest: np.ndarray, Umeas: np.ndarray) -> np.ndarray:
    """Per-channel RMSE between estimated and recorded inputs."""
    return tracking_rmse(Uest, Umeas)


def recovered_gain(Uest: np.ndarray, E: np.ndarray, rcond: float = 1e-15) -> np.ndarray:
    """Least-squares gain mapping tracking errors E (n, T) to controls Uest (m, T)."""
    return Uest @ npl.pinv(E, rcond=rcond)


def gain_consistency(K: np.ndarray, Uest: np.ndarray, E: np.ndarray) -> Dict[str, float]:
    """Relative distance between K and the gain recovered from its own rollout."""
    K1 = recovered_gain(Uest, E)
    d = float(npl.norm(K1 - K, "fro"))
    return {"K1_err": d, "K1_rel": d / (float(npl.norm(K, "fro")) + 1e-18)}


def settle_index(err_norm: np.ndarray, tol: float) -> Optional[int]:
    """First k after which ||e_k|| stays below tol; None if it never settles."""
    above = np.nonzero(np.asarray(err_norm) >= tol)[0]
    if above.size == 0:
        return 0
    k = int(above[-1]) + 1
    return k if k < len(err_norm) else None
