# pydmdlqr/lqr.py
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
import numpy.linalg as npl
from scipy.linalg import solve_discrete_are

from .errors import ShapeMismatch, UnstabilizableSystem
from .loggers.tolerances import TolerancePolicy

logger = logging.getLogger(__name__)

_STAGE = "lqr"

# ---------------------------------------------------------------------
# Discrete infinite-horizon LQR.
#   P = A'PA - A'PB (R + B'PB)^{-1} B'PA + Q
#   K = (R + B'PB)^{-1} B'PA,   u = K (x_ref - x)
# Only the stabilizing solution is accepted: ρ(A - B K) < 1.
# ---------------------------------------------------------------------


@dataclass(frozen=True)
class LQRGain:
    K: np.ndarray               # (m, n)
    P: np.ndarray               # (n, n) stabilizing DARE solution
    closed_loop_eigs: np.ndarray

    def __post_init__(self) -> None:
        for name, dtype in (("K", float), ("P", float), ("closed_loop_eigs", complex)):
            M = np.array(getattr(self, name), dtype=dtype)
            M.setflags(write=False)
            object.__setattr__(self, name, M)

    @property
    def spectral_radius(self) -> float:
        return float(np.max(np.abs(self.closed_loop_eigs)))


def _check_weight(M: np.ndarray, name: str, definite: bool) -> None:
    if not np.allclose(M, M.T, atol=1e-8):
        raise ValueError(f"{name} must be symmetric.")
    ev = npl.eigvalsh(M)
    if definite and np.any(ev <= 1e-12):
        raise ValueError(f"{name} must be positive definite, eigenvalues: {ev}")
    if not definite and np.any(ev < -1e-10):
        raise ValueError(f"{name} must be positive semi-definite, eigenvalues: {ev}")


def pbh_uncontrollable_modes(
    A: np.ndarray,
    B: np.ndarray,
    tol: Optional[TolerancePolicy] = None,
    only_unstable: bool = True,
) -> np.ndarray:
    """Eigenvalues λ of A with rank([λI - A, B]) < n.

    With ``only_unstable`` only |λ| >= 1 is tested, i.e. the stabilizability
    part of the PBH test for discrete time.
    """
    tol = tol or TolerancePolicy()
    n = A.shape[0]
    lam = npl.eigvals(A)
    bad = []
    for l in lam:
        if only_unstable and abs(l) < 1.0 - tol.unit_circle_tol:
            continue
        M = np.concatenate([l * np.eye(n) - A, B], axis=1).astype(np.complex128)
        s = npl.svd(M, compute_uv=False)
        if tol.numerical_rank(s) < n:
            bad.append(l)
    return np.asarray(bad, dtype=np.complex128)


def is_stabilizable(A: np.ndarray, B: np.ndarray, tol: Optional[TolerancePolicy] = None) -> bool:
    return pbh_uncontrollable_modes(A, B, tol=tol, only_unstable=True).size == 0


def _validate(A, B, Q, R) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    A = np.asarray(A, dtype=float)
    B = np.asarray(B, dtype=float)
    Q = np.asarray(Q, dtype=float)
    R = np.asarray(R, dtype=float)
    if A.ndim != 2 or A.shape[0] != A.shape[1]:
        raise ShapeMismatch(f"A must be square, got shape {A.shape}.", stage=_STAGE)
    n = A.shape[0]
    if B.ndim != 2 or B.shape[0] != n:
        raise ShapeMismatch(f"B must have shape ({n}, m), got {B.shape}.", stage=_STAGE)
    m = B.shape[1]
    if Q.shape != (n, n):
        raise ShapeMismatch(f"Q must have shape ({n}, {n}), got {Q.shape}.", stage=_STAGE)
    if R.shape != (m, m):
        raise ShapeMismatch(f"R must have shape ({m}, {m}), got {R.shape}.", stage=_STAGE)
    _check_weight(Q, "Q", definite=False)
    _check_weight(R, "R", definite=True)
    return A, B, Q, R


def dlqr(
    A: np.ndarray,
    B: np.ndarray,
    Q: np.ndarray,
    R: np.ndarray,
    tol: Optional[TolerancePolicy] = None,
) -> LQRGain:
    """Stabilizing discrete LQR gain for (A, B, Q, R).

    Raises
    ------
    ShapeMismatch        : incompatible dimensions.
    ValueError           : Q not PSD or R not PD.
    UnstabilizableSystem : PBH test fails on a mode with |λ| >= 1, the DARE
                           solver fails, or the resulting closed loop is not Schur.
    """
    tol = tol or TolerancePolicy()
    A, B, Q, R = _validate(A, B, Q, R)

    bad = pbh_uncontrollable_modes(A, B, tol=tol, only_unstable=True)
    if bad.size:
        raise UnstabilizableSystem(
            f"(A, B) is not stabilizable: uncontrollable mode(s) on or outside the "
            f"unit circle {np.round(bad, 6).tolist()} (A {A.shape}, B {B.shape}).",
            stage=_STAGE,
        )

    try:
        P = solve_discrete_are(A, B, Q, R)
    except (npl.LinAlgError, ValueError) as e:
        raise UnstabilizableSystem(f"DARE solver failed: {e}", stage=_STAGE) from e

    BtP = B.T @ P
    K = npl.solve(R + BtP @ B, BtP @ A)   # (m, n)

    eigs = npl.eigvals(A - B @ K).astype(complex)
    rho = float(np.max(np.abs(eigs))) if eigs.size else 0.0
    if not np.all(np.isfinite(P)) or rho >= 1.0:
        raise UnstabilizableSystem(
            f"Riccati solution is not stabilizing: spectral radius of A - BK is {rho:.6f}.",
            stage=_STAGE,
        )
    logger.debug("dlqr: n=%d m=%d rho(A-BK)=%.6f", A.shape[0], B.shape[1], rho)
    return LQRGain(K=K, P=P, closed_loop_eigs=eigs)
