from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Dict, Any

import numpy as np

from .errors import ShapeMismatch
from .estimators.dmdc import LinearModel
from .lqr import LQRGain
from .metrics import tracking_rmse

_STAGE = "rollout"


@dataclass(frozen=True)
class ClosedLoopRollout:
    """x: (n, T_ref+1) including x0; u_est: (m, T_ref) with u_est[k] = K (x_ref[k] - x[k])."""
    x: np.ndarray
    u_est: np.ndarray
    x_ref: np.ndarray

    @property
    def horizon(self) -> int:
        return self.u_est.shape[1]

    @property
    def tracking_error(self) -> np.ndarray:
        """x_ref[k] - x[k] for k = 0..T_ref-1."""
        return self.x_ref - self.x[:, :-1]


def _check_rollout_shapes(model: LinearModel, gain: LQRGain, Xref: np.ndarray,
                          x0: Optional[np.ndarray]) -> tuple[np.ndarray, np.ndarray]:
    n, m = model.n, model.m
    Xref = np.asarray(Xref, dtype=float)
    if Xref.ndim != 2 or Xref.shape[0] != n:
        raise ShapeMismatch(f"reference must have shape ({n}, T_ref), got {Xref.shape}.", stage=_STAGE)
    if Xref.shape[1] < 1:
        raise ShapeMismatch("reference trajectory is empty.", stage=_STAGE)
    if gain.K.shape != (m, n):
        raise ShapeMismatch(f"gain K must have shape ({m}, {n}), got {gain.K.shape}.", stage=_STAGE)
    x0 = Xref[:, 0] if x0 is None else np.asarray(x0, dtype=float).reshape(-1)
    if x0.shape != (n,):
        raise ShapeMismatch(f"x0 must have {n} entries, got {x0.shape}.", stage=_STAGE)
    return Xref, x0


def _rollout_numpy(A: np.ndarray, B: np.ndarray, K: np.ndarray,
                   Xref: np.ndarray, x0: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    n, T = Xref.shape
    X = np.empty((n, T + 1), dtype=float)
    Uest = np.empty((K.shape[0], T), dtype=float)
    X[:, 0] = x0
    for k in range(T):
        Uest[:, k] = K @ (Xref[:, k] - X[:, k])
        X[:, k + 1] = A @ X[:, k] + B @ Uest[:, k]
    return X, Uest


def simulate_closed_loop(
    model: LinearModel,
    gain: LQRGain,
    Xref: np.ndarray,
    x0: Optional[np.ndarray] = None,
    use_jax: bool = False,
) -> ClosedLoopRollout:
    """
    Deterministic reference-tracking rollout:
        x_{k+1} = A x_k + B K (x_ref_k - x_k),   k = 0..T_ref-1
    x0 defaults to the first reference column.
    """
    Xref, x0 = _check_rollout_shapes(model, gain, Xref, x0)
    if use_jax:
        try:
            from . import jax_accel as jxa
        except ImportError as e:
            raise RuntimeError("JAX requested but not available. Install jax or omit use_jax.") from e
        # jax may already be imported with x64 off (runtime banner)
        jxa.enable_x64(True)
        X, Uest = jxa.simulate_closed_loop(model.A, model.B, gain.K, Xref, x0)
        X, Uest = np.asarray(X, dtype=float), np.asarray(Uest, dtype=float)
    else:
        X, Uest = _rollout_numpy(model.A, model.B, gain.K, Xref, x0)
    return ClosedLoopRollout(x=X, u_est=Uest, x_ref=Xref)


def evaluate_generalization(
    model: LinearModel,
    gain: LQRGain,
    Xref: np.ndarray,
    X_measured: Optional[np.ndarray] = None,
    use_jax: bool = False,
) -> Dict[str, Any]:
    """Re-run the rollout with the same (A, B, K) on an unseen reference trajectory.

    If the measured states of that trajectory are given, the rollout is scored
    against them (x[1:] vs. X_measured[:, 1:], as in the identification run).
    """
    rollout = simulate_closed_loop(model, gain, Xref, use_jax=use_jax)
    out: Dict[str, Any] = {
        "rollout": rollout,
        "ref_rmse": tracking_rmse(rollout.x[:, 1:], Xref),
    }
    if X_measured is not None:
        Xm = np.asarray(X_measured, dtype=float)
        T = min(rollout.horizon, Xm.shape[1] - 1)
        out["measured_rmse"] = tracking_rmse(rollout.x[:, 1:T + 1], Xm[:model.n, 1:T + 1])
    return out
