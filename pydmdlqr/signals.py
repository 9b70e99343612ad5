from __future__ import annotations
import numpy as np
from typing import Tuple

# ---------------------------------------------------------------------
# Excitation signals for synthetic identification data.
# All generators return channel-major arrays of shape (m, T).
# ---------------------------------------------------------------------


def prbs(
    T: int,
    m: int,
    rng: np.random.Generator,
    levels: Tuple[float, float] = (-1.0, 1.0),
    period: int = 31,
    dwell: int = 1,
) -> np.ndarray:
    """PRBS: repeat a random +/- pattern of length `period`, each draw held `dwell` samples."""
    if period <= 0:
        raise ValueError("period must be positive.")
    if dwell <= 0:
        raise ValueError("dwell must be positive.")
    base = rng.choice(levels, size=(period, m))
    base = np.repeat(base, dwell, axis=0)
    reps = int(np.ceil(T / base.shape[0]))
    u = np.tile(base, (reps, 1))[:T]
    return u.T


def waypoint_reference(
    T: int,
    dt: float,
    waypoints: np.ndarray,
    hold: int,
) -> np.ndarray:
    """Position/velocity reference (6, T) visiting 3-D waypoints, each held `hold` samples.

    Positions are linearly interpolated between consecutive waypoints; the
    velocity rows are the finite-difference derivative of the positions.
    """
    W = np.asarray(waypoints, dtype=float)
    if W.ndim != 2 or W.shape[1] != 3:
        raise ValueError(f"waypoints must have shape (k, 3), got {W.shape}.")
    if hold <= 0:
        raise ValueError("hold must be positive.")
    knots = np.arange(W.shape[0]) * hold
    tk = np.arange(T)
    pos = np.vstack([np.interp(tk, knots, W[:, i]) for i in range(3)])
    vel = np.gradient(pos, dt, axis=1)
    return np.vstack([pos, vel])
