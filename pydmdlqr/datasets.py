# pydmdlqr/datasets.py
from __future__ import annotations
from typing import Optional

import numpy as np

from .ensembles import multirotor_hover
from .io_utils import TrajectoryData
from .lqr import dlqr
from .signals import prbs, waypoint_reference


def _random_waypoints(k: int, rng: np.random.Generator, span: float) -> np.ndarray:
    W = rng.uniform(-span, span, size=(k, 3))
    W[0] = 0.0
    return W


def synthetic_flight(
    T: int,
    dt: float,
    rng: np.random.Generator,
    *,
    n_waypoints: int = 6,
    span: float = 2.0,
    dither: float = 0.05,
    Ad: Optional[np.ndarray] = None,
    Bd: Optional[np.ndarray] = None,
    name: str = "synthetic",
) -> TrajectoryData:
    """
    Simulate one recorded flight of the hover-linearized multirotor.

    A nominal LQR (true model) tracks a random waypoint reference; a PRBS
    dither of amplitude ``dither`` is added to the commanded inputs so the
    logged inputs excite every channel. Returns X (6, T), U (4, T), Xd (6, T)
    with the same column count, like recorded logs.
    """
    if T < 3:
        raise ValueError("T must be at least 3.")
    if Ad is None or Bd is None:
        Ad, Bd = multirotor_hover(dt)
    n, m = Bd.shape

    hold = max(1, T // max(1, n_waypoints - 1))
    Xd = waypoint_reference(T, dt, _random_waypoints(n_waypoints, rng, span), hold)[:n]

    Q = np.diag([1.0] * 3 + [0.1] * (n - 3)) if n >= 3 else np.eye(n)
    K = dlqr(Ad, Bd, Q, np.eye(m)).K
    d = dither * prbs(T, m, rng, period=63, dwell=5)

    X = np.zeros((n, T))
    U = np.zeros((m, T))
    for k in range(T):
        U[:, k] = K @ (Xd[:, k] - X[:, k]) + d[:, k]
        if k + 1 < T:
            X[:, k + 1] = Ad @ X[:, k] + Bd @ U[:, k]
    return TrajectoryData(X=X, U=U, Xd=Xd, name=name)
