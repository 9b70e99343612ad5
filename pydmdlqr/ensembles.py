from typing import Tuple

import numpy as np
import numpy.linalg as npl

from .metrics import cont2discrete_zoh


# ---------------------------------------------------------------------
# Ground-truth (A, B) factories for synthetic identification data.
# All generators return discrete-time arrays with shapes:
#   A: (n, n),  B: (n, m)
# ---------------------------------------------------------------------


def multirotor_hover(dt: float, mass: float = 1.0, gravity: float = 9.81,
                     drag: float = 0.0) -> Tuple[np.ndarray, np.ndarray]:
    """Hover linearization of a multirotor, ZOH-discretized with step dt.

    State  [x, y, z, vx, vy, vz], input [roll, pitch, yaw, thrust].
    Small-angle translational dynamics: vx' = g*pitch, vy' = -g*roll,
    vz' = thrust/mass; yaw does not enter the translational states.
    """
    A = np.zeros((6, 6))
    A[0:3, 3:6] = np.eye(3)
    A[3:6, 3:6] = -drag * np.eye(3)
    B = np.zeros((6, 4))
    B[3, 1] = gravity
    B[4, 0] = -gravity
    B[5, 3] = 1.0 / mass
    return cont2discrete_zoh(A, B, dt)


def stable_dt(n: int, m: int, rng: np.random.Generator,
              rho: float = 0.9) -> Tuple[np.ndarray, np.ndarray]:
    """
    Draw (A,B) with spectral radius of A equal to ``rho`` (< 1 gives a Schur-stable A).
    Strategy: draw M ~ N(0,1)/sqrt(n), rescale by rho / max|λ(M)|.
    """
    M = rng.standard_normal((n, n)) / np.sqrt(n)
    lam = npl.eigvals(M)
    A = M * (rho / float(np.max(np.abs(lam))))
    B = rng.standard_normal((n, m)) / np.sqrt(n)
    return A, B


def ginibre(n: int, m: int, rng: np.random.Generator) -> Tuple[np.ndarray, np.ndarray]:
    A = rng.normal(size=(n, n)) / np.sqrt(n)
    B = rng.normal(size=(n, m)) / np.sqrt(n)
    return A, B


def uncontrollable_unstable(n: int = 3, m: int = 1) -> Tuple[np.ndarray, np.ndarray]:
    """(A, B) with an unstable mode (λ = 1.5) that no input reaches."""
    if n < 2:
        raise ValueError("need n >= 2.")
    A = 0.5 * np.eye(n)
    A[-1, -1] = 1.5
    B = np.zeros((n, m))
    B[0, :] = 1.0
    return A, B
