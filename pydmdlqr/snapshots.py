# pydmdlqr/snapshots.py
from __future__ import annotations
import logging
from dataclasses import dataclass

import numpy as np

from .errors import ShapeMismatch

logger = logging.getLogger(__name__)

_STAGE = "snapshots"


@dataclass(frozen=True)
class Snapshots:
    """One-step-shifted regression blocks.

    Shapes
    -------
    X_now  : (n, T-1)
    X_next : (n, T-1)
    U      : (m, T-1)
    Omega  : (n+m, T-1)   [X_now; U]
    """
    X_now: np.ndarray
    X_next: np.ndarray
    U: np.ndarray
    Omega: np.ndarray

    @property
    def n(self) -> int:
        return self.X_now.shape[0]

    @property
    def m(self) -> int:
        return self.U.shape[0]


def _as_2d(M, name: str) -> np.ndarray:
    M = np.asarray(M, dtype=float)
    if M.ndim != 2:
        raise ShapeMismatch(f"{name} must be 2-D, got shape {M.shape}.", stage=_STAGE)
    return M


def build_snapshots(X: np.ndarray, U: np.ndarray) -> Snapshots:
    """Assemble X_now, X_next and Omega = [X_now; U] from X (n, T) and U (m, T-1).

    The input block must already have exactly T-1 columns; nothing is trimmed.
    """
    X = _as_2d(X, "state matrix")
    U = _as_2d(U, "input matrix")
    n, T = X.shape
    if T < 2:
        raise ShapeMismatch(f"need at least 2 state samples, got T={T}.", stage=_STAGE)
    if U.shape[1] != T - 1:
        raise ShapeMismatch(
            f"input matrix has {U.shape[1]} columns but the state matrix {X.shape} "
            f"requires T-1={T - 1}.",
            stage=_STAGE,
        )

    X_now = X[:, :-1]
    X_next = X[:, 1:]
    Omega = np.vstack([X_now, U])  # (n+m, T-1)
    return Snapshots(X_now=X_now, X_next=X_next, U=U, Omega=Omega)


def align_inputs(X: np.ndarray, U: np.ndarray) -> np.ndarray:
    """Return U with T-1 columns for a state log X with T columns.

    Recorded logs often hold one input sample per state sample; the input
    applied after the last state is dropped. Any other mismatch is an error.
    """
    X = _as_2d(X, "state matrix")
    U = _as_2d(U, "input matrix")
    T = X.shape[1]
    if U.shape[1] == T - 1:
        return U
    if U.shape[1] == T:
        logger.debug("dropping trailing input sample: U %s -> (%d, %d)", U.shape, U.shape[0], T - 1)
        return U[:, :-1]
    raise ShapeMismatch(
        f"input log {U.shape} cannot be aligned with state log {X.shape}.",
        stage=_STAGE,
    )
