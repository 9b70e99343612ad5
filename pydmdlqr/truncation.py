# pydmdlqr/truncation.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

import numpy as np
import numpy.linalg as npl

from .loggers.tolerances import TolerancePolicy

# ---------------------------------------------------------------------
# Rank-truncated economy SVD.
# r = #{ s_i > thresh }, strict, absolute threshold; never a fixed rank.
# ---------------------------------------------------------------------


@dataclass(frozen=True)
class TruncatedSVD:
    """Leading-r factors of M ≈ U diag(s) V^T.

    U : (rows, r), s : (r,), V : (cols, r); ``spectrum`` keeps every
    singular value of M for diagnostics.
    """
    U: np.ndarray
    s: np.ndarray
    V: np.ndarray
    spectrum: np.ndarray
    thresh: float
    shape: tuple

    @property
    def rank(self) -> int:
        return int(self.s.size)

    @property
    def Sigma(self) -> np.ndarray:
        return np.diag(self.s)

    def pinv_sigma(self) -> np.ndarray:
        """Moore-Penrose pseudoinverse of the truncated diagonal Σ_r."""
        return npl.pinv(self.Sigma)

    @property
    def condition(self) -> float:
        if self.rank == 0:
            return float("inf")
        return float(self.s[0] / self.s[-1])

    def near_threshold(self, near_factor: float = 10.0) -> np.ndarray:
        lo, hi = self.thresh, self.thresh * near_factor
        return self.s[(self.s > lo) & (self.s <= hi)]


def truncated_svd(
    M: np.ndarray,
    thresh: float = 1e-10,
    tol: Optional[TolerancePolicy] = None,
) -> TruncatedSVD:
    """Economy SVD of M truncated to the singular values strictly above ``thresh``.

    If ``tol`` is given its ``svd_thresh`` wins over ``thresh``. A rank of 0 is
    returned as-is (empty factors); the caller decides whether that is fatal.
    """
    M = np.asarray(M, dtype=float)
    if tol is None:
        tol = TolerancePolicy(svd_thresh=float(thresh))
    if M.size == 0:
        rows, cols = M.shape
        return TruncatedSVD(
            U=np.zeros((rows, 0)), s=np.zeros(0), V=np.zeros((cols, 0)),
            spectrum=np.zeros(0), thresh=tol.svd_thresh, shape=M.shape,
        )

    U, s, Vt = npl.svd(M, full_matrices=False)
    r = tol.rank_from_singulars(s)
    return TruncatedSVD(
        U=U[:, :r],
        s=s[:r],
        V=Vt[:r, :].T,
        spectrum=s,
        thresh=tol.svd_thresh,
        shape=M.shape,
    )
