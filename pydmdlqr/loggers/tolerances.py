from __future__ import annotations
from dataclasses import dataclass
import numpy as np

@dataclass
class TolerancePolicy:
    """Centralized numerical tolerances (logged to the ledger)."""
    svd_thresh: float = 1e-10     # absolute cut-off for DMDc rank truncation
    near_factor: float = 10.0     # s in (thresh, near_factor*thresh] is flagged
    cond_warn: float = 1e12       # s_1/s_r above this is flagged
    pbh_rtol: float = 1e-9        # relative rank tolerance for the PBH test
    unit_circle_tol: float = 1e-10

    def rank_from_singulars(self, s: np.ndarray) -> int:
        """Count of singular values strictly above the absolute threshold."""
        s = np.asarray(s, dtype=float)
        if s.size == 0:
            return 0
        return int((s > self.svd_thresh).sum())

    def numerical_rank(self, s: np.ndarray) -> int:
        """Scale-aware rank, used for structural tests (PBH) rather than truncation."""
        s = np.asarray(s, dtype=float)
        if s.size == 0:
            return 0
        smax = float(s[0])
        thresh = max(self.svd_thresh, self.pbh_rtol * smax)
        return int((s > thresh).sum())
