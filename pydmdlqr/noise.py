# pydmdlqr/noise.py
from __future__ import annotations
from typing import Optional

import numpy as np

# Additive sensor-noise emulation applied to raw logs before identification.
# The noise std is a fraction of the standard deviation over *all* entries.


def corrupt(M: np.ndarray, scale: float, rng: Optional[np.random.Generator] = None) -> np.ndarray:
    """Return M + scale * std(M) * N(0, 1), with std over every entry of M."""
    M = np.asarray(M, dtype=float)
    if scale < 0.0:
        raise ValueError(f"noise scale must be >= 0, got {scale}.")
    if scale == 0.0 or M.size == 0:
        return M.copy()
    if rng is None:
        rng = np.random.default_rng()
    sigma = float(np.std(M, ddof=1)) if M.size > 1 else 0.0
    return M + scale * sigma * rng.standard_normal(M.shape)
