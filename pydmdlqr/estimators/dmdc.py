import warnings
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional

import numpy as np

from ..errors import DegenerateModel, NumericalIllConditioning
from ..loggers.tolerances import TolerancePolicy
from ..snapshots import build_snapshots
from ..truncation import TruncatedSVD, truncated_svd


@dataclass(frozen=True)
class LinearModel:
    """Identified discrete-time model x[k+1] = A x[k] + B u[k]."""
    A: np.ndarray
    B: np.ndarray
    r_tilde: Optional[int] = None   # retained modes of Omega = [X; U]
    r_hat: Optional[int] = None     # retained modes of X_next (reported only)
    thresh: Optional[float] = None
    warnings: tuple = ()

    def __post_init__(self) -> None:
        # handed to both rollouts unmodified
        for name in ("A", "B"):
            M = np.array(getattr(self, name), dtype=float)
            M.setflags(write=False)
            object.__setattr__(self, name, M)
        if self.B.shape[0] != self.A.shape[0]:
            raise ValueError(f"A {self.A.shape} and B {self.B.shape} disagree on n.")

    @property
    def n(self) -> int:
        return self.A.shape[0]

    @property
    def m(self) -> int:
        return self.B.shape[1]

    def summary(self) -> Dict[str, Any]:
        return {
            "n": self.n, "m": self.m,
            "r_tilde": self.r_tilde, "r_hat": self.r_hat,
            "thresh": self.thresh,
            "warnings": list(self.warnings),
        }


@dataclass
class DMDcFit:
    """Full output of one DMDc identification, including both decompositions."""
    model: LinearModel
    omega_svd: TruncatedSVD
    xnext_svd: TruncatedSVD
    advisories: List[str] = field(default_factory=list)


def _advisories(name: str, svd: TruncatedSVD, tol: TolerancePolicy) -> List[str]:
    msgs = []
    near = svd.near_threshold(tol.near_factor)
    if near.size:
        msgs.append(
            f"{name}: {near.size} singular value(s) within a factor {tol.near_factor:g} "
            f"of the threshold {svd.thresh:g} (smallest kept {near.min():.3e})."
        )
    if svd.rank and svd.condition > tol.cond_warn:
        msgs.append(
            f"{name}: condition number of the truncated Σ is {svd.condition:.3e} "
            f"> {tol.cond_warn:g}."
        )
    return msgs


def dmdc_fit(
    X: np.ndarray,
    U: np.ndarray,
    thresh: float = 1e-10,
    tol: Optional[TolerancePolicy] = None,
) -> DMDcFit:
    """
    Two-stage truncated-SVD DMDc: X_next ≈ A X_now + B U.

    Shapes
    -------
    X   : (n, T)     state snapshots (noisy measurements are fine)
    U   : (m, T-1)   inputs acting between consecutive states

    Method
    ------
    Omega = [X_now; U] = Util Σtil Vtil^T  (rank r̃ = #{σ > thresh})
    X_next = Uhat Σhat Vhat^T             (rank r, reported only)
    Util is split by rows into U1 (first n) and U2 (last m), then
        A = X_next Vtil pinv(Σtil) U1^T
        B = X_next Vtil pinv(Σtil) U2^T

    Raises
    ------
    ShapeMismatch   : U does not have T-1 columns.
    DegenerateModel : r̃ == 0, no A/B is produced.
    """
    if tol is None:
        tol = TolerancePolicy(svd_thresh=float(thresh))
    snaps = build_snapshots(X, U)
    n, m = snaps.n, snaps.m

    omega_svd = truncated_svd(snaps.Omega, tol=tol)
    if omega_svd.rank == 0:
        smax = float(omega_svd.spectrum[0]) if omega_svd.spectrum.size else 0.0
        raise DegenerateModel(
            f"augmented snapshot matrix {snaps.Omega.shape} has no singular value "
            f"above {tol.svd_thresh:g} (largest {smax:.3e}); r̃ = 0.",
            stage="dmdc",
            shape=snaps.Omega.shape,
            rank=0,
        )

    xnext_svd = truncated_svd(snaps.X_next, tol=tol)

    U1 = omega_svd.U[:n, :]          # (n, r̃)
    U2 = omega_svd.U[n:n + m, :]     # (m, r̃)
    core = snaps.X_next @ omega_svd.V @ omega_svd.pinv_sigma()   # (n, r̃)
    A = core @ U1.T
    B = core @ U2.T

    advisories = _advisories("Omega", omega_svd, tol) + _advisories("X_next", xnext_svd, tol)
    for msg in advisories:
        warnings.warn(msg, NumericalIllConditioning, stacklevel=2)

    model = LinearModel(
        A=A, B=B,
        r_tilde=omega_svd.rank,
        r_hat=xnext_svd.rank,
        thresh=tol.svd_thresh,
        warnings=tuple(advisories),
    )
    return DMDcFit(model=model, omega_svd=omega_svd, xnext_svd=xnext_svd, advisories=advisories)


def identify(
    X: np.ndarray,
    U: np.ndarray,
    thresh: float = 1e-10,
    tol: Optional[TolerancePolicy] = None,
) -> LinearModel:
    """Convenience wrapper returning only the identified LinearModel."""
    return dmdc_fit(X, U, thresh=thresh, tol=tol).model
