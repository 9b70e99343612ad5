# pydmdlqr/config.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Sequence, Dict, Any
import numpy as np

from .loggers.tolerances import TolerancePolicy


@dataclass
class SolverOpts:
    """Numerical options of the identification step."""
    thresh: float = 1e-10        # singular values <= thresh are truncated
    cond_warn: float = 1e12      # advisory bound on s_1 / s_r
    near_factor: float = 10.0    # advisory band (thresh, near_factor*thresh]
    use_jax: bool = False        # closed-loop rollouts through jax.lax.scan

    def __post_init__(self) -> None:
        if not (self.thresh >= 0.0):
            raise ValueError(f"thresh must be >= 0, got {self.thresh}.")
        if self.cond_warn <= 1.0:
            raise ValueError(f"cond_warn must be > 1, got {self.cond_warn}.")
        if self.near_factor < 1.0:
            raise ValueError(f"near_factor must be >= 1, got {self.near_factor}.")

    def tolerances(self) -> TolerancePolicy:
        return TolerancePolicy(
            svd_thresh=self.thresh,
            near_factor=self.near_factor,
            cond_warn=self.cond_warn,
        )


@dataclass
class LQRWeights:
    """Diagonal LQR weights. Defaults: unit weight on position, 1e-3 on velocity and inputs."""
    q_diag: Sequence[float] = (1.0, 1.0, 1.0, 0.001, 0.001, 0.001)
    r_diag: Sequence[float] = (0.001, 0.001, 0.001, 0.001)

    def __post_init__(self) -> None:
        self.q_diag = tuple(float(q) for q in self.q_diag)
        self.r_diag = tuple(float(r) for r in self.r_diag)
        if not self.q_diag or any(q < 0.0 for q in self.q_diag):
            raise ValueError(f"q_diag must be non-empty and >= 0, got {self.q_diag}.")
        if not self.r_diag or any(r <= 0.0 for r in self.r_diag):
            raise ValueError(f"r_diag must be non-empty and > 0, got {self.r_diag}.")

    @property
    def Q(self) -> np.ndarray:
        return np.diag(self.q_diag)

    @property
    def R(self) -> np.ndarray:
        return np.diag(self.r_diag)


@dataclass
class ExpConfig:
    """Configuration of one identify -> synthesize -> validate run."""
    dt: float = 0.02              # sample period, only used for time axes
    seed: int = 800
    state_noise: float = 0.1      # fraction of std(X) added as Gaussian noise
    input_noise: float = 0.01     # fraction of std(U)
    noisy_verification: bool = True
    n_ref_rows: int = 6           # reference rows kept (positions + velocities)

    def __post_init__(self) -> None:
        if self.dt <= 0.0:
            raise ValueError(f"dt must be positive, got {self.dt}.")
        for name in ("state_noise", "input_noise"):
            if getattr(self, name) < 0.0:
                raise ValueError(f"{name} must be >= 0, got {getattr(self, name)}.")
        if self.n_ref_rows <= 0:
            raise ValueError("n_ref_rows must be a positive integer.")


@dataclass
class RunMeta:
    seed: int
    version: str = "0.1.0"
    extra: Dict[str, Any] = field(default_factory=dict)
