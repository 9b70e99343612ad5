# pydmdlqr/pipeline.py
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import numpy as np

from .config import ExpConfig, LQRWeights, RunMeta, SolverOpts
from .errors import ShapeMismatch
from .estimators.dmdc import DMDcFit, LinearModel, dmdc_fit
from .io_utils import TrajectoryData
from .loggers.ledger import start_ledger, attach_tolerances, log_approx, log_warning
from .loggers.seeding import SeedPolicy
from .lqr import LQRGain, dlqr
from .metrics import (
    control_rmse,
    gain_consistency,
    is_schur,
    one_step_residual,
    spectral_radius,
    tracking_rmse,
)
from .noise import corrupt
from .simulation import ClosedLoopRollout, evaluate_generalization, simulate_closed_loop
from .snapshots import align_inputs

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Everything one identify -> synthesize -> validate run produces.

    ``model`` and ``gain`` are shared, unmodified, by both rollouts.
    """
    model: LinearModel
    gain: LQRGain
    fit: DMDcFit
    train_rollout: ClosedLoopRollout
    verify_rollout: Optional[ClosedLoopRollout]
    state_data: np.ndarray            # noisy states used for identification
    input_data: np.ndarray            # noisy inputs, T-1 columns
    verify_state_data: Optional[np.ndarray]
    metrics: Dict[str, Any]
    meta: RunMeta
    ledger: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self, light: bool = True) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "seed": self.meta.seed,
            "version": self.meta.version,
            "model": self.model.summary(),
            "gain": {
                "spectral_radius": self.gain.spectral_radius,
                "closed_loop_eigs": self.gain.closed_loop_eigs,
            },
            "metrics": self.metrics,
            "meta": self.meta.extra,
            "notes": {"ledger": self.ledger},
        }
        if not light:
            out["A"] = self.model.A
            out["B"] = self.model.B
            out["K"] = self.gain.K
            out["P"] = self.gain.P
        return out

    def arrays(self) -> Dict[str, np.ndarray]:
        arrs = {
            "A": np.asarray(self.model.A),
            "B": np.asarray(self.model.B),
            "K": np.asarray(self.gain.K),
            "P": np.asarray(self.gain.P),
            "x_train": self.train_rollout.x,
            "u_train": self.train_rollout.u_est,
            "xref_train": self.train_rollout.x_ref,
            "sv_omega": self.fit.omega_svd.spectrum,
            "sv_xnext": self.fit.xnext_svd.spectrum,
        }
        if self.verify_rollout is not None:
            arrs["x_verify"] = self.verify_rollout.x
            arrs["u_verify"] = self.verify_rollout.u_est
            arrs["xref_verify"] = self.verify_rollout.x_ref
        return arrs


def run_pipeline(
    train: TrajectoryData,
    verify: Optional[TrajectoryData] = None,
    cfg: Optional[ExpConfig] = None,
    sopts: Optional[SolverOpts] = None,
    weights: Optional[LQRWeights] = None,
) -> PipelineResult:
    """
    Run one batch instance:
      1) corrupt the training logs with seeded Gaussian noise
      2) DMDc identification of (A, B)
      3) discrete LQR gain K for (A, B, Q, R)
      4) closed-loop rollout against the training reference
      5) same (A, B, K) against the verification reference (if given)

    Hard failures (ShapeMismatch, DegenerateModel, UnstabilizableSystem)
    propagate; advisory ill-conditioning lands in the ledger.
    """
    cfg = cfg or ExpConfig()
    sopts = sopts or SolverOpts()
    weights = weights or LQRWeights()

    ledger = start_ledger()
    tol = sopts.tolerances()
    attach_tolerances(ledger, tol)
    # reference rows are checked before any noise draw or solve
    xref = train.reference(cfg.n_ref_rows)
    xref_verify = None if verify is None else verify.reference(cfg.n_ref_rows)
    if xref.shape[0] != np.shape(train.X)[0]:
        raise ShapeMismatch(
            f"{xref.shape[0]} reference rows for a {np.shape(train.X)[0]}-dimensional state.",
            stage="reference",
        )
    seeds = SeedPolicy(cfg.seed)
    rng = seeds.np_rng

    # --- noisy measurements (same draw order as the recorded workflow: X, U, then X2)
    state_data = corrupt(train.X, cfg.state_noise, rng)
    input_data = corrupt(train.U, cfg.input_noise, rng)
    input_data = align_inputs(state_data, input_data)
    log_approx(ledger, "noise",
               f"additive N(0,1) scaled by {cfg.state_noise:g}*std(X) and {cfg.input_noise:g}*std(U)")

    # --- identification
    fit = dmdc_fit(state_data, input_data, tol=tol)
    model = fit.model
    for msg in fit.advisories:
        log_warning(ledger, msg)
    logger.info("identified model: n=%d m=%d r_tilde=%d r_hat=%d",
                model.n, model.m, model.r_tilde, model.r_hat)

    # --- control synthesis
    gain = dlqr(model.A, model.B, weights.Q, weights.R, tol=tol)
    logger.info("LQR gain: rho(A-BK)=%.6f", gain.spectral_radius)

    # --- in-sample rollout
    train_rollout = simulate_closed_loop(model, gain, xref, use_jax=sopts.use_jax)
    X_now, X_next = state_data[:, :-1], state_data[:, 1:]
    T_cmp = min(train_rollout.horizon, input_data.shape[1])
    metrics: Dict[str, Any] = {
        "one_step_residual": one_step_residual(X_now, X_next, input_data, model.A, model.B),
        "rho_A": spectral_radius(model.A),
        "open_loop_stable": is_schur(model.A),
        "rho_closed_loop": gain.spectral_radius,
        "train": {
            "state_rmse": tracking_rmse(train_rollout.x[:, 1:], X_next),
            "ref_rmse": tracking_rmse(train_rollout.x[:, 1:], xref),
            "control_rmse": control_rmse(train_rollout.u_est[:, :T_cmp], input_data[:, :T_cmp]),
            **gain_consistency(gain.K, train_rollout.u_est, train_rollout.tracking_error),
        },
    }

    # --- generalization on an unseen trajectory (same model and gain)
    verify_rollout = None
    verify_state = None
    if verify is not None:
        if cfg.noisy_verification:
            verify_state = corrupt(verify.X, cfg.state_noise, rng)
        else:
            verify_state = np.asarray(verify.X, dtype=float)
        gen = evaluate_generalization(
            model, gain, xref_verify,
            X_measured=verify_state, use_jax=sopts.use_jax,
        )
        verify_rollout = gen["rollout"]
        metrics["verify"] = {
            "ref_rmse": gen["ref_rmse"],
            "state_rmse": gen.get("measured_rmse"),
        }
        logger.info("verification rollout over %d steps", verify_rollout.horizon)

    if model.r_hat != model.n:
        log_approx(ledger, "X_next-rank",
                   f"future-state matrix keeps r={model.r_hat} of n={model.n} modes; reported only")

    meta = RunMeta(seed=cfg.seed, extra={
        "dt": cfg.dt,
        "train": train.name,
        "verify": None if verify is None else verify.name,
        "q_diag": list(weights.q_diag),
        "r_diag": list(weights.r_diag),
        "accelerator": "jax" if sopts.use_jax else "numpy",
    })
    return PipelineResult(
        model=model,
        gain=gain,
        fit=fit,
        train_rollout=train_rollout,
        verify_rollout=verify_rollout,
        state_data=state_data,
        input_data=input_data,
        verify_state_data=verify_state,
        metrics=metrics,
        meta=meta,
        ledger=ledger,
    )
