from __future__ import annotations
import argparse
import json
import logging
import os
import sys
from typing import Optional, Sequence

import numpy as np

from .config import ExpConfig, LQRWeights, SolverOpts

os.environ.setdefault("JAX_PLATFORM_NAME", "cpu")
os.environ.setdefault("TF_CPP_MIN_LOG_LEVEL", "2")

logger = logging.getLogger("pydmdlqr")


# ------------------------
# small parsing utilities
# ------------------------
def _parse_float_list(s: str) -> list[float]:
    return [float(x) for x in s.replace(",", " ").split() if x.strip()]


def _add_common_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--dt", type=float, default=0.02,
                   help="Sample period in seconds (time axes only).")
    p.add_argument("--seed", type=int, default=800)
    p.add_argument("--state-noise", type=float, default=0.1,
                   help="State noise as a fraction of std(X).")
    p.add_argument("--input-noise", type=float, default=0.01,
                   help="Input noise as a fraction of std(U).")
    p.add_argument("--clean-verification", action="store_true",
                   help="Do not add noise to the verification states.")
    p.add_argument("--thresh", type=float, default=1e-10,
                   help="Singular values <= thresh are truncated.")
    p.add_argument("--cond-warn", type=float, default=1e12,
                   help="Advisory bound on the condition number of the truncated Σ.")
    p.add_argument("--q-diag", type=str, default="1,1,1,0.001,0.001,0.001",
                   help="Diagonal of Q (comma list).")
    p.add_argument("--r-diag", type=str, default="0.001,0.001,0.001,0.001",
                   help="Diagonal of R (comma list).")
    p.add_argument("--ref-rows", type=int, default=6,
                   help="Reference rows used for tracking.")

    p.add_argument("--use-jax", action="store_true",
                   help="Run closed-loop rollouts through JAX (float64).")

    p.add_argument("--outdir", type=str, default=None,
                   help="If set, write JSON/NPZ/CSV outputs under this directory.")
    p.add_argument("--prefix", type=str, default="dmdlqr",
                   help="Filename prefix for outputs.")
    p.add_argument("--light", action="store_true",
                   help="Omit model matrices from the JSON summary.")
    p.add_argument("--plots", action="store_true",
                   help="Write truth-vs-estimate figures to outdir.")
    p.add_argument("--plot-format", type=str, choices=["png", "pdf", "both"], default="png")
    p.add_argument("-v", "--verbose", action="store_true")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="pydmdlqr",
                                description="DMDc identification + discrete LQR validation")
    sub = p.add_subparsers(dest="cmd", required=True)

    # -------- run --------
    pr = sub.add_parser("run", help="Identify from a recorded trajectory and validate on another.")
    pr.add_argument("--train", type=str, required=True,
                    help="Trajectory used for identification (.mat or .npz with X, U, Xd).")
    pr.add_argument("--verify", type=str, default=None,
                    help="Held-out trajectory for the generalization rollout.")
    _add_common_args(pr)

    # -------- synthetic --------
    ps = sub.add_parser("synthetic", help="Same pipeline on simulated multirotor flights.")
    ps.add_argument("--T", type=int, default=2000, help="Samples per flight.")
    ps.add_argument("--waypoints", type=int, default=6)
    ps.add_argument("--dither", type=float, default=0.05)
    ps.add_argument("--data-seed", type=int, default=0,
                    help="Seed of the simulated flights (noise uses --seed).")
    ps.add_argument("--save-data", action="store_true",
                    help="Also store the simulated flights as .npz under outdir.")
    _add_common_args(ps)
    return p


def _configs(a) -> tuple[ExpConfig, SolverOpts, LQRWeights]:
    cfg = ExpConfig(
        dt=a.dt,
        seed=a.seed,
        state_noise=a.state_noise,
        input_noise=a.input_noise,
        noisy_verification=not a.clean_verification,
        n_ref_rows=a.ref_rows,
    )
    sopts = SolverOpts(thresh=a.thresh, cond_warn=a.cond_warn, use_jax=a.use_jax)
    weights = LQRWeights(q_diag=_parse_float_list(a.q_diag), r_diag=_parse_float_list(a.r_diag))
    return cfg, sopts, weights


def _write_outputs(result, a) -> None:
    from .io_utils import (
        _np_json_encoder, capture_versions, ensure_dir, rollout_frame, save_csv, save_json, save_npz,
    )

    summary = result.to_dict(light=a.light)
    summary["versions"] = capture_versions()
    if a.outdir is None:
        print(json.dumps(summary, indent=2, default=_np_json_encoder))
        return

    ensure_dir(a.outdir)
    base = os.path.join(a.outdir, a.prefix)
    save_json(summary, base + ".json")
    save_npz(result.arrays(), base + ".npz")
    tr = result.train_rollout
    save_csv(rollout_frame(tr.x, tr.u_est, tr.x_ref, a.dt), base + "_train.csv")
    if result.verify_rollout is not None:
        vr = result.verify_rollout
        save_csv(rollout_frame(vr.x, vr.u_est, vr.x_ref, a.dt), base + "_verify.csv")
    logger.info("wrote %s.{json,npz,csv}", base)

    if a.plots:
        import matplotlib
        matplotlib.use("Agg")
        from .plots import plot_result
        plot_result(result, a.outdir, prefix=a.prefix, fmt=a.plot_format)
        logger.info("wrote figures to %s", a.outdir)


def main(argv: Optional[Sequence[str]] = None) -> int:
    a = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if a.verbose else logging.INFO,
                        format="[%(name)s] %(levelname)s: %(message)s")

    if a.use_jax:
        try:
            from . import jax_accel as jxa
        except ImportError as e:
            raise RuntimeError("JAX requested via --use-jax but not available.") from e
        jxa.enable_x64(True)

    from .errors import PipelineError
    from .io_utils import load_trajectory, save_trajectory
    from .pipeline import run_pipeline

    cfg, sopts, weights = _configs(a)

    if a.cmd == "run":
        try:
            train = load_trajectory(a.train)
            verify = load_trajectory(a.verify) if a.verify else None
        except (OSError, KeyError, ValueError) as e:
            logger.error("could not load trajectory: %s", e)
            return 2
    elif a.cmd == "synthetic":
        from .datasets import synthetic_flight
        rng = np.random.default_rng(a.data_seed)
        train = synthetic_flight(a.T, a.dt, rng, n_waypoints=a.waypoints,
                                 dither=a.dither, name="synthetic_train")
        verify = synthetic_flight(a.T, a.dt, rng, n_waypoints=a.waypoints,
                                  dither=a.dither, name="synthetic_verify")
        if a.save_data and a.outdir:
            save_trajectory(train, os.path.join(a.outdir, train.name + ".npz"))
            save_trajectory(verify, os.path.join(a.outdir, verify.name + ".npz"))
    else:
        raise ValueError(f"unknown command: {a.cmd}")

    try:
        result = run_pipeline(train, verify, cfg=cfg, sopts=sopts, weights=weights)
    except PipelineError as e:
        logger.error("%s failed: %s", e.stage or "pipeline", e)
        return 2

    for msg in result.ledger["warnings"]:
        logger.warning(msg)
    _write_outputs(result, a)
    return 0


if __name__ == "__main__":
    sys.exit(main())
