from __future__ import annotations
from typing import Optional, Sequence, Union

import numpy as np
import matplotlib.pyplot as plt

import os

_Pathish = Union[str, os.PathLike]

CONTROL_LABELS = (r"Roll $\phi$ (rad)", r"Pitch $\theta$ (rad)",
                  r"Yaw $\psi$ (rad)", r"Thrust $\mu$ (N)")
POSITION_LABELS = (r"Position in $X$ (m)", r"Position in $Y$ (m)", r"Position in $Z$ (m)")

_TRUTH_COLOR = (0.7, 0.7, 0.7)

# ====================== Helpers ===================

def _new_ax(figsize=(5, 2)):
    fig, ax = plt.subplots(figsize=figsize)
    return fig, ax

def _save_fig(fig, out_png: Optional[_Pathish] = None, out_pdf: Optional[_Pathish] = None, dpi: int = 150):
    if out_png:
        fig.savefig(out_png, dpi=dpi, bbox_inches="tight")
    if out_pdf:
        fig.savefig(out_pdf, bbox_inches="tight")
    plt.close(fig)

def _title_and_labels(ax, *, title: Optional[str] = None,
                      xlabel: Optional[str] = None, ylabel: Optional[str] = None):
    if title:
        ax.set_title(title)
    if xlabel:
        ax.set_xlabel(xlabel)
    if ylabel:
        ax.set_ylabel(ylabel)

def time_axis(T: int, dt: float) -> np.ndarray:
    return np.linspace(0.0, T * dt, T)

def _outs(outbase: Optional[str], tag: str, fmt: str):
    if outbase is None:
        return None, None
    fmt = fmt.lower()
    png = outbase + f"_{tag}.png" if fmt in ("png", "both") else None
    pdf = outbase + f"_{tag}.pdf" if fmt in ("pdf", "both") else None
    return png, pdf

# ====================== Truth vs. estimate ============================

def plot_comparison(t: np.ndarray,
                    truth: Optional[np.ndarray],
                    estimate: np.ndarray,
                    ylabel: str,
                    out_png: Optional[_Pathish] = None,
                    out_pdf: Optional[_Pathish] = None,
                    ylim: Optional[Sequence[float]] = None):
    """One channel: grey ground truth (if any) and red DMD-LQR estimate."""
    fig, ax = _new_ax()
    T = min(len(t), len(estimate))
    if truth is not None:
        T = min(T, len(truth))
        ax.plot(t[:T], np.asarray(truth)[:T], lw=2, color=_TRUTH_COLOR, label="Ground truth")
    ax.plot(t[:T], np.asarray(estimate)[:T], "r", lw=2, label="DMD-LQR Estimation")
    ax.grid(True)
    _title_and_labels(ax, xlabel="Time (s)", ylabel=ylabel)
    if truth is not None:
        ax.legend()
    if ylim is not None:
        ax.set_ylim(*ylim)
    if out_png or out_pdf:
        _save_fig(fig, out_png, out_pdf)
        return None
    return fig, ax


def plot_controls(u_est: np.ndarray, dt: float, u_meas: Optional[np.ndarray] = None,
                  outbase: Optional[str] = None, fmt: str = "png", tag: str = "control"):
    """Roll/pitch/yaw/thrust, measured vs. implied by the rollout."""
    t = time_axis(u_est.shape[1], dt)
    figs = []
    for j in range(u_est.shape[0]):
        label = CONTROL_LABELS[j] if j < len(CONTROL_LABELS) else f"$u_{j}$"
        png, pdf = _outs(outbase, f"{tag}{j}", fmt)
        truth = None if u_meas is None else u_meas[j]
        figs.append(plot_comparison(t, truth, u_est[j], label, out_png=png, out_pdf=pdf))
    return figs


def plot_positions(x: np.ndarray, dt: float, x_meas: Optional[np.ndarray] = None,
                   outbase: Optional[str] = None, fmt: str = "png", tag: str = "position"):
    """X/Y/Z positions: measured x[k+1] vs. rollout x[k+1]."""
    est = x[:, 1:]
    t = time_axis(est.shape[1], dt)
    figs = []
    for i in range(min(3, est.shape[0])):
        png, pdf = _outs(outbase, f"{tag}{i}", fmt)
        truth = None if x_meas is None else x_meas[i]
        figs.append(plot_comparison(t, truth, est[i], POSITION_LABELS[i], out_png=png, out_pdf=pdf))
    return figs


def plot_scree(svals: Sequence[float],
               thresh: Optional[float] = None,
               out_png: Optional[_Pathish] = None,
               out_pdf: Optional[_Pathish] = None,
               title: Optional[str] = None):
    """
    Scree plot for singular values (descending, log scale), with the truncation threshold.
    """
    s = np.asarray(svals, dtype=float).ravel()
    fig, ax = _new_ax(figsize=(5.2, 3.4))
    ax.semilogy(np.arange(1, s.size + 1), np.maximum(s, np.finfo(float).tiny), marker="o")
    if thresh is not None:
        ax.axhline(thresh, color="k", ls="--", lw=1, alpha=0.6, label="threshold")
        ax.legend()
    _title_and_labels(ax, title=title, xlabel="index", ylabel="singular value")
    ax.set_xlim(0.5, s.size + 0.5)
    _save_fig(fig, out_png, out_pdf)


def plot_result(result, outdir: str, prefix: str = "run", fmt: str = "png") -> None:
    """All figures of a pipeline run: training controls/positions, verification positions/controls."""
    os.makedirs(outdir or ".", exist_ok=True)
    outbase = os.path.join(outdir, prefix)
    dt = result.meta.extra.get("dt", 0.02)
    tr = result.train_rollout
    plot_controls(tr.u_est, dt, u_meas=result.input_data, outbase=outbase, fmt=fmt, tag="train_control")
    plot_positions(tr.x, dt, x_meas=result.state_data[:, 1:], outbase=outbase, fmt=fmt, tag="train_position")
    if result.verify_rollout is not None:
        vr = result.verify_rollout
        xm = None if result.verify_state_data is None else result.verify_state_data[:, 1:]
        plot_positions(vr.x, dt, x_meas=xm, outbase=outbase, fmt=fmt, tag="verify_position")
        plot_controls(vr.u_est, dt, outbase=outbase, fmt=fmt, tag="verify_control")
    png, pdf = _outs(outbase, "scree", fmt)
    plot_scree(result.fit.omega_svd.spectrum, thresh=result.model.thresh,
               out_png=png, out_pdf=pdf, title=r"Singular values of $\Omega$")
