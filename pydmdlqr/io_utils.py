# pydmdlqr/io_utils.py
from __future__ import annotations
import json
import os
import sys
import platform
import subprocess
from dataclasses import dataclass
from typing import Dict, Any, Optional

import numpy as np
import pandas as pd
from scipy.io import loadmat

from .errors import ShapeMismatch


# -------------------------- trajectory data ---------------------------

@dataclass(frozen=True)
class TrajectoryData:
    """One recorded flight.

    X  : (n, T)         measured states (positions, velocities)
    U  : (m, T) or (m, T-1)   recorded inputs (roll, pitch, yaw, thrust)
    Xd : (>=n, T)       desired reference
    """
    X: np.ndarray
    U: np.ndarray
    Xd: np.ndarray
    name: str = ""

    def reference(self, n_rows: int = 6) -> np.ndarray:
        """Reference rows used for tracking, without the last sample: Xd[:n_rows, :-1]."""
        if self.Xd.shape[0] < n_rows:
            raise ShapeMismatch(f"reference has {self.Xd.shape[0]} rows, need {n_rows} (Xd {self.Xd.shape}).",
                                stage="reference")
        return self.Xd[:n_rows, :-1]


def _field(data: Dict[str, Any], *names: str) -> np.ndarray:
    for k in names:
        if k in data:
            return np.atleast_2d(np.asarray(data[k], dtype=float))
    raise KeyError(f"none of {names} found; available keys: {sorted(data)}")


def load_trajectory(path: str) -> TrajectoryData:
    """Load X, U and Xd from a MATLAB ``.mat`` or NumPy ``.npz`` file."""
    ext = os.path.splitext(path)[1].lower()
    if ext == ".mat":
        raw = {k: v for k, v in loadmat(path).items() if not k.startswith("__")}
    elif ext == ".npz":
        with np.load(path) as f:
            raw = {k: f[k] for k in f.files}
    else:
        raise ValueError(f"unsupported trajectory format '{ext}' (use .mat or .npz).")
    return TrajectoryData(
        X=_field(raw, "X", "state", "states"),
        U=_field(raw, "U", "input", "inputs"),
        Xd=_field(raw, "Xd", "reference", "ref"),
        name=os.path.splitext(os.path.basename(path))[0],
    )


def save_trajectory(traj: TrajectoryData, path: str) -> None:
    """Store a trajectory as ``.npz`` (X, U, Xd) readable by load_trajectory."""
    save_npz({"X": traj.X, "U": traj.U, "Xd": traj.Xd}, path)


# -------------------------- paths & atomics ---------------------------

def ensure_dir(path: str) -> None:
    """Create directory if not exists. No-op for '' (current dir)."""
    if path and not os.path.exists(path):
        os.makedirs(path, exist_ok=True)


def _atomic_write_text(text: str, path: str) -> None:
    tmp = path + ".tmp"
    ensure_dir(os.path.dirname(path))
    with open(tmp, "wb") as f:
        f.write(text.encode("utf-8"))
    os.replace(tmp, path)


# -------------------------- JSON / CSV / NPZ --------------------------

def _np_json_encoder(obj: Any) -> Any:
    """Best-effort JSON encoder for NumPy types."""
    if isinstance(obj, (np.integer,)):
        return int(obj)
    if isinstance(obj, (np.floating,)):
        return float(obj)
    if isinstance(obj, (np.complexfloating,)):
        return [float(obj.real), float(obj.imag)]
    if isinstance(obj, (np.ndarray,)):
        if np.iscomplexobj(obj):
            return {"real": obj.real.tolist(), "imag": obj.imag.tolist()}
        return obj.tolist()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def save_json(data: Dict[str, Any], path: str) -> None:
    """Atomically save JSON with pretty indent; handles NumPy scalars."""
    path = os.fspath(path)
    text = json.dumps(data, indent=2, default=_np_json_encoder)
    _atomic_write_text(text, path)


def save_npz(arrs: Dict[str, np.ndarray], path: str) -> None:
    """Atomically save compressed NPZ."""
    path = os.fspath(path)
    ensure_dir(os.path.dirname(path))
    # np.savez appends .npz to names without it
    tmp = path + ".tmp.npz"
    np.savez_compressed(tmp, **arrs)
    os.replace(tmp, path)


def rollout_frame(x: np.ndarray, u_est: np.ndarray, x_ref: np.ndarray, dt: float,
                  state_names=None, input_names=None) -> pd.DataFrame:
    """Per-step table: time, reference, rollout state x[k+1] and u_est[k]."""
    T = u_est.shape[1]
    n, m = x.shape[0], u_est.shape[0]
    state_names = state_names or [f"x{i}" for i in range(n)]
    input_names = input_names or [f"u{j}" for j in range(m)]
    cols: Dict[str, Any] = {"t": np.linspace(0.0, T * dt, T)}
    for i, s in enumerate(state_names):
        cols[f"{s}_ref"] = x_ref[i, :T]
        cols[f"{s}_est"] = x[i, 1:T + 1]
    for j, s in enumerate(input_names):
        cols[f"{s}_est"] = u_est[j, :]
    return pd.DataFrame(cols)


def save_csv(df: pd.DataFrame, path: str) -> None:
    """Atomically save a DataFrame as CSV (no index column)."""
    path = os.fspath(path)
    _atomic_write_text(df.to_csv(index=False), path)


# -------------------------- versions / manifest -----------------------

def _get_git_commit() -> Optional[str]:
    try:
        commit = subprocess.check_output(
            ["git", "rev-parse", "HEAD"],
            stderr=subprocess.DEVNULL,
            text=True,
        ).strip()
        return commit
    except (OSError, subprocess.CalledProcessError):
        return None


def capture_versions(extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Capture library versions & environment for reproducibility."""
    import matplotlib
    import scipy
    ver = {
        "python": sys.version,
        "platform": platform.platform(),
        "numpy": np.__version__,
        "scipy": scipy.__version__,
        "pandas": pd.__version__,
        "matplotlib": matplotlib.__version__,
        "git_commit": _get_git_commit(),
    }
    if extra:
        ver.update(extra)
    return ver
