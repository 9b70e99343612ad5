# pydmdlqr/__init__.py
"""DMDc identification and discrete LQR validation of multirotor trajectories."""

from .config import ExpConfig, LQRWeights, SolverOpts
from .errors import DegenerateModel, NumericalIllConditioning, ShapeMismatch, UnstabilizableSystem
from .estimators import LinearModel, dmdc_fit, identify
from .lqr import LQRGain, dlqr
from .pipeline import PipelineResult, run_pipeline
from .simulation import ClosedLoopRollout, evaluate_generalization, simulate_closed_loop
from .snapshots import Snapshots, build_snapshots
from .truncation import TruncatedSVD, truncated_svd

__version__ = "0.1.0"

__all__ = [
    "ExpConfig", "LQRWeights", "SolverOpts",
    "DegenerateModel", "NumericalIllConditioning", "ShapeMismatch", "UnstabilizableSystem",
    "LinearModel", "dmdc_fit", "identify",
    "LQRGain", "dlqr",
    "PipelineResult", "run_pipeline",
    "ClosedLoopRollout", "evaluate_generalization", "simulate_closed_loop",
    "Snapshots", "build_snapshots",
    "TruncatedSVD", "truncated_svd",
]
