# pydmdlqr/errors.py
from __future__ import annotations
from typing import Optional

import numpy as np

# ---------------------------------------------------------------------
# Failure taxonomy of the identification / control pipeline.
# Hard failures carry the stage that raised them; the advisory
# NumericalIllConditioning is a warning category, never raised.
# ---------------------------------------------------------------------


class PipelineError(Exception):
    """Base class; ``stage`` names the pipeline step that failed."""

    def __init__(self, msg: str, *, stage: Optional[str] = None):
        super().__init__(msg if stage is None else f"[{stage}] {msg}")
        self.stage = stage


class ShapeMismatch(PipelineError, ValueError):
    """Input matrices have incompatible dimensions."""


class DegenerateModel(PipelineError, RuntimeError):
    """Rank truncation of the augmented snapshot matrix kept no modes."""

    def __init__(self, msg: str, *, stage: Optional[str] = None,
                 shape: Optional[tuple] = None, rank: int = 0):
        super().__init__(msg, stage=stage)
        self.shape = shape
        self.rank = rank


class UnstabilizableSystem(PipelineError, np.linalg.LinAlgError):
    """No stabilizing solution of the discrete algebraic Riccati equation."""


class NumericalIllConditioning(UserWarning):
    """Singular values close to the truncation threshold or a large condition number."""
