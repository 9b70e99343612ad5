# pydmdlqr/estimators/__init__.py

from .dmdc import LinearModel, DMDcFit, dmdc_fit, identify

__all__ = ["LinearModel", "DMDcFit", "dmdc_fit", "identify"]
