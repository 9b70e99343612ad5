from __future__ import annotations

def runtime_banner():
    """Lightweight runtime environment capture for reproducibility logs."""
    import sys
    import numpy as np
    import scipy
    try:
        import jax  # type: ignore
        accelerator = getattr(jax, "default_backend", lambda: "unknown")()
        jax_ver = getattr(jax, "__version__", None)
        x64_enabled = bool(jax.config.read("jax_enable_x64"))
    except ImportError:
        accelerator = "none"
        jax_ver = None
        x64_enabled = None

    return {
        "python": sys.version.split()[0],
        "numpy": np.__version__,
        "scipy": scipy.__version__,
        "jax": jax_ver,
        "accelerator": accelerator,
        "jax_x64": x64_enabled,
        "dtype_default": str(np.dtype(float)),
    }
