from __future__ import annotations
from typing import Tuple

import os
if os.environ.get("JAX_PLATFORM_NAME", "").lower() == "metal":
    os.environ.setdefault("JAX_ENABLE_X64", "0")
else:
    os.environ.setdefault("JAX_ENABLE_X64", "1")

import jax
import jax.numpy as jnp
from jax import lax

# ---------------------------
# Global toggles / utilities
# ---------------------------

def enable_x64(flag: bool = True) -> None:
    jax.config.update("jax_enable_x64", bool(flag))


def _to_f64(*xs):
    return tuple(jnp.asarray(x, dtype=jnp.float64) for x in xs)

# ---------------------------
# Closed-loop rollout
# ---------------------------

@jax.jit
def simulate_closed_loop(A: jnp.ndarray,
                         B: jnp.ndarray,
                         K: jnp.ndarray,
                         Xref: jnp.ndarray,
                         x0: jnp.ndarray) -> Tuple[jnp.ndarray, jnp.ndarray]:
    """
    Reference-tracking rollout x_{k+1} = A x_k + B K (x_ref_k - x_k).

    Shapes:
      A: (n,n), B: (n,m), K: (m,n)
      Xref: (n, T)   -- channel-major, scanned over columns
      x0: (n,)

    Returns:
      X: (n, T+1) with X[:,0]=x0
      U: (m, T)
    """
    A, B, K, Xref, x0 = _to_f64(A, B, K, Xref, x0)

    def step(x, r):
        u = K @ (r - x)
        x_next = A @ x + B @ u
        return x_next, (x_next, u)

    _, (xs, us) = lax.scan(step, x0, Xref.T)  # xs: (T, n), us: (T, m)
    X = jnp.concatenate([x0[None, :], xs], axis=0).T
    return X, us.T
