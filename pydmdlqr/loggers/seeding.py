from __future__ import annotations

class SeedPolicy:
    """Single seed for the measurement-noise RNG.

    Each named stream ("state", "input", ...) is drawn from the same
    generator in call order, so a run is reproducible from the seed alone.
    """
    def __init__(self, seed: int):
        import numpy as np
        self.seed = int(seed)
        self.np_rng = np.random.default_rng(self.seed)
