"""
Random seed sources.

Tile generation itself is fully deterministic; randomness only enters when a
caller asks for a fresh seed. The source is passed in explicitly so callers
and tests control it, instead of drawing from a process-wide generator.
"""

import numpy as np
from typing import Optional

from ..core.heightmap_builder import I64_MAX, I64_MIN


class SeedSource:
    """Draws signed 64-bit tile seeds from a NumPy generator."""

    def __init__(self, rng: Optional[np.random.Generator] = None):
        """
        Args:
            rng: Generator to draw from. Defaults to a freshly entropy-seeded one.
        """
        self._rng = rng if rng is not None else np.random.default_rng()

    @classmethod
    def from_seed(cls, seed: int) -> "SeedSource":
        """Reproducible source, mainly for tests and demos."""
        return cls(np.random.default_rng(seed))

    def next_seed(self) -> int:
        """Uniform seed over the full signed 64-bit range."""
        return int(
            self._rng.integers(I64_MIN, I64_MAX, endpoint=True, dtype=np.int64)
        )
