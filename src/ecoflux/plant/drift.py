"""Bounded random walk used for every stochastic plant quantity."""

from __future__ import annotations

import math

import numpy as np

from ecoflux.config.schema import DriftBand


class DriftGenerator:
    """Draws the next value of a bounded quantity from an injected RNG.

    All randomness in the simulator flows through one instance, so a seeded
    generator reproduces a whole run exactly.
    """

    def __init__(self, rng: np.random.Generator | None = None) -> None:
        self._rng = rng if rng is not None else np.random.default_rng()

    @classmethod
    def seeded(cls, seed: int | None) -> DriftGenerator:
        return cls(np.random.default_rng(seed))

    @property
    def rng(self) -> np.random.Generator:
        return self._rng

    def drift(self, current: float, lo: float, hi: float, volatility: float) -> float:
        """Perturb *current* by U(-volatility/2, +volatility/2) and clamp to [lo, hi]."""
        if lo > hi:
            raise ValueError(f"drift bounds inverted: lo={lo} > hi={hi}")
        if volatility < 0 or math.isnan(volatility):
            raise ValueError(f"volatility must be non-negative, got {volatility}")
        if math.isnan(current):
            raise ValueError("current value is NaN")

        change = (float(self._rng.random()) - 0.5) * volatility
        return min(max(current + change, lo), hi)

    def drift_band(self, current: float, band: DriftBand) -> float:
        return self.drift(current, band.lo, band.hi, band.volatility)
