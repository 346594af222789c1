"""Single-pass running moments.

Welford's update keeps the mean and the sum of squared deviations
numerically stable without storing any observed value. Once a value
large enough to overflow squared deviations arrives, the accumulators
switch to a power-of-two scaled domain so finite inputs always yield
finite means and standard deviations.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

_SCALE_THRESHOLD = 2.0**480
_SCALE_EXPONENT = 600


@dataclass
class RunningMoments:
    """Online count, extrema, mean, and variance accumulator.

    ``scaled_mean`` and ``scaled_m2`` hold the mean and squared deviation
    sum multiplied by ``2**-exponent`` and ``2**-(2 * exponent)``.
    """

    count: int = 0
    scaled_mean: float = 0.0
    scaled_m2: float = 0.0
    exponent: int = 0
    minimum: int | float | None = None
    maximum: int | float | None = None

    def add(self, value: int | float) -> None:
        """Fold one observation into the moments."""
        self.count += 1
        if self.minimum is None or value < self.minimum:
            self.minimum = value
        if self.maximum is None or value > self.maximum:
            self.maximum = value
        if self.exponent == 0 and abs(value) > _SCALE_THRESHOLD:
            self._rescale()
        scaled = math.ldexp(float(value), -self.exponent)
        delta = scaled - self.scaled_mean
        self.scaled_mean += delta / self.count
        self.scaled_m2 += delta * (scaled - self.scaled_mean)

    @property
    def mean(self) -> float:
        """Return the running mean, ``0.0`` before any value."""
        if self.count == 0:
            return 0.0
        mean = self.scaled_mean * 2.0**self.exponent
        if self.minimum is not None and self.maximum is not None:
            mean = min(max(mean, float(self.minimum)), float(self.maximum))
        return mean

    @property
    def variance(self) -> float | None:
        """Return the sample variance, or ``None`` below two values.

        Spreads wider than the float range report ``inf``.
        """
        if self.count < 2:
            return None
        factor = 2.0**self.exponent
        return self.scaled_m2 / (self.count - 1) * factor * factor

    @property
    def stddev(self) -> float | None:
        """Return the sample standard deviation."""
        if self.count < 2:
            return None
        return math.sqrt(max(self.scaled_m2, 0.0) / (self.count - 1)) * 2.0**self.exponent

    def _rescale(self) -> None:
        self.exponent = _SCALE_EXPONENT
        self.scaled_mean = math.ldexp(self.scaled_mean, -_SCALE_EXPONENT)
        self.scaled_m2 = math.ldexp(self.scaled_m2, -2 * _SCALE_EXPONENT)
