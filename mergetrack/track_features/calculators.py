"""
Feature calculators: derive a feature vector from one traxel feature, or
from the same feature of two traxels (e.g. consecutive timesteps).
"""

from typing import Optional, Sequence

import numpy as np

from ..exceptions import DimensionMismatch


class FeatureCalculator:
    """Base class. ``arity`` is the number of feature vectors consumed."""

    name = 'calculator'
    arity = 2

    def calculate(self, f1: Sequence[float], f2: Optional[Sequence[float]] = None) -> np.ndarray:
        f1 = np.asarray(f1, dtype=float).ravel()
        if self.arity == 1:
            return self._calculate(f1, None)
        if f2 is None:
            raise ValueError(f"{type(self).__name__} needs two feature vectors")
        f2 = np.asarray(f2, dtype=float).ravel()
        if f1.shape != f2.shape:
            raise DimensionMismatch(f"Feature shapes differ: {f1.shape} vs {f2.shape}")
        return self._calculate(f1, f2)

    def _calculate(self, f1: np.ndarray, f2: Optional[np.ndarray]) -> np.ndarray:
        raise NotImplementedError

    def __call__(self, f1, f2=None) -> np.ndarray:
        return self.calculate(f1, f2)


class IdentityCalculator(FeatureCalculator):
    name = 'identity'
    arity = 1

    def _calculate(self, f1, f2):
        return f1.copy()


class AbsoluteDifferenceCalculator(FeatureCalculator):
    name = 'abs_diff'

    def _calculate(self, f1, f2):
        return np.abs(f2 - f1)


class ElementwiseSquaredDifferenceCalculator(FeatureCalculator):
    name = 'elementwise_squared_diff'

    def _calculate(self, f1, f2):
        return (f2 - f1) ** 2


class SquaredDifferenceCalculator(FeatureCalculator):
    name = 'squared_diff'

    def _calculate(self, f1, f2):
        return np.array([np.sum((f2 - f1) ** 2)])


class SquareRootSquaredDifferenceCalculator(FeatureCalculator):
    """Euclidean distance between the two vectors, as a length-1 array."""

    name = 'sqrt_squared_diff'

    def _calculate(self, f1, f2):
        return np.array([np.sqrt(np.sum((f2 - f1) ** 2))])


class RatioCalculator(FeatureCalculator):
    """Element-wise smaller / larger value, so always in [0, 1] for positive features."""

    name = 'ratio'

    def _calculate(self, f1, f2):
        smaller = np.minimum(f1, f2)
        larger = np.maximum(f1, f2)
        out = np.ones_like(f1)
        np.divide(smaller, larger, out=out, where=larger != 0)
        return out


class AsymmetricRatioCalculator(FeatureCalculator):
    """Element-wise f1 / f2. ``0 / 0`` gives 1, ``x / 0`` gives inf."""

    name = 'asymmetric_ratio'

    def _calculate(self, f1, f2):
        out = np.where(f1 == 0, 1.0, np.inf)
        np.divide(f1, f2, out=out, where=f2 != 0)
        return out


CALCULATORS = {
    cls.name: cls for cls in (
        IdentityCalculator,
        AbsoluteDifferenceCalculator,
        ElementwiseSquaredDifferenceCalculator,
        SquaredDifferenceCalculator,
        SquareRootSquaredDifferenceCalculator,
        RatioCalculator,
        AsymmetricRatioCalculator,
    )
}
