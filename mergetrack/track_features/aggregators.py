"""
Feature aggregators: reduce a sequence of feature vectors (e.g. one per
timestep of a track) to a single vector or a single number.
"""

from typing import Callable, Dict, Optional, Sequence

import numpy as np

from .outliers import MVNOutlierCalculator, as_feature_matrix

SCALAR_REDUCTIONS: Dict[str, Callable[[np.ndarray], float]] = {
    'min': np.min,
    'max': np.max,
    'mean': np.mean,
    'sum': np.sum,
    'norm': np.linalg.norm,
}


class FeatureAggregator:
    """
    Base class for feature aggregation.

    ``scalar_valued`` reduces the output of ``vector_valued`` with the
    aggregator's default reduction, or with *scalar_reduction* if given.

    Args:
        scalar_reduction: One of ``SCALAR_REDUCTIONS``.
    """

    name = 'aggregator'
    default_reduction = 'mean'

    def __init__(self, scalar_reduction: Optional[str] = None):
        reduction = scalar_reduction or self.default_reduction
        if reduction not in SCALAR_REDUCTIONS:
            raise ValueError(
                f"Unknown scalar reduction: {reduction}. "
                f"Choose from {sorted(SCALAR_REDUCTIONS)}"
            )
        self.scalar_reduction = reduction

    def vector_valued(self, features: Sequence[Sequence[float]]) -> np.ndarray:
        return self._aggregate(as_feature_matrix(features))

    def scalar_valued(self, features: Sequence[Sequence[float]]) -> float:
        vector = self.vector_valued(features)
        return float(SCALAR_REDUCTIONS[self.scalar_reduction](vector))

    def _aggregate(self, data: np.ndarray) -> np.ndarray:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(scalar_reduction='{self.scalar_reduction}')"


class MinAggregator(FeatureAggregator):
    """Element-wise minimum."""

    name = 'min'
    default_reduction = 'min'

    def _aggregate(self, data: np.ndarray) -> np.ndarray:
        return data.min(axis=0)


class MaxAggregator(FeatureAggregator):
    """Element-wise maximum."""

    name = 'max'
    default_reduction = 'max'

    def _aggregate(self, data: np.ndarray) -> np.ndarray:
        return data.max(axis=0)


class MeanAggregator(FeatureAggregator):
    """Element-wise mean."""

    name = 'mean'
    default_reduction = 'mean'

    def _aggregate(self, data: np.ndarray) -> np.ndarray:
        return data.mean(axis=0)


class TotalDiffAggregator(FeatureAggregator):
    """Sum of consecutive differences; the scalar form is its Euclidean norm."""

    name = 'total_diff'
    default_reduction = 'norm'

    def _aggregate(self, data: np.ndarray) -> np.ndarray:
        return np.diff(data, axis=0).sum(axis=0)


class OutlierBadnessAggregator(FeatureAggregator):
    """
    Outlier measure of each sample under a multivariate normal model.

    The vector form holds one Mahalanobis distance per sample; the scalar
    form is their mean. A singular covariance propagates as
    :class:`~mergetrack.exceptions.SingularCovariance`.

    Args:
        sigma_threshold: Passed to :class:`MVNOutlierCalculator`.
    """

    name = 'outlier_badness'
    default_reduction = 'mean'

    def __init__(self, scalar_reduction: Optional[str] = None, sigma_threshold: float = 3.0):
        super().__init__(scalar_reduction)
        self.outlier_calculator = MVNOutlierCalculator(sigma_threshold)

    def _aggregate(self, data: np.ndarray) -> np.ndarray:
        self.outlier_calculator.calculate(data)
        return self.outlier_calculator.get_measures()


AGGREGATORS = {
    cls.name: cls for cls in (
        MinAggregator, MaxAggregator, MeanAggregator,
        TotalDiffAggregator, OutlierBadnessAggregator
    )
}


def get_aggregator(name: str, **kwargs) -> FeatureAggregator:
    """
    Create an aggregator by name.

    Args:
        name: One of ``AGGREGATORS``.
        **kwargs: Constructor arguments.

    Returns:
        FeatureAggregator instance.
    """
    if name not in AGGREGATORS:
        raise ValueError(f"Unknown aggregator: {name}. Choose from {sorted(AGGREGATORS)}")
    return AGGREGATORS[name](**kwargs)
