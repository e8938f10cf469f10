"""Track quality features: outlier models, calculators and aggregators."""

from .outliers import OutlierCalculator, MVNOutlierCalculator
from .aggregators import (
    FeatureAggregator, MinAggregator, MaxAggregator, MeanAggregator,
    TotalDiffAggregator, OutlierBadnessAggregator, get_aggregator
)
from .calculators import (
    FeatureCalculator, IdentityCalculator, AbsoluteDifferenceCalculator,
    ElementwiseSquaredDifferenceCalculator, SquaredDifferenceCalculator,
    SquareRootSquaredDifferenceCalculator, RatioCalculator, AsymmetricRatioCalculator
)
from .track_features import TrackFeatureExtractor

__all__ = [
    'OutlierCalculator',
    'MVNOutlierCalculator',
    'FeatureAggregator',
    'MinAggregator',
    'MaxAggregator',
    'MeanAggregator',
    'TotalDiffAggregator',
    'OutlierBadnessAggregator',
    'get_aggregator',
    'FeatureCalculator',
    'IdentityCalculator',
    'AbsoluteDifferenceCalculator',
    'ElementwiseSquaredDifferenceCalculator',
    'SquaredDifferenceCalculator',
    'SquareRootSquaredDifferenceCalculator',
    'RatioCalculator',
    'AsymmetricRatioCalculator',
    'TrackFeatureExtractor'
]
