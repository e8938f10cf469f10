"""
Track features: apply a calculator along a track and aggregate the result.

Typical usage::

    track = graph.follow_track(first_node)
    extractor = TrackFeatureExtractor(
        SquareRootSquaredDifferenceCalculator(), OutlierBadnessAggregator(), 'com'
    )
    badness = extractor.scalar_valued([graph.traxel(n) for n in track])
"""

from typing import List, Sequence

import numpy as np

from ..exceptions import DimensionMismatch
from ..graph.traxel import Traxel
from .aggregators import FeatureAggregator
from .calculators import FeatureCalculator


class TrackFeatureExtractor:
    """
    Compute a track-level feature from per-traxel features.

    Unary calculators are applied to every traxel; binary calculators to
    every consecutive pair.

    Args:
        calculator: Per-traxel or per-pair calculator.
        aggregator: Reduction over the resulting sequence.
        feature_name: Traxel feature the calculator reads.
    """

    def __init__(self, calculator: FeatureCalculator, aggregator: FeatureAggregator,
                 feature_name: str = 'com'):
        self.calculator = calculator
        self.aggregator = aggregator
        self.feature_name = feature_name

    @property
    def name(self) -> str:
        return f"{self.aggregator.name}_{self.calculator.name}_{self.feature_name}"

    def feature_sequence(self, traxels: Sequence[Traxel]) -> List[np.ndarray]:
        """
        Calculator output per traxel (unary) or per consecutive pair (binary).

        Raises:
            DimensionMismatch: If the track is too short for the calculator.
            MissingFeature: If a traxel lacks ``feature_name``.
        """
        if len(traxels) < self.calculator.arity:
            raise DimensionMismatch(
                f"Track of length {len(traxels)} is too short for {self.calculator.name}"
            )
        values = [t.get_feature(self.feature_name) for t in traxels]
        if self.calculator.arity == 1:
            return [self.calculator.calculate(v) for v in values]
        return [self.calculator.calculate(a, b) for a, b in zip(values[:-1], values[1:])]

    def vector_valued(self, traxels: Sequence[Traxel]) -> np.ndarray:
        return self.aggregator.vector_valued(self.feature_sequence(traxels))

    def scalar_valued(self, traxels: Sequence[Traxel]) -> float:
        return self.aggregator.scalar_valued(self.feature_sequence(traxels))
