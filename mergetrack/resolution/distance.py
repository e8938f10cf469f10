"""
Distance between traxels, used to re-attach arcs to split nodes.
"""

import numpy as np

from ..exceptions import DimensionMismatch
from ..graph.traxel import Traxel


class DistanceMetric:
    """Base class: non-negative distance between two traxels."""

    def distance(self, a: Traxel, b: Traxel) -> float:
        raise NotImplementedError

    def __call__(self, a: Traxel, b: Traxel) -> float:
        return self.distance(a, b)


class DistanceFromCOMs(DistanceMetric):
    """
    Euclidean distance between center-of-mass features.

    Args:
        com_feature: Feature holding the center of mass.
    """

    def __init__(self, com_feature: str = 'com'):
        self.com_feature = com_feature

    def distance(self, a: Traxel, b: Traxel) -> float:
        com_a = a.get_feature(self.com_feature)
        com_b = b.get_feature(self.com_feature)
        if com_a.shape != com_b.shape:
            raise DimensionMismatch(
                f"Center of mass shapes differ: {com_a.shape} vs {com_b.shape}"
            )
        return float(np.linalg.norm(com_a - com_b))
