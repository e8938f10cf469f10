"""
Feature extractors that split a merged traxel into its constituents.

Every extractor returns ``n_mergers`` new traxels at the merged traxel's
timestep, with ids ``max_id + 1 .. max_id + n_mergers`` and a recomputed
center of mass. The merged traxel is never modified.
"""

from typing import List, Optional

import numpy as np

from ..exceptions import DimensionMismatch
from ..graph.traxel import Traxel
from .clustering import ClusterEstimator, KMeansEstimator, flat_to_matrix

POSSIBLE_COMS = 'possibleCOMs'
MERGER_COMS = 'mergerCOMs'
COORDINATE_LIST = 'Coord<ValueList>'


class FeatureExtractor:
    """
    Base class for merger feature extraction.

    Subclasses implement :meth:`centers`; this class turns the centers into
    child traxels.

    Args:
        ndim: Coordinate dimensionality.
        com_feature: Name of the center-of-mass feature written to children.
    """

    source_feature: str = ''

    def __init__(self, ndim: int = 3, com_feature: str = 'com'):
        self.ndim = ndim
        self.com_feature = com_feature

    def extract(self, traxel: Traxel, n_mergers: int, max_id: int) -> List[Traxel]:
        """
        Split *traxel* into *n_mergers* new traxels.

        Args:
            traxel: Merged traxel.
            n_mergers: Number of merged objects.
            max_id: Largest id in use at the traxel's timestep.

        Returns:
            New traxels, one per center, ids strictly above *max_id*.
        """
        if n_mergers < 1:
            raise ValueError(f"n_mergers must be positive, got {n_mergers}")
        centers = self.centers(traxel, n_mergers)
        if centers.shape != (n_mergers, self.ndim):
            raise DimensionMismatch(
                f"Expected {n_mergers} centers of dimension {self.ndim}, "
                f"got shape {centers.shape}"
            )
        return [
            traxel.with_features(max_id + 1 + i, {self.com_feature: center})
            for i, center in enumerate(centers)
        ]

    def centers(self, traxel: Traxel, n_mergers: int) -> np.ndarray:
        """Return an ``[n_mergers, ndim]`` matrix of child centers."""
        raise NotImplementedError

    def __call__(self, traxel: Traxel, n_mergers: int, max_id: int) -> List[Traxel]:
        return self.extract(traxel, n_mergers, max_id)


class MCOMsFromPCOMs(FeatureExtractor):
    """
    Read centers from ``possibleCOMs``.

    The feature stores the candidate centers for every merger count in
    turn: one center for count 1, two for count 2, and so on. Count ``n``
    therefore starts after ``ndim * n * (n - 1) / 2`` values.
    """

    source_feature = POSSIBLE_COMS

    def centers(self, traxel: Traxel, n_mergers: int) -> np.ndarray:
        pcoms = traxel.get_feature(self.source_feature)
        start = self.ndim * n_mergers * (n_mergers - 1) // 2
        stop = self.ndim * n_mergers * (n_mergers + 1) // 2
        if pcoms.size < stop:
            raise DimensionMismatch(
                f"{self.source_feature} has {pcoms.size} values, "
                f"need {stop} for {n_mergers} mergers"
            )
        return flat_to_matrix(pcoms[start:stop], self.ndim)


class MCOMsFromMCOMs(FeatureExtractor):
    """Read centers from ``mergerCOMs``, which holds exactly ``n_mergers`` centers."""

    source_feature = MERGER_COMS

    def centers(self, traxel: Traxel, n_mergers: int) -> np.ndarray:
        mcoms = traxel.get_feature(self.source_feature)
        if mcoms.size != self.ndim * n_mergers:
            raise DimensionMismatch(
                f"{self.source_feature} has {mcoms.size} values, "
                f"expected {self.ndim * n_mergers}"
            )
        return flat_to_matrix(mcoms, self.ndim)


class MCOMsFromKMeans(FeatureExtractor):
    """
    Cluster the object's pixel coordinates (``Coord<ValueList>``) into
    ``n_mergers`` groups and use the group means as centers.

    Args:
        estimator: Cluster estimator; defaults to :class:`KMeansEstimator`.
    """

    source_feature = COORDINATE_LIST

    def __init__(
        self,
        ndim: int = 3,
        com_feature: str = 'com',
        estimator: Optional[ClusterEstimator] = None
    ):
        super().__init__(ndim, com_feature)
        self.estimator = estimator or KMeansEstimator(ndim=ndim)
        if self.estimator.ndim != ndim:
            raise DimensionMismatch(
                f"Estimator dimension {self.estimator.ndim} != extractor dimension {ndim}"
            )

    def centers(self, traxel: Traxel, n_mergers: int) -> np.ndarray:
        coordinates = traxel.get_feature(self.source_feature)
        return self.estimator.estimate(n_mergers, coordinates)


EXTRACTORS = {
    'pcoms': MCOMsFromPCOMs,
    'mcoms': MCOMsFromMCOMs,
    'kmeans': MCOMsFromKMeans,
}
