"""
Cluster center estimation for splitting merged objects.

The clustering primitive only has to deliver a label per point; centers
are always recomputed here as the mean of the points carrying each label.
"""

from typing import Optional, Sequence

import numpy as np
from sklearn.cluster import KMeans

from ..exceptions import DimensionMismatch


def flat_to_matrix(flat: Sequence[float], ndim: int) -> np.ndarray:
    """
    Convert a flat coordinate list into an ``[n_points, ndim]`` matrix.

    Args:
        flat: Coordinates laid out point by point (x0, y0, z0, x1, ...).
        ndim: Dimensionality of each point.

    Returns:
        Float matrix with one point per row.

    Raises:
        DimensionMismatch: If ``len(flat)`` is not a multiple of *ndim*.
    """
    flat = np.asarray(flat, dtype=float).ravel()
    if ndim <= 0 or flat.size % ndim != 0:
        raise DimensionMismatch(
            f"Source vector of length {flat.size} cannot be split "
            f"into points of dimension {ndim}"
        )
    return flat.reshape(-1, ndim)


def centers_from_labels(data: np.ndarray, labels: np.ndarray, k: int) -> np.ndarray:
    """
    Compute cluster centers as the mean of the points assigned to each label.

    Args:
        data: ``[n_points, ndim]`` matrix.
        labels: Cluster label per point, in ``range(k)``.
        k: Number of clusters.

    Returns:
        ``[k, ndim]`` matrix of centers.

    Raises:
        DimensionMismatch: If a cluster received no points.
    """
    labels = np.asarray(labels)
    centers = np.zeros((k, data.shape[1]))
    counts = np.bincount(labels, minlength=k)
    if np.any(counts[:k] == 0):
        empty = np.flatnonzero(counts[:k] == 0).tolist()
        raise DimensionMismatch(f"Clusters {empty} have no points assigned")
    np.add.at(centers, labels, data)
    return centers / counts[:k, None]


class ClusterEstimator:
    """Base class: estimate k centers from a flat coordinate list."""

    def __init__(self, ndim: int = 3):
        self.ndim = ndim

    def estimate(self, k: int, flat_coordinates: Sequence[float]) -> np.ndarray:
        """
        Estimate *k* cluster centers.

        Args:
            k: Number of clusters.
            flat_coordinates: Flat point coordinates, ``ndim`` values per point.

        Returns:
            ``[k, ndim]`` matrix of centers.
        """
        data = flat_to_matrix(flat_coordinates, self.ndim)
        n_distinct = len(np.unique(data, axis=0))
        if k < 1 or k > n_distinct:
            raise DimensionMismatch(
                f"Cannot estimate {k} centers from {n_distinct} distinct points"
            )
        labels = self.labels(k, data)
        return centers_from_labels(data, labels, k)

    def labels(self, k: int, data: np.ndarray) -> np.ndarray:
        """Assign each row of *data* to one of *k* partitions."""
        raise NotImplementedError


class KMeansEstimator(ClusterEstimator):
    """
    k-means via scikit-learn.

    Args:
        ndim: Point dimensionality.
        n_init: Number of k-means restarts.
        max_iter: Iterations per restart.
        random_state: Seed, for reproducible splits.
    """

    def __init__(
        self,
        ndim: int = 3,
        n_init: int = 10,
        max_iter: int = 300,
        random_state: Optional[int] = 42
    ):
        super().__init__(ndim)
        self.n_init = n_init
        self.max_iter = max_iter
        self.random_state = random_state

    def labels(self, k: int, data: np.ndarray) -> np.ndarray:
        kmeans = KMeans(
            n_clusters=k,
            n_init=self.n_init,
            max_iter=self.max_iter,
            random_state=self.random_state
        )
        return kmeans.fit_predict(data)
