"""
Outlier detection over the feature time series of a track.
"""

from typing import List, Sequence

import numpy as np

from ..exceptions import DimensionMismatch, SingularCovariance


def as_feature_matrix(features: Sequence[Sequence[float]]) -> np.ndarray:
    """
    Stack a sequence of equal-length feature vectors into ``[n_samples, n_dims]``.

    Raises:
        DimensionMismatch: If the sequence is empty or vectors differ in length.
    """
    if len(features) == 0:
        raise DimensionMismatch("Feature sequence is empty")
    lengths = {np.size(f) for f in features}
    if len(lengths) != 1:
        raise DimensionMismatch(f"Feature vectors differ in length: {sorted(lengths)}")
    return np.asarray([np.asarray(f, dtype=float).ravel() for f in features])


class OutlierCalculator:
    """Base class: flag outlier samples in a feature sequence."""

    name = 'outlier_calculator'

    def __init__(self):
        self.measures_ = np.array([])
        self.outlier_ids_: List[int] = []

    def calculate(self, features: Sequence[Sequence[float]]) -> List[int]:
        """
        Find outlier samples.

        Args:
            features: One feature vector per sample (timestep).

        Returns:
            Indices of samples flagged as outliers.
        """
        raise NotImplementedError

    def get_measures(self) -> np.ndarray:
        """Per-sample outlier measure of the last :meth:`calculate` call."""
        return self.measures_


class MVNOutlierCalculator(OutlierCalculator):
    """
    Multivariate normal outlier model.

    Fits mean and covariance to the samples and flags every sample whose
    Mahalanobis distance to the mean exceeds ``sigma_threshold``.

    Args:
        sigma_threshold: Distance above which a sample is an outlier.
    """

    name = 'mvn_outlier_calculator'

    def __init__(self, sigma_threshold: float = 3.0):
        super().__init__()
        self.sigma_threshold = sigma_threshold
        self.mean_ = np.array([])
        self.covariance_ = np.empty((0, 0))
        self.inv_covariance_ = np.empty((0, 0))

    def calculate(self, features: Sequence[Sequence[float]]) -> List[int]:
        """
        Raises:
            SingularCovariance: If the sample covariance is not invertible,
                e.g. fewer samples than dimensions or collinear data.
        """
        data = as_feature_matrix(features)
        n_samples, n_dims = data.shape
        if n_samples <= n_dims:
            raise SingularCovariance(
                f"{n_samples} samples cannot give a full-rank covariance in {n_dims} dimensions"
            )

        mean = data.mean(axis=0)
        covariance = np.atleast_2d(np.cov(data, rowvar=False))
        if np.linalg.matrix_rank(covariance) < n_dims:
            raise SingularCovariance(
                f"Covariance of rank {np.linalg.matrix_rank(covariance)} "
                f"in {n_dims} dimensions is not invertible"
            )
        try:
            inv_covariance = np.linalg.inv(covariance)
        except np.linalg.LinAlgError as e:
            raise SingularCovariance(str(e)) from e

        centered = data - mean
        squared = np.einsum('ij,jk,ik->i', centered, inv_covariance, centered)
        measures = np.sqrt(np.clip(squared, 0.0, None))

        self.mean_ = mean
        self.covariance_ = covariance
        self.inv_covariance_ = inv_covariance
        self.measures_ = measures
        self.outlier_ids_ = np.flatnonzero(measures > self.sigma_threshold).tolist()
        return self.outlier_ids_

    def get_mean(self) -> np.ndarray:
        return self.mean_

    def get_covariance(self) -> np.ndarray:
        return self.covariance_

    def get_inverse_covariance(self) -> np.ndarray:
        return self.inv_covariance_
