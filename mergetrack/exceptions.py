"""
Error kinds raised by merger resolution and track feature computation.
"""

from typing import Any, Optional, Sequence

import numpy as np


class MergeTrackError(Exception):
    """Base class for all mergetrack errors."""


class DimensionMismatch(MergeTrackError, ValueError):
    """A flat feature array does not fit the matrix shape it is converted into."""


class MissingFeature(MergeTrackError, KeyError):
    """A traxel lacks a feature the caller requires."""

    def __init__(self, feature: str, traxel_id: Optional[int] = None):
        self.feature = feature
        self.traxel_id = traxel_id
        msg = f"Feature '{feature}' not stored in traxel"
        if traxel_id is not None:
            msg += f" {traxel_id}"
        super().__init__(msg)

    def __str__(self) -> str:
        # KeyError would otherwise quote the message
        return self.args[0]


class SingularCovariance(MergeTrackError, np.linalg.LinAlgError):
    """Covariance matrix of a feature sequence cannot be inverted."""


class InvalidGraphState(MergeTrackError, RuntimeError):
    """Graph is missing, or lacks a property required before mutation."""


class InfeasibleDisambiguation(MergeTrackError, RuntimeError):
    """The local arc selection model has no valid solution."""

    def __init__(self, message: str, nodes: Sequence[int] = ()):
        super().__init__(message)
        self.nodes = tuple(nodes)


class NodeResolutionError(MergeTrackError):
    """Resolution of a single merger node failed; other nodes are unaffected."""

    def __init__(self, node: int, traxel_id: Any, timestep: Any, cause: Exception):
        self.node = node
        self.traxel_id = traxel_id
        self.timestep = timestep
        self.cause = cause
        super().__init__(
            f"Failed to resolve merger node {node} "
            f"(traxel {traxel_id} at t={timestep}): {cause}"
        )
