"""
Traxel dataclass representing one object measurement at one timestep.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional
import numpy as np

from ..exceptions import MissingFeature


@dataclass
class Traxel:
    """
    A timestamped object measurement with named numeric feature vectors.

    Identity is the pair (id, timestep). Feature vectors are stored as
    1-D float arrays, e.g. ``"com"`` (center of mass), ``"possibleCOMs"``
    or ``"Coord<ValueList>"``.
    """

    id: int
    """Object id, unique within a timestep."""

    timestep: int
    """Frame index of the measurement."""

    features: Dict[str, np.ndarray] = field(default_factory=dict)
    """Feature name -> 1-D float array."""

    def __post_init__(self):
        self.features = {
            name: np.asarray(value, dtype=float).ravel()
            for name, value in self.features.items()
        }

    @property
    def key(self) -> tuple:
        """(timestep, id) identity of this traxel."""
        return (self.timestep, self.id)

    def has_feature(self, name: str) -> bool:
        """Check whether feature *name* is stored."""
        return name in self.features

    def get_feature(self, name: str) -> np.ndarray:
        """
        Get a feature vector.

        Args:
            name: Feature name.

        Returns:
            1-D float array.

        Raises:
            MissingFeature: If the feature is not stored.
        """
        try:
            return self.features[name]
        except KeyError:
            raise MissingFeature(name, self.id) from None

    def with_features(self, id: int, features: Dict[str, Iterable[float]],
                      timestep: Optional[int] = None) -> 'Traxel':
        """Create a new traxel at the same timestep carrying *features*."""
        return Traxel(
            id=id,
            timestep=self.timestep if timestep is None else timestep,
            features=dict(features)
        )

    def __repr__(self) -> str:
        return (
            f"Traxel(id={self.id}, t={self.timestep}, "
            f"features={sorted(self.features)})"
        )

    def to_dict(self) -> dict:
        """
        Convert traxel to dictionary for serialization.

        Returns:
            Dictionary representation.
        """
        return {
            'id': self.id,
            'timestep': self.timestep,
            'features': {
                name: value.tolist() for name, value in self.features.items()
            }
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Traxel':
        """Create traxel from dictionary."""
        return cls(
            id=data['id'],
            timestep=data['timestep'],
            features=data.get('features', {})
        )
