"""Traxels and the hypotheses graph they live on."""

from .traxel import Traxel
from .hypotheses import HypothesesGraph, REQUIRED_PROPERTIES

__all__ = [
    'Traxel',
    'HypothesesGraph',
    'REQUIRED_PROPERTIES'
]
