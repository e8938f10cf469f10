"""Merger resolution: splitting merged nodes and cleaning up arcs."""

from .clustering import ClusterEstimator, KMeansEstimator
from .extractors import FeatureExtractor, MCOMsFromPCOMs, MCOMsFromMCOMs, MCOMsFromKMeans
from .distance import DistanceMetric, DistanceFromCOMs
from .disambiguation import (
    ArcDisambiguator, GreedyArcDisambiguator, AssignmentArcDisambiguator
)
from .resolver import MergerResolver, ResolutionReport

__all__ = [
    'ClusterEstimator',
    'KMeansEstimator',
    'FeatureExtractor',
    'MCOMsFromPCOMs',
    'MCOMsFromMCOMs',
    'MCOMsFromKMeans',
    'DistanceMetric',
    'DistanceFromCOMs',
    'ArcDisambiguator',
    'GreedyArcDisambiguator',
    'AssignmentArcDisambiguator',
    'MergerResolver',
    'ResolutionReport'
]
