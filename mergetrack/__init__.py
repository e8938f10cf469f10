"""Merger resolution and track-quality features for hypothesis-graph trackers."""

__version__ = "0.3.0"
