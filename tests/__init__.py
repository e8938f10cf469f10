"""Tests for mergetrack."""
