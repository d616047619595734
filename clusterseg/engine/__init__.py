"""Clustering segmentation engine."""

from clusterseg.engine.registry import stage, Layer, get_registry
from clusterseg.engine.context import SegmentationContext, RegionOfInterest
from clusterseg.engine.pipeline import Pipeline, create_pipeline

__all__ = [
    "stage",
    "Layer",
    "get_registry",
    "SegmentationContext",
    "RegionOfInterest",
    "Pipeline",
    "create_pipeline",
]
