"""Clustering segmentation: block grid, SRM regions and inside-out merging."""

__version__ = "0.1.0"
