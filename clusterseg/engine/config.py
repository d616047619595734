"""Pipeline configuration: algorithm knobs and optional stage gating."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class PipelineConfig:
    """Controls the segmentation stages and which optional stages run."""

    # Fine grid: one tag per block_dim×block_dim block
    block_dim: int = 4

    # SRM coarseness (smaller = fewer, larger regions)
    srm_q: float = 256.0
    # Regions under this fraction of the image are folded into a neighbor
    srm_min_region_fraction: float = 0.001

    # Palette size for block histograms
    num_clusters: int = 32
    palette_seed: int = 0

    # Identical-color merge of the fine grid
    merge_identical: bool = True
    # Only merge blocks whose pixels all share one color
    identical_uniform_only: bool = True

    # Minimum normalized histogram intersection for a fine region to be captured
    capture_threshold: float = 0.5

    # Region centers and block ROIs of the coarse regions
    compute_rois: bool = True
    roi_expand_steps: int = 8
