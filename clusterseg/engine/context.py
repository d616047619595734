"""SegmentationContext — the single mutable state object flowing through all stages.

Rasters are (height, width) int32 tag arrays; region graphs are owned by the
context and replaced, never shared, between stages.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray

from clusterseg.engine.accumulator import AccumulationResult
from clusterseg.engine.block_histogram import BlockHistograms
from clusterseg.engine.containment import ContainmentTree
from clusterseg.engine.quantize import QuantizeResult
from clusterseg.engine.region_graph import SuperpixelImage
from clusterseg.engine.superpixel import Coord


@dataclass
class RegionOfInterest:
    """Center and grown block bounding box of one coarse region."""

    tag: int
    center: Coord
    # (origin_x, origin_y, width, height) in pixels, clipped to the image
    bbox: tuple[int, int, int, int]
    expand_steps: int = 0


@dataclass
class SegmentationContext:
    """Shared state flowing through the entire pipeline."""

    # Input HxWx3 uint8 RGB image
    image: NDArray[np.uint8] = field(default_factory=lambda: np.zeros((0, 0, 3), dtype=np.uint8))

    # --- Fine segmentation (layer 0) ---
    block_tags: NDArray[np.int32] | None = None
    fine_graph: SuperpixelImage | None = None
    fine_tags: NDArray[np.int32] | None = None
    identical_merges: int = 0

    # --- Color and coarse segmentation (layer 1) ---
    quantized: QuantizeResult | None = None
    histograms: BlockHistograms | None = None
    coarse_tags: NDArray[np.int32] | None = None
    coarse_graph: SuperpixelImage | None = None

    # --- Containment (layer 2) ---
    containment: ContainmentTree | None = None
    rois: dict[int, RegionOfInterest] = field(default_factory=dict)

    # --- Accumulation (layer 3) ---
    accumulation: AccumulationResult | None = None

    # --- Pipeline metadata ---
    completed_stages: set[str] = field(default_factory=set)
    stage_times_ms: dict[str, float] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def height(self) -> int:
        return int(self.image.shape[0])

    @property
    def width(self) -> int:
        return int(self.image.shape[1])

    @property
    def final_tags(self) -> NDArray[np.int32] | None:
        if self.accumulation is None:
            return None
        return self.accumulation.composite

    @property
    def final_graph(self) -> SuperpixelImage | None:
        if self.accumulation is None:
            return None
        return self.accumulation.graph
