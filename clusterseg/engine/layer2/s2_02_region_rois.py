"""S2.02 — Region Centers and ROIs.

For every coarse region: the pixel deepest inside it (distance transform
maximum) and the pixel box of its block mask grown by roi_expand_steps
blocks.
"""

from __future__ import annotations

import numpy as np

from clusterseg.engine.config import PipelineConfig
from clusterseg.engine.context import RegionOfInterest, SegmentationContext
from clusterseg.engine.registry import Layer, stage
from clusterseg.engine.superpixel import Coord
from clusterseg.utils.geometry import bbox, block_grid_size
from clusterseg.utils.morphology import block_mask, expand_block_region, find_region_center


@stage(
    id="S2.02",
    layer=Layer.CONTAINMENT,
    dependencies=["S1.03"],
    enabled_by="compute_rois",
    description="Region centers and expanded block regions of interest",
)
def region_rois(ctx: SegmentationContext, config: PipelineConfig) -> None:
    dim = config.block_dim
    grid = block_grid_size(ctx.width, ctx.height, dim)

    for tag, sp in ctx.coarse_graph.superpixels.items():
        x0, y0, w, h = bbox(sp.xs, sp.ys)
        local = np.zeros((h, w), dtype=bool)
        local[sp.ys - y0, sp.xs - x0] = True
        c = find_region_center(local)

        grown, steps = expand_block_region(block_mask(sp.xs, sp.ys, grid, dim), config.roi_expand_steps)
        bys, bxs = np.nonzero(grown)
        left, top = int(bxs.min()) * dim, int(bys.min()) * dim
        right = min((int(bxs.max()) + 1) * dim, ctx.width)
        bottom = min((int(bys.max()) + 1) * dim, ctx.height)

        ctx.rois[tag] = RegionOfInterest(
            tag=tag,
            center=Coord(c.x + x0, c.y + y0),
            bbox=(left, top, right - left, bottom - top),
            expand_steps=steps,
        )
