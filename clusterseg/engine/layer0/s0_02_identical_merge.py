"""S0.02 — Identical Merge.

Merge adjacent fine regions whose source color is bit-identical until no
merge applies, then render the merged graph as the fine raster.
"""

from __future__ import annotations

import logging

from clusterseg.engine.config import PipelineConfig
from clusterseg.engine.context import SegmentationContext
from clusterseg.engine.registry import Layer, stage

logger = logging.getLogger(__name__)


@stage(
    id="S0.02",
    layer=Layer.PARSING,
    dependencies=["S0.01"],
    enabled_by="merge_identical",
    description="Merge identical-color neighbors of the fine grid",
)
def identical_merge(ctx: SegmentationContext, config: PipelineConfig) -> None:
    graph = ctx.fine_graph
    ctx.identical_merges = graph.merge_identical_superpixels(
        ctx.image, uniform_only=config.identical_uniform_only,
    )
    ctx.fine_tags = graph.to_tag_raster()

    large = graph.scan_largest_superpixels()
    if large:
        logger.debug(
            "%d outsized fine regions after merge, largest tag %d (%d px)",
            len(large), large[0], graph.superpixels[large[0]].size,
        )
