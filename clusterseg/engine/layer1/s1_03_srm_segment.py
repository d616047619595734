"""S1.03 — SRM Segmentation.

Coarse segmentation by statistical region merging. Coarse tags are shifted
above the largest fine tag so a coarse and a fine region never share a tag.
"""

from __future__ import annotations

import logging

from clusterseg.engine.config import PipelineConfig
from clusterseg.engine.context import SegmentationContext
from clusterseg.engine.region_graph import SuperpixelImage
from clusterseg.engine.registry import Layer, stage
from clusterseg.engine.srm import SRMSegmenter
from clusterseg.utils.tags import offset_tags

logger = logging.getLogger(__name__)


@stage(
    id="S1.03",
    layer=Layer.SEGMENTATION,
    dependencies=["S0.01", "S0.02"],
    description="Coarse SRM segmentation into the coarse region graph",
)
def srm_segment(ctx: SegmentationContext, config: PipelineConfig) -> None:
    labels = SRMSegmenter(config.srm_q, config.srm_min_region_fraction).segment(ctx.image)
    ctx.coarse_tags = offset_tags(labels, int(ctx.fine_tags.max()))
    ctx.coarse_graph = SuperpixelImage.parse(ctx.coarse_tags)
    logger.debug(
        "Coarse graph: %d regions, tags %d..%d",
        len(ctx.coarse_graph), int(ctx.coarse_tags.min()), int(ctx.coarse_tags.max()),
    )
