"""S0.01 — Block Tags.

Tag the image with one region per block_dim×block_dim block and parse that
raster into the fine region graph. The block raster doubles as the fine
raster until the identical merge (S0.02) replaces it.
"""

from __future__ import annotations

from clusterseg.engine.config import PipelineConfig
from clusterseg.engine.context import SegmentationContext
from clusterseg.engine.region_graph import SuperpixelImage
from clusterseg.engine.registry import Layer, stage
from clusterseg.utils.tags import generate_block_tags


@stage(
    id="S0.01",
    layer=Layer.PARSING,
    description="Generate block tags and parse the fine region graph",
)
def block_tags(ctx: SegmentationContext, config: PipelineConfig) -> None:
    ctx.block_tags = generate_block_tags(ctx.height, ctx.width, config.block_dim)
    ctx.fine_graph = SuperpixelImage.parse(ctx.block_tags)
    ctx.fine_tags = ctx.block_tags.copy()
