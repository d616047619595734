"""S1.02 — Block Histograms."""

from __future__ import annotations

from clusterseg.engine.block_histogram import BlockHistograms
from clusterseg.engine.config import PipelineConfig
from clusterseg.engine.context import SegmentationContext
from clusterseg.engine.registry import Layer, stage


@stage(
    id="S1.02",
    layer=Layer.SEGMENTATION,
    dependencies=["S1.01"],
    description="Count palette colors per block",
)
def block_histograms(ctx: SegmentationContext, config: PipelineConfig) -> None:
    q = ctx.quantized
    ctx.histograms = BlockHistograms.from_indices(
        q.index_raster((ctx.height, ctx.width)), q.n_clusters, config.block_dim,
    )
