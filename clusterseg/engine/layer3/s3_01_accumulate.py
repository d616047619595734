"""S3.01 — Merge Accumulation.

Walk the containment tree inside-out, committing each coarse region over the
fine regions whose block histograms it matches, then backfill the rest from
the fine raster. The composite is re-parsed only when its checksum differs
from the fine raster's.
"""

from __future__ import annotations

from clusterseg.engine.accumulator import MergeAccumulator
from clusterseg.engine.block_histogram import BlockHistogramCapture
from clusterseg.engine.config import PipelineConfig
from clusterseg.engine.context import SegmentationContext
from clusterseg.engine.registry import Layer, stage


@stage(
    id="S3.01",
    layer=Layer.ACCUMULATION,
    dependencies=["S1.02", "S2.01"],
    description="Accumulate the composite raster and re-parse on change",
)
def accumulate(ctx: SegmentationContext, config: PipelineConfig) -> None:
    capture = BlockHistogramCapture(
        ctx.histograms, ctx.fine_graph, ctx.coarse_graph, threshold=config.capture_threshold,
    )
    accumulator = MergeAccumulator(ctx.fine_graph, ctx.fine_tags, capture)
    ctx.accumulation = accumulator.run(ctx.containment)
