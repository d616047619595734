"""S1.01 — Color Quantization.

Reduce the input image to a palette of at most num_clusters colors.
"""

from __future__ import annotations

import logging

from clusterseg.engine.config import PipelineConfig
from clusterseg.engine.context import SegmentationContext
from clusterseg.engine.quantize import quantize
from clusterseg.engine.registry import Layer, stage

logger = logging.getLogger(__name__)


@stage(
    id="S1.01",
    layer=Layer.SEGMENTATION,
    description="Quantize the image to a small palette",
)
def color_quantize(ctx: SegmentationContext, config: PipelineConfig) -> None:
    result = quantize(ctx.image, config.num_clusters, random_state=config.palette_seed)
    ctx.quantized = result

    if logger.isEnabledFor(logging.DEBUG):
        counts = result.cluster_counts
        for offset in result.center_walk():
            r, g, b = result.colortable[offset]
            logger.debug("palette #%02X%02X%02X: %d px", r, g, b, counts[offset])
