"""S2.01 — Containment.

Nest the fine regions inside the coarse regions and derive the inside-out
processing order for the merge accumulator.
"""

from __future__ import annotations

from clusterseg.engine.config import PipelineConfig
from clusterseg.engine.containment import resolve_containment
from clusterseg.engine.context import SegmentationContext
from clusterseg.engine.registry import Layer, stage


@stage(
    id="S2.01",
    layer=Layer.CONTAINMENT,
    dependencies=["S0.01", "S0.02", "S1.03"],
    description="Resolve containment tree and inside-out order",
)
def containment(ctx: SegmentationContext, config: PipelineConfig) -> None:
    ctx.containment = resolve_containment(ctx.coarse_graph, ctx.fine_tags)
