"""Pipeline orchestrator — runs stages in dependency order and aborts on the first failure."""

from __future__ import annotations

import importlib
import logging
import pkgutil
import time

from clusterseg.engine.config import PipelineConfig
from clusterseg.engine.context import SegmentationContext
from clusterseg.engine.errors import StageFailed
from clusterseg.engine.registry import StageRegistry, StageSpec, get_registry

logger = logging.getLogger(__name__)

_STAGE_PACKAGES = ["layer0", "layer1", "layer2", "layer3"]


class Pipeline:
    """Orchestrates the segmentation stages."""

    def __init__(
        self,
        registry: StageRegistry | None = None,
        config: PipelineConfig | None = None,
    ) -> None:
        self.registry = registry or get_registry()
        self.config = config or PipelineConfig()

    def plan(self, stage_ids: set[str] | None = None) -> list[StageSpec]:
        """Stages that would run, in order. Gated stages are left out."""
        skip_ids = self.registry.disabled(self.config)
        requested = stage_ids if stage_ids is not None else {s.id for s in self.registry.all()}
        ordered = self.registry.resolve_order(requested - skip_ids)
        return [s for s in ordered if s.id not in skip_ids]

    def run(self, ctx: SegmentationContext, stage_ids: set[str] | None = None) -> SegmentationContext:
        """Run the pipeline on ``ctx``.

        A failing stage has its error recorded in ``ctx.errors`` and is
        re-raised as StageFailed; no later stage runs.
        """
        start = time.perf_counter()
        ordered = self.plan(stage_ids)
        logger.info("Pipeline: %d stages queued for %dx%d image", len(ordered), ctx.width, ctx.height)

        for spec in ordered:
            t0 = time.perf_counter()
            try:
                spec.fn(ctx, self.config)
            except Exception as e:
                ctx.errors[spec.id] = str(e)
                logger.error("  %s FAILED: %s", spec.id, e)
                raise StageFailed(spec.id, e) from e
            ctx.completed_stages.add(spec.id)
            elapsed = (time.perf_counter() - t0) * 1000
            ctx.stage_times_ms[spec.id] = round(elapsed, 1)
            logger.debug("  %s completed in %.1fms", spec.id, elapsed)

        total = (time.perf_counter() - start) * 1000
        logger.info(
            "Pipeline complete: %d/%d stages in %.0fms",
            len(ctx.completed_stages), len(ordered), total,
        )
        return ctx


def load_stages() -> None:
    """Import every stage module so @stage decorators fire."""
    for layer_name in _STAGE_PACKAGES:
        package = importlib.import_module(f"clusterseg.engine.{layer_name}")
        for _, module_name, _ in pkgutil.iter_modules(package.__path__):
            importlib.import_module(f"{package.__name__}.{module_name}")


def create_pipeline(config: PipelineConfig | None = None) -> Pipeline:
    """Factory function for a pipeline over the registered stages."""
    load_stages()
    return Pipeline(config=config)
