"""Stage registry — every pipeline stage is a standalone function registered via decorator.

A stage that can be switched off names the boolean PipelineConfig field that
enables it; the registry checks the name at registration and reports which
stages a given configuration disables.

Usage:
    @stage(id="S2.02", layer=Layer.CONTAINMENT, dependencies=["S1.03"], enabled_by="compute_rois")
    def region_rois(ctx: SegmentationContext, config: PipelineConfig) -> None:
        ...
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field, fields
from typing import TYPE_CHECKING, Callable

from clusterseg.engine.config import PipelineConfig

if TYPE_CHECKING:
    from clusterseg.engine.context import SegmentationContext

logger = logging.getLogger(__name__)

_CONFIG_FLAGS = {f.name for f in fields(PipelineConfig) if f.type in (bool, "bool")}


class Layer(enum.IntEnum):
    PARSING = 0
    SEGMENTATION = 1
    CONTAINMENT = 2
    ACCUMULATION = 3


@dataclass
class StageSpec:
    id: str
    layer: Layer
    fn: Callable[["SegmentationContext", PipelineConfig], None]
    dependencies: list[str] = field(default_factory=list)
    # PipelineConfig flag that must be true for the stage to run
    enabled_by: str | None = None
    description: str = ""

    def enabled(self, config: PipelineConfig) -> bool:
        return self.enabled_by is None or bool(getattr(config, self.enabled_by))


class StageRegistry:
    def __init__(self) -> None:
        self._stages: dict[str, StageSpec] = {}

    def register(self, spec: StageSpec) -> None:
        if spec.id in self._stages:
            raise ValueError(f"Duplicate stage ID: {spec.id}")
        if spec.enabled_by is not None and spec.enabled_by not in _CONFIG_FLAGS:
            raise ValueError(f"Stage {spec.id}: {spec.enabled_by!r} is not a PipelineConfig flag")
        self._stages[spec.id] = spec
        logger.debug("Registered stage %s (%s)", spec.id, spec.layer.name)

    def get(self, stage_id: str) -> StageSpec:
        return self._stages[stage_id]

    def get_layer(self, layer: Layer) -> list[StageSpec]:
        return sorted((s for s in self._stages.values() if s.layer == layer), key=lambda s: s.id)

    def all(self) -> list[StageSpec]:
        return sorted(self._stages.values(), key=lambda s: (s.layer, s.id))

    def disabled(self, config: PipelineConfig) -> set[str]:
        """Ids of the stages switched off by ``config``."""
        return {sid for sid, spec in self._stages.items() if not spec.enabled(config)}

    def resolve_order(self, requested_ids: set[str] | None = None) -> list[StageSpec]:
        """Topological sort respecting dependencies; ties broken by stage id.

        Requested stages pull in their transitive dependencies. A dependency
        that is not in the pool (skipped or unknown) does not block a stage.
        """
        pool = self._stages
        if requested_ids is not None:
            expanded: set[str] = set()
            stack = list(requested_ids)
            while stack:
                sid = stack.pop()
                if sid in expanded:
                    continue
                expanded.add(sid)
                spec = pool.get(sid)
                if spec:
                    stack.extend(spec.dependencies)
            pool = {k: v for k, v in pool.items() if k in expanded}

        # Kahn's algorithm
        in_degree = {
            sid: sum(1 for dep in spec.dependencies if dep in pool)
            for sid, spec in pool.items()
        }
        queue = sorted(sid for sid, d in in_degree.items() if d == 0)
        ordered: list[StageSpec] = []

        while queue:
            sid = queue.pop(0)
            ordered.append(pool[sid])
            for other_id, other in pool.items():
                if sid in other.dependencies:
                    in_degree[other_id] -= 1
                    if in_degree[other_id] == 0:
                        queue.append(other_id)
                        queue.sort()

        if len(ordered) != len(pool):
            missing = set(pool) - {s.id for s in ordered}
            raise ValueError(f"Circular dependency detected among: {sorted(missing)}")
        return ordered

    @property
    def count(self) -> int:
        return len(self._stages)


# Module-level singleton
_registry = StageRegistry()


def get_registry() -> StageRegistry:
    return _registry


def stage(
    *,
    id: str,
    layer: Layer,
    dependencies: list[str] | None = None,
    enabled_by: str | None = None,
    description: str = "",
):
    """Decorator to register a stage function."""

    def decorator(fn: Callable[["SegmentationContext", PipelineConfig], None]):
        _registry.register(StageSpec(
            id=id,
            layer=layer,
            fn=fn,
            dependencies=dependencies or [],
            enabled_by=enabled_by,
            description=description,
        ))
        return fn

    return decorator
