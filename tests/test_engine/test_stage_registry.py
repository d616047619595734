"""Tests for the stage registry."""

import pytest

from clusterseg.engine.config import PipelineConfig
from clusterseg.engine.context import SegmentationContext
from clusterseg.engine.registry import Layer, StageRegistry, StageSpec


def _noop(ctx: SegmentationContext, config: PipelineConfig) -> None:
    pass


def test_register_and_get():
    reg = StageRegistry()
    spec = StageSpec(id="S0.01", layer=Layer.PARSING, fn=_noop)
    reg.register(spec)
    assert reg.get("S0.01") is spec
    assert reg.count == 1


def test_duplicate_id_rejected():
    reg = StageRegistry()
    reg.register(StageSpec(id="S0.01", layer=Layer.PARSING, fn=_noop))
    with pytest.raises(ValueError):
        reg.register(StageSpec(id="S0.01", layer=Layer.PARSING, fn=_noop))


def test_get_layer():
    reg = StageRegistry()
    reg.register(StageSpec(id="S0.01", layer=Layer.PARSING, fn=_noop))
    reg.register(StageSpec(id="S1.01", layer=Layer.SEGMENTATION, fn=_noop))
    layer0 = reg.get_layer(Layer.PARSING)
    assert [s.id for s in layer0] == ["S0.01"]


def test_resolve_order_pulls_in_dependencies():
    reg = StageRegistry()
    reg.register(StageSpec(id="S0.01", layer=Layer.PARSING, fn=_noop))
    reg.register(StageSpec(id="S2.01", layer=Layer.CONTAINMENT, fn=_noop, dependencies=["S0.01"]))
    reg.register(StageSpec(id="S1.01", layer=Layer.SEGMENTATION, fn=_noop))
    ids = [s.id for s in reg.resolve_order({"S2.01"})]
    assert ids == ["S0.01", "S2.01"]


def test_resolve_order_cycle():
    reg = StageRegistry()
    reg.register(StageSpec(id="A", layer=Layer.PARSING, fn=_noop, dependencies=["B"]))
    reg.register(StageSpec(id="B", layer=Layer.PARSING, fn=_noop, dependencies=["A"]))
    with pytest.raises(ValueError, match="Circular"):
        reg.resolve_order()


def test_builtin_stages_registered():
    from clusterseg.engine.pipeline import create_pipeline

    pipeline = create_pipeline()
    ids = [s.id for s in pipeline.registry.all()]
    assert ids == ["S0.01", "S0.02", "S1.01", "S1.02", "S1.03", "S2.01", "S2.02", "S3.01"]


def test_enabled_by_must_name_a_config_flag():
    reg = StageRegistry()
    with pytest.raises(ValueError, match="not a PipelineConfig flag"):
        reg.register(StageSpec(id="S2.02", layer=Layer.CONTAINMENT, fn=_noop, enabled_by="no_such_flag"))
    with pytest.raises(ValueError):
        reg.register(StageSpec(id="S2.02", layer=Layer.CONTAINMENT, fn=_noop, enabled_by="block_dim"))
    assert reg.count == 0


def test_disabled_follows_config():
    reg = StageRegistry()
    reg.register(StageSpec(id="S0.01", layer=Layer.PARSING, fn=_noop))
    reg.register(StageSpec(id="S0.02", layer=Layer.PARSING, fn=_noop, enabled_by="merge_identical"))
    reg.register(StageSpec(id="S2.02", layer=Layer.CONTAINMENT, fn=_noop, enabled_by="compute_rois"))

    assert reg.disabled(PipelineConfig()) == set()
    assert reg.disabled(PipelineConfig(merge_identical=False)) == {"S0.02"}
    assert reg.disabled(PipelineConfig(merge_identical=False, compute_rois=False)) == {"S0.02", "S2.02"}
