"""Tests for SuperpixelImage parse, queries and merges."""

import numpy as np
import pytest

from clusterseg.engine.errors import ParseError
from clusterseg.engine.region_graph import SuperpixelImage
from clusterseg.engine.superpixel import Coord


def _assert_symmetric(graph: SuperpixelImage) -> None:
    assert set(graph.tags()) == set(graph._adjacency)
    for tag in graph.tags():
        assert tag not in graph.neighbors(tag)
        for n in graph.neighbors(tag):
            assert tag in graph.neighbors(n)


def test_parse_covers_every_pixel(small_tags):
    graph = SuperpixelImage.parse(small_tags)
    assert graph.total_size() == small_tags.size
    np.testing.assert_array_equal(graph.to_tag_raster(), small_tags)


def test_parse_first_seen_order(small_tags):
    graph = SuperpixelImage.parse(small_tags)
    assert graph.tags() == [1, 2, 3, 4]


def test_parse_coords_in_scan_order(small_tags):
    graph = SuperpixelImage.parse(small_tags)
    sp = graph.get(3)
    assert sp.coords == [Coord(0, 1), Coord(1, 1), Coord(0, 2)]
    assert sp.first_coord == Coord(0, 1)
    assert sp.bbox == (0, 1, 1, 2)


def test_adjacency_matches_raster(small_tags):
    graph = SuperpixelImage.parse(small_tags)
    assert graph.edges() == [(1, 2), (1, 3), (2, 3), (2, 4), (3, 4)]
    assert 4 not in graph.neighbors(1)
    _assert_symmetric(graph)


def test_single_region_has_no_edges():
    graph = SuperpixelImage.parse(np.full((3, 5), 9, dtype=np.int32))
    assert len(graph) == 1
    assert graph.neighbors(9) == frozenset()
    assert graph.edge_count == 0


def test_parse_rejects_malformed():
    with pytest.raises(ParseError):
        SuperpixelImage.parse(np.zeros((0, 4), dtype=np.int32))
    with pytest.raises(ParseError):
        SuperpixelImage.parse(np.arange(5))
    with pytest.raises(ParseError):
        SuperpixelImage.parse(np.zeros((2, 2), dtype=np.float32))
    with pytest.raises(ValueError):
        SuperpixelImage.parse(np.full((2, 2), 2**40, dtype=np.int64))


def test_sort_by_size(small_tags):
    graph = SuperpixelImage.parse(small_tags)
    assert graph.sort_superpixels_by_size() == [3, 1, 2, 4]


def test_scan_largest(small_tags):
    graph = SuperpixelImage.parse(small_tags)
    assert graph.scan_largest_superpixels() == [3]
    assert graph.scan_largest_superpixels(tags=[1, 2, 4]) == []
    assert graph.scan_largest_superpixels(min_size=10) == []


def test_merge_moves_coords_and_edges(small_tags):
    graph = SuperpixelImage.parse(small_tags)
    survivor = graph.merge_superpixels(1, 3)
    assert survivor == 3
    assert 1 not in graph
    assert graph.get(3).size == 5
    assert graph.neighbors(3) == frozenset({2, 4})
    _assert_symmetric(graph)


def test_merge_equal_size_keeps_lower_tag(small_tags):
    graph = SuperpixelImage.parse(small_tags)
    assert graph.merge_superpixels(4, 1) == 1


def test_merge_conserves_pixels(quadrant_tags):
    graph = SuperpixelImage.parse(quadrant_tags)
    total = graph.total_size()
    for a, b in [(1, 2), (3, 4), (1, 3)]:
        graph.merge_superpixels(a, b)
        assert graph.total_size() == total
        _assert_symmetric(graph)
    assert graph.tags() == [1]
    assert (graph.to_tag_raster() == 1).all()


def test_merge_with_itself_rejected(small_tags):
    graph = SuperpixelImage.parse(small_tags)
    with pytest.raises(ValueError):
        graph.merge_superpixels(2, 2)


def test_fill_raster_shape_mismatch(small_tags):
    graph = SuperpixelImage.parse(small_tags)
    with pytest.raises(ValueError):
        graph.fill_raster_with_tags(np.zeros((4, 4), dtype=np.int32))


def test_render_with_palette(small_tags):
    graph = SuperpixelImage.parse(small_tags)
    out = graph.render_with_palette({1: (10, 20, 30)})
    assert out.shape == (3, 3, 3)
    assert tuple(out[0, 0]) == (10, 20, 30)
    assert tuple(out[2, 2]) == (0, 0, 0)
