"""Tests for palette quantization."""

import numpy as np
import pytest

from clusterseg.engine.quantize import quantize


def test_fewer_colors_than_requested(quadrant_image):
    result = quantize(quadrant_image, 8)
    assert result.n_clusters == 3
    assert result.colortable.shape == (3, 3)
    np.testing.assert_array_equal(result.pixels, quadrant_image.reshape(-1, 3))
    assert result.index_raster((16, 16)).shape == (16, 16)


def test_clusters_group_similar_colors():
    px = np.array(
        [[0, 0, 0], [2, 2, 2], [4, 4, 4], [250, 250, 250], [252, 252, 252], [255, 255, 255]] * 10,
        dtype=np.uint8,
    )
    result = quantize(px, 2)
    assert result.n_clusters == 2
    dark = set(result.indices[px[:, 0] < 128].tolist())
    light = set(result.indices[px[:, 0] >= 128].tolist())
    assert len(dark) == 1 and len(light) == 1
    assert dark != light
    assert result.pixels.shape == px.shape


def test_invalid_arguments():
    with pytest.raises(ValueError):
        quantize(np.zeros((4, 3), dtype=np.uint8), 0)
    with pytest.raises(ValueError):
        quantize(np.zeros((0, 3), dtype=np.uint8), 4)


def test_cluster_counts(quadrant_image):
    result = quantize(quadrant_image, 8)
    counts = result.cluster_counts
    assert counts.sum() == 16 * 16
    assert sorted(counts.tolist()) == [64, 64, 128]


def test_center_walk_starts_dark_and_steps_to_nearest():
    px = np.array([[255, 255, 255], [0, 0, 0], [200, 200, 200], [20, 20, 20]], dtype=np.uint8)
    result = quantize(px, 4)
    walk = [tuple(result.colortable[i].tolist()) for i in result.center_walk()]
    assert walk == [(0, 0, 0), (20, 20, 20), (200, 200, 200), (255, 255, 255)]
    assert sorted(result.center_walk()) == list(range(result.n_clusters))
