"""Tests for the SRM segmenter."""

import numpy as np
import pytest

from clusterseg.engine.srm import SRMSegmenter, segment


def test_two_flat_colors_separate(two_color_image):
    labels = segment(two_color_image, q=256.0)
    assert labels.shape == (32, 32)
    assert labels.dtype == np.int32
    assert set(np.unique(labels)) == {1, 2}
    assert (labels[:, :16] == 1).all()
    assert (labels[:, 16:] == 2).all()


def test_uniform_image_is_one_region():
    img = np.full((10, 12, 3), 77, dtype=np.uint8)
    labels = SRMSegmenter().segment(img)
    assert (labels == 1).all()


def test_small_q_merges_close_colors():
    img = np.zeros((20, 20, 3), dtype=np.uint8)
    img[:, 10:] = 6
    assert len(np.unique(segment(img, q=1.0))) == 1


def test_small_regions_are_folded():
    img = np.zeros((40, 40, 3), dtype=np.uint8)
    img[5, 5] = 255
    labels = segment(img, q=256.0, min_region_fraction=0.01)
    assert len(np.unique(labels)) == 1


def test_invalid_input():
    with pytest.raises(ValueError):
        SRMSegmenter(q=0)
    with pytest.raises(ValueError):
        segment(np.zeros((4, 4), dtype=np.uint8))
