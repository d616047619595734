"""Tests for tag raster helpers and image I/O."""

import numpy as np
import pytest

from clusterseg.engine.errors import ImageLoadError, ImageTooLarge
from clusterseg.utils.geometry import bbox, block_grid_size, unique_in_order
from clusterseg.utils.imageio import encode_tags_png, load_image, load_tags_image
from clusterseg.utils.tags import (
    generate_block_tags,
    offset_tags,
    rgb_to_tags,
    static_palette,
    tags_to_rgb,
)


def test_color_codec():
    rgb = np.array([[[1, 2, 3], [0, 0, 255]]], dtype=np.uint8)
    tags = rgb_to_tags(rgb)
    assert tags.tolist() == [[0x010203, 255]]
    np.testing.assert_array_equal(tags_to_rgb(tags), rgb)


def test_color_codec_range():
    with pytest.raises(ValueError):
        tags_to_rgb(np.array([[0x1000000]], dtype=np.int32))
    with pytest.raises(ValueError):
        tags_to_rgb(np.array([[-1]], dtype=np.int32))


def test_generate_block_tags():
    tags = generate_block_tags(5, 9, 4)
    assert tags.shape == (5, 9)
    assert tags[0, 0] == 1
    assert tags[0, 4] == 2
    assert tags[4, 8] == 6
    assert len(np.unique(tags)) == 6


def test_offset_tags():
    assert offset_tags(np.array([[1, 2]], dtype=np.int32), 10).tolist() == [[11, 12]]
    # already above the floor
    assert offset_tags(np.array([[50]], dtype=np.int32), 10).tolist() == [[50]]


def test_static_palette_reproducible():
    assert static_palette([1, 2, 3], seed=4) == static_palette([1, 2, 3], seed=4)
    assert set(static_palette([5, 9])) == {5, 9}


def test_geometry_helpers():
    assert bbox(np.array([2, 4]), np.array([1, 3])) == (2, 1, 3, 3)
    assert bbox(np.array([]), np.array([])) == (0, 0, 0, 0)
    assert block_grid_size(9, 5, 4) == (3, 2)
    with pytest.raises(ValueError):
        block_grid_size(4, 4, 0)
    assert unique_in_order(np.array([5, 3, 5, 1, 3])) == [5, 3, 1]


def test_tags_png_round_trip(quadrant_tags):
    png = encode_tags_png(quadrant_tags)
    np.testing.assert_array_equal(load_tags_image(png), quadrant_tags)


def test_load_image_rejects_garbage(tmp_path):
    with pytest.raises(ImageLoadError):
        load_image(b"not an image")
    with pytest.raises(ImageLoadError):
        load_image(tmp_path / "missing.png")


def test_load_image_checks_pixel_limit_from_header(quadrant_tags):
    png = encode_tags_png(quadrant_tags)
    assert load_image(png, max_pixels=16 * 16).shape == (16, 16, 3)
    with pytest.raises(ImageTooLarge, match="limit is 255"):
        load_image(png, max_pixels=255)
    # still an ImageLoadError for callers that only catch that
    with pytest.raises(ImageLoadError):
        load_image(png, max_pixels=1)
