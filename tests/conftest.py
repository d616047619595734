"""Shared test fixtures."""

from __future__ import annotations

import numpy as np
import pytest

RED = (255, 0, 0)
GREEN = (0, 255, 0)
BLUE = (0, 0, 255)

# Four 8x8 quadrant tags on a 16x16 raster: 1 2 / 3 4
QUADRANT_TAGS = np.array(
    [[1] * 8 + [2] * 8] * 8 + [[3] * 8 + [4] * 8] * 8,
    dtype=np.int32,
)

# Nested layout: fine regions 1 2 / 3 4, coarse regions 10 (top) and 20 (bottom)
NESTED_FINE = np.array(
    [[1, 1, 2, 2],
     [1, 1, 2, 2],
     [3, 3, 4, 4],
     [3, 3, 4, 4]],
    dtype=np.int32,
)
NESTED_COARSE = np.array(
    [[10, 10, 10, 10],
     [10, 10, 10, 10],
     [20, 20, 20, 20],
     [20, 20, 20, 20]],
    dtype=np.int32,
)


def make_quadrant_image(size: int = 16) -> np.ndarray:
    """Top half red, bottom-left green, bottom-right blue."""
    half = size // 2
    img = np.zeros((size, size, 3), dtype=np.uint8)
    img[:half, :] = RED
    img[half:, :half] = GREEN
    img[half:, half:] = BLUE
    return img


@pytest.fixture
def quadrant_tags() -> np.ndarray:
    return QUADRANT_TAGS.copy()


@pytest.fixture
def quadrant_image() -> np.ndarray:
    return make_quadrant_image(16)


@pytest.fixture
def two_color_image() -> np.ndarray:
    """32x32, left half black, right half white."""
    img = np.zeros((32, 32, 3), dtype=np.uint8)
    img[:, 16:] = 255
    return img


@pytest.fixture
def small_tags() -> np.ndarray:
    return np.array(
        [[1, 1, 2],
         [3, 3, 2],
         [3, 4, 4]],
        dtype=np.int32,
    )
