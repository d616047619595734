"""Leaf-node raster geometry helpers. No engine imports."""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray


def bbox(xs: NDArray, ys: NDArray) -> tuple[int, int, int, int]:
    """Compute (origin_x, origin_y, width, height) covering every coordinate."""
    if len(xs) == 0:
        return (0, 0, 0, 0)
    min_x, max_x = int(np.min(xs)), int(np.max(xs))
    min_y, max_y = int(np.min(ys)), int(np.max(ys))
    return (min_x, min_y, max_x - min_x + 1, max_y - min_y + 1)


def block_grid_size(width: int, height: int, block_dim: int) -> tuple[int, int]:
    """Number of (columns, rows) of block_dim×block_dim blocks covering the image.

    Partial blocks on the right and bottom edges count as full blocks.
    """
    if block_dim <= 0:
        raise ValueError(f"block_dim must be positive, got {block_dim}")
    block_width = -(-width // block_dim)
    block_height = -(-height // block_dim)
    return block_width, block_height


def unique_in_order(values: NDArray) -> list[int]:
    """Distinct values in first-seen order."""
    if len(values) == 0:
        return []
    _, first = np.unique(values, return_index=True)
    return [int(v) for v in values[np.sort(first)]]
