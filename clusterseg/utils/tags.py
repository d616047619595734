"""Tag raster helpers: 24-bit color codec and generated tag layouts.

Inside the engine tags are always an ``int32`` raster. The color codec is only
used at the image I/O boundary, where a tag is stored as an RGB triple:
``tag = (R << 16) | (G << 8) | B``.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from clusterseg.utils.geometry import block_grid_size

# Largest tag representable as a 24-bit RGB triple
MAX_COLOR_TAG = 0x00FFFFFF


def rgb_to_tags(rgb: NDArray[np.uint8]) -> NDArray[np.int32]:
    """Decode an HxWx3 RGB raster into an int32 tag raster."""
    if rgb.ndim != 3 or rgb.shape[2] < 3:
        raise ValueError(f"expected HxWx3 RGB raster, got shape {rgb.shape}")
    px = rgb[:, :, :3].astype(np.int32)
    return (px[:, :, 0] << 16) | (px[:, :, 1] << 8) | px[:, :, 2]


def tags_to_rgb(tags: NDArray) -> NDArray[np.uint8]:
    """Encode an int tag raster as an HxWx3 RGB raster (low 24 bits)."""
    if tags.ndim != 2:
        raise ValueError(f"expected 2-D tag raster, got shape {tags.shape}")
    t = tags.astype(np.int64)
    if t.size and (t.min() < 0 or t.max() > MAX_COLOR_TAG):
        raise ValueError("tag values outside the 24-bit color range")
    t = t.astype(np.uint32)
    rgb = np.empty(tags.shape + (3,), dtype=np.uint8)
    rgb[:, :, 0] = (t >> 16) & 0xFF
    rgb[:, :, 1] = (t >> 8) & 0xFF
    rgb[:, :, 2] = t & 0xFF
    return rgb


def pack_rgb(rgb: NDArray[np.uint8]) -> NDArray[np.uint32]:
    """Pack the last axis (R, G, B) into one uint32 per pixel."""
    px = rgb[..., :3].astype(np.uint32)
    return (px[..., 0] << 16) | (px[..., 1] << 8) | px[..., 2]


def generate_block_tags(height: int, width: int, block_dim: int = 4) -> NDArray[np.int32]:
    """One tag per block_dim×block_dim block, numbered in scan order from 1.

    Tag 0 is left free as the "unset" sentinel of the merge accumulator.
    """
    if height <= 0 or width <= 0:
        raise ValueError(f"invalid raster size {width}x{height}")
    block_width, _ = block_grid_size(width, height, block_dim)
    by = (np.arange(height) // block_dim)[:, None]
    bx = (np.arange(width) // block_dim)[None, :]
    return (by * block_width + bx + 1).astype(np.int32)


def offset_tags(tags: NDArray[np.int32], floor: int) -> NDArray[np.int32]:
    """Shift tags so the smallest becomes ``floor + 1``.

    Used to move one segmentation's tags into a range disjoint from another's.
    """
    if tags.size == 0:
        return tags.astype(np.int32)
    shift = floor + 1 - int(tags.min())
    return (tags.astype(np.int64) + max(shift, 0)).astype(np.int32)


def static_palette(tags: list[int], seed: int = 0) -> dict[int, tuple[int, int, int]]:
    """Random but reproducible display color per tag."""
    rng = np.random.default_rng(seed)
    colors = rng.integers(0, 256, size=(len(tags), 3), dtype=np.int64)
    return {
        int(tag): (int(c[0]), int(c[1]), int(c[2]))
        for tag, c in zip(tags, colors)
    }
