"""Binary mask morphology for region masks and block masks."""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray
from scipy import ndimage
from skimage.morphology import disk

from clusterseg.engine.superpixel import Coord


def expand_white_in_region(mask: NDArray[np.bool_], radius: int = 1) -> NDArray[np.bool_]:
    """Dilate the True area with a disk footprint."""
    if radius <= 0:
        return mask.astype(bool)
    return ndimage.binary_dilation(mask, structure=disk(radius))


def decrease_white_in_region(mask: NDArray[np.bool_], radius: int = 1) -> NDArray[np.bool_]:
    """Erode the True area with a disk footprint; pixels past the border count as False."""
    if radius <= 0:
        return mask.astype(bool)
    return ndimage.binary_erosion(mask, structure=disk(radius), border_value=0)


def find_region_center(mask: NDArray[np.bool_]) -> Coord:
    """The mask pixel farthest from any background pixel.

    The mask is padded by one background pixel so a region touching the image
    edge is measured against that edge too. Ties go to the first pixel in
    scan order.
    """
    mask = np.asarray(mask, dtype=bool)
    if not mask.any():
        raise ValueError("cannot find the center of an empty region")
    dist = ndimage.distance_transform_edt(np.pad(mask, 1))[1:-1, 1:-1]
    y, x = np.unravel_index(int(np.argmax(dist)), dist.shape)
    return Coord(int(x), int(y))


def block_mask(
    xs: NDArray, ys: NDArray, grid_size: tuple[int, int], block_dim: int,
) -> NDArray[np.bool_]:
    """Mask over the block grid (cols, rows) of the blocks the pixels touch."""
    cols, rows = grid_size
    out = np.zeros((rows, cols), dtype=bool)
    out[np.asarray(ys) // block_dim, np.asarray(xs) // block_dim] = True
    return out


def expand_block_region(blocks: NDArray[np.bool_], steps: int) -> tuple[NDArray[np.bool_], int]:
    """Grow a block mask one block per step, stopping early once it covers the grid.

    Returns the grown mask and the number of steps that changed it.
    """
    current = blocks.astype(bool)
    done = 0
    for _ in range(steps):
        if current.all():
            break
        current = expand_white_in_region(current, 1)
        done += 1
    return current, done
