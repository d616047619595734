"""Coord and Superpixel: the leaf data types of the region graph."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import NamedTuple

import numpy as np
from numpy.typing import NDArray


class Coord(NamedTuple):
    """Immutable (x, y) pixel location. Ordered and hashable."""

    x: int
    y: int


def _empty_index() -> NDArray[np.intp]:
    return np.empty(0, dtype=np.intp)


@dataclass
class Superpixel:
    """A labeled region: tag plus member coordinates in scan order.

    Coordinates are stored as two parallel index arrays so that numpy can
    gather from rasters directly (``raster[sp.ys, sp.xs]``).
    """

    tag: int
    xs: NDArray[np.intp] = field(default_factory=_empty_index)
    ys: NDArray[np.intp] = field(default_factory=_empty_index)

    @property
    def size(self) -> int:
        return int(self.xs.shape[0])

    @property
    def coords(self) -> list[Coord]:
        return [Coord(int(x), int(y)) for x, y in zip(self.xs, self.ys)]

    @property
    def first_coord(self) -> Coord:
        return Coord(int(self.xs[0]), int(self.ys[0]))

    @property
    def bbox(self) -> tuple[int, int, int, int]:
        """(min_x, min_y, max_x, max_y), inclusive."""
        return (
            int(self.xs.min()),
            int(self.ys.min()),
            int(self.xs.max()),
            int(self.ys.max()),
        )

    def absorb(self, donor: Superpixel) -> None:
        """Append every coordinate of ``donor``. The donor is left untouched."""
        self.xs = np.concatenate([self.xs, donor.xs])
        self.ys = np.concatenate([self.ys, donor.ys])

    def __repr__(self) -> str:
        return f"Superpixel(tag={self.tag}, size={self.size})"
