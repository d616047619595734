"""Statistical region merging (Nock & Nielsen) for the coarse segmentation.

Pixel pairs of the 4-connected grid are sorted by their largest channel
difference and visited once; two regions are unioned when the difference of
their mean colors stays below a bound that shrinks with region size. ``q``
sets the coarseness: small values give few large regions, large values many
small ones. Regions smaller than ``min_region_fraction`` of the image are
folded into a neighbor in a second pass over the same edge order.
"""

from __future__ import annotations

import logging
import math

import numpy as np
from numpy.typing import NDArray

logger = logging.getLogger(__name__)

# Number of levels per color channel
_G = 256.0


class SRMSegmenter:
    def __init__(self, q: float = 256.0, min_region_fraction: float = 0.001) -> None:
        if q <= 0:
            raise ValueError(f"q must be positive, got {q}")
        self.q = q
        self.min_region_fraction = min_region_fraction

    def segment(self, rgb: NDArray[np.uint8]) -> NDArray[np.int32]:
        """Label raster of the image's shape with tags 1..K in scan order."""
        rgb = np.asarray(rgb)
        if rgb.ndim != 3 or rgb.shape[2] < 3:
            raise ValueError(f"expected HxWx3 RGB image, got shape {rgb.shape}")
        height, width = rgb.shape[:2]
        n = height * width
        if n == 0:
            raise ValueError("cannot segment an empty image")

        flat = rgb[:, :, :3].reshape(n, 3).astype(np.float64)
        a, b = _grid_edges(height, width)
        weight = np.abs(flat[a] - flat[b]).max(axis=1)
        order = np.argsort(weight, kind="stable")
        edge_a = a[order].tolist()
        edge_b = b[order].tolist()

        parent = list(range(n))
        size = [1] * n
        sums = flat.tolist()
        logdelta = 2.0 * math.log(6.0 * n)

        def find(i: int) -> int:
            while parent[i] != i:
                parent[i] = parent[parent[i]]
                i = parent[i]
            return i

        def union(r1: int, r2: int) -> None:
            if size[r1] < size[r2]:
                r1, r2 = r2, r1
            parent[r2] = r1
            size[r1] += size[r2]
            s1, s2 = sums[r1], sums[r2]
            s1[0] += s2[0]
            s1[1] += s2[1]
            s1[2] += s2[2]

        def bound(r: int) -> float:
            nr = size[r]
            return _G * _G / (2.0 * self.q * nr) * (min(_G, nr) * math.log(1.0 + nr) + logdelta)

        def predicate(r1: int, r2: int) -> bool:
            n1, n2 = size[r1], size[r2]
            s1, s2 = sums[r1], sums[r2]
            dev = bound(r1) + bound(r2)
            for c in range(3):
                d = s1[c] / n1 - s2[c] / n2
                if d * d >= dev:
                    return False
            return True

        for i, j in zip(edge_a, edge_b):
            r1, r2 = find(i), find(j)
            if r1 != r2 and predicate(r1, r2):
                union(r1, r2)

        small = int(self.min_region_fraction * n)
        if small > 0:
            for i, j in zip(edge_a, edge_b):
                r1, r2 = find(i), find(j)
                if r1 != r2 and (size[r1] < small or size[r2] < small):
                    union(r1, r2)

        roots = np.fromiter((find(i) for i in range(n)), dtype=np.int64, count=n)
        # Relabel roots 1..K in order of first appearance
        _, first, inverse = np.unique(roots, return_index=True, return_inverse=True)
        rank = np.empty(len(first), dtype=np.int32)
        rank[np.argsort(first, kind="stable")] = np.arange(1, len(first) + 1, dtype=np.int32)
        labels = rank[inverse.ravel()].reshape(height, width)

        logger.debug("SRM (q=%.1f): %d regions over %dx%d", self.q, len(first), width, height)
        return labels


def segment(rgb: NDArray[np.uint8], q: float = 256.0, min_region_fraction: float = 0.001) -> NDArray[np.int32]:
    return SRMSegmenter(q, min_region_fraction).segment(rgb)


def _grid_edges(height: int, width: int) -> tuple[NDArray[np.int64], NDArray[np.int64]]:
    """Flat pixel index pairs of every right and down neighbor."""
    idx = np.arange(height * width, dtype=np.int64).reshape(height, width)
    a = np.concatenate([idx[:, :-1].ravel(), idx[:-1, :].ravel()])
    b = np.concatenate([idx[:, 1:].ravel(), idx[1:, :].ravel()])
    return a, b
