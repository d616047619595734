"""Color quantization to a small palette (k-means over the distinct colors)."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray
from scipy.spatial import KDTree
from scipy.spatial.distance import cdist
from sklearn.cluster import KMeans

logger = logging.getLogger(__name__)


@dataclass
class QuantizeResult:
    # Nx3 pixels replaced by their palette color
    pixels: NDArray[np.uint8]
    # Palette size actually produced, <= requested
    n_clusters: int
    # Kx3 palette
    colortable: NDArray[np.uint8]
    # Palette index per pixel
    indices: NDArray[np.intp]

    def index_raster(self, shape: tuple[int, int]) -> NDArray[np.intp]:
        return self.indices.reshape(shape)

    @property
    def cluster_counts(self) -> NDArray[np.int64]:
        """Number of pixels mapped to each palette entry."""
        return np.bincount(self.indices, minlength=self.n_clusters)

    def center_walk(self) -> list[int]:
        """Palette offsets ordered by a nearest-neighbor walk through RGB space.

        Starts at the entry closest to black, then repeatedly steps to the
        closest unvisited entry. Ties go to the lower offset.
        """
        table = self.colortable.astype(np.float64)
        dist = cdist(table, table)
        current = int(np.argmin(np.linalg.norm(table, axis=1)))
        visited = np.zeros(len(table), dtype=bool)
        visited[current] = True
        walk = [current]
        while len(walk) < len(table):
            current = int(np.argmin(np.where(visited, np.inf, dist[current])))
            visited[current] = True
            walk.append(current)
        return walk


def quantize(pixels: NDArray[np.uint8], target_clusters: int, random_state: int = 0) -> QuantizeResult:
    """Reduce ``pixels`` (any shape ending in 3) to at most ``target_clusters`` colors.

    K-means runs on the distinct colors weighted by their pixel counts. Centers
    that round to the same 8-bit color are collapsed, so fewer clusters than
    requested can come back.
    """
    if target_clusters < 1:
        raise ValueError(f"target_clusters must be >= 1, got {target_clusters}")
    px = np.asarray(pixels).reshape(-1, 3).astype(np.uint8)
    if px.shape[0] == 0:
        raise ValueError("no pixels to quantize")

    uniq, inverse, counts = np.unique(px, axis=0, return_inverse=True, return_counts=True)
    inverse = inverse.ravel()

    if len(uniq) <= target_clusters:
        table = uniq
        indices = inverse.astype(np.intp)
    else:
        km = KMeans(n_clusters=target_clusters, n_init=1, random_state=random_state)
        km.fit(uniq.astype(np.float64), sample_weight=counts)
        centers = np.clip(np.rint(km.cluster_centers_), 0, 255).astype(np.uint8)
        table = np.unique(centers, axis=0)
        if len(table) < target_clusters:
            logger.debug(
                "Quantize: %d duplicate centers collapsed", target_clusters - len(table),
            )
        _, nearest = KDTree(table.astype(np.float64)).query(uniq.astype(np.float64))
        indices = np.asarray(nearest, dtype=np.intp)[inverse]

    logger.debug("Quantize: %d colors -> %d clusters", len(uniq), len(table))
    return QuantizeResult(
        pixels=table[indices],
        n_clusters=len(table),
        colortable=table,
        indices=indices,
    )
