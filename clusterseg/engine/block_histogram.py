"""Per-block palette histograms and the histogram-based capture test."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from clusterseg.engine.accumulator import CaptureResult
from clusterseg.engine.region_graph import SuperpixelImage
from clusterseg.engine.superpixel import Coord
from clusterseg.utils.geometry import block_grid_size

logger = logging.getLogger(__name__)


@dataclass
class HistogramForBlock:
    block: Coord
    counts: NDArray[np.int64]

    @property
    def total(self) -> int:
        return int(self.counts.sum())


class BlockHistograms:
    """Palette index counts for every block_dim×block_dim block of an image."""

    def __init__(self, counts: NDArray[np.int64], block_dim: int = 4) -> None:
        # (block rows, block cols, palette size)
        self.counts = counts
        self.block_dim = block_dim

    @classmethod
    def from_indices(cls, indices: NDArray, n_colors: int, block_dim: int = 4) -> BlockHistograms:
        indices = np.asarray(indices)
        if indices.ndim != 2:
            raise ValueError(f"expected 2-D palette index raster, got shape {indices.shape}")
        if n_colors < 1:
            raise ValueError(f"n_colors must be >= 1, got {n_colors}")
        height, width = indices.shape
        block_width, block_height = block_grid_size(width, height, block_dim)

        by = np.arange(height) // block_dim
        bx = np.arange(width) // block_dim
        block_id = (by[:, None] * block_width + bx[None, :]).ravel()
        combined = block_id * n_colors + indices.ravel().astype(np.int64)
        counts = np.bincount(combined, minlength=block_width * block_height * n_colors)
        return cls(counts.reshape(block_height, block_width, n_colors), block_dim)

    @property
    def grid_size(self) -> tuple[int, int]:
        """(block cols, block rows)."""
        return self.counts.shape[1], self.counts.shape[0]

    @property
    def n_colors(self) -> int:
        return self.counts.shape[2]

    def histogram_for(self, block: Coord) -> HistogramForBlock:
        cols, rows = self.grid_size
        if not (0 <= block.x < cols and 0 <= block.y < rows):
            raise IndexError(f"block {block} outside {cols}x{rows} grid")
        return HistogramForBlock(block, self.counts[block.y, block.x].copy())

    def _block_ids(self, xs: NDArray, ys: NDArray) -> NDArray[np.intp]:
        cols, _ = self.grid_size
        return np.unique((np.asarray(ys) // self.block_dim) * cols + np.asarray(xs) // self.block_dim)

    def blocks_for(self, xs: NDArray, ys: NDArray) -> list[Coord]:
        """Distinct blocks touched by the given pixels, in scan order."""
        if len(xs) == 0:
            return []
        cols, _ = self.grid_size
        return [Coord(int(i % cols), int(i // cols)) for i in self._block_ids(xs, ys)]

    def region_histogram(self, xs: NDArray, ys: NDArray) -> NDArray[np.int64]:
        """Sum of the histograms of every distinct block the region touches."""
        if len(xs) == 0:
            return np.zeros(self.n_colors, dtype=np.int64)
        cols, _ = self.grid_size
        ids = self._block_ids(xs, ys)
        return self.counts[ids // cols, ids % cols].sum(axis=0)


def histogram_intersection(a: NDArray, b: NDArray) -> float:
    """Overlap of two histograms after normalizing each to sum 1, in [0, 1]."""
    sa, sb = float(a.sum()), float(b.sum())
    if sa == 0 or sb == 0:
        return 0.0
    return float(np.minimum(a / sa, b / sb).sum())


class BlockHistogramCapture:
    """Captures the fine members whose block histogram resembles the coarse region's."""

    def __init__(
        self,
        histograms: BlockHistograms,
        fine_graph: SuperpixelImage,
        coarse_graph: SuperpixelImage,
        threshold: float = 0.5,
    ) -> None:
        self.histograms = histograms
        self.fine_graph = fine_graph
        self.coarse_graph = coarse_graph
        self.threshold = threshold
        self._fine_cache: dict[int, NDArray[np.int64]] = {}

    def _fine_histogram(self, tag: int) -> NDArray[np.int64]:
        hist = self._fine_cache.get(tag)
        if hist is None:
            sp = self.fine_graph.superpixels[tag]
            hist = self.histograms.region_histogram(sp.xs, sp.ys)
            self._fine_cache[tag] = hist
        return hist

    def __call__(self, tag: int, candidates: list[int], mask: NDArray[np.bool_]) -> CaptureResult:
        coarse = self.coarse_graph.get(tag)
        if coarse is None:
            return CaptureResult(False, mask, [])
        reference = self.histograms.region_histogram(coarse.xs, coarse.ys)

        kept = [
            m for m in candidates
            if histogram_intersection(self._fine_histogram(m), reference) >= self.threshold
        ]
        if not kept:
            return CaptureResult(False, mask, [])
        if len(kept) == len(candidates):
            return CaptureResult(True, mask, kept)

        members = np.zeros_like(mask)
        for m in kept:
            sp = self.fine_graph.superpixels[m]
            members[sp.ys, sp.xs] = True
        logger.debug("tag %d: kept %d/%d candidates", tag, len(kept), len(candidates))
        return CaptureResult(True, mask & members, kept)
