"""SuperpixelImage, the region graph over one labeled raster.

Owns every Superpixel of a tag raster plus the 4-connected adjacency relation
between tags. Built in one pass by ``SuperpixelImage.parse``; afterwards it is
mutated only by merges, which fold a donor region into a survivor and rewrite
the donor's edges onto the survivor.

Invariants held after parse and after every merge:
- the tag set of ``superpixels`` equals the key set of the adjacency map
  (an isolated region keys an empty neighbor set);
- adjacency is symmetric and never contains a self-edge;
- every raster pixel belongs to exactly one live superpixel.
"""

from __future__ import annotations

import logging

import numpy as np
from numpy.typing import NDArray

from clusterseg.engine.errors import ParseError
from clusterseg.engine.superpixel import Superpixel
from clusterseg.utils.tags import pack_rgb

logger = logging.getLogger(__name__)

_INT32_MIN = np.iinfo(np.int32).min
_INT32_MAX = np.iinfo(np.int32).max


class SuperpixelImage:
    """Region graph: tag → Superpixel mapping plus adjacency between tags."""

    def __init__(self, shape: tuple[int, int] = (0, 0)) -> None:
        # (height, width) of the raster this graph was parsed from
        self.shape = shape
        self.superpixels: dict[int, Superpixel] = {}
        self._adjacency: dict[int, set[int]] = {}

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def parse(cls, tags: NDArray) -> SuperpixelImage:
        """Build a region graph from a 2-D integer tag raster.

        Raises ParseError for an empty or malformed raster. A new graph is
        returned, so a failed parse never leaves a half-built graph behind.
        """
        tags = np.asarray(tags)
        if tags.ndim != 2:
            raise ParseError(f"label raster must be 2-D, got shape {tags.shape}")
        height, width = tags.shape
        if height == 0 or width == 0:
            raise ParseError(f"label raster has zero dimension {width}x{height}")
        if not np.issubdtype(tags.dtype, np.integer):
            raise ParseError(f"label raster must hold integer tags, got {tags.dtype}")
        if int(tags.min()) < _INT32_MIN or int(tags.max()) > _INT32_MAX:
            raise ParseError("label raster holds tags outside the signed 32-bit range")

        flat = tags.ravel()
        uniq, first_seen, counts = np.unique(flat, return_index=True, return_counts=True)
        # Stable sort groups pixels by tag while keeping scan order inside each group
        by_tag = np.argsort(flat, kind="stable")
        groups = np.split(by_tag, np.cumsum(counts)[:-1])

        graph = cls((height, width))
        for i in np.argsort(first_seen, kind="stable"):
            tag = int(uniq[i])
            idx = groups[i]
            graph.superpixels[tag] = Superpixel(tag, xs=idx % width, ys=idx // width)
            graph._adjacency[tag] = set()

        for a, b in _raster_edges(tags):
            graph._adjacency[a].add(b)
            graph._adjacency[b].add(a)

        logger.debug(
            "Parsed %dx%d raster: %d superpixels, %d edges",
            width, height, len(graph.superpixels), graph.edge_count,
        )
        return graph

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self.superpixels)

    def __contains__(self, tag: object) -> bool:
        return tag in self.superpixels

    def tags(self) -> list[int]:
        return list(self.superpixels)

    def get(self, tag: int) -> Superpixel | None:
        return self.superpixels.get(tag)

    def neighbors(self, tag: int) -> frozenset[int]:
        return frozenset(self._adjacency[tag])

    def edges(self) -> list[tuple[int, int]]:
        """Every adjacency pair once, as (smaller tag, larger tag), sorted."""
        return sorted(
            (a, b) for a, nbrs in self._adjacency.items() for b in nbrs if a < b
        )

    @property
    def edge_count(self) -> int:
        return sum(len(nbrs) for nbrs in self._adjacency.values()) // 2

    def total_size(self) -> int:
        return sum(sp.size for sp in self.superpixels.values())

    def sort_superpixels_by_size(self) -> list[int]:
        """Tags ordered largest first; equal sizes by ascending tag."""
        return sorted(self.superpixels, key=lambda t: (-self.superpixels[t].size, t))

    def scan_largest_superpixels(
        self, tags: list[int] | None = None, min_size: int = 0,
    ) -> list[int]:
        """Tags whose size stands out: larger than mean + one standard deviation.

        Only candidates of at least ``min_size`` pixels are considered. Returns
        the outliers largest first, or an empty list when nothing stands out.
        """
        pool = self.tags() if tags is None else [t for t in tags if t in self.superpixels]
        candidates = [t for t in pool if self.superpixels[t].size >= min_size]
        if not candidates:
            return []

        sizes = np.array([self.superpixels[t].size for t in candidates], dtype=np.float64)
        cutoff = float(sizes.mean() + sizes.std())
        large = [t for t, s in zip(candidates, sizes) if s > cutoff]
        return sorted(large, key=lambda t: (-self.superpixels[t].size, t))

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def fill_raster_with_tags(self, raster: NDArray) -> NDArray:
        """Write each superpixel's tag into every coordinate it owns."""
        if raster.shape[:2] != self.shape:
            raise ValueError(f"raster shape {raster.shape[:2]} != graph shape {self.shape}")
        for sp in self.superpixels.values():
            raster[sp.ys, sp.xs] = sp.tag
        return raster

    def to_tag_raster(self) -> NDArray[np.int32]:
        return self.fill_raster_with_tags(np.zeros(self.shape, dtype=np.int32))

    def render_with_palette(self, palette: dict[int, tuple[int, int, int]]) -> NDArray[np.uint8]:
        """Visualization only: paint each superpixel with its palette color."""
        out = np.zeros(self.shape + (3,), dtype=np.uint8)
        for tag, sp in self.superpixels.items():
            out[sp.ys, sp.xs] = palette.get(tag, (0, 0, 0))
        return out

    # ------------------------------------------------------------------
    # Merging
    # ------------------------------------------------------------------

    def merge_superpixels(self, tag_a: int, tag_b: int) -> int:
        """Fold one region into the other and return the survivor's tag.

        The smaller region is the donor; on equal size the higher tag donates.
        Donor edges are rewritten onto the survivor without creating a
        self-edge.
        """
        if tag_a == tag_b:
            raise ValueError(f"cannot merge superpixel {tag_a} with itself")
        survivor, donor = _survivor_and_donor(self.superpixels[tag_a], self.superpixels[tag_b])

        survivor.absorb(donor)
        del self.superpixels[donor.tag]

        survivor_nbrs = self._adjacency[survivor.tag]
        for n in self._adjacency.pop(donor.tag):
            nbrs = self._adjacency[n]
            nbrs.discard(donor.tag)
            if n != survivor.tag:
                nbrs.add(survivor.tag)
                survivor_nbrs.add(n)

        return survivor.tag

    def merge_identical_superpixels(self, source_image: NDArray, uniform_only: bool = False) -> int:
        """Merge adjacent regions whose representative colors are bit-identical.

        A region's representative color is the source pixel at its first
        coordinate. Scans every edge, merging as it goes, and repeats until a
        full scan merges nothing. With ``uniform_only`` a region takes part
        only if all of its source pixels equal that color. Returns the number
        of merges performed.
        """
        src = np.asarray(source_image)
        if src.shape[:2] != self.shape:
            raise ValueError(f"source image shape {src.shape[:2]} != graph shape {self.shape}")
        packed = pack_rgb(src) if src.ndim == 3 else src

        colors: dict[int, int] = {}
        eligible: set[int] = set()
        for tag, sp in self.superpixels.items():
            rep = packed[sp.ys[0], sp.xs[0]]
            colors[tag] = int(rep)
            if not uniform_only or bool(np.all(packed[sp.ys, sp.xs] == rep)):
                eligible.add(tag)

        n_before = len(self.superpixels)
        merges = 0
        while True:
            merged_this_pass = 0
            for a, b in self.edges():
                # Edges from the snapshot may name a tag merged away earlier in this pass
                if a not in eligible or b not in eligible:
                    continue
                if colors[a] != colors[b]:
                    continue
                survivor = self.merge_superpixels(a, b)
                donor = b if survivor == a else a
                eligible.discard(donor)
                del colors[donor]
                merged_this_pass += 1
            merges += merged_this_pass
            if merged_this_pass == 0:
                break

        logger.info(
            "Identical merge: %d -> %d superpixels (%d merges)",
            n_before, len(self.superpixels), merges,
        )
        return merges


def _survivor_and_donor(a: Superpixel, b: Superpixel) -> tuple[Superpixel, Superpixel]:
    if a.size != b.size:
        return (a, b) if a.size > b.size else (b, a)
    return (a, b) if a.tag < b.tag else (b, a)


def _raster_edges(tags: NDArray) -> list[tuple[int, int]]:
    """Distinct (low, high) tag pairs of 4-connected neighbors with different tags.

    Each pixel is compared with its right and lower neighbor only.
    """
    a = np.concatenate([tags[:, :-1].ravel(), tags[:-1, :].ravel()])
    b = np.concatenate([tags[:, 1:].ravel(), tags[1:, :].ravel()])
    differ = a != b
    a, b = a[differ], b[differ]
    if a.size == 0:
        return []
    pairs = np.unique(np.stack([np.minimum(a, b), np.maximum(a, b)], axis=1), axis=0)
    return [(int(lo), int(hi)) for lo, hi in pairs]
