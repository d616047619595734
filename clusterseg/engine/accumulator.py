"""Merge accumulator that commits fine regions into one composite tag raster.

Tags are visited in inside-out order. A coarse tag captures the fine regions
it lists that are not processed yet, restricted to composite pixels that are
still unset, and writes its own tag over them. Every fine tag is committed at
most once; a composite pixel is written at most once. A second claim on a
pixel by a different tag is an OverlapViolation and aborts the walk.

Pixels no coarse tag captured are backfilled from the fine raster. An Adler-32
checksum of the fine raster (before) and of the composite (after) decides
whether the composite must be parsed into a new region graph.
"""

from __future__ import annotations

import logging
import zlib
from collections.abc import Callable
from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray

from clusterseg.engine.containment import ContainmentTree
from clusterseg.engine.errors import OverlapViolation
from clusterseg.engine.region_graph import SuperpixelImage

logger = logging.getLogger(__name__)

# Composite value of a pixel no region has claimed yet
UNSET = 0


@dataclass
class CaptureResult:
    """Answer of a capture test: whether to commit, which pixels, which fine tags."""

    captured: bool
    mask: NDArray[np.bool_]
    tags: list[int] = field(default_factory=list)


CaptureFn = Callable[[int, list[int], NDArray[np.bool_]], CaptureResult]


def capture_all(tag: int, candidates: list[int], mask: NDArray[np.bool_]) -> CaptureResult:
    """Capture test that accepts every candidate."""
    return CaptureResult(True, mask, list(candidates))


def tags_checksum(tags: NDArray) -> int:
    """Adler-32 over the little-endian 32-bit tag values in scan order."""
    data = np.ascontiguousarray(tags).astype("<i4", copy=False)
    return zlib.adler32(data.tobytes())


@dataclass
class AccumulationResult:
    composite: NDArray[np.int32]
    graph: SuperpixelImage
    checksum_before: int
    checksum_after: int
    reparsed: bool
    # fine tags in the order they were committed
    processed: list[int] = field(default_factory=list)
    backfilled_pixels: int = 0


class MergeAccumulator:
    """Owns the composite raster and processed set for one accumulation run."""

    def __init__(
        self,
        fine_graph: SuperpixelImage,
        fine_tags: NDArray,
        capture: CaptureFn | None = None,
    ) -> None:
        fine_tags = np.asarray(fine_tags)
        if fine_tags.shape != fine_graph.shape:
            raise ValueError(
                f"fine raster shape {fine_tags.shape} != fine graph shape {fine_graph.shape}"
            )
        if np.any(fine_tags == UNSET):
            raise ValueError(f"fine raster uses reserved tag {UNSET}")

        self.fine_graph = fine_graph
        self.fine_tags = fine_tags
        self.capture = capture or capture_all
        self.composite = np.zeros(fine_tags.shape, dtype=np.int32)
        self.processed: set[int] = set()
        self.commit_order: list[int] = []
        self.checksum_before = tags_checksum(fine_tags)
        self.backfilled_pixels = 0

        # Scratch masks reused by every step, dropped in finalize()
        self._committed: NDArray[np.bool_] | None = np.zeros(fine_tags.shape, dtype=bool)
        self._region: NDArray[np.bool_] | None = np.zeros(fine_tags.shape, dtype=bool)

    def run(self, tree: ContainmentTree) -> AccumulationResult:
        self.walk(tree)
        self.backfill()
        return self.finalize()

    def walk(self, tree: ContainmentTree) -> int:
        """Process every coarse tag of ``tree`` in inside-out order.

        Member-only tags own no step: the coarse tag listing them commits
        them. Returns the number of steps that committed pixels.
        """
        n_committed = 0
        for tag in tree.inside_out:
            members = tree.children.get(tag)
            if members is None:
                continue
            if self.step(tag, members):
                n_committed += 1
        logger.info(
            "Accumulated %d coarse regions, %d fine regions committed",
            n_committed, len(self.commit_order),
        )
        return n_committed

    def step(self, tag: int, members: list[int]) -> bool:
        """Capture and commit the unprocessed fine members of one coarse tag."""
        if self._committed is None or self._region is None:
            raise RuntimeError("accumulator already finalized")

        np.not_equal(self.composite, UNSET, out=self._committed)

        candidates = [m for m in members if m not in self.processed and m in self.fine_graph]
        if not candidates:
            logger.debug("tag %d: no unprocessed fine regions", tag)
            return False

        region = self._region
        region[...] = False
        for m in candidates:
            sp = self.fine_graph.superpixels[m]
            region[sp.ys, sp.xs] = True
        region[self._committed] = False
        if not region.any():
            logger.debug("tag %d: every candidate pixel already committed", tag)
            return False

        result = self.capture(tag, candidates, region)
        if not result.captured:
            logger.debug("tag %d: capture rejected %d candidates", tag, len(candidates))
            return False
        stray = set(result.tags) - set(candidates)
        if stray:
            raise ValueError(f"capture for tag {tag} returned non-candidate tags {sorted(stray)}")

        self.commit(tag, result.mask)
        for m in result.tags:
            self.processed.add(m)
            self.commit_order.append(m)
        logger.debug("tag %d: committed %d fine regions", tag, len(result.tags))
        return True

    def commit(self, tag: int, mask: NDArray[np.bool_]) -> int:
        """Write ``tag`` at every mask pixel; returns the number of pixels written.

        Raises OverlapViolation, before writing anything, if a pixel already
        holds a different tag.
        """
        if tag == UNSET:
            raise ValueError(f"tag {UNSET} is reserved for unset composite pixels")
        ys, xs = np.nonzero(mask)
        current = self.composite[ys, xs]
        clash = (current != UNSET) & (current != tag)
        if clash.any():
            i = int(np.argmax(clash))
            raise OverlapViolation(int(xs[i]), int(ys[i]), int(current[i]), tag)
        fresh = current == UNSET
        self.composite[ys[fresh], xs[fresh]] = tag
        return int(fresh.sum())

    def backfill(self) -> int:
        """Copy the fine tag into every still-unset pixel."""
        unset = self.composite == UNSET
        self.composite[unset] = self.fine_tags[unset]
        self.backfilled_pixels = int(unset.sum())
        if self.backfilled_pixels:
            logger.debug("Backfilled %d pixels from the fine raster", self.backfilled_pixels)
        return self.backfilled_pixels

    def finalize(self) -> AccumulationResult:
        """Compare checksums and re-parse the composite only if it changed."""
        self._committed = None
        self._region = None

        checksum_after = tags_checksum(self.composite)
        if checksum_after == self.checksum_before:
            logger.info("Merge did not change any tags, skipping re-parse")
            graph = self.fine_graph
            reparsed = False
        else:
            graph = SuperpixelImage.parse(self.composite)
            reparsed = True
            logger.info(
                "Composite changed: re-parsed %d -> %d superpixels",
                len(self.fine_graph), len(graph),
            )

        return AccumulationResult(
            composite=self.composite,
            graph=graph,
            checksum_before=self.checksum_before,
            checksum_after=checksum_after,
            reparsed=reparsed,
            processed=list(self.commit_order),
            backfilled_pixels=self.backfilled_pixels,
        )
