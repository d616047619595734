"""Containment resolver: nests fine regions inside coarse regions.

Given the coarse region graph and the fine tag raster of the same image, every
coarse region lists the fine tags its pixels touch (first-touch, first-seen
order). The resulting tree is walked depth-first from its roots; reversing the
pre-order visit sequence gives the inside-out order, where each tag comes
before the node that discovered it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray

from clusterseg.engine.region_graph import SuperpixelImage
from clusterseg.utils.geometry import unique_in_order

logger = logging.getLogger(__name__)

Visitor = Callable[[int, list[int]], None]


@dataclass
class ContainmentTree:
    """Coarse tag → fine tags it touches, plus the derived traversal."""

    children: dict[int, list[int]] = field(default_factory=dict)
    roots: list[int] = field(default_factory=list)
    # tag → node it was discovered from during the depth-first walk
    parents: dict[int, int] = field(default_factory=dict)
    inside_out: list[int] = field(default_factory=list)

    def __contains__(self, tag: object) -> bool:
        return tag in self.children or tag in self.parents or tag in self.roots

    @property
    def all_tags(self) -> set[int]:
        tags = set(self.children)
        for members in self.children.values():
            tags.update(members)
        return tags


def build_containment_map(coarse: SuperpixelImage, fine_tags: NDArray) -> dict[int, list[int]]:
    """First-touch overlap test of every coarse region against the fine raster.

    Coarse regions are visited largest first. A fine tag is listed the first
    time any coordinate of the coarse region lands on it.
    """
    fine_tags = np.asarray(fine_tags)
    if fine_tags.shape != coarse.shape:
        raise ValueError(
            f"fine raster shape {fine_tags.shape} != coarse graph shape {coarse.shape}"
        )

    contains: dict[int, list[int]] = {}
    for tag in coarse.sort_superpixels_by_size():
        sp = coarse.superpixels[tag]
        contains[tag] = unique_in_order(fine_tags[sp.ys, sp.xs])
    return contains


def find_roots(contains: dict[int, list[int]]) -> list[int]:
    """Keys that no other key lists as a member, in key order."""
    listed: set[int] = set()
    for tag, members in contains.items():
        listed.update(m for m in members if m != tag)
    return [tag for tag in contains if tag not in listed]


def walk_containment(
    roots: Iterable[int],
    contains: dict[int, list[int]],
    visitor: Visitor,
    visited: set[int] | None = None,
    parents: dict[int, int] | None = None,
) -> None:
    """Depth-first pre-order walk calling ``visitor(tag, children)`` on entry.

    Iterative so deep nesting cannot hit the recursion limit. Each tag is
    entered once; ``visited`` and ``parents`` are filled in when given.
    """
    if visited is None:
        visited = set()
    for root in roots:
        stack: list[tuple[int, int | None]] = [(root, None)]
        while stack:
            tag, parent = stack.pop()
            if tag in visited:
                continue
            visited.add(tag)
            if parent is not None and parents is not None:
                parents[tag] = parent
            members = contains.get(tag, [])
            visitor(tag, members)
            for child in reversed(members):
                if child not in visited:
                    stack.append((child, tag))


def resolve_containment(coarse: SuperpixelImage, fine_tags: NDArray) -> ContainmentTree:
    """Build the containment tree and its inside-out processing order."""
    contains = build_containment_map(coarse, fine_tags)
    tree = ContainmentTree(children=contains, roots=find_roots(contains))
    if not contains:
        return tree

    insideout_stack: list[int] = []
    visited: set[int] = set()

    def _push(tag: int, members: list[int]) -> None:
        logger.debug("tag %9d has %5d children", tag, len(members))
        insideout_stack.append(tag)

    walk_containment(tree.roots, contains, _push, visited, tree.parents)

    # Keys that only sit on a cycle are never reached from a root
    stranded = [tag for tag in contains if tag not in visited]
    if stranded:
        logger.warning("Containment cycle: walking %d stranded tags as roots", len(stranded))
        walk_containment(stranded, contains, _push, visited, tree.parents)
        tree.roots.extend(t for t in stranded if t not in tree.parents)

    while insideout_stack:
        tree.inside_out.append(insideout_stack.pop())

    logger.info(
        "Containment: %d coarse regions, %d roots, %d tags in inside-out order",
        len(contains), len(tree.roots), len(tree.inside_out),
    )
    return tree
