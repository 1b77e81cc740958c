#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Ring and multipolygon geometry.

This module holds the vector side of outline extraction: bounding boxes,
closed rings with area, winding and point containment, multipolygons whose
holes refer to their outer ring by index, and the ring-vs-ring relation
used to attach traced holes to their owners.

Rings are implicitly closed: the last point connects back to the first.
A positive oriented area means counter-clockwise winding.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, NamedTuple

from raster_outline.core.exceptions import CoincidentSegmentsError, DegenerateInputError
from raster_outline.core.logging_config import get_module_logger

# Initialize logger
logger = get_module_logger(__name__)


class RingRelation(Enum):
    """Result of :func:`ring_ring_relation`, read as "r1 <relation> r2"."""
    CONTAINS = "contains"
    CONTAINED_BY = "contained_by"
    CROSSES = "crosses"
    DISJOINT = "disjoint"


class Vertex(NamedTuple):
    x: float
    y: float


@dataclass
class Bbox:
    min_x: float = 0.0
    max_x: float = 0.0
    min_y: float = 0.0
    max_y: float = 0.0
    empty: bool = True

    def expand(self, v: Vertex) -> None:
        if self.empty:
            self.empty = False
            self.min_x = self.max_x = v.x
            self.min_y = self.max_y = v.y
        else:
            self.min_x = min(self.min_x, v.x)
            self.min_y = min(self.min_y, v.y)
            self.max_x = max(self.max_x, v.x)
            self.max_y = max(self.max_y, v.y)

    def expand_bbox(self, other: "Bbox") -> None:
        if other.empty:
            return
        self.expand(Vertex(other.min_x, other.min_y))
        self.expand(Vertex(other.max_x, other.max_y))


def box_union(bb1: Bbox, bb2: Bbox) -> Bbox:
    out = Bbox()
    out.expand_bbox(bb1)
    out.expand_bbox(bb2)
    return out


def is_disjoint(bb1: Bbox, bb2: Bbox) -> bool:
    """True if either box is empty or they do not overlap. Touching boxes overlap."""
    return (
        bb1.empty or bb2.empty or
        bb1.min_x > bb2.max_x or
        bb1.min_y > bb2.max_y or
        bb2.min_x > bb1.max_x or
        bb2.min_y > bb1.max_y
    )


@dataclass
class Ring:
    """
    Closed polygon boundary.

    ``parent_id`` is the index, within the owning Mpoly, of the outer ring
    this ring is a hole of. It is only meaningful when ``is_hole`` is set.
    """
    pts: List[Vertex] = field(default_factory=list)
    is_hole: bool = False
    parent_id: int = -1

    def __post_init__(self):
        self.pts = [p if isinstance(p, Vertex) else Vertex(float(p[0]), float(p[1])) for p in self.pts]

    def __len__(self) -> int:
        return len(self.pts)

    def get_bbox(self) -> Bbox:
        bbox = Bbox()
        for v in self.pts:
            bbox.expand(v)
        return bbox

    def oriented_area(self) -> float:
        """
        Signed shoelace area, positive for counter-clockwise rings.

        Raises
        ------
        DegenerateInputError
            If the ring has fewer than three points.
        """
        n = len(self.pts)
        if n < 3:
            raise DegenerateInputError(f"area of a ring with {n} points is undefined")
        accum = 0.0
        for i in range(n):
            p1 = self.pts[i]
            p2 = self.pts[(i + 1) % n]
            accum += p1.x * p2.y - p2.x * p1.y
        return accum / 2.0

    def area(self) -> float:
        return abs(self.oriented_area())

    def is_ccw(self) -> bool:
        return self.oriented_area() > 0

    def reverse(self) -> None:
        self.pts.reverse()

    def contains(self, p: Vertex) -> bool:
        """
        Crossing-number point-in-ring test.

        Each edge is half-open in y, so a ray through a vertex is counted
        once. Points exactly on the boundary may land on either side.
        """
        inside = False
        n = len(self.pts)
        for i in range(n):
            v1 = self.pts[i]
            v2 = self.pts[(i + 1) % n]
            if (v1.y > p.y) != (v2.y > p.y):
                cross_x = v1.x + (p.y - v1.y) * (v2.x - v1.x) / (v2.y - v1.y)
                if cross_x > p.x:
                    inside = not inside
        return inside

    def copy_metadata(self) -> "Ring":
        """New empty ring with the same hole flag and parent."""
        return Ring(is_hole=self.is_hole, parent_id=self.parent_id)


@dataclass
class Mpoly:
    rings: List[Ring] = field(default_factory=list)

    def get_bbox(self) -> Bbox:
        bbox = Bbox()
        for ring in self.rings:
            bbox.expand_bbox(ring.get_bbox())
        return bbox

    def get_ring_bboxes(self) -> List[Bbox]:
        return [ring.get_bbox() for ring in self.rings]

    def contains(self, p: Vertex) -> bool:
        return any(
            self.component_contains(p, idx)
            for idx, ring in enumerate(self.rings)
            if not ring.is_hole
        )

    def component_contains(self, p: Vertex, outer_ring_id: int) -> bool:
        """
        True if ``p`` is inside the given outer ring and outside all of
        that ring's holes.
        """
        if not self.rings[outer_ring_id].contains(p):
            return False
        for ring in self.rings:
            if ring.is_hole and ring.parent_id == outer_ring_id and ring.contains(p):
                return False
        return True

    def delete_ring(self, idx: int) -> None:
        """
        Remove ring ``idx`` and renumber hole parents.

        Holes of the removed ring are removed with it. Every remaining
        hole's ``parent_id`` is rewritten through the old-to-new index map,
        so a hole keeps pointing at the same outer ring.

        Raises ``IndexError`` for a bad ``idx`` and ``ValueError`` when a
        hole does not point at an outer ring.
        """
        if idx < 0 or idx >= len(self.rings):
            raise IndexError(f"ring index {idx} out of range")
        self.validate()

        doomed = {idx}
        if not self.rings[idx].is_hole:
            doomed.update(
                i for i, ring in enumerate(self.rings)
                if ring.is_hole and ring.parent_id == idx
            )
        if len(doomed) > 1:
            logger.debug(f"Deleting ring {idx} along with {len(doomed) - 1} orphaned holes")

        new_index = {}
        kept = []
        for old, ring in enumerate(self.rings):
            if old not in doomed:
                new_index[old] = len(kept)
                kept.append(ring)

        for ring in kept:
            if ring.is_hole:
                ring.parent_id = new_index[ring.parent_id]
        self.rings = kept

    def validate(self) -> None:
        """Raise ValueError if any hole does not point at an outer ring."""
        for i, ring in enumerate(self.rings):
            if not ring.is_hole:
                continue
            pid = ring.parent_id
            if pid < 0 or pid >= len(self.rings) or self.rings[pid].is_hole:
                raise ValueError(f"hole {i} has invalid parent_id {pid}")


def split_mpoly_to_polys(mpoly: Mpoly) -> List[Mpoly]:
    """One Mpoly per outer ring, holding that ring followed by its holes."""
    polys = []
    for outer_id, outer in enumerate(mpoly.rings):
        if outer.is_hole:
            continue
        poly = Mpoly([Ring(list(outer.pts))])
        for ring in mpoly.rings:
            if ring.is_hole and ring.parent_id == outer_id:
                poly.rings.append(Ring(list(ring.pts), is_hole=True, parent_id=0))
        polys.append(poly)
    return polys


def _segment_params(p1: Vertex, p2: Vertex, p3: Vertex, p4: Vertex):
    # (ua, ub, numer_a, numer_b, denom): the intersection lies at
    # p1 + ua * (p2 - p1) == p3 + ub * (p4 - p3); ua/ub are None when parallel
    denom = (p4.y - p3.y) * (p2.x - p1.x) - (p4.x - p3.x) * (p2.y - p1.y)
    numer_a = (p4.x - p3.x) * (p1.y - p3.y) - (p4.y - p3.y) * (p1.x - p3.x)
    numer_b = (p2.x - p1.x) * (p1.y - p3.y) - (p2.y - p1.y) * (p1.x - p3.x)
    if denom == 0:
        return None, None, numer_a, numer_b, denom
    return numer_a / denom, numer_b / denom, numer_a, numer_b, denom


def line_intersects_line(
    p1: Vertex, p2: Vertex,
    p3: Vertex, p4: Vertex,
    fail_on_coincident: bool
) -> bool:
    """
    Test whether closed segments ``p1-p2`` and ``p3-p4`` intersect.

    Parameters
    ----------
    p1, p2 : Vertex
        First segment.
    p3, p4 : Vertex
        Second segment.
    fail_on_coincident : bool
        If set, collinear segments that overlap raise
        CoincidentSegmentsError; otherwise they are reported as not
        intersecting.

    Returns
    -------
    bool
        True if the segments share a point (endpoints included), excluding
        collinear overlaps.
    """
    ua, ub, numer_a, numer_b, _ = _segment_params(p1, p2, p3, p4)

    if ua is None:
        # parallel; only collinear segments can still share points
        if numer_a == 0 and numer_b == 0 and _collinear_overlap(p1, p2, p3, p4):
            if fail_on_coincident:
                raise CoincidentSegmentsError(f"segments {p1}-{p2} and {p3}-{p4} coincide")
        return False

    return 0.0 <= ua <= 1.0 and 0.0 <= ub <= 1.0


def _collinear_overlap(p1: Vertex, p2: Vertex, p3: Vertex, p4: Vertex) -> bool:
    # projections on the dominant axis of p1-p2 (or p3-p4 if p1 == p2)
    if p1 == p2:
        p1, p2, p3, p4 = p3, p4, p1, p2
    use_x = abs(p2.x - p1.x) >= abs(p2.y - p1.y)
    a = sorted((p1.x, p2.x) if use_x else (p1.y, p2.y))
    b = sorted((p3.x, p4.x) if use_x else (p3.y, p4.y))
    return a[0] <= b[1] and b[0] <= a[1]


def line_line_intersection(p1: Vertex, p2: Vertex, p3: Vertex, p4: Vertex) -> Vertex:
    """
    Intersection point of the infinite lines through ``p1-p2`` and ``p3-p4``.

    Raises
    ------
    DegenerateInputError
        If the lines are parallel.
    """
    ua, _, _, _, _ = _segment_params(p1, p2, p3, p4)
    if ua is None:
        raise DegenerateInputError(f"lines {p1}-{p2} and {p3}-{p4} are parallel")
    return Vertex(p1.x + ua * (p2.x - p1.x), p1.y + ua * (p2.y - p1.y))


def _on_segment(p: Vertex, a: Vertex, b: Vertex) -> bool:
    if (b.x - a.x) * (p.y - a.y) - (b.y - a.y) * (p.x - a.x) != 0:
        return False
    return min(a.x, b.x) <= p.x <= max(a.x, b.x) and min(a.y, b.y) <= p.y <= max(a.y, b.y)


def _on_boundary(p: Vertex, ring: Ring) -> bool:
    n = len(ring.pts)
    return any(_on_segment(p, ring.pts[i], ring.pts[(i + 1) % n]) for i in range(n))


def _rings_cross(r1: Ring, r2: Ring) -> bool:
    # Only proper crossings, interior to both edges, count here.
    n1, n2 = len(r1.pts), len(r2.pts)
    for i in range(n1):
        a1, a2 = r1.pts[i], r1.pts[(i + 1) % n1]
        for j in range(n2):
            b1, b2 = r2.pts[j], r2.pts[(j + 1) % n2]
            ua, ub, _, _, _ = _segment_params(a1, a2, b1, b2)
            if ua is not None and 0.0 < ua < 1.0 and 0.0 < ub < 1.0:
                return True
    return False


def _sample_sides(r: Ring, other: Ring) -> List[bool]:
    """
    Inside/outside flags, relative to ``other``, of the vertices and edge
    midpoints of ``r`` that do not lie on the boundary of ``other``.
    """
    n = len(r.pts)
    samples = []
    for i in range(n):
        a, b = r.pts[i], r.pts[(i + 1) % n]
        samples.append(a)
        samples.append(Vertex((a.x + b.x) / 2.0, (a.y + b.y) / 2.0))
    return [other.contains(p) for p in samples if not _on_boundary(p, other)]


def ring_ring_relation(r1: Ring, r2: Ring) -> RingRelation:
    """
    Classify how ``r1`` relates to ``r2``.

    1. Rings with disjoint bounding boxes are DISJOINT.
    2. If an edge of one ring properly crosses an edge of the other, the
       rings CROSS. Intersections at an edge endpoint, including shared
       vertices and T-junctions, and collinear overlaps are not counted
       here; the sampling below resolves them.
    3. The vertices and edge midpoints of each ring that are off the other
       ring's boundary are tested for containment. Samples of one ring on
       both sides of the other mean CROSSES. Otherwise ``r1`` samples
       inside ``r2`` give CONTAINED_BY, ``r2`` samples inside ``r1`` give
       CONTAINS, and samples outside in both directions give DISJOINT.

    A ring lying entirely on the other's boundary is contained by it.
    Coincident rings, including a ring compared with itself, are CONTAINS.
    Boundaries that touch only at vertices between sample points can
    still be misread as nested or disjoint.
    """
    if is_disjoint(r1.get_bbox(), r2.get_bbox()):
        return RingRelation.DISJOINT

    if _rings_cross(r1, r2):
        return RingRelation.CROSSES

    s1 = _sample_sides(r1, r2)
    s2 = _sample_sides(r2, r1)
    if not s1 and not s2:
        return RingRelation.CONTAINS
    if (any(s1) and not all(s1)) or (any(s2) and not all(s2)):
        return RingRelation.CROSSES
    if not s1 or all(s1):
        return RingRelation.CONTAINED_BY
    if not s2 or all(s2):
        return RingRelation.CONTAINS
    return RingRelation.DISJOINT
