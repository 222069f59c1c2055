"""
footprint.py

Converts a stream line segment and its half-width into the quadrilateral
strip ("footprint") that the stream occupies on top of the aquifer.

Three construction branches are used, chosen by comparing the raw
coordinate deltas against a tolerance:

- near-vertical segments offset the endpoints along x,
- near-horizontal segments offset the endpoints along y,
- any other slope intersects the two offset lines (parallel to the segment
  at distance `half_width`) with the two perpendiculars through the
  endpoints.

A footprint is either COMPLETE (4 corners, positive area) or DEGENERATE.
Degenerate footprints never take part in point or overlap queries.
"""
import enum
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import numpy as np

from gwflow.streams.geometry import bbox_of, order_ring, polygon_area_centroid

logger = logging.getLogger(__name__)


class FootprintStatus(enum.Enum):
    COMPLETE = 'complete'
    DEGENERATE = 'degenerate'


@dataclass(frozen=True, eq=False)
class Footprint:
    """Corners of a stream strip in construction order plus a status tag.

    `corners` keeps the order they were built in: for axis-aligned segments
    that is (A-, A+, B-, B+), for sloped segments a ring. Use `ring()` for
    anything that needs a proper polygon.
    """
    corners: np.ndarray
    status: FootprintStatus
    reason: str = ''
    _ring: np.ndarray = field(init=False, repr=False)

    def __post_init__(self):
        corners = np.array(self.corners, dtype=float).reshape(-1, 2)
        corners.setflags(write=False)
        ring = order_ring(corners) if corners.shape[0] else corners.copy()
        ring.setflags(write=False)
        object.__setattr__(self, 'corners', corners)
        object.__setattr__(self, '_ring', ring)

    @classmethod
    def degenerate(cls, reason: str, corners: Sequence = ()) -> 'Footprint':
        return cls(np.asarray(corners, dtype=float).reshape(-1, 2), FootprintStatus.DEGENERATE, reason)

    @property
    def is_complete(self) -> bool:
        return self.status is FootprintStatus.COMPLETE

    def ring(self) -> np.ndarray:
        """Corners ordered counter-clockwise."""
        return self._ring

    def area(self) -> float:
        area, _ = polygon_area_centroid(self._ring)
        return abs(area)

    def centroid(self) -> Tuple[float, float]:
        _, c = polygon_area_centroid(self._ring)
        return c

    def bbox(self) -> Tuple[float, float, float, float]:
        return bbox_of(self.corners)

    def triangles(self) -> List[np.ndarray]:
        """Split the strip along one diagonal into two (3,2) triangles."""
        if not self.is_complete:
            raise ValueError(f'cannot triangulate a degenerate footprint ({self.reason})')
        r = self._ring
        return [r[[0, 1, 2]], r[[0, 2, 3]]]


def line_line_intersection(b1: float, m1: float, b2: float, m2: float,
                           eps: float = 1e-12) -> Optional[Tuple[float, float]]:
    """Intersect ``y = m1*x + b1`` with ``y = m2*x + b2``.

    Returns None for (near) parallel lines or a non-finite result.
    """
    denom = m1 - m2
    scale = max(1.0, abs(m1), abs(m2))
    if not np.isfinite(denom) or abs(denom) <= eps * scale:
        return None
    x = (b2 - b1) / denom
    y = m1 * x + b1
    if not (np.isfinite(x) and np.isfinite(y)):
        return None
    return float(x), float(y)


def build_footprint(a, b, half_width: float, tolerance: float) -> Footprint:
    """Build the footprint of segment `a`-`b` with the given half-width.

    Parameters:
    - a, b: segment endpoints, (x, y)
    - half_width: distance from the centre line to each long side
    - tolerance: coordinate delta under which a segment counts as
      vertical, horizontal or zero-length

    Returns: `Footprint`. Never raises for bad geometry; problems are logged
    and reported through `Footprint.status`.
    """
    ax, ay = float(a[0]), float(a[1])
    bx, by = float(b[0]), float(b[1])
    w = float(half_width)
    dx = abs(ax - bx)
    dy = abs(ay - by)

    if dx < tolerance and dy < tolerance:
        logger.warning('Stream segment (%g, %g)-(%g, %g) has almost zero length; it will not contribute',
                       ax, ay, bx, by)
        return Footprint.degenerate('zero-length segment')

    if dx < tolerance:
        corners = [(ax - w, ay), (ax + w, ay), (bx - w, by), (bx + w, by)]
    elif dy < tolerance:
        corners = [(ax, ay - w), (ax, ay + w), (bx, by - w), (bx, by + w)]
    else:
        corners = _sloped_corners(ax, ay, bx, by, w)

    if len(corners) != 4:
        return Footprint.degenerate(f'only {len(corners)} corners could be built', corners)
    fp = Footprint(np.asarray(corners, dtype=float), FootprintStatus.COMPLETE)
    if not fp.area() > 0.0:
        logger.warning('Stream segment (%g, %g)-(%g, %g) produced a zero-area footprint (half width %g)',
                       ax, ay, bx, by, w)
        return Footprint.degenerate('zero-area footprint', corners)
    return fp


def _sloped_corners(ax, ay, bx, by, w) -> List[Tuple[float, float]]:
    m = (by - ay) / (bx - ax)
    b = ay - m * ax
    # intercepts of the two lines parallel to A-B at distance w
    shift = w * np.sqrt(m * m + 1.0)
    b1 = b - shift
    b2 = b + shift
    # perpendiculars through A and B
    m_p = -1.0 / m
    b_a = ay - m_p * ax
    b_b = by - m_p * bx

    corners = []
    for b_perp, b_off in ((b_a, b1), (b_a, b2), (b_b, b2), (b_b, b1)):
        pt = line_line_intersection(b_perp, m_p, b_off, m)
        if pt is None:
            logger.warning('Footprint corner omitted for segment (%g, %g)-(%g, %g): lines do not intersect',
                           ax, ay, bx, by)
            continue
        corners.append(pt)
    return corners
