"""
geometry.py

Planar polygon helpers used by the stream footprints and the recharge
engine. Area and centroid come from the shoelace formula evaluated on
coordinates shifted to the first vertex, which keeps precision for
projected (large-magnitude) coordinates. Exact overlap clipping is done by
shapely; everything measured on the clip result goes back through the
shoelace helpers so that one set of formulas defines area everywhere.

Public functions:
- `order_ring(points)` -> (k,2) counter-clockwise ring
- `polygon_area_centroid(points)` -> (signed_area, (cx, cy))
- `polygon_area(points)` -> float
- `point_in_convex_ring(point, ring, eps)` -> bool
- `bbox_of(points)` -> (xmin, xmax, ymin, ymax)
- `clip_polygons(subject, clip)` -> (area, centroid or None)

"""
from typing import Optional, Sequence, Tuple

import numpy as np
from shapely.errors import GEOSException
from shapely.geometry import Polygon


class ClipError(RuntimeError):
    """Raised when the exact overlap of two polygons cannot be computed."""


def as_points(points) -> np.ndarray:
    """Coerce `points` to a float (k,2) array, dropping any z column."""
    pts = np.asarray(points, dtype=float)
    if pts.ndim != 2 or pts.shape[1] < 2:
        raise ValueError(f'expected an (k,2) array of points, got shape {pts.shape}')
    return pts[:, :2]


def order_ring(points) -> np.ndarray:
    """Order the vertices of a convex polygon counter-clockwise.

    Mesh faces and stream footprints are both handed over in "corner" order
    (lexicographic for quadrilateral cells), which is not a ring. Sorting by
    angle around the vertex mean gives a ring for any convex polygon.
    """
    pts = as_points(points)
    if pts.shape[0] < 3:
        return pts.copy()
    center = pts.mean(axis=0)
    angles = np.arctan2(pts[:, 1] - center[1], pts[:, 0] - center[0])
    return pts[np.argsort(angles, kind='stable')]


def polygon_area_centroid(points) -> Tuple[float, Tuple[float, float]]:
    """Signed shoelace area and area-weighted centroid of a ring.

    Positive area means counter-clockwise. A ring with zero area returns the
    vertex mean as its centroid.
    """
    pts = as_points(points)
    if pts.shape[0] == 0:
        return 0.0, (float('nan'), float('nan'))
    origin = pts[0]
    x = pts[:, 0] - origin[0]
    y = pts[:, 1] - origin[1]
    x1 = np.roll(x, -1)
    y1 = np.roll(y, -1)
    cross = x * y1 - x1 * y
    area = 0.5 * float(np.sum(cross))
    if pts.shape[0] < 3 or abs(area) <= np.finfo(float).tiny:
        mean = pts.mean(axis=0)
        return 0.0, (float(mean[0]), float(mean[1]))
    cx = float(np.sum((x + x1) * cross)) / (6.0 * area)
    cy = float(np.sum((y + y1) * cross)) / (6.0 * area)
    return area, (cx + float(origin[0]), cy + float(origin[1]))


def polygon_area(points) -> float:
    """Absolute shoelace area of a ring."""
    area, _ = polygon_area_centroid(points)
    return abs(area)


def point_in_convex_ring(point, ring, eps: float = 0.0) -> bool:
    """Boundary-inclusive point test against a counter-clockwise convex ring.

    `eps` is a distance: points up to `eps` outside an edge still count.
    """
    pts = as_points(ring)
    if pts.shape[0] < 3:
        return False
    px, py = float(point[0]), float(point[1])
    x0 = pts[:, 0]
    y0 = pts[:, 1]
    ex = np.roll(x0, -1) - x0
    ey = np.roll(y0, -1) - y0
    lengths = np.hypot(ex, ey)
    keep = lengths > 0.0
    if not np.any(keep):
        return False
    # signed distance of the point to the left of each edge
    dist = (ex[keep] * (py - y0[keep]) - ey[keep] * (px - x0[keep])) / lengths[keep]
    return bool(np.all(dist >= -eps))


def bbox_of(points) -> Tuple[float, float, float, float]:
    """Return (xmin, xmax, ymin, ymax) of a point list."""
    pts = as_points(points)
    if pts.shape[0] == 0:
        return (np.inf, -np.inf, np.inf, -np.inf)
    return (float(pts[:, 0].min()), float(pts[:, 0].max()),
            float(pts[:, 1].min()), float(pts[:, 1].max()))


def _polygonal_parts(geom) -> Sequence[Polygon]:
    if geom.is_empty:
        return []
    if geom.geom_type == 'Polygon':
        return [geom]
    parts = []
    for g in getattr(geom, 'geoms', []):
        parts.extend(_polygonal_parts(g))
    return parts


def clip_polygons(subject, clip) -> Tuple[float, Optional[Tuple[float, float]]]:
    """Exact overlap area and centroid of two polygons.

    Both inputs are rings (k,2). Returns ``(0.0, None)`` when the overlap has
    no area (disjoint or touching along an edge or vertex).

    Raises `ClipError` if shapely cannot compute the intersection, e.g. for a
    self-intersecting ring.
    """
    a = as_points(subject)
    b = as_points(clip)
    if a.shape[0] < 3 or b.shape[0] < 3:
        raise ClipError('clipping needs two polygons with at least 3 vertices')
    try:
        overlap = Polygon(a).intersection(Polygon(b))
    except (GEOSException, ValueError) as e:
        raise ClipError(f'polygon intersection failed: {e}') from e

    total = 0.0
    mx = 0.0
    my = 0.0
    for part in _polygonal_parts(overlap):
        rings = [(np.asarray(part.exterior.coords)[:-1], 1.0)]
        rings += [(np.asarray(r.coords)[:-1], -1.0) for r in part.interiors]
        for coords, sign in rings:
            area, (cx, cy) = polygon_area_centroid(coords)
            area = sign * abs(area)
            total += area
            mx += area * cx
            my += area * cy
    if total <= 0.0:
        return 0.0, None
    return total, (mx / total, my / total)
