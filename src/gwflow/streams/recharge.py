"""
recharge.py

Stream source/sink terms for mesh cells.

`StreamRecharge` answers two questions against a loaded stream catalog:

- `rate_at(p)`: the stream rate at a single point (first matching segment
  in catalog order, 0.0 when the point is not inside any footprint);
- `recharge_for_cell(cell)`: for the top-face footprint of a mesh cell, one
  `IntersectionResult` per overlapping stream carrying the overlap centroid
  and ``overlap_area * rate``. The caller turns each result into a
  one-point quadrature contribution for its own discretisation.

Nothing here mutates state after construction; polygons built during a
query are locals, so one engine can serve many threads.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from gwflow.streams.catalog import StreamCatalog
from gwflow.streams.config import StreamGeometryConfig
from gwflow.streams.geometry import (
    ClipError, as_points, bbox_of, clip_polygons, order_ring, point_in_convex_ring, polygon_area,
)
from gwflow.streams.index import StreamIndex
from gwflow.streams.utils import safe_log_exception

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IntersectionResult:
    """Overlap of one stream with one cell footprint."""
    stream_id: int
    centroid: Tuple[float, float]
    area: float
    weighted_rate: float


class StreamRecharge:
    """Point and cell queries against an immutable stream catalog.

    Parameters:
    - catalog: `StreamCatalog`
    - index: optional prebuilt `StreamIndex`; built from `catalog` if omitted
    - config: `StreamGeometryConfig` used for the zero-area cutoff; defaults
      to the config the catalog was built with
    """

    def __init__(self, catalog: StreamCatalog, index: Optional[StreamIndex] = None,
                 config: Optional[StreamGeometryConfig] = None):
        self.catalog = catalog
        self.index = index if index is not None else StreamIndex.build(catalog)
        self.config = config or catalog.config

    @classmethod
    def from_file(cls, path, config: Optional[StreamGeometryConfig] = None) -> 'StreamRecharge':
        """Load a stream file and build the engine. Raises `StreamLoadError`."""
        from gwflow.streams.io import read_streams

        catalog = read_streams(path, config=config)
        return cls(catalog, config=config)

    def rate_at(self, p) -> float:
        """Stream rate at point `p` (x, y[, z]); z is ignored.

        Segments are checked in catalog order and the first footprint that
        contains the point wins. Overlapping footprints are not summed.
        Points within the catalog tolerance of a footprint edge count as
        inside.
        """
        x, y = float(p[0]), float(p[1])
        eps = self.catalog.tolerance
        for sid in self.catalog.candidates_at(x, y, pad=eps):
            seg = self.catalog[int(sid)]
            if not seg.is_complete:
                continue
            if point_in_convex_ring((x, y), seg.footprint.ring(), eps=eps):
                return seg.rate
        return 0.0

    def recharge_for_cell(self, cell_footprint) -> Tuple[bool, List[IntersectionResult]]:
        """Stream contributions for one cell top face.

        Parameters:
        - cell_footprint: (k,2) or (k,3) vertices of the face, k >= 3, in any
          vertex order of a convex polygon

        Returns ``(found, results)``. `found` is True when the broad phase
        returned any candidate, even if no candidate overlaps with positive
        area; use ``bool(results)`` to ask whether the cell gets recharge.
        """
        pts = as_points(cell_footprint)
        if pts.shape[0] < 3:
            raise ValueError(f'cell footprint needs at least 3 vertices, got {pts.shape[0]}')
        cell_ring = order_ring(pts)

        entries = self.index.query(cell_ring)
        found = entries.size > 0
        results: List[IntersectionResult] = []
        if not found:
            return False, results

        min_area = self.config.area_epsilon * polygon_area(cell_ring)
        candidates = self.index.stream_ids(entries)
        for sid in candidates:
            seg = self.catalog[int(sid)]
            if not seg.is_complete:
                logger.debug('Skipping degenerate stream %d (%s)', seg.id, seg.footprint.reason)
                continue
            try:
                area, centroid = clip_polygons(cell_ring, seg.footprint.ring())
            except ClipError as e:
                safe_log_exception('Failed to find stream/cell intersection', e,
                                   stream_id=int(seg.id), cell_bbox=bbox_of(cell_ring))
                continue
            if centroid is None or area <= min_area:
                continue
            results.append(IntersectionResult(
                stream_id=int(seg.id),
                centroid=centroid,
                area=area,
                weighted_rate=area * seg.rate,
            ))
        logger.debug('Cell %s: %d candidate streams, %d overlaps',
                     bbox_of(cell_ring), len(candidates), len(results))
        return True, results
