"""Broad-phase spatial index over stream footprints.

Each complete footprint is split into two triangles and every triangle is
stored in a shapely `STRtree` (a packed R-tree). A parallel integer array
maps tree entries back to the owning stream id. The tree is built once
and never modified, so concurrent read-only queries are safe.
"""
import logging
from typing import List

import numpy as np
import shapely
from shapely.geometry import Polygon

from gwflow.streams.catalog import StreamCatalog
from gwflow.streams.geometry import as_points, bbox_of

logger = logging.getLogger(__name__)


class StreamIndex:
    """Triangle R-tree over a `StreamCatalog`.

    Attributes:
    - triangles: list of shapely triangles, one per entry
    - owners: (2*n_complete,) int array, stream id of each entry
    """

    def __init__(self, triangles: List[Polygon], owners):
        self.triangles = list(triangles)
        self.owners = np.asarray(owners, dtype=np.int64).reshape(-1)
        self.owners.setflags(write=False)
        if len(self.triangles) != self.owners.shape[0]:
            raise ValueError('triangles and owners must have the same length')
        self._tree = shapely.STRtree(self.triangles) if self.triangles else None

    @classmethod
    def build(cls, catalog: StreamCatalog) -> 'StreamIndex':
        triangles = []
        owners = []
        skipped = 0
        for seg in catalog:
            if not seg.is_complete:
                skipped += 1
                continue
            for tri in seg.footprint.triangles():
                triangles.append(Polygon(tri))
                owners.append(seg.id)
        if skipped:
            logger.warning('Stream index: %d degenerate segment(s) left out of the index', skipped)
        logger.debug('Stream index built with %d triangles', len(triangles))
        return cls(triangles, owners)

    def __len__(self) -> int:
        return len(self.triangles)

    def query(self, points) -> np.ndarray:
        """Entry ids whose bounding boxes intersect the bounding box of `points`.

        This is a bounding-box test only; a returned entry does not
        necessarily overlap the query polygon.
        """
        if self._tree is None:
            return np.zeros(0, dtype=np.int64)
        xmin, xmax, ymin, ymax = bbox_of(as_points(points))
        if not np.all(np.isfinite([xmin, xmax, ymin, ymax])):
            return np.zeros(0, dtype=np.int64)
        hits = self._tree.query(shapely.box(xmin, ymin, xmax, ymax))
        return np.sort(np.asarray(hits, dtype=np.int64))

    def stream_ids(self, entry_ids) -> np.ndarray:
        """Sorted distinct stream ids owning the given entries."""
        entry_ids = np.asarray(entry_ids, dtype=np.int64).reshape(-1)
        if entry_ids.size == 0:
            return np.zeros(0, dtype=np.int64)
        return np.unique(self.owners[entry_ids])
