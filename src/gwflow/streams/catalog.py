"""Stream catalog: the read-only list of stream segments and their footprints.

Segments are identified by their load order. Besides the per-segment
records the catalog keeps parallel numpy arrays of bounding boxes and rates
so point queries can reject most segments in one vectorised comparison.
"""
import logging
from dataclasses import dataclass
from typing import Iterator, List, NamedTuple, Optional, Sequence, Tuple

import numpy as np

from gwflow.streams.config import StreamGeometryConfig
from gwflow.streams.footprint import Footprint, build_footprint

logger = logging.getLogger(__name__)


class BBox(NamedTuple):
    xmin: float
    xmax: float
    ymin: float
    ymax: float


@dataclass(frozen=True, eq=False)
class StreamSegment:
    """One stream segment with uniform rate and half-width."""
    id: int
    a: Tuple[float, float]
    b: Tuple[float, float]
    rate: float
    half_width: float
    length: float
    footprint: Footprint
    bbox: BBox

    @property
    def is_complete(self) -> bool:
        return self.footprint.is_complete


class StreamCatalog:
    """Immutable, ordered collection of `StreamSegment`.

    Build it with `from_arrays` (or `gwflow.streams.io.read_streams`); the
    constructor expects already-built segments.
    """

    def __init__(self, segments: Sequence[StreamSegment], tolerance: float,
                 config: Optional[StreamGeometryConfig] = None):
        self._segments: Tuple[StreamSegment, ...] = tuple(segments)
        self.tolerance = float(tolerance)
        self.config = config or StreamGeometryConfig()
        n = len(self._segments)
        self.xmin = np.array([s.bbox.xmin for s in self._segments], dtype=float).reshape(n)
        self.xmax = np.array([s.bbox.xmax for s in self._segments], dtype=float).reshape(n)
        self.ymin = np.array([s.bbox.ymin for s in self._segments], dtype=float).reshape(n)
        self.ymax = np.array([s.bbox.ymax for s in self._segments], dtype=float).reshape(n)
        self.rates = np.array([s.rate for s in self._segments], dtype=float).reshape(n)
        for arr in (self.xmin, self.xmax, self.ymin, self.ymax, self.rates):
            arr.setflags(write=False)

    @classmethod
    def from_arrays(cls, starts, ends, rates, half_widths,
                    config: Optional[StreamGeometryConfig] = None) -> 'StreamCatalog':
        """Build a catalog from endpoint arrays.

        Parameters
        ----------
        starts, ends : (N,2) array-like
            Segment endpoints.
        rates : (N,) array-like
            Recharge (positive) or discharge (negative) rate per unit area.
        half_widths : (N,) array-like
            Half of the stream width; must be positive.
        config : StreamGeometryConfig, optional
            Tolerance settings; defaults to the scale-relative tolerance.
        """
        config = config or StreamGeometryConfig()
        starts = np.asarray(starts, dtype=float).reshape(-1, 2)
        ends = np.asarray(ends, dtype=float).reshape(-1, 2)
        rates = np.asarray(rates, dtype=float).reshape(-1)
        half_widths = np.asarray(half_widths, dtype=float).reshape(-1)
        n = starts.shape[0]
        if not (ends.shape[0] == n and rates.shape[0] == n and half_widths.shape[0] == n):
            raise ValueError('starts, ends, rates and half_widths must have the same length')
        for name, arr in (('starts', starts), ('ends', ends), ('rates', rates), ('half_widths', half_widths)):
            if not np.all(np.isfinite(arr)):
                raise ValueError(f'{name} contains non-finite values')
        if n and not np.all(half_widths > 0.0):
            bad = int(np.flatnonzero(~(half_widths > 0.0))[0])
            raise ValueError(f'segment {bad}: half width must be positive, got {half_widths[bad]!r}')

        tolerance = config.resolve_tolerance(_extent_diagonal(starts, ends))
        segments: List[StreamSegment] = []
        for i in range(n):
            a = (float(starts[i, 0]), float(starts[i, 1]))
            b = (float(ends[i, 0]), float(ends[i, 1]))
            fp = build_footprint(a, b, half_widths[i], tolerance)
            segments.append(StreamSegment(
                id=i,
                a=a,
                b=b,
                rate=float(rates[i]),
                half_width=float(half_widths[i]),
                length=float(np.hypot(b[0] - a[0], b[1] - a[1])),
                footprint=fp,
                bbox=BBox(*fp.bbox()),
            ))
            if not fp.is_complete:
                logger.warning('Stream segment %d is degenerate (%s) and will not contribute', i, fp.reason)

        catalog = cls(segments, tolerance, config)
        logger.info('Stream catalog built: %d segments, %d usable, tolerance %g',
                    n, len(catalog.complete_ids()), tolerance)
        return catalog

    def __len__(self) -> int:
        return len(self._segments)

    def __iter__(self) -> Iterator[StreamSegment]:
        return iter(self._segments)

    def __getitem__(self, stream_id: int) -> StreamSegment:
        return self._segments[stream_id]

    @property
    def segments(self) -> Tuple[StreamSegment, ...]:
        return self._segments

    def complete_ids(self) -> List[int]:
        return [s.id for s in self._segments if s.is_complete]

    def extent(self) -> BBox:
        """Bounding box of every segment endpoint."""
        if not self._segments:
            return BBox(np.inf, -np.inf, np.inf, -np.inf)
        pts = np.array([s.a for s in self._segments] + [s.b for s in self._segments], dtype=float)
        return BBox(float(pts[:, 0].min()), float(pts[:, 0].max()),
                    float(pts[:, 1].min()), float(pts[:, 1].max()))

    def candidates_at(self, x: float, y: float, pad: float = 0.0) -> np.ndarray:
        """Ids, in catalog order, whose bounding box grown by `pad` contains (x, y)."""
        mask = ((x >= self.xmin - pad) & (x <= self.xmax + pad)
                & (y >= self.ymin - pad) & (y <= self.ymax + pad))
        return np.flatnonzero(mask)


def _extent_diagonal(starts: np.ndarray, ends: np.ndarray) -> float:
    if starts.shape[0] == 0:
        return 0.0
    pts = np.vstack([starts, ends])
    span = pts.max(axis=0) - pts.min(axis=0)
    return float(np.hypot(span[0], span[1]))
