"""
streams/config.py

Central place for the tolerances used by the stream coupling code. Keeping
them here means the footprint builder, the catalog and the recharge engine
all classify geometry the same way.

Contents:
---------
1. STREAM_GEOMETRY:
   - `degenerate_tolerance`: absolute tolerance (model units) below which a
     coordinate delta counts as zero. `None` means "derive it from the data".
   - `relative_tolerance`: fraction of the diagonal of the bounding box of all
     stream endpoints. Used when `degenerate_tolerance` is None.
   - `min_tolerance`: floor applied to the derived tolerance so a catalog of
     coincident points still gets a usable value.
   - `area_epsilon`: overlaps smaller than this fraction of the cell area are
     treated as touching edges and dropped.
   - `legacy_tolerance`: the absolute 0.1 used by older solver builds. Only
     meaningful for coordinates in metres or feet.

Usage:
------
    from gwflow.streams.config import StreamGeometryConfig

    cfg = StreamGeometryConfig()                   # scale-relative
    cfg = StreamGeometryConfig(degenerate_tolerance=0.01)
    cfg = StreamGeometryConfig.legacy()            # absolute 0.1
"""
from dataclasses import dataclass
from typing import Optional

import numpy as np

# ───────────────────────────────────────────────────────────────────────────────
# 1) GEOMETRIC TOLERANCES
# ───────────────────────────────────────────────────────────────────────────────
STREAM_GEOMETRY = {
    'degenerate_tolerance': None,   # absolute override (model units)
    'relative_tolerance': 1.0e-6,   # fraction of endpoint-extent diagonal
    'min_tolerance': 1.0e-12,       # floor for the derived tolerance
    'area_epsilon': 1.0e-12,        # fraction of cell area counted as zero overlap
    'legacy_tolerance': 0.1,        # absolute value used by older builds
}


@dataclass(frozen=True)
class StreamGeometryConfig:
    """Tolerance settings for footprint construction and overlap filtering.

    Defaults come from `STREAM_GEOMETRY`.
    """
    degenerate_tolerance: Optional[float] = STREAM_GEOMETRY['degenerate_tolerance']
    relative_tolerance: float = STREAM_GEOMETRY['relative_tolerance']
    min_tolerance: float = STREAM_GEOMETRY['min_tolerance']
    area_epsilon: float = STREAM_GEOMETRY['area_epsilon']

    def __post_init__(self):
        if self.degenerate_tolerance is not None and not self.degenerate_tolerance > 0.0:
            raise ValueError('degenerate_tolerance must be positive')
        if not self.relative_tolerance > 0.0:
            raise ValueError('relative_tolerance must be positive')
        if not self.min_tolerance > 0.0:
            raise ValueError('min_tolerance must be positive')
        if self.area_epsilon < 0.0:
            raise ValueError('area_epsilon must be non-negative')

    @classmethod
    def legacy(cls) -> 'StreamGeometryConfig':
        """Config reproducing the fixed absolute tolerance of older builds."""
        return cls(degenerate_tolerance=STREAM_GEOMETRY['legacy_tolerance'])

    def resolve_tolerance(self, extent_diagonal: float) -> float:
        """Return the degeneracy tolerance for data spanning `extent_diagonal`."""
        if self.degenerate_tolerance is not None:
            return float(self.degenerate_tolerance)
        diag = float(extent_diagonal)
        if not np.isfinite(diag) or diag < 0.0:
            diag = 0.0
        return max(self.relative_tolerance * diag, self.min_tolerance)
